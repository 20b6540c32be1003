"""
Adapters for the callbacks Vipps makes to a merchant during Ecom payments.

:func:`build_callback_router` returns a FastAPI ``APIRouter`` that decodes the
incoming requests and hands them to caller-supplied functions. Mount it under
the prefix configured in :class:`~vipps_payments.ecom.models.MerchantInfo`::

    app.include_router(build_callback_router(on_transaction_update=handle), prefix="/vipps")

Routing, the application itself and the server lifecycle stay with the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .models import ShippingCostRequest, ShippingCostResponse, TransactionUpdate

__all__ = [
    "ConsentRemovalHandler",
    "ShippingDetailsHandler",
    "TransactionUpdateHandler",
    "build_callback_router",
]

logger = logging.getLogger(__name__)

TransactionUpdateHandler = Callable[[TransactionUpdate], Any]
ShippingDetailsHandler = Callable[[str, ShippingCostRequest], ShippingCostResponse]
ConsentRemovalHandler = Callable[[str], Any]


def _check_authorization(request: Request, auth_token: Optional[str]) -> None:
    if auth_token and request.headers.get("Authorization") != auth_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def _read_json(request: Request) -> Any:
    try:
        return json.loads(await request.body())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def build_callback_router(
    *,
    on_transaction_update: Optional[TransactionUpdateHandler] = None,
    on_shipping_details: Optional[ShippingDetailsHandler] = None,
    on_consent_removal: Optional[ConsentRemovalHandler] = None,
    auth_token: Optional[str] = None,
) -> APIRouter:
    """
    Build a router for the Vipps Ecom callbacks.

    Only the callbacks that were supplied get a route. When ``auth_token`` is
    set, the ``Authorization`` header of transaction update and shipping
    requests must match it exactly. The consent removal route is not covered by
    ``auth_token``; callers that need it guarded must add their own dependency.

    Callbacks are plain functions and run in the threadpool, so they may block.
    """
    router = APIRouter()

    if on_transaction_update is not None:

        @router.post("/v2/payments/{order_id}")
        async def transaction_update(order_id: str, request: Request) -> Response:
            _check_authorization(request, auth_token)
            payload = await _read_json(request)
            try:
                update = TransactionUpdate.from_dict(payload)
            except (TypeError, ValueError) as exc:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
            if not update.order_id:
                update.order_id = order_id
            await run_in_threadpool(on_transaction_update, update)
            return Response(status_code=status.HTTP_200_OK)

    if on_shipping_details is not None:

        @router.post("/v2/payments/{order_id}/shippingDetails")
        async def shipping_details(order_id: str, request: Request) -> Response:
            _check_authorization(request, auth_token)
            payload = await _read_json(request)
            try:
                cost_request = ShippingCostRequest.from_dict(payload)
            except (TypeError, ValueError) as exc:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
            try:
                cost_response = await run_in_threadpool(on_shipping_details, order_id, cost_request)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Shipping details callback failed for order %s", order_id)
                raise HTTPException(
                    status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
                ) from exc
            return JSONResponse(cost_response.to_dict())

    if on_consent_removal is not None:

        @router.delete("/v2/consents/{user_id}")
        async def consent_removal(user_id: str) -> Response:
            await run_in_threadpool(on_consent_removal, user_id)
            return Response(status_code=status.HTTP_200_OK)

    return router
