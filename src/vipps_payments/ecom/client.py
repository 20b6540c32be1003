"""
Client for the Vipps Ecom v2 API.
"""

from __future__ import annotations

from typing import Dict, Optional

from ..core.errors import APIFamily, HTTPError, classify_error
from ..core.http import APIClient, Timeout
from .models import (
    CancelPaymentCommand,
    CancelledPayment,
    CapturePaymentCommand,
    CapturedPayment,
    InitiatePaymentCommand,
    Payment,
    PaymentReference,
    RefundPaymentCommand,
    RefundedPayment,
)

__all__ = [
    "ECOM_ENDPOINT",
    "EcomClient",
]

ECOM_ENDPOINT = "ecomm/v2/payments"

MERCHANT_SERIAL_NUMBER_HEADER = "Merchant-Serial-Number"
REQUEST_ID_HEADER = "X-Request-ID"


class EcomClient:
    """
    Initiate, capture, cancel, refund and inspect Ecom payments.

    Error responses are raised as :class:`~vipps_payments.core.errors.EcomError`
    when Vipps returned its documented error list, and as
    :class:`~vipps_payments.core.errors.UnexpectedResponseError` otherwise.
    """

    def __init__(
        self,
        api_client: APIClient,
        *,
        merchant_serial_number: Optional[str] = None,
    ) -> None:
        self.api = api_client
        self.merchant_serial_number = merchant_serial_number

    def _call(self, request, decode, timeout: Optional[Timeout]):
        try:
            return self.api.do(request, decode, timeout=timeout)
        except HTTPError as exc:
            raise classify_error(exc, APIFamily.ECOM) from exc

    def _headers(
        self,
        merchant_serial_number: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        msn = merchant_serial_number or self.merchant_serial_number
        if msn:
            headers[MERCHANT_SERIAL_NUMBER_HEADER] = msn
        if request_id:
            headers[REQUEST_ID_HEADER] = request_id
        return headers

    def initiate_payment(
        self,
        cmd: InitiatePaymentCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> PaymentReference:
        """Start a payment and return where the user continues the flow."""
        request = self.api.new_request(
            "POST",
            self.api.url(ECOM_ENDPOINT),
            cmd,
            headers=self._headers(cmd.merchant_serial_number),
        )
        return self._call(request, PaymentReference.from_dict, timeout)

    def capture_payment(
        self,
        cmd: CapturePaymentCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> CapturedPayment:
        """Capture reserved amounts on a payment."""
        request = self.api.new_request(
            "POST",
            self.api.url(ECOM_ENDPOINT, cmd.order_id, "capture"),
            cmd,
            headers=self._headers(cmd.merchant_serial_number, cmd.idempotency_key),
        )
        return self._call(request, CapturedPayment.from_dict, timeout)

    def cancel_payment(
        self,
        cmd: CancelPaymentCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> CancelledPayment:
        """Cancel an initiated payment. Fails for payments that are not cancellable."""
        request = self.api.new_request(
            "PUT",
            self.api.url(ECOM_ENDPOINT, cmd.order_id, "cancel"),
            cmd,
            headers=self._headers(cmd.merchant_serial_number),
        )
        return self._call(request, CancelledPayment.from_dict, timeout)

    def refund_payment(
        self,
        cmd: RefundPaymentCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> RefundedPayment:
        """Refund already captured amounts on a payment."""
        request = self.api.new_request(
            "POST",
            self.api.url(ECOM_ENDPOINT, cmd.order_id, "refund"),
            cmd,
            headers=self._headers(cmd.merchant_serial_number, cmd.idempotency_key),
        )
        return self._call(request, RefundedPayment.from_dict, timeout)

    def get_payment(
        self,
        order_id: str,
        *,
        merchant_serial_number: Optional[str] = None,
        timeout: Optional[Timeout] = None,
    ) -> Payment:
        request = self.api.new_request(
            "GET",
            self.api.url(ECOM_ENDPOINT, order_id, "details"),
            headers=self._headers(merchant_serial_number),
        )
        return self._call(request, Payment.from_dict, timeout)
