"""
Client for the Vipps Recurring Payments v2 API.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from ..core.encoding import as_dict, as_list, enum_value
from ..core.errors import APIFamily, HTTPError, classify_error
from ..core.http import APIClient, Timeout
from .models import (
    Agreement,
    AgreementReference,
    AgreementStatus,
    CaptureChargeCommand,
    Charge,
    ChargeReference,
    ChargeStatus,
    CreateAgreementCommand,
    CreateChargeCommand,
    DeleteChargeCommand,
    GetChargeCommand,
    RefundChargeCommand,
    UpdateAgreementCommand,
)

__all__ = [
    "RECURRING_ENDPOINT",
    "RecurringClient",
]

RECURRING_ENDPOINT = "recurring/v2/agreements"

IDEMPOTENCY_KEY_HEADER = "Idempotency-Key"


def _idempotency(key: Optional[str]) -> Dict[str, str]:
    # Sent exactly as supplied by the caller.
    if key is None or key == "":
        return {}
    return {IDEMPOTENCY_KEY_HEADER: key}


def _agreement_id(payload) -> str:
    return as_dict(payload).get("agreementId") or ""


def _agreements(payload) -> List[Agreement]:
    return [Agreement.from_dict(item) for item in as_list(payload)]


def _charges(payload) -> List[Charge]:
    return [Charge.from_dict(item) for item in as_list(payload)]


class RecurringClient:
    """
    Manage agreements and charges in the Recurring Payments API.

    Error responses are raised as
    :class:`~vipps_payments.core.errors.RecurringError` when Vipps returned its
    documented error list, and as
    :class:`~vipps_payments.core.errors.UnexpectedResponseError` otherwise.
    """

    def __init__(self, api_client: APIClient) -> None:
        self.api = api_client

    def _call(self, request, decode, timeout: Optional[Timeout]):
        try:
            return self.api.do(request, decode, timeout=timeout)
        except HTTPError as exc:
            raise classify_error(exc, APIFamily.RECURRING) from exc

    def _agreement_url(self, *segments: str) -> str:
        return self.api.url(RECURRING_ENDPOINT, *segments)

    # Agreements

    def create_agreement(
        self,
        cmd: CreateAgreementCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> AgreementReference:
        request = self.api.new_request("POST", self._agreement_url(), cmd)
        return self._call(request, AgreementReference.from_dict, timeout)

    def update_agreement(
        self,
        cmd: UpdateAgreementCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> str:
        """Update an agreement and return its id."""
        request = self.api.new_request(
            "PATCH", self._agreement_url(cmd.agreement_id), cmd
        )
        return self._call(request, _agreement_id, timeout)

    def get_agreement(
        self,
        agreement_id: str,
        *,
        timeout: Optional[Timeout] = None,
    ) -> Agreement:
        request = self.api.new_request("GET", self._agreement_url(agreement_id))
        return self._call(request, Agreement.from_dict, timeout)

    def list_agreements(
        self,
        status: Optional[AgreementStatus | str] = None,
        *,
        timeout: Optional[Timeout] = None,
    ) -> List[Agreement]:
        """List agreements for the sales unit, optionally filtered by status."""
        params = {"status": enum_value(status)} if status else None
        request = self.api.new_request("GET", self._agreement_url(), params=params)
        return self._call(request, _agreements, timeout)

    # Charges

    def create_charge(
        self,
        cmd: CreateChargeCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> ChargeReference:
        request = self.api.new_request(
            "POST",
            self._agreement_url(cmd.agreement_id, "charges"),
            cmd,
            headers=_idempotency(cmd.idempotency_key),
        )
        return self._call(request, ChargeReference.from_dict, timeout)

    def capture_charge(
        self,
        cmd: CaptureChargeCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> None:
        """Capture a reserved charge. The response body is not decoded."""
        request = self.api.new_request(
            "POST",
            self._agreement_url(cmd.agreement_id, "charges", cmd.charge_id, "capture"),
            headers=_idempotency(cmd.idempotency_key),
        )
        self._call(request, None, timeout)

    def refund_charge(
        self,
        cmd: RefundChargeCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> None:
        request = self.api.new_request(
            "POST",
            self._agreement_url(cmd.agreement_id, "charges", cmd.charge_id, "refund"),
            cmd,
            headers=_idempotency(cmd.idempotency_key),
        )
        self._call(request, None, timeout)

    def cancel_charge(
        self,
        cmd: DeleteChargeCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> Charge:
        """Cancel a charge. Fails for charges that are not in a cancellable state."""
        request = self.api.new_request(
            "DELETE",
            self._agreement_url(cmd.agreement_id, "charges", cmd.charge_id),
            headers=_idempotency(cmd.idempotency_key),
        )
        return self._call(request, Charge.from_dict, timeout)

    delete_charge = cancel_charge

    def get_charge(
        self,
        cmd: GetChargeCommand,
        *,
        timeout: Optional[Timeout] = None,
    ) -> Charge:
        request = self.api.new_request(
            "GET",
            self._agreement_url(cmd.agreement_id, "charges", cmd.charge_id),
        )
        return self._call(request, Charge.from_dict, timeout)

    def list_charges(
        self,
        agreement_id: str,
        status: Optional[ChargeStatus | str] = None,
        *,
        timeout: Optional[Timeout] = None,
    ) -> List[Charge]:
        params = {"chargeStatus": enum_value(status)} if status else None
        request = self.api.new_request(
            "GET",
            self._agreement_url(agreement_id, "charges"),
            params=params,
        )
        return self._call(request, _charges, timeout)
