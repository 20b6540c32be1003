"""
Request and response models for the Vipps Recurring Payments v2 API.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..core.encoding import (
    as_dict,
    enum_or_text,
    enum_value,
    format_date,
    format_timestamp,
    omit_empty,
    parse_date,
    parse_timestamp,
    to_int,
)

__all__ = [
    "Agreement",
    "AgreementReference",
    "AgreementStatus",
    "Campaign",
    "CaptureChargeCommand",
    "Charge",
    "ChargeInterval",
    "ChargeReference",
    "ChargeStatus",
    "ChargeType",
    "CreateAgreementCommand",
    "CreateChargeCommand",
    "Currency",
    "DeleteChargeCommand",
    "GetChargeCommand",
    "InitialCharge",
    "RefundChargeCommand",
    "TransactionType",
    "UpdateAgreementCommand",
]


class Currency(str, Enum):
    NOK = "NOK"


class TransactionType(str, Enum):
    """How the initial charge of an agreement is captured."""

    DIRECT_CAPTURE = "DIRECT_CAPTURE"
    RESERVE_CAPTURE = "RESERVE_CAPTURE"


class ChargeInterval(str, Enum):
    MONTH = "MONTH"
    WEEK = "WEEK"
    DAY = "DAY"


class ChargeType(str, Enum):
    INITIAL = "INITIAL"
    RECURRING = "RECURRING"


class AgreementStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    STOPPED = "STOPPED"
    EXPIRED = "EXPIRED"


class ChargeStatus(str, Enum):
    PENDING = "PENDING"
    DUE = "DUE"
    RESERVED = "RESERVED"
    CHARGED = "CHARGED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    REFUNDED = "REFUNDED"
    PROCESSING = "PROCESSING"


@dataclass
class Campaign:
    """A reduced price that applies until ``end``."""

    price: int
    end: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"campaignPrice": self.price, "end": format_timestamp(self.end)}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Campaign":
        payload = as_dict(payload)
        return cls(
            price=to_int(payload.get("campaignPrice")),
            end=parse_timestamp(payload.get("end")),
        )


@dataclass
class InitialCharge:
    amount: int
    description: str
    transaction_type: TransactionType | str
    currency: Currency | str = Currency.NOK
    order_id: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "amount": self.amount,
            "currency": enum_value(self.currency),
            "description": self.description,
            "transactionType": enum_value(self.transaction_type),
            "orderId": self.order_id,
        }
        return omit_empty(payload, "orderId")


@dataclass
class CreateAgreementCommand:
    customer_phone_number: str
    interval: ChargeInterval | str
    interval_count: int
    agreement_url: str
    redirect_url: str
    price: int
    product_name: str
    product_description: str = ""
    currency: Currency | str = Currency.NOK
    initial_charge: Optional[InitialCharge] = None
    campaign: Optional[Campaign] = None
    is_app: bool = False

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "campaign": self.campaign.to_dict() if self.campaign else None,
            "currency": enum_value(self.currency),
            "customerPhoneNumber": self.customer_phone_number,
            "initialCharge": self.initial_charge.to_dict() if self.initial_charge else None,
            "interval": enum_value(self.interval),
            "intervalCount": self.interval_count,
            "isApp": self.is_app,
            "merchantAgreementUrl": self.agreement_url,
            "merchantRedirectUrl": self.redirect_url,
            "price": self.price,
            "productName": self.product_name,
            "productDescription": self.product_description,
        }
        return omit_empty(payload, "campaign", "initialCharge")


@dataclass(frozen=True)
class AgreementReference:
    agreement_resource: str
    agreement_id: str
    url: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AgreementReference":
        payload = as_dict(payload)
        return cls(
            agreement_resource=payload.get("agreementResource") or "",
            agreement_id=payload.get("agreementId") or "",
            url=payload.get("vippsConfirmationUrl") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agreementResource": self.agreement_resource,
            "agreementId": self.agreement_id,
            "vippsConfirmationUrl": self.url,
        }


@dataclass
class Agreement:
    id: str = ""
    status: AgreementStatus | str = ""
    currency: Currency | str = ""
    interval: ChargeInterval | str = ""
    interval_count: int = 0
    price: int = 0
    product_name: str = ""
    product_description: str = ""
    campaign: Optional[Campaign] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Agreement":
        payload = as_dict(payload)
        campaign = payload.get("campaign")
        return cls(
            id=payload.get("id") or "",
            status=enum_or_text(AgreementStatus, payload.get("status")) or "",
            currency=enum_or_text(Currency, payload.get("currency")) or "",
            interval=enum_or_text(ChargeInterval, payload.get("interval")) or "",
            interval_count=to_int(payload.get("intervalCount")),
            price=to_int(payload.get("price")),
            product_name=payload.get("productName") or "",
            product_description=payload.get("productDescription") or "",
            campaign=None if campaign is None else Campaign.from_dict(campaign),
            start=parse_timestamp(payload.get("start")),
            end=parse_timestamp(payload.get("end")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "campaign": self.campaign.to_dict() if self.campaign else None,
            "currency": enum_value(self.currency),
            "id": self.id,
            "interval": enum_value(self.interval),
            "intervalCount": self.interval_count,
            "price": self.price,
            "productName": self.product_name,
            "productDescription": self.product_description,
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "status": enum_value(self.status),
        }


@dataclass
class UpdateAgreementCommand:
    """Only the fields that are set are sent to Vipps."""

    agreement_id: str
    campaign: Optional[Campaign] = None
    price: int = 0
    product_name: str = ""
    product_description: str = ""
    status: Optional[AgreementStatus | str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "campaign": self.campaign.to_dict() if self.campaign else None,
            "price": self.price,
            "productName": self.product_name,
            "productDescription": self.product_description,
            "status": enum_value(self.status),
        }
        return omit_empty(payload, *payload.keys())


@dataclass
class Charge:
    id: str = ""
    amount: int = 0
    amount_refunded: int = 0
    description: str = ""
    due: Optional[date] = None
    status: ChargeStatus | str = ""
    transaction_id: str = ""
    type: ChargeType | str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Charge":
        payload = as_dict(payload)
        return cls(
            id=payload.get("id") or "",
            amount=to_int(payload.get("amount")),
            amount_refunded=to_int(payload.get("amountRefunded")),
            description=payload.get("description") or "",
            due=parse_date(payload.get("due")),
            status=enum_or_text(ChargeStatus, payload.get("status")) or "",
            transaction_id=payload.get("transactionId") or "",
            type=enum_or_text(ChargeType, payload.get("type")) or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "amountRefunded": self.amount_refunded,
            "description": self.description,
            "due": format_date(self.due) if self.due else None,
            "id": self.id,
            "status": enum_value(self.status),
            "transactionId": self.transaction_id,
            "type": enum_value(self.type),
        }


@dataclass
class CreateChargeCommand:
    """
    A charge against an agreement. ``due`` is sent as ``YYYY-MM-DD``.

    ``idempotency_key``, if set, is sent as the ``Idempotency-Key`` header.
    """

    agreement_id: str
    amount: int
    due: date | str
    description: str = ""
    currency: Optional[Currency | str] = None
    retry_days: int = 0
    order_id: str = ""
    idempotency_key: str = ""

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "amount": self.amount,
            "currency": enum_value(self.currency),
            "description": self.description,
            "due": format_date(self.due),
            "retryDays": self.retry_days,
            "orderId": self.order_id,
        }
        return omit_empty(payload, "currency", "retryDays", "orderId")


@dataclass(frozen=True)
class ChargeReference:
    charge_id: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ChargeReference":
        payload = as_dict(payload)
        return cls(charge_id=payload.get("chargeId") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {"chargeId": self.charge_id}


@dataclass
class GetChargeCommand:
    agreement_id: str
    charge_id: str


@dataclass
class CaptureChargeCommand:
    agreement_id: str
    charge_id: str
    idempotency_key: str


@dataclass
class DeleteChargeCommand:
    agreement_id: str
    charge_id: str
    idempotency_key: str


@dataclass
class RefundChargeCommand:
    agreement_id: str
    charge_id: str
    idempotency_key: str
    amount: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "description": self.description}
