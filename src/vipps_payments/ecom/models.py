"""
Request and response models for the Vipps Ecom v2 API.

Attribute names are pythonic; ``to_dict`` / ``from_dict`` map them to the exact
JSON field names used by Vipps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from ..core.encoding import (
    as_dict,
    as_list,
    enum_or_text,
    enum_value,
    format_timestamp,
    omit_empty,
    parse_timestamp,
    to_int,
)
from ..core.errors import EcomAPIError

__all__ = [
    "Address",
    "AddressType",
    "CancelPaymentCommand",
    "CancelledPayment",
    "CapturePaymentCommand",
    "CapturedPayment",
    "CustomerInfo",
    "InitiatePaymentCommand",
    "MerchantInfo",
    "Payment",
    "PaymentReference",
    "PaymentType",
    "RefundPaymentCommand",
    "RefundedPayment",
    "ShippingCostRequest",
    "ShippingCostResponse",
    "ShippingDetails",
    "StaticShippingMethod",
    "Transaction",
    "TransactionInfo",
    "TransactionLogEntry",
    "TransactionSummary",
    "TransactionUpdate",
    "UserDetails",
    "YesNo",
]


class PaymentType(str, Enum):
    """The payment flow used for an Ecom payment."""

    REGULAR = "eComm Regular Payment"
    EXPRESS = "eComm Express Payment"


class YesNo(str, Enum):
    YES = "Y"
    NO = "N"


class AddressType(str, Enum):
    HOME = "H"
    BUSINESS = "B"


@dataclass
class StaticShippingMethod:
    """A shipping method presented to the user in the Vipps app."""

    shipping_method: str
    shipping_method_id: str
    shipping_cost: float = 0.0
    priority: int = 0
    is_default: YesNo | str = YesNo.NO

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isDefault": enum_value(self.is_default),
            "priority": self.priority,
            "shippingCost": self.shipping_cost,
            "shippingMethod": self.shipping_method,
            "shippingMethodId": self.shipping_method_id,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "StaticShippingMethod":
        payload = as_dict(payload)
        return cls(
            shipping_method=payload.get("shippingMethod") or "",
            shipping_method_id=payload.get("shippingMethodId") or "",
            shipping_cost=payload.get("shippingCost") or 0.0,
            priority=to_int(payload.get("priority")),
            is_default=enum_or_text(YesNo, payload.get("isDefault")) or YesNo.NO,
        )


@dataclass
class MerchantInfo:
    """
    Merchant configuration for an Ecom payment.

    ``callback_url``, ``consent_removal_url`` and ``shipping_details_url`` are
    prefixes of publicly reachable endpoints that Vipps calls back; see
    :mod:`vipps_payments.ecom.webhooks`. ``auth_token``, if set, is sent by
    Vipps as the ``Authorization`` header of those callbacks.
    """

    merchant_serial_number: str
    callback_url: str = ""
    redirect_url: str = ""
    consent_removal_url: str = ""
    shipping_details_url: str = ""
    auth_token: str = ""
    payment_type: Optional[PaymentType | str] = None
    is_app: bool = False
    shipping_methods: List[StaticShippingMethod] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "authToken": self.auth_token,
            "merchantSerialNumber": self.merchant_serial_number,
            "callbackPrefix": self.callback_url,
            "consentRemovalPrefix": self.consent_removal_url,
            "fallBack": self.redirect_url,
            "paymentType": enum_value(self.payment_type),
            "isApp": self.is_app,
            "shippingDetailsPrefix": self.shipping_details_url,
            "staticShippingDetails": [m.to_dict() for m in self.shipping_methods],
        }
        return omit_empty(
            payload,
            "authToken",
            "callbackPrefix",
            "consentRemovalPrefix",
            "fallBack",
            "paymentType",
            "isApp",
            "shippingDetailsPrefix",
            "staticShippingDetails",
        )


@dataclass
class CustomerInfo:
    # Norwegian mobile number, 8 digits without country prefix.
    mobile_number: int | str

    def to_dict(self) -> Dict[str, Any]:
        return {"mobileNumber": self.mobile_number}


@dataclass
class Transaction:
    """
    The order being paid. ``amount`` is in øre and ``order_id`` must be unique
    per sales unit.
    """

    order_id: str
    amount: int
    transaction_text: str
    skip_landing_page: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "amount": self.amount,
            "transactionText": self.transaction_text,
            "skipLandingPage": self.skip_landing_page,
        }


@dataclass
class InitiatePaymentCommand:
    merchant_info: MerchantInfo
    customer_info: CustomerInfo
    transaction: Transaction
    scope: Sequence[str] = ()

    @property
    def merchant_serial_number(self) -> str:
        return self.merchant_info.merchant_serial_number

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "merchantInfo": self.merchant_info.to_dict(),
            "customerInfo": self.customer_info.to_dict(),
            "transaction": self.transaction.to_dict(),
            "scope": " ".join(self.scope),
        }
        return omit_empty(payload, "scope")


@dataclass(frozen=True)
class PaymentReference:
    """Where the user continues the payment flow."""

    url: str
    order_id: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PaymentReference":
        payload = as_dict(payload)
        return cls(url=payload.get("url") or "", order_id=payload.get("orderId") or "")

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "orderId": self.order_id}


@dataclass
class CapturePaymentCommand:
    order_id: str
    merchant_serial_number: str
    amount: int
    transaction_text: str
    idempotency_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merchantInfo": {"merchantSerialNumber": self.merchant_serial_number},
            "transaction": {
                "amount": self.amount,
                "transactionText": self.transaction_text,
            },
        }


@dataclass
class RefundPaymentCommand:
    order_id: str
    merchant_serial_number: str
    amount: int
    transaction_text: str
    idempotency_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merchantInfo": {"merchantSerialNumber": self.merchant_serial_number},
            "transaction": {
                "amount": self.amount,
                "transactionText": self.transaction_text,
            },
        }


@dataclass
class CancelPaymentCommand:
    order_id: str
    merchant_serial_number: str
    transaction_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "merchantInfo": {"merchantSerialNumber": self.merchant_serial_number},
            "transaction": {"transactionText": self.transaction_text},
        }


@dataclass
class TransactionInfo:
    amount: int = 0
    status: str = ""
    timestamp: Optional[datetime] = None
    transaction_id: str = ""
    transaction_text: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionInfo":
        payload = as_dict(payload)
        return cls(
            amount=to_int(payload.get("amount")),
            status=payload.get("status") or "",
            timestamp=parse_timestamp(payload.get("timeStamp")),
            transaction_id=payload.get("transactionId") or "",
            transaction_text=payload.get("transactionText") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "status": self.status,
            "timeStamp": format_timestamp(self.timestamp),
            "transactionId": self.transaction_id,
            "transactionText": self.transaction_text,
        }


@dataclass
class TransactionSummary:
    """Captured, refunded and remaining amounts on a payment."""

    captured_amount: int = 0
    refunded_amount: int = 0
    remaining_amount_to_capture: int = 0
    remaining_amount_to_refund: int = 0
    bank_identification_number: int = 0

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionSummary":
        payload = as_dict(payload)
        return cls(
            captured_amount=to_int(payload.get("capturedAmount")),
            refunded_amount=to_int(payload.get("refundedAmount")),
            remaining_amount_to_capture=to_int(payload.get("remainingAmountToCapture")),
            remaining_amount_to_refund=to_int(payload.get("remainingAmountToRefund")),
            bank_identification_number=to_int(payload.get("bankIdentificationNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "capturedAmount": self.captured_amount,
            "refundedAmount": self.refunded_amount,
            "remainingAmountToCapture": self.remaining_amount_to_capture,
            "remainingAmountToRefund": self.remaining_amount_to_refund,
            "bankIdentificationNumber": self.bank_identification_number,
        }


@dataclass
class _PaymentOperation:
    order_id: str = ""
    transaction_info: TransactionInfo = field(default_factory=TransactionInfo)
    transaction_summary: TransactionSummary = field(default_factory=TransactionSummary)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]):
        payload = as_dict(payload)
        return cls(
            order_id=payload.get("orderId") or "",
            transaction_info=TransactionInfo.from_dict(payload.get("transactionInfo")),
            transaction_summary=TransactionSummary.from_dict(payload.get("transactionSummary")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "transactionInfo": self.transaction_info.to_dict(),
            "transactionSummary": self.transaction_summary.to_dict(),
        }


@dataclass
class CapturedPayment(_PaymentOperation):
    pass


@dataclass
class CancelledPayment(_PaymentOperation):
    pass


@dataclass
class RefundedPayment(_PaymentOperation):
    pass


@dataclass
class TransactionLogEntry:
    amount: int = 0
    operation: str = ""
    operation_success: bool = False
    request_id: str = ""
    timestamp: Optional[datetime] = None
    transaction_id: str = ""
    transaction_text: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionLogEntry":
        payload = as_dict(payload)
        return cls(
            amount=to_int(payload.get("amount")),
            operation=payload.get("operation") or "",
            operation_success=bool(payload.get("operationSuccess")),
            request_id=payload.get("requestId") or "",
            timestamp=parse_timestamp(payload.get("timeStamp")),
            transaction_id=payload.get("transactionId") or "",
            transaction_text=payload.get("transactionText") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amount": self.amount,
            "operation": self.operation,
            "operationSuccess": self.operation_success,
            "requestId": self.request_id,
            "timeStamp": format_timestamp(self.timestamp),
            "transactionId": self.transaction_id,
            "transactionText": self.transaction_text,
        }


@dataclass
class UserDetails:
    bank_id_verified: str = ""
    date_of_birth: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    mobile_number: str = ""
    ssn: str = ""
    user_id: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "UserDetails":
        payload = as_dict(payload)
        return cls(
            bank_id_verified=payload.get("bankIdVerified") or "",
            date_of_birth=payload.get("dateOfBirth") or "",
            email=payload.get("email") or "",
            first_name=payload.get("firstName") or "",
            last_name=payload.get("lastName") or "",
            mobile_number=str(payload.get("mobileNumber") or ""),
            ssn=payload.get("ssn") or "",
            user_id=payload.get("userId") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bankIdVerified": self.bank_id_verified,
            "dateOfBirth": self.date_of_birth,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "mobileNumber": self.mobile_number,
            "ssn": self.ssn,
            "userId": self.user_id,
        }


@dataclass
class Address:
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    country: str = ""
    post_code: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Address":
        payload = as_dict(payload)
        return cls(
            address_line1=payload.get("addressLine1") or "",
            address_line2=payload.get("addressLine2") or "",
            city=payload.get("city") or "",
            country=payload.get("country") or "",
            post_code=payload.get("postCode") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "country": self.country,
            "postCode": self.post_code,
        }


@dataclass
class ShippingDetails:
    address: Address = field(default_factory=Address)
    shipping_cost: float = 0
    shipping_method: str = ""
    shipping_method_id: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ShippingDetails":
        payload = as_dict(payload)
        return cls(
            address=Address.from_dict(payload.get("address")),
            shipping_cost=payload.get("shippingCost") or 0,
            shipping_method=payload.get("shippingMethod") or "",
            shipping_method_id=payload.get("shippingMethodId") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address.to_dict(),
            "shippingCost": self.shipping_cost,
            "shippingMethod": self.shipping_method,
            "shippingMethodId": self.shipping_method_id,
        }


@dataclass
class Payment:
    """The full record of a payment as returned by the details endpoint."""

    order_id: str = ""
    shipping_details: ShippingDetails = field(default_factory=ShippingDetails)
    transaction_log: List[TransactionLogEntry] = field(default_factory=list)
    transaction_summary: TransactionSummary = field(default_factory=TransactionSummary)
    user_details: UserDetails = field(default_factory=UserDetails)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Payment":
        payload = as_dict(payload)
        return cls(
            order_id=payload.get("orderId") or "",
            shipping_details=ShippingDetails.from_dict(payload.get("shippingDetails")),
            transaction_log=[
                TransactionLogEntry.from_dict(entry)
                for entry in as_list(payload.get("transactionLogHistory"))
            ],
            transaction_summary=TransactionSummary.from_dict(payload.get("transactionSummary")),
            user_details=UserDetails.from_dict(payload.get("userDetails")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orderId": self.order_id,
            "shippingDetails": self.shipping_details.to_dict(),
            "transactionLogHistory": [entry.to_dict() for entry in self.transaction_log],
            "transactionSummary": self.transaction_summary.to_dict(),
            "userDetails": self.user_details.to_dict(),
        }


@dataclass
class ShippingCostRequest:
    """Sent by Vipps to calculate shipping costs for an Express order."""

    address_id: int = 0
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    country: str = ""
    post_code: str = ""
    address_type: Optional[AddressType | str] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ShippingCostRequest":
        payload = as_dict(payload)
        return cls(
            address_id=to_int(payload.get("addressId")),
            address_line1=payload.get("addressLine1") or "",
            address_line2=payload.get("addressLine2") or "",
            city=payload.get("city") or "",
            country=payload.get("country") or "",
            post_code=payload.get("postCode") or "",
            address_type=enum_or_text(AddressType, payload.get("addressType")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addressId": self.address_id,
            "addressLine1": self.address_line1,
            "addressLine2": self.address_line2,
            "city": self.city,
            "country": self.country,
            "postCode": self.post_code,
            "addressType": enum_value(self.address_type),
        }


@dataclass
class ShippingCostResponse:
    address_id: int
    order_id: str
    shipping_details: List[StaticShippingMethod] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addressId": self.address_id,
            "orderId": self.order_id,
            "shippingDetails": [m.to_dict() for m in self.shipping_details],
        }


@dataclass
class TransactionUpdate:
    """
    A transaction update pushed by Vipps to the merchant's callback endpoint.

    For regular (non-Express) payments ``shipping_details`` and
    ``user_details`` are ``None``.
    """

    merchant_serial_number: str = ""
    order_id: str = ""
    shipping_details: Optional[ShippingDetails] = None
    transaction_info: Optional[TransactionInfo] = None
    user_details: Optional[UserDetails] = None
    error_info: Optional[EcomAPIError] = None

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "TransactionUpdate":
        payload = as_dict(payload)

        def optional(key, parse):
            value = payload.get(key)
            return None if value is None else parse(as_dict(value))

        return cls(
            merchant_serial_number=payload.get("merchantSerialNumber") or "",
            order_id=payload.get("orderId") or "",
            shipping_details=optional("shippingDetails", ShippingDetails.from_dict),
            transaction_info=optional("transactionInfo", TransactionInfo.from_dict),
            user_details=optional("userDetails", UserDetails.from_dict),
            error_info=optional("errorInfo", EcomAPIError.from_dict),
        )
