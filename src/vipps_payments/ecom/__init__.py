"""
The Vipps Ecom v2 API.

The callback router lives in :mod:`vipps_payments.ecom.webhooks` and needs the
``webhooks`` extra (FastAPI).
"""

from .client import ECOM_ENDPOINT, EcomClient
from .models import (
    Address,
    AddressType,
    CancelPaymentCommand,
    CancelledPayment,
    CapturePaymentCommand,
    CapturedPayment,
    CustomerInfo,
    InitiatePaymentCommand,
    MerchantInfo,
    Payment,
    PaymentReference,
    PaymentType,
    RefundPaymentCommand,
    RefundedPayment,
    ShippingCostRequest,
    ShippingCostResponse,
    ShippingDetails,
    StaticShippingMethod,
    Transaction,
    TransactionInfo,
    TransactionLogEntry,
    TransactionSummary,
    TransactionUpdate,
    UserDetails,
    YesNo,
)

__all__ = [
    "Address",
    "AddressType",
    "CancelPaymentCommand",
    "CancelledPayment",
    "CapturePaymentCommand",
    "CapturedPayment",
    "CustomerInfo",
    "ECOM_ENDPOINT",
    "EcomClient",
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
