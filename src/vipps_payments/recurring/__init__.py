"""
The Vipps Recurring Payments v2 API.
"""

from .client import RECURRING_ENDPOINT, RecurringClient
from .models import (
    Agreement,
    AgreementReference,
    AgreementStatus,
    Campaign,
    CaptureChargeCommand,
    Charge,
    ChargeInterval,
    ChargeReference,
    ChargeStatus,
    ChargeType,
    CreateAgreementCommand,
    CreateChargeCommand,
    Currency,
    DeleteChargeCommand,
    GetChargeCommand,
    InitialCharge,
    RefundChargeCommand,
    TransactionType,
    UpdateAgreementCommand,
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
    "RECURRING_ENDPOINT",
    "RecurringClient",
    "RefundChargeCommand",
    "TransactionType",
    "UpdateAgreementCommand",
]
