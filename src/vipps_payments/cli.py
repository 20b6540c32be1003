"""
Command-line interface for inspecting and operating on Vipps payments.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Callable, Iterable, Optional, Sequence, Tuple

from .api import Client, create_client
from .core.config import ConfigError
from .core.errors import VippsError
from .ecom.models import CancelPaymentCommand, CapturePaymentCommand, RefundPaymentCommand
from .recurring.models import (
    AgreementStatus,
    CaptureChargeCommand,
    ChargeStatus,
    DeleteChargeCommand,
    GetChargeCommand,
)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def _print_json(value: Any) -> None:
    if isinstance(value, list):
        payload: Any = [item.to_dict() for item in value]
    elif hasattr(value, "to_dict"):
        payload = value.to_dict()
    else:
        payload = value
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _merchant_serial_number(client: Client, args: argparse.Namespace) -> str:
    msn = args.merchant_serial_number or client.config.merchant_serial_number
    if not msn:
        raise ConfigError(
            "A merchant serial number is required: pass --merchant-serial-number "
            "or set VIPPS_MERCHANT_SERIAL_NUMBER"
        )
    return msn


def _payment_get(client: Client, args: argparse.Namespace) -> Any:
    return client.ecom.get_payment(
        args.order_id,
        merchant_serial_number=args.merchant_serial_number,
    )


def _payment_capture(client: Client, args: argparse.Namespace) -> Any:
    return client.ecom.capture_payment(
        CapturePaymentCommand(
            order_id=args.order_id,
            merchant_serial_number=_merchant_serial_number(client, args),
            amount=args.amount,
            transaction_text=args.text,
            idempotency_key=args.idempotency_key,
        )
    )


def _payment_cancel(client: Client, args: argparse.Namespace) -> Any:
    return client.ecom.cancel_payment(
        CancelPaymentCommand(
            order_id=args.order_id,
            merchant_serial_number=_merchant_serial_number(client, args),
            transaction_text=args.text,
        )
    )


def _payment_refund(client: Client, args: argparse.Namespace) -> Any:
    return client.ecom.refund_payment(
        RefundPaymentCommand(
            order_id=args.order_id,
            merchant_serial_number=_merchant_serial_number(client, args),
            amount=args.amount,
            transaction_text=args.text,
            idempotency_key=args.idempotency_key,
        )
    )


def _agreement_list(client: Client, args: argparse.Namespace) -> Any:
    return client.recurring.list_agreements(args.status)


def _agreement_get(client: Client, args: argparse.Namespace) -> Any:
    return client.recurring.get_agreement(args.agreement_id)


def _charge_list(client: Client, args: argparse.Namespace) -> Any:
    return client.recurring.list_charges(args.agreement_id, args.status)


def _charge_get(client: Client, args: argparse.Namespace) -> Any:
    return client.recurring.get_charge(
        GetChargeCommand(agreement_id=args.agreement_id, charge_id=args.charge_id)
    )


def _charge_capture(client: Client, args: argparse.Namespace) -> Any:
    client.recurring.capture_charge(
        CaptureChargeCommand(
            agreement_id=args.agreement_id,
            charge_id=args.charge_id,
            idempotency_key=args.idempotency_key,
        )
    )
    return {"agreementId": args.agreement_id, "chargeId": args.charge_id, "captured": True}


def _charge_cancel(client: Client, args: argparse.Namespace) -> Any:
    return client.recurring.cancel_charge(
        DeleteChargeCommand(
            agreement_id=args.agreement_id,
            charge_id=args.charge_id,
            idempotency_key=args.idempotency_key,
        )
    )


def _add_payment_commands(subparsers: argparse._SubParsersAction) -> None:
    payment = subparsers.add_parser("payment", help="Ecom payments")
    actions = payment.add_subparsers(dest="action", required=True)

    def add(name: str, handler: Callable[..., Any], help_text: str) -> argparse.ArgumentParser:
        parser = actions.add_parser(name, help=help_text)
        parser.add_argument("order_id")
        parser.add_argument(
            "--merchant-serial-number",
            help="Sales unit to act on (default: VIPPS_MERCHANT_SERIAL_NUMBER)",
        )
        parser.set_defaults(handler=handler)
        return parser

    add("get", _payment_get, "Show the details of a payment")

    capture = add("capture", _payment_capture, "Capture a reserved amount")
    capture.add_argument("--amount", type=int, required=True, help="Amount in øre")
    capture.add_argument("--text", required=True, help="Transaction text")
    capture.add_argument("--idempotency-key", required=True)

    cancel = add("cancel", _payment_cancel, "Cancel an initiated payment")
    cancel.add_argument("--text", required=True, help="Transaction text")

    refund = add("refund", _payment_refund, "Refund a captured amount")
    refund.add_argument("--amount", type=int, required=True, help="Amount in øre")
    refund.add_argument("--text", required=True, help="Transaction text")
    refund.add_argument("--idempotency-key", required=True)


def _add_agreement_commands(subparsers: argparse._SubParsersAction) -> None:
    agreement = subparsers.add_parser("agreement", help="Recurring agreements")
    actions = agreement.add_subparsers(dest="action", required=True)

    listing = actions.add_parser("list", help="List agreements")
    listing.add_argument("--status", choices=[s.value for s in AgreementStatus])
    listing.set_defaults(handler=_agreement_list)

    get = actions.add_parser("get", help="Show an agreement")
    get.add_argument("agreement_id")
    get.set_defaults(handler=_agreement_get)


def _add_charge_commands(subparsers: argparse._SubParsersAction) -> None:
    charge = subparsers.add_parser("charge", help="Charges on recurring agreements")
    actions = charge.add_subparsers(dest="action", required=True)

    listing = actions.add_parser("list", help="List charges on an agreement")
    listing.add_argument("agreement_id")
    listing.add_argument("--status", choices=[s.value for s in ChargeStatus])
    listing.set_defaults(handler=_charge_list)

    for name, handler, help_text, mutating in (
        ("get", _charge_get, "Show a charge", False),
        ("capture", _charge_capture, "Capture a reserved charge", True),
        ("cancel", _charge_cancel, "Cancel a charge", True),
    ):
        parser = actions.add_parser(name, help=help_text)
        parser.add_argument("agreement_id")
        parser.add_argument("charge_id")
        if mutating:
            parser.add_argument("--idempotency-key", required=True)
        parser.set_defaults(handler=handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vipps-payments",
        description="Inspect and operate on Vipps Ecom payments and recurring agreements",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing VIPPS_* settings (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_payment_commands(subparsers)
    _add_agreement_commands(subparsers)
    _add_charge_commands(subparsers)
    return parser


def run_cli(
    argv: Sequence[str] | None = None,
    *,
    client_factory: Optional[Callable[..., Client]] = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())
    factory = client_factory or create_client

    try:
        client = factory(env_file=args.env_file, overrides=overrides)
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    with client:
        try:
            result = args.handler(client, args)
        except ConfigError as exc:
            logging.error("Invalid configuration: %s", exc)
            return 1
        except VippsError as exc:
            logging.error("%s %s failed: %s", args.command, args.action, exc)
            return 1

    _print_json(result)
    return 0


def main() -> None:
    sys.exit(run_cli())
