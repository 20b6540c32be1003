"""
Initiate an Ecom payment, wait for the user to approve it in the Vipps app and
capture the full amount.
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from typing import Iterable, Tuple

from vipps_payments import ConfigError, VippsError, create_client
from vipps_payments.ecom import (
    CapturePaymentCommand,
    CustomerInfo,
    InitiatePaymentCommand,
    MerchantInfo,
    PaymentType,
    StaticShippingMethod,
    Transaction,
    YesNo,
)


def _override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _build_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initiate and capture a Vipps Ecom payment")
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing VIPPS_* settings",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    parser.add_argument("--mobile-number", default="97777776", help="Customer mobile number")
    parser.add_argument("--amount", type=int, default=1000, help="Amount in øre")
    parser.add_argument("--order-id", help="Order id (default: a random one)")
    parser.add_argument("--text", default="A transaction", help="Transaction text")
    parser.add_argument(
        "--callback-url",
        default="https://some.endpoint.no/callbacks",
        help="Prefix Vipps posts transaction updates to",
    )
    parser.add_argument(
        "--redirect-url",
        default="https://some.endpoint.no/redirect",
        help="Where the user lands after the payment",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    try:
        client = create_client(env_file=args.env_file, overrides=_build_overrides(args.set or ()))
    except (ConfigError, ValueError) as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    msn = client.config.merchant_serial_number
    if not msn:
        logging.error("Invalid configuration: VIPPS_MERCHANT_SERIAL_NUMBER must be provided")
        return 1

    order_id = args.order_id or uuid.uuid4().hex[:20]
    merchant_info = MerchantInfo(
        merchant_serial_number=msn,
        callback_url=args.callback_url,
        redirect_url=args.redirect_url,
        payment_type=PaymentType.EXPRESS,
        shipping_methods=[
            StaticShippingMethod(
                shipping_method="Posten servicepakke",
                shipping_method_id="123456",
                priority=1,
                is_default=YesNo.YES,
            )
        ],
    )

    with client:
        try:
            reference = client.ecom.initiate_payment(
                InitiatePaymentCommand(
                    merchant_info=merchant_info,
                    customer_info=CustomerInfo(mobile_number=args.mobile_number),
                    transaction=Transaction(
                        order_id=order_id,
                        amount=args.amount,
                        transaction_text=args.text,
                    ),
                )
            )
        except VippsError as exc:
            logging.error("Initiating payment failed: %s", exc)
            return 1

        print(f"Open {reference.url} in your web browser and complete the payment in the Vipps app")
        input("Press enter to capture the payment.")

        try:
            captured = client.ecom.capture_payment(
                CapturePaymentCommand(
                    order_id=order_id,
                    merchant_serial_number=msn,
                    amount=args.amount,
                    transaction_text=args.text,
                    idempotency_key=uuid.uuid4().hex,
                )
            )
        except VippsError as exc:
            logging.error("Capturing payment failed: %s", exc)
            return 1

    logging.info(
        "Captured %d øre on order %s (transaction %s)",
        captured.transaction_info.amount,
        captured.order_id,
        captured.transaction_info.transaction_id,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
