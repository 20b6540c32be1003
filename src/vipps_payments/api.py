"""
Public, high-level helpers for talking to the Vipps APIs.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import requests

from .core.auth import create_session
from .core.config import (
    ClientConfig,
    ClientParameters,
    ConfigError,
    Environment,
    load_client_config,
)
from .core.http import APIClient
from .ecom.client import EcomClient
from .recurring.client import RecurringClient

__all__ = [
    "Client",
    "ConfigError",
    "create_client",
]


class Client:
    """
    One client for both API families, sharing a single authenticated session.

    The token cached by the session is reused by every call made through
    :attr:`ecom` and :attr:`recurring`, from any number of threads.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.session = create_session(
            config.credentials,
            config.environment,
            session=session,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )
        self.api = APIClient(
            self.session,
            config.base_url,
            logger=logger,
            timeout=config.timeout_seconds,
        )
        self.ecom = EcomClient(
            self.api,
            merchant_serial_number=config.merchant_serial_number,
        )
        self.recurring = RecurringClient(self.api)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def create_client(
    *,
    config: Optional[ClientConfig] = None,
    session: Optional[requests.Session] = None,
    logger: Optional[logging.Logger] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    subscription_key: Optional[str] = None,
    environment: Optional[Environment | str] = None,
    merchant_serial_number: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
    base_url: Optional[str] = None,
) -> Client:
    """
    Construct a :class:`Client`.

    Callers can either supply a ready-made :class:`ClientConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            client_id,
            client_secret,
            subscription_key,
            environment,
            merchant_serial_number,
            timeout_seconds,
            base_url,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built ClientConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_client_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            client_id=client_id,
            client_secret=client_secret,
            subscription_key=subscription_key,
            environment=environment,
            merchant_serial_number=merchant_serial_number,
            timeout_seconds=timeout_seconds,
            base_url=base_url,
        )
    return Client(cfg, session=session, logger=logger)
