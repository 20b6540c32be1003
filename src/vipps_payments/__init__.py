"""
Public facade for the Vipps payments client package.

The module re-exports the most useful pieces for integrators so they can
``from vipps_payments import ...`` without navigating the package.
"""

from .api import Client, create_client
from .core import (
    APIClient,
    BusinessError,
    ClientConfig,
    ClientParameters,
    ConfigError,
    Credentials,
    DecodeError,
    EcomError,
    Environment,
    HTTPError,
    RecurringError,
    SerializationError,
    TokenError,
    TransportError,
    UnexpectedResponseError,
    VippsAuth,
    VippsError,
    create_session,
    load_client_config,
    load_env_file,
)
from .ecom import EcomClient
from .recurring import RecurringClient

__all__ = (
    "APIClient",
    "BusinessError",
    "Client",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "Credentials",
    "DecodeError",
    "EcomClient",
    "EcomError",
    "Environment",
    "HTTPError",
    "RecurringClient",
    "RecurringError",
    "SerializationError",
    "TokenError",
    "TransportError",
    "UnexpectedResponseError",
    "VippsAuth",
    "VippsError",
    "create_client",
    "create_session",
    "load_client_config",
    "load_env_file",
)
