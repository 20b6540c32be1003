"""
Core primitives shared by the Vipps API clients: configuration, the
authenticating session, the request/response pipeline and the error types.
"""

from .auth import AccessToken, VippsAuth, create_session
from .config import (
    BASE_URL,
    BASE_URL_TESTING,
    ClientConfig,
    ClientParameters,
    ConfigError,
    Credentials,
    Environment,
    load_client_config,
)
from .environment import SettingsEnvironment, build_environment, load_env_file
from .errors import (
    APIFamily,
    BusinessError,
    DecodeError,
    EcomAPIError,
    EcomError,
    HTTPError,
    RecurringAPIError,
    RecurringError,
    SerializationError,
    TokenError,
    TransportError,
    UnexpectedResponseError,
    VippsError,
    classify_error,
)
from .http import APIClient

__all__ = [
    "APIClient",
    "APIFamily",
    "AccessToken",
    "BASE_URL",
    "BASE_URL_TESTING",
    "BusinessError",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "Credentials",
    "DecodeError",
    "EcomAPIError",
    "EcomError",
    "Environment",
    "HTTPError",
    "RecurringAPIError",
    "RecurringError",
    "SerializationError",
    "SettingsEnvironment",
    "TokenError",
    "TransportError",
    "UnexpectedResponseError",
    "VippsAuth",
    "VippsError",
    "build_environment",
    "classify_error",
    "create_session",
    "load_client_config",
    "load_env_file",
]
