"""
Configuration objects and helpers for the Vipps clients.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment

__all__ = [
    "BASE_URL",
    "BASE_URL_TESTING",
    "ClientConfig",
    "ClientParameters",
    "ConfigError",
    "Credentials",
    "Environment",
    "load_client_config",
]

BASE_URL = "https://api.vipps.no"
BASE_URL_TESTING = "https://apitest.vipps.no"

_PARAMETER_TO_ENV_KEY = {
    "client_id": "VIPPS_CLIENT_ID",
    "client_secret": "VIPPS_CLIENT_SECRET",
    "subscription_key": "VIPPS_SUBSCRIPTION_KEY",
    "environment": "VIPPS_ENVIRONMENT",
    "merchant_serial_number": "VIPPS_MERCHANT_SERIAL_NUMBER",
    "timeout_seconds": "VIPPS_TIMEOUT_SECONDS",
    "base_url": "VIPPS_BASE_URL",
}


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


class Environment(str, Enum):
    """The Vipps environment a client talks to."""

    TESTING = "testing"
    PRODUCTION = "production"

    @property
    def base_url(self) -> str:
        if self is Environment.TESTING:
            return BASE_URL_TESTING
        return BASE_URL

    @classmethod
    def parse(cls, value: "Environment | str") -> "Environment":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        aliases = {"test": "testing", "prod": "production"}
        try:
            return cls(aliases.get(normalized, normalized))
        except ValueError as exc:
            raise ConfigError(
                f"VIPPS_ENVIRONMENT must be 'testing' or 'production', got '{value}'"
            ) from exc


@dataclass(frozen=True)
class Credentials:
    """
    Secrets used to authenticate a merchant against the Vipps APIs.

    The secrets are kept out of ``repr`` so they never end up in logs.
    """

    client_id: str
    client_secret: str
    subscription_key: str

    def __repr__(self) -> str:
        return f"Credentials(client_id={self.client_id!r}, client_secret='***', subscription_key='***')"


def _stringify(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`ClientConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_client_config`.
    """

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    subscription_key: Optional[str] = None
    environment: Optional[Environment | str] = None
    merchant_serial_number: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None
    base_url: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _require(values: Mapping[str, str], key: str) -> str:
    value = (values.get(key) or "").strip()
    if not value:
        raise ConfigError(f"{key} must be provided")
    return value


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"VIPPS_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigError("VIPPS_TIMEOUT_SECONDS must be greater than zero")
    return timeout


@dataclass(frozen=True)
class ClientConfig:
    credentials: Credentials
    environment: Environment = Environment.TESTING
    merchant_serial_number: Optional[str] = None
    timeout_seconds: float = 30.0
    base_url_override: Optional[str] = None

    @property
    def base_url(self) -> str:
        if self.base_url_override:
            return self.base_url_override.rstrip("/")
        return self.environment.base_url

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "ClientConfig":
        credentials = Credentials(
            client_id=_require(values, "VIPPS_CLIENT_ID"),
            client_secret=_require(values, "VIPPS_CLIENT_SECRET"),
            subscription_key=_require(values, "VIPPS_SUBSCRIPTION_KEY"),
        )
        environment = Environment.parse(values.get("VIPPS_ENVIRONMENT", "testing"))
        merchant_serial_number = (values.get("VIPPS_MERCHANT_SERIAL_NUMBER") or "").strip()
        timeout_seconds = _parse_timeout(values.get("VIPPS_TIMEOUT_SECONDS", "30"))
        base_url = (values.get("VIPPS_BASE_URL") or "").strip()

        return cls(
            credentials=credentials,
            environment=environment,
            merchant_serial_number=merchant_serial_number or None,
            timeout_seconds=timeout_seconds,
            base_url_override=base_url or None,
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "ClientConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "client_id": client_id,
                "client_secret": client_secret,
                "subscription_key": subscription_key,
                "environment": environment,
                "merchant_serial_number": merchant_serial_number,
                "timeout_seconds": timeout_seconds,
                "base_url": base_url,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        settings = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(settings.variables)


def load_client_config(
    *,
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
) -> ClientConfig:
    """
    Convenience wrapper that mirrors :meth:`ClientConfig.from_env`.

    The configuration can be provided through environment variables, a ``.env``
    file, direct keyword arguments, or any combination of the three.
    """
    return ClientConfig.from_env(
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
