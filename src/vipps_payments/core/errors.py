"""
Error taxonomy for the Vipps API clients and the per-family classification of
raw HTTP error responses.

Every call made through :class:`vipps_payments.core.http.APIClient` raises one of
the exceptions defined here. Non-success responses are first raised as a plain
:class:`HTTPError` by the pipeline and then passed through
:func:`classify_error`, which is the only place that inspects the raw bytes to
decide between a business rejection and an unexpected response.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "APIFamily",
    "BusinessError",
    "DecodeError",
    "EcomAPIError",
    "EcomError",
    "HTTPError",
    "RecurringAPIError",
    "RecurringError",
    "SerializationError",
    "TokenError",
    "TransportError",
    "UnexpectedResponseError",
    "VippsError",
    "classify_error",
]


class VippsError(Exception):
    """Base class for every error raised by this package."""


class TransportError(VippsError):
    """Network level failure: DNS, TCP, TLS, timeouts or aborted requests."""


class TokenError(TransportError):
    """Raised when an access token could not be obtained."""


class SerializationError(VippsError):
    """Raised when a command cannot be encoded as JSON."""


class DecodeError(VippsError):
    """
    A success response whose body did not match the expected shape.

    This usually means the provider contract drifted.
    """

    def __init__(self, message: str, *, body: bytes = b"", status: int = 0) -> None:
        super().__init__(message)
        self.body = body
        self.status = status


class HTTPError(VippsError):
    """A response with a status outside the success range."""

    def __init__(self, status: int, body: bytes) -> None:
        super().__init__(f"request failed with status: {status}")
        self.status = status
        self.body = body


class UnexpectedResponseError(HTTPError):
    """An error response whose body is not in the documented error format."""

    def __str__(self) -> str:
        return (
            "unexpected response from Vipps, body: "
            f"{self.body.decode('utf-8', errors='replace')}, status: {self.status}"
        )


class BusinessError(HTTPError):
    """
    An error response that parsed into the provider's documented error list.

    Subclasses define how a single entry is rendered.
    """

    def __init__(self, status: int, body: bytes, errors: Sequence[Any]) -> None:
        super().__init__(status, body)
        self.errors = list(errors)

    def _render_entry(self, entry: Any) -> str:
        raise NotImplementedError

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self):
        return iter(self.errors)

    def __str__(self) -> str:
        parts = ["vipps:"]
        if len(self.errors) > 1:
            parts.append("multiple errors:")
        parts.extend(self._render_entry(entry) for entry in self.errors)
        return " ".join(parts)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass(frozen=True)
class EcomAPIError:
    """A single error entry returned from the Ecom API."""

    group: str
    message: str
    code: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "EcomAPIError":
        return cls(
            group=_text(payload.get("errorGroup")),
            message=_text(payload.get("errorMessage")),
            code=_text(payload.get("errorCode")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorGroup": self.group,
            "errorMessage": self.message,
            "errorCode": self.code,
        }


class EcomError(BusinessError):
    """Errors returned from the Vipps Ecom API."""

    errors: List[EcomAPIError]

    def _render_entry(self, entry: EcomAPIError) -> str:
        return f"[{entry.group}] {entry.message} (code {entry.code})"


@dataclass(frozen=True)
class RecurringAPIError:
    """A single error entry returned from the Recurring Payments API."""

    field: str
    code: str
    message: str
    context_id: str

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "RecurringAPIError":
        return cls(
            field=_text(payload.get("field")),
            code=_text(payload.get("code")),
            message=_text(payload.get("message")),
            context_id=_text(payload.get("contextId")),
        )


class RecurringError(BusinessError):
    """Errors returned from the Vipps Recurring Payments API."""

    errors: List[RecurringAPIError]

    def _render_entry(self, entry: RecurringAPIError) -> str:
        return f"field {entry.field}: {entry.message} (code {entry.code})"


class APIFamily(str, Enum):
    """The API families that document their own error body shape."""

    ECOM = "ecom"
    RECURRING = "recurring"


_FAMILY_ERRORS = {
    APIFamily.ECOM: (EcomError, EcomAPIError),
    APIFamily.RECURRING: (RecurringError, RecurringAPIError),
}


def _parse_error_list(body: bytes) -> Optional[List[Dict[str, Any]]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(payload, list):
        return None
    if not all(isinstance(item, dict) for item in payload):
        return None
    return payload


def classify_error(error: BaseException, family: APIFamily) -> BaseException:
    """
    Convert a raw :class:`HTTPError` into the error type for ``family``.

    Errors that are not raw HTTP errors (transport, serialization, decode, or
    already classified ones) are returned unchanged. The result only depends on
    the status, the body and ``family``.
    """
    if not isinstance(error, HTTPError) or isinstance(
        error, (BusinessError, UnexpectedResponseError)
    ):
        return error

    entries = _parse_error_list(error.body)
    if entries is None:
        return UnexpectedResponseError(error.status, error.body)

    error_cls, entry_cls = _FAMILY_ERRORS[APIFamily(family)]
    return error_cls(
        error.status,
        error.body,
        [entry_cls.from_dict(item) for item in entries],
    )
