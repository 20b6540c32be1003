"""
The request/response pipeline shared by every Vipps API client.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

import requests

from .auth import Timeout, VippsAuth
from .errors import DecodeError, HTTPError, SerializationError, TransportError

__all__ = [
    "APIClient",
    "Timeout",
    "to_json_payload",
]

T = TypeVar("T")

_default_logger = logging.getLogger(__name__)


def to_json_payload(body: Any) -> Any:
    """Convert commands exposing ``to_dict()`` into plain JSON-compatible data."""
    if hasattr(body, "to_dict"):
        return body.to_dict()
    return body


class APIClient:
    """
    Builds JSON requests, sends them through an authenticating session and
    turns responses into decoded results or :class:`HTTPError`.

    The success range is 200-299 for every endpoint.
    """

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        *,
        logger: Optional[logging.Logger] = None,
        timeout: Timeout = 30.0,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.logger = logger or _default_logger
        self.timeout = timeout

    def url(self, *segments: str) -> str:
        parts = [self.base_url]
        parts.extend(segment.strip("/") for segment in segments if segment)
        return "/".join(parts)

    def new_request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[Mapping[str, str]] = None,
    ) -> requests.Request:
        data: Optional[bytes] = None
        if body is not None:
            try:
                data = json.dumps(to_json_payload(body)).encode("utf-8")
            except (TypeError, ValueError) as exc:
                raise SerializationError(
                    f"Failed to encode {type(body).__name__} as JSON: {exc}"
                ) from exc

        request_headers: Dict[str, str] = {"Content-Type": "application/json"}
        if headers:
            request_headers.update(headers)

        return requests.Request(
            method=method,
            url=endpoint,
            data=data,
            headers=request_headers,
            params=dict(params) if params else None,
        )

    def do(
        self,
        request: requests.Request,
        decode: Optional[Callable[[Any], T]] = None,
        *,
        timeout: Optional[Timeout] = None,
    ) -> Optional[T]:
        call_timeout = self.timeout if timeout is None else timeout
        started = time.monotonic()
        auth = self.session.auth
        if isinstance(auth, VippsAuth):
            # Refresh under this call's deadline before preparing the request.
            auth.token(timeout=call_timeout)
        try:
            prepared = self.session.prepare_request(request)
            settings = self.session.merge_environment_settings(
                prepared.url, {}, None, None, None
            )
            response = self.session.send(
                prepared,
                timeout=call_timeout,
                **settings,
            )
        except requests.RequestException as exc:
            raise TransportError(
                f"{request.method} {request.url} failed: {exc}"
            ) from exc

        elapsed = time.monotonic() - started
        self.logger.info(
            "[%d] %s %s %.3fs",
            response.status_code,
            prepared.method,
            prepared.url,
            elapsed,
        )

        body = response.content or b""
        if not 200 <= response.status_code <= 299:
            raise HTTPError(response.status_code, body)
        if decode is None:
            return None

        try:
            payload = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DecodeError(
                f"Failed to parse JSON from {prepared.url}: {exc}",
                body=body,
                status=response.status_code,
            ) from exc
        try:
            return decode(payload)
        except (TypeError, ValueError, AttributeError, KeyError) as exc:
            raise DecodeError(
                f"Unexpected response shape from {prepared.url}: {exc}",
                body=body,
                status=response.status_code,
            ) from exc
