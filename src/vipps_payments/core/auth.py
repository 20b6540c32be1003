"""
Authentication for outbound Vipps API requests.

Vipps requires every request to carry the API subscription key, the access
token request to carry the merchant's client id and secret, and every other
request to carry a bearer token obtained from that token request.
:class:`VippsAuth` implements all three as a ``requests`` authentication
handler, so it applies to every request prepared by the session it is attached
to, whichever endpoint issued the call.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union
from urllib.parse import urlsplit

import requests
from requests.auth import AuthBase

from .config import Credentials, Environment
from .errors import TokenError

__all__ = [
    "AccessToken",
    "SUBSCRIPTION_KEY_HEADER",
    "TOKEN_ENDPOINT",
    "VippsAuth",
    "create_session",
]

TOKEN_ENDPOINT = "/accessToken/get"
SUBSCRIPTION_KEY_HEADER = "Ocp-Apim-Subscription-Key"

logger = logging.getLogger(__name__)

Timeout = Union[float, Tuple[float, float]]


def _lock_wait(timeout: Optional[Timeout]) -> float:
    # Lock.acquire takes -1 for "no limit"; a (connect, read) pair bounds the total.
    if timeout is None:
        return -1
    if isinstance(timeout, tuple):
        return float(sum(timeout))
    return float(timeout)


def _parse_expires_in(raw: Any) -> Optional[float]:
    # Vipps sends expires_in as a string, e.g. "86398".
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError) as exc:
        raise TokenError(f"Invalid expires_in in token response: {raw!r}") from exc


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and the clock reading at which it stops being valid."""

    value: str
    token_type: str = "Bearer"
    expires_at: Optional[float] = None

    def is_expired(self, now: float, margin: float = 0.0) -> bool:
        if self.expires_at is None:
            return False
        return now >= self.expires_at - margin

    @classmethod
    def from_response(cls, payload: Dict[str, Any], *, now: float) -> "AccessToken":
        value = payload.get("access_token")
        if not value or not isinstance(value, str):
            raise TokenError("Token response did not contain an access_token")
        expires_in = _parse_expires_in(payload.get("expires_in"))
        return cls(
            value=value,
            token_type=payload.get("token_type") or "Bearer",
            expires_at=None if expires_in is None else now + expires_in,
        )


class VippsAuth(AuthBase):
    """
    Attach Vipps authentication material to every prepared request.

    Tokens are fetched lazily with the client credentials grant, cached in
    memory and refreshed once they are within ``expiry_margin`` seconds of
    expiring. Refreshes are serialized: concurrent callers wait for the
    in-flight refresh and then reuse its token.
    """

    def __init__(
        self,
        credentials: Credentials,
        token_url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        expiry_margin: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.credentials = credentials
        self.token_url = token_url
        self.timeout = timeout
        self.expiry_margin = expiry_margin
        self._session = session or requests.Session()
        self._clock = clock
        self._token_path = urlsplit(token_url).path
        self._token: Optional[AccessToken] = None
        self._lock = threading.Lock()

    def __call__(self, request: requests.PreparedRequest) -> requests.PreparedRequest:
        request.headers[SUBSCRIPTION_KEY_HEADER] = self.credentials.subscription_key
        if self._is_token_request(request):
            request.headers["client_id"] = self.credentials.client_id
            request.headers["client_secret"] = self.credentials.client_secret
            return request

        token = self.token()
        request.headers["Authorization"] = f"{token.token_type} {token.value}"
        request.register_hook("response", self._drop_rejected_token(token))
        return request

    def _is_token_request(self, request: requests.PreparedRequest) -> bool:
        return urlsplit(request.url or "").path == self._token_path

    def token(self, timeout: Optional[Timeout] = None) -> AccessToken:
        """
        Return a valid token, fetching a new one if needed.

        ``timeout`` bounds both the wait for a refresh already in flight and the
        token request itself; the transport default applies when omitted.
        """
        token = self._token
        if token is not None and not token.is_expired(self._clock(), self.expiry_margin):
            return token

        if not self._lock.acquire(timeout=_lock_wait(timeout)):
            raise TokenError("Timed out waiting for an access token refresh")
        try:
            token = self._token
            if token is None or token.is_expired(self._clock(), self.expiry_margin):
                token = self._fetch_token(timeout)
                self._token = token
            return token
        finally:
            self._lock.release()

    def invalidate(self) -> None:
        """Forget the cached token; the next request fetches a new one."""
        with self._lock:
            self._token = None

    def _drop_rejected_token(self, token: AccessToken):
        def hook(response: requests.Response, *args: Any, **kwargs: Any) -> requests.Response:
            if response.status_code == 401:
                with self._lock:
                    if self._token is token:
                        self._token = None
            return response

        return hook

    def _fetch_token(self, timeout: Optional[Timeout] = None) -> AccessToken:
        logger.debug("Fetching access token from %s", self.token_url)
        started = self._clock()
        try:
            response = self._session.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=self,
                timeout=self.timeout if timeout is None else timeout,
            )
        except requests.RequestException as exc:
            raise TokenError(f"Access token request failed: {exc}") from exc

        if not 200 <= response.status_code <= 299:
            raise TokenError(
                f"Access token request responded with {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenError(
                f"Failed to parse access token response: {response.text}"
            ) from exc
        if not isinstance(payload, dict):
            raise TokenError(f"Unexpected access token response: {response.text}")

        return AccessToken.from_response(payload, now=started)


def create_session(
    credentials: Credentials,
    environment: Environment | str = Environment.TESTING,
    *,
    session: Optional[requests.Session] = None,
    base_url: Optional[str] = None,
    timeout: float = 30.0,
    clock: Callable[[], float] = time.monotonic,
) -> requests.Session:
    """
    Return a :class:`requests.Session` that authenticates every request to Vipps.

    An existing ``session`` (for example one with custom adapters mounted) is
    configured in place.
    """
    root = (base_url or Environment.parse(environment).base_url).rstrip("/")
    http = session or requests.Session()
    http.auth = VippsAuth(
        credentials,
        root + TOKEN_ENDPOINT,
        session=http,
        timeout=timeout,
        clock=clock,
    )
    return http
