"""
Vipps Login: the OpenID Connect authorization code flow.

:class:`LoginProvider` discovers the issuer configuration, builds the URL the
user is sent to, and exchanges the returned authorization code for the user's
claims. ID tokens are verified with PyJWT against the issuer's published keys.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlencode

import jwt
import requests

from .core.errors import TransportError, VippsError

__all__ = [
    "Claims",
    "ClaimsAddress",
    "ISSUER_URL",
    "ISSUER_URL_TESTING",
    "LoginConfig",
    "LoginError",
    "LoginProvider",
    "SCOPE_ACCOUNT_NUMBERS",
    "SCOPE_ADDRESS",
    "SCOPE_BIRTH_DATE",
    "SCOPE_EMAIL",
    "SCOPE_NAME",
    "SCOPE_NNIN",
    "SCOPE_OPENID",
    "SCOPE_PHONE_NUMBER",
]

logger = logging.getLogger(__name__)

ISSUER_URL_TESTING = "https://apitest.vipps.no/access-management-1.0/access/"
ISSUER_URL = "https://api.vipps.no/access-management-1.0/access/"

SCOPE_OPENID = "openid"
# Home address is always present; work and other addresses may follow.
SCOPE_ADDRESS = "address"
SCOPE_BIRTH_DATE = "birthDate"
SCOPE_EMAIL = "email"
SCOPE_NAME = "name"
SCOPE_PHONE_NUMBER = "phoneNumber"
# Norwegian national identity number, verified with BankID.
SCOPE_NNIN = "nin"
SCOPE_ACCOUNT_NUMBERS = "accountNumbers"

_DISCOVERY_PATH = "/.well-known/openid-configuration"


class LoginError(VippsError):
    """The login flow failed: bad discovery document, token or ID token."""


@dataclass(frozen=True)
class LoginConfig:
    client_id: str
    client_secret: str
    redirect_url: str
    issuer_url: str = ISSUER_URL_TESTING
    scopes: Sequence[str] = ()


@dataclass
class ClaimsAddress:
    country: str = ""
    street_address: str = ""
    address_type: str = ""
    formatted: str = ""
    postal_code: str = ""
    region: str = ""

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "ClaimsAddress":
        return cls(
            country=payload.get("country") or "",
            street_address=payload.get("street_address") or "",
            address_type=payload.get("address_type") or "",
            formatted=payload.get("formatted") or "",
            postal_code=payload.get("postal_code") or "",
            region=payload.get("region") or "",
        )


@dataclass
class Claims:
    """The claims about the logged in user."""

    user_id: str
    name: str = ""
    given_name: str = ""
    family_name: str = ""
    email: str = ""
    phone_number: str = ""
    address: List[ClaimsAddress] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Claims":
        addresses = payload.get("address") or []
        if isinstance(addresses, dict):
            addresses = [addresses]
        return cls(
            user_id=payload.get("sub") or "",
            name=payload.get("name") or "",
            given_name=payload.get("given_name") or "",
            family_name=payload.get("family_name") or "",
            email=payload.get("email") or "",
            phone_number=payload.get("phone_number") or "",
            address=[ClaimsAddress.from_dict(item) for item in addresses if isinstance(item, dict)],
            raw=dict(payload),
        )


def _get_json(
    session: requests.Session,
    url: str,
    *,
    timeout: float,
    **kwargs: Any,
) -> Dict[str, Any]:
    try:
        response = session.get(url, timeout=timeout, **kwargs)
    except requests.RequestException as exc:
        raise TransportError(f"GET {url} failed: {exc}") from exc
    return _json_or_raise(response, url)


def _json_or_raise(response: requests.Response, url: str) -> Dict[str, Any]:
    if not 200 <= response.status_code <= 299:
        raise LoginError(f"{url} responded with {response.status_code}: {response.text}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise LoginError(f"Failed to parse JSON from {url}: {response.text}") from exc
    if not isinstance(payload, dict):
        raise LoginError(f"Unexpected response from {url}: {response.text}")
    return payload


class LoginProvider:
    """
    Wraps the OIDC endpoints published by the Vipps Login issuer.

    Use :meth:`discover` to construct one from a :class:`LoginConfig`.
    """

    def __init__(
        self,
        config: LoginConfig,
        metadata: Dict[str, Any],
        *,
        session: Optional[requests.Session] = None,
        jwks_client: Optional[Any] = None,
        timeout: float = 30.0,
    ) -> None:
        for key in ("issuer", "authorization_endpoint", "token_endpoint", "jwks_uri"):
            if not metadata.get(key):
                raise LoginError(f"OpenID configuration is missing '{key}'")
        self.config = config
        self.metadata = metadata
        self.session = session or requests.Session()
        self.timeout = timeout
        self._jwks_client = jwks_client or jwt.PyJWKClient(metadata["jwks_uri"])

    @classmethod
    def discover(
        cls,
        config: LoginConfig,
        *,
        session: Optional[requests.Session] = None,
        jwks_client: Optional[Any] = None,
        timeout: float = 30.0,
    ) -> "LoginProvider":
        http = session or requests.Session()
        issuer = config.issuer_url or ISSUER_URL_TESTING
        url = issuer.rstrip("/") + _DISCOVERY_PATH
        metadata = _get_json(http, url, timeout=timeout)
        if metadata.get("issuer") != issuer:
            raise LoginError(
                f"Issuer mismatch: expected {issuer!r}, got {metadata.get('issuer')!r}"
            )
        return cls(config, metadata, session=http, jwks_client=jwks_client, timeout=timeout)

    @property
    def scopes(self) -> List[str]:
        scopes = [SCOPE_OPENID]
        scopes.extend(scope for scope in self.config.scopes if scope != SCOPE_OPENID)
        return scopes

    def auth_code_url(self, state: str) -> str:
        """Return the URL of the consent page asking for the configured scopes."""
        query = urlencode(
            {
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_url,
                "response_type": "code",
                "scope": " ".join(self.scopes),
                "state": state,
            }
        )
        endpoint = self.metadata["authorization_endpoint"]
        separator = "&" if "?" in endpoint else "?"
        return f"{endpoint}{separator}{query}"

    def exchange_code_for_claims(self, code: str) -> Claims:
        """
        Exchange an authorization code for a token and return the user's claims.

        The ID token is verified (signature, audience, issuer and expiry) and
        its claims are merged with those from the userinfo endpoint, when the
        issuer publishes one.
        """
        token = self._exchange(code)

        raw_id_token = token.get("id_token")
        if not isinstance(raw_id_token, str) or not raw_id_token:
            raise LoginError("oauth2: no id_token in response")
        id_claims = self._verify(raw_id_token)

        merged = dict(id_claims)
        userinfo_endpoint = self.metadata.get("userinfo_endpoint")
        access_token = token.get("access_token")
        if userinfo_endpoint and access_token:
            userinfo = _get_json(
                self.session,
                userinfo_endpoint,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {access_token}"},
            )
            if userinfo.get("sub") and userinfo["sub"] != id_claims.get("sub"):
                raise LoginError("userinfo subject does not match the ID token subject")
            merged.update(userinfo)

        return Claims.from_dict(merged)

    def _exchange(self, code: str) -> Dict[str, Any]:
        url = self.metadata["token_endpoint"]
        logger.debug("Exchanging authorization code at %s", url)
        try:
            response = self.session.post(
                url,
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.redirect_url,
                },
                auth=(self.config.client_id, self.config.client_secret),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc
        return _json_or_raise(response, url)

    def _verify(self, raw_id_token: str) -> Dict[str, Any]:
        algorithms = self.metadata.get("id_token_signing_alg_values_supported") or ["RS256"]
        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(raw_id_token)
            return jwt.decode(
                raw_id_token,
                signing_key.key,
                algorithms=list(algorithms),
                audience=self.config.client_id,
                issuer=self.metadata["issuer"],
            )
        except jwt.PyJWTError as exc:
            raise LoginError(f"Invalid ID token: {exc}") from exc
