"""OpenID Connect login flow."""

import time
from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import rsa

from vipps_payments.core.errors import TransportError
from vipps_payments.login import (
    ISSUER_URL_TESTING,
    SCOPE_EMAIL,
    SCOPE_NAME,
    LoginConfig,
    LoginError,
    LoginProvider,
)

from conftest import FakeAdapter

ISSUER_PATH = urlsplit(ISSUER_URL_TESTING).path
DISCOVERY_PATH = ISSUER_PATH.rstrip("/") + "/.well-known/openid-configuration"

METADATA = {
    "issuer": ISSUER_URL_TESTING,
    "authorization_endpoint": "https://apitest.vipps.no/access-management-1.0/access/oauth2/auth",
    "token_endpoint": "https://apitest.vipps.no/access-management-1.0/access/oauth2/token",
    "userinfo_endpoint": "https://apitest.vipps.no/vipps-userinfo-api/userinfo",
    "jwks_uri": "https://apitest.vipps.no/access-management-1.0/access/.well-known/jwks.json",
    "id_token_signing_alg_values_supported": ["RS256"],
}

CONFIG = LoginConfig(
    client_id="login-client",
    client_secret="login-secret",
    redirect_url="http://localhost:3000/redirect",
    scopes=[SCOPE_NAME, SCOPE_EMAIL],
)


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwks_client(signing_key):
    public_key = signing_key.public_key()
    return SimpleNamespace(get_signing_key_from_jwt=lambda token: SimpleNamespace(key=public_key))


@pytest.fixture
def login_adapter():
    fake = FakeAdapter()
    fake.add("GET", DISCOVERY_PATH, (200, METADATA))
    return fake


@pytest.fixture
def login_session(login_adapter):
    http = requests.Session()
    http.trust_env = False
    http.mount("https://", login_adapter)
    return http


def _id_token(key, **claims):
    now = int(time.time())
    payload = {
        "iss": ISSUER_URL_TESTING,
        "aud": CONFIG.client_id,
        "sub": "c06c4afe-d9e1-4c5d-939a-177d752a0944",
        "iat": now,
        "exp": now + 300,
    }
    payload.update(claims)
    return jwt.encode(payload, key, algorithm="RS256", headers={"kid": "key-1"})


def _provider(login_session, jwks_client):
    return LoginProvider.discover(CONFIG, session=login_session, jwks_client=jwks_client)


def test_discover_and_auth_code_url(login_session, jwks_client):
    provider = _provider(login_session, jwks_client)

    url = urlsplit(provider.auth_code_url("0xdeadbeef"))
    query = parse_qs(url.query)

    assert url.path == "/access-management-1.0/access/oauth2/auth"
    assert query["client_id"] == ["login-client"]
    assert query["redirect_uri"] == ["http://localhost:3000/redirect"]
    assert query["response_type"] == ["code"]
    assert query["scope"] == ["openid name email"]
    assert query["state"] == ["0xdeadbeef"]


def test_issuer_mismatch_is_rejected(login_adapter, login_session, jwks_client):
    login_adapter.routes[("GET", DISCOVERY_PATH)] = [
        (200, dict(METADATA, issuer="https://evil.example/"))
    ]
    with pytest.raises(LoginError):
        _provider(login_session, jwks_client)


def test_incomplete_discovery_document_is_rejected(login_adapter, login_session, jwks_client):
    metadata = dict(METADATA)
    del metadata["token_endpoint"]
    login_adapter.routes[("GET", DISCOVERY_PATH)] = [(200, metadata)]
    with pytest.raises(LoginError):
        _provider(login_session, jwks_client)


def test_unreachable_issuer(login_adapter, login_session, jwks_client):
    login_adapter.routes[("GET", DISCOVERY_PATH)] = [requests.ConnectionError("refused")]
    with pytest.raises(TransportError):
        _provider(login_session, jwks_client)


def test_exchange_code_for_claims(login_adapter, login_session, jwks_client, signing_key):
    login_adapter.add(
        "POST",
        "/access-management-1.0/access/oauth2/token",
        (200, {"access_token": "at-1", "id_token": _id_token(signing_key), "token_type": "bearer"}),
    )
    login_adapter.add(
        "GET",
        "/vipps-userinfo-api/userinfo",
        (
            200,
            {
                "sub": "c06c4afe-d9e1-4c5d-939a-177d752a0944",
                "name": "Ada Lovelace",
                "given_name": "Ada",
                "family_name": "Lovelace",
                "email": "ada@example.com",
                "phone_number": "4712345678",
                "address": [
                    {
                        "address_type": "home",
                        "country": "NO",
                        "postal_code": "0154",
                        "region": "Oslo",
                        "street_address": "Robert Levins gate 5",
                    }
                ],
            },
        ),
    )
    provider = _provider(login_session, jwks_client)

    claims = provider.exchange_code_for_claims("auth-code")

    assert claims.user_id == "c06c4afe-d9e1-4c5d-939a-177d752a0944"
    assert claims.name == "Ada Lovelace"
    assert claims.email == "ada@example.com"
    assert claims.address[0].postal_code == "0154"

    (token_request,) = login_adapter.calls("POST", "/access-management-1.0/access/oauth2/token")
    assert parse_qs(token_request.body) == {
        "grant_type": ["authorization_code"],
        "code": ["auth-code"],
        "redirect_uri": ["http://localhost:3000/redirect"],
    }
    assert token_request.headers["Authorization"].startswith("Basic ")
    (userinfo_request,) = login_adapter.calls("GET", "/vipps-userinfo-api/userinfo")
    assert userinfo_request.headers["Authorization"] == "Bearer at-1"


def test_missing_id_token(login_adapter, login_session, jwks_client):
    login_adapter.add(
        "POST",
        "/access-management-1.0/access/oauth2/token",
        (200, {"access_token": "at-1", "token_type": "bearer"}),
    )
    provider = _provider(login_session, jwks_client)

    with pytest.raises(LoginError, match="no id_token"):
        provider.exchange_code_for_claims("auth-code")


def test_id_token_for_another_audience(login_adapter, login_session, jwks_client, signing_key):
    login_adapter.add(
        "POST",
        "/access-management-1.0/access/oauth2/token",
        (200, {"access_token": "at-1", "id_token": _id_token(signing_key, aud="someone-else")}),
    )
    provider = _provider(login_session, jwks_client)

    with pytest.raises(LoginError, match="Invalid ID token"):
        provider.exchange_code_for_claims("auth-code")


def test_id_token_signed_with_another_key(login_adapter, login_session, jwks_client):
    other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    login_adapter.add(
        "POST",
        "/access-management-1.0/access/oauth2/token",
        (200, {"access_token": "at-1", "id_token": _id_token(other_key)}),
    )
    provider = _provider(login_session, jwks_client)

    with pytest.raises(LoginError):
        provider.exchange_code_for_claims("auth-code")


def test_userinfo_subject_must_match(login_adapter, login_session, jwks_client, signing_key):
    login_adapter.add(
        "POST",
        "/access-management-1.0/access/oauth2/token",
        (200, {"access_token": "at-1", "id_token": _id_token(signing_key)}),
    )
    login_adapter.add("GET", "/vipps-userinfo-api/userinfo", (200, {"sub": "somebody-else"}))
    provider = _provider(login_session, jwks_client)

    with pytest.raises(LoginError, match="subject"):
        provider.exchange_code_for_claims("auth-code")
