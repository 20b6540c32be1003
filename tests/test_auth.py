"""Token acquisition and request authentication."""

import threading

import pytest
import requests

from vipps_payments.core.auth import AccessToken, VippsAuth, create_session
from vipps_payments.core.config import BASE_URL_TESTING
from vipps_payments.core.errors import HTTPError, TokenError, TransportError

TOKEN_PATH = "/accessToken/get"
AGREEMENTS_PATH = "/recurring/v2/agreements"


def _get(api_client, path=AGREEMENTS_PATH):
    request = api_client.new_request("GET", api_client.url(path))
    return api_client.do(request, lambda payload: payload)


def test_token_request_carries_client_credentials(adapter, api_client):
    adapter.add("GET", AGREEMENTS_PATH, (200, []))
    _get(api_client)

    (token_request,) = adapter.calls("POST", TOKEN_PATH)
    assert token_request.headers["client_id"] == "cid"
    assert token_request.headers["client_secret"] == "csecret"
    assert token_request.headers["Ocp-Apim-Subscription-Key"] == "sub-key"
    assert "Authorization" not in token_request.headers
    assert token_request.body == "grant_type=client_credentials"


def test_api_request_carries_bearer_token_and_subscription_key(adapter, api_client):
    adapter.add("GET", AGREEMENTS_PATH, (200, []))
    _get(api_client)

    (api_request,) = adapter.calls("GET", AGREEMENTS_PATH)
    assert api_request.headers["Authorization"] == "Bearer tok-1"
    assert api_request.headers["Ocp-Apim-Subscription-Key"] == "sub-key"
    assert "client_secret" not in api_request.headers
    assert "client_id" not in api_request.headers


def test_token_is_reused_across_calls(adapter, api_client):
    adapter.add("GET", AGREEMENTS_PATH, (200, []))
    _get(api_client)
    _get(api_client)

    assert len(adapter.calls("POST", TOKEN_PATH)) == 1
    assert len(adapter.calls("GET", AGREEMENTS_PATH)) == 2


def test_token_is_refreshed_near_expiry(adapter, api_client, clock):
    adapter.routes[("POST", TOKEN_PATH)] = [
        (200, {"token_type": "Bearer", "expires_in": "60", "access_token": "tok-1"}),
        (200, {"token_type": "Bearer", "expires_in": "60", "access_token": "tok-2"}),
    ]
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    _get(api_client)
    clock.advance(49)
    _get(api_client)
    assert len(adapter.calls("POST", TOKEN_PATH)) == 1

    clock.advance(1)
    _get(api_client)
    assert len(adapter.calls("POST", TOKEN_PATH)) == 2
    assert adapter.calls("GET", AGREEMENTS_PATH)[-1].headers["Authorization"] == "Bearer tok-2"


def test_failed_token_request_raises_token_error(adapter, api_client):
    adapter.routes[("POST", TOKEN_PATH)] = [(401, {"error": "invalid_client"})]
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    with pytest.raises(TokenError) as excinfo:
        _get(api_client)

    assert isinstance(excinfo.value, TransportError)
    assert adapter.calls("GET", AGREEMENTS_PATH) == []


def test_malformed_token_response_raises_token_error(adapter, api_client):
    adapter.routes[("POST", TOKEN_PATH)] = [(200, b"not json")]
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    with pytest.raises(TokenError):
        _get(api_client)


def test_token_response_without_access_token(adapter, api_client):
    adapter.routes[("POST", TOKEN_PATH)] = [(200, {"token_type": "Bearer"})]
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    with pytest.raises(TokenError):
        _get(api_client)


def test_unreachable_token_endpoint_raises_token_error(adapter, api_client):
    adapter.routes[("POST", TOKEN_PATH)] = [requests.ConnectionError("refused")]
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    with pytest.raises(TokenError):
        _get(api_client)


def test_rejected_token_is_dropped(adapter, api_client):
    adapter.routes[("POST", TOKEN_PATH)] = [
        (200, {"access_token": "tok-1", "expires_in": "3600"}),
        (200, {"access_token": "tok-2", "expires_in": "3600"}),
    ]
    adapter.add("GET", AGREEMENTS_PATH, (401, b"token revoked"), (200, []))

    with pytest.raises(HTTPError):
        _get(api_client)
    _get(api_client)

    assert len(adapter.calls("POST", TOKEN_PATH)) == 2
    assert adapter.calls("GET", AGREEMENTS_PATH)[-1].headers["Authorization"] == "Bearer tok-2"


def test_concurrent_callers_share_one_token_fetch(adapter, session):
    auth = session.auth
    tokens = []

    def worker():
        tokens.append(auth.token())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(adapter.calls("POST", TOKEN_PATH)) == 1
    assert {t.value for t in tokens} == {"tok-1"}


def test_invalidate_forces_a_new_fetch(adapter, session):
    auth = session.auth
    auth.token()
    auth.invalidate()
    auth.token()
    assert len(adapter.calls("POST", TOKEN_PATH)) == 2


def test_access_token_expiry():
    token = AccessToken.from_response({"access_token": "t", "expires_in": "100"}, now=0.0)
    assert token.expires_at == 100.0
    assert not token.is_expired(89.0, margin=10.0)
    assert token.is_expired(90.0, margin=10.0)


def test_access_token_without_expiry_never_expires():
    token = AccessToken.from_response({"access_token": "t"}, now=0.0)
    assert token.expires_at is None
    assert not token.is_expired(1e12, margin=10.0)


def test_create_session_uses_environment_token_url(credentials):
    session = create_session(credentials, "production")
    assert isinstance(session.auth, VippsAuth)
    assert session.auth.token_url == "https://api.vipps.no/accessToken/get"


def test_create_session_honours_base_url(credentials):
    session = create_session(credentials, base_url=BASE_URL_TESTING + "/")
    assert session.auth.token_url == "https://apitest.vipps.no/accessToken/get"


def test_token_fetch_uses_the_call_deadline(adapter, api_client):
    adapter.add("GET", AGREEMENTS_PATH, (200, []))

    api_client.do(
        api_client.new_request("GET", api_client.url(AGREEMENTS_PATH)),
        list,
        timeout=(1.0, 2.0),
    )

    assert adapter.timeouts == [(1.0, 2.0), (1.0, 2.0)]


def test_token_fetch_defaults_to_transport_timeout(adapter, session):
    session.auth.token()
    assert adapter.timeouts == [30.0]


def test_waiting_for_a_refresh_respects_the_deadline(adapter, session):
    auth = session.auth
    auth._lock.acquire()
    try:
        with pytest.raises(TokenError, match="Timed out"):
            auth.token(timeout=0.05)
    finally:
        auth._lock.release()

    assert adapter.calls("POST", TOKEN_PATH) == []
