"""Shared fixtures: an in-memory transport mounted on a real requests session."""

import json
from typing import Any, Callable, Dict, List, Tuple, Union
from urllib.parse import urlsplit

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from vipps_payments.core.auth import create_session
from vipps_payments.core.config import BASE_URL_TESTING, Credentials
from vipps_payments.core.http import APIClient

TOKEN_RESPONSE = {
    "token_type": "Bearer",
    "expires_in": "86398",
    "ext_expires_in": "0",
    "access_token": "tok-1",
}

Reply = Union[Tuple[int, Any], Exception, Callable[[requests.PreparedRequest], Tuple[int, Any]]]


class FakeAdapter(BaseAdapter):
    """
    Answers requests from canned replies keyed by ``(method, path)``.

    Replies are consumed in order; the last one keeps answering. A reply body
    that is ``bytes`` is sent as-is, anything else is JSON encoded.
    """

    def __init__(self) -> None:
        super().__init__()
        self.routes: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[requests.PreparedRequest] = []
        self.timeouts: List[Any] = []

    def add(self, method: str, path: str, *replies: Reply) -> None:
        self.routes.setdefault((method.upper(), path), []).extend(replies)

    def calls(self, method: str, path: str) -> List[requests.PreparedRequest]:
        return [
            r for r in self.requests
            if r.method == method.upper() and urlsplit(r.url).path == path
        ]

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.timeouts.append(timeout)
        key = (request.method, urlsplit(request.url).path)
        queue = self.routes.get(key)
        if not queue:
            raise AssertionError(f"unexpected request: {key}")
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(request)
        status, body = reply

        response = requests.Response()
        response.status_code = status
        response._content = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
        response.headers = CaseInsensitiveDict({"Content-Type": "application/json"})
        response.url = request.url
        response.request = request
        response.encoding = "utf-8"
        return response

    def close(self) -> None:
        pass


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def credentials():
    return Credentials(client_id="cid", client_secret="csecret", subscription_key="sub-key")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adapter():
    fake = FakeAdapter()
    fake.add("POST", "/accessToken/get", (200, TOKEN_RESPONSE))
    return fake


@pytest.fixture
def session(adapter, credentials, clock):
    http = requests.Session()
    http.trust_env = False
    http.mount("https://", adapter)
    return create_session(credentials, "testing", session=http, clock=clock)


@pytest.fixture
def api_client(session):
    return APIClient(session, BASE_URL_TESTING)
