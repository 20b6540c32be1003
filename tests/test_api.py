"""The unified client."""

import pytest
import requests

from vipps_payments import Client, create_client
from vipps_payments.core.config import ClientConfig, Credentials, Environment


@pytest.fixture
def http(adapter):
    session = requests.Session()
    session.trust_env = False
    session.mount("https://", adapter)
    return session


def _config(**kwargs):
    return ClientConfig(
        credentials=Credentials(client_id="cid", client_secret="csecret", subscription_key="sub-key"),
        **kwargs,
    )


def test_both_families_share_one_token(adapter, http):
    adapter.add("GET", "/ecomm/v2/payments/order-1/details", (200, {"orderId": "order-1"}))
    adapter.add("GET", "/recurring/v2/agreements", (200, []))

    with Client(_config(merchant_serial_number="123456"), session=http) as client:
        client.ecom.get_payment("order-1")
        client.recurring.list_agreements()

    assert len(adapter.calls("POST", "/accessToken/get")) == 1


def test_base_url_follows_environment(http):
    client = Client(_config(environment=Environment.PRODUCTION), session=http)
    assert client.api.url("x") == "https://api.vipps.no/x"
    assert client.session.auth.token_url == "https://api.vipps.no/accessToken/get"


def test_configured_timeout_is_used(adapter, http):
    adapter.add("GET", "/recurring/v2/agreements", (200, []))
    client = Client(_config(timeout_seconds=7.5), session=http)

    client.recurring.list_agreements()

    assert adapter.timeouts == [7.5, 7.5]


def test_create_client_from_keywords(http):
    client = create_client(
        env_file=None,
        base={},
        client_id="cid",
        client_secret="csecret",
        subscription_key="sub-key",
        merchant_serial_number="123456",
        session=http,
    )
    assert client.config.merchant_serial_number == "123456"
    assert client.ecom.merchant_serial_number == "123456"


def test_create_client_rejects_config_and_parameters():
    with pytest.raises(ValueError):
        create_client(config=_config(), client_id="other")
