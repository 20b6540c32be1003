"""Error classification: business rejections versus unexpected responses."""

import json

import pytest

from vipps_payments.core.errors import (
    APIFamily,
    DecodeError,
    EcomAPIError,
    EcomError,
    HTTPError,
    RecurringAPIError,
    RecurringError,
    TransportError,
    UnexpectedResponseError,
    classify_error,
)

ECOM_BODY = json.dumps(
    [{"errorGroup": "Payment", "errorMessage": "Insufficient funds", "errorCode": "61"}]
).encode()

RECURRING_BODY = json.dumps(
    [
        {"field": "price", "message": "must be positive", "code": "invalid.price", "contextId": "c1"},
        {"field": "interval", "message": "unknown interval", "code": "invalid.interval", "contextId": "c1"},
    ]
).encode()


def test_ecom_error_list_becomes_business_error():
    err = classify_error(HTTPError(402, ECOM_BODY), APIFamily.ECOM)
    assert isinstance(err, EcomError)
    assert err.status == 402
    assert len(err) == 1
    assert list(err) == [EcomAPIError(group="Payment", message="Insufficient funds", code="61")]


def test_recurring_error_list_keeps_every_entry():
    err = classify_error(HTTPError(400, RECURRING_BODY), APIFamily.RECURRING)
    assert isinstance(err, RecurringError)
    assert len(err) == 2
    assert [e.field for e in err] == ["price", "interval"]
    assert err.errors[0] == RecurringAPIError(
        field="price", code="invalid.price", message="must be positive", context_id="c1"
    )


@pytest.mark.parametrize(
    "body",
    [
        b"<html>Bad gateway</html>",
        b"",
        b'{"error": "nope"}',
        b'["not", "objects"]',
        b"\xff\xfe",
    ],
)
def test_non_list_bodies_become_unexpected_response(body):
    err = classify_error(HTTPError(502, body), APIFamily.ECOM)
    assert isinstance(err, UnexpectedResponseError)
    assert err.status == 502
    assert err.body == body


@pytest.mark.parametrize(
    "family, error_cls",
    [(APIFamily.ECOM, EcomError), (APIFamily.RECURRING, RecurringError)],
)
def test_empty_error_list_is_a_business_error(family, error_cls):
    err = classify_error(HTTPError(400, b"[]"), family)
    assert isinstance(err, error_cls)
    assert len(err) == 0
    assert str(err) == "vipps:"
    assert err.body == b"[]"


def test_unexpected_response_renders_body_and_status():
    err = classify_error(HTTPError(500, b"upstream exploded"), APIFamily.RECURRING)
    assert str(err) == "unexpected response from Vipps, body: upstream exploded, status: 500"


def test_business_error_keeps_raw_bytes():
    err = classify_error(HTTPError(402, ECOM_BODY), APIFamily.ECOM)
    assert err.body == ECOM_BODY


def test_single_ecom_entry_rendering():
    err = classify_error(HTTPError(402, ECOM_BODY), APIFamily.ECOM)
    assert str(err) == "vipps: [Payment] Insufficient funds (code 61)"


def test_multiple_entries_are_prefixed():
    err = classify_error(HTTPError(400, RECURRING_BODY), APIFamily.RECURRING)
    rendered = str(err)
    assert rendered.startswith("vipps: multiple errors:")
    assert "field price: must be positive (code invalid.price)" in rendered
    assert "field interval: unknown interval (code invalid.interval)" in rendered


def test_classification_is_family_specific():
    err = classify_error(HTTPError(400, ECOM_BODY), APIFamily.RECURRING)
    assert isinstance(err, RecurringError)
    assert err.errors[0].code == ""


@pytest.mark.parametrize(
    "error",
    [
        TransportError("connection refused"),
        DecodeError("bad json", body=b"{", status=200),
        UnexpectedResponseError(500, b"x"),
    ],
)
def test_other_errors_pass_through_unchanged(error):
    assert classify_error(error, APIFamily.ECOM) is error


def test_classification_is_deterministic():
    first = classify_error(HTTPError(402, ECOM_BODY), APIFamily.ECOM)
    second = classify_error(HTTPError(402, ECOM_BODY), APIFamily.ECOM)
    assert type(first) is type(second)
    assert first.errors == second.errors
    assert str(first) == str(second)
