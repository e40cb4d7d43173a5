"""PhonePe client: request signing, error mapping and callback verification."""
import base64
import hashlib
import json
from decimal import Decimal

import pytest
import requests

from apps.payments import gateway as gateway_module
from apps.payments.gateway import PaymentGateway, from_paise, to_paise
from core.exceptions import ExternalServiceError, SignatureError, ValidationError


class FakeResponse:
    def __init__(self, data, status_code=200):
        self.data = data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.data


REDIRECT = {
    "success": True,
    "code": "PAYMENT_INITIATED",
    "data": {"instrumentResponse": {"redirectInfo": {"url": "https://mercury.test/pay/abc"}}},
}


@pytest.fixture
def captured_post(monkeypatch):
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse(REDIRECT)

    monkeypatch.setattr(gateway_module.requests, "post", fake_post)
    return calls


def test_paise_conversion():
    assert to_paise(Decimal("2000.00")) == 200000
    assert to_paise(Decimal("10.505")) == 1051
    assert from_paise(200050) == Decimal("2000.50")


def test_checksum_is_sha256_of_payload_and_secret():
    expected = hashlib.sha256(b"payloadtest-secret").hexdigest()
    assert PaymentGateway().generate_checksum("payload") == expected


def test_create_payment_request_signs_payload(captured_post):
    result = PaymentGateway().create_payment_request(
        amount=Decimal("2000.00"),
        order_id="ORDER_7_1760700000000",
        payer_contact="+919812345678",
        payer_name="Asha Client",
        description="Payment for job: Move furniture",
    )

    assert result == {"payment_url": "https://mercury.test/pay/abc", "order_id": "ORDER_7_1760700000000"}

    call = captured_post[0]
    assert call["url"] == "https://gateway.test/pg/v1/pay"
    encoded = call["json"]["request"]
    payload = json.loads(base64.b64decode(encoded))
    assert payload["amount"] == 200000
    assert payload["merchantId"] == "TEST_MERCHANT"
    assert payload["merchantTransactionId"] == "ORDER_7_1760700000000"

    checksum, salt_index = call["headers"]["X-VERIFY"].split("###")
    assert salt_index == "1"
    assert checksum == hashlib.sha256(f"{encoded}/pg/v1/paytest-secret".encode()).hexdigest()


def test_network_error_becomes_external_service_error(monkeypatch):
    def broken_post(*args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(gateway_module.requests, "post", broken_post)

    with pytest.raises(ExternalServiceError) as exc:
        PaymentGateway().create_payment_request(Decimal("100"), "ORDER_1_1", "+919812345678")
    assert exc.value.extra["order_id"] == "ORDER_1_1"


def test_unsuccessful_response_becomes_external_service_error(monkeypatch):
    monkeypatch.setattr(
        gateway_module.requests, "post",
        lambda *args, **kwargs: FakeResponse({"success": False, "message": "Bad merchant"}),
    )

    with pytest.raises(ExternalServiceError):
        PaymentGateway().create_payment_request(Decimal("100"), "ORDER_1_1", "+919812345678")


def test_http_error_becomes_external_service_error(monkeypatch):
    monkeypatch.setattr(
        gateway_module.requests, "post",
        lambda *args, **kwargs: FakeResponse({}, status_code=500),
    )

    with pytest.raises(ExternalServiceError):
        PaymentGateway().create_payment_request(Decimal("100"), "ORDER_1_1", "+919812345678")


def test_verify_payment_returns_gateway_body(monkeypatch):
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen["url"] = url
        seen["headers"] = headers
        return FakeResponse({"success": True, "code": "PAYMENT_SUCCESS"})

    monkeypatch.setattr(gateway_module.requests, "get", fake_get)

    assert PaymentGateway().verify_payment("ORDER_1_1")["code"] == "PAYMENT_SUCCESS"
    assert seen["url"] == "https://gateway.test/pg/v1/status/TEST_MERCHANT/ORDER_1_1"
    assert seen["headers"]["Authorization"].startswith("Basic ")


def test_process_callback_translates_payload():
    gateway = PaymentGateway()
    payload = {
        "merchantTransactionId": "T1",
        "merchantOrderId": "ORDER_9_1",
        "amount": 150050,
        "code": "PAYMENT_SUCCESS",
        "paymentInstrument": {"type": "UPI"},
        "merchantUserId": "+919812345678",
    }
    payload["checksum"] = gateway.sign_callback(payload)

    data = gateway.process_callback(payload)

    assert data["transaction_id"] == "T1"
    assert data["order_id"] == "ORDER_9_1"
    assert data["amount"] == Decimal("1500.50")
    assert data["status"] == "success"
    assert data["payment_method"] == "UPI"
    assert data["payer_contact"] == "+919812345678"


def test_checksum_ignores_key_order():
    gateway = PaymentGateway()
    payload = {"merchantOrderId": "ORDER_9_1", "merchantTransactionId": "T9", "amount": 100, "code": "PAYMENT_ERROR"}
    reordered = {"code": "PAYMENT_ERROR", "amount": 100, "merchantTransactionId": "T9", "merchantOrderId": "ORDER_9_1"}

    assert gateway.sign_callback(payload) == gateway.sign_callback(reordered)
    reordered["checksum"] = gateway.sign_callback(payload)
    assert gateway.process_callback(reordered)["status"] == "failed"


@pytest.mark.parametrize("checksum", [None, "", "0" * 64])
def test_process_callback_rejects_bad_checksum(checksum):
    payload = {"merchantOrderId": "ORDER_9_1", "amount": 100, "code": "PAYMENT_SUCCESS"}
    if checksum is not None:
        payload["checksum"] = checksum

    with pytest.raises(SignatureError):
        PaymentGateway().process_callback(payload)


@pytest.mark.parametrize("missing", ["merchantOrderId", "merchantTransactionId"])
def test_process_callback_requires_order_and_transaction_ids(missing):
    gateway = PaymentGateway()
    payload = {"merchantOrderId": "ORDER_9_1", "merchantTransactionId": "T9", "amount": 100, "code": "PAYMENT_SUCCESS"}
    del payload[missing]
    payload["checksum"] = gateway.sign_callback(payload)

    with pytest.raises(ValidationError):
        gateway.process_callback(payload)
