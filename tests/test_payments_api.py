import base64

import httpx
import pytest
from fastapi.testclient import TestClient

from mpesa_checkout.api.endpoints.callbacks import get_callback_service
from mpesa_checkout.api.endpoints.payments import get_mpesa_config, get_payment_client
from mpesa_checkout.api.main import app
from mpesa_checkout.client.payment_state import PaymentState
from mpesa_checkout.client.payments_api import PaymentsApiClient
from mpesa_checkout.integrations.clients.mocks.mpesa import MpesaMockClient
from mpesa_checkout.integrations.contracts.interfaces import (
    Package,
    PaymentStatus,
    PushPaymentFailure,
    PushPaymentSuccess,
)
from mpesa_checkout.integrations.policy.callback_service import CallbackService


class DummyGateway:
    def __init__(self, result=None, exc=None):
        self.result = result
        self.exc = exc
        self.calls = []

    async def initiate(self, phone, amount, package_name):
        self.calls.append((phone, amount, package_name))
        if self.exc is not None:
            raise self.exc
        return self.result

    async def query_status(self, checkout_request_id):
        self.calls.append(checkout_request_id)
        return self.result


@pytest.fixture
def gateway():
    return DummyGateway(PushPaymentSuccess(provider_payload={"CheckoutRequestID": "ws_CO_1"}))


@pytest.fixture
def client(gateway, mpesa_config):
    app.dependency_overrides[get_payment_client] = lambda: gateway
    app.dependency_overrides[get_mpesa_config] = lambda: mpesa_config
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_stk_push_success(client, gateway):
    response = client.post("/api/payments/stk-push", json={"phone": "0712345678", "amount": 500, "package": "10GB"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "data": {"CheckoutRequestID": "ws_CO_1"},
        "message": "STK Push initiated successfully",
    }
    assert gateway.calls == [("0712345678", 500, "10GB")]


@pytest.mark.parametrize(
    "body",
    [
        {"amount": 500, "package": "10GB"},
        {"phone": "0712345678", "package": "10GB"},
        {"phone": "0712345678", "amount": 500},
        {"phone": "", "amount": 500, "package": "10GB"},
    ],
)
def test_stk_push_missing_fields(client, gateway, body):
    response = client.post("/api/payments/stk-push", json=body)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing required fields: phone, amount, package"}
    assert gateway.calls == []


def test_stk_push_negative_amount(client, gateway):
    response = client.post("/api/payments/stk-push", json={"phone": "0712345678", "amount": -5, "package": "10GB"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid amount"}


def test_stk_push_unparseable_amount(client):
    response = client.post("/api/payments/stk-push", json={"phone": "0712345678", "amount": "lots", "package": "10GB"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_stk_push_gateway_failure_hides_provider_details(client, gateway):
    gateway.result = PushPaymentFailure(
        message="Invalid phone number format",
        provider_details={"errorCode": "400.002.02", "errorMessage": "Bad Request - Invalid PhoneNumber"},
    )

    response = client.post("/api/payments/stk-push", json={"phone": "12", "amount": 500, "package": "10GB"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid phone number format"}


def test_stk_push_unexpected_error_is_500(client, gateway):
    gateway.exc = RuntimeError("boom")

    response = client.post("/api/payments/stk-push", json={"phone": "0712345678", "amount": 500, "package": "10GB"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Internal server error"}


def test_debug_timestamp(client):
    body = client.get("/api/payments/debug-timestamp").json()

    assert body["timestampLength"] == 14
    assert body["timestamp"].isdigit()
    assert base64.b64decode(body["password"]).decode() == f"174379passkey{body['timestamp']}"
    assert body["passwordLength"] == len(body["password"])
    assert body["expectedFormat"] == "YYYYMMDDHHmmss (14 characters)"


def test_status_endpoint(client, gateway):
    response = client.get("/api/payments/status/ws_CO_1")

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"CheckoutRequestID": "ws_CO_1"}}
    assert gateway.calls == ["ws_CO_1"]


def test_health(client):
    body = client.get("/health").json()

    assert body["status"] == "OK"


# --- Callbacks ---------------------------------------------------------------


@pytest.fixture
def callback_client():
    outcomes = []
    app.dependency_overrides[get_callback_service] = lambda: CallbackService(on_outcome=outcomes.append)
    yield TestClient(app), outcomes
    app.dependency_overrides.clear()


def test_callback_success_acknowledged(callback_client):
    client, outcomes = callback_client
    payload = {
        "Body": {
            "stkCallback": {
                "MerchantRequestID": "29115-34620561-1",
                "CheckoutRequestID": "ws_CO_1",
                "ResultCode": 0,
                "ResultDesc": "The service request is processed successfully.",
                "CallbackMetadata": {
                    "Item": [
                        {"Name": "Amount", "Value": 100},
                        {"Name": "MpesaReceiptNumber", "Value": "ABC123"},
                    ]
                },
            }
        }
    }

    response = client.post("/api/callbacks/mpesa", json=payload)

    assert response.status_code == 200
    assert response.json() == {"ResultCode": 0, "ResultDesc": "Success"}
    assert outcomes[0].extracted_fields == {"Amount": 100, "MpesaReceiptNumber": "ABC123"}


def test_callback_missing_container(callback_client):
    client, outcomes = callback_client

    response = client.post("/api/callbacks/mpesa", json={"Body": {}})

    assert response.json() == {"ResultCode": 1, "ResultDesc": "Invalid callback data"}
    assert outcomes == []


def test_callback_invalid_json(callback_client):
    client, _ = callback_client

    response = client.post("/api/callbacks/mpesa", content=b"not json", headers={"Content-Type": "application/json"})

    assert response.json() == {"ResultCode": 1, "ResultDesc": "Invalid callback data"}


def test_callback_handler_crash_is_500():
    def explode(outcome):
        raise RuntimeError("entitlement service down")

    app.dependency_overrides[get_callback_service] = lambda: CallbackService(on_outcome=explode)
    try:
        response = TestClient(app).post(
            "/api/callbacks/mpesa",
            json={"Body": {"stkCallback": {"CheckoutRequestID": "ws_CO_1", "ResultCode": 1032, "ResultDesc": "Cancelled"}}},
        )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"ResultCode": 1, "ResultDesc": "Callback processing failed"}


# --- Front-end boundary ------------------------------------------------------


@pytest.mark.asyncio
async def test_payment_state_through_http_api(mpesa_config):
    app.dependency_overrides[get_payment_client] = lambda: MpesaMockClient(payment_success_rate=1.0)
    try:
        boundary = PaymentsApiClient("http://testserver", transport=httpx.ASGITransport(app=app))
        state = PaymentState(boundary)

        state.select_package(Package(name="10GB", amount=500))
        await state.process_payment("0712345678")
    finally:
        app.dependency_overrides.clear()

    assert state.state.status is PaymentStatus.SUCCESS
    assert state.state.transaction_data["CheckoutRequestID"].startswith("ws_CO_")


@pytest.mark.asyncio
async def test_payments_api_client_maps_error_payload():
    def reject(request):
        return httpx.Response(400, json={"success": False, "error": "Invalid amount"})

    boundary = PaymentsApiClient("http://testserver", transport=httpx.MockTransport(reject))

    result = await boundary.initiate("0712345678", 500, "10GB")

    assert result.success is False
    assert result.message == "Invalid amount"


@pytest.mark.asyncio
async def test_network_failure_surfaces_as_network_error():
    def offline(request):
        raise httpx.ConnectError("offline", request=request)

    state = PaymentState(PaymentsApiClient("http://testserver", transport=httpx.MockTransport(offline)))
    state.select_package(Package(name="10GB", amount=500))

    await state.process_payment("0712345678")

    assert state.state.status is PaymentStatus.ERROR
    assert state.state.error_message == "Network error. Please check your connection and try again."


@pytest.mark.parametrize("literal", [b"NaN", b"Infinity", b"-Infinity"])
def test_stk_push_non_finite_amount(client, gateway, literal):
    body = b'{"phone": "0712345678", "amount": ' + literal + b', "package": "10GB"}'

    response = client.post("/api/payments/stk-push", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Invalid amount"}
    assert gateway.calls == []
