import pytest
from fastapi.testclient import TestClient

from backend.payments.exceptions import ProviderError


def test_create_payment_intent_unauthenticated(client: TestClient, fake_stripe):
    response = client.post("/api/create-payment-intent", json={"amount": 399, "serviceId": 1})

    assert response.status_code == 401
    assert response.json() == {"message": "Authentication required"}
    assert fake_stripe.requests == []


def test_create_payment_intent_authenticated(auth_client: TestClient, fake_stripe, user):
    # Act
    response = auth_client.post("/api/create-payment-intent", json={"amount": 399, "serviceId": 1})
    # Assert
    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_test_1_secret_abc"}
    request = fake_stripe.requests[0]
    assert request.amount_minor_units == 39900
    assert request.currency == "USD"
    assert request.metadata == {"userId": str(user["id"]), "serviceId": "1", "paymentType": "service"}


def test_create_payment_intent_charges_catalog_price(auth_client: TestClient, fake_stripe):
    # le client annonce 1.00 pour Automation (899)
    response = auth_client.post("/api/create-payment-intent", json={"amount": 1, "serviceId": 2})

    assert response.status_code == 200
    assert fake_stripe.requests[0].amount_minor_units == 89900


def test_identical_calls_create_distinct_intents(auth_client: TestClient):
    body = {"amount": 399, "serviceId": 1}
    first = auth_client.post("/api/create-payment-intent", json=body).json()["clientSecret"]
    second = auth_client.post("/api/create-payment-intent", json=body).json()["clientSecret"]

    assert first != second


@pytest.mark.parametrize(
    "body, message",
    [
        ({"serviceId": 1}, "Valid amount is required"),
        ({"amount": 0, "serviceId": 1}, "Valid amount is required"),
        ({"amount": -3, "serviceId": 1}, "Valid amount is required"),
        ({"amount": 10}, "Valid serviceId is required"),
        ({"amount": 10, "serviceId": 99}, "Service not found: 99"),
    ],
)
def test_create_payment_intent_bad_body(auth_client: TestClient, fake_stripe, body, message):
    response = auth_client.post("/api/create-payment-intent", json=body)

    assert response.status_code == 400
    assert response.json() == {"message": message}
    assert fake_stripe.requests == []


def test_stripe_not_configured(auth_client: TestClient, fake_stripe):
    fake_stripe.initialized = False

    response = auth_client.post("/api/create-payment-intent", json={"amount": 399, "serviceId": 1})

    assert response.status_code == 500
    assert response.json()["message"] == "Stripe not configured"


def test_invoice_intent_for_two_invoices(auth_client: TestClient, fake_stripe, user):
    response = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 448.0, "invoiceIds": [2, 3]})

    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_test_1_secret_abc", "paymentIntentId": "pi_test_1"}
    request = fake_stripe.requests[0]
    assert request.amount_minor_units == 44800
    assert request.metadata == {"userId": str(user["id"]), "invoiceIds": "[2, 3]", "paymentType": "invoice"}


def test_invoice_intent_amount_zero(auth_client: TestClient):
    response = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 0, "invoiceIds": [1]})
    assert response.status_code == 400
    assert response.json() == {"message": "Valid amount is required"}


def test_invoice_intent_empty_ids(auth_client: TestClient):
    response = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 99, "invoiceIds": []})
    assert response.status_code == 400
    assert response.json() == {"message": "At least one invoice must be selected"}


def test_invoice_intent_paid_or_unknown_invoice(auth_client: TestClient):
    paid = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 199, "invoiceIds": [4]})
    unknown = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 10, "invoiceIds": [1, 77]})

    assert paid.status_code == 400
    assert unknown.status_code == 400
    assert unknown.json() == {"message": "Invoice not found: 77"}


def test_invoice_intent_stripe_failure(auth_client: TestClient, fake_stripe):
    fake_stripe.error = ProviderError(
        "Your card was declined.",
        code="card_declined",
        error_type="card_error",
        http_status=402,
    )

    response = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 99, "invoiceIds": [1]})

    assert response.status_code == 500
    assert response.json() == {"message": "Your card was declined.", "code": "card_declined", "errorType": "card_error"}


def test_invoice_intent_unauthenticated(client: TestClient):
    response = client.post("/api/create-invoice-payment-intent", json={"amount": 99, "invoiceIds": [1]})
    assert response.status_code == 401


def test_test_payment_without_session(client: TestClient, fake_stripe):
    response = client.post("/api/test-payment", json={})

    assert response.status_code == 200
    body = response.json()
    assert body["clientSecret"] == "pi_test_1_secret_abc"
    assert body["amount"] == 1.0
    assert "1.00" in body["message"]
    assert fake_stripe.requests[0].amount_minor_units == 100
    assert fake_stripe.requests[0].metadata == {"paymentType": "test"}


def test_public_payment_config(client: TestClient, monkeypatch):
    monkeypatch.setattr("backend.config.STRIPE_PUBLIC_KEY", "pk_test_123")
    monkeypatch.setattr("backend.config.PAYPAL_PUBLIC_CLIENT_ID", "AaBbCc")

    response = client.get("/api/config/payments")

    assert response.status_code == 200
    assert response.json() == {"stripePublicKey": "pk_test_123", "paypalClientId": "AaBbCc", "currency": "USD"}


def test_payment_responses_are_not_cached(auth_client: TestClient):
    response = auth_client.post("/api/create-payment-intent", json={"amount": 399, "serviceId": 1})
    assert "no-store" in response.headers["Cache-Control"]


def test_create_payment_intent_with_small_client_amount(auth_client: TestClient, fake_stripe):
    # montant annoncé 99 pour Web Design (399): la réponse reste 200
    response = auth_client.post("/api/create-payment-intent", json={"amount": 99, "serviceId": 1})

    assert response.status_code == 200
    assert "clientSecret" in response.json()
    assert fake_stripe.requests[0].amount_minor_units == 39900


def test_create_payment_intent_with_huge_client_amount(auth_client: TestClient, fake_stripe):
    response = auth_client.post("/api/create-payment-intent", json={"amount": 1e30, "serviceId": 1})

    assert response.status_code == 200
    assert fake_stripe.requests[0].amount_minor_units == 39900


def test_invoice_intent_three_invoices_stripe_failure(auth_client: TestClient, fake_stripe):
    fake_stripe.error = ProviderError("Stripe is down", code="api_error", error_type="api_error", http_status=500)

    response = auth_client.post("/api/create-invoice-payment-intent", json={"amount": 448, "invoiceIds": [1, 2, 3]})

    assert response.status_code == 500
    assert response.json()["errorType"] == "api_error"
