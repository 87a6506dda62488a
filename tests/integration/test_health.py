from fastapi.testclient import TestClient


def test_health_root(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_health_payments_reports_flags_without_secrets(client: TestClient, fake_paypal):
    fake_paypal.initialized = False

    body = client.get("/health/payments").json()

    assert body["stripe"] == {"initialized": True}
    assert body["paypal"] == {"initialized": False}
    assert body["rateLimit"]["enabled"] is False
    assert "secret" not in str(body).lower()


def test_security_headers(client: TestClient):
    response = client.get("/health")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "https://js.stripe.com" in response.headers["Content-Security-Policy"]
