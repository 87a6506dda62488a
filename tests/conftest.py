import os

# Avant tout import de l'app: pas de Redis en tests
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from datetime import date
from itertools import count
from typing import Any, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from backend.app_setup.factory import create_app
from backend.billing.models import IntentRequest
from backend.payments.base import PaymentIntent, PaymentStatus, ProviderKind
from backend.payments.exceptions import NotInitializedError, ProviderError
from backend.payments.registry import ProviderRegistry
from backend.storage import MemStorage
from backend.utils.security import get_optional_user, public_user

TODAY = date(2025, 3, 1)


# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeStripeProvider:
    """Adaptateur Stripe en mémoire: enregistre les demandes, ids uniques par appel."""
    kind = ProviderKind.STRIPE
    supports_capture = False

    def __init__(self, initialized: bool = True):
        self.initialized = initialized
        self.requests: List[IntentRequest] = []
        self.error: Optional[ProviderError] = None
        self._ids = count(1)

    def is_initialized(self) -> bool:
        return self.initialized

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        intent_id = f"pi_test_{next(self._ids)}"
        return PaymentIntent(
            id=intent_id,
            provider=self.kind,
            amount_minor_units=request.amount_minor_units,
            currency=request.currency,
            status=PaymentStatus.CREATED,
            metadata=dict(request.metadata),
            client_secret=f"{intent_id}_secret_abc",
        )

    def capture_intent(self, intent_id: str) -> PaymentIntent:
        raise ProviderError("Stripe payments are confirmed client-side", code="CAPTURE_NOT_SUPPORTED", status_code=400)


class FakePayPalProvider:
    """Adaptateur PayPal en mémoire: ordres CREATED, captures COMPLETED (ou statut forcé)."""
    kind = ProviderKind.PAYPAL
    supports_capture = True

    def __init__(self, initialized: bool = True, client_id: str = "AaBbCcDdEe", client_secret: str = "secret"):
        self.initialized = initialized
        self.client_id = client_id if initialized else ""
        self.client_secret = client_secret if initialized else ""
        self.requests: List[IntentRequest] = []
        self.captured: List[str] = []
        self.error: Optional[ProviderError] = None
        self.capture_status = "COMPLETED"
        self._ids = count(1)

    def is_initialized(self) -> bool:
        return self.initialized

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        if not self.initialized:
            raise NotInitializedError()
        if self.error is not None:
            raise self.error
        self.requests.append(request)
        order_id = f"ORDER-{next(self._ids)}"
        raw = {
            "id": order_id,
            "status": "CREATED",
            "purchase_units": [{"amount": {"currency_code": request.currency, "value": f"{request.amount_major:.2f}"}}],
            "links": [{"rel": "approve", "href": f"https://www.sandbox.paypal.com/checkoutnow?token={order_id}"}],
        }
        return PaymentIntent(
            id=order_id,
            provider=self.kind,
            amount_minor_units=request.amount_minor_units,
            currency=request.currency,
            status=PaymentStatus.CREATED,
            metadata=dict(request.metadata),
            approval_token=order_id,
            raw=raw,
        )

    def capture_intent(self, intent_id: str) -> PaymentIntent:
        if self.error is not None:
            raise self.error
        self.captured.append(intent_id)
        capture_state = "COMPLETED" if self.capture_status == "COMPLETED" else "DECLINED"
        raw = {
            "id": intent_id,
            "status": self.capture_status,
            "payer": {"email_address": "buyer@example.com"},
            "purchase_units": [
                {"payments": {"captures": [{"id": "CAP-1", "status": capture_state, "amount": {"currency_code": "USD", "value": "10.00"}}]}}
            ],
        }
        status = PaymentStatus.SUCCEEDED if capture_state == "COMPLETED" else PaymentStatus.FAILED
        return PaymentIntent(
            id=intent_id,
            provider=self.kind,
            amount_minor_units=1000,
            currency="USD",
            status=status,
            approval_token=intent_id,
            raw=raw,
        )


@pytest.fixture
def storage() -> MemStorage:
    return MemStorage(today=TODAY)


@pytest.fixture
def fake_stripe() -> FakeStripeProvider:
    return FakeStripeProvider()


@pytest.fixture
def fake_paypal() -> FakePayPalProvider:
    return FakePayPalProvider()


@pytest.fixture
def providers(fake_stripe, fake_paypal) -> ProviderRegistry:
    return ProviderRegistry([fake_stripe, fake_paypal])


@pytest.fixture
def app(storage, providers):
    return create_app(storage=storage, providers=providers)


@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user(storage) -> Dict[str, Any]:
    # hash factice: la connexion réelle est testée dans test_auth_api
    return public_user(storage.create_user(username="maria", password_hash="x", email="maria@example.com"))


# Simuler un utilisateur authentifié pour les endpoints protégés
@pytest.fixture
def auth_client(app, client, user) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_optional_user] = lambda: user
    try:
        yield client
    finally:
        app.dependency_overrides.pop(get_optional_user, None)
