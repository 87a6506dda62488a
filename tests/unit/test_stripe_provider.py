from unittest.mock import MagicMock

import pytest
import stripe

from backend.billing.models import IntentRequest
from backend.payments.base import PaymentStatus, ProviderKind
from backend.payments.exceptions import ConfigurationError, ProviderError
from backend.payments.stripe_client import StripeProvider, map_status


def _request(amount=39900, metadata=None):
    return IntentRequest(amount_minor_units=amount, currency="USD", metadata=metadata or {"userId": "1", "serviceId": "1"})


def test_create_intent_calls_stripe_with_minor_units(monkeypatch):
    # Arrange
    create = MagicMock(return_value={
        "id": "pi_123",
        "amount": 39900,
        "currency": "usd",
        "status": "requires_payment_method",
        "client_secret": "pi_123_secret_xyz",
    })
    monkeypatch.setattr("stripe.PaymentIntent.create", create)
    provider = StripeProvider("sk_test_abc")
    # Act
    intent = provider.create_intent(_request())
    # Assert
    create.assert_called_once_with(
        api_key="sk_test_abc",
        amount=39900,
        currency="usd",
        metadata={"userId": "1", "serviceId": "1"},
    )
    assert intent.id == "pi_123"
    assert intent.provider is ProviderKind.STRIPE
    assert intent.client_secret == "pi_123_secret_xyz"
    assert intent.status is PaymentStatus.CREATED
    assert intent.currency == "USD"


def test_disabled_provider_raises_configuration_error(monkeypatch):
    create = MagicMock()
    monkeypatch.setattr("stripe.PaymentIntent.create", create)
    provider = StripeProvider("")

    assert provider.is_initialized() is False
    with pytest.raises(ConfigurationError) as exc:
        provider.create_intent(_request())
    assert exc.value.message == "Stripe not configured"
    assert exc.value.status_code == 500
    create.assert_not_called()


def test_stripe_error_is_normalized(monkeypatch):
    err = stripe.CardError(
        "Your card was declined.",
        None,
        "card_declined",
        http_status=402,
        json_body={"error": {"type": "card_error", "code": "card_declined", "message": "Your card was declined."}},
    )
    monkeypatch.setattr("stripe.PaymentIntent.create", MagicMock(side_effect=err))

    with pytest.raises(ProviderError) as exc:
        StripeProvider("sk_test_abc").create_intent(_request())

    assert "declined" in exc.value.message
    assert exc.value.code == "card_declined"
    assert exc.value.error_type == "card_error"
    assert exc.value.http_status == 402


def test_capture_is_not_supported():
    with pytest.raises(ProviderError) as exc:
        StripeProvider("sk_test_abc").capture_intent("pi_123")
    assert exc.value.status_code == 400


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("succeeded", PaymentStatus.SUCCEEDED),
        ("requires_action", PaymentStatus.REQUIRES_ACTION),
        ("canceled", PaymentStatus.CANCELED),
        ("processing", PaymentStatus.CREATED),
        (None, PaymentStatus.CREATED),
    ],
)
def test_map_status(raw, expected):
    assert map_status(raw) is expected
