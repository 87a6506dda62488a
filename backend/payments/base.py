"""
Interface commune des adaptateurs de paiement + modèle d'intention normalisé.

Les adaptateurs (Stripe, PayPal) implémentent PaymentProvider; le contrôleur
choisit l'adaptateur via ProviderKind puis n'a plus de branche spécifique.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol

from backend.billing.models import IntentRequest
from .exceptions import NotInitializedError, StripeNotConfiguredError


class ProviderKind(str, Enum):
    STRIPE = "stripe"
    PAYPAL = "paypal"


class PaymentStatus(str, Enum):
    CREATED = "created"
    REQUIRES_ACTION = "requires_action"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


@dataclass
class PaymentIntent:
    """
    Intention côté fournisseur, observée une seule fois (création ou capture) puis abandonnée.
    - client_secret: Stripe (pilote Stripe Elements côté client)
    - approval_token: PayPal (id de l'ordre utilisé par le SDK JS)
    - raw: objet brut renvoyé par le fournisseur
    """
    id: str
    provider: ProviderKind
    amount_minor_units: int
    currency: str
    status: PaymentStatus
    metadata: Dict[str, str] = field(default_factory=dict)
    client_secret: Optional[str] = None
    approval_token: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentProvider(Protocol):
    kind: ProviderKind
    supports_capture: bool

    def is_initialized(self) -> bool:
        ...

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        ...

    def capture_intent(self, intent_id: str) -> PaymentIntent:
        ...


_NOT_CONFIGURED = {
    ProviderKind.STRIPE: StripeNotConfiguredError,
    ProviderKind.PAYPAL: NotInitializedError,
}


def ensure_initialized(provider: PaymentProvider) -> None:
    """Stripe sans clé -> 500 "Stripe not configured"; PayPal sans identifiants -> 503 PAYPAL_NOT_INITIALIZED."""
    if not provider.is_initialized():
        raise _NOT_CONFIGURED[ProviderKind(provider.kind)]()
