"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.

La confirmation se fait entièrement côté client (Stripe Elements + confirmPayment);
le serveur ne crée que des PaymentIntents et renvoie leur client_secret.
"""
import logging
from typing import Any, Dict, Optional

import stripe

from backend.billing.models import IntentRequest
from .base import PaymentIntent, PaymentStatus, ProviderKind, ensure_initialized
from .exceptions import ProviderError

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "requires_payment_method": PaymentStatus.CREATED,
    "requires_confirmation": PaymentStatus.CREATED,
    "requires_capture": PaymentStatus.CREATED,
    "processing": PaymentStatus.CREATED,
    "requires_action": PaymentStatus.REQUIRES_ACTION,
    "succeeded": PaymentStatus.SUCCEEDED,
    "canceled": PaymentStatus.CANCELED,
}


def map_status(value: Optional[str]) -> PaymentStatus:
    return _STATUS_MAP.get((value or "").lower(), PaymentStatus.CREATED)


def _field(obj: Any, name: str) -> Any:
    # StripeObject ou dict (tests)
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_dict(obj: Any) -> Dict[str, Any]:
    if isinstance(obj, dict):
        return dict(obj)
    to_dict = getattr(obj, "to_dict", None)
    return to_dict() if callable(to_dict) else {}


def _error_type(e: "stripe.StripeError") -> str:
    err = getattr(e, "error", None)
    etype = getattr(err, "type", None) if err is not None else None
    if not etype and isinstance(getattr(e, "json_body", None), dict):
        etype = (e.json_body.get("error") or {}).get("type")
    return etype or type(e).__name__


class StripeProvider:
    """
    Adaptateur PaymentProvider pour Stripe.
    - Sans clé secrète, l'adaptateur est désactivé: les routes répondent 500 "Stripe not configured".
    """
    kind = ProviderKind.STRIPE
    supports_capture = False

    def __init__(self, secret_key: str = "", *, currency: str = "usd"):
        self.secret_key = secret_key or ""
        self.currency = currency.lower()

    def is_initialized(self) -> bool:
        return bool(self.secret_key)

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        """
        Crée un PaymentIntent Stripe.
        - amount: unités mineures calculées par le builder
        - metadata: {userId, serviceId | invoiceIds, paymentType}
        - Aucune clé d'idempotence: chaque appel crée un nouvel intent
        """
        ensure_initialized(self)
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=request.amount_minor_units,
                currency=(request.currency or self.currency).lower(),
                metadata=dict(request.metadata),
            )
        except stripe.StripeError as e:
            logger.warning("stripe.create_intent failed code=%s type=%s", getattr(e, "code", None), _error_type(e))
            raise ProviderError(
                getattr(e, "user_message", None) or str(e) or "Stripe request failed",
                code=getattr(e, "code", None),
                error_type=_error_type(e),
                http_status=getattr(e, "http_status", None),
            ) from e

        return PaymentIntent(
            id=str(_field(intent, "id") or ""),
            provider=self.kind,
            amount_minor_units=int(_field(intent, "amount") or request.amount_minor_units),
            currency=str(_field(intent, "currency") or request.currency).upper(),
            status=map_status(_field(intent, "status")),
            metadata=dict(request.metadata),
            client_secret=_field(intent, "client_secret"),
            raw=_as_dict(intent),
        )

    def capture_intent(self, intent_id: str) -> PaymentIntent:
        raise ProviderError(
            "Stripe payments are confirmed client-side",
            code="CAPTURE_NOT_SUPPORTED",
            status_code=400,
        )
