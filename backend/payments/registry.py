"""
Registre des adaptateurs de paiement, construit une fois au démarrage (lifespan)
et injecté dans les routes via get_providers.
"""
import logging
from typing import Dict, Iterable

from fastapi import Request

from backend import config
from .base import PaymentProvider, ProviderKind
from .paypal_client import PayPalProvider
from .stripe_client import StripeProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    def __init__(self, providers: Iterable[PaymentProvider]):
        self._providers: Dict[ProviderKind, PaymentProvider] = {p.kind: p for p in providers}

    def get(self, kind: ProviderKind) -> PaymentProvider:
        return self._providers[ProviderKind(kind)]

    @property
    def stripe(self) -> PaymentProvider:
        return self.get(ProviderKind.STRIPE)

    @property
    def paypal(self) -> PaymentProvider:
        return self.get(ProviderKind.PAYPAL)

    def close(self) -> None:
        for provider in self._providers.values():
            close = getattr(provider, "close", None)
            if callable(close):
                close()

    @classmethod
    def from_config(cls) -> "ProviderRegistry":
        """
        Instancie Stripe et PayPal depuis backend.config.
        - Identifiants manquants: avertissement, l'adaptateur reste désactivé (jamais d'arrêt du processus)
        """
        stripe_provider = StripeProvider(config.STRIPE_SECRET_KEY, currency=config.PAYMENT_CURRENCY)
        paypal_provider = PayPalProvider(
            config.PAYPAL_CLIENT_ID,
            config.PAYPAL_CLIENT_SECRET,
            api_base=config.PAYPAL_API_BASE,
            timeout=config.HTTP_TIMEOUT_SECONDS,
        )
        if not stripe_provider.is_initialized():
            logger.warning("Missing STRIPE_SECRET_KEY. Stripe payments will not work properly.")
        if not paypal_provider.is_initialized():
            logger.warning("Missing PayPal credentials. PayPal payments will not work properly.")
        else:
            logger.info(
                "PayPal configuration initialized with client ID: %s... (%s)",
                config.PAYPAL_CLIENT_ID[:5],
                "live" if config.IS_PRODUCTION else "sandbox",
            )
        return cls([stripe_provider, paypal_provider])


def get_providers(request: Request) -> ProviderRegistry:
    """Dépendance FastAPI: registre construit dans le lifespan."""
    return request.app.state.providers
