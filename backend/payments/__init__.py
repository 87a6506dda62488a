"""
Module 'payments' (feature-first): point d'entrée public.
Réunit adaptateurs fournisseurs (Stripe, PayPal), registre, erreurs et cas d'usage du checkout.
"""

from .base import PaymentIntent, PaymentProvider, PaymentStatus, ProviderKind, ensure_initialized
from .exceptions import (
    AuthorizationError,
    CheckoutError,
    ConfigurationError,
    NotInitializedError,
    ProviderError,
    StripeNotConfiguredError,
    ValidationError,
)
from .paypal_client import PayPalProvider
from .registry import ProviderRegistry, get_providers
from .stripe_client import StripeProvider

__all__ = [
    # base
    "PaymentIntent",
    "PaymentProvider",
    "PaymentStatus",
    "ProviderKind",
    "ensure_initialized",
    # erreurs
    "AuthorizationError",
    "CheckoutError",
    "ConfigurationError",
    "NotInitializedError",
    "ProviderError",
    "StripeNotConfiguredError",
    "ValidationError",
    # adaptateurs
    "PayPalProvider",
    "StripeProvider",
    "ProviderRegistry",
    "get_providers",
]
