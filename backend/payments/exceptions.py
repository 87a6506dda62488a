"""
Taxonomie des erreurs du checkout, rendues en JSON par backend.app_setup.exceptions.

Corps de réponse: {"message": ..., "code"?: ..., "errorType"?: ..., "details"?: ...}
"""
from typing import Any, Dict, Optional


class CheckoutError(Exception):
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        error_type: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.error_type = error_type
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.code:
            body["code"] = self.code
        if self.error_type:
            body["errorType"] = self.error_type
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(CheckoutError):
    status_code = 400


class AuthorizationError(CheckoutError):
    status_code = 401

    def __init__(self, message: str = "Authentication required", **kwargs):
        super().__init__(message, **kwargs)


class ConfigurationError(CheckoutError):
    """Identifiants fournisseur absents au démarrage (jamais fatal pour le processus)."""
    status_code = 500


class NotInitializedError(ConfigurationError):
    status_code = 503

    def __init__(
        self,
        message: str = "PayPal service is not available",
        *,
        details: str = "PayPal is not initialized. Check your PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET",
        code: str = "PAYPAL_NOT_INITIALIZED",
    ):
        super().__init__(message, code=code, details=details)


class StripeNotConfiguredError(ConfigurationError):
    def __init__(self, message: str = "Stripe not configured"):
        super().__init__(message, code="STRIPE_NOT_CONFIGURED")


class ProviderError(CheckoutError):
    """
    Refus ou échec côté fournisseur (Stripe/PayPal).
    - code / error_type: valeurs du fournisseur si disponibles
    - http_status: statut HTTP renvoyé par le fournisseur (None si erreur réseau)
    """
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        error_type: Optional[str] = None,
        http_status: Optional[int] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, status_code=status_code, code=code, error_type=error_type)
        self.http_status = http_status
