"""
Cas d'usage 'payments': orchestre storage, billing (sélection + builder) et adaptateurs.

Les fonctions sont synchrones (SDK Stripe / httpx bloquants); les vues les
exécutent via run_in_threadpool.
"""
import logging
from typing import Any, Dict, Optional

from backend import config
from backend.billing import (
    BillableItem,
    BillingError,
    CheckoutSelection,
    IntentRequest,
    UnknownBillableItem,
    build_intent_request,
    to_minor_units,
)
from backend.billing.models import quantize_cents, to_decimal
from backend.storage import MemStorage, PAYABLE_INVOICE_STATUSES
from .exceptions import CheckoutError, ProviderError, ValidationError
from .registry import ProviderRegistry
from .schemas import (
    CapturePayPalOrderBody,
    CreateInvoicePaymentIntentBody,
    CreatePaymentIntentBody,
    CreatePayPalOrderBody,
)

logger = logging.getLogger(__name__)

PAYPAL_STATUS_ENVIRONMENT = "live"
PAYPAL_STATUS_ENDPOINT = config.PAYPAL_LIVE_API


# --- Traduction des erreurs ---

def map_paypal_error(exc: Exception, fallback_message: str = "Failed to process PayPal request") -> CheckoutError:
    """
    Erreur PayPal -> réponse client.
    - message contenant "authentication failed" -> 401 PAYPAL_AUTH_FAILED
    - sinon -> 500 UNKNOWN_ERROR, le message d'origine dans details
    """
    if isinstance(exc, CheckoutError) and not isinstance(exc, ProviderError):
        return exc
    message = getattr(exc, "message", None) or str(exc)
    if "authentication failed" in message.lower():
        return CheckoutError(
            "PayPal authentication failed",
            status_code=401,
            code="PAYPAL_AUTH_FAILED",
            details=message,
        )
    return CheckoutError(fallback_message, status_code=500, code="UNKNOWN_ERROR", details=message)


def map_stripe_error(exc: Exception) -> CheckoutError:
    """Erreur Stripe -> 500 {message, errorType, code}."""
    if isinstance(exc, CheckoutError) and not isinstance(exc, ProviderError):
        return exc
    return CheckoutError(
        getattr(exc, "message", None) or str(exc) or "Stripe request failed",
        status_code=500,
        code=getattr(exc, "code", None),
        error_type=getattr(exc, "error_type", None) or type(exc).__name__,
    )


def _validation_from_billing(exc: BillingError) -> ValidationError:
    return ValidationError(str(exc))


def _warn_on_amount_mismatch(route: str, client_amount: Any, selection: CheckoutSelection) -> None:
    try:
        claimed = quantize_cents(to_decimal(client_amount))
    except BillingError:
        return
    if claimed != selection.total_amount:
        logger.warning(
            "%s client amount %s differs from server amount %s; charging server amount",
            route,
            claimed,
            selection.total_amount,
        )


def _create_stripe_intent(providers: ProviderRegistry, request: IntentRequest):
    try:
        return providers.stripe.create_intent(request)
    except ProviderError as e:
        logger.error("Stripe payment intent failed: %s", e.message)
        raise map_stripe_error(e) from e


# --- Stripe ---

def create_service_payment_intent(
    providers: ProviderRegistry,
    storage: MemStorage,
    user: Dict[str, Any],
    body: CreatePaymentIntentBody,
) -> Dict[str, Any]:
    """
    Intention Stripe pour un service du catalogue.
    - Montant facturé: prix du catalogue (le montant client sert uniquement au contrôle)
    - Service inconnu -> 400
    """
    service = storage.get_service_type(body.service_id)
    if service is None:
        raise ValidationError(f"Service not found: {body.service_id}")
    try:
        selection = CheckoutSelection.of([BillableItem.from_service(service)])
        intent_request = build_intent_request(selection, user.get("id"))
    except BillingError as e:
        raise _validation_from_billing(e) from e

    _warn_on_amount_mismatch("create-payment-intent", body.amount, selection)
    intent = _create_stripe_intent(providers, intent_request)
    logger.info(
        "payments.service_intent id=%s service_id=%s amount=%s user_id=%s",
        intent.id,
        body.service_id,
        intent_request.amount_minor_units,
        user.get("id"),
    )
    return {"clientSecret": intent.client_secret}


def create_invoice_payment_intent(
    providers: ProviderRegistry,
    storage: MemStorage,
    user: Dict[str, Any],
    body: CreateInvoicePaymentIntentBody,
) -> Dict[str, Any]:
    """
    Une seule intention Stripe pour plusieurs factures.
    - Factures inconnues ou déjà payées -> 400
    - metadata: userId, invoiceIds (JSON), paymentType="invoice"
    """
    invoices = storage.get_invoices_by_ids(body.invoice_ids)
    selection = CheckoutSelection()
    try:
        for invoice_id in body.invoice_ids:
            invoice = invoices.get(invoice_id)
            if invoice is None:
                raise UnknownBillableItem(f"Invoice not found: {invoice_id}")
            if invoice.get("status") not in PAYABLE_INVOICE_STATUSES:
                raise UnknownBillableItem(f"Invoice {invoice.get('invoiceNumber')} is not payable (status: {invoice.get('status')})")
            selection.add(BillableItem.from_invoice(invoice))
        intent_request = build_intent_request(selection, user.get("id"))
    except BillingError as e:
        raise _validation_from_billing(e) from e

    _warn_on_amount_mismatch("create-invoice-payment-intent", body.amount, selection)
    intent = _create_stripe_intent(providers, intent_request)
    logger.info(
        "payments.invoice_intent id=%s invoices=%s amount=%s user_id=%s",
        intent.id,
        intent_request.metadata.get("invoiceIds"),
        intent_request.amount_minor_units,
        user.get("id"),
    )
    return {"clientSecret": intent.client_secret, "paymentIntentId": intent.id}


def create_test_payment(providers: ProviderRegistry) -> Dict[str, Any]:
    """Intention Stripe fixe de 1.00 USD, sans authentification (vérification d'intégration)."""
    amount = to_decimal(config.TEST_PAYMENT_AMOUNT)
    intent_request = IntentRequest(
        amount_minor_units=to_minor_units(amount),
        currency=config.PAYMENT_CURRENCY,
        metadata={"paymentType": "test"},
    )
    intent = _create_stripe_intent(providers, intent_request)
    logger.info("payments.test_intent id=%s", intent.id)
    return {
        "clientSecret": intent.client_secret,
        "amount": float(amount),
        "message": f"Test payment intent created for ${amount:.2f}",
    }


# --- PayPal ---

def create_paypal_order(
    providers: ProviderRegistry,
    user: Optional[Dict[str, Any]],
    body: CreatePayPalOrderBody,
) -> Dict[str, Any]:
    """
    Ordre PayPal (intent CAPTURE) pour le montant fourni par le client.
    Retourne l'ordre brut: le SDK JS a besoin de son id.
    """
    metadata: Dict[str, str] = {}
    if user and user.get("id") is not None:
        metadata["userId"] = str(user["id"])
    if body.is_test_payment:
        metadata["paymentType"] = "test"
    try:
        intent_request = IntentRequest(
            amount_minor_units=to_minor_units(body.amount),
            currency=config.PAYMENT_CURRENCY,
            metadata=metadata,
        )
    except BillingError as e:
        raise _validation_from_billing(e) from e

    try:
        intent = providers.paypal.create_intent(intent_request)
    except ProviderError as e:
        logger.error("Failed to create PayPal order: %s", e.message)
        raise map_paypal_error(e, "Failed to create PayPal order") from e
    logger.info(
        "payments.paypal_order id=%s amount=%s test=%s",
        intent.id,
        intent_request.amount_major,
        body.is_test_payment,
    )
    return intent.raw


def capture_paypal_order(providers: ProviderRegistry, body: CapturePayPalOrderBody) -> Dict[str, Any]:
    try:
        intent = providers.paypal.capture_intent(body.order_id)
    except ProviderError as e:
        logger.error("Failed to capture PayPal order %s: %s", body.order_id, e.message)
        raise map_paypal_error(e, "Failed to capture PayPal order") from e
    logger.info("payments.paypal_capture order_id=%s status=%s", body.order_id, intent.status.value)
    return intent.raw


def paypal_status(providers: ProviderRegistry) -> Dict[str, Any]:
    """
    État de configuration PayPal, sans secret.
    environment/apiEndpoint valent toujours "live" (comportement historique du diagnostic).
    """
    paypal = providers.paypal
    client_id = getattr(paypal, "client_id", "")
    client_secret = getattr(paypal, "client_secret", "")
    initialized = paypal.is_initialized()
    return {
        "initialized": initialized,
        "clientIdConfigured": bool(client_id),
        "clientSecretConfigured": bool(client_secret),
        "environment": PAYPAL_STATUS_ENVIRONMENT,
        "apiEndpoint": PAYPAL_STATUS_ENDPOINT,
        "message": "PayPal is properly configured" if initialized else "PayPal credentials are missing",
    }


def public_payment_config() -> Dict[str, Any]:
    """Clés publiques uniquement (jamais de secret)."""
    return {
        "stripePublicKey": config.STRIPE_PUBLIC_KEY or None,
        "paypalClientId": config.PAYPAL_PUBLIC_CLIENT_ID or None,
        "currency": config.PAYMENT_CURRENCY,
    }
