import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from backend.storage import MemStorage, get_storage
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import get_optional_user, require_user
from . import service as payments_service
from .base import ensure_initialized
from .exceptions import AuthorizationError
from .registry import ProviderRegistry, get_providers
from .schemas import (
    CapturePayPalOrderBody,
    CreateInvoicePaymentIntentBody,
    CreatePaymentIntentBody,
    CreatePayPalOrderBody,
    parse_body,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Payments API"])

_creation_limit = Depends(optional_rate_limit(times=10, seconds=60))


async def _json_body(request: Request) -> Any:
    """Corps JSON brut; un corps vide ou invalide est traité comme {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return await request.json()
    except ValueError:
        return {}


@router.post("/create-payment-intent", dependencies=[_creation_limit])
async def create_payment_intent(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    providers: ProviderRegistry = Depends(get_providers),
    storage: MemStorage = Depends(get_storage),
):
    """
    Crée un PaymentIntent Stripe pour un service du catalogue.
    - Entrée JSON: { "amount": <number>, "serviceId": <int> }
    - Sécurité: session requise (401) + rate limit (10 req / 60s)
    - Sortie: { "clientSecret": "..." }
    - Erreurs: 400 montant/service invalide, 500 Stripe non configuré ou refus Stripe
    """
    ensure_initialized(providers.stripe)
    body = parse_body(CreatePaymentIntentBody, await _json_body(request))
    return await run_in_threadpool(payments_service.create_service_payment_intent, providers, storage, user, body)


@router.post("/create-invoice-payment-intent", dependencies=[_creation_limit])
async def create_invoice_payment_intent(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    providers: ProviderRegistry = Depends(get_providers),
    storage: MemStorage = Depends(get_storage),
):
    """
    Crée un seul PaymentIntent Stripe couvrant plusieurs factures.
    - Entrée JSON: { "amount": <number>, "invoiceIds": [<int>, ...] }
    - Sortie: { "clientSecret": "...", "paymentIntentId": "pi_..." }
    """
    ensure_initialized(providers.stripe)
    body = parse_body(CreateInvoicePaymentIntentBody, await _json_body(request))
    return await run_in_threadpool(payments_service.create_invoice_payment_intent, providers, storage, user, body)


@router.post("/test-payment", dependencies=[_creation_limit])
async def test_payment(providers: ProviderRegistry = Depends(get_providers)):
    """Intention de 1.00 USD sans authentification, pour vérifier l'intégration Stripe."""
    ensure_initialized(providers.stripe)
    return await run_in_threadpool(payments_service.create_test_payment, providers)


@router.post("/create-paypal-order", dependencies=[_creation_limit])
async def create_paypal_order(
    request: Request,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    providers: ProviderRegistry = Depends(get_providers),
):
    """
    Crée un ordre PayPal (intent CAPTURE).
    - Ordre des contrôles: PayPal initialisé (503), session ou isTestPayment (401), corps (400)
    - Sortie: ordre PayPal brut { "id": ..., "status": ..., "links": [...] }
    """
    ensure_initialized(providers.paypal)
    data = await _json_body(request)
    is_test = isinstance(data, dict) and data.get("isTestPayment") is True
    if user is None and not is_test:
        raise AuthorizationError()
    body = parse_body(CreatePayPalOrderBody, data)
    return await run_in_threadpool(payments_service.create_paypal_order, providers, user, body)


@router.post("/capture-paypal-order")
async def capture_paypal_order(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    providers: ProviderRegistry = Depends(get_providers),
):
    """
    Capture un ordre approuvé par l'acheteur.
    - Entrée JSON: { "orderId": "..." }
    - Sortie: capture PayPal brute (payeur, transaction)
    """
    ensure_initialized(providers.paypal)
    body = parse_body(CapturePayPalOrderBody, await _json_body(request))
    return await run_in_threadpool(payments_service.capture_paypal_order, providers, body)


@router.get("/check-paypal-status")
def check_paypal_status(providers: ProviderRegistry = Depends(get_providers)) -> Dict[str, Any]:
    return payments_service.paypal_status(providers)


@router.get("/config/payments")
def payment_config() -> Dict[str, Any]:
    """Clés publiques nécessaires au front (Stripe.js / SDK PayPal)."""
    return payments_service.public_payment_config()


@router.get("/user/invoices")
def user_invoices(
    user: Dict[str, Any] = Depends(require_user),
    storage: MemStorage = Depends(get_storage),
) -> List[Dict[str, Any]]:
    return storage.get_user_invoices(user.get("id"))
