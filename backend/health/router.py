from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from backend.config import APP_ENV
from backend.payments.registry import ProviderRegistry, get_providers
from backend.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_root():
    return {"ok": True}


@router.get("/payments")
def health_payments(request: Request, providers: ProviderRegistry = Depends(get_providers)) -> Dict[str, Any]:
    """Drapeaux d'initialisation des fournisseurs et état du rate limiting (aucun secret)."""
    return {
        "environment": APP_ENV,
        "stripe": {"initialized": providers.stripe.is_initialized()},
        "paypal": {"initialized": providers.paypal.is_initialized()},
        "rateLimit": rate_limit_health_info(request),
    }
