"""
Registre central des routers.
- API: auth (session), catalogue de services, contact/témoignages/projets, paiements (Stripe/PayPal, factures)
- Health: health_router
"""
from fastapi import FastAPI

from backend.agency.views import router as agency_router
from backend.auth.views import api_router as auth_api_router
from backend.catalog.views import router as catalog_router
from backend.health.router import router as health_router
from backend.payments import views as payments_views


def register_routers(app: FastAPI) -> None:
    """
    Agrège tous les routers de l’application.
    - L’ordre n’a pas d’impact sauf conflits de chemins (évités par préfixes).
    """
    # API
    app.include_router(auth_api_router)
    app.include_router(catalog_router)
    app.include_router(agency_router)
    app.include_router(payments_views.router)
    # Health & monitoring
    app.include_router(health_router)
