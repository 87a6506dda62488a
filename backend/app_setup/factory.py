"""
Factory d’application recommandée pour les entrypoints (ex: backend.asgi).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from typing import Optional

from fastapi import FastAPI

from backend.payments.registry import ProviderRegistry
from backend.storage import MemStorage
from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware
from .routers import register_routers
from .security import register_security_middleware


def create_app(
    *,
    storage: Optional[MemStorage] = None,
    providers: Optional[ProviderRegistry] = None,
) -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - middlewares de base, sécurité, no-cache
      - gestionnaires d’exceptions
      - tous les routers (auth, catalogue, paiements, health)
    storage / providers: injectés par les tests, sinon construits au démarrage (lifespan).
    """
    app = FastAPI(title="Tobais Checkout", lifespan=lifespan)
    app.state.storage = storage
    app.state.providers = providers
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
