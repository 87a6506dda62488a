"""
Dépôt applicatif: une instance MemStorage par processus, portée par app.state.
"""
from fastapi import Request

from .memory import DuplicateUser, MemStorage, PAYABLE_INVOICE_STATUSES


def get_storage(request: Request) -> MemStorage:
    """Dépendance FastAPI: retourne le dépôt construit dans le lifespan."""
    return request.app.state.storage


__all__ = ["DuplicateUser", "MemStorage", "PAYABLE_INVOICE_STATUSES", "get_storage"]
