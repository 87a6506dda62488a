from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request

from backend.config import SESSION_COOKIE_NAME
from backend.storage import MemStorage, get_storage

COOKIE_NAME = SESSION_COOKIE_NAME
SESSION_USER_KEY = "user_id"


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """Retire le hash du mot de passe avant toute sérialisation."""
    return {k: v for k, v in user.items() if k != "password"}


def login_session(request: Request, user: Dict[str, Any]) -> None:
    request.session[SESSION_USER_KEY] = user["id"]


def logout_session(request: Request) -> None:
    request.session.clear()


def get_optional_user(request: Request, storage: MemStorage = Depends(get_storage)) -> Optional[Dict[str, Any]]:
    """Utilisateur de la session cookie, ou None (session absente ou utilisateur supprimé)."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = storage.get_user(user_id)
    if not user or not user.get("isActive", True):
        request.session.pop(SESSION_USER_KEY, None)
        return None
    return public_user(user)


def get_current_user(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user


def require_admin(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    # sans session ou sans rôle admin: même réponse 403
    if not user or user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin privileges required")
    return user
