import logging
from typing import Optional

import bcrypt

from backend.auth.models import AuthResponse
from backend.storage import DuplicateUser, MemStorage
from backend.utils.security import public_user

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # hash stocké invalide
        logger.warning("verify_password: invalid stored hash")
        return False


# --- Cas d'usage Auth exposés ---

def register(
    storage: MemStorage,
    *,
    username: str,
    password: str,
    email: str,
    full_name: Optional[str] = None,
    language: str = "en",
) -> AuthResponse:
    """Inscription:
    - Refuse un nom d'utilisateur ou un email déjà utilisé (vérifié à nouveau à l'insertion, sous verrou)
    - Stocke uniquement le hash bcrypt du mot de passe
    """
    username = (username or "").strip()
    email = (email or "").strip()
    if storage.get_user_by_username(username):
        return AuthResponse.failed("Username already exists")
    if storage.get_user_by_email(email):
        return AuthResponse.failed("Email already registered")

    try:
        user = storage.create_user(
            username=username,
            password_hash=hash_password(password),
            email=email,
            full_name=(full_name or "").strip() or None,
            language=language,
        )
    except DuplicateUser as e:
        return AuthResponse.failed(str(e))
    return AuthResponse(True, user=public_user(user))


def login(storage: MemStorage, username: str, password: str) -> AuthResponse:
    """Connexion par nom d'utilisateur (ou email) + mot de passe."""
    identifier = (username or "").strip()
    user = storage.get_user_by_username(identifier) or storage.get_user_by_email(identifier)
    if not user or not verify_password(password, user.get("password") or ""):
        return AuthResponse.failed("Invalid username or password")
    if not user.get("isActive", True):
        return AuthResponse.failed("Account disabled")
    return AuthResponse(True, user=public_user(user))
