from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.storage import MemStorage, get_storage
from backend.utils.rate_limit import optional_rate_limit
from backend.utils.security import login_session, logout_session, require_user
from .service import login as svc_login, register as svc_register

# --- API Router (/api) ---

api_router = APIRouter(prefix="/api", tags=["Auth API"])


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6)
    email: EmailStr
    full_name: Optional[str] = Field(default=None, alias="fullName")
    language: Literal["en", "es"] = "en"

    model_config = {"populate_by_name": True}

    @field_validator("username")
    def username_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


@api_router.post("/register", status_code=201, dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_register(req: RegisterRequest, request: Request, storage: MemStorage = Depends(get_storage)):
    """Inscription (API JSON).
    - 400 si le nom d'utilisateur ou l'email existe déjà
    - Ouvre la session (cookie signé) et retourne l'utilisateur sans mot de passe
    """
    result = svc_register(
        storage,
        username=req.username,
        password=req.password,
        email=str(req.email),
        full_name=req.full_name,
        language=req.language,
    )
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Registration failed")
    login_session(request, result.user)
    return result.user


@api_router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_login(req: LoginRequest, request: Request, storage: MemStorage = Depends(get_storage)):
    """Connexion: 401 si identifiants invalides, sinon session ouverte + utilisateur."""
    result = svc_login(storage, req.username, req.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Invalid username or password")
    login_session(request, result.user)
    return result.user


@api_router.post("/logout")
def api_logout(request: Request):
    logout_session(request)
    return {"message": "Logged out"}


@api_router.get("/user")
def api_user(user: Dict[str, Any] = Depends(require_user)):
    """Utilisateur courant (401 sans session)."""
    return user
