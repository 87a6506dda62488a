import hashlib
import logging
import os
import time
from typing import Any, Dict
from urllib.parse import urlparse

from fastapi import HTTPException, Request
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

from backend.utils.security import COOKIE_NAME

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    """Clé de limitation: cookie de session (hashé) en priorité, sinon IP; toujours suffixée du chemin."""
    path = request.url.path
    session_cookie = request.cookies.get(COOKIE_NAME)
    if session_cookie:
        digest = hashlib.sha256(session_cookie.encode("utf-8")).hexdigest()[:16]
        return f"session:{digest}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"


def _local_hit(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    key = client_key(request)
    store = getattr(request.app.state, "_rl_store", None)
    if store is None:
        store = request.app.state._rl_store = {}
    # purge: une clé sans hit dans sa fenêtre disparaît du store
    for other, (window, stamps) in list(store.items()):
        recent = [t for t in stamps if now - t < window]
        if recent:
            store[other] = (window, recent)
        else:
            store.pop(other, None)
    hits = store.get(key, (seconds, []))[1]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    store[key] = (seconds, hits + [now])


def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de limitation de débit, tolérante à l'absence de Redis.
    - LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (app.state._rl_store)
    - app.state.rate_limit_enabled False: aucune limitation
    - sinon fastapi-limiter (Redis)
    """
    async def _dep(request: Request):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        async def _identifier(req: Request) -> str:
            return client_key(req)

        try:
            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request)
        except HTTPException:
            raise
        except Exception as e:
            # Redis indisponible: pas de 429 en prod (LOCAL_RATE_LIMIT_FALLBACK=1 en dev)
            logger.warning("Rate limiter unavailable on %s: %s", request.url.path, e)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
    backend = "redis" if limiter_ready else None
    if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
    }

    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if backend == "redis" and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
