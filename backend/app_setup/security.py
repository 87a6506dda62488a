from fastapi import FastAPI

from backend.config import COOKIE_SECURE

# Stripe.js et le SDK PayPal sont chargés par le front
PAYMENT_SCRIPT_SOURCES = ["https://js.stripe.com", "https://www.paypal.com"]
PAYMENT_FRAME_SOURCES = ["https://js.stripe.com", "https://hooks.stripe.com", "https://www.paypal.com", "https://www.sandbox.paypal.com"]
PAYMENT_CONNECT_SOURCES = ["https://api.stripe.com", "https://www.paypal.com", "https://www.sandbox.paypal.com"]
SWAGGER_CDNS = ["https://cdn.jsdelivr.net"]


def register_security_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def security_headers(request, call_next):
        response = await call_next(request)

        # En-têtes de sécurité
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=(), payment=(self)")
        if COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=63072000; includeSubDomains; preload")

        # CSP
        script_sources = PAYMENT_SCRIPT_SOURCES + SWAGGER_CDNS
        csp = (
            "default-src 'self'; "
            "base-uri 'self'; object-src 'none'; frame-ancestors 'none'; "
            "img-src 'self' data: blob: https://fastapi.tiangolo.com; "
            f"style-src 'self' 'unsafe-inline' {' '.join(SWAGGER_CDNS)}; "
            f"script-src 'self' 'unsafe-inline' {' '.join(script_sources)}; "
            f"frame-src {' '.join(PAYMENT_FRAME_SOURCES)}; "
            f"connect-src 'self' {' '.join(PAYMENT_CONNECT_SOURCES)}"
        )
        response.headers["Content-Security-Policy"] = csp

        return response
