"""
Adaptateur PayPal (API REST Orders v2 via httpx).

- Authentification OAuth2 client_credentials, jeton mis en cache jusqu'à expiration
- create_intent: ordre intent=CAPTURE, une purchase unit en USD (valeur "0.00")
- capture_intent: capture d'un ordre approuvé par l'acheteur
- Environnement (sandbox/live) fixé à la construction
"""
import logging
import threading
import time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx

from backend.billing.models import IntentRequest
from .base import PaymentIntent, PaymentStatus, ProviderKind, ensure_initialized
from .exceptions import ProviderError

logger = logging.getLogger(__name__)

AUTH_FAILED_MESSAGE = (
    "PayPal authentication failed. Please check your credentials "
    "(PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET)"
)
# Marge de sécurité avant expiration du jeton
TOKEN_EXPIRY_MARGIN_SECONDS = 60

_ORDER_STATUS_MAP = {
    "CREATED": PaymentStatus.CREATED,
    "SAVED": PaymentStatus.CREATED,
    "APPROVED": PaymentStatus.CREATED,
    "PAYER_ACTION_REQUIRED": PaymentStatus.REQUIRES_ACTION,
    "COMPLETED": PaymentStatus.SUCCEEDED,
    "VOIDED": PaymentStatus.CANCELED,
}
_FAILED_CAPTURE_STATUSES = {"DECLINED", "FAILED"}


def _first_capture(order: Dict[str, Any]) -> Dict[str, Any]:
    units = order.get("purchase_units") or []
    for unit in units:
        captures = ((unit or {}).get("payments") or {}).get("captures") or []
        if captures:
            return captures[0] or {}
    return {}


def capture_status(capture: Dict[str, Any]) -> PaymentStatus:
    """Statut normalisé d'une réponse de capture (un refus de la première capture l'emporte)."""
    first = _first_capture(capture)
    if str(first.get("status") or "").upper() in _FAILED_CAPTURE_STATUSES:
        return PaymentStatus.FAILED
    return _ORDER_STATUS_MAP.get(str(capture.get("status") or "").upper(), PaymentStatus.CREATED)


def _minor_units(value: Any) -> int:
    try:
        return int(Decimal(str(value)) * 100)
    except (InvalidOperation, ValueError, TypeError):
        return 0


class PayPalProvider:
    kind = ProviderKind.PAYPAL
    supports_capture = True

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        *,
        api_base: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._http: Optional[httpx.Client] = None
        self._http_lock = threading.Lock()
        # jeton partagé par les workers du threadpool
        self._token_lock = threading.Lock()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def is_initialized(self) -> bool:
        return bool(self.client_id and self.client_secret)

    # --- HTTP ---

    def _client(self) -> httpx.Client:
        with self._http_lock:
            if self._http is None:
                self._http = httpx.Client(base_url=self.api_base, timeout=self.timeout, transport=self._transport)
            return self._http

    def close(self) -> None:
        with self._http_lock:
            if self._http is not None:
                self._http.close()
                self._http = None

    def _access_token(self) -> str:
        with self._token_lock:
            now = self._clock()
            if self._token and now < self._token_expires_at:
                return self._token
            token, expires_in = self._fetch_token()
            self._token = token
            self._token_expires_at = now + max(expires_in - TOKEN_EXPIRY_MARGIN_SECONDS, 0)
            return token

    def _fetch_token(self):
        """Jeton OAuth2 client_credentials: (access_token, expires_in)."""
        try:
            resp = self._client().post(
                "/v1/oauth2/token",
                auth=(self.client_id, self.client_secret),
                data={"grant_type": "client_credentials"},
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"PayPal request failed: {e}", code="NETWORK_ERROR") from e
        if resp.status_code == 401:
            raise ProviderError(AUTH_FAILED_MESSAGE, code="AUTHENTICATION_FAILURE", http_status=401)
        if resp.status_code >= 400:
            raise self._error_from_response(resp)
        try:
            body = resp.json()
        except ValueError:
            body = None
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise ProviderError("PayPal token response without access_token", code="INVALID_TOKEN_RESPONSE", http_status=resp.status_code)
        try:
            expires_in = int(body.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        return token, expires_in

    def _post(self, path: str, payload: Dict[str, Any], *, prefer: Optional[str] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._access_token()}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        try:
            resp = self._client().post(path, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderError(f"PayPal request failed: {e}", code="NETWORK_ERROR") from e
        if resp.status_code == 401:
            # jeton révoqué ou identifiants invalides
            with self._token_lock:
                self._token = None
            raise ProviderError(AUTH_FAILED_MESSAGE, code="AUTHENTICATION_FAILURE", http_status=401)
        if resp.status_code >= 400:
            raise self._error_from_response(resp)
        return resp.json() if resp.content else {}

    @staticmethod
    def _error_from_response(resp: httpx.Response) -> ProviderError:
        """Normalise le corps d'erreur PayPal {name, message, details[{issue, description}]}."""
        try:
            body = resp.json()
        except ValueError:
            body = {}
        name = body.get("name") or body.get("error")
        message = body.get("message") or body.get("error_description") or f"PayPal request failed (status {resp.status_code})"
        details = body.get("details") or []
        if details and isinstance(details[0], dict):
            issue = details[0].get("description") or details[0].get("issue")
            if issue:
                message = f"{message}: {issue}"
        return ProviderError(message, code=name, error_type=name, http_status=resp.status_code)

    # --- PaymentProvider ---

    def create_intent(self, request: IntentRequest) -> PaymentIntent:
        """Crée un ordre PayPal; l'id de l'ordre sert de jeton au SDK JS."""
        ensure_initialized(self)
        purchase_unit: Dict[str, Any] = {
            "amount": {
                "currency_code": request.currency,
                "value": f"{request.amount_major:.2f}",
            },
        }
        user_id = request.metadata.get("userId")
        if user_id:
            purchase_unit["custom_id"] = user_id
        order = self._post(
            "/v2/checkout/orders",
            {"intent": "CAPTURE", "purchase_units": [purchase_unit]},
            prefer="return=representation",
        )
        order_id = str(order.get("id") or "")
        logger.info("paypal.create_intent order_id=%s amount=%s", order_id, purchase_unit["amount"]["value"])
        return PaymentIntent(
            id=order_id,
            provider=self.kind,
            amount_minor_units=request.amount_minor_units,
            currency=request.currency,
            status=_ORDER_STATUS_MAP.get(str(order.get("status") or "").upper(), PaymentStatus.CREATED),
            metadata=dict(request.metadata),
            approval_token=order_id,
            raw=order,
        )

    def capture_intent(self, intent_id: str) -> PaymentIntent:
        """Capture un ordre approuvé; retourne payeur et détails de transaction dans raw."""
        ensure_initialized(self)
        order_id = (intent_id or "").strip()
        capture = self._post(f"/v2/checkout/orders/{quote(order_id, safe='')}/capture", {})
        first = _first_capture(capture)
        amount = first.get("amount") or {}
        status = capture_status(capture)
        logger.info("paypal.capture_intent order_id=%s status=%s", order_id, status.value)
        return PaymentIntent(
            id=str(capture.get("id") or order_id),
            provider=self.kind,
            amount_minor_units=_minor_units(amount.get("value")),
            currency=str(amount.get("currency_code") or "USD"),
            status=status,
            approval_token=order_id,
            raw=capture,
        )
