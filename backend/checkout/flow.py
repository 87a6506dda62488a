"""
Machine à états du checkout côté client, pilotée contre l'API HTTP.

Idle -> IntentRequested -> IntentReady -> Confirming -> {Succeeded | Failed | RequiresAction}
RequiresAction -> Confirming (après le challenge 3-D Secure / PayPal)
Succeeded | Failed -> Idle (restart, nouvelle intention)

Le client calcule le total localement et l'envoie tel quel; le serveur reste juge
du montant facturé. Fonctionne avec tout httpx.Client (TestClient compris).
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union

import httpx

from backend.billing import BillableItem, CheckoutSelection, EmptySelection, ItemKind
from backend.config import PAYMENT_SUCCESS_PATH
from backend.payments.base import PaymentStatus, ProviderKind
from backend.payments.paypal_client import capture_status
from backend.payments.stripe_client import map_status

logger = logging.getLogger(__name__)

# Étape de confirmation Stripe (Stripe.js côté navigateur, simulée en tests):
# reçoit le client_secret, renvoie le statut final du PaymentIntent.
Confirmer = Callable[[str], Union[str, PaymentStatus]]


class CheckoutState(str, Enum):
    IDLE = "idle"
    INTENT_REQUESTED = "intent_requested"
    INTENT_READY = "intent_ready"
    CONFIRMING = "confirming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REQUIRES_ACTION = "requires_action"


class InvalidTransition(RuntimeError):
    def __init__(self, current: CheckoutState, target: CheckoutState):
        super().__init__(f"Invalid checkout transition: {current.value} -> {target.value}")
        self.current = current
        self.target = target


_TRANSITIONS = {
    CheckoutState.IDLE: {CheckoutState.INTENT_REQUESTED},
    CheckoutState.INTENT_REQUESTED: {CheckoutState.INTENT_READY, CheckoutState.FAILED},
    CheckoutState.INTENT_READY: {CheckoutState.CONFIRMING, CheckoutState.IDLE},
    CheckoutState.CONFIRMING: {CheckoutState.SUCCEEDED, CheckoutState.FAILED, CheckoutState.REQUIRES_ACTION},
    CheckoutState.REQUIRES_ACTION: {CheckoutState.CONFIRMING, CheckoutState.FAILED},
    CheckoutState.SUCCEEDED: {CheckoutState.IDLE},
    CheckoutState.FAILED: {CheckoutState.IDLE},
}

# la sélection ne se modifie que hors paiement en cours
_EDITABLE_STATES = {CheckoutState.IDLE, CheckoutState.FAILED}


class CheckoutFlow:
    def __init__(
        self,
        http: httpx.Client,
        *,
        provider: ProviderKind = ProviderKind.STRIPE,
        success_path: str = PAYMENT_SUCCESS_PATH,
    ):
        self.http = http
        self.provider = ProviderKind(provider)
        self.success_path = success_path
        self.state = CheckoutState.IDLE
        self.selection = CheckoutSelection()
        self.intent: Dict[str, Any] = {}
        self.error: Optional[str] = None
        self.redirect_to: Optional[str] = None

    # --- transitions ---

    def _move(self, target: CheckoutState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        logger.debug("checkout %s -> %s", self.state.value, target.value)
        self.state = target

    def _fail(self, message: str) -> CheckoutState:
        self._move(CheckoutState.FAILED)
        self.error = message
        return self.state

    def _require_editable(self) -> None:
        if self.state not in _EDITABLE_STATES:
            raise InvalidTransition(self.state, CheckoutState.IDLE)

    # --- sélection ---

    @property
    def total_amount(self):
        return self.selection.total_amount

    def select_service(self, service: Dict[str, Any]) -> None:
        """Achat d'un service: remplace toute sélection précédente."""
        self._require_editable()
        self.selection.clear()
        self.selection.add(BillableItem.from_service(service))

    def toggle_invoice(self, invoice: Dict[str, Any]) -> bool:
        """Case à cocher d'une facture; retire un éventuel service déjà sélectionné."""
        self._require_editable()
        for service_id in self.selection.ids_of(ItemKind.SERVICE):
            self.selection.remove(ItemKind.SERVICE, service_id)
        return self.selection.toggle(BillableItem.from_invoice(invoice))

    def use_provider(self, kind: Union[ProviderKind, str]) -> None:
        """
        Bascule carte / PayPal. Le total local est conservé.
        Une intention déjà prête pour l'autre fournisseur est abandonnée (retour à Idle).
        """
        kind = ProviderKind(kind)
        if kind == self.provider:
            return
        if self.state == CheckoutState.INTENT_READY:
            self._move(CheckoutState.IDLE)
            self.intent = {}
        elif self.state not in _EDITABLE_STATES:
            raise InvalidTransition(self.state, CheckoutState.IDLE)
        self.provider = kind

    # --- intention ---

    def _intent_call(self) -> tuple:
        amount = float(self.selection.total_amount)
        if self.provider == ProviderKind.PAYPAL:
            return "/api/create-paypal-order", {"amount": amount}
        invoice_ids = self.selection.ids_of(ItemKind.INVOICE)
        if invoice_ids:
            return "/api/create-invoice-payment-intent", {"amount": amount, "invoiceIds": invoice_ids}
        service_ids = self.selection.ids_of(ItemKind.SERVICE)
        return "/api/create-payment-intent", {"amount": amount, "serviceId": service_ids[0]}

    def request_intent(self) -> CheckoutState:
        """
        Demande l'intention au serveur pour la sélection courante.
        - Stripe: clientSecret (+ paymentIntentId pour les factures)
        - PayPal: id de l'ordre
        - Réponse non 2xx: Failed, message serveur dans self.error
        """
        if len(self.selection) == 0:
            raise EmptySelection()
        self._move(CheckoutState.INTENT_REQUESTED)
        self.error = None
        path, payload = self._intent_call()
        try:
            resp = self.http.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.warning("checkout intent request failed: %s", e)
            return self._fail(str(e) or "Network error")
        body = _json(resp)
        if resp.status_code >= 400:
            return self._fail(body.get("message") or f"Request failed (status {resp.status_code})")

        if self.provider == ProviderKind.PAYPAL:
            self.intent = {"orderId": body.get("id"), "raw": body}
        else:
            self.intent = {"clientSecret": body.get("clientSecret"), "paymentIntentId": body.get("paymentIntentId")}
        self._move(CheckoutState.INTENT_READY)
        return self.state

    # --- confirmation ---

    def confirm(self, confirmer: Optional[Confirmer] = None) -> CheckoutState:
        """
        Confirme le paiement et lit un statut synchrone.
        - Stripe: confirmer(client_secret) -> "succeeded" | "requires_action" | "canceled" ...
        - PayPal: capture via POST /api/capture-paypal-order
        """
        if self.state != CheckoutState.INTENT_READY:
            raise InvalidTransition(self.state, CheckoutState.CONFIRMING)
        self._check_confirmer(confirmer)
        self._move(CheckoutState.CONFIRMING)
        return self._resolve(confirmer)

    def complete_action(self, confirmer: Optional[Confirmer] = None) -> CheckoutState:
        """Après le challenge (3-D Secure, approbation PayPal): relance la confirmation."""
        if self.state != CheckoutState.REQUIRES_ACTION:
            raise InvalidTransition(self.state, CheckoutState.CONFIRMING)
        self._check_confirmer(confirmer)
        self._move(CheckoutState.CONFIRMING)
        return self._resolve(confirmer)

    def _check_confirmer(self, confirmer: Optional[Confirmer]) -> None:
        if self.provider == ProviderKind.STRIPE and confirmer is None:
            raise ValueError("A confirmer is required for card payments")

    def _resolve(self, confirmer: Optional[Confirmer]) -> CheckoutState:
        if self.provider == ProviderKind.PAYPAL:
            status = self._capture_paypal()
        else:
            result = confirmer(self.intent.get("clientSecret") or "")
            status = result if isinstance(result, PaymentStatus) else map_status(result)
        return self._apply_status(status)

    def _capture_paypal(self) -> PaymentStatus:
        try:
            resp = self.http.post("/api/capture-paypal-order", json={"orderId": self.intent.get("orderId")})
        except httpx.HTTPError as e:
            self.error = str(e) or "Network error"
            return PaymentStatus.FAILED
        body = _json(resp)
        if resp.status_code >= 400:
            self.error = body.get("message") or f"Capture failed (status {resp.status_code})"
            return PaymentStatus.FAILED
        self.intent["capture"] = body
        return capture_status(body)

    def _apply_status(self, status: PaymentStatus) -> CheckoutState:
        if status == PaymentStatus.SUCCEEDED:
            self._move(CheckoutState.SUCCEEDED)
            self.redirect_to = self.success_path
        elif status == PaymentStatus.REQUIRES_ACTION:
            self._move(CheckoutState.REQUIRES_ACTION)
        else:
            self._fail(self.error or f"Payment {status.value}")
        return self.state

    def restart(self) -> CheckoutState:
        """
        Retour à Idle pour une nouvelle intention.
        Après un échec la sélection est conservée (nouvel essai); après un succès elle est vidée.
        """
        succeeded = self.state == CheckoutState.SUCCEEDED
        self._move(CheckoutState.IDLE)
        self.intent = {}
        self.error = None
        self.redirect_to = None
        if succeeded:
            self.selection.clear()
        return self.state


def _json(resp: httpx.Response) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
