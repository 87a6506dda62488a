"""
Construction pure d'une demande d'intention de paiement (pas d'effet de bord).
"""
import json
from decimal import Decimal
from typing import Any, Dict, Optional

from backend.config import PAYMENT_CURRENCY
from .exceptions import EmptySelection, InvalidAmount
from .models import CheckoutSelection, IntentRequest, ItemKind, quantize_cents, to_decimal


def to_minor_units(amount: Any) -> int:
    """
    Convertit un montant en unités mineures (centimes).
    - Arrondi au centime en half-up (99.995 -> 100.00 -> 10000), jamais en arrondi bancaire.
    """
    return int(quantize_cents(to_decimal(amount)) * 100)


def build_metadata(selection: CheckoutSelection, user_id: Optional[Any]) -> Dict[str, str]:
    """
    Métadonnées attachées à l'intention côté fournisseur (valeurs str uniquement).
    - userId si connu
    - un seul service: serviceId
    - factures: invoiceIds (JSON) + paymentType="invoice"
    """
    metadata: Dict[str, str] = {}
    if user_id is not None and str(user_id) != "":
        metadata["userId"] = str(user_id)

    kinds = selection.kinds()
    if kinds == {ItemKind.INVOICE}:
        metadata["invoiceIds"] = json.dumps(selection.ids_of(ItemKind.INVOICE))
        metadata["paymentType"] = "invoice"
    elif kinds == {ItemKind.SERVICE} and len(selection) == 1:
        metadata["serviceId"] = str(selection.ids_of(ItemKind.SERVICE)[0])
        metadata["paymentType"] = "service"
    elif len(kinds) == 1:
        metadata["paymentType"] = next(iter(kinds)).value
    else:
        metadata["paymentType"] = "mixed"
    return metadata


def build_intent_request(
    selection: CheckoutSelection,
    user_id: Optional[Any],
    *,
    extra_metadata: Optional[Dict[str, str]] = None,
) -> IntentRequest:
    """
    Transforme une sélection en IntentRequest {amount_minor_units, currency, metadata}.
    - EmptySelection si aucun élément
    - InvalidAmount si le total calculé est <= 0
    """
    if len(selection) == 0:
        raise EmptySelection()
    total: Decimal = selection.total_amount
    if total <= 0:
        raise InvalidAmount()

    metadata = build_metadata(selection, user_id)
    if extra_metadata:
        metadata.update({str(k): str(v) for k, v in extra_metadata.items()})
    return IntentRequest(
        amount_minor_units=to_minor_units(total),
        currency=PAYMENT_CURRENCY,
        metadata=metadata,
    )
