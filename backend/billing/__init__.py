"""
Module 'billing': éléments facturables, sélection et construction d'intention.
"""

from .exceptions import BillingError, EmptySelection, InvalidAmount, UnknownBillableItem
from .models import BillableItem, CheckoutSelection, IntentRequest, ItemKind
from .builder import build_intent_request, build_metadata, to_minor_units

__all__ = [
    "BillingError",
    "EmptySelection",
    "InvalidAmount",
    "UnknownBillableItem",
    "BillableItem",
    "CheckoutSelection",
    "IntentRequest",
    "ItemKind",
    "build_intent_request",
    "build_metadata",
    "to_minor_units",
]
