"""
Modèle des éléments facturables (pas de Stripe, pas de HTTP).

- BillableItem: unité achetable (service du catalogue, facture, abonnement)
- CheckoutSelection: panier transitoire, unique par (kind, id), total recalculé à chaque mutation
- IntentRequest: demande d'intention de paiement indépendante du fournisseur
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import InvalidAmount

CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convertit un montant (int/float/str/Decimal) en Decimal sans dérive flottante.
    - Les floats passent par str() pour garder la valeur saisie (99.995 reste 99.995).
    - Soulève InvalidAmount si la valeur n'est pas un nombre fini.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount()
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount()
    if not amount.is_finite():
        raise InvalidAmount()
    return amount


def quantize_cents(amount: Decimal) -> Decimal:
    # au-delà de la précision du contexte (28 chiffres), quantize lève InvalidOperation
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise InvalidAmount()


class ItemKind(str, Enum):
    SERVICE = "service"
    INVOICE = "invoice"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class BillableItem:
    id: int
    kind: ItemKind
    description: str
    unit_amount: Decimal

    def __post_init__(self):
        amount = to_decimal(self.unit_amount)
        if amount <= 0:
            raise InvalidAmount(f"Amount must be positive for {self.kind.value} {self.id}")
        # frozen: passer par object.__setattr__ pour normaliser le type
        object.__setattr__(self, "unit_amount", amount)
        object.__setattr__(self, "kind", ItemKind(self.kind))

    @property
    def key(self) -> Tuple[ItemKind, int]:
        return (self.kind, self.id)

    @classmethod
    def from_service(cls, service: Dict[str, Any]) -> "BillableItem":
        """Construit l'élément depuis une entrée du catalogue (prix fixe en dollars)."""
        return cls(
            id=int(service["id"]),
            kind=ItemKind.SERVICE,
            description=str(service.get("name") or ""),
            unit_amount=service.get("price"),
        )

    @classmethod
    def from_invoice(cls, invoice: Dict[str, Any]) -> "BillableItem":
        """Construit l'élément depuis une facture (montant dû)."""
        label = invoice.get("invoiceNumber") or invoice.get("id")
        return cls(
            id=int(invoice["id"]),
            kind=ItemKind.INVOICE,
            description=f"{label} - {invoice.get('description') or ''}".strip(" -"),
            unit_amount=invoice.get("amount"),
        )


@dataclass
class CheckoutSelection:
    """
    Sélection transitoire côté client (jamais persistée côté serveur).
    total_amount est recalculé à chaque mutation, arrondi au centime (half-up).
    """
    _items: Dict[Tuple[ItemKind, int], BillableItem] = field(default_factory=dict)
    total_amount: Decimal = field(default=Decimal("0.00"))

    @classmethod
    def of(cls, items: Iterable[BillableItem]) -> "CheckoutSelection":
        selection = cls()
        for item in items:
            selection.add(item)
        return selection

    @property
    def items(self) -> List[BillableItem]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item: BillableItem) -> bool:
        return item.key in self._items

    def add(self, item: BillableItem) -> bool:
        """Ajoute l'élément s'il n'est pas déjà présent. Retourne True si ajouté."""
        if item.key in self._items:
            return False
        self._items[item.key] = item
        self._recompute()
        return True

    def remove(self, kind: ItemKind, item_id: int) -> Optional[BillableItem]:
        removed = self._items.pop((ItemKind(kind), int(item_id)), None)
        if removed is not None:
            self._recompute()
        return removed

    def toggle(self, item: BillableItem) -> bool:
        """Sélection par case à cocher: retourne True si l'élément est maintenant sélectionné."""
        if item.key in self._items:
            self.remove(item.kind, item.id)
            return False
        return self.add(item)

    def clear(self) -> None:
        self._items.clear()
        self._recompute()

    def kinds(self) -> set:
        return {item.kind for item in self._items.values()}

    def ids_of(self, kind: ItemKind) -> List[int]:
        return [item.id for item in self._items.values() if item.kind == kind]

    def _recompute(self) -> None:
        total = sum((item.unit_amount for item in self._items.values()), Decimal("0"))
        self.total_amount = quantize_cents(total)


@dataclass(frozen=True)
class IntentRequest:
    amount_minor_units: int
    currency: str
    metadata: Dict[str, str]

    @property
    def amount_major(self) -> Decimal:
        """Montant en unités majeures (dollars) pour les fournisseurs qui l'exigent (PayPal)."""
        return (Decimal(self.amount_minor_units) / 100).quantize(CENTS)
