"""
Erreurs métier de la facturation (panier / construction d'intention).
Indépendantes de HTTP: la couche payments les traduit en réponses 400.
"""


class BillingError(ValueError):
    """Base des erreurs de sélection/montant."""


class EmptySelection(BillingError):
    def __init__(self, message: str = "At least one item must be selected"):
        super().__init__(message)


class InvalidAmount(BillingError):
    def __init__(self, message: str = "Valid amount is required"):
        super().__init__(message)


class UnknownBillableItem(BillingError):
    """Référence (service/facture) introuvable ou non payable."""
