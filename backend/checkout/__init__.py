"""
Module 'checkout': parcours de paiement côté client (sélection, intention, confirmation).
"""

from .flow import CheckoutFlow, CheckoutState, InvalidTransition

__all__ = ["CheckoutFlow", "CheckoutState", "InvalidTransition"]
