"""
Schémas des corps de requête du checkout (validation explicite à la frontière).

parse_body() transforme les erreurs pydantic en ValidationError (HTTP 400, {message})
avant toute logique métier.
"""
from typing import Any, ClassVar, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from .exceptions import ValidationError

AMOUNT_REQUIRED = "Valid amount is required"

ModelT = TypeVar("ModelT", bound="CheckoutBody")


class CheckoutBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # message renvoyé au client par champ en erreur (clé = alias JSON)
    error_messages: ClassVar[Dict[str, str]] = {}


class AmountBody(CheckoutBody):
    amount: float

    error_messages: ClassVar[Dict[str, str]] = {"amount": AMOUNT_REQUIRED}

    @field_validator("amount", mode="before")
    @classmethod
    def amount_is_number(cls, v: Any) -> Any:
        # True/False seraient acceptés comme 1.0/0.0 en mode lax
        if v is None or isinstance(v, bool):
            raise ValueError(AMOUNT_REQUIRED)
        return v

    @field_validator("amount")
    @classmethod
    def amount_positive(cls, v: float) -> float:
        if not v > 0:
            raise ValueError(AMOUNT_REQUIRED)
        return v


class CreatePaymentIntentBody(AmountBody):
    service_id: int = Field(alias="serviceId")

    error_messages: ClassVar[Dict[str, str]] = {
        "amount": AMOUNT_REQUIRED,
        "serviceId": "Valid serviceId is required",
    }


class CreateInvoicePaymentIntentBody(AmountBody):
    invoice_ids: List[int] = Field(alias="invoiceIds")

    error_messages: ClassVar[Dict[str, str]] = {
        "amount": AMOUNT_REQUIRED,
        "invoiceIds": "At least one invoice must be selected",
    }

    @field_validator("invoice_ids")
    @classmethod
    def invoice_ids_not_empty(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("At least one invoice must be selected")
        return v


class CreatePayPalOrderBody(AmountBody):
    is_test_payment: bool = Field(default=False, alias="isTestPayment")


class CapturePayPalOrderBody(CheckoutBody):
    order_id: str = Field(alias="orderId")

    error_messages: ClassVar[Dict[str, str]] = {"orderId": "Order ID is required"}

    @field_validator("order_id")
    @classmethod
    def order_id_present(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("Order ID is required")
        return v


def parse_body(model: Type[ModelT], data: Optional[Any]) -> ModelT:
    """
    Valide un corps JSON brut contre le schéma.
    - Corps absent ou non-objet: traité comme {}
    - Première erreur -> ValidationError(message spécifique au champ)
    """
    if not isinstance(data, dict):
        data = {}
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = (e.errors() or [{}])[0]
        loc = first.get("loc") or ()
        field_name = str(loc[0]) if loc else ""
        message = model.error_messages.get(field_name) or f"Invalid request body: {field_name or 'body'}"
        raise ValidationError(message) from e
