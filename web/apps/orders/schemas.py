"""Pydantic schemas for orders.

This module exposes the request/response schemas used by the orders API
and the payloads exchanged with the product and payment services. JSON
field names are camelCase; Python attributes are snake_case.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class PaymentMode(str, Enum):
    CASH = "CASH"
    PAYPAL = "PAYPAL"
    DEBIT_CARD = "DEBIT_CARD"
    CREDIT_CARD = "CREDIT_CARD"
    APPLE_PAY = "APPLE_PAY"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlaceOrderDTO(CamelModel):
    """Schema for placing an order.

    Attributes:
        product_id: Identifier of the product to order (> 0).
        quantity: Positive integer indicating units requested.
        total_amount: Total amount to charge (> 0, two decimals).
        payment_mode: One of the supported ``PaymentMode`` values.
            Normalized to uppercase.
    """

    product_id: int = Field(gt=0)
    quantity: int = Field(gt=0)
    total_amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    payment_mode: PaymentMode

    @field_validator("payment_mode", mode="before")
    @classmethod
    def normalize_payment_mode(cls, v):
        """Uppercase string payment modes before enum validation."""
        return v.upper() if isinstance(v, str) else v


class ProductDetailsDTO(CamelModel):
    product_id: int
    product_name: str


class OrderReadDTO(CamelModel):
    """Read model returned by the order details endpoint."""

    order_id: int
    order_date: datetime | None = None
    order_status: str
    amount: Decimal
    product_details: ProductDetailsDTO


class ProductResponseDTO(CamelModel):
    """Product as returned by the product service.

    Only ``productId`` and ``productName`` are kept; price and stock
    fields are ignored.
    """

    product_id: int
    product_name: str


class PaymentRequestDTO(CamelModel):
    """Body sent to the payment service."""

    order_id: int
    amount: Decimal
    payment_mode: str


class ErrorResponseDTO(CamelModel):
    """Error body shared by the API and the collaborator services."""

    error_message: str
    error_code: str
