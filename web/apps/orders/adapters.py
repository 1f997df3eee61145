"""In-process stub adapters for the orders domain ports.

These stubs implement the inventory, payments and product lookup ports
without any network calls, plus an in-memory ``OrderStore``. They are
intended for unit tests and local development where deterministic
behavior is useful and external services are not required.
"""

import itertools
import uuid
from dataclasses import replace
from decimal import Decimal
from typing import Dict, Optional

from .domain import (
    InventoryPort,
    Order,
    OrderStore,
    PaymentResult,
    PaymentsPort,
    ProductDetails,
    ProductLookupPort,
    UpstreamServiceError,
)


class InventoryStub(InventoryPort):
    """Stub implementation of ``InventoryPort``.

    Approves reservations when the quantity is between 1 and 10
    (inclusive). This is a deterministic rule for testing purposes.
    """

    def reduce(self, product_id: int, quantity: int) -> None:
        """Reserve stock or raise like the product service would.

        Raises:
            UpstreamServiceError: 'INSUFFICIENT_QUANTITY' (400) when
                ``quantity`` is outside [1, 10].
        """
        if not 1 <= quantity <= 10:
            raise UpstreamServiceError(
                "Product does not have sufficient quantity", "INSUFFICIENT_QUANTITY", 400
            )


class PaymentsStub(PaymentsPort):
    """Stub implementation of ``PaymentsPort``.

    Approves charges with a positive amount and returns a generated UUID
    as the payment reference. Non-positive amounts are declined.
    """

    def pay(self, order_id: int, amount: Decimal, payment_mode: str) -> PaymentResult:
        if amount <= 0:
            return PaymentResult.failure("PAYMENT_DECLINED")
        return PaymentResult.success(str(uuid.uuid4()))


class ProductLookupStub(ProductLookupPort):
    """Returns a product named after its id."""

    def get_product_by_id(self, product_id: int) -> ProductDetails:
        return ProductDetails(product_id=product_id, product_name=f"Product {product_id}")


class InMemoryOrderStore(OrderStore):
    """Dict-backed ``OrderStore`` assigning sequential ids from ``start``.

    Stored orders are copies, so callers mutating their instance do not
    change persisted state until they ``save`` again.
    """

    def __init__(self, start: int = 1):
        self._ids = itertools.count(start)
        self.rows: Dict[int, Order] = {}

    def save(self, order: Order) -> Order:
        if order.id is None:
            order.id = next(self._ids)
        self.rows[order.id] = replace(order)
        return order

    def find_by_id(self, order_id: int) -> Optional[Order]:
        row = self.rows.get(order_id)
        return replace(row) if row else None
