"""Domain models, ports and service for orders.

This module contains simple dataclasses used as DTOs for orders, protocol
definitions (ports) for the collaborators the service depends on (order
store, inventory, payments and product lookup), the error types surfaced to
callers, and the domain service that orchestrates placing an order and
reading it back.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)


# ---- Enums ----
class OrderStatus(str, Enum):
    """Enumeration of the possible order statuses.

    An order is created as CREATED and moves exactly once, to PLACED or
    PAYMENT_FAILED, depending on the payment outcome."""

    CREATED = "CREATED"
    PLACED = "PLACED"
    PAYMENT_FAILED = "PAYMENT_FAILED"


_ALLOWED_TRANSITIONS = {
    OrderStatus.CREATED: {OrderStatus.PLACED, OrderStatus.PAYMENT_FAILED},
}


# ---- Errors ----
class OrderServiceError(Exception):
    """Base error carrying a symbolic code and an HTTP-style status.

    Attributes:
        message: Human readable description.
        code: Symbolic error code (e.g. 'NOT_FOUND').
        status: HTTP status the API layer should answer with.
    """

    def __init__(self, message: str, code: str, status: int = 500):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class OrderNotFound(OrderServiceError):
    """Raised when an order id is unknown to the store."""

    def __init__(self, order_id: int):
        super().__init__(f"Order not found for the order Id: {order_id}", "NOT_FOUND", 404)
        self.order_id = order_id


class UpstreamServiceError(OrderServiceError):
    """Error response decoded from a collaborator service."""


class UpstreamUnavailable(OrderServiceError):
    """A collaborator cannot be reached (circuit open, unknown service)."""

    def __init__(self, message: str, code: str = "UPSTREAM_UNAVAILABLE"):
        super().__init__(message, code, 503)


# ---- Entities / DTOs ----
@dataclass
class Order:
    """Container for order data.

    Attributes:
        id: Identifier assigned by the store, or None if not yet saved.
        product_id: Identifier of the ordered product.
        quantity: Number of units ordered.
        amount: Total amount charged for the order.
        order_date: When the order was accepted.
        status: Current OrderStatus.
    """

    id: int | None
    product_id: int
    quantity: int
    amount: Decimal
    order_date: datetime | None = None
    status: OrderStatus = OrderStatus.CREATED

    def transition_to(self, status: OrderStatus) -> None:
        """Move the order to ``status``.

        Raises:
            ValueError: 'INVALID_STATUS_TRANSITION' when the move is not one
                of CREATED -> PLACED or CREATED -> PAYMENT_FAILED.
        """
        if status not in _ALLOWED_TRANSITIONS.get(self.status, set()):
            raise ValueError("INVALID_STATUS_TRANSITION")
        self.status = status


@dataclass(frozen=True)
class OrderRequest:
    """Input for placing an order. Values are trusted as given."""

    product_id: int
    quantity: int
    total_amount: Decimal
    payment_mode: str


@dataclass(frozen=True)
class ProductDetails:
    product_id: int
    product_name: str


@dataclass(frozen=True)
class OrderResponse:
    """Order as shown to clients, enriched with fresh product details."""

    order_id: int
    order_date: datetime | None
    status: OrderStatus
    amount: Decimal
    product_details: ProductDetails


@dataclass(frozen=True)
class PaymentResult:
    """Outcome of a payment attempt.

    Attributes:
        ok: True when the charge went through.
        reference: Identifier returned by the payment service, if any.
        error: Short error code when ``ok`` is False.
    """

    ok: bool
    reference: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, reference: Optional[str] = None) -> "PaymentResult":
        return cls(ok=True, reference=reference)

    @classmethod
    def failure(cls, error: str) -> "PaymentResult":
        return cls(ok=False, error=error)


# ---- Ports (DIP) ----
class OrderStore(Protocol):
    """Port describing order persistence.

    The store owns identifier assignment: ``save`` returns the order with
    ``id`` populated. Saving an order that already has an id updates it.
    """

    def save(self, order: Order) -> Order:
        raise NotImplementedError()

    def find_by_id(self, order_id: int) -> Optional[Order]:
        raise NotImplementedError()


class InventoryPort(Protocol):
    """Port describing stock reservation in the product service."""

    def reduce(self, product_id: int, quantity: int) -> None:
        """Reserve ``quantity`` units of ``product_id``.

        Raises:
            OrderServiceError: When the reservation is refused or the
                product service fails. Transport errors propagate as is.
        """
        raise NotImplementedError()


class PaymentsPort(Protocol):
    """Port describing payment operations used by the domain.

    Implementers report failures through the returned PaymentResult rather
    than by raising.
    """

    def pay(self, order_id: int, amount: Decimal, payment_mode: str) -> PaymentResult:
        raise NotImplementedError()


class ProductLookupPort(Protocol):
    """Port for reading product details from the product service."""

    def get_product_by_id(self, product_id: int) -> ProductDetails:
        raise NotImplementedError()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---- Domain service ----
class OrderService:
    """Domain service responsible for placing and reading orders.

    The sequence is strictly linear: reserve stock, persist the order,
    charge payment, persist the final status. Only the payment step
    recovers locally; every other failure reaches the caller.

    Note:
        A reservation is not released when the payment fails. Stock
        reconciliation for PAYMENT_FAILED orders happens outside this
        service.
    """

    def __init__(
        self,
        store: OrderStore,
        inventory: InventoryPort,
        payments: PaymentsPort,
        lookup: ProductLookupPort,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize the service with required dependencies.

        Args:
            store: OrderStore used to persist orders.
            inventory: InventoryPort used to reserve stock.
            payments: PaymentsPort used to charge customers.
            lookup: ProductLookupPort used to enrich order details.
            clock: Callable returning the current time, for order dates.
        """
        self.store = store
        self.inventory = inventory
        self.payments = payments
        self.lookup = lookup
        self.clock = clock

    def place_order(self, request: OrderRequest) -> int:
        """Place an order and return its identifier.

        Args:
            request: OrderRequest with product, quantity, amount and mode.

        Returns:
            The identifier of the persisted order. It is returned whether
            the payment succeeded (status PLACED) or not (PAYMENT_FAILED).

        Raises:
            OrderServiceError: If the stock reservation is refused; no
                order is created in that case.
            Exception: Anything raised by the store or by the inventory
                transport is propagated untouched.
        """
        logger.info(
            "Placing order request",
            extra={"product_id": request.product_id, "quantity": request.quantity},
        )

        # 1) Reserve stock
        self.inventory.reduce(request.product_id, request.quantity)

        # 2) Persist as CREATED
        logger.info("Creating order with status CREATED")
        order = Order(
            id=None,
            product_id=request.product_id,
            quantity=request.quantity,
            amount=request.total_amount,
            order_date=self.clock(),
        )
        order = self.store.save(order)

        # 3) Charge payment
        logger.info("Calling payment service", extra={"order_id": order.id})
        result = self.payments.pay(order.id, request.total_amount, request.payment_mode)
        if result.ok:
            order.transition_to(OrderStatus.PLACED)
        else:
            logger.error(
                "Payment failed, marking order as PAYMENT_FAILED",
                extra={"order_id": order.id, "error": result.error},
            )
            order.transition_to(OrderStatus.PAYMENT_FAILED)

        # 4) Persist final status
        self.store.save(order)
        logger.info("Order processed", extra={"order_id": order.id, "status": order.status.value})
        return order.id

    def get_order_details(self, order_id: int) -> OrderResponse:
        """Return an order together with its product details.

        Raises:
            OrderNotFound: If no order exists for ``order_id``.
        """
        logger.info("Getting order details", extra={"order_id": order_id})
        order = self.store.find_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)

        logger.info("Fetching product details", extra={"product_id": order.product_id})
        product = self.lookup.get_product_by_id(order.product_id)

        return OrderResponse(
            order_id=order.id,
            order_date=order.order_date,
            status=order.status,
            amount=order.amount,
            product_details=ProductDetails(
                product_id=product.product_id,
                product_name=product.product_name,
            ),
        )
