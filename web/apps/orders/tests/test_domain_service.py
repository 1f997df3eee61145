"""Unit tests for the OrderService domain orchestration.

These tests validate placing orders under different conditions (happy
path, payment failure, refused reservation, persistence failure) and
reading them back. Stubbed ports are used to deterministically drive
outcomes; no database is involved.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from apps.orders.adapters import InMemoryOrderStore
from apps.orders.domain import (
    Order,
    OrderNotFound,
    OrderRequest,
    OrderService,
    OrderStatus,
    PaymentResult,
    ProductDetails,
    UpstreamServiceError,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class StubInventoryOK:
    """Inventory stub that always reserves successfully."""
    def __init__(self): self.calls = []
    def reduce(self, product_id, quantity): self.calls.append((product_id, quantity))

class StubInventoryFail:
    """Inventory stub that refuses every reservation."""
    def reduce(self, product_id, quantity):
        raise UpstreamServiceError("Product does not have sufficient quantity", "INSUFFICIENT_QUANTITY", 400)

class StubPaymentsOK:
    """Payments stub that always approves charges."""
    def __init__(self): self.calls = []
    def pay(self, order_id, amount, payment_mode):
        self.calls.append((order_id, amount, payment_mode))
        return PaymentResult.success("tx-1")

class StubPaymentsFail:
    """Payments stub that always declines charges."""
    def __init__(self): self.calls = []
    def pay(self, order_id, amount, payment_mode):
        self.calls.append((order_id, amount, payment_mode))
        return PaymentResult.failure("PAYMENT_DECLINED")

class StubLookup:
    def __init__(self, name="iPhone"): self.name = name; self.calls = []
    def get_product_by_id(self, product_id):
        self.calls.append(product_id)
        return ProductDetails(product_id=product_id, product_name=self.name)

class RecordingStore(InMemoryOrderStore):
    """In-memory store that remembers the status of every save."""
    def __init__(self, start=1):
        super().__init__(start)
        self.saved_statuses = []
    def save(self, order):
        self.saved_statuses.append(order.status)
        return super().save(order)

class BrokenStore:
    def save(self, order): raise RuntimeError("db down")
    def find_by_id(self, order_id): return None


def _service(store=None, inventory=None, payments=None, lookup=None):
    return OrderService(
        store=store or InMemoryOrderStore(),
        inventory=inventory or StubInventoryOK(),
        payments=payments or StubPaymentsOK(),
        lookup=lookup or StubLookup(),
        clock=lambda: FIXED_NOW,
    )

def _request(**kw):
    data = dict(product_id=42, quantity=2, total_amount=Decimal("19.98"), payment_mode="CARD")
    data.update(kw)
    return OrderRequest(**data)


def test_place_order_ok():
    """Happy path: reservation and payment succeed, order ends PLACED."""
    store = RecordingStore()
    inventory, payments = StubInventoryOK(), StubPaymentsOK()
    service = _service(store=store, inventory=inventory, payments=payments)

    oid = service.place_order(_request())

    assert oid is not None
    assert inventory.calls == [(42, 2)]
    assert payments.calls == [(oid, Decimal("19.98"), "CARD")]
    persisted = store.find_by_id(oid)
    assert persisted.status == OrderStatus.PLACED
    assert persisted.order_date == FIXED_NOW
    assert persisted.amount == Decimal("19.98")
    assert store.saved_statuses == [OrderStatus.CREATED, OrderStatus.PLACED]

def test_place_order_payment_failed_returns_id_and_marks_order():
    """Payment failure is not raised: the order is stored as PAYMENT_FAILED."""
    store = RecordingStore()
    service = _service(store=store, payments=StubPaymentsFail())

    oid = service.place_order(_request())

    assert store.find_by_id(oid).status == OrderStatus.PAYMENT_FAILED
    assert store.saved_statuses == [OrderStatus.CREATED, OrderStatus.PAYMENT_FAILED]

def test_place_order_example_scenario_order_101():
    """Order 101 with a failing payment ends PAYMENT_FAILED and 101 is returned."""
    store = InMemoryOrderStore(start=101)
    payments = StubPaymentsFail()
    service = _service(store=store, payments=payments)

    oid = service.place_order(_request())

    assert oid == 101
    assert payments.calls == [(101, Decimal("19.98"), "CARD")]
    assert store.find_by_id(101).status == OrderStatus.PAYMENT_FAILED

def test_place_order_insufficient_stock_creates_nothing():
    """A refused reservation propagates and leaves no order behind."""
    store = InMemoryOrderStore()
    payments = StubPaymentsOK()
    service = _service(store=store, inventory=StubInventoryFail(), payments=payments)

    with pytest.raises(UpstreamServiceError) as e:
        service.place_order(_request(quantity=99))

    assert e.value.code == "INSUFFICIENT_QUANTITY"
    assert e.value.status == 400
    assert store.rows == {}
    assert payments.calls == []

def test_place_order_persistence_failure_propagates():
    """Store errors are not swallowed and payment is never attempted."""
    payments = StubPaymentsOK()
    service = _service(store=BrokenStore(), payments=payments)
    with pytest.raises(RuntimeError):
        service.place_order(_request())
    assert payments.calls == []

def test_status_transitions_are_one_way():
    order = Order(id=1, product_id=1, quantity=1, amount=Decimal("1.00"))
    order.transition_to(OrderStatus.PLACED)
    with pytest.raises(ValueError) as e:
        order.transition_to(OrderStatus.PAYMENT_FAILED)
    assert str(e.value) == "INVALID_STATUS_TRANSITION"

def test_get_order_details_not_found():
    service = _service()
    with pytest.raises(OrderNotFound) as e:
        service.get_order_details(404404)
    assert e.value.code == "NOT_FOUND"
    assert e.value.status == 404
    assert "404404" in e.value.message

def test_get_order_details_enriches_with_product():
    """Details combine the stored order with a freshly fetched product name."""
    store = InMemoryOrderStore()
    lookup = StubLookup(name="Macbook")
    service = _service(store=store, lookup=lookup)
    oid = service.place_order(_request())

    out = service.get_order_details(oid)

    assert lookup.calls == [42]
    assert out.order_id == oid
    assert out.status == OrderStatus.PLACED
    assert out.amount == Decimal("19.98")
    assert out.order_date == FIXED_NOW
    assert out.product_details == ProductDetails(product_id=42, product_name="Macbook")

def test_get_order_details_lookup_failure_propagates():
    class FailingLookup:
        def get_product_by_id(self, product_id):
            raise UpstreamServiceError("Product not found", "PRODUCT_NOT_FOUND", 404)

    store = InMemoryOrderStore()
    service = _service(store=store, lookup=FailingLookup())
    oid = service.place_order(_request())
    with pytest.raises(UpstreamServiceError) as e:
        service.get_order_details(oid)
    assert e.value.code == "PRODUCT_NOT_FOUND"
