"""Service provider helpers for wiring OrderService with ports.

This module exposes a small factory function `get_order_service` that
returns a configured `OrderService` instance. Orders are always persisted
through the Django `OrderRepository`. The inventory, payments and product
lookup ports use the HTTP adapter clients when `settings.USE_HTTP_ADAPTERS`
is truthy, and fast in-process stubs otherwise (tests and local
development).
"""

from django.conf import settings

from .adapters import InventoryStub, PaymentsStub, ProductLookupStub
from .domain import OrderService
from .http_adapters import HttpInventoryClient, HttpPaymentsClient, HttpProductLookup
from .repository import OrderRepository


def get_order_service() -> OrderService:
    """Return a configured OrderService instance.

    Returns:
        OrderService: A service instance with appropriate ports.
    """
    if getattr(settings, "USE_HTTP_ADAPTERS", True):
        return OrderService(
            store=OrderRepository(),
            inventory=HttpInventoryClient(),
            payments=HttpPaymentsClient(),
            lookup=HttpProductLookup(),
        )

    return OrderService(
        store=OrderRepository(),
        inventory=InventoryStub(),
        payments=PaymentsStub(),
        lookup=ProductLookupStub(),
    )
