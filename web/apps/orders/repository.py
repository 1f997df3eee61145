"""Repository layer for persisting orders.

This module contains the Django ORM implementation of the ``OrderStore``
port. It keeps a thin interface so the domain layer is not coupled to
Django ORM details: rows are mapped to and from the domain ``Order``.
"""

from typing import Optional

from .models import OrderModel
from .domain import Order, OrderStatus, OrderStore


class OrderRepository(OrderStore):
    """Repository that persists Order domain objects using Django ORM."""

    def save(self, order: Order) -> Order:
        """Insert or update an order row.

        A new row is created when ``order.id`` is None and the assigned
        primary key is written back to the domain object. Otherwise the
        existing row is updated; it is never re-created.

        Args:
            order: Domain ``Order`` instance to persist.

        Returns:
            The same ``Order`` instance, with ``id`` populated.

        Raises:
            OrderModel.DoesNotExist: When updating an id with no row.
        """
        fields = {
            "product_id": order.product_id,
            "quantity": order.quantity,
            "amount": order.amount,
            "status": order.status.value if isinstance(order.status, OrderStatus) else order.status,
        }
        if order.order_date is not None:
            fields["order_date"] = order.order_date

        if order.id is None:
            obj = OrderModel.objects.create(**fields)
            order.id = obj.id
            order.order_date = obj.order_date
        else:
            updated = OrderModel.objects.filter(id=order.id).update(**fields)
            if not updated:
                raise OrderModel.DoesNotExist(f"Order {order.id} no longer exists")
        return order

    def find_by_id(self, order_id: int) -> Optional[Order]:
        obj = OrderModel.objects.filter(id=order_id).first()
        if obj is None:
            return None
        return Order(
            id=obj.id,
            product_id=obj.product_id,
            quantity=obj.quantity,
            amount=obj.amount,
            order_date=obj.order_date,
            status=OrderStatus(obj.status),
        )
