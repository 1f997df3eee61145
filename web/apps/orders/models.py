from django.db import models
from django.utils import timezone


class OrderModel(models.Model):
    # Identificador asignado por la base de datos, expuesto en la API
    id = models.BigAutoField(primary_key=True)

    class Status(models.TextChoices):
        CREATED = "CREATED"
        PLACED = "PLACED"
        PAYMENT_FAILED = "PAYMENT_FAILED"

    product_id = models.BigIntegerField()
    quantity = models.PositiveIntegerField()
    order_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(max_length=32, choices=Status.choices, default=Status.CREATED)
    amount = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "orders"
        ordering = ["-id"]
