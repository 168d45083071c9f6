# trading/models/ledger.py

from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .base import TimestampMixin
from .fields import ExactDecimalField


class ImmutableRecordError(Exception):
    """Raised when code tries to change or remove an executed order."""


class Stock(TimestampMixin):
    """Tradable symbol (e.g., AAPL). Reference data, created lazily on first BUY."""
    symbol = models.CharField(max_length=16, unique=True)
    name = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        ordering = ["symbol"]

    def __str__(self):
        return self.symbol

    # Normalization & basic validation
    def clean(self):
        super().clean()
        self.symbol = (self.symbol or "").strip().upper()
        if not self.symbol:
            raise ValidationError("symbol is required")

    def save(self, *args, **kwargs):
        self.symbol = (self.symbol or "").strip().upper()
        if not self.name:
            self.name = self.symbol
        super().save(*args, **kwargs)


class Wallet(TimestampMixin):
    """Cash balance of one user. Never negative."""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wallet")
    balance = ExactDecimalField(max_digits=28, decimal_places=8, default=Decimal("0"))

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(balance__gte=0), name="wallet_balance_non_negative"),
        ]

    def __str__(self):
        return f"Wallet({self.user_id}): {self.balance}"


class Holding(TimestampMixin):
    """Shares of one stock owned by one user. Deleted instead of reaching zero."""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="holdings")
    stock = models.ForeignKey(Stock, on_delete=models.PROTECT, related_name="holdings")
    quantity = models.PositiveBigIntegerField()
    average_price = ExactDecimalField(max_digits=28, decimal_places=10)

    class Meta:
        ordering = ["stock__symbol"]
        constraints = [
            models.UniqueConstraint(fields=["user", "stock"], name="holding_unique_user_stock"),
            models.CheckConstraint(condition=Q(quantity__gt=0), name="holding_quantity_positive"),
        ]

    def __str__(self):
        return f"{self.quantity} {self.stock.symbol} @ {self.average_price}"

    @property
    def cost_basis(self) -> Decimal:
        return self.average_price * self.quantity


class Order(models.Model):
    """
    Executed trade. Written once, never updated or deleted.

    Queryset-level update()/delete() bypass these guards; nothing in the
    ledger uses them on orders.
    """

    SIDE_CHOICES = [("BUY", "Buy"), ("SELL", "Sell")]
    STATUS_CHOICES = [("completed", "Completed")]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="orders")
    stock = models.ForeignKey(Stock, on_delete=models.PROTECT, related_name="orders")
    side = models.CharField(max_length=4, choices=SIDE_CHOICES)
    quantity = models.PositiveBigIntegerField()
    price = ExactDecimalField(max_digits=20, decimal_places=8)
    total_amount = ExactDecimalField(max_digits=28, decimal_places=8)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="completed")
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "created_at"], name="order_user_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="order_quantity_positive"),
            models.CheckConstraint(condition=Q(price__gt=0), name="order_price_positive"),
        ]

    def __str__(self):
        return f"{self.side} {self.quantity} {self.stock.symbol} @ {self.price}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableRecordError(f"Order {self.pk} is immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableRecordError(f"Order {self.pk} cannot be deleted")
