"""Marketplace user model.

Business rules implemented:
- Every account is either a farmer (sells) or a buyer (orders).
- ``rating_average`` is a running mean over ``rating_count`` ratings
  received on completed orders, rounded to one decimal place.
"""

from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class UserRole(models.TextChoices):
    FARMER = "farmer", "Campesino"
    BUYER = "buyer", "Comprador"


class User(AbstractUser):
    """Account used for authentication and as order counterparty."""

    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.BUYER,
    )
    phone = models.CharField(max_length=20, blank=True, default="")
    rating_average = models.DecimalField(
        max_digits=2,
        decimal_places=1,
        default=Decimal("0.0"),
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    rating_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "users"
        indexes = [
            models.Index(fields=["role"], name="users_role_idx"),
        ]

    @property
    def is_farmer(self) -> bool:
        return self.role == UserRole.FARMER

    @property
    def is_buyer(self) -> bool:
        return self.role == UserRole.BUYER

    def __str__(self) -> str:
        return f"{self.get_username()} ({self.role})"
