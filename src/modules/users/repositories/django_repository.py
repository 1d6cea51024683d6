"""Django ORM implementation of the User repository."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction

from modules.users.models import User
from modules.users.repositories.interfaces import IUserRepository

logger = structlog.get_logger(__name__)

RATING_PRECISION = Decimal("0.1")


def incremental_average(average: Decimal, count: int, stars: int) -> Decimal:
    """Weighted incremental mean of ``count`` ratings plus one new rating."""
    total = Decimal(average) * count + Decimal(stars)
    return (total / (count + 1)).quantize(RATING_PRECISION, rounding=ROUND_HALF_UP)


class UserDjangoRepository(IUserRepository):
    """Concrete User repository backed by Django ORM."""

    def get_by_id(self, id: Any) -> Optional[User]:
        try:
            return User.objects.filter(pk=id).first()
        except (ValueError, TypeError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[User]:
        queryset = User.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: User) -> User:
        entity.save()
        return entity

    @transaction.atomic
    def apply_rating(self, user_id: Any, stars: int) -> User:
        user = User.objects.select_for_update().get(pk=user_id)
        previous = user.rating_average
        user.rating_average = incremental_average(
            user.rating_average, user.rating_count, stars
        )
        user.rating_count += 1
        user.save(update_fields=["rating_average", "rating_count"])

        logger.info(
            "user.rating_applied",
            user_id=str(user_id),
            stars=stars,
            previous_average=str(previous),
            rating_average=str(user.rating_average),
            rating_count=user.rating_count,
        )
        return user
