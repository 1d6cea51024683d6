"""User repository interface.

The order core only needs two things from users: look a counterparty up
and fold a new rating into their running average.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.users.models import User


class IUserRepository(IRepository["User"]):
    """Repository contract for marketplace users."""

    @abstractmethod
    def get_by_id(self, id: Any) -> Optional[User]:
        """Retrieve a user by primary key, ``None`` if missing."""

    @abstractmethod
    def apply_rating(self, user_id: Any, stars: int) -> User:
        """Fold ``stars`` into the user's running average.

        ``new_average = (average * count + stars) / (count + 1)`` rounded
        half-up to one decimal; ``count`` is incremented.  Must run under a
        row lock so concurrent ratings are not lost.
        """
