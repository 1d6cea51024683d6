"""Activity repository interface (append-only)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, List

if TYPE_CHECKING:
    from modules.activity.models import ActivityRecord


class IActivityRepository(ABC):
    """Write-once audit trail keyed by user."""

    @abstractmethod
    def append(
        self,
        user_id: Any,
        kind: str,
        description: str,
        entity_type: str,
        entity_id: str,
    ) -> ActivityRecord:
        """Append one record; must join the caller's transaction."""

    @abstractmethod
    def list_for_user(self, user_id: Any, limit: int = 20) -> List[ActivityRecord]:
        """Most recent records for a user, newest first."""
