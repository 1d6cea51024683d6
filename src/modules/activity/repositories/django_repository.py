"""Django ORM implementation of the activity trail."""

from __future__ import annotations

from typing import Any, List

import structlog

from modules.activity.models import ActivityRecord
from modules.activity.repositories.interfaces import IActivityRepository

logger = structlog.get_logger(__name__)


class ActivityDjangoRepository(IActivityRepository):
    def append(
        self,
        user_id: Any,
        kind: str,
        description: str,
        entity_type: str,
        entity_id: str,
    ) -> ActivityRecord:
        record = ActivityRecord.objects.create(
            user_id=user_id,
            kind=kind,
            description=description[:255],
            entity_type=entity_type,
            entity_id=str(entity_id),
        )
        logger.debug(
            "activity.appended",
            user_id=str(user_id),
            kind=kind,
            entity_type=entity_type,
            entity_id=str(entity_id),
        )
        return record

    def list_for_user(self, user_id: Any, limit: int = 20) -> List[ActivityRecord]:
        return list(ActivityRecord.objects.filter(user_id=user_id)[:limit])
