"""Append-only activity trail.

Each significant order event (creation, every status change, ratings)
leaves one record per affected user.  Records are immutable: there is no
update path and nothing is ever deleted.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel


class ActivityKind(models.TextChoices):
    ORDER = "order", "Order"
    INFO = "info", "Info"
    COMPLETED = "completed", "Completed"
    SUCCESS = "success", "Success"


class ActivityRecord(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="activities",
    )
    kind = models.CharField(
        max_length=20,
        choices=ActivityKind.choices,
        default=ActivityKind.INFO,
    )
    description = models.CharField(max_length=255)
    entity_type = models.CharField(max_length=30)
    entity_id = models.CharField(max_length=64)

    class Meta:
        db_table = "activity_records"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "-created_at"], name="activity_user_created_idx"),
            models.Index(fields=["entity_type", "entity_id"], name="activity_entity_idx"),
        ]

    def __str__(self) -> str:
        return f"[{self.kind}] {self.description}"
