"""Operational and caller-profile endpoints.

``health_check`` is public and reports the two backing services the order
core depends on: the database (orders, stock, ratings) and the cache
(API throttling).  ``MeView`` returns the authenticated user's marketplace
profile with their latest activity records.
"""

import time
from typing import Any, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.activity.repositories.django_repository import ActivityDjangoRepository

logger = structlog.get_logger(__name__)

SERVICE_NAME = "campo-directo-orders"
RECENT_ACTIVITY_LIMIT = 20


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


def _probe_database() -> Dict[str, Any]:
    started = time.monotonic()
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    return {"status": "up", "response_time_ms": _elapsed_ms(started)}


def _probe_cache() -> Dict[str, Any]:
    started = time.monotonic()
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {"status": "up", "response_time_ms": _elapsed_ms(started)}


def health_check(request: HttpRequest) -> JsonResponse:
    services: Dict[str, Dict[str, Any]] = {}

    try:
        services["database"] = _probe_database()
    except DatabaseError:
        services["database"] = {"status": "down"}
        logger.error("health_check.database_down", exc_info=True)

    try:
        services["cache"] = _probe_cache()
    except Exception:  # noqa: BLE001 - any backend failure means "down"
        services["cache"] = {"status": "down"}
        logger.error("health_check.cache_down", exc_info=True)

    healthy = all(s["status"] == "up" for s in services.values())
    overall = "healthy" if healthy else "unhealthy"
    logger.info("health_check.completed", status=overall)

    return JsonResponse(
        {
            "service": SERVICE_NAME,
            "status": overall,
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )


class MeView(APIView):
    """Profile of the authenticated caller: role, running rating, recent activity."""

    permission_classes = [IsAuthenticated]

    def get(self, request: Request) -> Response:
        user = request.user
        activity = ActivityDjangoRepository().list_for_user(
            user.pk, limit=RECENT_ACTIVITY_LIMIT
        )
        return Response(
            {
                "id": user.pk,
                "username": user.get_username(),
                "role": user.role,
                "rating_average": str(user.rating_average),
                "rating_count": user.rating_count,
                "recent_activity": [
                    {
                        "kind": record.kind,
                        "description": record.description,
                        "entity_type": record.entity_type,
                        "entity_id": record.entity_id,
                        "created_at": record.created_at.isoformat(),
                    }
                    for record in activity
                ],
            }
        )
