"""Page-number pagination shared by list endpoints."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&limit=M`` pagination, ``limit`` capped at 50."""

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 50
