"""Pagination used by the order listings."""

from __future__ import annotations

from typing import Any, Dict, Optional

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination with a ``count`` and optional ``message``.

    ``page_size`` is taken from ``REST_FRAMEWORK["PAGE_SIZE"]``; clients may
    ask for up to ``max_page_size`` rows via ``?page_size=``.
    """

    page_size_query_param = "page_size"
    max_page_size = 100

    def get_paginated_response(
        self, data: Any, extra: Optional[Dict[str, Any]] = None
    ) -> Response:
        body: Dict[str, Any] = {
            "count": self.page.paginator.count,
            "next": self.get_next_link(),
            "previous": self.get_previous_link(),
            "results": data,
        }
        if extra:
            body.update(extra)
        return Response(body)
