# mc_core/common/api/pagination.py
from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class DefaultPagination(PageNumberPagination):
    # an intake schedule rarely exceeds a few hundred rows
    page_size = 50
    page_size_query_param = "page_size"
    max_page_size = 500


def paginate(request, queryset, serializer_class, *, paginator: PageNumberPagination | None = None) -> Response:
    """
    Page `queryset` for list actions that live on @action routes, where the
    generic list machinery is not available. Responses keep the
    {count, next, previous, results} shape.
    """
    paginator = paginator or DefaultPagination()
    page = paginator.paginate_queryset(queryset, request)
    rows = queryset if page is None else page
    data = serializer_class(rows, many=True, context={"request": request}).data
    if page is None:
        return Response(data)
    return paginator.get_paginated_response(data)
