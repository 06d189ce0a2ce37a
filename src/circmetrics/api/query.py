"""Search and filter query parameters shared by the resource bindings."""

from typing import Optional

QueryParams = dict[str, str | list[str]]


def search_params(
    search: Optional[str] = None,
    filters: Optional[dict[str, list[str]]] = None,
) -> QueryParams:
    """Build query parameters for a search query and/or filter.

    Args:
        search: Search expression, e.g. ``(active:1)(type:"httptrap")``
        filters: Field filters, e.g. ``{"f__check_uuid": ["abc"]}``

    Returns:
        Query parameters (empty when neither is given)
    """
    params: QueryParams = {}
    if search:
        params["search"] = search
    if filters:
        for name, values in filters.items():
            if values:
                params[name] = list(values)
    return params
