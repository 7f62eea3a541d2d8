"""Cursor and page-number pagination over GitHub API list endpoints."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .exceptions import GraphQLError

logger = logging.getLogger(__name__)

# Pause between pages to stay under the GraphQL rate limit
DEFAULT_PAGE_DELAY = 1.0


def _walk(data: Dict[str, Any], connection_path: Sequence[str], operation_name: Optional[str]) -> Dict[str, Any]:
    node: Any = data
    for key in connection_path:
        if not isinstance(node, dict) or node.get(key) is None:
            raise GraphQLError(
                f"{operation_name or 'query'} returned no '{'.'.join(connection_path)}' connection"
            )
        node = node[key]
    return node


def paginate_query(
    graphql: Any,
    query: str,
    variables: Dict[str, Any],
    connection_path: Sequence[str],
    *,
    cursor_variable: str = "page",
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
    operation_name: Optional[str] = None,
    on_page: Optional[Callable[[int], None]] = None,
) -> List[Dict[str, Any]]:
    """Collect every node of a cursor-paginated GraphQL connection.

    Args:
        graphql: Object with ``execute_query(query, variables, operation_name)``
        query: GraphQL document taking the cursor in ``cursor_variable``
        variables: Query variables; not modified
        connection_path: Keys leading from ``data`` to the connection
        cursor_variable: Name of the cursor variable, ``None`` on the first page
        delay: Seconds to wait between pages
        sleep: Sleep function, injectable for tests
        operation_name: GraphQL operation name, used for logging and errors
        on_page: Called with the 1-based page number before each request

    Returns:
        The accumulated nodes of all pages, in the order returned

    Raises:
        GraphQLError: The response had errors or the connection is missing
        requests.RequestException: The transport failed
    """
    page_vars = dict(variables)
    page_vars[cursor_variable] = None
    nodes: List[Dict[str, Any]] = []
    page = 1

    while True:
        if on_page is not None:
            on_page(page)
        data = graphql.execute_query(query, page_vars, operation_name)
        connection = _walk(data, connection_path, operation_name)
        nodes.extend(connection.get("nodes") or [])

        page_info = connection.get("pageInfo") or {}
        if not page_info.get("hasNextPage"):
            break

        logger.debug("%s: page %d done, continuing after %s", operation_name or "query", page, page_info.get("endCursor"))
        if delay > 0:
            sleep(delay)
        page_vars[cursor_variable] = page_info.get("endCursor")
        page += 1

    return nodes


def paginate_pages(
    fetch_page: Callable[[int, int], Dict[str, Any]],
    items_key: str,
    per_page: int = 100,
    max_pages: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Collect items from a REST endpoint paginated by page number.

    ``fetch_page(page, per_page)`` returns one decoded page; iteration stops at
    the first page holding fewer than ``per_page`` items under ``items_key``.
    """
    items: List[Dict[str, Any]] = []
    page = 1

    while True:
        if max_pages is not None and page > max_pages:
            break

        page_items = fetch_page(page, per_page).get(items_key) or []
        items.extend(page_items)

        if len(page_items) < per_page:
            break

        page += 1

    return items
