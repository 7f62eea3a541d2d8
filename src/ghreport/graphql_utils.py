"""
GraphQL transport for the GitHub API with rate limiting and caching.
"""
import json
import logging
from typing import Any, Dict, Optional

import requests
from cachetools import TTLCache

from .exceptions import GraphQLError
from .rate_limit import make_rate_limited_session, request_with_rate_limit

logger = logging.getLogger("ghreport.graphql")

# Default cache TTL in seconds (1 hour)
DEFAULT_CACHE_TTL = 3600


class GraphQLClient:
    def __init__(
        self,
        token: Optional[str],
        endpoint: str = "https://api.github.com/graphql",
        user_agent: str = "gh-report",
        cache_ttl: int = DEFAULT_CACHE_TTL,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.session = session or make_rate_limited_session(token, user_agent=user_agent)
        # A TTL of 0 disables caching
        self._cache: Optional[TTLCache] = TTLCache(maxsize=256, ttl=cache_ttl) if cache_ttl > 0 else None

    def execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query.

        Args:
            query: GraphQL document
            variables: Values for the document's variables
            operation_name: Operation to run; also used in logs and errors

        Returns:
            The ``data`` member of the response

        Raises:
            requests.HTTPError: The endpoint answered with a non-2xx status
            GraphQLError: The response carried ``errors`` or no ``data``
        """
        cache_key = self._generate_cache_key(query, variables, operation_name)
        if self._cache is not None and cache_key in self._cache:
            logger.debug("Cache hit for GraphQL operation %s", operation_name or "<anonymous>")
            return self._cache[cache_key]

        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables
        if operation_name:
            payload["operationName"] = operation_name

        response = request_with_rate_limit(
            self.session, "POST", self.endpoint, json=payload, timeout=60, logger=logger
        )
        try:
            response.raise_for_status()
        except requests.HTTPError:
            logger.error(f"GraphQL query {operation_name or ''} failed: HTTP {response.status_code}")
            logger.debug(f"Response: {response.text}")
            raise

        body = response.json()
        if body.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in body["errors"])
            raise GraphQLError(f"GraphQL errors in {operation_name or 'query'}: {messages}", body["errors"])
        data = body.get("data")
        if data is None:
            raise GraphQLError(f"GraphQL response for {operation_name or 'query'} has no data")

        if self._cache is not None:
            self._cache[cache_key] = data
        return data

    @staticmethod
    def _generate_cache_key(
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> str:
        # variables are serialized with sorted keys so equal dicts share an entry
        return json.dumps([operation_name or "", query, variables or {}], sort_keys=True)

    def close(self) -> None:
        self.session.close()
