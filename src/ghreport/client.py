"""GitHub API client with REST and GraphQL support and caching."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urljoin

from cachetools import TTLCache
from cachetools.keys import hashkey

from .graphql_utils import GraphQLClient
from .rate_limit import DEFAULT_USER_AGENT, make_rate_limited_session, request_with_rate_limit

# Responses are reused for an hour; a TTL of 0 turns caching off
DEFAULT_CACHE_TTL = 3600
DEFAULT_CACHE_SIZE = 1000


class GitHubClient:
    """REST client for the GitHub API with a lazily created GraphQL companion."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = "https://api.github.com",
        cache_ttl: int = DEFAULT_CACHE_TTL,
        cache_size: int = DEFAULT_CACHE_SIZE,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        """
        Args:
            token: Token sent as a Bearer credential; None for anonymous calls
            base_url: REST root, ``https://HOST/api/v3`` on GHES
            cache_ttl: Seconds a GET response is reused, 0 disables the cache
            cache_size: Entries kept in the response cache
            user_agent: ``User-Agent`` header of every request
        """
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.user_agent = user_agent
        self.cache_ttl = cache_ttl
        self.logger = logging.getLogger(self.__class__.__name__)

        self._cache: Optional[TTLCache] = TTLCache(maxsize=cache_size, ttl=cache_ttl) if cache_ttl > 0 else None
        self._session = make_rate_limited_session(token, user_agent=user_agent)
        self._graphql_client: Optional[GraphQLClient] = None

    @property
    def graphql_url(self) -> str:
        # github.com: api.github.com/graphql, GHES: HOST/api/graphql
        if self.base_url.endswith('/api/v3'):
            return self.base_url[:-len('/v3')] + '/graphql'
        return self.base_url + '/graphql'

    @property
    def graphql(self) -> GraphQLClient:
        """GraphQL transport bound to the same session and cache settings."""
        if self._graphql_client is None:
            self._graphql_client = GraphQLClient(
                token=self.token,
                endpoint=self.graphql_url,
                user_agent=self.user_agent,
                cache_ttl=self.cache_ttl,
                session=self._session,
            )
        return self._graphql_client

    def _make_cache_key(self, method: str, url: str, **kwargs) -> str:
        params = kwargs.get('params') or {}
        return str(hashkey(method, url, tuple(sorted(params.items()))))

    def _cached_json(self, method: str, url: str, **kwargs) -> Any:
        """Make a request and return its decoded JSON body, caching successful GETs."""
        cache_key = self._make_cache_key(method, url, **kwargs)
        if self._cache is not None and cache_key in self._cache:
            self.logger.debug(f"{method} {url} served from cache")
            return self._cache[cache_key]

        response = request_with_rate_limit(self._session, method, url, timeout=30, logger=self.logger, **kwargs)
        response.raise_for_status()
        data = response.json()

        if self._cache is not None:
            self._cache[cache_key] = data
        return data

    def url_for(self, path: str) -> str:
        return urljoin(f"{self.base_url}/", path.lstrip('/'))

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a REST path and return the decoded JSON body.

        Raises:
            requests.HTTPError: The API answered with a non-2xx status
        """
        kwargs: Dict[str, Any] = {}
        if params:
            kwargs['params'] = params
        return self._cached_json('GET', self.url_for(path), **kwargs)

    def get_account_type(self, login: str) -> str:
        """Return the account type of ``login``: ``"User"`` or ``"Organization"``."""
        data = self.get_json(f"users/{login}")
        return data.get('type', 'User')

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> 'GitHubClient':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
