"""Fetching repositories together with their workflow files."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Iterator, List, Optional

from .models import Account, RepositorySnapshot
from .pagination import DEFAULT_PAGE_DELAY, paginate_query
from .queries import ACTION_USES_QUERY, WORKFLOWS_EXPRESSION

logger = logging.getLogger(__name__)


class WorkflowFetcher:
    """Walks the repositories owned by each account, with the workflow tree of each one.

    Args:
        graphql: Object with ``execute_query(query, variables, operation_name)``
        delay: Seconds to wait between pages and between accounts
        sleep: Sleep function, injectable for tests
        progress: Optional callback receiving a status message per page
    """

    def __init__(
        self,
        graphql: Any,
        delay: float = DEFAULT_PAGE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        progress: Optional[Callable[[str], None]] = None,
    ):
        self.graphql = graphql
        self.delay = delay
        self.sleep = sleep
        self.progress = progress

    def fetch_repositories(self, account: Account) -> List[RepositorySnapshot]:
        """Return every repository owned by ``account`` with its workflow entries."""
        def on_page(page: int) -> None:
            if self.progress is not None:
                self.progress(f"fetching actions report {account.login} (page {page})")

        nodes = paginate_query(
            self.graphql,
            ACTION_USES_QUERY,
            {"owner": account.login, "ref": WORKFLOWS_EXPRESSION},
            ("repositoryOwner", "repositories"),
            delay=self.delay,
            sleep=self.sleep,
            operation_name="ActionUses",
            on_page=on_page,
        )
        snapshots = [RepositorySnapshot.from_node(n) for n in nodes if n]
        logger.info(f"Found {len(snapshots)} repositories for {account.login}")
        return snapshots

    def iter_eligible(self, accounts: Iterable[Account]) -> Iterator[RepositorySnapshot]:
        """Yield the non-archived, non-fork repositories with workflows, account by account."""
        for index, account in enumerate(accounts):
            if index > 0 and self.delay > 0:
                self.sleep(self.delay)
            for snapshot in self.fetch_repositories(account):
                if not snapshot.is_eligible:
                    logger.debug(f"Skipping {snapshot.full_name}: archived, fork or no workflows")
                    continue
                yield snapshot
