"""
Repository inventory report for organizations.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, List, Optional

from ..accounts import resolve_organizations
from ..models import Account, RepositoryRecord, ReportScope
from ..output import ReportOutput, status
from ..pagination import DEFAULT_PAGE_DELAY, paginate_query
from ..queries import ORGANIZATION_REPOSITORIES_QUERY

logger = logging.getLogger(__name__)

HEADER = ["owner", "repo", "visibility", "default_branch", "fork", "disk", "created_at", "updated_at"]

VISIBILITIES = ("internal", "private", "public")


def fetch_repositories(
    graphql: Any,
    account: Account,
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositoryRecord]:
    nodes = paginate_query(
        graphql,
        ORGANIZATION_REPOSITORIES_QUERY,
        {"owner": account.login},
        ("organization", "repositories"),
        delay=delay,
        sleep=sleep,
        operation_name="RepoList",
    )
    return [RepositoryRecord.from_node(n) for n in nodes if n]


def filter_visibility(records: Iterable[RepositoryRecord], visibility: Optional[str]) -> List[RepositoryRecord]:
    """Keep records of ``visibility`` (case-insensitive); ``None`` keeps everything."""
    if not visibility:
        return list(records)
    return [r for r in records if r.visibility.lower() == visibility.lower()]


def run_repo_report(
    client: Any,
    scope: ReportScope,
    output: ReportOutput,
    *,
    visibility: Optional[str] = None,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositoryRecord]:
    with status("resolving organizations", enabled=not output.silent) as spinner:
        accounts = resolve_organizations(client, scope, delay=delay, sleep=sleep)
        records: List[RepositoryRecord] = []
        for index, account in enumerate(accounts):
            if index and delay > 0:
                sleep(delay)
            if spinner is not None:
                spinner.update(f"fetching repositories of {account.login}")
            records.extend(fetch_repositories(client.graphql, account, delay=delay, sleep=sleep))

    records = filter_visibility(records, visibility)
    rows = [r.row() for r in records]
    logger.info(f"Found {len(rows)} repositories")
    output.table(HEADER, rows)
    output.save("GitHub repository report", HEADER, rows, [dict(zip(HEADER, row)) for row in rows])
    return records
