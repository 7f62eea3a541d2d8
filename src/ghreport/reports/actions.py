"""
GitHub Actions report: third-party action uses and declared permissions of
every workflow, per repository, across the accounts in scope.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, List

from ..accounts import resolve_accounts
from ..exceptions import ScopeError
from ..extraction import extract_action_usages, normalize_permissions
from ..models import (
    Account,
    ReportScope,
    RepositoryReportEntry,
    RepositorySnapshot,
    TreeEntry,
    WorkflowReportEntry,
)
from ..output import ReportOutput, status
from ..pagination import DEFAULT_PAGE_DELAY
from ..workflow_parser import parse_workflow
from ..workflows import WorkflowFetcher

logger = logging.getLogger(__name__)

HEADER = ["owner", "repo", "workflow_path", "uses", "permissions"]


def workflow_url(owner: str, repo: str, path: str) -> str:
    return f"https://github.com/{owner}/{repo}/blob/HEAD/{path}"


def build_workflow_entry(
    snapshot: RepositorySnapshot,
    entry: TreeEntry,
    *,
    exclude_github: bool = False,
) -> WorkflowReportEntry:
    """Parse one workflow file into its report entry; a failed view contributes nothing."""
    parsed = parse_workflow(entry.text, snapshot.full_name, entry.path)
    uses = []
    if parsed.jobs is not None:
        uses = extract_action_usages(parsed.jobs, snapshot.owner, snapshot.name, exclude_github=exclude_github)
    permissions = []
    if parsed.permissions is not None:
        permissions = normalize_permissions(parsed.permissions)
    return WorkflowReportEntry(
        path=entry.path,
        url=workflow_url(snapshot.owner, snapshot.name, entry.path),
        uses=uses,
        permissions=permissions,
    )


def build_repository_entry(snapshot: RepositorySnapshot, *, exclude_github: bool = False) -> RepositoryReportEntry:
    workflows = []
    for entry in snapshot.entries:
        if not entry.is_workflow_file:
            continue
        if entry.is_binary or entry.text is None:
            logger.debug(f"Skipping {snapshot.full_name} {entry.path}: no text content")
            continue
        if entry.is_truncated:
            logger.warning(f"{snapshot.full_name} {entry.path} is truncated; results may be incomplete")
        workflows.append(build_workflow_entry(snapshot, entry, exclude_github=exclude_github))
    return RepositoryReportEntry(owner=snapshot.owner, repo=snapshot.name, workflows=workflows)


def collect_actions_report(
    fetcher: WorkflowFetcher,
    accounts: Iterable[Account],
    *,
    exclude_github: bool = False,
) -> List[RepositoryReportEntry]:
    """Report entries for every eligible repository, in the order accounts and repositories are visited."""
    return [
        build_repository_entry(snapshot, exclude_github=exclude_github)
        for snapshot in fetcher.iter_eligible(accounts)
    ]


def report_rows(entries: Iterable[RepositoryReportEntry]) -> List[List[str]]:
    rows = []
    for r in entries:
        for w in r.workflows:
            rows.append([
                r.owner,
                r.repo,
                w.path,
                ", ".join(u.label() for u in w.uses),
                ", ".join(w.permissions),
            ])
    return rows


def run_actions_report(
    client: Any,
    scope: ReportScope,
    output: ReportOutput,
    *,
    exclude_github: bool = False,
    hostname: str = "github.com",
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositoryReportEntry]:
    """Resolve accounts, collect workflow facts and hand them to the output destinations."""
    if hostname != "github.com":
        raise ScopeError("GitHub Enterprise Server not supported for this report")

    with status("resolving accounts", enabled=not output.silent) as spinner:
        accounts = resolve_accounts(
            client, enterprise=scope.enterprise, owner=scope.owner, repo=scope.repo, delay=delay, sleep=sleep
        )
        fetcher = WorkflowFetcher(
            client.graphql,
            delay=delay,
            sleep=sleep,
            progress=spinner.update if spinner is not None else None,
        )
        entries = collect_actions_report(fetcher, accounts, exclude_github=exclude_github)

    rows = report_rows(entries)
    logger.info(f"Collected {len(rows)} workflows in {len(entries)} repositories")
    output.table(HEADER, rows)
    output.save("GitHub Actions report", HEADER, rows, [e.to_dict() for e in entries])
    return entries
