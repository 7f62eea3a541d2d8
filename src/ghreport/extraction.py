"""Action reference extraction and permission normalization for parsed workflows."""
from __future__ import annotations

from typing import Callable, Hashable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from .models import (
    ActionUsage,
    JobsView,
    MappingPermissions,
    Permissions,
    PermissionsView,
    ReusableJob,
    ScalarPermissions,
    StepsJob,
)

T = TypeVar('T')

GITHUB_URL = "https://github.com"
GITHUB_AUTHORED_PREFIXES = ("actions/", "github/")
LOCAL_ACTION_MARKER = "./"


def dedupe(items: Iterable[T], key: Optional[Callable[[T], Hashable]] = None) -> List[T]:
    """Drop repeated items, keeping the first occurrence and the original order."""
    seen = set()
    result: List[T] = []
    for item in items:
        k = key(item) if key else item
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result


def should_include(uses: str, exclude_github: bool) -> bool:
    """False for actions authored by GitHub when ``exclude_github`` is set."""
    if exclude_github:
        return not uses.startswith(GITHUB_AUTHORED_PREFIXES)
    return True


def split_uses(uses: str) -> Tuple[str, str]:
    """Split ``owner/repo@ref`` on the first ``@`` into ``(action, version)``."""
    action, _, version = uses.partition("@")
    return action, version


def source_url(action: str, version: str, owner: str, repo: str) -> str:
    """Browsable source of an action; local ``./`` actions point into the current repository."""
    if LOCAL_ACTION_MARKER in action:
        return f"{GITHUB_URL}/{owner}/{repo}/tree/HEAD/{action.replace(LOCAL_ACTION_MARKER, '', 1)}"
    return f"{GITHUB_URL}/{action}/tree/{version or 'HEAD'}"


def _raw_uses(jobs_view: JobsView) -> Iterator[str]:
    for job in jobs_view.jobs.values():
        if isinstance(job, StepsJob):
            for step in job.steps:
                if step.uses:
                    yield step.uses
        elif isinstance(job, ReusableJob):
            if job.uses:
                yield job.uses
        # AmbiguousJob and EmptyJob contribute nothing


def extract_action_usages(
    jobs_view: JobsView,
    owner: str,
    repo: str,
    *,
    exclude_github: bool = False,
) -> List[ActionUsage]:
    """Collect the action usages of a workflow, deduplicated by action and version."""
    usages = []
    for uses in _raw_uses(jobs_view):
        if not should_include(uses, exclude_github):
            continue
        action, version = split_uses(uses)
        usages.append(ActionUsage(action=action, version=version, url=source_url(action, version, owner, repo)))
    return dedupe(usages, key=lambda u: u.key)


def permission_statements(permissions: Optional[Permissions]) -> List[str]:
    if isinstance(permissions, ScalarPermissions):
        return [permissions.value]
    if isinstance(permissions, MappingPermissions):
        return [f"{scope}: {level}" for scope, level in permissions.scopes]
    return []


def normalize_permissions(permissions_view: PermissionsView) -> List[str]:
    """Flatten workflow-level then job-level permissions into unique statements."""
    statements = permission_statements(permissions_view.workflow)
    for job_permissions in permissions_view.jobs.values():
        statements.extend(permission_statements(job_permissions))
    return dedupe(statements)
