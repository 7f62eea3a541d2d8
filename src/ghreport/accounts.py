"""Resolution of the enterprise/owner/repository flags into report accounts."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Optional

from .exceptions import ScopeError
from .models import Account, AccountKind, ReportScope
from .pagination import DEFAULT_PAGE_DELAY, paginate_query
from .queries import ENTERPRISE_ORGANIZATIONS_QUERY

logger = logging.getLogger(__name__)


def expand_enterprise(
    graphql: Any,
    enterprise: str,
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Account]:
    """Return every organization of ``enterprise``, ordered by login."""
    nodes = paginate_query(
        graphql,
        ENTERPRISE_ORGANIZATIONS_QUERY,
        {"enterprise": enterprise},
        ("enterprise", "organizations"),
        delay=delay,
        sleep=sleep,
        operation_name="OrgList",
    )
    accounts = [Account(login=n["login"], kind=AccountKind.ORGANIZATION) for n in nodes if n and n.get("login")]
    logger.info(f"Enterprise {enterprise} has {len(accounts)} organizations")
    return accounts


def lookup_account(client: Any, login: str) -> Account:
    """Build an Account for ``login`` from its REST account type."""
    kind = AccountKind.from_api_type(client.get_account_type(login))
    logger.debug(f"{login} is a {kind.value} account")
    return Account(login=login, kind=kind)


def resolve_accounts(
    client: Any,
    *,
    enterprise: Optional[str] = None,
    owner: Optional[str] = None,
    repo: Optional[str] = None,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Account]:
    """Resolve the report scope into the accounts to visit.

    Args:
        client: GitHubClient (REST ``get_account_type`` and ``graphql`` transport)
        enterprise: Enterprise slug, expanded into its organizations
        owner: Organization or user login
        repo: Repository name; rejected, this scope is account based

    Raises:
        ScopeError: Repository scope, both or neither of enterprise/owner
    """
    if repo:
        raise ScopeError("repository not supported for this report")
    if enterprise and owner:
        raise ScopeError("cannot use --enterprise and --owner together")
    if enterprise:
        return expand_enterprise(client.graphql, enterprise, delay=delay, sleep=sleep)
    if owner:
        return [lookup_account(client, owner)]
    raise ScopeError("--enterprise or --owner is required for this report")


def resolve_organizations(
    client: Any,
    scope: ReportScope,
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Account]:
    """Like :func:`resolve_accounts`, for reports that only make sense for organizations.

    Raises:
        ScopeError: Invalid scope, or ``owner`` is a user account
    """
    accounts = resolve_accounts(
        client, enterprise=scope.enterprise, owner=scope.owner, repo=scope.repo, delay=delay, sleep=sleep
    )
    for account in accounts:
        if account.kind is AccountKind.USER:
            raise ScopeError(f"{account.login} is a user account; user accounts not supported for this report")
    return accounts
