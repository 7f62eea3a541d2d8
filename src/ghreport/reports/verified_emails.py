"""Organization members and their verified domain emails."""
from __future__ import annotations

import logging
import time
from typing import Any, Callable, List

from ..accounts import resolve_organizations
from ..extraction import dedupe
from ..models import Account, Member, ReportScope
from ..output import ReportOutput, status
from ..pagination import DEFAULT_PAGE_DELAY, paginate_query
from ..queries import ORGANIZATION_MEMBERS_QUERY

logger = logging.getLogger(__name__)

HEADER = ["login", "full_name", "email", "verified_emails"]


def fetch_members(
    graphql: Any,
    account: Account,
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Member]:
    nodes = paginate_query(
        graphql,
        ORGANIZATION_MEMBERS_QUERY,
        {"org": account.login},
        ("organization", "membersWithRole"),
        delay=delay,
        sleep=sleep,
        operation_name="MemberList",
    )
    return [Member.from_node(n) for n in nodes if n]


def collect_members(
    graphql: Any,
    accounts: List[Account],
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Member]:
    """Members of every organization; a login seen twice keeps its first organization's record."""
    members: List[Member] = []
    for index, account in enumerate(accounts):
        if index and delay > 0:
            sleep(delay)
        members.extend(fetch_members(graphql, account, delay=delay, sleep=sleep))
    return dedupe(members, key=lambda m: m.login)


def run_verified_emails_report(
    client: Any,
    scope: ReportScope,
    output: ReportOutput,
    *,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Member]:
    with status("fetching organization members", enabled=not output.silent):
        accounts = resolve_organizations(client, scope, delay=delay, sleep=sleep)
        members = collect_members(client.graphql, accounts, delay=delay, sleep=sleep)

    rows = [m.row() for m in members]
    logger.info(f"Found {len(rows)} members")
    output.table(HEADER, rows)
    output.save("Verified domain emails", HEADER, rows, [dict(zip(HEADER, row)) for row in rows])
    return members
