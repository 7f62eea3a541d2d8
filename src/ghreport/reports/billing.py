"""
Billing report: Actions minutes, Packages bandwidth, Advanced Security
committers and shared storage for an enterprise, organization or user.
"""
from __future__ import annotations

import datetime
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..accounts import lookup_account
from ..exceptions import ScopeError
from ..models import (
    Account,
    AccountKind,
    ActionsUsage,
    BillingSummary,
    PackagesUsage,
    ReportScope,
    SecurityUsage,
    StorageUsage,
    UsageItem,
)
from ..output import ReportOutput, status
from ..pagination import DEFAULT_PAGE_DELAY

logger = logging.getLogger(__name__)

SECTIONS = ("actions", "packages", "security", "storage")

COLUMNS = {
    "actions": "action_minutes_used",
    "packages": "gigabytes_bandwidth_used",
    "security": "advanced_security_committers",
    "storage": "estimated_storage_for_month",
}

_ENDPOINT_PREFIX = {
    AccountKind.ORGANIZATION.value: "orgs",
    AccountKind.USER.value: "users",
    AccountKind.ENTERPRISE.value: "enterprises",
}


def build_billing_endpoint(account_type: str, login: str, path: str) -> str:
    """REST path of a billing endpoint; unknown account types are treated as organizations."""
    prefix = _ENDPOINT_PREFIX.get(account_type, "orgs")
    return f"{prefix}/{login}/settings/billing/{path}"


def build_billing_query_params(
    storage: bool,
    month: Optional[str] = None,
    year: Optional[str] = None,
    today: Optional[datetime.date] = None,
) -> Dict[str, str]:
    """Query parameters for the usage endpoint; only storage is scoped to a month.

    Missing month/year default to the current ones.
    """
    if not storage:
        return {}
    today = today or datetime.date.today()
    year = year or today.strftime("%Y")
    month = month.zfill(2) if month else today.strftime("%m")
    return {"year": year, "month": f"{year}-{month}"}


def _matches(value: str, expected: str) -> bool:
    return value.lower() == expected.lower()


def aggregate_actions_usage(items: Iterable[UsageItem]) -> ActionsUsage:
    usage = ActionsUsage()
    for item in items:
        if not (_matches(item.product, "actions") and _matches(item.unit_type, "minutes")):
            continue
        usage.total_minutes_used += item.quantity
        sku = item.sku.lower()
        if "linux" in sku:
            usage.minutes_used_breakdown.ubuntu += item.quantity
        elif "macos" in sku:
            usage.minutes_used_breakdown.macos += item.quantity
        elif "windows" in sku:
            usage.minutes_used_breakdown.windows += item.quantity
    return usage


def aggregate_packages_usage(items: Iterable[UsageItem]) -> PackagesUsage:
    usage = PackagesUsage()
    for item in items:
        if _matches(item.product, "packages") and _matches(item.unit_type, "gigabytes"):
            usage.total_gigabytes_bandwidth_used += item.quantity
    return usage


def aggregate_storage_usage(items: Iterable[UsageItem]) -> StorageUsage:
    usage = StorageUsage()
    for item in items:
        if not _matches(item.unit_type, "gigabytehours"):
            continue
        usage.estimated_storage_for_month += item.quantity
        if _matches(item.product, "actions"):
            usage.actions_storage_gb += item.quantity
        elif _matches(item.product, "packages"):
            usage.packages_storage_gb += item.quantity
    return usage


def billing_account(client: Any, scope: ReportScope) -> Account:
    if scope.repo:
        raise ScopeError("repository not supported for this report")
    if scope.enterprise and scope.owner:
        raise ScopeError("cannot use --enterprise and --owner together")
    if scope.enterprise:
        return Account(login=scope.enterprise, kind=AccountKind.ENTERPRISE)
    if scope.owner:
        return lookup_account(client, scope.owner)
    raise ScopeError("--enterprise or --owner is required for this report")


def fetch_billing(
    client: Any,
    account: Account,
    sections: Sequence[str] = SECTIONS,
    *,
    month: Optional[str] = None,
    year: Optional[str] = None,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> BillingSummary:
    """Query the billing endpoints needed for ``sections``."""
    summary = BillingSummary(account=account)
    kind = account.kind.value
    calls = 0

    def get(path: str, params: Dict[str, str]) -> Dict[str, Any]:
        nonlocal calls
        if calls and delay > 0:
            sleep(delay)
        calls += 1
        return client.get_json(build_billing_endpoint(kind, account.login, path), params=params or None)

    if "actions" in sections or "packages" in sections:
        items = [UsageItem.from_dict(i) for i in get("usage", build_billing_query_params(False)).get("usageItems") or []]
        if "actions" in sections:
            summary.actions = aggregate_actions_usage(items)
        if "packages" in sections:
            summary.packages = aggregate_packages_usage(items)
    if "security" in sections:
        data = get("advanced-security", {})
        summary.security = SecurityUsage(
            total_advanced_security_committers=int(data.get("total_advanced_security_committers") or 0)
        )
    if "storage" in sections:
        params = build_billing_query_params(True, month=month, year=year)
        items = [UsageItem.from_dict(i) for i in get("usage", params).get("usageItems") or []]
        summary.storage = aggregate_storage_usage(items)
    return summary


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def _section_value(summary: BillingSummary, section: str) -> float:
    if section == "actions":
        return summary.actions.total_minutes_used if summary.actions else 0
    if section == "packages":
        return summary.packages.total_gigabytes_bandwidth_used if summary.packages else 0
    if section == "security":
        return summary.security.total_advanced_security_committers if summary.security else 0
    return summary.storage.estimated_storage_for_month if summary.storage else 0


def billing_rows(summaries: Sequence[BillingSummary], sections: Sequence[str]) -> List[List[str]]:
    return [[s.account.login] + [_number(_section_value(s, sec)) for sec in sections] for s in summaries]


def billing_totals(summaries: Sequence[BillingSummary], sections: Sequence[str]) -> List[str]:
    return ["total"] + [_number(sum(_section_value(s, sec) for s in summaries)) for sec in sections]


def run_billing_report(
    client: Any,
    scope: ReportScope,
    output: ReportOutput,
    *,
    sections: Optional[Sequence[str]] = None,
    month: Optional[str] = None,
    year: Optional[str] = None,
    delay: float = DEFAULT_PAGE_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[BillingSummary]:
    sections = [s for s in SECTIONS if s in (sections or SECTIONS)]
    account = billing_account(client, scope)

    with status(f"fetching billing data for {account.login}", enabled=not output.silent):
        summaries = [fetch_billing(client, account, sections, month=month, year=year, delay=delay, sleep=sleep)]

    header = ["account"] + [COLUMNS[s] for s in sections]
    rows = billing_rows(summaries, sections)
    output.table(header, rows, right_align=True, footer=billing_totals(summaries, sections))
    output.save("GitHub billing report", header, rows, [s.to_dict() for s in summaries])
    return summaries
