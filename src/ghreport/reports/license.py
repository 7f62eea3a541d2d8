"""Enterprise license consumption report."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from ..exceptions import ScopeError
from ..models import LicenseSummary, LicenseUser, ReportScope
from ..output import ReportOutput, status
from ..pagination import paginate_pages

logger = logging.getLogger(__name__)

SUMMARY_HEADER = ["purchased", "consumed", "free"]
USERS_HEADER = ["login", "name", "verified_emails", "license_type", "ghec", "ghes", "vss", "accounts"]


def _flag(value: bool) -> str:
    return "✅" if value else "❌"


def fetch_license_summary(client: Any, enterprise: str, per_page: int = 100) -> LicenseSummary:
    """Page through ``consumed-licenses``; seat totals come from the first page."""
    totals: Dict[str, int] = {}

    def fetch_page(page: int, size: int) -> Dict[str, Any]:
        data = client.get_json(
            f"enterprises/{enterprise}/consumed-licenses",
            params={"per_page": size, "page": page},
        )
        if not totals:
            totals["purchased"] = int(data.get("total_seats_purchased") or 0)
            totals["consumed"] = int(data.get("total_seats_consumed") or 0)
        return data

    users = paginate_pages(fetch_page, "users", per_page=per_page)
    logger.info(f"Enterprise {enterprise} has {len(users)} licensed users")
    return LicenseSummary(
        purchased=totals.get("purchased", 0),
        consumed=totals.get("consumed", 0),
        users=[LicenseUser.from_dict(u) for u in users],
    )


def license_rows(summary: LicenseSummary) -> List[List[str]]:
    return [
        [
            u.login,
            u.name,
            ", ".join(u.verified_emails),
            u.license_type,
            _flag(u.ghec),
            _flag(u.ghes),
            _flag(u.vss),
            str(u.accounts),
        ]
        for u in summary.users
    ]


def run_license_report(client: Any, scope: ReportScope, output: ReportOutput) -> LicenseSummary:
    if scope.owner or scope.repo:
        raise ScopeError("only --enterprise is supported for this report")
    if not scope.enterprise:
        raise ScopeError("--enterprise is required for this report")

    with status(f"fetching consumed licenses of {scope.enterprise}", enabled=not output.silent):
        summary = fetch_license_summary(client, scope.enterprise)

    summary_rows = [[str(summary.purchased), str(summary.consumed), str(summary.free)]]
    rows = license_rows(summary)
    output.table(SUMMARY_HEADER, summary_rows, title="Licenses", right_align=True)
    output.table(USERS_HEADER, rows, title="Users")
    output.save(
        f"{scope.enterprise} license report",
        USERS_HEADER,
        rows,
        summary.to_dict(),
        extra_sections=[("Licenses", SUMMARY_HEADER, summary_rows)],
    )
    return summary
