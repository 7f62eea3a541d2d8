"""
Tests for the license, repository and verified-emails reports.
"""

import json
from unittest.mock import MagicMock

import pytest

from ghreport.exceptions import ScopeError
from ghreport.models import Account, ReportScope, RepositoryRecord
from ghreport.output import ReportOutput
from ghreport.reports.license import fetch_license_summary, license_rows, run_license_report
from ghreport.reports.repositories import filter_visibility, run_repo_report
from ghreport.reports.verified_emails import collect_members, run_verified_emails_report

from conftest import FakeGraphQL, connection


def license_user(login, **extra):
    user = {
        "github_com_login": login,
        "github_com_name": login.title(),
        "github_com_verified_domain_emails": [f"{login}@acme.com"],
        "license_type": "Enterprise",
        "github_com_user": True,
        "enterprise_server_user": False,
        "visual_studio_subscription_user": False,
        "total_user_accounts": 1,
    }
    user.update(extra)
    return user


def repo_record_node(name, visibility, fork=False):
    return {
        "name": name,
        "owner": {"login": "acme"},
        "visibility": visibility,
        "isFork": fork,
        "isArchived": False,
        "diskUsage": 42,
        "defaultBranchRef": {"name": "main"},
        "createdAt": "2024-01-02T03:04:05Z",
        "updatedAt": "2024-02-03T04:05:06Z",
    }


def member_node(login, emails):
    return {"login": login, "name": login.upper(), "email": "", "organizationVerifiedDomainEmails": emails}


# ============================================================================
# license
# ============================================================================


@pytest.mark.unit
def test_license_summary_pages_until_short_page(fake_client):
    client = fake_client(json_responses=[
        {"total_seats_purchased": 10, "total_seats_consumed": 3, "users": [license_user("a"), license_user("b")]},
        {"total_seats_purchased": 10, "total_seats_consumed": 3, "users": [license_user("c")]},
    ])

    summary = fetch_license_summary(client, "ent", per_page=2)

    assert [u.login for u in summary.users] == ["a", "b", "c"]
    assert (summary.purchased, summary.consumed, summary.free) == (10, 3, 7)
    assert client.get_json.call_args_list[1].kwargs["params"] == {"per_page": 2, "page": 2}


@pytest.mark.unit
def test_license_rows():
    client = MagicMock()
    client.get_json.return_value = {
        "total_seats_purchased": 1,
        "total_seats_consumed": 1,
        "users": [license_user("a", visual_studio_subscription_user=True)],
    }

    summary = fetch_license_summary(client, "ent")

    assert license_rows(summary) == [["a", "A", "a@acme.com", "Enterprise", "✅", "❌", "✅", "1"]]


@pytest.mark.unit
@pytest.mark.parametrize("scope", [ReportScope(owner="acme"), ReportScope(), ReportScope(enterprise="e", repo="r")])
def test_license_requires_enterprise_only(fake_client, silent_output, scope):
    client = fake_client()

    with pytest.raises(ScopeError):
        run_license_report(client, scope, silent_output)

    client.get_json.assert_not_called()


@pytest.mark.unit
def test_license_json_payload(fake_client, tmp_path):
    client = fake_client(json_responses=[
        {"total_seats_purchased": 5, "total_seats_consumed": 1, "users": [license_user("a")]},
    ])
    path = tmp_path / "license.json"

    run_license_report(client, ReportScope(enterprise="ent"), ReportOutput(json_path=str(path), silent=True))

    payload = json.loads(path.read_text())
    assert (payload["purchased"], payload["consumed"], payload["free"]) == (5, 1, 4)
    assert payload["users"][0]["login"] == "a"


# ============================================================================
# repo
# ============================================================================


@pytest.mark.unit
def test_repository_row_format():
    record = RepositoryRecord.from_node(repo_record_node("app", "INTERNAL", fork=True))

    assert record.row() == ["acme", "app", "internal", "main", "true", "42", "2024-01-02 03:04:05", "2024-02-03 04:05:06"]


@pytest.mark.unit
def test_filter_visibility():
    records = [RepositoryRecord.from_node(repo_record_node(n, v)) for n, v in [("a", "PUBLIC"), ("b", "PRIVATE")]]

    assert [r.name for r in filter_visibility(records, "public")] == ["a"]
    assert len(filter_visibility(records, None)) == 2


@pytest.mark.unit
def test_run_repo_report_pages_organizations(fake_client, silent_output, sleep):
    graphql = FakeGraphQL({
        "RepoList": [
            connection("organization", "repositories", [repo_record_node("a", "PUBLIC")], cursor="c1"),
            connection("organization", "repositories", [repo_record_node("b", "PRIVATE")]),
        ]
    })

    records = run_repo_report(
        fake_client(graphql=graphql), ReportScope(owner="acme"), silent_output, visibility="private", sleep=sleep
    )

    assert [r.name for r in records] == ["b"]
    assert [c["variables"]["page"] for c in graphql.calls] == [None, "c1"]


@pytest.mark.unit
def test_run_repo_report_rejects_user_accounts(fake_client, silent_output):
    client = fake_client(account_types={"octocat": "User"})

    with pytest.raises(ScopeError):
        run_repo_report(client, ReportScope(owner="octocat"), silent_output)

    assert client.graphql.calls == []


# ============================================================================
# verified-emails
# ============================================================================


@pytest.mark.unit
def test_members_deduplicated_by_login_first_wins(sleep):
    graphql = FakeGraphQL({
        "MemberList": [
            connection("organization", "membersWithRole", [member_node("a", ["a@one.com"]), member_node("b", [])]),
            connection("organization", "membersWithRole", [member_node("a", ["a@two.com"])]),
        ]
    })

    members = collect_members(graphql, [Account("one"), Account("two")], sleep=sleep)

    assert [m.row() for m in members] == [["a", "A", "", "a@one.com"], ["b", "B", "", ""]]
    assert [c["variables"]["org"] for c in graphql.calls] == ["one", "two"]
    assert sleep.calls == [1.0]


@pytest.mark.unit
def test_verified_emails_csv(fake_client, tmp_path, sleep):
    graphql = FakeGraphQL({
        "MemberList": [
            connection("organization", "membersWithRole", [member_node("a", ["a@x.com", "a@y.com"])]),
        ]
    })
    path = tmp_path / "emails.csv"

    run_verified_emails_report(
        fake_client(graphql=graphql), ReportScope(owner="acme"), ReportOutput(csv_path=str(path), silent=True),
        sleep=sleep,
    )

    assert path.read_text().splitlines() == ["login,full_name,email,verified_emails", 'a,A,,"a@x.com,a@y.com"']
