"""
Tests for action reference extraction, the GitHub-authorship filter and
permission normalization.
"""

import pytest

from ghreport.extraction import (
    dedupe,
    extract_action_usages,
    normalize_permissions,
    should_include,
    source_url,
    split_uses,
)
from ghreport.models import (
    AmbiguousJob,
    EmptyJob,
    JobsView,
    MappingPermissions,
    PermissionsView,
    ReusableJob,
    ScalarPermissions,
    Step,
    StepsJob,
)


def steps_job(*uses):
    return StepsJob(steps=tuple(Step(uses=u) for u in uses))


# ============================================================================
# Splitting and source URLs
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize("uses", ["owner/repo", "docker://alpine", "./local/action"])
def test_uses_without_version(uses):
    action, version = split_uses(uses)

    assert action == uses
    assert version == ""


@pytest.mark.unit
def test_pinned_uses():
    view = JobsView(jobs={"a": steps_job("owner/repo@v1")})

    [usage] = extract_action_usages(view, "acme", "app")

    assert usage.action == "owner/repo"
    assert usage.version == "v1"
    assert usage.url == "https://github.com/owner/repo/tree/v1"


@pytest.mark.unit
def test_split_on_first_at_sign():
    assert split_uses("owner/repo@refs/tags/a@b") == ("owner/repo", "refs/tags/a@b")


@pytest.mark.unit
def test_unpinned_uses_points_to_head():
    assert source_url("owner/repo", "", "acme", "app").endswith("/tree/HEAD")


@pytest.mark.unit
def test_local_action_is_rooted_at_current_repository():
    url = source_url("./.github/actions/setup", "", "acme", "app")

    assert url == "https://github.com/acme/app/tree/HEAD/.github/actions/setup"


@pytest.mark.unit
def test_reusable_workflow_job_is_extracted():
    view = JobsView(jobs={"call": ReusableJob(uses="acme/shared/.github/workflows/ci.yml@main")})

    [usage] = extract_action_usages(view, "acme", "app")

    assert usage.action == "acme/shared/.github/workflows/ci.yml"
    assert usage.version == "main"


@pytest.mark.unit
def test_ambiguous_and_empty_jobs_yield_nothing():
    view = JobsView(jobs={"both": AmbiguousJob(), "none": EmptyJob(), "run": steps_job(None)})

    assert extract_action_usages(view, "acme", "app") == []


# ============================================================================
# Filter and deduplication
# ============================================================================


@pytest.mark.unit
def test_should_include():
    assert should_include("actions/checkout@v4", exclude_github=False)
    assert not should_include("actions/checkout@v4", exclude_github=True)
    assert not should_include("github/codeql-action/init@v3", exclude_github=True)
    assert should_include("some-org/action@v1", exclude_github=True)


@pytest.mark.unit
def test_exclude_removes_github_authored_actions():
    view = JobsView(jobs={"a": steps_job("actions/checkout@v4", "github/codeql-action@v3", "x/y@v1")})

    excluded = extract_action_usages(view, "acme", "app", exclude_github=True)
    included = extract_action_usages(view, "acme", "app", exclude_github=False)

    assert [u.action for u in excluded] == ["x/y"]
    assert [u.action for u in included] == ["actions/checkout", "github/codeql-action", "x/y"]


@pytest.mark.unit
def test_usages_deduplicated_across_jobs_in_first_seen_order():
    view = JobsView(jobs={
        "a": steps_job("x/y@v1", "actions/checkout@v4"),
        "b": steps_job("actions/checkout@v4", "x/y@v2"),
    })

    usages = extract_action_usages(view, "acme", "app")

    assert [u.key for u in usages] == [("x/y", "v1"), ("actions/checkout", "v4"), ("x/y", "v2")]


@pytest.mark.unit
def test_dedupe_is_idempotent():
    items = ["b", "a", "b", "c", "a"]

    once = dedupe(items)

    assert once == ["b", "a", "c"]
    assert dedupe(once + once) == once


# ============================================================================
# Permissions
# ============================================================================


@pytest.mark.unit
def test_scalar_permissions():
    view = PermissionsView(workflow=ScalarPermissions("read-all"))

    assert normalize_permissions(view) == ["read-all"]


@pytest.mark.unit
def test_mapping_permissions():
    view = PermissionsView(workflow=MappingPermissions(scopes=(("contents", "read"), ("issues", "write"))))

    assert set(normalize_permissions(view)) == {"contents: read", "issues: write"}


@pytest.mark.unit
def test_workflow_and_job_permissions_are_merged_without_duplicates():
    view = PermissionsView(
        workflow=MappingPermissions(scopes=(("contents", "read"),)),
        jobs={
            "a": MappingPermissions(scopes=(("contents", "read"), ("packages", "write"))),
            "b": None,
            "c": ScalarPermissions("read-all"),
        },
    )

    assert normalize_permissions(view) == ["contents: read", "packages: write", "read-all"]


@pytest.mark.unit
def test_no_permissions():
    assert normalize_permissions(PermissionsView()) == []
