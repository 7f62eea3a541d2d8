"""
Shared fixtures for gh-report tests.

Transports are replaced by fakes that replay canned GraphQL pages and REST
payloads, and every ``sleep`` is a recorder so no test waits or touches the
network.
"""

from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from ghreport.output import ReportOutput


class FakeGraphQL:
    """Replays responses per operation name and records every call."""

    def __init__(self, responses: Optional[Dict[str, List[Any]]] = None):
        self.responses = {k: list(v) for k, v in (responses or {}).items()}
        self.calls: List[Dict[str, Any]] = []

    def execute_query(self, query, variables=None, operation_name=None):
        self.calls.append({"operation_name": operation_name, "variables": dict(variables or {})})
        queue = self.responses.get(operation_name) or []
        if not queue:
            raise AssertionError(f"unexpected GraphQL call {operation_name} {variables}")
        response = queue.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def connection(root: str, name: str, nodes: List[Dict[str, Any]], cursor: Optional[str] = None) -> Dict[str, Any]:
    """One page of ``data.{root}.{name}``; ``cursor`` means another page follows."""
    return {
        root: {
            name: {
                "pageInfo": {"hasNextPage": cursor is not None, "endCursor": cursor},
                "nodes": nodes,
            }
        }
    }


def workflow_entry(path: str, text: Optional[str], extension: str = ".yml", **blob: Any) -> Dict[str, Any]:
    obj = {"text": text, "isBinary": False, "isTruncated": False}
    obj.update(blob)
    return {
        "path": path,
        "name": path.rsplit("/", 1)[-1],
        "extension": extension,
        "type": "blob",
        "object": obj,
    }


def repo_node(
    owner: str,
    name: str,
    entries: Optional[List[Dict[str, Any]]] = None,
    archived: bool = False,
    fork: bool = False,
) -> Dict[str, Any]:
    return {
        "name": name,
        "nameWithOwner": f"{owner}/{name}",
        "owner": {"login": owner},
        "isArchived": archived,
        "isFork": fork,
        "object": {"entries": entries} if entries is not None else None,
    }


class SleepRecorder:
    def __init__(self):
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    """A no-op sleep that records requested delays."""
    return SleepRecorder()


@pytest.fixture
def fake_graphql():
    """Factory for FakeGraphQL instances."""

    def _factory(**responses):
        return FakeGraphQL(responses)

    return _factory


@pytest.fixture
def fake_client():
    """Factory for a client exposing ``graphql``, ``get_account_type`` and ``get_json``."""

    def _factory(graphql=None, account_types=None, json_responses=None):
        client = MagicMock()
        client.graphql = graphql or FakeGraphQL()
        types = account_types or {}
        client.get_account_type.side_effect = lambda login: types.get(login, "Organization")
        if json_responses is not None:
            client.get_json.side_effect = list(json_responses)
        return client

    return _factory


@pytest.fixture
def silent_output():
    """Output with console tables disabled and no files."""
    return ReportOutput(silent=True)
