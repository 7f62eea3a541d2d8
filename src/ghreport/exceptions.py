"""
Exception types raised by gh-report.

Scope, GraphQL and output errors abort a report run. Workflow parse errors
are local to one workflow file and are logged by the caller instead of being
propagated.
"""
from typing import Any, Dict, List, Optional


class GhReportError(Exception):
    """Base class for all gh-report errors."""


class ScopeError(GhReportError):
    """The requested enterprise/owner/repository scope is not valid for a report."""


class GraphQLError(GhReportError):
    """A GraphQL response carried errors or lacked the expected data.

    Attributes:
        errors: The raw ``errors`` list from the response, if any.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class WorkflowParseError(GhReportError):
    """A workflow file could not be converted into a jobs or permissions view."""


class OutputError(GhReportError):
    """A report file could not be written.

    Attributes:
        path: The destination that failed.
        original_exception: The underlying ``OSError``.
    """

    def __init__(self, path: str, original_exception: Optional[Exception] = None):
        self.path = path
        self.original_exception = original_exception
        detail = f": {original_exception}" if original_exception else ""
        super().__init__(f"Failed to write report to {path}{detail}")
