"""
gh-report: reports on GitHub Actions usage, billing, licenses, repositories
and verified domain emails for enterprises, organizations and users.
"""

__version__ = '0.1.0'

from .client import GitHubClient
from .exceptions import GhReportError, GraphQLError, OutputError, ScopeError, WorkflowParseError
from .models import Account, AccountKind, ReportScope

__all__ = [
    'GitHubClient',
    'GhReportError',
    'GraphQLError',
    'OutputError',
    'ScopeError',
    'WorkflowParseError',
    'Account',
    'AccountKind',
    'ReportScope',
]
