"""
Data models for report scopes, GitHub API responses and report output.
"""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TypedDict, Union


class AccountKind(str, Enum):
    """Kind of account a report runs against."""
    ENTERPRISE = 'enterprise'
    ORGANIZATION = 'organization'
    USER = 'user'

    @classmethod
    def from_api_type(cls, account_type: str) -> 'AccountKind':
        """Map the REST ``type`` field (``User``/``Organization``) to a kind."""
        return cls.USER if account_type == 'User' else cls.ORGANIZATION


@dataclass(frozen=True)
class Account:
    """An enterprise, organization or user login under report scope."""
    login: str
    kind: AccountKind = AccountKind.ORGANIZATION


@dataclass(frozen=True)
class ReportScope:
    """The --enterprise/--owner/--repo selection of one invocation."""
    enterprise: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None


class PageInfo(TypedDict):
    """Pagination information for GraphQL connections."""
    hasNextPage: bool
    endCursor: Optional[str]


# ---------------------------
# Repositories and workflows
# ---------------------------

WORKFLOW_EXTENSIONS = ('.yml', '.yaml')


@dataclass
class TreeEntry:
    """One file found under a repository's workflow directory."""
    path: str
    name: str = ''
    extension: str = ''
    text: Optional[str] = None
    is_binary: bool = False
    is_truncated: bool = False

    @property
    def is_workflow_file(self) -> bool:
        return self.extension in WORKFLOW_EXTENSIONS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TreeEntry':
        blob = data.get('object') or {}
        return cls(
            path=data.get('path', ''),
            name=data.get('name', ''),
            extension=data.get('extension') or '',
            text=blob.get('text'),
            is_binary=bool(blob.get('isBinary', False)),
            is_truncated=bool(blob.get('isTruncated', False)),
        )


@dataclass
class RepositorySnapshot:
    """A repository and its workflow tree as seen at query time."""
    name: str
    owner: str
    is_archived: bool = False
    is_fork: bool = False
    entries: List[TreeEntry] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def is_eligible(self) -> bool:
        """Archived repositories, forks and repositories without workflows are never processed."""
        return not (self.is_archived or self.is_fork or not self.entries)

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'RepositorySnapshot':
        """Create a snapshot from an ``ActionUses`` repository node."""
        tree = node.get('object') or {}
        owner = (node.get('owner') or {}).get('login') or node.get('nameWithOwner', '/').split('/')[0]
        return cls(
            name=node.get('name', ''),
            owner=owner,
            is_archived=bool(node.get('isArchived', False)),
            is_fork=bool(node.get('isFork', False)),
            entries=[TreeEntry.from_dict(e) for e in tree.get('entries') or []],
        )


# -------------------------------
# Structural views of a workflow
# -------------------------------

@dataclass(frozen=True)
class ScalarPermissions:
    """``permissions: read-all`` style declaration."""
    value: str


@dataclass(frozen=True)
class MappingPermissions:
    """``permissions: {contents: read}`` style declaration, in document order."""
    scopes: Tuple[Tuple[str, str], ...]


Permissions = Union[ScalarPermissions, MappingPermissions]


@dataclass(frozen=True)
class Step:
    uses: Optional[str] = None


@dataclass(frozen=True)
class StepsJob:
    """A job made of steps."""
    steps: Tuple[Step, ...]


@dataclass(frozen=True)
class ReusableJob:
    """A job that calls a reusable workflow through a top-level ``uses``."""
    uses: str


@dataclass(frozen=True)
class AmbiguousJob:
    """A job declaring both ``steps`` and ``uses``; contributes no action usages."""


@dataclass(frozen=True)
class EmptyJob:
    """A job declaring neither ``steps`` nor ``uses``."""


Job = Union[StepsJob, ReusableJob, AmbiguousJob, EmptyJob]


@dataclass
class JobsView:
    jobs: Dict[str, Job] = field(default_factory=dict)


@dataclass
class PermissionsView:
    workflow: Optional[Permissions] = None
    jobs: Dict[str, Optional[Permissions]] = field(default_factory=dict)


@dataclass
class ParsedWorkflow:
    """Both views of one workflow file; a view is None when its conversion failed."""
    jobs: Optional[JobsView] = None
    permissions: Optional[PermissionsView] = None


# ---------------------
# Actions report output
# ---------------------

@dataclass(frozen=True)
class ActionUsage:
    """A third-party action reference with its resolved source URL."""
    action: str
    version: str
    url: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.action, self.version)

    def label(self) -> str:
        return f"{self.action} ({self.version})"

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class WorkflowReportEntry:
    path: str
    url: str
    uses: List[ActionUsage] = field(default_factory=list)
    permissions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'url': self.url,
            'uses': [u.to_dict() for u in self.uses],
            'permissions': list(self.permissions),
        }


@dataclass
class RepositoryReportEntry:
    owner: str
    repo: str
    workflows: List[WorkflowReportEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'owner': self.owner,
            'repo': self.repo,
            'workflows': [w.to_dict() for w in self.workflows],
        }


# ------------------------
# Secondary report models
# ------------------------

@dataclass
class RepositoryRecord:
    """Repository information for the repository inventory report."""
    name: str
    owner: str
    visibility: str = 'PRIVATE'
    default_branch: str = ''
    is_fork: bool = False
    is_archived: bool = False
    disk_usage: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @staticmethod
    def _format_timestamp(value: Optional[str]) -> str:
        if not value:
            return ''
        return datetime.fromisoformat(value.replace('Z', '+00:00')).strftime('%Y-%m-%d %H:%M:%S')

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'RepositoryRecord':
        return cls(
            name=node.get('name', ''),
            owner=(node.get('owner') or {}).get('login', ''),
            visibility=node.get('visibility') or 'PRIVATE',
            default_branch=(node.get('defaultBranchRef') or {}).get('name', ''),
            is_fork=bool(node.get('isFork', False)),
            is_archived=bool(node.get('isArchived', False)),
            disk_usage=node.get('diskUsage') or 0,
            created_at=node.get('createdAt'),
            updated_at=node.get('updatedAt'),
        )

    def row(self) -> List[str]:
        return [
            self.owner,
            self.name,
            self.visibility.lower(),
            self.default_branch,
            str(self.is_fork).lower(),
            str(self.disk_usage),
            self._format_timestamp(self.created_at),
            self._format_timestamp(self.updated_at),
        ]


@dataclass
class Member:
    """Organization member with verified domain emails."""
    login: str
    name: str = ''
    email: str = ''
    verified_emails: List[str] = field(default_factory=list)

    @classmethod
    def from_node(cls, node: Dict[str, Any]) -> 'Member':
        return cls(
            login=node.get('login', ''),
            name=node.get('name') or '',
            email=node.get('email') or '',
            verified_emails=list(node.get('organizationVerifiedDomainEmails') or []),
        )

    def row(self) -> List[str]:
        return [self.login, self.name, self.email, ','.join(self.verified_emails)]


@dataclass
class UsageItem:
    """One line of the billing ``usage`` endpoint."""
    product: str
    unit_type: str
    sku: str = ''
    quantity: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UsageItem':
        return cls(
            product=data.get('product', ''),
            unit_type=data.get('unitType', ''),
            sku=data.get('sku', ''),
            quantity=float(data.get('quantity') or 0),
        )


@dataclass
class MinutesBreakdown:
    ubuntu: float = 0.0
    macos: float = 0.0
    windows: float = 0.0


@dataclass
class ActionsUsage:
    total_minutes_used: float = 0.0
    minutes_used_breakdown: MinutesBreakdown = field(default_factory=MinutesBreakdown)


@dataclass
class PackagesUsage:
    total_gigabytes_bandwidth_used: float = 0.0


@dataclass
class StorageUsage:
    estimated_storage_for_month: float = 0.0
    actions_storage_gb: float = 0.0
    packages_storage_gb: float = 0.0


@dataclass
class SecurityUsage:
    total_advanced_security_committers: int = 0


@dataclass
class BillingSummary:
    account: Account
    actions: Optional[ActionsUsage] = None
    packages: Optional[PackagesUsage] = None
    security: Optional[SecurityUsage] = None
    storage: Optional[StorageUsage] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['account'] = {'login': self.account.login, 'kind': self.account.kind.value}
        return result


@dataclass
class LicenseUser:
    login: str
    name: str = ''
    verified_emails: List[str] = field(default_factory=list)
    license_type: str = ''
    ghec: bool = False
    ghes: bool = False
    vss: bool = False
    accounts: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LicenseUser':
        return cls(
            login=data.get('github_com_login') or '',
            name=data.get('github_com_name') or '',
            verified_emails=list(data.get('github_com_verified_domain_emails') or []),
            license_type=data.get('license_type') or '',
            ghec=bool(data.get('github_com_user', False)),
            ghes=bool(data.get('enterprise_server_user', False)),
            vss=bool(data.get('visual_studio_subscription_user', False)),
            accounts=int(data.get('total_user_accounts') or 0),
        )


@dataclass
class LicenseSummary:
    purchased: int = 0
    consumed: int = 0
    users: List[LicenseUser] = field(default_factory=list)

    @property
    def free(self) -> int:
        return self.purchased - self.consumed

    def to_dict(self) -> Dict[str, Any]:
        return {
            'purchased': self.purchased,
            'consumed': self.consumed,
            'free': self.free,
            'users': [asdict(u) for u in self.users],
        }
