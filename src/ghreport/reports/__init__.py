"""Report commands. Each module exposes a ``run_*_report(client, scope, output, ...)`` entry point."""
from .actions import run_actions_report
from .billing import run_billing_report
from .license import run_license_report
from .repositories import run_repo_report
from .verified_emails import run_verified_emails_report

__all__ = [
    'run_actions_report',
    'run_billing_report',
    'run_license_report',
    'run_repo_report',
    'run_verified_emails_report',
]
