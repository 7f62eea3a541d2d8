"""
Command line entry point: ``gh-report <report> [scope flags] [output flags]``.
"""
import argparse
import logging
import re
import subprocess
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from . import __version__
from .client import GitHubClient
from .config import ReportConfig, setup_logging
from .exceptions import GhReportError, ScopeError
from .models import ReportScope
from .output import ReportOutput
from .reports import (
    run_actions_report,
    run_billing_report,
    run_license_report,
    run_repo_report,
    run_verified_emails_report,
)

logger = logging.getLogger("ghreport.cli")

_REMOTE_RE = re.compile(r"[:/]([^/:]+)/([^/]+?)(?:\.git)?/?$")


def detect_current_repository(cwd: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """Return ``(owner, repo)`` parsed from the ``origin`` remote of the git checkout in ``cwd``."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"No git origin remote: {e}")
        return None
    match = _REMOTE_RE.search(result.stdout.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def split_repo(value: str) -> Tuple[Optional[str], str]:
    """``owner/name`` -> ``(owner, name)``; a bare name has no owner."""
    if "/" in value:
        owner, name = value.split("/", 1)
        return owner, name
    return None, value


def build_scope(args: argparse.Namespace, detect: Callable[[], Optional[Tuple[str, str]]] = detect_current_repository) -> ReportScope:
    if args.repo:
        owner, name = split_repo(args.repo)
        return ReportScope(owner=owner or args.owner, repo=name)
    if args.enterprise or args.owner:
        return ReportScope(enterprise=args.enterprise, owner=args.owner)
    current = detect()
    if current:
        logger.debug(f"Using current repository {current[0]}/{current[1]}")
        return ReportScope(owner=current[0], repo=current[1])
    return ReportScope()


def _add_global_flags(p: argparse.ArgumentParser, suppress: bool = False) -> None:
    """Flags accepted both before and after the report name.

    On subcommands the defaults are suppressed so a flag given before the
    report name is not reset by the subcommand parser.
    """
    def default(value: Any) -> Any:
        return argparse.SUPPRESS if suppress else value

    scope = p.add_mutually_exclusive_group()
    scope.add_argument("-e", "--enterprise", type=str, default=default(None), help="GitHub enterprise slug")
    scope.add_argument("-o", "--owner", type=str, default=default(None), help="Organization or user login")
    scope.add_argument("-r", "--repo", type=str, default=default(None), help="Repository (name or owner/name)")
    p.add_argument("-t", "--token", type=str, default=default(None), help="GitHub token (or set GITHUB_TOKEN)")
    p.add_argument("--hostname", type=str, default=default("github.com"), help="GitHub host (default: github.com)")
    p.add_argument("--no-cache", action="store_true", default=default(False), help="Disable response caching")
    p.add_argument("--silent", action="store_true", default=default(False), help="Do not print report tables")
    p.add_argument("--csv", type=str, default=default(None), metavar="PATH", help="Save report as CSV")
    p.add_argument("--json", type=str, default=default(None), metavar="PATH", help="Save report as JSON")
    p.add_argument("--md", type=str, default=default(None), metavar="PATH", help="Save report as Markdown")
    p.add_argument("-v", "--verbose", action="count", default=default(0), help="Increase verbosity")
    p.add_argument("-q", "--quiet", action="store_true", default=default(False), help="Only log warnings and errors")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gh-report", description="Report on GitHub enterprises, organizations and users")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_flags(parser)
    sub = parser.add_subparsers(dest="command", metavar="REPORT")
    sub.required = True

    p = sub.add_parser("actions", help="GitHub Actions uses and permissions per workflow")
    _add_global_flags(p, suppress=True)
    p.add_argument("--exclude", action="store_true", help="Exclude actions authored by GitHub (actions/*, github/*)")

    p = sub.add_parser("billing", help="Actions, Packages, Advanced Security and storage billing")
    _add_global_flags(p, suppress=True)
    p.add_argument("--actions", action="store_true", help="Actions minutes")
    p.add_argument("--packages", action="store_true", help="Packages bandwidth")
    p.add_argument("--security", action="store_true", help="Advanced Security committers")
    p.add_argument("--storage", action="store_true", help="Shared storage")
    p.add_argument("--month", type=str, help="Storage month (default: current)")
    p.add_argument("--year", type=str, help="Storage year (default: current)")

    p = sub.add_parser("license", help="Enterprise license consumption")
    _add_global_flags(p, suppress=True)

    p = sub.add_parser("repo", help="Repository inventory")
    _add_global_flags(p, suppress=True)
    visibility = p.add_mutually_exclusive_group()
    for name in ("internal", "private", "public"):
        visibility.add_argument(
            f"--{name}", dest="visibility", action="store_const", const=name, help=f"Only {name} repositories"
        )

    p = sub.add_parser("verified-emails", help="Organization members and verified domain emails")
    _add_global_flags(p, suppress=True)

    return parser


def _billing_sections(args: argparse.Namespace) -> List[str]:
    return [name for name in ("actions", "packages", "security", "storage") if getattr(args, name, False)]


def run_report(client: Any, args: argparse.Namespace, scope: ReportScope, output: ReportOutput, config: ReportConfig) -> None:
    delay = config.PAGE_DELAY
    handlers: Dict[str, Callable[[], Any]] = {
        "actions": lambda: run_actions_report(
            client, scope, output, exclude_github=args.exclude, hostname=config.HOSTNAME, delay=delay
        ),
        "billing": lambda: run_billing_report(
            client,
            scope,
            output,
            sections=_billing_sections(args) or None,
            month=args.month,
            year=args.year,
            delay=delay,
        ),
        "license": lambda: run_license_report(client, scope, output),
        "repo": lambda: run_repo_report(client, scope, output, visibility=args.visibility, delay=delay),
        "verified-emails": lambda: run_verified_emails_report(client, scope, output, delay=delay),
    }
    handlers[args.command]()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    verbosity = 0 if args.quiet else 1 + args.verbose
    setup_logging(verbosity)

    try:
        scope = build_scope(args)
        if args.command == "actions" and scope.repo:
            raise ScopeError("repository not supported for this report")

        config = ReportConfig(token=args.token, hostname=args.hostname, no_cache=args.no_cache)
        if not config.GITHUB_TOKEN:
            logging.error("GitHub token is required. Set GITHUB_TOKEN in .env or pass --token")
            return 1

        output = ReportOutput(csv_path=args.csv, json_path=args.json, md_path=args.md, silent=args.silent)
        with GitHubClient(token=config.GITHUB_TOKEN, base_url=config.GITHUB_API, cache_ttl=config.CACHE_TTL) as client:
            run_report(client, args, scope, output, config)
    except (GhReportError, requests.RequestException) as e:
        logging.error(str(e))
        return 1
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return 1
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        logging.debug("Traceback", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
