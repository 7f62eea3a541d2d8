"""Runtime configuration and logging setup."""
import logging
import os
from typing import Optional

from dotenv import load_dotenv

from .client import DEFAULT_CACHE_TTL
from .pagination import DEFAULT_PAGE_DELAY

# Load environment variables from .env file
load_dotenv(override=True)

GITHUB_HOSTNAME = "github.com"


def api_base_for(hostname: Optional[str], default: str = "https://api.github.com") -> str:
    """REST base URL for a host: github.com uses ``default``, GHES uses ``/api/v3``."""
    if not hostname or hostname == GITHUB_HOSTNAME:
        return default
    return f"https://{hostname}/api/v3"


class ReportConfig:
    """Configuration for a report run, from the environment with CLI overrides."""

    def __init__(
        self,
        token: Optional[str] = None,
        hostname: Optional[str] = None,
        no_cache: bool = False,
    ):
        self.GITHUB_TOKEN = token or os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")
        self.HOSTNAME = hostname or GITHUB_HOSTNAME
        self.GITHUB_API = api_base_for(hostname, os.getenv("GITHUB_API", "https://api.github.com"))
        self.CACHE_TTL = 0 if no_cache else int(os.getenv("GH_REPORT_CACHE_TTL", str(DEFAULT_CACHE_TTL)))
        self.PAGE_DELAY = float(os.getenv("GH_REPORT_PAGE_DELAY", str(DEFAULT_PAGE_DELAY)))

    @property
    def is_github_com(self) -> bool:
        return self.HOSTNAME == GITHUB_HOSTNAME


def setup_logging(verbosity: int = 1):
    level = logging.INFO
    if verbosity > 1:
        level = logging.DEBUG
    elif verbosity == 0:
        level = logging.WARNING
    handlers = [logging.StreamHandler()]
    try:
        os.makedirs('logs', exist_ok=True)
        handlers.append(logging.FileHandler('logs/gh_report.log'))
    except OSError:
        pass
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )
