"""
Runtime settings.

Values come from CLI options (each with a SITEUP_* environment variable);
the defaults here are what a bare `siteup deploy` uses. Distribution
specific paths are not settings, they live in the PlatformLayout table in
siteup.core.platform.
"""

from dataclasses import dataclass


DEFAULT_CHECK_TIMEOUT = 30.0
DEFAULT_FETCH_TIMEOUT = 600.0
DEFAULT_INDEX_MAX_AGE = 3600
DEFAULT_CONNECT_TIMEOUT = 30

PUBLIC_ADDRESS_URL = "https://ipinfo.io/ip"


@dataclass(frozen=True)
class Settings:
    """Tuning knobs for one invocation."""
    check_timeout: float = DEFAULT_CHECK_TIMEOUT  # seconds, repository reachability check
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT  # seconds, git clone
    index_max_age: int = DEFAULT_INDEX_MAX_AGE  # seconds before the package index is refreshed
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT  # seconds, SSH connect
    log_level: str = "INFO"
