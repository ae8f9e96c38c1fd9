"""
Values passed between pipeline stages.

All of these live for a single invocation; none is persisted.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from siteup.errors import InvalidServerName, InvalidSiteName

if TYPE_CHECKING:
    from siteup.resources.service import ServiceState, BootState


SITE_MODE = 0o770

# Would end or nest the server_name directive in the generated config
SERVER_NAME_FORBIDDEN = set(";{}#\"'\\")


@dataclass(frozen=True)
class HostTarget:
    """Package to install and service to control."""
    package_name: str
    service_name: str


@dataclass(frozen=True)
class SiteSpec:
    """The site to create."""
    site_name: str
    server_name: str
    source_subdir: Optional[str] = None

    def __post_init__(self):
        validate_site_name(self.site_name)
        validate_server_name(self.server_name)


def validate_site_name(site_name: str) -> None:
    """
    Reject names that are not a single, filesystem-safe path segment.

    Raises:
        InvalidSiteName
    """
    if not site_name:
        raise InvalidSiteName(site_name, "must not be empty")
    if site_name in (".", ".."):
        raise InvalidSiteName(site_name, "must not be a relative path reference")
    if "/" in site_name or "\0" in site_name:
        raise InvalidSiteName(site_name, "must be a single path segment")
    if site_name.startswith("-"):
        raise InvalidSiteName(site_name, "must not start with '-'")


def validate_server_name(server_name: str) -> None:
    """
    Reject values that cannot stand as one nginx server_name token.

    Raises:
        InvalidServerName
    """
    if not server_name:
        raise InvalidServerName(server_name, "must not be empty")
    if any(c.isspace() or not c.isprintable() for c in server_name):
        raise InvalidServerName(server_name, "must not contain whitespace or control characters")
    bad = SERVER_NAME_FORBIDDEN.intersection(server_name)
    if bad:
        raise InvalidServerName(server_name, f"must not contain {''.join(sorted(bad))!r}")


@dataclass(frozen=True)
class RepositoryReference:
    url: str
    canonical_id: str  # local checkout name, derived from url


@dataclass(frozen=True)
class SiteDirectory:
    path: str
    owner_user: str
    owner_group: str
    mode: int = SITE_MODE

    @property
    def owner(self) -> str:
        return f"{self.owner_user}:{self.owner_group}"


@dataclass(frozen=True)
class VHostConfig:
    config_path: str
    enabled_link_path: str
    content: str


@dataclass(frozen=True)
class ProvisionState:
    """Current host state for a package and service, recomputed on demand."""
    installed: bool
    service_state: "ServiceState"
    boot_state: "BootState"
