"""
Error taxonomy for siteup.

Every failure the workflow knows about is a SiteupError carrying the
process exit code the CLI should use. Errors are terminal: nothing retries
and nothing rolls back what earlier stages already changed on the host.

Exit codes:
    0  success
    1  command failure (install, service, filesystem, fetch, copy)
    2  state conflict (site directory or vhost link already exists)
    3  argument error
    4  repository unreachable or name unparsable
"""

from typing import Optional


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFLICT = 2
EXIT_USAGE = 3
EXIT_REPOSITORY = 4


class SiteupError(Exception):
    """Base class for all expected workflow failures."""

    exit_code = EXIT_FAILURE


# Error kinds

class ArgumentError(SiteupError):
    """Malformed invocation. Raised before the host is touched."""

    exit_code = EXIT_USAGE


class PlatformError(SiteupError):
    """Target OS cannot be identified or is not supported."""


class NetworkError(SiteupError):
    exit_code = EXIT_REPOSITORY


class ParseError(SiteupError):
    exit_code = EXIT_REPOSITORY


class StateConflict(SiteupError):
    """Host already holds something the workflow refuses to overwrite."""

    exit_code = EXIT_CONFLICT


class CommandFailure(SiteupError):
    """An OS operation on the host returned a non-success status."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output.strip()

    def __str__(self):
        base = super().__str__()
        if self.output:
            return f"{base}: {self.output}"
        return base


# Concrete errors

class InvalidSiteName(ArgumentError):
    def __init__(self, site_name: str, reason: str):
        super().__init__(f"Invalid site name {site_name!r}: {reason}")
        self.site_name = site_name


class InvalidServerName(ArgumentError):
    def __init__(self, server_name: str, reason: str):
        super().__init__(f"Invalid server name {server_name!r}: {reason}")
        self.server_name = server_name


class UnsupportedPlatform(PlatformError):
    def __init__(self, distro: str, detail: str = ""):
        message = f"Unsupported platform: {distro}"
        if detail:
            message += f" ({detail})"
        super().__init__(message)
        self.distro = distro


class UnreachableRepository(NetworkError):
    def __init__(self, url: str, status: Optional[int] = None, detail: str = ""):
        if status is not None:
            message = f"Repository {url} answered HTTP {status}, expected 200"
        else:
            message = f"Repository {url} is unreachable"
            if detail:
                message += f": {detail}"
        super().__init__(message)
        self.url = url
        self.status = status


class UnparsableRepositoryName(ParseError):
    def __init__(self, url: str, segment: str):
        super().__init__(
            f"Cannot derive a local name from {segment!r} in {url}: "
            f"expected 2 to 4 dot-separated components"
        )
        self.url = url
        self.segment = segment


class SiteAlreadyExists(StateConflict):
    def __init__(self, site_name: str, path: str):
        super().__init__(f"Site {site_name!r} already exists at {path}. Try another name.")
        self.site_name = site_name
        self.path = path


class VHostAlreadyActivated(StateConflict):
    def __init__(self, site_name: str, link_path: str):
        super().__init__(f"Virtual host {site_name!r} is already enabled at {link_path}")
        self.site_name = site_name
        self.link_path = link_path


class PackageIndexRefreshFailed(CommandFailure):
    pass


class PackageQueryFailed(CommandFailure):
    pass


class InstallationFailed(CommandFailure):
    def __init__(self, pkg: str, exit_status: int, output: str = ""):
        super().__init__(f"Installing {pkg} failed with exit status {exit_status}", output)
        self.pkg = pkg
        self.exit_status = exit_status


class ServiceQueryFailed(CommandFailure):
    pass


class ServiceStartFailed(CommandFailure):
    pass


class ServiceInFailedState(CommandFailure):
    def __init__(self, service: str):
        super().__init__(
            f"Service {service} is in a failed state; inspect it with "
            f"'systemctl status {service}' before re-running"
        )
        self.service = service


class ServiceEnableFailed(CommandFailure):
    pass


class ServiceRestartFailed(CommandFailure):
    pass


class RunAsUserNotFound(CommandFailure):
    pass


class DirectoryProvisionFailed(CommandFailure):
    pass


class VHostActivationFailed(CommandFailure):
    pass


class FetchFailed(CommandFailure):
    pass


class DeploymentCopyFailed(CommandFailure):
    pass
