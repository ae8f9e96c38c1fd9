"""
Package resources - keep the package index fresh and required packages
installed.

Supports:
- apt (Debian/Ubuntu)
- dnf (Fedora/RHEL and rebuilds)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Set, Tuple

from siteup.core.platform import Platform
from siteup.core.resource import Action, Plan, Resource
from siteup.errors import InstallationFailed, PackageIndexRefreshFailed, PackageQueryFailed
from siteup.logging import get_siteup_logger
from siteup.transport import Transport

logger = get_siteup_logger(__name__)


class PackageManager(ABC):
    """One distribution family's package tooling."""

    name = ""

    def __init__(self, transport: Transport):
        self.transport = transport

    @abstractmethod
    def installed_packages(self) -> Set[str]:
        """Return the names of every installed package."""
        pass

    @abstractmethod
    def install(self, pkg: str) -> Tuple[str, int]:
        pass

    @abstractmethod
    def refresh_index(self) -> Tuple[str, int]:
        pass

    def index_age(self) -> Optional[int]:
        """Seconds since the index was refreshed, None when unknown."""
        return None

    def is_installed(self, pkg: str) -> bool:
        # Exact membership: "nginx" must not match "nginx-common"
        return pkg in self.installed_packages()


class AptPackageManager(PackageManager):
    name = "apt"

    # Rebuilt by every successful apt-get update
    CACHE_STAMP = "/var/cache/apt/pkgcache.bin"

    def installed_packages(self) -> Set[str]:
        output, code = self.transport.run_command(
            ["dpkg-query", "-W", "-f=${Package}\t${Status}\n"]
        )
        if code != 0:
            raise PackageQueryFailed("Listing installed packages failed", output)

        installed = set()
        for line in output.splitlines():
            name, _, status = line.partition("\t")
            words = status.split()
            # "install ok installed", but not "deinstall ok config-files"
            if words and words[-1] == "installed":
                installed.add(name.strip())
        return installed

    def install(self, pkg: str) -> Tuple[str, int]:
        return self.transport.run_command(
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "install", "-y", pkg]
        )

    def refresh_index(self) -> Tuple[str, int]:
        return self.transport.run_command(
            ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get", "update"]
        )

    def index_age(self) -> Optional[int]:
        output, code = self.transport.run_shell(
            f"echo $(($(date +%s) - $(stat -c %Y {self.CACHE_STAMP})))"
        )
        if code != 0:
            return None
        try:
            return int(output.strip())
        except ValueError:
            return None


class DnfPackageManager(PackageManager):
    """
    dnf keeps its own metadata expiry, so index_age() stays unknown and
    `dnf makecache` runs every time; it is a no-op while metadata is fresh.
    """

    name = "dnf"

    def installed_packages(self) -> Set[str]:
        output, code = self.transport.run_command(
            ["rpm", "-qa", "--queryformat", "%{NAME}\n"]
        )
        if code != 0:
            raise PackageQueryFailed("Listing installed packages failed", output)
        return {line.strip() for line in output.splitlines() if line.strip()}

    def install(self, pkg: str) -> Tuple[str, int]:
        return self.transport.run_command(["dnf", "install", "-y", pkg])

    def refresh_index(self) -> Tuple[str, int]:
        return self.transport.run_command(["dnf", "makecache"])


PACKAGE_MANAGERS = {
    "apt": AptPackageManager,
    "dnf": DnfPackageManager,
}


def get_package_manager(name: str, transport: Transport) -> PackageManager:
    """Instantiate the package manager a PlatformLayout names."""
    try:
        return PACKAGE_MANAGERS[name](transport)
    except KeyError:
        raise ValueError(f"Unknown package manager: {name}")


class PackageIndex(Resource):
    """
    Package index freshness.

    Example:
        PackageIndex("apt", max_age=3600)
    """

    def __init__(self, manager: str, max_age: int = 3600, **kwargs):
        super().__init__(manager, **kwargs)
        self.manager_name = manager
        self.max_age = max_age

    def resource_type(self) -> str:
        return "index"

    @property
    def manager(self) -> PackageManager:
        return get_package_manager(self.manager_name, self._transport)

    def check(self, platform: Platform) -> Dict[str, Any]:
        age = self.manager.index_age()
        return {
            "exists": True,
            "age": age,
            "stale": age is None or age > self.max_age,
        }

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "stale": False}

    def apply(self, plan: Plan, platform: Platform) -> None:
        output, code = self.manager.refresh_index()
        if code != 0:
            raise PackageIndexRefreshFailed(
                f"Refreshing the {self.manager_name} package index failed "
                f"with exit status {code}",
                output,
            )


class Package(Resource):
    """
    Package resource: install when absent, never touch when present.

    Example:
        Package("nginx", manager="apt")
    """

    def __init__(self, name: str, manager: str, **kwargs):
        super().__init__(name, **kwargs)
        self.package_name = name
        self.manager_name = manager

    def resource_type(self) -> str:
        return "pkg"

    @property
    def manager(self) -> PackageManager:
        return get_package_manager(self.manager_name, self._transport)

    def check(self, platform: Platform) -> Dict[str, Any]:
        installed = self.manager.is_installed(self.package_name)
        return {"exists": installed, "installed": installed}

    def desired_state(self) -> Dict[str, Any]:
        return {"exists": True, "installed": True}

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action != Action.CREATE:
            return

        logger.info(f"{self.package_name} is not installed, installing with {self.manager_name}")
        output, code = self.manager.install(self.package_name)
        if code != 0:
            raise InstallationFailed(self.package_name, code, output)
