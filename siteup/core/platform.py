"""
Platform detection and per-distribution filesystem layout.

Platform.detect() reads the OS identity; detect_layout() maps it to one of the
supported families and returns the PlatformLayout every later stage uses
for its paths. Nothing here changes the host.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, TYPE_CHECKING
import platform as platform_module

import distro as distro_lib

from siteup.errors import UnsupportedPlatform

if TYPE_CHECKING:
    from siteup.transport import Transport


OS_RELEASE = "/etc/os-release"

DEBIAN_IDS = {"debian", "ubuntu", "raspbian", "linuxmint", "pop"}
REDHAT_IDS = {"rhel", "centos", "fedora", "rocky", "almalinux", "amzn", "ol"}


def parse_os_release(content: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines, dropping quotes."""
    values = {}
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip().strip('"').strip("'")
    return values


@dataclass
class Platform:
    """Platform information (OS, distro, version)."""
    system: str  # Linux, Darwin, Windows
    distro: str  # ubuntu, debian, rocky, etc.
    version: str
    arch: str
    like: Tuple[str, ...] = ()  # ID_LIKE from os-release

    @property
    def family(self) -> Optional[str]:
        """Distribution family: "debian", "redhat" or None."""
        ids = {self.distro, *self.like}
        if ids & DEBIAN_IDS:
            return "debian"
        if ids & REDHAT_IDS:
            return "redhat"
        return None

    @classmethod
    def detect(cls, transport: Optional["Transport"] = None) -> "Platform":
        """
        Detect platform information.

        Args:
            transport: Transport to use for detection (None = local)

        Returns:
            Platform information
        """
        if transport is None:
            system = platform_module.system()
            arch = platform_module.machine()

            distro = "unknown"
            version = ""
            like: Tuple[str, ...] = ()

            if system == "Linux":
                distro = distro_lib.id() or "unknown"
                version = distro_lib.version()
                like = tuple(distro_lib.like().split())
            elif system == "Darwin":
                distro = "macos"
                version = platform_module.mac_ver()[0]

            return cls(system=system, distro=distro, version=version, arch=arch, like=like)

        output, _ = transport.run_shell("uname -s")
        system = output.strip()

        output, _ = transport.run_shell("uname -m")
        arch = output.strip()

        distro = "unknown"
        version = ""
        like = ()

        if system == "Linux":
            try:
                content = transport.read_file(OS_RELEASE).decode()
            except FileNotFoundError:
                content = ""
            values = parse_os_release(content)
            distro = values.get("ID", "unknown") or "unknown"
            version = values.get("VERSION_ID", "")
            like = tuple(values.get("ID_LIKE", "").split())

        return cls(system=system, distro=distro, version=version, arch=arch, like=like)


@dataclass(frozen=True)
class PlatformLayout:
    """Where a distribution family keeps the web server's files."""
    family: str
    package_manager: str
    docroot_base: str
    sites_available: str
    sites_enabled: str
    vhost_suffix: str
    default_available: str
    default_enabled: str
    server_config: str
    index_files: Tuple[str, ...]
    server_config_fallbacks: Tuple[str, ...] = field(default=(
        "/usr/local/nginx/conf/nginx.conf",
        "/usr/local/etc/nginx/nginx.conf",
    ))
    # RedHat nginx.conf already declares a default_server block on port 80
    default_server: bool = True

    def vhost_filename(self, site_name: str) -> str:
        return f"{site_name}{self.vhost_suffix}"


LAYOUTS: Dict[str, PlatformLayout] = {
    "debian": PlatformLayout(
        family="debian",
        package_manager="apt",
        docroot_base="/var/www",
        sites_available="/etc/nginx/sites-available",
        sites_enabled="/etc/nginx/sites-enabled",
        vhost_suffix="",
        default_available="default",
        default_enabled="default",
        server_config="/etc/nginx/nginx.conf",
        index_files=("index.html", "index.htm", "index.nginx-debian.html"),
    ),
    "redhat": PlatformLayout(
        family="redhat",
        package_manager="dnf",
        docroot_base="/usr/share/nginx",
        sites_available="/etc/nginx/sites-available",
        sites_enabled="/etc/nginx/conf.d",
        vhost_suffix=".conf",
        default_available="default.conf",
        default_enabled="default.conf",
        server_config="/etc/nginx/nginx.conf",
        index_files=("index.html", "index.htm"),
        default_server=False,
    ),
}


def detect_layout(transport: Optional["Transport"] = None) -> Tuple[Platform, PlatformLayout]:
    """
    Detect the target platform and select its layout.

    Raises:
        UnsupportedPlatform: OS identity unreadable or not a known family
    """
    plat = Platform.detect(transport)

    if plat.distro == "unknown":
        raise UnsupportedPlatform(plat.system or "unknown", f"cannot read {OS_RELEASE}")

    family = plat.family
    if family is None:
        raise UnsupportedPlatform(plat.distro, "only Debian and RedHat families are supported")

    return plat, LAYOUTS[family]
