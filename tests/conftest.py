"""
Shared fixtures: an in-memory host standing in for a real machine.

FakeHost answers the exact commands siteup issues (dpkg-query, systemctl,
mkdir, git clone, cp, ...) against dictionaries, and records every command
so tests can assert on what was, or was not, run.
"""

import posixpath
from typing import Callable, Dict, List, Optional, Set

import httpx
import pytest

from siteup.core.platform import Platform
from siteup.deploy.resolver import RepositoryResolver
from siteup.net import build_client
from siteup.transport.base import Transport


OS_RELEASES = {
    "ubuntu": 'NAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\nVERSION_ID="22.04"\n',
    "debian": 'NAME="Debian GNU/Linux"\nID=debian\nVERSION_ID="12"\n',
    "rocky": 'NAME="Rocky Linux"\nID="rocky"\nID_LIKE="rhel centos fedora"\nVERSION_ID="9.3"\n',
    "alpine": 'NAME="Alpine Linux"\nID=alpine\nVERSION_ID=3.19.0\n',
}

NGINX_CONF = """\
user www-data;
worker_processes auto;
pid /run/nginx.pid;

events {
    worker_connections 768;
}
"""


class FakeHost(Transport):
    """In-memory host: filesystem, packages, systemd units and git remotes."""

    def __init__(self, os_release: Optional[str] = "ubuntu"):
        self.files: Dict[str, bytes] = {}
        self.dirs: Set[str] = {"/", "/tmp", "/etc"}
        self.links: Dict[str, str] = {}
        self.owners: Dict[str, str] = {}
        self.modes: Dict[str, str] = {}

        self.installed: Set[str] = set()
        self.removed: Set[str] = set()  # dpkg "deinstall ok config-files"
        self.available: Dict[str, Callable[["FakeHost"], None]] = {}
        self.units: Dict[str, Dict[str, str]] = {}
        self.fail_start: Set[str] = set()
        self.crash_after_restart: Set[str] = set()  # restart exits 0, unit then fails
        self.restarts: List[str] = []
        self.index_age: Optional[int] = None
        self.index_refreshes = 0
        self.repos: Dict[str, Dict[str, str]] = {}

        self.fail: Dict[str, int] = {}  # command prefix -> exit code
        self.commands: List[List[str]] = []
        self.shells: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self._tmp_counter = 0

        if os_release is not None:
            self.add_file("/etc/os-release", OS_RELEASES.get(os_release, os_release))

    # Setup helpers

    def add_dir(self, path: str) -> None:
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def add_file(self, path: str, content: str = "") -> None:
        self.add_dir(posixpath.dirname(path))
        self.files[path] = content.encode()

    def add_unit(self, name: str, active: str = "inactive", unit_file: str = "disabled") -> None:
        self.units[name] = {"active": active, "unit_file": unit_file}

    def install_nginx_files(self) -> None:
        """What the nginx package drops on a Debian-family host."""
        self.add_file("/etc/nginx/nginx.conf", NGINX_CONF)
        self.add_file("/etc/nginx/sites-available/default", "server { listen 80; }\n")
        self.add_dir("/etc/nginx/sites-enabled")
        self.links["/etc/nginx/sites-enabled/default"] = "/etc/nginx/sites-available/default"
        self.add_dir("/var/www/html")

    def exists(self, path: str) -> bool:
        if path in self.links:
            return self.exists(self.links[path])
        return path in self.files or path in self.dirs

    def tree(self, root: str) -> Set[str]:
        """Relative paths of every file below root."""
        prefix = root.rstrip("/") + "/"
        return {p[len(prefix):] for p in self.files if p.startswith(prefix)}

    def ran(self, *prefix: str) -> bool:
        return any(cmd[:len(prefix)] == list(prefix) for cmd in self.commands)

    # Transport interface

    def run_shell(self, command, timeout=None):
        self.shells.append(command)
        if command == "uname -s":
            return "Linux\n", 0
        if command == "uname -m":
            return "x86_64\n", 0
        if "stat -c %Y" in command:
            if self.index_age is None:
                return "stat: cannot statx: No such file or directory\n", 1
            return f"{self.index_age}\n", 0
        return "", 0

    def run_command(self, args, timeout=None):
        args = [str(a) for a in args]
        self.commands.append(args)
        self.timeouts.append(timeout)

        joined = " ".join(args)
        for prefix, code in self.fail.items():
            if joined.startswith(prefix):
                return "simulated failure\n", code

        handler = getattr(self, "_cmd_" + args[0].replace("-", "_"), None)
        if handler is None:
            return f"{args[0]}: command not found\n", 127
        return handler(args[1:])

    def write_file(self, remote_path, content):
        if posixpath.dirname(remote_path) not in self.dirs:
            raise FileNotFoundError(remote_path)
        self.files[remote_path] = content

    def read_file(self, remote_path):
        path = self.links.get(remote_path, remote_path)
        if path in self.files:
            return self.files[path]
        raise FileNotFoundError(remote_path)

    def file_exists(self, remote_path):
        return self.exists(remote_path)

    def close(self):
        pass

    # Commands

    def _cmd_dpkg_query(self, args):
        lines = [f"{p}\tinstall ok installed" for p in sorted(self.installed)]
        lines += [f"{p}\tdeinstall ok config-files" for p in sorted(self.removed)]
        return "\n".join(lines) + "\n", 0

    def _cmd_rpm(self, args):
        return "".join(f"{p}\n" for p in sorted(self.installed)), 0

    def _cmd_env(self, args):
        while args and "=" in args[0]:
            args = args[1:]
        return self.run_command(args)

    def _install(self, pkg):
        if pkg not in self.available:
            return f"E: Unable to locate package {pkg}\n", 100
        self.available[pkg](self)
        self.installed.add(pkg)
        return f"Setting up {pkg} ...\n", 0

    def _cmd_apt_get(self, args):
        if args[0] == "update":
            self.index_refreshes += 1
            self.index_age = 0
            return "Reading package lists... Done\n", 0
        if args[0] == "install":
            return self._install(args[-1])
        return "", 0

    def _cmd_dnf(self, args):
        if args[0] == "makecache":
            self.index_refreshes += 1
            return "Metadata cache created.\n", 0
        if args[0] == "install":
            return self._install(args[-1])
        return "", 0

    def _cmd_systemctl(self, args):
        action, name = args[0], args[1]
        unit = self.units.get(name)

        if action == "show":
            if unit is None:
                return "LoadState=not-found\nActiveState=inactive\nUnitFileState=\n", 0
            return (
                f"LoadState=loaded\nActiveState={unit['active']}\n"
                f"UnitFileState={unit['unit_file']}\n"
            ), 0

        if unit is None:
            return f"Failed to {action} {name}.service: Unit {name}.service not found.\n", 5

        if action == "start":
            if name in self.fail_start:
                unit["active"] = "failed"
                return f"Job for {name}.service failed.\n", 1
            unit["active"] = "active"
        elif action == "enable":
            unit["unit_file"] = "enabled"
        elif action == "restart":
            unit["active"] = "failed" if name in self.crash_after_restart else "active"
            self.restarts.append(name)
        return "", 0

    def _cmd_mkdir(self, args):
        for path in args:
            if path != "-p":
                self.add_dir(path)
        return "", 0

    def _cmd_chown(self, args):
        owner, path = args[-2], args[-1]
        if not self.exists(path):
            return f"chown: cannot access '{path}'\n", 1
        self.owners[path] = owner
        return "", 0

    def _cmd_chmod(self, args):
        mode, path = args[-2], args[-1]
        if not self.exists(path):
            return f"chmod: cannot access '{path}'\n", 1
        self.modes[path] = mode
        return "", 0

    def _cmd_mv(self, args):
        src, dst = args
        if src in self.links:
            self.links[dst] = self.links.pop(src)
        elif src in self.files:
            self.files[dst] = self.files.pop(src)
        else:
            return f"mv: cannot stat '{src}'\n", 1
        return "", 0

    def _cmd_rm(self, args):
        for path in args:
            if path.startswith("-"):
                continue
            prefix = path.rstrip("/") + "/"
            self.links.pop(path, None)
            self.files.pop(path, None)
            self.dirs.discard(path)
            self.files = {p: c for p, c in self.files.items() if not p.startswith(prefix)}
            self.dirs = {d for d in self.dirs if not d.startswith(prefix)}
            self.links = {p: t for p, t in self.links.items() if not p.startswith(prefix)}
        return "", 0

    def _cmd_test(self, args):
        flag, path = args
        if flag == "-L":
            ok = path in self.links
        elif flag == "-d":
            ok = self.links.get(path, path) in self.dirs
        else:
            ok = self.exists(path)
        return "", 0 if ok else 1

    def _cmd_ln(self, args):
        target, link = args[-2], args[-1]
        if link in self.links or link in self.files or link in self.dirs:
            return f"ln: failed to create symbolic link '{link}': File exists\n", 1
        if posixpath.dirname(link) not in self.dirs:
            return f"ln: failed to create symbolic link '{link}': No such file or directory\n", 1
        self.links[link] = target
        return "", 0

    def _cmd_mktemp(self, args):
        self._tmp_counter += 1
        path = f"/tmp/siteup-fake{self._tmp_counter:04d}"
        self.add_dir(path)
        return f"{path}\n", 0

    def _cmd_git(self, args):
        url, dest = args[-2], args[-1]
        if url not in self.repos:
            return f"fatal: repository '{url}' not found\n", 128
        self.add_dir(dest)
        self.add_file(posixpath.join(dest, ".git/HEAD"), "ref: refs/heads/main\n")
        for rel, content in self.repos[url].items():
            self.add_file(posixpath.join(dest, rel), content)
        return f"Cloning into '{dest}'...\n", 0

    def _cmd_cp(self, args):
        src, dst = args[-2], args[-1]
        if src.endswith("/."):
            src = src[:-2]
        if src not in self.dirs or dst not in self.dirs:
            return f"cp: cannot copy '{src}' to '{dst}'\n", 1
        for rel in self.tree(src):
            self.add_file(posixpath.join(dst, rel), self.files[posixpath.join(src, rel)].decode())
        return "", 0


@pytest.fixture
def make_host():
    """Factory for FakeHost with a given os-release (name or raw text)."""
    return FakeHost


@pytest.fixture
def host():
    return FakeHost("ubuntu")


@pytest.fixture
def nginx_host(host):
    """Ubuntu host with nginx installed, running and enabled."""
    host.install_nginx_files()
    host.installed.add("nginx")
    host.add_unit("nginx", active="active", unit_file="enabled")
    return host


@pytest.fixture
def http_routes():
    """URL -> status (or (status, location) for redirects) served by mock_resolver."""
    return {}


@pytest.fixture
def mock_resolver(http_routes):
    """RepositoryResolver whose HTTP traffic never leaves the process."""

    def handler(request: httpx.Request) -> httpx.Response:
        route = http_routes.get(str(request.url), 404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            status, location = route
            return httpx.Response(status, headers={"Location": location})
        return httpx.Response(route, text="ok")

    client = build_client(5.0, transport=httpx.MockTransport(handler))
    yield RepositoryResolver(client=client)
    client.close()


@pytest.fixture
def ubuntu():
    return Platform(system="Linux", distro="ubuntu", version="22.04", arch="x86_64", like=("debian",))
