"""
Document root resource - the site's directory under the web root.

Unlike the other resources this one is not idempotent: an
existing directory for the site name is a name collision and stops the run
with SiteAlreadyExists before anything is changed.
"""

import posixpath
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from siteup.core.models import SITE_MODE, SiteDirectory
from siteup.core.platform import Platform, PlatformLayout
from siteup.core.resource import Action, Plan, Resource
from siteup.errors import DirectoryProvisionFailed, RunAsUserNotFound, SiteAlreadyExists
from siteup.logging import get_siteup_logger
from siteup.transport import Transport

if TYPE_CHECKING:
    from siteup.core.executor import Executor

logger = get_siteup_logger(__name__)


def parse_user_directive(config: str) -> Optional[Tuple[str, str]]:
    """
    Return (user, group) from the first `user` directive, or None.

    `user www-data;` gives ("www-data", "www-data");
    `user nginx web;` gives ("nginx", "web").
    """
    for line in config.splitlines():
        line = line.split("#", 1)[0].strip()
        tokens = line.split()
        if len(tokens) < 2 or tokens[0] != "user":
            continue

        user = tokens[1].rstrip(";")
        group = tokens[2].rstrip(";") if len(tokens) > 2 else ""
        if user:
            return user, group or user
    return None


def resolve_run_as_user(transport: Transport, layout: PlatformLayout) -> Tuple[str, str]:
    """
    Find the user and group the web server runs as.

    Raises:
        RunAsUserNotFound: no configuration file, or no user directive in it
    """
    candidates = (layout.server_config,) + tuple(layout.server_config_fallbacks)
    for path in candidates:
        if not transport.file_exists(path):
            continue

        config = transport.read_file(path).decode("utf-8", errors="replace")
        found = parse_user_directive(config)
        if found is None:
            raise RunAsUserNotFound(f"No user directive in {path}")

        logger.debug(f"Web server runs as {found[0]}:{found[1]} (from {path})")
        return found

    raise RunAsUserNotFound(
        f"No web server configuration found (looked in {', '.join(candidates)})"
    )


class DocumentRoot(Resource):
    """
    Site directory owned by the web server user, mode 770.

    Example:
        DocumentRoot("blog", base="/var/www", owner_user="www-data",
                     owner_group="www-data")
    """

    def __init__(
        self,
        site_name: str,
        base: str,
        owner_user: str,
        owner_group: str,
        mode: int = SITE_MODE,
        **kwargs,
    ):
        self.site_name = site_name
        self.path = posixpath.join(base, site_name)
        self.owner_user = owner_user
        self.owner_group = owner_group
        self.mode = mode
        super().__init__(self.path, **kwargs)

    def resource_type(self) -> str:
        return "docroot"

    @property
    def site_directory(self) -> SiteDirectory:
        return SiteDirectory(
            path=self.path,
            owner_user=self.owner_user,
            owner_group=self.owner_group,
            mode=self.mode,
        )

    def check(self, platform: Platform) -> Dict[str, Any]:
        return {"exists": self._transport.path_present(self.path)}

    def desired_state(self) -> Dict[str, Any]:
        return {
            "exists": True,
            "owner": f"{self.owner_user}:{self.owner_group}",
            "mode": oct(self.mode)[2:],
        }

    def plan(self, platform: Platform) -> Plan:
        plan = super().plan(platform)
        if self._actual_state["exists"]:
            raise SiteAlreadyExists(self.site_name, self.path)
        return plan

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action != Action.CREATE:
            return

        mode_str = oct(self.mode)[2:]
        self._run(["mkdir", "-p", self.path])
        self._run(["chown", "-R", f"{self.owner_user}:{self.owner_group}", self.path])
        self._run(["chmod", "-R", mode_str, self.path])

    def _run(self, args: list) -> None:
        output, code = self._transport.run_command(args)
        if code != 0:
            raise DirectoryProvisionFailed(f"'{' '.join(args)}' failed", output)


def provision(executor: "Executor", layout: PlatformLayout, site_name: str) -> SiteDirectory:
    """Resolve the web server user and create the site's directory."""
    user, group = resolve_run_as_user(executor.transport, layout)
    docroot = DocumentRoot(site_name, layout.docroot_base, user, group)
    executor.converge(docroot)
    logger.info(f"{docroot.path} is created, owned by {user}:{group}")
    return docroot.site_directory
