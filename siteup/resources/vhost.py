"""
Virtual host resource - replace the distribution default site with one
serving the provisioned document root.

Handles:
- Disabling the default site (backup rename + enabled link removal)
- Rendering the server block from templates/vhost.conf.j2 (Jinja2)
- Activating it with a symlink into the enabled-sites directory
"""

import posixpath
from typing import Any, Dict, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from siteup.core.models import SiteDirectory, VHostConfig
from siteup.core.platform import Platform, PlatformLayout
from siteup.core.resource import Action, Plan, Resource
from siteup.errors import VHostActivationFailed, VHostAlreadyActivated
from siteup.logging import get_siteup_logger

logger = get_siteup_logger(__name__)

TEMPLATE_NAME = "vhost.conf.j2"


def render_vhost(
    site_name: str,
    root: str,
    server_name: str,
    index_files: Sequence[str],
    default_server: bool = True,
) -> str:
    """Render the server block for one site, optionally as the port 80 default."""
    env = Environment(
        loader=PackageLoader("siteup", "templates"),
        autoescape=select_autoescape(),
        keep_trailing_newline=True,
    )
    template = env.get_template(TEMPLATE_NAME)
    return template.render(
        site_name=site_name,
        root=root,
        server_name=server_name,
        index_files=list(index_files),
        default_server=default_server,
    )


class VirtualHost(Resource):
    """
    Virtual host for a provisioned site.

    Example:
        VirtualHost("blog", server_name="blog.example.com",
                    site_dir=site_dir, layout=LAYOUTS["debian"])
    """

    def __init__(
        self,
        site_name: str,
        server_name: str,
        site_dir: SiteDirectory,
        layout: PlatformLayout,
        **kwargs,
    ):
        super().__init__(site_name, **kwargs)
        self.site_name = site_name
        self.server_name = server_name
        self.site_dir = site_dir
        self.layout = layout

        filename = layout.vhost_filename(site_name)
        self.config_path = posixpath.join(layout.sites_available, filename)
        self.link_path = posixpath.join(layout.sites_enabled, filename)

    def resource_type(self) -> str:
        return "vhost"

    @property
    def content(self) -> str:
        return render_vhost(
            self.site_name,
            self.site_dir.path,
            self.server_name,
            self.layout.index_files,
            default_server=self.layout.default_server,
        )

    @property
    def vhost_config(self) -> VHostConfig:
        return VHostConfig(
            config_path=self.config_path,
            enabled_link_path=self.link_path,
            content=self.content,
        )

    def check(self, platform: Platform) -> Dict[str, Any]:
        return {"exists": self._transport.path_present(self.link_path)}

    def desired_state(self) -> Dict[str, Any]:
        return {
            "exists": True,
            "config": self.config_path,
            "enabled": self.link_path,
        }

    def plan(self, platform: Platform) -> Plan:
        plan = super().plan(platform)
        # Refuse to overwrite: a stale link would keep serving old config
        if self._actual_state["exists"]:
            raise VHostAlreadyActivated(self.site_name, self.link_path)
        return plan

    def apply(self, plan: Plan, platform: Platform) -> None:
        if plan.action != Action.CREATE:
            return

        self.disable_default()

        self._run(["mkdir", "-p", self.layout.sites_available, self.layout.sites_enabled])
        try:
            self._transport.write_file(self.config_path, self.content.encode("utf-8"))
        except OSError as e:
            raise VHostActivationFailed(f"Writing {self.config_path} failed", str(e)) from e
        logger.info(f"Wrote {self.config_path}")

        self._run(["ln", "-s", self.config_path, self.link_path])
        logger.info(f"Enabled {self.site_name} via {self.link_path}")

    def disable_default(self) -> None:
        """Back up the default site and drop its enabled link; safe to repeat."""
        default_config = posixpath.join(self.layout.sites_available, self.layout.default_available)
        default_link = posixpath.join(self.layout.sites_enabled, self.layout.default_enabled)

        if self._transport.file_exists(default_config):
            self._run(["mv", default_config, f"{default_config}.bak"])
            logger.info(f"Renamed {default_config} to {default_config}.bak")

        if self._transport.is_symlink(default_link):
            self._run(["rm", "-f", default_link])
            logger.info(f"Removed {default_link}")
        elif self._transport.file_exists(default_link):
            # conf.d layouts hold the default as a regular file
            self._run(["mv", default_link, f"{default_link}.bak"])
            logger.info(f"Renamed {default_link} to {default_link}.bak")

    def _run(self, args: list) -> None:
        output, code = self._transport.run_command(args)
        if code != 0:
            raise VHostActivationFailed(f"'{' '.join(args)}' failed", output)
