"""
siteup CLI - provision a host and deploy a site to it.

Commands:
    siteup deploy PACKAGE SERVICE SITE REPOSITORY_URL [SOURCE_SUBDIR] [SERVER_NAME]
    siteup status PACKAGE SERVICE   - Show package and service state
    siteup platform-info            - Show detected platform and layout
    siteup version                  - Show version
"""

import sys
from typing import Optional

import click

from siteup.config import (
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_INDEX_MAX_AGE,
    DEFAULT_CHECK_TIMEOUT,
    Settings,
)
from siteup.core.models import HostTarget, SiteSpec
from siteup.core.platform import LAYOUTS, Platform
from siteup.errors import EXIT_FAILURE, EXIT_USAGE, SiteupError
from siteup.logging import get_siteup_logger, setup_logging
from siteup.net import build_client, discover_public_address
from siteup.orchestrator import Orchestrator
from siteup.transport import LocalTransport, Transport

logger = get_siteup_logger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


class ExitCodeCommand(click.Command):
    """Reports bad invocations with the usage exit code instead of click's 2."""

    def parse_args(self, ctx, args):
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


def ssh_options(f):
    """Options selecting a remote host over SSH."""
    f = click.option('--sudo', is_flag=True, help='Use sudo for remote commands')(f)
    f = click.option('--port', default=22, help='SSH port (default: 22)')(f)
    f = click.option('--key', help='SSH private key file')(f)
    f = click.option('--user', help='SSH username')(f)
    f = click.option('--host', help='Remote host for SSH (default: this machine)')(f)
    return f


def _open_transport(host: Optional[str], user: Optional[str], key: Optional[str],
                    port: int, sudo: bool, connect_timeout: int) -> Transport:
    """Local transport, or an SSH connection when --host is given."""
    if not host:
        return LocalTransport()

    from siteup.transport.ssh import SSHTransport

    click.echo(f"Connecting to {user or 'current_user'}@{host}:{port}...")
    try:
        return SSHTransport(host=host, port=port, user=user, key_file=key,
                            timeout=connect_timeout, sudo=sudo)
    except Exception as e:
        click.secho(f"SSH connection failed: {e}", fg="red")
        sys.exit(EXIT_FAILURE)


def _default_server_name(host: Optional[str], settings: Settings) -> str:
    """SSH host name, else this machine's public address, else nginx's catch-all."""
    if host:
        return host

    with build_client(settings.check_timeout) as client:
        address = discover_public_address(client)
    if address:
        return address

    logger.warning("Could not discover the public address, using server_name _")
    return "_"


@click.group(invoke_without_command=True)
@click.pass_context
def cli(ctx):
    """siteup - provision a web server and deploy a site from git."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(cls=ExitCodeCommand)
@click.argument('package')
@click.argument('service')
@click.argument('site')
@click.argument('repository_url')
@click.argument('source_subdir', required=False)
@click.argument('server_name', required=False)
@ssh_options
@click.option('--check-timeout', type=float, default=DEFAULT_CHECK_TIMEOUT,
              envvar='SITEUP_CHECK_TIMEOUT', show_default=True,
              help='Seconds to wait for the repository reachability check')
@click.option('--fetch-timeout', type=float, default=DEFAULT_FETCH_TIMEOUT,
              envvar='SITEUP_FETCH_TIMEOUT', show_default=True,
              help='Seconds to wait for git clone')
@click.option('--index-max-age', type=int, default=DEFAULT_INDEX_MAX_AGE,
              envvar='SITEUP_INDEX_MAX_AGE', show_default=True,
              help='Refresh the package index when older than this many seconds')
@click.option('--log-level', type=click.Choice(LOG_LEVELS, case_sensitive=False),
              default='INFO', envvar='SITEUP_LOG_LEVEL', show_default=True)
def deploy(package: str, service: str, site: str, repository_url: str,
           source_subdir: Optional[str], server_name: Optional[str],
           host: Optional[str], user: Optional[str], key: Optional[str],
           port: int, sudo: bool, check_timeout: float, fetch_timeout: float,
           index_max_age: int, log_level: str):
    """
    Install PACKAGE, start and enable SERVICE, create SITE and deploy
    REPOSITORY_URL into it.

    Example:
        sudo siteup deploy nginx nginx blog https://github.com/org/blog-site.git web
        siteup deploy nginx nginx blog https://github.com/org/blog-site.git "" blog.example.com --host web1 --sudo
    """
    setup_logging(log_level)
    settings = Settings(
        check_timeout=check_timeout,
        fetch_timeout=fetch_timeout,
        index_max_age=index_max_age,
        log_level=log_level.upper(),
    )
    target = HostTarget(package_name=package, service_name=service)

    try:
        # Validates the site name before anything touches the host
        SiteSpec(site_name=site, server_name=server_name or "_")
    except SiteupError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(e.exit_code)

    with _open_transport(host, user, key, port, sudo, settings.connect_timeout) as transport:
        site_spec = SiteSpec(
            site_name=site,
            server_name=server_name or _default_server_name(host, settings),
            source_subdir=source_subdir or None,
        )
        result = Orchestrator(transport, settings).run(target, site_spec, repository_url)

    click.echo()
    for resource_id in result.changed:
        click.echo(f"  {resource_id} ... ", nl=False)
        click.secho("✓ Done", fg="green")

    if not result.success:
        click.secho(f"\nFailed at {result.failed_stage}: {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    click.echo()
    logger.success(f"Deployment complete! ({result.duration:.2f}s)")


@cli.command(cls=ExitCodeCommand)
@click.argument('package')
@click.argument('service')
@ssh_options
def status(package: str, service: str, host: Optional[str], user: Optional[str],
           key: Optional[str], port: int, sudo: bool):
    """Show whether PACKAGE is installed and what state SERVICE is in."""
    setup_logging("WARNING")
    with _open_transport(host, user, key, port, sudo, Settings().connect_timeout) as transport:
        try:
            state = Orchestrator(transport).inspect(HostTarget(package, service))
        except SiteupError as e:
            click.secho(f"Error: {e}", fg="red", err=True)
            sys.exit(e.exit_code)

    click.echo(f"Package {package}: {'installed' if state.installed else 'not installed'}")
    click.echo(f"Service {service}: {state.service_state.value}, {state.boot_state.value} at boot")


@cli.command()
def version():
    """Show siteup version."""
    from siteup import __version__
    click.echo(f"siteup version {__version__}")


@cli.command()
def platform_info():
    """Show detected platform information."""
    plat = Platform.detect()
    click.echo("Platform Information:")
    click.echo(f"  System:  {plat.system}")
    click.echo(f"  Distro:  {plat.distro}")
    click.echo(f"  Version: {plat.version}")
    click.echo(f"  Arch:    {plat.arch}")
    click.echo(f"  Family:  {plat.family or 'unsupported'}")

    layout = LAYOUTS.get(plat.family or "")
    if layout:
        click.echo(f"  Packages:       {layout.package_manager}")
        click.echo(f"  Document root:  {layout.docroot_base}")
        click.echo(f"  Sites config:   {layout.sites_available}")
        click.echo(f"  Sites enabled:  {layout.sites_enabled}")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
