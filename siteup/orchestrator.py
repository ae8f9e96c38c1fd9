"""
Orchestrator - the fixed provisioning pipeline.

    detect_platform -> refresh_package_index -> ensure_installed ->
    ensure_running -> ensure_enabled -> provision_directory ->
    activate_vhost -> deploy

Stages run strictly in order and the first SiteupError stops the run.
Nothing is rolled back: a package installed or a service started before
the failure stays that way, and the operator re-runs with corrected input.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional

from siteup.config import Settings
from siteup.core.executor import Executor
from siteup.core.models import (
    HostTarget,
    ProvisionState,
    RepositoryReference,
    SiteDirectory,
    SiteSpec,
    VHostConfig,
)
from siteup.core.platform import Platform, PlatformLayout, detect_layout
from siteup.deploy import Deployer, RepositoryResolver
from siteup.errors import EXIT_OK, SiteupError
from siteup.logging import get_siteup_logger
from siteup.resources import docroot
from siteup.resources.pkg import Package, PackageIndex, get_package_manager
from siteup.resources.service import Service
from siteup.resources.vhost import VirtualHost
from siteup.transport import LocalTransport, Transport

logger = get_siteup_logger(__name__)

STAGES = (
    "detect_platform",
    "refresh_package_index",
    "ensure_installed",
    "ensure_running",
    "ensure_enabled",
    "provision_directory",
    "activate_vhost",
    "deploy",
)


@dataclass
class DeploymentContext:
    """State handed from one stage to the next."""
    target: HostTarget
    site: SiteSpec
    repository_url: str
    platform: Optional[Platform] = None
    layout: Optional[PlatformLayout] = None
    site_dir: Optional[SiteDirectory] = None
    vhost: Optional[VHostConfig] = None
    repository: Optional[RepositoryReference] = None


@dataclass
class PipelineResult:
    """Outcome of one run."""
    completed: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)
    failed_stage: Optional[str] = None
    error: Optional[SiteupError] = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.error is None else self.error.exit_code


class Orchestrator:
    """
    Runs the provisioning pipeline against one host.

    Example:
        with LocalTransport() as transport:
            result = Orchestrator(transport).run(
                HostTarget("nginx", "nginx"),
                SiteSpec("blog", "blog.example.com"),
                "https://github.com/org/blog-site.git",
            )
        sys.exit(result.exit_code)
    """

    def __init__(
        self,
        transport: Transport,
        settings: Optional[Settings] = None,
        resolver: Optional[RepositoryResolver] = None,
    ):
        self.transport = transport
        self.settings = settings or Settings()
        self.resolver = resolver or RepositoryResolver(timeout=self.settings.check_timeout)
        self._executor: Optional[Executor] = None

    def run(self, target: HostTarget, site: SiteSpec, repository_url: str) -> PipelineResult:
        context = DeploymentContext(target=target, site=site, repository_url=repository_url)
        result = PipelineResult()
        self._executor = None
        start_time = time.time()

        for name in STAGES:
            stage = getattr(self, f"_{name}")
            logger.stage(name)
            try:
                stage(context)
            except SiteupError as e:
                logger.error(f"{name} failed: {e}")
                result.failed_stage = name
                result.error = e
                break
            result.completed.append(name)

        if self._executor is not None:
            result.changed = list(self._executor.result.changed_resources)
        if context.repository is not None and result.success:
            result.changed.append(f"deploy:{context.repository.canonical_id}")

        result.duration = time.time() - start_time
        return result

    def inspect(self, target: HostTarget) -> ProvisionState:
        """Read the package and service state without changing anything."""
        _, layout = self._detect()
        manager = get_package_manager(layout.package_manager, self.transport)
        status = Service(target.service_name, transport=self.transport).query()
        return ProvisionState(
            installed=manager.is_installed(target.package_name),
            service_state=status.state,
            boot_state=status.boot,
        )

    def _detect(self):
        # The distro library only reads the local machine
        if isinstance(self.transport, LocalTransport):
            return detect_layout()
        return detect_layout(self.transport)

    @property
    def executor(self) -> Executor:
        if self._executor is None:
            raise RuntimeError("Platform has not been detected yet")
        return self._executor

    # Stages

    def _detect_platform(self, context: DeploymentContext) -> None:
        context.platform, context.layout = self._detect()
        self._executor = Executor(self.transport, context.platform)
        logger.info(
            f"Detected {context.platform.distro} {context.platform.version} "
            f"({context.layout.family} family, {context.layout.package_manager})"
        )

    def _refresh_package_index(self, context: DeploymentContext) -> None:
        self.executor.converge(
            PackageIndex(context.layout.package_manager, max_age=self.settings.index_max_age)
        )

    def _ensure_installed(self, context: DeploymentContext) -> None:
        self.executor.converge(
            Package(context.target.package_name, manager=context.layout.package_manager)
        )

    def _ensure_running(self, context: DeploymentContext) -> None:
        self.executor.converge(Service(context.target.service_name, running=True))

    def _ensure_enabled(self, context: DeploymentContext) -> None:
        self.executor.converge(Service(context.target.service_name, enabled=True))

    def _provision_directory(self, context: DeploymentContext) -> None:
        context.site_dir = docroot.provision(self.executor, context.layout, context.site.site_name)

    def _activate_vhost(self, context: DeploymentContext) -> None:
        vhost = VirtualHost(
            context.site.site_name,
            server_name=context.site.server_name,
            site_dir=context.site_dir,
            layout=context.layout,
        )
        self.executor.converge(vhost)
        context.vhost = vhost.vhost_config

    def _deploy(self, context: DeploymentContext) -> None:
        context.repository = self.resolver.resolve(context.repository_url)
        service = self.executor.bind(Service(context.target.service_name))
        deployer = Deployer(self.transport, service, fetch_timeout=self.settings.fetch_timeout)
        deployer.deploy(context.repository, context.site_dir, context.site.source_subdir)
