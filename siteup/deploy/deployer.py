"""
Deployer - fetch the site's content and put it in the document root.

Steps, all on the target host:
1. git clone into a fresh temp directory, named by the canonical id
2. pick the deployment root (the requested subdirectory if present)
3. cp -R with merge semantics into the site directory, then chown
4. remove the temp directory, whatever happened in 1-3
5. restart the service
"""

import posixpath
from typing import Optional

from siteup.config import DEFAULT_FETCH_TIMEOUT
from siteup.core.models import RepositoryReference, SiteDirectory
from siteup.errors import DeploymentCopyFailed, FetchFailed
from siteup.logging import get_siteup_logger
from siteup.resources.service import Service
from siteup.transport import Transport

logger = get_siteup_logger(__name__)


def normalize_subdir(subdir: Optional[str]) -> Optional[str]:
    """
    Turn a user-supplied subdirectory into a path relative to the checkout.

    Returns None for empty input or anything escaping the checkout.
    """
    if not subdir:
        return None
    rel = posixpath.normpath(subdir.strip("/"))
    if rel in (".", "") or rel == ".." or rel.startswith("../"):
        return None
    return rel


class Deployer:
    """
    Example:
        deployer = Deployer(transport, Service("nginx", transport=transport))
        deployer.deploy(ref, site_dir, subdir="web")
    """

    def __init__(
        self,
        transport: Transport,
        service: Service,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ):
        self.transport = transport
        self.service = service
        self.fetch_timeout = fetch_timeout

    def deploy(
        self,
        repo: RepositoryReference,
        site_dir: SiteDirectory,
        subdir: Optional[str] = None,
    ) -> None:
        workdir = self._make_workdir()
        try:
            checkout = posixpath.join(workdir, repo.canonical_id)
            self._clone(repo.url, checkout)
            root = self._deployment_root(checkout, subdir)
            self._copy(root, site_dir)
        finally:
            self._cleanup(workdir)

        logger.info(f"Restarting {self.service.service_name}")
        self.service.ensure_restarted()

    def _make_workdir(self) -> str:
        output, code = self.transport.run_command(["mktemp", "-d", "-t", "siteup-XXXXXXXX"])
        if code != 0:
            raise FetchFailed("Cannot create a temporary fetch directory", output)
        return output.strip()

    def _clone(self, url: str, checkout: str) -> None:
        logger.info(f"Pulling the source code from {url}")
        try:
            output, code = self.transport.run_command(
                ["git", "clone", "--depth", "1", url, checkout],
                timeout=self.fetch_timeout,
            )
        except TimeoutError as e:
            raise FetchFailed(f"Cloning {url} timed out", str(e)) from e
        if code != 0:
            raise FetchFailed(f"Cloning {url} failed with exit status {code}", output)

    def _deployment_root(self, checkout: str, subdir: Optional[str]) -> str:
        rel = normalize_subdir(subdir)
        if rel is not None:
            candidate = posixpath.join(checkout, rel)
            if self.transport.is_directory(candidate):
                return candidate
            logger.warning(f"{subdir} not found in the repository, deploying its root")
        elif subdir:
            logger.warning(f"Ignoring source directory {subdir!r}, deploying the repository root")

        # Never publish repository metadata
        self._run(["rm", "-rf", posixpath.join(checkout, ".git")])
        return checkout

    def _copy(self, root: str, site_dir: SiteDirectory) -> None:
        logger.info(f"Copying files and folders to {site_dir.path}")
        self._run(["cp", "-R", f"{root}/.", site_dir.path])
        self._run(["chown", "-R", site_dir.owner, site_dir.path])

    def _cleanup(self, workdir: str) -> None:
        output, code = self.transport.run_command(["rm", "-rf", workdir])
        if code != 0:
            logger.warning(f"Could not remove {workdir}: {output.strip()}")

    def _run(self, args: list) -> None:
        output, code = self.transport.run_command(args)
        if code != 0:
            raise DeploymentCopyFailed(f"'{' '.join(args)}' failed", output)
