__version__ = "0.1.0"

from siteup.core import Resource, Plan, Action, Platform, Executor
from siteup.core.models import HostTarget, SiteSpec, RepositoryReference, SiteDirectory
from siteup.resources import Package, PackageIndex, Service, DocumentRoot, VirtualHost
from siteup.orchestrator import Orchestrator, PipelineResult
from siteup.logging import get_logger, get_siteup_logger, setup_logging

"""
Foundations of siteup:
    Resource is a unit of host state that siteup converges (check, plan, apply).
    Executor converges resources one at a time against a transport.
    Package, Service, DocumentRoot and VirtualHost are the resources a site needs.
    Orchestrator runs the fixed provisioning pipeline and returns a PipelineResult.
"""

__all__ = [
    "Resource",
    "Plan",
    "Action",
    "Platform",
    "Executor",
    "HostTarget",
    "SiteSpec",
    "RepositoryReference",
    "SiteDirectory",
    "Package",
    "PackageIndex",
    "Service",
    "DocumentRoot",
    "VirtualHost",
    "Orchestrator",
    "PipelineResult",
    "get_logger",
    "get_siteup_logger",
    "setup_logging",
]
