"""
Content deployment: repository resolution and the fetch/copy/restart step.
"""

from siteup.deploy.resolver import RepositoryResolver, canonical_id
from siteup.deploy.deployer import Deployer

__all__ = ["RepositoryResolver", "canonical_id", "Deployer"]
