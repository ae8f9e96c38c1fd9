"""
Host resources managed by siteup.
"""

from siteup.resources.pkg import Package, PackageIndex, get_package_manager
from siteup.resources.service import Service, ServiceState, BootState
from siteup.resources.docroot import DocumentRoot
from siteup.resources.vhost import VirtualHost

__all__ = [
    "Package",
    "PackageIndex",
    "get_package_manager",
    "Service",
    "ServiceState",
    "BootState",
    "DocumentRoot",
    "VirtualHost",
]
