"""
Core siteup functionality.

Exports core abstractions and base classes.
"""

from siteup.core.platform import Platform, PlatformLayout, LAYOUTS, detect_layout
from siteup.core.resource import Resource, Plan, Action, Change
from siteup.core.executor import Executor

__all__ = [
    "Platform",
    "PlatformLayout",
    "LAYOUTS",
    "detect_layout",
    "Resource",
    "Plan",
    "Action",
    "Change",
    "Executor",
]
