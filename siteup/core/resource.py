"""
Core resource abstraction for siteup.

Convergent stages (package, service, document root, virtual host) inherit
from Resource and implement the Check/Plan/Apply pattern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, List, TYPE_CHECKING

from siteup.core.platform import Platform
from siteup.transport import NullTransport

if TYPE_CHECKING:
    from siteup.transport import Transport


class Action(Enum):
    """Resource actions during apply."""
    NONE = "none"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Change:
    """Represents a single property change."""
    field: str
    from_value: Any
    to_value: Any

    def __str__(self):
        return f"{self.field}: {self.from_value} → {self.to_value}"


@dataclass
class Plan:
    """
    Execution plan for a resource.

    Shows what will change before anything is applied.
    """
    action: Action
    changes: List[Change] = field(default_factory=list)
    reason: str = ""

    def has_changes(self) -> bool:
        """Check if plan has any changes."""
        return self.action != Action.NONE and len(self.changes) > 0

    def __str__(self):
        if self.action == Action.NONE:
            return "No changes"

        lines = [f"Action: {self.action.value}"]
        if self.reason:
            lines.append(f"Reason: {self.reason}")
        for change in self.changes:
            lines.append(f"  {change}")
        return "\n".join(lines)


class Resource(ABC):
    """
    Base class for all resources.

    Resources follow the Check → Plan → Apply pattern:
    1. Check: Inspect current state
    2. Plan: Determine what needs to change
    3. Apply: Make the changes
    """

    def __init__(self, name: str, transport: Optional["Transport"] = None):
        """
        Initialize resource.

        Args:
            name: Resource identifier (e.g., "nginx", "/var/www/blog")
            transport: Transport to the target host (the executor sets it
                when omitted)
        """
        self.name = name
        self._desired_state: Dict[str, Any] = {}
        self._actual_state: Dict[str, Any] = {}
        self._transport: "Transport" = transport or NullTransport()

    @property
    def id(self) -> str:
        """
        Unique resource identifier.

        Format: resource_type:name
        Example: pkg:nginx, svc:nginx
        """
        return f"{self.resource_type()}:{self.name}"

    @property
    def actual_state(self) -> Dict[str, Any]:
        return self._actual_state

    @abstractmethod
    def resource_type(self) -> str:
        """Return resource type string (pkg, svc, docroot, vhost)."""
        pass

    @abstractmethod
    def check(self, platform: Platform) -> Dict[str, Any]:
        """
        Check current state of the resource.

        Returns:
            Dictionary of current state properties

        Example:
            {"exists": True, "installed": True}
        """
        pass

    @abstractmethod
    def desired_state(self) -> Dict[str, Any]:
        """Return desired state properties."""
        pass

    def plan(self, platform: Platform) -> Plan:
        """
        Generate execution plan by comparing desired vs actual state.

        Args:
            platform: Platform information

        Returns:
            Plan object describing changes
        """
        self._actual_state = self.check(platform)
        self._desired_state = self.desired_state()

        exists = self._actual_state.get("exists", False)
        should_exist = self._desired_state.get("exists", True)

        if not exists and should_exist:
            action = Action.CREATE
            reason = "Resource does not exist"
        elif exists and not should_exist:
            action = Action.DELETE
            reason = "Resource should not exist"
        elif not exists and not should_exist:
            action = Action.NONE
            reason = "Resource correctly absent"
        else:
            changes = self._detect_changes()
            if changes:
                return Plan(
                    action=Action.UPDATE,
                    changes=changes,
                    reason="Properties differ from desired state",
                )
            action = Action.NONE
            reason = "No changes needed"

        changes = []
        if action == Action.CREATE:
            for key, value in self._desired_state.items():
                if key != "exists":
                    changes.append(Change(key, None, value))
        elif action == Action.DELETE:
            for key, value in self._actual_state.items():
                if key != "exists":
                    changes.append(Change(key, value, None))

        return Plan(action=action, changes=changes, reason=reason)

    def _detect_changes(self) -> List[Change]:
        """Detect changes between actual and desired state."""
        changes = []

        for key, desired_value in self._desired_state.items():
            if key == "exists":
                continue

            actual_value = self._actual_state.get(key)

            if desired_value is None and actual_value is None:
                continue

            if actual_value != desired_value:
                changes.append(Change(key, actual_value, desired_value))

        return changes

    @abstractmethod
    def apply(self, plan: Plan, platform: Platform) -> None:
        """
        Apply the execution plan.

        Raises:
            SiteupError if apply fails
        """
        pass

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"

    def __str__(self):
        return self.id
