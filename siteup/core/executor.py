"""
Executor - converges resources against the target host.

The executor:
1. Binds the transport to a resource
2. Plans it (check + diff against desired state)
3. Applies the plan only when something differs
4. Re-checks so callers see the post-apply state

Errors are not caught: the first failure stops the caller's pipeline.
"""

from dataclasses import dataclass, field
from typing import List

from siteup.core.platform import Platform
from siteup.core.resource import Resource, Plan
from siteup.logging import get_siteup_logger
from siteup.transport import Transport

logger = get_siteup_logger(__name__)


@dataclass
class ConvergeResult:
    """Which resources an executor changed, in order."""
    changed_resources: List[str] = field(default_factory=list)
    unchanged_resources: List[str] = field(default_factory=list)

    @property
    def change_count(self) -> int:
        return len(self.changed_resources)


class Executor:
    """
    Resource executor implementing the plan/apply workflow.

    Example:
        executor = Executor(transport, platform)
        executor.converge(Package("nginx", manager))
        executor.converge(Service("nginx", running=True))
        print(f"Changed {executor.result.change_count} resources")
    """

    def __init__(self, transport: Transport, platform: Platform):
        self.transport = transport
        self.platform = platform
        self.result = ConvergeResult()

    def bind(self, resource: Resource) -> Resource:
        """Attach this executor's transport to a resource."""
        resource._transport = self.transport
        return resource

    def plan(self, resource: Resource) -> Plan:
        """Plan a resource without applying it."""
        self.bind(resource)
        return resource.plan(self.platform)

    def converge(self, resource: Resource) -> Plan:
        """
        Bring a resource to its desired state.

        Returns:
            The plan that was applied (Action.NONE when nothing changed)
        """
        plan = self.plan(resource)

        if not plan.has_changes():
            logger.skip(resource.id, plan.reason or "no changes needed")
            self.result.unchanged_resources.append(resource.id)
            return plan

        logger.action(plan.action.value, resource.id, plan.reason)
        resource.apply(plan, self.platform)
        self.result.changed_resources.append(resource.id)

        # Refresh actual state after apply
        resource._actual_state = resource.check(self.platform)
        return plan
