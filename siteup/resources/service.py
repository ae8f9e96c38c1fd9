"""
Service resource - manage systemd services.

The service's state comes from `systemctl show`, mapped to ServiceState and
BootState; nothing parses human-readable `systemctl status` output.

    current   running=True        enabled=True
    RUNNING   no-op               -
    DEAD      start, verify       -
    FAILED    ServiceInFailedState
    ABSENT    no-op (warning)
    ENABLED   -                   no-op
    DISABLED  -                   enable, verify
    UNKNOWN   -                   no-op
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from siteup.core.platform import Platform
from siteup.core.resource import Action, Change, Plan, Resource
from siteup.errors import (
    ServiceEnableFailed,
    ServiceInFailedState,
    ServiceQueryFailed,
    ServiceRestartFailed,
    ServiceStartFailed,
)
from siteup.logging import get_siteup_logger

logger = get_siteup_logger(__name__)


class ServiceState(Enum):
    RUNNING = "running"
    DEAD = "dead"
    FAILED = "failed"
    ABSENT = "absent"


class BootState(Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ServiceStatus:
    state: ServiceState
    boot: BootState


def parse_show_output(output: str) -> ServiceStatus:
    """Map `systemctl show` properties to a ServiceStatus."""
    props = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep:
            props[key.strip()] = value.strip()

    active = props.get("ActiveState", "")
    if props.get("LoadState") == "not-found":
        state = ServiceState.ABSENT
    elif active in ("active", "reloading"):
        state = ServiceState.RUNNING
    elif active == "failed":
        state = ServiceState.FAILED
    else:
        state = ServiceState.DEAD

    unit_file = props.get("UnitFileState", "")
    if unit_file in ("enabled", "enabled-runtime"):
        boot = BootState.ENABLED
    elif unit_file == "disabled":
        boot = BootState.DISABLED
    else:
        boot = BootState.UNKNOWN

    return ServiceStatus(state=state, boot=boot)


class Service(Resource):
    """
    Service resource for systemd units.

    Examples:
        # Ensure service is running
        Service("nginx", running=True)

        # Ensure enabled at boot
        Service("nginx", enabled=True)

        # Unconditional restart after a deployment
        Service("nginx", transport=transport).ensure_restarted()
    """

    def __init__(
        self,
        name: str,
        running: Optional[bool] = None,
        enabled: Optional[bool] = None,
        **kwargs,
    ):
        super().__init__(name, **kwargs)
        self.service_name = name
        self.running = running
        self.enabled = enabled

    def resource_type(self) -> str:
        return "svc"

    def query(self) -> ServiceStatus:
        output, code = self._transport.run_command(
            [
                "systemctl",
                "show",
                self.service_name,
                "--property=LoadState,ActiveState,UnitFileState",
            ]
        )
        if code != 0:
            raise ServiceQueryFailed(f"Querying service {self.service_name} failed", output)
        return parse_show_output(output)

    def check(self, platform: Platform) -> Dict[str, Any]:
        status = self.query()
        return {
            "exists": status.state != ServiceState.ABSENT,
            "state": status.state,
            "boot": status.boot,
        }

    def desired_state(self) -> Dict[str, Any]:
        state: Dict[str, Any] = {"exists": True}
        if self.running:
            state["state"] = ServiceState.RUNNING
        if self.enabled:
            state["boot"] = BootState.ENABLED
        return state

    def plan(self, platform: Platform) -> Plan:
        self._actual_state = self.check(platform)
        self._desired_state = self.desired_state()

        state = self._actual_state["state"]
        boot = self._actual_state["boot"]

        if state == ServiceState.ABSENT:
            logger.warning(f"{self.service_name} does not exist, nothing to start or enable")
            return Plan(action=Action.NONE, reason="service does not exist")

        changes: List[Change] = []

        if self.running:
            if state == ServiceState.FAILED:
                raise ServiceInFailedState(self.service_name)
            if state == ServiceState.DEAD:
                changes.append(Change("state", state.value, ServiceState.RUNNING.value))

        if self.enabled and boot == BootState.DISABLED:
            changes.append(Change("boot", boot.value, BootState.ENABLED.value))

        if not changes:
            return Plan(action=Action.NONE, reason=f"{state.value}, {boot.value} at boot")

        return Plan(action=Action.UPDATE, changes=changes, reason="Service state differs")

    def apply(self, plan: Plan, platform: Platform) -> None:
        for change in plan.changes:
            if change.field == "state":
                self._start()
            elif change.field == "boot":
                self._enable()

    def _start(self) -> None:
        output, code = self._transport.run_command(["systemctl", "start", self.service_name])
        if code != 0:
            raise ServiceStartFailed(f"Failed to start service {self.service_name}", output)

        status = self.query()
        if status.state != ServiceState.RUNNING:
            raise ServiceStartFailed(
                f"Service {self.service_name} is {status.state.value} after start"
            )

    def _enable(self) -> None:
        output, code = self._transport.run_command(["systemctl", "enable", self.service_name])
        if code != 0:
            raise ServiceEnableFailed(f"Failed to enable service {self.service_name}", output)

        status = self.query()
        if status.boot != BootState.ENABLED:
            raise ServiceEnableFailed(
                f"Service {self.service_name} is {status.boot.value} at boot after enable"
            )

    def ensure_restarted(self) -> None:
        """Restart unconditionally; failure means the deployment did not take effect."""
        output, code = self._transport.run_command(["systemctl", "restart", self.service_name])
        if code != 0:
            raise ServiceRestartFailed(f"Failed to restart service {self.service_name}", output)

        status = self.query()
        if status.state != ServiceState.RUNNING:
            raise ServiceRestartFailed(
                f"Service {self.service_name} is {status.state.value} after restart"
            )
        logger.info(f"{self.service_name} restarted")
