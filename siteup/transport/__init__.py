"""
Transport layer for local and remote execution.

Provides abstraction for:
- Local command execution
- SSH remote execution (paramiko)
"""

from siteup.transport.base import Transport, NullTransport
from siteup.transport.local import LocalTransport

__all__ = ["Transport", "NullTransport", "LocalTransport"]
