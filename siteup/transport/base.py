"""
Base transport interface.

All transport implementations (Local, SSH) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple


class Transport(ABC):
    """
    Abstract base class for command running and file operations on the
    target host.

    Implementations:
    - LocalTransport: Run commands locally
    - SSHTransport: Run commands on remote host via SSH

    Commands that exceed `timeout` raise TimeoutError.
    """

    @abstractmethod
    def run_shell(self, command: str, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run a command via shell and return output and exit code.

        Args:
            command: Command to run (as shell string)
            timeout: Seconds before giving up (None = wait forever)

        Returns:
            Tuple of (output, exit_code)
        """
        pass

    @abstractmethod
    def run_command(self, args: list, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run a command from list of arguments (no shell).

        Args:
            args: Command and arguments as list
            timeout: Seconds before giving up (None = wait forever)

        Returns:
            Tuple of (output, exit_code)

        Example:
            output, code = transport.run_command(["systemctl", "start", "nginx"])
        """
        pass

    @abstractmethod
    def write_file(self, remote_path: str, content: bytes) -> None:
        """
        Write content to a file.

        Raises:
            IOError: If write fails
        """
        pass

    @abstractmethod
    def read_file(self, remote_path: str) -> bytes:
        """
        Read file content.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        pass

    @abstractmethod
    def file_exists(self, remote_path: str) -> bool:
        """Check if a path exists (follows symlinks)."""
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close transport connection.

        For LocalTransport this is a no-op.
        For SSHTransport this closes the SSH connection.
        """
        pass

    def is_symlink(self, remote_path: str) -> bool:
        _, code = self.run_command(["test", "-L", remote_path])
        return code == 0

    def path_present(self, remote_path: str) -> bool:
        """Check if a path exists, counting dangling symlinks as present."""
        return self.file_exists(remote_path) or self.is_symlink(remote_path)

    def is_directory(self, remote_path: str) -> bool:
        _, code = self.run_command(["test", "-d", remote_path])
        return code == 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class NullTransport(Transport):
    """
    Null Object implementation for Transport.

    Raises helpful errors when used, indicating that the resource was not
    bound to a transport before being checked or applied.
    """

    def _raise_error(self, method_name: str) -> None:
        raise RuntimeError(
            f"Cannot call {method_name}: Transport not initialized. "
            f"Resources must be converged through an Executor "
            f"or given a transport explicitly."
        )

    def run_shell(self, command: str, timeout: Optional[float] = None) -> Tuple[str, int]:
        self._raise_error("run_shell()")
        return ("", 1)  # Never reached, but satisfies type checker

    def run_command(self, args: list, timeout: Optional[float] = None) -> Tuple[str, int]:
        self._raise_error("run_command()")
        return ("", 1)

    def write_file(self, remote_path: str, content: bytes) -> None:
        self._raise_error("write_file()")

    def read_file(self, remote_path: str) -> bytes:
        self._raise_error("read_file()")
        return b""

    def file_exists(self, remote_path: str) -> bool:
        self._raise_error("file_exists()")
        return False

    def close(self) -> None:
        """No-op for null transport."""
        pass
