"""
Local transport - run commands on local machine.
"""

import subprocess
from pathlib import Path
from typing import Optional, Tuple

from siteup.transport.base import Transport


class LocalTransport(Transport):
    """
    Local transport for running commands on the local machine.

    Uses subprocess for command execution.
    """

    def run_shell(self, command: str, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run command via shell.

        Returns:
            Tuple of (output, exit_code)
        """
        try:
            result = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"Command timed out after {timeout}s: {command}") from e
        return result.stdout + result.stderr, result.returncode

    def run_command(self, args: list, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run command from list of arguments (no shell).

        A missing executable is reported like the shell does, exit code 127.

        Returns:
            Tuple of (output, exit_code)
        """
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return f"{args[0]}: command not found", 127
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"Command timed out after {timeout}s: {' '.join(args)}") from e
        return result.stdout + result.stderr, result.returncode

    def write_file(self, path: str, content: bytes) -> None:
        Path(path).write_bytes(content)

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def file_exists(self, path: str) -> bool:
        return Path(path).exists()

    def is_symlink(self, path: str) -> bool:
        return Path(path).is_symlink()

    def is_directory(self, path: str) -> bool:
        return Path(path).is_dir()

    def close(self) -> None:
        """No-op for local transport."""
        pass
