"""
SSH transport - provision a remote host over SSH.
"""

import os
import shlex
import socket
from pathlib import Path
from typing import Optional, Tuple

import paramiko

from siteup.transport.base import Transport


class SSHTransport(Transport):
    """
    SSH transport for running commands on a remote host.

    Uses Paramiko for SSH connectivity.

    Example:
        transport = SSHTransport(
            host="web1.example.com",
            user="admin",
            key_file="~/.ssh/id_ed25519",
            sudo=True,
        )

        with transport:
            output, code = transport.run_command(["systemctl", "is-active", "nginx"])
    """

    def __init__(
        self,
        host: str,
        port: int = 22,
        user: Optional[str] = None,
        password: Optional[str] = None,
        key_file: Optional[str] = None,
        timeout: int = 30,
        sudo: bool = False,
    ):
        """
        Initialize SSH transport and connect.

        Args:
            host: Remote hostname or IP
            port: SSH port (default: 22)
            user: SSH username (default: current user)
            password: SSH password (not recommended)
            key_file: Path to private key file
            timeout: Connection timeout in seconds
            sudo: Run every command through `sudo -n`
        """
        self.host = host
        self.port = port
        self.user = user or os.getenv("USER")
        self.password = password
        self.key_file = key_file
        self.timeout = timeout
        self.sudo = sudo
        self.client: Optional[paramiko.SSHClient] = None

        self._connect()

    def _connect(self) -> None:
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_kwargs = {
            "hostname": self.host,
            "port": self.port,
            "username": self.user,
            "timeout": self.timeout,
        }

        if self.password:
            connect_kwargs["password"] = self.password

        if self.key_file:
            key_path = Path(self.key_file).expanduser()
            connect_kwargs["key_filename"] = str(key_path)

        self.client.connect(**connect_kwargs)

    def _exec(self, command: str, timeout: Optional[float]) -> Tuple[str, int]:
        stdin, stdout, stderr = self.client.exec_command(command, timeout=timeout)
        try:
            output = stdout.read().decode() + stderr.read().decode()
        except socket.timeout as e:
            stdout.channel.close()
            raise TimeoutError(f"Command timed out after {timeout}s on {self.host}: {command}") from e
        exit_code = stdout.channel.recv_exit_status()
        return output, exit_code

    def run_shell(self, command: str, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run command via shell on remote host.

        Returns:
            Tuple of (output, exit_code)
        """
        if self.sudo:
            command = f"sudo -n sh -c {shlex.quote(command)}"
        return self._exec(command, timeout)

    def run_command(self, args: list, timeout: Optional[float] = None) -> Tuple[str, int]:
        """
        Run command from list of arguments on remote host.

        Returns:
            Tuple of (output, exit_code)
        """
        # Paramiko only takes a command string
        command = " ".join(shlex.quote(str(arg)) for arg in args)
        if self.sudo:
            command = f"sudo -n {command}"
        return self._exec(command, timeout)

    def write_file(self, remote_path: str, content: bytes) -> None:
        """
        Write content to file on remote host.

        With sudo, the content goes to a private temp file over SFTP and is
        moved into place with sudo.
        """
        if self.sudo:
            # Unprivileged, so the SFTP session (login user) can write it
            output, code = self._exec("mktemp /tmp/siteup-XXXXXXXX", None)
            if code != 0:
                raise IOError(f"Cannot create temp file on {self.host}: {output.strip()}")
            temp_path = output.strip()

            sftp = self.client.open_sftp()
            try:
                with sftp.open(temp_path, "wb") as f:
                    f.write(content)
            finally:
                sftp.close()

            output, code = self.run_command(["mv", temp_path, remote_path])
            if code != 0:
                raise IOError(f"Cannot write {remote_path} on {self.host}: {output.strip()}")
            # mktemp creates 0600 files
            self.run_command(["chmod", "644", remote_path])
        else:
            sftp = self.client.open_sftp()
            try:
                with sftp.open(remote_path, "wb") as f:
                    f.write(content)
            finally:
                sftp.close()

    def read_file(self, remote_path: str) -> bytes:
        if self.sudo:
            output, code = self.run_command(["cat", remote_path])
            if code != 0:
                raise FileNotFoundError(remote_path)
            return output.encode()

        sftp = self.client.open_sftp()
        try:
            with sftp.open(remote_path, "rb") as f:
                return f.read()
        except IOError as e:
            raise FileNotFoundError(remote_path) from e
        finally:
            sftp.close()

    def file_exists(self, remote_path: str) -> bool:
        _, code = self.run_command(["test", "-e", remote_path])
        return code == 0

    def close(self) -> None:
        if self.client:
            self.client.close()
