# hardware_report/connectors/ssh_connector.py
"""
SSH connector for inventorying a remote host.
Runs the same probes as the local connector over an SSH session.
"""

import logging
import paramiko
import shlex
import socket
import time
from typing import List, Tuple
from pathlib import Path

from .base_connector import BaseConnector, CommandResult


class SSHConnector(BaseConnector):
    """
    SSH connector for executing probes on remote systems.
    Supports key-based and password authentication.
    """

    READ_CHUNK_SIZE = 32768
    # Seconds between polls of an idle channel
    POLL_INTERVAL = 0.05

    def __init__(self, host: str, port: int = 22, username: str = 'root',
                 password: str = None, ssh_key_path: str = None, timeout: float = 30,
                 use_sudo: bool = False):
        super().__init__(timeout=timeout, use_sudo=use_sudo)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.ssh_key_path = ssh_key_path

        self.client = None
        self.logger = logging.getLogger(f'ssh_connector.{host}')

    def describe(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"

    def connect(self) -> bool:
        """
        Establish SSH connection to the remote host.

        Returns:
            bool: True if connection successful, False otherwise
        """
        try:
            self.client = paramiko.SSHClient()
            self.client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

            connect_params = {
                'hostname': self.host,
                'port': self.port,
                'username': self.username,
                'timeout': self.timeout
            }

            if self.ssh_key_path:
                key_path = Path(self.ssh_key_path).expanduser()
                if key_path.exists():
                    connect_params['key_filename'] = str(key_path)
                    self.logger.debug(f"Using SSH key: {key_path}")
                else:
                    self.logger.warning(f"SSH key not found: {key_path}")
                    if not self.password:
                        return False

            if self.password and not self.ssh_key_path:
                connect_params['password'] = self.password

            self.client.connect(**connect_params)
            self.logger.info(f"SSH connection established to {self.host}:{self.port}")
            return True

        except paramiko.AuthenticationException:
            self.logger.error(f"Authentication failed for {self.host}")
            return False
        except paramiko.SSHException as e:
            self.logger.error(f"SSH connection failed to {self.host}: {e}")
            return False
        except socket.timeout:
            self.logger.error(f"Connection timeout to {self.host}:{self.port}")
            return False
        except OSError as e:
            self.logger.error(f"Unexpected error connecting to {self.host}: {e}")
            return False

    def disconnect(self):
        """Close the SSH connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.logger.debug(f"SSH connection closed to {self.host}")

    def execute(self, program: str, args: List[str] = None, timeout: float = None,
                privileged: bool = False) -> CommandResult:
        argv = self._build_argv(program, args, privileged)
        return self._execute_shell(" ".join(shlex.quote(a) for a in argv), timeout)

    def _execute_shell(self, command: str, timeout: float = None) -> CommandResult:
        if not self.client:
            return CommandResult(False, error="No SSH connection established", command=command,
                                 exit_code=-1)

        if timeout is None:
            timeout = self.timeout

        start_time = time.time()
        self.logger.debug(f"Executing: {self._truncate_command(command)}")

        channel = None
        try:
            stdin, stdout, stderr = self.client.exec_command(command, timeout=timeout, get_pty=False)
            channel = stdout.channel
            stdin.close()

            output, error = self._read_until_exit(channel, start_time + timeout)
            exit_code = channel.recv_exit_status()
            execution_time = time.time() - start_time

            return CommandResult(
                success=exit_code == 0,
                output=output.decode('utf-8', errors='replace'),
                error=error.decode('utf-8', errors='replace'),
                exit_code=exit_code,
                execution_time=execution_time,
                command=command,
                not_found=exit_code == self.NOT_FOUND_EXIT_CODE,
            )

        except socket.timeout:
            execution_time = time.time() - start_time
            error_msg = (f"Command '{self._truncate_command(command)}' timed out after "
                         f"{execution_time:.2f}s (timeout: {timeout}s)")
            self.logger.warning(error_msg)
            return CommandResult(False, error=error_msg, execution_time=execution_time,
                                 command=command, timed_out=True, exit_code=-1)

        except (paramiko.SSHException, OSError) as e:
            execution_time = time.time() - start_time
            error_msg = f"Command '{self._truncate_command(command)}' execution failed: {str(e)}"
            self.logger.error(error_msg)
            return CommandResult(False, error=error_msg, execution_time=execution_time,
                                 command=command, exit_code=-1)

        finally:
            # Closing the channel ends the remote session, a timed-out probe included
            if channel is not None:
                channel.close()

    def _read_until_exit(self, channel, deadline: float) -> Tuple[bytes, bytes]:
        """
        Collect stdout and stderr until the remote command exits.

        Args:
            channel: paramiko Channel of the running command
            deadline: time.time() value after which the command is abandoned

        Returns:
            (stdout, stderr) bytes

        Raises:
            socket.timeout: deadline passed, even if the command is still printing
        """
        output, error = [], []
        while True:
            received = False
            if channel.recv_ready():
                output.append(channel.recv(self.READ_CHUNK_SIZE))
                received = True
            if channel.recv_stderr_ready():
                error.append(channel.recv_stderr(self.READ_CHUNK_SIZE))
                received = True
            if not received and channel.exit_status_ready():
                return b''.join(output), b''.join(error)
            if time.time() >= deadline:
                raise socket.timeout()
            if not received:
                time.sleep(self.POLL_INTERVAL)

    def read_text(self, path: str) -> str:
        result = self._execute_shell(f"cat -- {shlex.quote(path)}")
        if result.success:
            return result.output
        self._raise_file_error(path, result)

    def list_dir(self, path: str) -> List[str]:
        result = self._execute_shell(f"ls -1A -- {shlex.quote(path)}")
        if result.success:
            return sorted(line for line in result.output.splitlines() if line)
        self._raise_file_error(path, result)

    def read_link(self, path: str) -> str:
        result = self._execute_shell(f"readlink -- {shlex.quote(path)}")
        if result.success and result.output.strip():
            return result.output.strip()
        self._raise_file_error(path, result)

    def _raise_file_error(self, path: str, result: CommandResult):
        message = result.error.strip().split('\n')[0] if result.error.strip() else path
        lowered = message.lower()
        if 'no such file' in lowered:
            raise FileNotFoundError(message)
        if 'permission denied' in lowered or 'operation not permitted' in lowered:
            raise PermissionError(message)
        raise OSError(message)
