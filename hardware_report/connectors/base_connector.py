# hardware_report/connectors/base_connector.py
"""
Base connector interface.
A connector is the process-execution and file-read capability the detectors
run on. It carries no hardware semantics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List
import logging


@dataclass
class CommandResult:
    """Result of command execution"""
    success: bool
    output: str = ""
    error: str = ""
    exit_code: int = 0
    execution_time: float = 0.0
    command: str = ""
    timed_out: bool = False
    not_found: bool = False


class BaseConnector(ABC):
    """
    Abstract base class for connectors.

    Connectors never raise for command failures; they return a CommandResult.
    File operations raise the standard OSError family (FileNotFoundError,
    PermissionError) so sources can classify them.
    """

    # Exit code shells use for "command not found"
    NOT_FOUND_EXIT_CODE = 127
    # Library probes (psutil, NVML) only describe the host they run on
    is_local = False

    def __init__(self, timeout: float = 30, use_sudo: bool = False):
        self.timeout = timeout
        self.use_sudo = use_sudo
        self.logger = logging.getLogger(f"connector.{self.__class__.__name__}")

    @abstractmethod
    def execute(self, program: str, args: List[str] = None, timeout: float = None,
                privileged: bool = False) -> CommandResult:
        """
        Execute a program with arguments.

        Args:
            program: Program name or path
            args: Program arguments
            timeout: Hard wall-clock timeout in seconds (connector default if None)
            privileged: Probe needs elevated privileges; wrapped with sudo when
                the connector is configured to use it

        Returns:
            CommandResult: Command execution result
        """
        pass

    @abstractmethod
    def read_text(self, path: str) -> str:
        """Read a text file, raising FileNotFoundError/PermissionError/OSError"""
        pass

    @abstractmethod
    def list_dir(self, path: str) -> List[str]:
        """List directory entry names, raising FileNotFoundError if absent"""
        pass

    @abstractmethod
    def read_link(self, path: str) -> str:
        """Resolve a symlink target, raising OSError if it is not a link"""
        pass

    def connect(self) -> bool:
        return True

    def disconnect(self):
        pass

    def describe(self) -> str:
        return "local"

    def _build_argv(self, program: str, args: List[str], privileged: bool) -> List[str]:
        argv = [program] + list(args or [])
        if privileged and self.use_sudo:
            argv = ['sudo', '-n'] + argv
        return argv

    def _truncate_command(self, command: str, max_length: int = 80) -> str:
        """Truncate command for logging if it's too long"""
        if len(command) <= max_length:
            return command
        return command[:max_length - 3] + "..."

    def __enter__(self):
        if self.connect():
            return self
        raise ConnectionError(f"Failed to connect to {self.describe()}")

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
