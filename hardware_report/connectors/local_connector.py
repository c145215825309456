# hardware_report/connectors/local_connector.py
"""
Local connector: runs probes on the host the report is generated on.
"""

import os
import subprocess
import time
from typing import List

from .base_connector import BaseConnector, CommandResult


class LocalConnector(BaseConnector):
    """Executes commands with subprocess and reads files from the local filesystem"""

    is_local = True

    def execute(self, program: str, args: List[str] = None, timeout: float = None,
                privileged: bool = False) -> CommandResult:
        if timeout is None:
            timeout = self.timeout

        argv = self._build_argv(program, args, privileged)
        command = " ".join(argv)
        start_time = time.time()

        self.logger.debug(f"Executing: {self._truncate_command(command)}")

        try:
            # subprocess.run kills the child when the timeout expires
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=timeout,
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(
                False,
                error=f"Command not found: {program}",
                exit_code=self.NOT_FOUND_EXIT_CODE,
                execution_time=time.time() - start_time,
                command=command,
                not_found=True,
            )
        except subprocess.TimeoutExpired:
            execution_time = time.time() - start_time
            error_msg = (f"Command '{self._truncate_command(command)}' timed out after "
                         f"{execution_time:.2f}s (timeout: {timeout}s)")
            self.logger.warning(error_msg)
            return CommandResult(False, error=error_msg, execution_time=execution_time,
                                 command=command, timed_out=True, exit_code=-1)
        except PermissionError as e:
            return CommandResult(False, error=f"Permission denied: {e}", exit_code=126,
                                 execution_time=time.time() - start_time, command=command)
        except OSError as e:
            return CommandResult(False, error=f"Command execution failed: {e}", exit_code=-1,
                                 execution_time=time.time() - start_time, command=command)

        execution_time = time.time() - start_time
        output = completed.stdout.decode('utf-8', errors='replace')
        error = completed.stderr.decode('utf-8', errors='replace')
        success = completed.returncode == 0

        if success:
            self.logger.debug(
                f"Command '{self._truncate_command(command)}' completed in {execution_time:.2f}s")
        else:
            self.logger.debug(
                f"Command '{self._truncate_command(command)}' failed with exit code {completed.returncode}")

        return CommandResult(
            success=success,
            output=output,
            error=error,
            exit_code=completed.returncode,
            execution_time=execution_time,
            command=command,
            not_found=completed.returncode == self.NOT_FOUND_EXIT_CODE,
        )

    def read_text(self, path: str) -> str:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    def list_dir(self, path: str) -> List[str]:
        return sorted(os.listdir(path))

    def read_link(self, path: str) -> str:
        return os.readlink(path)
