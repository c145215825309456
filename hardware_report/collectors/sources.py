# hardware_report/collectors/sources.py
"""
Raw sources: execute one probe through a connector and return its output.

A source carries no hardware semantics. It returns a RawOutput or raises a
DetectionError describing why the probe produced nothing usable.
"""

import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import (
    DetectionError, ExecutionFailedError, PermissionDeniedError, UnavailableError,
)

# stderr fragments that mean "needs root"
PERMISSION_MARKERS = (
    'permission denied',
    'operation not permitted',
    'must be run as root',
    'you must be root',
    'requires root',
    'a password is required',
    'insufficient permissions',
    'insufficient privileges',
)

NOT_FOUND_MARKERS = (
    'command not found',
    'no such file or directory',
)


@dataclass(frozen=True)
class RawOutput:
    """Output of one probe, consumed once by one parser"""
    source: str
    content: Any
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    exit_code: Optional[int] = None


class RawSource(ABC):
    """A single external probe"""

    privileged = False

    @abstractmethod
    def fetch(self, connector) -> RawOutput:
        """
        Run the probe.

        Args:
            connector: Connector to execute commands and read files with

        Returns:
            RawOutput: the probe output

        Raises:
            DetectionError: the probe produced nothing usable
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        pass


def classify_command_failure(program: str, result) -> DetectionError:
    """Map a failed CommandResult onto the detection error taxonomy"""
    if result.timed_out:
        return ExecutionFailedError(f"{program} timed out: {result.error}")
    stderr = (result.error or '').strip()
    lowered = stderr.lower()
    if result.not_found or (program in lowered and any(marker in lowered for marker in NOT_FOUND_MARKERS)):
        return UnavailableError(f"{program} not found")
    if result.exit_code == 126 or any(marker in lowered for marker in PERMISSION_MARKERS):
        return PermissionDeniedError(f"{program}: {_first_line(stderr) or 'permission denied'}")
    return ExecutionFailedError(
        f"{program} exited with {result.exit_code}: {_first_line(stderr) or 'no error output'}"
    )


def _first_line(text: str) -> str:
    return text.strip().splitlines()[0] if text and text.strip() else ''


def _file_error(path: str, error: OSError) -> DetectionError:
    if isinstance(error, FileNotFoundError):
        return UnavailableError(f"{path} does not exist")
    if isinstance(error, PermissionError):
        return PermissionDeniedError(f"{path}: permission denied")
    return ExecutionFailedError(f"{path}: {error}")


class CommandSource(RawSource):
    """Run a program and return its stdout"""

    def __init__(self, program: str, args: Sequence[str] = (), timeout: float = None,
                 privileged: bool = False):
        self.program = program
        self.args = list(args)
        self.timeout = timeout
        self.privileged = privileged

    def describe(self) -> str:
        return " ".join([self.program] + self.args)

    def fetch(self, connector) -> RawOutput:
        result = connector.execute(self.program, self.args, self.timeout, self.privileged)
        if not result.success:
            raise classify_command_failure(self.program, result)
        return RawOutput(self.describe(), result.output, exit_code=result.exit_code)


class FileSource(RawSource):
    """Read one pseudo-file"""

    def __init__(self, path: str):
        self.path = path

    def describe(self) -> str:
        return self.path

    def fetch(self, connector) -> RawOutput:
        try:
            content = connector.read_text(self.path)
        except OSError as e:
            raise _file_error(self.path, e)
        return RawOutput(self.path, content)


class SysfsTreeSource(RawSource):
    """
    Walk one sysfs directory.

    For each entry, reads the declared attribute files and resolves the
    declared symlinks (stored as the basename of the link target). Attributes
    that are missing or unreadable for an entry are skipped; a missing root
    means the subsystem is unavailable.

    Content: {entry: {attribute: value}}
    """

    def __init__(self, root: str, attributes: Sequence[str] = (), links: Sequence[str] = (),
                 entry_filter: str = None):
        self.root = root.rstrip('/')
        self.attributes = list(attributes)
        self.links = list(links)
        self.entry_filter = re.compile(entry_filter) if entry_filter else None

    def describe(self) -> str:
        return f"{self.root}/*"

    def fetch(self, connector) -> RawOutput:
        try:
            entries = connector.list_dir(self.root)
        except OSError as e:
            raise _file_error(self.root, e)

        tree = {}
        for entry in entries:
            if self.entry_filter and not self.entry_filter.match(entry):
                continue
            base = f"{self.root}/{entry}"
            values = {}
            for attribute in self.attributes:
                try:
                    values[attribute] = connector.read_text(f"{base}/{attribute}").strip()
                except OSError:
                    continue
            for link in self.links:
                try:
                    values[link] = posixpath.basename(connector.read_link(f"{base}/{link}").rstrip('/'))
                except OSError:
                    continue
            tree[entry] = values
        return RawOutput(self.describe(), tree)


class PerEntryCommandSource(RawSource):
    """
    Run one command per sysfs entry, e.g. `ethtool <iface>` for every entry of
    /sys/class/net. '{entry}' in the argument template is replaced with the
    entry name. Entries whose command fails are skipped; if every command
    fails the first failure is raised.

    Content: {entry: stdout}
    """

    def __init__(self, entries_root: str, program: str, args_template: Sequence[str],
                 timeout: float = None, privileged: bool = False, entry_filter: str = None):
        self.entries_root = entries_root.rstrip('/')
        self.program = program
        self.args_template = list(args_template)
        self.timeout = timeout
        self.privileged = privileged
        self.entry_filter = re.compile(entry_filter) if entry_filter else None

    def describe(self) -> str:
        return f"{self.program} {' '.join(self.args_template)} for {self.entries_root}/*"

    def fetch(self, connector) -> RawOutput:
        try:
            entries = connector.list_dir(self.entries_root)
        except OSError as e:
            raise _file_error(self.entries_root, e)

        outputs = {}
        failures = []
        for entry in entries:
            if self.entry_filter and not self.entry_filter.match(entry):
                continue
            args = [arg.format(entry=entry) for arg in self.args_template]
            result = connector.execute(self.program, args, self.timeout, self.privileged)
            if result.success:
                outputs[entry] = result.output
                continue
            error = classify_command_failure(self.program, result)
            if isinstance(error, UnavailableError):
                # Missing tool fails the same way for every entry
                raise error
            failures.append(error)

        if not outputs and failures:
            raise failures[0]
        return RawOutput(self.describe(), outputs)


class LibrarySource(RawSource):
    """
    Call an in-process library probe (psutil, NVML).

    Library probes describe the machine the report runs on, so they are
    unavailable when the connector targets a remote host. Any exception the
    library raises means the library cannot serve this host.
    """

    def __init__(self, name: str, func: Callable[[], Any]):
        self.name = name
        self.func = func

    def describe(self) -> str:
        return self.name

    def fetch(self, connector) -> RawOutput:
        if not getattr(connector, 'is_local', False):
            raise UnavailableError(f"{self.name} only probes the local host")
        try:
            content = self.func()
        except Exception as e:
            raise UnavailableError(f"{self.name}: {type(e).__name__}: {e}")
        return RawOutput(self.name, content)
