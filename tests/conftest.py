# tests/conftest.py
"""
Shared fixtures: a connector that serves canned command output and files so
every sub-collector can run without hardware.
"""

import pytest

from hardware_report.config.settings import ReportConfig
from hardware_report.connectors.base_connector import BaseConnector, CommandResult


class FakeConnector(BaseConnector):
    """
    In-memory connector.

    commands maps 'program arg1 arg2' to stdout text or a CommandResult.
    files maps paths to text, or to an exception instance to raise.
    dirs maps directory paths to entry names, links map paths to targets.
    Unknown commands fail like a missing program; unknown paths raise
    FileNotFoundError.
    """

    def __init__(self, commands=None, files=None, dirs=None, links=None,
                 is_local=False, connect_ok=True):
        super().__init__(timeout=5)
        self.commands = dict(commands or {})
        self.files = dict(files or {})
        self.dirs = dict(dirs or {})
        self.links = dict(links or {})
        self.is_local = is_local
        self.connect_ok = connect_ok
        self.executed = []
        self.disconnected = False

    def execute(self, program, args=None, timeout=None, privileged=False):
        command = " ".join([program] + list(args or []))
        self.executed.append(command)
        response = self.commands.get(command)
        if response is None:
            return CommandResult(False, error=f"{program}: command not found", exit_code=127,
                                 command=command, not_found=True)
        if isinstance(response, CommandResult):
            return response
        return CommandResult(True, output=response, command=command)

    def read_text(self, path):
        if path not in self.files:
            raise FileNotFoundError(path)
        value = self.files[path]
        if isinstance(value, Exception):
            raise value
        return value

    def list_dir(self, path):
        if path not in self.dirs:
            raise FileNotFoundError(path)
        return sorted(self.dirs[path])

    def read_link(self, path):
        if path not in self.links:
            raise OSError(22, "Invalid argument", path)
        return self.links[path]

    def connect(self):
        return self.connect_ok

    def disconnect(self):
        self.disconnected = True

    def describe(self):
        return "fake"

    def add_tree(self, root, entries):
        """Register a sysfs-style tree: {entry: {attribute: value}}"""
        self.dirs[root] = list(entries)
        for entry, attributes in entries.items():
            for attribute, value in attributes.items():
                self.files[f"{root}/{entry}/{attribute}"] = value


@pytest.fixture
def fake_connector():
    """Connector with nothing installed and nothing readable"""
    return FakeConnector()


@pytest.fixture
def report_config():
    """Serial, strict configuration so failures surface in tests"""
    return ReportConfig(parallel_detectors=False, parallel_categories=False, strict_units=True)
