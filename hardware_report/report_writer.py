# hardware_report/report_writer.py
"""
Report serialization to JSON, YAML or TOML.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict

import tomli_w
import yaml

logger = logging.getLogger('report_writer')

_UNSAFE_FILENAME_RE = re.compile(r'[^A-Za-z0-9._-]')


def _drop_nulls(value: Any) -> Any:
    """TOML has no null: unknown fields are left out"""
    if isinstance(value, dict):
        return {k: _drop_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [_drop_nulls(v) for v in value if v is not None]
    return value


class ReportWriter:
    """Renders a report dictionary and writes it to a file"""

    FORMATS = ('json', 'yaml', 'toml')
    EXTENSIONS = {'json': '.json', 'yaml': '.yml', 'toml': '.toml'}

    def __init__(self, output_format: str = 'json'):
        if output_format not in self.FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}")
        self.output_format = output_format

    def render(self, report: Dict[str, Any]) -> str:
        if self.output_format == 'json':
            return json.dumps(report, indent=2, default=str) + "\n"
        # Round-trip through JSON so tuples and enums become plain types
        plain = json.loads(json.dumps(report, default=str))
        if self.output_format == 'yaml':
            return yaml.safe_dump(plain, default_flow_style=False, indent=2, sort_keys=False)
        return tomli_w.dumps(_drop_nulls(plain))

    def write(self, report: Dict[str, Any], output_file: str) -> Path:
        """
        Save a rendered report.

        Args:
            report: Report dictionary
            output_file: Output path; parent directories are created. An
                existing directory gets default_filename() inside it.

        Returns:
            Path written
        """
        path = Path(output_file)
        if path.is_dir():
            path = path / self.default_filename(str(report.get('hostname') or 'unknown'))
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            f.write(self.render(report))
        logger.debug(f"Saved report to {path}")
        return path

    def default_filename(self, hostname: str) -> str:
        """'node01.example.com' -> 'node01.example.com_hardware.json'"""
        safe_name = _UNSAFE_FILENAME_RE.sub('_', hostname) or 'unknown'
        return f"{safe_name}_hardware{self.EXTENSIONS[self.output_format]}"
