# hardware_report/parsers/memory.py
"""Memory module and capacity parsers"""

import re
from typing import Any, Dict, List

from ..errors import ParseFailedError
from ..models.memory import MemoryModulePartial, MemoryCapacityPartial
from .common import (
    check_dmidecode_output, clean_value, iter_dmidecode_type, load_json,
    parse_int, parse_key_value_lines, parse_memory_speed_mts, parse_size_to_bytes,
    require_mapping, require_text,
)

_MEMORY_TYPE_RE = re.compile(r'\b(LPDDR\d[XE]?|DDR\d|HBM\d?e?|SDRAM|RDRAM)\b', re.IGNORECASE)


def parse_dmidecode_memory(content: str) -> List[MemoryModulePartial]:
    """
    Parse `dmidecode -t 17`. Empty slots are skipped; a table with only
    empty slots yields no modules.
    """
    text = require_text(content, "dmidecode memory")
    check_dmidecode_output(text)
    blocks = list(iter_dmidecode_type(text, 17))
    if not blocks:
        raise ParseFailedError("no Memory Device records in dmidecode output")

    modules = []
    for block in blocks:
        fields = block.fields
        size = parse_size_to_bytes(fields.get('Size'))
        if not size:
            continue
        configured = fields.get('Configured Memory Speed') or fields.get('Configured Clock Speed')
        modules.append(MemoryModulePartial(
            locator=clean_value(fields.get('Locator')),
            bank_locator=clean_value(fields.get('Bank Locator')),
            size_bytes=size,
            memory_type=clean_value(fields.get('Type')),
            speed_mts=parse_memory_speed_mts(fields.get('Speed')),
            configured_speed_mts=parse_memory_speed_mts(configured),
            manufacturer=clean_value(fields.get('Manufacturer')),
            serial_number=clean_value(fields.get('Serial Number')),
            part_number=clean_value(fields.get('Part Number')),
            form_factor=clean_value(fields.get('Form Factor')),
            rank=parse_int(fields.get('Rank')),
        ))
    return modules


def _iter_lshw_banks(node: Any):
    if isinstance(node, list):
        for item in node:
            yield from _iter_lshw_banks(item)
        return
    if not isinstance(node, dict):
        return
    if str(node.get('id', '')).startswith('bank'):
        yield node
    for child in node.get('children') or []:
        yield from _iter_lshw_banks(child)


def parse_lshw_memory(content: str) -> List[MemoryModulePartial]:
    """Parse `lshw -class memory -json` (array or single-object output)"""
    data = load_json(require_text(content, "lshw"), "lshw")
    if not isinstance(data, (list, dict)):
        raise ParseFailedError("unexpected lshw JSON root")

    modules = []
    for bank in _iter_lshw_banks(data):
        size = bank.get('size')
        if not isinstance(size, (int, float)) or size <= 0:
            continue
        description = bank.get('description') or ''
        type_match = _MEMORY_TYPE_RE.search(description)
        speed = None
        clock = bank.get('clock')
        if isinstance(clock, (int, float)) and clock > 0:
            speed = int(round(clock / 1000000))
        modules.append(MemoryModulePartial(
            locator=clean_value(bank.get('slot')),
            size_bytes=int(size),
            memory_type=type_match.group(1).upper() if type_match else None,
            speed_mts=speed,
            manufacturer=clean_value(bank.get('vendor')),
            serial_number=clean_value(bank.get('serial')),
            part_number=clean_value(bank.get('product')),
        ))
    return modules


def parse_proc_meminfo(content: str) -> List[MemoryCapacityPartial]:
    """Parse /proc/meminfo (values in kB)"""
    fields = parse_key_value_lines(require_text(content, "/proc/meminfo"))

    def kb(key):
        value = fields.get(key)
        if value is None:
            return None
        number = parse_int(value.split()[0]) if value.split() else None
        return number * 1024 if number is not None else None

    total = kb('MemTotal')
    if total is None:
        raise ParseFailedError("MemTotal missing from /proc/meminfo")
    return [MemoryCapacityPartial(
        total_bytes=total,
        available_bytes=kb('MemAvailable'),
        swap_total_bytes=kb('SwapTotal'),
    )]


def parse_psutil_memory(content: Dict[str, Any]) -> List[MemoryCapacityPartial]:
    """Parse the psutil memory probe: {'total', 'available', 'swap_total'}"""
    data = require_mapping(content, "psutil memory")
    total = parse_int(data.get('total'))
    if total is None:
        raise ParseFailedError("psutil reported no memory total")
    return [MemoryCapacityPartial(
        total_bytes=total,
        available_bytes=parse_int(data.get('available')),
        swap_total_bytes=parse_int(data.get('swap_total')),
    )]
