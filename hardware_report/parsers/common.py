# hardware_report/parsers/common.py
"""
Shared parsing helpers: unit conversion, key/value splitting, dmidecode
block handling, placeholder filtering.

Unit helpers return None for input they do not recognize. Parsers decide
whether a missing value is acceptable or makes the whole output malformed.
"""

import json
import re
from collections import namedtuple
from typing import Any, Dict, Iterator, List, Optional

from ..errors import ParseFailedError

SECTOR_SIZE = 512

BINARY_MULTIPLIERS = {
    '': 1,
    'B': 1,
    'K': 1024,
    'M': 1024 ** 2,
    'G': 1024 ** 3,
    'T': 1024 ** 4,
    'P': 1024 ** 5,
}

# Values firmware and tools print when a field is not populated
PLACEHOLDER_VALUES = frozenset(v.casefold() for v in (
    'Not Specified',
    'Not Provided',
    'Not Present',
    'Not Available',
    'Not Applicable',
    'To Be Filled By O.E.M.',
    'To be filled by O.E.M.',
    'Default string',
    'System Product Name',
    'System manufacturer',
    'System Serial Number',
    'Unknown',
    'None',
    'N/A',
    '[N/A]',
    'NO DIMM',
    'Empty',
    '0123456789',
    '00000000',
    '0000000000000000',
    'Base Board Serial Number',
    'Chassis Serial Number',
    '<OUT OF SPEC>',
    '-',
))

_SIZE_RE = re.compile(r'^\s*(?P<number>\d+(?:\.\d+)?)\s*(?P<unit>[KMGTP]?)(?:i?B)?(?:ytes)?\b', re.IGNORECASE)
_EXACT_BYTES_RE = re.compile(r'\((?P<bytes>\d+)\s*bytes\)', re.IGNORECASE)
_SPEED_RE = re.compile(
    r'^\s*(?P<number>\d+(?:\.\d+)?)\s*(?P<unit>[KMGT]?)(?:b(?:it)?(?:ps|/s|/sec|/second)?)?\s*$',
    re.IGNORECASE,
)
_MEMORY_SPEED_RE = re.compile(r'^\s*(?P<number>\d+(?:\.\d+)?)\s*(?:MT/s|MHz)?\s*$', re.IGNORECASE)

SPEED_MULTIPLIERS = {'': 1, 'K': 0.001, 'M': 1, 'G': 1000, 'T': 1000000}


def clean_value(value: Any) -> Optional[str]:
    """Strip a raw value; placeholders and empty strings become None"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.casefold() in PLACEHOLDER_VALUES:
        return None
    return text


def parse_int(value: Any, base: int = 10) -> Optional[int]:
    """Tolerant integer parse; None if the value is missing or not a number"""
    text = clean_value(value)
    if text is None:
        return None
    try:
        if base == 16 or text.lower().startswith('0x'):
            return int(text, 16)
        return int(float(text)) if '.' in text else int(text, base)
    except ValueError:
        return None


def parse_bool_flag(value: Any) -> Optional[bool]:
    """'1'/'0', 'true'/'false', 'yes'/'no' -> bool"""
    text = clean_value(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in ('1', 'true', 'yes'):
        return True
    if lowered in ('0', 'false', 'no'):
        return False
    return None


def sectors_to_bytes(value: Any) -> Optional[int]:
    """Kernel block sizes are in fixed 512-byte sectors"""
    sectors = parse_int(value)
    if sectors is None:
        return None
    return sectors * SECTOR_SIZE


def khz_to_mhz(value: Any) -> Optional[int]:
    """cpufreq files report kHz: '3500000' -> 3500"""
    khz = parse_int(value)
    if khz is None:
        return None
    return int(round(khz / 1000))


def parse_mhz(value: Any) -> Optional[int]:
    """'3500.0000' or '3500 MHz' -> 3500"""
    text = clean_value(value)
    if text is None:
        return None
    match = re.match(r'^\s*(\d+(?:\.\d+)?)\s*(GHz|MHz)?', text, re.IGNORECASE)
    if not match:
        return None
    number = float(match.group(1))
    if (match.group(2) or '').lower() == 'ghz':
        number *= 1000
    return int(round(number))


def parse_cache_size_kb(value: Any) -> Optional[int]:
    """
    Cache size in KiB.

    Accepts '32K', '1M', '1 MiB', '48 KiB', '256 kB' and lscpu's
    '1.5 MiB (32 instances)' form, where the number is already the total.
    A bare number is taken as KiB.
    """
    text = clean_value(value)
    if text is None:
        return None
    match = _SIZE_RE.match(text)
    if not match:
        return None
    unit = match.group('unit').upper()
    if unit in ('', 'K'):
        kb = float(match.group('number'))
    else:
        kb = float(match.group('number')) * BINARY_MULTIPLIERS[unit] / 1024
    return int(round(kb))


def parse_size_to_bytes(value: Any) -> Optional[int]:
    """
    Human size string to bytes, binary multipliers.

    '16 GB' -> 17179869184, '16384 MB', '512K', '2.0 TB (2001111162880 Bytes)'
    -> 2001111162880 (the exact byte count wins when the tool prints one).
    """
    text = clean_value(value)
    if text is None:
        return None
    exact = _EXACT_BYTES_RE.search(text)
    if exact:
        return int(exact.group('bytes'))
    match = _SIZE_RE.match(text)
    if not match:
        return None
    unit = match.group('unit').upper()
    return int(round(float(match.group('number')) * BINARY_MULTIPLIERS[unit]))


def parse_speed_mbps(value: Any) -> Optional[int]:
    """
    Link speed in Mb/s.

    '10G' -> 10000, '25000Mb/s' -> 25000, '100 Gb/sec' -> 100000, '1000' -> 1000.
    'Unknown!' and negative sysfs values (link down) -> None.
    """
    text = clean_value(value)
    if text is None:
        return None
    match = _SPEED_RE.match(text.rstrip('!'))
    if not match:
        return None
    mbps = float(match.group('number')) * SPEED_MULTIPLIERS[match.group('unit').upper()]
    return int(round(mbps))


def parse_memory_speed_mts(value: Any) -> Optional[int]:
    """
    Memory speed in MT/s.

    dmidecode prints 'MT/s' on current versions and 'MHz' on older ones; the
    number is the transfer rate in both cases.
    """
    text = clean_value(value)
    if text is None:
        return None
    match = _MEMORY_SPEED_RE.match(text)
    if not match:
        return None
    speed = int(round(float(match.group('number'))))
    return speed if speed > 0 else None


def parse_key_value_lines(content: str, separator: str = ':') -> Dict[str, str]:
    """
    Split 'Key: value' lines. The first occurrence of a key wins; lines
    without the separator are ignored.
    """
    result = {}
    for line in content.splitlines():
        if separator not in line:
            continue
        key, value = line.split(separator, 1)
        key = key.strip()
        if key and key not in result:
            result[key] = value.strip()
    return result


def load_json(content: str, what: str) -> Any:
    """json.loads that raises ParseFailedError"""
    if not content or not content.strip():
        raise ParseFailedError(f"empty {what} output")
    try:
        return json.loads(content)
    except ValueError as e:
        raise ParseFailedError(f"invalid {what} JSON: {e}")


def require_mapping(content: Any, what: str) -> Dict[str, Any]:
    """Structured source contents must be a mapping"""
    if not isinstance(content, dict):
        raise ParseFailedError(f"{what}: expected mapping, got {type(content).__name__}")
    return content


def require_text(content: Any, what: str) -> str:
    if not isinstance(content, str):
        raise ParseFailedError(f"{what}: expected text, got {type(content).__name__}")
    if not content.strip():
        raise ParseFailedError(f"empty {what} output")
    return content


# dmidecode

DmiBlock = namedtuple('DmiBlock', ['handle', 'dmi_type', 'title', 'fields'])

_HANDLE_RE = re.compile(r'^Handle\s+(?P<handle>0x[0-9A-Fa-f]+),\s+DMI type\s+(?P<type>\d+)')


def split_dmidecode_blocks(content: str) -> List[DmiBlock]:
    """
    Split dmidecode output into one block per 'Handle' record.

    Indented 'Key: Value' lines become fields; nested list items (deeper
    indentation, no colon) are collected as a list under the preceding key.
    """
    blocks = []
    current = None
    last_key = None

    for raw_line in content.splitlines():
        if not raw_line.strip():
            continue
        handle_match = _HANDLE_RE.match(raw_line)
        if handle_match:
            current = {
                'handle': handle_match.group('handle'),
                'dmi_type': int(handle_match.group('type')),
                'title': None,
                'fields': {},
            }
            blocks.append(current)
            last_key = None
            continue
        if current is None:
            continue
        if current['title'] is None and not raw_line.startswith(('\t', ' ')):
            current['title'] = raw_line.strip()
            continue

        depth = len(raw_line) - len(raw_line.lstrip('\t'))
        line = raw_line.strip()
        if depth >= 2 and last_key is not None:
            existing = current['fields'].get(last_key)
            if not isinstance(existing, list):
                existing = [] if not existing else [existing]
            existing.append(line)
            current['fields'][last_key] = existing
        elif ':' in line:
            key, value = line.split(':', 1)
            last_key = key.strip()
            current['fields'][last_key] = value.strip()

    return [
        DmiBlock(b['handle'], b['dmi_type'], b['title'], b['fields'])
        for b in blocks
    ]


def iter_dmidecode_type(content: str, dmi_type: int) -> Iterator[DmiBlock]:
    for block in split_dmidecode_blocks(content):
        if block.dmi_type == dmi_type:
            yield block


def check_dmidecode_output(content: str):
    """dmidecode prints a header even when it cannot read the tables"""
    if 'Permission denied' in content or '/dev/mem: Operation not permitted' in content:
        raise ParseFailedError("dmidecode could not read SMBIOS tables")
    if 'Handle ' not in content:
        raise ParseFailedError("no SMBIOS records in dmidecode output")
