# hardware_report/models/identity.py
"""
Identity-key normalization.

Two partial records describe the same physical entity when their normalized
keys are equal. Normalization is deliberately literal: whitespace and case
are folded, nothing is guessed. Keys that still differ are distinct entities.
"""

import re
from typing import Optional

_PCI_ADDRESS_RE = re.compile(
    r'^(?:(?P<domain>[0-9a-f]{1,8}):)?(?P<bus>[0-9a-f]{1,2}):(?P<device>[0-9a-f]{1,2})\.(?P<function>[0-7])$'
)
_WHITESPACE_RE = re.compile(r'\s+')

SINGLETON_KEY = "singleton"


def normalize_text_key(value: Optional[str]) -> Optional[str]:
    """Trim, collapse whitespace, case-fold"""
    if value is None:
        return None
    normalized = _WHITESPACE_RE.sub(' ', str(value)).strip().casefold()
    return normalized or None


def normalize_block_device(name: Optional[str]) -> Optional[str]:
    """'/dev/NVMe0n1 ' -> 'nvme0n1'"""
    key = normalize_text_key(name)
    if key is None:
        return None
    if key.startswith('/dev/'):
        key = key[len('/dev/'):]
    return key or None


def normalize_pci_address(address: Optional[str]) -> Optional[str]:
    """
    Normalize a PCI address to 'dddd:bb:dd.f'.

    nvidia-smi reports an 8-digit domain ('00000000:01:00.0'), lspci without
    -D omits it ('01:00.0'), sysfs uses the 4-digit form.
    """
    key = normalize_text_key(address)
    if key is None:
        return None
    match = _PCI_ADDRESS_RE.match(key)
    if not match:
        return None
    domain = int(match.group('domain') or '0', 16)
    return "{:04x}:{:02x}:{:02x}.{}".format(
        domain,
        int(match.group('bus'), 16),
        int(match.group('device'), 16),
        match.group('function'),
    )


def normalize_interface_name(name: Optional[str]) -> Optional[str]:
    """Kernel interface names are case-sensitive; only trim"""
    if name is None:
        return None
    key = str(name).strip()
    return key or None
