# hardware_report/parsers/gpu.py
"""GPU parsers: NVML, nvidia-smi, rocm-smi, sysfs drm, lspci, PCI NUMA affinity"""

import csv
import io
import re
from typing import Any, Dict, List, Optional

from ..errors import ParseFailedError
from ..models.gpu import GpuPartial, GpuVendor
from ..models.identity import normalize_pci_address
from .common import clean_value, load_json, parse_int, require_mapping, require_text
from .tables import AMD_GFX_ARCHITECTURES, NVIDIA_COMPUTE_ARCHITECTURES, lookup

MIB = 1024 ** 2

NVIDIA_SMI_FIELDS = (
    'index', 'name', 'uuid', 'memory.total', 'memory.free',
    'pci.bus_id', 'driver_version', 'compute_cap',
)

# PCI class codes for display controllers
DISPLAY_CLASSES = ('0300', '0302', '0380')

_LSPCI_RE = re.compile(
    r'^(?P<address>[0-9a-fA-F:.]+)\s+(?P<class_name>.+?)\s+\[(?P<class_id>[0-9a-fA-F]{4})\]:\s+'
    r'(?P<description>.+?)\s+\[(?P<vendor>[0-9a-fA-F]{4}):(?P<device>[0-9a-fA-F]{4})\]'
    r'(?:\s+\(rev\s+[0-9a-fA-F]+\))?(?:\s+\(prog-if.*\))?\s*$'
)
_CARD_ENTRY_RE = re.compile(r'^card\d+$')


def nvidia_architecture(compute_capability: Optional[str]) -> Optional[str]:
    return lookup(NVIDIA_COMPUTE_ARCHITECTURES, compute_capability, None)


def _numa_node(value: Any) -> Optional[int]:
    # The kernel reports -1 when the platform has no NUMA affinity
    node = parse_int(value)
    return node if node is not None and node >= 0 else None


def _hex_id(value: Any) -> Optional[str]:
    text = clean_value(value)
    if text is None:
        return None
    text = text.lower()
    if text.startswith('0x'):
        text = text[2:]
    return text.zfill(4)


def parse_nvml(content: Dict[str, Any]) -> List[GpuPartial]:
    """
    Parse the NVML probe: {'driver_version': str, 'devices': [{'index',
    'name', 'uuid', 'pci_bus_id', 'memory_total', 'memory_free',
    'compute_capability', 'vbios_version', 'power_limit_mw'}]}
    """
    data = require_mapping(content, "nvml")
    devices = data.get('devices')
    if not isinstance(devices, list):
        raise ParseFailedError("NVML probe returned no device list")

    driver_version = clean_value(data.get('driver_version'))
    partials = []
    for device in devices:
        capability = device.get('compute_capability')
        if isinstance(capability, (tuple, list)) and len(capability) == 2:
            capability = f"{capability[0]}.{capability[1]}"
        capability = clean_value(capability)
        power_mw = device.get('power_limit_mw')
        partials.append(GpuPartial(
            pci_address=device.get('pci_bus_id'),
            index=parse_int(device.get('index')),
            name=clean_value(device.get('name')),
            vendor=GpuVendor.NVIDIA,
            pci_vendor_id='10de',
            uuid=clean_value(device.get('uuid')),
            memory_total_bytes=parse_int(device.get('memory_total')),
            memory_free_bytes=parse_int(device.get('memory_free')),
            driver_version=driver_version,
            vbios_version=clean_value(device.get('vbios_version')),
            compute_capability=capability,
            architecture=nvidia_architecture(capability),
            power_limit_watts=power_mw / 1000.0 if isinstance(power_mw, (int, float)) else None,
        ))
    return partials


def parse_nvidia_smi(content: str) -> List[GpuPartial]:
    """
    Parse `nvidia-smi --query-gpu=index,name,uuid,memory.total,memory.free,
    pci.bus_id,driver_version,compute_cap --format=csv,noheader,nounits`.
    Memory columns are MiB.
    """
    text = require_text(content, "nvidia-smi")
    partials = []
    for row in csv.reader(io.StringIO(text), skipinitialspace=True):
        if not row or not ''.join(row).strip():
            continue
        if len(row) < 6:
            raise ParseFailedError(f"nvidia-smi row has {len(row)} columns, expected {len(NVIDIA_SMI_FIELDS)}")
        values = dict(zip(NVIDIA_SMI_FIELDS, (v.strip() for v in row)))
        total_mib = parse_int(values.get('memory.total'))
        free_mib = parse_int(values.get('memory.free'))
        capability = clean_value(values.get('compute_cap'))
        partials.append(GpuPartial(
            pci_address=values.get('pci.bus_id'),
            index=parse_int(values.get('index')),
            name=clean_value(values.get('name')),
            vendor=GpuVendor.NVIDIA,
            pci_vendor_id='10de',
            uuid=clean_value(values.get('uuid')),
            memory_total_bytes=total_mib * MIB if total_mib is not None else None,
            memory_free_bytes=free_mib * MIB if free_mib is not None else None,
            driver_version=clean_value(values.get('driver_version')),
            compute_capability=capability,
            architecture=nvidia_architecture(capability),
        ))
    if not partials:
        raise ParseFailedError("no GPU rows in nvidia-smi output")
    return partials


def parse_rocm_smi(content: str) -> List[GpuPartial]:
    """Parse `rocm-smi --showproductname --showbus --showmeminfo vram --showdriverversion --json`"""
    data = load_json(require_text(content, "rocm-smi"), "rocm-smi")
    if not isinstance(data, dict):
        raise ParseFailedError("unexpected rocm-smi JSON root")

    system = data.get('system') or {}
    driver_version = clean_value(system.get('Driver version'))
    partials = []
    for card, fields in sorted(data.items()):
        match = re.match(r'^card(\d+)$', card)
        if not match or not isinstance(fields, dict):
            continue
        gfx = clean_value(fields.get('GFX Version'))
        partials.append(GpuPartial(
            pci_address=fields.get('PCI Bus'),
            index=int(match.group(1)),
            name=clean_value(fields.get('Card series')) or clean_value(fields.get('Card model')),
            vendor=GpuVendor.AMD,
            pci_vendor_id='1002',
            uuid=clean_value(fields.get('Unique ID')),
            memory_total_bytes=parse_int(fields.get('VRAM Total Memory (B)')),
            driver_version=driver_version or clean_value(fields.get('Driver version')),
            vbios_version=clean_value(fields.get('VBIOS version')),
            architecture=lookup(AMD_GFX_ARCHITECTURES, gfx.lower() if gfx else None, None),
        ))
    if not partials:
        raise ParseFailedError("no cards in rocm-smi output")
    return partials


def parse_sysfs_drm(content: Dict[str, Dict[str, str]]) -> List[GpuPartial]:
    """
    Parse a walk of /sys/class/drm. Only cardN entries are GPUs; connector
    entries (card0-HDMI-A-1) and render nodes are skipped.
    """
    entries = require_mapping(content, "sysfs drm")
    partials = []
    for name in sorted(entries):
        if not _CARD_ENTRY_RE.match(name):
            continue
        attrs = entries[name] or {}
        address = normalize_pci_address(attrs.get('device'))
        if address is None:
            # Platform (non-PCI) display device
            continue
        vendor_id = _hex_id(attrs.get('device/vendor'))
        partials.append(GpuPartial(
            pci_address=address,
            vendor=GpuVendor.from_pci_vendor(vendor_id),
            pci_vendor_id=vendor_id,
            pci_device_id=_hex_id(attrs.get('device/device')),
            memory_total_bytes=parse_int(attrs.get('device/mem_info_vram_total')),
            numa_node=_numa_node(attrs.get('device/numa_node')),
        ))
    return partials


def parse_lspci(content: str) -> List[GpuPartial]:
    """Parse `lspci -Dnn`, keeping display-class devices"""
    text = require_text(content, "lspci")
    parsed_any = False
    partials = []
    for line in text.splitlines():
        match = _LSPCI_RE.match(line.strip())
        if not match:
            continue
        parsed_any = True
        if match.group('class_id') not in DISPLAY_CLASSES:
            continue
        vendor_id = match.group('vendor').lower()
        partials.append(GpuPartial(
            pci_address=match.group('address'),
            name=match.group('description').strip(),
            vendor=GpuVendor.from_pci_vendor(vendor_id),
            pci_vendor_id=vendor_id,
            pci_device_id=match.group('device').lower(),
        ))
    if not parsed_any:
        raise ParseFailedError("no recognizable lines in lspci -Dnn output")
    return partials


def parse_pci_numa(content: Dict[str, Dict[str, str]]) -> List[GpuPartial]:
    """
    Parse a walk of /sys/bus/pci/devices for NUMA affinity.

    Every PCI function is reported, GPU or not. The records carry only the
    address and numa_node, so they enrich GPUs found by other sources and
    never add devices of their own.
    """
    entries = require_mapping(content, "sysfs pci")
    partials = []
    for address in sorted(entries):
        node = _numa_node((entries[address] or {}).get('numa_node'))
        if node is None:
            continue
        partials.append(GpuPartial(pci_address=address, numa_node=node))
    return partials
