# hardware_report/parsers/tables.py
"""
Read-only classification tables.

Every table is a MappingProxyType built at import time. Use lookup() so a
missing key maps to UNKNOWN instead of raising.
"""

from types import MappingProxyType
from typing import Any, Hashable, Mapping, Optional

UNKNOWN = "Unknown"


def lookup(table: Mapping, key: Optional[Hashable], default: Any = UNKNOWN) -> Any:
    """Table lookup that never raises"""
    if key is None:
        return default
    try:
        return table.get(key, default)
    except TypeError:
        # Unhashable key
        return default


# PCI vendor ids (lowercase, 4 hex digits) for GPU and NIC vendors
PCI_VENDOR_NAMES = MappingProxyType({
    '10de': 'NVIDIA',
    '1002': 'AMD',
    '1022': 'AMD',
    '8086': 'Intel',
    '1a03': 'ASPEED',
    '102b': 'Matrox',
    '15b3': 'Mellanox',
    '14e4': 'Broadcom',
    '1077': 'QLogic',
    '1924': 'Solarflare',
    '19a2': 'Emulex',
    '1425': 'Chelsio',
    '1137': 'Cisco',
    '177d': 'Cavium',
    '1d0f': 'Amazon',
    '1af4': 'Red Hat',
    '1dd8': 'Pensando',
    '10ec': 'Realtek',
    '19e5': 'Huawei',
    '8088': 'Wangxun',
    '1ae0': 'Google',
})

# ARM MIDR implementer codes, as printed in /proc/cpuinfo ("CPU implementer")
ARM_IMPLEMENTERS = MappingProxyType({
    '0x41': 'ARM',
    '0x42': 'Broadcom',
    '0x43': 'Cavium',
    '0x46': 'Fujitsu',
    '0x48': 'HiSilicon',
    '0x4e': 'NVIDIA',
    '0x50': 'APM',
    '0x51': 'Qualcomm',
    '0x53': 'Samsung',
    '0x61': 'Apple',
    '0x6d': 'Microsoft',
    '0xc0': 'Ampere',
})

# (implementer, part) -> core microarchitecture.
# AWS Graviton2/3/4 report ARM Neoverse N1/V1/V2 parts.
ARM_PARTS = MappingProxyType({
    ('0x41', '0xd03'): 'Cortex-A53',
    ('0x41', '0xd05'): 'Cortex-A55',
    ('0x41', '0xd07'): 'Cortex-A57',
    ('0x41', '0xd08'): 'Cortex-A72',
    ('0x41', '0xd09'): 'Cortex-A73',
    ('0x41', '0xd0a'): 'Cortex-A75',
    ('0x41', '0xd0b'): 'Cortex-A76',
    ('0x41', '0xd0c'): 'Neoverse N1',
    ('0x41', '0xd40'): 'Neoverse V1',
    ('0x41', '0xd41'): 'Cortex-A78',
    ('0x41', '0xd49'): 'Neoverse N2',
    ('0x41', '0xd4f'): 'Neoverse V2',
    ('0x41', '0xd84'): 'Neoverse V3',
    ('0x41', '0xd8e'): 'Neoverse N3',
    ('0x43', '0x0af'): 'ThunderX2',
    ('0x43', '0x0a1'): 'ThunderX',
    ('0x46', '0x001'): 'A64FX',
    ('0x48', '0xd01'): 'TaiShan v110',
    ('0x4e', '0x004'): 'Carmel',
    ('0x50', '0x000'): 'X-Gene',
    ('0xc0', '0xac3'): 'AmpereOne',
    ('0xc0', '0xac4'): 'AmpereOne A',
})

# Marketing or lscpu model names that already name the core
ARM_MODEL_NAMES = MappingProxyType({
    'neoverse-n1': 'Neoverse N1',
    'neoverse-n2': 'Neoverse N2',
    'neoverse-v1': 'Neoverse V1',
    'neoverse-v2': 'Neoverse V2',
    'cortex-a72': 'Cortex-A72',
    'cortex-a76': 'Cortex-A76',
    'ampere-1': 'AmpereOne',
    'ampere-1a': 'AmpereOne A',
})

# (vendor id, family, model) -> x86 microarchitecture
X86_MICROARCHITECTURES = MappingProxyType({
    ('GenuineIntel', 6, 63): 'Haswell',
    ('GenuineIntel', 6, 79): 'Broadwell',
    ('GenuineIntel', 6, 85): 'Skylake/Cascade Lake',
    ('GenuineIntel', 6, 106): 'Ice Lake',
    ('GenuineIntel', 6, 143): 'Sapphire Rapids',
    ('GenuineIntel', 6, 151): 'Alder Lake',
    ('GenuineIntel', 6, 158): 'Coffee Lake',
    ('GenuineIntel', 6, 173): 'Granite Rapids',
    ('GenuineIntel', 6, 175): 'Sierra Forest',
    ('GenuineIntel', 6, 183): 'Raptor Lake',
    ('GenuineIntel', 6, 207): 'Emerald Rapids',
    ('AuthenticAMD', 23, 1): 'Zen',
    ('AuthenticAMD', 23, 49): 'Zen 2',
    ('AuthenticAMD', 23, 113): 'Zen 2',
    ('AuthenticAMD', 25, 1): 'Zen 3',
    ('AuthenticAMD', 25, 33): 'Zen 3',
    ('AuthenticAMD', 25, 17): 'Zen 4',
    ('AuthenticAMD', 25, 97): 'Zen 4',
    ('AuthenticAMD', 25, 160): 'Zen 4c',
    ('AuthenticAMD', 26, 2): 'Zen 5',
    ('AuthenticAMD', 26, 17): 'Zen 5c',
})

# Fallback when the exact AMD model is not in the table above
AMD_FAMILIES = MappingProxyType({
    23: 'Zen/Zen 2',
    25: 'Zen 3/Zen 4',
    26: 'Zen 5',
})

NVIDIA_COMPUTE_ARCHITECTURES = MappingProxyType({
    '3.0': 'Kepler', '3.5': 'Kepler', '3.7': 'Kepler',
    '5.0': 'Maxwell', '5.2': 'Maxwell', '5.3': 'Maxwell',
    '6.0': 'Pascal', '6.1': 'Pascal', '6.2': 'Pascal',
    '7.0': 'Volta', '7.2': 'Volta',
    '7.5': 'Turing',
    '8.0': 'Ampere', '8.6': 'Ampere', '8.7': 'Ampere',
    '8.9': 'Ada Lovelace',
    '9.0': 'Hopper',
    '10.0': 'Blackwell', '10.1': 'Blackwell', '10.3': 'Blackwell',
    '12.0': 'Blackwell', '12.1': 'Blackwell',
})

AMD_GFX_ARCHITECTURES = MappingProxyType({
    'gfx906': 'Vega 20',
    'gfx908': 'CDNA',
    'gfx90a': 'CDNA 2',
    'gfx940': 'CDNA 3',
    'gfx941': 'CDNA 3',
    'gfx942': 'CDNA 3',
    'gfx950': 'CDNA 4',
    'gfx1030': 'RDNA 2',
    'gfx1100': 'RDNA 3',
    'gfx1101': 'RDNA 3',
    'gfx1200': 'RDNA 4',
    'gfx1201': 'RDNA 4',
})

# SMBIOS type 3 chassis type codes (/sys/class/dmi/id/chassis_type)
CHASSIS_TYPES = MappingProxyType({
    1: 'Other', 2: 'Unknown', 3: 'Desktop', 4: 'Low Profile Desktop',
    5: 'Pizza Box', 6: 'Mini Tower', 7: 'Tower', 8: 'Portable',
    9: 'Laptop', 10: 'Notebook', 11: 'Hand Held', 12: 'Docking Station',
    13: 'All in One', 14: 'Sub Notebook', 15: 'Space-saving', 16: 'Lunch Box',
    17: 'Main Server Chassis', 18: 'Expansion Chassis', 19: 'SubChassis',
    20: 'Bus Expansion Chassis', 21: 'Peripheral Chassis', 22: 'RAID Chassis',
    23: 'Rack Mount Chassis', 24: 'Sealed-case PC', 25: 'Multi-system Chassis',
    26: 'Compact PCI', 27: 'Advanced TCA', 28: 'Blade', 29: 'Blade Enclosure',
    30: 'Tablet', 31: 'Convertible', 32: 'Detachable', 33: 'IoT Gateway',
    34: 'Embedded PC', 35: 'Mini PC', 36: 'Stick PC',
})

# ARPHRD_* link types (/sys/class/net/<iface>/type)
ARPHRD_TYPES = MappingProxyType({
    1: 'ether',
    24: 'ieee1394',
    32: 'infiniband',
    280: 'can',
    768: 'ipip',
    769: 'tunnel6',
    772: 'loopback',
    776: 'sit',
    778: 'gre',
    801: 'ieee80211',
    823: 'ip6gre',
    65534: 'none',
})
