# tests/test_parsers_memory_storage.py
"""
Tests for memory and block storage parsers.
"""

import json

import pytest

from hardware_report.errors import ParseFailedError
from hardware_report.parsers.memory import (
    parse_dmidecode_memory, parse_lshw_memory, parse_proc_meminfo, parse_psutil_memory,
)
from hardware_report.parsers.storage import (
    parse_lsblk, parse_nvme_list, parse_psutil_disks, parse_sysfs_block,
)

DMIDECODE_MEMORY = """# dmidecode 3.3
Getting SMBIOS data from sysfs.
SMBIOS 3.2.0 present.

Handle 0x1100, DMI type 17, 84 bytes
Memory Device
\tArray Handle: 0x1000
\tTotal Width: 72 bits
\tSize: 32 GB
\tForm Factor: DIMM
\tLocator: DIMM_A1
\tBank Locator: P0_Node0_Channel0_Dimm0
\tType: DDR4
\tSpeed: 3200 MT/s
\tManufacturer: Samsung
\tSerial Number: 12345678
\tPart Number: M393A4K40DB3-CWE
\tRank: 2
\tConfigured Memory Speed: 2933 MT/s

Handle 0x1101, DMI type 17, 84 bytes
Memory Device
\tSize: No Module Installed
\tLocator: DIMM_A2
\tType: Unknown
\tSpeed: Unknown
\tManufacturer: NO DIMM
"""

LSHW_MEMORY = json.dumps([{
    "id": "memory", "class": "memory", "description": "System Memory",
    "children": [
        {"id": "bank:0", "class": "memory",
         "description": "DIMM DDR4 Synchronous Registered (Buffered) 3200 MHz (0.3 ns)",
         "product": "M393A4K40DB3-CWE", "vendor": "Samsung", "slot": "DIMM_A1",
         "size": 34359738368, "clock": 3200000000},
        {"id": "bank:1", "class": "memory", "description": "[empty]", "slot": "DIMM_A2"},
    ],
}])

PROC_MEMINFO = """MemTotal:       65536000 kB
MemFree:        10000000 kB
MemAvailable:   60000000 kB
SwapTotal:       8388604 kB
"""

LSBLK = json.dumps({"blockdevices": [
    {"name": "sda", "size": 4000787030016, "type": "disk", "rota": True, "rm": False,
     "model": "ST4000NM0035-1V4107", "serial": "ZC1ABCDE", "vendor": "ATA     ",
     "tran": "sata", "wwn": "0x5000c500a1b2c3d4", "rev": "TN03"},
    {"name": "nvme0n1", "size": "2000398934016", "type": "disk", "rota": "0", "rm": "0",
     "model": "Samsung SSD 980 PRO 2TB", "serial": "S5GX1234", "vendor": None,
     "tran": "nvme", "wwn": None, "rev": "5B2QGXA7"},
]})

NVME_LIST_V1 = json.dumps({"Devices": [
    {"NameSpace": 1, "DevicePath": "/dev/nvme0n1", "Firmware": "5B2QGXA7",
     "ModelNumber": "Samsung SSD 980 PRO 2TB", "SerialNumber": "S5GX1234",
     "UsedBytes": 100000000, "PhysicalSize": 2000398934016, "SectorSize": 512},
]})

NVME_LIST_V2 = json.dumps({"Devices": [
    {"HostNQN": "nqn.2014-08.org.nvmexpress:uuid:1234", "Subsystems": [
        {"Subsystem": "nvme-subsys0", "Controllers": [
            {"Controller": "nvme0", "SerialNumber": "S5GX1234",
             "ModelNumber": "Samsung SSD 980 PRO 2TB", "Firmware": "5B2QGXA7",
             "Namespaces": [{"NameSpace": "nvme0n1", "PhysicalSize": 2000398934016}]},
        ]},
    ]},
]})


class TestMemoryParsers:

    def test_dmidecode_skips_empty_slots(self):
        modules = parse_dmidecode_memory(DMIDECODE_MEMORY)

        assert len(modules) == 1
        module = modules[0]
        assert module.locator == 'DIMM_A1'
        assert module.size_bytes == 32 * 1024 ** 3
        assert module.memory_type == 'DDR4'
        assert module.speed_mts == 3200
        assert module.configured_speed_mts == 2933
        assert module.rank == 2
        assert module.form_factor == 'DIMM'

    def test_dmidecode_without_memory_devices(self):
        with pytest.raises(ParseFailedError):
            parse_dmidecode_memory("# dmidecode 3.3\nHandle 0x0000, DMI type 0, 26 bytes\nBIOS Information\n")

    def test_lshw_banks(self):
        modules = parse_lshw_memory(LSHW_MEMORY)

        assert len(modules) == 1
        assert modules[0].locator == 'DIMM_A1'
        assert modules[0].memory_type == 'DDR4'
        assert modules[0].speed_mts == 3200
        assert modules[0].size_bytes == 34359738368

    def test_proc_meminfo(self):
        capacity = parse_proc_meminfo(PROC_MEMINFO)[0]

        assert capacity.total_bytes == 65536000 * 1024
        assert capacity.available_bytes == 60000000 * 1024
        assert capacity.swap_total_bytes == 8388604 * 1024

    def test_proc_meminfo_without_total(self):
        with pytest.raises(ParseFailedError):
            parse_proc_meminfo("MemFree: 1 kB\n")

    def test_psutil_memory(self):
        capacity = parse_psutil_memory({'total': 1024, 'available': 512, 'swap_total': 0})[0]
        assert (capacity.total_bytes, capacity.available_bytes, capacity.swap_total_bytes) == (1024, 512, 0)


class TestStorageParsers:

    def test_sysfs_block(self):
        disks = parse_sysfs_block({
            'nvme0n1': {'size': '3907029168', 'queue/rotational': '0', 'removable': '0',
                        'device/model': 'Samsung SSD 980 PRO 2TB   ', 'device/serial': 'S5GX1234'},
            'sda': {'size': '7814037168', 'queue/rotational': '1', 'device/vendor': 'ATA',
                    'device/rev': 'TN03'},
        })

        assert [d.name for d in disks] == ['nvme0n1', 'sda']
        assert disks[0].size_bytes == 2000398934016
        assert disks[0].is_rotational is False
        assert disks[0].model == 'Samsung SSD 980 PRO 2TB'
        assert disks[1].is_rotational is True
        assert disks[1].firmware_version == 'TN03'

    def test_lsblk(self):
        disks = parse_lsblk(LSBLK)

        sda, nvme = disks
        assert sda.size_bytes == 4000787030016
        assert sda.is_rotational is True
        assert sda.vendor == 'ATA'
        assert sda.interface == 'SATA'
        assert sda.kernel_type == 'disk'
        assert nvme.size_bytes == 2000398934016
        assert nvme.is_rotational is False
        assert nvme.interface == 'NVMe'
        assert nvme.vendor is None

    def test_lsblk_malformed(self):
        with pytest.raises(ParseFailedError):
            parse_lsblk('{"devices": []}')

    @pytest.mark.parametrize('content', [NVME_LIST_V1, NVME_LIST_V2])
    def test_nvme_list_both_layouts(self, content):
        disks = parse_nvme_list(content)

        assert len(disks) == 1
        assert disks[0].name == 'nvme0n1'
        assert disks[0].serial_number == 'S5GX1234'
        assert disks[0].size_bytes == 2000398934016
        assert disks[0].firmware_version == '5B2QGXA7'

    def test_psutil_disks_are_name_only(self):
        disks = parse_psutil_disks({'sda': {'read_bytes': 1}, 'nvme0n1': {'read_bytes': 2}})

        assert [d.name for d in disks] == ['nvme0n1', 'sda']
        assert disks[0].present_fields() == {'name': 'nvme0n1'}
