# tests/test_parsers_gpu_network_system.py
"""
Tests for GPU, network, InfiniBand and system identity parsers.
"""

import json

import pytest

from hardware_report.errors import ParseFailedError
from hardware_report.models.gpu import GpuVendor
from hardware_report.parsers.gpu import (
    parse_lspci, parse_nvidia_smi, parse_nvml, parse_pci_numa, parse_rocm_smi, parse_sysfs_drm,
)
from hardware_report.parsers.network import (
    parse_ethtool, parse_ethtool_driver, parse_ibstat, parse_ip_addr, parse_psutil_net,
    parse_sysfs_net, parse_udev_net,
)
from hardware_report.parsers.system import (
    parse_devicetree_model, parse_dmidecode_system, parse_hostname, parse_ipmitool_lan,
    parse_sysfs_dmi,
)

NVIDIA_SMI = (
    "0, NVIDIA A100-SXM4-80GB, GPU-11111111-2222-3333-4444-555555555555, 81920, 81000, "
    "00000000:07:00.0, 535.104.05, 8.0\n"
    "1, NVIDIA A100-SXM4-80GB, GPU-66666666-7777-8888-9999-000000000000, 81920, 80500, "
    "00000000:0B:00.0, 535.104.05, 8.0\n"
)

LSPCI = (
    "0000:00:00.0 Host bridge [0600]: Intel Corporation Device [8086:09a2] (rev 04)\n"
    "0000:03:00.0 VGA compatible controller [0300]: ASPEED Technology, Inc. ASPEED Graphics Family "
    "[1a03:2000] (rev 41)\n"
    "0000:07:00.0 3D controller [0302]: NVIDIA Corporation GA100 [A100 SXM4 80GB] [10de:20b2] (rev a1)\n"
)

ROCM_SMI = json.dumps({
    "card0": {"Card series": "AMD Instinct MI210", "PCI Bus": "0000:83:00.0",
              "VRAM Total Memory (B)": "68702699520", "GFX Version": "gfx90a"},
    "system": {"Driver version": "6.2.4"},
})

IBSTAT = """CA 'mlx5_0'
\tCA type: MT4123
\tNumber of ports: 1
\tFirmware version: 20.31.1014
\tHardware version: 0
\tNode GUID: 0x0c42a10300b1c2d3
\tPort 1:
\t\tState: Active
\t\tPhysical state: LinkUp
\t\tRate: 200
\t\tBase lid: 12
\t\tLMC: 0
\t\tPort GUID: 0x0c42a10300b1c2d3
\t\tLink layer: InfiniBand
CA 'mlx5_1'
\tCA type: MT4123
\tFirmware version: 20.31.1014
\tPort 1:
\t\tState: Down
\t\tPhysical state: Disabled
\t\tRate: 10
\t\tLink layer: InfiniBand
"""

IP_ADDR = json.dumps([
    {"ifindex": 1, "ifname": "lo", "mtu": 65536, "operstate": "UNKNOWN", "link_type": "loopback",
     "address": "00:00:00:00:00:00",
     "addr_info": [{"family": "inet", "local": "127.0.0.1", "prefixlen": 8}]},
    {"ifindex": 2, "ifname": "ens1f0", "mtu": 9000, "operstate": "UP", "link_type": "ether",
     "address": "b8:ce:f6:00:11:22",
     "addr_info": [{"family": "inet", "local": "10.0.0.5", "prefixlen": 24},
                   {"family": "inet6", "local": "fe80::bace:f6ff:fe00:1122", "prefixlen": 64}]},
])

DMIDECODE_SYSTEM = """# dmidecode 3.3
Getting SMBIOS data from sysfs.

Handle 0x0000, DMI type 0, 26 bytes
BIOS Information
\tVendor: American Megatrends Inc.
\tVersion: 3.4
\tRelease Date: 11/05/2020

Handle 0x0001, DMI type 1, 27 bytes
System Information
\tManufacturer: Supermicro
\tProduct Name: SYS-2029U-TN24R4T
\tSerial Number: S123456X
\tUUID: 00000000-0000-0000-0000-ac1f6b000001

Handle 0x0002, DMI type 2, 15 bytes
Base Board Information
\tManufacturer: Supermicro
\tProduct Name: X11DPU
\tSerial Number: To be filled by O.E.M.

Handle 0x0003, DMI type 3, 22 bytes
Chassis Information
\tManufacturer: Supermicro
\tType: Rack Mount Chassis
\tSerial Number: C123
"""

IPMITOOL_LAN = """Set in Progress         : Set Complete
IP Address Source       : Static Address
IP Address              : 10.10.1.50
Subnet Mask             : 255.255.255.0
MAC Address             : 3C:EC:EF:AA:BB:CC
"""


class TestGpuParsers:

    def test_nvidia_smi(self):
        gpus = parse_nvidia_smi(NVIDIA_SMI)

        assert [g.index for g in gpus] == [0, 1]
        first = gpus[0]
        assert first.identity_key() == '0000:07:00.0'
        assert first.memory_total_bytes == 81920 * 1024 ** 2
        assert first.compute_capability == '8.0'
        assert first.architecture == 'Ampere'
        assert first.vendor == GpuVendor.NVIDIA
        assert gpus[1].identity_key() == '0000:0b:00.0'

    def test_nvidia_smi_short_rows(self):
        with pytest.raises(ParseFailedError):
            parse_nvidia_smi("0, NVIDIA A100\n")

    def test_nvml(self):
        gpus = parse_nvml({'driver_version': '535.104.05', 'devices': [{
            'index': 0, 'name': 'NVIDIA H100 80GB HBM3', 'uuid': 'GPU-1',
            'pci_bus_id': '00000000:18:00.0', 'memory_total': 85520809984,
            'compute_capability': (9, 0), 'power_limit_mw': 700000,
        }]})

        gpu = gpus[0]
        assert gpu.compute_capability == '9.0'
        assert gpu.architecture == 'Hopper'
        assert gpu.power_limit_watts == 700.0
        assert gpu.driver_version == '535.104.05'

    def test_rocm_smi(self):
        gpu = parse_rocm_smi(ROCM_SMI)[0]

        assert gpu.index == 0
        assert gpu.vendor == GpuVendor.AMD
        assert gpu.name == 'AMD Instinct MI210'
        assert gpu.memory_total_bytes == 68702699520
        assert gpu.driver_version == '6.2.4'

    def test_lspci_keeps_display_devices(self):
        gpus = parse_lspci(LSPCI)

        assert [g.pci_address for g in gpus] == ['0000:03:00.0', '0000:07:00.0']
        assert gpus[0].vendor == GpuVendor.ASPEED
        assert gpus[1].vendor == GpuVendor.NVIDIA
        assert gpus[1].name == 'NVIDIA Corporation GA100 [A100 SXM4 80GB]'
        assert gpus[1].pci_device_id == '20b2'

    def test_lspci_unrecognized(self):
        with pytest.raises(ParseFailedError):
            parse_lspci("lspci: Unable to load libkmod resources\n")

    def test_sysfs_drm(self):
        gpus = parse_sysfs_drm({
            'card0': {'device': '0000:03:00.0', 'device/vendor': '0x1a03', 'device/device': '0x2000',
                      'device/numa_node': '-1'},
            'card1': {'device': '0000:83:00.0', 'device/vendor': '0x1002', 'device/numa_node': '1',
                      'device/mem_info_vram_total': '68702699520'},
            'card2': {'device': 'soc:gpu'},
        })

        assert [g.pci_address for g in gpus] == ['0000:03:00.0', '0000:83:00.0']
        assert gpus[0].vendor == GpuVendor.ASPEED
        assert gpus[0].numa_node is None
        assert gpus[1].numa_node == 1

    def test_pci_numa_records_are_enrichment_only(self):
        records = parse_pci_numa({
            '0000:07:00.0': {'numa_node': '1'},
            '0000:00:00.0': {'numa_node': '-1'},
        })

        assert len(records) == 1
        assert records[0].is_enrichment_only()


class TestNetworkParsers:

    def test_sysfs_net(self):
        interfaces = parse_sysfs_net({
            'ens1f0': {'address': 'B8:CE:F6:00:11:22', 'mtu': '9000', 'operstate': 'up',
                       'speed': '25000', 'duplex': 'full', 'type': '1', 'device': '0000:3b:00.0',
                       'device/driver': 'mlx5_core', 'device/vendor': '0x15b3', 'device/numa_node': '0'},
            'lo': {'address': '00:00:00:00:00:00', 'type': '772', 'mtu': '65536', 'speed': '-1'},
        })

        nic, lo = interfaces
        assert nic.pci_address == '0000:3b:00.0'
        assert nic.is_physical is True
        assert nic.vendor == 'Mellanox'
        assert nic.driver == 'mlx5_core'
        assert nic.speed_mbps == 25000
        assert nic.numa_node == 0
        assert nic.link_type == 'ether'
        assert lo.is_physical is False
        assert lo.link_type == 'loopback'
        assert lo.speed_mbps is None

    def test_ip_addr(self):
        lo, nic = parse_ip_addr(IP_ADDR)

        assert lo.mac_address is None
        assert nic.ipv4_addresses == ('10.0.0.5/24',)
        assert nic.ipv6_addresses == ('fe80::bace:f6ff:fe00:1122/64',)
        assert nic.mtu == 9000

    def test_ethtool(self):
        interfaces = parse_ethtool({
            'ens1f0': "Settings for ens1f0:\n\tSpeed: 25000Mb/s\n\tDuplex: Full\n",
            'ens1f1': "Settings for ens1f1:\n\tSpeed: Unknown!\n\tDuplex: Unknown! (255)\n",
        })

        assert len(interfaces) == 1
        assert interfaces[0].speed_mbps == 25000
        assert interfaces[0].duplex == 'full'

    def test_ethtool_driver(self):
        interface = parse_ethtool_driver({'ens1f0': (
            "driver: mlx5_core\nversion: 5.15.0-91-generic\n"
            "firmware-version: 16.35.2000 (MT_0000000080)\nbus-info: 0000:3b:00.0\n"
        )})[0]

        assert interface.driver == 'mlx5_core'
        assert interface.driver_version == '5.15.0-91-generic'
        assert interface.firmware_version == '16.35.2000 (MT_0000000080)'
        assert interface.pci_address == '0000:3b:00.0'

    def test_udev(self):
        interface = parse_udev_net({'ens1f0': (
            "ID_PATH=pci-0000:3b:00.0\nID_VENDOR_FROM_DATABASE=Mellanox Technologies\n"
            "ID_MODEL_FROM_DATABASE=MT27800 Family [ConnectX-5]\nID_NET_DRIVER=mlx5_core\n"
        )})[0]

        assert interface.pci_address == '0000:3b:00.0'
        assert interface.vendor == 'Mellanox Technologies'
        assert interface.model == 'MT27800 Family [ConnectX-5]'

    def test_psutil_net(self):
        interface = parse_psutil_net({'eth0': {
            'mac': 'aa:bb:cc:dd:ee:ff', 'mtu': 1500, 'speed': 0, 'duplex': 'full',
            'isup': True, 'ipv4': ['10.0.0.9/24'], 'ipv6': [],
        }})[0]

        assert interface.speed_mbps is None
        assert interface.operstate == 'up'
        assert interface.ipv4_addresses == ('10.0.0.9/24',)
        assert interface.ipv6_addresses is None

    def test_ibstat(self):
        ports = parse_ibstat(IBSTAT)

        assert [p.identity_key() for p in ports] == ['mlx5_0/1', 'mlx5_1/1']
        assert ports[0].ca_type == 'MT4123'
        assert ports[0].firmware_version == '20.31.1014'
        assert ports[0].state == 'Active'
        assert ports[0].rate_gbps == 200
        assert ports[0].base_lid == 12
        assert ports[0].port_guid == '0x0c42a10300b1c2d3'
        assert ports[1].state == 'Down'

    def test_ibstat_without_ports(self):
        with pytest.raises(ParseFailedError):
            parse_ibstat("ibstat: no CAs found\n")


class TestSystemParsers:

    def test_dmidecode_system(self):
        system = parse_dmidecode_system(DMIDECODE_SYSTEM)[0]

        assert system.manufacturer == 'Supermicro'
        assert system.product_name == 'SYS-2029U-TN24R4T'
        assert system.serial_number == 'S123456X'
        assert system.bios_vendor == 'American Megatrends Inc.'
        assert system.bios_date == '11/05/2020'
        assert system.board_product == 'X11DPU'
        assert system.board_serial is None
        assert system.chassis_type == 'Rack Mount Chassis'

    def test_sysfs_dmi(self):
        system = parse_sysfs_dmi({'id': {'sys_vendor': 'Dell Inc.', 'product_name': 'PowerEdge R750',
                                         'chassis_type': '23', 'bios_version': '1.8.2'}})[0]

        assert system.manufacturer == 'Dell Inc.'
        assert system.chassis_type == 'Rack Mount Chassis'
        assert system.serial_number is None

    def test_devicetree_model(self):
        system = parse_devicetree_model("Raspberry Pi 4 Model B Rev 1.4\x00")[0]
        assert system.product_name == 'Raspberry Pi 4 Model B Rev 1.4'

    def test_ipmitool(self):
        system = parse_ipmitool_lan(IPMITOOL_LAN)[0]

        assert system.bmc_ip_address == '10.10.1.50'
        assert system.bmc_mac_address == '3c:ec:ef:aa:bb:cc'

    def test_ipmitool_unconfigured(self):
        system = parse_ipmitool_lan("IP Address              : 0.0.0.0\nMAC Address             : 3c:ec:ef:aa:bb:cc\n")[0]
        assert system.bmc_ip_address is None

    def test_hostname(self):
        system = parse_hostname("node01.example.com\n")[0]

        assert system.hostname == 'node01'
        assert system.fqdn == 'node01.example.com'
