# tests/test_sub_collectors.py
"""
Tests for the category sub-collectors, run end to end against canned probe
output.
"""

import json
import re

import pytest

from conftest import FakeConnector
from hardware_report.collectors.sub_collectors import (
    CpuSubCollector, GpuSubCollector, MemorySubCollector, NetworkSubCollector,
    StorageSubCollector, SystemSubCollector,
)
from hardware_report.collectors.sub_collectors.memory_sub_collector import summarize_memory
from hardware_report.collectors.sub_collectors.network_sub_collector import (
    PHYSICAL_CANDIDATE_FILTER, is_virtual_interface,
)
from hardware_report.collectors.sub_collectors.storage_sub_collector import is_virtual_block_device
from hardware_report.config.settings import ReportConfig
from hardware_report.models.cpu import CpuInfo
from hardware_report.models.gpu import GpuVendor
from hardware_report.models.memory import MemoryCapacity, MemoryModule
from hardware_report.models.network import NetworkInterface
from hardware_report.models.storage import StorageDevice, StorageType
from hardware_report.models.system import SystemIdentity
from hardware_report.parsers.gpu import NVIDIA_SMI_FIELDS
from test_parsers_cpu import CPUINFO_X86, LSCPU_JSON, LSCPU_LEGACY, NUMACTL, sysfs_cpu_tree
from test_parsers_gpu_network_system import IBSTAT, IP_ADDR, LSPCI, NVIDIA_SMI, ROCM_SMI
from test_parsers_memory_storage import DMIDECODE_MEMORY, LSBLK, PROC_MEMINFO

LSBLK_COMMAND = 'lsblk -J -b -d -o NAME,SIZE,TYPE,ROTA,RM,MODEL,SERIAL,VENDOR,TRAN,WWN,REV'
NVIDIA_SMI_COMMAND = f"nvidia-smi --query-gpu={','.join(NVIDIA_SMI_FIELDS)} --format=csv,noheader,nounits"

ALL_COLLECTORS = [
    CpuSubCollector, MemorySubCollector, StorageSubCollector,
    GpuSubCollector, NetworkSubCollector, SystemSubCollector,
]


class TestGracefulDegradation:
    """Nothing installed, nothing readable"""

    @pytest.mark.parametrize('collector_class', ALL_COLLECTORS)
    def test_resolve_never_raises(self, collector_class, fake_connector, report_config):
        collector = collector_class(fake_connector, 'host', report_config)

        records = collector.resolve()

        assert collector.last_errors
        assert all(e.method for e in collector.last_errors)
        if collector_class in (CpuSubCollector, SystemSubCollector):
            assert len(records) == 1
            assert all(value is None for key, value in records[0].to_dict().items()
                       if key not in ('detection_methods', 'numa_nodes'))
        else:
            assert records == []

    @pytest.mark.parametrize('collector_class', ALL_COLLECTORS)
    def test_collect_renders_section(self, collector_class, fake_connector, report_config):
        collector = collector_class(fake_connector, 'host', report_config)

        section = collector.collect()

        assert isinstance(section, (dict, list))
        json.dumps(section)

    def test_singletons_return_empty_records(self, fake_connector, report_config):
        assert CpuSubCollector(fake_connector, 'host', report_config).resolve()[0].model_name is None
        assert isinstance(SystemSubCollector(fake_connector, 'host', report_config).resolve()[0], SystemIdentity)


class TestStorageSubCollector:

    @pytest.fixture
    def connector(self):
        connector = FakeConnector(commands={LSBLK_COMMAND: LSBLK})
        connector.add_tree('/sys/block', {
            'loop0': {'size': '131072', 'queue/rotational': '0'},
            'dm-0': {'size': '1000000', 'queue/rotational': '0'},
            'ram0': {'size': '8192'},
            'nvme0n1': {'size': '3907029168', 'queue/rotational': '0'},
            'sda': {'size': '7814037168', 'queue/rotational': '1'},
        })
        return connector

    def test_resolves_physical_disks(self, connector, report_config):
        devices = StorageSubCollector(connector, 'host', report_config).resolve()

        assert [d.name for d in devices] == ['nvme0n1', 'sda']

    def test_merges_sources(self, connector, report_config):
        nvme, sda = StorageSubCollector(connector, 'host', report_config).resolve()

        assert nvme.size_bytes == 2000398934016
        assert nvme.serial_number == 'S5GX1234'
        assert nvme.device_type == StorageType.NVME
        assert nvme.detection_methods == ['sysfs_block', 'lsblk']
        assert sda.size_bytes == 7814037168 * 512
        assert sda.device_type == StorageType.HDD
        assert sda.interface == 'SATA'

    def test_nvme_list_joins_namespace(self, connector, report_config):
        connector.commands['nvme list -o json'] = json.dumps({"Devices": [
            {"DevicePath": "/dev/nvme0n1", "SerialNumber": "S5GX1234", "Firmware": "5B2QGXA7",
             "PhysicalSize": 1999999999999},
        ]})

        nvme = StorageSubCollector(connector, 'host', report_config).resolve()[0]

        assert nvme.size_bytes == 2000398934016
        assert nvme.firmware_version == '5B2QGXA7'
        assert nvme.detection_methods == ['sysfs_block', 'lsblk', 'nvme_list']

    def test_disabled_detector(self, connector):
        config = ReportConfig(parallel_detectors=False, disabled_detectors=['lsblk'])

        nvme = StorageSubCollector(connector, 'host', config).resolve()[0]

        assert nvme.serial_number is None
        assert nvme.detection_methods == ['sysfs_block']

    @pytest.mark.parametrize('name', ['loop0', 'dm-0', 'ram0', 'zram0', 'md127', 'sr0', 'sda1', 'nvme0n1p2'])
    def test_virtual_and_partition_names(self, name):
        assert is_virtual_block_device(StorageDevice(name=name))

    @pytest.mark.parametrize('name', ['sda', 'nvme0n1', 'mmcblk0', 'vda'])
    def test_physical_names(self, name):
        assert not is_virtual_block_device(StorageDevice(name=name))

    def test_kernel_type_marks_virtual(self):
        assert is_virtual_block_device(StorageDevice(name='sdz', kernel_type='lvm'))


class TestCpuSubCollector:

    @pytest.fixture
    def connector(self):
        return FakeConnector(
            commands={'lscpu -J': LSCPU_JSON, 'numactl --hardware': NUMACTL},
            files={'/proc/cpuinfo': CPUINFO_X86},
        )

    def test_resolves_cpu_with_numa(self, connector, report_config):
        cpu = CpuSubCollector(connector, 'host', report_config).resolve()[0]

        assert isinstance(cpu, CpuInfo)
        assert cpu.model_name == 'Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz'
        assert cpu.sockets == 2
        assert cpu.total_cores == 16
        assert cpu.total_threads == 32
        # lscpu ranks above /proc/cpuinfo's single-socket view
        assert cpu.logical_cpus == 32
        assert cpu.base_frequency_mhz == 2100
        assert cpu.detection_methods == ['lscpu', 'proc_cpuinfo']
        assert [n.node_id for n in cpu.numa_nodes] == [0, 1]
        assert cpu.numa_node_count == 2

    def test_section_has_summary(self, connector, report_config):
        section = CpuSubCollector(connector, 'host', report_config).collect()

        assert section['summary'] == ('Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz '
                                      '(2 Sockets, 8 Cores/Socket, 2 Threads/Core, 2 NUMA Nodes)')
        assert section['numa_nodes'][0]['distances'] == [10, 21]

    def test_parallel_detectors_match_serial(self, connector, report_config):
        parallel = ReportConfig(parallel_detectors=True, strict_units=True)

        serial_cpu = CpuSubCollector(connector, 'host', report_config).resolve()[0]
        parallel_cpu = CpuSubCollector(connector, 'host', parallel).resolve()[0]

        assert serial_cpu.to_dict() == parallel_cpu.to_dict()

    def test_cache_totals_from_sysfs_with_legacy_lscpu(self, report_config):
        connector = FakeConnector(commands={'lscpu -J': LSCPU_LEGACY})
        connector.add_tree('/sys/devices/system/cpu', sysfs_cpu_tree())

        cpu = CpuSubCollector(connector, 'host', report_config).resolve()[0]

        # Two L1d instances of 32K, one shared L3
        assert cpu.l1d_cache_kb == 64
        assert cpu.l3_cache_kb == 16384
        assert cpu.detection_methods == ['lscpu', 'sysfs_cpu']


class TestMemorySubCollector:

    def test_summary_from_modules_and_capacity(self, report_config):
        connector = FakeConnector(commands={'dmidecode -t 17': DMIDECODE_MEMORY},
                                  files={'/proc/meminfo': PROC_MEMINFO})

        section = MemorySubCollector(connector, 'host', report_config).collect()

        assert section['module_count'] == 1
        assert section['total_bytes'] == 32 * 1024 ** 3
        assert section['total_gb'] == 32.0
        assert section['os_total_bytes'] == 65536000 * 1024
        assert section['memory_type'] == 'DDR4'
        # Configured speed is what the DIMM runs at
        assert section['speed_mts'] == 2933
        assert section['config'] == 'DDR4 @ 2933 MT/s'
        assert section['modules'][0]['size_gb'] == 32.0

    def test_total_falls_back_to_capacity(self, report_config):
        connector = FakeConnector(files={'/proc/meminfo': PROC_MEMINFO})

        summary = MemorySubCollector(connector, 'host', report_config).summarize()

        assert summary.module_count == 0
        assert summary.total_bytes == 65536000 * 1024
        assert summary.config_string() is None

    def test_same_locator_on_every_channel(self, report_config):
        dimm = ("Handle 0x00{handle}, DMI type 17, 92 bytes\nMemory Device\n"
                "\tSize: 16 GB\n\tLocator: DIMM 0\n\tBank Locator: P0 CHANNEL {channel}\n"
                "\tType: DDR4\n\tSpeed: 3200 MT/s\n\tSerial Number: {serial}\n")
        dmidecode = "# dmidecode 3.3\n\n" + "\n".join([
            dimm.format(handle='2a', channel='A', serial='81D5B7C1'),
            dimm.format(handle='2b', channel='B', serial='81D5B7C2'),
        ])
        lshw = json.dumps([{"id": "memory", "class": "memory", "children": [
            {"id": "bank:0", "slot": "DIMM 0", "size": 17179869184, "vendor": "Micron"},
            {"id": "bank:1", "slot": "DIMM 0", "size": 17179869184, "vendor": "Micron"},
        ]}])
        connector = FakeConnector(commands={'dmidecode -t 17': dmidecode,
                                            'lshw -class memory -json': lshw})

        summary = MemorySubCollector(connector, 'host', report_config).summarize()

        assert summary.module_count == 2
        assert summary.total_bytes == 32 * 1024 ** 3
        assert [m.bank_locator for m in summary.modules] == ['P0 CHANNEL A', 'P0 CHANNEL B']
        assert [m.serial_number for m in summary.modules] == ['81D5B7C1', '81D5B7C2']
        assert all(m.manufacturer == 'Micron' for m in summary.modules)
        assert all(m.detection_methods == ['dmidecode_memory', 'lshw_memory'] for m in summary.modules)

    def test_mixed_modules(self):
        modules = [
            MemoryModule(locator='A1', size_bytes=16 * 1024 ** 3, memory_type='DDR4', speed_mts=3200),
            MemoryModule(locator='A2', size_bytes=16 * 1024 ** 3, memory_type='DDR4', speed_mts=2666),
            MemoryModule(locator='B1', size_bytes=32 * 1024 ** 3, memory_type='DDR5', speed_mts=4800),
        ]

        summary = summarize_memory(modules, MemoryCapacity(total_bytes=1))

        assert summary.total_gb == 64.0
        assert summary.memory_type == 'Mixed'
        assert summary.speed_mts == 2666
        assert summary.mixed_speeds is True


class TestGpuSubCollector:

    @pytest.fixture
    def connector(self):
        connector = FakeConnector(commands={NVIDIA_SMI_COMMAND: NVIDIA_SMI, 'lspci -Dnn': LSPCI})
        connector.add_tree('/sys/bus/pci/devices', {
            '0000:00:00.0': {'numa_node': '0'},
            '0000:03:00.0': {'numa_node': '-1'},
            '0000:07:00.0': {'numa_node': '1'},
            '0000:0b:00.0': {'numa_node': '1'},
        })
        return connector

    def test_resolves_gpus(self, connector, report_config):
        gpus = GpuSubCollector(connector, 'host', report_config).resolve()

        assert [(g.index, g.pci_address) for g in gpus] == [
            (0, '0000:07:00.0'), (1, '0000:0b:00.0'), (2, '0000:03:00.0'),
        ]
        a100 = gpus[0]
        assert a100.name == 'NVIDIA A100-SXM4-80GB'
        assert a100.memory_gb == 80.0
        assert a100.architecture == 'Ampere'
        assert a100.numa_node == 1
        assert a100.pci_device_id == '20b2'
        assert a100.detection_methods == ['nvidia_smi', 'lspci', 'pci_numa']
        assert gpus[2].vendor == GpuVendor.ASPEED
        assert gpus[2].numa_node is None

    def test_numa_probe_never_adds_devices(self, connector, report_config):
        gpus = GpuSubCollector(connector, 'host', report_config).resolve()
        assert '0000:00:00.0' not in [g.pci_address for g in gpus]

    def test_vendor_indexes_never_collide(self, connector, report_config):
        rocm_command = ('rocm-smi --showproductname --showbus --showmeminfo vram '
                        '--showdriverversion --json')
        connector.commands[rocm_command] = ROCM_SMI

        gpus = GpuSubCollector(connector, 'host', report_config).resolve()

        assert [(g.index, g.pci_address) for g in gpus] == [
            (0, '0000:07:00.0'), (1, '0000:0b:00.0'), (2, '0000:03:00.0'), (3, '0000:83:00.0'),
        ]
        assert gpus[3].vendor == GpuVendor.AMD

    def test_lspci_only_indexes_by_pci_order(self, report_config):
        connector = FakeConnector(commands={'lspci -Dnn': LSPCI})

        gpus = GpuSubCollector(connector, 'host', report_config).resolve()

        assert [(g.index, g.pci_address) for g in gpus] == [(0, '0000:03:00.0'), (1, '0000:07:00.0')]


class TestNetworkSubCollector:

    @pytest.fixture
    def connector(self):
        connector = FakeConnector(commands={
            'ip -j addr show': IP_ADDR,
            'ethtool ens1f0': "Settings for ens1f0:\n\tSpeed: 25000Mb/s\n\tDuplex: Full\n",
            'ethtool -i ens1f0': ("driver: mlx5_core\nversion: 5.15.0\n"
                                  "firmware-version: 16.35.2000 (MT_0000000080)\nbus-info: 0000:3b:00.0\n"),
            'ibstat': IBSTAT,
        })
        connector.add_tree('/sys/class/net', {
            'ens1f0': {'address': 'B8:CE:F6:00:11:22', 'mtu': '9000', 'operstate': 'up', 'type': '1',
                       'device/vendor': '0x15b3', 'device/numa_node': '0'},
            'lo': {'address': '00:00:00:00:00:00', 'type': '772'},
            'veth0': {'address': '22:11:00:aa:bb:cc', 'type': '1'},
            'br0': {'address': '22:11:00:aa:bb:cd', 'type': '1'},
        })
        connector.links['/sys/class/net/ens1f0/device'] = '../../../0000:3b:00.0'
        connector.links['/sys/class/net/ens1f0/device/driver'] = '../../../../bus/pci/drivers/mlx5_core'
        return connector

    def test_resolves_physical_interfaces(self, connector, report_config):
        interfaces = NetworkSubCollector(connector, 'host', report_config).resolve()

        assert [i.name for i in interfaces] == ['ens1f0']
        nic = interfaces[0]
        assert nic.mac_address == 'b8:ce:f6:00:11:22'
        assert nic.pci_address == '0000:3b:00.0'
        assert nic.vendor == 'Mellanox'
        assert nic.driver == 'mlx5_core'
        assert nic.driver_version == '5.15.0'
        assert nic.speed_mbps == 25000
        assert nic.duplex == 'full'
        assert nic.ipv4_addresses == ('10.0.0.5/24',)
        assert nic.numa_node == 0
        assert nic.detection_methods == ['sysfs_net', 'ip_addr', 'ethtool', 'ethtool_driver']

    def test_per_interface_probes_skip_virtual_names(self, connector, report_config):
        NetworkSubCollector(connector, 'host', report_config).resolve()

        assert 'ethtool veth0' not in connector.executed
        assert 'ethtool lo' not in connector.executed
        assert 'ethtool br0' not in connector.executed

    def test_collect_includes_infiniband(self, connector, report_config):
        section = NetworkSubCollector(connector, 'host', report_config).collect()

        assert [i['name'] for i in section['interfaces']] == ['ens1f0']
        assert section['interfaces'][0]['ipv4_addresses'] == ['10.0.0.5/24']
        assert [(p['ca_name'], p['port']) for p in section['infiniband']] == [('mlx5_0', 1), ('mlx5_1', 1)]

    @pytest.mark.parametrize('name', ['lo', 'veth0', 'br0', 'docker0', 'virbr0', 'tailscale0', 'kube-ipvs0'])
    def test_virtual_interfaces(self, name):
        assert is_virtual_interface(NetworkInterface(name=name))

    def test_loopback_link_type_is_virtual(self):
        assert is_virtual_interface(NetworkInterface(name='myloop', link_type='loopback'))

    @pytest.mark.parametrize('name', ['eth0', 'ens1f0', 'enP1p1s0', 'ib0'])
    def test_physical_interfaces(self, name):
        assert not is_virtual_interface(NetworkInterface(name=name))

    def test_candidate_filter(self):
        pattern = re.compile(PHYSICAL_CANDIDATE_FILTER)
        assert pattern.match('eth0')
        assert not pattern.match('lo')
        assert pattern.match('lom1')
        assert not pattern.match('kube-bridge')


class TestSystemSubCollector:

    def test_merges_identity_sources(self, report_config):
        connector = FakeConnector(commands={
            'hostname -f': 'node01.example.com\n',
            'ipmitool lan print': "IP Address              : 10.10.1.50\n",
        })
        connector.add_tree('/sys/class/dmi', {'id': {
            'sys_vendor': 'Dell Inc.', 'product_name': 'PowerEdge R750', 'chassis_type': '23',
        }})

        collector = SystemSubCollector(connector, 'host', report_config)
        system = collector.resolve()[0]

        assert system.manufacturer == 'Dell Inc.'
        assert system.product_name == 'PowerEdge R750'
        assert system.chassis_type == 'Rack Mount Chassis'
        assert system.bmc_ip_address == '10.10.1.50'
        assert system.fqdn == 'node01.example.com'
        assert system.detection_methods == ['sysfs_dmi', 'ipmitool_lan', 'hostname']
        assert sorted(e.method for e in collector.last_errors) == ['devicetree_model', 'dmidecode_system']
