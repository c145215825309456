# tests/test_models.py
"""
Tests for record types, identity keys and classification tables.
"""

import pytest

from hardware_report.errors import UnitContractError
from hardware_report.models.cpu import CpuInfo, NumaNode
from hardware_report.models.gpu import GpuDevice, GpuPartial, GpuVendor
from hardware_report.models.identity import (
    normalize_block_device, normalize_interface_name, normalize_pci_address, normalize_text_key,
)
from hardware_report.models.memory import MemoryModulePartial, MemorySummary
from hardware_report.models.network import InfinibandPartial, NetworkInterface
from hardware_report.models.storage import StorageDevice, StoragePartial, StorageType, classify_storage
from hardware_report.parsers.cpu import cpu_microarchitecture, format_cpu_list
from hardware_report.parsers.tables import CHASSIS_TYPES, PCI_VENDOR_NAMES, UNKNOWN, lookup


class TestIdentityKeys:

    def test_pci_address_forms(self):
        assert normalize_pci_address('00000000:01:00.0') == '0000:01:00.0'
        assert normalize_pci_address('01:00.0') == '0000:01:00.0'
        assert normalize_pci_address('0000:3B:00.1') == '0000:3b:00.1'
        assert normalize_pci_address('not-an-address') is None
        assert normalize_pci_address(None) is None

    def test_block_device(self):
        assert normalize_block_device('/dev/NVMe0n1 ') == 'nvme0n1'
        assert normalize_block_device('  ') is None

    def test_interface_names_keep_case(self):
        assert normalize_interface_name(' enP1s0f0 ') == 'enP1s0f0'

    def test_text_key(self):
        assert normalize_text_key('  DIMM   A1 ') == 'dimm a1'

    def test_partial_keys(self):
        assert StoragePartial(name='/dev/sda').identity_key() == 'sda'
        assert MemoryModulePartial(locator='DIMM_A1 ').identity_key() == 'dimm_a1'
        assert MemoryModulePartial(locator='DIMM 0', bank_locator='P0 CHANNEL A').identity_key() == 'p0 channel a/dimm 0'
        assert MemoryModulePartial(locator='DIMM 0', bank_locator='P0 CHANNEL A').coarse_key() == 'dimm 0'
        assert not MemoryModulePartial(locator='DIMM 0').is_identity_complete()
        assert InfinibandPartial(ca_name='mlx5_0', port=1).identity_key() == 'mlx5_0/1'
        assert InfinibandPartial(ca_name='mlx5_0').identity_key() is None
        assert GpuPartial(pci_address='00000000:07:00.0').identity_key() == '0000:07:00.0'


class TestPartialRecords:

    def test_negative_values_violate_unit_contract(self):
        with pytest.raises(UnitContractError):
            StoragePartial(name='sda', size_bytes=-1)
        with pytest.raises(UnitContractError):
            MemoryModulePartial(locator='A1', speed_mts=-3200)

    def test_present_fields_skip_unknown_and_metadata(self):
        partial = StoragePartial(name='sda', size_bytes=10, detection_method='lsblk', priority=1)
        assert partial.present_fields() == {'name': 'sda', 'size_bytes': 10}

    def test_enrichment_only(self):
        assert GpuPartial(pci_address='0000:07:00.0', numa_node=1).is_enrichment_only()
        assert not GpuPartial(pci_address='0000:07:00.0', name='A100', numa_node=1).is_enrichment_only()
        assert not GpuPartial(pci_address='0000:07:00.0').is_enrichment_only()
        assert not GpuPartial().is_enrichment_only()


class TestClassification:

    def test_nvme_regardless_of_rotational(self):
        assert classify_storage('nvme0n1', True) == StorageType.NVME
        assert classify_storage('nvme0n1', None) == StorageType.NVME

    def test_rotational_flag(self):
        assert classify_storage('sda', True) == StorageType.HDD
        assert classify_storage('sda', False) == StorageType.SSD
        assert classify_storage('sda', None) == StorageType.UNKNOWN

    def test_emmc(self):
        assert classify_storage('mmcblk0', False) == StorageType.EMMC

    def test_gpu_vendor_from_pci(self):
        assert GpuVendor.from_pci_vendor('10de') == GpuVendor.NVIDIA
        assert GpuVendor.from_pci_vendor('0x10DE') == GpuVendor.NVIDIA
        assert GpuVendor.from_pci_vendor('1002') == GpuVendor.AMD
        assert GpuVendor.from_pci_vendor('abcd') == GpuVendor.UNKNOWN
        assert GpuVendor.from_pci_vendor(None) == GpuVendor.UNKNOWN

    def test_gpu_vendor_from_name(self):
        assert GpuVendor.from_name('Tesla V100-PCIE-16GB') == GpuVendor.NVIDIA
        assert GpuVendor.from_name('Radeon Instinct MI100') == GpuVendor.AMD
        assert GpuVendor.from_name('Some Accelerator') == GpuVendor.UNKNOWN

    def test_arm_microarchitecture(self):
        assert cpu_microarchitecture(implementer='0x41', part='0xd0c') == 'Neoverse N1'
        assert cpu_microarchitecture(implementer='0x41', part='0xfff') is None

    def test_x86_microarchitecture(self):
        assert cpu_microarchitecture('GenuineIntel', 6, 85) == 'Skylake/Cascade Lake'
        # Unknown model falls back to the AMD family name
        assert cpu_microarchitecture('AuthenticAMD', 25, 250) == 'Zen 3/Zen 4'


class TestTables:

    def test_missing_key_is_unknown(self):
        assert lookup(PCI_VENDOR_NAMES, 'ffff') == UNKNOWN
        assert lookup(CHASSIS_TYPES, 23) == 'Rack Mount Chassis'
        assert lookup(CHASSIS_TYPES, None) == UNKNOWN

    def test_unhashable_key_is_unknown(self):
        assert lookup(PCI_VENDOR_NAMES, ['10de']) == UNKNOWN

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            PCI_VENDOR_NAMES['ffff'] = 'Made Up'


class TestResolvedRecords:

    def test_storage_derived_sizes(self):
        device = StorageDevice(name='nvme0n1', size_bytes=2000398934016)
        device.compute_derived()

        assert device.device_type == StorageType.NVME
        assert device.interface == 'NVMe'
        assert device.size_gb == 2000.4
        assert device.size_tb == 2.0

    def test_storage_to_dict_serializes_enum(self):
        device = StorageDevice(name='sda', is_rotational=True)
        device.compute_derived()

        data = device.to_dict()
        assert data['device_type'] == 'HDD'
        assert data['size_gb'] is None

    def test_cpu_totals(self):
        cpu = CpuInfo(model_name='Xeon', sockets=2, cores_per_socket=8, threads_per_core=2, logical_cpus=32)
        cpu.compute_derived()

        assert cpu.total_cores == 16
        assert cpu.total_threads == 32

    def test_cpu_totals_fall_back_to_logical_count(self):
        cpu = CpuInfo(logical_cpus=12)
        cpu.compute_derived()

        assert cpu.total_cores is None
        assert cpu.total_threads == 12

    def test_cpu_summary(self):
        cpu = CpuInfo(model_name='Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz', sockets=2,
                      cores_per_socket=8, threads_per_core=2,
                      numa_nodes=[NumaNode(node_id=0), NumaNode(node_id=1)])
        cpu.compute_derived()

        assert cpu.numa_node_count == 2
        assert cpu.summary() == ('Intel(R) Xeon(R) Gold 6130 CPU @ 2.10GHz '
                                 '(2 Sockets, 8 Cores/Socket, 2 Threads/Core, 2 NUMA Nodes)')

    def test_cpu_summary_singular_and_unknown(self):
        cpu = CpuInfo(model_name='Ampere Altra', sockets=1, cores_per_socket=80, threads_per_core=1)

        assert cpu.summary() == 'Ampere Altra (1 Socket, 80 Cores/Socket, 1 Thread/Core, ? NUMA Nodes)'
        assert CpuInfo().summary() is None

    def test_gpu_derived_fields(self):
        gpu = GpuDevice(pci_address='00000000:07:00.0', pci_vendor_id='10de',
                        memory_total_bytes=85899345920)
        gpu.compute_derived()

        assert gpu.pci_address == '0000:07:00.0'
        assert gpu.vendor == GpuVendor.NVIDIA
        assert gpu.memory_gb == 80.0

    def test_network_mac_lowercased(self):
        interface = NetworkInterface(name='eth0', mac_address='B8:CE:F6:00:11:22')
        interface.compute_derived()
        assert interface.mac_address == 'b8:ce:f6:00:11:22'

    def test_memory_config_string(self):
        assert MemorySummary(memory_type='DDR4', speed_mts=3200).config_string() == 'DDR4 @ 3200 MT/s'
        assert MemorySummary(memory_type='DDR4', speed_mts=2666, mixed_speeds=True).config_string() == \
            'DDR4 @ 2666 MT/s (mixed speeds)'
        assert MemorySummary().config_string() is None

    def test_format_cpu_list(self):
        assert format_cpu_list([0, 1, 2, 3, 8, 10, 11]) == '0-3,8,10-11'
        assert format_cpu_list([]) is None
