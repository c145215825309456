# hardware_report/collectors/sub_collectors/gpu_sub_collector.py
"""
GPU Sub-Collector
Resolves discrete and integrated display devices keyed by PCI address.
"""

from typing import List

from ...models.gpu import GpuDevice, GpuPartial, GpuVendor
from ...parsers.gpu import (
    NVIDIA_SMI_FIELDS, nvidia_architecture, parse_lspci, parse_nvidia_smi, parse_nvml,
    parse_pci_numa, parse_rocm_smi, parse_sysfs_drm,
)
from .. import library_probes
from ..detector import DetectorDescriptor
from ..sources import CommandSource, LibrarySource, SysfsTreeSource
from .base_sub_collector import SubCollector

GPU_DETECTORS = [
    DetectorDescriptor('nvml', 0, LibrarySource('pynvml', library_probes.nvml_gpus), parse_nvml),
    DetectorDescriptor(
        'nvidia_smi', 1,
        CommandSource('nvidia-smi', [f"--query-gpu={','.join(NVIDIA_SMI_FIELDS)}",
                                     '--format=csv,noheader,nounits']),
        parse_nvidia_smi,
    ),
    DetectorDescriptor(
        'rocm_smi', 2,
        CommandSource('rocm-smi', ['--showproductname', '--showbus', '--showmeminfo', 'vram',
                                   '--showdriverversion', '--json']),
        parse_rocm_smi,
    ),
    DetectorDescriptor(
        'sysfs_drm', 3,
        SysfsTreeSource('/sys/class/drm',
                        ['device/vendor', 'device/device', 'device/numa_node', 'device/mem_info_vram_total'],
                        links=['device'], entry_filter=r'^card\d+$'),
        parse_sysfs_drm,
    ),
    DetectorDescriptor('lspci', 4, CommandSource('lspci', ['-Dnn']), parse_lspci),
    DetectorDescriptor('pci_numa', 5, SysfsTreeSource('/sys/bus/pci/devices', ['numa_node']), parse_pci_numa),
]


class GpuSubCollector(SubCollector):
    """
    Collects GPUs from vendor libraries and tools, with sysfs and lspci as
    vendor-neutral fallbacks.
    """

    def get_section_name(self) -> str:
        return "gpu"

    def resolve(self) -> List[GpuDevice]:
        self.last_errors = []
        gpus = self.run_detectors('gpu', GPU_DETECTORS, GpuPartial, GpuDevice)

        for gpu in gpus:
            if gpu.architecture is None and gpu.vendor == GpuVendor.NVIDIA:
                gpu.architecture = nvidia_architecture(gpu.compute_capability)

        gpus.sort(key=lambda g: g.pci_address or '')
        self._assign_indexes(gpus)
        return sorted(gpus, key=lambda g: (g.index if g.index is not None else len(gpus), g.pci_address or ''))

    def _assign_indexes(self, gpus: List[GpuDevice]):
        """
        Give every GPU a distinct index, walking in PCI address order.

        A reported index is kept by the first GPU claiming it. Vendor tools
        number independently (nvidia-smi and rocm-smi both start at 0), so
        later claimants and unnumbered GPUs get the lowest free index.
        """
        used = set()
        unnumbered = []
        for gpu in gpus:
            if gpu.index is not None and gpu.index not in used:
                used.add(gpu.index)
                continue
            if gpu.index is not None:
                self.logger.debug(f"Index {gpu.index} of {gpu.pci_address} is already taken; renumbering")
            unnumbered.append(gpu)

        next_index = 0
        for gpu in unnumbered:
            while next_index in used:
                next_index += 1
            gpu.index = next_index
            used.add(next_index)
