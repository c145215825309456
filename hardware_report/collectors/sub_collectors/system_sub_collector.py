# hardware_report/collectors/sub_collectors/system_sub_collector.py
"""
System Sub-Collector
Resolves system, firmware, baseboard and chassis identity and the BMC address.
"""

from typing import Any, Dict, List

from ...models.system import SystemIdentity, SystemPartial
from ...parsers.system import (
    parse_devicetree_model, parse_dmidecode_system, parse_hostname, parse_ipmitool_lan,
    parse_sysfs_dmi,
)
from ..detector import DetectorDescriptor
from ..sources import CommandSource, FileSource, SysfsTreeSource
from .base_sub_collector import SubCollector

DMI_ATTRIBUTES = [
    'sys_vendor', 'product_name', 'product_serial', 'product_uuid',
    'bios_vendor', 'bios_version', 'bios_date',
    'board_vendor', 'board_name', 'board_serial',
    'chassis_type', 'chassis_vendor', 'chassis_serial',
]

SYSTEM_DETECTORS = [
    DetectorDescriptor(
        'dmidecode_system', 0,
        CommandSource('dmidecode', ['-t', '0,1,2,3'], privileged=True),
        parse_dmidecode_system,
    ),
    DetectorDescriptor(
        'sysfs_dmi', 1,
        SysfsTreeSource('/sys/class/dmi', DMI_ATTRIBUTES, entry_filter=r'^id$'),
        parse_sysfs_dmi,
    ),
    DetectorDescriptor('devicetree_model', 2, FileSource('/proc/device-tree/model'), parse_devicetree_model),
    DetectorDescriptor(
        'ipmitool_lan', 3,
        CommandSource('ipmitool', ['lan', 'print'], privileged=True),
        parse_ipmitool_lan,
    ),
    DetectorDescriptor('hostname', 4, CommandSource('hostname', ['-f']), parse_hostname),
]


class SystemSubCollector(SubCollector):
    """
    Collects host identity. Singleton: resolve() always returns one record.
    """

    def get_section_name(self) -> str:
        return "system"

    def resolve(self) -> List[SystemIdentity]:
        self.last_errors = []
        resolved = self.run_detectors('system', SYSTEM_DETECTORS, SystemPartial, SystemIdentity)
        return [resolved[0] if resolved else SystemIdentity()]

    def build_section(self, records: List[SystemIdentity]) -> Dict[str, Any]:
        return records[0].to_dict()
