# hardware_report/models/system.py
"""System, firmware, baseboard, chassis and BMC identity"""

from dataclasses import dataclass
from typing import Optional

from .base import PartialRecord, ResolvedRecord
from .identity import SINGLETON_KEY


@dataclass(frozen=True)
class SystemPartial(PartialRecord):
    hostname: Optional[str] = None
    fqdn: Optional[str] = None
    manufacturer: Optional[str] = None
    product_name: Optional[str] = None
    serial_number: Optional[str] = None
    uuid: Optional[str] = None
    bios_vendor: Optional[str] = None
    bios_version: Optional[str] = None
    bios_date: Optional[str] = None
    board_manufacturer: Optional[str] = None
    board_product: Optional[str] = None
    board_serial: Optional[str] = None
    chassis_type: Optional[str] = None
    chassis_manufacturer: Optional[str] = None
    chassis_serial: Optional[str] = None
    bmc_ip_address: Optional[str] = None
    bmc_mac_address: Optional[str] = None

    def identity_key(self) -> Optional[str]:
        return SINGLETON_KEY


@dataclass
class SystemIdentity(ResolvedRecord):
    hostname: Optional[str] = None
    fqdn: Optional[str] = None
    manufacturer: Optional[str] = None
    product_name: Optional[str] = None
    serial_number: Optional[str] = None
    uuid: Optional[str] = None
    bios_vendor: Optional[str] = None
    bios_version: Optional[str] = None
    bios_date: Optional[str] = None
    board_manufacturer: Optional[str] = None
    board_product: Optional[str] = None
    board_serial: Optional[str] = None
    chassis_type: Optional[str] = None
    chassis_manufacturer: Optional[str] = None
    chassis_serial: Optional[str] = None
    bmc_ip_address: Optional[str] = None
    bmc_mac_address: Optional[str] = None
