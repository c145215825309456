# hardware_report/parsers/system.py
"""System identity parsers: dmidecode, /sys/class/dmi/id, devicetree, ipmitool, hostname"""

from typing import Dict, List

from ..errors import ParseFailedError
from ..models.system import SystemPartial
from .common import (
    check_dmidecode_output, clean_value, parse_int, parse_key_value_lines,
    require_mapping, require_text, split_dmidecode_blocks,
)
from .tables import CHASSIS_TYPES, lookup


def parse_dmidecode_system(content: str) -> List[SystemPartial]:
    """Parse `dmidecode -t 0,1,2,3` (BIOS, system, baseboard, chassis)"""
    text = require_text(content, "dmidecode system")
    check_dmidecode_output(text)

    by_type = {}
    for block in split_dmidecode_blocks(text):
        by_type.setdefault(block.dmi_type, block.fields)

    bios = by_type.get(0, {})
    system = by_type.get(1, {})
    board = by_type.get(2, {})
    chassis = by_type.get(3, {})
    if not (bios or system or board or chassis):
        raise ParseFailedError("no BIOS/system/baseboard/chassis records in dmidecode output")

    return [SystemPartial(
        manufacturer=clean_value(system.get('Manufacturer')),
        product_name=clean_value(system.get('Product Name')),
        serial_number=clean_value(system.get('Serial Number')),
        uuid=clean_value(system.get('UUID')),
        bios_vendor=clean_value(bios.get('Vendor')),
        bios_version=clean_value(bios.get('Version')),
        bios_date=clean_value(bios.get('Release Date')),
        board_manufacturer=clean_value(board.get('Manufacturer')),
        board_product=clean_value(board.get('Product Name')),
        board_serial=clean_value(board.get('Serial Number')),
        chassis_type=clean_value(chassis.get('Type')),
        chassis_manufacturer=clean_value(chassis.get('Manufacturer')),
        chassis_serial=clean_value(chassis.get('Serial Number')),
    )]


def parse_sysfs_dmi(content: Dict[str, Dict[str, str]]) -> List[SystemPartial]:
    """
    Parse a walk of /sys/class/dmi (the 'id' entry). Serial and UUID files
    are root-only; they are simply absent for unprivileged runs.
    """
    entries = require_mapping(content, "sysfs dmi")
    attrs = entries.get('id')
    if not attrs:
        raise ParseFailedError("no /sys/class/dmi/id attributes")

    chassis_code = parse_int(attrs.get('chassis_type'))
    return [SystemPartial(
        manufacturer=clean_value(attrs.get('sys_vendor')),
        product_name=clean_value(attrs.get('product_name')),
        serial_number=clean_value(attrs.get('product_serial')),
        uuid=clean_value(attrs.get('product_uuid')),
        bios_vendor=clean_value(attrs.get('bios_vendor')),
        bios_version=clean_value(attrs.get('bios_version')),
        bios_date=clean_value(attrs.get('bios_date')),
        board_manufacturer=clean_value(attrs.get('board_vendor')),
        board_product=clean_value(attrs.get('board_name')),
        board_serial=clean_value(attrs.get('board_serial')),
        chassis_type=lookup(CHASSIS_TYPES, chassis_code, None),
        chassis_manufacturer=clean_value(attrs.get('chassis_vendor')),
        chassis_serial=clean_value(attrs.get('chassis_serial')),
    )]


def parse_devicetree_model(content: str) -> List[SystemPartial]:
    """aarch64 boards without SMBIOS expose their model in the devicetree"""
    text = require_text(content, "devicetree model")
    model = clean_value(text.replace('\x00', ''))
    if model is None:
        raise ParseFailedError("empty devicetree model")
    return [SystemPartial(product_name=model)]


def parse_ipmitool_lan(content: str) -> List[SystemPartial]:
    """Parse `ipmitool lan print` for the BMC address"""
    fields = parse_key_value_lines(require_text(content, "ipmitool"))
    ip_address = clean_value(fields.get('IP Address'))
    mac_address = clean_value(fields.get('MAC Address'))
    if ip_address == '0.0.0.0':
        ip_address = None
    if ip_address is None and mac_address is None:
        raise ParseFailedError("no BMC address in ipmitool output")
    return [SystemPartial(
        bmc_ip_address=ip_address,
        bmc_mac_address=mac_address.lower() if mac_address else None,
    )]


def parse_hostname(content: str) -> List[SystemPartial]:
    """Parse `hostname -f`"""
    fqdn = clean_value(require_text(content, "hostname").splitlines()[0])
    if fqdn is None:
        raise ParseFailedError("empty hostname")
    return [SystemPartial(hostname=fqdn.split('.')[0], fqdn=fqdn)]
