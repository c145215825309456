# hardware_report/parsers/network.py
"""
Network parsers: sysfs /sys/class/net, `ip -j addr`, ethtool, ethtool -i,
udev properties, psutil and ibstat.
"""

import re
from typing import Any, Dict, List, Optional

from ..errors import ParseFailedError
from ..models.identity import normalize_pci_address
from ..models.network import NetworkPartial, InfinibandPartial
from .common import (
    clean_value, load_json, parse_int, parse_key_value_lines, parse_speed_mbps,
    require_mapping, require_text,
)
from .tables import ARPHRD_TYPES, PCI_VENDOR_NAMES, lookup


def _numa_node(value: Any) -> Optional[int]:
    node = parse_int(value)
    return node if node is not None and node >= 0 else None


def _pci_vendor_name(value: Any) -> Optional[str]:
    text = clean_value(value)
    if text is None:
        return None
    vendor_id = text.lower()[2:] if text.lower().startswith('0x') else text.lower()
    return lookup(PCI_VENDOR_NAMES, vendor_id.zfill(4), None)


def _require_entries(content: Any, what: str) -> Dict[str, str]:
    entries = require_mapping(content, what)
    if not entries:
        raise ParseFailedError(f"no interfaces in {what} output")
    return entries


def parse_sysfs_net(content: Dict[str, Dict[str, str]]) -> List[NetworkPartial]:
    """
    Parse a walk of /sys/class/net.

    Interfaces backed by a device (the 'device' link exists) are physical.
    'speed' reads -1 or fails with EINVAL while the link is down.
    """
    entries = require_mapping(content, "sysfs net")
    partials = []
    for name in sorted(entries):
        attrs = entries[name] or {}
        device_link = attrs.get('device')
        link_type = parse_int(attrs.get('type'))
        partials.append(NetworkPartial(
            name=name,
            mac_address=clean_value(attrs.get('address')),
            pci_address=normalize_pci_address(device_link),
            link_type=lookup(ARPHRD_TYPES, link_type, None),
            is_physical=device_link is not None,
            vendor=_pci_vendor_name(attrs.get('device/vendor')),
            driver=clean_value(attrs.get('device/driver')),
            speed_mbps=parse_speed_mbps(attrs.get('speed')),
            duplex=clean_value(attrs.get('duplex')),
            mtu=parse_int(attrs.get('mtu')),
            operstate=clean_value(attrs.get('operstate')),
            numa_node=_numa_node(attrs.get('device/numa_node')),
        ))
    return partials


def parse_ip_addr(content: str) -> List[NetworkPartial]:
    """Parse `ip -j addr show`"""
    data = load_json(require_text(content, "ip addr"), "ip addr")
    if not isinstance(data, list):
        raise ParseFailedError("ip -j addr did not return a list")

    partials = []
    for link in data:
        if not isinstance(link, dict) or not link.get('ifname'):
            continue
        ipv4 = []
        ipv6 = []
        for addr in link.get('addr_info') or []:
            local = addr.get('local')
            if not local:
                continue
            entry = f"{local}/{addr['prefixlen']}" if addr.get('prefixlen') is not None else local
            if addr.get('family') == 'inet':
                ipv4.append(entry)
            elif addr.get('family') == 'inet6':
                ipv6.append(entry)
        partials.append(NetworkPartial(
            name=link['ifname'],
            mac_address=clean_value(link.get('address')) if link.get('link_type') != 'loopback' else None,
            link_type=clean_value(link.get('link_type')),
            mtu=parse_int(link.get('mtu')),
            operstate=clean_value(link.get('operstate')),
            ipv4_addresses=tuple(ipv4) if ipv4 else None,
            ipv6_addresses=tuple(ipv6) if ipv6 else None,
        ))
    return partials


def parse_ethtool(content: Dict[str, str]) -> List[NetworkPartial]:
    """Parse per-interface `ethtool <iface>` output: {iface: stdout}"""
    entries = _require_entries(content, "ethtool")
    partials = []
    for name in sorted(entries):
        fields = parse_key_value_lines(entries[name] or '')
        speed = parse_speed_mbps(fields.get('Speed'))
        duplex = clean_value(fields.get('Duplex'))
        # Link down: 'Unknown! (255)'
        if duplex is not None and duplex.startswith('Unknown'):
            duplex = None
        if speed is None and duplex is None:
            continue
        partials.append(NetworkPartial(
            name=name,
            speed_mbps=speed,
            duplex=duplex.lower() if duplex else None,
        ))
    return partials


def parse_ethtool_driver(content: Dict[str, str]) -> List[NetworkPartial]:
    """Parse per-interface `ethtool -i <iface>` output: {iface: stdout}"""
    entries = _require_entries(content, "ethtool -i")
    partials = []
    for name in sorted(entries):
        fields = parse_key_value_lines(entries[name] or '')
        if not fields:
            continue
        partials.append(NetworkPartial(
            name=name,
            driver=clean_value(fields.get('driver')),
            driver_version=clean_value(fields.get('version')),
            firmware_version=clean_value(fields.get('firmware-version')),
            pci_address=normalize_pci_address(fields.get('bus-info')),
        ))
    return partials


def parse_udev_net(content: Dict[str, str]) -> List[NetworkPartial]:
    """Parse per-interface `udevadm info --query=property` output: {iface: stdout}"""
    entries = _require_entries(content, "udevadm")
    partials = []
    for name in sorted(entries):
        props = parse_key_value_lines(entries[name] or '', separator='=')
        path = clean_value(props.get('ID_PATH'))
        pci_address = None
        if path and path.startswith('pci-'):
            pci_address = normalize_pci_address(path[len('pci-'):].split('-')[0])
        partials.append(NetworkPartial(
            name=name,
            vendor=clean_value(props.get('ID_VENDOR_FROM_DATABASE')),
            model=clean_value(props.get('ID_MODEL_FROM_DATABASE')),
            driver=clean_value(props.get('ID_NET_DRIVER')),
            pci_address=pci_address,
        ))
    return partials


def parse_psutil_net(content: Dict[str, Dict[str, Any]]) -> List[NetworkPartial]:
    """
    Parse the psutil network probe: {iface: {'mac', 'mtu', 'speed', 'duplex',
    'isup', 'ipv4', 'ipv6'}}. psutil reports speed 0 when unknown.
    """
    entries = _require_entries(content, "psutil net")
    partials = []
    for name in sorted(entries):
        info = entries[name] or {}
        speed = parse_int(info.get('speed'))
        isup = info.get('isup')
        partials.append(NetworkPartial(
            name=name,
            mac_address=clean_value(info.get('mac')),
            mtu=parse_int(info.get('mtu')) or None,
            speed_mbps=speed if speed and speed > 0 else None,
            duplex=clean_value(info.get('duplex')),
            operstate=('up' if isup else 'down') if isup is not None else None,
            ipv4_addresses=tuple(info['ipv4']) if info.get('ipv4') else None,
            ipv6_addresses=tuple(info['ipv6']) if info.get('ipv6') else None,
        ))
    return partials


_CA_RE = re.compile(r"^CA\s+'(?P<name>[^']+)'")
_PORT_RE = re.compile(r'^Port\s+(?P<port>\d+):')


def parse_ibstat(content: str) -> List[InfinibandPartial]:
    """Parse `ibstat` output, one record per CA port"""
    text = require_text(content, "ibstat")
    partials = []
    ca = None
    ca_fields = {}
    port = None
    port_fields = {}

    def flush():
        if ca is not None and port is not None:
            partials.append(InfinibandPartial(
                ca_name=ca,
                port=port,
                ca_type=clean_value(ca_fields.get('CA type')),
                firmware_version=clean_value(ca_fields.get('Firmware version')),
                state=clean_value(port_fields.get('State')),
                physical_state=clean_value(port_fields.get('Physical state')),
                rate_gbps=parse_int(port_fields.get('Rate')),
                base_lid=parse_int(port_fields.get('Base lid')),
                port_guid=clean_value(port_fields.get('Port GUID')),
                link_layer=clean_value(port_fields.get('Link layer')),
            ))

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        ca_match = _CA_RE.match(line)
        if ca_match:
            flush()
            ca, ca_fields, port, port_fields = ca_match.group('name'), {}, None, {}
            continue
        port_match = _PORT_RE.match(line)
        if port_match and ca is not None:
            flush()
            port, port_fields = int(port_match.group('port')), {}
            continue
        if ':' in line and ca is not None:
            key, value = line.split(':', 1)
            target = port_fields if port is not None else ca_fields
            target.setdefault(key.strip(), value.strip())
    flush()

    if not partials:
        raise ParseFailedError("no CA ports in ibstat output")
    return partials
