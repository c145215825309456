# hardware_report/collectors/sub_collectors/network_sub_collector.py
"""
Network Sub-Collector
Resolves physical network interfaces and InfiniBand ports.
"""

import re
from typing import Any, Dict, List

from ...models.network import InfinibandPartial, InfinibandPort, NetworkInterface, NetworkPartial
from ...parsers.network import (
    parse_ethtool, parse_ethtool_driver, parse_ibstat, parse_ip_addr, parse_psutil_net,
    parse_sysfs_net, parse_udev_net,
)
from .. import library_probes
from ..detector import DetectorDescriptor
from ..sources import CommandSource, LibrarySource, PerEntryCommandSource, SysfsTreeSource
from .base_sub_collector import SubCollector

# Software interfaces: loopback, bridges, veth pairs, tunnels, overlays, VPNs
VIRTUAL_PREFIXES = (
    'veth', 'br', 'docker', 'virbr', 'vnet', 'tap', 'tun', 'bond', 'team',
    'vxlan', 'flannel', 'cali', 'cni', 'kube-', 'dummy', 'tailscale', 'wg',
    'gre', 'ip6tnl', 'ip6gre', 'sit',
)

# Per-interface probes only run against candidates that survive the name filter
PHYSICAL_CANDIDATE_FILTER = r'^(?!lo$|(?:{})).+'.format('|'.join(re.escape(p) for p in VIRTUAL_PREFIXES))

NET_ROOT = '/sys/class/net'

NETWORK_DETECTORS = [
    DetectorDescriptor(
        'sysfs_net', 0,
        SysfsTreeSource(NET_ROOT,
                        ['address', 'mtu', 'operstate', 'speed', 'duplex', 'type',
                         'device/vendor', 'device/numa_node'],
                        links=['device', 'device/driver']),
        parse_sysfs_net,
    ),
    DetectorDescriptor('ip_addr', 1, CommandSource('ip', ['-j', 'addr', 'show']), parse_ip_addr),
    DetectorDescriptor(
        'ethtool', 2,
        PerEntryCommandSource(NET_ROOT, 'ethtool', ['{entry}'], entry_filter=PHYSICAL_CANDIDATE_FILTER),
        parse_ethtool,
    ),
    DetectorDescriptor(
        'ethtool_driver', 3,
        PerEntryCommandSource(NET_ROOT, 'ethtool', ['-i', '{entry}'], entry_filter=PHYSICAL_CANDIDATE_FILTER),
        parse_ethtool_driver,
    ),
    DetectorDescriptor(
        'udev_net', 4,
        PerEntryCommandSource(NET_ROOT, 'udevadm', ['info', '--query=property', f'--path={NET_ROOT}/{{entry}}'],
                              entry_filter=PHYSICAL_CANDIDATE_FILTER),
        parse_udev_net,
    ),
    DetectorDescriptor('psutil_net', 5, LibrarySource('psutil.net', library_probes.psutil_network),
                       parse_psutil_net),
]

INFINIBAND_DETECTORS = [
    DetectorDescriptor('ibstat', 0, CommandSource('ibstat'), parse_ibstat),
]


def is_virtual_interface(interface: NetworkInterface) -> bool:
    name = interface.name or ''
    if name == 'lo' or interface.link_type == 'loopback':
        return True
    return name.startswith(VIRTUAL_PREFIXES)


class NetworkSubCollector(SubCollector):
    """
    Collects physical NICs keyed by kernel interface name, plus InfiniBand
    HCA ports from ibstat.
    """

    def get_section_name(self) -> str:
        return "network"

    def resolve(self) -> List[NetworkInterface]:
        self.last_errors = []
        return self._resolve_interfaces()

    def resolve_infiniband(self) -> List[InfinibandPort]:
        return self.run_detectors('infiniband', INFINIBAND_DETECTORS, InfinibandPartial, InfinibandPort)

    def collect(self) -> Dict[str, Any]:
        self.log_start()
        self.last_errors = []
        interfaces = self._resolve_interfaces()
        ports = self.resolve_infiniband()
        self.log_end(len(interfaces) + len(ports))
        return {
            'interfaces': [interface.to_dict() for interface in interfaces],
            'infiniband': [port.to_dict() for port in ports],
        }

    def _resolve_interfaces(self) -> List[NetworkInterface]:
        interfaces = self.run_detectors('network', NETWORK_DETECTORS, NetworkPartial, NetworkInterface)
        physical = []
        for interface in interfaces:
            if is_virtual_interface(interface):
                self.logger.debug(f"Skipping virtual interface {interface.name}")
                continue
            physical.append(interface)
        return sorted(physical, key=lambda i: i.name or '')
