# hardware_report/models/network.py
"""Network interface and InfiniBand port records"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .base import PartialRecord, ResolvedRecord
from .identity import normalize_interface_name, normalize_text_key


@dataclass(frozen=True)
class NetworkPartial(PartialRecord):
    name: Optional[str] = None
    mac_address: Optional[str] = None
    pci_address: Optional[str] = None
    link_type: Optional[str] = None
    is_physical: Optional[bool] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    driver: Optional[str] = None
    driver_version: Optional[str] = None
    firmware_version: Optional[str] = None
    speed_mbps: Optional[int] = None
    duplex: Optional[str] = None
    mtu: Optional[int] = None
    operstate: Optional[str] = None
    ipv4_addresses: Optional[Tuple[str, ...]] = None
    ipv6_addresses: Optional[Tuple[str, ...]] = None
    numa_node: Optional[int] = None

    NON_NEGATIVE_FIELDS = ('speed_mbps', 'mtu')
    ENRICHMENT_FIELDS = ('numa_node',)
    KEY_FIELDS = ('name',)

    def identity_key(self) -> Optional[str]:
        return normalize_interface_name(self.name)


@dataclass
class NetworkInterface(ResolvedRecord):
    name: Optional[str] = None
    mac_address: Optional[str] = None
    pci_address: Optional[str] = None
    link_type: Optional[str] = None
    is_physical: Optional[bool] = None
    vendor: Optional[str] = None
    model: Optional[str] = None
    driver: Optional[str] = None
    driver_version: Optional[str] = None
    firmware_version: Optional[str] = None
    speed_mbps: Optional[int] = None
    duplex: Optional[str] = None
    mtu: Optional[int] = None
    operstate: Optional[str] = None
    ipv4_addresses: Optional[Tuple[str, ...]] = None
    ipv6_addresses: Optional[Tuple[str, ...]] = None
    numa_node: Optional[int] = None

    def compute_derived(self):
        if self.mac_address is not None:
            self.mac_address = self.mac_address.lower()


@dataclass(frozen=True)
class InfinibandPartial(PartialRecord):
    ca_name: Optional[str] = None
    port: Optional[int] = None
    ca_type: Optional[str] = None
    firmware_version: Optional[str] = None
    state: Optional[str] = None
    physical_state: Optional[str] = None
    rate_gbps: Optional[int] = None
    base_lid: Optional[int] = None
    port_guid: Optional[str] = None
    link_layer: Optional[str] = None

    NON_NEGATIVE_FIELDS = ('port', 'rate_gbps', 'base_lid')
    KEY_FIELDS = ('ca_name', 'port')

    def identity_key(self) -> Optional[str]:
        ca = normalize_text_key(self.ca_name)
        if ca is None or self.port is None:
            return None
        return f"{ca}/{self.port}"


@dataclass
class InfinibandPort(ResolvedRecord):
    ca_name: Optional[str] = None
    port: Optional[int] = None
    ca_type: Optional[str] = None
    firmware_version: Optional[str] = None
    state: Optional[str] = None
    physical_state: Optional[str] = None
    rate_gbps: Optional[int] = None
    base_lid: Optional[int] = None
    port_guid: Optional[str] = None
    link_layer: Optional[str] = None
