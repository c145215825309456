# hardware_report/collectors/library_probes.py
"""
In-process probes backed by psutil and NVML (pynvml).

Each probe returns plain data for its parser. They raise whatever the
library raises; LibrarySource turns that into an unavailable result.
"""

import socket

import psutil
import pynvml


def psutil_cpu():
    freq = psutil.cpu_freq()
    return {
        'logical': psutil.cpu_count(logical=True),
        'physical': psutil.cpu_count(logical=False),
        'max_mhz': freq.max if freq else None,
        'min_mhz': freq.min if freq else None,
    }


def psutil_memory():
    memory = psutil.virtual_memory()
    swap = psutil.swap_memory()
    return {
        'total': memory.total,
        'available': memory.available,
        'swap_total': swap.total,
    }


def psutil_disks():
    counters = psutil.disk_io_counters(perdisk=True) or {}
    return {name: {'read_bytes': c.read_bytes, 'write_bytes': c.write_bytes}
            for name, c in counters.items()}


def psutil_network():
    stats = psutil.net_if_stats()
    addresses = psutil.net_if_addrs()
    interfaces = {}
    for name in sorted(set(stats) | set(addresses)):
        entry = {'ipv4': [], 'ipv6': []}
        stat = stats.get(name)
        if stat is not None:
            entry['isup'] = stat.isup
            entry['mtu'] = stat.mtu
            entry['speed'] = stat.speed
            if stat.duplex == psutil.NIC_DUPLEX_FULL:
                entry['duplex'] = 'full'
            elif stat.duplex == psutil.NIC_DUPLEX_HALF:
                entry['duplex'] = 'half'
        for addr in addresses.get(name, []):
            if addr.family == psutil.AF_LINK:
                entry['mac'] = addr.address
            elif addr.family == socket.AF_INET:
                entry['ipv4'].append(_with_prefix(addr.address, addr.netmask))
            elif addr.family == socket.AF_INET6:
                entry['ipv6'].append(addr.address.split('%')[0])
        interfaces[name] = entry
    return interfaces


def _with_prefix(address, netmask):
    if not netmask:
        return address
    prefix = sum(bin(int(octet)).count('1') for octet in netmask.split('.'))
    return f"{address}/{prefix}"


def _decode(value):
    return value.decode('utf-8', errors='replace') if isinstance(value, bytes) else value


def nvml_gpus():
    """Query every NVIDIA GPU through NVML"""
    pynvml.nvmlInit()
    try:
        devices = []
        for index in range(pynvml.nvmlDeviceGetCount()):
            handle = pynvml.nvmlDeviceGetHandleByIndex(index)
            memory = pynvml.nvmlDeviceGetMemoryInfo(handle)
            device = {
                'index': index,
                'name': _decode(pynvml.nvmlDeviceGetName(handle)),
                'uuid': _decode(pynvml.nvmlDeviceGetUUID(handle)),
                'pci_bus_id': _decode(pynvml.nvmlDeviceGetPciInfo(handle).busId),
                'memory_total': memory.total,
                'memory_free': memory.free,
                'compute_capability': pynvml.nvmlDeviceGetCudaComputeCapability(handle),
            }
            try:
                device['vbios_version'] = _decode(pynvml.nvmlDeviceGetVbiosVersion(handle))
            except pynvml.NVMLError:
                device['vbios_version'] = None
            try:
                device['power_limit_mw'] = pynvml.nvmlDeviceGetPowerManagementLimit(handle)
            except pynvml.NVMLError:
                device['power_limit_mw'] = None
            devices.append(device)
        return {
            'driver_version': _decode(pynvml.nvmlSystemGetDriverVersion()),
            'devices': devices,
        }
    finally:
        pynvml.nvmlShutdown()
