# hardware_report/parsers/cpu.py
"""
CPU and NUMA parsers.

Sources: lscpu (JSON or plain text), /proc/cpuinfo, the sysfs cpu tree,
dmidecode type 4, psutil, numactl --hardware and the sysfs node tree.
"""

import re
from typing import Any, Dict, List, Optional

from ..errors import ParseFailedError
from ..models.cpu import CpuPartial, NumaNodePartial
from .common import (
    check_dmidecode_output, clean_value, iter_dmidecode_type, khz_to_mhz,
    load_json, parse_cache_size_kb, parse_int, parse_key_value_lines, parse_mhz,
    parse_size_to_bytes, require_mapping, require_text,
)
from .tables import (
    AMD_FAMILIES, ARM_IMPLEMENTERS, ARM_MODEL_NAMES, ARM_PARTS,
    X86_MICROARCHITECTURES, lookup,
)

_CPU_ENTRY_RE = re.compile(r'^cpu\d+$')
_NODE_ENTRY_RE = re.compile(r'^node\d+$')
_PER_INSTANCE_CACHE_RE = re.compile(r'^\d+(?:\.\d+)?[KMG]$')


def cpu_microarchitecture(vendor_id: Optional[str] = None,
                          family: Optional[int] = None,
                          model: Optional[int] = None,
                          implementer: Optional[str] = None,
                          part: Optional[str] = None,
                          model_name: Optional[str] = None) -> Optional[str]:
    """
    Best-effort microarchitecture name.

    ARM cores are identified by MIDR implementer/part, x86 cores by
    vendor/family/model. Returns None when nothing matches.
    """
    if implementer and part:
        name = lookup(ARM_PARTS, (implementer.lower(), part.lower()), None)
        if name:
            return name
    if vendor_id and family is not None:
        if model is not None:
            name = lookup(X86_MICROARCHITECTURES, (vendor_id, family, model), None)
            if name:
                return name
        if vendor_id == 'AuthenticAMD':
            name = lookup(AMD_FAMILIES, family, None)
            if name:
                return name
    if model_name:
        lowered = model_name.lower()
        for needle, name in ARM_MODEL_NAMES.items():
            if needle in lowered:
                return name
    return None


def format_cpu_list(cpus: List[int]) -> Optional[str]:
    """[0, 1, 2, 3, 8] -> '0-3,8'"""
    if not cpus:
        return None
    ordered = sorted(set(cpus))
    ranges = []
    start = prev = ordered[0]
    for cpu in ordered[1:]:
        if cpu == prev + 1:
            prev = cpu
            continue
        ranges.append(f"{start}-{prev}" if start != prev else str(start))
        start = prev = cpu
    ranges.append(f"{start}-{prev}" if start != prev else str(start))
    return ','.join(ranges)


def _flatten_lscpu_json(entries: List[Dict[str, Any]], out: Dict[str, str]):
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        key = str(entry.get('field', '')).strip().rstrip(':')
        if key and key not in out and entry.get('data') is not None:
            out[key] = str(entry['data'])
        if isinstance(entry.get('children'), list):
            _flatten_lscpu_json(entry['children'], out)


def _lscpu_cache_total_kb(fields: Dict[str, Any], *names: str) -> Optional[int]:
    """
    Whole-system cache size from lscpu, or None.

    util-linux 2.34+ prints the sum over all instances with IEC units
    ('384 KiB', '1.5 MiB (48 instances)'). Older releases print a single
    instance ('32K') with no instance count; that form yields None.
    """
    text = clean_value(next((fields[name] for name in names if fields.get(name)), None))
    if text is None or _PER_INSTANCE_CACHE_RE.match(text):
        return None
    return parse_cache_size_kb(text)


def parse_lscpu(content: str) -> List[CpuPartial]:
    """
    Parse `lscpu -J` output, or plain `lscpu` output from hosts whose
    util-linux predates JSON support.
    """
    text = require_text(content, "lscpu")
    fields = {}
    if text.lstrip().startswith('{'):
        data = load_json(text, "lscpu")
        entries = data.get('lscpu') if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ParseFailedError("lscpu JSON has no 'lscpu' array")
        _flatten_lscpu_json(entries, fields)
    else:
        fields = parse_key_value_lines(text)

    if not fields:
        raise ParseFailedError("no fields in lscpu output")

    vendor_id = clean_value(fields.get('Vendor ID'))
    model_name = clean_value(fields.get('Model name')) or clean_value(fields.get('BIOS Model name'))
    family = parse_int(fields.get('CPU family'))
    model_id = parse_int(fields.get('Model'))
    # Some aarch64 lscpu versions report clusters instead of sockets
    sockets = parse_int(fields.get('Socket(s)')) or parse_int(fields.get('Cluster(s)'))
    cores_per_socket = parse_int(fields.get('Core(s) per socket')) or parse_int(fields.get('Core(s) per cluster'))

    # util-linux 2.37+ nests caches under 'Caches (sum of all)' as 'L1d', 'L2'...
    return [CpuPartial(
        model_name=model_name,
        vendor=lookup(ARM_IMPLEMENTERS, (vendor_id or '').lower(), None) or vendor_id,
        architecture=clean_value(fields.get('Architecture')),
        microarchitecture=cpu_microarchitecture(vendor_id, family, model_id, model_name=model_name),
        cpu_family=family,
        cpu_model_id=model_id,
        stepping=parse_int(fields.get('Stepping')),
        sockets=sockets,
        cores_per_socket=cores_per_socket,
        threads_per_core=parse_int(fields.get('Thread(s) per core')),
        logical_cpus=parse_int(fields.get('CPU(s)')),
        base_frequency_mhz=parse_mhz(fields.get('CPU MHz')),
        max_frequency_mhz=parse_mhz(fields.get('CPU max MHz')),
        min_frequency_mhz=parse_mhz(fields.get('CPU min MHz')),
        l1d_cache_kb=_lscpu_cache_total_kb(fields, 'L1d cache', 'L1d'),
        l1i_cache_kb=_lscpu_cache_total_kb(fields, 'L1i cache', 'L1i'),
        l2_cache_kb=_lscpu_cache_total_kb(fields, 'L2 cache', 'L2'),
        l3_cache_kb=_lscpu_cache_total_kb(fields, 'L3 cache', 'L3'),
        numa_node_count=parse_int(fields.get('NUMA node(s)')),
        virtualization=clean_value(fields.get('Virtualization')),
        flags=tuple(fields['Flags'].split()) if fields.get('Flags') else None,
    )]


def parse_proc_cpuinfo(content: str) -> List[CpuPartial]:
    """Parse /proc/cpuinfo (x86 and aarch64 layouts)"""
    text = require_text(content, "/proc/cpuinfo")
    processors = []
    for block in re.split(r'\n\s*\n', text):
        fields = parse_key_value_lines(block)
        if 'processor' in fields:
            processors.append(fields)
    if not processors:
        raise ParseFailedError("no processor entries in /proc/cpuinfo")

    first = processors[0]
    vendor_id = clean_value(first.get('vendor_id'))
    implementer = clean_value(first.get('CPU implementer'))
    part = clean_value(first.get('CPU part'))
    family = parse_int(first.get('cpu family'))
    model_id = parse_int(first.get('model'))
    model_name = clean_value(first.get('model name'))

    microarch = cpu_microarchitecture(vendor_id, family, model_id, implementer, part, model_name)

    if implementer:
        architecture = 'aarch64' if clean_value(first.get('CPU architecture')) == '8' else None
        vendor = lookup(ARM_IMPLEMENTERS, implementer.lower(), None)
        model_name = model_name or microarch
        flags_text = first.get('Features')
    else:
        flags_text = first.get('flags')
        architecture = 'x86_64' if flags_text and ' lm ' in f" {flags_text} " else None
        vendor = vendor_id

    physical_ids = {p.get('physical id') for p in processors if p.get('physical id') is not None}
    sockets = len(physical_ids) if physical_ids else None
    cores_per_socket = parse_int(first.get('cpu cores'))
    siblings = parse_int(first.get('siblings'))
    threads_per_core = None
    if siblings and cores_per_socket and siblings % cores_per_socket == 0:
        threads_per_core = siblings // cores_per_socket

    return [CpuPartial(
        model_name=model_name,
        vendor=vendor,
        architecture=architecture,
        microarchitecture=microarch,
        cpu_family=family,
        cpu_model_id=model_id,
        stepping=parse_int(first.get('stepping')),
        sockets=sockets,
        cores_per_socket=cores_per_socket,
        threads_per_core=threads_per_core,
        logical_cpus=len(processors),
        base_frequency_mhz=parse_mhz(first.get('cpu MHz')),
        flags=tuple(flags_text.split()) if flags_text else None,
    )]


def parse_sysfs_cpu(content: Dict[str, Dict[str, str]]) -> List[CpuPartial]:
    """
    Parse a walk of /sys/devices/system/cpu.

    Topology comes from topology/*; cache totals are summed over distinct
    shared_cpu_list groups so they match lscpu's whole-system figures.
    """
    entries = require_mapping(content, "sysfs cpu")
    cpus = {name: attrs for name, attrs in entries.items() if _CPU_ENTRY_RE.match(name)}
    if not cpus:
        raise ParseFailedError("no cpuN entries under /sys/devices/system/cpu")

    packages = set()
    cores = set()
    max_freqs = []
    min_freqs = []
    base_freqs = []
    caches = {}

    for name, attrs in cpus.items():
        package = attrs.get('topology/physical_package_id')
        core = attrs.get('topology/core_id')
        if package is not None:
            packages.add(package.strip())
            if core is not None:
                cores.add((package.strip(), core.strip()))
        for attr, bucket in (('cpufreq/cpuinfo_max_freq', max_freqs),
                             ('cpufreq/cpuinfo_min_freq', min_freqs),
                             ('cpufreq/base_frequency', base_freqs)):
            mhz = khz_to_mhz(attrs.get(attr))
            if mhz is not None:
                bucket.append(mhz)
        for index in range(8):
            prefix = f'cache/index{index}/'
            size = parse_cache_size_kb(attrs.get(prefix + 'size'))
            if size is None:
                continue
            level = (attrs.get(prefix + 'level') or '').strip()
            cache_type = (attrs.get(prefix + 'type') or '').strip()
            shared = (attrs.get(prefix + 'shared_cpu_list') or name).strip()
            caches.setdefault((level, cache_type), {})[shared] = size

    logical = len(cpus)
    sockets = len(packages) or None
    cores_per_socket = None
    threads_per_core = None
    if sockets and cores:
        if len(cores) % sockets == 0:
            cores_per_socket = len(cores) // sockets
        if logical % len(cores) == 0:
            threads_per_core = logical // len(cores)

    def cache_total(level, cache_type):
        groups = caches.get((level, cache_type))
        return sum(groups.values()) if groups else None

    return [CpuPartial(
        sockets=sockets,
        cores_per_socket=cores_per_socket,
        threads_per_core=threads_per_core,
        logical_cpus=logical,
        max_frequency_mhz=max(max_freqs) if max_freqs else None,
        min_frequency_mhz=min(min_freqs) if min_freqs else None,
        base_frequency_mhz=max(base_freqs) if base_freqs else None,
        l1d_cache_kb=cache_total('1', 'Data'),
        l1i_cache_kb=cache_total('1', 'Instruction'),
        l2_cache_kb=cache_total('2', 'Unified'),
        l3_cache_kb=cache_total('3', 'Unified'),
    )]


def parse_dmidecode_processor(content: str) -> List[CpuPartial]:
    """Parse `dmidecode -t processor` (SMBIOS type 4)"""
    text = require_text(content, "dmidecode processor")
    check_dmidecode_output(text)

    populated = []
    for block in iter_dmidecode_type(text, 4):
        status = block.fields.get('Status', '')
        if isinstance(status, str) and 'Unpopulated' in status:
            continue
        populated.append(block.fields)
    if not populated:
        raise ParseFailedError("no populated processor sockets in dmidecode output")

    first = populated[0]
    core_count = parse_int(first.get('Core Count'))
    thread_count = parse_int(first.get('Thread Count'))
    threads_per_core = None
    if core_count and thread_count and thread_count % core_count == 0:
        threads_per_core = thread_count // core_count

    model_name = clean_value(first.get('Version'))
    return [CpuPartial(
        model_name=model_name,
        vendor=clean_value(first.get('Manufacturer')),
        microarchitecture=cpu_microarchitecture(model_name=model_name),
        sockets=len(populated),
        cores_per_socket=core_count,
        threads_per_core=threads_per_core,
        max_frequency_mhz=parse_mhz(first.get('Max Speed')),
        base_frequency_mhz=parse_mhz(first.get('Current Speed')),
    )]


def parse_psutil_cpu(content: Dict[str, Any]) -> List[CpuPartial]:
    """
    Parse the psutil CPU probe: {'logical': int, 'physical': int,
    'max_mhz': float, 'min_mhz': float}
    """
    data = require_mapping(content, "psutil cpu")
    logical = parse_int(data.get('logical'))
    physical = parse_int(data.get('physical'))
    if logical is None and physical is None:
        raise ParseFailedError("psutil reported no CPU counts")

    threads_per_core = None
    if logical and physical and logical % physical == 0:
        threads_per_core = logical // physical

    # psutil reports 0.0 when the frequency is unknown
    max_mhz = parse_mhz(data.get('max_mhz'))
    min_mhz = parse_mhz(data.get('min_mhz'))
    return [CpuPartial(
        logical_cpus=logical,
        threads_per_core=threads_per_core,
        max_frequency_mhz=max_mhz or None,
        min_frequency_mhz=min_mhz or None,
    )]


_NUMACTL_NODE_RE = re.compile(r'^node\s+(?P<node>\d+)\s+(?P<key>cpus|size|free):\s*(?P<value>.*)$')


def parse_numactl_hardware(content: str) -> List[NumaNodePartial]:
    """Parse `numactl --hardware`"""
    text = require_text(content, "numactl")
    nodes = {}
    distances = {}
    in_distances = False

    for raw in text.splitlines():
        line = raw.strip()
        match = _NUMACTL_NODE_RE.match(line)
        if match:
            node = nodes.setdefault(int(match.group('node')), {})
            node[match.group('key')] = match.group('value').strip()
            continue
        if line.startswith('node distances'):
            in_distances = True
            continue
        if in_distances:
            row = re.match(r'^(\d+):\s+(.*)$', line)
            if row:
                distances[int(row.group(1))] = tuple(int(v) for v in row.group(2).split())

    if not nodes:
        raise ParseFailedError("no NUMA nodes in numactl output")

    partials = []
    for node_id in sorted(nodes):
        node = nodes[node_id]
        cpus = [int(c) for c in node.get('cpus', '').split() if c.isdigit()]
        partials.append(NumaNodePartial(
            node_id=node_id,
            cpu_list=format_cpu_list(cpus),
            memory_total_bytes=parse_size_to_bytes(node.get('size')),
            memory_free_bytes=parse_size_to_bytes(node.get('free')),
            distances=distances.get(node_id),
        ))
    return partials


def parse_sysfs_numa(content: Dict[str, Dict[str, str]]) -> List[NumaNodePartial]:
    """Parse a walk of /sys/devices/system/node (cpulist, meminfo, distance)"""
    entries = require_mapping(content, "sysfs node")
    partials = []
    for name in sorted(entries, key=lambda n: int(n[4:]) if _NODE_ENTRY_RE.match(n) else -1):
        if not _NODE_ENTRY_RE.match(name):
            continue
        attrs = entries[name]
        meminfo = {}
        for line in (attrs.get('meminfo') or '').splitlines():
            # 'Node 0 MemTotal:       65700000 kB'
            match = re.match(r'^Node\s+\d+\s+(\w+):\s+(\d+)\s*kB', line.strip())
            if match:
                meminfo[match.group(1)] = int(match.group(2)) * 1024
        distance_text = clean_value(attrs.get('distance'))
        partials.append(NumaNodePartial(
            node_id=int(name[4:]),
            cpu_list=clean_value(attrs.get('cpulist')),
            memory_total_bytes=meminfo.get('MemTotal'),
            memory_free_bytes=meminfo.get('MemFree'),
            distances=tuple(int(v) for v in distance_text.split()) if distance_text else None,
        ))
    if not partials:
        raise ParseFailedError("no nodeN entries under /sys/devices/system/node")
    return partials
