# hardware_report/models/base.py
"""
Base classes for partial and resolved hardware records.

A partial record is what one detection method learned about one physical
entity. Every data field is optional; None means "not determined by this
source". A resolved record is the merged, public view of one entity.
"""

from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from ..errors import UnitContractError

# Field names that describe provenance rather than hardware
METADATA_FIELDS = ('detection_method', 'priority')


@dataclass(frozen=True)
class PartialRecord:
    """Base class for per-source partial records"""

    detection_method: str = ""
    priority: int = 0

    # Fields that must never be negative (bytes, MHz, counts...)
    NON_NEGATIVE_FIELDS: ClassVar[Tuple[str, ...]] = ()
    # Fields any source may fill, regardless of priority
    ENRICHMENT_FIELDS: ClassVar[Tuple[str, ...]] = ()
    # Fields used to build the identity key
    KEY_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def __post_init__(self):
        for name in self.NON_NEGATIVE_FIELDS:
            value = getattr(self, name)
            if value is not None and value < 0:
                raise UnitContractError(
                    f"{self.__class__.__name__}.{name} must be non-negative, got {value!r}"
                )

    def identity_key(self) -> Optional[str]:
        """Normalized key naming the physical entity; None if not derivable"""
        return None

    def coarse_key(self) -> Optional[str]:
        """Key shared by every entity this record could describe"""
        return self.identity_key()

    def is_identity_complete(self) -> bool:
        """
        False when the source reported only part of the identity (a DIMM slot
        without its bank). Such records join an entity by coarse key.
        """
        return True

    @classmethod
    def data_field_names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name not in METADATA_FIELDS]

    def present_fields(self) -> Dict[str, Any]:
        """Data fields this source actually determined"""
        return {
            name: getattr(self, name)
            for name in self.data_field_names()
            if getattr(self, name) is not None
        }

    def is_enrichment_only(self) -> bool:
        """True if this record carries nothing beyond its key and enrichment fields"""
        present = self.present_fields()
        key_fields = set(self.KEY_FIELDS)
        return bool(present) and all(
            name in self.ENRICHMENT_FIELDS or name in key_fields for name in present
        ) and any(name in self.ENRICHMENT_FIELDS for name in present)


@dataclass
class ResolvedRecord:
    """Base class for merged records"""

    detection_methods: List[str] = field(default_factory=list)

    def compute_derived(self):
        """Fill derived fields from authoritative ones. Called after merge."""

    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value
