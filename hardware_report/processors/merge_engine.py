# hardware_report/processors/merge_engine.py
"""
Merge engine: combine partial records into one resolved record per entity.

Precedence is "fill if unknown": for each field the first present value in
priority order wins and is never overwritten by a later source.
"""

import logging
from dataclasses import fields
from typing import Dict, List, Optional, Sequence, Type

from ..models.base import PartialRecord, ResolvedRecord


class _Entity:
    """Merge state of one physical entity"""

    def __init__(self, values: Dict = None, methods: List[str] = None, original: ResolvedRecord = None):
        self.values = dict(values or {})
        self.methods = list(methods or [])
        # Methods already on an existing record rank first
        self.method_priority = {method: -1 for method in self.methods}
        self.original = original
        self.changed = original is None

    def ordered_methods(self) -> List[str]:
        return sorted(self.methods, key=lambda m: self.method_priority.get(m, 0))

    def absorb(self, partial: PartialRecord):
        for name, value in partial.present_fields().items():
            if self.values.get(name) is None:
                self.values[name] = value
                self.changed = True
        if partial.detection_method and partial.detection_method not in self.methods:
            self.methods.append(partial.detection_method)
            self.method_priority[partial.detection_method] = partial.priority
            self.changed = True


class MergeEngine:
    """
    Merges partials of one category.

    Args:
        partial_type: PartialRecord subclass the category's parsers produce
        resolved_type: ResolvedRecord subclass to build
    """

    def __init__(self, partial_type: Type[PartialRecord], resolved_type: Type[ResolvedRecord]):
        self.partial_type = partial_type
        self.resolved_type = resolved_type
        self.resolved_fields = [f.name for f in fields(resolved_type)]
        self.logger = logging.getLogger(f"merge.{resolved_type.__name__}")

    def merge(self, partials: Sequence[PartialRecord]) -> List[ResolvedRecord]:
        """Merge partials into resolved records, first-seen order"""
        return self.merge_into([], partials)

    def merge_into(self, existing: Sequence[ResolvedRecord],
                   partials: Sequence[PartialRecord]) -> List[ResolvedRecord]:
        """
        Merge partials into an existing resolved state.

        Existing records rank above every partial. With no partials the
        existing records are returned unchanged.
        """
        if not partials:
            return list(existing)

        entities: List[_Entity] = []
        by_key: Dict[str, _Entity] = {}
        by_coarse: Dict[str, List[_Entity]] = {}

        for record in existing:
            entity = _Entity(
                values={name: getattr(record, name) for name in self.resolved_fields
                        if name != 'detection_methods'},
                methods=record.detection_methods,
                original=record,
            )
            entities.append(entity)
            key_partial = self._key_partial(record)
            key = key_partial.identity_key()
            if key is not None:
                by_key.setdefault(key, entity)
            self._track_coarse(by_coarse, key_partial, entity)

        # Stable sort: equal priorities keep appearance order
        ordered = sorted(partials, key=lambda p: p.priority)
        # Enrichment-only partials attach to entities created by any priority
        primary = [p for p in ordered if not p.is_enrichment_only()]
        enrichment = [p for p in ordered if p.is_enrichment_only()]

        for partial in primary:
            key = partial.identity_key()
            if partial.is_identity_complete():
                entity = by_key.get(key) if key is not None else None
            else:
                entity = self._coarse_match(by_coarse, partial)
            if entity is None:
                entity = _Entity()
                entities.append(entity)
                if key is not None:
                    by_key.setdefault(key, entity)
                self._track_coarse(by_coarse, partial, entity)
            entity.absorb(partial)

        for partial in enrichment:
            key = partial.identity_key()
            entity = by_key.get(key) if key is not None else None
            if entity is None:
                self.logger.debug(f"Ignoring enrichment for unknown entity {key!r} from {partial.detection_method}")
                continue
            entity.absorb(partial)

        return [self._build(entity) for entity in entities]

    @staticmethod
    def _track_coarse(by_coarse: Dict[str, List[_Entity]], partial: PartialRecord, entity: _Entity):
        coarse = partial.coarse_key()
        if coarse is not None:
            by_coarse.setdefault(coarse, []).append(entity)

    def _coarse_match(self, by_coarse: Dict[str, List[_Entity]],
                      partial: PartialRecord) -> Optional[_Entity]:
        """
        Entity for a record that carries only part of its identity.

        Candidates sharing the coarse key are taken in appearance order, one
        per record of the same method, so a source listing two 'DIMM 0' slots
        fills the two 'DIMM 0' modules in turn. None when every candidate
        already holds a record from this method.
        """
        for entity in by_coarse.get(partial.coarse_key(), []):
            if partial.detection_method not in entity.methods:
                return entity
        if by_coarse.get(partial.coarse_key()):
            self.logger.debug(f"No unmatched entity for {partial.coarse_key()!r} from {partial.detection_method}")
        return None

    def _key_partial(self, record: ResolvedRecord) -> PartialRecord:
        key_values = {name: getattr(record, name, None) for name in self.partial_type.KEY_FIELDS}
        return self.partial_type(**key_values)

    def _build(self, entity: _Entity) -> ResolvedRecord:
        if not entity.changed:
            return entity.original
        values = {name: value for name, value in entity.values.items() if name in self.resolved_fields}
        if entity.original is not None:
            # Carry fields the partials cannot supply (e.g. nested records)
            for name in self.resolved_fields:
                if name not in values and name != 'detection_methods':
                    values[name] = getattr(entity.original, name)
        resolved = self.resolved_type(detection_methods=entity.ordered_methods(), **values)
        resolved.compute_derived()
        return resolved
