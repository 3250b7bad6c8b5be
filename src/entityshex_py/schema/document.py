"""Parsed EntitySchema model (ParsedDocument, ShapeDefinition, PropertyConstraint).

Every type here is immutable: one parse call produces one document and nothing
holds on to it afterwards.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from entityshex_py.schema.common import Cardinality


class ValueConstraintKind(Enum):
    DATATYPE = "datatype"
    SHAPE_REFERENCE = "shape-reference"
    VALUE_SET = "value-set"


@dataclass(frozen=True)
class ValueConstraint:
    """One alternative of a constraint expression.

    ``value`` is the expanded datatype IRI (or node-kind keyword such as
    ``IRI``) for datatypes and the label for shape references. Value sets keep
    their members in ``values``.
    """
    kind: ValueConstraintKind
    value: Optional[str] = None
    values: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d: dict = {"type": self.kind.value}
        if self.kind is ValueConstraintKind.VALUE_SET:
            d["values"] = list(self.values)
        else:
            d["value"] = self.value
        return d


@dataclass(frozen=True)
class PropertyConstraint:
    id: str
    predicate: str
    constraint: str  # expression text as written, without the cardinality marker
    value_constraints: tuple[ValueConstraint, ...] = ()
    cardinality: Cardinality = field(default_factory=Cardinality)
    schema_comment: Optional[str] = None
    requires_source: bool = False
    constraint_source: str = ""  # expression plus marker, as written
    line: Optional[int] = None

    @property
    def is_required(self) -> bool:
        return self.cardinality.is_required

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "predicate": self.predicate,
            "constraint": self.constraint,
            "valueConstraints": [vc.to_dict() for vc in self.value_constraints],
            "cardinality": self.cardinality.to_dict(),
            "schemaComment": self.schema_comment,
            "requiresSource": self.requires_source,
        }


@dataclass(frozen=True)
class PropertySet:
    """Properties of one scope, partitioned by cardinality."""
    required: tuple[PropertyConstraint, ...] = ()
    optional: tuple[PropertyConstraint, ...] = ()

    def __iter__(self) -> Iterator[PropertyConstraint]:
        yield from self.required
        yield from self.optional

    def __len__(self) -> int:
        return len(self.required) + len(self.optional)

    def ids(self) -> list[str]:
        return [p.id for p in self]

    def find(self, pid: str) -> Optional[PropertyConstraint]:
        for prop in self:
            if prop.id == pid:
                return prop
        return None

    def to_dict(self) -> dict:
        return {
            "required": [p.to_dict() for p in self.required],
            "optional": [p.to_dict() for p in self.optional],
        }


@dataclass(frozen=True)
class ShapeDefinition:
    label: str
    properties: PropertySet = field(default_factory=PropertySet)
    closed: bool = False
    extra: tuple[str, ...] = ()  # EXTRA predicate IRIs

    def to_dict(self) -> dict:
        d: dict = {"label": self.label, "properties": self.properties.to_dict()}
        if self.closed:
            d["closed"] = True
        if self.extra:
            d["extra"] = list(self.extra)
        return d


@dataclass(frozen=True)
class ParsedDocument:
    prefixes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    shapes: Mapping[str, ShapeDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    properties: PropertySet = field(default_factory=PropertySet)
    start: Optional[str] = None  # start = @<label>
    base: Optional[str] = None
    # Errors recovered from in graceful mode; not part of document identity.
    diagnostics: tuple = field(default=(), compare=False)

    @classmethod
    def empty(cls, prefixes: Optional[Mapping[str, str]] = None) -> ParsedDocument:
        return cls(prefixes=MappingProxyType({k: str(v) for k, v in (prefixes or {}).items()}))

    @property
    def is_empty(self) -> bool:
        return len(self.properties) == 0 and not self.shapes

    def all_properties(self) -> PropertySet:
        """Flatten document-level and shape properties into one set.

        First occurrence wins; a property required anywhere stays required.
        """
        scopes = [self.properties] + [s.properties for s in self.shapes.values()]
        seen: set[str] = set()
        required: list[PropertyConstraint] = []
        for scope in scopes:
            for prop in scope.required:
                if prop.id not in seen:
                    seen.add(prop.id)
                    required.append(prop)
        optional: list[PropertyConstraint] = []
        for scope in scopes:
            for prop in scope.optional:
                if prop.id not in seen:
                    seen.add(prop.id)
                    optional.append(prop)
        return PropertySet(required=tuple(required), optional=tuple(optional))

    def to_dict(self) -> dict:
        d: dict = {
            "prefixes": {k: str(v) for k, v in self.prefixes.items()},
            "shapes": {label: s.to_dict() for label, s in self.shapes.items()},
            "properties": self.properties.to_dict(),
        }
        if self.start is not None:
            d["start"] = self.start
        if self.base is not None:
            d["base"] = self.base
        return d
