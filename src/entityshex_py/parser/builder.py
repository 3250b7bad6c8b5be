"""Assemble parsed declarations into a ParsedDocument.

Each scope (the document itself, or one shape) keeps at most one entry per
property id; the first declaration in source order wins.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from loguru import logger

from entityshex_py.parser.errors import ShExParseError
from entityshex_py.schema.document import (
    ParsedDocument,
    PropertyConstraint,
    PropertySet,
    ShapeDefinition,
)


class PropertyScope:
    """Ordered, de-duplicated property declarations of one scope."""

    def __init__(self, name: str):
        self.name = name
        self._required: list[PropertyConstraint] = []
        self._optional: list[PropertyConstraint] = []
        self._seen: set[str] = set()

    def add(self, prop: PropertyConstraint) -> bool:
        if prop.id in self._seen:
            logger.debug(f"Dropping duplicate {prop.id} in {self.name} (line {prop.line})")
            return False
        self._seen.add(prop.id)
        if prop.is_required:
            self._required.append(prop)
        else:
            self._optional.append(prop)
        return True

    def __len__(self) -> int:
        return len(self._seen)

    def freeze(self) -> PropertySet:
        return PropertySet(required=tuple(self._required), optional=tuple(self._optional))


@dataclass
class _ShapeDraft:
    label: str
    scope: PropertyScope
    closed: bool = False
    extra: list[str] = field(default_factory=list)

    def build(self) -> ShapeDefinition:
        return ShapeDefinition(
            label=self.label,
            properties=self.scope.freeze(),
            closed=self.closed,
            extra=tuple(self.extra),
        )


class DocumentBuilder:
    def __init__(self, prefixes: Mapping[str, str]):
        self.prefixes: dict[str, str] = {name: str(iri) for name, iri in prefixes.items()}
        self.start: Optional[str] = None
        self.base: Optional[str] = None
        self.diagnostics: list[ShExParseError] = []
        self.document_scope = PropertyScope("document")
        self._shapes: dict[str, _ShapeDraft] = {}

    def declare_prefix(self, name: str, iri: str):
        self.prefixes[name] = iri

    def open_shape(
        self, label: str, closed: bool = False, extra: Optional[list[str]] = None
    ) -> PropertyScope:
        """Scope for a shape block; a repeated label continues the first one."""
        draft = self._shapes.get(label)
        if draft is None:
            draft = _ShapeDraft(label=label, scope=PropertyScope(f"shape {label!r}"))
            self._shapes[label] = draft
        else:
            logger.debug(f"Merging repeated shape {label!r}")
        draft.closed = draft.closed or closed
        for iri in extra or []:
            if iri not in draft.extra:
                draft.extra.append(iri)
        return draft.scope

    def add_diagnostic(self, error: ShExParseError):
        self.diagnostics.append(error)

    @property
    def declaration_count(self) -> int:
        return len(self.document_scope) + sum(len(d.scope) for d in self._shapes.values())

    def build(self) -> ParsedDocument:
        return ParsedDocument(
            prefixes=MappingProxyType(dict(self.prefixes)),
            shapes=MappingProxyType({label: d.build() for label, d in self._shapes.items()}),
            properties=self.document_scope.freeze(),
            start=self.start,
            base=self.base,
            diagnostics=tuple(self.diagnostics),
        )
