"""Serialize a ParsedDocument back to ShExC compact syntax."""
from __future__ import annotations

from typing import Iterable, Mapping

from entityshex_py.schema.document import ParsedDocument, PropertyConstraint, PropertySet
from entityshex_py.schema.prefixes import expand_prefixed_name


class PrefixMap:
    """Manages IRI-to-prefixed-name resolution."""

    def __init__(self, prefixes: Mapping[str, str]):
        # Sort by longest IRI first to get most specific match
        self.entries = sorted(
            [(name, str(iri)) for name, iri in prefixes.items()],
            key=lambda x: -len(x[1]),
        )
        self.prefixes = prefixes

    def compact(self, iri: str) -> str:
        """Try to compact a full IRI to prefixed name."""
        for name, prefix_iri in self.entries:
            if iri.startswith(prefix_iri):
                local = iri[len(prefix_iri):]
                if local and not all(c.isalnum() or c in "_-" for c in local):
                    continue
                return f"{name}:{local}"
        return f"<{iri}>"

    def label(self, label: str) -> str:
        """Shape labels are kept as written: a prefixed name or a bare IRI."""
        if expand_prefixed_name(label, self.prefixes) is not None:
            return label
        return f"<{label}>"


def _serialize_property(prop: PropertyConstraint) -> str:
    parts = [f"wdt:{prop.id}"]
    if prop.constraint:
        parts.append(prop.constraint)
    line = " ".join(parts) + prop.cardinality.to_shex_string() + " ;"
    if prop.schema_comment:
        line += f"  # {prop.schema_comment}"
    return line


def _in_source_order(props: PropertySet) -> Iterable[PropertyConstraint]:
    return sorted(props, key=lambda p: p.line or 0)


def serialize_shex(document: ParsedDocument) -> str:
    """Serialize a ParsedDocument to a ShExC string.

    Only the extracted Wikidata declarations are written; other triple
    constraints of the input were not kept and do not reappear.

    Args:
        document: The parsed document to serialize.

    Returns:
        ShExC format string.
    """
    pm = PrefixMap(document.prefixes)
    lines: list[str] = []

    # The declarations below are written with wdt:
    prefixes = dict(document.prefixes)
    prefixes.setdefault("wdt", "http://www.wikidata.org/prop/direct/")
    for name, iri in prefixes.items():
        lines.append(f"PREFIX {name}: <{iri}>")
    if prefixes:
        lines.append("")

    if document.base:
        lines.append(f"BASE <{document.base}>")
        lines.append("")

    if document.start:
        lines.append(f"start = @{pm.label(document.start)}")
        lines.append("")

    if len(document.properties):
        for prop in _in_source_order(document.properties):
            lines.append(_serialize_property(prop))
        lines.append("")

    for shape in document.shapes.values():
        header = pm.label(shape.label)
        if shape.extra:
            header += " EXTRA " + " ".join(pm.compact(iri) for iri in shape.extra)
        if shape.closed:
            header += " CLOSED"

        if len(shape.properties):
            lines.append(f"{header} {{")
            for prop in _in_source_order(shape.properties):
                lines.append(f"  {_serialize_property(prop)}")
            lines.append("}")
        else:
            lines.append(f"{header} {{}}")
        lines.append("")

    return "\n".join(lines)


def serialize_shex_to_file(document: ParsedDocument, filepath: str):
    """Serialize a ParsedDocument to a ShExC file."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(serialize_shex(document))
