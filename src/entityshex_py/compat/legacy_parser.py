"""The historical line-oriented property extractor.

Kept as-is for callers that depend on its exact output: one regex match per
``wdt:`` statement, no prefix handling, no shapes, no deduplication.
"""
from __future__ import annotations

import re
from typing import Optional

from loguru import logger

from entityshex_py.config import ParserOptions
from entityshex_py.parser.classifier import requires_source
from entityshex_py.schema.legacy import (
    LegacyProperty,
    LegacyPropertyResult,
    with_instance_of_fallback,
)
from entityshex_py.schema.prefixes import property_url

# ASCII word characters, Unicode whitespace.
_STATEMENT = re.compile(r"wdt:([A-Za-z0-9_]+)\s+([^;]+);?\s*(?:#\s*(.*))?")

# Substrings of a constraint that mark a sourced statement.
SOURCE_PATTERNS = (
    "prov:wasderivedfrom",
    "reference",
    "source",
    "citation",
    "wasderivedfrom",
    "pr:",
    "prov:",
    "stated in",
    "retrieved",
)


def detect_source_requirement(constraint: Optional[str]) -> bool:
    if not constraint:
        return False
    lowered = constraint.lower()
    return any(pattern in lowered for pattern in SOURCE_PATTERNS)


def _is_optional(constraint: str) -> bool:
    return "?" in constraint or "*" in constraint


def parse_shex_properties_legacy(
    shex_code: Optional[str], options: Optional[ParserOptions] = None
) -> LegacyPropertyResult:
    """Extract ``{required, optional}`` properties with the historical regex.

    A constraint containing ``?`` or ``*`` anywhere is optional. When nothing
    required is found the ``P31`` (instance of) entry is supplied.
    """
    opts = options or ParserOptions()
    required: list[LegacyProperty] = []
    optional: list[LegacyProperty] = []

    for m in _STATEMENT.finditer(shex_code or ""):
        pid = m.group(1)
        constraint = m.group(2).strip()
        comment = (m.group(3) or "").strip()
        prop = LegacyProperty(
            id=pid,
            label=comment or pid,
            schema_comment=comment or None,
            description=f"Constraint: {constraint}",
            url=property_url(pid),
            requires_source=(
                detect_source_requirement(constraint)
                or requires_source(pid, comment, constraint, opts)
            ),
        )
        if _is_optional(constraint):
            optional.append(prop)
        else:
            required.append(prop)

    logger.debug(f"Legacy parser found {len(required)} required, {len(optional)} optional")
    return with_instance_of_fallback(
        LegacyPropertyResult(required=tuple(required), optional=tuple(optional))
    )
