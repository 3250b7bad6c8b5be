"""Backward-compatible ``{required, optional}`` entry point.

Three strategies, selected by :class:`LegacyParseOptions`:

* ``LEGACY``: the historical regex extractor, untouched.
* ``NEW_WITH_FALLBACK``: the ShExC parser (strict unless ``strict_mode`` is
  off), reshaped to the legacy result; any failure is logged and the legacy
  result returned.
* ``NEW_STRICT``: as above but the failure is raised to the caller.
"""
from __future__ import annotations

from dataclasses import asdict, replace
from typing import Any, Mapping, Optional, Union

from loguru import logger

from entityshex_py.compat.legacy_parser import parse_shex_properties_legacy
from entityshex_py.config import LegacyParseOptions, ParserOptions, ParseStrategy
from entityshex_py.parser.shex_parser import try_parse_shex
from entityshex_py.schema.document import ParsedDocument, PropertyConstraint
from entityshex_py.schema.legacy import (
    LegacyProperty,
    LegacyPropertyResult,
    with_instance_of_fallback,
)
from entityshex_py.schema.prefixes import property_url


def _to_legacy(prop: PropertyConstraint) -> LegacyProperty:
    return LegacyProperty(
        id=prop.id,
        label=prop.schema_comment or prop.id,
        schema_comment=prop.schema_comment,
        description=f"Constraint: {prop.constraint_source}",
        url=property_url(prop.id),
        requires_source=prop.requires_source,
    )


def convert_document_to_legacy(document: ParsedDocument) -> LegacyPropertyResult:
    """Reshape the document-level properties; shape contents are not included."""
    result = LegacyPropertyResult(
        required=tuple(_to_legacy(p) for p in document.properties.required),
        optional=tuple(_to_legacy(p) for p in document.properties.optional),
    )
    return with_instance_of_fallback(result)


def _resolve_options(
    options: Union[LegacyParseOptions, Mapping[str, Any], None],
    overrides: Mapping[str, Any],
) -> LegacyParseOptions:
    if isinstance(options, LegacyParseOptions):
        merged: dict[str, Any] = asdict(options)
    else:
        merged = dict(options or {})
    merged.update(overrides)
    return LegacyParseOptions.from_mapping(merged)


def parse_shex_properties(
    shex_code: Optional[str],
    options: Union[LegacyParseOptions, Mapping[str, Any], None] = None,
    parser_options: Optional[ParserOptions] = None,
    **kwargs: Any,
) -> LegacyPropertyResult:
    """Parse ShExC into the legacy ``{required, optional}`` result.

    Args:
        shex_code: ShExC text; None is treated as empty.
        options: LegacyParseOptions or a mapping with ``use_new_parser`` /
            ``enable_fallback`` / ``strict_mode`` (camelCase accepted).
            Keyword arguments override it. ``strict_mode`` defaults to True
            so that malformed input triggers the fallback.
        parser_options: Prefixes and requires-source settings; its
            ``strict`` flag is replaced by ``strict_mode``.

    Raises:
        ShExParseError: only with ``use_new_parser=True, enable_fallback=False``.
    """
    opts = _resolve_options(options, kwargs)
    strategy = opts.strategy
    base = parser_options or ParserOptions()

    if strategy is ParseStrategy.LEGACY:
        return parse_shex_properties_legacy(shex_code, base)

    outcome = try_parse_shex(shex_code or "", replace(base, strict=opts.strict_mode))
    if outcome.ok:
        return convert_document_to_legacy(outcome.document)

    logger.warning(f"New ShEx parser failed: {outcome.error}")
    if strategy is ParseStrategy.NEW_STRICT:
        raise outcome.error
    logger.info("Falling back to legacy parser")
    return parse_shex_properties_legacy(shex_code, base)
