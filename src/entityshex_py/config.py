"""Parser configuration.

The requires-source registry is data, not parsing logic: the defaults below
are the reference properties known to the mapping wizard and callers extend
them with :meth:`ParserOptions.with_requires_source`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from entityshex_py.schema.prefixes import WIKIDATA_PREFIXES

DEFAULT_REQUIRES_SOURCE_PROPERTIES = frozenset({
    "P248",  # stated in
    "P854",  # reference URL
    "P813",  # retrieved
})

DEFAULT_SOURCE_COMMENT_MARKERS = (
    "requires source",
    "requires a source",
    "source required",
    "requires reference",
    "reference required",
    "needs source",
)


@dataclass(frozen=True)
class ParserOptions:
    strict: bool = False
    prefixes: Mapping[str, str] = field(default_factory=lambda: WIKIDATA_PREFIXES)
    requires_source_properties: frozenset = DEFAULT_REQUIRES_SOURCE_PROPERTIES
    source_comment_markers: tuple[str, ...] = DEFAULT_SOURCE_COMMENT_MARKERS
    base_iri: str = ""

    def with_requires_source(self, *pids: str) -> ParserOptions:
        return replace(
            self,
            requires_source_properties=self.requires_source_properties | frozenset(pids),
        )

    def with_prefixes(self, prefixes: Mapping[str, str]) -> ParserOptions:
        return replace(self, prefixes={**self.prefixes, **prefixes})


class ParseStrategy(Enum):
    LEGACY = "legacy"
    NEW_WITH_FALLBACK = "new-with-fallback"
    NEW_STRICT = "new-strict"


_OPTION_ALIASES = {
    "use_new_parser": "use_new_parser",
    "useNewParser": "use_new_parser",
    "enable_fallback": "enable_fallback",
    "enableFallback": "enable_fallback",
    "strict_mode": "strict_mode",
    "strictMode": "strict_mode",
}


@dataclass(frozen=True)
class LegacyParseOptions:
    use_new_parser: bool = False
    enable_fallback: bool = True
    # Strictness of the new parser. When off, malformed statements are skipped
    # and only unexpected failures reach the fallback.
    strict_mode: bool = True

    @classmethod
    def from_mapping(cls, options: Optional[Mapping[str, Any]] = None) -> LegacyParseOptions:
        """Build options from snake_case or camelCase keys; unknown keys are ignored."""
        kwargs = {}
        for key, value in (options or {}).items():
            name = _OPTION_ALIASES.get(key)
            if name is not None and value is not None:
                kwargs[name] = bool(value)
        return cls(**kwargs)

    @property
    def strategy(self) -> ParseStrategy:
        if not self.use_new_parser:
            return ParseStrategy.LEGACY
        if self.enable_fallback:
            return ParseStrategy.NEW_WITH_FALLBACK
        return ParseStrategy.NEW_STRICT


def normalize_markers(markers: Iterable[str]) -> tuple[str, ...]:
    return tuple(m.lower() for m in markers)
