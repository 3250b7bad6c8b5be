"""entityshex-py: property requirements from Wikidata EntitySchemas.

Parses the ShExC text of a Wikidata EntitySchema into prefixes, shapes and
``wdt:`` property declarations, and offers the historical
``{required, optional}`` property list on top of it.
"""
__version__ = "0.1.0"

from loguru import logger

from entityshex_py.schema.common import UNBOUNDED, Cardinality
from entityshex_py.schema.document import (
    ParsedDocument,
    PropertyConstraint,
    PropertySet,
    ShapeDefinition,
    ValueConstraint,
    ValueConstraintKind,
)
from entityshex_py.schema.legacy import INSTANCE_OF_FALLBACK, LegacyProperty, LegacyPropertyResult
from entityshex_py.schema.prefixes import WIKIDATA_PREFIXES, property_url

from entityshex_py.config import LegacyParseOptions, ParserOptions, ParseStrategy

from entityshex_py.parser.errors import ShExParseError
from entityshex_py.parser.shex_parser import (
    ParseResult,
    parse_shex_code,
    parse_shex_file,
    try_parse_shex,
)

from entityshex_py.compat.adapter import convert_document_to_legacy, parse_shex_properties
from entityshex_py.compat.legacy_parser import parse_shex_properties_legacy

from entityshex_py.serializer.json_serializer import serialize_json
from entityshex_py.serializer.shex_serializer import serialize_shex

# Library code stays quiet unless the application enables it.
logger.disable("entityshex_py")

__all__ = [
    # Schema
    "UNBOUNDED", "Cardinality",
    "ParsedDocument", "PropertyConstraint", "PropertySet", "ShapeDefinition",
    "ValueConstraint", "ValueConstraintKind",
    "INSTANCE_OF_FALLBACK", "LegacyProperty", "LegacyPropertyResult",
    "WIKIDATA_PREFIXES", "property_url",
    # Configuration
    "LegacyParseOptions", "ParserOptions", "ParseStrategy",
    # Parsers
    "ShExParseError", "ParseResult",
    "parse_shex_code", "parse_shex_file", "try_parse_shex",
    # Legacy contract
    "parse_shex_properties", "parse_shex_properties_legacy", "convert_document_to_legacy",
    # Serializers
    "serialize_json", "serialize_shex",
]
