"""Result models for parsed Wikidata EntitySchemas."""
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
