"""Result types of the historical ``{required, optional}`` contract."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from entityshex_py.schema.prefixes import property_url


@dataclass(frozen=True)
class LegacyProperty:
    id: str
    label: str
    schema_comment: Optional[str]
    description: str
    url: str
    requires_source: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "schemaComment": self.schema_comment,
            "description": self.description,
            "url": self.url,
            "requiresSource": self.requires_source,
        }


@dataclass(frozen=True)
class LegacyPropertyResult:
    required: tuple[LegacyProperty, ...] = ()
    optional: tuple[LegacyProperty, ...] = ()

    def to_dict(self) -> dict:
        return {
            "required": [p.to_dict() for p in self.required],
            "optional": [p.to_dict() for p in self.optional],
        }


# The mapping wizard always shows at least one required property.
INSTANCE_OF_FALLBACK = LegacyProperty(
    id="P31",
    label="instance of",
    schema_comment="instance of",
    description="that class of which this subject is a particular example",
    url=property_url("P31"),
    requires_source=False,
)


def with_instance_of_fallback(result: LegacyPropertyResult) -> LegacyPropertyResult:
    """Add the ``P31`` entry when ``result`` has no required properties."""
    if result.required:
        return result
    return LegacyPropertyResult(required=(INSTANCE_OF_FALLBACK,), optional=result.optional)
