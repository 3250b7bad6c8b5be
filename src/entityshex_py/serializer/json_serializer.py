"""Serialize parse results to a deterministic JSON string."""
from __future__ import annotations

import json
from typing import Union

from entityshex_py.schema.document import ParsedDocument
from entityshex_py.schema.legacy import LegacyPropertyResult


def serialize_json(result: Union[ParsedDocument, LegacyPropertyResult]) -> str:
    """Serialize a parsed document or legacy result to a JSON string.

    Key order follows ``to_dict``; properties keep source order.

    Args:
        result: The parse result to serialize.

    Returns:
        Pretty-printed JSON string.
    """
    return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
