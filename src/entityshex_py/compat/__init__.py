"""Compatibility layer for the historical ``{required, optional}`` contract."""
from entityshex_py.compat.adapter import convert_document_to_legacy, parse_shex_properties
from entityshex_py.compat.legacy_parser import parse_shex_properties_legacy
