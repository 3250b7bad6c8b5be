"""Serializers for parse results: JSON and ShExC."""
from entityshex_py.serializer.json_serializer import serialize_json
from entityshex_py.serializer.shex_serializer import serialize_shex, serialize_shex_to_file
