"""Built-in Wikidata prefix table and IRI helpers.

Prefixes are rdflib ``Namespace`` objects: they compare equal to their plain
IRI strings and can mint terms, e.g. ``WDT["P31"]``.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional

from rdflib import Namespace

WD = Namespace("http://www.wikidata.org/entity/")
WDT = Namespace("http://www.wikidata.org/prop/direct/")
P = Namespace("http://www.wikidata.org/prop/")
PS = Namespace("http://www.wikidata.org/prop/statement/")
PQ = Namespace("http://www.wikidata.org/prop/qualifier/")
PR = Namespace("http://www.wikidata.org/prop/reference/")
PROV = Namespace("http://www.w3.org/ns/prov#")
XSD = Namespace("http://www.w3.org/2001/XMLSchema#")

WIKIDATA_DIRECT_PROPERTY_IRI = str(WDT)

WIKIDATA_PREFIXES: Mapping[str, Namespace] = MappingProxyType({
    "wd": WD,
    "wdt": WDT,
    "wds": Namespace("http://www.wikidata.org/entity/statement/"),
    "p": P,
    "ps": PS,
    "pq": PQ,
    "pr": PR,
    "psv": Namespace("http://www.wikidata.org/prop/statement/value/"),
    "pqv": Namespace("http://www.wikidata.org/prop/qualifier/value/"),
    "prv": Namespace("http://www.wikidata.org/prop/reference/value/"),
    "wdno": Namespace("http://www.wikidata.org/prop/novalue/"),
    "wikibase": Namespace("http://wikiba.se/ontology#"),
    "schema": Namespace("http://schema.org/"),
    "rdf": Namespace("http://www.w3.org/1999/02/22-rdf-syntax-ns#"),
    "rdfs": Namespace("http://www.w3.org/2000/01/rdf-schema#"),
    "xsd": XSD,
    "prov": PROV,
})

PROPERTY_PAGE_URL = "https://www.wikidata.org/wiki/Property:{pid}"

_PROPERTY_ID = re.compile(r"P\d+")


def property_url(pid: str) -> str:
    """Wikidata page URL for a property id such as ``P31``."""
    return PROPERTY_PAGE_URL.format(pid=pid)


def property_predicate(pid: str) -> str:
    """Direct-property predicate IRI for ``pid``."""
    return str(WDT[pid])


def is_property_id(value: str) -> bool:
    return _PROPERTY_ID.fullmatch(value) is not None


def expand_prefixed_name(name: str, prefixes: Mapping[str, str]) -> Optional[str]:
    """Expand ``prefix:local`` to a full IRI, or None if the prefix is unknown."""
    prefix, sep, local = name.partition(":")
    if not sep or prefix not in prefixes:
        return None
    return str(prefixes[prefix]) + local


def direct_property_id(iri: str) -> Optional[str]:
    """Return ``P<n>`` if ``iri`` is a Wikidata direct-property IRI."""
    if not iri.startswith(WIKIDATA_DIRECT_PROPERTY_IRI):
        return None
    local = iri[len(WIKIDATA_DIRECT_PROPERTY_IRI):]
    return local if is_property_id(local) else None
