"""Tests for the ShExC parser."""
import os

import pytest

from entityshex_py import (
    WIKIDATA_PREFIXES,
    ParsedDocument,
    ParserOptions,
    ShExParseError,
    parse_shex_code,
    parse_shex_file,
    try_parse_shex,
)

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

E473_PATTERN = """
    wdt:P31 @<Q3331189> OR @<Q13442814> ; # instance of: edition, translation
    wdt:P407 @<Q34770>* ; # language of work or name
    wdt:P50 @<Q5>* ; # author
    wdt:P123 @<Q1512977> ; # publisher: Maastricht University Library
    wdt:P577 xsd:dateTime OR xsd:date OR xsd:gYearMonth OR xsd:gYear? ; # publication date
    wdt:P1476 rdf:langString+ ; # title
"""


# ── Property declarations ─────────────────────────────────────────


class TestDeclarations:
    """Document-level wdt: declarations."""

    def test_instance_of(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ; # instance of")
        assert len(doc.properties.required) == 1
        assert len(doc.properties.optional) == 0
        prop = doc.properties.required[0]
        assert prop.id == "P31"
        assert prop.schema_comment == "instance of"
        assert prop.predicate == "http://www.wikidata.org/prop/direct/P31"
        assert prop.constraint == "@<Q5>"
        assert prop.requires_source is False
        assert prop.line == 1

    def test_optional_property(self):
        doc = parse_shex_code("wdt:P123 xsd:string? ; # optional title")
        assert doc.properties.required == ()
        prop = doc.properties.optional[0]
        assert prop.id == "P123"
        assert prop.schema_comment == "optional title"
        assert prop.cardinality.to_dict() == {"min": 0, "max": 1}
        assert prop.constraint == "xsd:string"
        assert prop.constraint_source == "xsd:string?"

    def test_star_and_plus(self):
        doc = parse_shex_code("wdt:P106 @<Q28640>* ;\nwdt:P735 @<Q202444>+ ;")
        assert doc.properties.optional[0].cardinality.to_dict() == {"min": 0, "max": -1}
        assert doc.properties.required[0].cardinality.to_dict() == {"min": 1, "max": -1}

    def test_explicit_range(self):
        doc = parse_shex_code("wdt:P50 @<Q5>{1,3} ;")
        assert doc.properties.required[0].cardinality.to_dict() == {"min": 1, "max": 3}

    def test_mixed_required_and_optional(self):
        doc = parse_shex_code("""
            wdt:P31 @<Q5> ; # required
            wdt:P21 @<Q6581097>? ; # optional
            wdt:P19 @<Q515>? ;
            wdt:P735 @<Q202444>+ ;
        """)
        assert doc.properties.ids() == ["P31", "P735", "P21", "P19"]
        assert len(doc.properties.required) == 2
        assert len(doc.properties.optional) == 2

    def test_non_breaking_space(self):
        doc = parse_shex_code("wdt:P31\xa0@<Q5> ; # instance of\nwdt:P21 @<Q6> ;")
        assert doc.properties.ids() == ["P31", "P21"]
        assert doc.properties.find("P31").constraint == "@<Q5>"
        assert doc.properties.find("P31").schema_comment == "instance of"
        assert doc.diagnostics == ()

    def test_source_order_is_preserved(self):
        doc = parse_shex_code("wdt:P50 . ;\nwdt:P31 . ;\nwdt:P1476 . ;")
        assert doc.properties.ids() == ["P50", "P31", "P1476"]

    def test_or_constraint(self):
        doc = parse_shex_code("wdt:P580 xsd:dateTime OR xsd:date OR xsd:gYearMonth OR xsd:gYear ;")
        prop = doc.properties.required[0]
        assert prop.id == "P580"
        assert "xsd:dateTime" in prop.constraint
        assert len(prop.value_constraints) == 4

    def test_multiline_constraint_is_collapsed(self):
        doc = parse_shex_code("wdt:P31 @<A>\n   OR @<B> ;")
        assert doc.properties.required[0].constraint == "@<A> OR @<B>"

    def test_last_declaration_without_semicolon(self):
        doc = parse_shex_code("wdt:P31 @<Q5>")
        assert doc.properties.ids() == ["P31"]
        assert doc.diagnostics == ()

    def test_e473_pattern(self):
        doc = parse_shex_code(E473_PATTERN)
        title = doc.properties.find("P1476")
        assert title in doc.properties.required
        assert title.cardinality.to_dict() == {"min": 1, "max": -1}
        pub_date = doc.properties.find("P577")
        assert pub_date in doc.properties.optional
        assert doc.properties.find("P31").schema_comment == "instance of: edition, translation"
        assert doc.properties.ids() == ["P31", "P123", "P1476", "P407", "P50", "P577"]

    def test_full_iri_predicate(self):
        doc = parse_shex_code("<http://www.wikidata.org/prop/direct/P569> xsd:dateTime ;")
        assert doc.properties.ids() == ["P569"]

    def test_aliased_direct_namespace(self):
        doc = parse_shex_code(
            "PREFIX direct: <http://www.wikidata.org/prop/direct/>\ndirect:P31 @<Q5> ;"
        )
        assert doc.properties.ids() == ["P31"]
        assert doc.properties.required[0].predicate.endswith("/P31")

    def test_other_predicates_are_excluded(self):
        doc = parse_shex_code("""
            wdt:P31 @<Q5> ;
            p:P39 { ps:P39 @<Q1> } ;
            rdfs:label rdf:langString + ;
            a [wd:Q5] ;
            ^wdt:P50 @<book> * ;
        """)
        assert doc.properties.ids() == ["P31"]

    def test_inline_shape_constraint(self):
        doc = parse_shex_code("wdt:P31 { ps:P31 [wd:Q5] } ;")
        prop = doc.properties.required[0]
        assert prop.constraint == "{ ps:P31 [wd:Q5] }"
        assert prop.value_constraints == ()

    def test_annotations_are_skipped(self):
        doc = parse_shex_code('wdt:P31 @<Q5> // rdfs:comment "instance"@en ; # instance of')
        prop = doc.properties.required[0]
        assert prop.constraint == "@<Q5>"
        assert prop.schema_comment == "instance of"
        assert doc.diagnostics == ()

    def test_grouped_expression(self):
        doc = parse_shex_code("<S> {\n  ( wdt:P31 @<Q5> ; wdt:P279 @<Q6> ) ;\n}")
        assert doc.shapes["S"].properties.ids() == ["P31", "P279"]
        assert doc.diagnostics == ()


# ── Comments ──────────────────────────────────────────────────────


class TestComments:
    """Trailing comments become schema comments."""

    def test_no_comment(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ;")
        assert doc.properties.required[0].schema_comment is None

    def test_comment_with_punctuation(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ; # instance of (taxonomic class)")
        assert doc.properties.required[0].schema_comment == "instance of (taxonomic class)"

    def test_empty_comment(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ; #")
        assert doc.properties.required[0].schema_comment is None

    def test_comment_belongs_to_last_declaration_on_line(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ; wdt:P21 @<Q6> ; # sex or gender")
        assert doc.properties.find("P31").schema_comment is None
        assert doc.properties.find("P21").schema_comment == "sex or gender"

    def test_comment_on_own_line_is_ignored(self):
        doc = parse_shex_code("# instance of\nwdt:P31 @<Q5> ;")
        assert doc.properties.required[0].schema_comment is None


# ── Deduplication ─────────────────────────────────────────────────


class TestDeduplication:
    """First declaration of a property in a scope wins."""

    def test_first_occurrence_wins(self):
        doc = parse_shex_code("wdt:P31 @<Q5> ;\nwdt:P31 @<Q6> ;")
        assert doc.properties.ids() == ["P31"]
        assert doc.properties.required[0].constraint == "@<Q5>"

    def test_first_occurrence_wins_across_cardinality(self):
        doc = parse_shex_code("wdt:P31 @<Q5>? ;\nwdt:P31 @<Q6> ;")
        assert doc.properties.required == ()
        assert doc.properties.optional[0].constraint == "@<Q5>"


# ── Prefixes ──────────────────────────────────────────────────────


class TestPrefixes:

    def test_declared_prefix(self):
        doc = parse_shex_code("""
            PREFIX ex: <http://example.org/>
            wdt:P31 @<Q5> ;
            ex:customProp xsd:string ;
        """)
        assert doc.prefixes["ex"] == "http://example.org/"
        assert doc.prefixes["wd"] == "http://www.wikidata.org/entity/"
        assert doc.properties.ids() == ["P31"]

    def test_builtin_prefixes(self):
        doc = parse_shex_code("")
        for name, iri in WIKIDATA_PREFIXES.items():
            assert doc.prefixes[name] == iri

    def test_later_declaration_overwrites(self):
        doc = parse_shex_code("PREFIX ex: <http://a/>\nPREFIX ex: <http://b/>")
        assert doc.prefixes["ex"] == "http://b/"

    def test_prefix_declared_after_use(self):
        doc = parse_shex_code("d:P31 @<Q5> ;\nPREFIX d: <http://www.wikidata.org/prop/direct/>")
        assert doc.properties.ids() == ["P31"]

    def test_prefix_values_are_plain_strings(self):
        doc = parse_shex_code("PREFIX ex: <http://example.org/>")
        assert all(type(iri) is str for iri in doc.prefixes.values())

    def test_extra_prefixes_from_options(self):
        options = ParserOptions().with_prefixes({"ex": "http://example.org/"})
        doc = parse_shex_code("wdt:P31 ex:Thing ;", options)
        assert doc.properties.required[0].value_constraints[0].value == "http://example.org/Thing"

    def test_wikidata_prefix_table(self):
        assert WIKIDATA_PREFIXES["wd"] == "http://www.wikidata.org/entity/"
        assert WIKIDATA_PREFIXES["wdt"] == "http://www.wikidata.org/prop/direct/"
        assert WIKIDATA_PREFIXES["p"] == "http://www.wikidata.org/prop/"
        assert WIKIDATA_PREFIXES["ps"] == "http://www.wikidata.org/prop/statement/"
        assert WIKIDATA_PREFIXES["prov"] == "http://www.w3.org/ns/prov#"
        assert WIKIDATA_PREFIXES["xsd"] == "http://www.w3.org/2001/XMLSchema#"


# ── Document structure ────────────────────────────────────────────


class TestDocument:

    def test_start_and_base(self):
        doc = parse_shex_code(
            "BASE <http://example.org/>\nstart = @<human>\n<human> { wdt:P31 @<Q5> }"
        )
        assert doc.start == "human"
        assert doc.base == "http://example.org/"

    def test_empty_input(self):
        for text in ("", None, "   \n", "# only a comment\n# and another"):
            doc = parse_shex_code(text)
            assert doc.is_empty
            assert doc.diagnostics == ()

    def test_empty_document_factory(self):
        doc = ParsedDocument.empty(WIKIDATA_PREFIXES)
        assert doc.is_empty
        assert doc.prefixes["wdt"] == "http://www.wikidata.org/prop/direct/"
        assert type(doc.prefixes["wdt"]) is str

    def test_deterministic(self):
        with open(os.path.join(DATA_DIR, "human.shex"), encoding="utf-8") as f:
            text = f.read()
        assert parse_shex_code(text).to_dict() == parse_shex_code(text).to_dict()
        assert parse_shex_code(text) == parse_shex_code(text)

    def test_to_dict(self):
        d = parse_shex_code("start = @<S>\nwdt:P31 @<Q5> ; # instance of").to_dict()
        assert d["start"] == "S"
        assert "base" not in d
        prop = d["properties"]["required"][0]
        assert prop == {
            "id": "P31",
            "predicate": "http://www.wikidata.org/prop/direct/P31",
            "constraint": "@<Q5>",
            "valueConstraints": [{"type": "shape-reference", "value": "Q5"}],
            "cardinality": {"min": 1, "max": 1},
            "schemaComment": "instance of",
            "requiresSource": False,
        }

    def test_parse_file(self):
        doc = parse_shex_file(os.path.join(DATA_DIR, "written_work.shex"))
        assert doc.properties.ids() == ["P31", "P1476", "P50", "P577", "P407", "P248"]
        assert doc.properties.find("P248").requires_source is True
        assert doc.properties.find("P407").schema_comment == "language of work or name"


# ── Graceful parsing ──────────────────────────────────────────────


class TestGraceful:
    """Malformed input degrades instead of raising."""

    def test_garbage_gives_empty_document(self):
        doc = parse_shex_code("invalid shex code !!!")
        assert doc.properties.required == ()
        assert doc.properties.optional == ()
        assert len(doc.diagnostics) >= 1

    def test_malformed_statement_is_skipped(self):
        doc = parse_shex_file(os.path.join(DATA_DIR, "broken.shex"))
        assert doc.properties.ids() == ["P31", "P569"]
        assert doc.properties.find("P569").schema_comment == "date of birth"
        assert len(doc.diagnostics) == 1
        assert doc.diagnostics[0].line == 4

    def test_missing_semicolon_between_lines(self):
        doc = parse_shex_code("wdt:P31 @<Q5>  # instance of\nwdt:P21 @<Q6> ;")
        assert doc.properties.ids() == ["P31", "P21"]
        assert doc.properties.find("P31").schema_comment == "instance of"
        assert len(doc.diagnostics) == 1

    def test_unknown_prefix_is_recorded(self):
        doc = parse_shex_code("foo:bar xsd:string ;\nwdt:P31 @<Q5> ;")
        assert doc.properties.ids() == ["P31"]
        assert "foo" in doc.diagnostics[0].message

    def test_recovery_inside_shape(self):
        doc = parse_shex_code("<S> {\n  wdt:P31 ! ;\n  wdt:P21 @<Q6> ;\n}\nwdt:P18 . ;")
        assert doc.shapes["S"].properties.ids() == ["P21"]
        assert doc.properties.ids() == ["P18"]

    def test_unterminated_shape_keeps_declarations(self):
        doc = parse_shex_code("<S> {\n  wdt:P31 @<Q5> ;\n")
        assert doc.shapes["S"].properties.ids() == ["P31"]
        assert "Unterminated shape" in doc.diagnostics[-1].message

    def test_stray_closing_brace(self):
        doc = parse_shex_code("}\nwdt:P31 @<Q5> ;")
        assert doc.properties.ids() == ["P31"]
        assert len(doc.diagnostics) == 1

    def test_diagnostics_do_not_affect_equality(self):
        assert parse_shex_code("wdt:P31 @<Q5> ;") == parse_shex_code("wdt:P31 @<Q5> ; !")

    def test_non_ascii_digits(self):
        for text in ("invalid ² code", "³"):
            doc = parse_shex_code(text)
            assert doc.properties.ids() == []
            assert len(doc.diagnostics) >= 1
        doc = parse_shex_code("wdt:P31 @<Q5> ; # ok\nwdt:P21 ① ;")
        assert doc.properties.ids() == ["P31"]
        assert len(doc.diagnostics) >= 1


# ── Strict parsing ────────────────────────────────────────────────


class TestStrict:
    """Strict mode raises the first error with its location."""

    STRICT = ParserOptions(strict=True)

    def test_garbage(self):
        with pytest.raises(ShExParseError) as exc_info:
            parse_shex_code("invalid shex code !!!", self.STRICT)
        assert (exc_info.value.line, exc_info.value.column) == (1, 1)

    def test_unterminated_value_set(self):
        with pytest.raises(ShExParseError) as exc_info:
            parse_shex_file(os.path.join(DATA_DIR, "broken.shex"), self.STRICT)
        err = exc_info.value
        assert (err.line, err.column) == (4, 22)
        assert "value set" in err.message

    def test_missing_semicolon(self):
        with pytest.raises(ShExParseError) as exc_info:
            parse_shex_code("wdt:P31 @<Q5>\nwdt:P21 @<Q6> ;", self.STRICT)
        assert (exc_info.value.line, exc_info.value.column) == (2, 1)

    def test_unknown_prefix(self):
        with pytest.raises(ShExParseError, match="Unknown prefix 'foo'"):
            parse_shex_code("wdt:P31 foo:Bar ;", self.STRICT)

    def test_unterminated_shape_points_at_brace(self):
        with pytest.raises(ShExParseError) as exc_info:
            parse_shex_code("<S> {\n  wdt:P31 @<Q5> ;\n", self.STRICT)
        assert (exc_info.value.line, exc_info.value.column) == (1, 5)

    def test_non_ascii_digit(self):
        with pytest.raises(ShExParseError) as exc_info:
            parse_shex_code("wdt:P31 ² ;", self.STRICT)
        assert (exc_info.value.line, exc_info.value.column) == (1, 9)

    def test_invalid_cardinality(self):
        with pytest.raises(ShExParseError, match="lower than min"):
            parse_shex_code("wdt:P31 @<Q5>{3,1} ;", self.STRICT)

    def test_valid_schemas_parse_strictly(self):
        for name in ("human.shex", "written_work.shex"):
            parse_shex_file(os.path.join(DATA_DIR, name), self.STRICT)
        parse_shex_code(E473_PATTERN, self.STRICT)

    def test_error_has_source(self):
        result = try_parse_shex("wdt:P31 @<Q5> ;\n!", self.STRICT)
        assert not result.ok
        assert result.document is None
        assert result.error.source == "wdt:P31 @<Q5> ;\n!"
        assert result.error.line == 2

    def test_try_parse_success(self):
        result = try_parse_shex("wdt:P31 @<Q5> ;", self.STRICT)
        assert result.ok
        assert result.document.properties.ids() == ["P31"]
