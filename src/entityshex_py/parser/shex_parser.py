"""Parse Wikidata EntitySchema ShExC into a ParsedDocument.

Recursive-descent parser over the ShExCTokenizer token stream, for the subset
of ShExC used by Wikidata EntitySchemas: PREFIX/BASE/IMPORT, start, shape
declarations with EXTRA/CLOSED, and triple constraints whose constraint is a
datatype, node kind, shape reference, value set, inline shape or an OR/AND
chain of those, followed by a cardinality. Only ``wdt:P<n>`` predicates become
property declarations; every other triple constraint is parsed and dropped.

Graceful mode (the default) records each malformed statement as a diagnostic,
skips to the next statement and carries on. Strict mode raises the first
ShExParseError.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from entityshex_py.config import ParserOptions
from entityshex_py.parser.builder import DocumentBuilder, PropertyScope
from entityshex_py.parser.classifier import classify_constraint, requires_source
from entityshex_py.parser.errors import ShExParseError
from entityshex_py.parser.tokenizer import ShExCTokenizer, Token, TokenType
from entityshex_py.schema.common import Cardinality
from entityshex_py.schema.document import ParsedDocument, PropertyConstraint
from entityshex_py.schema.prefixes import (
    WIKIDATA_PREFIXES,
    direct_property_id,
    expand_prefixed_name,
    property_predicate,
)

T = TokenType

RDF_TYPE = str(WIKIDATA_PREFIXES["rdf"]) + "type"

_EXPR_END = {T.SEMICOLON, T.PIPE, T.RBRACE, T.RPAREN, T.EOF, T.CARDINALITY, T.ANNOTATION}
_STATEMENT_END = {T.RBRACE, T.RPAREN, T.EOF}
_ANNOTATION_OBJECTS = {T.PNAME, T.IRIREF, T.STRING, T.NUMBER}


def _describe(tok: Token) -> str:
    if tok.type is T.EOF:
        return "end of input"
    return repr(tok.value)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of :func:`try_parse_shex`: a document or the error that stopped it."""
    document: Optional[ParsedDocument] = None
    error: Optional[ShExParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ShExCParser:
    def __init__(self, text: str, options: ParserOptions):
        self.text = text
        self.options = options
        stream = ShExCTokenizer(text).tokenize()
        self.tokens = stream.tokens
        self.comments = stream.comments
        self.index = 0
        self.builder = DocumentBuilder(options.prefixes)
        if options.base_iri:
            self.builder.base = options.base_iri
        self._collect_prefixes()

    # ── cursor ────────────────────────────────────────────────────

    def peek(self, offset: int = 0) -> Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def at(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def advance(self) -> Token:
        tok = self.tokens[self.index]
        if tok.type is not T.EOF:
            self.index += 1
        return tok

    def try_consume(self, type_: TokenType) -> Optional[Token]:
        if self.peek().type is type_:
            return self.advance()
        return None

    def expect(self, type_: TokenType, what: str) -> Token:
        tok = self.peek()
        if tok.type is not type_:
            raise self._error(f"Expected {what}, got {_describe(tok)}", tok)
        return self.advance()

    # ── errors ────────────────────────────────────────────────────

    def _error(self, message: str, tok: Token) -> ShExParseError:
        return ShExParseError(message, line=tok.line, column=tok.column, source=self.text)

    def _report(self, error: ShExParseError):
        """Non-fatal problem: raise in strict mode, otherwise keep as diagnostic."""
        if self.options.strict:
            raise error
        logger.debug(f"ShEx diagnostic: {error}")
        self.builder.add_diagnostic(error)

    def _recover(self, error: ShExParseError, start: int, in_shape: bool):
        """Skip the rest of a malformed statement."""
        logger.debug(f"Skipping malformed statement: {error}")
        self.builder.add_diagnostic(error)
        error_line = error.line if error.line is not None else self.peek().line
        while True:
            tok = self.peek()
            if tok.type is T.EOF:
                break
            if tok.type is T.SEMICOLON:
                self.advance()
                break
            if tok.type is T.RBRACE and in_shape:
                break
            if tok.line > error_line and self.index > start:
                break
            self.advance()
        if self.index == start and not self.at(T.EOF) and not (in_shape and self.at(T.RBRACE)):
            self.advance()

    # ── helpers ───────────────────────────────────────────────────

    def _collect_prefixes(self):
        """Register every PREFIX declaration up front; later ones overwrite."""
        toks = self.tokens
        for i in range(len(toks) - 2):
            if (
                toks[i].type is T.PREFIX
                and toks[i + 1].type is T.PNAME
                and toks[i + 1].value.endswith(":")
                and toks[i + 2].type is T.IRIREF
            ):
                self.builder.declare_prefix(toks[i + 1].value[:-1], toks[i + 2].value.strip())

    def _resolve_iri(self, tok: Token) -> str:
        if tok.type is T.IRIREF:
            return tok.value
        iri = expand_prefixed_name(tok.value, self.builder.prefixes)
        if iri is None:
            prefix = tok.value.partition(":")[0]
            self._report(self._error(f"Unknown prefix {prefix!r}", tok))
            return tok.value
        return iri

    def _source_text(self, tokens: list[Token]) -> str:
        """Source text covered by ``tokens``; line breaks and comments become a space."""
        if not tokens:
            return ""
        parts = [self.text[tokens[0].pos:tokens[0].end]]
        for prev, tok in zip(tokens, tokens[1:]):
            gap = self.text[prev.end:tok.pos]
            parts.append(gap if "\n" not in gap and "#" not in gap else " ")
            parts.append(self.text[tok.pos:tok.end])
        return "".join(parts)

    def _trailing_comment(self, last: Token) -> Optional[str]:
        comment = self.comments.get(last.line)
        if comment is None or comment.column < last.column:
            return None
        nxt = self.peek()
        if nxt.type is not T.EOF and nxt.line == last.line:
            return None  # the comment belongs to whatever follows on this line
        return comment.text or None

    # ── statements ────────────────────────────────────────────────

    def parse(self) -> ParsedDocument:
        while not self.at(T.EOF):
            start = self.index
            try:
                self._parse_statement()
            except ShExParseError as err:
                if self.options.strict:
                    raise
                self._recover(err, start, in_shape=False)

        document = self.builder.build()
        logger.debug(
            f"Parsed {self.builder.declaration_count} Wikidata declarations, "
            f"{len(document.shapes)} shapes, {len(document.diagnostics)} diagnostics"
        )
        return document

    def _parse_statement(self):
        tok = self.peek()
        if tok.type is T.PREFIX:
            self._parse_prefix()
        elif tok.type is T.BASE:
            self.advance()
            self.builder.base = self.expect(T.IRIREF, "base IRI").value
        elif tok.type is T.IMPORT:
            self.advance()
            self.expect(T.IRIREF, "import IRI")
        elif tok.type is T.START:
            self._parse_start()
        elif tok.type in (T.IRIREF, T.PNAME) and self._starts_shape():
            self._parse_shape()
        else:
            self._parse_body_statement(self.builder.document_scope)

    def _parse_prefix(self):
        self.advance()
        name = self.expect(T.PNAME, "prefix name")
        if not name.value.endswith(":"):
            raise self._error(f"Malformed prefix name {name.value!r}", name)
        self.expect(T.IRIREF, "prefix IRI")

    def _parse_start(self):
        """start = @<Label>"""
        self.advance()
        self.expect(T.EQUALS, "'='")
        self.expect(T.AT, "'@'")
        self.builder.start = self._expect_label()

    def _expect_label(self) -> str:
        tok = self.peek()
        if tok.type not in (T.IRIREF, T.PNAME):
            raise self._error(f"Expected shape label, got {_describe(tok)}", tok)
        return self.advance().value

    def _starts_shape(self) -> bool:
        tok = self.peek()
        if tok.type is T.PNAME:
            iri = expand_prefixed_name(tok.value, self.builder.prefixes)
            if iri is not None and direct_property_id(iri) is not None:
                return False
        return self.peek(1).type in (T.LBRACE, T.EXTRA, T.CLOSED)

    def _parse_shape(self):
        """<Label> (EXTRA pred+ | CLOSED)* { triple constraints }"""
        label = self.advance().value
        closed = False
        extra: list[str] = []
        while True:
            if self.try_consume(T.EXTRA):
                while self.at(T.PNAME, T.IRIREF):
                    extra.append(self._resolve_iri(self.advance()))
                continue
            if self.try_consume(T.CLOSED):
                closed = True
                continue
            break

        open_tok = self.expect(T.LBRACE, "'{'")
        scope = self.builder.open_shape(label, closed=closed, extra=extra)

        while True:
            tok = self.peek()
            if tok.type is T.RBRACE:
                self.advance()
                return
            if tok.type is T.EOF:
                raise self._error(f"Unterminated shape {label!r}: missing '}}'", open_tok)
            start = self.index
            try:
                self._parse_body_statement(scope)
            except ShExParseError as err:
                if self.options.strict:
                    raise
                self._recover(err, start, in_shape=True)

    def _parse_body_statement(self, scope: PropertyScope):
        tok = self.peek()
        if tok.type in (T.SEMICOLON, T.PIPE, T.LPAREN):
            self.advance()
        elif tok.type is T.RPAREN:
            # close of a grouped triple expression, with its own cardinality
            self.advance()
            self.try_consume(T.CARDINALITY)
        elif tok.type in (T.PNAME, T.IRIREF, T.CARET) or (tok.type is T.NAME and tok.value == "a"):
            self._parse_triple(scope)
        elif tok.type is T.RBRACE:
            raise self._error("Unexpected '}' outside a shape", tok)
        else:
            raise self._error(f"Unexpected {_describe(tok)}", tok)

    def _parse_triple(self, scope: PropertyScope):
        """predicate constraint cardinality? annotations* ;?"""
        inverse = self.try_consume(T.CARET) is not None
        pred_tok = self.peek()
        if pred_tok.type is T.NAME and pred_tok.value == "a":
            self.advance()
            predicate = RDF_TYPE
        elif pred_tok.type in (T.PNAME, T.IRIREF):
            predicate = self._resolve_iri(self.advance())
        else:
            raise self._error(f"Expected predicate, got {_describe(pred_tok)}", pred_tok)
        pid = None if inverse else direct_property_id(predicate)

        expr_tokens = self._parse_expression()
        marker = self.try_consume(T.CARDINALITY)
        try:
            cardinality = Cardinality.from_marker(marker.value if marker else None)
        except ValueError as exc:
            raise self._error(str(exc), marker) from exc
        self._skip_annotations()

        last = self.tokens[self.index - 1]
        terminator = self.peek()
        if terminator.type in (T.SEMICOLON, T.PIPE):
            last = self.advance()
        elif terminator.type not in _STATEMENT_END:
            self._report(self._error(
                f"Expected ';' after {pred_tok.value}, got {_describe(terminator)}", terminator
            ))

        if pid is None:
            return
        comment = self._trailing_comment(last)
        constraint = self._source_text(expr_tokens)
        scope.add(PropertyConstraint(
            id=pid,
            predicate=property_predicate(pid),
            constraint=constraint,
            value_constraints=classify_constraint(expr_tokens, self.builder.prefixes),
            cardinality=cardinality,
            schema_comment=comment,
            requires_source=requires_source(pid, comment, constraint, self.options),
            constraint_source=self._source_text(expr_tokens + ([marker] if marker else [])),
            line=pred_tok.line,
        ))

    # ── constraint expressions ────────────────────────────────────

    def _parse_expression(self) -> list[Token]:
        """term ((OR | AND) term)*, possibly empty. Returns the consumed tokens."""
        start = self.index
        if self.at(*_EXPR_END):
            return []
        self._parse_term()
        while self.at(T.OR, T.AND):
            self.advance()
            self._parse_term()
        return self.tokens[start:self.index]

    def _parse_term(self):
        self.try_consume(T.NOT)
        tok = self.peek()
        if tok.type is T.AT:
            self.advance()
            ref = self.peek()
            if ref.type is T.IRIREF:
                self.advance()
            elif ref.type is T.PNAME:
                self._resolve_iri(self.advance())
            else:
                raise self._error(f"Expected shape label after '@', got {_describe(ref)}", ref)
        elif tok.type is T.PNAME:
            self._resolve_iri(self.advance())
        elif tok.type in (T.IRIREF, T.NODE_KIND, T.DOT):
            self.advance()
        elif tok.type is T.LBRACKET:
            self._parse_value_set()
        elif tok.type is T.LBRACE:
            self._skip_inline_shape()
        elif tok.type is T.LPAREN:
            self.advance()
            self._parse_expression()
            self.expect(T.RPAREN, "')'")
        elif tok.type not in (T.FACET, T.REGEX):
            raise self._error(f"Unexpected {_describe(tok)} in constraint", tok)
        self._skip_facets()

    def _skip_facets(self):
        while True:
            if self.try_consume(T.FACET):
                arg = self.peek()
                if arg.type not in (T.NUMBER, T.STRING):
                    raise self._error(f"Expected facet value, got {_describe(arg)}", arg)
                self.advance()
            elif not self.try_consume(T.REGEX):
                return

    def _parse_value_set(self):
        """[ member* ]"""
        open_tok = self.advance()
        while True:
            tok = self.peek()
            if tok.type is T.RBRACKET:
                self.advance()
                return
            if tok.type in (T.SEMICOLON, T.RBRACE, T.LBRACKET, T.EOF):
                raise self._error(
                    f"Unterminated value set opened at line {open_tok.line}, "
                    f"got {_describe(tok)}",
                    tok,
                )
            if tok.type is T.PNAME:
                self._resolve_iri(tok)
            self.advance()

    def _skip_inline_shape(self):
        """{ ... } used as a value constraint; its contents are not extracted."""
        open_tok = self.advance()
        depth = 1
        while depth:
            tok = self.peek()
            if tok.type is T.EOF:
                raise self._error("Unterminated inline shape: missing '}'", open_tok)
            if tok.type is T.LBRACE:
                depth += 1
            elif tok.type is T.RBRACE:
                depth -= 1
            self.advance()

    def _skip_annotations(self):
        """// predicate object"""
        while self.try_consume(T.ANNOTATION):
            pred = self.peek()
            if pred.type not in (T.PNAME, T.IRIREF):
                raise self._error(f"Expected annotation predicate, got {_describe(pred)}", pred)
            self.advance()
            obj = self.peek()
            if obj.type not in _ANNOTATION_OBJECTS:
                raise self._error(f"Expected annotation value, got {_describe(obj)}", obj)
            self.advance()
            if self.at(T.AT) and self.peek(1).type is T.NAME:  # "label"@en
                self.advance()
                self.advance()


def parse_shex_code(source: str, options: Optional[ParserOptions] = None) -> ParsedDocument:
    """Parse ShExC text from a Wikidata EntitySchema.

    Args:
        source: ShExC text.
        options: Parser options; defaults to graceful parsing with the
            built-in Wikidata prefixes.

    Returns:
        ParsedDocument with prefixes, shapes and document-level properties.
        Malformed input gives an empty (or partial) document, never an error,
        unless ``options.strict`` is set.

    Raises:
        ShExParseError: only in strict mode.
    """
    opts = options or ParserOptions()
    return ShExCParser(source or "", opts).parse()


def try_parse_shex(source: str, options: Optional[ParserOptions] = None) -> ParseResult:
    """Like :func:`parse_shex_code` but returns failures instead of raising."""
    try:
        return ParseResult(document=parse_shex_code(source, options))
    except ShExParseError as err:
        return ParseResult(error=err)
    except Exception as err:
        return ParseResult(error=ShExParseError(f"Failed to parse ShEx: {err}", source=source))


def parse_shex_file(filepath: str, options: Optional[ParserOptions] = None) -> ParsedDocument:
    """Parse a ShExC file from a file path."""
    with open(filepath, "r", encoding="utf-8") as f:
        return parse_shex_code(f.read(), options)
