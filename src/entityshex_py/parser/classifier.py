"""Classify constraint expressions and decide whether a statement needs a source."""
from __future__ import annotations

import re
from typing import Mapping, Optional, Sequence

from entityshex_py.config import ParserOptions, normalize_markers
from entityshex_py.parser.tokenizer import Token, TokenType
from entityshex_py.schema.document import ValueConstraint, ValueConstraintKind
from entityshex_py.schema.prefixes import expand_prefixed_name

_OPENERS = {TokenType.LBRACKET, TokenType.LBRACE, TokenType.LPAREN}
_CLOSERS = {TokenType.RBRACKET, TokenType.RBRACE, TokenType.RPAREN}
_FACET_ARGS = {TokenType.NUMBER, TokenType.STRING, TokenType.REGEX}

# Statements pointing into the provenance or reference namespaces are citations.
_PROVENANCE = re.compile(r"\b(?:prov|pr):", re.IGNORECASE)


def _expand(tok: Token, prefixes: Mapping[str, str]) -> str:
    if tok.type is TokenType.PNAME:
        return expand_prefixed_name(tok.value, prefixes) or tok.value
    return tok.value


def _split_alternatives(tokens: Sequence[Token]) -> Optional[list[list[Token]]]:
    """Split on top-level OR. None when the expression uses AND or NOT."""
    alternatives: list[list[Token]] = [[]]
    depth = 0
    for tok in tokens:
        if tok.type in _OPENERS:
            depth += 1
        elif tok.type in _CLOSERS:
            depth -= 1
        elif depth == 0:
            if tok.type is TokenType.OR:
                alternatives.append([])
                continue
            if tok.type in (TokenType.AND, TokenType.NOT):
                return None
        alternatives[-1].append(tok)
    return alternatives


def _strip_facets(tokens: list[Token]) -> list[Token]:
    """Drop trailing string/numeric facets: xsd:string MAXLENGTH 10 -> xsd:string."""
    out = list(tokens)
    while out:
        if out[-1].type is TokenType.REGEX:
            out.pop()
        elif len(out) >= 2 and out[-2].type is TokenType.FACET and out[-1].type in _FACET_ARGS:
            del out[-2:]
        else:
            break
    return out


def _value_set(tokens: Sequence[Token], prefixes: Mapping[str, str]) -> ValueConstraint:
    values: list[str] = []
    for tok in tokens:
        if tok.type in (TokenType.PNAME, TokenType.IRIREF):
            values.append(_expand(tok, prefixes))
        elif tok.type in (TokenType.STRING, TokenType.NUMBER):
            values.append(tok.value)
        elif tok.type is TokenType.TILDE and values:
            values[-1] += "~"  # IRI stem
    return ValueConstraint(kind=ValueConstraintKind.VALUE_SET, values=tuple(values))


def _classify_alternative(
    tokens: list[Token], prefixes: Mapping[str, str]
) -> Optional[ValueConstraint]:
    tokens = _strip_facets(tokens)
    if not tokens:
        return None
    first = tokens[0]

    # Shape reference: @<Label> or @prefix:label
    if first.type is TokenType.AT:
        if len(tokens) == 2 and tokens[1].type in (TokenType.IRIREF, TokenType.PNAME):
            return ValueConstraint(kind=ValueConstraintKind.SHAPE_REFERENCE, value=tokens[1].value)
        return None

    if len(tokens) == 1:
        if first.type is TokenType.NODE_KIND:
            return ValueConstraint(kind=ValueConstraintKind.DATATYPE, value=first.value)
        if first.type in (TokenType.PNAME, TokenType.IRIREF):
            return ValueConstraint(
                kind=ValueConstraintKind.DATATYPE, value=_expand(first, prefixes)
            )
        return None

    if first.type is TokenType.LBRACKET and tokens[-1].type is TokenType.RBRACKET:
        return _value_set(tokens[1:-1], prefixes)

    return None


def classify_constraint(
    tokens: Sequence[Token], prefixes: Mapping[str, str]
) -> tuple[ValueConstraint, ...]:
    """Turn the tokens of a constraint expression into typed value constraints.

    Recognises a shape reference, a datatype (prefixed name, IRI or node-kind
    keyword), a value set, and OR-chains of those in order. Anything else
    yields an empty tuple; the raw expression is kept by the caller.
    """
    if not tokens:
        return ()
    alternatives = _split_alternatives(tokens)
    if alternatives is None:
        return ()
    result = []
    for alt in alternatives:
        vc = _classify_alternative(alt, prefixes)
        if vc is None:
            return ()
        result.append(vc)
    return tuple(result)


def requires_source(
    pid: str,
    comment: Optional[str],
    constraint: str,
    options: ParserOptions,
) -> bool:
    """Whether statements using ``pid`` should carry a reference.

    The comment marker is checked first and applies to any property; then the
    configured registry; then provenance namespaces in the constraint itself.
    """
    if comment:
        lowered = comment.lower()
        if any(marker in lowered for marker in normalize_markers(options.source_comment_markers)):
            return True
    if pid in options.requires_source_properties:
        return True
    return bool(constraint and _PROVENANCE.search(constraint))
