"""Tokenizer for the Wikidata subset of ShExC.

Single left-to-right pass using anchored patterns, so tokenizing is linear in
the input size. Never raises: characters it cannot place become UNKNOWN
tokens and the parser decides what to do with them. ``#`` comments are kept
out of the token stream and returned per line, since the parser only needs
them as trailing annotations of declarations.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional


class TokenType(Enum):
    # Keywords
    PREFIX = auto()
    BASE = auto()
    IMPORT = auto()
    START = auto()
    EXTRA = auto()
    CLOSED = auto()
    OR = auto()
    AND = auto()
    NOT = auto()
    NODE_KIND = auto()  # IRI, LITERAL, BNODE, NONLITERAL
    FACET = auto()  # MINLENGTH, MAXINCLUSIVE, ...

    # Terms
    IRIREF = auto()  # <...>, value without brackets
    PNAME = auto()  # prefix:local
    STRING = auto()
    REGEX = auto()
    NUMBER = auto()
    NAME = auto()  # any other bare word, e.g. "a", "true"
    CARDINALITY = auto()  # ? * + {m,n}

    # Punctuation
    AT = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    SEMICOLON = auto()
    PIPE = auto()
    DOT = auto()
    EQUALS = auto()
    CARET = auto()
    TILDE = auto()
    MINUS = auto()
    ANNOTATION = auto()  # //

    UNKNOWN = auto()
    EOF = auto()


KEYWORDS = {
    "PREFIX": TokenType.PREFIX,
    "BASE": TokenType.BASE,
    "IMPORT": TokenType.IMPORT,
    "START": TokenType.START,
    "EXTRA": TokenType.EXTRA,
    "CLOSED": TokenType.CLOSED,
    "OR": TokenType.OR,
    "AND": TokenType.AND,
    "NOT": TokenType.NOT,
    "IRI": TokenType.NODE_KIND,
    "LITERAL": TokenType.NODE_KIND,
    "BNODE": TokenType.NODE_KIND,
    "NONLITERAL": TokenType.NODE_KIND,
    "LENGTH": TokenType.FACET,
    "MINLENGTH": TokenType.FACET,
    "MAXLENGTH": TokenType.FACET,
    "MININCLUSIVE": TokenType.FACET,
    "MINEXCLUSIVE": TokenType.FACET,
    "MAXINCLUSIVE": TokenType.FACET,
    "MAXEXCLUSIVE": TokenType.FACET,
    "TOTALDIGITS": TokenType.FACET,
    "FRACTIONDIGITS": TokenType.FACET,
}

PUNCTUATION = {
    "@": TokenType.AT,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ";": TokenType.SEMICOLON,
    "|": TokenType.PIPE,
    ".": TokenType.DOT,
    "=": TokenType.EQUALS,
    "^": TokenType.CARET,
    "~": TokenType.TILDE,
    "-": TokenType.MINUS,
}

_WHITESPACE = re.compile(r"\s+")
_COMMENT = re.compile(r"#[^\n]*")
_IRIREF = re.compile(r'<([^<>"{}|^`\\\x00-\x20]*)>')
# PN_LOCAL may contain dots but not end with one.
_PNAME = re.compile(r"(?:[A-Za-z][\w-]*(?:\.[\w-]+)*)?:(?:[\w-]*(?:\.[\w-]+)*)")
_WORD = re.compile(r"[A-Za-z_][\w-]*")
_BRACE_CARDINALITY = re.compile(r"\{[ \t]*[0-9]+[ \t]*(?:,[ \t]*(?:[0-9]+|\*)?[ \t]*)?\}")
_STRING = re.compile(r'"(?:[^"\\\n]|\\.)*"' r"|'(?:[^'\\\n]|\\.)*'")
_REGEX = re.compile(r"/(?:[^/\\\n]|\\.)+/[smix]*")
_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str
    line: int
    column: int
    pos: int  # offset of the first character in the source
    end: int  # offset just past the last character

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


@dataclass(frozen=True)
class Comment:
    text: str
    line: int
    column: int


@dataclass
class TokenStream:
    tokens: list[Token]
    comments: dict[int, Comment] = field(default_factory=dict)

    def comment_on(self, line: int) -> Optional[Comment]:
        return self.comments.get(line)


class ShExCTokenizer:
    """Tokenizer for ShExC schema text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.line = 1
        self.line_start = 0
        self.tokens: list[Token] = []
        self.comments: dict[int, Comment] = {}

    def tokenize(self) -> TokenStream:
        """Tokenize the entire input."""
        text = self.text
        while True:
            self._skip_ws_and_comments()
            if self.pos >= len(text):
                break
            self._tokenize_one()
        self._emit(TokenType.EOF, "", self.pos, self.pos)
        return TokenStream(tokens=self.tokens, comments=self.comments)

    def _skip_ws_and_comments(self):
        text = self.text
        while self.pos < len(text):
            m = _WHITESPACE.match(text, self.pos)
            if m:
                newlines = text.count("\n", m.start(), m.end())
                if newlines:
                    self.line += newlines
                    self.line_start = text.rindex("\n", m.start(), m.end()) + 1
                self.pos = m.end()
                continue
            if text[self.pos] == "#":
                m = _COMMENT.match(text, self.pos)
                self.comments.setdefault(
                    self.line,
                    Comment(
                        text=m.group(0)[1:].strip(),
                        line=self.line,
                        column=self.pos - self.line_start + 1,
                    ),
                )
                self.pos = m.end()
                continue
            break

    def _emit(self, type_: TokenType, value: str, start: int, end: int):
        self.tokens.append(Token(
            type=type_,
            value=value,
            line=self.line,
            column=start - self.line_start + 1,
            pos=start,
            end=end,
        ))
        self.pos = end

    def _tokenize_one(self):
        text, pos = self.text, self.pos
        c = text[pos]

        if c == "<":
            m = _IRIREF.match(text, pos)
            if m:
                self._emit(TokenType.IRIREF, m.group(1), pos, m.end())
            else:
                self._emit(TokenType.UNKNOWN, c, pos, pos + 1)
            return

        if c == "{":
            m = _BRACE_CARDINALITY.match(text, pos)
            if m:
                self._emit(TokenType.CARDINALITY, m.group(0), pos, m.end())
            else:
                self._emit(TokenType.LBRACE, c, pos, pos + 1)
            return

        if c in "?*+":
            self._emit(TokenType.CARDINALITY, c, pos, pos + 1)
            return

        if c in "\"'":
            m = _STRING.match(text, pos)
            if m:
                self._emit(TokenType.STRING, m.group(0)[1:-1], pos, m.end())
            else:
                self._emit(TokenType.UNKNOWN, c, pos, pos + 1)
            return

        if c == "/":
            if text.startswith("//", pos):
                self._emit(TokenType.ANNOTATION, "//", pos, pos + 2)
                return
            m = _REGEX.match(text, pos)
            if m:
                self._emit(TokenType.REGEX, m.group(0), pos, m.end())
            else:
                self._emit(TokenType.UNKNOWN, c, pos, pos + 1)
            return

        if "0" <= c <= "9":
            m = _NUMBER.match(text, pos)
            self._emit(TokenType.NUMBER, m.group(0), pos, m.end())
            return

        if c.isalpha() or c == ":" or c == "_":
            m = _PNAME.match(text, pos)
            if m:
                self._emit(TokenType.PNAME, m.group(0), pos, m.end())
                return
            m = _WORD.match(text, pos)
            if m:
                word = m.group(0)
                kw = KEYWORDS.get(word.upper())
                if kw is not None:
                    self._emit(kw, word.upper(), pos, m.end())
                else:
                    self._emit(TokenType.NAME, word, pos, m.end())
                return

        punct = PUNCTUATION.get(c)
        if punct is not None:
            self._emit(punct, c, pos, pos + 1)
            return

        self._emit(TokenType.UNKNOWN, c, pos, pos + 1)


def tokenize(text: str) -> TokenStream:
    return ShExCTokenizer(text).tokenize()
