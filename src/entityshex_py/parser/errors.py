"""Parse errors with source location."""
from __future__ import annotations

from typing import Optional


class ShExParseError(Exception):
    """Raised in strict mode; recorded as a diagnostic in graceful mode.

    ``line`` and ``column`` are 1-based. ``source`` is the full input text so
    the offending line can be shown in a schema editor.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        source: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column
        self.source = source

    def __str__(self) -> str:
        if self.line is not None and self.column is not None:
            return f"{self.message} at line {self.line}, column {self.column}"
        return self.message

    def __repr__(self) -> str:
        return f"ShExParseError({self.message!r}, line={self.line}, column={self.column})"

    def snippet(self) -> Optional[str]:
        """The offending source line followed by a caret under the column."""
        if self.source is None or self.line is None:
            return None
        lines = self.source.splitlines()
        if not 1 <= self.line <= len(lines):
            return None
        text = lines[self.line - 1]
        caret = " " * max((self.column or 1) - 1, 0) + "^"
        return f"{text}\n{caret}"
