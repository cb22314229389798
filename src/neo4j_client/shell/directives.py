"""Split shell input into directives: `;`-terminated queries and `:` commands."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum


class DirectiveKind(str, Enum):
    """Directive category."""

    QUERY = "query"
    COMMAND = "command"


@dataclass(slots=True)
class Directive:
    """One unit of input and the line it started on."""

    kind: DirectiveKind
    text: str
    line: int


class _Scan(str, Enum):
    START = "start"
    QUERY = "query"
    COMMAND = "command"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    BACKTICK = "backtick"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


_QUOTES = {"'": _Scan.SINGLE_QUOTE, '"': _Scan.DOUBLE_QUOTE, "`": _Scan.BACKTICK}
_CLOSING = {_Scan.SINGLE_QUOTE: "'", _Scan.DOUBLE_QUOTE: '"', _Scan.BACKTICK: "`"}


class DirectiveSplitter:
    """Incremental splitter; feed text chunks and collect finished directives.

    Semicolons inside quotes, backticks and comments do not terminate a
    query. Commands run to the end of their line.
    """

    def __init__(self, *, first_line: int = 1) -> None:
        self._buffer: list[str] = []
        self._state = _Scan.START
        self._line = first_line
        self._start_line = first_line
        self._escaped = False
        self._comment_chars = 0
        self._has_content = False

    @property
    def pending(self) -> bool:
        """True while a directive has started but is not yet terminated."""

        return self._state is not _Scan.START and bool("".join(self._buffer).strip())

    def feed(self, text: str) -> list[Directive]:
        directives: list[Directive] = []
        for index, char in enumerate(text):
            following = text[index + 1] if index + 1 < len(text) else ""
            directive = self._consume(char, following)
            if directive is not None:
                directives.append(directive)
            if char == "\n":
                self._line += 1
        return directives

    def finish(self) -> list[Directive]:
        """Flush an unterminated trailing directive at end of input."""

        directive = self._emit()
        self._state = _Scan.START
        return [directive] if directive is not None else []

    def discard(self) -> None:
        self._buffer.clear()
        self._has_content = False
        self._state = _Scan.START
        self._escaped = False

    def _consume(self, char: str, following: str) -> Directive | None:  # noqa: C901, PLR0911
        state = self._state
        if state is _Scan.START:
            if char.isspace():
                return None
            self._start_line = self._line
            if char == ":":
                self._state = _Scan.COMMAND
                self._buffer.append(char)
                return None
            self._state = _Scan.QUERY
            return self._consume(char, following)

        if state is _Scan.COMMAND:
            if char == "\n":
                return self._emit()
            self._buffer.append(char)
            return None

        if state is _Scan.QUERY:
            if char == ";":
                return self._emit()
            self._buffer.append(char)
            if char in _QUOTES:
                self._state = _QUOTES[char]
            elif char == "/" and following == "/":
                self._state = _Scan.LINE_COMMENT
            elif char == "/" and following == "*":
                self._state = _Scan.BLOCK_COMMENT
                self._comment_chars = 0
            if self._state not in (_Scan.LINE_COMMENT, _Scan.BLOCK_COMMENT):
                self._has_content = self._has_content or not char.isspace()
            return None

        self._buffer.append(char)
        if state is _Scan.LINE_COMMENT:
            if char == "\n":
                self._state = _Scan.QUERY
        elif state is _Scan.BLOCK_COMMENT:
            self._comment_chars += 1
            if char == "/" and self._comment_chars >= 3 and self._buffer[-2] == "*":
                self._state = _Scan.QUERY
        elif self._escaped:
            self._escaped = False
        elif char == "\\" and state is not _Scan.BACKTICK:
            self._escaped = True
        elif char == _CLOSING[state]:
            self._state = _Scan.QUERY
        return None

    def _emit(self) -> Directive | None:
        text = "".join(self._buffer).strip()
        kind = DirectiveKind.COMMAND if self._state is _Scan.COMMAND else DirectiveKind.QUERY
        has_content = self._has_content
        self._buffer.clear()
        self._has_content = False
        self._state = _Scan.START
        self._escaped = False
        # Comment-only queries are dropped.
        if not text or (kind is DirectiveKind.QUERY and not has_content):
            return None
        return Directive(kind=kind, text=text, line=self._start_line)


def iter_directives(lines: Iterable[str]) -> Iterator[Directive]:
    """Yield directives from a line iterator (a file or a text stream)."""

    splitter = DirectiveSplitter()
    for line in lines:
        yield from splitter.feed(line)
    yield from splitter.finish()
