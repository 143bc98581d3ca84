"""Template lexer.

Turns template source into a flat list of tokens, alternating between text
mode (raw output up to the next ``{{``, ``{%`` or ``{#``) and tag mode
(names, literals and operators up to the matching closer).

The lexer is total: it never raises. Malformed input inside a tag (an
unknown character, an unterminated string) becomes an ``ERROR`` token for the
parser to report, and an unterminated ``{{``/``{%`` simply runs to the end of
the source, where the stream stops with ``EOF``.

Whitespace control:
    ``{{-`` / ``{%-`` / ``{#-``   strip all whitespace before the tag
    ``-}}`` / ``-%}`` / ``-#}``   strip all whitespace after the tag
    ``trim_blocks``             drop the first newline after ``%}`` / ``#}``
    ``lstrip_blocks``           drop spaces/tabs before ``{%`` / ``{#`` on its own line
    ``{%+`` / ``+%}``             opt a single tag out of lstrip/trim

Example:
    >>> [t.type.name for t in tokenize("Hi {{ name }}!")]
    ['DATA', 'VARIABLE_BEGIN', 'NAME', 'VARIABLE_END', 'DATA', 'EOF']
"""

from __future__ import annotations

import re
from bisect import bisect_right

from chatmpl._types import Token, TokenType

_TAG_START_RE = re.compile(r"\{[{%#]")
_NAME_RE = re.compile(r"[^\W\d]\w*")
_NUMBER_RE = re.compile(r"[0-9](?:_?[0-9])*(?:\.[0-9](?:_?[0-9])*)?(?:[eE][+-]?[0-9]+)?")
_INTEGER_RE = re.compile(r"[0-9](?:_?[0-9])*")
_RAW_BEGIN_RE = re.compile(r"\{%([-+]?)\s*raw\s*([-+]?)%\}")
_RAW_END_RE = re.compile(r"\{%([-+]?)\s*endraw\s*([-+]?)%\}")

_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_DOUBLE_OPERATORS = {
    "**": TokenType.POW,
    "//": TokenType.FLOORDIV,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
}

_SINGLE_OPERATORS = {
    "+": TokenType.ADD,
    "-": TokenType.SUB,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "%": TokenType.MOD,
    "~": TokenType.TILDE,
    "|": TokenType.PIPE,
    ".": TokenType.DOT,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
}

# Trim modes for the text on either side of a tag
_TRIM_ALL = "all"
_TRIM_NEWLINE = "newline"
_TRIM_LINE = "line"


class Lexer:
    """Tokenizer for a single template source.

    Args:
        source: Template text
        trim_blocks: Remove the first newline after a statement or comment tag
        lstrip_blocks: Remove leading spaces/tabs before a statement or comment
            tag that starts its line
    """

    __slots__ = (
        "_source",
        "_length",
        "_pos",
        "_tokens",
        "_line_starts",
        "_pending_trim",
        "trim_blocks",
        "lstrip_blocks",
    )

    def __init__(
        self,
        source: str,
        *,
        trim_blocks: bool = False,
        lstrip_blocks: bool = False,
    ) -> None:
        self._source = source
        self._length = len(source)
        self._pos = 0
        self._tokens: list[Token] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", source)]
        self._pending_trim: str | None = None
        self.trim_blocks = trim_blocks
        self.lstrip_blocks = lstrip_blocks

    def tokenize(self) -> list[Token]:
        """Tokenize the whole source. Always ends with an EOF token."""
        source = self._source
        while self._pos < self._length:
            match = _TAG_START_RE.search(source, self._pos)
            if match is None:
                self._emit_text(self._pos, self._length, None)
                self._pos = self._length
                break

            start = match.start()
            kind = source[start + 1]
            modifier = source[start + 2] if start + 2 < self._length else ""

            if modifier == "-":
                before: str | None = _TRIM_ALL
            elif modifier != "+" and kind in "%#" and self.lstrip_blocks:
                before = _TRIM_LINE
            else:
                before = None
            self._emit_text(self._pos, start, before)

            if kind == "#":
                self._lex_comment(start, modifier)
                continue

            if kind == "%":
                raw = _RAW_BEGIN_RE.match(source, start)
                if raw is not None:
                    self._lex_raw(start, raw)
                    continue

            opener_end = start + 2 + (1 if modifier in ("-", "+") else 0)
            if kind == "{":
                self._add(TokenType.VARIABLE_BEGIN, source[start:opener_end], start, opener_end)
                self._pos = opener_end
                self._lex_tag("}}", TokenType.VARIABLE_END)
            else:
                self._add(TokenType.BLOCK_BEGIN, source[start:opener_end], start, opener_end)
                self._pos = opener_end
                self._lex_tag("%}", TokenType.BLOCK_END)

        self._add(TokenType.EOF, "", self._length, self._length)
        return self._tokens

    # ─────────────────────────────────────────────────────────────────────────
    # Text mode
    # ─────────────────────────────────────────────────────────────────────────

    def _emit_text(self, start: int, end: int, before: str | None) -> None:
        """Emit a DATA token for source[start:end] after whitespace control."""
        raw = self._source[start:end]
        text = raw

        after = self._pending_trim
        self._pending_trim = None
        if after == _TRIM_ALL:
            text = text.lstrip()
        elif after == _TRIM_NEWLINE:
            if text.startswith("\r\n"):
                text = text[2:]
            elif text.startswith("\n"):
                text = text[1:]

        if before == _TRIM_ALL:
            text = text.rstrip()
        elif before == _TRIM_LINE:
            newline = raw.rfind("\n")
            tail = raw[newline + 1 :]
            at_line_start = newline >= 0 or start == 0 or self._source[start - 1] == "\n"
            if at_line_start and not tail.strip(" \t"):
                text = text[: max(0, len(text) - len(tail))]

        if text:
            self._add(TokenType.DATA, text, start, end)

    def _lex_comment(self, start: int, modifier: str) -> None:
        source = self._source
        opener_end = start + 2 + (1 if modifier in ("-", "+") else 0)
        self._add(TokenType.COMMENT_BEGIN, source[start:opener_end], start, opener_end)

        close = source.find("#}", opener_end)
        if close == -1:
            # Unterminated comment: the parser reports it at EOF
            self._pos = self._length
            return

        closer_start = close
        if close - 1 >= opener_end and source[close - 1] == "-":
            closer_start = close - 1
            self._pending_trim = _TRIM_ALL
        elif close - 1 >= opener_end and source[close - 1] == "+":
            closer_start = close - 1
        elif self.trim_blocks:
            self._pending_trim = _TRIM_NEWLINE
        self._add(TokenType.COMMENT_END, source[closer_start : close + 2], closer_start, close + 2)
        self._pos = close + 2

    def _lex_raw(self, start: int, begin: re.Match[str]) -> None:
        """Emit the body of {% raw %}...{% endraw %} verbatim as DATA."""
        source = self._source
        content_start = begin.end()
        end = _RAW_END_RE.search(source, content_start)
        if end is None:
            self._add(TokenType.ERROR, "unterminated raw block", start, self._length)
            self._pos = self._length
            return

        text = source[content_start : end.start()]
        if begin.group(2) == "-":
            text = text.lstrip()
        elif begin.group(2) != "+" and self.trim_blocks:
            if text.startswith("\r\n"):
                text = text[2:]
            elif text.startswith("\n"):
                text = text[1:]

        if end.group(1) == "-":
            text = text.rstrip()
        elif end.group(1) != "+" and self.lstrip_blocks:
            newline = text.rfind("\n")
            tail = text[newline + 1 :]
            if newline >= 0 and not tail.strip(" \t"):
                text = text[: newline + 1]

        if text:
            self._add(TokenType.DATA, text, content_start, end.start())

        if end.group(2) == "-":
            self._pending_trim = _TRIM_ALL
        elif end.group(2) != "+" and self.trim_blocks:
            self._pending_trim = _TRIM_NEWLINE
        self._pos = end.end()

    # ─────────────────────────────────────────────────────────────────────────
    # Tag mode
    # ─────────────────────────────────────────────────────────────────────────

    def _lex_tag(self, closer: str, end_type: TokenType) -> None:
        """Tokenize the inside of a {{ }} or {% %} tag, including its closer."""
        source = self._source
        length = self._length
        brace_depth = 0
        is_block = closer == "%}"

        while self._pos < length:
            pos = self._pos
            char = source[pos]

            if char.isspace():
                self._pos += 1
                continue

            if brace_depth == 0:
                if source.startswith("-" + closer, pos):
                    self._add(end_type, source[pos : pos + 3], pos, pos + 3)
                    self._pending_trim = _TRIM_ALL
                    self._pos = pos + 3
                    return
                if is_block and source.startswith("+%}", pos):
                    self._add(end_type, "+%}", pos, pos + 3)
                    self._pos = pos + 3
                    return
                if source.startswith(closer, pos):
                    self._add(end_type, closer, pos, pos + 2)
                    if is_block and self.trim_blocks:
                        self._pending_trim = _TRIM_NEWLINE
                    self._pos = pos + 2
                    return

            if char in "'\"":
                self._lex_string(char)
            elif "0" <= char <= "9":
                self._lex_number()
            elif char == "{":
                brace_depth += 1
                self._add(TokenType.LBRACE, char, pos, pos + 1)
                self._pos += 1
            elif char == "}":
                brace_depth = max(0, brace_depth - 1)
                self._add(TokenType.RBRACE, char, pos, pos + 1)
                self._pos += 1
            else:
                name = _NAME_RE.match(source, pos)
                if name is not None:
                    self._add(TokenType.NAME, name.group(), pos, name.end())
                    self._pos = name.end()
                    continue

                pair = source[pos : pos + 2]
                if pair in _DOUBLE_OPERATORS:
                    self._add(_DOUBLE_OPERATORS[pair], pair, pos, pos + 2)
                    self._pos += 2
                elif char in _SINGLE_OPERATORS:
                    self._add(_SINGLE_OPERATORS[char], char, pos, pos + 1)
                    self._pos += 1
                else:
                    self._add(TokenType.ERROR, char, pos, pos + 1)
                    self._pos += 1

    def _lex_string(self, quote: str) -> None:
        source = self._source
        start = self._pos
        pos = start + 1
        chars: list[str] = []
        while pos < self._length:
            char = source[pos]
            if char == "\\" and pos + 1 < self._length:
                escaped = source[pos + 1]
                chars.append(_ESCAPES.get(escaped, "\\" + escaped))
                pos += 2
                continue
            if char == quote:
                self._add(TokenType.STRING, "".join(chars), start, pos + 1)
                self._pos = pos + 1
                return
            chars.append(char)
            pos += 1

        self._add(TokenType.ERROR, "unterminated string literal", start, self._length)
        self._pos = self._length

    def _lex_number(self) -> None:
        pos = self._pos
        # After a dot only an integer is read: items.0.1 is two subscripts
        after_dot = bool(self._tokens) and self._tokens[-1].type == TokenType.DOT
        match = (_INTEGER_RE if after_dot else _NUMBER_RE).match(self._source, pos)
        if match is None:
            self._add(TokenType.ERROR, self._source[pos], pos, pos + 1)
            self._pos = pos + 1
            return
        text = match.group()
        is_float = not after_dot and ("." in text or "e" in text or "E" in text)
        self._add(TokenType.FLOAT if is_float else TokenType.INTEGER, text, pos, match.end())
        self._pos = match.end()

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _add(self, token_type: TokenType, value: str, start: int, end: int) -> None:
        line_index = bisect_right(self._line_starts, start) - 1
        self._tokens.append(
            Token(
                type=token_type,
                value=value,
                lineno=line_index + 1,
                col_offset=start - self._line_starts[line_index],
                position=start,
                end=end,
            )
        )


def tokenize(
    source: str,
    *,
    trim_blocks: bool = False,
    lstrip_blocks: bool = False,
) -> list[Token]:
    """Tokenize template source.

    Args:
        source: Template text
        trim_blocks: Remove the first newline after a statement tag
        lstrip_blocks: Strip whitespace before a statement tag on its own line

    Returns:
        Token list ending with an EOF token
    """
    return Lexer(source, trim_blocks=trim_blocks, lstrip_blocks=lstrip_blocks).tokenize()
