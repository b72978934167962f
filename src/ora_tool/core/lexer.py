"""Boundary scanner for Oracle SQL and PL/SQL text.

The scanner walks raw text one logical token at a time. It recognizes
string, quoted-identifier and comment spans, and keeps a frame stack for
procedural blocks so it can tell a statement-ending ``;`` from one that
only ends a line of PL/SQL.

Rules:

* ``q'[...]'`` and ``nq'[...]'`` strings end at the delimiter matching the
  opening one (``]``, ``}``, ``)``, ``>`` or the same character) followed
  by a quote; quotes inside them need no doubling.
* ``;`` in normal text at block depth 0 is a statement terminator.
* ``/`` alone on its line ends the current unit at any depth.
* ``BEGIN``, ``DECLARE`` and ``CASE`` open a block anywhere. ``IF`` and
  ``LOOP`` only open one inside a block, so ``FOR UPDATE`` and similar SQL
  clauses never change the depth. ``FOR``/``WHILE`` loops are opened by
  their ``LOOP`` keyword.
* ``CREATE PROCEDURE | FUNCTION | PACKAGE | TYPE BODY ... IS|AS`` opens a
  declarative frame that the following ``BEGIN`` continues.
* ``END`` closes the innermost frame. A directly following ``IF``, ``LOOP``
  or ``CASE`` belongs to the ``END``.

Unterminated strings and comments run to the end of input.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from collections.abc import Iterator


class Mode(Enum):
    NORMAL = "normal"
    SINGLE_QUOTE_STRING = "single_quote_string"
    QUOTED_IDENTIFIER = "quoted_identifier"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


class TokenKind(Enum):
    WHITESPACE = "whitespace"
    WORD = "word"
    STRING = "string"
    QUOTED_IDENTIFIER = "quoted_identifier"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    SYMBOL = "symbol"
    # ';' that ends a PL/SQL line inside a block
    SEMICOLON = "semicolon"
    TERMINATOR = "terminator"
    SLASH_TERMINATOR = "slash_terminator"


class Token(NamedTuple):
    kind: TokenKind
    text: str
    start: int
    end: int
    # Only set on terminators: the unit being closed contained a
    # procedural block, so its trailing ';' is part of the statement.
    procedural: bool = False


_DECLARE = "DECLARE"
_BEGIN = "BEGIN"

_END_SUFFIXES = frozenset({"IF", "LOOP", "CASE"})
_Q_CLOSERS = {"[": "]", "{": "}", "(": ")", "<": ">"}
_NESTED_OPENERS = frozenset({"IF", "LOOP"})
_UNIT_HEADERS = frozenset({"PROCEDURE", "FUNCTION", "PACKAGE"})


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch in "_$#"


class Scanner:
    """Tokenizer that tracks statement boundaries.

    Iterate over a Scanner (or call next_token() repeatedly) to get the
    tokens of ``text`` in order. Concatenating every token's text gives
    back the input unchanged.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.position = 0
        self._modes: list[Mode] = [Mode.NORMAL]
        self._frames: list[str] = []
        self._reset_statement()

    @property
    def mode(self) -> Mode:
        return self._modes[-1]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Token]:
        while (token := self.next_token()) is not None:
            yield token

    def next_token(self) -> Token | None:
        text = self.text
        start = self.position
        if start >= len(text):
            return None

        ch = text[start]
        nxt = text[start + 1 : start + 2]

        if ch.isspace():
            end = start + 1
            while end < len(text) and text[end].isspace():
                end += 1
            return self._emit(TokenKind.WHITESPACE, start, end)
        if ch in "qQ" and nxt == "'":
            return self._scan_alternative_quoted(start, start + 1)
        if ch in "nN" and nxt in ("q", "Q") and text[start + 2 : start + 3] == "'":
            return self._scan_alternative_quoted(start, start + 2)
        if ch == "'":
            return self._scan_quoted(
                start, Mode.SINGLE_QUOTE_STRING, TokenKind.STRING
            )
        if ch == '"':
            return self._scan_quoted(
                start, Mode.QUOTED_IDENTIFIER, TokenKind.QUOTED_IDENTIFIER
            )
        if ch == "-" and nxt == "-":
            return self._scan_line_comment(start)
        if ch == "/" and nxt == "*":
            return self._scan_block_comment(start)
        if ch == "/" and self._alone_on_line(start):
            token = self._emit(
                TokenKind.SLASH_TERMINATOR, start, start + 1, self._procedural
            )
            self._reset_statement()
            return token
        if ch == ";":
            return self._on_semicolon(start)
        if _is_word_char(ch):
            end = start + 1
            while end < len(text) and _is_word_char(text[end]):
                end += 1
            self._on_word(text[start:end])
            return self._emit(TokenKind.WORD, start, end)

        self._after_end = False
        return self._emit(TokenKind.SYMBOL, start, start + 1)

    # -- spans --

    def _scan_quoted(self, start: int, mode: Mode, kind: TokenKind) -> Token:
        text = self.text
        quote = text[start]
        self._modes.append(mode)
        i = start + 1
        while i < len(text):
            if text[i] == quote:
                if text[i + 1 : i + 2] == quote:
                    i += 2
                    continue
                i += 1
                break
            i += 1
        self._modes.pop()
        return self._emit(kind, start, i)

    def _scan_alternative_quoted(self, start: int, quote: int) -> Token:
        """Scan q'<d>...<d>' where the closing delimiter pairs with <d>."""
        text = self.text
        self._modes.append(Mode.SINGLE_QUOTE_STRING)
        opener = text[quote + 1 : quote + 2]
        if opener:
            close = text.find(_Q_CLOSERS.get(opener, opener) + "'", quote + 2)
            end = len(text) if close == -1 else close + 2
        else:
            end = len(text)
        self._modes.pop()
        return self._emit(TokenKind.STRING, start, end)

    def _scan_line_comment(self, start: int) -> Token:
        self._modes.append(Mode.LINE_COMMENT)
        newline = self.text.find("\n", start + 2)
        end = len(self.text) if newline == -1 else newline + 1
        self._modes.pop()
        return self._emit(TokenKind.LINE_COMMENT, start, end)

    def _scan_block_comment(self, start: int) -> Token:
        self._modes.append(Mode.BLOCK_COMMENT)
        close = self.text.find("*/", start + 2)
        end = len(self.text) if close == -1 else close + 2
        self._modes.pop()
        return self._emit(TokenKind.BLOCK_COMMENT, start, end)

    def _alone_on_line(self, pos: int) -> bool:
        text = self.text
        line_start = text.rfind("\n", 0, pos) + 1
        line_end = text.find("\n", pos)
        if line_end == -1:
            line_end = len(text)
        return not text[line_start:pos].strip() and not text[pos + 1 : line_end].strip()

    # -- block tracking --

    def _reset_statement(self) -> None:
        self._frames.clear()
        self._head: str | None = None
        self._prev_word: str | None = None
        self._procedural = False
        self._awaiting_body = False
        self._after_end = False

    def _on_semicolon(self, start: int) -> Token:
        if self._frames:
            self._awaiting_body = False
            self._after_end = False
            return self._emit(TokenKind.SEMICOLON, start, start + 1)
        token = self._emit(TokenKind.TERMINATOR, start, start + 1, self._procedural)
        self._reset_statement()
        return token

    def _on_word(self, word: str) -> None:
        upper = word.upper()
        if self._head is None:
            self._head = upper
        prev, self._prev_word = self._prev_word, upper
        in_unit = bool(self._frames) or self._head == "CREATE"

        if self._after_end:
            self._after_end = False
            if upper in _END_SUFFIXES:
                return

        if upper == "END":
            if self._frames:
                self._frames.pop()
            self._awaiting_body = False
            self._after_end = True
        elif upper == "DECLARE":
            self._frames.append(_DECLARE)
            self._procedural = True
        elif upper == "BEGIN":
            if self._frames and self._frames[-1] == _DECLARE:
                self._frames[-1] = _BEGIN
            else:
                self._frames.append(_BEGIN)
            self._procedural = True
            self._awaiting_body = False
        elif upper == "CASE":
            self._frames.append(upper)
        elif upper in _NESTED_OPENERS and self._frames:
            self._frames.append(upper)
        elif upper in ("IS", "AS") and self._awaiting_body:
            self._frames.append(_DECLARE)
            self._procedural = True
            self._awaiting_body = False
        elif upper in _UNIT_HEADERS and in_unit:
            self._awaiting_body = True
        elif upper == "BODY" and prev == "TYPE" and in_unit:
            self._awaiting_body = True

    def _emit(
        self, kind: TokenKind, start: int, end: int, procedural: bool = False
    ) -> Token:
        self.position = end
        return Token(kind, self.text[start:end], start, end, procedural)


def first_keyword(text: str) -> str | None:
    """Return the first word of ``text`` outside comments, upper-cased."""
    for token in Scanner(text):
        if token.kind is TokenKind.WORD:
            return token.text.upper()
        if token.kind not in (
            TokenKind.WHITESPACE,
            TokenKind.LINE_COMMENT,
            TokenKind.BLOCK_COMMENT,
        ):
            return None
    return None
