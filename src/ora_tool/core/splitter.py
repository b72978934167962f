"""Split a multi-statement SQL/PLSQL buffer into executable statements."""

from __future__ import annotations

from ora_tool.core.lexer import Scanner, TokenKind

_NON_CODE = frozenset(
    {TokenKind.WHITESPACE, TokenKind.LINE_COMMENT, TokenKind.BLOCK_COMMENT}
)
_TERMINATORS = frozenset({TokenKind.TERMINATOR, TokenKind.SLASH_TERMINATOR})


def split(text: str) -> list[str]:
    """Split ``text`` into statements, in order.

    Each statement is trimmed and has its terminator removed, except that a
    statement containing a PL/SQL block keeps the ``;`` after its final
    ``END`` (Oracle needs it). Fragments holding only whitespace or
    comments are dropped. Never raises: malformed input comes back as a
    statement for the server to reject.
    """
    statements: list[str] = []
    parts: list[str] = []
    has_code = False

    for token in Scanner(text):
        if token.kind in _TERMINATORS:
            if token.kind is TokenKind.TERMINATOR and token.procedural:
                parts.append(token.text)
            if has_code:
                statements.append("".join(parts).strip())
            parts = []
            has_code = False
            continue

        parts.append(token.text)
        if token.kind not in _NON_CODE:
            has_code = True

    if has_code:
        statements.append("".join(parts).strip())
    return statements
