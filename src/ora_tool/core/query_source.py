"""Query source resolution for ORA Tool.

Resolves the SQL/PLSQL script text from one of three sources:
1. Inline (-e flag), highest priority
2. File path
3. stdin, lowest priority
"""

from __future__ import annotations

import sys
from pathlib import Path

from ora_tool.core.exceptions import InputError


def resolve_query_source(
    inline: str | None,
    file_path: str | None,
) -> str:
    """Resolve script text from inline, file, or stdin.

    Precedence: inline > file > stdin.
    Raises InputError when no source is available.
    """
    if inline is not None:
        return inline

    if file_path is not None:
        p = Path(file_path)
        if not p.exists():
            msg = (
                f"Script file not found: {file_path}\n"
                "Use -e for inline SQL or pipe a script via stdin."
            )
            raise InputError(msg)
        return p.read_text()

    if not sys.stdin.isatty():
        return sys.stdin.read()

    msg = "No SQL provided. Use -e, file path, or pipe to stdin."
    raise InputError(msg)
