"""SQL parameter placeholder handling.

Statements are written with positional ``?`` placeholders. Drivers that use
the ``format`` paramstyle get ``%s`` instead, with literals and comments left
untouched.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import lru_cache
from typing import Any

from txsql.core.statement import tokenize


def normalize_params(sql: str, paramstyle: str) -> str:
    """Convert ``?`` placeholders to the target param style.

    Args:
        sql: SQL string with ``?`` placeholders.
        paramstyle: Target style - 'qmark' (no conversion) or 'format' (%s).

    Returns:
        SQL with placeholders converted to the target style.
    """
    if paramstyle == "qmark":
        return sql
    return _convert_to_format(sql)


@lru_cache(maxsize=256)
def _convert_to_format(sql: str) -> str:
    """Convert ``?`` to ``%s`` in code only and escape every ``%``."""
    parts: list[str] = []
    for kind, content in tokenize(sql):
        content = content.replace("%", "%%")
        if kind == "code":
            content = content.replace("?", "%s")
        parts.append(content)
    return "".join(parts)


def _render_value(value: Any) -> str:
    if value is None:
        return "NULL"
    return f'"{value}"'


def unsafe_fill_escape_values(sql: str, escape_values: Sequence[Any]) -> str:
    """Fill ``?`` placeholders in *sql* with quoted parameter values.

    FOR DEBUGGING OUTPUT ONLY. Values are not escaped; the returned text is
    open to SQL injection and must never be executed. ``?`` inside literals
    and comments is kept. Placeholders without a matching value are left
    as ``?``.
    """
    values = iter(escape_values)
    parts: list[str] = []
    for kind, content in tokenize(sql):
        if kind != "code":
            parts.append(content)
            continue
        pieces = content.split("?")
        filled = [pieces[0]]
        for piece in pieces[1:]:
            try:
                filled.append(_render_value(next(values)))
            except StopIteration:
                filled.append("?")
            filled.append(piece)
        parts.append("".join(filled))
    return "".join(parts)
