"""Statement classification.

The result shape of a statement is decided once, from its leading keyword,
before the statement reaches the driver. Leading whitespace and comments are
skipped and keywords compare case-insensitively.
"""

from __future__ import annotations

import re
from functools import lru_cache

from txsql.core.enums import StatementKind
from txsql.core.exceptions import UnsupportedStatementError

_FIRST_KEYWORD = re.compile(r"^\s*(\w+)")

_KEYWORD_KINDS: dict[str, StatementKind] = {
    "SELECT": StatementKind.SELECT,
    "INSERT": StatementKind.MUTATE,
    "UPDATE": StatementKind.MUTATE,
    "DELETE": StatementKind.MUTATE,
    "REPLACE": StatementKind.MUTATE,
    "CREATE": StatementKind.DDL,
    "ALTER": StatementKind.DDL,
    "DROP": StatementKind.DDL,
    "TRUNCATE": StatementKind.DDL,
    "RENAME": StatementKind.DDL,
}

_QUOTES = ("'", '"', "`")


def tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``code``, ``string``, ``identifier`` and ``comment`` tokens.

    Single-quoted literals and double-quoted or backtick-quoted identifiers are
    kept whole, including doubled-quote escapes. ``--`` comments run to the end
    of the line, ``/* */`` comments to their terminator. An unterminated literal
    or block comment runs to the end of the text; the driver reports that
    error, not the tokenizer.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        ch = sql[i]
        if ch in _QUOTES:
            j = i + 1
            while j < n:
                if sql[j] == ch:
                    j += 1
                    if j >= n or sql[j] != ch:
                        break
                    j += 1  # doubled quote
                else:
                    j += 1
            kind = "string" if ch == "'" else "identifier"
        elif sql.startswith("--", i):
            j = sql.find("\n", i)
            j = n if j == -1 else j
            kind = "comment"
        elif sql.startswith("/*", i):
            j = sql.find("*/", i + 2)
            j = n if j == -1 else j + 2
            kind = "comment"
        else:
            i += 1
            continue

        if i > last:
            tokens.append(("code", sql[last:i]))
        tokens.append((kind, sql[i:j]))
        last = j
        i = j

    if last < n:
        tokens.append(("code", sql[last:]))

    return tokens


def _strip_leading_comments(sql: str) -> str:
    """Drop whitespace and ``--`` / ``/* */`` comments ahead of the first keyword."""
    rest = sql.lstrip()
    while True:
        if rest.startswith("--"):
            end = rest.find("\n")
            rest = "" if end == -1 else rest[end + 1 :].lstrip()
        elif rest.startswith("/*"):
            end = rest.find("*/", 2)
            rest = "" if end == -1 else rest[end + 2 :].lstrip()
        else:
            return rest


def leading_keyword(sql: str) -> str | None:
    """Return the upper-cased first keyword of *sql*, or None if there is none."""
    m = _FIRST_KEYWORD.match(_strip_leading_comments(sql))
    return m.group(1).upper() if m else None


@lru_cache(maxsize=256)
def classify_statement(sql: str) -> StatementKind:
    """Map *sql* to the StatementKind that decides its result shape."""
    keyword = leading_keyword(sql)
    if keyword is None:
        return StatementKind.OTHER
    return _KEYWORD_KINDS.get(keyword, StatementKind.OTHER)


def is_single_statement(sql: str) -> bool:
    """Return False if a ``;`` outside literals and comments is followed by more SQL."""
    terminated = False
    for kind, content in tokenize(sql):
        if kind == "comment":
            continue
        if kind != "code":
            if terminated:
                return False
            continue
        head, sep, tail = content.partition(";")
        if terminated and head.strip():
            return False
        if sep:
            if tail.strip(" \t\r\n;"):
                return False
            terminated = True
    return True


def check_statement(sql: str) -> StatementKind:
    """Classify *sql* and reject anything without a known result shape.

    Raises:
        UnsupportedStatementError: For multi-statement text or an unknown
            leading keyword.
    """
    if not is_single_statement(sql):
        raise UnsupportedStatementError(sql, "multiple statements are not supported")

    kind = classify_statement(sql)
    if kind is StatementKind.OTHER:
        keyword = leading_keyword(sql)
        raise UnsupportedStatementError(
            sql,
            f"no result shape for leading keyword {keyword!r}"
            if keyword
            else "statement has no leading keyword",
        )
    return kind
