"""
db/placeholders.py
------------------
Portable placeholder syntax for prepared statements.

Statements are written with ``?`` (positional) or ``:name`` (named)
placeholders and rewritten to the ``format``/``pyformat`` paramstyle that
both psycopg2 and mysql-connector expect (``%s`` / ``%(name)s``).
A literal ``?`` is written as ``??``. Quoted strings, quoted identifiers,
comments and Postgres ``::`` casts are never rewritten. Postgres
``E'...'`` and dollar-quoted (``$$...$$``, ``$tag$...$tag$``) literals and
MySQL ``#`` comments are recognised according to the dialect.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Optional, Union

from db.errors import ParameterError

Parameters = Union[Sequence[Any], Mapping[str, Any]]


def _is_name_start(ch: str) -> bool:
    return ch.isalpha() or ch == "_"


def _is_name_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def _quoted_end(sql: str, start: int, quote: str, backslash_escapes: bool) -> int:
    """Return the index just past the quote closing the literal opened at ``start``."""
    i = start + 1
    n = len(sql)
    while i < n:
        ch = sql[i]
        if backslash_escapes and ch == "\\":
            i += 2
            continue
        if ch == quote:
            if i + 1 < n and sql[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    return n


def _dollar_tag(sql: str, start: int) -> Optional[str]:
    """Return the ``$tag$`` opening a dollar-quoted literal at ``start``, if any."""
    if start > 0 and (_is_name_char(sql[start - 1]) or sql[start - 1] == "$"):
        return None
    j = start + 1
    n = len(sql)
    if j < n and _is_name_start(sql[j]):
        while j < n and _is_name_char(sql[j]):
            j += 1
    if j < n and sql[j] == "$":
        return sql[start:j + 1]
    return None


def _scan(sql: str, escape_percent: bool, mysql: bool) -> tuple[str, int, list[str], bool]:
    pct = "%%" if escape_percent else "%"
    out = []
    positional = 0
    named = []
    # verbatim text the driver would still read as a placeholder
    driver_marker = False

    def keep(text: str) -> None:
        nonlocal driver_marker
        if "%s" in text or "%(" in text:
            driver_marker = True
        out.append(text.replace("%", pct))

    i = 0
    n = len(sql)
    while i < n:
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < n else ""

        if ch in ("'", '"', "`"):
            end = _quoted_end(sql, i, ch, mysql and ch != "`")
            keep(sql[i:end])
            i = end
        elif (
            not mysql
            and ch in ("e", "E")
            and nxt == "'"
            and (i == 0 or not _is_name_char(sql[i - 1]))
        ):
            end = _quoted_end(sql, i + 1, "'", True)
            keep(sql[i:end])
            i = end
        elif not mysql and ch == "$" and _dollar_tag(sql, i):
            tag = _dollar_tag(sql, i)
            end = sql.find(tag, i + len(tag))
            end = n if end == -1 else end + len(tag)
            keep(sql[i:end])
            i = end
        elif (ch == "-" and nxt == "-") or (mysql and ch == "#"):
            end = sql.find("\n", i)
            end = n if end == -1 else end
            keep(sql[i:end])
            i = end
        elif ch == "/" and nxt == "*":
            end = sql.find("*/", i + 2)
            end = n if end == -1 else end + 2
            keep(sql[i:end])
            i = end
        elif ch == ":" and nxt == ":":
            out.append("::")
            i += 2
        elif ch == ":" and _is_name_start(nxt):
            j = i + 1
            while j < n and _is_name_char(sql[j]):
                j += 1
            name = sql[i + 1:j]
            named.append(name)
            out.append(f"%({name})s")
            i = j
        elif ch == "?" and nxt == "?":
            out.append("?")
            i += 2
        elif ch == "?":
            positional += 1
            out.append("%s")
            i += 1
        elif ch == "%":
            keep(sql[i:i + 2] if nxt in ("s", "(") else ch)
            i += 2 if nxt in ("s", "(") else 1
        else:
            out.append(ch)
            i += 1
    return "".join(out), positional, named, driver_marker


def rewrite(
    sql: str,
    escape_percent: bool = True,
    backslash_escapes: bool = False,
) -> tuple[str, int, list[str]]:
    """
    Rewrite portable placeholders to driver placeholders.

    Args:
        sql: Statement using ``?`` / ``:name`` placeholders.
        escape_percent: Double every literal ``%`` (psycopg2 formats the
            whole statement; mysql-connector does not).
        backslash_escapes: Lex the statement as MySQL does: ``\\`` escapes
            quotes inside string literals and ``#`` starts a comment.
            Otherwise Postgres rules apply: ``E'...'`` literals take
            backslash escapes and ``$tag$...$tag$`` bodies are skipped.

    Returns:
        ``(rewritten_sql, positional_count, named)`` where ``named`` lists
        every ``:name`` in order of appearance.
    """
    driver_sql, positional, named, _ = _scan(sql, escape_percent, backslash_escapes)
    return driver_sql, positional, named


def bind(
    sql: str,
    parameters: Parameters,
    escape_percent: bool = True,
    backslash_escapes: bool = False,
) -> tuple[str, Optional[Union[tuple, dict]]]:
    """
    Rewrite ``sql`` and match it against ``parameters``.

    Returns:
        ``(driver_sql, driver_parameters)`` ready for ``cursor.execute``:
        a tuple for positional statements, a dict for named ones, or None
        when the statement takes no parameters (it must then be executed
        without any, so the driver leaves ``%`` alone).

    Raises:
        ParameterError: On mixed placeholder styles, a count mismatch, a
            missing named parameter, parameters of the wrong shape, or
            (without percent escaping) a literal ``%s`` / ``%(`` the driver
            would mistake for a placeholder.
    """
    if isinstance(parameters, (str, bytes)) or not isinstance(parameters, (Sequence, Mapping)):
        raise ParameterError("parameters must be a sequence or a mapping")

    driver_sql, positional, named, driver_marker = _scan(sql, escape_percent, backslash_escapes)

    if positional and named:
        raise ParameterError("cannot mix '?' and ':name' placeholders in one statement")

    if driver_marker and not escape_percent and (positional or named):
        raise ParameterError(
            "literal '%s' or '%(' cannot appear in a statement with parameters on this "
            "backend; pass the text as a parameter instead"
        )

    if named:
        if not isinstance(parameters, Mapping):
            raise ParameterError("named placeholders require a mapping of parameters")
        missing = [name for name in dict.fromkeys(named) if name not in parameters]
        if missing:
            raise ParameterError(f"missing parameters: {', '.join(missing)}")
        return driver_sql, {name: parameters[name] for name in named}

    if isinstance(parameters, Mapping):
        if parameters:
            raise ParameterError("statement has no named placeholders")
        values = ()
    else:
        values = tuple(parameters)
    if len(values) != positional:
        raise ParameterError(
            f"statement has {positional} placeholder(s) but {len(values)} parameter(s) were given"
        )
    if not values:
        return rewrite(sql, False, backslash_escapes)[0], None
    return driver_sql, values
