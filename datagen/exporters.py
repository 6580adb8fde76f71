# File: datagen/exporters.py
"""
NexaFlow DataGen - Record Serializers
======================================
Renders an ordered sequence of generated records into one of three
encodings:

    json  →  the records themselves (row objects; marshalled by the caller)
    csv   →  delimited text, every cell double-quoted
    sql   →  one ``INSERT INTO`` statement per record

Records may be heterogeneous (different key sets) and nested.  Both text
encodings compute the column set once as the lexicographically sorted union
of top-level keys; a record lacking a column renders an empty cell (csv) or
``NULL`` (sql).  Nested records are embedded as compact JSON text.

None of these functions generate values; they only render.
"""

from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from datagen.models import OutputFormat, Record
from datagen.utils import compact_json

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.exporters")

CSV_QUOTE: str = '"'
SQL_QUOTE: str = "'"
SQL_NULL: str = "NULL"
SQL_DATETIME_FORMAT: str = "%Y-%m-%d %H:%M:%S"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def collect_columns(records: Sequence[Mapping[str, Any]]) -> List[str]:
    """Sorted union of the top-level keys of every record."""
    keys: set[str] = set()
    for record in records:
        keys.update(record.keys())
    return sorted(keys)


def _is_nested(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple))


# ---------------------------------------------------------------------------
# Row objects (json)
# ---------------------------------------------------------------------------


def to_rows(records: Sequence[Record]) -> List[Record]:
    """Identity encoding: the record list itself."""
    return list(records)


# ---------------------------------------------------------------------------
# Delimited text (csv)
# ---------------------------------------------------------------------------


def quote_csv(text: str) -> str:
    """Wrap *text* in double quotes, doubling every embedded quote."""
    return f"{CSV_QUOTE}{text.replace(CSV_QUOTE, CSV_QUOTE * 2)}{CSV_QUOTE}"


def format_csv_value(value: Any) -> str:
    if value is None:
        return quote_csv("")
    if _is_nested(value):
        return quote_csv(compact_json(value))
    return quote_csv(str(value))


def to_csv(records: Sequence[Record]) -> str:
    """
    Render *records* as CSV.

    The header is the sorted union of top-level keys.  Every cell, header
    included, is quoted unconditionally.  One line per row, each terminated
    by ``\\n``.  An empty sequence renders as ``""``.
    """
    if not records:
        return ""

    columns: List[str] = collect_columns(records)
    lines: List[str] = [",".join(quote_csv(c) for c in columns)]

    for record in records:
        lines.append(
            ",".join(
                format_csv_value(record[c]) if c in record else quote_csv("")
                for c in columns
            )
        )

    logger.debug("Rendered %d record(s) as CSV (%d columns).", len(records), len(columns))
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Statement text (sql)
# ---------------------------------------------------------------------------


def quote_sql(text: str) -> str:
    """Single-quote *text*, doubling every embedded single quote."""
    return f"{SQL_QUOTE}{text.replace(SQL_QUOTE, SQL_QUOTE * 2)}{SQL_QUOTE}"


def format_sql_value(value: Any) -> str:
    """
    Render one value as a SQL literal.

    Order matters: ``bool`` is checked before numbers because it is an
    ``int`` subclass, and ``datetime`` before ``date`` for the same reason.
    """
    if value is None:
        return SQL_NULL
    if isinstance(value, bool):
        return "1" if value else "0"
    if _is_nested(value):
        return quote_sql(compact_json(value))
    if isinstance(value, str):
        return quote_sql(value)
    if isinstance(value, _dt.datetime):
        return quote_sql(value.strftime(SQL_DATETIME_FORMAT))
    if isinstance(value, _dt.date):
        return quote_sql(
            _dt.datetime.combine(value, _dt.time.min).strftime(SQL_DATETIME_FORMAT)
        )
    return str(value)


def to_sql(records: Sequence[Record], table_name: str) -> str:
    """
    Render *records* as ``INSERT INTO`` statements against *table_name*.

    Identifiers are emitted as-is; only values are quoted.  Each statement
    sits on its own newline-terminated line.  An empty sequence renders as
    ``""``.
    """
    if not records:
        return ""

    columns: List[str] = collect_columns(records)
    column_list: str = ", ".join(columns)
    statements: List[str] = []

    for record in records:
        values: str = ", ".join(
            format_sql_value(record[c]) if c in record else SQL_NULL
            for c in columns
        )
        statements.append(f"INSERT INTO {table_name} ({column_list}) VALUES ({values});")

    logger.debug(
        "Rendered %d INSERT statement(s) for table %s.", len(statements), table_name
    )
    return "\n".join(statements) + "\n"


# ---------------------------------------------------------------------------
# Format dispatch
# ---------------------------------------------------------------------------

_TEXT_EXPORTERS: Dict[OutputFormat, Callable[[Sequence[Record], str], str]] = {
    OutputFormat.CSV: lambda records, _table: to_csv(records),
    OutputFormat.SQL: to_sql,
}


def export_records(
    records: Sequence[Record],
    fmt: OutputFormat | str,
    *,
    table_name: Optional[str] = None,
) -> Any:
    """
    Encode *records* in *fmt*.

    Returns the record list for ``json`` and a string for ``csv`` / ``sql``.
    ``table_name`` is required for ``sql``.

    Raises:
        ValueError: unknown format, or ``sql`` without a table name.
    """
    output_format: OutputFormat = OutputFormat(str(getattr(fmt, "value", fmt)).lower())

    if output_format is OutputFormat.JSON:
        return to_rows(records)

    if output_format is OutputFormat.SQL and not table_name:
        raise ValueError("A table name is required for SQL output.")

    return _TEXT_EXPORTERS[output_format](records, table_name or "")


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "collect_columns",
    "to_rows",
    "quote_csv",
    "format_csv_value",
    "to_csv",
    "quote_sql",
    "format_sql_value",
    "to_sql",
    "export_records",
]

logger.debug("datagen.exporters loaded - %d public symbols.", len(__all__))
