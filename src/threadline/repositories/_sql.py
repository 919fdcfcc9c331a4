"""SQL expression helpers shared by the repositories."""
from __future__ import annotations

from typing import Any

from sqlalchemy import ColumnElement
from sqlalchemy.orm import InstrumentedAttribute

LIKE_ESCAPE = "\\"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input only ever matches literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


def icontains(column: InstrumentedAttribute[Any], term: str) -> ColumnElement[bool]:
    """Case-insensitive substring match."""
    return column.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE)


def istartswith(column: InstrumentedAttribute[str], term: str) -> ColumnElement[bool]:
    """Case-insensitive prefix match."""
    return column.ilike(f"{escape_like(term)}%", escape=LIKE_ESCAPE)
