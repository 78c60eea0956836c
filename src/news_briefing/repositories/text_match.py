"""Token matching for free-text search."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import ColumnElement, false, or_
from sqlalchemy.orm import InstrumentedAttribute


def any_token_matches(
    columns: Sequence[InstrumentedAttribute],
    tokens: Sequence[str],
) -> ColumnElement[bool]:
    """OR of case-insensitive substring tests, every token against every column."""
    conditions = [
        column.icontains(token, autoescape=True)
        for token in tokens
        for column in columns
    ]
    if not conditions:
        return false()
    return or_(*conditions)
