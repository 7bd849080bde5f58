"""
Filter criteria -> parameterized search statement.

Placeholders are named by position (:p0, :p1, ...) in the order the clauses
are emitted, so params[i] always binds to :p{i}. Clause order is fixed:
from-date, to-date, shift, method, offense, block.
"""
from __future__ import annotations

from datetime import datetime, time
from typing import Any, List, NamedTuple

from .criteria import ALL_SELECTION, FilterCriteria
from .gateway import bind_name

SEARCH_BASE_SQL = (
    "SELECT f.ccn, f.report_dt, f.start_dt, f.end_dt, "
    "s.shift_code AS shift, m.method_code AS method, "
    "o.offense_code AS offense, b.block AS block, "
    "f.x, f.y, f.latitude, f.longitude "
    "FROM fact_incident f "
    "LEFT JOIN dim_shift s ON f.shift_code = s.shift_code "
    "LEFT JOIN dim_method m ON f.method_code = m.method_code "
    "LEFT JOIN dim_offense o ON f.offense_code = o.offense_code "
    "LEFT JOIN dim_block b ON f.block = b.block "
    "WHERE 1=1"
)

# (criteria attribute, filtered column), in clause order
DIMENSION_COLUMNS = (
    ("shifts", "s.shift_code"),
    ("methods", "m.method_code"),
    ("offenses", "o.offense_code"),
    ("blocks", "b.block"),
)


class SqlStatement(NamedTuple):
    sql: str
    params: List[Any]


def placeholder(index: int) -> str:
    return ":" + bind_name(index)


def _start_of(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _end_of(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def build_search_sql(criteria: FilterCriteria) -> SqlStatement:
    sql = [SEARCH_BASE_SQL]
    params = []

    if criteria.from_date is not None:
        sql.append(f"AND f.report_dt >= {placeholder(len(params))}")
        params.append(_start_of(criteria.from_date))

    if criteria.to_date is not None:
        sql.append(f"AND f.report_dt <= {placeholder(len(params))}")
        params.append(_end_of(criteria.to_date))

    for attribute, column in DIMENSION_COLUMNS:
        values = getattr(criteria, attribute)
        if values == ALL_SELECTION:
            continue
        marks = ", ".join(placeholder(len(params) + i) for i in range(len(values)))
        sql.append(f"AND {column} IN ({marks})")
        params.extend(values)

    return SqlStatement(" ".join(sql), params)


def window_bounds(from_date, to_date):
    """Widen a date window to the datetimes bound by the monthly trend report."""
    return _start_of(from_date), _end_of(to_date)
