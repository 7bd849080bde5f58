"""
Report catalog: the search plus the five canned aggregate queries behind the
Reports and History menus.
"""
from __future__ import annotations

import calendar
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .criteria import DIMENSIONS
from .errors import DataAccessError, InvalidInputError
from .gateway import QueryResult
from .query_builder import SqlStatement, build_search_sql, window_bounds

logger = logging.getLogger(__name__)

SEARCH = "search"
TOP_BLOCKS = "top_blocks"
TOP_OFFENSES = "top_offenses"
AVG_DURATION = "avg_duration"
MONTHLY_TREND = "monthly_trend"
QUERY_HISTORY = "query_history"

# {minutes}: whole minutes from f.start_dt to f.end_dt, {month}: month number of f.report_dt
DIALECT_SQL = {
    "mysql": {
        "minutes": "TIMESTAMPDIFF(MINUTE, f.start_dt, f.end_dt)",
        "month": "MONTH(f.report_dt)",
    },
    "postgresql": {
        "minutes": "(EXTRACT(EPOCH FROM (f.end_dt - f.start_dt))::INT / 60)",
        "month": "EXTRACT(MONTH FROM f.report_dt)::INT",
    },
    "sqlite": {
        "minutes": (
            "((CAST(strftime('%s', f.end_dt) AS INTEGER)"
            " - CAST(strftime('%s', f.start_dt) AS INTEGER)) / 60)"
        ),
        "month": "CAST(strftime('%m', f.report_dt) AS INTEGER)",
    },
}

TOP_BLOCKS_SQL = """
WITH counts AS (
    SELECT b.block, COUNT(*) AS cnt
    FROM fact_incident f
    JOIN dim_block b ON f.block = b.block
    GROUP BY b.block
),
ranked AS (
    SELECT c.*, RANK() OVER (ORDER BY c.cnt DESC) AS rnk
    FROM counts c
)
SELECT block, cnt
FROM ranked
WHERE rnk <= :p0
ORDER BY cnt DESC, block
"""

TOP_OFFENSES_SQL = """
WITH counts AS (
    SELECT o.offense_code AS offense, COUNT(*) AS cnt
    FROM fact_incident f
    JOIN dim_offense o ON f.offense_code = o.offense_code
    GROUP BY o.offense_code
),
ranked AS (
    SELECT c.*, RANK() OVER (ORDER BY c.cnt DESC) AS rnk
    FROM counts c
)
SELECT offense, cnt
FROM ranked
WHERE rnk <= :p0
ORDER BY cnt DESC, offense
"""

AVG_DURATION_SQL = """
SELECT
    o.offense_code AS offense,
    ROUND(AVG({minutes}), 2) AS avg_duration
FROM fact_incident f
JOIN dim_offense o ON f.offense_code = o.offense_code
GROUP BY o.offense_code
ORDER BY avg_duration DESC
"""

MONTHLY_TREND_SQL = """
SELECT
    o.offense_code AS offense,
    {month} AS m,
    COUNT(*) AS cnt
FROM fact_incident f
JOIN dim_offense o ON f.offense_code = o.offense_code
WHERE f.report_dt >= :p0 AND f.report_dt <= :p1
GROUP BY o.offense_code, {month}
ORDER BY m, offense
"""

QUERY_HISTORY_SQL = """
SELECT id, sql_text, executed_at
FROM query_history
ORDER BY executed_at DESC, id DESC
"""


def parse_top_n(value) -> int:
    """Accept a positive int or its decimal string form; anything else is invalid."""
    if isinstance(value, bool):
        raise InvalidInputError(f"top N must be a positive integer, got {value!r}")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise InvalidInputError(f"top N must be a positive integer, got {value!r}") from None
    if not isinstance(value, int) or value < 1:
        raise InvalidInputError(f"top N must be a positive integer, got {value!r}")
    return value


def _no_args() -> list:
    return []


def _top_n_args(n) -> list:
    return [parse_top_n(n)]


def _window_args(from_date, to_date) -> list:
    if from_date is None or to_date is None:
        raise InvalidInputError("the monthly trend needs both a from and a to date")
    return list(window_bounds(from_date, to_date))


@dataclass(frozen=True)
class Report:
    name: str
    title: str
    template: Optional[str]
    params: Tuple[str, ...] = ()
    bind: Callable[..., list] = _no_args

    @property
    def parameterized(self) -> bool:
        return self.template is None or bool(self.params)

    def render(self, dialect: str) -> str:
        try:
            fragments = DIALECT_SQL[dialect]
        except KeyError:
            raise DataAccessError(f"unsupported database backend {dialect!r}") from None
        return self.template.format(**fragments).strip()


REPORTS: Dict[str, Report] = OrderedDict(
    (report.name, report)
    for report in (
        Report(SEARCH, "Search", None, ("criteria",)),
        Report(TOP_BLOCKS, "Top N Blocks", TOP_BLOCKS_SQL, ("n",), _top_n_args),
        Report(TOP_OFFENSES, "Top N Offenses", TOP_OFFENSES_SQL, ("n",), _top_n_args),
        Report(AVG_DURATION, "Avg Duration by Offense", AVG_DURATION_SQL),
        Report(MONTHLY_TREND, "Incidents per Month", MONTHLY_TREND_SQL,
               ("from_date", "to_date"), _window_args),
        Report(QUERY_HISTORY, "Query History", QUERY_HISTORY_SQL),
    )
)


def get_report(name: str) -> Report:
    try:
        return REPORTS[name]
    except KeyError:
        raise KeyError(f"unknown report {name!r}") from None


def prepare_report(gateway, name: str, *args) -> SqlStatement:
    """Build the statement for a report; InvalidInputError means it must not run."""
    report = get_report(name)
    if report.name == SEARCH:
        return build_search_sql(*args)
    params = report.bind(*args)
    return SqlStatement(report.render(gateway.dialect), params)


def run_report(gateway, name: str, *args, audit=None) -> Optional[QueryResult]:
    """
    Run one catalog report and return its rows.

    Returns None when the arguments are unusable (non-positive top N, missing
    trend window); nothing is executed or recorded in that case. Database
    failures propagate as DataAccessError. When `audit` is given the SQL text
    is recorded before it is executed.
    """
    try:
        statement = prepare_report(gateway, name, *args)
    except InvalidInputError as e:
        logger.info("%s skipped: %s", name, e)
        return None

    if audit is not None:
        audit.record(statement.sql)
    return gateway.execute(statement.sql, statement.params)


def dimension_values(gateway, dimension: str) -> List[str]:
    """Codes of one dimension table, for the multi-select lists."""
    table, column = DIMENSIONS[dimension]
    try:
        result = gateway.execute_raw(f"SELECT {column} FROM {table} ORDER BY {column}")
    except DataAccessError as e:
        logger.error("could not load %s values: %s", dimension, e)
        return []
    return [row[0] for row in result.rows]


def monthly_series(result: QueryResult) -> "OrderedDict[str, List[Tuple[str, int]]]":
    """Pivot monthly trend rows into offense -> [(month name, count), ...]."""
    series = OrderedDict()
    for offense, month, count in result.rows:
        series.setdefault(offense, []).append((calendar.month_name[int(month)], int(count)))
    return series
