"""
Crime incident explorer: filtered search and canned reports over the incident
star schema.
"""
from .audit import AuditLogger
from .config import ConnectionSettings, load_settings
from .criteria import ALL, FilterCriteria, FilterState
from .errors import ConfigError, DataAccessError, ExplorerError, InvalidInputError
from .gateway import Gateway, QueryResult
from .query_builder import SqlStatement, build_search_sql
from .reports import REPORTS, run_report

__all__ = [
    "ALL",
    "AuditLogger",
    "ConfigError",
    "ConnectionSettings",
    "DataAccessError",
    "ExplorerError",
    "FilterCriteria",
    "FilterState",
    "Gateway",
    "InvalidInputError",
    "QueryResult",
    "REPORTS",
    "SqlStatement",
    "build_search_sql",
    "load_settings",
    "run_report",
]
