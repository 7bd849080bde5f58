"""
Execution gateway: one connection per statement, results fully materialized.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.pool import NullPool

from .config import ConnectionSettings, load_settings
from .errors import ConfigError, DataAccessError

logger = logging.getLogger(__name__)


def bind_name(index: int) -> str:
    return f"p{index}"


@dataclass
class QueryResult:
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    def __len__(self):
        return len(self.rows)

    def column(self, name: str) -> List[Any]:
        index = self.columns.index(name)
        return [row[index] for row in self.rows]

    def records(self) -> List[dict]:
        return [dict(zip(self.columns, row)) for row in self.rows]


def _driver_message(exc: SQLAlchemyError) -> str:
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


def _positional(sql: str, params: Sequence[Any]):
    statement = text(sql)
    if params:
        statement = statement.bindparams(
            *[bindparam(bind_name(i), value) for i, value in enumerate(params)]
        )
    return statement


class Gateway:
    """
    Runs statements against the warehouse named in the properties file.

    The properties file is read on every call and a fresh, unpooled engine is
    built for it, so no connection outlives the statement it was opened for.
    """

    def __init__(self, properties_path: Optional[str] = None):
        self.properties_path = properties_path

    def settings(self) -> ConnectionSettings:
        try:
            return load_settings(self.properties_path)
        except ConfigError as e:
            raise DataAccessError(str(e), e) from e

    @property
    def dialect(self) -> str:
        try:
            backend = self.settings().backend
        except ConfigError as e:
            raise DataAccessError(str(e), e) from e
        return "mysql" if backend == "mariadb" else backend

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        settings = self.settings()
        try:
            engine = create_engine(settings.sqlalchemy_url(), poolclass=NullPool)
        except ConfigError as e:
            raise DataAccessError(str(e), e) from e
        except (SQLAlchemyError, ImportError) as e:
            # ImportError: the URL names a DBAPI driver that is not installed
            raise DataAccessError(str(e), e) from e

        try:
            with engine.connect() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise DataAccessError(_driver_message(e), e) from e
        finally:
            engine.dispose()

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        started = time.monotonic()
        with self.connect() as conn:
            cursor = conn.execute(_positional(sql, params))
            columns = list(cursor.keys())
            rows = [tuple(row) for row in cursor.fetchall()]
            cursor.close()
        logger.debug("%d rows in %.3fs: %s", len(rows), time.monotonic() - started, sql)
        return QueryResult(columns, rows)

    def execute_raw(self, sql: str) -> QueryResult:
        return self.execute(sql, ())

    def execute_update(self, sql: str, params: Sequence[Any] = ()) -> int:
        with self.connect() as conn:
            result = conn.execute(_positional(sql, params))
            conn.commit()
            return result.rowcount
