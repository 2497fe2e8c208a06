"""PostgreSQL data source shared by all collections"""
from dataclasses import dataclass, field
from typing import Any, List, Optional, Protocol, Sequence, Tuple
import psycopg
from psycopg_pool import ConnectionPool
from metrics.errors import QueryError
from logging_config import get_logger


logger = get_logger(__name__)


@dataclass
class QueryResult:
    """Rows of a multi-row query together with the result column names"""
    columns: List[str] = field(default_factory=list)
    rows: List[Tuple[Any, ...]] = field(default_factory=list)

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


class DataSource(Protocol):
    """Query execution capability the collections depend on"""

    def query_row(self, sql: str, params: Sequence[Any] = ()) -> Optional[Tuple[Any, ...]]:
        ...

    def query_rows(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        ...


class PostgresDataSource:
    """Single shared handle over a small psycopg connection pool.

    Parameters are positional ``%s`` placeholders escaped by the driver. A
    literal ``%`` in a parameterized query must be written as ``%%``.
    """

    def __init__(self, dsn: str, max_connections: int = 2, connect_timeout: float = 10.0):
        self._pool = ConnectionPool(
            dsn,
            min_size=1,
            max_size=max_connections,
            timeout=connect_timeout,
            kwargs={"autocommit": True, "connect_timeout": int(connect_timeout)},
            name="postgresql-exporter",
            open=False,
        )
        self._opened = False

    def open(self, wait: bool = True) -> None:
        """Open the pool, optionally waiting until the first connection is ready"""
        try:
            self._pool.open(wait=wait)
        except psycopg.Error as e:
            raise QueryError(f"error opening connection to database: {e}") from e
        self._opened = True
        logger.info("Database connection pool opened", max_size=self._pool.max_size, event_type="db_pool_open")

    def check(self) -> None:
        """Run a trivial query, raising QueryError when the database is unreachable"""
        self.query_row("SELECT 1")

    def query_row(self, sql: str, params: Sequence[Any] = ()) -> Optional[Tuple[Any, ...]]:
        """First row of the result, None when the query returned nothing"""
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, tuple(params) if params else None)
                    return cur.fetchone()
        except psycopg.Error as e:
            raise QueryError(str(e).strip()) from e

    def query_rows(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """All rows of the result with their column names"""
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, tuple(params) if params else None)
                    columns = [column.name for column in cur.description or []]
                    return QueryResult(columns=columns, rows=cur.fetchall() if cur.description else [])
        except psycopg.Error as e:
            raise QueryError(str(e).strip()) from e

    def close(self) -> None:
        if self._opened:
            self._pool.close()
            self._opened = False
            logger.info("Database connection pool closed", event_type="db_pool_close")
