"""Shared fixtures"""
import os
from unittest.mock import patch
import pytest

from collectors.buffers import BUFFER_METRICS
from collectors.database import DATABASE_METRICS
from collectors.tables import TABLE_METRICS
from metrics.errors import QueryError
from utils.postgres import QueryResult


class FakeDataSource:
    """Answers queries by matching registered SQL fragments, first match wins"""

    def __init__(self):
        self.responses = []
        self.calls = []

    def on(self, fragment, row=None, rows=None, columns=None, error=None):
        self.responses.append((fragment, row, rows, columns, error))
        return self

    def _match(self, sql, params):
        self.calls.append((sql, tuple(params)))
        for fragment, row, rows, columns, error in self.responses:
            if fragment in sql:
                if error:
                    raise QueryError(error)
                return row, rows, columns
        raise QueryError(f"unexpected query: {sql}")

    def query_row(self, sql, params=()):
        row, rows, _ = self._match(sql, params)
        if row is None and rows:
            return tuple(rows[0])
        return row

    def query_rows(self, sql, params=()):
        row, rows, columns = self._match(sql, params)
        if rows is None:
            rows = [row] if row is not None else []
        return QueryResult(columns=list(columns or []), rows=[tuple(r) for r in rows])

    def count(self, fragment):
        return sum(1 for sql, _ in self.calls if fragment in sql)


def add_fixed_stats(source, tables=("users", "orders")):
    """Register answers for every fixed-schema collection"""
    source.on("pg_stat_bgwriter", row=tuple(float(i + 1) for i in range(len(BUFFER_METRICS))))
    source.on("pg_database_size", row=(8192.0,))
    source.on("blks_hit, blks_read", row=(90, 10))
    source.on("FROM pg_stat_database", row=tuple(float(i) for i in range(len(DATABASE_METRICS))))
    source.on("table_type = 'BASE TABLE' ORDER BY table_name", rows=[(name,) for name in tables])
    source.on("pg_total_relation_size", rows=[(name, 16384.0) for name in tables] + [("audit_log", 1.0)])
    source.on("pg_statio_user_tables", rows=[(name, 99, 1) for name in tables])
    source.on("pg_stat_user_tables", rows=[
        (name,) + tuple(float(i) for i in range(len(TABLE_METRICS))) for name in tables
    ])
    source.on("ILIKE 'select", row=(0,))
    source.on("ILIKE 'insert", row=(0,))
    source.on("pg_stat_activity", row=(0,))
    return source


@pytest.fixture
def fake_source():
    return FakeDataSource()


@pytest.fixture
def stats_source():
    return add_fixed_stats(FakeDataSource())


@pytest.fixture
def config_env(tmp_path):
    env_vars = {
        "DATA_SOURCE_NAME": "postgresql://exporter@localhost:5432/postgres",
        "DATABASES_STR": "app,analytics",
        "LOG_FILE": str(tmp_path / "logs" / "app.log"),
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def source_factory():
    return FakeDataSource
