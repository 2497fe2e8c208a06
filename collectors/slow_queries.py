"""Slow running query counts"""
from typing import List
from .base import BaseCollection
from utils.postgres import DataSource


SLOW_QUERY = (
    "SELECT count(*) FROM pg_stat_activity "
    "WHERE state = 'active' AND now() - query_start > %s * interval '1 millisecond'"
)
SLOW_SELECT_QUERY = SLOW_QUERY + " AND query ILIKE 'select%%'"
SLOW_DML_QUERY = SLOW_QUERY + " AND (query ILIKE 'insert%%' OR query ILIKE 'update%%' OR query ILIKE 'delete%%')"


class SlowQueryCollection(BaseCollection):
    """Count active queries running longer than the configured threshold"""

    def __init__(self, threshold_seconds: float, namespace: str = "postgresql"):
        super().__init__("slow_queries", namespace)
        self.milliseconds = int(threshold_seconds * 1000)
        self.queries = [
            (self.metric_name("slow_queries"), "Number of slow queries", SLOW_QUERY),
            (self.metric_name("slow_select_queries"), "Number of slow SELECT queries", SLOW_SELECT_QUERY),
            (self.metric_name("slow_dml_queries"),
             "Number of slow data manipulation queries (INSERT, UPDATE, DELETE)", SLOW_DML_QUERY),
        ]

    def metric_names(self) -> List[str]:
        return [name for name, _, _ in self.queries]

    def _scrape(self, source: DataSource) -> None:
        for name, help_text, sql in self.queries:
            row = self._query_row(source, sql, (self.milliseconds,), what=name)
            handle = self._gauge(name, help_text)
            self.registry.set_value(handle, (), self._to_float(row[0], "count"))
