"""Per-table statistics"""
from typing import FrozenSet, List, Optional, Sequence
from .base import BaseCollection, cache_hit_ratio
from metrics.errors import QueryError
from metrics.models import MetricDefinition
from utils.postgres import DataSource
from logging_config import get_logger


logger = get_logger(__name__)

ALL_TABLES = "*"

TABLE_METRICS = {
    "seq_scan": "Number of sequential scans initiated on this table",
    "seq_tup_read": "Number of live rows fetched by sequential scans",
    "vacuum_count": "Number of times this table has been manually vacuumed (not counting VACUUM FULL)",
    "autovacuum_count": "Number of times this table has been vacuumed by the autovacuum daemon",
    "analyze_count": "Number of times this table has been manually analyzed",
    "autoanalyze_count": "Number of times this table has been analyzed by the autovacuum daemon",
    "n_tup_ins": "Number of rows inserted",
    "n_tup_upd": "Number of rows updated",
    "n_tup_del": "Number of rows deleted",
    "n_tup_hot_upd": "Number of rows HOT updated (i.e., with no separate index update required)",
    "n_live_tup": "Estimated number of live rows",
    "n_dead_tup": "Estimated number of dead rows",
}

ENUMERATE_QUERY = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = %s AND table_type = 'BASE TABLE' ORDER BY table_name"
)
SIZE_QUERY = (
    "SELECT table_name, pg_total_relation_size(quote_ident(table_schema) || '.' || quote_ident(table_name)) "
    "FROM information_schema.tables WHERE table_schema = %s AND table_type = 'BASE TABLE'"
)
CACHE_QUERY = "SELECT relname, heap_blks_hit, heap_blks_read FROM pg_statio_user_tables WHERE schemaname = %s"

LABELS = ("table",)


class TableSet:
    """Explicit table names, or every table of the schema resolved once on first use.

    A resolved wildcard is kept for the process lifetime; tables created
    later are only picked up after a restart.
    """

    def __init__(self, names: Sequence[str]):
        names = [name for name in names if name]
        self.wildcard = not names or list(names) == [ALL_TABLES]
        self._names: Optional[List[str]] = None if self.wildcard else list(names)
        self._members: FrozenSet[str] = frozenset(self._names or ())

    @property
    def resolved(self) -> bool:
        return self._names is not None

    @property
    def names(self) -> List[str]:
        return list(self._names or [])

    def resolve(self, collection: BaseCollection, source: DataSource, schema: str) -> List[str]:
        if self._names is None:
            result = collection._query_rows(source, ENUMERATE_QUERY, (schema,), what="table enumeration")
            self._names = [str(row[0]) for row in result]
            self._members = frozenset(self._names)
            logger.info("Resolved monitored tables", schema=schema, tables=self._names,
                        event_type="tables_resolved")
        return self._names

    def __contains__(self, name) -> bool:
        return name in self._members


class TableCollection(BaseCollection):
    """Collect statistics, total size and cache hit ratio for each monitored table"""

    def __init__(self, tables: Sequence[str], schema: str = "public", namespace: str = "postgresql"):
        super().__init__("tables", namespace)
        self.schema = schema
        self.tables = TableSet(tables)
        self.definitions: List[MetricDefinition] = [
            MetricDefinition(column, self.metric_name("tables", column), help_text)
            for column, help_text in TABLE_METRICS.items()
        ]
        self.size_metric = self.metric_name("tables", "size_bytes")
        self.cache_ratio_metric = self.metric_name("tables", "cache_hit_ratio_percent")

    def metric_names(self) -> List[str]:
        return [d.exported_name for d in self.definitions] + [self.size_metric, self.cache_ratio_metric]

    def _scrape(self, source: DataSource) -> None:
        self.tables.resolve(self, source, self.schema)
        self._scrape_stats(source)
        self._scrape_sizes(source)
        self._scrape_cache_ratio(source)

    def _scrape_stats(self, source: DataSource) -> None:
        columns = ", ".join(d.source_column for d in self.definitions)
        sql = f"SELECT relname, {columns} FROM pg_stat_user_tables WHERE schemaname = %s"
        result = self._query_rows(source, sql, (self.schema,), what="table stats")

        for row in result:
            table = str(row[0])
            if table not in self.tables:
                continue
            if len(row) != len(self.definitions) + 1:
                raise QueryError(f"table stats returned {len(row)} columns", self.name)
            values = [self._to_float(value, d.source_column) for d, value in zip(self.definitions, row[1:])]
            for definition, value in zip(self.definitions, values):
                handle = self._gauge(definition.exported_name, definition.help_text, LABELS)
                self.registry.set_value(handle, (table,), value)

    def _scrape_sizes(self, source: DataSource) -> None:
        result = self._query_rows(source, SIZE_QUERY, (self.schema,), what="table size")
        for table, size in result:
            if table not in self.tables:
                # process only selected tables
                continue
            handle = self._gauge(self.size_metric, "Total table size including indexes", LABELS)
            self.registry.set_value(handle, (str(table),), self._to_float(size, "size"))

    def _scrape_cache_ratio(self, source: DataSource) -> None:
        result = self._query_rows(source, CACHE_QUERY, (self.schema,), what="table cache hit ratio")
        for table, hit, read in result:
            if table not in self.tables:
                continue
            handle = self._gauge(self.cache_ratio_metric, "Table cache hit ratio", LABELS)
            self.registry.set_value(handle, (str(table),), cache_hit_ratio(hit, read))
