"""Per-database statistics"""
from typing import List, Sequence
from .base import BaseCollection, cache_hit_ratio
from metrics.models import MetricDefinition
from utils.postgres import DataSource


DATABASE_METRICS = {
    "numbackends": "Number of backends currently connected to this database",
    "tup_returned": "Number of rows returned by queries in this database",
    "tup_fetched": "Number of rows fetched by queries in this database",
    "tup_inserted": "Number of rows inserted by queries in this database",
    "tup_updated": "Number of rows updated by queries in this database",
    "tup_deleted": "Number of rows deleted by queries in this database",
    "xact_commit": "Number of transactions in this database that have been committed",
    "xact_rollback": "Number of transactions in this database that have been rolled back",
    "deadlocks": "Number of deadlocks detected in this database",
    "temp_files": "Number of temporary files created by queries in this database",
    "temp_bytes": "Total amount of data written to temporary files by queries in this database",
}

SIZE_QUERY = "SELECT pg_database_size(datname) FROM pg_database WHERE datname = %s"
CACHE_QUERY = "SELECT blks_hit, blks_read FROM pg_stat_database WHERE datname = %s"

LABELS = ("database",)


class DatabaseCollection(BaseCollection):
    """Collect size, activity counters and cache hit ratio for each configured database"""

    def __init__(self, databases: Sequence[str], namespace: str = "postgresql"):
        super().__init__("database", namespace)
        self.databases: List[str] = list(databases)
        self.definitions: List[MetricDefinition] = [
            MetricDefinition(column, self.metric_name("database", column), help_text)
            for column, help_text in DATABASE_METRICS.items()
        ]
        self.size_metric = self.metric_name("database", "size_bytes")
        self.cache_ratio_metric = self.metric_name("database", "cache_hit_ratio_percent")

    def metric_names(self) -> List[str]:
        return [d.exported_name for d in self.definitions] + [self.size_metric, self.cache_ratio_metric]

    def _scrape(self, source: DataSource) -> None:
        for database in self.databases:
            self._scrape_database(source, database)

    def _scrape_database(self, source: DataSource, database: str) -> None:
        labels = (database,)

        size = self._query_row(source, SIZE_QUERY, (database,), what=f"database size for {database}")
        handle = self._gauge(self.size_metric, "Size of database in bytes", LABELS)
        self.registry.set_value(handle, labels, self._to_float(size[0], "size"))

        self._fetch_definitions(source, self.definitions, "pg_stat_database", "datname = %s", (database,),
                                LABELS, labels)

        hit, read = self._query_row(source, CACHE_QUERY, (database,), what=f"cache hit ratio for {database}")
        handle = self._gauge(self.cache_ratio_metric, "Database cache hit ratio", LABELS)
        self.registry.set_value(handle, labels, cache_hit_ratio(hit, read))
