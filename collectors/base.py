"""Base class for statistics collections"""
import threading
from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Sequence
from metrics.errors import QueryError
from metrics.models import MetricDefinition, MetricSnapshot, MetricType
from metrics.registry import MetricRegistry
from utils.postgres import DataSource


def cache_hit_ratio(hit, read) -> float:
    """Percentage of block reads served from cache, 0.0 when nothing was read from disk"""
    hit = float(hit or 0)
    read = float(read or 0)
    if read <= 0:
        return 0.0
    return round(hit * 100 / (hit + read), 2)


class BaseCollection(ABC):
    """A family of statistics scraped from the database into its own registry.

    ``scrape`` holds the collection lock for its whole duration so exporters
    never see a half-updated registry.
    """

    def __init__(self, name: str, namespace: str = "postgresql"):
        self._name = name
        self._namespace = namespace
        self._lock = threading.Lock()
        self.registry = MetricRegistry()

    @property
    def name(self) -> str:
        return self._name

    def scrape(self, source: DataSource) -> None:
        """Query the data source and update this collection's metrics"""
        with self._lock:
            self._scrape(source)

    @abstractmethod
    def _scrape(self, source: DataSource) -> None:
        """Collection specific scrape, called with the lock held"""
        pass

    def export_all(self) -> Iterator[MetricSnapshot]:
        with self._lock:
            snapshots = list(self.registry.export_all())
        return iter(snapshots)

    def metric_names(self) -> List[str]:
        """Every metric name this collection can export, known before the first scrape"""
        return self.registry.names()

    def metric_name(self, *parts: str) -> str:
        return "_".join([self._namespace] + [part for part in parts if part])

    def _gauge(self, name: str, help_text: str, label_names: Sequence[str] = ()):
        return self.registry.get_or_create(name, help_text, label_names, MetricType.GAUGE)

    def _query_row(self, source: DataSource, sql: str, params: Sequence[Any] = (), what: str = "") -> Sequence[Any]:
        """Run a single-row query, a missing row is an error"""
        try:
            row = source.query_row(sql, params)
        except QueryError as e:
            raise QueryError(f"error running {what or 'stats'} query: {e}", self.name) from e
        if row is None:
            raise QueryError(f"{what or 'stats'} query returned no rows", self.name)
        return row

    def _query_rows(self, source: DataSource, sql: str, params: Sequence[Any] = (), what: str = ""):
        try:
            return source.query_rows(sql, params)
        except QueryError as e:
            raise QueryError(f"error running {what or 'stats'} query: {e}", self.name) from e

    def _fetch_definitions(self, source: DataSource, definitions: Sequence[MetricDefinition], relation: str,
                           where: str = "", params: Sequence[Any] = (),
                           label_names: Sequence[str] = (), label_values: Sequence[str] = ()) -> None:
        """Select every definition's column from one row and set the matching gauges"""
        columns = ", ".join(d.source_column for d in definitions)
        sql = f"SELECT {columns} FROM {relation}"
        if where:
            sql += f" WHERE {where}"

        row = self._query_row(source, sql, params, what=relation)
        if len(row) != len(definitions):
            raise QueryError(f"{relation} returned {len(row)} columns, expected {len(definitions)}", self.name)

        values = [self._to_float(value, d.source_column) for d, value in zip(definitions, row)]
        for definition, value in zip(definitions, values):
            handle = self._gauge(definition.exported_name, definition.help_text, label_names)
            self.registry.set_value(handle, label_values, value)

    def _to_float(self, value, column: Optional[str] = None) -> float:
        if value is None:
            return 0.0
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise QueryError(f"cannot convert {column or 'value'}={value!r} to a number", self.name) from e

    def describe(self) -> List[str]:
        """Names of the metrics registered so far"""
        return self.registry.names()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
