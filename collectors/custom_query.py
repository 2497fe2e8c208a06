"""User defined query metrics"""
from typing import List, Optional, Sequence, Tuple
from .base import BaseCollection
from metrics.custom_queries import CustomQueryDefinition
from metrics.errors import QueryError, SchemaMismatchError
from metrics.registry import MetricHandle
from utils.postgres import DataSource
from logging_config import get_logger


logger = get_logger(__name__)


class CustomQuery:
    """One configured query and the metric derived from its first result set"""

    def __init__(self, definition: CustomQueryDefinition):
        self.definition = definition
        self.shape = definition.declared_shape()
        self.handle: Optional[MetricHandle] = None

    @property
    def name(self) -> str:
        return self.definition.name

    def check_columns(self, collection: "CustomQueryCollection", columns: Sequence[str]) -> None:
        """Reject a result whose column count differs from the select clause"""
        if columns and len(columns) != self.shape.column_count:
            raise SchemaMismatchError(
                f"query {self.name!r} returned {len(columns)} columns, "
                f"its select clause declares {self.shape.column_count}",
                collection.name,
            )

    def derive(self, collection: "CustomQueryCollection") -> MetricHandle:
        """Create the metric handle from the first result, exactly once"""
        if self.handle is not None:
            return self.handle

        self.handle = collection.registry.get_or_create(
            collection.metric_name(self.name),
            self.definition.help,
            self.shape.label_names,
            self.shape.metric_type,
        )
        logger.info("Initialized custom metric", metric=self.handle.name, labels=list(self.shape.label_names),
                    metric_type=self.shape.metric_type.value, event_type="custom_metric_initialized")
        return self.handle

    def parse_rows(self, collection: "CustomQueryCollection",
                   rows: Sequence[Sequence]) -> List[Tuple[Tuple[str, ...], float]]:
        """Split rows into (label values, value) pairs, rejecting rows of the wrong width"""
        expected = self.shape.column_count
        samples = []
        for row in rows:
            if len(row) != expected:
                raise SchemaMismatchError(
                    f"query {self.name!r} returned a row with {len(row)} columns, expected {expected}",
                    collection.name,
                )
            if row[0] is None:
                continue
            value = collection._to_float(row[0], self.shape.value_column)
            labels = tuple("" if label is None else str(label) for label in row[1:])
            samples.append((labels, value))
        return samples


class CustomQueryCollection(BaseCollection):
    """Run configured queries; column 0 is the value, the remaining columns are labels"""

    def __init__(self, definitions: Sequence[CustomQueryDefinition], namespace: str = "postgresql"):
        super().__init__("custom", namespace)
        self.queries: List[CustomQuery] = [CustomQuery(definition) for definition in definitions]

    def metric_names(self) -> List[str]:
        return [self.metric_name(query.name) for query in self.queries]

    def _scrape(self, source: DataSource) -> None:
        for query in self.queries:
            self._scrape_query(source, query)

    def _scrape_query(self, source: DataSource, query: CustomQuery) -> None:
        try:
            result = source.query_rows(query.definition.query)
        except QueryError as e:
            raise QueryError(f"error running custom query {query.name!r}: {e}", self.name) from e

        query.check_columns(self, result.columns)
        if query.handle is None:
            if not result.rows:
                # shape is derived from the first row-returning execution
                return
            query.derive(self)

        # all rows are validated before any value is written
        samples = query.parse_rows(self, result.rows)
        for labels, value in samples:
            self.registry.set_value(query.handle, labels, value)
