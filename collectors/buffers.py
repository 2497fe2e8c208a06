"""Background writer buffer statistics"""
from typing import List
from .base import BaseCollection
from metrics.models import MetricDefinition
from utils.postgres import DataSource


BUFFER_METRICS = {
    "buffers_checkpoint": "Number of buffers written during checkpoints",
    "buffers_clean": "Number of buffers written by the background writer",
    "maxwritten_clean": "Number of times the background writer stopped a cleaning scan because it had written too many buffers",
    "buffers_backend": "Number of buffers written directly by a backend",
    "buffers_backend_fsync": "Number of times a backend had to execute its own fsync call (normally the background writer handles those even when the backend does its own write)",
    "buffers_alloc": "Number of buffers allocated",
}


class BufferCollection(BaseCollection):
    """Collect pg_stat_bgwriter counters as unlabeled gauges"""

    def __init__(self, namespace: str = "postgresql"):
        super().__init__("buffers", namespace)
        self.definitions: List[MetricDefinition] = [
            MetricDefinition(column, self.metric_name("buffers", column), help_text)
            for column, help_text in BUFFER_METRICS.items()
        ]

    def metric_names(self) -> List[str]:
        return [d.exported_name for d in self.definitions]

    def _scrape(self, source: DataSource) -> None:
        self._fetch_definitions(source, self.definitions, "pg_stat_bgwriter")
