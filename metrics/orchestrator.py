"""Scrape orchestration across all statistics collections"""
import threading
import time
from enum import Enum
from typing import Dict, Iterator, List, Sequence
from .errors import ConfigurationError, ExporterError
from .models import MetricSnapshot, MetricType, ScrapeResult
from utils.postgres import DataSource
from logging_config import get_logger, log_scrape_cycle, log_error


logger = get_logger(__name__)


class ScrapeState(Enum):
    IDLE = "idle"
    SCRAPING = "scraping"


class ScrapeOrchestrator:
    """Drive scrape cycles over an ordered list of collections.

    A cycle runs every collection in order and stops at the first failure;
    collections that already succeeded keep their new values. Cycles are
    demand driven and serialized: a request that arrives while a cycle is
    in flight waits for it and then runs its own.
    """

    def __init__(self, source: DataSource, collections: Sequence, namespace: str = "postgresql"):
        self.source = source
        self.collections = list(collections)
        self.namespace = namespace
        self.state = ScrapeState.IDLE
        self.total_scrapes = 0
        self.total_failures = 0
        self.last_result = ScrapeResult()
        self._lock = threading.Lock()

        self.scrapes_total_name = f"{namespace}_exporter_scrapes_total"
        self.duration_name = f"{namespace}_exporter_last_scrape_duration_seconds"
        self.error_name = f"{namespace}_exporter_last_scrape_error"
        self._check_metric_names()

    def _check_metric_names(self) -> None:
        """Every exported family belongs to exactly one owner"""
        owners = {}
        meta = [self.scrapes_total_name, self.duration_name, self.error_name]
        named = [("exporter", name) for name in meta]
        for collection in self.collections:
            named.extend((collection.name, name) for name in collection.metric_names())

        for owner, name in named:
            # counters are exposed without their _total suffix as the family name
            family = name[:-len("_total")] if name.endswith("_total") else name
            if family in owners:
                raise ConfigurationError(
                    f"Metric {name!r} from {owner!r} collides with a metric from {owners[family]!r}"
                )
            owners[family] = owner

    def collect(self) -> List[MetricSnapshot]:
        """Run one cycle and return every metric, holding the cycle lock throughout"""
        with self._lock:
            self._run_cycle()
            return list(self.export_all())

    def scrape(self) -> ScrapeResult:
        """Run one cycle without exporting"""
        with self._lock:
            return self._run_cycle()

    def _run_cycle(self) -> ScrapeResult:
        self.state = ScrapeState.SCRAPING
        self.total_scrapes += 1
        start_time = time.time()
        # cleared only when every collection completed
        failed = True
        error = None

        try:
            for collection in self.collections:
                try:
                    logger.debug("Scraping collection", collection=collection.name, event_type="scrape_start")
                    collection.scrape(self.source)
                except ExporterError as e:
                    error = str(e)
                    log_error(logger, e, {"component": "scrape", "collection": collection.name,
                                          "scrape": self.total_scrapes})
                    break
                except Exception as e:
                    error = f"{collection.name}: unexpected {type(e).__name__}: {e}"
                    raise
            else:
                failed = False
        finally:
            if failed:
                self.total_failures += 1
            duration = time.time() - start_time
            self.last_result = ScrapeResult(
                duration_seconds=duration,
                failed=failed,
                error=error,
                finished_at=time.time(),
            )
            self.state = ScrapeState.IDLE

        log_scrape_cycle(logger, len(self.collections), duration, failed)
        return self.last_result

    def export_all(self) -> Iterator[MetricSnapshot]:
        """Meta metrics followed by every collection's current values"""
        yield from self._meta_snapshots()
        for collection in self.collections:
            yield from collection.export_all()

    def _meta_snapshots(self) -> List[MetricSnapshot]:
        result = self.last_result
        return [
            MetricSnapshot(self.scrapes_total_name, "Current total postgresql scrapes.",
                           MetricType.COUNTER, (), {(): float(self.total_scrapes)}),
            MetricSnapshot(self.duration_name, "The last scrape duration.",
                           MetricType.GAUGE, (), {(): result.duration_seconds}),
            MetricSnapshot(self.error_name, "The last scrape error status.",
                           MetricType.GAUGE, (), {(): 1.0 if result.failed else 0.0}),
        ]

    def status(self) -> Dict:
        return {
            "state": self.state.value,
            "total_scrapes": self.total_scrapes,
            "failed_scrapes": self.total_failures,
            "last_scrape": {
                "duration_seconds": round(self.last_result.duration_seconds, 3),
                "failed": self.last_result.failed,
                "error": self.last_result.error,
                "finished_at": self.last_result.finished_at,
            },
            "collections": [collection.name for collection in self.collections],
        }
