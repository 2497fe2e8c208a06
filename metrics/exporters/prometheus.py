"""Prometheus exposition for the scrape orchestrator"""
from typing import Iterable, Iterator
from prometheus_client import CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from metrics.models import MetricSnapshot, MetricType


def to_metric_family(snapshot: MetricSnapshot) -> Metric:
    """Convert one snapshot into a prometheus_client metric family"""
    labels = list(snapshot.label_names)
    if snapshot.metric_type == MetricType.COUNTER:
        family = CounterMetricFamily(snapshot.name, snapshot.help_text, labels=labels)
    else:
        family = GaugeMetricFamily(snapshot.name, snapshot.help_text, labels=labels)

    for label_values, value in sorted(snapshot.values.items()):
        family.add_metric(list(label_values), value)
    return family


class PrometheusBridge:
    """Custom prometheus_client collector; every collect() runs one scrape cycle"""

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator

    def collect(self) -> Iterator[Metric]:
        for snapshot in self.orchestrator.collect():
            yield to_metric_family(snapshot)


class PrometheusExporter:
    """Owns the collector registry the HTTP layer renders"""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, orchestrator):
        self.orchestrator = orchestrator
        self.registry = CollectorRegistry(auto_describe=False)
        self.bridge = PrometheusBridge(orchestrator)
        self.registry.register(self.bridge)

    def render(self) -> bytes:
        """Scrape and render the text exposition format"""
        return generate_latest(self.registry)

    @staticmethod
    def render_snapshots(snapshots: Iterable[MetricSnapshot]) -> bytes:
        """Render snapshots without triggering a scrape"""
        registry = CollectorRegistry(auto_describe=False)
        registry.register(_StaticCollector(list(snapshots)))
        return generate_latest(registry)


class _StaticCollector:

    def __init__(self, snapshots):
        self.snapshots = snapshots

    def collect(self) -> Iterator[Metric]:
        for snapshot in self.snapshots:
            yield to_metric_family(snapshot)
