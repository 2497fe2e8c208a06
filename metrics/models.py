"""Metric data models"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
from enum import Enum


class MetricType(Enum):
    """Prometheus metric types"""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDefinition:
    """Static mapping from a statistics column to an exported metric"""
    source_column: str
    exported_name: str
    help_text: str


@dataclass
class MetricSnapshot:
    """Point-in-time copy of one metric handle, handed to the exposition layer"""
    name: str
    help_text: str
    metric_type: MetricType
    label_names: Tuple[str, ...]
    values: Dict[Tuple[str, ...], float] = field(default_factory=dict)

    def value(self, *label_values: str) -> Optional[float]:
        """Value for one label tuple, None if never observed"""
        return self.values.get(tuple(label_values))


@dataclass
class ScrapeResult:
    """Outcome of the most recent scrape cycle"""
    duration_seconds: float = 0.0
    failed: bool = False
    error: Optional[str] = None
    finished_at: Optional[float] = None
