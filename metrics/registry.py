"""Name-keyed registry of metric handles"""
import threading
from typing import Dict, Iterator, Optional, Sequence, Tuple
from .models import MetricSnapshot, MetricType
from .errors import ConfigurationError
from logging_config import get_logger


logger = get_logger(__name__)


class MetricHandle:
    """A named gauge or counter, optionally split into one value per label tuple.

    Name, type and label names are fixed at construction. Only the stored
    values change afterwards.
    """

    def __init__(self, name: str, help_text: str, label_names: Sequence[str] = (),
                 metric_type: MetricType = MetricType.GAUGE):
        self._name = name
        self._help_text = help_text
        self._label_names = tuple(label_names)
        self._metric_type = metric_type
        self._values: Dict[Tuple[str, ...], float] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def help_text(self) -> str:
        return self._help_text

    @property
    def label_names(self) -> Tuple[str, ...]:
        return self._label_names

    @property
    def metric_type(self) -> MetricType:
        return self._metric_type

    def set(self, label_values: Sequence[str], value: float) -> None:
        """Set the value for one label tuple, creating the series on first sight"""
        key = tuple(label_values)
        if len(key) != len(self._label_names):
            raise ValueError(
                f"{self._name} expects {len(self._label_names)} label values, got {len(key)}"
            )
        self._values[key] = float(value)

    def get(self, label_values: Sequence[str] = ()) -> Optional[float]:
        return self._values.get(tuple(label_values))

    def has_shape(self, label_names: Sequence[str], metric_type: MetricType) -> bool:
        return self._label_names == tuple(label_names) and self._metric_type == metric_type

    def snapshot(self) -> MetricSnapshot:
        return MetricSnapshot(
            name=self._name,
            help_text=self._help_text,
            metric_type=self._metric_type,
            label_names=self._label_names,
            values=dict(self._values),
        )

    def __repr__(self) -> str:
        return f"MetricHandle({self._name!r}, labels={list(self._label_names)}, type={self._metric_type.value})"


class MetricRegistry:
    """Lazily populated store of metric handles, at most one per name.

    Entries are created on first sight and never removed; series that stop
    being reported keep their last value until restart.
    """

    def __init__(self):
        self._handles: Dict[str, MetricHandle] = {}
        self._lock = threading.Lock()

    def get_or_create(self, name: str, help_text: str, label_names: Sequence[str] = (),
                      metric_type: MetricType = MetricType.GAUGE) -> MetricHandle:
        """Return the handle for name, creating it with the given shape if absent.

        Raises ConfigurationError when name already exists with another shape.
        """
        handle = self._handles.get(name)
        if handle is None:
            with self._lock:
                handle = self._handles.get(name)
                if handle is None:
                    handle = MetricHandle(name, help_text, label_names, metric_type)
                    self._handles[name] = handle
                    logger.debug("Registered metric", metric=name, labels=list(handle.label_names),
                                 metric_type=metric_type.value, event_type="metric_registered")
                    return handle

        if not handle.has_shape(label_names, metric_type):
            raise ConfigurationError(
                f"Metric {name} already registered as {handle.metric_type.value} "
                f"with labels {list(handle.label_names)}, "
                f"cannot re-register as {metric_type.value} with labels {list(label_names)}"
            )
        return handle

    def set_value(self, handle: MetricHandle, label_values: Sequence[str], value: float) -> None:
        handle.set(label_values, value)

    def get(self, name: str) -> Optional[MetricHandle]:
        return self._handles.get(name)

    def names(self):
        return list(self._handles.keys())

    def export_all(self) -> Iterator[MetricSnapshot]:
        """Yield a snapshot of every registered handle"""
        for handle in list(self._handles.values()):
            yield handle.snapshot()

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)
