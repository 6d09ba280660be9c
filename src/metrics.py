"""In-process metrics for the store engine.

Counters, gauges and histograms in the spirit of the Prometheus client,
implemented with the standard library only.  Every metric registers itself
in a module-level registry; :func:`generate_metrics_text` renders the whole
registry in the Prometheus text exposition format.
"""

from collections import defaultdict
from threading import Lock
from typing import Dict, Iterable, List, Tuple

LabelKey = Tuple[str, ...]


class Metric:
    """Base class holding name, help text and label names."""

    kind = "untyped"

    def __init__(self, name: str, description: str, label_names: Iterable[str] = ()):
        self.name = name
        self.description = description
        self.label_names = list(label_names)
        self._lock = Lock()
        _METRIC_REGISTRY.append(self)

    def _key(self, labels: Dict[str, str]) -> LabelKey:
        return tuple(str(labels.get(k, "")) for k in self.label_names)

    def _render_labels(self, key: LabelKey, **more: str) -> str:
        pairs = [f'{n}="{v}"' for n, v in zip(self.label_names, key)]
        pairs.extend(f'{n}="{v}"' for n, v in more.items())
        return "{" + ",".join(pairs) + "}" if pairs else ""

    def _header(self) -> List[str]:
        return [f"# HELP {self.name} {self.description}", f"# TYPE {self.name} {self.kind}"]

    def samples(self) -> List[str]:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError


class Counter(Metric):
    """Monotonic counter.  ``CART_REJECTIONS_TOTAL.inc(reason="not_in_cart")``."""

    kind = "counter"

    def __init__(self, name: str, description: str, label_names: Iterable[str] = ()):
        super().__init__(name, description, label_names)
        self._values: Dict[LabelKey, float] = defaultdict(float)

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        if amount < 0:
            raise ValueError("Counters can only increase")
        with self._lock:
            self._values[self._key(labels)] += amount

    def value(self, **labels: str) -> float:
        with self._lock:
            return self._values.get(self._key(labels), 0.0)

    def samples(self) -> List[str]:
        with self._lock:
            return [f"{self.name}{self._render_labels(k)} {v}" for k, v in self._values.items()]

    def reset(self) -> None:
        with self._lock:
            self._values.clear()


class Gauge(Metric):
    """Value that may go up and down."""

    kind = "gauge"

    def __init__(self, name: str, description: str, label_names: Iterable[str] = ()):
        super().__init__(name, description, label_names)
        self._values: Dict[LabelKey, float] = {}

    def set(self, value: float, **labels: str) -> None:
        with self._lock:
            self._values[self._key(labels)] = float(value)

    def inc(self, amount: float = 1.0, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            self._values[key] = self._values.get(key, 0.0) + float(amount)

    def value(self, **labels: str) -> float:
        with self._lock:
            return self._values.get(self._key(labels), 0.0)

    def samples(self) -> List[str]:
        with self._lock:
            return [f"{self.name}{self._render_labels(k)} {v}" for k, v in self._values.items()]

    def reset(self) -> None:
        with self._lock:
            self._values.clear()


class Histogram(Metric):
    """Histogram with fixed, ascending bucket upper bounds plus ``+Inf``."""

    kind = "histogram"

    def __init__(self, name: str, description: str, label_names: Iterable[str], buckets: Iterable[float]):
        super().__init__(name, description, label_names)
        self.buckets = sorted(float(b) for b in buckets)
        self._counts: Dict[LabelKey, List[int]] = {}
        self._sums: Dict[LabelKey, float] = defaultdict(float)

    def observe(self, value: float, **labels: str) -> None:
        key = self._key(labels)
        with self._lock:
            # last slot is the +Inf bucket
            counts = self._counts.setdefault(key, [0] * (len(self.buckets) + 1))
            for idx, upper in enumerate(self.buckets):
                if value <= upper:
                    counts[idx] += 1
            counts[-1] += 1
            self._sums[key] += float(value)

    def count(self, **labels: str) -> int:
        with self._lock:
            counts = self._counts.get(self._key(labels))
            return counts[-1] if counts else 0

    def samples(self) -> List[str]:
        lines: List[str] = []
        with self._lock:
            for key, counts in self._counts.items():
                for upper, n in zip(self.buckets, counts):
                    lines.append(f"{self.name}_bucket{self._render_labels(key, le=str(upper))} {n}")
                lines.append(f"{self.name}_bucket{self._render_labels(key, le='+Inf')} {counts[-1]}")
                lines.append(f"{self.name}_sum{self._render_labels(key)} {self._sums[key]}")
                lines.append(f"{self.name}_count{self._render_labels(key)} {counts[-1]}")
        return lines

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
            self._sums.clear()


_METRIC_REGISTRY: List[Metric] = []


def generate_metrics_text() -> bytes:
    """Render every registered metric in Prometheus text format."""
    lines: List[str] = []
    for metric in _METRIC_REGISTRY:
        lines.extend(metric._header())
        lines.extend(metric.samples())
    return "\n".join(lines).encode("utf-8")


def reset_metrics() -> None:
    for metric in _METRIC_REGISTRY:
        metric.reset()


# -----------------------------------------------------------------------------
# Metrics recorded by the store engine
# -----------------------------------------------------------------------------

# Cart operations rejected because of user input, labelled by reason
CART_REJECTIONS_TOTAL = Counter(
    name="cart_rejections_total",
    description="Cart add/remove requests rejected, labelled by reason",
    label_names=["reason"],
)

# Checkout attempts labelled by receipt status (Completed, Empty, Rejected, Unpaid, Failed)
CHECKOUT_TOTAL = Counter(
    name="checkout_total",
    description="Checkout attempts, labelled by outcome",
    label_names=["status"],
)

CHECKOUT_DURATION_SECONDS = Histogram(
    name="checkout_duration_seconds",
    description="Duration of checkout operations in seconds",
    label_names=["mode"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

REVENUE_TOTAL = Gauge(
    name="cash_register_revenue",
    description="Revenue accrued by cash registers in this process",
    label_names=[],
)

# Snapshot saves/loads, labelled by operation, format and outcome
SNAPSHOT_OPERATIONS_TOTAL = Counter(
    name="snapshot_operations_total",
    description="Snapshot save/load operations",
    label_names=["operation", "format", "status"],
)
