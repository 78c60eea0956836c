"""In-process counters rendered in Prometheus text format."""

from __future__ import annotations

from threading import Lock

LabelSet = tuple[tuple[str, str], ...]


class MetricsRegistry:
    def __init__(self) -> None:
        self._lock = Lock()
        self._counters: dict[str, dict[LabelSet, float]] = {}

    def inc_counter(
        self, name: str, value: float = 1.0, *, labels: dict[str, str] | None = None
    ) -> None:
        if value < 0:
            raise ValueError("counters only go up")
        labelset = _labelset(labels)
        with self._lock:
            samples = self._counters.setdefault(name, {})
            samples[labelset] = samples.get(labelset, 0.0) + value

    def value(self, name: str, *, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            samples = self._counters.get(name)
            if samples is None:
                return 0.0
            return samples.get(_labelset(labels), 0.0)

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()

    def render(self) -> str:
        with self._lock:
            snapshot = {name: sorted(samples.items()) for name, samples in self._counters.items()}
        lines: list[str] = []
        for name in sorted(snapshot):
            lines.append(f"# TYPE {name} counter")
            lines.extend(f"{name}{_format_labels(labels)} {value}" for labels, value in snapshot[name])
        return "\n".join(lines) + "\n"


def _labelset(labels: dict[str, str] | None) -> LabelSet:
    if not labels:
        return ()
    return tuple(sorted((str(key), str(value)) for key, value in labels.items()))


def _format_labels(labels: LabelSet) -> str:
    if not labels:
        return ""
    parts = []
    for key, value in labels:
        escaped = value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')
        parts.append(f'{key}="{escaped}"')
    return "{" + ",".join(parts) + "}"


metrics = MetricsRegistry()
