# legalchat/observability/metrics.py
from __future__ import annotations

import re
import time
from contextlib import contextmanager
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Iterator, List, Tuple


@dataclass
class TimerStat:
    count: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0


_lock = Lock()
_counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}
_timers: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], TimerStat] = {}


def _key(name: str, labels: Dict[str, Any]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
    return name, tuple(sorted((str(k), str(v)) for k, v in labels.items()))


def inc_counter(name: str, value: int = 1, **labels: Any) -> None:
    key = _key(name, labels)
    with _lock:
        _counters[key] = _counters.get(key, 0) + int(value)


def observe_ms(name: str, value_ms: float, **labels: Any) -> None:
    key = _key(name, labels)
    with _lock:
        stat = _timers.setdefault(key, TimerStat())
        stat.count += 1
        stat.total_ms += float(value_ms)
        stat.max_ms = max(stat.max_ms, float(value_ms))


@contextmanager
def timed(name: str, **labels: Any) -> Iterator[None]:
    """Observe the wall time of the wrapped block, even if it raises."""
    started = time.perf_counter()
    try:
        yield
    finally:
        observe_ms(name, (time.perf_counter() - started) * 1000, **labels)


def get_counter(name: str, **labels: Any) -> int:
    with _lock:
        return _counters.get(_key(name, labels), 0)


def reset_metrics() -> None:
    with _lock:
        _counters.clear()
        _timers.clear()


def _sanitize_metric_name(name: str) -> str:
    sanitized = re.sub(r"[^a-zA-Z0-9_:]", "_", name)
    if not re.match(r"^[a-zA-Z_:]", sanitized):
        sanitized = f"metric_{sanitized}"
    return sanitized


def _format_labels(labels: Tuple[Tuple[str, str], ...]) -> str:
    if not labels:
        return ""
    parts = []
    for k, v in labels:
        k = re.sub(r"[^a-zA-Z0-9_]", "_", k)
        v = v.replace("\\", "\\\\").replace("\n", "\\n").replace("\"", "\\\"")
        parts.append(f'{k}="{v}"')
    return "{" + ",".join(parts) + "}"


def render_prometheus_metrics() -> str:
    with _lock:
        counters = dict(_counters)
        timers = {k: TimerStat(v.count, v.total_ms, v.max_ms) for k, v in _timers.items()}

    lines: List[str] = []

    by_name: Dict[str, list] = {}
    for (name, labels), value in counters.items():
        by_name.setdefault(_sanitize_metric_name(name), []).append((labels, value))
    for metric_name in sorted(by_name):
        lines.append(f"# TYPE {metric_name} counter")
        for labels, value in sorted(by_name[metric_name]):
            lines.append(f"{metric_name}{_format_labels(labels)} {value}")

    by_name = {}
    for (name, labels), stat in timers.items():
        by_name.setdefault(_sanitize_metric_name(name), []).append((labels, stat))
    for metric_name in sorted(by_name):
        lines.append(f"# TYPE {metric_name}_count counter")
        lines.append(f"# TYPE {metric_name}_sum counter")
        lines.append(f"# TYPE {metric_name}_max gauge")
        for labels, stat in sorted(by_name[metric_name], key=lambda x: x[0]):
            label_text = _format_labels(labels)
            lines.append(f"{metric_name}_count{label_text} {stat.count}")
            lines.append(f"{metric_name}_sum{label_text} {round(stat.total_ms, 3)}")
            lines.append(f"{metric_name}_max{label_text} {round(stat.max_ms, 3)}")

    if not lines:
        return ""
    return "\n".join(lines) + "\n"
