"""Recording how long each query took, and whether it failed."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from sonoscope.errlog import log_error

_NS_PER_US = 1_000
_NS_PER_MS = 1_000_000
_NS_PER_S = 1_000_000_000


def _to_nanoseconds(duration):
    if isinstance(duration, timedelta):
        whole = (duration.days * 86_400 + duration.seconds) * _NS_PER_S
        return whole + duration.microseconds * _NS_PER_US
    return round(duration * _NS_PER_S)


def _with_fraction(value, unit):
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    width = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(width, '0').rstrip('0')}"


def _format_duration(duration):
    """Format a duration (seconds or timedelta) as e.g. "1.5s", "2ms" or "1h0m3s"."""
    ns = _to_nanoseconds(duration)
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns == 0:
        return "0s"
    if ns < _NS_PER_US:
        return f"{sign}{ns}ns"
    if ns < _NS_PER_MS:
        return f"{sign}{_with_fraction(ns, _NS_PER_US)}µs"
    if ns < _NS_PER_S:
        return f"{sign}{_with_fraction(ns, _NS_PER_MS)}ms"

    total_seconds, fraction = divmod(ns, _NS_PER_S)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = _with_fraction(seconds * _NS_PER_S + fraction, _NS_PER_S) + "s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return sign + text


@dataclass
class QueryData:
    """The outcome of one query, for later processing."""

    query_obj: str = ""
    namespace: str = ""
    elapsed_time: str = ""
    error: BaseException | None = None

    def to_dict(self):
        """Return the JSON form, leaving out empty fields."""
        data = {}
        if self.query_obj:
            data["queryobj"] = self.query_obj
        if self.namespace:
            data["namespace"] = self.namespace
        if self.elapsed_time:
            data["time"] = self.elapsed_time
        if self.error is not None:
            data["error"] = str(self.error)
        return data


@dataclass
class QueryRecorder:
    """Keeps the sequence of queries made during a run."""

    queries: list[QueryData] = field(default_factory=list)

    def record_query(self, name, namespace, duration, error):
        """Record a query by name, namespace, duration and error (or None)."""
        if error is not None:
            log_error(RuntimeError(f"error querying {name}: {error}"))
        self.queries.append(
            QueryData(
                query_obj=name,
                namespace=namespace,
                elapsed_time=_format_duration(duration),
                error=error,
            )
        )

    def dump_query_data(self, filepath):
        """Write the recorded queries as JSON to filepath, creating its directory."""
        data = json.dumps(
            [query.to_dict() for query in self.queries], separators=(",", ":")
        )
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(data, encoding="utf-8")