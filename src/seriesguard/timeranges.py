"""
Presence intervals reconstructed from range query samples.

A range query returns, for every label set, the timestamps at which the
series had a value. Consecutive samples no more than one step apart are
merged into a single interval, so a gap between two intervals of the same
label set means the series was missing for at least one evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from seriesguard.backend import RangeQueryResult


@dataclass
class PresenceInterval:
    """A label set seen continuously during [start, end)."""

    labels: dict[str, str]
    start: datetime
    end: datetime

    @property
    def length(self) -> timedelta:
        return self.end - self.start


@dataclass
class PresenceIntervalSet:
    """All presence intervals returned by one range query."""

    uri: str
    start: datetime
    end: datetime
    step: timedelta
    ranges: list[PresenceInterval] = field(default_factory=list)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def avg_life(self) -> timedelta:
        """Mean interval length, truncated to whole seconds."""
        if not self.ranges:
            return timedelta(0)
        total = sum((r.length for r in self.ranges), timedelta(0))
        return timedelta(seconds=int(total.total_seconds()) // len(self.ranges))

    @property
    def oldest(self) -> datetime | None:
        """Earliest interval start."""
        return min((r.start for r in self.ranges), default=None)

    @property
    def newest(self) -> datetime | None:
        """Latest interval end."""
        return max((r.end for r in self.ranges), default=None)

    def with_label_name(self, name: str) -> list[PresenceInterval]:
        """Intervals whose label set includes ``name``."""
        return [r for r in self.ranges if name in r.labels]

    def label_values(self, name: str) -> set[str]:
        """Distinct values of ``name`` across all intervals."""
        return {r.labels[name] for r in self.ranges if name in r.labels}


def _aware(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def build_time_ranges(result: RangeQueryResult, step: timedelta) -> PresenceIntervalSet:
    """
    Coalesce range query samples into presence intervals.

    A sample at ``ts`` extends an existing interval of the same label set
    when ``start <= ts <= end``, moving its end to ``ts + step``. Otherwise
    it opens a new interval ``[ts, ts + step)``. Samples are expected in
    timestamp order per series. Naive timestamps are read as UTC.

    Args:
        result: Range query result
        step: Query resolution

    Returns:
        PresenceIntervalSet covering the query window
    """
    trs = PresenceIntervalSet(
        uri=result.uri,
        start=_aware(result.start),
        end=_aware(result.end),
        step=step,
    )
    # intervals per label set, in the order they were opened
    by_labels: dict[frozenset, list[PresenceInterval]] = {}
    for series in result.series:
        intervals = by_labels.setdefault(frozenset(series.labels.items()), [])
        for sample in series.samples:
            ts = _aware(sample.timestamp)
            for r in intervals:
                if r.start <= ts <= r.end:
                    r.end = ts + step
                    break
            else:
                interval = PresenceInterval(labels=dict(series.labels), start=ts, end=ts + step)
                intervals.append(interval)
                trs.ranges.append(interval)
    return trs


def is_high_churn(trs: PresenceIntervalSet, label: str) -> bool:
    """
    Check if a label looks like it rotates values rapidly.

    Every interval carrying its own distinct value, with intervals on
    average shorter than half the query window, means series come and go
    under new label values rather than disappearing.
    """
    return len(trs.label_values(label)) == len(trs.ranges) and trs.avg_life < trs.duration / 2
