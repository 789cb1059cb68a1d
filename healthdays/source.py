"""
Health-data sources and fetch orchestration.

A source is passed explicitly to whatever fetches and aggregates, so tests
can substitute a fake. Fetching runs on an executor and resolves a Future;
the aggregator itself stays synchronous.
"""

from concurrent.futures import Executor, Future
from dataclasses import dataclass
from datetime import datetime, time, timedelta, tzinfo
from typing import Callable, Optional, Protocol

from healthdays.aggregator import aggregate, duration, quantity
from healthdays.data_loader import load_export, SLEEP_KEY, STEPS_KEY
from healthdays.day_calendar import DayCalendar
from healthdays.models import Sample, AggregationResult


SORT_KEYS = ('start', 'end')

# Per-kind reduction: sleep sums time, steps sum counts
MEASURES = {
    SLEEP_KEY: duration,
    STEPS_KEY: quantity,
}


@dataclass(frozen=True)
class QueryWindow:
    """Half-open range matched against each sample's start instant."""
    start: datetime
    end: datetime

    def contains(self, sample: Sample) -> bool:
        start = sample.start
        # Naive sample times are read in the window's zone
        if start.tzinfo is None and self.start.tzinfo is not None:
            start = start.replace(tzinfo=self.start.tzinfo)
        return self.start <= start < self.end

    @classmethod
    def last_days(cls, days: int, now: datetime) -> 'QueryWindow':
        if days < 0:
            raise ValueError(f"Days must be non-negative, got {days}")
        return cls(start=now - timedelta(days=days), end=now)

    @classmethod
    def calendar_days(cls, days: int, now: datetime, calendar: DayCalendar) -> 'QueryWindow':
        """
        Today so far plus the `days - 1` whole calendar days before it,
        starting at local midnight in the calendar's zone.
        """
        if days < 1:
            raise ValueError(f"Days must be at least 1, got {days}")
        first_day = calendar.truncate_to_day(now) - timedelta(days=days - 1)
        start = calendar.localize(datetime.combine(first_day, time()))
        return cls(start=start, end=now)


class HealthDataSource(Protocol):
    def fetch_samples(
        self,
        kind: str,
        window: Optional[QueryWindow] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
        sort_by: str = 'start'
    ) -> list[Sample]:
        ...


def select_samples(
    samples: list[Sample],
    window: Optional[QueryWindow] = None,
    limit: Optional[int] = None,
    newest_first: bool = True,
    sort_by: str = 'start'
) -> list[Sample]:
    """Filter, sort and limit samples the way a store query would."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Cannot sort by '{sort_by}'. Use one of: {', '.join(SORT_KEYS)}")

    selected = [s for s in samples if window is None or window.contains(s)]
    selected.sort(key=lambda s: getattr(s, sort_by), reverse=newest_first)

    # 0 means no limit
    if limit:
        selected = selected[:limit]
    return selected


class JsonFileSource:
    """
    Serves samples from a JSON health export, loaded once on first use.
    Timestamps without an offset are read in `tz`.
    """

    def __init__(self, filepath: str, tz: Optional[tzinfo] = None):
        self.filepath = filepath
        self.tz = tz
        self._samples = None

    def _load(self) -> dict[str, list[Sample]]:
        if self._samples is None:
            self._samples = load_export(self.filepath, self.tz)
        return self._samples

    def fetch_samples(
        self,
        kind: str,
        window: Optional[QueryWindow] = None,
        limit: Optional[int] = None,
        newest_first: bool = True,
        sort_by: str = 'start'
    ) -> list[Sample]:
        samples = self._load()
        if kind not in samples:
            raise KeyError(f"Unknown sample kind '{kind}'. Use one of: {', '.join(sorted(samples))}")
        return select_samples(samples[kind], window, limit, newest_first, sort_by)


def fetch_and_aggregate(
    source: HealthDataSource,
    kind: str,
    calendar: DayCalendar,
    window: Optional[QueryWindow],
    executor: Executor,
    measure: Optional[Callable] = None,
    sort_by: str = 'start'
) -> Future:
    """
    Fetch samples of `kind` on `executor` and aggregate them by day.
    Returns a Future resolving to an AggregationResult; fetch errors are
    raised from `future.result()`.
    """
    if measure is None:
        measure = MEASURES.get(kind, duration)

    def run() -> AggregationResult:
        samples = source.fetch_samples(kind, window=window, sort_by=sort_by)
        return aggregate(samples, calendar, measure)

    return executor.submit(run)
