"""
Day-bucketed interval aggregation.

This module handles:
- Grouping samples into one bucket per calendar day of their start instant
- Reducing each bucket to per-category totals
- Counting malformed samples (end before start) instead of aborting
"""

from collections import defaultdict
from datetime import date
from typing import Callable, Iterable

from healthdays.day_calendar import DayCalendar
from healthdays.models import Sample, Segment, DayBucket, DaySummary, AggregationResult


def duration(segment: Segment) -> float:
    """Seconds spent in the segment."""
    return segment.duration


def quantity(segment: Segment) -> float:
    """The segment's recorded quantity (e.g. steps), clamped at zero."""
    if segment.quantity is None:
        return 0.0
    return max(float(segment.quantity), 0.0)


def _is_malformed(segment: Segment, measure: Callable) -> bool:
    if segment.is_malformed:
        return True
    return measure is quantity and segment.quantity is not None and segment.quantity < 0


def bucket_by_day(samples: Iterable[Sample], calendar: DayCalendar) -> dict[date, DayBucket]:
    """
    Assign each sample to the bucket of the calendar day its start falls on.
    Samples spanning midnight stay whole in the start day's bucket.
    """
    buckets = defaultdict(lambda: DayBucket(day=None))

    for sample in samples:
        day = calendar.truncate_to_day(sample.start)
        buckets[day].day = day
        buckets[day].segments.append(Segment.from_sample(sample))

    return dict(buckets)


def summarize_bucket(bucket: DayBucket, measure: Callable = duration) -> DaySummary:
    """Sum `measure` over the bucket's segments, per category."""
    totals = {}
    for segment in bucket.segments:
        totals[segment.category] = totals.get(segment.category, 0.0) + measure(segment)
    return DaySummary(day=bucket.day, totals_by_category=totals)


def aggregate(
    samples: Iterable[Sample],
    calendar: DayCalendar,
    measure: Callable = duration
) -> AggregationResult:
    """
    Aggregate samples into per-day summaries, most recent day first.

    A category is present in a day's totals iff at least one of its samples
    started that day, even when its total is zero.
    """
    samples = list(samples)
    buckets = bucket_by_day(samples, calendar)

    malformed = sum(
        1 for bucket in buckets.values()
        for segment in bucket.segments
        if _is_malformed(segment, measure)
    )

    summaries = tuple(
        summarize_bucket(buckets[day], measure)
        for day in sorted(buckets.keys(), reverse=True)
    )

    return AggregationResult(summaries=summaries, malformed_count=malformed)
