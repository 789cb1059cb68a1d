"""
Derived per-day metrics.

Categories are mapped to metric names through a MetricMap, so a consumer
decides which categories count as "asleep" rather than the aggregator.
"""

import math
from typing import Mapping

from healthdays.models import DaySummary, SleepCategory, STEP_COUNT, category_tag


MetricMap = Mapping[str, str]

TIME_IN_BED = 'time_in_bed'
TIME_ASLEEP = 'time_asleep'
TIME_AWAKE = 'time_awake'
STEPS = 'steps'

SLEEP_METRICS: MetricMap = {
    SleepCategory.IN_BED.value: TIME_IN_BED,
    SleepCategory.ASLEEP.value: TIME_ASLEEP,
    SleepCategory.ASLEEP_CORE.value: TIME_ASLEEP,
    SleepCategory.ASLEEP_DEEP.value: TIME_ASLEEP,
    SleepCategory.ASLEEP_REM.value: TIME_ASLEEP,
    SleepCategory.AWAKE.value: TIME_AWAKE,
}

STEP_METRICS: MetricMap = {
    STEP_COUNT: STEPS,
}


def metric_map(pairs: Mapping) -> MetricMap:
    """Build a MetricMap from category keys given as enum members or strings."""
    return {category_tag(category): name for category, name in pairs.items()}


def derive_metrics(summary: DaySummary, metrics: MetricMap = SLEEP_METRICS) -> dict[str, float]:
    """
    Fold a day's category totals into named metrics.
    Metrics with no contributing category that day are left out.
    """
    values = {}
    for category, total in summary.totals_by_category.items():
        name = metrics.get(category)
        if name is None:
            continue
        values[name] = values.get(name, 0.0) + total
    return values


def time_asleep(summary: DaySummary, metrics: MetricMap = SLEEP_METRICS) -> float:
    return derive_metrics(summary, metrics).get(TIME_ASLEEP, 0.0)


def time_in_bed(summary: DaySummary, metrics: MetricMap = SLEEP_METRICS) -> float:
    return derive_metrics(summary, metrics).get(TIME_IN_BED, 0.0)


def sleep_efficiency(summary: DaySummary, metrics: MetricMap = SLEEP_METRICS) -> float:
    """Asleep time as a percentage of in-bed time; NaN when nothing was in bed."""
    in_bed = time_in_bed(summary, metrics)
    if in_bed == 0:
        return math.nan
    return time_asleep(summary, metrics) / in_bed * 100
