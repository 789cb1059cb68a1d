"""
Reporting and output functions module.

This module handles all display and output operations:
- Printing the raw sleep sample list
- Printing per-day sleep summaries (time in bed, time asleep, efficiency)
- Printing per-day step totals
- Building (day, value) chart series and a text bar chart
- Generating JSON output
- Saving JSON to file
"""

import json
import math
from datetime import datetime, date
from typing import Optional
from zoneinfo import ZoneInfo

from healthdays.day_calendar import DayCalendar
from healthdays.metrics import (
    MetricMap,
    SLEEP_METRICS,
    STEP_METRICS,
    STEPS,
    TIME_ASLEEP,
    TIME_IN_BED,
    derive_metrics,
    time_asleep,
    time_in_bed,
    sleep_efficiency,
)
from healthdays.models import AggregationResult, Sample, SleepCategory


CHART_WIDTH = 40


def format_duration(seconds: float) -> str:
    """Render seconds as 'Xh Ym', truncating partial minutes."""
    seconds = max(seconds, 0)
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    return f"{hours}h {minutes}m"


def format_day(day: date) -> str:
    """Medium date style, e.g. 'May 1, 2023'."""
    return f"{day:%b} {day.day}, {day.year}"


def format_efficiency(efficiency: float) -> str:
    if math.isnan(efficiency):
        return "n/a"
    return f"{efficiency:.1f}%"


def _category_label(category: str) -> str:
    try:
        return f"{SleepCategory(category).code} ({category})"
    except ValueError:
        return category


def print_sample_list(samples: list[Sample], calendar: Optional[DayCalendar] = None):
    """Show raw samples with their start, end and category value, in the calendar's zone."""
    print("\n" + "=" * 70)
    print("SLEEP SAMPLES")
    print("=" * 70)

    if not samples:
        print("\nNo samples.")
        return

    for s in samples:
        start, end = s.start, s.end
        if calendar is not None:
            start, end = calendar.localize(start), calendar.localize(end)
        print(f"\n  Start Date: {start:%Y-%m-%d %H:%M:%S}")
        print(f"  End Date:   {end:%Y-%m-%d %H:%M:%S}")
        print(f"  Category Value: {_category_label(s.category)}")


def print_sleep_summaries(result: AggregationResult, metrics: MetricMap = SLEEP_METRICS):
    """Print one row per day: time in bed, time asleep and efficiency."""
    print("\n" + "=" * 70)
    print("SLEEP BY DAY")
    print("=" * 70)

    if not result:
        print("\nNo sleep data.")
        return

    for summary in result:
        print(f"\n{format_day(summary.day)}")
        print("-" * 40)
        print(f"  Time in bed:  {format_duration(time_in_bed(summary, metrics))}")
        print(f"  Time asleep:  {format_duration(time_asleep(summary, metrics))}")
        print(f"  Efficiency:   {format_efficiency(sleep_efficiency(summary, metrics))}")


def print_step_summaries(result: AggregationResult, metrics: MetricMap = STEP_METRICS):
    """Print one row per day with its step total."""
    print("\n" + "=" * 70)
    print("STEPS BY DAY")
    print("=" * 70)

    if not result:
        print("\nNo step data.")
        return

    print()
    for summary in result:
        steps = derive_metrics(summary, metrics).get(STEPS, 0.0)
        print(f"  {format_day(summary.day):<16}{int(steps)} steps")


def print_anomalies(result: AggregationResult):
    if result.malformed_count:
        print(f"\n  Warning: {result.malformed_count} sample(s) ended before they started; "
              f"counted as zero.")


def chart_series(
    result: AggregationResult,
    metrics: MetricMap = SLEEP_METRICS,
    metric: str = TIME_ASLEEP
) -> list[tuple[date, float]]:
    """(day, value) pairs for one metric, oldest day first."""
    series = [
        (summary.day, derive_metrics(summary, metrics).get(metric, 0.0))
        for summary in result
    ]
    return sorted(series, key=lambda point: point[0])


def print_chart(series: list[tuple[date, float]], title: str, value_format=None):
    """Horizontal bar chart, one bar per day, labelled by weekday."""
    print("\n" + "=" * 70)
    print(title.upper())
    print("=" * 70)

    if not series:
        print("\nNothing to chart.")
        return

    if value_format is None:
        value_format = lambda value: f"{value:.0f}"

    peak = max(value for _, value in series)
    print()
    for day, value in series:
        width = int(round(value / peak * CHART_WIDTH)) if peak > 0 else 0
        print(f"  {day:%a} {'#' * width:<{CHART_WIDTH}} {value_format(value)}")


def _json_number(value: float):
    return None if math.isnan(value) else round(value, 2)


def generate_json_output(
    result: AggregationResult,
    kind: str,
    metrics: MetricMap,
    chart_metric: str,
    tz_name: str
) -> dict:
    """
    Generate a JSON-serializable document of per-day summaries and the chart series.
    """
    daily_list = []
    for summary in result:
        daily_entry = {
            "date": str(summary.day),
            "totals_by_category": {
                category: round(total, 2)
                for category, total in sorted(summary.totals_by_category.items())
            },
            "metrics": {
                name: round(value, 2)
                for name, value in sorted(derive_metrics(summary, metrics).items())
            }
        }
        if TIME_IN_BED in metrics.values():
            daily_entry["efficiency_pct"] = _json_number(sleep_efficiency(summary, metrics))
        daily_list.append(daily_entry)

    days = [summary.day for summary in result]

    output = {
        "metadata": {
            "generated_at": datetime.now(ZoneInfo('UTC')).isoformat(),
            "kind": kind,
            "timezone": tz_name,
            "total_days": len(result),
            "malformed_samples": result.malformed_count,
            "date_range": {
                "start": str(min(days)),
                "end": str(max(days))
            } if days else None
        },
        "daily_data": daily_list,
        "chart": {
            "metric": chart_metric,
            "series": [
                {"date": str(day), "value": round(value, 2)}
                for day, value in chart_series(result, metrics, chart_metric)
            ]
        }
    }

    return output


def save_json_output(output: dict, filepath: str = 'daily_health_summary.json'):
    """
    Save the summary document to a JSON file.
    """
    with open(filepath, 'w') as f:
        json.dump(output, f, indent=2)
    print(f"JSON output saved to: {filepath}")
