"""
Health Day Aggregator - Main Module
===================================

Groups sleep-analysis and step-count samples from a health export into
calendar days and prints per-day lists and charts.

Key Design Decisions:
1. Samples are bucketed by the calendar day of their START instant, in the
   timezone given by --tz (uses `zoneinfo`)
2. Samples that end before they start count as zero and are reported
3. Days are listed most recent first; charts run oldest to newest
4. The data source is injected, fetched on a worker thread, and the latest
   result is published to a state cell read by the printers

This module serves as the CLI entry point and orchestrates the workflow by
importing functions and classes from specialized modules.
"""

import argparse
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

# Import from modules
from healthdays.data_loader import SLEEP_KEY, STEPS_KEY
from healthdays.day_calendar import ZoneCalendar, DEFAULT_TIMEZONE
from healthdays.metrics import SLEEP_METRICS, STEP_METRICS, STEPS, TIME_ASLEEP
from healthdays.reporter import (
    chart_series,
    format_duration,
    generate_json_output,
    print_anomalies,
    print_chart,
    print_sample_list,
    print_sleep_summaries,
    print_step_summaries,
    save_json_output
)
from healthdays.source import JsonFileSource, QueryWindow, fetch_and_aggregate
from healthdays.state import SummaryCell, publish_when_done


# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_DAYS = 7
DEFAULT_SAMPLE_LIMIT = 10

# screen -> (sample kind, metric map, chart metric, chart title)
SCREENS = {
    'sleep': (SLEEP_KEY, SLEEP_METRICS, TIME_ASLEEP, 'Time Asleep'),
    'steps': (STEPS_KEY, STEP_METRICS, STEPS, 'Step Count'),
}


# =============================================================================
# CLI INTERFACE
# =============================================================================

def create_parser():
    """Create and return the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog='Health Day Aggregator',
        description='Aggregates sleep and step samples from a health export into per-day summaries.',
        epilog=('Example: python main.py --input data/export.json --screen sleep --tz Europe/Paris '
                '--now 2023-05-04T12:00:00Z --show-summary --show-chart'),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--input',
        type=str,
        default='data/export.json',
        help='Path to health export JSON file (default: data/export.json)'
    )

    parser.add_argument(
        '--screen',
        choices=['sleep', 'steps', 'samples'],
        default='sleep',
        help='What to show: per-day sleep, per-day steps, or raw sleep samples (default: sleep)'
    )

    parser.add_argument(
        '--tz',
        type=str,
        default=DEFAULT_TIMEZONE,
        help=f'IANA timezone used for day boundaries (default: {DEFAULT_TIMEZONE})'
    )

    parser.add_argument(
        '--days',
        type=int,
        default=None,
        help=('Only include samples starting within the last N days; 0 for all '
              f'(default: {DEFAULT_DAYS} for sleep and steps, all for samples)')
    )

    parser.add_argument(
        '--now',
        type=str,
        default=None,
        help='ISO 8601 instant treated as "now" for the --days window (default: current time)'
    )

    parser.add_argument(
        '--limit',
        type=int,
        default=DEFAULT_SAMPLE_LIMIT,
        help=f'Maximum samples on the samples screen; 0 for no limit (default: {DEFAULT_SAMPLE_LIMIT})'
    )

    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output file path for the per-day JSON summary (default: none)'
    )

    parser.add_argument(
        '--show-summary',
        action='store_true',
        help='Print the per-day list to console (default: False)'
    )

    parser.add_argument(
        '--show-chart',
        action='store_true',
        help='Print a per-day bar chart to console (default: False)'
    )

    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show all outputs (summary, chart, anomalies)'
    )

    return parser


def resolve_window(args, calendar: ZoneCalendar):
    """
    Query window for the chosen screen. Steps cover today plus whole days
    back to local midnight; sleep covers a rolling span ending now; raw
    samples are unfiltered unless --days is given.
    """
    days = args.days
    if days is None:
        days = None if args.screen == 'samples' else DEFAULT_DAYS
    if not days:
        return None
    if args.now:
        try:
            now = datetime.fromisoformat(args.now.replace('Z', '+00:00'))
        except ValueError as e:
            raise ValueError(f"Invalid --now timestamp. Error: {e}")
        now = calendar.localize(now)
    else:
        now = datetime.now(calendar.tz)
    if args.screen == 'steps':
        return QueryWindow.calendar_days(days, now, calendar)
    return QueryWindow.last_days(days, now)


def run_samples_screen(source, calendar, window, limit):
    samples = source.fetch_samples(SLEEP_KEY, window=window, limit=limit, newest_first=True)
    print(f"  Fetched {len(samples)} sleep samples")
    print_sample_list(samples, calendar)


def run_summary_screen(args, source, calendar, window):
    kind, metrics, chart_metric, chart_title = SCREENS[args.screen]

    cell = SummaryCell()
    # Sleep is queried newest-ending first
    sort_by = 'end' if kind == SLEEP_KEY else 'start'

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = fetch_and_aggregate(source, kind, calendar, window, executor, sort_by=sort_by)
        publish_when_done(future, cell)

    # Executor shutdown has run the done callback; re-raise any fetch error
    future.result()
    result = cell.value
    print(f"  Created {len(result)} daily summaries")

    print_anomalies(result)

    if args.verbose or args.show_summary:
        if kind == SLEEP_KEY:
            print_sleep_summaries(result, metrics)
        else:
            print_step_summaries(result, metrics)

    if args.verbose or args.show_chart:
        value_format = format_duration if kind == SLEEP_KEY else None
        print_chart(chart_series(result, metrics, chart_metric), chart_title, value_format)

    if args.output:
        print("\nGenerating JSON output...")
        json_output = generate_json_output(result, kind, metrics, chart_metric, args.tz)
        save_json_output(json_output, args.output)


def main(argv=None):
    """Main entry point for the application."""
    parser = create_parser()
    args = parser.parse_args(argv)

    print("\nHealth Day Aggregator")
    print("=" * 70)

    try:
        calendar = ZoneCalendar(args.tz)
        window = resolve_window(args, calendar)
        source = JsonFileSource(args.input, calendar.tz)

        print(f"\nLoading {args.screen} data (days bucketed in {args.tz})...")
        if args.screen == 'samples':
            run_samples_screen(source, calendar, window, args.limit)
        else:
            run_summary_screen(args, source, calendar, window)

        print("\n" + "=" * 70)
        print("Aggregation complete!")
        print("=" * 70 + "\n")

    except FileNotFoundError as e:
        print(f"\nFile Error: {e}", flush=True)
        print("   Check that the input file exists and the path is correct.\n", flush=True)
        return 1
    except (KeyError, TypeError) as e:
        print(f"\nData Structure Error: {e}", flush=True)
        print("   The JSON file structure is invalid.", flush=True)
        print("   The export must contain 'sleep_analysis' and/or 'step_count' lists.\n", flush=True)
        return 1
    except ValueError as e:
        print(f"\nData Validation Error: {e}", flush=True)
        print("   Check your options and input data for invalid values or formats.\n", flush=True)
        return 1
    except Exception as e:
        print(f"\nUnexpected error: {e}\n", flush=True)
        return 1

    return 0


if __name__ == '__main__':
    exit(main())
