"""
Data loading and normalization module.

This module handles:
- Loading sleep-analysis samples from a JSON health export
- Loading step-count samples from a JSON health export
- Parsing ISO 8601 timestamps (a trailing Z means UTC)
- Skipping invalid records with a printed warning for each one

Every timestamp comes out zone-aware; one without an offset is read in the
caller's zone. Reversed intervals (end before start) are kept: the
aggregator clamps and counts them.
"""

import json
from datetime import datetime, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from healthdays.models import Sample, SleepCategory, STEP_COUNT


SLEEP_KEY = 'sleep_analysis'
STEPS_KEY = 'step_count'

# Required fields for sleep and step records
SLEEP_REQUIRED_FIELDS = {'value', 'start', 'end'}
STEP_REQUIRED_FIELDS = {'count', 'start', 'end'}

# Zone given to timestamps that carry no offset
DEFAULT_ZONE = ZoneInfo('UTC')


def validate_entry(entry: dict, index: int, required: set, label: str) -> None:
    """
    Validate that an entry is an object with all required fields.
    """
    if not isinstance(entry, dict):
        raise TypeError(f"{label} record {index}: Expected an object, got {type(entry).__name__}")
    missing_fields = required - set(entry.keys())
    if missing_fields:
        raise ValueError(
            f"{label} record {index}: Missing required fields: {', '.join(sorted(missing_fields))}. "
            f"Required: {', '.join(sorted(required))}"
        )


def parse_timestamp(value, tz: Optional[tzinfo] = None) -> datetime:
    """Parse an ISO 8601 timestamp; one without an offset is read in `tz`."""
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp format. Expected a string, got {type(value).__name__}")
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError as e:
        raise ValueError(f"Invalid timestamp format. Error: {e}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz if tz is not None else DEFAULT_ZONE)
    return parsed


def parse_sleep_category(value) -> SleepCategory:
    """Accept the store's integer code or the category name."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid sleep category {value!r}")
    if isinstance(value, int):
        return SleepCategory.from_code(value)
    try:
        return SleepCategory(str(value))
    except ValueError:
        names = ', '.join(c.value for c in SleepCategory)
        raise ValueError(f"Unknown sleep category '{value}'. Expected a code 0-5 or one of: {names}")


def read_export(filepath: str) -> dict:
    try:
        with open(filepath, 'r') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Health export file not found: {filepath}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in health export file: {e}")

    if not isinstance(data, dict):
        raise TypeError(f"Health export must be a JSON object, got {type(data).__name__}")
    return data


def _records(data: dict, key: str) -> list:
    if key not in data:
        raise KeyError(f"Health export JSON must contain '{key}' key")

    if not isinstance(data[key], list):
        raise TypeError(f"'{key}' must be a list, got {type(data[key]).__name__}")
    return data[key]


def _print_skipped(skipped: list, label: str) -> None:
    if skipped:
        print(f"  Warning: Skipped {len(skipped)} invalid {label} record(s):")
        for idx, error in skipped:
            print(f"    - Record {idx}: {error}")


def parse_sleep_records(records: list, tz: Optional[tzinfo] = None) -> list[Sample]:
    samples = []
    skipped = []
    for idx, entry in enumerate(records):
        try:
            validate_entry(entry, idx, SLEEP_REQUIRED_FIELDS, 'Sleep')
            samples.append(Sample(
                category=parse_sleep_category(entry['value']).value,
                start=parse_timestamp(entry['start'], tz),
                end=parse_timestamp(entry['end'], tz)
            ))
        except (KeyError, ValueError, TypeError) as e:
            skipped.append((idx, str(e)))

    _print_skipped(skipped, 'sleep')
    return samples


def parse_step_records(records: list, tz: Optional[tzinfo] = None) -> list[Sample]:
    samples = []
    skipped = []
    for idx, entry in enumerate(records):
        try:
            validate_entry(entry, idx, STEP_REQUIRED_FIELDS, 'Step')

            try:
                count = float(entry['count'])
                if count < 0:
                    raise ValueError(f"Step count must be non-negative, got {count}")
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid numeric values. {e}")

            samples.append(Sample(
                category=STEP_COUNT,
                start=parse_timestamp(entry['start'], tz),
                end=parse_timestamp(entry['end'], tz),
                quantity=count
            ))
        except (KeyError, ValueError, TypeError) as e:
            skipped.append((idx, str(e)))

    _print_skipped(skipped, 'step')
    return samples


def load_sleep_samples(filepath: str, tz: Optional[tzinfo] = None) -> list[Sample]:
    """
    Load sleep-analysis samples from a JSON export file.
    Skips invalid records and prints warnings for each skipped entry.
    """
    return parse_sleep_records(_records(read_export(filepath), SLEEP_KEY), tz)


def load_step_samples(filepath: str, tz: Optional[tzinfo] = None) -> list[Sample]:
    """
    Load step-count samples from a JSON export file.
    Skips invalid records and prints warnings for each skipped entry.
    """
    return parse_step_records(_records(read_export(filepath), STEPS_KEY), tz)


def load_export(filepath: str, tz: Optional[tzinfo] = None) -> dict[str, list[Sample]]:
    """
    Load every sample kind present in the export, keyed by kind.
    Kinds missing from the file load as empty lists. Timestamps without an
    offset are read in `tz` (UTC when not given).
    """
    data = read_export(filepath)
    loaded = {}
    for key, parse in ((SLEEP_KEY, parse_sleep_records), (STEPS_KEY, parse_step_records)):
        loaded[key] = parse(_records(data, key), tz) if key in data else []
    return loaded
