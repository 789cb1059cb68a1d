"""
Data models for the Health Day Aggregator.

This module defines the data structures used throughout the application:
- SleepCategory: Sleep-analysis values reported by the health store
- Sample: A single recorded interval of a health category
- Segment: A sample placed inside a day bucket
- DayBucket: The samples assigned to one calendar day
- DaySummary: Per-category totals for one day
- AggregationResult: Ordered summaries plus the malformed-sample count
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


STEP_COUNT = 'step_count'


def category_tag(category) -> str:
    """Plain string tag for a category given as an enum member or a string."""
    if isinstance(category, Enum):
        return str(category.value)
    return str(category)


class SleepCategory(str, Enum):
    """Sleep-analysis category values, keyed by the store's integer code."""
    IN_BED = 'in_bed'
    ASLEEP = 'asleep'
    AWAKE = 'awake'
    ASLEEP_CORE = 'asleep_core'
    ASLEEP_DEEP = 'asleep_deep'
    ASLEEP_REM = 'asleep_rem'

    @property
    def code(self) -> int:
        return _SLEEP_CODES.index(self)

    @classmethod
    def from_code(cls, code: int) -> 'SleepCategory':
        if not 0 <= code < len(_SLEEP_CODES):
            raise ValueError(f"Unknown sleep category code {code}")
        return _SLEEP_CODES[code]


_SLEEP_CODES = (
    SleepCategory.IN_BED,
    SleepCategory.ASLEEP,
    SleepCategory.AWAKE,
    SleepCategory.ASLEEP_CORE,
    SleepCategory.ASLEEP_DEEP,
    SleepCategory.ASLEEP_REM,
)


@dataclass(frozen=True)
class Sample:
    """A recorded interval. `end < start` is tolerated and counted downstream."""
    category: str
    start: datetime
    end: datetime
    quantity: Optional[float] = None


@dataclass
class Segment:
    """A sample re-expressed inside a day bucket."""
    category: str
    start: datetime
    end: datetime
    quantity: Optional[float] = None

    @property
    def duration(self) -> float:
        """Length in seconds, clamped to zero for reversed intervals."""
        return max((self.end - self.start).total_seconds(), 0.0)

    @property
    def is_malformed(self) -> bool:
        return self.end < self.start

    @classmethod
    def from_sample(cls, sample: Sample) -> 'Segment':
        start, end = sample.start, sample.end
        # A zone-less end is read in the start's zone, and the other way round
        if start.tzinfo is None and end.tzinfo is not None:
            start = start.replace(tzinfo=end.tzinfo)
        elif end.tzinfo is None and start.tzinfo is not None:
            end = end.replace(tzinfo=start.tzinfo)
        return cls(
            category=category_tag(sample.category),
            start=start,
            end=end,
            quantity=sample.quantity
        )


@dataclass
class DayBucket:
    """Segments whose start falls on `day`."""
    day: date
    segments: list = field(default_factory=list)


@dataclass(frozen=True)
class DaySummary:
    """Reduced per-category totals for one day."""
    day: date
    totals_by_category: Mapping[str, float]

    def __post_init__(self):
        object.__setattr__(
            self, 'totals_by_category', MappingProxyType(dict(self.totals_by_category))
        )

    def total(self, category: str, default: float = 0.0) -> float:
        return self.totals_by_category.get(category_tag(category), default)

    def __eq__(self, other):
        if not isinstance(other, DaySummary):
            return NotImplemented
        return self.day == other.day and dict(self.totals_by_category) == dict(other.totals_by_category)

    def __hash__(self):
        return hash((self.day, frozenset(self.totals_by_category.items())))


@dataclass(frozen=True)
class AggregationResult:
    """Day summaries, most recent first, and how many samples were clamped."""
    summaries: tuple = ()
    malformed_count: int = 0

    def __iter__(self):
        return iter(self.summaries)

    def __len__(self):
        return len(self.summaries)

    def __getitem__(self, index):
        return self.summaries[index]

    def __bool__(self):
        return bool(self.summaries)
