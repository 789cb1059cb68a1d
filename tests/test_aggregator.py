import math
import random
import unittest
from datetime import date, datetime, timezone

from healthdays.aggregator import aggregate, bucket_by_day, quantity, summarize_bucket
from healthdays.day_calendar import ZoneCalendar
from healthdays.metrics import sleep_efficiency, time_asleep, time_in_bed
from healthdays.models import Sample, SleepCategory, STEP_COUNT


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


IN_BED = SleepCategory.IN_BED.value
ASLEEP = SleepCategory.ASLEEP.value
HOUR = 3600.0


class TestAggregate(unittest.TestCase):
    def setUp(self) -> None:
        self.calendar = ZoneCalendar('UTC')
        self.samples = [
            Sample(ASLEEP, utc(2023, 5, 1, 23, 0), utc(2023, 5, 2, 1, 0)),
            Sample(IN_BED, utc(2023, 5, 1, 22, 30), utc(2023, 5, 2, 6, 30)),
            Sample(IN_BED, utc(2023, 5, 3, 23, 0), utc(2023, 5, 4, 7, 0)),
            Sample(ASLEEP, utc(2023, 5, 3, 23, 30), utc(2023, 5, 4, 6, 30)),
            Sample(IN_BED, utc(2023, 5, 2, 0, 15), utc(2023, 5, 2, 0, 45)),
        ]

    def test_night_crossing_midnight_buckets_by_start_day(self) -> None:
        result = aggregate(self.samples[:2], self.calendar)

        self.assertEqual(len(result), 1)
        summary = result[0]
        self.assertEqual(summary.day, date(2023, 5, 1))
        self.assertEqual(time_asleep(summary), 2 * HOUR)
        self.assertEqual(time_in_bed(summary), 8 * HOUR)
        self.assertAlmostEqual(sleep_efficiency(summary), 25.0)
        self.assertEqual(result.malformed_count, 0)

    def test_one_summary_per_distinct_start_day(self) -> None:
        result = aggregate(self.samples, self.calendar)
        days = {self.calendar.truncate_to_day(s.start) for s in self.samples}
        self.assertEqual(len(result), len(days))

    def test_summaries_most_recent_first(self) -> None:
        result = aggregate(self.samples, self.calendar)
        self.assertEqual(
            [s.day for s in result],
            [date(2023, 5, 3), date(2023, 5, 2), date(2023, 5, 1)],
        )

    def test_empty_input(self) -> None:
        result = aggregate([], self.calendar)
        self.assertEqual(len(result), 0)
        self.assertEqual(list(result), [])
        self.assertEqual(result.malformed_count, 0)

    def test_reversed_interval_counts_as_zero(self) -> None:
        samples = self.samples[:2] + [
            Sample(ASLEEP, utc(2023, 5, 1, 23, 59), utc(2023, 5, 1, 20, 0)),
        ]
        result = aggregate(samples, self.calendar)

        self.assertEqual(result.malformed_count, 1)
        self.assertEqual(time_asleep(result[0]), 2 * HOUR)
        for summary in result:
            for total in summary.totals_by_category.values():
                self.assertGreaterEqual(total, 0)

    def test_zero_duration_category_is_present(self) -> None:
        samples = [Sample(ASLEEP, utc(2023, 5, 1, 23, 0), utc(2023, 5, 1, 22, 0))]
        result = aggregate(samples, self.calendar)
        self.assertEqual(dict(result[0].totals_by_category), {ASLEEP: 0.0})

    def test_absent_category_is_omitted(self) -> None:
        result = aggregate([self.samples[1]], self.calendar)
        self.assertNotIn(ASLEEP, result[0].totals_by_category)
        self.assertTrue(math.isnan(sleep_efficiency(aggregate([self.samples[0]], self.calendar)[0])))

    def test_idempotent(self) -> None:
        first = aggregate(self.samples, self.calendar)
        second = aggregate(self.samples, self.calendar)
        self.assertEqual(list(first), list(second))

    def test_order_invariant(self) -> None:
        expected = set(aggregate(self.samples, self.calendar))
        shuffled = list(self.samples)
        random.Random(7).shuffle(shuffled)
        self.assertEqual(set(aggregate(shuffled, self.calendar)), expected)
        self.assertEqual(set(aggregate(reversed(self.samples), self.calendar)), expected)

    def test_day_boundary_follows_calendar_timezone(self) -> None:
        # 02:00 UTC on May 2 is 22:00 on May 1 in New York (EDT)
        sample = Sample(ASLEEP, utc(2023, 5, 2, 2, 0), utc(2023, 5, 2, 3, 0))
        self.assertEqual(aggregate([sample], ZoneCalendar('UTC'))[0].day, date(2023, 5, 2))
        self.assertEqual(aggregate([sample], ZoneCalendar('America/New_York'))[0].day, date(2023, 5, 1))

    def test_accepts_enum_categories(self) -> None:
        sample = Sample(SleepCategory.IN_BED, utc(2023, 5, 1, 22, 0), utc(2023, 5, 1, 23, 0))
        summary = aggregate([sample], self.calendar)[0]
        self.assertEqual(summary.total(SleepCategory.IN_BED), HOUR)
        self.assertEqual(summary.total(IN_BED), HOUR)

    def test_zone_less_end_is_read_in_start_zone(self) -> None:
        sample = Sample(ASLEEP, utc(2023, 5, 1, 23), datetime(2023, 5, 2, 1))
        result = aggregate([sample], self.calendar)

        self.assertEqual(result.malformed_count, 0)
        self.assertEqual(result[0].day, date(2023, 5, 1))
        self.assertEqual(time_asleep(result[0]), 2 * HOUR)

    def test_zone_less_start_after_aware_end_is_malformed(self) -> None:
        samples = [
            Sample(ASLEEP, datetime(2023, 5, 1, 23), utc(2023, 5, 1, 22)),
            Sample(IN_BED, utc(2023, 5, 1, 22), datetime(2023, 5, 2, 6)),
        ]
        result = aggregate(samples, self.calendar)

        self.assertEqual(result.malformed_count, 1)
        self.assertEqual(result[0].total(ASLEEP), 0.0)
        self.assertEqual(result[0].total(IN_BED), 8 * HOUR)

    def test_summary_totals_are_read_only(self) -> None:
        summary = aggregate(self.samples, self.calendar)[0]
        with self.assertRaises(TypeError):
            summary.totals_by_category[ASLEEP] = 1.0


class TestQuantityMeasure(unittest.TestCase):
    def test_step_counts_sum_per_day(self) -> None:
        samples = [
            Sample(STEP_COUNT, utc(2023, 5, 1, 8), utc(2023, 5, 1, 9), quantity=1200),
            Sample(STEP_COUNT, utc(2023, 5, 1, 17), utc(2023, 5, 1, 18), quantity=5400),
            Sample(STEP_COUNT, utc(2023, 5, 2, 12), utc(2023, 5, 2, 13), quantity=3100),
        ]
        result = aggregate(samples, ZoneCalendar('UTC'), quantity)

        self.assertEqual([s.day for s in result], [date(2023, 5, 2), date(2023, 5, 1)])
        self.assertEqual(result[0].total(STEP_COUNT), 3100)
        self.assertEqual(result[1].total(STEP_COUNT), 6600)

    def test_negative_quantity_is_clamped_and_counted(self) -> None:
        samples = [
            Sample(STEP_COUNT, utc(2023, 5, 1, 8), utc(2023, 5, 1, 9), quantity=-50),
            Sample(STEP_COUNT, utc(2023, 5, 1, 10), utc(2023, 5, 1, 11), quantity=500),
        ]
        result = aggregate(samples, ZoneCalendar('UTC'), quantity)
        self.assertEqual(result.malformed_count, 1)
        self.assertEqual(result[0].total(STEP_COUNT), 500)


class TestBuckets(unittest.TestCase):
    def test_bucket_keeps_every_segment(self) -> None:
        samples = [
            Sample(IN_BED, utc(2023, 5, 1, 22), utc(2023, 5, 2, 6)),
            Sample(ASLEEP, utc(2023, 5, 1, 23), utc(2023, 5, 2, 5)),
        ]
        buckets = bucket_by_day(samples, ZoneCalendar('UTC'))

        self.assertEqual(list(buckets), [date(2023, 5, 1)])
        bucket = buckets[date(2023, 5, 1)]
        self.assertEqual(len(bucket.segments), 2)

        summary = summarize_bucket(bucket)
        self.assertEqual(summary.total(IN_BED), 8 * HOUR)
        self.assertEqual(summary.total(ASLEEP), 6 * HOUR)


if __name__ == '__main__':
    unittest.main()
