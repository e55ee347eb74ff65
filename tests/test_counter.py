from __future__ import annotations

import json
import unittest

from rate_counter import Bucket, ConfigurationError, FixedClock, InvalidWindowError, RateCounter


class HistogramScenarioTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FixedClock()
        self.clock.advance_seconds(1)
        self.rc = RateCounter(5, clock=self.clock)

    def mark(self, times: int) -> None:
        for _ in range(times):
            self.rc.mark()

    def test_histogram_no_gaps(self) -> None:
        self.mark(3)
        self.clock.advance_seconds(1)
        self.mark(2)
        self.clock.advance_seconds(1)
        self.mark(1)
        self.clock.advance_seconds(1)

        self.assertEqual(self.rc.get_histogram(5), [0, 0, 3, 2, 1])

    def test_histogram_gaps_are_zero_filled(self) -> None:
        self.mark(3)
        self.clock.advance_seconds(3)
        self.mark(2)
        self.clock.advance_seconds(1)

        self.assertEqual(self.rc.get_histogram(5), [0, 3, 0, 0, 2])

    def test_histogram_after_long_jump(self) -> None:
        self.mark(3)
        self.clock.advance_seconds(7)
        self.mark(2)
        self.clock.advance_seconds(1)
        self.mark(1)
        self.clock.advance_seconds(1)

        self.assertEqual(self.rc.get_histogram(5), [0, 0, 0, 2, 1])

    def test_histogram_larger_than_capacity(self) -> None:
        self.mark(2)
        self.clock.advance_seconds(1)
        self.mark(1)
        self.clock.advance_seconds(1)

        self.assertEqual(self.rc.get_histogram(10), [0, 0, 0, 0, 0, 0, 0, 0, 2, 1])


class RateCounterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FixedClock(start=1_800_000_000)

    def test_new_counter_is_empty(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        self.assertEqual(rc.bucket_count, 3)
        self.assertEqual((rc.head, rc.tail), (0, 0))
        self.assertTrue(all(b.is_empty and b.count == 0 for b in rc.buckets))
        self.assertEqual(rc.get_histogram(4), [0, 0, 0, 0])

    def test_same_second_marks_coalesce(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        for _ in range(1000):
            rc.mark()
        self.assertEqual(rc.head, 1)
        self.assertEqual(rc.buckets[1], Bucket(timestamp=1_800_000_000, count=1000))
        self.clock.advance_seconds(1)
        self.assertEqual(rc.get_histogram(1), [1000])

    def test_current_second_is_not_reported(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        rc.mark()
        self.clock.advance_seconds(1)
        rc.mark()
        rc.mark()
        # 最后一个元素对应 now - 1
        self.assertEqual(rc.get_histogram(2), [0, 1])

    def test_ring_eviction_drops_oldest_second(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        for second in range(4):
            for _ in range(second + 1):
                rc.mark()
            self.clock.advance_seconds(1)

        # 4 个不同的秒写入 3 个槽位：第一秒已被覆盖
        self.assertEqual(rc.get_histogram(4), [0, 2, 3, 4])
        timestamps = sorted(b.timestamp for b in rc.buckets)
        self.assertEqual(timestamps, [1_800_000_001, 1_800_000_002, 1_800_000_003])

        for _ in range(10):
            self.clock.advance_seconds(1)
            rc.mark()
        self.assertNotIn(1_800_000_000, [b.timestamp for b in rc.buckets])

    def test_head_and_tail_advance(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        positions = []
        for _ in range(5):
            rc.mark()
            positions.append((rc.head, rc.tail))
            self.clock.advance_seconds(1)
        self.assertEqual(positions, [(1, 0), (2, 0), (0, 1), (1, 2), (2, 0)])

    def test_single_bucket_keeps_latest_second(self) -> None:
        rc = RateCounter(1, clock=self.clock)
        rc.mark()
        rc.mark()
        self.clock.advance_seconds(1)
        rc.mark()
        self.clock.advance_seconds(1)
        self.assertEqual((rc.head, rc.tail), (0, 0))
        self.assertEqual(rc.get_histogram(3), [0, 0, 1])

    def test_empty_buckets_do_not_shadow_epoch_zero(self) -> None:
        clock = FixedClock(start=0)
        rc = RateCounter(4, clock=clock)
        rc.mark()
        rc.mark()
        clock.advance_seconds(1)
        # 槽位 0 从未写入，不应覆盖纪元 0 秒的计数
        self.assertTrue(rc.buckets[0].is_empty)
        self.assertEqual(rc.get_histogram(1), [2])

    def test_histogram_does_not_mutate(self) -> None:
        rc = RateCounter(3, clock=self.clock)
        rc.mark()
        self.clock.advance_seconds(1)
        before = rc.to_dict()
        rc.get_histogram(10)
        self.assertEqual(rc.to_dict(), before)

    def test_total_sums_window(self) -> None:
        rc = RateCounter(5, clock=self.clock)
        for n in (4, 0, 2):
            for _ in range(n):
                rc.mark()
            self.clock.advance_seconds(1)
        self.assertEqual(rc.total(3), 6)
        self.assertEqual(rc.total(1), 2)

    def test_default_clock_is_system_clock(self) -> None:
        rc = RateCounter(2)
        rc.mark()
        self.assertEqual(len(rc.get_histogram(3)), 3)


class ValidationTests(unittest.TestCase):
    def test_rejects_non_positive_capacity(self) -> None:
        for bad in (0, -1):
            with self.assertRaises(ConfigurationError):
                RateCounter(bad)

    def test_rejects_non_integer_capacity(self) -> None:
        for bad in (2.5, "3", True, None):
            with self.assertRaises(ConfigurationError):
                RateCounter(bad)  # type: ignore[arg-type]

    def test_rejects_non_positive_window(self) -> None:
        rc = RateCounter(3, clock=FixedClock())
        for bad in (0, -5):
            with self.assertRaises(InvalidWindowError) as ctx:
                rc.get_histogram(bad)
            self.assertEqual(ctx.exception.num_seconds, bad)

    def test_window_error_is_value_error(self) -> None:
        rc = RateCounter(3, clock=FixedClock())
        with self.assertRaises(ValueError):
            rc.get_histogram(1.5)  # type: ignore[arg-type]


class SerializationTests(unittest.TestCase):
    def test_to_dict_uses_original_field_names(self) -> None:
        clock = FixedClock(start=100)
        rc = RateCounter(2, clock=clock)
        rc.mark()
        self.assertEqual(
            rc.to_dict(),
            {
                "buckets": [
                    {"timestamp": None, "samples": 0},
                    {"timestamp": 100, "samples": 1},
                ],
                "head": 1,
                "tail": 0,
            },
        )

    def test_to_json(self) -> None:
        rc = RateCounter(2, clock=FixedClock(start=100))
        rc.mark()
        data = json.loads(rc.to_json())
        self.assertEqual(data["buckets"][1], {"timestamp": 100, "samples": 1})
        self.assertIsNone(data["buckets"][0]["timestamp"])

    def test_repr(self) -> None:
        self.assertEqual(repr(RateCounter(4, clock=FixedClock())), "RateCounter(bucket_count=4, head=0, tail=0)")


if __name__ == "__main__":
    unittest.main()
