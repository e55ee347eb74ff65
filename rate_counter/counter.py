from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .clock import Clock, SystemClock
from .errors import ConfigurationError, InvalidWindowError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Bucket:
    """单秒样本桶。

    - timestamp: Unix 秒；None 表示该槽位从未写入（不与纪元 0 秒混淆）
    - count: 该秒内的事件数
    """

    timestamp: Optional[int] = None
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.timestamp is None

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {"timestamp": self.timestamp, "samples": self.count}


class RateCounter:
    """Per-second event counter backed by a fixed-size ring buffer.

    Each bucket holds the number of marks seen during one Unix second. Seconds
    without any marks get no bucket, so timestamps in the ring may have gaps.
    Only the most recent ``bucket_count`` seconds with activity are kept; a new
    second overwrites the oldest slot once the ring is full.

    Not thread-safe: one owner marks and reads, without overlap.
    """

    __slots__ = ("buckets", "head", "tail", "_bucket_count", "_clock")

    def __init__(self, max_buckets: int, clock: Optional[Clock] = None) -> None:
        if isinstance(max_buckets, bool) or not isinstance(max_buckets, int) or max_buckets < 1:
            raise ConfigurationError(f"max_buckets must be a positive integer, got {max_buckets!r}")
        self._bucket_count = max_buckets
        self._clock: Clock = clock if clock is not None else SystemClock()
        self.buckets: List[Bucket] = [Bucket() for _ in range(max_buckets)]
        # head: 最近写入的桶；tail: 仍保留的最旧桶（仅用于淘汰跟踪）
        self.head = 0
        self.tail = 0
        logger.debug("rate counter created with %d buckets", max_buckets)

    @property
    def bucket_count(self) -> int:
        return self._bucket_count

    @property
    def clock(self) -> Clock:
        return self._clock

    def mark(self) -> None:
        """Record one event at the current second."""
        tick = self._clock.now_seconds()
        bucket = self.buckets[self.head]
        if bucket.timestamp == tick:
            bucket.count += 1
            return

        # 新的一秒：推进 head，覆盖该槽位原有数据
        self.head = (self.head + 1) % self._bucket_count
        bucket = self.buckets[self.head]
        bucket.timestamp = tick
        bucket.count = 1

        # head 追上 tail 时，最旧一秒的数据被覆盖
        if self.head == self.tail:
            self.tail = (self.tail + 1) % self._bucket_count

    def get_histogram(self, num_seconds: int) -> List[int]:
        """Return per-second counts for the last ``num_seconds`` seconds.

        Element 0 is the second ``now - num_seconds`` and the last element is
        ``now - 1``; the current second is still filling up and is left out.
        Seconds with no bucket are reported as 0, so the result always has
        exactly ``num_seconds`` entries, even past the ring's capacity.
        """
        if isinstance(num_seconds, bool) or not isinstance(num_seconds, int) or num_seconds < 1:
            raise InvalidWindowError(num_seconds)

        # timestamp -> count
        index: Dict[int, int] = {}
        for bucket in self.buckets:
            if bucket.timestamp is not None:
                index[bucket.timestamp] = bucket.count

        start = self._clock.now_seconds() - num_seconds
        return [index.get(start + i, 0) for i in range(num_seconds)]

    def total(self, num_seconds: int) -> int:
        return sum(self.get_histogram(num_seconds))

    def to_dict(self) -> Dict[str, object]:
        return {
            "buckets": [bucket.to_dict() for bucket in self.buckets],
            "head": self.head,
            "tail": self.tail,
        }

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    def __repr__(self) -> str:
        return f"RateCounter(bucket_count={self._bucket_count}, head={self.head}, tail={self.tail})"
