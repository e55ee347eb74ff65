"""秒级时钟。

计数器通过注入的时钟读取当前 Unix 秒，测试中使用 `FixedClock`
手动推进时间，不依赖真实等待，也不存在进程级全局时钟。
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


DEFAULT_FIXED_START = 1_700_000_000


@runtime_checkable
class Clock(Protocol):
    """提供当前 Unix 时间（秒）的能力。"""

    def now_seconds(self) -> int:
        ...


class SystemClock:
    """墙上时钟。"""

    __slots__ = ()

    def now_seconds(self) -> int:
        return int(time.time())


class FixedClock:
    """可控时钟：只在调用方推进时才前进。

    - `advance_seconds(n)`：前进 n 秒（n >= 0）。
    - `set(ts)`：直接设置当前秒。
    - `reset()`：回到构造时的起点。
    """

    __slots__ = ("_start", "_now")

    def __init__(self, start: int = DEFAULT_FIXED_START) -> None:
        self._start = int(start)
        self._now = self._start

    def now_seconds(self) -> int:
        return self._now

    def advance_seconds(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"clock cannot move backwards ({seconds}s)")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = int(timestamp)

    def reset(self) -> None:
        self._now = self._start

    def __repr__(self) -> str:
        return f"FixedClock(now={self._now})"
