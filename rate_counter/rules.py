from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

from .actions import Action, EmittedAction
from .clock import Clock, SystemClock
from .counter import RateCounter
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ActionSink = Callable[[EmittedAction], None]


@dataclass(slots=True)
class RuleResult:
    actions: List[Action]
    reasons: List[str]


@dataclass(slots=True)
class RateLimitRule:
    """按 key 的频控规则（基于秒级直方图）。

    - 每个 key 一个 `RateCounter`，首次出现时创建。
    - 以最近 `window_seconds` 个已完成秒的事件总数判定；当前秒尚未结束，不计入。
    - 超过阈值时下发暂停动作；回落到阈值以内时自动恢复。
    - 只在状态切换时返回结果，避免重复下发 SUSPEND/RESUME。
    - 单线程使用，与计数器一致。
    - 每个出现过的 key 都会保留计数器，长期运行时需定期调用 `prune()` 清理空闲 key。
    """

    rule_id: str
    threshold: int
    window_seconds: int = 1
    bucket_count: Optional[int] = None
    clock: Optional[Clock] = None
    suspend_actions: Tuple[Action, ...] = (Action.SUSPEND,)
    resume_actions: Tuple[Action, ...] = (Action.RESUME,)
    action_sink: Optional[ActionSink] = None
    _counters: Dict[str, RateCounter] = field(default_factory=dict, init=False, repr=False)
    _suspended: Set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        self._require_int("threshold", self.threshold, 0)
        self._require_int("window_seconds", self.window_seconds, 1)
        if self.bucket_count is None:
            self.bucket_count = self.window_seconds
        self._require_int("bucket_count", self.bucket_count, 1)
        if self.bucket_count < self.window_seconds:
            # 容量小于窗口时，窗口内较早的秒会被提前淘汰
            raise ConfigurationError(
                f"{self.rule_id}: bucket_count ({self.bucket_count}) must cover window_seconds ({self.window_seconds})"
            )
        if self.clock is None:
            self.clock = SystemClock()

    def _require_int(self, name: str, value: object, minimum: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigurationError(f"{self.rule_id}: {name} must be an integer >= {minimum}, got {value!r}")

    def _get_or_create_counter(self, key: str) -> RateCounter:
        counter = self._counters.get(key)
        if counter is None:
            counter = RateCounter(self.bucket_count, clock=self.clock)
            self._counters[key] = counter
        return counter

    def on_event(self, key: str) -> Optional[RuleResult]:
        counter = self._get_or_create_counter(key)
        counter.mark()
        window_total = counter.total(self.window_seconds)

        if window_total > self.threshold and key not in self._suspended:
            self._suspended.add(key)
            reason = f"rate exceeded: {window_total} > {self.threshold} ({self.window_seconds}s window)"
            logger.warning("%s suspend %s: %s", self.rule_id, key, reason)
            return self._emit(key, list(self.suspend_actions), reason, window_total)
        if window_total <= self.threshold and key in self._suspended:
            self._suspended.discard(key)
            reason = f"rate recovered: {window_total} <= {self.threshold} ({self.window_seconds}s window)"
            logger.info("%s resume %s: %s", self.rule_id, key, reason)
            return self._emit(key, list(self.resume_actions), reason, window_total)
        return None

    def _emit(self, key: str, actions: List[Action], reason: str, window_total: int) -> RuleResult:
        if self.action_sink is not None:
            for action in actions:
                self.action_sink(
                    EmittedAction(
                        type=action,
                        key=key,
                        reason=reason,
                        metadata={"rule_id": self.rule_id, "window_total": window_total},
                    )
                )
        return RuleResult(actions=actions, reasons=[reason])

    def histogram(self, key: str, num_seconds: int) -> List[int]:
        counter = self._counters.get(key)
        if counter is None:
            # 未见过的 key 也走同样的参数校验
            counter = RateCounter(self.bucket_count, clock=self.clock)
        return counter.get_histogram(num_seconds)

    def is_suspended(self, key: str) -> bool:
        return key in self._suspended

    def keys(self) -> List[str]:
        return list(self._counters)

    def reset(self, key: Optional[str] = None) -> None:
        if key is None:
            self._counters.clear()
            self._suspended.clear()
            return
        self._counters.pop(key, None)
        self._suspended.discard(key)

    def prune(self) -> List[str]:
        """Drop counters for keys with no marks in their whole retained window.

        Suspended keys are kept so their next event can still emit the resume
        actions. Returns the removed keys.
        """
        now = self.clock.now_seconds()
        idle = [
            key
            for key, counter in self._counters.items()
            if key not in self._suspended
            and counter.buckets[counter.head].timestamp != now
            and counter.total(counter.bucket_count) == 0
        ]
        for key in idle:
            del self._counters[key]
        if idle:
            logger.debug("%s pruned %d idle keys", self.rule_id, len(idle))
        return idle
