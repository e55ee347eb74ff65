"""秒级事件计数器。

固定容量环形缓冲区记录每秒事件数，按需还原最近 N 秒的直方图；
附带基于该计数器的单线程频控规则。
"""

from .clock import Clock, SystemClock, FixedClock
from .counter import Bucket, RateCounter
from .errors import RateCounterError, ConfigurationError, InvalidWindowError
from .actions import Action, EmittedAction
from .rules import RateLimitRule, RuleResult
from .config import RateCounterConfig, RateLimitRuleConfig, RateFilterConfig, configure_logging

__version__ = "1.0.0"

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "Bucket",
    "RateCounter",
    "RateCounterError",
    "ConfigurationError",
    "InvalidWindowError",
    "Action",
    "EmittedAction",
    "RateLimitRule",
    "RuleResult",
    "RateCounterConfig",
    "RateLimitRuleConfig",
    "RateFilterConfig",
    "configure_logging",
]
