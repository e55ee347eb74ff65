from __future__ import annotations


class RateCounterError(Exception):
    """计数器相关错误的基类。"""


class ConfigurationError(RateCounterError, ValueError):
    """构造参数或配置文件非法（如桶容量 < 1）。"""


class InvalidWindowError(RateCounterError, ValueError):
    """直方图窗口长度非法。"""

    def __init__(self, num_seconds: object) -> None:
        self.num_seconds = num_seconds
        super().__init__(f"histogram window must be a positive integer, got {num_seconds!r}")
