from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, Optional


class Action(Enum):
    """限流处置动作（可扩展）。"""

    SUSPEND = auto()  # 暂停该 key 的请求
    RESUME = auto()  # 恢复该 key 的请求
    ALERT = auto()  # 告警，仅提示不强制拦截

    @classmethod
    def from_name(cls, name: str) -> "Action":
        return cls[name.strip().upper()]


@dataclass(slots=True)
class EmittedAction:
    """已下发的动作记录。"""

    type: Action
    key: Optional[str] = None
    reason: str = ""
    metadata: Dict[str, object] = field(default_factory=dict)
