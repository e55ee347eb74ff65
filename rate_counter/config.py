"""
计数器与频控规则配置
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .actions import Action
from .clock import Clock
from .counter import RateCounter
from .errors import ConfigurationError
from .rules import RateLimitRule

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
YAML_SUFFIXES = (".yaml", ".yml")


def _parse_actions(names: List[str]) -> tuple:
    try:
        return tuple(Action.from_name(name) for name in names)
    except (KeyError, AttributeError, TypeError) as exc:
        raise ConfigurationError(f"unknown action in {names!r}") from exc


@dataclass
class RateCounterConfig:
    """单个计数器配置。"""
    bucket_count: int = 60  # 环形缓冲区容量（秒）

    def build(self, clock: Optional[Clock] = None) -> RateCounter:
        return RateCounter(self.bucket_count, clock=clock)


@dataclass
class RateLimitRuleConfig:
    """频控规则配置。"""
    rule_id: str
    threshold: int
    window_seconds: int = 1
    bucket_count: Optional[int] = None  # 默认等于 window_seconds
    suspend_actions: List[str] = field(default_factory=lambda: [Action.SUSPEND.name])
    resume_actions: List[str] = field(default_factory=lambda: [Action.RESUME.name])

    def build(self, clock: Optional[Clock] = None) -> RateLimitRule:
        return RateLimitRule(
            rule_id=self.rule_id,
            threshold=self.threshold,
            window_seconds=self.window_seconds,
            bucket_count=self.bucket_count,
            clock=clock,
            suspend_actions=_parse_actions(self.suspend_actions),
            resume_actions=_parse_actions(self.resume_actions),
        )


@dataclass
class RateFilterConfig:
    """总配置：计数器默认参数、规则列表与全局设置。"""
    counter: RateCounterConfig = field(default_factory=RateCounterConfig)
    rules: List[RateLimitRuleConfig] = field(default_factory=list)
    global_settings: Dict[str, Any] = field(default_factory=lambda: {"log_level": "INFO"})

    def add_rule(self, rule: RateLimitRuleConfig) -> None:
        self.rules.append(rule)

    def get_rule(self, rule_id: str) -> Optional[RateLimitRuleConfig]:
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def remove_rule(self, rule_id: str) -> bool:
        for i, rule in enumerate(self.rules):
            if rule.rule_id == rule_id:
                del self.rules[i]
                return True
        return False

    def build_rules(self, clock: Optional[Clock] = None) -> List[RateLimitRule]:
        return [rule.build(clock) for rule in self.rules]

    def to_dict(self) -> dict:
        return {
            "counter": {"bucket_count": self.counter.bucket_count},
            "rules": [
                {
                    **rule.__dict__,
                    "suspend_actions": list(rule.suspend_actions),
                    "resume_actions": list(rule.resume_actions),
                }
                for rule in self.rules
            ],
            "global_settings": dict(self.global_settings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RateFilterConfig":
        if not isinstance(data, dict):
            raise ConfigurationError(f"config root must be a mapping, got {type(data).__name__}")
        config = cls()
        try:
            config.counter = RateCounterConfig(**(data.get("counter") or {}))
            config.rules = [RateLimitRuleConfig(**item) for item in data.get("rules") or []]
        except TypeError as exc:
            raise ConfigurationError(f"invalid config entry: {exc}") from exc
        settings = data.get("global_settings") or {}
        if not isinstance(settings, dict):
            raise ConfigurationError(f"global_settings must be a mapping, got {type(settings).__name__}")
        config.global_settings.update(settings)
        return config

    def save_to_file(self, filepath: Union[str, Path]) -> None:
        """保存配置到文件（按扩展名选择 YAML 或 JSON）"""
        path = Path(filepath)
        with open(path, "w", encoding="utf-8") as f:
            if path.suffix.lower() in YAML_SUFFIXES:
                yaml.safe_dump(self.to_dict(), f, sort_keys=False, allow_unicode=True)
            else:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

    @classmethod
    def load_from_file(cls, filepath: Union[str, Path]) -> "RateFilterConfig":
        """从文件加载配置"""
        path = Path(filepath)
        with open(path, "r", encoding="utf-8") as f:
            try:
                if path.suffix.lower() in YAML_SUFFIXES:
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as exc:
                raise ConfigurationError(f"cannot parse {path}: {exc}") from exc
        config = cls.from_dict(data or {})
        logger.info("Loaded rate filter config from %s (%d rules)", path, len(config.rules))
        return config


def configure_logging(config: RateFilterConfig) -> None:
    level_name = str(config.global_settings.get("log_level", "INFO")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        raise ConfigurationError(f"unknown log level {level_name!r}")
    logging.basicConfig(level=level, format=LOG_FORMAT)
