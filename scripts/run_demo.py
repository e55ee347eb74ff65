import argparse

from rate_counter import (
    FixedClock,
    RateFilterConfig,
    RateLimitRuleConfig,
    configure_logging,
)


def main():
    parser = argparse.ArgumentParser(description="Replay a burst of events through a rate-limit rule")
    parser.add_argument("--config", help="YAML/JSON config file", default=None)
    args = parser.parse_args()

    if args.config:
        cfg = RateFilterConfig.load_from_file(args.config)
    else:
        cfg = RateFilterConfig()
        cfg.add_rule(RateLimitRuleConfig(rule_id="REQ-10-3S", threshold=10, window_seconds=3, bucket_count=5))
    configure_logging(cfg)

    clock = FixedClock()
    rules = cfg.build_rules(clock)
    key = "client-001"

    # 每秒事件数：先突发，再回落
    per_second = [2, 3, 8, 6, 1, 0, 0, 1]
    for n in per_second:
        for _ in range(n):
            for rule in rules:
                result = rule.on_event(key)
                if result:
                    print(rule.rule_id, [a.name for a in result.actions], result.reasons)
        clock.advance_seconds(1)

    for rule in rules:
        rule.on_event(key)
        print(rule.rule_id, "histogram", rule.histogram(key, len(per_second)))


if __name__ == "__main__":
    main()
