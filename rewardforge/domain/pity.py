"""Guarantee ("pity") rules applied after runs of duplicate draws."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from .catalog import Rarity


@dataclass(frozen=True, slots=True)
class PityRule:
    """Force ``forced_rarity`` once the duplicate streak reaches ``threshold``."""

    threshold: int
    forced_rarity: Rarity
    label: str = ""

    def __post_init__(self) -> None:
        if self.threshold < 1:
            raise ValueError("Pity threshold must be at least 1")
        object.__setattr__(self, "forced_rarity", Rarity(self.forced_rarity))


@dataclass(frozen=True, slots=True)
class PityProgress:
    """Streak position of the next draw measured against the highest rule."""

    current: int
    target: int
    remaining: int
    is_ready: bool


def parse_pity_rules(raw: Iterable[Mapping[str, Any]]) -> tuple[PityRule, ...]:
    rules = tuple(
        PityRule(
            threshold=int(entry["threshold"]),
            forced_rarity=Rarity(entry["forced_rarity"]),
            label=str(entry.get("label", "")),
        )
        for entry in raw
    )
    thresholds = [rule.threshold for rule in rules]
    if len(thresholds) != len(set(thresholds)):
        raise ValueError("Pity rules must use distinct thresholds")
    return rules


class PityTracker:
    """Select the single guarantee rule that applies to a streak length."""

    def active_rule(
        self, consecutive_duplicate_count: int, rules: Iterable[PityRule]
    ) -> PityRule | None:
        for rule in self.ordered(rules):
            if rule.threshold <= consecutive_duplicate_count:
                return rule
        return None

    def rule_for_next_draw(
        self, consecutive_duplicate_count: int, rules: Iterable[PityRule]
    ) -> PityRule | None:
        """Rule for the draw about to happen, which extends the streak by one."""
        return self.active_rule(consecutive_duplicate_count + 1, rules)

    def progress(
        self, consecutive_duplicate_count: int, rules: Iterable[PityRule]
    ) -> PityProgress | None:
        ordered = self.ordered(rules)
        if not ordered:
            return None
        target = ordered[0].threshold
        current = min(consecutive_duplicate_count + 1, target)
        return PityProgress(
            current=current,
            target=target,
            remaining=target - current,
            is_ready=current == target,
        )

    @staticmethod
    def ordered(rules: Iterable[PityRule]) -> Sequence[PityRule]:
        return sorted(rules, key=lambda rule: rule.threshold, reverse=True)
