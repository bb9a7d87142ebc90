"""Automated checks to highlight balancing issues."""

from __future__ import annotations

from dataclasses import dataclass

from ..app import RewardApp
from ..domain.catalog import Rarity
from ..validators import validate_app


@dataclass(slots=True)
class ChecklistIssue:
    severity: str
    message: str


def run_checklist(app: RewardApp) -> list[ChecklistIssue]:
    issues = [ChecklistIssue("error", message) for message in validate_app(app)]
    if any(issue.severity == "error" for issue in issues):
        return issues

    economy = app.config.economy
    catalog = app.items.catalog
    weights = app.draws.rarity_weights()
    converter = app.draws.duplicate_converter()

    for rarity in Rarity:
        if catalog.has_rarity(rarity) and weights.probability(rarity) == 0:
            forced = any(rule.forced_rarity is rarity for rule in app.draws.pity_rules())
            if not forced:
                issues.append(
                    ChecklistIssue(
                        "warning",
                        f"Items of rarity '{rarity.value}' are registered but can never be drawn.",
                    )
                )

    # Once a student owns everything, every draw is a duplicate.
    expected_refund = sum(weights.probability(r) * converter.bonus_for(r) for r in Rarity)
    if expected_refund > economy.draw_cost:
        issues.append(
            ChecklistIssue(
                "warning",
                f"With a complete collection a draw returns {expected_refund:.2f} tickets on "
                f"average for a cost of {economy.draw_cost}; drawing becomes profitable.",
            )
        )

    prices = economy.purchase_prices
    tiers = sorted(Rarity)
    for lower, rarity in zip(tiers, tiers[1:]):
        if prices[rarity.value] < prices[lower.value]:
            issues.append(
                ChecklistIssue(
                    "warning",
                    f"Buying a '{rarity.value}' item is cheaper than a '{lower.value}' item.",
                )
            )

    if not app.draws.pity_rules():
        issues.append(ChecklistIssue("info", "No pity rules configured; duplicate streaks are unbounded."))

    return issues
