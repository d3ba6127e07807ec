# tests/validator/test_ranking.py
from __future__ import annotations

from alchemist.validator.ranking import rank_violations
from alchemist.validator.types import Violation


def v(msg: str, weight: float) -> Violation:
    return Violation(entity="tasks", row=0, field="F", message=msg, weight=weight)


def test_rank_orders_by_descending_weight_and_is_stable() -> None:
    """
    @brief
    Verify weight-based ordering.

    @details
    Higher weights come first; equal weights keep production order.
    """
    # --- Arrange ---
    findings = [v("a", 1), v("b", 3), v("c", 1), v("d", 3), v("e", 0)]

    # --- Act ---
    ranked = rank_violations(findings)

    # --- Assert ---
    assert [x.message for x in ranked] == ["b", "d", "a", "c", "e"]


def test_rank_never_drops_findings() -> None:
    findings = [v(str(i), i % 3) for i in range(20)]
    assert sorted(rank_violations(findings), key=lambda x: int(x.message)) == findings


def test_rank_treats_missing_weight_as_one() -> None:
    findings = [v("low", 0.5), Violation("tasks", 0, "F", "none", weight=None), v("high", 2)]
    assert [x.message for x in rank_violations(findings)] == ["high", "none", "low"]
