# src/alchemist/validator/ranking.py
from __future__ import annotations

from collections.abc import Iterable

from alchemist.validator.types import Violation


def _weight(violation: Violation) -> float:
    return 1.0 if violation.weight is None else float(violation.weight)


def rank_violations(violations: Iterable[Violation]) -> list[Violation]:
    """
    @brief
    Order findings by descending weight.

    @details
    Python's sort is stable, so findings of equal weight keep the order in
    which the checks produced them. A missing weight counts as 1. Ranking
    never drops a finding.
    """
    return sorted(violations, key=lambda v: -_weight(v))


__all__ = ["rank_violations"]
