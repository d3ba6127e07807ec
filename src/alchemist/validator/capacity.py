# src/alchemist/validator/capacity.py
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from alchemist.validator.fields import is_number, parse_numbers, slot_list, to_number


@dataclass(frozen=True, slots=True)
class PhaseLoad:
    """Demand versus supply for one phase."""

    phase: int
    demand: float
    supply: int

    @property
    def overbooked(self) -> bool:
        return self.demand > self.supply


def phase_demand(tasks: Iterable[Mapping[str, Any]]) -> dict[float, float]:
    """
    @brief
    Sum task Duration per preferred phase.

    @details
    Every phase listed in a task's PreferredPhases receives the full task
    Duration. Non-numeric phase tokens are dropped; a task whose Duration is
    not numeric adds no demand.
    """
    demand: dict[float, float] = {}
    for task in tasks:
        duration = to_number(task.get("Duration"))
        if duration is None:
            continue
        for phase in parse_numbers(task.get("PreferredPhases")):
            demand[phase] = demand.get(phase, 0.0) + duration
    return demand


def phase_supply(workers: Iterable[Mapping[str, Any]], phase: float) -> int:
    """Number of AvailableSlots entries, across all workers, equal to `phase`."""
    return sum(
        1
        for worker in workers
        for slot in slot_list(worker.get("AvailableSlots"))
        if is_number(slot) and slot == phase
    )


def find_overbooked_phases(
    tasks: Iterable[Mapping[str, Any]], workers: Iterable[Mapping[str, Any]]
) -> list[PhaseLoad]:
    """
    @brief
    Report phases whose total demand exceeds worker slot supply.

    @details
    Whole-numbered phases from 1 up to the highest phase any task references
    are checked. A phase without demand can never be overbooked, so only
    phases that receive demand are visited. Result is ordered by phase number.
    """
    demand = phase_demand(tasks)
    workers = list(workers)

    overbooked: list[PhaseLoad] = []
    for phase in sorted(int(p) for p in demand if p >= 1 and p.is_integer()):
        load = PhaseLoad(
            phase=phase,
            demand=demand[phase],
            supply=phase_supply(workers, phase),
        )
        if load.overbooked:
            overbooked.append(load)
    return overbooked


__all__ = ["PhaseLoad", "phase_demand", "phase_supply", "find_overbooked_phases"]
