# src/alchemist/validator/graph.py
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from alchemist.validator.fields import record_key, split_tokens


# DFS node colours
_UNVISITED = 0
_ON_STACK = 1
_DONE = 2


@dataclass(frozen=True, slots=True)
class Cycle:
    """
    @brief
    A directed cycle found in a dependency graph.

    @details
    `start` is the node whose scan discovered the cycle; `path` is the closed
    cycle, e.g. ("T1", "T2", "T1"). A self-loop has path (node, node).
    """

    start: str
    path: tuple[str, ...]

    def describe(self) -> str:
        return " -> ".join(self.path)


class CoRunGraph:
    """
    @brief
    Directed graph built from a collection's self-referential list field.

    @details
    An edge A -> B means row A lists B in its list field (e.g. task A's
    CoRunTaskIDs contains B). Node order follows the first appearance of each
    key in the collection, so scans are deterministic. Neighbours that are not
    keys of the collection are leaves: referential validity is checked
    elsewhere.
    """

    def __init__(self, adjacency: Mapping[str, Iterable[str]]) -> None:
        self._adjacency: dict[str, tuple[str, ...]] = {
            node: tuple(dict.fromkeys(targets)) for node, targets in adjacency.items()
        }

    @classmethod
    def from_records(
        cls,
        rows: Iterable[Mapping[str, Any]],
        key: str = "TaskID",
        field: str = "CoRunTaskIDs",
    ) -> CoRunGraph:
        """
        @brief
        Build the graph from record rows.

        @details
        Rows sharing a key (duplicate IDs) merge their edge lists.
        """
        adjacency: dict[str, list[str]] = {}
        for row in rows:
            node = record_key(row, key)
            adjacency.setdefault(node, []).extend(split_tokens(row.get(field)))
        return cls(adjacency)

    @property
    def nodes(self) -> tuple[str, ...]:
        return tuple(self._adjacency)

    def neighbours(self, node: str) -> tuple[str, ...]:
        return self._adjacency.get(node, ())

    def find_cycle(self) -> Cycle | None:
        """
        @brief
        Return the first cycle found, scanning nodes in collection order.

        @details
        Classic three-colour depth-first search (unvisited / on-stack / done).
        A back-edge to a node currently on the stack closes a cycle. Nodes
        finished by earlier scans are not re-entered.
        """
        colour: dict[str, int] = {}
        for node in self._adjacency:
            if colour.get(node, _UNVISITED) != _UNVISITED:
                continue
            cycles = self._search(node, colour, stop_at_first=True)
            if cycles:
                return cycles[0]
        return None

    def find_cycle_from(self, start: str) -> Cycle | None:
        """First cycle reachable from `start` (fresh search state)."""
        cycles = self._search(start, {}, stop_at_first=True)
        return cycles[0] if cycles else None

    def find_cycles(self) -> list[Cycle]:
        """
        @brief
        Return one cycle per back-edge found by a full DFS.

        @details
        Cycles are de-duplicated by their rotation-independent node sequence,
        so T1->T2->T1 and T2->T1->T2 are reported once.
        """
        colour: dict[str, int] = {}
        found: list[Cycle] = []
        seen: set[tuple[str, ...]] = set()
        for node in self._adjacency:
            if colour.get(node, _UNVISITED) != _UNVISITED:
                continue
            for cycle in self._search(node, colour, stop_at_first=False):
                signature = _canonical_rotation(cycle.path[:-1])
                if signature not in seen:
                    seen.add(signature)
                    found.append(cycle)
        return found

    def _search(self, start: str, colour: dict[str, int], *, stop_at_first: bool) -> list[Cycle]:
        """
        @brief
        Iterative DFS from `start`, mutating `colour`.

        @details
        An explicit stack replaces recursion so long co-run chains cannot hit
        the interpreter recursion limit.
        """
        cycles: list[Cycle] = []
        path: list[str] = [start]
        stack: list[tuple[str, Iterator[str]]] = [(start, iter(self.neighbours(start)))]
        colour[start] = _ON_STACK

        while stack:
            node, pending = stack[-1]
            advanced = False
            for neighbour in pending:
                state = colour.get(neighbour, _UNVISITED)
                if state == _ON_STACK:
                    index = path.index(neighbour)
                    cycles.append(Cycle(start=start, path=tuple(path[index:]) + (neighbour,)))
                    if stop_at_first:
                        return cycles
                elif state == _UNVISITED:
                    colour[neighbour] = _ON_STACK
                    path.append(neighbour)
                    stack.append((neighbour, iter(self.neighbours(neighbour))))
                    advanced = True
                    break
            if not advanced:
                colour[node] = _DONE
                path.pop()
                stack.pop()

        return cycles


def _canonical_rotation(nodes: tuple[str, ...]) -> tuple[str, ...]:
    if len(nodes) <= 1:
        return nodes
    return min(nodes[i:] + nodes[:i] for i in range(len(nodes)))


__all__ = ["CoRunGraph", "Cycle"]
