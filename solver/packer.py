# solver/packer.py
from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import Component, Grouping, PackResult
from solver.canonical import SolutionSet
from solver.cp_sat import try_pack_cp_sat
from solver.errors import PackingInfeasible

AttemptCallback = Callable[[int, int, int], None]

_RNG: Optional[random.Random] = None

TOO_LARGE_REASON = "A component has size larger than any group capacity."
EXHAUSTED_REASON = "No packing found (try allowing ±1 groups or reduce constraints)."
PROVEN_REASON = "No packing exists for these pairs and group sizes (try allowing ±1 groups or reduce constraints)."


def _system_rng() -> random.Random:
    global _RNG
    if _RNG is None:
        try:
            _RNG = random.SystemRandom()
        except NotImplementedError:
            _RNG = random.Random()
    return _RNG


def make_rng(seed: Optional[object] = None) -> random.Random:
    """Seeded RNG when a seed is given (or configured), system RNG otherwise."""
    if seed is None:
        seed = getattr(CFG, "RANDOM_SEED", "") or None
    if seed is None:
        return _system_rng()
    return random.Random(seed)


# ---------- single attempt ----------

class SearchState:
    """Per-bin running sums and members, owned by exactly one attempt."""

    def __init__(self, capacities: Sequence[int]):
        self.capacities: List[int] = [int(c) for c in capacities]
        self.sums: List[int] = [0] * len(self.capacities)
        self.groups: List[List[str]] = [[] for _ in self.capacities]

    def remaining(self, j: int) -> int:
        return self.capacities[j] - self.sums[j]

    def place(self, j: int, comp: Component) -> None:
        self.sums[j] += comp.size
        self.groups[j].extend(comp.items)

    def undo(self, j: int, comp: Component) -> None:
        self.sums[j] -= comp.size
        if comp.size:
            del self.groups[j][-comp.size:]

    def state_key(self, index: int) -> Tuple[int, Tuple[int, ...]]:
        return index, tuple(self.sums)

    def snapshot(self) -> Grouping:
        return [list(g) for g in self.groups]

    def candidate_bins(self, size: int) -> Tuple[List[int], int]:
        """Admissible bins for a component, tightest remaining capacity first.

        An empty bin is skipped when an earlier empty bin has the same
        capacity; the two are interchangeable for the rest of the search.
        Returns the bins and how many were skipped that way.
        """
        order = sorted(range(len(self.capacities)), key=lambda j: (self.remaining(j), j))
        out: List[int] = []
        pruned = 0
        for j in order:
            if self.sums[j] + size > self.capacities[j]:
                continue
            if self.sums[j] == 0 and any(
                self.sums[e] == 0 and self.capacities[e] == self.capacities[j]
                for e in range(j)
            ):
                pruned += 1
                continue
            out.append(j)
        return out, pruned


@dataclass
class _Frame:
    index: int
    candidates: List[int]
    pos: int = 0
    placed: Optional[int] = None


def search_attempt(
    order: Sequence[Component],
    capacities: Sequence[int],
    *,
    node_limit: Optional[int] = None,
    deadline: Optional[float] = None,
) -> Tuple[Optional[Grouping], Dict[str, object]]:
    """Depth-first assignment of ``order`` into the bins, one attempt.

    Uses an explicit stack so long component lists cannot hit the recursion
    limit. Dead ``(index, sums)`` states are memoized for this attempt only.
    Returns ``(grouping, stats)``; grouping is None when the attempt fails.
    """
    state = SearchState(capacities)
    dead: set = set()
    stats: Dict[str, object] = {
        "components": len(order),
        "bins": len(state.capacities),
        "nodes": 0,
        "memo_hits": 0,
        "symmetry_pruned": 0,
        "limit_hit": False,
        "timed_out": False,
    }

    if not order:
        return state.snapshot(), stats

    n = len(order)
    nodes = 0
    memo_hits = 0
    symmetry_pruned = 0

    def _frame(i: int) -> _Frame:
        nonlocal symmetry_pruned
        bins, pruned = state.candidate_bins(order[i].size)
        symmetry_pruned += pruned
        return _Frame(i, bins)

    def _finish(result: Optional[Grouping]):
        stats.update({
            "nodes": nodes,
            "memo_hits": memo_hits,
            "symmetry_pruned": symmetry_pruned,
            "dead_states": len(dead),
        })
        return result, stats

    stack: List[_Frame] = [_frame(0)]
    while stack:
        frame = stack[-1]
        comp = order[frame.index]

        if frame.placed is not None:
            state.undo(frame.placed, comp)
            frame.placed = None

        if frame.pos >= len(frame.candidates):
            dead.add(state.state_key(frame.index))
            stack.pop()
            continue

        if node_limit is not None and nodes >= node_limit:
            stats["limit_hit"] = True
            return _finish(None)
        if deadline is not None and time.time() >= deadline:
            stats["timed_out"] = True
            return _finish(None)

        j = frame.candidates[frame.pos]
        frame.pos += 1
        state.place(j, comp)
        frame.placed = j
        nodes += 1

        nxt = frame.index + 1
        if nxt == n:
            return _finish(state.snapshot())
        if state.state_key(nxt) in dead:
            memo_hits += 1
            continue
        stack.append(_frame(nxt))

    return _finish(None)


# ---------- multi-attempt driver ----------

def _attempt_orders(
    components: Sequence[Component],
    capacities: Sequence[int],
    rng: random.Random,
    shuffle_capacities: bool,
) -> Tuple[List[Component], List[int]]:
    order = list(components)
    rng.shuffle(order)
    if rng.random() < 0.5:
        # stable: equal sizes keep their shuffled order
        order.sort(key=lambda c: c.size, reverse=True)
    caps = list(capacities)
    if shuffle_capacities and rng.random() < 0.5:
        rng.shuffle(caps)
    return order, caps


def pack_components(
    components: Sequence[Component],
    capacities: Sequence[int],
    *,
    max_solutions: int = 1,
    max_attempts: Optional[int] = None,
    rng: Optional[random.Random] = None,
    node_limit: Optional[int] = None,
    max_seconds: Optional[float] = None,
    shuffle_capacities: Optional[bool] = None,
    rescue: Optional[bool] = None,
    on_attempt: Optional[AttemptCallback] = None,
) -> PackResult:
    """Find up to ``max_solutions`` distinct assignments of components to bins.

    Every attempt reshuffles the component order and, with even odds, the
    capacity order, then runs :func:`search_attempt`. Solutions are kept only
    when their canonical key is new. If the budget runs out with nothing
    found, an optional CP-SAT solve either rescues the run or proves it
    infeasible. Failures are reported through ``reason_code`` on the result.
    """
    if max_attempts is None:
        max_attempts = int(getattr(CFG, "MAX_ATTEMPTS", 1200))
    if node_limit is None:
        node_limit = int(getattr(CFG, "NODE_LIMIT", 0)) or None
    if max_seconds is None:
        max_seconds = float(getattr(CFG, "MAX_SECONDS", 0.0))
    if shuffle_capacities is None:
        shuffle_capacities = bool(getattr(CFG, "SHUFFLE_CAPACITIES", True))
    if rescue is None:
        rescue = bool(getattr(CFG, "CP_SAT_RESCUE", False))
    if rng is None:
        rng = make_rng()

    max_solutions = max(1, int(max_solutions))
    max_attempts = max(1, int(max_attempts))
    deadline = time.time() + max_seconds if max_seconds and max_seconds > 0 else None

    stats: Dict[str, object] = {
        "max_attempts": max_attempts,
        "failed_attempts": 0,
        "duplicates": 0,
        "limit_hits": 0,
        "timed_out": False,
        "nodes": 0,
        "solved_via": None,
    }
    result = PackResult(stats=stats)

    max_cap = max(capacities) if capacities else 0
    if any(c.size > max_cap for c in components):
        result.reason = TOO_LARGE_REASON
        result.reason_code = PackingInfeasible.COMPONENT_TOO_LARGE
        return result

    found = SolutionSet()
    attempts = 0
    while len(found) < max_solutions and attempts < max_attempts:
        if deadline is not None and time.time() >= deadline:
            stats["timed_out"] = True
            break
        attempts += 1
        order, caps = _attempt_orders(components, capacities, rng, shuffle_capacities)
        grouping, attempt_stats = search_attempt(
            order, caps, node_limit=node_limit, deadline=deadline
        )
        stats["nodes"] = int(stats["nodes"]) + int(attempt_stats["nodes"])
        if attempt_stats.get("limit_hit"):
            stats["limit_hits"] = int(stats["limit_hits"]) + 1
        if grouping is None:
            stats["failed_attempts"] = int(stats["failed_attempts"]) + 1
        elif not found.add(grouping):
            stats["duplicates"] = int(stats["duplicates"]) + 1
        if on_attempt is not None:
            on_attempt(attempts, max_attempts, len(found))

    result.attempts = attempts
    if found:
        stats["solved_via"] = "backtracking"
        result.solutions = found.solutions
        return result

    cp_seconds: Optional[float] = None
    if rescue and deadline is not None:
        # the run deadline also bounds the rescue solve
        cp_seconds = min(float(getattr(CFG, "CP_SAT_SECONDS", 5.0)), deadline - time.time())
        if cp_seconds <= 0:
            stats["timed_out"] = True
    if rescue and not stats["timed_out"]:
        ok, grouping, note = try_pack_cp_sat(components, capacities, max_seconds=cp_seconds)
        stats["cp_sat"] = dict(getattr(try_pack_cp_sat, "last_meta", {}) or {})
        if ok and grouping is not None:
            stats["solved_via"] = "cp_sat"
            result.solutions = [grouping]
            return result
        if note and note.startswith("Proven infeasible"):
            result.reason = PROVEN_REASON
            result.reason_code = PackingInfeasible.PROVEN_INFEASIBLE
            return result

    result.reason = EXHAUSTED_REASON
    result.reason_code = PackingInfeasible.ATTEMPTS_EXHAUSTED
    return result


__all__ = ["SearchState", "make_rng", "pack_components", "search_attempt"]
