# Orchestrator: validate → components → capacities → packer
from __future__ import annotations

import random
import time
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import progress
from config import CFG
from models import Grouping, GroupingOutcome, GroupingRequest, Pair
from progress import log_attempt_detail, log_failure
from solver.capacity import plan_capacities
from solver.components import build_components
from solver.errors import (
    GroupingError,
    InvalidGroupCount,
    InvalidSolutionCount,
    NoItems,
    PackingInfeasible,
)
from solver.packer import pack_components


# ---------- helpers ----------

def _coerce_count(value: Any, error_cls) -> int:
    if isinstance(value, bool):
        raise error_cls(value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise error_cls(value) from None
    if number != value and not isinstance(value, str):
        # 2.5 groups is not a count
        raise error_cls(value)
    if number < 1:
        raise error_cls(value)
    return number


def _normalize_pairs(pairs: Iterable[Sequence[str]]) -> List[Pair]:
    return [(str(a), str(b)) for a, b in pairs]


class _ProgressReporter:
    """Forward packer attempts to the progress service, throttled."""

    def __init__(self, every: int):
        self.every = max(1, int(every))
        self._last_found = 0

    def __call__(self, attempt: int, total: int, found: int) -> None:
        if found != self._last_found:
            log_attempt_detail("Distinct grouping found", attempt=attempt, solutions=found)
        if found != self._last_found or attempt % self.every == 0 or attempt == total:
            progress.set_attempt(attempt, total, found)
        self._last_found = found


# ---------- public entrypoints ----------

def run_grouping(
    request: GroupingRequest,
    *,
    max_attempts: Optional[int] = None,
    rng: Optional[random.Random] = None,
    report_progress: bool = False,
) -> GroupingOutcome:
    """
    Partition ``request.items`` into ``request.num_groups`` groups that keep
    every pair together.

    Raises a :class:`GroupingError` subclass on any failure; never returns a
    partial grouping. ``report_progress`` publishes phases and attempts to
    :mod:`progress` for the web front-end.
    """
    t0 = time.time()
    items = list(request.items)
    pairs = _normalize_pairs(request.pairs)

    try:
        if not items:
            raise NoItems()
        k = _coerce_count(request.num_groups, InvalidGroupCount)
        desired = _coerce_count(request.desired, InvalidSolutionCount)
        budget = int(max_attempts if max_attempts is not None else CFG.MAX_ATTEMPTS)

        log_attempt_detail(
            "Run setup",
            items=len(items),
            pairs=len(pairs),
            groups=k,
            allow_near=int(bool(request.allow_near)),
            desired=desired,
            max_attempts=budget,
        )
        if report_progress:
            progress.set_status("Grouping")
            progress.set_counts(len(items), k)
            progress.set_phase("components")

        components = build_components(items, pairs)

        if report_progress:
            progress.set_phase("capacities")
        capacities = plan_capacities(len(items), k, bool(request.allow_near))
        log_attempt_detail(
            "Plan ready",
            components=len(components),
            largest=max(c.size for c in components),
            capacities=",".join(str(c) for c in capacities),
        )

        on_attempt = None
        if report_progress:
            progress.set_phase("packing")
            on_attempt = _ProgressReporter(getattr(CFG, "PROGRESS_EVERY", 25))

        result = pack_components(
            components,
            capacities,
            max_solutions=desired,
            max_attempts=budget,
            rng=rng,
            on_attempt=on_attempt,
        )
        rescue_meta = result.stats.get("cp_sat")
        if rescue_meta:
            log_attempt_detail(
                "CP-SAT rescue",
                status=rescue_meta.get("status"),
                wall_time=rescue_meta.get("wall_time"),
                solved=int(result.ok),
            )
        if not result.ok:
            raise PackingInfeasible(
                result.reason_code or PackingInfeasible.ATTEMPTS_EXHAUSTED,
                result.reason or "Could not find packings.",
                attempts=result.attempts,
            )
    except GroupingError as exc:
        log_failure("Grouping failed", code=exc.code, message=exc.message)
        if report_progress:
            progress.set_done(False, reason=exc.message)
        raise

    groupings: List[Grouping] = result.solutions[:desired]
    solved_via = str(result.stats.get("solved_via") or "backtracking")
    elapsed = time.time() - t0

    log_attempt_detail(
        "Run solved",
        groupings=len(groupings),
        attempts=result.attempts,
        duplicates=result.stats.get("duplicates"),
        nodes=result.stats.get("nodes"),
        solved_via=solved_via,
        duration=f"{elapsed:.3f}s",
    )
    if report_progress:
        progress.set_attempt(result.attempts, result.stats.get("max_attempts") or result.attempts, len(groupings))
        progress.set_done(True, reason=f"{len(groupings)} grouping(s) via {solved_via}")

    return GroupingOutcome(
        request=GroupingRequest(items, pairs, k, bool(request.allow_near), desired),
        groupings=groupings,
        components=components,
        capacities=capacities,
        attempts=result.attempts,
        elapsed_sec=elapsed,
        solved_via=solved_via,
    )


def generate(
    items: Sequence[str],
    pairs: Iterable[Sequence[str]],
    group_count: int,
    allow_near: bool = False,
    desired: int = 1,
    *,
    max_attempts: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Grouping]:
    """Return ``min(desired, found)`` distinct groupings or raise GroupingError."""
    request = GroupingRequest(list(items), _normalize_pairs(pairs), group_count, allow_near, desired)
    return run_grouping(request, max_attempts=max_attempts, rng=rng).groupings


__all__ = ["generate", "run_grouping"]
