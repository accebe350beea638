# solver/errors.py
from typing import Iterable, List, Optional


class GroupingError(Exception):
    """Base class for every failure surfaced by the grouping engine."""

    code = "grouping_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoItems(GroupingError):
    code = "no_items"

    def __init__(self, message: str = "No items provided."):
        super().__init__(message)


class InvalidGroupCount(GroupingError):
    code = "invalid_group_count"

    def __init__(self, group_count=None):
        super().__init__("Number of groups must be >= 1.")
        self.group_count = group_count


class InvalidSolutionCount(GroupingError):
    code = "invalid_solution_count"

    def __init__(self, desired=None):
        super().__init__("Number of requested groupings must be >= 1.")
        self.desired = desired


class UnknownItemReference(GroupingError):
    code = "unknown_item"

    def __init__(self, missing: Iterable[str]):
        self.missing: List[str] = list(missing)
        super().__init__("Pair refers to unknown item: " + ", ".join(self.missing))


class NotDivisible(GroupingError):
    code = "not_divisible"

    def __init__(self, total: int, groups: int):
        self.total = int(total)
        self.groups = int(groups)
        super().__init__(
            f"Exact equal groups requested but total items ({self.total}) is not "
            f"divisible by groups ({self.groups}). Allow near-equal (±1) groups to relax this."
        )


class PackingInfeasible(GroupingError):
    code = "packing_infeasible"

    COMPONENT_TOO_LARGE = "component_too_large"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    PROVEN_INFEASIBLE = "proven_infeasible"

    def __init__(self, reason_code: str, message: str, attempts: Optional[int] = None):
        super().__init__(message)
        self.reason_code = reason_code
        self.attempts = attempts

    @property
    def retryable(self) -> bool:
        # Only the heuristic failure may succeed on a retry or a larger budget.
        return self.reason_code == self.ATTEMPTS_EXHAUSTED


class PairError(GroupingError):
    code = "invalid_pair"


__all__ = [
    "GroupingError",
    "NoItems",
    "InvalidGroupCount",
    "InvalidSolutionCount",
    "UnknownItemReference",
    "NotDivisible",
    "PackingInfeasible",
    "PairError",
]
