# solver/capacity.py
from typing import List

from solver.errors import NotDivisible


def plan_capacities(total: int, groups: int, allow_near: bool) -> List[int]:
    """Return one target size per group, summing to ``total``.

    Exact mode requires ``total % groups == 0``. Near mode gives the first
    ``total % groups`` groups one extra item; the list is sorted descending
    so the packer tries the larger bins first by default.
    """
    total = int(total)
    groups = int(groups)

    if not allow_near:
        if total % groups != 0:
            raise NotDivisible(total, groups)
        return [total // groups] * groups

    low = total // groups
    high = -(-total // groups)
    r = total - low * groups
    capacities = [high] * r + [low] * (groups - r)
    capacities.sort(reverse=True)
    return capacities


__all__ = ["plan_capacities"]
