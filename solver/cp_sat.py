# solver/cp_sat.py
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from config import CFG
from models import Component, Grouping


def _seed_value() -> int:
    try:
        return int(getattr(CFG, "RANDOM_SEED", "") or 0)
    except Exception:
        return 0


def try_pack_cp_sat(
    components: Sequence[Component],
    capacities: Sequence[int],
    max_seconds: Optional[float] = None,
) -> Tuple[bool, Optional[Grouping], Optional[str]]:
    """Assignment model: one bin per component, bin sums within capacity.

    Returns ``(ok, grouping, reason)``. ``reason`` is None on success,
    otherwise a human readable note; it starts with "Proven infeasible" only
    when CP-SAT proved that no assignment exists.
    """
    meta: Dict[str, object] = {
        "components": len(components),
        "bins": len(capacities),
        "status": None,
    }
    setattr(try_pack_cp_sat, "last_meta", meta)

    k = len(capacities)
    if k == 0:
        meta["status"] = "no_bins"
        return False, None, "Proven infeasible: no groups to fill"

    m = _cp.CpModel()
    x: List[List[Optional[_cp.IntVar]]] = []
    for i, comp in enumerate(components):
        row: List[Optional[_cp.IntVar]] = []
        for j, cap in enumerate(capacities):
            if comp.size <= cap:
                row.append(m.NewBoolVar(f"x_{i}_{j}"))
            else:
                row.append(None)
        admissible = [v for v in row if v is not None]
        if not admissible:
            meta["status"] = "component_too_large"
            return False, None, "Proven infeasible: a component is larger than every group capacity"
        m.Add(sum(admissible) == 1)
        x.append(row)

    for j, cap in enumerate(capacities):
        terms = [
            comp.size * x[i][j]
            for i, comp in enumerate(components)
            if x[i][j] is not None
        ]
        if terms:
            m.Add(sum(terms) <= int(cap))

    seconds = float(max_seconds) if max_seconds is not None else float(getattr(CFG, "CP_SAT_SECONDS", 5.0))
    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = max(0.01, seconds)
    solver.parameters.num_workers = max(1, int(getattr(CFG, "WORKERS", 1)))
    solver.parameters.random_seed = _seed_value()
    solver.parameters.log_search_progress = False

    res = solver.Solve(m)
    meta["status"] = solver.StatusName(res)
    meta["wall_time"] = solver.WallTime()

    if res in (_cp.OPTIMAL, _cp.FEASIBLE):
        groups: Grouping = [[] for _ in range(k)]
        for i, comp in enumerate(components):
            for j in range(k):
                var = x[i][j]
                if var is not None and solver.BooleanValue(var):
                    groups[j].extend(comp.items)
                    break
        return True, groups, None

    if res == _cp.INFEASIBLE:
        return False, None, "Proven infeasible under the pairing constraints"
    if res == _cp.MODEL_INVALID:
        return False, None, "Model invalid (configuration error)"
    return False, None, "Stopped before solution (timebox)"


__all__ = ["try_pack_cp_sat"]
