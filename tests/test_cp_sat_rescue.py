import random

import pytest

pytest.importorskip("ortools")

from models import Component
from solver.cp_sat import try_pack_cp_sat
from solver.errors import PackingInfeasible
from solver.packer import pack_components


def _comps(*groups):
    return [Component(tuple(g)) for g in groups]


def test_cp_sat_finds_assignment_within_capacities():
    comps = _comps(["A", "B", "C"], ["D", "E"], ["F"], ["G", "H"])
    ok, grouping, reason = try_pack_cp_sat(comps, [4, 4], max_seconds=5.0)
    assert ok, reason
    assert sorted(len(g) for g in grouping) == [4, 4]
    for comp in comps:
        assert any(set(comp.items) <= set(g) for g in grouping)


def test_cp_sat_proves_infeasibility():
    ok, grouping, reason = try_pack_cp_sat(_comps(["A", "B"], ["C", "D"], ["E", "F"]), [3, 3], max_seconds=5.0)
    assert not ok
    assert grouping is None
    assert reason.startswith("Proven infeasible")
    assert try_pack_cp_sat.last_meta["status"] == "INFEASIBLE"


def test_packer_rescue_reports_proven_infeasible():
    comps = _comps(["A", "B"], ["C", "D"], ["E", "F"])
    result = pack_components(comps, [3, 3], max_attempts=5, rng=random.Random(0), rescue=True)
    assert not result.ok
    assert result.reason_code == PackingInfeasible.PROVEN_INFEASIBLE
    assert result.attempts == 5
    assert result.stats["cp_sat"]["status"] == "INFEASIBLE"


def test_packer_rescue_solves_when_attempts_fail(monkeypatch):
    import solver.packer as packer

    monkeypatch.setattr(packer, "search_attempt", lambda *args, **kwargs: (None, {"nodes": 0}))
    comps = _comps(["A", "B"], ["C"], ["D"])
    result = pack_components(comps, [2, 2], max_attempts=3, rng=random.Random(0), rescue=True)
    assert result.ok
    assert result.stats["solved_via"] == "cp_sat"
    assert len(result.solutions) == 1
    assert sorted(len(g) for g in result.solutions[0]) == [2, 2]
