import pytest

from solver.components import build_components, component_sizes
from solver.dsu import DisjointSet
from solver.errors import UnknownItemReference


def test_union_attaches_second_root_under_first():
    dsu = DisjointSet(4)
    assert dsu.union(0, 1) is True
    assert dsu.union(2, 1) is True
    assert dsu.find(1) == 2
    assert dsu.find(0) == 2
    assert dsu.union(0, 2) is False
    assert dsu.find(3) == 3


def test_find_compresses_long_chains_without_recursion():
    n = 5000
    dsu = DisjointSet(n)
    # union(i, i - 1) hangs each old root below the next index: a long chain
    for i in range(1, n):
        dsu.union(i, i - 1)
    root = dsu.find(0)
    assert root == n - 1
    assert dsu.parent[0] == root
    assert dsu.parent[n // 2] == root


def test_components_keep_item_order_and_first_seen_order():
    items = ["A", "B", "C", "D", "E"]
    comps = build_components(items, [("D", "B"), ("E", "A")])
    assert [c.items for c in comps] == [("A", "E"), ("B", "D"), ("C",)]
    assert component_sizes(comps) == [2, 2, 1]


def test_transitive_pairs_merge_into_one_component():
    comps = build_components(["A", "B", "C", "D"], [("A", "B"), ("C", "B")])
    assert [c.items for c in comps] == [("A", "B", "C"), ("D",)]


def test_components_partition_the_items():
    items = [f"p{i}" for i in range(12)]
    pairs = [("p0", "p5"), ("p5", "p9"), ("p3", "p4"), ("p11", "p10"), ("p4", "p4")]
    comps = build_components(items, pairs)
    flat = [name for c in comps for name in c.items]
    assert sorted(flat) == sorted(items)
    assert len(flat) == len(set(flat))


def test_unknown_item_is_named():
    with pytest.raises(UnknownItemReference) as excinfo:
        build_components(["A", "B"], [("A", "X")])
    assert excinfo.value.missing == ["X"]
    assert "X" in str(excinfo.value)


def test_unknown_items_listed_once_each():
    with pytest.raises(UnknownItemReference) as excinfo:
        build_components(["A"], [("X", "Y")])
    assert excinfo.value.missing == ["X", "Y"]

    with pytest.raises(UnknownItemReference) as excinfo:
        build_components(["A"], [("X", "X")])
    assert excinfo.value.missing == ["X"]


def test_no_pairs_gives_singletons():
    comps = build_components(["A", "B", "C"], [])
    assert [c.items for c in comps] == [("A",), ("B",), ("C",)]
