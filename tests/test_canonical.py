from solver.canonical import SolutionSet, canonical_key, canonicalize


def test_canonicalize_sorts_within_and_across_groups():
    solution = [["D", "C"], ["B", "A"]]
    assert canonicalize(solution) == [["A", "B"], ["C", "D"]]


def test_canonicalize_is_idempotent():
    solution = [["z", "b"], ["a"], ["q", "c", "m"]]
    once = canonicalize(solution)
    assert canonicalize(once) == once


def test_permuted_solutions_share_a_key():
    a = [["A", "B"], ["C", "D"], ["E"]]
    b = [["E"], ["D", "C"], ["B", "A"]]
    assert canonical_key(a) == canonical_key(b)
    assert canonical_key(a) != canonical_key([["A", "C"], ["B", "D"], ["E"]])


def test_pipe_in_item_names_does_not_collide():
    a = [["a|b"], ["a", "b"]]
    b = [["a", "b"], ["a|b"]]
    assert canonical_key(a) == canonical_key(b)


def test_solution_set_drops_equivalent_solutions():
    found = SolutionSet()
    assert found.add([["A", "B"], ["C", "D"]]) is True
    assert found.add([["D", "C"], ["A", "B"]]) is False
    assert found.add([["A", "C"], ["B", "D"]]) is True
    assert len(found) == 2
    assert [["B", "A"], ["C", "D"]] in found
    # first-seen layout is kept untouched
    assert found.solutions[0] == [["A", "B"], ["C", "D"]]


def test_solution_set_remembers_keys_only():
    found = SolutionSet()
    found.add([["B", "A"], ["C"]])
    found.add([["C"], ["A", "B"]])
    assert found._seen == {canonical_key([["A", "B"], ["C"]])}
