# solver/canonical.py
from typing import Iterable, List, Sequence, Set, Tuple

CanonicalKey = Tuple[Tuple[str, ...], ...]


def canonicalize(solution: Iterable[Iterable[str]]) -> List[List[str]]:
    """Sort items inside every group, then sort the groups by joined contents."""

    groups = [sorted(g) for g in solution]
    # the tuple tie-break keeps the order total when items contain "|"
    groups.sort(key=lambda g: ("|".join(g), tuple(g)))
    return groups


def canonical_key(solution: Iterable[Iterable[str]]) -> CanonicalKey:
    return tuple(tuple(g) for g in canonicalize(solution))


class SolutionSet:
    """Distinct solutions for one packer invocation, in discovery order."""

    def __init__(self) -> None:
        self._seen: Set[CanonicalKey] = set()
        self.solutions: List[List[List[str]]] = []

    def __len__(self) -> int:
        return len(self.solutions)

    def __contains__(self, solution: Sequence[Sequence[str]]) -> bool:
        return canonical_key(solution) in self._seen

    def add(self, solution: Sequence[Sequence[str]]) -> bool:
        """Keep ``solution`` unless an equivalent one is already stored."""
        key = canonical_key(solution)
        if key in self._seen:
            return False
        self._seen.add(key)
        self.solutions.append([list(g) for g in solution])
        return True


__all__ = ["CanonicalKey", "canonicalize", "canonical_key", "SolutionSet"]
