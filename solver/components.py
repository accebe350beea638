# solver/components.py
from typing import Dict, Iterable, List, Sequence, Tuple

from models import Component
from solver.dsu import DisjointSet
from solver.errors import UnknownItemReference


def build_components(items: Sequence[str], pairs: Iterable[Tuple[str, str]]) -> List[Component]:
    """
    Merge paired items into indivisible components.

    Items inside a component keep their input order; components are ordered
    by the first item of each one in the input. Raises UnknownItemReference
    if a pair names an item that is not in ``items``.
    """
    index: Dict[str, int] = {name: i for i, name in enumerate(items)}
    dsu = DisjointSet(len(items))

    for a, b in pairs:
        missing = [name for name in (a, b) if name not in index]
        if missing:
            # dict.fromkeys keeps order and drops a doubled name like (X, X)
            raise UnknownItemReference(list(dict.fromkeys(missing)))
        dsu.union(index[a], index[b])

    grouped: Dict[int, List[str]] = {}
    for i, name in enumerate(items):
        grouped.setdefault(dsu.find(i), []).append(name)

    return [Component(tuple(members)) for members in grouped.values()]


def component_sizes(components: Iterable[Component]) -> List[int]:
    return [c.size for c in components]


__all__ = ["build_components", "component_sizes"]
