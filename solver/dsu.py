# solver/dsu.py
from typing import List


class DisjointSet:
    """Parent-pointer union-find over the index space ``[0, n)``.

    ``find`` compresses paths; there is no rank balancing, so ``union``
    always hangs the root of ``b`` under the root of ``a``.
    """

    def __init__(self, n: int):
        self.parent: List[int] = list(range(int(n)))

    def __len__(self) -> int:
        return len(self.parent)

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # second pass points every node on the walk straight at the root
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: int, b: int) -> bool:
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return False
        self.parent[rb] = ra
        return True


__all__ = ["DisjointSet"]
