"""Overlap detection and transitive clustering.

Bodies are referenced only by their index into the simulation's body list.
Clusters are the connected components of the overlap graph, built with a
disjoint-set forest so that chains of overlaps (A-B, B-C, C-D) end up in one
cluster even when the ends never touch.
"""

from __future__ import annotations

import math

from gravity.core.body import Body
from gravity.core.errors import ConfigurationError

Cluster = list[int]


class DisjointSet:
    """Union-find over the indices ``0..n-1``.

    ``find`` compresses paths by halving. ``union`` incorporates the smaller
    group into the larger one, so every member of the absorbed group resolves
    to the surviving root afterwards.
    """

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))
        self._size = [1] * size

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, index: int) -> int:
        parent = self._parent
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    def union(self, a: int, b: int) -> bool:
        """Join the groups of ``a`` and ``b``.

        Returns:
            True if two distinct groups were joined, False if they already matched.
        """
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return False

        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a

        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        return True

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> list[Cluster]:
        """Partition of all indices, ordered by lowest member, members ascending."""
        by_root: dict[int, Cluster] = {}
        for index in range(len(self._parent)):
            by_root.setdefault(self.find(index), []).append(index)
        return list(by_root.values())


class OverlapGrouper:
    """Partitions bodies into clusters of transitively overlapping bodies.

    Two bodies overlap when the distance between their centers is strictly
    less than the sum of their radii.
    """

    def __init__(self, size_multiplier: float = 3.0) -> None:
        if not size_multiplier > 0:
            raise ConfigurationError(f"size_multiplier must be > 0, got {size_multiplier!r}")
        self.size_multiplier = size_multiplier

    def overlaps(self, a: Body, b: Body) -> bool:
        distance = math.hypot(a.x - b.x, a.y - b.y)
        return distance < a.radius(self.size_multiplier) + b.radius(self.size_multiplier)

    def find_overlaps(self, bodies: list[Body]) -> list[tuple[int, int]]:
        """All unordered index pairs (i < j) whose bodies overlap."""
        pairs: list[tuple[int, int]] = []
        n = len(bodies)
        for i in range(n):
            for j in range(i + 1, n):
                if self.overlaps(bodies[i], bodies[j]):
                    pairs.append((i, j))
        return pairs

    def group(self, bodies: list[Body]) -> list[Cluster]:
        """Partition ``bodies`` into overlap clusters.

        Every index appears in exactly one cluster; bodies that overlap nothing
        form singleton clusters. The collection is only read.

        Returns:
            Clusters of indices, ordered by their lowest member.
        """
        forest = DisjointSet(len(bodies))
        for i, j in self.find_overlaps(bodies):
            forest.union(i, j)
        return forest.groups()
