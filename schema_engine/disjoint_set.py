# schema_engine/disjoint_set.py
"""
Disjoint-set (union-find) with path compression and union by rank.
Used to group tables connected by foreign keys.
"""

from typing import Dict, Hashable, Iterable, List


class DisjointSet:

    def __init__(self, items: Iterable[Hashable] = ()):
        self._parent: Dict[Hashable, Hashable] = {}
        self._rank: Dict[Hashable, int] = {}
        self._order: List[Hashable] = []
        for item in items:
            self.add(item)

    def add(self, item: Hashable) -> None:
        if item not in self._parent:
            self._parent[item] = item
            self._rank[item] = 0
            self._order.append(item)

    def __contains__(self, item) -> bool:
        return item in self._parent

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, item: Hashable) -> Hashable:
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        # path compression
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, a: Hashable, b: Hashable) -> bool:
        """Merge the sets of a and b. Returns False when already joined."""
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return False
        if self._rank[root_a] < self._rank[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        if self._rank[root_a] == self._rank[root_b]:
            self._rank[root_a] += 1
        return True

    def connected(self, a: Hashable, b: Hashable) -> bool:
        return self.find(a) == self.find(b)

    def groups(self) -> List[List[Hashable]]:
        """Components in first-insertion order; members keep insertion order."""
        by_root: Dict[Hashable, List[Hashable]] = {}
        order = []
        for item in self._order:
            root = self.find(item)
            if root not in by_root:
                by_root[root] = []
                order.append(root)
            by_root[root].append(item)
        return [by_root[root] for root in order]
