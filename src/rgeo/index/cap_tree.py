"""Bounding-cap hierarchy over items that each have a spherical cap.

The tree is built top-down by splitting item centres at the median of their
widest axis. Node caps enclose every item cap below them, which lets both
point-in-cap lookups and nearest-item searches skip whole subtrees.
"""

from __future__ import annotations

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

import numpy as np

from rgeo.geometry.sphere import angles_to, distances_to_edge

LEAF_SIZE = 8


@dataclass
class _Node:
    center: np.ndarray
    radius: float
    items: Optional[np.ndarray] = None
    left: Optional["_Node"] = None
    right: Optional["_Node"] = None


class CapTree:
    """Static tree over ``len(centers)`` item caps, addressed by position."""

    def __init__(self, centers: np.ndarray, radii: np.ndarray, *, leaf_size: int = LEAF_SIZE) -> None:
        self.centers = np.asarray(centers, dtype=np.float64).reshape(-1, 3)
        self.radii = np.asarray(radii, dtype=np.float64).reshape(-1)
        if len(self.centers) != len(self.radii):
            raise ValueError("centers and radii must have the same length")
        self._leaf_size = max(1, leaf_size)
        self._root = self._build(np.arange(len(self.radii))) if len(self.radii) else None

    def __len__(self) -> int:
        return len(self.radii)

    def _build(self, items: np.ndarray) -> _Node:
        centers = self.centers[items]
        total = centers.sum(axis=0)
        norm = np.linalg.norm(total)
        if norm < 1e-12:
            center = np.array([0.0, 0.0, 1.0])
            radius = math.pi
        else:
            center = total / norm
            radius = min(math.pi, float((angles_to(center, centers) + self.radii[items]).max()))

        if len(items) <= self._leaf_size:
            return _Node(center, radius, items=items)

        axis = int(np.argmax(centers.max(axis=0) - centers.min(axis=0)))
        half = len(items) // 2
        order = np.argpartition(centers[:, axis], half)
        return _Node(
            center,
            radius,
            left=self._build(items[order[:half]]),
            right=self._build(items[order[half:]]),
        )

    def containing(self, point: np.ndarray, *, slack: float = 0.0) -> Iterator[int]:
        """Yield every item whose cap (widened by ``slack``) holds ``point``."""
        if self._root is None:
            return
        stack = [self._root]
        while stack:
            node = stack.pop()
            if angles_to(point, node.center[None, :])[0] > node.radius + slack:
                continue
            if node.items is not None:
                hits = angles_to(point, self.centers[node.items]) <= self.radii[node.items] + slack
                yield from (int(i) for i in node.items[hits])
                continue
            stack.append(node.right)
            stack.append(node.left)

    def near_arc(self, a: np.ndarray, b: np.ndarray, *, slack: float = 0.0) -> Iterator[int]:
        """Yield every item whose cap comes within ``slack`` of the arc ``a -> b``."""
        if self._root is None:
            return
        stack = [self._root]
        while stack:
            node = stack.pop()
            if distances_to_edge(node.center[None, :], a, b)[0] > node.radius + slack:
                continue
            if node.items is not None:
                hits = distances_to_edge(self.centers[node.items], a, b) <= self.radii[node.items] + slack
                yield from (int(i) for i in node.items[hits])
                continue
            stack.append(node.right)
            stack.append(node.left)

    def nearest(
        self,
        point: np.ndarray,
        distance: Callable[[int], float],
        max_distance: float,
    ) -> Optional[Tuple[int, float]]:
        """Branch-and-bound search for the item nearest to ``point``.

        ``distance(item)`` returns the exact angular distance to an item; the
        caps only provide lower bounds. Items farther than ``max_distance``
        are never returned.
        """
        if self._root is None:
            return None

        best: Optional[Tuple[int, float]] = None
        limit = max_distance
        counter = itertools.count()
        heap: List[Tuple[float, int, _Node]] = [(self._lower_bound(point, self._root), next(counter), self._root)]
        while heap:
            bound, _, node = heapq.heappop(heap)
            if bound > limit:
                break
            if node.items is None:
                for child in (node.left, node.right):
                    child_bound = self._lower_bound(point, child)
                    if child_bound <= limit:
                        heapq.heappush(heap, (child_bound, next(counter), child))
                continue

            bounds = np.maximum(angles_to(point, self.centers[node.items]) - self.radii[node.items], 0.0)
            for item, item_bound in sorted(zip(node.items.tolist(), bounds.tolist()), key=lambda pair: pair[1]):
                if item_bound > limit:
                    break
                d = distance(item)
                if d <= limit and (best is None or d < best[1]):
                    best = (item, d)
                    limit = d
        return best

    @staticmethod
    def _lower_bound(point: np.ndarray, node: _Node) -> float:
        return max(0.0, float(angles_to(point, node.center[None, :])[0]) - node.radius)


__all__ = ["CapTree", "LEAF_SIZE"]
