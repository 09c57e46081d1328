"""
Arena-of-nodes search tree.

Nodes live in one growable array per tree and refer to their parent by
index, so a tree is acyclic by construction and path extraction is an index
walk to the root. A tree may hold several roots (the goal side seeds one
root per inverse-kinematics solution).
"""

import threading
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

ROOT = -1


class Node(NamedTuple):
    index: int
    config: np.ndarray
    parent: int


class Tree:
    """Growing set of joint configurations with parent links."""

    def __init__(self, dof: int, name: str = "tree", capacity: int = 256):
        self.name = name
        self.dof = dof
        self._configs = np.empty((max(1, capacity), dof))
        self._parents: List[int] = []
        self._size = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return self._size

    def _append(self, q: np.ndarray, parent: int) -> int:
        q = np.asarray(q, dtype=float)
        if q.shape != (self.dof,):
            raise ValueError(f"expected a configuration of length {self.dof}, got shape {q.shape}")
        with self._lock:
            if parent != ROOT and not 0 <= parent < self._size:
                raise IndexError(f"parent {parent} is not a node of tree '{self.name}'")
            if self._size == len(self._configs):
                grown = np.empty((2 * len(self._configs), self.dof))
                grown[:self._size] = self._configs[:self._size]
                self._configs = grown
            index = self._size
            self._configs[index] = q
            self._parents.append(parent)
            self._size += 1
        return index

    def add_root(self, q: np.ndarray) -> int:
        return self._append(q, ROOT)

    def add(self, q: np.ndarray, parent: int) -> int:
        return self._append(q, parent)

    def _snapshot(self) -> Tuple[np.ndarray, int]:
        # Rows below the recorded size are never rewritten, so the view stays valid
        with self._lock:
            return self._configs, self._size

    def config(self, index: int) -> np.ndarray:
        configs, size = self._snapshot()
        if not 0 <= index < size:
            raise IndexError(f"node {index} is not in tree '{self.name}'")
        q = configs[index].copy()
        q.setflags(write=False)
        return q

    def parent(self, index: int) -> int:
        return self._parents[index]

    def node(self, index: int) -> Node:
        return Node(index, self.config(index), self._parents[index])

    def latest(self) -> int:
        return self._size - 1

    def roots(self) -> List[int]:
        configs, size = self._snapshot()
        return [i for i in range(size) if self._parents[i] == ROOT]

    def configs(self) -> np.ndarray:
        configs, size = self._snapshot()
        return configs[:size].copy()

    def edges(self) -> List[Tuple[int, int]]:
        """(child, parent) index pairs."""
        configs, size = self._snapshot()
        return [(i, self._parents[i]) for i in range(size) if self._parents[i] != ROOT]

    def nearest(self, q: np.ndarray) -> Optional[int]:
        """Index of the node closest to q; ties go to the earliest node."""
        configs, size = self._snapshot()
        if size == 0:
            return None
        distances = np.linalg.norm(configs[:size] - np.asarray(q, dtype=float), axis=1)
        # argmin returns the first minimum, i.e. the earliest-created node
        return int(np.argmin(distances))

    def path_to_root(self, index: int) -> List[np.ndarray]:
        """Configurations from ``index`` back to its root, inclusive."""
        path = []
        current = index
        while current != ROOT:
            path.append(self.config(current))
            current = self._parents[current]
        return path

    def root_of(self, index: int) -> int:
        current = index
        while self._parents[current] != ROOT:
            current = self._parents[current]
        return current
