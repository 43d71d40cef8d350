# hmmtag/averaging.py
"""Parameter averaging across training iterations."""
from __future__ import annotations
from typing import Dict, Optional

import numpy as np

from .store import ParameterStore, Snapshot

__all__ = ["ParameterAverager"]


class ParameterAverager:
    """
    Accumulates per-iteration parameter snapshots and collapses them.

    The training loop owns one averager per run. After each iteration it calls
    `accumulate`, which adds the current parameters of the store into running
    sums. At the end of training `average` replaces the store's parameters
    with ``sums / total_iterations``.

    Parameters that only appear in later snapshots (sparse emission vectors
    created mid-training) count as zeros in the earlier ones, which is exactly
    the value they held at that time.

    Attributes:
        store: The store whose parameters are being averaged.
        sums: Running sum of every accumulated snapshot, by parameter name.
        last_iteration: The iteration passed to the latest `accumulate` call.
        num_snapshots: How many snapshots have been accumulated.
    """

    def __init__(self, store: ParameterStore):
        self.store = store
        self.sums: Dict[str, np.ndarray] = {}
        self.last_iteration: Optional[int] = None
        self.num_snapshots = 0

    def reset(self) -> None:
        self.sums = {}
        self.last_iteration = None
        self.num_snapshots = 0

    def accumulate(self, iteration: int) -> None:
        """Adds a snapshot of the store's current parameters to the sums."""
        if iteration < 1:
            raise ValueError(f"Iterations are numbered from 1, got {iteration}.")
        if self.last_iteration is not None and iteration <= self.last_iteration:
            raise ValueError(
                f"Iteration {iteration} was already accumulated (last was {self.last_iteration})."
            )

        snapshot = self.store.snapshot()
        for name, value in snapshot.items():
            total = self.sums.get(name)
            if total is None:
                self.sums[name] = np.array(value, dtype=np.float64, copy=True)
            else:
                total += value
        self.last_iteration = iteration
        self.num_snapshots += 1

    def averaged(self, total_iterations: int) -> Snapshot:
        """Returns the averaged parameters without touching the store."""
        if total_iterations < 1:
            raise ValueError(f"total_iterations must be at least 1, got {total_iterations}.")
        if not self.num_snapshots:
            raise ValueError("Nothing to average: accumulate() was never called.")
        return {name: total / total_iterations for name, total in self.sums.items()}

    def average(self, total_iterations: int) -> None:
        """Overwrites the store's parameters with their average."""
        self.store.restore(self.averaged(total_iterations))
