"""
Running mean accumulator used by the update step.

The mean is updated one observation at a time,

    n += 1
    mean += (x - mean) / n

so the full sum is never materialised. Two accumulators over disjoint sets of
observations can be merged by weighting their means by their counts, which
lets partial accumulators built on separate partitions be combined later.
"""

import numpy as np


class IncrementalMean:
    """Mean of the observations folded in so far, plus how many there were."""

    __slots__ = ('current_mean', 'n_observations')

    def __init__(self, first_observation: np.ndarray):
        self.current_mean = np.array(first_observation, dtype=np.float64)
        self.n_observations = 1

    def update(self, observation: np.ndarray) -> None:
        self.n_observations += 1
        self.current_mean += (observation - self.current_mean) / self.n_observations

    def merge(self, other: 'IncrementalMean') -> None:
        """Fold another accumulator (over a disjoint set of observations) into this one."""
        total = self.n_observations + other.n_observations
        self.current_mean += (other.current_mean - self.current_mean) * (other.n_observations / total)
        self.n_observations = total

    def __repr__(self):
        return f"IncrementalMean(n_observations={self.n_observations}, current_mean={self.current_mean!r})"
