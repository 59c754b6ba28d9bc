"""
Hyperparameters for the K-means fit loop.

``KMeansHyperParams`` is an immutable, validated value. Build one directly or
through the fluent builder:

    >>> params = KMeansHyperParams.new(3).tolerance(1e-2).max_n_iterations(100).build()
"""

import math
import numbers
from dataclasses import dataclass, asdict
from typing import Any, Dict

from .errors import InvalidConfiguration

DEFAULT_TOLERANCE = 1e-4
DEFAULT_MAX_N_ITERATIONS = 300


@dataclass(frozen=True)
class KMeansHyperParams:
    """Configuration consumed read-only by ``KMeans.fit``."""
    n_clusters: int
    tolerance: float = DEFAULT_TOLERANCE
    max_n_iterations: int = DEFAULT_MAX_N_ITERATIONS

    def __post_init__(self):
        if isinstance(self.n_clusters, bool) or not isinstance(self.n_clusters, numbers.Integral):
            raise InvalidConfiguration(f"n_clusters must be an integer, got {self.n_clusters!r}")
        if self.n_clusters < 1:
            raise InvalidConfiguration(f"n_clusters must be at least 1, got {self.n_clusters}")

        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, numbers.Real):
            raise InvalidConfiguration(f"tolerance must be a real number, got {self.tolerance!r}")
        if math.isnan(self.tolerance) or self.tolerance < 0:
            raise InvalidConfiguration(f"tolerance must be non-negative, got {self.tolerance}")

        if isinstance(self.max_n_iterations, bool) or not isinstance(self.max_n_iterations, numbers.Integral):
            raise InvalidConfiguration(
                f"max_n_iterations must be an integer, got {self.max_n_iterations!r}"
            )
        if self.max_n_iterations < 0:
            raise InvalidConfiguration(
                f"max_n_iterations must be non-negative, got {self.max_n_iterations}"
            )

        # Normalise numpy scalars so the value serialises cleanly.
        object.__setattr__(self, 'n_clusters', int(self.n_clusters))
        object.__setattr__(self, 'tolerance', float(self.tolerance))
        object.__setattr__(self, 'max_n_iterations', int(self.max_n_iterations))

    @staticmethod
    def new(n_clusters: int) -> 'KMeansHyperParamsBuilder':
        """Start a builder with default tolerance and iteration cap."""
        return KMeansHyperParamsBuilder(n_clusters)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KMeansHyperParams':
        return cls(
            n_clusters=data['n_clusters'],
            tolerance=data['tolerance'],
            max_n_iterations=data['max_n_iterations'],
        )


class KMeansHyperParamsBuilder:
    """Fluent builder for ``KMeansHyperParams``. Validation happens in ``build``."""

    def __init__(self, n_clusters: int):
        self._n_clusters = n_clusters
        self._tolerance = DEFAULT_TOLERANCE
        self._max_n_iterations = DEFAULT_MAX_N_ITERATIONS

    def tolerance(self, tolerance: float) -> 'KMeansHyperParamsBuilder':
        """Stop once the squared shift between consecutive centroid matrices drops below this."""
        self._tolerance = tolerance
        return self

    def max_n_iterations(self, max_n_iterations: int) -> 'KMeansHyperParamsBuilder':
        """Upper bound on iterations; the loop always runs at least once."""
        self._max_n_iterations = max_n_iterations
        return self

    def build(self) -> KMeansHyperParams:
        return KMeansHyperParams(
            n_clusters=self._n_clusters,
            tolerance=self._tolerance,
            max_n_iterations=self._max_n_iterations,
        )
