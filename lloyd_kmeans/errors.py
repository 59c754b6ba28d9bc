"""
Exceptions raised by the K-means engine.

All of them are fatal at the point of detection: there is no retry and no
partial result. The concrete errors also derive from ``ValueError`` so code
written against plain ``ValueError`` checks keeps working.
"""


class KMeansError(Exception):
    """Base class for every error raised by this package."""


class InvalidConfiguration(KMeansError, ValueError):
    """Hyperparameters are invalid, or incompatible with the observations
    (e.g. more clusters than observations)."""


class NumericFailure(KMeansError):
    """A distance computation could not be completed."""


class ShapeMismatch(NumericFailure, ValueError):
    """Centroids and observations do not share the same feature dimensionality,
    or an input is not a 2-dimensional matrix."""


class EmptyCentroidSet(KMeansError, ValueError):
    """The assignment step received a centroid matrix with zero rows."""
