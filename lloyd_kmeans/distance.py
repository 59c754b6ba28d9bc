"""Squared Euclidean distance helpers."""

import numpy as np

from .errors import ShapeMismatch


def sq_l2_dist(a: np.ndarray, b: np.ndarray) -> float:
    """
    Squared Euclidean distance between two arrays of identical shape.

    Matrices are treated as flattened vectors, so this is also the
    squared shift between two centroid matrices.
    """
    if a.shape != b.shape:
        raise ShapeMismatch(f"Cannot compute distance between shapes {a.shape} and {b.shape}")
    diff = (a - b).ravel()
    return float(np.dot(diff, diff))


def row_sq_l2_dist(observations: np.ndarray, point: np.ndarray) -> np.ndarray:
    """Squared distance from every row of ``observations`` to ``point``."""
    if observations.shape[1] != point.shape[0]:
        raise ShapeMismatch(
            f"Observations have {observations.shape[1]} features, point has {point.shape[0]}"
        )
    diff = observations - point
    return np.einsum('ij,ij->i', diff, diff)
