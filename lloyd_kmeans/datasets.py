"""Synthetic datasets for examples and tests."""

from typing import Optional, Tuple, Union

import numpy as np
from sklearn.datasets import make_blobs

from .errors import InvalidConfiguration, ShapeMismatch


def generate_blobs(
    n_observations: int,
    blob_centroids: np.ndarray,
    random_state: Optional[Union[int, np.random.RandomState]] = None,
    return_labels: bool = False
) -> Union[np.ndarray, Tuple[np.ndarray, np.ndarray]]:
    """
    Gaussian blobs with unit variance around each of ``blob_centroids``.

    Args:
        n_observations: Number of points drawn around each centroid
        blob_centroids: Matrix of shape (n_blobs, n_features)
        random_state: Seed or ``numpy.random.RandomState``
        return_labels: Also return the index of the blob each point was drawn from

    Returns:
        Matrix of shape (n_observations * n_blobs, n_features), ordered blob by
        blob, and optionally the blob labels
    """
    blob_centroids = np.asarray(blob_centroids, dtype=np.float64)
    if blob_centroids.ndim != 2:
        raise ShapeMismatch(
            f"blob_centroids must be a 2-dimensional matrix, got shape {blob_centroids.shape}"
        )
    if blob_centroids.shape[0] == 0:
        raise InvalidConfiguration("At least one blob centroid is required")
    if n_observations < 1:
        raise InvalidConfiguration(f"n_observations must be at least 1, got {n_observations}")

    observations, labels = make_blobs(
        n_samples=[n_observations] * blob_centroids.shape[0],
        centers=blob_centroids,
        cluster_std=1.0,
        shuffle=False,
        random_state=random_state,
    )
    if return_labels:
        return observations, labels
    return observations
