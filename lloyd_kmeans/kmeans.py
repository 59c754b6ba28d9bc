"""
K-means clustering with Lloyd's algorithm (standard / naive K-means).

The fit loop has three steps:
- initialisation: pick ``n_clusters`` distinct observations at random as the
  starting centroids;
- assignment: attach every observation to its nearest centroid;
- update: move every centroid to the mean of the observations attached to it.

Assignment and update alternate until the centroids stop moving (their squared
shift drops below ``tolerance``) or the iteration cap is exceeded.
"""

import json
import os
from contextlib import contextmanager
from multiprocessing.pool import ThreadPool
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from .distance import row_sq_l2_dist, sq_l2_dist
from .errors import EmptyCentroidSet, InvalidConfiguration, ShapeMismatch
from .hyperparams import KMeansHyperParams
from .incremental_mean import IncrementalMean

RandomState = Union[None, int, np.random.SeedSequence, np.random.Generator]


def _as_observations(observations, name: str = "observations") -> np.ndarray:
    observations = np.asarray(observations, dtype=np.float64)
    if observations.ndim != 2:
        raise ShapeMismatch(
            f"{name} must be a 2-dimensional (n_observations, n_features) matrix, "
            f"got shape {observations.shape}"
        )
    return observations


def effective_n_jobs(n_jobs: Optional[int], n_observations: Optional[int] = None) -> int:
    """
    Number of worker threads for a given ``n_jobs``.

    ``None`` means a single thread, ``-1`` all CPUs, ``-2`` all CPUs but one, and so on.
    When ``n_observations`` is given there is never more than one thread per observation.
    """
    if n_jobs is None:
        return 1
    if n_jobs == 0:
        raise InvalidConfiguration("n_jobs == 0 has no meaning, use None or a non-zero integer")
    if n_jobs < 0:
        n_jobs = max(1, (os.cpu_count() or 1) + 1 + n_jobs)
    if n_observations is not None:
        n_jobs = max(1, min(n_jobs, n_observations))
    return n_jobs


@contextmanager
def _worker_pool(n_workers: int) -> Iterator[Optional[ThreadPool]]:
    if n_workers <= 1:
        yield None
        return
    with ThreadPool(n_workers) as pool:
        yield pool


def _chunk_bounds(n_observations: int, n_chunks: int) -> List[Tuple[int, int]]:
    """Contiguous, non-empty [start, stop) ranges covering all observations."""
    n_chunks = max(1, min(n_chunks, n_observations))
    edges = np.linspace(0, n_observations, n_chunks + 1).astype(int)
    return [(int(start), int(stop)) for start, stop in zip(edges[:-1], edges[1:]) if stop > start]


def _starmap(pool: Optional[ThreadPool], func, args: List[tuple]) -> list:
    if pool is None or len(args) <= 1:
        return [func(*a) for a in args]
    return pool.starmap(func, args)


def get_random_centroids(
    n_clusters: int,
    observations: np.ndarray,
    rng: np.random.Generator
) -> np.ndarray:
    """
    Pick ``n_clusters`` distinct rows of ``observations`` uniformly at random.

    Args:
        n_clusters: Number of centroids to draw
        observations: Matrix of shape (n_observations, n_features)
        rng: Source of randomness; its state is advanced

    Returns:
        Copy of the selected rows, shape (n_clusters, n_features)
    """
    n_observations = observations.shape[0]
    if n_clusters < 1:
        raise InvalidConfiguration(f"n_clusters must be at least 1, got {n_clusters}")
    if n_clusters > n_observations:
        raise InvalidConfiguration(
            f"Cannot draw {n_clusters} distinct centroids from {n_observations} observations"
        )
    indices = rng.choice(n_observations, size=n_clusters, replace=False)
    return observations[indices].copy()


def _closest_centroids(centroids: np.ndarray, observations: np.ndarray) -> np.ndarray:
    """
    Index of the nearest centroid (squared Euclidean distance) for each observation.

    Linear scan starting from centroid 0. A centroid only replaces the current
    best when it is strictly closer, so ties go to the lowest index.
    Callers go through ``_check_compatible`` first, so there is at least one centroid.
    """
    closest = np.zeros(observations.shape[0], dtype=np.intp)
    minimum_distance = row_sq_l2_dist(observations, centroids[0])
    for centroid_index in range(1, centroids.shape[0]):
        distance = row_sq_l2_dist(observations, centroids[centroid_index])
        closer = distance < minimum_distance
        closest[closer] = centroid_index
        minimum_distance = np.where(closer, distance, minimum_distance)
    return closest


def _check_compatible(centroids: np.ndarray, observations: np.ndarray) -> None:
    if centroids.shape[0] == 0:
        raise EmptyCentroidSet("There has to be at least one centroid")
    if centroids.shape[1] != observations.shape[1]:
        raise ShapeMismatch(
            f"Centroids have {centroids.shape[1]} features, "
            f"observations have {observations.shape[1]}"
        )


def _assign_chunk(
    centroids: np.ndarray,
    observations: np.ndarray,
    memberships: np.ndarray,
    start: int,
    stop: int
) -> None:
    # Each worker owns memberships[start:stop]; slices never overlap.
    memberships[start:stop] = _closest_centroids(centroids, observations[start:stop])


def update_cluster_memberships(
    centroids: np.ndarray,
    observations: np.ndarray,
    memberships: np.ndarray,
    pool: Optional[ThreadPool] = None,
    n_chunks: int = 1
) -> None:
    """Assignment step: overwrite ``memberships`` in place with the nearest centroid indices."""
    _check_compatible(centroids, observations)
    if observations.shape[0] == 0:
        return
    bounds = _chunk_bounds(observations.shape[0], n_chunks)
    _starmap(pool, _assign_chunk, [(centroids, observations, memberships, start, stop)
                                   for start, stop in bounds])


def compute_cluster_memberships(
    centroids: np.ndarray,
    observations: np.ndarray,
    n_jobs: Optional[int] = None
) -> np.ndarray:
    """
    Assignment step returning a fresh membership vector.

    Args:
        centroids: Matrix of shape (n_clusters, n_features)
        observations: Matrix of shape (n_observations, n_features)
        n_jobs: Worker threads (see ``effective_n_jobs``)

    Returns:
        Array of shape (n_observations,) with values in [0, n_clusters)
    """
    centroids = _as_observations(centroids, "centroids")
    observations = _as_observations(observations)
    memberships = np.zeros(observations.shape[0], dtype=np.intp)
    n_workers = effective_n_jobs(n_jobs, observations.shape[0])
    with _worker_pool(n_workers) as pool:
        update_cluster_memberships(centroids, observations, memberships, pool, n_workers)
    return memberships


def _fold_chunk(
    n_clusters: int,
    observations: np.ndarray,
    memberships: np.ndarray
) -> List[Optional[IncrementalMean]]:
    """Fold observations, in order, into one accumulator per cluster index."""
    accumulators: List[Optional[IncrementalMean]] = [None] * n_clusters
    for observation, cluster_index in zip(observations, memberships):
        accumulator = accumulators[cluster_index]
        if accumulator is None:
            accumulators[cluster_index] = IncrementalMean(observation)
        else:
            accumulator.update(observation)
    return accumulators


def compute_centroids(
    n_clusters: int,
    observations: np.ndarray,
    memberships: np.ndarray,
    pool: Optional[ThreadPool] = None,
    n_chunks: int = 1
) -> np.ndarray:
    """
    Update step: the mean of the observations assigned to each cluster.

    A cluster with no observations keeps an all-zero row, i.e. it collapses to
    the origin. It is neither re-seeded nor dropped.

    With ``n_chunks > 1`` each contiguous chunk of observations is folded into
    its own partial accumulators, which are then merged in chunk order.
    """
    n_features = observations.shape[1]
    bounds = _chunk_bounds(observations.shape[0], n_chunks)
    partials = _starmap(pool, _fold_chunk, [(n_clusters, observations[start:stop], memberships[start:stop])
                                            for start, stop in bounds])

    accumulators: List[Optional[IncrementalMean]] = [None] * n_clusters
    for partial in partials:
        for cluster_index, accumulator in enumerate(partial):
            if accumulator is None:
                continue
            if accumulators[cluster_index] is None:
                accumulators[cluster_index] = accumulator
            else:
                accumulators[cluster_index].merge(accumulator)

    centroids = np.zeros((n_clusters, n_features), dtype=np.float64)
    for cluster_index, accumulator in enumerate(accumulators):
        if accumulator is not None:
            centroids[cluster_index] = accumulator.current_mean
    return centroids


def has_converged(
    previous_centroids: np.ndarray,
    new_centroids: np.ndarray,
    n_iterations: int,
    hyperparameters: KMeansHyperParams
) -> Tuple[bool, float]:
    """
    Decide whether the fit loop should stop.

    ``n_iterations`` is the number of completed iterations, the current one
    included. Returns the stop decision and the squared centroid shift.
    """
    distance = sq_l2_dist(previous_centroids, new_centroids)
    stop = distance < hyperparameters.tolerance or n_iterations > hyperparameters.max_n_iterations
    return stop, distance


class KMeans:
    """
    A trained K-means model: the hyperparameters it was fitted with and the
    final centroids.

    Instances are produced by ``KMeans.fit`` (or ``from_dict`` / ``load``) and
    are immutable: ``predict`` never changes them and the centroid matrix is
    read-only.

    Example:
        >>> from lloyd_kmeans import KMeans, KMeansHyperParams, generate_blobs
        >>> observations = generate_blobs(1000, [[0., 1.], [-10., 20.]], random_state=42)
        >>> params = KMeansHyperParams.new(2).tolerance(1e-2).build()
        >>> model = KMeans.fit(params, observations, random_state=42)
        >>> labels = model.predict(observations)
    """

    def __init__(self, hyperparameters: KMeansHyperParams, centroids: np.ndarray):
        centroids = _as_observations(centroids, "centroids")
        if centroids.shape[0] != hyperparameters.n_clusters:
            raise ShapeMismatch(
                f"Expected {hyperparameters.n_clusters} centroids, got {centroids.shape[0]}"
            )
        centroids = centroids.copy()
        centroids.setflags(write=False)
        self._hyperparameters = hyperparameters
        self._centroids = centroids

    @classmethod
    def fit(
        cls,
        hyperparameters: KMeansHyperParams,
        observations: np.ndarray,
        random_state: RandomState = None,
        n_jobs: Optional[int] = None,
        verbose: bool = False
    ) -> 'KMeans':
        """
        Fit K-means centroids to the observations.

        Args:
            hyperparameters: Validated configuration
            observations: Matrix of shape (n_observations, n_features)
            random_state: Seed or ``numpy.random.Generator`` used to pick the
                initial centroids. The same seed gives the same model.
            n_jobs: Worker threads for the assignment and update steps
            verbose: Whether to print progress information

        Returns:
            A trained model
        """
        observations = _as_observations(observations)
        n_clusters = hyperparameters.n_clusters
        rng = np.random.default_rng(random_state)

        if verbose:
            print(f"Fitting K-means with {n_clusters} clusters on {observations.shape[0]} samples...")

        centroids = get_random_centroids(n_clusters, observations, rng)
        memberships = np.zeros(observations.shape[0], dtype=np.intp)
        n_iterations = 0

        n_workers = effective_n_jobs(n_jobs, observations.shape[0])
        with _worker_pool(n_workers) as pool:
            while True:
                update_cluster_memberships(centroids, observations, memberships, pool, n_workers)
                new_centroids = compute_centroids(n_clusters, observations, memberships, pool, n_workers)
                n_iterations += 1

                stop, distance = has_converged(centroids, new_centroids, n_iterations, hyperparameters)
                centroids = new_centroids

                if verbose:
                    print(f"Iteration {n_iterations}, centroid shift: {distance:.6e}")
                if stop:
                    break

        if verbose:
            if distance < hyperparameters.tolerance:
                print(f"Converged after {n_iterations} iterations")
            else:
                print(f"Stopped after {n_iterations} iterations without converging")

        return cls(hyperparameters, centroids)

    @classmethod
    def fit_predict(
        cls,
        hyperparameters: KMeansHyperParams,
        observations: np.ndarray,
        random_state: RandomState = None,
        n_jobs: Optional[int] = None,
        verbose: bool = False
    ) -> Tuple['KMeans', np.ndarray]:
        """Fit a model and return it together with the memberships of the training data."""
        model = cls.fit(hyperparameters, observations, random_state=random_state, n_jobs=n_jobs,
                        verbose=verbose)
        return model, model.predict(observations, n_jobs=n_jobs)

    def predict(self, observations: np.ndarray, n_jobs: Optional[int] = None) -> np.ndarray:
        """
        Index of the closest centroid for each observation.

        Args:
            observations: Matrix of shape (n_observations, n_features)
            n_jobs: Worker threads (see ``effective_n_jobs``)

        Returns:
            Cluster indices; ``model.centroids[index]`` is the matching centroid
        """
        return compute_cluster_memberships(self._centroids, observations, n_jobs=n_jobs)

    def inertia(self, observations: np.ndarray) -> float:
        """Within-cluster sum of squared distances of the observations to their closest centroid."""
        observations = _as_observations(observations)
        memberships = self.predict(observations)
        assigned_centroids = self._centroids[memberships]
        return float(np.sum((observations - assigned_centroids) ** 2))

    @property
    def centroids(self) -> np.ndarray:
        """Read-only centroid matrix of shape (n_clusters, n_features)."""
        return self._centroids

    @property
    def hyperparameters(self) -> KMeansHyperParams:
        return self._hyperparameters

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hyperparameters': self._hyperparameters.to_dict(),
            'centroids': self._centroids.tolist(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KMeans':
        hyperparameters = KMeansHyperParams.from_dict(data['hyperparameters'])
        try:
            centroids = np.asarray(data['centroids'], dtype=np.float64)
        except ValueError as e:
            raise ShapeMismatch(f"Malformed centroid matrix: {e}") from e
        return cls(hyperparameters, centroids)

    def save(self, path: str) -> None:
        """Write the model to ``path`` as JSON."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> 'KMeans':
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def __repr__(self):
        n_clusters, n_features = self._centroids.shape
        return f"KMeans(n_clusters={n_clusters}, n_features={n_features}, hyperparameters={self._hyperparameters!r})"
