import numpy as np
from sklearn.cluster import KMeans as SklearnKMeans
from sklearn.metrics import adjusted_rand_score

from lloyd_kmeans import KMeans, KMeansHyperParams, generate_blobs
from lloyd_kmeans.kmeans import get_random_centroids


def test_matches_sklearn_on_separated_blobs():
    X = generate_blobs(500, [[0., 1.], [-10., 20.]], random_state=42)

    ours = KMeans.fit(KMeansHyperParams.new(2).tolerance(1e-10).build(), X, random_state=42)
    reference = SklearnKMeans(n_clusters=2, n_init=10, random_state=42).fit(X)

    order = np.argsort(ours.centroids[:, 0])
    ref_order = np.argsort(reference.cluster_centers_[:, 0])
    np.testing.assert_allclose(ours.centroids[order], reference.cluster_centers_[ref_order], atol=1e-6)
    assert adjusted_rand_score(reference.labels_, ours.predict(X)) == 1.0


def test_inertia_close_to_sklearn():
    rng = np.random.default_rng(42)
    X = np.vstack([
        rng.normal(loc=0.0, scale=0.5, size=(200, 16)),
        rng.normal(loc=5.0, scale=0.5, size=(200, 16)),
        rng.normal(loc=-4.0, scale=0.5, size=(200, 16)),
    ])

    params = KMeansHyperParams.new(3).build()
    # Best of several random starts, a single one may land in a worse local minimum
    inertia = min(KMeans.fit(params, X, random_state=seed).inertia(X) for seed in range(5))
    reference = SklearnKMeans(n_clusters=3, n_init=5, max_iter=200, random_state=42).fit(X)

    rel_diff = (inertia - reference.inertia_) / reference.inertia_
    assert rel_diff < 0.05, f"Lloyd inertia too high relative to sklearn KMeans: rel_diff={rel_diff:.3f}"


def test_matches_sklearn_lloyd_from_same_initial_centroids():
    # Overlapping blobs, so a random start can end in a local minimum
    X = generate_blobs(100, [[0., 0.], [4., 0.], [0., 4.], [4., 4.]], random_state=3)
    seed = 3

    init = get_random_centroids(4, X, np.random.default_rng(seed))
    ours = KMeans.fit(KMeansHyperParams.new(4).tolerance(0).build(), X, random_state=seed)
    reference = SklearnKMeans(n_clusters=4, init=init, n_init=1, algorithm='lloyd', tol=0).fit(X)

    # Same start, same iterations: centroids agree position by position, no reordering
    np.testing.assert_allclose(ours.centroids, reference.cluster_centers_, atol=1e-8)
    np.testing.assert_array_equal(ours.predict(X), reference.labels_)
