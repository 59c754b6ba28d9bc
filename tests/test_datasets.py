import numpy as np
import pytest

from lloyd_kmeans import InvalidConfiguration, ShapeMismatch, generate_blobs


def test_blob_shape_and_order():
    centroids = np.array([[0., 0., 0.], [50., 50., 50.]])
    observations, labels = generate_blobs(300, centroids, random_state=1, return_labels=True)
    assert observations.shape == (600, 3)
    np.testing.assert_array_equal(labels, [0] * 300 + [1] * 300)
    np.testing.assert_allclose(observations[:300].mean(axis=0), centroids[0], atol=0.3)
    np.testing.assert_allclose(observations[300:].mean(axis=0), centroids[1], atol=0.3)
    np.testing.assert_allclose(observations[:300].std(axis=0), 1.0, atol=0.15)


def test_blobs_are_reproducible():
    a = generate_blobs(20, [[1., 2.]], random_state=7)
    b = generate_blobs(20, [[1., 2.]], random_state=7)
    np.testing.assert_array_equal(a, b)


def test_invalid_blob_arguments():
    with pytest.raises(ShapeMismatch):
        generate_blobs(10, [1., 2.])
    with pytest.raises(InvalidConfiguration):
        generate_blobs(10, np.empty((0, 2)))
    with pytest.raises(InvalidConfiguration):
        generate_blobs(0, [[1., 2.]])
