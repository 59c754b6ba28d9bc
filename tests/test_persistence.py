import json

import numpy as np
import pytest

from lloyd_kmeans import InvalidConfiguration, KMeans, KMeansHyperParams, ShapeMismatch, generate_blobs


@pytest.fixture
def model():
    observations = generate_blobs(100, [[0., 1.], [-10., 20.]], random_state=0)
    params = KMeansHyperParams.new(2).tolerance(1e-2).max_n_iterations(50).build()
    return KMeans.fit(params, observations, random_state=0)


def test_to_dict_layout(model):
    data = model.to_dict()
    assert set(data) == {'hyperparameters', 'centroids'}
    assert data['hyperparameters'] == {'n_clusters': 2, 'tolerance': 1e-2, 'max_n_iterations': 50}
    assert np.array_equal(np.array(data['centroids']), model.centroids)


def test_save_and_load(model, tmp_path):
    path = tmp_path / "k_means_model.json"
    model.save(str(path))

    with open(path) as f:
        assert set(json.load(f)) == {'hyperparameters', 'centroids'}

    restored = KMeans.load(str(path))
    assert restored.hyperparameters == model.hyperparameters
    np.testing.assert_array_equal(restored.centroids, model.centroids)

    queries = np.random.default_rng(0).normal(scale=10.0, size=(50, 2))
    np.testing.assert_array_equal(restored.predict(queries), model.predict(queries))


def test_from_dict_rejects_ragged_centroids():
    data = {
        'hyperparameters': {'n_clusters': 2, 'tolerance': 1e-4, 'max_n_iterations': 300},
        'centroids': [[0.0, 1.0], [2.0]],
    }
    with pytest.raises(ShapeMismatch):
        KMeans.from_dict(data)


def test_from_dict_rejects_wrong_centroid_count():
    data = {
        'hyperparameters': {'n_clusters': 3, 'tolerance': 1e-4, 'max_n_iterations': 300},
        'centroids': [[0.0, 1.0], [2.0, 3.0]],
    }
    with pytest.raises(ShapeMismatch):
        KMeans.from_dict(data)


def test_from_dict_validates_hyperparameters():
    data = {
        'hyperparameters': {'n_clusters': 0, 'tolerance': 1e-4, 'max_n_iterations': 300},
        'centroids': [],
    }
    with pytest.raises(InvalidConfiguration):
        KMeans.from_dict(data)
