"""Fit Lloyd's K-means on two synthetic Gaussian blobs and save the model as JSON."""

import os
import sys

import numpy as np

# Add current directory to path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from lloyd_kmeans import KMeans, KMeansHyperParams, generate_blobs


def simple_example(model_path: str = "k_means_model.json"):
    """Simple example demonstrating K-means usage."""
    print("🎯 Simple Lloyd K-means Example")
    print("=" * 50)

    # Two clear clusters
    expected_centroids = np.array([[0., 1.], [-10., 20.]])
    observations = generate_blobs(1000, expected_centroids, random_state=42)
    print(f"Using {observations.shape[0]} samples with {observations.shape[1]} features")

    n_clusters = expected_centroids.shape[0]
    hyperparams = KMeansHyperParams.new(n_clusters).tolerance(1e-2).build()

    print(f"\nFitting K-means with k={n_clusters}...")
    model = KMeans.fit(hyperparams, observations, random_state=42, n_jobs=-1, verbose=True)

    print(f"\nResults:")
    print(f"  Inertia: {model.inertia(observations):.2f}")
    for index, centroid in enumerate(model.centroids):
        print(f"  Centroid {index}: {np.round(centroid, 3)}")

    labels = model.predict(observations)
    counts = np.bincount(labels, minlength=n_clusters)
    print(f"\nCluster distribution: {counts.tolist()}")

    model.save(model_path)
    restored = KMeans.load(model_path)
    assert np.array_equal(restored.predict(observations), labels)
    print(f"\nModel saved to {model_path}")

    print("\n✅ Example completed successfully!")


if __name__ == "__main__":
    simple_example()
