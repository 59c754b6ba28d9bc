"""
K-means clustering (Lloyd's algorithm) for dense numeric data.
"""

from .version import __version__
from .errors import KMeansError, InvalidConfiguration, NumericFailure, ShapeMismatch, EmptyCentroidSet
from .hyperparams import KMeansHyperParams, KMeansHyperParamsBuilder
from .incremental_mean import IncrementalMean
from .kmeans import KMeans
from .datasets import generate_blobs

__all__ = [
    "KMeans", "KMeansHyperParams", "KMeansHyperParamsBuilder", "IncrementalMean", "generate_blobs",
    "KMeansError", "InvalidConfiguration", "NumericFailure", "ShapeMismatch", "EmptyCentroidSet",
    "__version__",
]
