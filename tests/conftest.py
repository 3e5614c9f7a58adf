import numpy as np
import pytest

from facerec import providers
from facerec.matrix import Matrix
from facerec.preprocessing import from_arrays


@pytest.fixture(autouse=True)
def reset_default_provider(monkeypatch):
    monkeypatch.setattr(providers, "_default_provider", None)


@pytest.fixture
def fill_matrix():
    """6x6 deterministic fill: 1, 2, ..., 36 in row-major order."""
    return Matrix.from_array(np.arange(1, 37, dtype=float).reshape(6, 6))


@pytest.fixture
def rng():
    return np.random.default_rng(0)


def make_face_corpus(rng, n_classes=3, per_class=5, dim=30, spread=10.0, noise=0.5):
    """Well separated Gaussian clusters, grouped by class."""
    centers = rng.normal(scale=spread, size=(n_classes, dim))
    samples, labels, names = [], [], []
    for label in range(n_classes):
        for k in range(per_class):
            samples.append(centers[label] + rng.normal(scale=noise, size=dim))
            labels.append(label)
            names.append(f"s{label}/{k + 1}.pgm")
    return from_arrays(samples, labels, names)


@pytest.fixture
def face_corpus(rng):
    return make_face_corpus(rng)
