"""
Distance functions between projected images.

Every function compares column i of A with column j of B, so a query can be
matched against a stored projection matrix without slicing it first.
"""

import numpy as np


def dist_l1(A, i, B, j):
    return float(np.sum(np.abs(A.data[:, i] - B.data[:, j])))


def dist_l2(A, i, B, j):
    diff = A.data[:, i] - B.data[:, j]
    return float(np.sqrt(np.dot(diff, diff)))


def dist_cos(A, i, B, j):
    """1 - cosine similarity; two zero vectors are at distance 0."""
    a = A.data[:, i]
    b = B.data[:, j]
    denom = np.linalg.norm(a) * np.linalg.norm(b)
    if denom == 0:
        return 0.0 if not a.any() and not b.any() else 1.0
    return float(1.0 - np.dot(a, b) / denom)


DISTANCES = {
    'l1': dist_l1,
    'l2': dist_l2,
    'cos': dist_cos,
}


def get_distance(name):
    try:
        return DISTANCES[name]
    except KeyError:
        raise ValueError(f"Unknown distance: {name!r} (available: {sorted(DISTANCES)})") from None
