import numpy as np
import pytest

from facerec.database import DatabaseEntry
from facerec.exceptions import PreconditionViolation, SingularMatrix
from facerec.lda import LDA, class_runs, scatter
from facerec.matrix import Matrix
from facerec.pca import EigenfacePCA


def entries_for(labels):
    return [DatabaseEntry(label, f"{label}_{k}") for k, label in enumerate(labels)]


@pytest.fixture
def two_by_two():
    """2 classes x 2 samples, dimension 3, columns grouped by class."""
    X = Matrix.from_array([
        [1.0, 3.0, 0.0, 2.0],
        [0.0, 2.0, 1.0, 1.0],
        [0.0, 0.0, 4.0, 2.0],
    ])
    return X, entries_for([7, 7, 2, 2])


def test_scatter_shapes_and_symmetry(two_by_two):
    X, entries = two_by_two
    S_b, S_w = scatter(X, 2, entries)
    assert S_b.shape == (3, 3)
    assert S_w.shape == (3, 3)
    np.testing.assert_allclose(S_b.data, S_b.data.T)
    np.testing.assert_allclose(S_w.data, S_w.data.T)


def test_scatter_sums_to_total_scatter(two_by_two):
    X, entries = two_by_two
    S_b, S_w = scatter(X, 2, entries)
    A = X.data - X.data.mean(axis=1, keepdims=True)
    np.testing.assert_allclose(S_b.data + S_w.data, A @ A.T, atol=1e-12)


def test_scatter_values(two_by_two):
    X, entries = two_by_two
    S_b, S_w = scatter(X, 2, entries)
    # class means (2, 1, 0) and (1, 1, 3); global mean (1.5, 1, 1.5)
    d = np.array([0.5, 0.0, -1.5])
    np.testing.assert_allclose(S_b.data, 2 * np.outer(d, d) + 2 * np.outer(-d, -d))
    expected_w = (np.outer([-1, -1, 0], [-1, -1, 0]) * 2
                  + np.outer([-1, 0, 1], [-1, 0, 1]) * 2)
    np.testing.assert_allclose(S_w.data, expected_w)


def test_scatter_uses_unweighted_mean_of_class_means():
    X = Matrix.from_array([[0.0, 0.0, 0.0, 4.0]])
    S_b, _ = scatter(X, 2, entries_for([0, 0, 0, 1]))
    # class means 0 and 4, unweighted global mean 2 (the sample mean would be 1)
    assert S_b[0, 0] == pytest.approx(3 * 4.0 + 1 * 4.0)


def test_scatter_does_not_modify_input(two_by_two):
    X, entries = two_by_two
    before = X.to_array()
    scatter(X, 2, entries)
    np.testing.assert_array_equal(X.data, before)


def test_class_runs():
    assert class_runs(entries_for([3, 3, 1, 5, 5, 5])) == [(0, 2), (2, 3), (3, 6)]
    assert class_runs([]) == []


def test_ungrouped_entries_are_rejected():
    with pytest.raises(PreconditionViolation):
        class_runs(entries_for([0, 1, 0]))


def test_scatter_preconditions(two_by_two):
    X, entries = two_by_two
    with pytest.raises(PreconditionViolation):
        scatter(X, 3, entries)
    with pytest.raises(PreconditionViolation):
        scatter(X, 2, entries[:3])


def pca_inputs(corpus, n_components=None):
    pca = EigenfacePCA(n_components=n_components).fit(corpus.X)
    entries = [DatabaseEntry(l, n) for l, n in zip(corpus.labels, corpus.names)]
    return pca.components_, pca.transform(corpus.X), entries


def test_lda_truncated_keeps_c_minus_one_components(face_corpus):
    W_pca_tr, P_pca, entries = pca_inputs(face_corpus)
    W_lda_tr = LDA(W_pca_tr, P_pca, 3, entries, truncate=True)
    assert W_lda_tr.shape == (2, face_corpus.num_dimensions)


def test_lda_untruncated_keeps_every_column(face_corpus):
    n, c = len(face_corpus), face_corpus.num_classes
    W_pca_tr, P_pca, entries = pca_inputs(face_corpus, n_components=n - c)
    W_lda_tr = LDA(W_pca_tr, P_pca, c, entries, truncate=False)
    assert W_lda_tr.shape == (n - c, face_corpus.num_dimensions)


def test_lda_separates_classes(face_corpus):
    W_pca_tr, P_pca, entries = pca_inputs(face_corpus)
    W_lda_tr = LDA(W_pca_tr, P_pca, 3, entries, truncate=True)
    A = face_corpus.X.data - face_corpus.X.data.mean(axis=1, keepdims=True)
    P = W_lda_tr.data @ A
    labels = np.array(face_corpus.labels)
    means = np.stack([P[:, labels == k].mean(axis=1) for k in range(3)])
    spread = max(np.linalg.norm(P[:, labels == k] - means[k][:, None], axis=0).max() for k in range(3))
    gap = min(np.linalg.norm(means[i] - means[j]) for i in range(3) for j in range(i + 1, 3))
    assert gap > spread


def test_lda_singular_within_class_scatter():
    # every class is a single repeated point, so S_w == 0
    P_pca = Matrix.from_array([[1.0, 1.0, -1.0, -1.0], [2.0, 2.0, -2.0, -2.0]])
    W_pca_tr = Matrix.identity(2)
    with pytest.raises(SingularMatrix):
        LDA(W_pca_tr, P_pca, 2, entries_for([0, 0, 1, 1]), truncate=False)


def test_lda_needs_more_images_than_classes():
    P_pca = Matrix.from_array([[1.0, -1.0]])
    with pytest.raises(PreconditionViolation):
        LDA(Matrix.identity(1), P_pca, 2, entries_for([0, 1]), truncate=True)
