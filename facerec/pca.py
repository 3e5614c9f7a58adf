# facerec/pca.py
import logging

import numpy as np

from facerec import providers
from facerec.exceptions import EmptyInput, PreconditionViolation
from facerec.matrix import Matrix, matrix_multiply

logger = logging.getLogger(__name__)


class EigenfacePCA:
    """
    PCA over a sample matrix whose columns are flattened images.

    The covariance A * A' (pixels x pixels) is never formed: the provider
    eigendecomposes the surrogate A' * A (images x images) and its
    eigenvectors are lifted back with A (Turk & Pentland, 1991).

    Attributes:
        mean_: mean face, (pixels, 1)
        components_: W_pca', (n_components, pixels), rows are unit eigenfaces
        eigenvalues_: eigenvalues of the kept components, descending
        explained_variance_ratio_: share of the total variance per component
    """

    def __init__(self, n_components=None, provider=None):
        self.n_components = n_components
        self.provider = provider
        self.mean_ = None
        self.components_ = None
        self.eigenvalues_ = None
        self.explained_variance_ratio_ = None

    def fit(self, X):
        if X.cols == 0 or X.rows == 0:
            raise EmptyInput("PCA needs at least one sample")
        provider = providers.resolve(self.provider)

        self.mean_ = X.mean_rows()
        A = X.copy().subtract_columns(self.mean_)

        L = matrix_multiply(A.transpose(), A, provider=provider)
        L_eval, L_evec = provider.eigen(L.data)

        order = np.argsort(-L_eval.ravel(), kind='stable')
        L_eval = L_eval.ravel()[order]
        L_evec = L_evec[:, order]

        n_components = self.n_components
        if n_components is None:
            n_components = max(X.cols - 1, 1)
        # eigenvalues at rounding level span the null space of A; their lifted
        # vectors are noise and cannot be normalized into eigenfaces
        tolerance = max(L_eval[0], 0.0) * max(X.shape) * np.finfo(np.float64).eps
        rank = int(np.count_nonzero(L_eval > tolerance))
        n_components = min(n_components, X.cols, rank)

        V = matrix_multiply(A, Matrix.from_array(L_evec[:, :n_components]), provider=provider)
        V.data /= np.linalg.norm(V.data, axis=0)

        self.components_ = V.transpose()
        self.eigenvalues_ = L_eval[:n_components]

        total_variance = np.sum(L_eval[L_eval > 0])
        if total_variance > 0:
            self.explained_variance_ratio_ = np.clip(self.eigenvalues_, 0, None) / total_variance
        else:
            self.explained_variance_ratio_ = np.zeros(n_components)

        logger.debug("PCA: %d samples of dimension %d -> %d components",
                     X.cols, X.rows, n_components)
        return self

    def _check_fitted(self):
        if self.components_ is None:
            raise PreconditionViolation("PCA is not fitted. Run fit first.")

    def transform(self, X):
        self._check_fitted()
        A = X.copy().subtract_columns(self.mean_)
        return matrix_multiply(self.components_, A, provider=self.provider)

    def inverse_transform(self, P):
        self._check_fitted()
        X_rec = matrix_multiply(self.components_.transpose(), P, provider=self.provider)
        X_rec.data += self.mean_.data
        return X_rec


def PCA(X, n_components=None, provider=None):
    """
    Eigenface PCA of a training matrix.

    Returns:
        tuple: (mean_face, W_pca_tr, P_pca, eigenvalues)
    """
    pca = EigenfacePCA(n_components=n_components, provider=provider).fit(X)
    return pca.mean_, pca.components_, pca.transform(X), pca.eigenvalues_
