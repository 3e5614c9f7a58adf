# facerec/ica.py
import logging

from sklearn.decomposition import FastICA

import config
from facerec.matrix import Matrix, matrix_multiply

logger = logging.getLogger(__name__)


def ICA2(W_pca_tr, P_pca, n_components=None, random_state=None, max_iter=None, provider=None):
    """
    ICA architecture II (Bartlett et al., 2002) on the PCA coefficients.

    FastICA treats each training image as an observation of its PCA
    coefficients; the unmixing matrix it learns is chained after W_pca'.

    Args:
        W_pca_tr: PCA projection matrix, (components, pixels)
        P_pca: PCA projected images, (components, n)
        n_components: independent components kept, all PCA components if None

    Returns:
        Matrix: W_ica' = unmixing * W_pca'
    """
    if n_components is None:
        n_components = config.ICA_N_COMPONENTS or P_pca.rows
    n_components = min(n_components, P_pca.rows, P_pca.cols)
    if random_state is None:
        random_state = config.RANDOM_STATE
    if max_iter is None:
        max_iter = config.ICA_MAX_ITER

    ica = FastICA(
        n_components=n_components,
        whiten='unit-variance',
        max_iter=max_iter,
        random_state=random_state
    )
    ica.fit(P_pca.data.T)

    unmixing = Matrix.from_array(ica.components_)
    W_ica_tr = matrix_multiply(unmixing, W_pca_tr, provider=provider)

    logger.debug("ICA2: %d components after %d iterations", n_components, ica.n_iter_)
    return W_ica_tr
