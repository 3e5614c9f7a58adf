"""
This module implements LDA on top of a PCA projection (Fisherfaces,
Belhumeur et al., 1996; Zhao et al., 1998).

The training columns must be grouped by class: the scatter computation scans
contiguous runs of equal labels instead of looking labels up.

Key quantities:
- U_i: mean of the columns of class i
- u: unweighted average of the class means
- S_b: between-class scatter, sum of n_i * (U_i - u)(U_i - u)'
- S_w: within-class scatter, sum of the scatter of each mean-centered class
"""

import logging

import numpy as np

import config
from facerec import providers
from facerec.exceptions import PreconditionViolation
from facerec.inverse import inverse
from facerec.matrix import Matrix, matrix_multiply

logger = logging.getLogger(__name__)


def class_runs(entries):
    """
    Split entry positions into contiguous runs of equal labels.

    Args:
        entries: sequence of DatabaseEntry, parallel to the sample columns

    Returns:
        list: (begin, end) column ranges, one per class, in column order

    Raises:
        PreconditionViolation: if a label reappears after its run ended
    """
    runs = []
    seen = set()
    begin = 0
    for k in range(1, len(entries) + 1):
        if k == len(entries) or entries[k].label != entries[begin].label:
            label = entries[begin].label
            if label in seen:
                raise PreconditionViolation(
                    f"Entries are not grouped by class: label {label} appears in two runs")
            seen.add(label)
            runs.append((begin, k))
            begin = k
    return runs


def scatter(X, c, entries, provider=None):
    """
    Compute the between-class and within-class scatter matrices.

    Args:
        X: projected samples, one column per image, grouped by class
        c: number of classes
        entries: DatabaseEntry list parallel to the columns of X
        provider: linear algebra provider, module default if None

    Returns:
        tuple: (S_b, S_w), both X.rows x X.rows
    """
    if len(entries) != X.cols:
        raise PreconditionViolation(
            f"{len(entries)} entries for a matrix with {X.cols} columns")
    runs = class_runs(entries)
    if len(runs) != c:
        raise PreconditionViolation(f"Expected {c} classes, found {len(runs)}")

    X_classes = [X.copy_columns(begin, end) for begin, end in runs]
    U = [X_class.mean_rows() for X_class in X_classes]

    # unweighted mean of the class means
    u = Matrix(X.rows, 1)
    for U_i in U:
        u += U_i
    u.divide_by_constant(c)

    S_b = Matrix.zeros(X.rows, X.rows)
    S_w = Matrix.zeros(X.rows, X.rows)

    for X_class, U_i in zip(X_classes, U):
        u_i = U_i - u
        S_b_i = matrix_multiply(u_i, u_i.transpose(), provider=provider)
        S_b += S_b_i.scale(X_class.cols)

        X_class.subtract_columns(U_i)
        S_w += matrix_multiply(X_class, X_class.transpose(), provider=provider)

    return S_b, S_w


def LDA(W_pca_tr, P_pca, c, entries, truncate=None, provider=None):
    """
    Compute the LDA projection matrix W_lda' of a training set.

    W_fld holds the eigenvectors of J = S_w^-1 * S_b and
    W_lda' = W_fld' * W_pca'.

    With truncate=False every PCA component and every eigenvector of J is
    kept. With truncate=True only the first n - c PCA components enter the
    scatter (so S_w has full rank) and the c - 1 eigenvectors with the
    largest eigenvalues are kept.

    Args:
        W_pca_tr: PCA projection matrix, (components, pixels)
        P_pca: PCA projected images, (components, n)
        c: number of classes
        entries: DatabaseEntry list parallel to the columns of P_pca
        truncate: see above, config.LDA_TRUNCATE if None
        provider: linear algebra provider, module default if None

    Returns:
        Matrix: W_lda'

    Raises:
        SingularMatrix: if S_w cannot be inverted
        PreconditionViolation: if entries are not grouped by class or
            truncation leaves no component
    """
    if truncate is None:
        truncate = config.LDA_TRUNCATE
    provider = providers.resolve(provider)

    if truncate:
        n_keep = min(P_pca.cols - c, P_pca.rows)
        if n_keep < 1:
            raise PreconditionViolation(
                f"LDA needs more images than classes (n={P_pca.cols}, c={c})")
        P_pca = Matrix.from_array(P_pca.data[:n_keep])
        W_pca_tr = Matrix.from_array(W_pca_tr.data[:n_keep])

    S_b, S_w = scatter(P_pca, c, entries, provider=provider)

    S_w_inv = inverse(S_w, provider=provider)
    J = matrix_multiply(S_w_inv, S_b, provider=provider)
    J_eval, J_evec = provider.eigen(J.data)

    if truncate:
        order = np.argsort(-J_eval.ravel(), kind='stable')[:max(c - 1, 1)]
        J_evec = J_evec[:, order]

    W_fld = Matrix.from_array(J_evec)
    W_lda_tr = matrix_multiply(W_fld.transpose(), W_pca_tr, provider=provider)

    logger.debug("LDA: %d classes, scatter %dx%d, W_lda' %dx%d",
                 c, S_w.rows, S_w.cols, W_lda_tr.rows, W_lda_tr.cols)
    return W_lda_tr
