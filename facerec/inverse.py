"""
Matrix inversion through the LU factorization of the linear algebra provider.
"""

import logging

from facerec import providers
from facerec.determinant import check_square, cofactor_matrix, determinant
from facerec.exceptions import SingularMatrix
from facerec.matrix import matrix_multiply

logger = logging.getLogger(__name__)


def invert_in_place(M, provider=None):
    """
    Replace M with its inverse.

    The provider factorizes M with partial pivoting and inverts it from the
    factors. On SingularMatrix the content of M is undefined; invert a copy
    when the original must survive.

    Raises:
        NotSquare: if M is rectangular (checked before any work)
        ShapeMismatch: if M is 0x0
        SingularMatrix: if factorization or inversion reports a non-zero status
    """
    check_square(M, "inversion")

    inv, info = providers.resolve(provider).lu_invert(M.data)
    if info != 0:
        M.data.fill(float('nan'))
        logger.debug("LU inversion failed with info=%s", info)
        raise SingularMatrix(f"Matrix is singular to working precision (info={info})")

    M.data[...] = inv
    return M


def inverse(M, provider=None):
    return invert_in_place(M.copy(), provider=provider)


def matrix_divide(A, B, provider=None):
    """A * inverse(B); neither argument is modified."""
    B_inv = inverse(B, provider=provider)
    return matrix_multiply(A, B_inv, provider=provider)


def adjugate_inverse(M):
    """
    Inverse as adjugate / determinant, for small matrices only.

    Raises:
        SingularMatrix: if the determinant is exactly zero
    """
    det = determinant(M)
    if det == 0.0:
        raise SingularMatrix("Matrix has a zero determinant")
    return cofactor_matrix(M).divide_by_constant(det)
