"""
Recursive determinant and cofactor computation.

Determinants are evaluated by cofactor expansion along the first row. The
cost is factorial in the matrix order, so these routines are meant for the
small matrices of diagnostics and tests, not for covariance-sized inputs.
The recursion walks a MinorView (parent buffer plus the surviving row and
column indices) instead of copying every intermediate minor.
"""

import numpy as np

from facerec.exceptions import NotSquare, ShapeMismatch
from facerec.matrix import Matrix


class MinorView:
    """
    Read-only square view of a matrix with some rows and columns excluded.

    Args:
        data: 2-D array of the parent matrix
        rows: indices of the parent rows kept, in order
        cols: indices of the parent columns kept, in order
    """

    __slots__ = ('data', 'rows', 'cols')

    def __init__(self, data, rows, cols):
        self.data = data
        self.rows = tuple(rows)
        self.cols = tuple(cols)

    @classmethod
    def of(cls, M):
        return cls(M.data, range(M.rows), range(M.cols))

    @property
    def size(self):
        return len(self.rows)

    def get(self, i, j):
        return self.data[self.rows[i], self.cols[j]]

    def minor(self, i, j):
        """View without local row i and local column j."""
        return MinorView(self.data,
                         self.rows[:i] + self.rows[i + 1:],
                         self.cols[:j] + self.cols[j + 1:])

    def to_matrix(self):
        return Matrix.from_array(self.data[np.ix_(self.rows, self.cols)])


def check_square(M, op):
    if M.rows != M.cols:
        raise NotSquare(f"{op} requires a square matrix, got {M.rows}x{M.cols}")
    if M.rows == 0:
        raise ShapeMismatch(f"{op} of an empty matrix is undefined")


def determinant_of_view(view):
    n = view.size
    if n == 1:
        return float(view.get(0, 0))
    if n == 2:
        return float(view.get(0, 0) * view.get(1, 1) - view.get(0, 1) * view.get(1, 0))

    det = 0.0
    for j in range(n):
        sign = 1.0 if j % 2 == 0 else -1.0
        det += sign * view.get(0, j) * determinant_of_view(view.minor(0, j))
    return float(det)


def determinant(M):
    """
    Determinant of a square matrix by cofactor expansion along row 0.

    Raises:
        NotSquare: if M is not square
        ShapeMismatch: if M is 0x0
    """
    check_square(M, "determinant")
    return determinant_of_view(MinorView.of(M))


def cofactor_matrix(M):
    """
    Transposed matrix of signed minors (the adjugate of M).

    The signed minor (-1)^(i+j) * det(minor(i, j)) is stored at position
    (j, i), so adjugate_inverse can divide it directly by det(M).
    """
    check_square(M, "cofactor matrix")
    n = M.rows
    R = Matrix(n, n)
    if n == 1:
        R[0, 0] = 1.0
        return R

    view = MinorView.of(M)
    for i in range(n):
        for j in range(n):
            sign = 1.0 if (i + j) % 2 == 0 else -1.0
            R[j, i] = sign * determinant_of_view(view.minor(i, j))
    return R
