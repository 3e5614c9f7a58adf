"""
Dense matrix container used throughout the recognition pipeline.

A Matrix owns a float64 numpy buffer of exactly rows * cols elements. Every
operation that walks the buffer linearly (reshape, find_nonzero_row_indices)
uses row-major traversal. Methods named after a transform (scale, exp,
flip_columns_left_right, ...) mutate the matrix in place and return it;
everything else returns a new, independent Matrix.

Element-wise transforms do not check their domain: acos outside [-1, 1],
sqrt of a negative number or a division by zero produce NaN/Inf following
IEEE floating-point semantics.
"""

import numpy as np

from facerec.exceptions import ShapeMismatch
from facerec import providers


class Matrix:
    """
    Dense rectangular matrix of float64 values.

    Attributes:
        data: 2-D numpy array of shape (rows, cols) owned by this matrix
    """

    def __init__(self, rows, cols):
        if rows < 0 or cols < 0:
            raise ShapeMismatch(f"Invalid matrix shape ({rows}, {cols})")
        try:
            self.data = np.zeros((rows, cols), dtype=np.float64)
        except ValueError as e:
            # numpy reports an overflowing element count as ValueError
            raise MemoryError(f"Cannot allocate a {rows}x{cols} matrix") from e

    @classmethod
    def _wrap(cls, array):
        M = cls.__new__(cls)
        M.data = array
        return M

    @classmethod
    def zeros(cls, rows, cols):
        return cls(rows, cols)

    @classmethod
    def identity(cls, n):
        M = cls(n, n)
        np.fill_diagonal(M.data, 1.0)
        return M

    @classmethod
    def from_array(cls, array):
        """
        Build a matrix from a copy of a 1-D or 2-D array-like.

        A 1-D input becomes a column vector.
        """
        data = np.array(array, dtype=np.float64)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        elif data.ndim != 2:
            raise ShapeMismatch(f"Expected a 1-D or 2-D array, got {data.ndim} dimensions")
        return cls._wrap(np.ascontiguousarray(data))

    @property
    def rows(self):
        return self.data.shape[0]

    @property
    def cols(self):
        return self.data.shape[1]

    @property
    def shape(self):
        return self.data.shape

    def __getitem__(self, index):
        i, j = index
        return float(self.data[i, j])

    def __setitem__(self, index, value):
        i, j = index
        self.data[i, j] = value

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self.data.copy()
        return self.data.astype(dtype)

    def __repr__(self):
        return f"Matrix({self.rows}x{self.cols})\n{self.data}"

    def __add__(self, other):
        return add(self, other)

    def __sub__(self, other):
        return subtract(self, other)

    def __matmul__(self, other):
        return matrix_multiply(self, other)

    def __iadd__(self, other):
        _check_same_shape(self, other, "add")
        self.data += other.data
        return self

    def __isub__(self, other):
        _check_same_shape(self, other, "subtract")
        self.data -= other.data
        return self

    def copy(self):
        return Matrix._wrap(self.data.copy())

    def to_array(self):
        return self.data.copy()

    def column(self, j):
        return Matrix._wrap(self.data[:, j:j + 1].copy())

    def copy_columns(self, begin, end):
        """Columns [begin, end) as a new matrix."""
        return Matrix._wrap(self.data[:, begin:end].copy())

    # In-place element-wise transforms

    def _apply(self, func):
        with np.errstate(all='ignore'):
            self.data[...] = func(self.data)
        return self

    def truncate(self):
        return self._apply(np.trunc)

    def acos(self):
        return self._apply(np.arccos)

    def sqrt(self):
        return self._apply(np.sqrt)

    def negate(self):
        return self._apply(np.negative)

    def exp(self):
        return self._apply(np.exp)

    def pow(self, x):
        return self._apply(lambda d: np.power(d, x))

    def scale(self, x):
        return self._apply(lambda d: d * x)

    def divide_by_constant(self, x):
        return self._apply(lambda d: d / np.float64(x))

    def invert_divide(self, x):
        """Replace every element m with x / m."""
        return self._apply(lambda d: np.float64(x) / d)

    def add_constant(self, x):
        return self._apply(lambda d: d + x)

    def flip_columns_left_right(self):
        self.data[...] = self.data[:, ::-1].copy()
        return self

    def normalize_to_unit_range(self):
        """
        Remap every element to (x - min) / (max - min) over the whole matrix.

        A constant matrix divides by zero and yields NaN.
        """
        lo = self.data.min()
        hi = self.data.max()
        return self._apply(lambda d: (d - lo) / (hi - lo))

    def subtract_columns(self, a):
        """Subtract the column vector `a` from every column (mean-centering)."""
        if a.shape != (self.rows, 1):
            raise ShapeMismatch(f"Expected a ({self.rows}, 1) column, got {a.shape}")
        self.data -= a.data
        return self

    # Reductions

    def sum_columns(self):
        return Matrix._wrap(self.data.sum(axis=0, keepdims=True))

    def mean_columns(self):
        return Matrix._wrap(self.data.sum(axis=0, keepdims=True) / self.rows)

    def sum_rows(self):
        return Matrix._wrap(self.data.sum(axis=1, keepdims=True))

    def mean_rows(self):
        return Matrix._wrap(self.data.sum(axis=1, keepdims=True) / self.cols)

    def norm(self):
        """Frobenius norm."""
        return float(np.sqrt(np.sum(self.data * self.data)))

    def find_nonzero_row_indices(self):
        """
        1-indexed row positions of every nonzero element, scanned row-major.

        Returns a (count, 1) column holding exactly the matches.
        """
        row_idx, _ = np.nonzero(self.data)
        return Matrix._wrap((row_idx + 1).astype(np.float64).reshape(-1, 1))

    # Shape transforms returning new matrices

    def transpose(self):
        return Matrix._wrap(np.ascontiguousarray(self.data.T))

    @property
    def T(self):
        return self.transpose()

    def reshape(self, new_rows, new_cols):
        if new_rows * new_cols != self.rows * self.cols:
            raise ShapeMismatch(
                f"Cannot reshape {self.rows}x{self.cols} into {new_rows}x{new_cols}")
        return Matrix._wrap(self.data.reshape(new_rows, new_cols).copy())

    def reorder_columns(self, order):
        """Column j of the result is column order[j] of this matrix."""
        if isinstance(order, Matrix):
            order = order.data.ravel()
        order = np.asarray(order, dtype=int)
        if order.shape != (self.cols,):
            raise ShapeMismatch(f"Column order needs {self.cols} indices, got {order.size}")
        return Matrix._wrap(self.data[:, order].copy())

    def covariance(self, provider=None):
        """Covariance between columns, normalised by rows - 1."""
        if self.rows < 2:
            raise ShapeMismatch("Covariance needs at least two rows")
        centered = self.data - self.data.sum(axis=0, keepdims=True) / self.rows
        product = providers.resolve(provider).multiply(centered.T, centered)
        return Matrix._wrap(np.asarray(product) / (self.rows - 1))


def _check_same_shape(A, B, op):
    if A.shape != B.shape:
        raise ShapeMismatch(f"Cannot {op} matrices of shape {A.shape} and {B.shape}")


def add(A, B):
    _check_same_shape(A, B, "add")
    return Matrix._wrap(A.data + B.data)


def subtract(A, B):
    _check_same_shape(A, B, "subtract")
    return Matrix._wrap(A.data - B.data)


def divide(A, B):
    _check_same_shape(A, B, "divide")
    with np.errstate(all='ignore'):
        return Matrix._wrap(A.data / B.data)


def matrix_multiply(A, B, provider=None):
    """Matrix product A * B, computed by the linear algebra provider."""
    if A.cols != B.rows:
        raise ShapeMismatch(f"Cannot multiply {A.rows}x{A.cols} by {B.rows}x{B.cols}")
    product = providers.resolve(provider).multiply(A.data, B.data)
    return Matrix._wrap(np.ascontiguousarray(product, dtype=np.float64))
