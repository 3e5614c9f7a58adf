import numpy as np
import pytest

from facerec.exceptions import ShapeMismatch
from facerec.matrix import Matrix, add, subtract, divide, matrix_multiply


def test_constructors():
    Z = Matrix.zeros(2, 3)
    assert Z.shape == (2, 3)
    assert not Z.data.any()

    I = Matrix.identity(4)
    np.testing.assert_array_equal(I.data, np.eye(4))

    v = Matrix.from_array([1, 2, 3])
    assert v.shape == (3, 1)


def test_invalid_shape_raises():
    with pytest.raises(ShapeMismatch):
        Matrix(-1, 2)
    with pytest.raises(ShapeMismatch):
        Matrix.from_array(np.zeros((2, 2, 2)))


def test_from_array_copies_input():
    a = np.ones((2, 2))
    M = Matrix.from_array(a)
    a[0, 0] = 5
    assert M[0, 0] == 1.0


def test_copy_is_independent(fill_matrix):
    C = fill_matrix.copy()
    C[0, 0] = -1
    assert fill_matrix[0, 0] == 1.0


def test_element_access(fill_matrix):
    assert fill_matrix[1, 2] == 9.0
    fill_matrix[1, 2] = 0.5
    assert fill_matrix.data[1, 2] == 0.5


def test_in_place_ops_return_self(fill_matrix):
    assert fill_matrix.scale(2) is fill_matrix
    assert fill_matrix[0, 0] == 2.0


def test_truncate_rounds_toward_zero():
    M = Matrix.from_array([[-1.5, 2.7], [0.2, -0.9]])
    M.truncate()
    np.testing.assert_array_equal(M.data, [[-1.0, 2.0], [0.0, -0.0]])


def test_unary_ops(fill_matrix):
    expected = fill_matrix.to_array()
    np.testing.assert_allclose(fill_matrix.copy().sqrt().data, np.sqrt(expected))
    np.testing.assert_allclose(fill_matrix.copy().exp().data, np.exp(expected))
    np.testing.assert_array_equal(fill_matrix.copy().negate().data, -expected)
    np.testing.assert_array_equal(fill_matrix.copy().pow(2.0).data, expected ** 2)
    np.testing.assert_array_equal(fill_matrix.copy().divide_by_constant(2.0).data, expected / 2)
    np.testing.assert_array_equal(fill_matrix.copy().invert_divide(2.0).data, 2 / expected)
    np.testing.assert_array_equal(fill_matrix.copy().add_constant(2.0).data, expected + 2)
    np.testing.assert_allclose(
        fill_matrix.copy().divide_by_constant(36).acos().data, np.arccos(expected / 36))


def test_domain_errors_propagate_as_nan_and_inf():
    M = Matrix.from_array([[2.0, -1.0]])
    assert np.isnan(M.copy().acos()[0, 0])
    assert np.isnan(M.copy().sqrt()[0, 1])
    assert np.isinf(M.copy().divide_by_constant(0)[0, 0])
    assert np.isinf(Matrix.zeros(1, 1).invert_divide(1.0)[0, 0])


def test_flip_columns_left_right():
    M = Matrix.from_array([[1, 2, 3], [4, 5, 6]])
    M.flip_columns_left_right()
    np.testing.assert_array_equal(M.data, [[3, 2, 1], [6, 5, 4]])


def test_flip_twice_is_identity(fill_matrix):
    original = fill_matrix.to_array()
    fill_matrix.flip_columns_left_right().flip_columns_left_right()
    np.testing.assert_array_equal(fill_matrix.data, original)


def test_normalize_fill_matrix(fill_matrix):
    fill_matrix.normalize_to_unit_range()
    assert fill_matrix.data.min() == 0.0
    assert fill_matrix.data.max() == 1.0


def test_normalize_constant_matrix_gives_nan():
    M = Matrix.zeros(2, 2).add_constant(3.0)
    M.normalize_to_unit_range()
    assert np.isnan(M.data).all()


def test_reductions(fill_matrix):
    data = fill_matrix.to_array()
    assert fill_matrix.sum_columns().shape == (1, 6)
    assert fill_matrix.sum_rows().shape == (6, 1)
    np.testing.assert_allclose(fill_matrix.sum_columns().data, data.sum(axis=0, keepdims=True))
    np.testing.assert_allclose(fill_matrix.mean_columns().data, data.mean(axis=0, keepdims=True))
    np.testing.assert_allclose(fill_matrix.sum_rows().data, data.sum(axis=1, keepdims=True))
    np.testing.assert_allclose(fill_matrix.mean_rows().data, data.mean(axis=1, keepdims=True))


def test_find_nonzero_row_indices_row_major():
    M = Matrix.from_array([[0, 1], [2, 0], [3, 4]])
    R = M.find_nonzero_row_indices()
    assert R.shape == (4, 1)
    np.testing.assert_array_equal(R.data.ravel(), [1, 2, 3, 3])


def test_find_nonzero_on_zero_matrix_is_empty():
    assert Matrix.zeros(3, 3).find_nonzero_row_indices().shape == (0, 1)


def test_transpose(rng):
    M = Matrix.from_array(rng.normal(size=(3, 5)))
    T = M.transpose()
    assert T.shape == (5, 3)
    assert T[4, 1] == M[1, 4]
    np.testing.assert_array_equal(T.transpose().data, M.data)


def test_reshape_refills_in_row_major_order():
    M = Matrix.from_array([[1, 2, 3], [4, 5, 6]])
    R = M.reshape(3, 2)
    np.testing.assert_array_equal(R.data, [[1, 2], [3, 4], [5, 6]])
    np.testing.assert_array_equal(R.reshape(2, 3).data, M.data)


def test_reshape_round_trip(rng):
    M = Matrix.from_array(rng.normal(size=(4, 6)))
    np.testing.assert_array_equal(M.reshape(8, 3).reshape(4, 6).data, M.data)


def test_reshape_mismatch_raises(fill_matrix):
    with pytest.raises(ShapeMismatch):
        fill_matrix.reshape(5, 7)


def test_binary_ops(rng):
    A = Matrix.from_array(rng.normal(size=(3, 3)))
    B = Matrix.from_array(rng.uniform(1, 2, size=(3, 3)))
    np.testing.assert_array_equal(add(A, B).data, A.data + B.data)
    np.testing.assert_array_equal(subtract(A, B).data, A.data - B.data)
    np.testing.assert_array_equal(divide(A, B).data, A.data / B.data)
    np.testing.assert_array_equal((A + B).data, A.data + B.data)
    np.testing.assert_array_equal((A - B).data, A.data - B.data)


@pytest.mark.parametrize("op", [add, subtract, divide])
def test_binary_ops_shape_mismatch(op):
    with pytest.raises(ShapeMismatch):
        op(Matrix(2, 3), Matrix(3, 2))


def test_in_place_add_shape_mismatch():
    M = Matrix(2, 2)
    with pytest.raises(ShapeMismatch):
        M += Matrix(2, 1)


def test_matrix_multiply(rng):
    A = Matrix.from_array(rng.normal(size=(2, 3)))
    B = Matrix.from_array(rng.normal(size=(3, 4)))
    C = matrix_multiply(A, B)
    assert C.shape == (2, 4)
    np.testing.assert_allclose(C.data, A.data @ B.data)
    np.testing.assert_allclose((A @ B).data, A.data @ B.data)


def test_matrix_multiply_shape_mismatch():
    with pytest.raises(ShapeMismatch):
        matrix_multiply(Matrix(2, 3), Matrix(2, 3))


def test_subtract_columns():
    M = Matrix.from_array([[1, 3], [2, 6]])
    M.subtract_columns(M.mean_rows())
    np.testing.assert_array_equal(M.data, [[-1, 1], [-2, 2]])
    with pytest.raises(ShapeMismatch):
        M.subtract_columns(Matrix(3, 1))


def test_covariance_matches_numpy(rng):
    data = rng.normal(size=(10, 3))
    C = Matrix.from_array(data).covariance()
    np.testing.assert_allclose(C.data, np.cov(data, rowvar=False))


def test_reorder_columns():
    M = Matrix.from_array([[1, 2, 3], [4, 5, 6]])
    R = M.reorder_columns([2, 0, 1])
    np.testing.assert_array_equal(R.data, [[3, 1, 2], [6, 4, 5]])
    with pytest.raises(ShapeMismatch):
        M.reorder_columns([0, 1])


def test_norm_is_frobenius():
    assert Matrix.from_array([[3, 0], [0, 4]]).norm() == 5.0


def test_copy_columns_and_column(fill_matrix):
    np.testing.assert_array_equal(fill_matrix.copy_columns(1, 3).data, fill_matrix.data[:, 1:3])
    np.testing.assert_array_equal(fill_matrix.column(2).data.ravel(), fill_matrix.data[:, 2])
