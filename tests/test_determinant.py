import numpy as np
import pytest

from facerec.determinant import MinorView, cofactor_matrix, determinant
from facerec.exceptions import NotSquare, ShapeMismatch
from facerec.matrix import Matrix, matrix_multiply


@pytest.mark.parametrize("n", [2, 3, 4, 5, 6])
def test_determinant_of_identity(n):
    assert determinant(Matrix.identity(n)) == 1.0


def test_two_by_two_base_case_is_exact():
    a, b, c, d = 0.1, 0.7, 0.3, 0.9
    assert determinant(Matrix.from_array([[a, b], [c, d]])) == a * d - b * c


def test_one_by_one():
    assert determinant(Matrix.from_array([[-2.5]])) == -2.5


def test_three_by_three_known_value():
    M = Matrix.from_array([[2, -3, 1], [2, 0, -1], [1, 4, 5]])
    assert determinant(M) == pytest.approx(49.0)


@pytest.mark.parametrize("n", [3, 4, 5])
def test_determinant_matches_numpy(rng, n):
    M = Matrix.from_array(rng.normal(size=(n, n)))
    assert determinant(M) == pytest.approx(np.linalg.det(M.data), rel=1e-9, abs=1e-12)


@pytest.mark.parametrize("n", [2, 3, 4, 5])
def test_determinant_of_transpose(rng, n):
    M = Matrix.from_array(rng.normal(size=(n, n)))
    assert determinant(M.transpose()) == pytest.approx(determinant(M), rel=1e-9, abs=1e-12)


def test_determinant_requires_square():
    with pytest.raises(NotSquare):
        determinant(Matrix(2, 3))
    with pytest.raises(ShapeMismatch):
        determinant(Matrix(0, 0))


def test_minor_view_excludes_row_and_column():
    M = Matrix.from_array(np.arange(1, 10).reshape(3, 3))
    minor = MinorView.of(M).minor(0, 1)
    assert minor.size == 2
    np.testing.assert_array_equal(minor.to_matrix().data, [[4, 6], [7, 9]])
    np.testing.assert_array_equal(minor.minor(1, 0).to_matrix().data, [[6]])


def test_cofactor_matrix_is_transposed():
    a, b, c, d = 1.0, 2.0, 3.0, 4.0
    R = cofactor_matrix(Matrix.from_array([[a, b], [c, d]]))
    np.testing.assert_array_equal(R.data, [[d, -b], [-c, a]])


def test_cofactor_matrix_is_adjugate(rng):
    M = Matrix.from_array(rng.normal(size=(4, 4)))
    adj = cofactor_matrix(M)
    np.testing.assert_allclose(matrix_multiply(adj, M).data,
                               determinant(M) * np.eye(4), atol=1e-10)


def test_cofactor_of_one_by_one():
    np.testing.assert_array_equal(cofactor_matrix(Matrix.from_array([[7.0]])).data, [[1.0]])


def test_cofactor_requires_square():
    with pytest.raises(NotSquare):
        cofactor_matrix(Matrix(3, 2))
