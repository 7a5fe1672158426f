import numpy as np
import pytest

from feemodel import DimensionMismatch, Matrix


def test_from_array_is_row_vector():
    m = Matrix.from_array([1.0, 2.0, 3.0])
    assert m.size() == (1, 3)
    assert m[0][2] == 3.0


@pytest.mark.parametrize("rows", [[], [[]], [[1.0, 2.0], [3.0]], [1.0, 2.0], [[["x"]]]])
def test_rejects_empty_or_ragged(rows):
    with pytest.raises(ValueError):
        Matrix(rows)


def test_dot():
    a = Matrix([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    b = Matrix([[1.0, 0.0, 2.0], [0.0, 1.0, -1.0]])
    c = a.dot(b)
    assert c.size() == (3, 3)
    assert c.tolist() == [[1.0, 2.0, 0.0], [3.0, 4.0, 2.0], [5.0, 6.0, 4.0]]


@pytest.mark.parametrize("left,right", [((1, 3), (2, 1)), ((2, 2), (3, 2)), ((4, 1), (2, 4))])
def test_dot_mismatch_reports_shapes(left, right):
    a = Matrix(np.ones(left))
    b = Matrix(np.ones(right))
    with pytest.raises(DimensionMismatch) as exc:
        a.dot(b)
    assert exc.value.operation == "dot"
    assert exc.value.expected == left[1]
    assert exc.value.actual == right[0]
    assert exc.value.left == left
    assert exc.value.right == right


def test_dot_stays_float32():
    a = Matrix.from_array([0.1, 0.2, 0.3])
    b = Matrix([[0.3], [0.2], [0.1]])
    assert a.dot(b).to_numpy().dtype == np.float32


def test_add_broadcasts_bias_to_every_row():
    a = Matrix([[1.0, 2.0], [3.0, 4.0]])
    for bias in ([10.0, 20.0], np.array([10.0, 20.0]), Matrix.from_array([10.0, 20.0])):
        r = a.add(bias)
        assert r.size() == a.size()
        assert r.tolist() == [[11.0, 22.0], [13.0, 24.0]]


@pytest.mark.parametrize("bias", [[1.0], [1.0, 2.0, 3.0], [[1.0, 2.0]], Matrix([[1.0, 2.0], [3.0, 4.0]])])
def test_add_mismatch(bias):
    a = Matrix([[1.0, 2.0], [3.0, 4.0]])
    with pytest.raises(DimensionMismatch):
        a.add(bias)


def test_relu():
    m = Matrix([[-2.0, 0.0, 3.0], [1.5, -0.5, -4.0]])
    assert m.relu(0.5).tolist() == [[-1.0, 0.0, 3.0], [1.5, -0.25, -2.0]]
    assert m.relu(0.0).tolist() == [[0.0, 0.0, 3.0], [1.5, 0.0, 0.0]]


def test_relu_twice():
    m = Matrix([[2.0, -8.0]])
    twice = m.relu(0.5).relu(0.5)
    assert twice[0][0] == 2.0
    assert twice[0][1] == -2.0


def test_operations_leave_operands_untouched():
    a = Matrix([[1.0, -2.0]])
    a.add([1.0, 1.0])
    a.relu(0.1)
    a.dot(Matrix([[1.0], [1.0]]))
    assert a.tolist() == [[1.0, -2.0]]


def test_backing_array_is_read_only():
    m = Matrix([[1.0, 2.0]])
    with pytest.raises(ValueError):
        m.to_numpy()[0, 0] = 5.0
    with pytest.raises(ValueError):
        m.relu(0.1).to_numpy()[0, 0] = 5.0


def test_index_bounds():
    m = Matrix([[1.0, 2.0], [3.0, 4.0]])
    assert m[1][0] == 3.0
    assert m[1, 1] == 4.0
    for row, col in [(2, 0), (0, 2), (-1, 0), (0, -1)]:
        with pytest.raises(IndexError):
            m[row][col]
        with pytest.raises(IndexError):
            m[row, col]


def test_approx_eq_epsilon():
    a = Matrix.from_array([1.0, -8.07738634])
    assert a.approx_eq(Matrix.from_array([1.00005, -8.0774]))
    assert not a.approx_eq(Matrix.from_array([1.001, -8.0774]))


def test_approx_eq_ulps():
    big = np.float32(1.0e6)
    nxt = np.nextafter(np.nextafter(big, np.float32(2e6)), np.float32(2e6))
    a = Matrix.from_array([big])
    assert a.approx_eq(Matrix.from_array([nxt]), epsilon=0.0, ulps=2)
    assert not a.approx_eq(Matrix.from_array([nxt]), epsilon=0.0, ulps=1)


def test_approx_eq_shape_and_nan():
    assert not Matrix.from_array([1.0, 2.0]).approx_eq(Matrix([[1.0], [2.0]]))
    nan = Matrix.from_array([float("nan")])
    assert not nan.approx_eq(nan)


@pytest.mark.parametrize("values", [[[1.0], [2.0]], [[1.0, 2.0]], 3.0])
def test_from_array_rejects_non_flat(values):
    with pytest.raises(ValueError):
        Matrix.from_array(values)


@pytest.mark.parametrize("values", [[1.0, None], ["1.0", "2.0"], [True, False]])
def test_rejects_non_numbers(values):
    with pytest.raises(ValueError):
        Matrix.from_array(values)
    with pytest.raises(ValueError):
        Matrix([values])
