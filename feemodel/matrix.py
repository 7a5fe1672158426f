"""Dense float32 matrices with explicit dimension checks.

Every operation returns a new ``Matrix``; the backing numpy array is marked
read-only so a matrix can be shared between threads without copying.
"""
import numpy as np

from .errors import DimensionMismatch


def _frozen(arr):
    arr.flags.writeable = False
    return arr


def _numeric(values, what):
    try:
        data = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{what} must be a rectangular grid of numbers: {e}") from e
    # bools, strings and None are not numbers here
    if data.size and data.dtype.kind not in "iuf":
        raise ValueError(f"{what} must hold numbers, got {data.dtype}")
    return data.astype(np.float32)


class Matrix:
    __slots__ = ("_data",)

    def __init__(self, rows):
        data = _numeric(rows, "matrix rows")
        if data.ndim != 2:
            raise ValueError(f"matrix must be two-dimensional, got {data.ndim} dimension(s)")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise ValueError("matrix must not be empty")
        self._data = _frozen(data)

    @classmethod
    def from_array(cls, values):
        """Build a 1xN row vector from a flat sequence."""
        data = _numeric(values, "row vector")
        if data.ndim != 1:
            raise ValueError(f"row vector must be flat, got {data.ndim} dimension(s)")
        return cls([data])

    @classmethod
    def _wrap(cls, data):
        m = cls.__new__(cls)
        m._data = _frozen(data)
        return m

    # -------------------------
    # Shape
    # -------------------------
    @property
    def rows(self):
        return self._data.shape[0]

    @property
    def cols(self):
        return self._data.shape[1]

    def size(self):
        return self._data.shape

    def __len__(self):
        return self.rows

    # -------------------------
    # Arithmetic
    # -------------------------
    def dot(self, other):
        if self.cols != other.rows:
            raise DimensionMismatch("dot", self.cols, other.rows,
                                    left=self.size(), right=other.size())
        # float32 @ float32 accumulates in float32
        return Matrix._wrap(np.matmul(self._data, other._data))

    def add(self, bias):
        """Add ``bias`` to every row."""
        if isinstance(bias, Matrix):
            if bias.rows != 1:
                raise DimensionMismatch("add", 1, bias.rows,
                                        left=self.size(), right=bias.size())
            vec = bias._data[0]
        else:
            vec = np.asarray(bias, dtype=np.float32)
            if vec.ndim != 1:
                raise DimensionMismatch("add", 1, vec.ndim,
                                        left=self.size(), right=vec.shape)
        if vec.shape[0] != self.cols:
            raise DimensionMismatch("add", self.cols, vec.shape[0],
                                    left=self.size(), right=vec.shape)
        return Matrix._wrap(self._data + vec)

    def relu(self, alpha):
        """Leaky ReLU: ``x`` where ``x >= 0``, ``alpha * x`` elsewhere."""
        x = self._data
        return Matrix._wrap(np.where(x >= 0, x, np.float32(alpha) * x).astype(np.float32))

    # -------------------------
    # Comparison
    # -------------------------
    def approx_eq(self, other, epsilon=1e-4, ulps=2):
        """Elementwise closeness: within ``epsilon`` or within ``ulps`` float32 steps."""
        if not isinstance(other, Matrix):
            other = Matrix(other)
        if self.size() != other.size():
            return False
        a, b = self._data, other._data
        close = np.abs(a - b) <= np.float32(epsilon)

        ai = a.view(np.int32).astype(np.int64)
        bi = b.view(np.int32).astype(np.int64)
        same_sign = np.signbit(a) == np.signbit(b)
        near = same_sign & (np.abs(ai - bi) <= ulps)

        ok = (close | near) & ~np.isnan(a) & ~np.isnan(b)
        return bool(ok.all())

    def __eq__(self, other):
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.size() == other.size() and bool((self._data == other._data).all())

    __hash__ = None

    # -------------------------
    # Access
    # -------------------------
    def __getitem__(self, key):
        if isinstance(key, tuple):
            row, col = key
            self._check_index(row, self.rows, "row")
            self._check_index(col, self.cols, "column")
            return float(self._data[row, col])
        self._check_index(key, self.rows, "row")
        return _Row(self._data[key])

    @staticmethod
    def _check_index(i, bound, what):
        if not isinstance(i, (int, np.integer)) or isinstance(i, bool):
            raise TypeError(f"{what} index must be an integer, not {type(i).__name__}")
        if i < 0 or i >= bound:
            raise IndexError(f"{what} index {i} out of range for size {bound}")

    def tolist(self):
        return self._data.tolist()

    def to_numpy(self):
        return self._data

    def __repr__(self):
        return f"Matrix({self.tolist()!r})"


class _Row:
    """Read-only view of one matrix row."""

    __slots__ = ("_values",)

    def __init__(self, values):
        self._values = values

    def __getitem__(self, col):
        Matrix._check_index(col, len(self._values), "column")
        return float(self._values[col])

    def __len__(self):
        return len(self._values)

    def __iter__(self):
        return (float(v) for v in self._values)

    def __repr__(self):
        return f"Row({self._values.tolist()!r})"
