"""
Element-width abstraction shared by every metric.

Each supported width gets one NumericOps instance wrapping its numpy scalar
type, so metric code is written once and all arithmetic stays in the
vector's own precision. The arithmetic operations work on scalars and on
whole arrays of that width alike. Only the final reduction leaves the native
width, as a 64-bit Python float.
"""

import numbers
from enum import Enum
from typing import Any, Generic, Tuple, Type, TypeVar

import numpy as np

from .errors import EmptyVectorError, UnsupportedTypeError

T = TypeVar("T", np.float32, np.float64)


class NumericOps(Generic[T]):
    def __init__(self, scalar: Type[T]):
        self.scalar = scalar
        self.zero = scalar(0.0)
        self.minus_one = scalar(-1.0)

    def native(self, values: Any) -> np.ndarray:
        """View `values` as an array of this width (no copy if it already is one)."""
        return np.asarray(values, dtype=self.scalar)

    def add(self, x, y):
        return x + y

    def multiply(self, x, y):
        return x * y

    def square_root(self, x):
        # negative input only comes from rounding noise; it turns into NaN
        with np.errstate(invalid="ignore"):
            return np.sqrt(x)

    def to_compute_float(self, x: T) -> float:
        return float(x)

    def from_compute_float(self, f: float) -> T:
        return self.scalar(f)

    def is_nan(self, x: T) -> bool:
        return bool(np.isnan(x))

    def is_infinite(self, x: T) -> bool:
        return bool(np.isinf(x))

    def subtract(self, x, y):
        return self.add(x, self.multiply(y, self.minus_one))

    def absolute(self, x):
        return np.abs(x)

    def accumulate(self, values: np.ndarray) -> T:
        """Sum `values` strictly left to right in the native width.

        cumsum adds one element at a time in index order, so the rounding is
        the same as a scalar loop and identical on every run.
        """
        if len(values) == 0:
            return self.zero
        return np.cumsum(values, dtype=self.scalar)[-1]

    def __repr__(self):
        return f"NumericOps({self.scalar.__name__})"


FLOAT32_OPS: NumericOps[np.float32] = NumericOps(np.float32)
FLOAT64_OPS: NumericOps[np.float64] = NumericOps(np.float64)


class ElementWidth(str, Enum):
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(self.value)

    @property
    def itemsize(self) -> int:
        return self.dtype.itemsize

    @property
    def ops(self) -> NumericOps:
        return ops_for(self)


_OPS = {
    ElementWidth.FLOAT32: FLOAT32_OPS,
    ElementWidth.FLOAT64: FLOAT64_OPS,
}

_WIDTH_BY_DTYPE = {
    np.dtype(np.float32): ElementWidth.FLOAT32,
    np.dtype(np.float64): ElementWidth.FLOAT64,
}


def ops_for(width: ElementWidth) -> NumericOps:
    try:
        return _OPS[ElementWidth(width)]
    except (KeyError, ValueError):
        raise UnsupportedTypeError(f"unsupported element width: {width!r}") from None


def _is_real(v: Any) -> bool:
    return isinstance(v, numbers.Real) and not isinstance(v, (bool, np.bool_))


def decode_sequence(data: Any) -> Tuple[np.ndarray, ElementWidth]:
    """Decode raw vector data into a read-only 1-D array and its element width.

    numpy arrays keep their dtype (float32 or float64 only). Plain lists and
    tuples of real numbers are decoded as double precision.
    """
    if isinstance(data, np.ndarray):
        width = _WIDTH_BY_DTYPE.get(data.dtype)
        if width is None:
            raise UnsupportedTypeError(f"unsupported vector type: {data.dtype}")
        if data.ndim != 1:
            raise UnsupportedTypeError(f"vector data must be 1-D, got shape {data.shape}")
        arr = np.array(data, copy=True)
    elif isinstance(data, (list, tuple)):
        if not all(_is_real(v) for v in data):
            raise UnsupportedTypeError("vector data must contain only real numbers")
        width = ElementWidth.FLOAT64
        arr = np.asarray(data, dtype=np.float64)
    else:
        raise UnsupportedTypeError(f"unsupported vector type: {type(data).__name__}")

    if arr.shape[0] == 0:
        raise EmptyVectorError()
    arr.flags.writeable = False
    return arr, width


def has_non_finite(data: np.ndarray, width: ElementWidth) -> bool:
    ops = ops_for(width)
    arr = ops.native(data)
    return not bool(np.isfinite(arr).all())


def normalize_vector(data: Any) -> np.ndarray:
    """Return a unit-length copy of `data` in its own width.

    A zero vector comes back unchanged, since it has no direction.
    """
    arr, width = decode_sequence(data)
    ops = ops_for(width)

    total = ops.accumulate(ops.multiply(arr, arr))
    norm = ops.to_compute_float(ops.square_root(total))
    if norm == 0:
        return np.array(arr)

    inv = ops.from_compute_float(1.0 / norm)
    return np.array(ops.multiply(arr, inv), dtype=width.dtype)


def convert_vector(data: Any, width: ElementWidth) -> np.ndarray:
    """Convert vector data to another element width via the compute float."""
    dst_ops = ops_for(width)
    arr, source = decode_sequence(data)
    target = ElementWidth(width)
    if source is target:
        return np.array(arr)

    return dst_ops.native(arr.astype(np.float64))
