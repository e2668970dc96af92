import numpy as np
import pytest

from shard.numeric import ElementWidth
from shard.store import StoredVector, VectorMetadata


def _make_vector(vector_id, data, dtype=np.float64, tags=None):
    arr = np.asarray(data, dtype=dtype)
    arr.flags.writeable = False
    return StoredVector(vector_id, arr, ElementWidth(arr.dtype.name), VectorMetadata(tags=dict(tags or {})))


@pytest.fixture
def make_vector():
    """Factory building StoredVector candidates without going through a store."""
    return _make_vector


@pytest.fixture
def axis_vectors():
    """Unit vectors along x, y and z in double precision."""
    return [
        _make_vector("x", [1.0, 0.0, 0.0]),
        _make_vector("y", [0.0, 1.0, 0.0]),
        _make_vector("z", [0.0, 0.0, 1.0]),
    ]
