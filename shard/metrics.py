import math
from enum import Enum
from typing import Sequence

from .numeric import ElementWidth, ops_for


def dot_product(a: Sequence, b: Sequence, width: ElementWidth) -> float:
    if len(a) != len(b) or len(a) == 0:
        return 0.0
    ops = ops_for(width)
    total = ops.accumulate(ops.multiply(ops.native(a), ops.native(b)))
    return ops.to_compute_float(total)


def l2_norm(v: Sequence, width: ElementWidth) -> float:
    ops = ops_for(width)
    arr = ops.native(v)
    total = ops.accumulate(ops.multiply(arr, arr))
    return ops.to_compute_float(ops.square_root(total))


def cosine_similarity(a: Sequence, b: Sequence, width: ElementWidth) -> float:
    dot = dot_product(a, b, width)
    norm_a = l2_norm(a, width)
    norm_b = l2_norm(b, width)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def euclidean_distance(a: Sequence, b: Sequence, width: ElementWidth) -> float:
    if len(a) != len(b):
        return math.inf
    ops = ops_for(width)
    diff = ops.subtract(ops.native(a), ops.native(b))
    total = ops.accumulate(ops.multiply(diff, diff))
    return ops.to_compute_float(ops.square_root(total))


def manhattan_distance(a: Sequence, b: Sequence, width: ElementWidth) -> float:
    if len(a) != len(b):
        return math.inf
    ops = ops_for(width)
    total = ops.accumulate(ops.absolute(ops.subtract(ops.native(a), ops.native(b))))
    return ops.to_compute_float(total)


class Metric(str, Enum):
    COSINE_SIMILARITY = "cosine_similarity"
    DOT_PRODUCT = "dot_product"
    EUCLIDEAN_DISTANCE = "euclidean_distance"
    MANHATTAN_DISTANCE = "manhattan_distance"

    @property
    def lower_is_better(self) -> bool:
        return self in (Metric.EUCLIDEAN_DISTANCE, Metric.MANHATTAN_DISTANCE)

    def score(self, a: Sequence, b: Sequence, width: ElementWidth) -> float:
        return _SCORERS[self](a, b, width)

    @classmethod
    def parse(cls, name: "str | Metric") -> "Metric":
        if isinstance(name, Metric):
            return name
        key = str(name).strip().lower()
        try:
            return cls(_ALIASES.get(key, key))
        except ValueError:
            raise ValueError(f"unknown metric: {name!r}") from None


_SCORERS = {
    Metric.COSINE_SIMILARITY: cosine_similarity,
    Metric.DOT_PRODUCT: dot_product,
    Metric.EUCLIDEAN_DISTANCE: euclidean_distance,
    Metric.MANHATTAN_DISTANCE: manhattan_distance,
}

_ALIASES = {
    "cosine": "cosine_similarity",
    "dot": "dot_product",
    "l2": "euclidean_distance",
    "euclidean": "euclidean_distance",
    "l1": "manhattan_distance",
    "manhattan": "manhattan_distance",
}
