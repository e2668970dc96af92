"""In-memory vector shard: exact similarity search over float32/float64 vectors."""

from .errors import (
    DimensionMismatchError,
    EmptyBatchError,
    EmptyVectorError,
    InvalidVectorIdError,
    NonFiniteValueError,
    UnsupportedTypeError,
    VectorError,
    VectorNotFoundError,
)
from .metrics import (
    Metric,
    cosine_similarity,
    dot_product,
    euclidean_distance,
    l2_norm,
    manhattan_distance,
)
from .numeric import ElementWidth, NumericOps, convert_vector, decode_sequence, normalize_vector, ops_for
from .ranking import RankingResult, ScoredCandidate, rank, rank_batch
from .store import StoredVector, VectorMetadata, VectorStore, tag_filter

__all__ = [
    "DimensionMismatchError",
    "EmptyBatchError",
    "EmptyVectorError",
    "InvalidVectorIdError",
    "NonFiniteValueError",
    "UnsupportedTypeError",
    "VectorError",
    "VectorNotFoundError",
    "Metric",
    "cosine_similarity",
    "dot_product",
    "euclidean_distance",
    "l2_norm",
    "manhattan_distance",
    "ElementWidth",
    "NumericOps",
    "convert_vector",
    "decode_sequence",
    "normalize_vector",
    "ops_for",
    "RankingResult",
    "ScoredCandidate",
    "rank",
    "rank_batch",
    "StoredVector",
    "VectorMetadata",
    "VectorStore",
    "tag_filter",
]
