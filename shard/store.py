import copy
import logging
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

import numpy as np

from .config import Settings
from .errors import (
    DimensionMismatchError,
    EmptyBatchError,
    InvalidVectorIdError,
    VectorNotFoundError,
)
from .metrics import Metric
from .numeric import ElementWidth, decode_sequence
from .ranking import DEFAULT_TOP_K, RankingResult, rank, rank_batch

logger = logging.getLogger(__name__)

# rough per-record bookkeeping cost on top of the raw array bytes
_RECORD_OVERHEAD_BYTES = 256


@dataclass
class VectorMetadata:
    created_at: int = 0
    updated_at: int = 0
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StoredVector:
    id: str
    data: np.ndarray
    width: ElementWidth
    metadata: VectorMetadata


def tag_filter(tags: Mapping[str, str]) -> Callable[[StoredVector], bool]:
    """Predicate matching vectors whose tags contain every given key/value pair."""
    wanted = dict(tags)

    def match(vector: StoredVector) -> bool:
        have = vector.metadata.tags
        return all(have.get(k) == v for k, v in wanted.items())
    return match


class VectorStore:
    """Thread-safe in-memory map of id -> vector with exact similarity search.

    Records are never mutated in place: updates swap in a new StoredVector,
    and stored arrays are read-only. Searches copy the record list under the
    lock and rank outside it, so each search sees a stable snapshot.
    """

    def __init__(
        self,
        dimension: int = 0,
        metric: "Metric | str" = Metric.COSINE_SIMILARITY,
        default_top_k: int = DEFAULT_TOP_K,
        strict: bool = False,
    ):
        if dimension < 0:
            raise ValueError("dimension must be >= 0 (use 0 for no validation)")
        self.dimension = dimension
        self.metric = Metric.parse(metric)
        self.default_top_k = default_top_k
        self.strict = strict
        self._lock = threading.Lock()
        self._vectors: Dict[str, StoredVector] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "VectorStore":
        return cls(
            dimension=settings.dim,
            metric=settings.metric,
            default_top_k=settings.default_top_k,
            strict=settings.strict_numeric,
        )

    def _validate(self, vector_id: str, data: Any):
        if not vector_id:
            raise InvalidVectorIdError()
        arr, width = decode_sequence(data)
        if self.dimension > 0 and arr.shape[0] != self.dimension:
            raise DimensionMismatchError(
                self.dimension,
                arr.shape[0],
                f"vector {vector_id} dimension {arr.shape[0]} does not match expected {self.dimension}",
            )
        return arr, width

    def add(self, vector_id: str, data: Any, metadata: Optional[VectorMetadata] = None) -> None:
        arr, width = self._validate(vector_id, data)
        now = int(time.time())
        meta = copy.deepcopy(metadata) if metadata is not None else VectorMetadata()
        meta.created_at = now
        meta.updated_at = now

        with self._lock:
            self._vectors[vector_id] = StoredVector(vector_id, arr, width, meta)
        logger.debug("added vector %s (dim=%d, %s)", vector_id, arr.shape[0], width.value)

    def get(self, vector_id: str) -> StoredVector:
        with self._lock:
            vector = self._vectors.get(vector_id)
        if vector is None:
            raise VectorNotFoundError(vector_id)
        # hand out a writable copy so callers can't reach the stored record
        return StoredVector(vector.id, np.array(vector.data), vector.width, copy.deepcopy(vector.metadata))

    def update(self, vector_id: str, data: Any, metadata: Optional[VectorMetadata] = None) -> None:
        arr, width = self._validate(vector_id, data)
        now = int(time.time())

        with self._lock:
            current = self._vectors.get(vector_id)
            if current is None:
                raise VectorNotFoundError(vector_id)
            if metadata is not None:
                meta = replace(copy.deepcopy(metadata), created_at=current.metadata.created_at)
            else:
                meta = copy.deepcopy(current.metadata)
            meta.updated_at = now
            self._vectors[vector_id] = StoredVector(vector_id, arr, width, meta)
        logger.debug("updated vector %s", vector_id)

    def delete(self, vector_id: str) -> None:
        with self._lock:
            if vector_id not in self._vectors:
                raise VectorNotFoundError(vector_id)
            del self._vectors[vector_id]
        logger.debug("deleted vector %s", vector_id)

    def size(self) -> int:
        with self._lock:
            return len(self._vectors)

    def __len__(self):
        return self.size()

    def clear(self) -> None:
        with self._lock:
            self._vectors = {}

    def batch_add(
        self,
        vectors: Mapping[str, Any],
        metadata: Optional[Mapping[str, VectorMetadata]] = None,
    ) -> None:
        """Add many vectors at once; nothing is inserted unless all of them validate."""
        if not vectors:
            raise EmptyBatchError()
        metadata = metadata or {}

        decoded = {vid: self._validate(vid, data) for vid, data in vectors.items()}

        now = int(time.time())
        records = {}
        for vid, (arr, width) in decoded.items():
            meta = copy.deepcopy(metadata[vid]) if vid in metadata else VectorMetadata()
            meta.created_at = now
            meta.updated_at = now
            records[vid] = StoredVector(vid, arr, width, meta)

        with self._lock:
            self._vectors.update(records)
        logger.debug("batch added %d vectors", len(records))

    def snapshot(self) -> List[StoredVector]:
        with self._lock:
            return list(self._vectors.values())

    def search(
        self,
        query: Any,
        top_k: Optional[int] = None,
        include_metadata: bool = True,
        filter_fn: Optional[Callable[[StoredVector], bool]] = None,
    ) -> RankingResult:
        return rank(
            query,
            self.snapshot(),
            self.metric,
            top_k if top_k is not None else self.default_top_k,
            include_metadata,
            filter_fn,
            self.strict,
        )

    def batch_search(
        self,
        queries: Mapping[str, Any],
        top_k: Optional[int] = None,
        include_metadata: bool = True,
        max_workers: Optional[int] = None,
    ) -> Dict[str, RankingResult]:
        return rank_batch(
            queries,
            self.snapshot(),
            self.metric,
            top_k if top_k is not None else self.default_top_k,
            include_metadata,
            strict=self.strict,
            max_workers=max_workers,
        )

    def stats(self) -> Dict[str, Any]:
        vectors = self.snapshot()
        total_dims = sum(v.data.shape[0] for v in vectors)
        memory = sum(v.data.nbytes + _RECORD_OVERHEAD_BYTES for v in vectors)
        counts = {w: 0 for w in ElementWidth}
        for v in vectors:
            counts[v.width] += 1

        return {
            "total_vectors": len(vectors),
            "total_dimensions": total_dims,
            "avg_dimensions": total_dims / len(vectors) if vectors else 0.0,
            "memory_usage_kb": int(memory / 1024),
            "float32_count": counts[ElementWidth.FLOAT32],
            "float64_count": counts[ElementWidth.FLOAT64],
            "distance_function": self.metric.value,
            "dimension": self.dimension,
        }
