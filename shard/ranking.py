"""
Linear-scan ranking over a candidate snapshot.

`rank` scores every compatible candidate against one query and keeps the
best `top_k`; `rank_batch` runs it for many named queries against the same
snapshot. Callers must hand in a candidate collection that is not mutated
while a call is running.
"""

import copy
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .errors import DimensionMismatchError, NonFiniteValueError, VectorError
from .metrics import Metric
from .numeric import decode_sequence, has_non_finite

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10


@dataclass
class ScoredCandidate:
    id: str
    score: float
    metadata: Optional[Any] = None


@dataclass
class RankingResult:
    results: List[ScoredCandidate] = field(default_factory=list)
    total: int = 0
    query_id: Optional[str] = None


def _sort_key(metric: Metric):
    # equal scores fall back to identifier order; NaN scores always rank last
    def key(c: ScoredCandidate):
        if math.isnan(c.score):
            return (1, 0.0, c.id)
        return (0, c.score if metric.lower_is_better else -c.score, c.id)
    return key


def rank(
    query: Any,
    candidates: Iterable[Any],
    metric: "Metric | str",
    top_k: int = 0,
    include_metadata: bool = False,
    filter_fn: Optional[Callable[[Any], bool]] = None,
    strict: bool = False,
) -> RankingResult:
    """Score `candidates` against `query` and return the best `top_k`.

    Candidates expose `id`, `data`, `width` and `metadata`. A candidate whose
    length differs from the query aborts the whole call with
    DimensionMismatchError; one stored at another element width is skipped.
    With `strict`, NaN/Inf in the query is an error and non-finite
    candidates are skipped.
    """
    metric = Metric.parse(metric)
    query_data, query_width = decode_sequence(query)
    if strict and has_non_finite(query_data, query_width):
        raise NonFiniteValueError("query vector contains NaN or Inf values")
    if top_k <= 0:
        top_k = DEFAULT_TOP_K

    scored: List[ScoredCandidate] = []
    width_skipped = 0
    for candidate in candidates:
        if filter_fn is not None and not filter_fn(candidate):
            continue

        if len(candidate.data) != len(query_data):
            raise DimensionMismatchError(len(query_data), len(candidate.data))

        if candidate.width != query_width:
            width_skipped += 1
            continue

        if strict and has_non_finite(candidate.data, candidate.width):
            logger.debug("skipping non-finite candidate %s", candidate.id)
            continue

        score = metric.score(query_data, candidate.data, query_width)
        metadata = copy.deepcopy(candidate.metadata) if include_metadata else None
        scored.append(ScoredCandidate(id=candidate.id, score=score, metadata=metadata))

    if width_skipped:
        logger.debug("skipped %d candidates stored at a width other than %s", width_skipped, query_width.value)

    scored.sort(key=_sort_key(metric))
    results = scored[:top_k]
    return RankingResult(results=results, total=len(results))


def rank_batch(
    queries: Mapping[str, Any],
    candidates: Iterable[Any],
    metric: "Metric | str",
    top_k: int = 0,
    include_metadata: bool = False,
    filter_fn: Optional[Callable[[Any], bool]] = None,
    strict: bool = False,
    max_workers: Optional[int] = None,
) -> Dict[str, RankingResult]:
    """Rank every query in `queries` against one candidate snapshot.

    The first failing query (in mapping order) fails the whole batch; its
    error carries the query id and no partial results are returned.
    """
    metric = Metric.parse(metric)
    snapshot = list(candidates)

    def run(query_id: str, query: Any) -> RankingResult:
        try:
            result = rank(query, snapshot, metric, top_k, include_metadata, filter_fn, strict)
        except VectorError as err:
            err.query_id = query_id
            logger.warning("batch ranking aborted: %s", err)
            raise
        result.query_id = query_id
        return result

    results: Dict[str, RankingResult] = {}
    if max_workers and max_workers > 1 and len(queries) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {qid: pool.submit(run, qid, q) for qid, q in queries.items()}
            for qid, fut in futures.items():
                results[qid] = fut.result()
    else:
        for qid, q in queries.items():
            results[qid] = run(qid, q)
    return results
