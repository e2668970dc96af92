import logging
import math
from dataclasses import asdict
from typing import Any, Dict, List

import numpy as np
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, Field
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from .config import Settings
from .errors import VectorError, VectorNotFoundError
from .numeric import ElementWidth
from .ranking import RankingResult
from .store import StoredVector, VectorMetadata, VectorStore, tag_filter

settings = Settings.from_env()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="VectorDB Shard")

REQS = Counter("shard_requests_total", "Total requests", ["route"])
ERRS = Counter("shard_errors_total", "Rejected requests", ["route"])
LAT = Histogram(
    "shard_latency_seconds",
    "Latency",
    buckets=(0.001, 0.005, 0.01, 0.02, 0.05, 0.1, 0.2, 0.5, 1, 2, 5)
)

store = VectorStore.from_settings(settings)


class InsertReq(BaseModel):
    id: str
    embedding: List[float]
    dtype: ElementWidth | None = None
    meta: Dict[str, str] | None = None


class UpdateReq(BaseModel):
    embedding: List[float]
    dtype: ElementWidth | None = None
    meta: Dict[str, str] | None = None


class BatchInsertReq(BaseModel):
    vectors: List[InsertReq] = Field(min_length=1)


class SearchReq(BaseModel):
    embedding: List[float]
    k: int | None = Field(default=None, ge=1, le=1000)
    dtype: ElementWidth | None = None
    include_metadata: bool = True
    tags: Dict[str, str] | None = None


class BatchSearchReq(BaseModel):
    queries: Dict[str, List[float]] = Field(min_length=1)
    k: int | None = Field(default=None, ge=1, le=1000)
    dtype: ElementWidth | None = None
    include_metadata: bool = True


def _to_array(embedding: List[float], dtype: ElementWidth | None) -> np.ndarray:
    return np.asarray(embedding, dtype=(dtype or settings.default_dtype).dtype)


def _to_meta(tags: Dict[str, str] | None) -> VectorMetadata | None:
    return VectorMetadata(tags=dict(tags)) if tags is not None else None


def _reject(route: str, err: VectorError):
    ERRS.labels(route).inc()
    logger.info("%s rejected: %s", route, err)
    status = 404 if isinstance(err, VectorNotFoundError) else 400
    raise HTTPException(status, str(err))


def _float_out(value: float) -> float | None:
    # JSON has no NaN/Infinity
    return value if math.isfinite(value) else None


def _result_out(result: RankingResult) -> Dict[str, Any]:
    out = []
    for c in result.results:
        item = {"id": c.id, "score": _float_out(c.score)}
        if c.metadata is not None:
            item["meta"] = asdict(c.metadata)
        out.append(item)
    return {"results": out, "total": result.total}


def _vector_out(vector: StoredVector) -> Dict[str, Any]:
    return {
        "id": vector.id,
        "embedding": [_float_out(x) for x in vector.data.tolist()],
        "dtype": vector.width.value,
        "meta": asdict(vector.metadata),
    }


@app.get("/health")
async def health():
    return {"ok": True, "count": store.size(), "dim": store.dimension, "metric": store.metric.value}


@app.get("/metrics")
async def metrics():
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


@app.get("/stats")
async def stats():
    REQS.labels("stats").inc()
    return store.stats()


@app.post("/vectors")
async def insert(req: InsertReq):
    REQS.labels("insert").inc()
    try:
        with LAT.time():
            store.add(req.id, _to_array(req.embedding, req.dtype), _to_meta(req.meta))
    except VectorError as e:
        _reject("insert", e)
    return {"ok": True, "id": req.id}


@app.post("/vectors/batch")
async def insert_batch(req: BatchInsertReq):
    REQS.labels("insert_batch").inc()
    vectors = {v.id: _to_array(v.embedding, v.dtype) for v in req.vectors}
    meta = {v.id: _to_meta(v.meta) for v in req.vectors if v.meta is not None}
    try:
        with LAT.time():
            store.batch_add(vectors, meta)
    except VectorError as e:
        _reject("insert_batch", e)
    return {"ok": True, "count": len(vectors)}


@app.get("/vectors/{vector_id}")
async def get_vector(vector_id: str):
    REQS.labels("get").inc()
    try:
        vector = store.get(vector_id)
    except VectorError as e:
        _reject("get", e)
    return _vector_out(vector)


@app.put("/vectors/{vector_id}")
async def update_vector(vector_id: str, req: UpdateReq):
    REQS.labels("update").inc()
    try:
        store.update(vector_id, _to_array(req.embedding, req.dtype), _to_meta(req.meta))
    except VectorError as e:
        _reject("update", e)
    return {"ok": True, "id": vector_id}


@app.delete("/vectors/{vector_id}")
async def delete_vector(vector_id: str):
    REQS.labels("delete").inc()
    try:
        store.delete(vector_id)
    except VectorError as e:
        _reject("delete", e)
    return {"ok": True, "id": vector_id}


# search routes are sync so the linear scan runs in the threadpool, off the event loop
@app.post("/search")
def search(req: SearchReq):
    REQS.labels("search").inc()
    q = _to_array(req.embedding, req.dtype)
    filter_fn = tag_filter(req.tags) if req.tags else None
    try:
        with LAT.time():
            result = store.search(q, req.k, req.include_metadata, filter_fn)
    except VectorError as e:
        _reject("search", e)
    return _result_out(result)


@app.post("/search/batch")
def search_batch(req: BatchSearchReq):
    REQS.labels("search_batch").inc()
    queries = {qid: _to_array(emb, req.dtype) for qid, emb in req.queries.items()}
    try:
        with LAT.time():
            results = store.batch_search(queries, req.k, req.include_metadata)
    except VectorError as e:
        _reject("search_batch", e)
    return {qid: _result_out(r) for qid, r in results.items()}


if __name__ == "__main__":
    import os
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=int(os.getenv("PORT", "7001")))
