import os

from pydantic import BaseModel, Field, field_validator

from .metrics import Metric
from .numeric import ElementWidth


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Settings(BaseModel):
    dim: int = Field(default=384, ge=0)  # 0 disables dimension validation
    metric: Metric = Metric.COSINE_SIMILARITY
    default_top_k: int = Field(default=10, ge=1)
    strict_numeric: bool = False
    default_dtype: ElementWidth = ElementWidth.FLOAT32
    log_level: str = "INFO"

    @field_validator("metric", mode="before")
    @classmethod
    def _parse_metric(cls, v):
        return Metric.parse(v)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            dim=int(os.getenv("DIM", "384")),
            metric=os.getenv("METRIC", "cosine_similarity"),
            default_top_k=int(os.getenv("DEFAULT_TOP_K", "10")),
            strict_numeric=_env_bool("STRICT_NUMERIC", "0"),
            default_dtype=os.getenv("DEFAULT_DTYPE", "float32"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
