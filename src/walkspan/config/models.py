import os
from math import isfinite
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from walkspan.domain.geomath import DEFAULT_MAX_ABS_LATITUDE
from walkspan.domain.scoring import LAYOUTS, SegmentLayout, check_identifier


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False


# ----------------- LAYOUTS ---------------------


class SegmentLayoutModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    table: str
    start_lat: str
    start_lon: str
    end_lat: str
    end_lon: str
    scores: dict[str, str] = Field(default_factory=dict)  # score name -> column

    @field_validator("table", "start_lat", "start_lon", "end_lat", "end_lon")
    @classmethod
    def _identifier(cls, v: str) -> str:
        return check_identifier(v)

    @field_validator("scores")
    @classmethod
    def _score_columns(cls, v: dict[str, str]) -> dict[str, str]:
        for col in v.values():
            check_identifier(col)
        return v

    def to_layout(self) -> SegmentLayout:
        return SegmentLayout(**self.model_dump())


LayoutRef = Literal["walkspan", "bronx_walkability"] | SegmentLayoutModel


def resolve_layout(ref: LayoutRef) -> SegmentLayout:
    if isinstance(ref, SegmentLayoutModel):
        return ref.to_layout()
    return LAYOUTS[ref]


# ----------------- STORES ---------------------


class _FileStoreModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    file: str
    layout: LayoutRef = "walkspan"
    on_malformed: Literal["skip", "raise"] = "skip"

    @field_validator("file")
    @classmethod
    def _expand(cls, v: str) -> str:
        return os.path.expandvars(os.path.expanduser(v))


class StoreSqliteModel(_FileStoreModel):
    """Query the sqlite file on every call through one read-only handle."""

    kind: Literal["sqlite"] = "sqlite"


class StoreMemoryModel(_FileStoreModel):
    """Load the dataset once and keep it resident."""

    kind: Literal["memory"] = "memory"
    fmt: Literal["sqlite", "pickle"] = "sqlite"
    must_exist: bool = True  # False => start empty when the file is missing


StoreUnion = Annotated[StoreSqliteModel | StoreMemoryModel, Field(discriminator="kind")]


# ----------------- QUERY ---------------------


class QueryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    k: int = Field(default=8, ge=1)
    membership: Literal["any_endpoint", "both_endpoints", "intersects"] = "any_endpoint"
    default_range_miles: float = 0.35
    max_abs_latitude: float = DEFAULT_MAX_ABS_LATITUDE

    @field_validator("default_range_miles", "max_abs_latitude")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not isfinite(v) or v <= 0:
            raise ValueError(f"{info.field_name} must be a positive finite number")
        return v

    @field_validator("max_abs_latitude")
    @classmethod
    def _below_pole(cls, v: float) -> float:
        if v > 90:
            raise ValueError("max_abs_latitude must be <= 90")
        return v


# ------------------------------------------------------------------


class ServiceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    log: LogModel = LogModel()
    query: QueryModel = QueryModel()
    sources: dict[str, StoreUnion]
    default_source: str | None = None

    @model_validator(mode="after")
    def _check_sources(self):
        if not self.sources:
            raise ValueError("at least one source is required")
        if self.default_source is not None and self.default_source not in self.sources:
            raise ValueError(
                f"default_source {self.default_source!r} not in sources {sorted(self.sources)}"
            )
        return self
