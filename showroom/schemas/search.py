"""Pydantic schemas for search requests and responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from showroom.schemas.vehicle import Vehicle


# (model attribute, comparison kind) for every supported filter field
FILTER_FIELDS: dict[str, tuple[str, Literal["equality_set", "numeric_range"]]] = {
    "brands": ("brand", "equality_set"),
    "models": ("model", "equality_set"),
    "transmissions": ("transmission", "equality_set"),
    "fuel_types": ("fuel_type", "equality_set"),
    "colors": ("color", "equality_set"),
    "year": ("year", "numeric_range"),
    "price": ("price", "numeric_range"),
    "kilometers": ("kilometers", "numeric_range"),
}


class SearchFilters(BaseModel):
    """Post-search filters.

    Set fields match by exact membership; ``*_min``/``*_max`` pairs are
    inclusive ranges. Empty or missing fields do not filter. Unknown fields
    are rejected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    brands: list[str] = Field(default_factory=list)
    models: list[str] = Field(default_factory=list)
    transmissions: list[str] = Field(default_factory=list)
    fuel_types: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    year_min: int | None = None
    year_max: int | None = None
    price_min: int | None = Field(None, ge=0)
    price_max: int | None = Field(None, ge=0)
    kilometers_min: int | None = Field(None, ge=0)
    kilometers_max: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "SearchFilters":
        for name, (_, kind) in FILTER_FIELDS.items():
            if kind != "numeric_range":
                continue
            low = getattr(self, f"{name}_min")
            high = getattr(self, f"{name}_max")
            if low is not None and high is not None and low > high:
                raise ValueError(f"{name}_min must be <= {name}_max")
        return self

    def matches(self, vehicle: Vehicle) -> bool:
        """Return True when ``vehicle`` passes every active filter."""

        for name, (attribute, kind) in FILTER_FIELDS.items():
            value = getattr(vehicle, attribute)
            if kind == "equality_set":
                allowed = getattr(self, name)
                if allowed and value not in allowed:
                    return False
                continue

            low = getattr(self, f"{name}_min")
            high = getattr(self, f"{name}_max")
            if low is not None and value < low:
                return False
            if high is not None and value > high:
                return False
        return True


class SearchResult(BaseModel):
    """Outcome of a search call."""

    matches: list[Vehicle] = Field(default_factory=list, description="Matches in inventory order.")
    total: int = Field(0, description="Match count before truncation to max_results.")
    query: str = Field("", description="Query as received.")
    took_ms: int = Field(0, description="Wall time spent serving the search.")
    from_cache: bool = Field(False, description="Whether matches came from the result cache.")


class AdvancedSearchRequest(BaseModel):
    """Body of ``POST /v1/search/advanced``."""

    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., description="Free-text query.")
    filters: SearchFilters = Field(default_factory=SearchFilters)
    max_results: int | None = Field(None, ge=1)


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: list[str]


class SearchWithSuggestionsResponse(BaseModel):
    results: SearchResult
    suggestions: list[str]
