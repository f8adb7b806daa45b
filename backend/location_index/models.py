from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class LocationType(str, Enum):
    """Location kinds served by the mapper, in upload order."""

    COUNTRY = "country"
    LOCALITY = "locality"
    ACCOMMODATION = "accommodation"

    @classmethod
    def _missing_(cls, value):
        # the mapper serializes enum names, e.g. "Accommodation"
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(_CamelModel):
    latitude: float = 0.0
    longitude: float = 0.0


class Location(_CamelModel):
    ht_id: str
    name: str = ""
    locality: str = ""
    country: str = ""
    country_code: str = ""
    coordinates: Coordinates
    distance_in_meters: Optional[float] = None
    location_type: LocationType
    type: str = ""

    @field_validator("name", "locality", "country", "country_code", "type", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        return "" if v is None else v


class GeoPoint(BaseModel):
    lat: float
    lon: float


class Suggestion(BaseModel):
    input: List[str] = Field(default_factory=list)


class SearchDocument(_CamelModel):
    id: str
    name: str = ""
    locality: str = ""
    country: str = ""
    country_code: str = ""
    suggestion: Suggestion = Field(default_factory=Suggestion)
    prediction_text: str = ""
    coordinates: GeoPoint
    distance_in_meters: Optional[float] = None
    location_type: str
    type: str = ""
    modified: datetime

    def to_source(self) -> dict:
        """Elasticsearch `_source` body for this document."""
        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation that reports failures as values.

    A result is a failure when `error` is set; `value` is only meaningful
    on success.
    """

    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(error=error or "Unknown error")
