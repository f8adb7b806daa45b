from typing import Dict, List, Optional

import pytest
from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig

from location_index.models import Location, LocationType, Result
from location_index.services.config import IndexConfig


def make_location(
    ht_id: str = "htid-1",
    location_type: LocationType = LocationType.ACCOMMODATION,
    name: str = "Hilton",
    locality: str = "Dubai",
    country: str = "United Arab Emirates",
    **kwargs,
) -> Location:
    return Location(
        ht_id=ht_id,
        location_type=location_type,
        name=name,
        locality=locality,
        country=country,
        country_code=kwargs.pop("country_code", "AE"),
        coordinates=kwargs.pop("coordinates", {"latitude": 25.2, "longitude": 55.27}),
        **kwargs,
    )


def api_error(cls, status: int = 400, body: Optional[dict] = None):
    """Build an elasticsearch ApiError subclass the way the client raises it."""
    meta = ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NodeConfig("http", "localhost", 9200),
    )
    return cls(message="api error", meta=meta, body=body or {"error": "boom"})


class FakeIndices:
    def __init__(self):
        self.calls: List[tuple] = []
        self.create_error: Optional[Exception] = None

    async def delete(self, index: str):
        self.calls.append(("delete", index))

    async def create(self, index: str, settings=None, mappings=None):
        if self.create_error is not None:
            raise self.create_error
        self.calls.append(("create", index))


class FakeElasticsearch:
    def __init__(self):
        self.indices = FakeIndices()
        self.options_calls: List[dict] = []

    def options(self, **kwargs):
        self.options_calls.append(kwargs)
        return self


class FakeMapper:
    """Serves pre-built pages per location type; anything past them is empty."""

    def __init__(self, pages: Optional[Dict[LocationType, List[Result]]] = None):
        self.pages = pages or {}
        self.calls: List[tuple] = []

    async def get_locations(self, location_type, language_code, modified=None, skip=0, top=10_000):
        self.calls.append((location_type, language_code, skip, top))
        pages = self.pages.get(location_type, [])
        i = skip // top
        if i < len(pages):
            return pages[i]
        return Result.success([])


class FakeWriter:
    def __init__(self, results: Optional[List[Result]] = None):
        self.results = list(results or [])
        self.added: List[tuple] = []

    async def add(self, locations, index):
        self.added.append((len(locations), index))
        if self.results:
            return self.results.pop(0)
        return Result.success()


@pytest.fixture
def index_config() -> IndexConfig:
    return IndexConfig(indexes={"en": "locations-en"}, language_code="en")


@pytest.fixture
def fake_es() -> FakeElasticsearch:
    return FakeElasticsearch()
