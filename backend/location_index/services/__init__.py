from elasticsearch import AsyncElasticsearch

from location_index.es import create_search_client
from .config import SearchConfig, IndexConfig, MapperConfig
from .index_writer import LocationIndexWriter
from .locations import LocationsService
from .locations_management import LocationsManagementService
from .mapper_client import MapperClient

_search_singleton: AsyncElasticsearch | None = None
_mapper_singleton: MapperClient | None = None


def get_search_client() -> AsyncElasticsearch:
    global _search_singleton
    if _search_singleton is None:
        _search_singleton = create_search_client(SearchConfig())
    return _search_singleton


def get_mapper() -> MapperClient:
    global _mapper_singleton
    if _mapper_singleton is None:
        _mapper_singleton = MapperClient(MapperConfig())
    return _mapper_singleton


def build_locations_management(es: AsyncElasticsearch, mapper: MapperClient) -> LocationsManagementService:
    return LocationsManagementService(es, mapper, LocationIndexWriter(es), IndexConfig())


def get_locations_management() -> LocationsManagementService:
    return build_locations_management(get_search_client(), get_mapper())


def get_locations() -> LocationsService:
    return LocationsService(get_search_client(), IndexConfig())


async def close_clients() -> None:
    global _search_singleton, _mapper_singleton
    if _search_singleton is not None:
        await _search_singleton.close()
        _search_singleton = None
    if _mapper_singleton is not None:
        await _mapper_singleton.aclose()
        _mapper_singleton = None
