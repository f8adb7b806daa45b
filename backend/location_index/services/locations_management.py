"""
Location index management.

`reupload` rebuilds the whole index for the configured language: the index is
dropped and recreated, then every location type is streamed from the mapper
page by page and written with bulk requests. The run stops on the first
failure and reports either the total number of uploaded locations or the
error. Documents written before a failure or a cancellation stay in the index.
"""
import asyncio
import logging
from typing import List, Optional

from elasticsearch import AsyncElasticsearch
from opentelemetry import trace

from location_index.es_bootstrap import recreate_index
from location_index.models import Location, LocationType, Result
from location_index.observability import record_uploaded_locations
from .config import IndexConfig
from .mapper_client import iter_location_batches
from .search_base import LocationWriter, MapperSource

log = logging.getLogger("location_index.locations_management")
tracer = trace.get_tracer(__name__)


class LocationsManagementService:
    PAGE_SIZE = 10_000

    def __init__(
        self,
        es: AsyncElasticsearch,
        mapper: MapperSource,
        writer: LocationWriter,
        index_config: IndexConfig,
    ):
        self.es = es
        self.mapper = mapper
        self.writer = writer
        self.index_config = index_config

    async def reupload(self, cancel_event: Optional[asyncio.Event] = None) -> Result[int]:
        with tracer.start_as_current_span("locations.reupload") as span:
            log.info("Start locations upload")

            language_code = self.index_config.language_code
            index_result = self._resolve_index()
            if index_result.is_failure:
                log.error(index_result.error)
                return Result.failure(index_result.error)
            index = index_result.value
            span.set_attribute("search.index", index)

            log.info("Remove all locations from the Elasticsearch index '%s'", index)
            recreated = await recreate_index(self.es, index)
            if recreated.is_failure:
                log.error(recreated.error)
                return Result.failure(recreated.error)

            uploaded = 0
            for location_type in LocationType:
                batches = iter_location_batches(
                    self.mapper, location_type, language_code, self.PAGE_SIZE, cancel_event
                )
                async for page in batches:
                    if page.is_failure:
                        log.error(page.error)
                        return Result.failure(page.error)

                    locations = page.value
                    log.info("'%d' locations received from the mapper", len(locations))
                    if not locations:
                        continue

                    written = await self.writer.add(locations, index)
                    if written.is_failure:
                        log.error(written.error)
                        return Result.failure(written.error)

                    uploaded += len(locations)

                if batches.cancelled:
                    error = f"Locations upload has been cancelled after '{uploaded}' locations"
                    log.warning(error)
                    return Result.failure(error)

            span.set_attribute("locations.uploaded", uploaded)
            record_uploaded_locations(uploaded, index)
            log.info(
                "Uploading to the Elasticsearch index '%s' has been completed. "
                "The total number of uploaded locations is '%d'", index, uploaded,
            )
            return Result.success(uploaded)

    async def add(self, locations: List[Location]) -> Result[None]:
        return await self._with_index(lambda index: self.writer.add(locations, index))

    async def update(self, locations: List[Location]) -> Result[None]:
        return await self._with_index(lambda index: self.writer.update(locations, index))

    async def remove(self, locations: List[Location]) -> Result[None]:
        return await self._with_index(lambda index: self.writer.remove(locations, index))

    async def add_one(self, location: Location) -> Result[None]:
        return await self._with_index(lambda index: self.writer.add_one(location, index))

    async def update_one(self, location: Location) -> Result[None]:
        return await self._with_index(lambda index: self.writer.update_one(location, index))

    async def remove_one(self, location: Location) -> Result[None]:
        return await self._with_index(lambda index: self.writer.remove_one(location, index))

    def _resolve_index(self) -> Result[str]:
        language_code = self.index_config.language_code
        index = self.index_config.get_index(language_code)
        if index is None:
            return Result.failure(f"Index with the language '{language_code}' doesn't exist")
        return Result.success(index)

    async def _with_index(self, operation) -> Result[None]:
        index = self._resolve_index()
        if index.is_failure:
            return Result.failure(index.error)
        return await operation(index.value)
