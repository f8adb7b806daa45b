import asyncio
import datetime as dt
import logging
from typing import AsyncIterator, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from location_index.models import Location, LocationType, Result
from .config import MapperConfig
from .search_base import MapperSource

log = logging.getLogger("location_index.mapper")

_locations_adapter = TypeAdapter(List[Location])


class MapperClient:
    """HTTP client for the mapper's location feed. One call is one page."""

    def __init__(self, cfg: MapperConfig, client: Optional[httpx.AsyncClient] = None):
        self.cfg = cfg
        headers = {"Accept": "application/json"}
        if cfg.access_token:
            headers["Authorization"] = f"Bearer {cfg.access_token}"
        self.client = client or httpx.AsyncClient(
            base_url=cfg.url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(cfg.timeout),
        )

    async def get_locations(
        self,
        location_type: LocationType,
        language_code: str,
        modified: Optional[dt.datetime] = None,
        skip: int = 0,
        top: int = 10_000,
    ) -> Result[List[Location]]:
        params = {"locationType": location_type.value, "skip": skip, "top": top}
        if modified is not None:
            params["modified"] = modified.isoformat()

        try:
            response = await self.client.get(
                "/api/1.0/locations",
                params=params,
                headers={"Accept-Language": language_code},
            )
        except httpx.HTTPError as e:
            return Result.failure(f"Failed to get locations from the mapper: {e!r}")

        if response.is_error:
            return Result.failure(
                f"Mapper responded with {response.status_code} for '{location_type.value}' "
                f"locations (skip={skip}, top={top}): {response.text}"
            )

        try:
            locations = _locations_adapter.validate_json(response.content)
        except ValidationError as e:
            return Result.failure(f"Mapper returned malformed locations: {e}")
        return Result.success(locations)

    async def aclose(self) -> None:
        await self.client.aclose()


class LocationBatches:
    """Pages of `location_type` locations, fetched until the feed runs out.

    The feed is over after a failed page or a page shorter than `page_size`.
    A set `cancel_event` stops the iteration before the next request and
    leaves `cancelled` set, so callers can tell a cancel from the end of
    the feed.
    """

    def __init__(
        self,
        source: MapperSource,
        location_type: LocationType,
        language_code: str,
        page_size: int,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.source = source
        self.location_type = location_type
        self.language_code = language_code
        self.page_size = page_size
        self.cancel_event = cancel_event
        self.cancelled = False

    async def __aiter__(self) -> AsyncIterator[Result[List[Location]]]:
        skip = 0
        while True:
            if self.cancel_event is not None and self.cancel_event.is_set():
                log.info("Fetching '%s' locations cancelled at skip=%d", self.location_type.value, skip)
                self.cancelled = True
                return

            page = await self.source.get_locations(
                self.location_type, self.language_code, skip=skip, top=self.page_size
            )
            yield page

            if page.is_failure or len(page.value or []) < self.page_size:
                return
            skip += self.page_size


def iter_location_batches(
    source: MapperSource,
    location_type: LocationType,
    language_code: str,
    page_size: int,
    cancel_event: Optional[asyncio.Event] = None,
) -> LocationBatches:
    return LocationBatches(source, location_type, language_code, page_size, cancel_event)
