import datetime as dt
from typing import List, Optional, Protocol

from location_index.models import Location, LocationType, Result


class MapperSource(Protocol):
    async def get_locations(
        self,
        location_type: LocationType,
        language_code: str,
        modified: Optional[dt.datetime] = None,
        skip: int = 0,
        top: int = 10_000,
    ) -> Result[List[Location]]: ...


class LocationWriter(Protocol):
    async def add(self, locations: List[Location], index: str) -> Result[None]: ...
    async def update(self, locations: List[Location], index: str) -> Result[None]: ...
    async def remove(self, locations: List[Location], index: str) -> Result[None]: ...
    async def add_one(self, location: Location, index: str) -> Result[None]: ...
    async def update_one(self, location: Location, index: str) -> Result[None]: ...
    async def remove_one(self, location: Location, index: str) -> Result[None]: ...
