import logging
from typing import Any, Dict, Iterable, List

from elasticsearch import ApiError, AsyncElasticsearch, TransportError
from elasticsearch.helpers import async_bulk

from location_index.models import Location, Result
from .documents import build_document, build_documents

log = logging.getLogger("location_index.index_writer")


class LocationIndexWriter:
    """Writes location documents into an Elasticsearch index.

    Batch operations go out as one bulk request. A request that fails as a
    whole is returned as a failure; items rejected inside a successful request
    are only logged.
    """

    def __init__(self, es: AsyncElasticsearch):
        self.es = es

    async def add(self, locations: List[Location], index: str) -> Result[None]:
        actions = [
            {"_op_type": "index", "_index": index, "_id": doc.id, "_source": doc.to_source()}
            for doc in build_documents(locations)
        ]
        result = await self._bulk(actions, index)
        if result.is_success:
            log.info("'%d' locations have been added to the index '%s'", len(locations), index)
        return result

    async def update(self, locations: List[Location], index: str) -> Result[None]:
        actions = [
            {"_op_type": "update", "_index": index, "_id": doc.id, "doc": doc.to_source()}
            for doc in build_documents(locations)
        ]
        result = await self._bulk(actions, index)
        if result.is_success:
            log.info("'%d' locations have been updated in the index '%s'", len(locations), index)
        return result

    async def remove(self, locations: List[Location], index: str) -> Result[None]:
        actions = [
            {"_op_type": "delete", "_index": index, "_id": loc.ht_id}
            for loc in locations
        ]
        result = await self._bulk(actions, index)
        if result.is_success:
            log.info("'%d' locations have been removed from the index '%s'", len(locations), index)
        return result

    async def add_one(self, location: Location, index: str) -> Result[None]:
        doc = build_document(location)
        try:
            await self.es.index(index=index, id=doc.id, document=doc.to_source())
        except (ApiError, TransportError) as e:
            return Result.failure(f"Failed to add location {doc.id} to the index '{index}': {e}")
        return Result.success()

    async def update_one(self, location: Location, index: str) -> Result[None]:
        doc = build_document(location)
        try:
            await self.es.update(index=index, id=doc.id, doc=doc.to_source())
        except (ApiError, TransportError) as e:
            return Result.failure(f"Failed to update location {doc.id} in the index '{index}': {e}")
        return Result.success()

    async def remove_one(self, location: Location, index: str) -> Result[None]:
        try:
            await self.es.delete(index=index, id=location.ht_id)
        except (ApiError, TransportError) as e:
            return Result.failure(f"Failed to remove location {location.ht_id} from the index '{index}': {e}")
        return Result.success()

    async def _bulk(self, actions: List[Dict[str, Any]], index: str) -> Result[None]:
        if not actions:
            return Result.success()
        try:
            # one request per batch
            _, errors = await async_bulk(
                self.es,
                actions,
                chunk_size=len(actions),
                raise_on_error=False,
            )
        except (ApiError, TransportError) as e:
            log.error("Bulk request to the index '%s' failed: %s", index, e)
            return Result.failure(f"Bulk request to the index '{index}' failed: {e!r}")

        self._log_item_errors(errors)
        return Result.success()

    @staticmethod
    def _log_item_errors(errors: Iterable[Dict[str, Any]]) -> None:
        for item in errors:
            # each item is {"<op_type>": {"_id": ..., "status": ..., "error": ...}}
            for op_type, info in item.items():
                log.error(
                    "Failed to %s location %s: %s",
                    op_type, info.get("_id"), info.get("error"),
                )
