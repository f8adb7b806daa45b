import logging
from typing import Any, Dict, List, Optional

from elasticsearch import ApiError, AsyncElasticsearch, NotFoundError, TransportError
from pydantic import ValidationError

from location_index.models import Result, SearchDocument
from .config import IndexConfig

log = logging.getLogger("location_index.locations")


class LocationsService:
    """Read access to the location index: free-text search and lookup by id."""

    def __init__(self, es: AsyncElasticsearch, index_config: IndexConfig):
        self.es = es
        self.index_config = index_config

    async def search(
        self,
        query: str,
        skip: int = 0,
        top: int = 10,
        language_code: Optional[str] = None,
    ) -> Result[List[SearchDocument]]:
        index = self._index_for(language_code)
        if index is None:
            return Result.failure(self._missing_index_error(language_code))

        if query and query.strip():
            q: Dict[str, Any] = {
                "multi_match": {
                    "query": query.strip(),
                    "type": "bool_prefix",
                    "fields": ["predictionText", "predictionText._2gram", "predictionText._3gram"],
                }
            }
        else:
            q = {"match_all": {}}

        try:
            res = await self.es.search(index=index, query=q, from_=skip, size=top)
        except (ApiError, TransportError) as e:
            log.error("Search for '%s' in the index '%s' failed: %s", query, index, e)
            return Result.failure(f"Search in the index '{index}' failed: {e}")

        try:
            docs = [SearchDocument.model_validate(h["_source"]) for h in res["hits"]["hits"]]
        except ValidationError as e:
            return Result.failure(f"Index '{index}' returned malformed documents: {e}")
        return Result.success(docs)

    async def get(self, ht_id: str, language_code: Optional[str] = None) -> Result[Optional[SearchDocument]]:
        """Look up one location. A successful result with no value means not found."""
        index = self._index_for(language_code)
        if index is None:
            return Result.failure(self._missing_index_error(language_code))

        try:
            res = await self.es.get(index=index, id=ht_id)
        except (ApiError, TransportError) as e:
            # a missing index is also a 404, but without "found"
            if isinstance(e, NotFoundError) and isinstance(e.body, dict) and e.body.get("found") is False:
                return Result.success(None)
            log.error("Failed to get location %s from the index '%s': %s", ht_id, index, e)
            return Result.failure(f"Failed to get location {ht_id}: {e}")

        try:
            return Result.success(SearchDocument.model_validate(res["_source"]))
        except ValidationError as e:
            return Result.failure(f"Index '{index}' returned a malformed document: {e}")

    def _index_for(self, language_code: Optional[str]) -> Optional[str]:
        return self.index_config.get_index(language_code or self.index_config.language_code)

    def _missing_index_error(self, language_code: Optional[str]) -> str:
        return f"Index with the language '{language_code or self.index_config.language_code}' doesn't exist"
