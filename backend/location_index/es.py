from __future__ import annotations
from typing import TYPE_CHECKING

from elasticsearch import AsyncElasticsearch

if TYPE_CHECKING:
    from location_index.services.config import SearchConfig


def create_search_client(cfg: SearchConfig) -> AsyncElasticsearch:
    # api_key is optional for local clusters
    kwargs = {"api_key": cfg.api_key} if cfg.api_key else {}
    return AsyncElasticsearch(hosts=[cfg.host], request_timeout=cfg.request_timeout, **kwargs)
