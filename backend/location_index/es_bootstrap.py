import logging

from elasticsearch import AsyncElasticsearch, BadRequestError

from location_index.models import Result

log = logging.getLogger("location_index.es_bootstrap")

LOCATION_MAPPINGS = {
  "dynamic": False,
  "properties": {
    "id": {"type": "keyword"},
    "name": {"type": "text"},
    "locality": {"type": "text"},
    "country": {"type": "text"},
    "countryCode": {"type": "keyword"},
    "suggestion": {"type": "completion"},
    "predictionText": {"type": "search_as_you_type"},
    "coordinates": {"type": "geo_point"},
    "distanceInMeters": {"type": "double"},
    "locationType": {"type": "keyword"},
    "type": {"type": "keyword"},
    "modified": {"type": "date"}
  }
}

LOCATION_SETTINGS = {
  "number_of_shards": 1,
  "number_of_replicas": 0
}


async def recreate_index(es: AsyncElasticsearch, index: str) -> Result[None]:
    """Drop `index` if it exists and create it again from the location schema.

    A schema rejected by the cluster is reported as a failure result. Any
    other error (connectivity, timeouts, auth) is raised to the caller.
    """
    await es.options(ignore_status=404).indices.delete(index=index)
    log.info("Index '%s' removed", index)
    try:
        await es.indices.create(index=index, settings=LOCATION_SETTINGS, mappings=LOCATION_MAPPINGS)
    except BadRequestError as e:
        return Result.failure(f"Failed to create the index '{index}': {e}")
    log.info("Index '%s' created", index)
    return Result.success()
