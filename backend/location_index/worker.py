# backend/location_index/worker.py
import asyncio
import logging
from typing import Dict, Any, Optional

from redis import Redis
from rq import Queue, Worker
from rq.exceptions import StopRequested

from opentelemetry import trace, propagate
from opentelemetry.propagate import set_global_textmap
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from location_index.es import create_search_client
from location_index.models import Result
from location_index.observability import record_queue_depth
from location_index.services import build_locations_management
from location_index.services.config import MapperConfig, QueueConfig, SearchConfig
from location_index.services.mapper_client import MapperClient

logger = logging.getLogger("location_index.worker")

# Ensure we use W3C tracecontext
set_global_textmap(TraceContextTextMapPropagator())
tracer = trace.get_tracer("location_index.worker")


async def _reupload() -> Result[int]:
    # fresh clients: every job runs in its own event loop
    es = create_search_client(SearchConfig())
    mapper = MapperClient(MapperConfig())
    try:
        return await build_locations_management(es, mapper).reupload()
    finally:
        await mapper.aclose()
        await es.close()


def process_reupload_job(payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Background job: run a full re-upload outside the API request.
    """
    # Rehydrate parent span context (so worker spans attach to the API trace)
    ctx = propagate.extract((payload or {}).get("otel", {}))

    with tracer.start_as_current_span("process_reupload_job", context=ctx) as span:
        result = asyncio.run(_reupload())
        if result.is_failure:
            span.set_status(trace.Status(trace.StatusCode.ERROR, result.error))
            logger.error("Re-upload job failed: %s", result.error)
            return {"ok": False, "error": result.error}

        span.set_attribute("locations.uploaded", result.value)
        logger.info("Re-upload job uploaded %d locations", result.value)
        return {"ok": True, "uploaded": result.value}


def enqueue_reupload_job(cfg: Optional[QueueConfig] = None) -> str:
    """
    Inject current trace context and enqueue for the worker.
    This preserves parent/child relationships in traces across API → worker.
    """
    cfg = cfg or QueueConfig()
    carrier: Dict[str, str] = {}
    propagate.inject(carrier)

    redis_conn = Redis.from_url(cfg.redis_url)
    q = Queue(cfg.queue_name, connection=redis_conn)
    record_queue_depth(q.count, {"queue": cfg.queue_name})

    # a full re-upload of 10k-location pages easily outlives rq's 180s default
    job = q.enqueue(process_reupload_job, {"otel": carrier}, job_timeout=3 * 60 * 60)
    return job.get_id()


def run_worker(cfg: Optional[QueueConfig] = None):
    cfg = cfg or QueueConfig()
    redis_conn = Redis.from_url(cfg.redis_url)
    w = Worker([cfg.queue_name], connection=redis_conn)
    try:
        w.work(with_scheduler=False)
    except StopRequested:
        logger.info("RQ worker stopping gracefully (StopRequested)")
    finally:
        tp = trace.get_tracer_provider()
        if hasattr(tp, "shutdown"):
            tp.shutdown()


if __name__ == "__main__":
    run_worker()
