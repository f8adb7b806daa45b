import asyncio
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry import trace

from location_index.auth import require_manager_client
from location_index.models import SearchDocument
from location_index.services import get_locations, get_locations_management
from location_index.services.locations import LocationsService
from location_index.services.locations_management import LocationsManagementService
from location_index.worker import enqueue_reupload_job

API_VERSION = "1.0"
DISCONNECT_POLL_SECONDS = 1.0

router = APIRouter(prefix=f"/api/v{API_VERSION}/locations", tags=["locations"])
tracer = trace.get_tracer(__name__)


def problem(status: int, title: str, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"type": "about:blank", "title": title, "status": status, "detail": detail},
        media_type="application/problem+json",
    )


async def _cancel_on_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.post("/re-upload", dependencies=[Depends(require_manager_client)])
async def reupload(request: Request, service: LocationsManagementService = Depends(get_locations_management)):
    """Re-uploads all locations from the mapper and returns how many were written.

    A client that disconnects cancels the run before its next mapper page.
    """
    cancel_event = asyncio.Event()
    watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel_event))
    try:
        result = await service.reupload(cancel_event)
    finally:
        watcher.cancel()
    if result.is_failure:
        return problem(400, "Bad Request", result.error)
    return PlainTextResponse(f"Locations uploaded '{result.value}'")


@router.post("/re-upload/jobs", status_code=202, dependencies=[Depends(require_manager_client)])
def reupload_job():
    """Queues a re-upload for the background worker."""
    return {"job_id": enqueue_reupload_job()}


@router.get("", response_model=List[SearchDocument], response_model_by_alias=True)
async def search_locations(
    query: str = Query("", description="free text"),
    skip: int = Query(0, ge=0),
    top: int = Query(10, ge=1, le=100),
    language_code: Optional[str] = Query(None, alias="languageCode"),
    service: LocationsService = Depends(get_locations),
):
    with tracer.start_as_current_span("locations.search"):
        result = await service.search(query, skip=skip, top=top, language_code=language_code)
    if result.is_failure:
        return problem(400, "Bad Request", result.error)
    return result.value


@router.get("/{ht_id}", response_model=SearchDocument, response_model_by_alias=True)
async def get_location(
    ht_id: str,
    language_code: Optional[str] = Query(None, alias="languageCode"),
    service: LocationsService = Depends(get_locations),
):
    result = await service.get(ht_id, language_code=language_code)
    if result.is_failure:
        return problem(400, "Bad Request", result.error)
    if result.value is None:
        return problem(404, "Not Found", f"Location '{ht_id}' not found")
    return result.value
