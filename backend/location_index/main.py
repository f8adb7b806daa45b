from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from location_index.routes.locations import router as locations_router
from location_index.observability import setup_logging
from location_index.services import close_clients
import os

setup_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await close_clients()


app = FastAPI(title="Location Index API", lifespan=lifespan)

allow_origins = os.getenv("API_CORS_ALLOW_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(locations_router)

@app.get("/health")
def health():
    return {"status": "ok"}
