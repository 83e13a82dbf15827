"""FastAPI application — CORS, route registration, error handling, health check."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from constellation_service.config import get_settings
from constellation_service.harvester import shutdown_catalogue_service
from constellation_service.models import HealthResponse
from constellation_service.routes.catalogue import router as catalogue_router
from constellation_service.routes.sky import router as sky_router

# Load .env before anything else
load_dotenv()

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await shutdown_catalogue_service()


app = FastAPI(
    title="Constellation Reference Service",
    description="Harvested constellation catalogue and sky visibility heuristics",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Any OPTIONS request is a pre-flight: 200, empty body, permissive headers
@app.middleware("http")
async def answer_preflight(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    return await call_next(request)


@app.exception_handler(Exception)
async def unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=CORS_HEADERS)


# Register routes
app.include_router(catalogue_router)
app.include_router(sky_router)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok")


def run() -> None:
    import uvicorn

    uvicorn.run("constellation_service.main:app", host="0.0.0.0", port=8000)
