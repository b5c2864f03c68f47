"""FastAPI application for the lead discovery pipeline."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import health_router, router
from llm_init import init_llm
from pipeline.errors import LeadSearchError, RateLimited
from pipeline.webhook import SIGNATURE_HEADER

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_llm()
    yield
    from db import dispose_engine
    await dispose_engine()


app = FastAPI(
    title="Lead Discovery API",
    version="1.0.0",
    description="Candidate search, webset webhook processing and qualification scoring.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type", SIGNATURE_HEADER],
)


@app.exception_handler(LeadSearchError)
async def lead_search_error_handler(request: Request, exc: LeadSearchError):
    headers = {}
    if isinstance(exc, RateLimited):
        headers["Retry-After"] = str(exc.retry_after)
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.error)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.error},
        headers=headers,
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc) or "Unknown error"})


app.include_router(health_router)
app.include_router(router)
