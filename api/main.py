"""
FastAPI application for the LSEG Data Relay.

Exposes API discovery, a single-call proxy and the streaming Lipper
analysis endpoint, with auto-generated OpenAPI documentation at /docs.
"""

import json
import logging
from typing import Any, Dict

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from sources.lseg.credentials import CredentialConfig, CredentialStore
from sources.lseg.flattener import flatten_with_stats, group_by_root
from sources.lseg.lipper import LipperAnalyzer, format_sse
from sources.lseg.proxy import LsegProxy, describe_error
from utils.log import header, setup_logging

from .config import settings
from .models import (
    AnalyzeRequest,
    CallRequest,
    ErrorResponse,
    FlattenResponse,
    HealthResponse,
)

# Configure logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Load the API registry and credential profiles
try:
    with open(settings.REGISTRY_PATH, encoding="utf-8") as f:
        api_registry: Dict[str, Any] = json.load(f)
    logger.info(f"Loaded API registry: {settings.REGISTRY_PATH}")
except (OSError, ValueError) as e:
    logger.error(f"Failed to load API registry: {e}")
    raise

store = CredentialStore(CredentialConfig.from_env())
proxy = LsegProxy(store, settings)
analyzer = LipperAnalyzer(proxy, settings)


def get_proxy() -> LsegProxy:
    return proxy


def get_analyzer() -> LipperAnalyzer:
    return analyzer


def error_response(status_code: int, error: str, details: Any = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors (400), never retried."""
    return error_response(400, "Invalid request", jsonable_encoder(exc.errors()))


# ----------------------------------------------------------------
# Health & Discovery
# ----------------------------------------------------------------

@app.get("/", response_model=HealthResponse, tags=["Health"])
def root():
    """
    API health check and information.

    Returns service status and the (masked) credential profiles in use.
    """
    return {
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "healthy",
        "profiles": store.summary(),
    }


@app.get("/discovery", tags=["Discovery"])
def discovery():
    """Registry of the Data Platform APIs available through /call."""
    return JSONResponse(content=api_registry)


# ----------------------------------------------------------------
# Proxy Endpoints
# ----------------------------------------------------------------

@app.post("/call", tags=["Proxy"])
async def call_api(req: CallRequest, lseg: LsegProxy = Depends(get_proxy)):
    """
    Relay one call to the Data Platform.

    - **category**: credential profile to authenticate with
    - **method** / **endpoint**: downstream HTTP method and path
    - **query**: query parameters (GET) / **body**: JSON payload (other methods)
    - **flatten**: return the flattened view instead of the raw payload

    Downstream failures are returned with the downstream status code.
    """
    try:
        data = await lseg.call_api(req.apiId, req.category, {
            "method": req.method,
            "endpoint": req.endpoint,
            "query": req.query,
            "body": req.body,
        })
    except Exception as e:
        logger.error(f"Call {req.apiId} failed: {e}")
        status, details = describe_error(e)
        return error_response(status, "API call failed", details)

    if req.flatten:
        return flatten_with_stats(data)
    return JSONResponse(content=data)


@app.post("/lipper-analyze", tags=["Lipper"])
async def lipper_analyze(
    req: AnalyzeRequest,
    request: Request,
    lipper: LipperAnalyzer = Depends(get_analyzer),
):
    """
    Fetch several Lipper properties for one fund as a server-sent event stream.

    Events: progress, property_complete, waiting, complete (or error).
    Properties are fetched one at a time with a pause between calls.
    """
    entity_id = str(req.id).strip() if req.id is not None else ""
    try:
        lipper.validate(entity_id, req.datapoints)
    except ValueError as e:
        return error_response(400, "Invalid request", str(e))

    async def events():
        async for event, data in lipper.stream(entity_id, req.datapoints, request.is_disconnected):
            yield format_sse(event, data)

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


# ----------------------------------------------------------------
# Utility Endpoints
# ----------------------------------------------------------------

@app.post("/flatten", response_model=FlattenResponse, tags=["Utilities"])
def flatten(
    document: Any = Body(..., description="Any JSON document"),
    group: bool = Query(False, description="Also group rows by root key"),
):
    """Flatten a JSON document into path/value/type rows with size stats."""
    result = flatten_with_stats(document)
    if group:
        result["groups"] = group_by_root(result["items"])
    return result


# ----------------------------------------------------------------
# Cleanup
# ----------------------------------------------------------------

@app.on_event("shutdown")
async def shutdown_event():
    """Close the Data Platform HTTP client on shutdown."""
    await proxy.aclose()
    logger.info("Data Platform client closed")


if __name__ == "__main__":
    import uvicorn
    header(f"{settings.API_TITLE} on http://localhost:{settings.PORT}")
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info"
    )
