import time
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file before anything else
load_dotenv()

from frontdesk.core.config import settings
from frontdesk.core.logging import setup_logging, request_id_ctx
from frontdesk.core.errors import (
    ConflictError, LockoutTriggered, NotFoundError, TransientError, ValidationFailed,
)
from frontdesk.core.db import init_models
from frontdesk.core.redis import redis_manager
from frontdesk.api.router import api_router
from frontdesk.modules.notifications.service import drain as drain_notifications

setup_logging()
app = FastAPI(title=settings.APP_NAME)

logger = logging.getLogger(__name__)

@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    response = await call_next(request)

    process_time = (time.time() - start_time) * 1000
    logger.info(
        f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.2f}ms"
    )
    return response

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id", "-")
    token = request_id_ctx.set(rid)
    try:
        return await call_next(request)
    finally:
        request_id_ctx.reset(token)

@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=422, content={"error": "validation", "field": exc.field, "message": exc.message})

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"error": "not_found", "resource": exc.resource, "message": str(exc)})

@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    logger.warning(f"Conflict on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=409, content={"error": "conflict", "kind": type(exc).__name__, "message": str(exc)})

@app.exception_handler(TransientError)
async def transient_handler(request: Request, exc: TransientError):
    return JSONResponse(status_code=503, content={"error": "unavailable", "message": str(exc)})

@app.exception_handler(LockoutTriggered)
async def lockout_handler(request: Request, exc: LockoutTriggered):
    # a flow outcome, not a failure
    return JSONResponse(
        status_code=200,
        content={"locked": True, "redirect_url": exc.redirect_url, "attempts": exc.attempts},
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.critical(f"Unhandled exception for request {request.method} {request.url.path}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"message": "An internal server error occurred."},
    )

@app.on_event("startup")
async def on_startup():
    await init_models()
    await redis_manager.connect()

@app.on_event("shutdown")
async def on_shutdown():
    await drain_notifications(timeout=settings.NOTIFY_TIMEOUT_SECONDS)
    await redis_manager.close()

app.include_router(api_router, prefix=settings.API_PREFIX)
