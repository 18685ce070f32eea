"""Invoicer backend entrypoint: FastAPI app, routers, and error rendering."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api import business_profile
from backend.app.api import clients
from backend.app.api import cron
from backend.app.api import invoices
from backend.app.api import login
from backend.app.api import public
from backend.app.api import recurring_invoices
from backend.app.api import register
from backend.app.core.logging import configure_logging
from backend.app.core.settings import get_settings
from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.dependencies.services import close_clients
from backend.app.services.exceptions import (
    DownstreamServiceError,
    NotFoundError,
    ServiceError,
    ValidationError,
)

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("%s %s started (%s)", settings.app_name, settings.api_version, settings.environment)
    try:
        yield
    finally:
        close_clients()
        logger.info("%s shutdown complete", settings.app_name)


app = FastAPI(title=settings.app_name, version=settings.api_version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(register.router)
app.include_router(login.router)
app.include_router(business_profile.router)
app.include_router(clients.router)
app.include_router(invoices.router)
app.include_router(recurring_invoices.router)
app.include_router(public.router)
app.include_router(cron.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"), "message": error.get("msg")}
        for error in exc.errors()
    ]
    first = details[0] if details else {"field": "", "message": "Invalid request"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return JSONResponse(status_code=400, content={"error": message, "details": details})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content={"error": exc.message})
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=400, content={"error": exc.message})
    if isinstance(exc, DownstreamServiceError):
        logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.exception("Service failure on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
def read_root():
    return {"app": "Invoicer backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}
