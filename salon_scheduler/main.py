# salon_scheduler/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from salon_scheduler.config import settings
from salon_scheduler.db import create_db_and_tables
from salon_scheduler.errors import SchedulingError, ValidationError
from salon_scheduler.logging_config import setup_logging
from salon_scheduler.routers import agenda_routes, appointments_routes, auth_routes, public_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    create_db_and_tables()
    logger.info("%s started", settings.APP_NAME)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError("Invalid request")
    body = error.to_dict()
    body["details"] = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    return JSONResponse(status_code=error.status_code, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "InternalError"})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(appointments_routes.router)
app.include_router(agenda_routes.router)
app.include_router(public_routes.router)
