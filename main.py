import time

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import models  # noqa: F401  registers every table on Base.metadata
from database import Base, engine, get_db
from routes import trips, public_trips, activities, auth
from utils.errors import AppError
from utils.logger import setup_api_logger

Base.metadata.create_all(bind=engine)

app = FastAPI(title="Wayfarer API (Trips, Public Trips, Likes, Clones)")

# setup file logger for API requests and failures
api_logger = setup_api_logger(config.LOG_PATH)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    api_logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


async def _request_body(request: Request) -> str:
    try:
        body = await request.body()
    except Exception:
        body = b""
    return body.decode('utf-8', errors='replace')


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    api_logger.warning("%s on %s %s | status=%s | message=%s",
                       exc.code, request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    body = await _request_body(request)
    api_logger.warning("Invalid request on %s %s | body=%s | errors=%s",
                       request.method, request.url.path, body, exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = await _request_body(request)
    api_logger.warning("HTTPException on %s %s | status=%s | body=%s | detail=%s",
                       request.method, request.url.path, exc.status_code, body, str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": f"HTTP_{exc.status_code}", "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    # log request info and stacktrace; the client never sees the message
    body = await _request_body(request)
    api_logger.error("Unhandled exception on %s %s | body=%s | error=%s",
                     request.method, request.url.path, body, str(exc), exc_info=exc)
    return JSONResponse(status_code=500, content={"code": "INTERNAL_ERROR", "message": "Internal Server Error"})


app.include_router(trips.router)
app.include_router(public_trips.router)
app.include_router(activities.router)
app.include_router(auth.router)


@app.get("/health", tags=["Health"])
def health(db: Session = Depends(get_db)):
    """Liveness check that also pings the database."""
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        api_logger.error("Health check failed: %s", e)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unreachable"})
    return {"status": "ok", "database": "ok"}
