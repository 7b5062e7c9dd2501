import logging
import time

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from ioc_lens.api.routes.analyze import router as analyze_router
from ioc_lens.api.routes.auth import router as auth_router
from ioc_lens.api.routes.history import router as history_router
from ioc_lens.api.routes.metrics import router as metrics_router
from ioc_lens.api.routes.searches import router as searches_router
from ioc_lens.core.config import settings
from ioc_lens.core.errors import AppError, ValidationError
from ioc_lens.db import session as session_mod
from ioc_lens.metrics.prometheus import api_request_latency_seconds
from ioc_lens.schemas.ioc import describe_error

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("ioc_lens")

app = FastAPI(
    title="IOC Lens API",
    version="1.0.0",
    description="Extract indicators of compromise from web pages and build SIEM searches for them",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)


@app.on_event("startup")
def on_startup():
    session_mod.init_db()


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.category, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.category, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [describe_error(err) for err in exc.errors()]
    first = errors[0] if errors else {"loc": "<root>", "msg": "invalid request"}
    err = ValidationError(f"Invalid request: {first['loc']}: {first['msg']}", errors=errors)
    return await app_error_handler(request, err)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    status = "unknown"
    try:
        response: Response = await call_next(request)
        status = str(response.status_code)
        return response
    finally:
        dt = time.perf_counter() - start
        api_request_latency_seconds.labels(
            route=request.url.path, method=request.method, status=status
        ).observe(dt)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(analyze_router)
app.include_router(searches_router)
app.include_router(history_router)
app.include_router(auth_router)
app.include_router(metrics_router)
