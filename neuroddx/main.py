import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
import structlog

from neuroddx.core.config import settings
from neuroddx.core.logging import setup_logging
from neuroddx.api.router import api_router

# 1. Initialize Logging
setup_logging()
logger = structlog.get_logger()

# 2. Lifecycle (Startup/Shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "system_startup",
        env=settings.ENVIRONMENT,
        catalog=settings.DIFFERENTIAL_CATALOG,
        aniso_threshold_mm=settings.ANISO_THRESHOLD_MM,
    )
    yield
    logger.info("system_shutdown")

# 3. Create App
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)

# 4. Middleware: CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# 5. Middleware: Observability & Tracing
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or "req_" + str(time.time())

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path
    )

    start_time = time.perf_counter()
    try:
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        logger.info(
            "http_request_completed",
            status_code=response.status_code,
            duration=process_time
        )
        response.headers["X-Request-ID"] = request_id
        return response
    except Exception as e:
        process_time = time.perf_counter() - start_time
        logger.error(
            "http_request_failed",
            error=str(e),
            duration=process_time
        )
        raise e

# 6. Mount Routes
app.include_router(api_router, prefix=settings.API_V1_STR)

# 7. Mount Metrics Endpoint (Prometheus)
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Health Check
@app.get("/health")
async def health_check():
    return {"status": "ok", "version": settings.PROJECT_VERSION}
