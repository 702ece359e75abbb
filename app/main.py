import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.router import api_router
from app.core.config import settings
from app.core.exception_handlers import register_exception_handlers
from app.db.async_session import shutdown_async_database, startup_async_database
from app.utils.logger import api_logger

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    docs_url=f"{settings.API_PREFIX}/docs",
    redoc_url=f"{settings.API_PREFIX}/redoc",
    redirect_slashes=False,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Time every request and expose the duration to the caller."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = f"{process_time:.4f}"
    logger.debug(f"{request.method} {request.url.path} -> {response.status_code} in {process_time:.4f}s")
    return response


app.include_router(api_router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Initialize services on application startup."""
    api_logger.banner(f"Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})", "startup")
    try:
        await startup_async_database()
        api_logger.success("Database ready", "startup")
    except Exception as e:
        api_logger.error(f"Failed to start up application: {e}", "startup")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up services on application shutdown."""
    api_logger.info(f"Shutting down {settings.PROJECT_NAME}", "shutdown")
    await shutdown_async_database()


@app.get("/")
async def root():
    """Service banner."""
    return {"success": True, "message": f"Welcome to {settings.PROJECT_NAME}"}
