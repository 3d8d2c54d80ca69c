from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.exceptions import APIException
from app.models.database import init_db
from app.routers import challans, vehicles
from app.services.search_cache import search_cache

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    logger.info(f"🚦 {settings.app_name} started!")
    logger.info(f"🗄️  Database: {settings.database_url}")
    logger.info(f"⏱️  Search cache TTL: {settings.search_cache_ttl_min} minutes")
    yield
    # Shutdown
    logger.info("👋 Shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="Traffic violation (e-challan) tracking with vehicle ownership checks",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(APIException)
async def api_exception_handler(request: Request, exc: APIException):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with a readable message."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(status_code=400, content={"message": "; ".join(problems) or "Invalid request"})


# Include routers
app.include_router(vehicles.router, prefix="/api", tags=["Vehicles"])
app.include_router(challans.router, prefix="/api", tags=["Challans"])


@app.get("/")
async def root():
    """Service information."""
    return {
        "app": settings.app_name,
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint. Also drops expired search cache entries."""
    pruned = search_cache.cleanup_expired()
    return {
        "status": "healthy",
        "app": settings.app_name,
        "search_cache": search_cache.get_stats().model_dump(),
        "search_cache_pruned": pruned
    }
