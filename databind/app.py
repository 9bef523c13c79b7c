import logging
import time
from dataclasses import asdict
from datetime import datetime

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .binding import bind_dependency
from .core.config import Config
from .core.middleware import global_exception_handler, log_requests
from .models import SearchQuery, UserUpdate

logger = logging.getLogger(__name__)


# Initialize FastAPI
app = FastAPI(title="Data Binding API")

# CORS setup
ALLOWED_ORIGINS = Config.allowed_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _log_requests(request, call_next):
    return await log_requests(request, call_next)


@app.exception_handler(Exception)
async def _global_exception_handler(request, exc):
    return await global_exception_handler(request, exc)


@app.get("/search")
async def search(query: SearchQuery = Depends(bind_dependency(SearchQuery))):
    """Echo a search request bound from the query string."""
    return {"status": "success", "query": query.to_dict()}


@app.post("/users/{user_id}")
async def update_user(user_id: int, update: UserUpdate = Depends(bind_dependency(UserUpdate))):
    """Echo a user update bound from the body (JSON, XML or form), query and path.

    - ``user_id`` comes from the path
    - ``notify`` may come from the query string on any content type
    """
    if update.user_id != user_id:
        logger.warning(f"Path parameter mismatch: bound {update.user_id}, routed {user_id}")
    return {"status": "success", "user": asdict(update)}


@app.get("/health")
async def health_check():
    """Basic health and configuration check for the API."""
    health_start_time = time.time()

    try:
        Config.validate()
        health_duration = time.time() - health_start_time

        return {
            "status": "healthy",
            "service": "data-binding-api",
            "environment": Config.ENVIRONMENT,
            "timestamp": datetime.now().isoformat(),
            "response_time_ms": round(health_duration * 1000, 2)
        }
    except Exception as e:
        health_duration = time.time() - health_start_time
        logger.error(f"Health check failed: {str(e)} - Duration: {health_duration:.1f}s")

        return {
            "status": "unhealthy",
            "service": "data-binding-api",
            "timestamp": datetime.now().isoformat(),
            "error": str(e),
            "response_time_ms": round(health_duration * 1000, 2)
        }


@app.get("/")
async def root():
    """Return basic API information."""

    return {
        "service": "Data Binding API",
        "version": "1.0",
        "endpoints": {
            "search": "/search",
            "update_user": "/users/{user_id}",
            "health": "/health"
        },
        "timestamp": datetime.now().isoformat(),
        "description": "Binds JSON, XML, form, query and path input onto typed request records"
    }
