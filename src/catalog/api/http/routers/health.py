"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from src.catalog.api.http.app_data import ApplicationDependencies
from src.catalog.api.http.deps import get_app_dependencies

router = APIRouter(prefix="/health", tags=["health"])


def _database_type(url: str) -> str:
    return "postgresql" if "postgresql" in url else "sqlite"


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 as long as the process is serving requests."""
    return {"status": "healthy", "service": "catalog-api"}


@router.get("/ready", response_model=None)
async def readiness(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> dict[str, Any] | JSONResponse:
    """Readiness probe: 200 when the database (and Redis, if configured) answer, else 503."""
    config = app_deps.config
    checks: dict[str, Any] = {}
    all_healthy = True

    db_healthy = app_deps.database_service.health_check()
    checks["database"] = {
        "status": "healthy" if db_healthy else "unhealthy",
        "type": _database_type(config.database.url),
    }
    all_healthy = all_healthy and db_healthy

    if app_deps.redis_service.is_enabled:
        redis_healthy = await app_deps.redis_service.health_check()
        checks["redis"] = {
            "status": "healthy" if redis_healthy else "unhealthy",
            "type": "redis",
        }
        all_healthy = all_healthy and redis_healthy
    else:
        checks["redis"] = {"status": "disabled", "type": "in-memory"}

    response = {
        "status": "ready" if all_healthy else "not_ready",
        "environment": config.app.environment,
        "checks": checks,
    }
    if not all_healthy:
        return JSONResponse(status_code=503, content=response)
    return response


@router.get("/database", response_model=None)
async def health_database(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> dict[str, Any] | JSONResponse:
    """Database-specific health check with connection pool status."""
    healthy = app_deps.database_service.health_check()
    result = {
        "status": "healthy" if healthy else "unhealthy",
        "type": _database_type(app_deps.config.database.url),
        "pool": app_deps.database_service.get_pool_status(),
    }
    if not healthy:
        return JSONResponse(status_code=503, content=result)
    return result


@router.get("/redis", response_model=None)
async def health_redis(
    app_deps: ApplicationDependencies = Depends(get_app_dependencies),
) -> dict[str, Any] | JSONResponse:
    """Redis-specific health check using a write/read round trip."""
    redis_service = app_deps.redis_service
    if not redis_service.is_enabled:
        return {
            "status": "disabled",
            "type": "in-memory",
            "note": "Redis is not configured, using in-memory stores",
        }

    healthy = await redis_service.test_operation()
    result: dict[str, Any] = {
        "status": "healthy" if healthy else "unhealthy",
        "type": "redis",
        "url": app_deps.config.redis.sanitized_connection_string,
    }
    info = await redis_service.get_info()
    if info:
        result["info"] = info
    if not healthy:
        return JSONResponse(status_code=503, content=result)
    return result
