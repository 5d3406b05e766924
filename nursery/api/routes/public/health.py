"""Health check endpoints for monitoring service status"""
from fastapi import APIRouter, Request, status
from datetime import datetime, timezone
import redis

health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Check if the API is responsive",
)
async def health_check():
    """Basic health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "nursery-api",
    }


@health_router.get(
    "/health/detailed",
    status_code=status.HTTP_200_OK,
    summary="Detailed health check",
    description="Check the database, and the Celery broker when jobs run on Celery",
)
def detailed_health_check(request: Request):
    settings = request.app.state.settings
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "nursery-api",
        "dependencies": {},
    }

    # Check database
    try:
        request.app.state.database.ping()
        health_status["dependencies"]["database"] = {
            "status": "healthy",
            "message": "Database connection successful",
        }
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["dependencies"]["database"] = {
            "status": "unhealthy",
            "message": f"Database connection failed: {str(e)}",
        }

    health_status["dependencies"]["import_service"] = {
        "status": "healthy" if request.app.state.import_service.is_available else "disabled",
        "runner": settings.IMPORT_RUNNER,
    }

    # Check Redis (Celery broker)
    if settings.IMPORT_RUNNER == "celery":
        try:
            conn_params = {}
            if settings.CELERY_BROKER_URL.startswith("rediss://"):
                conn_params["ssl_cert_reqs"] = "none"
            broker_client = redis.from_url(settings.celery_broker_url, **conn_params)
            broker_client.ping()
            health_status["dependencies"]["celery_broker"] = {
                "status": "healthy",
                "message": "Celery broker (Redis) connection successful",
            }
        except Exception as e:
            health_status["status"] = "unhealthy"
            health_status["dependencies"]["celery_broker"] = {
                "status": "unhealthy",
                "message": f"Celery broker connection failed: {str(e)}",
            }

    return health_status
