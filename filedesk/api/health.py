"""
Service information and health check endpoints.
"""

import platform
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from loguru import logger

from filedesk.api.dependencies import get_app_settings, get_storage, get_tracker
from filedesk.config import Settings
from filedesk.services.storage import StorageManager
from filedesk.services.tracker import ConversionTaskTracker

router = APIRouter()


@router.get("")
async def service_info(settings: Settings = Depends(get_app_settings)) -> JSONResponse:
    """
    Service banner with the endpoint map.

    Returns:
        JSONResponse: Service name, version and endpoint prefixes
    """
    return JSONResponse(
        status_code=200,
        content={
            "message": f"Welcome to the {settings.APP_NAME} API",
            "version": settings.VERSION,
            "endpoints": {
                "files": "/api/file",
                "images": "/api/image"
            }
        }
    )


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_app_settings),
    storage: StorageManager = Depends(get_storage),
    tracker: ConversionTaskTracker = Depends(get_tracker),
) -> JSONResponse:
    """
    Detailed health check endpoint with system information.

    Returns:
        JSONResponse: Health status, storage and task statistics, system metrics
    """
    try:
        system_metrics = {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": psutil.virtual_memory().percent,
            "disk_percent": psutil.disk_usage(str(storage.directory.parent)).percent
        }

        return JSONResponse(
            status_code=200,
            content={
                "status": "healthy",
                "service": settings.APP_NAME,
                "version": settings.VERSION,
                "environment": settings.ENVIRONMENT,
                "timestamp": datetime.utcnow().isoformat(),
                "python_version": platform.python_version(),
                "renderer": settings.RENDER_BACKEND,
                "storage": {
                    "directory": str(storage.directory),
                    **storage.usage()
                },
                "tasks": tracker.stats(),
                "metrics": system_metrics
            }
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unhealthy")
