"""
Health Check Endpoints.

Provides liveness and readiness checks.

Endpoints:
- /health: Liveness check (process running)
- /health/ready: Readiness check (notes file location usable)
"""

import os
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from notekeeper.backend.core.concurrency import run_blocking
from notekeeper.backend.core.dependencies import get_note_store
from notekeeper.backend.core.logging import get_logger
from notekeeper.backend.core.utils import utc_now
from notekeeper.backend.repositories.note import NoteStore

router = APIRouter()
logger = get_logger(__name__)


def _probe_storage(data_file: Path) -> dict[str, Any]:
    """Check that the notes directory exists (or can be created) and is writable."""
    directory = data_file.parent
    directory.mkdir(parents=True, exist_ok=True)
    if not os.access(directory, os.W_OK):
        return {
            "status": "unhealthy",
            "path": str(data_file),
            "error": "data directory is not writable",
        }
    return {
        "status": "healthy",
        "path": str(data_file),
        "exists": data_file.exists(),
    }


async def check_storage(store: NoteStore) -> dict[str, Any]:
    """
    Check the notes file location.

    Returns:
        Dict with status, path, and optional error message
    """
    try:
        return await run_blocking(_probe_storage, store.path)
    except OSError as e:
        logger.warning("Storage health check failed", extra={"error": str(e)})
        return {
            "status": "unhealthy",
            "error": str(e),
        }


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running.
    No dependency checks - this endpoint should always respond quickly.
    """
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(
    store: NoteStore = Depends(get_note_store),
) -> dict[str, Any]:
    """
    Readiness check.

    Returns 200 if ready to serve traffic, 503 if the notes file
    location is not usable.
    """
    checks = {"storage": await check_storage(store)}

    if checks["storage"].get("status") != "healthy":
        logger.warning("Readiness check failed", extra={"checks": checks})
        raise HTTPException(
            status_code=503,
            detail={
                "status": "unhealthy",
                "checks": checks,
                "timestamp": utc_now().isoformat(),
            },
        )

    return {
        "status": "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
