"""
Health check endpoint for load balancer probes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...api.dependencies import get_config, get_store
from ...core.config import Settings
from ...repositories.factory import Store

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    store: Store = Depends(get_store), config: Settings = Depends(get_config)
) -> dict:
    return {
        "status": "healthy",
        "environment": config.environment,
        "store_backend": store.backend.value,
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }
