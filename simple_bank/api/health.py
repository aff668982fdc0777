"""
Health check endpoint.

Used by load balancers, monitoring systems, and humans
to verify the application is running and responsive.
"""

from fastapi import APIRouter, Depends

from simple_bank.api.deps import get_store
from simple_bank.store.base import LedgerStore

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(store: LedgerStore = Depends(get_store)):
    """
    Return application health status including store connectivity.

    If the store cannot be reached the service reports itself
    degraded, telling the load balancer this instance is unhealthy.
    """
    store_status = "healthy" if store.ping() else "unhealthy"

    return {
        "status": "healthy" if store_status == "healthy" else "degraded",
        "service": "simple-bank",
        "database": store_status,
    }
