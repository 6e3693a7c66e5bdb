"""API v1 router aggregation."""

from fastapi import APIRouter

from approvals.api.v1.endpoints import delegations, health, workflows

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(workflows.router, prefix="/workflows", tags=["workflows"])
api_router.include_router(delegations.router, prefix="/delegations", tags=["delegations"])
