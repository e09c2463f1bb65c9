"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the billing service
"""
from fastapi import APIRouter

from dormbill.api.v1.endpoints import bills, health, notifications, payments, utilities

# Create main API v1 router with proper configuration
router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        422: {"description": "Validation Error"},
        500: {"description": "Internal Server Error"},
        502: {"description": "External Service Error"},
    }
)

router.include_router(health.router)
router.include_router(bills.router)
router.include_router(payments.router)
router.include_router(utilities.router)
router.include_router(notifications.router)
