"""API v1 routers."""

from fastapi import APIRouter

from .exports import router as exports_router
from .searches import router as searches_router
from .sources import router as sources_router

# Create v1 router that includes all v1 endpoints
router = APIRouter(prefix="/v1")

router.include_router(searches_router)
router.include_router(sources_router)
router.include_router(exports_router)

__all__ = ["router", "searches_router", "sources_router", "exports_router"]
