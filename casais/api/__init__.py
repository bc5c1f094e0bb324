from fastapi import APIRouter

from .auth import router as auth_router
from .casais import router as casais_router
from .eventos import router as eventos_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(casais_router)
router.include_router(eventos_router)

__all__ = ["router"]
