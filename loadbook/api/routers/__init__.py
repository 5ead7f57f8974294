"""
Routers API pour loadbook.

Ce module regroupe tous les sous-routers et expose un router principal
a inclure dans l'application FastAPI.
"""
from fastapi import APIRouter

from loadbook.api.routers.load_router import router as load_router
from loadbook.api.routers.workout_router import router as workout_router
from loadbook.api.routers.sync_router import router as sync_router
from loadbook.api.routers.profile_router import router as profile_router
from loadbook.api.routers.plan_router import router as plan_router
from loadbook.api.routers.data_router import router as data_router

router = APIRouter()

router.include_router(load_router)
router.include_router(workout_router)
router.include_router(sync_router)
router.include_router(profile_router)
router.include_router(plan_router)
router.include_router(data_router)

__all__ = ["router"]
