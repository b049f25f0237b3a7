"""API v1 routes"""
from fastapi import APIRouter

from sheetchat.api.v1 import activity, chat, config, sheets

router = APIRouter()

# Include sub-routers
router.include_router(config.router, tags=["config"])
router.include_router(chat.router, tags=["chat"])
router.include_router(sheets.router, prefix="/sheets", tags=["sheets"])
router.include_router(activity.router, tags=["activity"])
