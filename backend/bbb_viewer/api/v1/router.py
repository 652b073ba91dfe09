from fastapi import APIRouter

from bbb_viewer.api.v1.endpoints import bbb

api_router = APIRouter()
api_router.include_router(bbb.router, prefix="/bbb", tags=["bbb"])
