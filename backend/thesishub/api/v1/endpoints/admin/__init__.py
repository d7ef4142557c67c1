"""
Admin API endpoints.
Every route requires the stored admin flag on the caller's user record.
"""
from fastapi import APIRouter

from thesishub.api.v1.endpoints.admin import projects

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

admin_router.include_router(projects.router, prefix="/projects", tags=["Admin Projects"])
