from fastapi import APIRouter

from thesishub.api.v1.endpoints import projects, comments, supervisors, users, notifications
from thesishub.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

api_router.include_router(projects.router, prefix="/projects", tags=["Projects"])
api_router.include_router(comments.router, prefix="/projects", tags=["Comments"])
api_router.include_router(supervisors.router, prefix="/supervisors", tags=["Supervisors"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(admin_router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check for the load balancer"""
    return {"status": "healthy", "service": "thesishub-backend"}
