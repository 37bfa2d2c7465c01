from fastapi import APIRouter
from app.api.v1.endpoints import attendance, sessions, deletion_jobs

api_router = APIRouter()

# Register routes
api_router.include_router(attendance.router, prefix="/attendance", tags=["Attendance"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["Sessions"])
api_router.include_router(deletion_jobs.router, prefix="/deletion-jobs", tags=["Deletion Jobs"])
