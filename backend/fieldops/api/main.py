from fastapi import APIRouter

from fieldops.api.routes import automation, crew, health, jobs, reports, schedule

api_router = APIRouter()
api_router.include_router(health.router, tags=["health"])

# Scheduling routes
api_router.include_router(jobs.router)
api_router.include_router(crew.router)
api_router.include_router(schedule.router)
api_router.include_router(automation.router)
api_router.include_router(reports.router)
