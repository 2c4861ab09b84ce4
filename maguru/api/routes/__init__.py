from fastapi import FastAPI

from . import courses, dashboards, enrollments, health


def register_routes(app: FastAPI) -> None:
    """Attach all API routers to the FastAPI application."""
    app.include_router(health.router)
    app.include_router(courses.router)
    app.include_router(enrollments.router)
    app.include_router(dashboards.router)
