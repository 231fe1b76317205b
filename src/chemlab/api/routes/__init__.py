"""API routers."""

from fastapi import APIRouter

from chemlab.api.routes import catalog, experiments, sessions, submissions, websocket

api_router = APIRouter()
api_router.include_router(experiments.router)
api_router.include_router(submissions.router)
api_router.include_router(catalog.router)
api_router.include_router(sessions.router)
api_router.include_router(websocket.router)

__all__ = ["api_router"]
