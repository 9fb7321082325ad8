from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.roomify.api.routes import hosting, projects

api_router = APIRouter(prefix="/api")
api_router.include_router(projects.router)
api_router.include_router(hosting.router)

AVAILABLE_ENDPOINTS = [
    "/api/projects/list",
    "/api/projects/get",
    "/api/projects/save",
    "/api/projects/clear",
    "/api/hosting/clear",
    "/api/hosting/reset",
]

fallback_router = APIRouter()


@fallback_router.get("/{path:path}", include_in_schema=False)
async def not_found(path: str) -> JSONResponse:
    """Unknown route: 404 with the list of endpoints this service offers."""
    return JSONResponse(
        status_code=404,
        content={
            "detail": "Not found",
            "path": path,
            "available_endpoints": AVAILABLE_ENDPOINTS,
        },
    )
