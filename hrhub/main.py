# SPDX-FileCopyrightText: 2025 Roland Knall <rknall@gmail.com>
# SPDX-License-Identifier: GPL-2.0-only
"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from hrhub.config import get_settings
from hrhub.database import SessionLocal
from hrhub.rbac.cache import PermissionCache
from hrhub.rbac.exceptions import (
    AccessDeniedError,
    ConflictError,
    NotFoundError,
    PermissionResolutionError,
    ResolutionFailureError,
)
from hrhub.rbac.gate import PermissionGate, PermissionRegistry
from hrhub.rbac.operations import OPERATION_PERMISSIONS
from hrhub.services import permission_service, rbac_seed_service

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def collect_endpoint_names(routes) -> set[str]:
    """Names of every API endpoint reachable from ``routes``.

    Included routers are walked as well, whether they are flattened into the
    parent or kept as nested router entries.
    """
    names = set()
    for route in routes:
        if isinstance(route, APIRoute):
            names.add(route.endpoint.__name__)
            continue
        children = getattr(route, "routes", None)
        if children is None:
            children = getattr(getattr(route, "router", None), "routes", None)
        if children:
            names |= collect_endpoint_names(children)
    return names


def check_permission_registry(app: FastAPI) -> None:
    """Warn about declarations that point at missing routes or permissions."""
    registry: PermissionRegistry = app.state.permission_registry
    route_names = collect_endpoint_names(app.routes)
    for router in v1_routers:
        route_names |= collect_endpoint_names(router.routes)
    for operation_id in registry.operations():
        if operation_id not in route_names:
            logger.warning(f"Permission declared for unknown operation {operation_id}")

    db = SessionLocal()
    try:
        for code in sorted(registry.permission_codes()):
            if not permission_service.get_permission_by_code(db, code):
                logger.warning(f"Declared permission {code} is not in the catalog")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup and shutdown events."""
    if settings.seed_on_startup:
        logger.info("Seeding permissions and default roles...")
        db = SessionLocal()
        try:
            rbac_seed_service.seed_rbac_data(db)
        finally:
            db.close()

    check_permission_registry(app)
    logger.info(
        f"Permission gate ready: {len(app.state.permission_registry.operations())} "
        f"guarded operation(s), cache ttl {settings.permission_cache_ttl_seconds}s"
    )

    yield

    logger.info("Shutting down...")


app = FastAPI(
    title=settings.app_name,
    description="Role and permission based access control for HR Hub",
    version="0.1.0",
    lifespan=lifespan,
)

# Permission gate, built once
app.state.permission_registry = PermissionRegistry.from_mapping(OPERATION_PERMISSIONS)
app.state.permission_cache = PermissionCache(settings.permission_cache_ttl_seconds)
app.state.permission_gate = PermissionGate(
    app.state.permission_registry, app.state.permission_cache
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AccessDeniedError)
async def access_denied_handler(request: Request, exc: AccessDeniedError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PermissionResolutionError)
async def resolution_error_handler(
    request: Request, exc: PermissionResolutionError
) -> JSONResponse:
    rejection = ResolutionFailureError()
    return JSONResponse(status_code=rejection.status_code, content=rejection.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


# Import and include API router after it's created
from hrhub.api.v1.router import api_router, v1_routers  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
