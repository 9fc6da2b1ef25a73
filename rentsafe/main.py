from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import create_tables
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware
from .routers.auth import router as auth_router
from .routers.checklists import router as checklists_router
from .routers.contractors import router as contractors_router
from .routers.dashboard import router as dashboard_router
from .routers.documents import router as documents_router
from .routers.expenses import router as expenses_router
from .routers.exports import router as exports_router
from .routers.health import router as health_router
from .routers.inspections import router as inspections_router
from .routers.maintenance import router as maintenance_router
from .routers.properties import router as properties_router
from .routers.rent import router as rent_router
from .routers.search import router as search_router
from .routers.tenants import router as tenants_router

API_PREFIX = "/api"


def _cors_origins() -> list[str]:
    val = settings.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def create_app() -> FastAPI:
    configure_logging()
    if settings.auto_create_tables:
        create_tables()

    app = FastAPI(title="RentSafeUK", version=settings.version)

    # Later add_middleware calls wrap earlier ones: the request id is set before the request log line.
    app.add_middleware(StructuredLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Core
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)
    app.include_router(search_router, prefix=API_PREFIX)

    # Portfolio
    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(tenants_router, prefix=API_PREFIX)
    app.include_router(maintenance_router, prefix=API_PREFIX)
    app.include_router(inspections_router, prefix=API_PREFIX)
    app.include_router(documents_router, prefix=API_PREFIX)
    app.include_router(expenses_router, prefix=API_PREFIX)
    app.include_router(rent_router, prefix=API_PREFIX)
    app.include_router(checklists_router, prefix=API_PREFIX)
    app.include_router(contractors_router, prefix=API_PREFIX)

    # Reports
    app.include_router(exports_router, prefix=API_PREFIX)

    return app


app = create_app()
