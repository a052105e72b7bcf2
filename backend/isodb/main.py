# backend/isodb/main.py
import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .apps.accounts.router import router as accounts_router
from .apps.dashboard.router import router as dashboard_router
from .apps.documents.router import router as documents_router
from .apps.manuals.router import router as manuals_router
from .apps.manuals.router_sections import router as sections_router
from .apps.procedures.router import router as procedures_router
from .apps.revisions.router import router as revisions_router
from .apps.search.router import router as search_router
from .errors import register_exception_handlers

# Vite dev server and the API itself.
DEFAULT_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:8000"]

ROUTERS = (
    accounts_router,
    manuals_router,
    sections_router,
    procedures_router,
    documents_router,
    revisions_router,
    search_router,
    dashboard_router,
)


def cors_origins() -> List[str]:
    configured = [o.strip() for o in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")]
    return [o for o in configured if o] or list(DEFAULT_ORIGINS)


def create_app() -> FastAPI:
    application = FastAPI(title="ISO Manual Portal API", version="1.0.0")

    origins = cors_origins()
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentials with a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(application)

    @application.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "service": "isodb"}

    for router in ROUTERS:
        application.include_router(router)
    return application


app = create_app()
