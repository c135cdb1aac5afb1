"""
FastAPI application for the landlord portfolio.

Production deployment configuration via environment variables (see
utils/config.py).
"""

from __future__ import annotations

import logging
import secrets
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from core.errors import (
    DocumentNotFoundError,
    MissingContextError,
    NotAuthenticatedError,
    PermissionDeniedError,
    TransientStoreError,
)
from core.mutation import RETRY_SUGGESTION
from core.session import LOGIN_URL
from core.store.backend import DocumentStore, InMemoryDocumentStore
from core.store.objects import LocalObjectStore, ObjectStore
from reporting.inspection_pdf import InspectionReportGenerator
from reporting.tax_pdf import TaxReportGenerator
from utils.config import Config
from web.auth import (
    authenticate_owner,
    clear_session_cookie,
    get_current_owner,
    is_login_configured,
    set_session_cookie,
)
from web.routes import router as portfolio_router

logger = logging.getLogger(__name__)

APP_TITLE = "Landlord Portfolio"
APP_VERSION = "0.1.0"
HOME_URL = "/api/dashboard"

BASE_DIR = Path(__file__).parent
TEMPLATES_DIR = BASE_DIR / "templates"


def _register_error_handlers(app: FastAPI) -> None:
    """Map errors escaping the services onto HTTP responses."""

    @app.exception_handler(MissingContextError)
    async def missing_context(request: Request, exc: MissingContextError):
        return JSONResponse({"detail": str(exc), "back_to": exc.back_to}, status_code=404)

    @app.exception_handler(DocumentNotFoundError)
    async def not_found(request: Request, exc: DocumentNotFoundError):
        return JSONResponse({"detail": str(exc)}, status_code=404)

    @app.exception_handler(PermissionDeniedError)
    async def permission_denied(request: Request, exc: PermissionDeniedError):
        logger.warning("Read refused on %s: %s", request.url.path, exc)
        return JSONResponse({"detail": "You do not have permission to view this record."}, status_code=403)

    @app.exception_handler(TransientStoreError)
    async def transient(request: Request, exc: TransientStoreError):
        logger.warning("Store unavailable for %s: %s", request.url.path, exc)
        return JSONResponse({"detail": str(exc), "retry": RETRY_SUGGESTION}, status_code=503)

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated(request: Request, exc: NotAuthenticatedError):
        return RedirectResponse(url=LOGIN_URL, status_code=303)


def create_app(
    store: Optional[DocumentStore] = None,
    objects: Optional[ObjectStore] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Document store; defaults to an in-memory store persisted to
            ``config.store_path`` when set
        objects: Image storage; defaults to a filesystem store under
            ``config.object_store_root``
        config: Settings; defaults to the environment
    """
    config = config or Config.load()
    app = FastAPI(
        title=APP_TITLE,
        description="Record keeping for a landlord's property portfolio",
        version=APP_VERSION,
        debug=config.debug,
    )

    # Healthcheck endpoints are registered first and perform no IO
    @app.get("/", include_in_schema=False)
    def root():
        return {"status": "ok"}

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "healthy"}

    if objects is None:
        objects = LocalObjectStore(config.object_store_root, config.object_store_base_url)
    if isinstance(objects, LocalObjectStore):
        app.mount(
            config.object_store_base_url,
            StaticFiles(directory=objects.root, check_dir=False),
            name="files",
        )

    if not config.session_secret:
        logger.warning("SESSION_SECRET not set; sessions will not survive a restart")

    app.state.config = config
    app.state.store = store if store is not None else InMemoryDocumentStore(config.store_path)
    app.state.objects = objects
    app.state.session_secret = config.session_secret or secrets.token_hex(32)
    app.state.report_generator = InspectionReportGenerator()
    app.state.tax_report_generator = TaxReportGenerator()

    _register_error_handlers(app)
    app.include_router(portfolio_router)

    templates = Jinja2Templates(directory=TEMPLATES_DIR)

    # ==========================================================================
    # Login / Logout
    # ==========================================================================

    @app.get("/login", response_class=HTMLResponse)
    async def login_page(request: Request, error: Optional[str] = None):
        """Render the owner login page."""
        if get_current_owner(request, app.state.session_secret):
            return RedirectResponse(url=HOME_URL, status_code=303)
        return templates.TemplateResponse(
            request,
            "login.html",
            {"title": APP_TITLE, "error": error, "is_configured": is_login_configured(config)},
        )

    @app.post("/login")
    async def process_login(
        request: Request,
        email: str = Form(...),
        password: str = Form(...),
    ):
        """Process login form submission."""
        session = authenticate_owner(email, password, config)
        if not session:
            logger.info("Failed login attempt")
            return templates.TemplateResponse(
                request,
                "login.html",
                {
                    "title": APP_TITLE,
                    "error": "Invalid email or password",
                    "email": email,
                    "is_configured": is_login_configured(config),
                },
                status_code=401,
            )

        response = RedirectResponse(url=HOME_URL, status_code=303)
        set_session_cookie(
            response,
            session,
            app.state.session_secret,
            secure=not config.debug and config.host not in ("127.0.0.1", "localhost"),
        )
        return response

    @app.post("/logout")
    async def logout(request: Request):
        response = RedirectResponse(url=LOGIN_URL, status_code=303)
        clear_session_cookie(response)
        return response

    @app.get("/api/health")
    async def api_health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "documents": app.state.store.count() if hasattr(app.state.store, "count") else None,
        }

    logger.info("%s started", APP_TITLE)
    return app
