from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.routing import Mount

from crm_app.config import get_settings
from crm_app.dependencies.services import get_crm_client_cached
from crm_app.health import router as health_router
from crm_app.mcp_server import mcp
from crm_app.mock_data_view import router as mock_data_router
from crm_app.views.calendar import router as calendar_router
from crm_app.views.comments import router as comments_router
from crm_app.views.dashboard import router as dashboard_router
from crm_app.views.leads import router as leads_router
from crm_app.views.reference import router as reference_router
from crm_app.views.reports import router as reports_router
from crm_app.views.salespersons import router as salespersons_router
from crm_app.views.tags import router as tags_router


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    settings_snapshot = settings.model_dump(exclude={"api_token"})
    logger.info("Application settings on startup: %s", settings_snapshot)

    has_mcp = any(isinstance(r, Mount) and r.path == "/mcp" for r in app.routes)
    logger.debug("MCP mount present: %s", has_mcp)

    client = get_crm_client_cached()
    if client.use_mock_data:
        logger.info("Serving in-memory mock data; set CRM_API_BASE_URL and CRM_USE_MOCK_DATA=false to use the live API.")
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing CRM API client connection.")
        await client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(leads_router, prefix="/api/leads")
app.include_router(comments_router, prefix="/api/comments")
app.include_router(dashboard_router, prefix="/api/dashboard")
app.include_router(calendar_router, prefix="/api/calendar")
app.include_router(tags_router, prefix="/api/tags")
app.include_router(reference_router, prefix="/api/manage-items")
app.include_router(salespersons_router, prefix="/api/salespersons")
app.include_router(reports_router, prefix="/api/reports")
app.include_router(health_router)
app.include_router(mock_data_router)

# Mount the MCP Streamable HTTP server at /mcp
app.mount("/mcp", mcp.streamable_http_app())
