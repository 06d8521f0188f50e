"""
CRM GraphQL API - Main Application

- GraphQL endpoint at /graphql (GraphiQL disabled in production)
- Conditional API docs
- Logging with correlation IDs, without sensitive data
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from strawberry.fastapi import GraphQLRouter
import logging

from crm_api import __version__
from crm_api.config import settings
from crm_api.database import init_db
from crm_api.exceptions import CRMException, create_exception_handlers
from crm_api.graphql.context import get_context
from crm_api.graphql.schema import schema
from crm_api.middleware import CorrelationIdMiddleware, CorrelationLogFilter
# Import all models to register them with SQLAlchemy metadata before init_db()
from crm_api.models import Customer, CustomerTag, Tag, Segment, Brand  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL or (logging.DEBUG if settings.DEBUG else logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(CorrelationLogFilter())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting CRM GraphQL API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Don't log full exception details which may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - queries will fail until it is reachable")
    yield
    logger.info("Shutting down CRM GraphQL API...")


docs_url = "/docs" if settings.DOCS_ENABLED and not settings.is_production else None

app = FastAPI(
    title="CRM GraphQL API",
    description="Customers, tags, segments and brands over GraphQL",
    version=__version__,
    docs_url=docs_url,
    redoc_url=None,
    lifespan=lifespan,
)

allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

handlers = create_exception_handlers()
app.add_exception_handler(CRMException, handlers["crm"])
app.add_exception_handler(StarletteHTTPException, handlers["http"])
app.add_exception_handler(RequestValidationError, handlers["validation"])

graphql_router = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql" if settings.GRAPHIQL_ENABLED else None,
)
app.include_router(graphql_router, prefix="/graphql")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "CRM GraphQL API",
        "version": __version__,
        "graphql": "/graphql",
        "health": "/health",
    }
    if docs_url:
        response["docs"] = docs_url
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": __version__,
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "crm_api.main:app",
        host="0.0.0.0",
        port=5001,
        reload=settings.DEBUG,
    )
