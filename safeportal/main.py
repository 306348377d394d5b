from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from safeportal.core.config import settings
from safeportal.core.logging import setup_logging
from safeportal.core.middleware import install_cors
from safeportal.core.exceptions import (
    DomainError,
    domain_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from safeportal.services.outbox_service import OutboxWorker

# Setup Logging
setup_logging()
logger = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle manager for the application.
    Starts the notification outbox poller unless it is disabled (interval 0).
    """
    logger.info("startup", project=settings.PROJECT_NAME, environment=settings.ENVIRONMENT)
    worker = None
    if settings.OUTBOX_POLL_INTERVAL_SECONDS > 0:
        worker = OutboxWorker(settings.OUTBOX_POLL_INTERVAL_SECONDS)
        worker.start()
    yield
    if worker is not None:
        await worker.stop()
    logger.info("shutdown")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    description="Safety incident reporting and SOS alert portal",
    lifespan=lifespan,
    docs_url=f"{settings.API_V1_STR}/docs",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
)

# Middleware: CORS
install_cors(app, settings.CORS_ORIGINS, exempt_prefixes=[settings.FUNCTIONS_STR])

# Exception Handlers
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(DomainError, domain_exception_handler)

# Health Check
@app.get("/health", tags=["system"])
async def health_check():
    """
    Public health check endpoint for load balancers.
    """
    return {"status": "ok", "environment": settings.ENVIRONMENT}


from safeportal.api import functions
from safeportal.api.v1 import auth, profiles, incidents, sos, forum, legal, geocode, realtime, roles
from safeportal.api.v1.admin import dashboard as admin_dashboard

app.include_router(auth.router, prefix=f"{settings.API_V1_STR}/auth", tags=["auth"])
app.include_router(profiles.router, prefix=f"{settings.API_V1_STR}/profiles", tags=["profiles"])
app.include_router(roles.router, prefix=f"{settings.API_V1_STR}/roles", tags=["roles"])
app.include_router(incidents.router, prefix=f"{settings.API_V1_STR}/incidents", tags=["incidents"])
app.include_router(sos.router, prefix=f"{settings.API_V1_STR}/sos", tags=["sos"])
app.include_router(forum.router, prefix=f"{settings.API_V1_STR}/forum", tags=["forum"])
app.include_router(legal.router, prefix=f"{settings.API_V1_STR}/legal", tags=["legal"])
app.include_router(geocode.router, prefix=f"{settings.API_V1_STR}/geocode", tags=["geocode"])
app.include_router(realtime.router, prefix=f"{settings.API_V1_STR}/realtime", tags=["realtime"])
app.include_router(admin_dashboard.router, prefix=f"{settings.API_V1_STR}/admin", tags=["admin"])
app.include_router(functions.router, prefix=settings.FUNCTIONS_STR, tags=["functions"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("safeportal.main:app", host="0.0.0.0", port=8000, reload=True)
