from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from atams.exceptions import setup_exception_handlers
from atams.logging import setup_logging_from_settings
from atams.middleware import RequestIDMiddleware

from app.core.config import settings
from app.core.error_handlers import setup_internal_error_handlers
from app.api.v1.api import api_router

# Setup logging
setup_logging_from_settings(settings)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG
)

# Request ID tracking
app.add_middleware(RequestIDMiddleware)

# CORS; credentials are needed for the device cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
)

# Exception handlers
setup_exception_handlers(app)
setup_internal_error_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }
