"""Main FastAPI application with modular architecture."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from workout_import.core.config import settings
from workout_import.core.exceptions import WorkoutImportBaseException
from workout_import.models.workout import ProcessResult
from workout_import.services.import_service import INVALID_REQUEST
from workout_import.api import imports_router, health_router
from workout_import.utils.logging import LoggerSetup, CorrelatedLogger
from workout_import.utils.response_helpers import ResponseHelper

# Setup logging
LoggerSetup.setup_logging()
logger = CorrelatedLogger(__name__)

PROTECTED_PATHS = ["/process", "/match"]

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"{settings.api_title} v{settings.api_version} starting up...")
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; /process will answer 'AI service not configured'")
    yield
    logger.info("Application shutting down...")

# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan,
    swagger_ui_parameters={
        "defaultModelsExpandDepth": -1,
        "tryItOutEnabled": True,
    }
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure OpenAPI security scheme
def custom_openapi():
    """Custom OpenAPI configuration with security."""
    if app.openapi_schema:
        return app.openapi_schema

    from fastapi.openapi.utils import get_openapi
    openapi_schema = get_openapi(
        title=settings.api_title,
        version=settings.api_version,
        description=settings.api_description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "ApiKeyAuth": {
            "type": "apiKey",
            "in": "header",
            "name": "x-api-key"
        }
    }

    for path in openapi_schema["paths"]:
        for method in openapi_schema["paths"][path]:
            if method == "post" and path in PROTECTED_PATHS:
                openapi_schema["paths"][path][method]["security"] = [{"ApiKeyAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# Global exception handler for custom exceptions
@app.exception_handler(WorkoutImportBaseException)
async def workout_import_exception_handler(request, exc: WorkoutImportBaseException):
    """Handle custom workout import exceptions."""
    return ResponseHelper.create_error_from_exception(exc)

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle FastAPI HTTP exceptions."""
    return ResponseHelper.create_error_response(
        error_code="HTTP_ERROR",
        message=str(exc.detail),
        status_code=exc.status_code
    )

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Bodies /process cannot read still get the usual failure result."""
    if request.url.path == "/process":
        logger.warning(f"Unreadable /process body: {exc.errors()}")
        return JSONResponse(status_code=200, content=ProcessResult.failure(INVALID_REQUEST).to_response())
    return await request_validation_exception_handler(request, exc)

@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.url.path}: {str(exc)}")
    return ResponseHelper.create_error_response(
        error_code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        status_code=500
    )

# Include routers
app.include_router(health_router)
app.include_router(imports_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "workout_import.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug_mode,
        log_level=settings.log_level.lower()
    )
