"""
Main FastAPI application entry point for the Contact Consolidation Service
This file sets up the FastAPI application with configuration, error
mapping, the /identify endpoint and a health check. It serves as the
entry point for both local development and AWS Lambda deployment.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from database import db_manager
from schemas.identify import ErrorResponse, IdentifyRequest, IdentifyResponse
from services import IdentityService, InvalidIdentifyRequest, identity_service

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if await db_manager.test_connection():
        logger.info("Database connected successfully")
    else:
        logger.error("Database is not reachable; /identify will fail until it is")

    if settings.AUTO_CREATE_TABLES:
        await db_manager.create_tables()

    yield

    await db_manager.dispose()


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_identity_service() -> IdentityService:
    return identity_service


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request body validation errors"""
    logger.warning(f"Validation error for {request.url}: {exc}")

    error_details = []
    for error in exc.errors():
        error_details.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    error_response = ErrorResponse(
        error="ValidationError",
        message="Request validation failed",
        details={"errors": error_details}
    )
    return JSONResponse(status_code=400, content=error_response.model_dump())


@app.exception_handler(InvalidIdentifyRequest)
async def invalid_request_handler(request: Request, exc: InvalidIdentifyRequest):
    logger.warning(f"Rejected identify request for {request.url}: {exc}")
    error_response = ErrorResponse(error="ValidationError", message=str(exc))
    return JSONResponse(status_code=400, content=error_response.model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return JSONResponse(status_code=404, content={"error": "Route not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors; storage detail stays in the logs"""
    logger.exception(f"Unexpected error for {request.url}: {exc}")

    error_response = ErrorResponse(
        error="InternalServerError",
        message="Unable to process identity reconciliation request"
    )
    return JSONResponse(status_code=500, content=error_response.model_dump())


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer health checks
    """
    db_connected = await db_manager.test_connection()
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "database": "connected" if db_connected else "disconnected"
    }


@app.post("/identify", response_model=IdentifyResponse)
async def identify_endpoint(
    request: IdentifyRequest,
    service: IdentityService = Depends(get_identity_service)
):
    """
    Main identity reconciliation endpoint

    Links customer identities based on email and/or phone number and
    returns the consolidated contact: primary id, every known email and
    phone number (the primary's first) and the secondary contact ids.

    - New customer: creates a primary contact
    - Known customer with a new email or phone: creates a secondary contact
    - Request bridging two customers: the newer primary becomes secondary
    """
    logger.info(f"Processing identify request: email={request.email}, phone={request.phoneNumber}")

    response = await service.identify_contact(request)

    logger.info(f"Processed identify request. Primary contact ID: {response.contact.primaryContactId}")
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1
    )
