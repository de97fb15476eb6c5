"""
Fertilizer POS API - Main Application.

FastAPI application with CORS enabled for frontend communication.
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from domain.errors import NotFoundError, PartialCommitError, PersistenceError, ValidationError

logging.basicConfig(
    level=os.getenv("POS_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Fertilizer POS API",
    description="Point-of-sale, customer tracking and sales reporting for bagged goods",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# TODO: Restrict origins once the UI is served from a fixed domain
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, exc: Exception, **fields) -> JSONResponse:
    body = {"error": error, "detail": str(exc), "status_code": status_code}
    body.update(fields)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(ValidationError)
async def handle_validation_error(request: Request, exc: ValidationError):
    return _error(422, "Validation failed", exc)


@app.exception_handler(NotFoundError)
async def handle_not_found(request: Request, exc: NotFoundError):
    return _error(404, "Not found", exc)


@app.exception_handler(PersistenceError)
async def handle_persistence_error(request: Request, exc: PersistenceError):
    logger.error("Store operation failed", extra={"path": request.url.path, "code": exc.code})
    return _error(503, "Store unavailable or rejected the operation", exc)


@app.exception_handler(PartialCommitError)
async def handle_partial_commit(request: Request, exc: PartialCommitError):
    return _error(
        500,
        "Transaction failed while writing line items",
        exc,
        transaction_id=str(exc.transaction_id),
        invoice_number=exc.invoice_number,
        rolled_back=exc.rolled_back,
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "fertilizer-pos-api"
    }


@app.get("/", tags=["Root"])
def root():
    """
    Root endpoint with API information.
    """
    return {
        "message": "Fertilizer POS API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import customers, products, reports, transactions

app.include_router(products.router, prefix="/api/v1", tags=["Products"])
app.include_router(transactions.router, prefix="/api/v1", tags=["Transactions"])
app.include_router(customers.router, prefix="/api/v1", tags=["Customers"])
app.include_router(reports.router, prefix="/api/v1", tags=["Reports"])
