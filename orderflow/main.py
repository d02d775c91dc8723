"""
Orderflow Backend - FastAPI Application

Checkout initiation and payment reconciliation between the storefront cart,
Stripe Checkout and the order store.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .config import settings
from .exceptions import ConfigurationError, OrderflowError
from .db.init_db import initialize_database, engine
from .api.checkout import router as checkout_router
from .api.webhooks import router as webhooks_router
from .api.orders import router as orders_router
from .api.products import router as products_router
from .services.payment_processor import check_processor_settings


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: check processor settings, create tables and seed the demo catalog
    - Shutdown: dispose the database engine
    """
    logger.info("Starting Orderflow backend server...")
    logger.info(f"Demo mode: {settings.demo_mode}")

    try:
        check_processor_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Refusing to start: {e}")
        raise

    try:
        await initialize_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    if not settings.demo_mode and not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; checkout session creation will fail")

    logger.info("Server startup complete")

    yield

    logger.info("Shutting down Orderflow backend server...")
    await engine.dispose()


app = FastAPI(
    title="Orderflow API",
    description="Checkout initiation and payment reconciliation",
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(OrderflowError)
async def orderflow_error_handler(request: Request, exc: OrderflowError):
    """
    Handle client errors raised by the checkout flow.

    Returns 400 with {"error", "error_code", "details"}; nothing was written.
    """
    logger.warning(
        f"Client error: {exc.error_code} - {exc.message}",
        extra={"details": exc.details}
    )

    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report a malformed request body as an invalid payload."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    logger.warning(f"Invalid payload on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid payload",
            "error_code": "checkout:payload_invalid",
            "details": {"errors": errors}
        }
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Input validation failures not caught by Pydantic."""
    logger.warning(f"Validation error: {str(exc)}")

    return JSONResponse(
        status_code=400,
        content={
            "error": str(exc),
            "error_code": "validation_error",
            "details": {}
        }
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unexpected errors.

    Logs full exception for debugging but returns generic message to client.
    """
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Server error",
            "error_code": "internal_error",
            "details": {"error_type": type(exc).__name__} if settings.demo_mode else {}
        }
    )


@app.get("/api/health")
async def health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {
        "status": "healthy",
        "version": "0.1.0",
        "demo_mode": settings.demo_mode,
        "processor": "fake" if settings.demo_mode else "stripe",
    }


app.include_router(checkout_router, prefix="/api", tags=["Checkout"])
app.include_router(webhooks_router, prefix="/api", tags=["Webhooks"])
app.include_router(orders_router, prefix="/api/orders", tags=["Orders"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])


def run():
    """Console entry point: serve the API with uvicorn."""
    import uvicorn
    uvicorn.run(
        "orderflow.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.demo_mode,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    run()
