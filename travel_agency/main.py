import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from travel_agency.config import settings
from travel_agency.exceptions import register_exception_handlers
from travel_agency.logging_config import configure_logging
from travel_agency.rate_limit import limiter
from travel_agency.utils import utcnow
from travel_agency.auth import router as auth_router
from travel_agency.trips import router as trips_router
from travel_agency.bookings import router as bookings_router
from travel_agency.payments import router as payments_router
from travel_agency.customers import router as customers_router
from travel_agency.reports import router as reports_router
from travel_agency.admin import router as admin_router

logger = logging.getLogger("travel_agency")

# Added to every response unless a handler already set them
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}

def create_app() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Travel agency trip catalog and booking API",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.limiter = limiter

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %d %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    register_exception_handlers(app)

    # Include routers
    app.include_router(
        auth_router.router,
        prefix=f"{settings.API_PREFIX}/auth",
        tags=["Authentication"]
    )

    app.include_router(
        trips_router.router,
        prefix=f"{settings.API_PREFIX}/trips",
        tags=["Trips"]
    )

    app.include_router(
        bookings_router,
        prefix=f"{settings.API_PREFIX}/bookings",
        tags=["Bookings"]
    )

    app.include_router(
        payments_router,
        prefix=f"{settings.API_PREFIX}/payments",
        tags=["Payments"]
    )

    app.include_router(
        customers_router,
        prefix=f"{settings.API_PREFIX}/customers",
        tags=["Customers"]
    )

    app.include_router(
        reports_router,
        prefix=f"{settings.API_PREFIX}/reports",
        tags=["Reports"]
    )

    app.include_router(
        admin_router.router,
        prefix=f"{settings.API_PREFIX}/admin",
        tags=["Admin System"]
    )

    @app.get("/")
    def root():
        """Root endpoint"""
        return {
            "message": f"{settings.PROJECT_NAME} API",
            "version": "1.0.0",
            "docs": "/docs"
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "ok", "timestamp": utcnow().isoformat()}

    logger.info("%s started in %s mode", settings.PROJECT_NAME, settings.ENVIRONMENT)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
