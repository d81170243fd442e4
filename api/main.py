from contextlib import asynccontextmanager
from datetime import datetime
import logging
import time

from fastapi import APIRouter, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import sqlalchemy.exc

from config.settings import get_settings
from core.database.operations import check_connection, init_db

from .deps import error_response
from .routes import auth, notifications, products, testing, users

logger = logging.getLogger("api")
settings = get_settings()

START_TIME = time.monotonic()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    logger.info("Database ready")
    yield


app = FastAPI(
    title="Style Finder API",
    description="Backend for the Style Finder fashion-shopping app",
    version=settings.PROJECT_VERSION,
    lifespan=lifespan,
)

# Restrict CORS to the configured frontend origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(notifications.router)
api_router.include_router(products.router)
if not settings.is_production:
    api_router.include_router(testing.router)
app.include_router(api_router)


@app.get("/", tags=["General"])
async def root():
    """Root endpoint providing API information."""
    return {
        "name": "Style Finder API",
        "version": settings.PROJECT_VERSION,
        "description": "Accounts, push notifications and fashion product search",
        "endpoints": {
            "GET /health": "Service and database status",
            "POST /api/auth/signup": "Create an account",
            "POST /api/auth/login": "Log in and receive a bearer token",
            "POST /api/auth/oauth/google": "Sign in with a Google ID token",
            "POST /api/auth/oauth/apple": "Sign in with an Apple identity token",
            "POST /api/auth/forgot-password": "Email a password reset code",
            "GET /api/users/profile": "Current user's profile",
            "POST /api/notifications/register-device": "Register a push token",
            "POST /api/products/search": "Search a retailer for products",
        },
    }


@app.get("/health", tags=["General"])
def health():
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "uptime": round(time.monotonic() - START_TIME, 3),
        "database": "connected" if check_connection() else "disconnected",
    }


# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request, exc):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request, exc):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {field}: {first.get('msg')}" if field else f"Invalid request: {first.get('msg')}"
    else:
        message = "Invalid request"
    return error_response(status.HTTP_400_BAD_REQUEST, message)


@app.exception_handler(sqlalchemy.exc.SQLAlchemyError)
async def database_exception_handler(_request, exc):
    logger.error("Database error: %s", exc)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error")


@app.exception_handler(Exception)
async def general_exception_handler(_request, exc):
    logger.exception("Unhandled error: %s", exc)
    extra = {} if settings.is_production else {"error": str(exc)}
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal Server Error", **extra)


# Run with: uvicorn api.main:app --reload
if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
