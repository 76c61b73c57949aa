# app/main.py

# 1) Load .env as early as possible
from dotenv import load_dotenv
load_dotenv()

# 2) General settings
import os
import logging
from contextlib import asynccontextmanager

# 3) FastAPI & project foundations
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from .database import init_db
from .validation import ValidationFailed

# 4) Routers
from .auth import router as auth_router
from .admin import router as admin_router
from .routes_property import router as property_router
from .routes_tenant import router as tenant_router
from .routes_addresses import router as addresses_router
from .routes_users import router as users_router
from .routes_recommendations import router as recommendations_router

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"

# -----------------------------------------------------------------------------
# Create the app
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup (Alembic handles real migrations)."""
    init_db()
    yield


app = FastAPI(title="Rental Reviews API", lifespan=lifespan)

# -----------------------------------------------------------------------------
# Sessions (cookies are secure only in production) + CORS for the frontend
# -----------------------------------------------------------------------------
SITE_URL = os.environ.get("SITE_URL", "")
COOKIE_DOMAIN = os.environ.get("COOKIE_DOMAIN") or None
HTTPS_ONLY_COOKIES = bool(int(os.environ.get("HTTPS_ONLY_COOKIES", "1" if SITE_URL.startswith("https") else "0")))
CORS_ORIGINS = [
    o.strip()
    for o in os.environ.get("CORS_ORIGINS", os.environ.get("FRONTEND_URL", "http://localhost:3000")).split(",")
    if o.strip()
]

app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SECRET_KEY", "dev-secret"),
    session_cookie="rr_session",
    same_site="lax",
    https_only=HTTPS_ONLY_COOKIES,
    max_age=60 * 60 * 24 * 7,
    domain=COOKIE_DOMAIN,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Errors: every response body is {"message": ...}
# -----------------------------------------------------------------------------
@app.exception_handler(ValidationFailed)
async def _validation_failed(request: Request, exc: ValidationFailed):
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": exc.errors})


@app.exception_handler(RequestValidationError)
async def _bad_request_body(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ())[1:]) or "body", "msg": e.get("msg"), "value": None}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(Exception)
async def _server_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(property_router, prefix=API_PREFIX)
app.include_router(tenant_router, prefix=API_PREFIX)
app.include_router(addresses_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(admin_router, prefix=API_PREFIX)
app.include_router(recommendations_router, prefix=API_PREFIX)


@app.get(API_PREFIX + "/health")
def health():
    return {"status": "OK", "message": "Server is running"}

