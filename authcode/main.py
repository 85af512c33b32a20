from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import logging
from contextlib import asynccontextmanager

from authcode.api.v1.endpoints.auth import router as auth_router
from authcode.api.v1.endpoints.health import router as health_router
from authcode.core.appwrite import appwrite_manager
from authcode.core.config import settings
from authcode.core.exceptions import AuthCodeError
from authcode.core.limiter import limiter

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async context manager for app lifespan events"""
    logger.info("🚀 Starting auth code service...")
    await appwrite_manager.init()
    logger.info(f"✅ Appwrite client ready (dev mode: {settings.DEV_MODE})")
    try:
        yield
    finally:
        logger.info("🔌 Closing Appwrite connections...")
        await appwrite_manager.close()
        logger.info("👋 Application shutdown complete")


app = FastAPI(
    title="Auth Code API",
    description="Six digit email login codes and role profiles backed by Appwrite",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AuthCodeError)
async def auth_code_exception_handler(request: Request, exc: AuthCodeError):
    if exc.status_code >= 500:
        logger.error(f"Request failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.error(f"Validation Error: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "Invalid request body"},
    )


app.include_router(health_router)
app.include_router(auth_router, prefix=settings.API_PREFIX)

logger.info(f"✅ Loaded {len(app.routes)} routes")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("authcode.main:app", host="0.0.0.0", port=settings.PORT)
