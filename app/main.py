import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware

from app.core.config import Settings, load_settings
from .database import Base, make_engine, make_session_factory
from .routers import account, auth, contact, images
from .utils import Mailer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=app.state.engine)
    logger.info("Startup: Database tables checked/created")
    yield
    app.state.engine.dispose()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


def create_app(settings: Optional[Settings] = None, mailer: Optional[Mailer] = None) -> FastAPI:
    settings = settings or load_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    middleware = [
        Middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS),
        Middleware(GZipMiddleware, minimum_size=1000)
    ]

    app = FastAPI(
        title="DevImageHost Api",
        description="Image hosting with email-verified accounts",
        version="1.0.0",
        lifespan=lifespan,
        middleware=middleware,
        exception_handlers={
            StarletteHTTPException: http_exception_handler,
            RequestValidationError: validation_exception_handler,
        },
    )

    engine = make_engine(settings.DATABASE_URL)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.mailer = mailer or Mailer(settings)

    @app.middleware("http")
    async def catch_unhandled_errors(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": str(exc)},
            )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        return response

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = str(process_time)
        return response

    # Outermost layer; the 500 responses built above need CORS headers too.
    app.add_middleware(CORSMiddleware,
                       allow_origins=settings.CORS_ORIGINS,
                       allow_credentials="*" not in settings.CORS_ORIGINS,
                       allow_methods=["*"],
                       allow_headers=["*"])

    app.include_router(auth.router, prefix="/api", tags=["Authentication"])
    app.include_router(account.router, prefix="/api", tags=["Account"])
    app.include_router(images.router, prefix="/api", tags=["Images"])
    app.include_router(contact.router, prefix="/api", tags=["Contact"])
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    @app.get("/")
    def health_check():
        return {"status": "ok", "message": "DevImageHost API is up"}

    return app
