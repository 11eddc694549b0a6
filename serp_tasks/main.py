import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings as default_settings
from .deps import Services, build_services
from .errors import RateLimited, ServiceError
from .logging_setup import setup_logging
from .routers import catalog, postback, system, tasks

logger = logging.getLogger(__name__)


def create_app(settings: Settings = default_settings, services: Services | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "services", None) is None:
            owned = app.state.services = build_services(settings)
        yield
        if owned is not None:
            await owned.aclose()

    app = FastAPI(title="SERP Tasks API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code,
                    (time.perf_counter() - started) * 1000)
        return response

    @app.exception_handler(ServiceError)
    async def service_error(request: Request, exc: ServiceError):
        headers = {"Retry-After": str(exc.retry_after)} if isinstance(exc, RateLimited) else None
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse({"message": exc.message}, status_code=exc.status_code, headers=headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"message": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        field = ""
        if errors and errors[0].get("type") != "json_invalid":
            field = ".".join(str(p) for p in errors[0]["loc"][1:])
        message = f"Invalid {field} format." if field else "Invalid request body."
        return JSONResponse({"message": message}, status_code=400)

    app.include_router(system.router)
    app.include_router(catalog.router)
    app.include_router(tasks.router)
    app.include_router(postback.router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    setup_logging(default_settings.log_level)
    uvicorn.run(app, host=default_settings.host, port=default_settings.port, log_config=None)
