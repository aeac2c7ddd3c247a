import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from breeqa.core.config import settings
from breeqa.core.errors import AccessError
from breeqa.core.logging import configure_logging

from breeqa.api.v1.invitations import router as invitations_router
from breeqa.api.v1.organizations import router as organizations_router
from breeqa.api.v1.permissions import router as permissions_router

logger = logging.getLogger(__name__)


def _envelope(message: str, code: str, detail=None) -> dict:
    return {
        "success": False,
        "data": None,
        "error": message,
        "code": code,
        "detail": jsonable_encoder(detail),
    }


def create_application() -> FastAPI:
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Breeqa API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AccessError)
    async def access_error_handler(request: Request, exc: AccessError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=_envelope(exc.message, exc.code, exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=422, content=_envelope(message, "validation_error", errors))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return JSONResponse(status_code=exc.status_code, content=_envelope(str(exc.detail), code))

    @app.get("/")
    def root():
        return {"status": "ok", "service": "breeqa"}

    # Routers
    app.include_router(permissions_router, prefix="/api/v1")
    app.include_router(organizations_router, prefix="/api/v1")
    app.include_router(invitations_router, prefix="/api/v1")

    return app


app = create_application()
