import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.auth import router as auth_router
from api.student import router as student_router
from api.teacher import router as teacher_router
from core.config import settings
from core.db import init_db
from core.errors import LearnLoopError
from core.request_log import RequestLogMiddleware

logger = logging.getLogger(__name__)

ROUTE_NOT_FOUND = {"message": "Route not found"}


def _field_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        # loc 예: ("body", "email") -> "email"
        loc = list(error.get("loc", ()))
        if loc and loc[0] in ("body", "query", "path", "header"):
            loc = loc[1:]
        loc = [str(part) for part in loc]
        errors.append({
            "field": ".".join(loc) or None,
            "message": error.get("msg"),
            "type": error.get("type"),
        })
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """모든 에러 응답을 {"message": ...} 형태로 통일"""

    @app.exception_handler(LearnLoopError)
    async def _domain_error(request: Request, exc: LearnLoopError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = _field_errors(exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": errors[0]["message"] if errors else "Invalid request", "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return JSONResponse(status_code=exc.status_code, content=ROUTE_NOT_FOUND)
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Database error"},
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal Server Error"},
        )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    Routers are split by role so teacher and student surfaces stay independent.
    """
    settings.validate()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(title="LearnLoop API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(teacher_router)
    app.include_router(student_router)

    @app.get("/")
    def root():
        return {"status": "The server is running fine"}

    @app.get("/health")
    def health_check() -> dict:
        return {"status": "ok", "service": "LearnLoop"}

    @app.on_event("startup")
    def _startup() -> None:
        init_db()

    return app


app = create_app()


if __name__ == "__main__":
    import os

    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8000)))
