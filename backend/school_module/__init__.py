import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .config import settings
from .database import Base, SessionLocal, engine
from .exceptions import SchoolError
from .routes import router
from .seed import seed_defaults
from .store import SqlAlchemyStore

logger = logging.getLogger(__name__)


def init_school_module() -> None:
    Base.metadata.create_all(bind=engine)
    seed_defaults(SqlAlchemyStore(SessionLocal), demo_data=settings.seed_demo_data)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(SchoolError)
    async def school_error_handler(request: Request, exc: SchoolError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


__all__ = ["router", "init_school_module", "register_exception_handlers"]
