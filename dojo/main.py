import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .config import settings
from .db import init_db
from .exceptions import ConflictError, NotFoundError, StoreError, ValidationError
from .routers import attendance, dashboard, leaderboard, points, students

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield

app = FastAPI(title="dojo", lifespan=lifespan)

app.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
app.include_router(students.router, prefix="/students", tags=["students"])
app.include_router(points.router, prefix="/points", tags=["points"])
app.include_router(leaderboard.router, prefix="/leaderboard", tags=["leaderboard"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

ERROR_STATUS = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    StoreError: 503,
}

def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        if status_code >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
    return handler

for exc_class, status_code in ERROR_STATUS.items():
    app.add_exception_handler(exc_class, _error_handler(status_code))
