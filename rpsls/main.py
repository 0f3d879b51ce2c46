import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rpsls.api.routes import router
from rpsls.config import settings_from_env
from rpsls.errors import (
    CommitmentMismatch,
    GameBusy,
    GameError,
    GuardViolation,
    InvalidInput,
    NotFound,
    TimeoutNotYetEligible,
)

# Configure logging
logging.basicConfig(level=settings_from_env().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="rpsls-settlement", version="0.1.0")
app.include_router(router)

_STATUS_BY_ERROR: dict[type[GameError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidInput: status.HTTP_422_UNPROCESSABLE_ENTITY,
    CommitmentMismatch: status.HTTP_422_UNPROCESSABLE_ENTITY,
    GuardViolation: status.HTTP_409_CONFLICT,
    TimeoutNotYetEligible: status.HTTP_409_CONFLICT,
    GameBusy: status.HTTP_423_LOCKED,
}


@app.exception_handler(GameError)
async def _game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)
    logger.debug("%s %s -> %s %s", request.method, request.url.path, code, exc.kind)
    return JSONResponse(status_code=code, content={"kind": exc.kind, "detail": str(exc)})


@app.get("/info")
async def info() -> dict[str, object]:
    settings = settings_from_env()
    return {"name": "rpsls-settlement", "version": "0.1.0", "timeout_seconds": settings.timeout_seconds}
