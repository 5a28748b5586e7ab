from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from database import init_models
from logger import setup_logger
from tournament.exceptions import (
    InvalidInput, LocaleResolutionError, PadelError, TournamentNotFound, ValidationError,
)
from tournament.router import router as tournament_router

logger = setup_logger(__name__)

ERROR_STATUS = {
    TournamentNotFound: 404,
    ValidationError: 409,
    InvalidInput: 400,
    LocaleResolutionError: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models()
    logger.info("Database tables ready")
    yield


app = FastAPI(title="Padel Boy", lifespan=lifespan)
app.include_router(tournament_router)


@app.exception_handler(PadelError)
async def padel_error_handler(request: Request, exc: PadelError):
    status_code = ERROR_STATUS.get(type(exc), 400)
    if status_code != 404:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.get("/")
async def index():
    return {"app": "Padel Boy", "tournaments": "/tournaments"}
