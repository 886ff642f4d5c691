from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from songbird.config import get_config
from songbird.dependencies import init_clients
from songbird.exceptions import SubmissionError
from songbird.log import logger
from songbird.router.api import routers


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    async with init_clients(config):
        yield


app = FastAPI(lifespan=lifespan)


@app.exception_handler(SubmissionError)
async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    logger.error(f"Job submission failed: {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


@app.get("/")
async def hello():
    return {"message": "Hello World"}


for router in routers:
    app.include_router(router)
