from __future__ import annotations  # FastAPI server exposing practice interview sessions

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import get_services, router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # Cancel session timers on shutdown
    yield
    get_services().registry.close_all()


def create_app() -> FastAPI:
    application = FastAPI(title="Interview Practice API", lifespan=lifespan)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(router)

    @application.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    return application


app = create_app()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    logger.info("Starting practice API on 0.0.0.0:8000")
    uvicorn.run("api_server:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    main()
