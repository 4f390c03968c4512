from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import exam_routers, locales, question_bank
from contextlib import asynccontextmanager
from .config import CORS_ORIGINS
from .db import create_db_and_tables

import logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # run once when app starts. Make DB tables.
    await create_db_and_tables()
    logger.info("Database ready")
    yield

app = FastAPI(title="Drivewise", lifespan=lifespan)


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,  # which sites can call this API
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(exam_routers.router, prefix="/api")
app.include_router(question_bank.router, prefix="/api")
app.include_router(locales.router, prefix="/api")
