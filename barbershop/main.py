# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from barbershop.config import CORS_ORIGINS, LOG_LEVEL, SEED_ADMIN
from barbershop.db import create_db_and_tables, engine
from barbershop.seed import create_default_admin
from barbershop.routers import (
    appointments_routes,
    auth_routes,
    gallery_routes,
    schedules_routes,
    services_routes,
    users_routes,
)

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    if SEED_ADMIN:
        with Session(engine) as session:
            create_default_admin(session)
    yield


app = FastAPI(title="Barbershop Booking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(services_routes.router)
app.include_router(schedules_routes.router)
app.include_router(appointments_routes.router)
app.include_router(gallery_routes.router)
