from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlmodel import Session

from app.api.v1 import index
from app.api.v1 import stakeholders
from app.api.v1 import products
from app.api.v1 import events

from app.core.config import settings
from app.core.errors import ProvenanceError, provenance_error_handler
from app.core.logging import setup_logging
from app.db.core import engine, create_db_and_tables
from app.db.store import SQLModelStore
from app.services.stakeholder import StakeholderService

setup_logging()


def initialize_registry():
    """Creates tables and authorizes the configured admin on first start."""
    create_db_and_tables()
    with Session(engine) as session:
        StakeholderService(SQLModelStore(session)).initialize(
            settings.admin_principal)


@asynccontextmanager
async def lifespan(app: FastAPI):
    initialize_registry()
    yield


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)

# Middlewares
origins = []

if settings.allowed_hosts:
    origins = settings.allowed_hosts.split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(ProvenanceError, provenance_error_handler)

# Register routes
app.include_router(index.router, prefix="/api/v1")
app.include_router(stakeholders.router,
                   prefix="/api/v1/stakeholders", tags=["Stakeholders"])
app.include_router(products.router,
                   prefix="/api/v1/products", tags=["Products"])
app.include_router(events.router, prefix="/api/v1/events", tags=["Events"])

# Static files serving (QR codes)
app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level=None,
    )
