import os
import tempfile
from datetime import datetime, timedelta

_tmp = tempfile.mkdtemp(prefix="provenance-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("ADMIN_PRINCIPAL", "admin")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp}/test.db"
os.environ["STATIC_DIR"] = os.path.join(_tmp, "static")
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from app.main import app
from app.db.core import engine
from app.db.store import InMemoryStore, SQLModelStore
from app.core.security import create_access_token
from app.models.product import ProductRegister
from app.services.stakeholder import StakeholderService

ADMIN = "admin"


class FakeClock:
    """Deterministic clock; call tick() to move time forward."""

    def __init__(self, start=datetime(2024, 3, 1, 9, 30, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def tick(self, seconds=1):
        self.now = self.now + timedelta(seconds=seconds)


def reset_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)


@pytest.fixture
def client():
    SQLModel.metadata.drop_all(engine)
    with TestClient(app) as c:
        yield c


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        yield InMemoryStore()
        return

    reset_database()
    with Session(engine) as session:
        yield SQLModelStore(session)


@pytest.fixture
def registry(store):
    """A store whose registry has been initialized with ADMIN."""
    StakeholderService(store).initialize(ADMIN)
    return store


@pytest.fixture
def clock():
    return FakeClock()


def auth_headers(principal):
    return {"Authorization": f"Bearer {create_access_token(principal)}"}


def make_registration(**overrides):
    data = {
        "product_code": "SKU-1",
        "name": "T-Shirt",
        "location": "Gujarat, IN",
        "certifications": "GOTS",
        "carbon_footprint": 100,
        "working_conditions": "Fair Trade certified farm",
        "fair_wages_paid": 500,
        "notes": "",
    }
    data.update(overrides)
    return ProductRegister(**data)
