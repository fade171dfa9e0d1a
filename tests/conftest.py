from __future__ import annotations

import asyncio
import os
import pathlib
import sys

# Settings are read once at import time; push delivery stays off unless a
# test switches it on explicitly.
os.environ["FCM_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from plenpilot_api.app.core.config import settings
from plenpilot_api.app.core.db import init_db
from plenpilot_api.app.schemas.location import LocationCreate
from plenpilot_api.app.schemas.user import UserCreate
from plenpilot_api.app.services.location_service import LocationService
from plenpilot_api.app.services.user_service import UserService


@pytest.fixture(autouse=True)
def database(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", str(tmp_path / "plenpilot-test.db"))
    init_db()
    return settings.database_url


@pytest.fixture()
def run():
    return asyncio.run


@pytest.fixture()
def make_user(run):
    counter = {"n": 0}

    def factory(name: str = None, role: str = "employee", password: str = "secret123"):
        counter["n"] += 1
        name = name or f"Ansatt {counter['n']}"
        email = f"{name.lower().replace(' ', '.')}@plenpilot.no"
        return run(UserService.create_user(UserCreate(email=email, name=name, password=password, role=role)))

    return factory


@pytest.fixture()
def admin(make_user):
    # The first account is promoted to admin regardless of role.
    return make_user("Admin Person", role="admin")


@pytest.fixture()
def make_location(run):
    def factory(name: str = "Solsiden", start_week: int = 18, maintenance_frequency: int = 2,
                edge_cutting_frequency: int = 4):
        return run(LocationService.add_location(LocationCreate(
            name=name,
            address="Strandveien 1",
            maintenance_frequency=maintenance_frequency,
            edge_cutting_frequency=edge_cutting_frequency,
            start_week=start_week,
        )))

    return factory
