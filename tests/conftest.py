"""
Pytest configuration for the Travelogues tests
Builds a temporary catalog database from the sample dataset
"""

import asyncio
import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api_server import app, get_settings
from config.settings import TraveloguesConfig
from travelogues.database import DatabaseManager

pytest_plugins = ('pytest_asyncio',)

SAMPLE_DATASET_PATH = Path(__file__).parent.parent / "data" / "sample_travelogues.json"


def load_sample_dataset():
    with SAMPLE_DATASET_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def dataset():
    return load_sample_dataset()


@pytest.fixture
def database_path(tmp_path, dataset) -> Path:
    """Catalog database with the schema and the sample dataset"""
    path = tmp_path / "travelogues.db"

    async def build():
        async with DatabaseManager(path) as db:
            await db.create_schema()
            await db.import_dataset(dataset)

    asyncio.run(build())
    return path


@pytest.fixture
def settings(database_path) -> TraveloguesConfig:
    return TraveloguesConfig(database_path=database_path)


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
