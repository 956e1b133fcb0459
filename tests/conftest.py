"""Shared fixtures: a file-backed SQLite database and a temporary storage root per test."""

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestClient, TestServer

from modserve.models import DatabaseConfig, HTTPConfig, ServerConfig
from modserve.server.app import create_app
from modserve.storage import ArtifactStore
from modserve.store import Repositories, create_engine, create_session_factory, init_db


@pytest.fixture
def storage_root(tmp_path):
    return tmp_path / "storage"


@pytest.fixture
def db_config(tmp_path):
    return DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'modserve.db'}")


@pytest_asyncio.fixture
async def engine(db_config):
    engine = create_engine(db_config)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with create_session_factory(engine)() as session:
        yield session


@pytest.fixture
def artifacts(storage_root):
    return ArtifactStore(storage_root)


@pytest.fixture
def repositories(artifacts):
    return Repositories(artifacts)


@pytest.fixture
def server_config(storage_root, db_config):
    return ServerConfig(
        server=HTTPConfig(public_url="http://mods.example.com", storage=str(storage_root)),
        database=db_config,
    )


@pytest_asyncio.fixture
async def client(server_config):
    app = create_app(server_config)
    async with TestClient(TestServer(app)) as client:
        yield client
