"""
Shared fixtures for the agenda API tests.
"""
from datetime import datetime, timedelta
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.config import Settings
from app.main import create_app
from app.models.agendamento import AgendamentoCreate, utc_naive_now
from app.services.database_store import DatabaseStore
from app.services.memory_store import MemoryStore


def future(**delta: float) -> datetime:
    """A naive UTC timestamp ``delta`` from now (defaults to one day ahead)."""
    return utc_naive_now() + timedelta(**(delta or {"days": 1}))


def make_create(**overrides: Any) -> AgendamentoCreate:
    data: dict[str, Any] = {
        "nome": "Ana",
        "servico": "Exame",
        "data_agendamento": future(days=1),
    }
    data.update(overrides)
    return AgendamentoCreate(**data)


def sqlite_engine(tmp_path):
    return create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'agenda.db'}")


# === Stores ===

@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest_asyncio.fixture
async def database_store(tmp_path):
    store = DatabaseStore(sqlite_engine(tmp_path))
    await store.startup()
    yield store
    await store.shutdown()


@pytest_asyncio.fixture(params=["memory", "database"])
async def store(request, tmp_path):
    """Runs a test once against each backend."""
    if request.param == "memory":
        yield MemoryStore()
    else:
        db_store = DatabaseStore(sqlite_engine(tmp_path))
        await db_store.startup()
        yield db_store
        await db_store.shutdown()


# === HTTP ===

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        storage_backend="memory",
        api_prefix="",
        platform="test",
        cors_origins="*",
        seed_sample_data=False,
    )


@pytest.fixture
def client(test_settings: Settings, memory_store: MemoryStore) -> TestClient:
    return TestClient(create_app(test_settings, memory_store))


@pytest.fixture
def agendamento_payload() -> dict[str, Any]:
    return {
        "nome": "Ana",
        "telefone": "(11) 99999-9999",
        "email": "ana@email.com",
        "servico": "Exame",
        "data_agendamento": future(days=1).isoformat(),
        "observacoes": "Primeira consulta",
    }
