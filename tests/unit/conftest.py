"""Pytest configuration and fixtures for unit tests."""

import itertools

import pytest

from worklink.domain.task import GeoPoint, Task, TaskCategory, TaskStatus
from worklink.domain.user import User, UserRole
from tests.unit.mocks import InMemoryDBClient


# Downtown Manhattan, where the demo data lives
NYC = GeoPoint(lat=40.7128, lng=-74.0060)


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches worklink.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("worklink.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("worklink.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("worklink.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("worklink.core.db_client.list_records", in_memory_db.list_records)
    return in_memory_db


@pytest.fixture
def make_worker():
    """Factory for worker users."""

    def _make(user_id: str = "w1", name: str = "Alex Johnson", **overrides) -> User:
        data = {
            "id": user_id,
            "role": UserRole.WORKER,
            "name": name,
            "email": f"{user_id}@example.com",
            "phone": "9876543210",
            "location": NYC,
            "address": "Downtown District, NY",
            "rating": 4.8,
            "completed_tasks": 12,
            "skills": ["Plumbing", "Heavy Lifting"],
            **overrides,
        }
        return User(**data)

    return _make


@pytest.fixture
def make_provider():
    """Factory for provider users."""

    def _make(user_id: str = "p1", name: str = "Sarah Connor", **overrides) -> User:
        data = {
            "id": user_id,
            "role": UserRole.PROVIDER,
            "name": name,
            "email": f"{user_id}@example.com",
            "phone": "9988776655",
            "location": GeoPoint(lat=40.7138, lng=-74.0055),
            "address": "123 Main St",
            **overrides,
        }
        return User(**data)

    return _make


@pytest.fixture
def make_task():
    """Factory for OPEN tasks with increasing creation times."""
    counter = itertools.count(1)

    def _make(task_id: str | None = None, **overrides) -> Task:
        n = next(counter)
        data = {
            "id": task_id or f"t{n}",
            "provider_id": "p1",
            "provider_name": "Sarah Connor",
            "provider_phone": "9876543210",
            "title": "Move heavy sofa upstairs",
            "description": "Need help moving a 3-seater sofa to the second floor. No elevator.",
            "budget": 25,
            "category": TaskCategory.SHIFTING,
            "location": GeoPoint(lat=40.7138, lng=-74.0055),
            "address": "123 Main St",
            "status": TaskStatus.OPEN,
            "created_at": 1_700_000_000_000 + n * 1000,
            "date": "2025-11-19",
            **overrides,
        }
        return Task(**data)

    return _make


@pytest.fixture
async def stored_task(patched_db, make_task):
    """An OPEN task already present in the in-memory store."""
    task = make_task("t-stored")
    await patched_db.create_record(collection="tasks", data=task.model_dump(mode="json"))
    return task
