"""Shared fixtures: an in-memory stand-in for the Motor donors collection."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
import bson
from bson import ObjectId
from fastapi import FastAPI
from pymongo import DESCENDING
from pymongo.errors import ServerSelectionTimeoutError

from lifepulse.database import Settings
from lifepulse.main import create_app
from lifepulse.repositories.donors import DonorRepository
from lifepulse.routers.donations import get_donor_repository


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]], fail: bool) -> None:
        self._documents = documents
        self._fail = fail
        self._limit = 0

    def sort(self, keys):
        for key, direction in reversed(keys):
            self._documents.sort(key=lambda document: document[key], reverse=direction == DESCENDING)
        return self

    def limit(self, count: int):
        self._limit = count
        return self

    async def to_list(self, length: int | None = None) -> List[Dict[str, Any]]:
        if self._fail:
            raise ServerSelectionTimeoutError("fake store unavailable")
        documents = self._documents[: self._limit] if self._limit else self._documents
        if length is not None:
            documents = documents[:length]
        return [dict(document) for document in documents]


class FakeCollection:
    def __init__(self, fail: bool = False) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []
        self.fail = fail

    async def create_index(self, keys, **kwargs) -> str:
        if self.fail:
            raise ServerSelectionTimeoutError("fake store unavailable")
        self.indexes.append(keys)
        return "_".join(f"{key}_{direction}" for key, direction in keys)

    async def insert_one(self, document: Dict[str, Any]) -> SimpleNamespace:
        if self.fail:
            raise ServerSelectionTimeoutError("fake store unavailable")
        stored = {"_id": ObjectId(), **document}
        bson.encode(stored)
        self.documents.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"], acknowledged=True)

    def find(self, query: Dict[str, Any] | None = None, projection: Dict[str, int] | None = None) -> FakeCursor:
        query = query or {}
        matches = [
            document
            for document in self.documents
            if all(document.get(key) == value for key, value in query.items())
        ]
        if projection:
            matches = [
                {key: value for key, value in document.items() if key == "_id" or projection.get(key)}
                for document in matches
            ]
        return FakeCursor(matches, self.fail)


class FakeDatabase:
    def __init__(self, name: str, collection: FakeCollection) -> None:
        self.name = name
        self.collection = collection
        self.requested: List[str] = []

    def get_collection(self, name: str) -> FakeCollection:
        self.requested.append(name)
        return self.collection


class FakeClient:
    def __init__(self, collection: FakeCollection) -> None:
        self.collection = collection
        self.database: FakeDatabase | None = None
        self.closed = False

    def get_default_database(self, default: str | None = None) -> FakeDatabase:
        self.database = FakeDatabase(default, self.collection)
        return self.database

    def close(self) -> None:
        self.closed = True


class TickingClock:
    """Advances one minute per call so every record gets a distinct stamp."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def failing_collection() -> FakeCollection:
    return FakeCollection(fail=True)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def repository(collection: FakeCollection, clock: TickingClock) -> DonorRepository:
    return DonorRepository(collection, clock=clock)


@pytest.fixture
def failing_repository(failing_collection: FakeCollection) -> DonorRepository:
    return DonorRepository(failing_collection)


@pytest.fixture
def fake_client(collection: FakeCollection) -> FakeClient:
    return FakeClient(collection)


@pytest.fixture
def failing_client(failing_collection: FakeCollection) -> FakeClient:
    return FakeClient(failing_collection)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        mongo_uri="mongodb://localhost:27017/lifepulse_test",
        allowed_origins="https://donate.example.org",
    )


@pytest.fixture
def app(settings: Settings, repository: DonorRepository) -> FastAPI:
    application = create_app(settings)
    application.dependency_overrides[get_donor_repository] = lambda: repository
    return application


@pytest.fixture
def valid_payload() -> Dict[str, Any]:
    return {
        "name": "Asha Verma",
        "age": 29,
        "phoneNumber": "9876543210",
        "bloodGroup": "O+",
        "country": "India",
        "state": "Kerala",
        "district": "Ernakulam",
        "city": "Kochi",
        "notes": "Available on weekends",
    }
