import os

# Settings are read at import time
os.environ["STORE_BACKEND"] = "memory"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SEED_SAMPLE_DATA"] = "false"

import pytest
from typing import AsyncGenerator, Callable, Dict
from httpx import AsyncClient, ASGITransport
from fastapi import FastAPI
from asgi_lifespan import LifespanManager
from jose import jwt

from app.core import collections
from app.core.config import settings
from app.core.database import get_store
from app.store.memory import MemoryDocumentStore
from main import app

ADMIN_ID = "admin-1"
LAWYER_ID = "lawyer-1"
OTHER_LAWYER_ID = "lawyer-2"
SECRETARY_ID = "secretary-1"

TEST_USERS = {
    ADMIN_ID: {"firstName": "Ada", "lastName": "Admin", "email": "ada@example.com", "role": "Admin"},
    LAWYER_ID: {"firstName": "Lou", "lastName": "Lawyer", "email": "lou@example.com", "role": "lawyer"},
    OTHER_LAWYER_ID: {"firstName": "Lee", "lastName": "Counsel", "email": "lee@example.com", "role": "lawyer"},
    SECRETARY_ID: {"firstName": "Sam", "lastName": "Clerk", "email": "sam@example.com", "role": "secretary"},
}


@pytest.fixture
def store() -> MemoryDocumentStore:
    """A fresh in-memory document store."""
    return MemoryDocumentStore()


@pytest.fixture
async def seeded_store(store: MemoryDocumentStore) -> MemoryDocumentStore:
    """Store holding one profile per role."""
    for user_id, data in TEST_USERS.items():
        await store.set_document(collections.doc_path(collections.USERS, user_id), data)
    return store


@pytest.fixture
async def test_app(seeded_store: MemoryDocumentStore) -> AsyncGenerator[FastAPI, None]:
    """The application wired to the test store."""
    app.dependency_overrides[get_store] = lambda: seeded_store
    async with LifespanManager(app):
        yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def make_token() -> Callable[..., str]:
    """Sign a token the way the identity provider does."""

    def _make_token(user_id: str, email: str = None, full_name: str = None) -> str:
        claims = {"sub": user_id, "aud": settings.JWT_AUDIENCE}
        if email:
            claims["email"] = email
        if full_name:
            claims["user_metadata"] = {"full_name": full_name}
        return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    return _make_token


@pytest.fixture
def auth_headers(make_token) -> Callable[[str], Dict[str, str]]:
    def _auth_headers(user_id: str) -> Dict[str, str]:
        email = TEST_USERS.get(user_id, {}).get("email")
        return {"Authorization": f"Bearer {make_token(user_id, email=email)}"}

    return _auth_headers
