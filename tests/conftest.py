"""Shared fixtures: an in-memory MongoDB and an API client per test."""

import os

# must be set before config is imported
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import mongomock
import pytest
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app
from helpers import INITIAL_USERS


@pytest.fixture
def db():
    database = mongomock.MongoClient()["bloglist_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    user = INITIAL_USERS[0]
    r = client.post("/api/users", json=user)
    assert r.status_code == 201
    login = client.post(
        "/api/login", json={"username": user["username"], "password": user["password"]},
    )
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.json()['token']}"}
