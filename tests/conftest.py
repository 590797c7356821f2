"""Shared test fixtures."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from commentflow.main import create_app


@pytest.fixture
def app() -> FastAPI:
    """Application without lifespan (no Cassandra, no Redis)."""
    return create_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
