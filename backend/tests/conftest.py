"""
Shared fixtures: in-memory database, services and an app client.
"""
import json
from datetime import datetime

import pytest
import requests
from fastapi.testclient import TestClient

from chat_backend.config import Settings
from chat_backend.db.session import Database
from chat_backend.document_processor.extractor import TextExtractor
from chat_backend.llm.connection import ConnectionManager
from chat_backend.llm.generation import GenerationClient
from chat_backend.main import create_app
from chat_backend.models.file import ChatFileRecord
from chat_backend.services.servers import ServerRegistry

BOOTSTRAP_URL = "http://ollama.test:11434/"


def make_response(status_code=200, body=None):
    """Build a real requests.Response with the given status and JSON/bytes body."""
    response = requests.Response()
    response.status_code = status_code
    response.encoding = "utf-8"
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


def make_file(**overrides):
    values = dict(
        id=1,
        chat_id=1,
        message_id=None,
        user_id=1,
        file_name="notes.txt",
        stored_name="abc.txt",
        content_type="text/plain",
        file_size=11,
        uploaded_at=datetime(2024, 1, 1, 12, 0, 0),
        extracted_text="Hello world",
        text_extraction_successful=True,
    )
    values.update(overrides)
    return ChatFileRecord(**values)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ollama_base_url=BOOTSTRAP_URL,
        upload_dir=str(tmp_path / "uploads"),
        database_url="sqlite://",
        jwt_secret="test-secret",
        share_base_url="http://share.test",
        create_default_user=False,
        enable_health_monitor=False,
    )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def registry(database):
    return ServerRegistry(database)


@pytest.fixture
def connections(registry):
    manager = ConnectionManager(registry, probe_timeout=1.0)
    yield manager
    manager.close()


@pytest.fixture
def generation(connections):
    return GenerationClient(connections, default_model="test-model", timeout=5.0)


@pytest.fixture
def extractor():
    return TextExtractor()


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def register_and_login(client, username="alice", email="alice@example.com", password="secret"):
    response = client.post(
        "/api/auth/signup",
        json={"username": username, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def auth_headers(client):
    return register_and_login(client)
