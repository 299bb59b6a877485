"""Shared fixtures for Fooddash tests."""

import json
import os

# Required settings must exist before the app serves its first request
os.environ.setdefault("GOOGLE_API_KEY", "test-api-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest

from fooddash.config import Config
from fooddash.database import Database
from fooddash.services.cache import ResponseCache
from fooddash.services.places_gateway import PlacesGateway


@pytest.fixture
def config():
    """Isolated configuration that ignores any local .env file."""
    return Config(
        _env_file=None,
        google_api_key="test-api-key",
        database_url="sqlite://",
        storage_public_url="https://storage.example.com/object/public",
        auth_url="https://auth.example.com/auth/v1",
        auth_api_key="public-anon-key",
    )


@pytest.fixture
def database():
    """Fresh in-memory database with all tables created."""
    db = Database("sqlite://")
    db.init_db()
    return db


class FakePlacesApi:
    """Records outbound requests and replies with canned responses per path."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, httpx.Response] = {}
        self.error: Exception | None = None
        self.responder = None

    def reply(self, path_suffix: str, status_code: int = 200, payload=None):
        self.responses[path_suffix] = httpx.Response(
            status_code, json=payload if payload is not None else {}
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(request)
        for suffix, response in self.responses.items():
            if request.url.path.endswith(suffix):
                return response
        return httpx.Response(404, json={"error": {"message": "not found"}})

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def places_api():
    return FakePlacesApi()


@pytest.fixture
def gateway(config, places_api):
    """Gateway wired to the fake Places API with a private cache."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(places_api.handler))
    return PlacesGateway(config=config, client=client, cache=ResponseCache())


def _place(place_id, name="店舗", primary_type="ramen_restaurant", photo=True):
    """Build a raw Places API place payload."""
    payload = {"id": place_id, "displayName": {"text": name, "languageCode": "ja"}}
    if primary_type:
        payload["primaryType"] = primary_type
    if photo:
        payload["photos"] = [{"name": f"places/{place_id}/photos/p1"}]
    return payload


@pytest.fixture
def make_place():
    return _place
