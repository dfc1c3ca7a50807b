"""Tests for POST /tasks/contacts/fetch-details."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from supportly.api.factory import create_app
from supportly.api.routes import tasks_contacts
from supportly.contacts.enrichment import IdentityResolver, ResolutionOutcome
from supportly.errors import ContactNotFoundError

URL = "/tasks/contacts/fetch-details"


@pytest.fixture
def client():
    return TestClient(create_app(role="worker"))


@pytest.fixture
def resolver():
    mock = MagicMock(spec=IdentityResolver)
    tasks_contacts._set_resolver(mock)
    return mock


@pytest.fixture
def authed():
    with patch("supportly.api.routes.tasks_contacts.verify_task_auth", return_value=True):
        yield


def test_no_auth_returns_401(client, resolver):
    response = client.post(URL, json={"contact_id": 5})
    assert response.status_code == 401


@pytest.mark.usefixtures("authed")
class TestFetchDetails:
    def test_success(self, client, resolver):
        with patch(
            "supportly.api.routes.tasks_contacts.fetch_contact_details",
            return_value=ResolutionOutcome.RESOLVED,
        ) as mock_fetch:
            response = client.post(URL, json={"contact_id": 5})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "outcome": "resolved"}
        mock_fetch.assert_called_once_with(resolver, 5)

    def test_skipped_is_200(self, client, resolver):
        with patch(
            "supportly.api.routes.tasks_contacts.fetch_contact_details",
            return_value=ResolutionOutcome.SKIPPED,
        ):
            response = client.post(URL, json={"contact_id": 5})

        assert response.json()["outcome"] == "skipped"

    def test_missing_contact_returns_404(self, client, resolver):
        with patch(
            "supportly.api.routes.tasks_contacts.fetch_contact_details",
            side_effect=ContactNotFoundError(5),
        ):
            response = client.post(URL, json={"contact_id": 5})

        assert response.status_code == 404
        assert response.text == "contact_not_found"

    def test_missing_identity_config_returns_500(self, client, monkeypatch):
        monkeypatch.delenv("IDENTITY_SERVICE_URL", raising=False)
        tasks_contacts._set_resolver(None)

        response = client.post(URL, json={"contact_id": 5})

        assert response.status_code == 500

    def test_database_error_returns_500(self, client, resolver):
        with patch(
            "supportly.api.routes.tasks_contacts.fetch_contact_details",
            side_effect=RuntimeError("DATABASE_URL environment variable not set"),
        ):
            response = client.post(URL, json={"contact_id": 5})

        assert response.status_code == 500
