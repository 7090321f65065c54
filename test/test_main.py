"""
Tests for application wiring.
"""

import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from surveycall.config import Settings
from surveycall.main import create_app
from surveycall.shared.exceptions import ConfigError
from surveycall.survey.repository import ParticipantRepository


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_correlation_id_is_echoed(client: TestClient) -> None:
    response = client.get("/health", headers={"X-Correlation-ID": "req-123"})

    assert response.headers["X-Correlation-ID"] == "req-123"


def test_correlation_id_is_generated(client: TestClient) -> None:
    response = client.get("/health")

    assert response.headers["X-Correlation-ID"]


def test_missing_questions_file_fails_startup(test_settings: Settings, tmp_path: Path) -> None:
    settings = test_settings.model_copy(update={"questions_file": tmp_path / "absent.json"})

    with pytest.raises(ConfigError):
        create_app(settings=settings)


def test_questions_loaded_from_settings(test_settings: Settings, tmp_path: Path) -> None:
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(["Only question?"]), encoding="utf-8")
    settings = test_settings.model_copy(update={"questions_file": path})

    app = create_app(settings=settings)

    assert app.state.question_bank.question_count() == 1


def test_store_failure_is_server_error(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def unavailable(self, call_id: str):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))

    monkeypatch.setattr(ParticipantRepository, "get_by_call_id", unavailable)

    response = client.get("/callStep", params={"callID": "abc", "destination": "+1555"})

    assert response.status_code == 500
    assert response.json()["detail"]["code"] == "STORE_ERROR"
