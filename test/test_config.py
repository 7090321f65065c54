"""
Tests for application configuration.
"""

from pathlib import Path

import pytest

from surveycall.config import Settings, load_settings
from surveycall.shared.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # No .env file in cwd and no inherited variables.
    monkeypatch.chdir(tmp_path)
    for name in ("DATABASE_URL", "MESSAGEBIRD_API_KEY", "PUBLIC_BASE_URL", "QUESTIONS_FILE"):
        monkeypatch.delenv(name, raising=False)


class TestLoadSettings:
    def test_missing_required_values_fail_fast(self, clean_env: None) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert exc_info.value.code == "CONFIG_ERROR"
        assert "DATABASE_URL" in exc_info.value.message
        assert "MESSAGEBIRD_API_KEY" in exc_info.value.message
        assert exc_info.value.details["fields"] == ["DATABASE_URL", "MESSAGEBIRD_API_KEY"]

    def test_blank_api_key_rejected(
        self,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///survey.db")
        monkeypatch.setenv("MESSAGEBIRD_API_KEY", "   ")

        with pytest.raises(ConfigError) as exc_info:
            load_settings()

        assert exc_info.value.details["fields"] == ["MESSAGEBIRD_API_KEY"]

    def test_reads_environment(
        self,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///survey.db")
        monkeypatch.setenv("MESSAGEBIRD_API_KEY", "live_abc")
        monkeypatch.setenv("PUBLIC_BASE_URL", "https://survey.example.com/")
        monkeypatch.setenv("QUESTIONS_FILE", "/etc/survey/questions.json")

        settings = load_settings()

        assert settings.database_url == "sqlite+aiosqlite:///survey.db"
        assert settings.messagebird_api_key == "live_abc"
        assert settings.public_base_url == "https://survey.example.com"
        assert settings.questions_file == Path("/etc/survey/questions.json")

    def test_reads_dotenv_file(self, clean_env: None, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text(
            "DATABASE_URL=sqlite+aiosqlite:///from-dotenv.db\n"
            "MESSAGEBIRD_API_KEY=dotenv_key\n",
            encoding="utf-8",
        )

        settings = load_settings()

        assert settings.database_url == "sqlite+aiosqlite:///from-dotenv.db"
        assert settings.messagebird_api_key == "dotenv_key"


class TestSettingsDefaults:
    def test_default_values(self) -> None:
        # Environment variables may override runtime values; check declared defaults.
        fields = Settings.model_fields
        assert fields["messagebird_voice_base_url"].default == "https://voice.messagebird.com"
        assert fields["questions_file"].default == Path("questions.json")
        assert fields["public_base_url"].default == ""
        assert fields["database_create_schema"].default is True
