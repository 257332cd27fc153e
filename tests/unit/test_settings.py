"""Unit tests for settings models and loader."""

import json
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    DocumentDBSettings,
    LLMSettings,
    ProcessingSettings,
    ServerSettings,
    Settings,
    StreamingSettings,
)


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_default_values(self):
        settings = AppSettings()
        assert settings.name == "video-pipeline-server"
        assert settings.version == "0.1.0"
        assert settings.environment == "dev"
        assert settings.debug is False
        assert settings.log_level == "INFO"

    def test_invalid_environment(self):
        with pytest.raises(ValueError):
            AppSettings(environment="invalid")  # type: ignore[arg-type]

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            AppSettings(log_level="TRACE")  # type: ignore[arg-type]


class TestServerSettings:
    """Tests for ServerSettings model."""

    def test_default_values(self):
        settings = ServerSettings()
        assert settings.port == 8000
        assert settings.api_prefix == "/v1"
        assert settings.docs_enabled is True

    def test_port_validation(self):
        assert ServerSettings(port=3000).port == 3000
        with pytest.raises(ValueError):
            ServerSettings(port=0)
        with pytest.raises(ValueError):
            ServerSettings(port=70000)


class TestDocumentDBSettings:
    """Tests for DocumentDBSettings model."""

    def test_collections(self):
        settings = DocumentDBSettings()
        assert settings.database == "video_pipeline"
        assert settings.collections.videos == "videos"
        assert settings.collections.phase_runs == "phase_runs"
        assert settings.collections.processing_jobs == "processing_jobs"
        assert settings.collections.video_logs == "video_logs"

    def test_memory_provider_allowed(self):
        assert DocumentDBSettings(provider="memory").provider == "memory"


class TestStreamingSettings:
    """Tests for StreamingSettings model."""

    def test_default_values(self):
        settings = StreamingSettings()
        assert settings.webhook_secret is None
        assert settings.webhook_tolerance_seconds == 300
        assert settings.delivery_base_url == "https://videodelivery.net"

    def test_upload_expiry_minimum(self):
        with pytest.raises(ValueError):
            StreamingSettings(upload_expiry_minutes=1)


class TestProcessingSettings:
    """Tests for ProcessingSettings model."""

    def test_default_values(self):
        settings = ProcessingSettings()
        assert settings.poll_schedule_seconds == [5, 15, 30, 60, 120]
        assert settings.sweep_batch_size == 5
        assert settings.sweep_batch_delay_seconds == 2.0
        assert settings.max_job_attempts == 3

    def test_batch_size_must_be_positive(self):
        with pytest.raises(ValueError):
            ProcessingSettings(sweep_batch_size=0)


class TestLLMSettings:
    """Tests for LLMSettings model."""

    def test_temperature_validation(self):
        assert LLMSettings(temperature=1.5).temperature == 1.5
        with pytest.raises(ValueError):
            LLMSettings(temperature=-0.1)
        with pytest.raises(ValueError):
            LLMSettings(temperature=2.1)


class TestRootSettings:
    """Tests for root Settings."""

    def test_default_sections(self):
        settings = Settings()
        assert settings.app.name == "video-pipeline-server"
        assert settings.streaming.provider == "cloudflare"
        assert settings.telemetry.langfuse.enabled is False


class TestSettingsLoader:
    """Tests for SettingsLoader."""

    def test_load_empty_config(self):
        with TemporaryDirectory() as tmpdir:
            loader = SettingsLoader(config_dir=Path(tmpdir), environment="dev")
            settings = loader.load()
            assert settings.app.name == "video-pipeline-server"

    def test_load_environment_override(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            with (config_dir / "appsettings.json").open("w") as f:
                json.dump({"processing": {"sweep_batch_size": 5, "max_job_attempts": 3}}, f)
            with (config_dir / "appsettings.prod.json").open("w") as f:
                json.dump({"processing": {"sweep_batch_size": 10}}, f)

            settings = SettingsLoader(config_dir=config_dir, environment="prod").load()

            assert settings.processing.sweep_batch_size == 10
            assert settings.processing.max_job_attempts == 3

    def test_env_vars_override_files(self, monkeypatch):
        monkeypatch.setenv("VIDEO_PIPELINE__STREAMING__WEBHOOK_SECRET", "12345")
        monkeypatch.setenv("VIDEO_PIPELINE__PROCESSING__SWEEP_BATCH_SIZE", "8")
        monkeypatch.setenv("VIDEO_PIPELINE__PROCESSING__POLL_SCHEDULE_SECONDS", "[1, 2]")
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir), environment="dev").load()

        # Credential-like keys stay strings
        assert settings.streaming.webhook_secret == "12345"
        assert settings.processing.sweep_batch_size == 8
        assert settings.processing.poll_schedule_seconds == [1, 2]

    def test_coerce_value(self):
        loader = SettingsLoader()
        assert loader._coerce_value("true") is True
        assert loader._coerce_value("42") == 42
        assert loader._coerce_value("2.5") == 2.5
        assert loader._coerce_value("plain") == "plain"

    def test_deep_merge(self):
        loader = SettingsLoader()
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"b": 10, "e": 4}, "f": 5}

        result = loader._deep_merge(base, override)

        assert result == {"a": {"b": 10, "c": 2, "e": 4}, "d": 3, "f": 5}


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_get_settings_cached(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is settings2

    def test_get_settings_reload(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir), reload=True)
            assert settings1 is not settings2
