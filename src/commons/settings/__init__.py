"""Settings management module."""

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    LangfuseSettings,
    LLMSettings,
    ProcessingSettings,
    ServerSettings,
    Settings,
    StreamingSettings,
    TelemetrySettings,
    TranscriptionSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # External services
    "StreamingSettings",
    "TranscriptionSettings",
    "LLMSettings",
    # Processing
    "ProcessingSettings",
    # Telemetry
    "TelemetrySettings",
    "LangfuseSettings",
]
