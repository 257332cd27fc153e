"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "video-pipeline-server"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/v1"
    docs_enabled: bool = True


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    videos: str = "videos"
    transcripts: str = "transcripts"
    chapters: str = "chapters"
    video_tags: str = "video_tags"
    phase_runs: str = "phase_runs"
    processing_jobs: str = "processing_jobs"
    video_logs: str = "video_logs"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb", "memory"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "video_pipeline"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )


class StreamingSettings(BaseModel):
    """Streaming provider settings (Cloudflare Stream)."""

    provider: Literal["cloudflare"] = "cloudflare"
    account_id: str = ""
    api_token: str = ""
    base_url: str = "https://api.cloudflare.com/client/v4"
    delivery_base_url: str = "https://videodelivery.net"
    webhook_secret: str | None = None
    webhook_tolerance_seconds: int = Field(default=300, ge=0)
    timeout_seconds: int = 30
    max_duration_seconds: int = 3600
    upload_expiry_minutes: int = Field(default=60, ge=2)


class TranscriptionSettings(BaseModel):
    """Transcription service settings."""

    provider: Literal["openai_whisper"] = "openai_whisper"
    api_key: str = ""
    model: str = "whisper-1"
    language: str | None = None
    timeout_seconds: int = 300


class LLMSettings(BaseModel):
    """LLM service settings."""

    provider: Literal["openai", "azure_openai", "anthropic"] = "openai"
    api_key: str = ""
    endpoint: str | None = None
    deployment: str | None = None
    model: str = "gpt-4o-mini"
    temperature: float = Field(default=0.3, ge=0, le=2)
    max_tokens: int = 2048
    timeout_seconds: int = 60


class ProcessingSettings(BaseModel):
    """Status sync and pipeline worker settings."""

    poll_schedule_seconds: list[float] = Field(
        default_factory=lambda: [5, 15, 30, 60, 120],
        description="Delays after upload at which the provider is polled",
    )
    sweep_batch_size: int = Field(default=5, ge=1)
    sweep_batch_delay_seconds: float = Field(default=2.0, ge=0)
    sweep_limit: int = Field(default=1000, ge=1)
    max_job_attempts: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=10.0, ge=0)
    visibility_timeout_seconds: int = Field(default=900, ge=1)
    worker_poll_interval_seconds: float = Field(default=2.0, gt=0)
    transcript_prompt_chars: int = Field(default=4000, ge=500)


class LangfuseSettings(BaseModel):
    """Langfuse LLM tracing settings."""

    enabled: bool = False
    public_key: str = ""
    secret_key: str = ""
    host: str = "https://cloud.langfuse.com"
    debug: bool = False
    sample_rate: float = Field(default=1.0, ge=0, le=1)
    flush_at: int = 15
    flush_interval: float = 0.5


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"
    langfuse: LangfuseSettings = Field(default_factory=LangfuseSettings)


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    streaming: StreamingSettings = Field(default_factory=StreamingSettings)
    transcription: TranscriptionSettings = Field(default_factory=TranscriptionSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDEO_PIPELINE__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
