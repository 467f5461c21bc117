from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransportConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    base_url: str = "http://127.0.0.1:8080"
    timeout_seconds: float = Field(default=10.0, gt=0, le=300)
    verify_tls: bool = True
    user_agent: str = "bridge-identity/0.1"

    @field_validator("base_url")
    @classmethod
    def _http_only(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")


class CookieConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    path: str = "runtime/cookies.json"
    partner_info_key: str = Field(default="bridge_partner_info", min_length=1)
    session_key: str = Field(default="bridge_session", min_length=1)


class PartnerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    code_param: str = Field(default="p", min_length=1)
    info_param: str = Field(default="pi", min_length=1)


class IdentityConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    clear_on_logout: bool = True


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    log_dir: str = "logs"
    events_path: str = "logs/identity_events.jsonl"
    level: str = "INFO"
    max_bytes: int = Field(default=1_000_000, ge=10_000)
    backup_count: int = Field(default=3, ge=0, le=50)

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = str(v or "").strip().upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return v


class BridgeConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    cookies: CookieConfig = Field(default_factory=CookieConfig)
    partner: PartnerConfig = Field(default_factory=PartnerConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
