"""Configuration loading and validation for the chat client and proxy."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
import logging
import os
from pathlib import Path
import re
import tomllib
from typing import Any
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigValidationError

LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "groqchat"
CONFIG_PATH = CONFIG_DIR / "config.toml"

HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}(?:[0-9a-fA-F]{2})?$")
VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

API_KEY_ENV = "GROQ_API_KEY"
MODEL_ENV = "GROQ_MODEL"
PORT_ENV = "PORT"


def _require_non_empty_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("Expected a string value.")
    normalized = value.strip()
    if not normalized:
        raise ValueError("String value must not be empty.")
    return normalized


class AppConfig(BaseModel):
    """Application metadata."""

    model_config = ConfigDict(populate_by_name=True)
    title: str = "Groq Chat"

    @field_validator("title", mode="before")
    @classmethod
    def _validate_title(cls, value: Any) -> str:
        return _require_non_empty_string(value)


class ClientConfig(BaseModel):
    """Chat client settings: where the proxy lives and how replies are paced."""

    api_url: str = "http://localhost:3000/api/chat"
    timeout: float = Field(default=60.0, gt=0, le=3600)
    thinking_delay_ms: int = Field(default=600, ge=0, le=60_000)
    default_image_prompt: str = "What's in this image?"

    @field_validator("api_url", "default_image_prompt", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _require_non_empty_string(value)


class ProxyConfig(BaseModel):
    """Proxy server settings. The upstream API key is never read from the file."""

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    model: str = "llama-3.3-70b-versatile"
    upstream_url: str = "https://api.groq.com/openai/v1/chat/completions"
    timeout: float = Field(default=60.0, gt=0, le=3600)
    max_body_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("host", "model", "upstream_url", mode="before")
    @classmethod
    def _validate_required_string(cls, value: Any) -> str:
        return _require_non_empty_string(value)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _validate_origins(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("cors_origins must be a list of origins.")
        origins: list[str] = []
        for item in value:
            if not isinstance(item, str):
                raise ValueError("cors_origins entries must be strings.")
            candidate = item.strip()
            if candidate and candidate not in origins:
                origins.append(candidate)
        return origins


class UIConfig(BaseModel):
    """Visual settings for Textual rendering."""

    user_message_color: str = "#7aa2f7"
    bot_message_color: str = "#c0caf5"
    error_color: str = "#ae2727"
    greeting: str = "Hello there! How can I help you today?"
    suggestions: list[str] = Field(
        default_factory=lambda: [
            "Explain how transformers work in simple terms",
            "Write a haiku about the terminal",
            "Give me three ideas for a weekend project",
        ]
    )
    edit_min_rows: int = Field(default=2, ge=1, le=50)
    edit_max_rows: int = Field(default=8, ge=1, le=50)

    @field_validator(
        "user_message_color", "bot_message_color", "error_color", mode="before"
    )
    @classmethod
    def _validate_hex_color(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Expected a string value.")
        normalized = value.strip()
        if not HEX_COLOR_PATTERN.match(normalized):
            raise ValueError("Color must use #RGB, #RRGGBB or #RRGGBBAA format.")
        return normalized

    @field_validator("suggestions", mode="before")
    @classmethod
    def _validate_suggestions(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("suggestions must be a list of prompts.")
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @model_validator(mode="after")
    def _order_row_bounds(self) -> UIConfig:
        if self.edit_min_rows > self.edit_max_rows:
            raise ValueError("edit_min_rows must not exceed edit_max_rows.")
        return self


class KeybindsConfig(BaseModel):
    """Keyboard action mapping."""

    save_edit: str = "ctrl+enter"
    cancel_edit: str = "escape"
    attach_image: str = "ctrl+o"
    quit: str = "ctrl+q"

    @field_validator("*", mode="before")
    @classmethod
    def _validate_keybind(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Keybind must be a string.")
        normalized = value.strip()
        if not normalized:
            raise ValueError("Keybind must not be empty.")
        return normalized


class AttachmentsConfig(BaseModel):
    """Limits applied when staging image attachments."""

    max_image_bytes: int = Field(default=10 * 1024 * 1024, ge=1, le=100 * 1024 * 1024)


class SecurityConfig(BaseModel):
    """Security policy for which hosts the client may talk to."""

    allow_remote_hosts: bool = False
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "::1"]

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _validate_allowed_hosts(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("allowed_hosts must be a list.")
        normalized_hosts = [
            item.strip().lower()
            for item in value
            if isinstance(item, str) and item.strip()
        ]
        if not normalized_hosts:
            raise ValueError("allowed_hosts must contain at least one host.")
        return normalized_hosts


class LoggingConfig(BaseModel):
    """Logging behavior and output destinations."""

    level: str = "INFO"
    structured: bool = True
    log_to_file: bool = False
    log_file_path: str = "~/.local/state/groqchat/app.log"

    @field_validator("level", mode="before")
    @classmethod
    def _validate_level(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("Logging level must be a string.")
        normalized = value.strip().upper()
        if normalized not in VALID_LOG_LEVELS:
            raise ValueError(f"Unsupported log level {normalized!r}.")
        return normalized

    @field_validator("log_file_path", mode="before")
    @classmethod
    def _validate_log_file_path(cls, value: Any) -> str:
        return _require_non_empty_string(value)


class Config(BaseModel):
    """Root configuration model for all sections."""

    model_config = ConfigDict(populate_by_name=True)
    app: AppConfig = AppConfig()
    client: ClientConfig = ClientConfig()
    proxy: ProxyConfig = ProxyConfig()
    ui: UIConfig = UIConfig()
    keybinds: KeybindsConfig = KeybindsConfig()
    attachments: AttachmentsConfig = AttachmentsConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def _validate_security_policy(self) -> Config:
        parsed = urlparse(self.client.api_url)
        scheme = parsed.scheme.lower()
        hostname = (parsed.hostname or "").strip().lower()

        if scheme not in {"http", "https"}:
            raise ValueError("client.api_url must use http or https scheme.")
        if not hostname:
            raise ValueError("client.api_url must include a hostname.")
        if not self.security.allow_remote_hosts and hostname not in set(
            self.security.allowed_hosts
        ):
            raise ValueError(
                "client.api_url is not in security.allowed_hosts while allow_remote_hosts is false."
            )
        return self


DEFAULT_CONFIG: dict[str, dict[str, Any]] = Config().model_dump(by_alias=True)


@dataclass(frozen=True)
class ProxySettings:
    """Resolved proxy settings, including the server-held credential."""

    host: str
    port: int
    model: str
    upstream_url: str
    timeout: float
    max_body_bytes: int
    cors_origins: tuple[str, ...]
    api_key: str | None

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        environ: dict[str, str] | None = None,
    ) -> ProxySettings:
        """Build settings from the ``[proxy]`` section plus environment overrides."""
        env = os.environ if environ is None else environ
        proxy = config["proxy"]

        port = int(proxy["port"])
        raw_port = (env.get(PORT_ENV) or "").strip()
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError:
                LOGGER.warning(
                    "config.port.invalid",
                    extra={"event": "config.port.invalid", "value": raw_port},
                )

        model = (env.get(MODEL_ENV) or "").strip() or str(proxy["model"])
        api_key = (env.get(API_KEY_ENV) or "").strip() or None

        return cls(
            host=str(proxy["host"]),
            port=port,
            model=model,
            upstream_url=str(proxy["upstream_url"]),
            timeout=float(proxy["timeout"]),
            max_body_bytes=int(proxy["max_body_bytes"]),
            cors_origins=tuple(proxy["cors_origins"]),
            api_key=api_key,
        )


def ensure_config_dir(config_dir: Path | None = None) -> Path:
    """Ensure that the config directory exists and return its path."""
    directory = config_dir or CONFIG_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        LOGGER.warning("Unable to create config directory %s: %s", directory, exc)
    return directory


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override values onto base values."""
    merged: dict[str, Any] = deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _enforce_private_permissions(path: Path) -> None:
    """Best-effort enforcement of private file permissions on POSIX systems."""
    if os.name != "posix" or not path.exists():
        return
    try:
        path.chmod(0o600)
    except OSError as exc:
        LOGGER.warning("Unable to enforce 0600 permissions for %s: %s", path, exc)


def _safe_default_config() -> dict[str, dict[str, Any]]:
    """Return a deep copy of validated default config data."""
    return deepcopy(DEFAULT_CONFIG)


def _validate_config(raw: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Validate merged config and fall back to safe defaults when possible."""
    try:
        config = Config.model_validate(raw)
        return config.model_dump(by_alias=True)
    except ValidationError as exc:
        LOGGER.warning("Configuration validation failed, using safe defaults: %s", exc)
        return _safe_default_config()
    except Exception as exc:  # noqa: BLE001 - unexpected model construction failure.
        raise ConfigValidationError(f"Unable to validate configuration: {exc}") from exc


def load_config(config_path: Path | None = None) -> dict[str, dict[str, Any]]:
    """
    Load configuration from TOML, merge with defaults, and validate.

    The optional ``config_path`` argument is intended for tests and tooling.
    """
    target_path = config_path or CONFIG_PATH
    ensure_config_dir(target_path.parent)

    raw_data: dict[str, Any] = {}
    if target_path.exists():
        _enforce_private_permissions(target_path)
        try:
            raw_data = tomllib.loads(target_path.read_text(encoding="utf-8"))
        except (
            Exception
        ) as exc:  # noqa: BLE001 - we must not crash on invalid user config.
            LOGGER.warning("Failed to parse config at %s: %s", target_path, exc)
            raw_data = {}

    merged = (
        _deep_merge(DEFAULT_CONFIG, raw_data)
        if isinstance(raw_data, dict)
        else _safe_default_config()
    )
    return _validate_config(merged)
