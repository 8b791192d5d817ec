"""Application settings — env-var defaults with an optional YAML overlay.

Usage:
    from config.settings import Settings
    settings = Settings.from_yaml("config.yml")
    settings.validate()   # raises ConfigError if credentials or certs are missing

YAML layout
───────────
    addr:    {host: localhost, port: 1965}
    cert:    {certFile: cert.pem, keyFile: key.pem}
    twitter: {consumerKey, consumerSecret, accessToken, accessSecret,
              userID, screenName}
    ui:      {asciiLogoFile: logo.txt, delimiter: "-----"}
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from core.errors import ConfigError

DEFAULT_FOOTER_LINK = (
    "=> https://github.com/vegasq/gemini-twitter-mirror Fork me on GitHub"
)

#: YAML (section, key) → Settings attribute.
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("addr", "host"): "host",
    ("addr", "port"): "port",
    ("cert", "certFile"): "cert_file",
    ("cert", "keyFile"): "key_file",
    ("twitter", "consumerKey"): "consumer_key",
    ("twitter", "consumerSecret"): "consumer_secret",
    ("twitter", "accessToken"): "access_token",
    ("twitter", "accessSecret"): "access_secret",
    ("twitter", "userID"): "user_id",
    ("twitter", "screenName"): "screen_name",
    ("ui", "asciiLogoFile"): "logo_file",
    ("ui", "delimiter"): "delimiter",
}


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Centralised application configuration.

    All values are read from environment variables at instantiation time
    so that tests can override them by patching ``os.environ``. The instance
    is frozen: both the cache and the router consume it read-only.
    """

    # ── Listener ────────────────────────────────────────────────────────────
    host: str = field(default_factory=lambda: os.environ.get("GEMINI_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("GEMINI_PORT", "1965"))
    cert_file: str = field(default_factory=lambda: os.environ.get("GEMINI_CERT_FILE", "cert.pem"))
    key_file: str = field(default_factory=lambda: os.environ.get("GEMINI_KEY_FILE", "key.pem"))

    # ── Upstream account ────────────────────────────────────────────────────
    consumer_key: str = field(default_factory=lambda: os.environ.get("TWITTER_CONSUMER_KEY", ""))
    consumer_secret: str = field(default_factory=lambda: os.environ.get("TWITTER_CONSUMER_SECRET", ""))
    access_token: str = field(default_factory=lambda: os.environ.get("TWITTER_ACCESS_TOKEN", ""))
    access_secret: str = field(default_factory=lambda: os.environ.get("TWITTER_ACCESS_SECRET", ""))
    #: Numeric account ID; 0 means "use screen_name".
    user_id: int = field(default_factory=lambda: _env_int("TWITTER_USER_ID", "0"))
    screen_name: str = field(default_factory=lambda: os.environ.get("TWITTER_SCREEN_NAME", ""))

    # ── UI ──────────────────────────────────────────────────────────────────
    logo_file: str = field(default_factory=lambda: os.environ.get("UI_LOGO_FILE", ""))
    delimiter: str = field(default_factory=lambda: os.environ.get("UI_DELIMITER", "-----"))
    footer_link: str = DEFAULT_FOOTER_LINK
    timeline_size: int = 10

    # ── Refresh loop (seconds) ──────────────────────────────────────────────
    refresh_interval: float = field(default_factory=lambda: _env_float("REFRESH_INTERVAL", "900"))
    error_cooldown: float = field(default_factory=lambda: _env_float("ERROR_COOLDOWN", "300"))
    #: Pause before re-fetching after a short (partial) result.
    partial_retry_delay: float = field(default_factory=lambda: _env_float("PARTIAL_RETRY_DELAY", "30"))
    fetch_count: int = 100
    fetch_timeout: float = 20.0

    @classmethod
    def from_yaml(cls, path: str | os.PathLike[str]) -> "Settings":
        """Build settings from env defaults, then overlay values from *path*.

        Raises:
            ConfigError: If the file cannot be read or is not a YAML mapping.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot load config file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return cls().with_overrides(data)

    def with_overrides(self, data: dict[str, Any]) -> "Settings":
        """Return a copy with values taken from a nested YAML-style mapping."""
        updates: dict[str, Any] = {}
        for (section, key), attr in _YAML_FIELDS.items():
            block = data.get(section) or {}
            if not isinstance(block, dict):
                raise ConfigError(f"Config section {section!r} must be a mapping")
            if key in block and block[key] is not None:
                updates[attr] = block[key]

        for attr in ("port", "user_id"):
            if attr in updates:
                try:
                    updates[attr] = int(updates[attr])
                except (TypeError, ValueError) as exc:
                    raise ConfigError(f"{attr} must be an integer") from exc

        return replace(self, **updates)

    @property
    def account_ref(self) -> dict[str, Any]:
        """Identity parameters for the upstream timeline request."""
        ref: dict[str, Any] = {}
        if self.user_id:
            ref["user_id"] = self.user_id
        if self.screen_name:
            ref["screen_name"] = self.screen_name
        return ref

    def validate(self, check_files: bool = True) -> None:
        """Raise ``ConfigError`` if any required setting is missing."""
        missing = [
            name
            for name in ("consumer_key", "consumer_secret", "access_token", "access_secret")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(f"Missing upstream credentials: {', '.join(missing)}")
        if not self.account_ref:
            raise ConfigError("Either twitter.userID or twitter.screenName must be set.")
        if check_files:
            for name in ("cert_file", "key_file"):
                if not Path(getattr(self, name)).is_file():
                    raise ConfigError(f"{name} not found: {getattr(self, name)}")
