"""
Configuration for Flora
=======================
Runtime settings for the farm assistant backend and its generative model
backend, loaded from environment variables.
Sets up the logging configuration as well.
"""

import os
from contextlib import suppress
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer.") from None


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number.") from None


@dataclass
class AppConfig:
    """Runtime configuration loaded from environment variables."""

    environment: str = field(default_factory=lambda: os.getenv("FLORA_ENV", "development"))
    secret_key: str = field(default_factory=lambda: os.getenv("FLORA_SECRET_KEY", "FloraDevSecretKey"))
    storage_path: str = field(default_factory=lambda: os.getenv("FLORA_STORAGE_PATH", "data/flora.db"))

    DEBUG: bool = field(default_factory=lambda: _env_bool("FLORA_DEBUG", False))
    log_level: str = field(default_factory=lambda: os.getenv("FLORA_LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("FLORA_LOG_FILE", "logs/flora.log"))
    audit_log_path: str = field(default_factory=lambda: os.getenv("FLORA_AUDIT_LOG_PATH", "logs/audit.log"))

    # Upload / request size limits
    max_upload_mb: int = field(default_factory=lambda: _env_int("FLORA_MAX_UPLOAD_MB", 20))

    # Generative backend
    llm_provider: str = field(default_factory=lambda: os.getenv("LLM_PROVIDER", "gemini"))
    llm_api_key: str = field(default_factory=lambda: os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY", ""))
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gemini-2.5-flash"))
    llm_video_model: str = field(default_factory=lambda: os.getenv("LLM_VIDEO_MODEL", "gemini-2.5-pro"))
    # Empty means the SDK default host
    llm_api_endpoint: str = field(default_factory=lambda: os.getenv("LLM_API_ENDPOINT", ""))
    llm_timeout: int = field(default_factory=lambda: _env_int("LLM_TIMEOUT", 60))
    llm_temperature: float = field(default_factory=lambda: _env_float("LLM_TEMPERATURE", 0.4))
    response_language: str = field(default_factory=lambda: os.getenv("FLORA_RESPONSE_LANGUAGE", "Persian"))

    # Background chat-title generation pool
    title_worker_count: int = field(default_factory=lambda: _env_int("FLORA_TITLE_WORKERS", 2))
    seed_community: bool = field(default_factory=lambda: _env_bool("FLORA_SEED_COMMUNITY", True))

    # Default insecure secret key - used only for detection
    _DEFAULT_SECRET_KEY: str = field(default="FloraDevSecretKey", init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.environment == "production" and self.secret_key == self._DEFAULT_SECRET_KEY:
            raise RuntimeError(
                "SECURITY ERROR: Cannot use default secret key in production!\n"
                "Set FLORA_SECRET_KEY environment variable to a secure random value.\n"
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        if self.title_worker_count < 1:
            raise ValueError("FLORA_TITLE_WORKERS must be at least 1")
        if self.max_upload_mb < 1:
            raise ValueError("FLORA_MAX_UPLOAD_MB must be at least 1")

    def as_flask_config(self) -> dict[str, Any]:
        """Render configuration values for Flask application."""
        return {
            "ENV": self.environment,
            "SECRET_KEY": self.secret_key,
            "STORAGE_PATH": self.storage_path,
            "AUDIT_LOG_PATH": self.audit_log_path,
            "DEBUG": self.DEBUG,
            "MAX_CONTENT_LENGTH": self.max_upload_mb * 1024 * 1024,
        }


def validate_config(config: AppConfig) -> list[str]:
    """
    Validate configuration and return list of warnings.

    Args:
        config: AppConfig instance

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings = []

    provider = config.llm_provider.strip().lower()
    if provider not in {"gemini", "none", ""}:
        warnings.append(f"Unknown LLM_PROVIDER '{config.llm_provider}'. Assistant features will be disabled.")
    elif provider == "gemini" and not config.llm_api_key:
        warnings.append("LLM_API_KEY is not set. Assistant features will be disabled.")

    if config.llm_timeout < 10:
        warnings.append(f"LLM timeout ({config.llm_timeout}s) is very short. Video analysis may time out.")

    if not 0.0 <= config.llm_temperature <= 2.0:
        warnings.append(f"LLM temperature ({config.llm_temperature}) is outside 0.0-2.0.")

    if config.storage_path != ":memory:":
        parent = Path(config.storage_path).parent
        if parent != Path(".") and not parent.exists():
            warnings.append(f"Storage directory does not exist and will be created: {parent}")

    return warnings


def setup_logging(debug: bool = False, log_file: str | None = "logs/flora.log") -> None:
    """Setup logging configuration."""
    import logging
    import sys
    from logging.handlers import RotatingFileHandler

    log_level = logging.DEBUG if debug else logging.INFO

    root = logging.getLogger()
    root.setLevel(log_level)

    # Avoid adding duplicates when create_app is called multiple times
    has_console = any(getattr(h, "name", "") == "flora_console" for h in root.handlers)
    has_file = any(getattr(h, "name", "") == "flora_file" for h in root.handlers)
    added_handler = False

    # Console handler (UTF-8, Persian text is logged)
    stream = sys.stdout
    with suppress(AttributeError, ValueError):
        stream.reconfigure(encoding="utf-8", errors="replace")
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not has_console:
        console_handler = logging.StreamHandler(stream=stream)
        console_handler.name = "flora_console"
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)
        added_handler = True

    if log_file and not has_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
            delay=True,
        )
        file_handler.name = "flora_file"
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        added_handler = True

    for handler in root.handlers:
        if getattr(handler, "name", "") in {"flora_console", "flora_file"}:
            handler.setLevel(log_level)

    if added_handler:
        root.info("Logging initialized at level: %s", logging.getLevelName(log_level))

    if _env_bool("FLORA_SILENCE_WERKZEUG", True):
        logging.getLogger("werkzeug").setLevel(logging.WARNING)
    # Streamed request bodies are base64 media; keep urllib3 quiet
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def apply_overrides(config: AppConfig, overrides: dict[str, Any]) -> AppConfig:
    """
    Return a copy of *config* with *overrides* applied.

    Keys match field names case-insensitively (``"DEBUG"`` and ``"debug"``
    both set ``AppConfig.DEBUG``). The copy is rebuilt through ``__init__``
    so ``__post_init__`` checks run on the overridden values.

    Raises:
        ValueError: a key names no configuration field
    """
    by_name = {f.name.lower(): f.name for f in fields(AppConfig) if f.init}
    changes: dict[str, Any] = {}
    for key, value in overrides.items():
        name = key if key in by_name.values() else by_name.get(key.lower())
        if name is None:
            raise ValueError(f"Unknown configuration key: {key}")
        changes[name] = value
    return replace(config, **changes)


def load_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """Helper for callers to load and validate configuration."""
    import logging

    config = AppConfig()
    if overrides:
        config = apply_overrides(config, overrides)
    logger = logging.getLogger("config_loader")
    for warning in validate_config(config):
        logger.warning(warning)
    return config
