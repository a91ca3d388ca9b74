"""Configuration and constants."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables once
load_dotenv()


DEFAULT_SOURCE_LANGUAGE = "en"
DEFAULT_TARGET_LANGUAGE = "nl"
DEFAULT_MAX_BATCH_SIZE = 128


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class TranslatorConfig:
    """Process-wide settings, fixed at start-up."""

    # Languages
    source_language: str = DEFAULT_SOURCE_LANGUAGE
    target_language: str = DEFAULT_TARGET_LANGUAGE

    # Batching
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE

    # Storage
    target_bucket: Optional[str] = None
    temp_dir: str = field(default_factory=tempfile.gettempdir)

    # API settings
    api_key: Optional[str] = None
    base_url: str = "https://api.deepseek.com"
    model_name: str = "deepseek-chat"
    request_timeout: float = 60.0
    max_retries: int = 3

    # Output
    show_progress: bool = False

    def __post_init__(self):
        """Load API key from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.environ.get("DEEPSEEK_API_KEY")

    @classmethod
    def from_env(cls) -> "TranslatorConfig":
        """Create config from environment variables (and .env)."""
        return cls(
            source_language=os.environ.get("SOURCE_LANGUAGE", DEFAULT_SOURCE_LANGUAGE),
            target_language=os.environ.get("TARGET_LANGUAGE", DEFAULT_TARGET_LANGUAGE),
            max_batch_size=_env_int("MAX_BATCH_SIZE", DEFAULT_MAX_BATCH_SIZE),
            target_bucket=os.environ.get("TARGET_BUCKET") or None,
            temp_dir=os.environ.get("TRANSLATOR_TEMP_DIR") or tempfile.gettempdir(),
            base_url=os.environ.get("TRANSLATOR_BASE_URL", "https://api.deepseek.com"),
            model_name=os.environ.get("TRANSLATOR_MODEL", "deepseek-chat"),
        )

    @classmethod
    def from_args(cls, args) -> "TranslatorConfig":
        """Create config from argparse namespace, falling back to environment."""
        config = cls.from_env()

        api_key = getattr(args, "api_key", None)
        if api_key:
            config.api_key = api_key

        overrides = {
            "source_language": getattr(args, "source_language", None),
            "target_language": getattr(args, "target_language", None),
            "max_batch_size": getattr(args, "max_batch_size", None),
            "target_bucket": getattr(args, "target_bucket", None),
            "base_url": getattr(args, "base_url", None),
            "model_name": getattr(args, "model_name", None),
        }
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)

        config.show_progress = bool(getattr(args, "progress", False))
        return config

    def validate(self, require_target_bucket: bool = True) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        if not self.api_key:
            return "API key is required. Set DEEPSEEK_API_KEY or use --api-key"

        if not self.source_language or not self.target_language:
            return "Source and target language must both be set"

        if self.source_language == self.target_language:
            return f"Source and target language are both '{self.source_language}'"

        if self.max_batch_size < 1:
            return f"Batch size must be at least 1, got {self.max_batch_size}"

        if self.max_retries < 1:
            return f"Max retries must be at least 1, got {self.max_retries}"

        if require_target_bucket and not self.target_bucket:
            return "Target bucket is required. Set TARGET_BUCKET or use --target-bucket"

        return None
