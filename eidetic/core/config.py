# eidetic/core/config.py
"""
Centralized configuration loading for eidetic.

Configuration is an explicit value: load it once at startup and pass the
EideticConfig instance to every component that needs it. Nothing in the core
reads configuration implicitly.

Usage:
    from eidetic.core.config import load_config

    config = load_config("eidetic.yaml")     # YAML, then EIDETIC_* env overrides
    config = EideticConfig()                 # all defaults

Example YAML:
    chunk_lines: 60
    overlap_lines: 5
    max_chunk_chars: 2500
    similarity_threshold: 0.92
    repo_map_max_tokens: 4000
    embedding_provider: ollama
    qdrant_url: http://localhost:6333
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from eidetic.core.exceptions import EideticError
from eidetic.logging.logger import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "EIDETIC_"

DEFAULT_EMBEDDING_MODELS = {
    "openai": "text-embedding-3-small",
    "ollama": "nomic-embed-text",
    "local": "text-embedding-3-small",
}


# =============================================================================
# Errors
# =============================================================================


class ConfigError(EideticError):
    """Base error for configuration issues."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        if path:
            message = f"{message} (file: {path})"
        super().__init__(message)


class ConfigNotFoundError(ConfigError):
    """Raised when a config file doesn't exist."""

    pass


class ConfigParseError(ConfigError):
    """Raised when YAML parsing fails."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when config doesn't match schema."""

    pass


# =============================================================================
# Schema
# =============================================================================


class EideticConfig(BaseModel):
    """
    Every tunable knob of eidetic, with defaults.

    overlap_lines is clamped below chunk_lines rather than rejected, so any
    chunk_lines value yields a working splitter.
    """

    model_config = ConfigDict(extra="forbid")

    # Chunking
    chunk_lines: int = Field(default=60, ge=1, description="Lines per window")
    overlap_lines: int = Field(default=5, ge=0, description="Lines shared by adjacent windows")
    max_chunk_chars: int = Field(default=2500, ge=1, description="Hard character cap per chunk")

    # Reconciliation / rendering
    similarity_threshold: float = Field(
        default=0.92, ge=0.0, le=1.0, description="Cosine similarity for near-duplicate facts"
    )
    repo_map_max_tokens: int = Field(default=4000, ge=1, description="Repo map token budget")

    # Pipeline
    embedding_batch_size: int = Field(default=100, ge=1, le=2048)
    indexing_concurrency: int = Field(default=8, ge=1, le=32)
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".eidetic")
    custom_extensions: List[str] = Field(default_factory=list)
    custom_ignore_patterns: List[str] = Field(default_factory=list)

    # Providers
    embedding_provider: Literal["openai", "ollama", "local"] = "openai"
    embedding_model: Optional[str] = None
    openai_api_key: str = ""
    openai_base_url: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434/v1"
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: Optional[str] = None

    @model_validator(mode="after")
    def _clamp_and_fill(self) -> "EideticConfig":
        clamped = min(self.overlap_lines, self.chunk_lines - 1)
        if clamped != self.overlap_lines:
            logger.debug(
                f"overlap_lines={self.overlap_lines} clamped to {clamped} "
                f"(chunk_lines={self.chunk_lines})"
            )
            self.overlap_lines = clamped
        if self.embedding_model is None:
            self.embedding_model = DEFAULT_EMBEDDING_MODELS[self.embedding_provider]
        return self

    @property
    def embedding_base_url(self) -> str:
        if self.embedding_provider == "ollama":
            return self.ollama_base_url
        return self.openai_base_url or "https://api.openai.com/v1"

    @property
    def embedding_id(self) -> str:
        return f"{self.embedding_provider}:{self.embedding_model}"


# =============================================================================
# Loading
# =============================================================================


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML file and return it as a dictionary.

    Raises:
        ConfigNotFoundError: If file doesn't exist
        ConfigParseError: If YAML is invalid or the root isn't a mapping
    """
    p = Path(path)

    if not p.exists():
        raise ConfigNotFoundError("Config file not found", path=p)

    if p.is_dir():
        raise ConfigError("Config path is a directory, not a file", path=p)

    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML syntax: {e}", path=p) from e
    except OSError as e:
        raise ConfigParseError(f"Failed to read config: {e}", path=p) from e

    if not isinstance(data, dict):
        raise ConfigParseError("Config root must be a mapping (dict)", path=p)

    logger.debug(f"Loaded config from {p}")
    return data


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    """Collect EIDETIC_<FIELD> variables; list fields accept JSON arrays."""
    overrides: Dict[str, Any] = {}
    for name, field_info in EideticConfig.model_fields.items():
        raw = env.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None or raw == "":
            continue
        if field_info.annotation == List[str]:
            try:
                overrides[name] = json.loads(raw)
            except json.JSONDecodeError as e:
                raise ConfigParseError(
                    f"{ENV_PREFIX}{name.upper()} must be a JSON array: {e}"
                ) from e
        else:
            overrides[name] = raw
    return overrides


def load_config(
    path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> EideticConfig:
    """
    Build the configuration value.

    Args:
        path: Optional YAML file. Missing path means defaults only.
        env: Environment mapping for EIDETIC_* overrides (defaults to os.environ).

    Returns:
        Validated EideticConfig

    Raises:
        ConfigNotFoundError: If path is given but doesn't exist
        ConfigParseError: If the YAML or an env value can't be parsed
        ConfigValidationError: If values fail validation
    """
    data: Dict[str, Any] = load_yaml(path) if path is not None else {}
    data.update(_env_overrides(os.environ if env is None else env))

    try:
        config = EideticConfig.model_validate(data)
    except ValidationError as e:
        issues = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigValidationError(
            f"Invalid configuration: {issues}", path=Path(path) if path else None
        ) from e

    if config.embedding_provider == "openai" and not config.openai_api_key:
        logger.warning(
            "openai_api_key is empty while embedding_provider is 'openai'; "
            "embedding calls will fail until a key is set"
        )

    return config


__all__ = [
    "EideticConfig",
    "load_yaml",
    "load_config",
    "ConfigError",
    "ConfigNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
    "ENV_PREFIX",
]
