"""
AlumniHub Configuration — Load and validate alumnihub.yaml at startup.

Usage:
    from alumnihub.engine.config import load_config, get_config

Secrets may be supplied through the environment instead of the file:
    ALUMNIHUB_STORAGE_KEY  → storage.api_key
    ALUMNIHUB_SECRET_KEY   → security.secret_key
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from alumnihub.engine.errors import PortalConfigError

CONFIG_FILENAME = "alumnihub.yaml"
MIB = 1024 * 1024


# ---------------------------------------------------------------------------
# Pydantic models for alumnihub.yaml
# ---------------------------------------------------------------------------

class OrganizationConfig(BaseModel):
    name: str = "JANSONS INSTITUTE OF TECHNOLOGY (AUTONOMOUS)"
    short_name: str = "JIT"
    address: str = "Karumathampatty, Somanur, Coimbatore District - 641659"


class UploadConfig(BaseModel):
    max_size_mb: int = Field(default=10, ge=1)
    allowed_types: List[str] = Field(
        default_factory=lambda: ["application/pdf", "image/jpeg", "image/jpg"]
    )
    max_retries: int = Field(default=3, ge=1)
    retry_delay_seconds: float = Field(default=1.0, ge=0)

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * MIB


class StorageConfig(BaseModel):
    url: Optional[str] = None
    bucket: str = "jit-documents"
    table: str = "documents"
    api_key: Optional[str] = None
    timeout: int = 30
    simulated_latency_min: float = Field(default=1.0, ge=0)
    simulated_latency_max: float = Field(default=3.0, ge=0)

    @model_validator(mode="after")
    def check_latency_range(self) -> "StorageConfig":
        if self.simulated_latency_max < self.simulated_latency_min:
            raise ValueError("simulated_latency_max must be >= simulated_latency_min")
        return self

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)


class SecurityConfig(BaseModel):
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    secret_key: Optional[str] = None
    seal_metadata: bool = False


class LogRetentionConfig(BaseModel):
    execution_days: int = 90
    performance_days: int = 30
    security_days: int = 365


class LogAsyncQueueConfig(BaseModel):
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000


class LoggingConfig(BaseModel):
    level: str = "INFO"
    directory: str = ".alumnihub/logs"
    retention: LogRetentionConfig = LogRetentionConfig()
    async_queue: LogAsyncQueueConfig = LogAsyncQueueConfig()

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level '{v}'")
        return v


class PortalConfig(BaseModel):
    """Root model for alumnihub.yaml."""
    name: str = "JIT Alumni Connect"
    version: str = "1.0.0"
    environment: str = "dev"

    organization: OrganizationConfig = OrganizationConfig()
    uploads: UploadConfig = UploadConfig()
    storage: StorageConfig = StorageConfig()
    security: SecurityConfig = SecurityConfig()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v not in ("dev", "staging", "prod"):
            raise ValueError(f"environment must be dev/staging/prod, got '{v}'")
        return v


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[PortalConfig] = None


def _find_project_root() -> Path:
    """Find the project root by looking for alumnihub.yaml."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        if (parent / CONFIG_FILENAME).exists():
            return parent
    return current


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    storage_key = os.environ.get("ALUMNIHUB_STORAGE_KEY")
    if storage_key:
        data.setdefault("storage", {})["api_key"] = storage_key
    secret_key = os.environ.get("ALUMNIHUB_SECRET_KEY")
    if secret_key:
        data.setdefault("security", {})["secret_key"] = secret_key
    return data


def load_config(config_path: Optional[str] = None) -> PortalConfig:
    """
    Load and validate alumnihub.yaml.

    Args:
        config_path: Explicit path. If None, walks up from CWD.

    Returns:
        Validated PortalConfig. Defaults are used when no file exists.

    Raises:
        PortalConfigError: if the file is not valid YAML or fails validation.
    """
    global _config

    if config_path is None:
        config_path = str(_find_project_root() / CONFIG_FILENAME)

    path = Path(config_path)
    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PortalConfigError(f"Could not parse {path}: {e}", object_ref=str(path))
        if not isinstance(raw, dict):
            raise PortalConfigError(f"{path} must contain a mapping", object_ref=str(path))

    # "portal:" block holds name/version/environment; everything else is top-level
    portal_data = raw.pop("portal", {}) or {}
    data = {**portal_data, **raw}
    data = _apply_env_overrides(data)

    try:
        _config = PortalConfig(**data)
    except ValidationError as e:
        raise PortalConfigError(
            f"Invalid configuration in {path}",
            object_ref=str(path),
            validation_errors=e.errors(),
        ) from e
    return _config


def get_config() -> PortalConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the loaded config (tests, reloads)."""
    global _config
    _config = None
