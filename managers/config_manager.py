"""Pipeline configuration with precedence: explicit > env > config file > hardcoded"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger("MCP_Server")

CONFIG_DIR = Path.home() / ".config" / "gemini-image-mcp"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENV_VARS = {
    "api_key": "GEMINI_API_KEY",
    "model": "GEMINI_IMAGE_MODEL",
    "compression_enabled": "GEMINI_IMAGE_COMPRESSION",
    "compression_quality": "GEMINI_IMAGE_COMPRESSION_QUALITY",
    "cache_ttl_seconds": "GEMINI_IMAGE_CACHE_TTL",
    "http_timeout_seconds": "GEMINI_IMAGE_HTTP_TIMEOUT",
    "gcp_project": "GCP_PROJECT_ID",
}


@dataclass(frozen=True)
class PipelineConfig:
    """Settings injected into the pipeline at construction"""
    model: str = "gemini-2.5-flash-image"
    api_key: Optional[str] = None
    compression_enabled: bool = True
    compression_quality: int = 75
    cache_ttl_seconds: float = 3600.0
    http_timeout_seconds: float = 30.0
    allowed_schemes: Tuple[str, ...] = ("http", "https")
    gcp_project: Optional[str] = None

    def __post_init__(self):
        if not 1 <= self.compression_quality <= 100:
            raise ValueError(f"compression_quality must be 1-100, got {self.compression_quality}")
        if self.cache_ttl_seconds <= 0:
            raise ValueError(f"cache_ttl_seconds must be positive, got {self.cache_ttl_seconds}")
        if self.http_timeout_seconds <= 0:
            raise ValueError(f"http_timeout_seconds must be positive, got {self.http_timeout_seconds}")

    def redacted(self) -> Dict[str, Any]:
        """Config as a plain dict with the API key masked"""
        data = asdict(self)
        data["api_key"] = "***" if self.api_key else None
        data["allowed_schemes"] = list(self.allowed_schemes)
        return data


def _coerce(name: str, value: Any) -> Any:
    if name == "compression_enabled":
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}
    if name == "compression_quality":
        return int(value)
    if name in ("cache_ttl_seconds", "http_timeout_seconds"):
        return float(value)
    if name == "allowed_schemes":
        if isinstance(value, str):
            value = value.split(",")
        return tuple(str(s).strip().lower() for s in value if str(s).strip())
    return value


def load_config_file(config_file: Path = CONFIG_FILE) -> Dict[str, Any]:
    """Read the "pipeline" section of the JSON config file, if any"""
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Failed to load config file {config_file}: {e}")
        return {}
    section = config.get("pipeline", {}) if isinstance(config, dict) else {}
    return section if isinstance(section, dict) else {}


def load_env_config(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    environ = os.environ if environ is None else environ
    return {name: environ[var] for name, var in ENV_VARS.items() if environ.get(var)}


def load_pipeline_config(
    overrides: Optional[Dict[str, Any]] = None,
    config_file: Path = CONFIG_FILE,
    environ: Optional[Mapping[str, str]] = None,
) -> PipelineConfig:
    """Build the effective configuration from every source.

    Args:
        overrides: Explicit values, highest priority
        config_file: JSON file with a "pipeline" object
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ValueError: If a value cannot be coerced or is out of range
    """
    known = {f.name for f in fields(PipelineConfig)}
    merged: Dict[str, Any] = {}
    for source in (load_config_file(config_file), load_env_config(environ), overrides or {}):
        for name, value in source.items():
            if name not in known:
                logger.warning(f"Ignoring unknown config key '{name}'")
                continue
            if value is None:
                continue
            try:
                merged[name] = _coerce(name, value)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid value for '{name}': {value!r}") from e

    return PipelineConfig(**merged)
