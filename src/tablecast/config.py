"""tablecast configuration loader.

Priority (high → low):
  1. CLI flags              (handled at call site, not in this module)
  2. Environment variables  (TABLECAST_EXTRACTION_MODEL, TABLECAST_CACHE_PATH)
  3. Per-project tablecast.yaml  (current directory)
  4. Global ~/.tablecast/config.yaml  (defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from tablecast.analysis.analyzer import (
    CATEGORICAL_MAX_UNIQUE,
    HOUSEHOLD_INDICATORS,
    TYPE_THRESHOLD,
    UNIQUE_SAMPLE_SIZE,
)
from tablecast.cache.store import DEFAULT_PREFIX, DEFAULT_TTL_HOURS
from tablecast.pipeline.orchestrator import STRATEGIES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".tablecast"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "tablecast.yaml"
_DEFAULT_CACHE_PATH: Path = _GLOBAL_CONFIG_DIR / "cache.db"

# Matches api_key, api-key, api_secret, *_token, token, *_secret, secret,
# password, passwd, credential(s). Does not match max_tokens.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(["extraction", "cache", "analysis", "pipeline"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ExtractionCfg:
    """Extraction model configuration (tablecast.yaml: extraction:)."""

    model: str = "openai/gpt-4o-mini"
    max_tokens: int = 8_192
    temperature: float = 0.0
    num_retries: int = 3
    timeout: float = 120.0
    max_document_chars: int = 60_000


@dataclass
class CacheCfg:
    """Dataset cache configuration (tablecast.yaml: cache:).

    Attributes:
        path: SQLite database file holding cached datasets.
        ttl_hours: Entry lifetime; must be positive.
        prefix: Key prefix for cache entries.
        max_bytes: Optional storage quota; writes beyond it fail softly.
        enabled: False disables lookup and storage entirely.
    """

    path: str = str(_DEFAULT_CACHE_PATH)
    ttl_hours: float = DEFAULT_TTL_HOURS
    prefix: str = DEFAULT_PREFIX
    max_bytes: int | None = None
    enabled: bool = True


@dataclass
class AnalysisCfg:
    """Dataset analysis configuration (tablecast.yaml: analysis:)."""

    type_threshold: float = TYPE_THRESHOLD
    categorical_max_unique: int = CATEGORICAL_MAX_UNIQUE
    sample_size: int = UNIQUE_SAMPLE_SIZE
    schema_indicators: list[str] = field(default_factory=lambda: list(HOUSEHOLD_INDICATORS))


@dataclass
class PipelineCfg:
    """Orchestration configuration (tablecast.yaml: pipeline:)."""

    strategy: str = "auto"  # auto | canonical | generic


@dataclass
class TablecastConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    extraction: ExtractionCfg = field(default_factory=ExtractionCfg)
    cache: CacheCfg = field(default_factory=CacheCfg)
    analysis: AnalysisCfg = field(default_factory=AnalysisCfg)
    pipeline: PipelineCfg = field(default_factory=PipelineCfg)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}', ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: TablecastConfig) -> None:
    if cfg.pipeline.strategy not in STRATEGIES:
        raise ConfigError(
            f"pipeline.strategy must be one of {', '.join(STRATEGIES)}; "
            f"got '{cfg.pipeline.strategy}'"
        )
    if cfg.cache.ttl_hours <= 0:
        raise ConfigError(f"cache.ttl_hours must be positive; got {cfg.cache.ttl_hours}")
    if not 0 < cfg.analysis.type_threshold <= 1:
        raise ConfigError(
            f"analysis.type_threshold must be in (0, 1]; got {cfg.analysis.type_threshold}"
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"'{path}' must contain a mapping at the top level")
    return data


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> TablecastConfig:
    """Build a *TablecastConfig* from a merged raw YAML dict."""
    cfg = TablecastConfig()

    try:
        if "extraction" in data:
            e = data["extraction"] or {}
            d = cfg.extraction
            cfg.extraction = ExtractionCfg(
                model=str(e.get("model", d.model)),
                max_tokens=int(e.get("max_tokens", d.max_tokens)),
                temperature=float(e.get("temperature", d.temperature)),
                num_retries=int(e.get("num_retries", d.num_retries)),
                timeout=float(e.get("timeout", d.timeout)),
                max_document_chars=int(e.get("max_document_chars", d.max_document_chars)),
            )

        if "cache" in data:
            c = data["cache"] or {}
            d = cfg.cache
            max_bytes = c.get("max_bytes", d.max_bytes)
            cfg.cache = CacheCfg(
                path=str(c.get("path", d.path)),
                ttl_hours=float(c.get("ttl_hours", d.ttl_hours)),
                prefix=str(c.get("prefix", d.prefix)),
                max_bytes=int(max_bytes) if max_bytes is not None else None,
                enabled=bool(c.get("enabled", d.enabled)),
            )

        if "analysis" in data:
            a = data["analysis"] or {}
            d = cfg.analysis
            cfg.analysis = AnalysisCfg(
                type_threshold=float(a.get("type_threshold", d.type_threshold)),
                categorical_max_unique=int(
                    a.get("categorical_max_unique", d.categorical_max_unique)
                ),
                sample_size=int(a.get("sample_size", d.sample_size)),
                schema_indicators=[
                    str(s) for s in a.get("schema_indicators", d.schema_indicators)
                ],
            )

        if "pipeline" in data:
            p = data["pipeline"] or {}
            cfg.pipeline = PipelineCfg(strategy=str(p.get("strategy", cfg.pipeline.strategy)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid config value: {exc}") from exc

    return cfg


def _apply_env_overrides(cfg: TablecastConfig) -> TablecastConfig:
    """Apply TABLECAST_* environment variable overrides."""
    if model := os.environ.get("TABLECAST_EXTRACTION_MODEL"):
        cfg.extraction.model = model
    if path := os.environ.get("TABLECAST_CACHE_PATH"):
        cfg.cache.path = path
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> TablecastConfig:
    """Load and return a merged *TablecastConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *tablecast.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: If global config contains API-key-like fields, a file is
            not valid YAML, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = _load_yaml(global_path)
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / _PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = _load_yaml(project_cfg_path)
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.tablecast/config.yaml`` with defaults if it does not exist.

    Creates the parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# tablecast global configuration: defaults only.\n"
            "# NEVER store API keys here; use environment variables:\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "#   export GEMINI_API_KEY=...\n"
            "\n"
            "extraction:\n"
            "  model: openai/gpt-4o-mini\n"
            "\n"
            "cache:\n"
            f"  ttl_hours: {DEFAULT_TTL_HOURS:g}\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
