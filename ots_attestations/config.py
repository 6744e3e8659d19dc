"""Shared configuration loader for attestation decoding."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml


class ConfigurationError(RuntimeError):
    """Raised when configuration is invalid."""


URI_POLICY_STRICT = "strict"
URI_POLICY_RAW = "raw"
URI_POLICIES = (URI_POLICY_STRICT, URI_POLICY_RAW)

DEFAULT_CONFIG_PATH = Path.home() / ".ots-attestations.yaml"


@dataclass(frozen=True)
class DecoderConfig:
    """Options that change how attestation payloads are interpreted.

    ``uri_policy`` decides what happens when a pending attestation URI is not
    valid UTF-8: ``"strict"`` rejects the record, ``"raw"`` keeps the original
    bytes and flags the decoded value.
    """

    uri_policy: str = URI_POLICY_STRICT
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.uri_policy not in URI_POLICIES:
            raise ConfigurationError(
                f"uri_policy must be one of {', '.join(URI_POLICIES)}; got {self.uri_policy!r}"
            )
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level!r}")


def _load_config_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}

    try:
        loaded = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:  # pragma: no cover - delegated to PyYAML
        raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected {path} to contain a YAML object with a 'decoder' section")
    return loaded


def _normalize(value: Any) -> str | None:
    if value is None:
        return None
    normalized = str(value).strip()
    return normalized or None


def _first_value(*values: Any, default: Any = None) -> Any:
    for value in values:
        if value is not None:
            return value
    return default


def load_decoder_config(
    *,
    config_path: str | Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DecoderConfig:
    """Load decoder configuration from overrides, environment and optional YAML."""

    env_map = os.environ if env is None else env
    explicit_path = config_path is not None
    path = Path(config_path).expanduser() if explicit_path else DEFAULT_CONFIG_PATH

    file_config = _load_config_file(path, required=explicit_path)
    decoder_section = file_config.get("decoder", {}) or {}
    if not isinstance(decoder_section, dict):
        raise ConfigurationError(f"Expected 'decoder' to be a mapping in {path}")

    override_map = dict(overrides or {})

    uri_policy = _first_value(
        _normalize(override_map.get("uri_policy")),
        _normalize(env_map.get("OTS_URI_POLICY")),
        _normalize(decoder_section.get("uri_policy")),
        default=URI_POLICY_STRICT,
    )
    log_level = _first_value(
        _normalize(override_map.get("log_level")),
        _normalize(env_map.get("OTS_LOG_LEVEL")),
        _normalize(decoder_section.get("log_level")),
        default="INFO",
    )

    return DecoderConfig(uri_policy=uri_policy.lower(), log_level=log_level.upper())
