from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

import yaml


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class ServiceConfig:
    base_url: str
    endpoint: str
    timeout_seconds: float
    user_agent: str

    @property
    def url(self) -> str:
        return self.base_url.rstrip("/") + "/" + self.endpoint.lstrip("/")

    @property
    def timeout(self) -> float | None:
        # the service call has no client-enforced timeout unless one is configured
        if self.timeout_seconds <= 0:
            return None
        return self.timeout_seconds


@dataclass(frozen=True)
class PipelineConfig:
    target_language: str


@dataclass(frozen=True)
class Config:
    service: ServiceConfig
    pipeline: PipelineConfig


DEFAULT_CONFIG: dict[str, Any] = {
    "service": {
        "base_url": "http://localhost:3000",
        "endpoint": "/api/summarize",
        "timeout_seconds": 0.0,
        "user_agent": "blogdigest/0.1",
    },
    "pipeline": {
        "target_language": "Urdu",
    },
}

ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "BD_SERVICE_URL": ("service", "base_url"),
    "BD_SERVICE_ENDPOINT": ("service", "endpoint"),
    "BD_SERVICE_TIMEOUT": ("service", "timeout_seconds"),
}


def load_config(path: str | None = None) -> Config:
    cfg = effective_config(path)
    errors = validate_config(cfg)
    if errors:
        raise ConfigError("Invalid config: " + "; ".join(errors))
    return build_config(cfg)


def effective_config(path: str | None = None) -> dict[str, Any]:
    cfg = _deep_copy(DEFAULT_CONFIG)
    if path:
        _deep_merge(cfg, _read_yaml(path))
    _apply_env_overrides(cfg)
    return cfg


def validate_config(cfg: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    _validate_dict(cfg, DEFAULT_CONFIG, "config", errors)
    if not errors:
        base_url = cfg["service"]["base_url"]
        if not base_url.startswith(("http://", "https://")):
            errors.append("config.service.base_url must start with http:// or https://")
    return errors


def _read_yaml(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"Unable to read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping")
    return data


def _apply_env_overrides(cfg: dict[str, Any]) -> None:
    for env_name, (section, key) in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is None or not raw.strip():
            continue
        target = cfg.setdefault(section, {})
        if not isinstance(target, dict):
            continue
        if isinstance(DEFAULT_CONFIG[section][key], float):
            try:
                target[key] = float(raw)
            except ValueError as exc:
                raise ConfigError(f"{env_name} must be a number") from exc
        else:
            target[key] = raw.strip()


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _validate_dict(value: dict[str, Any], schema: dict[str, Any], path: str, errors: list[str]) -> None:
    if not isinstance(value, dict):
        errors.append(f"{path} must be an object")
        return
    for key in schema.keys():
        if key not in value:
            errors.append(f"missing {path}.{key}")
    for key in value.keys():
        if key not in schema:
            errors.append(f"unknown {path}.{key}")
    for key, default in schema.items():
        if key not in value:
            continue
        _validate_value(value[key], default, f"{path}.{key}", errors)


def _validate_value(value: Any, default: Any, path: str, errors: list[str]) -> None:
    if isinstance(default, dict):
        _validate_dict(value, default, path, errors)
        return
    if isinstance(default, bool):
        if not isinstance(value, bool):
            errors.append(f"{path} must be a boolean")
        return
    if isinstance(default, float):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors.append(f"{path} must be a number")
        return
    if isinstance(default, str):
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{path} must be a non-empty string")
        return


def build_config(cfg: dict[str, Any]) -> Config:
    service_cfg = cfg.get("service") or {}
    pipeline_cfg = cfg.get("pipeline") or {}

    service = ServiceConfig(
        base_url=str(service_cfg.get("base_url")),
        endpoint=str(service_cfg.get("endpoint")),
        timeout_seconds=float(service_cfg.get("timeout_seconds")),
        user_agent=str(service_cfg.get("user_agent")),
    )
    pipeline = PipelineConfig(target_language=str(pipeline_cfg.get("target_language")))
    return Config(service=service, pipeline=pipeline)


def _deep_copy(value: dict[str, Any]) -> dict[str, Any]:
    return json.loads(json.dumps(value))
