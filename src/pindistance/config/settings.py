# src/pindistance/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/pindistance/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `PINDISTANCE_CONFIG_PATH` (replaces the packaged defaults)
- a few environment variables (e.g., `PINDISTANCE_LOG_LEVEL`, `PINDISTANCE_BUSY_POLICY`)

Design rule:
- Labels, map defaults and locator policy live in YAML, not hard-coded in the locator.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field

from pindistance.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `pindistance.config`."""
    text = resources.files("pindistance.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


BusyPolicy = Literal["supersede", "reject", "replace"]


class AppSettings(BaseModel):
    name: str = "PinDistance"
    http_timeout_seconds: float = 10
    log_level: str = "INFO"


class CenterSettings(BaseModel):
    lat: float = Field(37.5665, ge=-90, le=90)
    lon: float = Field(126.9780, ge=-180, le=180)


class MapSettings(BaseModel):
    initial_center: CenterSettings = Field(default_factory=CenterSettings)
    initial_span_m: float = Field(5000, gt=0)
    pin_title: str = "Selected location"


class LocatorSettings(BaseModel):
    busy_policy: BusyPolicy = "supersede"
    placeholder_label: str = "selected location"
    present_positioning_errors: bool = True


class GeocodingSettings(BaseModel):
    provider: Literal["none", "nominatim"] = "none"
    base_url: str = "https://nominatim.openstreetmap.org/reverse"
    user_agent: str = "pindistance/0.1.0 (set your contact email)"
    language: str = "en"
    zoom: int = Field(18, ge=0, le=18)


class SimulatorSettings(BaseModel):
    authorization_status: str = "not_determined"
    prompt_grants: bool = True
    position: CenterSettings | None = Field(default_factory=CenterSettings)


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    locator: LocatorSettings = Field(default_factory=LocatorSettings)
    geocoding: GeocodingSettings = Field(default_factory=GeocodingSettings)
    simulator: SimulatorSettings = Field(default_factory=SimulatorSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    data = dict(data)

    log_level = os.getenv("PINDISTANCE_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    busy_policy = os.getenv("PINDISTANCE_BUSY_POLICY")
    if busy_policy:
        data.setdefault("locator", {})["busy_policy"] = busy_policy.strip().lower()

    user_agent = os.getenv("PINDISTANCE_GEOCODER_USER_AGENT")
    if user_agent:
        data.setdefault("geocoding", {})["user_agent"] = user_agent

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("PINDISTANCE_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
