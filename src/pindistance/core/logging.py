"""
Logging configuration.

We use a YAML logging config (`src/pindistance/config/logging.yaml`) and then apply
runtime overrides from settings (e.g., `PINDISTANCE_LOG_LEVEL`).
"""

from __future__ import annotations

import copy
import logging.config

from pindistance.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system based on packaged YAML config + settings.

    `level` wins over the configured level (used by the CLI `--verbose` flag).
    """
    settings = get_settings()
    config = copy.deepcopy(get_logging_config())

    level = (level or settings.app.log_level).upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level

    logging.config.dictConfig(config)
