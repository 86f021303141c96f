"""Configuration loading for fusion runs."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from scoresync.constants import DEFAULT_CONFIG_PATH, REMOTE_CANVAS_INDEX, REMOTE_SOURCES
from scoresync.models import FusionConfig

logger = logging.getLogger(__name__)


def load_fusion_config(config_path: Path | None = None) -> FusionConfig:
    """Load fusion configuration from JSON, falling back to defaults.

    Reads from ``config/scoresync.json`` when *config_path* is ``None``.
    If the file does not exist, returns a ``FusionConfig`` with defaults.
    Keys that are not ``FusionConfig`` fields are ignored.

    Args:
        config_path: Optional explicit path to the JSON file.

    Returns:
        FusionConfig populated from the file over defaults.
    """
    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    data: dict = {}
    if config_path.exists():
        with open(config_path) as f:
            data = json.load(f)
        logger.debug("Loaded configuration from %s", config_path)

    field_names = {f.name for f in FusionConfig.__dataclass_fields__.values()}
    unknown = sorted(set(data) - field_names)
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
    kwargs = {k: v for k, v in data.items() if k in field_names}

    return FusionConfig(**kwargs)


def apply_remote_sources(config: FusionConfig) -> FusionConfig:
    """Point *config* at the published copies of the reference dataset."""
    for role, url in REMOTE_SOURCES.items():
        setattr(config, role, url)
    config.canvas_index = REMOTE_CANVAS_INDEX
    return config
