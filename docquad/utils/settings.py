"""Detection config loader: docquad.json overrides, falling back to DOCQUAD_* env vars."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from docquad.pipeline import DetectionConfig

logger = logging.getLogger(__name__)

_CONFIG_FILE = Path("docquad.json")

ENV_PREFIX = "DOCQUAD_"

# Config fields that may be set from the environment.
_ENV_FIELDS = (
    "target_size",
    "min_area_ratio",
    "max_area_ratio",
    "border_margin",
    "max_corner_cosine",
    "max_contours",
    "approx_epsilons",
    "min_edge_samples",
    "generators",
)


def _from_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in _ENV_FIELDS:
        v = os.getenv(ENV_PREFIX + name.upper(), "")
        if v.strip():
            values[name] = v.strip()
    return values


def load_config(config_path: Optional[Union[str, Path]] = None) -> DetectionConfig:
    """Load detection settings from a JSON file, falling back to environment variables.

    Priority per key: config file > environment > built-in default.

    Args:
        config_path: Path to a JSON object of DetectionConfig fields. Defaults to
            docquad.json in the working directory; a missing default file is fine.

    Returns:
        DetectionConfig with the merged overrides applied.

    Raises:
        FileNotFoundError: If an explicit config_path does not exist.
        ValueError: If the file is not a JSON object or holds unknown keys.
    """
    path = Path(config_path) if config_path else _CONFIG_FILE
    data: Dict[str, Any] = {}

    if path.exists():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must hold a JSON object")
        logger.debug(f"Loaded detection config from {path}")
    elif config_path:
        raise FileNotFoundError(f"Config file not found: {path}")

    merged = _from_env()
    if merged:
        logger.debug(f"Environment overrides: {', '.join(sorted(merged))}")
    merged.update(data)

    return DetectionConfig.from_mapping(merged)
