"""Load pipeline configuration from config/pipeline.yaml."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Project root: assume this file is in gss_codebook/
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_CONFIG_PATH = _PROJECT_ROOT / "config" / "pipeline.yaml"

DEFAULTS: Dict[str, Any] = {
    "base_url": None,
    "first_page": 1,
    "last_page": None,
    "pages_dir": "data/raw/pages",
    "filename_width": 4,
    "request_delay": 5.0,
    "container_selector": "div.variable",
    "table_selector": "table",
    "output_path": "data/parsed/variables.json.gz",
    "workers": 1,
}

_CONFIG_CACHE: Optional[Dict[str, Any]] = None


def load_pipeline_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the `codebook` section of config/pipeline.yaml merged over DEFAULTS.

    Only the default path is cached; an explicit path is always re-read.
    """
    global _CONFIG_CACHE
    if path is None and _CONFIG_CACHE is not None:
        return dict(_CONFIG_CACHE)
    p = path or _CONFIG_PATH
    config = dict(DEFAULTS)
    if p.exists():
        with open(p, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config.update({k: v for k, v in (data.get("codebook") or {}).items() if v is not None})
    if path is None:
        _CONFIG_CACHE = dict(config)
    return config


def resolve_path(value: str) -> Path:
    """Resolve a configured path relative to the project root."""
    p = Path(value)
    return p if p.is_absolute() else _PROJECT_ROOT / p
