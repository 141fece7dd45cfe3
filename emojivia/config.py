"""App configuration (generator connection, catalog rules, question limits).

Stored as config.json in the data directory. get_config() returns defaults
merged with stored values; update_config() merges a partial update section
by section and persists the result. The generator API key falls back to the
OPENAI_API_KEY environment variable when the stored value is empty.
"""

import json
import os
from pathlib import Path
from typing import Any

_CONFIG_DEFAULTS: dict[str, Any] = {
    "generator": {
        "provider_url": "https://api.openai.com",
        "api_key": "",
        "model": "gpt-4o-mini",
        "max_tokens": 16000,
        "timeout": 120,
    },
    "catalog": {
        "size": 1500,
        "curve": "block",
        "title_scheme": "lattice",
        "tier_preset": "hundreds",
    },
    "questions": {
        "default_count": 50,
        "max_count": 100,
    },
}

_SECTIONS = tuple(_CONFIG_DEFAULTS)
_MASK = "***"


def _config_path(data_dir: Path) -> Path:
    return data_dir / "config.json"


def get_config(data_dir: Path) -> dict[str, Any]:
    """Read config, returning defaults merged with stored values."""
    config: dict[str, Any] = json.loads(json.dumps(_CONFIG_DEFAULTS))
    path = _config_path(data_dir)
    if path.is_file():
        stored = json.loads(path.read_text(encoding="utf-8"))
        for section in _SECTIONS:
            vals = stored.get(section)
            if isinstance(vals, dict):
                config[section].update(vals)
    return config


def update_config(data_dir: Path, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into config and persist. Returns full config."""
    config = get_config(data_dir)
    for section, vals in fields.items():
        if section in config and isinstance(vals, dict):
            # A masked key echoed back from get_settings keeps the stored one
            vals = {k: v for k, v in vals.items() if not (k == "api_key" and v == _MASK)}
            config[section].update(vals)
    data_dir.mkdir(parents=True, exist_ok=True)
    _config_path(data_dir).write_text(
        json.dumps(config, indent=2, ensure_ascii=False), encoding="utf-8"
    )
    return config


def generator_api_key(config: dict[str, Any]) -> str:
    return config["generator"].get("api_key") or os.getenv("OPENAI_API_KEY", "")


def public_config(config: dict[str, Any]) -> dict[str, Any]:
    """Config safe to return over HTTP: the API key is masked."""
    masked = json.loads(json.dumps(config))
    if masked["generator"].get("api_key"):
        masked["generator"]["api_key"] = _MASK
    return masked
