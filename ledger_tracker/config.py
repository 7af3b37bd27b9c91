# ledger_tracker/config.py
from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "data_file": "ledger.json",
    "host": "127.0.0.1",
    "port": 3000,
    "log_level": "INFO",
    "export_dir": "exports",
    "output_modules": {
        "csv": "ledger_tracker.outputs.csv_output.CSVOutput",
    },
}

ENV_OVERRIDES = {
    "LEDGER_DATA_FILE": "data_file",
    "LEDGER_LOG_LEVEL": "log_level",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Read the YAML config at ``path`` over the defaults, then apply env overrides.

    A missing file is not an error; the defaults are used instead.
    """
    data: Dict[str, object] = {}
    if path is not None and Path(path).exists():
        with Path(path).open("r", encoding="utf-8") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
    config = _merge_defaults(data, DEFAULT_CONFIG)
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            config[key] = value
    return config
