import json
import logging
from pathlib import Path
from typing import Union

from src.utils.logger import setup_logger

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "gateio_config.json"


def load_config(config_path: Union[str, Path] = DEFAULT_CONFIG_PATH) -> dict:
    with open(config_path, "r") as f:
        return json.load(f)


def init_logger(config: dict, name: str = "gateio") -> logging.Logger:
    """Build the adapter logger from the ``log_level`` / ``data_paths`` config keys."""
    level = getattr(logging, config.get("log_level", "INFO").upper(), logging.INFO)
    log_dir = (config.get("data_paths") or {}).get("log_path")
    log_path = Path(log_dir) / f"{name}.log" if log_dir else None
    return setup_logger(name, log_path, level=level)
