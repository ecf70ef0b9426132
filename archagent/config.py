"""Centralized config loading: read once at import time."""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env from project root (parent of archagent/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

CONFIG_PATH = Path(__file__).resolve().parent / "config.yaml"

_config = yaml.safe_load(CONFIG_PATH.read_text())

# Environment overrides for the generation service
_ENV_OVERRIDES = {
    "OLLAMA_URL": ("ollama_url", str),
    "OLLAMA_MODEL": ("generation_model", str),
    "OLLAMA_TIMEOUT_SECONDS": ("timeout_seconds", float),
}
for _env_name, (_key, _cast) in _ENV_OVERRIDES.items():
    if os.getenv(_env_name):
        _config[_key] = _cast(os.environ[_env_name])


def get_config() -> dict:
    """Return the loaded config dictionary."""
    return _config
