"""
Configuration: .env loading, environment defaults and the global config file.

The API key is looked up in the environment first (OPENAI_API_KEY, which
python-dotenv may populate from .env) and then in
~/.video-summary/config.json.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

CONFIG_DIR = Path.home() / ".video-summary"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_MODEL = os.getenv("VIDSUM_MODEL", "gpt-4o-mini")
DEFAULT_LANGUAGE = os.getenv("VIDSUM_LANGUAGE", "Chinese")
DEFAULT_OUTPUT_DIR = os.getenv("VIDSUM_OUTPUT_DIR", "./output")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL") or None

DEFAULT_SEGMENT_MINUTES_MIN = 4
DEFAULT_SEGMENT_MINUTES_MAX = 15
PIPELINE_MAX_WORDS_PER_SEGMENT = 2000


def transcript_languages() -> List[str]:
    """Preferred YouTube caption languages, most preferred first."""
    raw = os.getenv("VIDSUM_TRANSCRIPT_LANGUAGES", "zh-Hans,zh-Hant,zh,en")
    return [code.strip() for code in raw.split(",") if code.strip()]


# ----------------------------
# Global config file
# ----------------------------

def read_global_config() -> Dict[str, Any]:
    """Read the global config file; missing or unreadable files give {}."""
    if not CONFIG_FILE.exists():
        return {}
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: could not read config file {CONFIG_FILE}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def write_global_config(config: Dict[str, Any]) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def _update_global_config(key: str, value: Any) -> None:
    config = read_global_config()
    if value is None:
        config.pop(key, None)
    else:
        config[key] = value
    write_global_config(config)


def set_api_key(api_key: str) -> None:
    _update_global_config("openai_api_key", api_key)
    print("API key saved to global config")


def remove_api_key() -> None:
    _update_global_config("openai_api_key", None)
    print("API key removed from global config")


def get_api_key() -> Optional[str]:
    """Environment variable wins over the global config file."""
    env_key = os.getenv("OPENAI_API_KEY")
    if env_key:
        return env_key
    return read_global_config().get("openai_api_key")


def load_api_key() -> str:
    api_key = get_api_key()
    if not api_key:
        raise ValueError(
            "OpenAI API key required. Set OPENAI_API_KEY environment variable "
            "or run: vidsum config set-key <your-api-key>"
        )
    return api_key


def set_default_output_dir(output_dir: str) -> None:
    _update_global_config("default_output_dir", output_dir)
    print(f"Default output directory set to: {output_dir}")


def get_default_output_dir() -> Optional[str]:
    return read_global_config().get("default_output_dir")


def set_default_segment_minutes(minutes: int) -> None:
    _update_global_config("default_segment_minutes", minutes)
    print(f"Default segment length set to: {minutes} minutes")


def get_default_segment_minutes() -> Optional[int]:
    return read_global_config().get("default_segment_minutes")


def reset_config() -> None:
    if CONFIG_FILE.exists():
        CONFIG_FILE.unlink()
    print("Global config reset")


def get_config_path() -> str:
    return str(CONFIG_FILE)


def show_config() -> None:
    config = read_global_config()
    has_env_key = bool(os.getenv("OPENAI_API_KEY"))
    has_config_key = bool(config.get("openai_api_key"))

    print("Current configuration:")
    print("=" * 40)
    print(f"Config file: {CONFIG_FILE}")
    print(f"OPENAI_API_KEY environment variable: {'set' if has_env_key else 'not set'}")
    print(f"API key in global config: {'set' if has_config_key else 'not set'}")

    if has_env_key and has_config_key:
        print("Note: the environment variable takes precedence over the config file")
    elif not has_env_key and not has_config_key:
        print("Error: no API key found. Set one with:")
        print("  vidsum config set-key <your-api-key>")
        print('  export OPENAI_API_KEY="your-api-key"')

    if config.get("default_output_dir"):
        print(f"Default output directory: {config['default_output_dir']}")
    if config.get("default_segment_minutes"):
        print(f"Default segment length: {config['default_segment_minutes']} minutes")
