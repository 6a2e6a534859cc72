# vinotes/config.py
# Description: Configuration management for the vinotes application.
#
# Imports
import copy
import os
import sys
if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
from pathlib import Path
from typing import Dict, Any, Optional
#
# Third-Party Imports
import toml
from loguru import logger
#
########################################################################################################################
#
# Constants:

# --- Path to the user's configuration file ---
DEFAULT_CONFIG_PATH = Path(
    os.environ.get("VINOTES_CONFIG", Path.home() / ".config" / "vinotes" / "config.toml")
).expanduser()

BASE_DATA_DIR = Path.home() / ".local" / "share" / "vinotes"

CONFIG_TOML_CONTENT = """
# Configuration for the vinotes note board
# Located at: ~/.config/vinotes/config.toml (override with VINOTES_CONFIG)

[storage]
data_dir = "~/.local/share/vinotes"  # notes.json, folders.json and session.json live here

[drive]
api_base_url = "https://www.googleapis.com/drive/v3"
upload_base_url = "https://www.googleapis.com/upload/drive/v3"
notes_folder_name = "Vinotes"             # One markdown file per note
board_folder_name = "ViNotes"             # Parent of mirrored board folders
attachments_folder_name = "ViNotes_Files" # Files attached to notes
api_key = ""                              # Used to read shared notes without signing in
share_base_url = "https://vinotes.app/"   # Share links look like <share_base_url>?view=<file id>
timeout_seconds = 30.0

[sync]
checkpoint_every = 3          # Persist uploaded handles after this many successful uploads
max_concurrent_downloads = 1  # 1 keeps downloads strictly sequential

[logging]
level = "INFO"                # DEBUG, INFO, WARNING, ERROR, CRITICAL
log_filename = "vinotes.log"  # Written inside the data directory
console = true
"""

try:
    DEFAULT_CONFIG_FROM_TOML: Dict[str, Any] = tomllib.loads(CONFIG_TOML_CONTENT)
except tomllib.TOMLDecodeError as e:
    logger.critical(f"Could not parse internal CONFIG_TOML_CONTENT: {e}")
    DEFAULT_CONFIG_FROM_TOML = {}

_CONFIG_CACHE: Optional[Dict[str, Any]] = None

#
########################################################################################################################
#
# Functions:

def deep_merge_dicts(base: Dict, update: Dict) -> Dict:
    """Recursively merges update into base, returning a new dict."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and key in merged and isinstance(merged[key], dict):
            merged[key] = deep_merge_dicts(merged[key], value)
        else:
            merged[key] = value
    return merged


def reset_config_cache() -> None:
    """Forget the cached configuration so the next read goes back to disk."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None


def load_cli_config_and_ensure_existence(force_reload: bool = False) -> Dict[str, Any]:
    """
    Loads settings from the user's config.toml.

    If the file doesn't exist, it's created from CONFIG_TOML_CONTENT. The user's
    settings are merged on top of the programmatic defaults, so a partial file
    only overrides what it names.
    """
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None and not force_reload:
        return _CONFIG_CACHE

    loaded_config = copy.deepcopy(DEFAULT_CONFIG_FROM_TOML)

    if not DEFAULT_CONFIG_PATH.exists():
        logger.info(f"Config file not found at {DEFAULT_CONFIG_PATH}. Creating it with default values.")
        try:
            DEFAULT_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
            with open(DEFAULT_CONFIG_PATH, "w", encoding="utf-8") as f:
                f.write(CONFIG_TOML_CONTENT)
            loaded_config["_first_run"] = True
        except OSError as e:
            logger.error(f"Could not create default config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
    else:
        try:
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                user_config_from_file = tomllib.load(f)
            loaded_config = deep_merge_dicts(loaded_config, user_config_from_file)
            logger.debug(f"Loaded and merged config from {DEFAULT_CONFIG_PATH}")
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Error decoding config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")
        except OSError as e:
            logger.error(f"Could not read config file {DEFAULT_CONFIG_PATH}: {e}. Using internal defaults.")

    _CONFIG_CACHE = loaded_config
    return _CONFIG_CACHE


def save_setting_to_cli_config(section: str, key: str, value: Any) -> bool:
    """
    Saves a single setting to the user's config file and reloads the cache.

    Nested sections are addressed with dots, e.g. "drive.advanced".

    Returns:
        True if the setting was written, False otherwise.
    """
    logger.info(f"Saving setting: [{section}].{key}")

    config_data: Dict[str, Any] = {}
    if DEFAULT_CONFIG_PATH.exists():
        try:
            with open(DEFAULT_CONFIG_PATH, "rb") as f:
                config_data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.error(f"Corrupted config file at {DEFAULT_CONFIG_PATH}. Cannot save. Error: {e}")
            return False

    current_level = config_data
    try:
        for part in section.split('.'):
            current_level = current_level.setdefault(part, {})
        current_level[key] = value
    except (TypeError, AttributeError):
        logger.error(f"Could not set '{key}' in section '{section}': a part of the path is not a table")
        return False

    try:
        DEFAULT_CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(DEFAULT_CONFIG_PATH, "w", encoding="utf-8") as f:
            toml.dump(config_data, f)
    except OSError as e:
        logger.error(f"Failed to write config to {DEFAULT_CONFIG_PATH}: {e}")
        return False

    load_cli_config_and_ensure_existence(force_reload=True)
    return True


def get_cli_setting(section: str, key: str, default: Any = None) -> Any:
    """Helper to get a specific setting from the loaded configuration."""
    config = load_cli_config_and_ensure_existence()
    section_data = config.get(section)
    if isinstance(section_data, dict):
        return section_data.get(key, default)
    return default


def get_data_dir() -> Path:
    """Directory holding the local note store and the persisted session."""
    data_dir = Path(get_cli_setting("storage", "data_dir", str(BASE_DATA_DIR))).expanduser()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_log_file_path() -> Path:
    log_filename = get_cli_setting("logging", "log_filename", "vinotes.log")
    return get_data_dir() / log_filename

#
# End of config.py
########################################################################################################################
