import json
import os
from pathlib import Path

from loguru import logger

# ========= BASIC CONFIG =========
CONFIG_FILE = Path(os.path.expanduser("~/.tbrowser_config.json"))

HISTORY_FILE_NAME = "history.json"
BOOKMARKS_FILE_NAME = "bookmarks.json"
LOG_FILE_NAME = "tbrowser.log"

# Rows taken by the header and status line around the page area.
CHROME_ROWS = 5

DEFAULT_CONFIG = {
    "STATE_DIR": "~/.tbrowser",
    "MAX_HISTORY": 50,
    "SCROLL_STEP": 5,
    "REQUEST_TIMEOUT": 15,
    "USER_AGENT": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "COLOR_THEME": "default",
}


# ========= PERSISTENT CONFIG =========
def load_config(path=None):
    path = Path(path) if path else CONFIG_FILE
    if not path.exists():
        return DEFAULT_CONFIG.copy()

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config {str(path)!r}: {e}")
        return DEFAULT_CONFIG.copy()

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {str(path)!r}: not a JSON object")
        return DEFAULT_CONFIG.copy()

    cfg = DEFAULT_CONFIG.copy()
    for k in DEFAULT_CONFIG:
        if k in data:
            cfg[k] = data[k]
    return cfg


def save_config(cfg, path=None):
    path = Path(path) if path else CONFIG_FILE
    out = {k: cfg.get(k, v) for k, v in DEFAULT_CONFIG.items()}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(out, f, indent=2)


def state_dir(cfg):
    return Path(os.path.expanduser(str(cfg["STATE_DIR"])))
