"""
config.py — Runtime settings for the bewijsje renderer and its Discord host.

Everything is read once from the environment at import time. Override any
value by exporting the variable before starting the bot (or before importing
the package in your own code).
"""

import os
from pathlib import Path

# ── Discord host ─────────────────────────────────────────────────────────────

TOKEN = os.environ.get("DISCORD_BOT_TOKEN", "YOUR_TOKEN_HERE")
COMMAND_PREFIX = os.environ.get("BEWIJSJE_PREFIX", "!mr ")

# ── Identity fallbacks ───────────────────────────────────────────────────────

# Global game identifier, used when neither the summary nor the page names one.
GAME_ID = os.environ.get("GAME_ID", "")

# Keys under which the last used name/class are remembered.
STORE_NAME_KEY = "mr_name"
STORE_CLASS_KEY = "mr_class"
STORE_FILE = Path(os.environ.get(
    "BEWIJSJE_STORE", Path.home() / ".bewijsje" / "store.json"))

# ── Rendering ────────────────────────────────────────────────────────────────

def _float_env(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


DEVICE_PIXEL_RATIO = _float_env("BEWIJSJE_DPR", 1.0)
TIMEZONE = os.environ.get("BEWIJSJE_TZ", "Europe/Brussels")
OUTPUT_DIR = Path(os.environ.get("BEWIJSJE_OUTPUT_DIR", "bewijsjes"))

# ── Logging ──────────────────────────────────────────────────────────────────

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
