"""
formatting.py — Text helpers shared by the renderers and the exporter.
"""

import math
import re
from datetime import datetime
from zoneinfo import ZoneInfo

from . import config

_UNSAFE_FILE_CHARS = re.compile(r'[\\/:*?"<>|]')
FILENAME_MAX = 80


def safe(value) -> str:
    """``None`` → ``""``, anything else → stripped ``str``."""
    return "" if value is None else str(value).strip()


def to_number(value, default=0):
    """Loose numeric coercion. Integral floats come back as ``int``."""
    if isinstance(value, bool):
        return int(value)
    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(num) or math.isinf(num):
        return default
    return int(num) if num.is_integer() else num


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ── Date & time ──────────────────────────────────────────────────────────────

def format_datetime(moment: datetime, tz: str | None = None) -> str:
    """Day/month/year hour:minute in the configured zone, e.g. ``27/10/2025 14:05``."""
    zone = ZoneInfo(tz or config.TIMEZONE)
    return moment.astimezone(zone).strftime("%d/%m/%Y %H:%M")


def format_duration(seconds) -> str:
    """``H:MM:SS`` from one hour up, ``M:SS`` below that."""
    s = max(0, round_half_up(to_number(seconds)))
    h, rest = divmod(s, 3600)
    m, ss = divmod(rest, 60)
    if h > 0:
        return f"{h}:{m:02d}:{ss:02d}"
    return f"{m}:{ss:02d}"


def file_stamp(moment: datetime) -> str:
    """``YYYYMMDD-HHmm``. Aware datetimes are shown in local time first."""
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.strftime("%Y%m%d-%H%M")


# ── Filenames ────────────────────────────────────────────────────────────────

def file_safe(value) -> str:
    """Drop path-unsafe characters and cap the result at 80 characters."""
    return _UNSAFE_FILE_CHARS.sub("", safe(value))[:FILENAME_MAX]


def safe_file_part(name) -> str:
    """Single filename token: word chars only, spaces to underscores."""
    cleaned = re.sub(r"[^\w\s-]+", "", safe(name))
    cleaned = re.sub(r"\s+", "_", cleaned)[:FILENAME_MAX]
    return cleaned or "leerling"
