"""
session.py — End-of-session export: normalize, render, encode, name, deliver.

Two tiers:

* ``finish_session`` / ``download_table`` are coroutines. They return the PNG
  bytes and the filename, or raise if rendering, encoding or delivery fails.
* ``try_shared_proof`` only *launches* ``finish_session`` in the background
  and returns whether that launch worked. It never reports how the export
  itself ended; failures there are logged and dropped. Callers that need the
  bytes or the filename must await ``finish_session`` instead.

Concurrent exports are not serialized: two overlapping calls both render and
both deliver.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Mapping

from . import config
from .certificate import build_certificate
from .formatting import file_safe, file_stamp
from .summary import IdentitySource, Summary, normalize_summary
from .table import build_table

log = logging.getLogger(__name__)

Download = Callable[[bytes, str], Awaitable[None]]


@dataclass(frozen=True)
class ExportResult:
    image_bytes: bytes
    filename: str


class DirectoryDownload:
    """Delivers exports by writing them into a directory."""

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory is not None else config.OUTPUT_DIR

    async def __call__(self, data: bytes, filename: str):
        path = self.directory / filename
        await asyncio.to_thread(self._write, path, data)
        log.info("Saved %s (%d bytes)", path, len(data))

    @staticmethod
    def _write(path: Path, data: bytes):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


def proof_filename(summary: Summary, now: datetime | None = None) -> str:
    """``<game> — <name>[ (dyscalculie)] — YYYYMMDD-HHmm.png``, made path safe."""
    name = summary.name or "anoniem"
    if summary.has_dyscalculia:
        name += " (dyscalculie)"
    stamp = file_stamp(now or datetime.now())
    return file_safe(f"{summary.game_id or 'Spel'} — {name} — {stamp}.png")


# ── Awaiting contract ────────────────────────────────────────────────────────

def _render_png(build, *args, **kwargs) -> bytes:
    """Build a surface and encode it, in one worker thread call."""
    return build(*args, **kwargs).to_png()


async def finish_session(raw=None, *, download: Download | None = None,
                         identity: IdentitySource | None = None,
                         now: datetime | None = None,
                         device_pixel_ratio: float | None = None) -> ExportResult:
    """Render the certificate for ``raw``, deliver it and return bytes + filename."""
    s = normalize_summary(raw, identity)
    data = await asyncio.to_thread(_render_png, build_certificate, s, identity=identity,
                                   now=now, device_pixel_ratio=device_pixel_ratio)
    filename = proof_filename(s, now)
    await (download or DirectoryDownload())(data, filename)
    return ExportResult(image_bytes=data, filename=filename)


async def download_table(meta=None, table: Mapping | None = None,
                         filename: str | None = None, *,
                         download: Download | None = None,
                         identity: IdentitySource | None = None,
                         now: datetime | None = None,
                         device_pixel_ratio: float | None = None) -> ExportResult:
    """
    Render ``table`` (``{"columns": [...], "rows": [[...], ...]}``) under the
    metadata block for ``meta``. An explicit ``filename`` replaces the derived one.
    """
    s = normalize_summary(meta or {}, identity)
    table = table or {}
    data = await asyncio.to_thread(_render_png, build_table, s, table.get("columns"),
                                   table.get("rows"), identity=identity, now=now,
                                   device_pixel_ratio=device_pixel_ratio)
    name = file_safe(filename) if filename else proof_filename(s, now)
    await (download or DirectoryDownload())(data, name)
    return ExportResult(image_bytes=data, filename=name)


# ── Fire-and-forget wrapper ──────────────────────────────────────────────────

_background: set[asyncio.Task] = set()


def _export_done(task: asyncio.Task):
    _background.discard(task)
    if task.cancelled():
        return
    err = task.exception()
    if err is not None:
        log.error("Background proof export failed", exc_info=err)


def try_shared_proof(raw=None, **kwargs) -> bool:
    """
    Start ``finish_session(raw, **kwargs)`` without waiting for it.

    Returns True once the export is scheduled, False when it could not even
    be started: no event loop is running, or ``raw`` is not a mapping. A True
    result says nothing about whether the image was actually produced.
    """
    try:
        s = normalize_summary(raw, kwargs.get("identity"))
        loop = asyncio.get_running_loop()
        task = loop.create_task(finish_session(s, **kwargs))
    except Exception:
        log.exception("Could not launch proof export")
        return False
    _background.add(task)
    task.add_done_callback(_export_done)
    return True
