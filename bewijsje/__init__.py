"""
bewijsje — Proof-of-completion images for exercise sessions.

    from bewijsje import finish_session
    result = await finish_session({"name": "Eva", "gameId": "telrij", "score": 7})
"""

from .certificate import build_certificate
from .formatting import format_datetime, format_duration, safe_file_part
from .prompt import ExtendedResult, FlagToggle, NamePrompt, SimpleResult, ask_name
from .session import (
    DirectoryDownload, ExportResult, download_table, finish_session, try_shared_proof,
)
from .storage import LocalStore
from .summary import (
    IdentitySource, PageContext, QuestionRow, Summary, make_meta, mode_label,
    normalize_summary,
)
from .surface import create_surface
from .table import build_table

__version__ = "2025.10.27"

__all__ = [
    "build_certificate", "build_table", "create_surface",
    "finish_session", "try_shared_proof", "download_table",
    "DirectoryDownload", "ExportResult",
    "normalize_summary", "make_meta", "mode_label",
    "IdentitySource", "PageContext", "QuestionRow", "Summary",
    "format_datetime", "format_duration", "safe_file_part",
    "ask_name", "NamePrompt", "FlagToggle", "SimpleResult", "ExtendedResult",
    "LocalStore",
]
