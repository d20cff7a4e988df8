"""
summary.py — Turns a loosely structured session record into a ``Summary``.

Exercise pages hand over whatever they have: ``name`` or ``playerName``,
``class`` or ``klas``, goals as a list or as one comma separated string,
question rows as dicts with legacy keys or as bare strings. Everything here
is about mapping those shapes onto one canonical, immutable record.

Identity fields that the record itself does not carry (name, class, game id)
are looked up through an ``IdentitySource``: an ordered list of lookups per
field, so the ambient sources (remembered name, page metadata, the global
``GAME_ID``) can be swapped out in tests.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence

from . import config
from .formatting import round_half_up, safe, to_number
from .storage import LocalStore

MODES = ("vrij", "taak", "toets")
DYSCALCULIA = "dyscalculie"

NAME_KEYS = ("name", "playerName", "student", "studentName")
CLASS_KEYS = ("class", "klas", "group")
GIVEN_KEYS = ("givenAnswer", "given", "a", "answer", "gegeven")

_KNOWN_KEYS = frozenset(NAME_KEYS + CLASS_KEYS + (
    "gameId", "mode", "seconds", "score", "total", "questions",
    "goals", "flags", "accommodations", "date"))


# ── Mode ─────────────────────────────────────────────────────────────────────

def mode_label(value) -> str:
    """
    Map free text onto a mode label.

    ``toets…`` → toets, ``taa…``/``task`` → taak, ``oefen``/``free``/``vrij``/
    ``practice`` → vrij. Anything else comes back lowercased, empty → vrij.
    """
    key = safe(value).lower()
    if key.startswith("toet"):
        return "toets"
    if key.startswith(("taa", "task")):
        return "taak"
    if key.startswith(("oefen", "free", "vrij", "practice")):
        return "vrij"
    return key or "vrij"


# ── Identity lookups ─────────────────────────────────────────────────────────

Lookup = Callable[[], Optional[str]]


@dataclass(frozen=True)
class PageContext:
    """What the hosting page knows about itself."""
    meta_game_id: str = ""   # <meta name="x-game-id">
    title: str = ""
    path: str = ""


def game_id_from_path(path: str) -> str:
    """Last path segment without query, fragment or ``.html`` suffix."""
    last = (path or "").split("/")[-1]
    last = re.sub(r"[?#].*$", "", last)
    return re.sub(r"\.html?$", "", last)


class IdentitySource:
    """Ordered fallback lookups for ``name``, ``class`` and ``gameId``."""

    def __init__(self, strategies: Mapping[str, Sequence[Lookup]] | None = None):
        self._strategies = {k: list(v) for k, v in (strategies or {}).items()}

    def resolve(self, field_name: str) -> str:
        for lookup in self._strategies.get(field_name, ()):
            value = safe(lookup())
            if value:
                return value
        return ""

    @classmethod
    def from_context(cls, store: LocalStore | None = None,
                     page: PageContext | None = None,
                     game_constant: str | None = None) -> "IdentitySource":
        store = LocalStore() if store is None else store
        page = page or PageContext()
        constant = config.GAME_ID if game_constant is None else game_constant
        return cls({
            "name": [lambda: store.get(config.STORE_NAME_KEY)],
            "class": [lambda: store.get(config.STORE_CLASS_KEY)],
            "gameId": [
                lambda: page.meta_game_id,
                lambda: constant,
                lambda: game_id_from_path(page.path),
                lambda: page.title,
            ],
        })


# ── Canonical record ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class QuestionRow:
    question: str = ""
    correct_answer: str = ""
    given_answer: str = ""
    is_correct: Optional[bool] = None   # None: plain string row
    points: object = None
    secs: object = None

    def as_raw(self):
        if self.is_correct is None and not (self.correct_answer or self.given_answer):
            return self.question
        return {"question": self.question, "correctAnswer": self.correct_answer,
                "givenAnswer": self.given_answer, "isCorrect": self.is_correct,
                "points": self.points, "secs": self.secs}


@dataclass(frozen=True)
class Summary:
    name: str = ""
    klass: str = ""
    game_id: str = ""
    mode: str = "vrij"
    seconds: int = 0
    score: int | float = 0
    total: int | float = 0
    questions: tuple[QuestionRow, ...] = ()
    goals: tuple[str, ...] = ()
    flags: Mapping[str, bool] = field(default_factory=lambda: MappingProxyType({}))
    accommodations: tuple[str, ...] = ()
    date: Optional[datetime] = None
    extra: Mapping[str, object] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def has_dyscalculia(self) -> bool:
        return bool(self.flags.get(DYSCALCULIA)) or DYSCALCULIA in self.accommodations

    @property
    def display_name(self) -> str:
        suffix = f" ({DYSCALCULIA})" if self.has_dyscalculia else ""
        return (self.name or "—") + suffix

    def as_raw(self) -> dict:
        """Back to the loose input shape, so a Summary can be re-normalized."""
        return {
            **self.extra,
            "name": self.name, "class": self.klass, "gameId": self.game_id,
            "mode": self.mode, "seconds": self.seconds, "score": self.score,
            "total": self.total,
            "questions": [q.as_raw() for q in self.questions],
            "goals": list(self.goals), "flags": dict(self.flags),
            "accommodations": list(self.accommodations), "date": self.date,
        }


# ── Normalization ────────────────────────────────────────────────────────────

def _first_truthy(raw: Mapping, keys: Sequence[str]):
    for key in keys:
        if raw.get(key):
            return raw[key]
    return None


def _first_present(raw: Mapping, keys: Sequence[str]):
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _question_row(item) -> QuestionRow:
    if isinstance(item, QuestionRow):
        return item
    if isinstance(item, str):
        return QuestionRow(question=item)
    if not isinstance(item, Mapping):
        return QuestionRow(question="" if item is None else str(item), is_correct=False)
    question = _first_present(item, ("question", "q"))
    ok = _first_present(item, ("isCorrect", "ok"))
    return QuestionRow(
        question="" if question is None else str(question),
        correct_answer=safe(_first_present(item, ("correctAnswer", "correct"))),
        given_answer=safe(_first_present(item, GIVEN_KEYS)),
        is_correct=ok is not None and ok in (True, "ok"),
        points=item.get("points"),
        secs=item.get("secs"),
    )


def _goals(value) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(g) for g in value if g)
    if value:
        return tuple(g for g in re.split(r"[,\s]+", str(value)) if g)
    return ()


def _date(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def normalize_summary(raw=None, identity: IdentitySource | None = None) -> Summary:
    """
    Build a ``Summary`` from ``raw``. Never fails on missing or odd fields:
    each one has a terminal default. Only a non-mapping ``raw`` is rejected.
    """
    if raw is None:
        raw = {}
    elif isinstance(raw, Summary):
        raw = raw.as_raw()
    elif not isinstance(raw, Mapping):
        raise TypeError(f"summary must be a mapping, got {type(raw).__name__}")
    identity = identity or IdentitySource.from_context()

    name = safe(_first_truthy(raw, NAME_KEYS)) or identity.resolve("name")
    klass = safe(_first_truthy(raw, CLASS_KEYS)) or identity.resolve("class")
    game_id = safe(raw.get("gameId")) or identity.resolve("gameId")

    mode = mode_label(raw.get("mode"))
    if mode not in MODES:
        mode = "vrij"

    raw_questions = raw.get("questions")
    questions = tuple(_question_row(q) for q in raw_questions) \
        if isinstance(raw_questions, (list, tuple)) else ()

    seconds = max(0, round_half_up(to_number(raw.get("seconds"))))
    score = to_number(raw.get("score"))
    total = max(0, to_number(raw.get("total")) or len(questions))

    raw_flags = raw.get("flags")
    flags = {str(k): bool(v) for k, v in raw_flags.items()} \
        if isinstance(raw_flags, Mapping) else {}

    raw_acc = raw.get("accommodations")
    accommodations = tuple(str(a) for a in raw_acc) \
        if isinstance(raw_acc, (list, tuple)) else ()
    if not accommodations and flags.get(DYSCALCULIA):
        accommodations = (DYSCALCULIA,)

    extra = {k: v for k, v in raw.items() if k not in _KNOWN_KEYS}

    return Summary(
        name=name, klass=klass, game_id=game_id, mode=mode,
        seconds=seconds, score=score, total=total, questions=questions,
        goals=_goals(raw.get("goals")), flags=MappingProxyType(flags),
        accommodations=accommodations, date=_date(raw.get("date")),
        extra=MappingProxyType(extra),
    )


# ── Table export metadata ────────────────────────────────────────────────────

def make_meta(options: Mapping | None = None) -> dict:
    """
    Build the ``meta`` mapping for a table export from game-side counters.

    Score falls back to ``ok`` and then to ``total - err``; total falls back
    to ``score + err``. ``includeScore=False`` / ``includeDate=False`` leave
    those fields out.
    """
    cfg = dict(options or {})
    extra = cfg.get("extra")
    if extra is None:
        extra = []
    elif isinstance(extra, (list, tuple)):
        extra = [str(e) for e in extra]
    else:
        extra = [str(extra)]

    err = cfg.get("err")
    if cfg.get("includeScore") is False:
        score = None
    else:
        score = _first_present(cfg, ("score", "ok"))
        if score is None and cfg.get("total") is not None:
            score = cfg["total"] - (err or 0)

    total = cfg.get("total")
    if total is None and score is not None and err is not None:
        total = score + err

    if cfg.get("includeDate") is False:
        date = None
    else:
        date = _date(cfg.get("date")) or datetime.now().astimezone()

    return {
        "name": cfg.get("name") or "-",
        "class": cfg.get("class") or cfg.get("klas") or cfg.get("group") or "",
        "gameId": cfg.get("gameId") or "",
        "mode": mode_label(cfg.get("mode")),
        "score": score,
        "total": total,
        "seconds": max(0, int(to_number(cfg.get("seconds")) // 1)),
        "goals": cfg.get("goals"),
        "flags": cfg.get("flags"),
        "accommodations": cfg.get("accommodations"),
        "date": date,
        "extra": extra or None,
    }
