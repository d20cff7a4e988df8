"""
prompt.py — The "who are you?" prompt shown before a session starts.

A ``NamePrompt`` is a small state machine, independent of any UI toolkit:

    IDLE ──open()──▶ SHOWN ──confirm()/Enter──▶ CONFIRMED ──▶ CLOSED
                       │
                       └──cancel()/Escape────▶ CANCELLED ──▶ CLOSED

A front end (see ``bot.PromptView``) renders it, forwards user edits with
``set_name`` / ``set_class`` / ``toggle`` and ends it with ``confirm`` or
``cancel``. Confirming with an empty name keeps the prompt open. The result
is delivered exactly once; later confirm/cancel calls are ignored.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Mapping, Optional, Sequence

from . import config
from .storage import LocalStore
from .summary import mode_label

log = logging.getLogger(__name__)


class PromptState(Enum):
    IDLE = auto()
    SHOWN = auto()
    CONFIRMED = auto()
    CANCELLED = auto()
    CLOSED = auto()


class PromptError(RuntimeError):
    pass


@dataclass(frozen=True)
class FlagToggle:
    """An extra yes/no question, e.g. ``FlagToggle("dyscalculie", "Ik heb dyscalculie")``."""
    id: str = "flag"
    label: str = ""
    checked: bool = False

    @classmethod
    def coerce(cls, value) -> "FlagToggle":
        if isinstance(value, FlagToggle):
            return value
        if isinstance(value, Mapping):
            flag_id = str(value.get("id") or "flag").strip()
            return cls(id=flag_id, label=str(value.get("label") or flag_id),
                       checked=bool(value.get("checked")))
        return cls(id=str(value).strip() or "flag", label=str(value))


# ── Results ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SimpleResult:
    """Returned when no extra toggles were asked for."""
    name: str

    def legacy(self):
        return self.name


@dataclass(frozen=True)
class ExtendedResult:
    name: str
    klass: str = ""
    flags: dict[str, bool] = field(default_factory=dict)

    def legacy(self):
        return {"name": self.name, "class": self.klass, "flags": dict(self.flags)}


PromptResult = SimpleResult | ExtendedResult


# ── State machine ────────────────────────────────────────────────────────────

class NamePrompt:

    def __init__(self, mode: str = "taak", extra_flags: Sequence = (),
                 store: LocalStore | None = None):
        self.mode = mode_label(mode)
        self.extra_flags = [FlagToggle.coerce(f) for f in extra_flags]
        self.store = LocalStore() if store is None else store

        self.state = PromptState.IDLE
        self.outcome: Optional[PromptState] = None   # CONFIRMED or CANCELLED
        self.name = ""
        self.klass = ""
        self.flags: dict[str, bool] = {}
        self.focused: Optional[str] = None

        self._listeners: list[Callable[[], None]] = []
        self._result: Optional[PromptResult] = None
        self._waiters: list[asyncio.Future] = []

    @property
    def title(self) -> str:
        return "Start toets" if self.mode == "toets" else "Start taak"

    @property
    def closed(self) -> bool:
        return self.state is PromptState.CLOSED

    # ── lifecycle ──

    def open(self):
        """Show the prompt, prefilled with the remembered name and class."""
        if self.state is not PromptState.IDLE:
            raise PromptError(f"prompt cannot be opened from {self.state.name}")
        self.name = (self.store.get(config.STORE_NAME_KEY) or "").strip()
        self.klass = (self.store.get(config.STORE_CLASS_KEY) or "").strip()
        self.flags = {f.id: f.checked for f in self.extra_flags}
        self.focused = "name"
        self.state = PromptState.SHOWN

    def add_listener(self, teardown: Callable[[], None]):
        """Register a callback that removes UI state when the prompt closes."""
        self._listeners.append(teardown)

    # ── user input ──

    def set_name(self, value: str):
        if self.state is PromptState.SHOWN:
            self.name = value or ""

    def set_class(self, value: str):
        if self.state is PromptState.SHOWN:
            self.klass = value or ""

    def toggle(self, flag_id: str, checked: bool | None = None):
        if self.state is not PromptState.SHOWN or flag_id not in self.flags:
            return
        self.flags[flag_id] = (not self.flags[flag_id]) if checked is None else bool(checked)

    def press(self, key: str):
        if key == "Escape":
            self.cancel()
        elif key == "Enter":
            self.confirm()

    def confirm(self) -> bool:
        """Accept the input. Returns False (and keeps the prompt open) on an empty name."""
        if self.state is not PromptState.SHOWN:
            return False
        name = self.name.strip()
        if not name:
            self.focused = "name"
            return False
        klass = self.klass.strip()
        self.store.set(config.STORE_NAME_KEY, name)
        self.store.set(config.STORE_CLASS_KEY, klass)

        self.state = PromptState.CONFIRMED
        if self.extra_flags:
            result = ExtendedResult(name=name, klass=klass, flags=dict(self.flags))
        else:
            result = SimpleResult(name=name)
        self._close(result)
        return True

    def cancel(self):
        if self.state is not PromptState.SHOWN:
            return
        self.state = PromptState.CANCELLED
        self._close(None)

    def _close(self, result: Optional[PromptResult]):
        self.outcome = self.state
        self.state = PromptState.CLOSED
        self.focused = None
        self._result = result
        listeners, self._listeners = self._listeners, []
        for teardown in listeners:
            teardown()
        for waiter in self._waiters:
            if not waiter.done():
                waiter.set_result(result)
        self._waiters.clear()

    # ── awaiting ──

    @property
    def result(self) -> Optional[PromptResult]:
        return self._result

    async def wait(self) -> Optional[PromptResult]:
        """Suspend until the user confirms or cancels. No timeout."""
        if self.closed:
            return self._result
        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        return await waiter


async def ask_name(mode_or_opts="taak", opts: Mapping | None = None, *,
                   store: LocalStore | None = None,
                   present: Callable[[NamePrompt], object] | None = None
                   ) -> Optional[PromptResult]:
    """
    Open a prompt and wait for it. ``mode_or_opts`` is either a mode string
    (with ``opts`` holding ``extraFlags``) or one options mapping carrying
    ``mode`` and ``extraFlags``. ``present`` shows the prompt to the user;
    it may be a plain function or a coroutine function.
    """
    if isinstance(mode_or_opts, str):
        mode, opts = mode_or_opts, dict(opts or {})
    elif isinstance(mode_or_opts, Mapping):
        opts = dict(mode_or_opts)
        mode = opts.get("mode") or "taak"
    else:
        mode, opts = "taak", dict(opts or {})
    extra = opts.get("extraFlags", opts.get("extra_flags"))
    extra_flags = list(extra) if isinstance(extra, (list, tuple)) else []

    prompt = NamePrompt(mode, extra_flags, store)
    prompt.open()
    if present is not None:
        shown = present(prompt)
        if inspect.isawaitable(shown):
            await shown
    result = await prompt.wait()
    log.debug("Prompt closed with %s", prompt.outcome.name if prompt.outcome else None)
    return result
