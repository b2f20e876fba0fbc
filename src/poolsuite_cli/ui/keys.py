"""Keyboard input for the player UI.

Keystrokes from blessed are reduced to the small set of key ids the playback
engine understands and delivered onto the event loop.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from blessed import Terminal
from blessed.keyboard import Keystroke
from loguru import logger

NAMED_KEYS = {
    "KEY_LEFT": "left",
    "KEY_RIGHT": "right",
    "KEY_TAB": "tab",
    "KEY_ESCAPE": "escape",
}

CHAR_KEYS = {
    " ": "space",
    "\t": "tab",
    "\x03": "q",  # Ctrl+C
    "n": "n",
    "p": "p",
    "q": "q",
    ",": ",",
    ".": ".",
    "<": "<",
    ">": ">",
}


def parse_key(key: Keystroke) -> Optional[str]:
    """
    Map a keystroke to a player key id.

    Args:
        key: blessed Keystroke

    Returns:
        One of left, right, space, n, p, q, tab, escape or a seek/skip
        alias; None for keys the player ignores
    """
    if not key:
        return None
    if key.is_sequence:
        return NAMED_KEYS.get(key.name)
    return CHAR_KEYS.get(str(key).lower() if str(key).isalpha() else str(key))


class KeyReader:
    """Pumps ``Terminal.inkey`` in a worker thread and dispatches key ids."""

    def __init__(
        self,
        term: Terminal,
        dispatch: Callable[[str], Awaitable[None]],
        poll_timeout: float = 0.1,
    ):
        self.term = term
        self.dispatch = dispatch
        self.poll_timeout = poll_timeout
        self._tasks: set[asyncio.Task] = set()

    async def run(self) -> None:
        while True:
            key = await asyncio.to_thread(self.term.inkey, timeout=self.poll_timeout)
            name = parse_key(key)
            if name is None:
                continue
            # Handlers may await IPC round trips; keep reading meanwhile
            task = asyncio.create_task(self.dispatch(name))
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Key handler failed")
