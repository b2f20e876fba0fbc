"""Player context for explicit state passing.

PlayerContext holds the renderer handle and the single active key handler.
It is created once by the CLI and passed to the orchestrator, replacing any
module-level UI state.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol

if TYPE_CHECKING:
    from poolsuite_cli.domain.playback.snapshot import Snapshot

KeyHandler = Callable[[str], Awaitable[None]]


class Renderer(Protocol):
    def render(self, snapshot: "Snapshot") -> None: ...


@dataclass
class PlayerContext:
    """Session-wide UI wiring passed by reference through the orchestrator.

    Attributes:
        renderer: Consumer of snapshots (the terminal UI)
        key_handler: The one handler currently receiving key ids, if any
    """

    renderer: Renderer
    key_handler: Optional[KeyHandler] = None

    def bind_key_handler(self, handler: KeyHandler) -> None:
        """Make `handler` the only receiver of key ids (replaces any other)."""
        self.key_handler = handler

    def clear_key_handler(self) -> None:
        self.key_handler = None

    async def dispatch_key(self, key: str) -> None:
        handler = self.key_handler
        if handler is not None:
            await handler(key)

    def render(self, snapshot: "Snapshot") -> None:
        self.renderer.render(snapshot)
