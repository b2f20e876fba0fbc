"""Immutable player state records pushed to the UI."""

from dataclasses import dataclass
from typing import Optional

from poolsuite_cli.domain.catalogue.models import Track


@dataclass(frozen=True)
class Snapshot:
    """What the renderer needs to draw one frame.

    ``index`` is 1-based for display; 0 means no track is loaded.
    """

    playlist_key: str
    available_keys: tuple[str, ...] = ()
    track: Optional[Track] = None
    index: int = 0
    total: int = 0
    position: float = 0.0
    duration: float = 0.0
    paused: bool = False
    loading_message: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.loading_message is not None or self.track is None

    @property
    def progress(self) -> float:
        """Fraction of the track played, clamped to [0, 1]."""
        if self.duration <= 0:
            return 0.0
        return max(0.0, min(1.0, self.position / self.duration))


def loading_snapshot(
    playlist_key: str, available_keys: tuple[str, ...], message: str
) -> Snapshot:
    return Snapshot(
        playlist_key=playlist_key,
        available_keys=available_keys,
        loading_message=message,
    )
