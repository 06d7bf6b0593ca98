from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import Termination
from ..matching.worker import EMPTY_SNAPSHOT, Snapshot


@dataclass
class PickerState:
    """All mutable picker state; owned by the event loop thread."""

    query: str = ""
    cursor: int = 0
    selection: set[int] = field(default_factory=set)
    highlighted: int = 0
    active_column: int = 0
    results_offset: int = 0
    results_height: int = 1
    results_wrap: bool = False
    header: str = ""
    footer: str = ""
    prompt: str = "> "
    status_message: str = ""
    status_message_until: float = 0.0
    overlay: int | None = None
    termination: Termination | None = None
    snapshot: Snapshot = EMPTY_SNAPSHOT
    history_index: int | None = None
    history_draft: str = ""
    screen_width: int = 80
    screen_height: int = 24
    dirty: bool = True
    force_redraw: bool = False
    pending_events: list[str] = field(default_factory=list)

    @property
    def terminated(self) -> bool:
        return self.termination is not None

    @property
    def highlighted_index(self) -> int | None:
        """Record index under the highlight, or ``None`` when nothing matches."""
        return self.snapshot.index_at(self.highlighted)

    @property
    def match_count(self) -> int:
        return len(self.snapshot)

    def emit(self, event_name: str) -> None:
        if event_name not in self.pending_events:
            self.pending_events.append(event_name)
