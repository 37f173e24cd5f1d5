"""
View & Playback State (Data Model)
==================================
Value types describing what the map currently shows.

Why is this file needed?
------------------------
1. Ownership: ViewportState is owned by the ViewportController and
   PlaybackState by the PlaybackScheduler. Everything else only reads them.
2. Decoupling: Controllers and views exchange these objects through Qt
   signals instead of reaching into each other's attributes.

Classes:
    ProjectionKind: Flat (Mercator) or globe (orthographic).
    ViewportState: Immutable zoom/pan/rotation snapshot.
    PlaybackMode / RunState: Orthogonal flags of the playback state machine.
    PlaybackState: Cursor and window of the time scrubber.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from flowmap.model.errors import InvalidProjection


class ProjectionKind(str, Enum):
    """Supported map projections."""
    FLAT = "mercator"
    GLOBE = "orthographic"

    @classmethod
    def parse(cls, value: ProjectionKind | str) -> ProjectionKind:
        """
        Resolve a projection kind from an enum member, its value or an alias.

        Raises:
            InvalidProjection: If the value names no supported projection.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            aliases = {"flat": cls.FLAT, "map": cls.FLAT, "globe": cls.GLOBE}
            if key in aliases:
                return aliases[key]
            for member in cls:
                if member.value == key:
                    return member
        raise InvalidProjection(value)


@dataclass(frozen=True)
class ViewportState:
    """
    Zoom/pan/rotation snapshot.

    A base-projected point b ends up on screen at ``scale * (b + translate)``,
    so ``translate`` is expressed in unscaled map units.
    """
    projection_kind: ProjectionKind = ProjectionKind.FLAT
    scale: float = 1.0
    translate: tuple[float, float] = (0.0, 0.0)
    rotation: tuple[float, float] = (0.0, 0.0)  # (lambda, phi) in degrees, globe only

    def evolve(self, **changes) -> ViewportState:
        return replace(self, **changes)


class PlaybackMode(Enum):
    STOP_AT_END = "stop"
    LOOP_AT_END = "loop"


class RunState(Enum):
    PAUSED = "paused"
    PLAYING = "playing"


@dataclass
class PlaybackState:
    """Cursor of the time scrubber. Instants are epoch milliseconds."""
    cursor_time: int
    min_time: int
    max_time: int
    mode: PlaybackMode = PlaybackMode.STOP_AT_END
    run_state: RunState = RunState.PAUSED

    @property
    def span(self) -> int:
        return self.max_time - self.min_time

    @property
    def progress(self) -> Optional[float]:
        """Cursor position within the window as a fraction, None for a zero-length window."""
        if self.span <= 0:
            return None
        return (self.cursor_time - self.min_time) / self.span
