"""
Viewport Controller
===================
Owns the ViewportState and turns user gestures into state changes.

Why is this file needed?
------------------------
1. Ownership: Only this class mutates zoom, pan and rotation. Everything else
   reads `state` or the derived `projector`.
2. Gating: Panning is a flat-map gesture and rotation a globe gesture.
   Disabled combinations are ignored here instead of at every call site.
3. Notification: Every change rebuilds the GeoProjector and emits
   `viewport_changed`, so the scene and the boundary layer can re-project.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from PySide6.QtCore import QObject, Signal

from flowmap import config
from flowmap.controller.projection import GeoProjector
from flowmap.model.state import ProjectionKind, ViewportState

logger = logging.getLogger(__name__)


class ViewportController(QObject):
    # Signal: (projector)
    viewport_changed = Signal(object)
    projection_changed = Signal(object)

    def __init__(
        self,
        width: int = config.VIEWPORT_WIDTH,
        height: int = config.VIEWPORT_HEIGHT,
        projection_kind: ProjectionKind | str = config.DEFAULT_PROJECTION
    ) -> None:
        super().__init__()
        self._size = (int(width), int(height))
        self._state = ViewportState(projection_kind=ProjectionKind.parse(projection_kind))
        self._projector = GeoProjector(self._state, self._size)

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def projector(self) -> GeoProjector:
        return self._projector

    @property
    def size(self) -> tuple[int, int]:
        return self._size

    @property
    def projection_kind(self) -> ProjectionKind:
        return self._state.projection_kind

    def _apply(self, state: ViewportState, size: Optional[tuple[int, int]] = None) -> None:
        size = size or self._size
        # Build first: an invalid state must leave the current projector in place
        projector = GeoProjector(state, size)
        self._state = state
        self._size = size
        self._projector = projector
        self.viewport_changed.emit(projector)

    # --- PROJECTION ---

    def set_projection(self, kind: ProjectionKind | str) -> None:
        """
        Switch between flat map and globe. Zoom, pan and rotation are reset.

        Raises:
            InvalidProjection: If the kind is unknown; the current state is kept.
        """
        resolved = ProjectionKind.parse(kind)
        if resolved == self._state.projection_kind:
            return
        logger.info(f"Switching projection to {resolved.name}.")
        self._apply(ViewportState(projection_kind=resolved))
        self.projection_changed.emit(resolved)

    # --- GESTURES ---

    def zoom(self, factor: float, anchor: Optional[tuple[float, float]] = None) -> None:
        """
        Multiply the scale by `factor`, clamped to [MIN_SCALE, MAX_SCALE].

        Args:
            factor: Relative zoom; values > 1 zoom in.
            anchor: Screen position that stays fixed. Without one the
                translation is left unchanged.
        """
        if not isinstance(factor, (int, float)) or not math.isfinite(factor) or factor <= 0:
            logger.debug(f"Ignoring zoom factor {factor!r}")
            return

        s = self._state.scale
        new_s = min(config.MAX_SCALE, max(config.MIN_SCALE, s * factor))
        if new_s == s:
            return

        tx, ty = self._state.translate
        if anchor is not None:
            ax, ay = anchor
            tx = ax / new_s - ax / s + tx
            ty = ay / new_s - ay / s + ty
        self._apply(self._state.evolve(scale=new_s, translate=(tx, ty)))

    def pan(self, dx: float, dy: float) -> None:
        """Shift the flat map by a screen-space delta."""
        if self._state.projection_kind != ProjectionKind.FLAT:
            logger.debug("Ignoring pan on the globe")
            return
        if dx == 0 and dy == 0:
            return
        s = self._state.scale
        tx, ty = self._state.translate
        self._apply(self._state.evolve(translate=(tx + dx / s, ty + dy / s)))

    def rotate(self, dx: float, dy: float) -> None:
        """
        Rotate the globe by a pointer delta.

        The full viewport width maps to 360 degrees of longitude, the full
        height to 180 degrees of latitude (dragging down tilts south).
        """
        if self._state.projection_kind != ProjectionKind.GLOBE:
            logger.debug("Ignoring rotation on the flat map")
            return
        if dx == 0 and dy == 0:
            return

        width, height = self._size
        lam, phi = self._state.rotation
        lam += dx * 360.0 / max(width, 1)
        phi -= dy * 180.0 / max(height, 1)
        lam = (lam + 180.0) % 360.0 - 180.0
        phi = min(90.0, max(-90.0, phi))
        self._apply(self._state.evolve(rotation=(lam, phi)))

    def drag(self, dx: float, dy: float, modifier: bool = False) -> None:
        """Pan on the flat map; rotate the globe while the modifier is held."""
        if self._state.projection_kind == ProjectionKind.FLAT:
            if not modifier:
                self.pan(dx, dy)
        elif modifier:
            self.rotate(dx, dy)

    # --- SIZE ---

    def resize(self, width: int, height: int) -> None:
        size = (int(width), int(height))
        if size == self._size or size[0] <= 0 or size[1] <= 0:
            return
        self._apply(self._state, size)

    def reset(self) -> None:
        """Back to the initial zoom/pan/rotation of the current projection."""
        self._apply(ViewportState(projection_kind=self._state.projection_kind))
