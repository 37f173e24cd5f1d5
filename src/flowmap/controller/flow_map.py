"""
Flow Map Controller
===================
Wires the model, the controllers and the scene together.

Why is this file needed?
------------------------
It acts as the host that the individual controllers know nothing about:
1. Dataset assignment: validates the records, builds the color scale and
   rewinds playback.
2. Cursor -> scene: every cursor change filters the dataset and hands the
   visible records to the SceneSynchronizer.
3. Viewport -> scene: every viewport change re-projects the boundaries and
   repaints the route groups.

The MainWindow owns one instance; tests use it headless with their own scene.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from PySide6.QtCore import QObject, QRectF, Signal
from PySide6.QtWidgets import QGraphicsScene

from flowmap.controller.color_scale import ByteSizeColorScale
from flowmap.controller.overlay import InteractionOverlay
from flowmap.controller.playback import PlaybackScheduler
from flowmap.controller.projection import GeoProjector
from flowmap.controller.scene_sync import SceneSynchronizer, SyncResult
from flowmap.controller.viewport import ViewportController
from flowmap.model.errors import EmptyDataset
from flowmap.model.flows import FlowRecord, validate_records, visible_at
from flowmap.model.geometry import MapFeature
from flowmap.view.widgets.boundary_layer import BoundaryLayer

logger = logging.getLogger(__name__)


class FlowMapController(QObject):
    # Signal: (list[FlowRecord])
    dataset_changed = Signal(object)
    # Signal: (SyncResult)
    scene_synced = Signal(object)

    def __init__(
        self,
        scene: Optional[QGraphicsScene] = None,
        viewport: Optional[ViewportController] = None,
        overlay: Optional[InteractionOverlay] = None,
        scheduler: Optional[PlaybackScheduler] = None
    ) -> None:
        super().__init__()
        self.scene = scene if scene is not None else QGraphicsScene()
        self.viewport = viewport or ViewportController()
        self.overlay = overlay or InteractionOverlay()
        self.scheduler = scheduler or PlaybackScheduler()
        self.synchronizer = SceneSynchronizer(self.scene, self.viewport, self.overlay)

        self.boundaries = BoundaryLayer()
        self.scene.addItem(self.boundaries)

        self._records: list[FlowRecord] = []
        self._color_scale: Optional[ByteSizeColorScale] = None
        self._last_sync: Optional[SyncResult] = None

        self.viewport.viewport_changed.connect(self._on_viewport_changed)
        self.scheduler.cursor_changed.connect(self._on_cursor_changed)
        self._update_scene_rect()

    @property
    def records(self) -> list[FlowRecord]:
        return list(self._records)

    @property
    def color_scale(self) -> Optional[ByteSizeColorScale]:
        return self._color_scale

    @property
    def last_sync(self) -> Optional[SyncResult]:
        return self._last_sync

    # --- INPUTS ---

    def set_map(self, features: Sequence[MapFeature]) -> None:
        self.boundaries.set_features(features)
        self.boundaries.update_geometry(self.viewport.projector)

    def set_dataset(self, records: Iterable[FlowRecord], autoplay: bool = False) -> None:
        """
        Replace the dataset and rewind playback to its first instant.

        Raises:
            InvalidRecord: If a record is invalid; the current dataset is kept.
            EmptyDataset: If there are no records; the scene is cleared.
        """
        records = list(validate_records(records).values())

        self.scheduler.pause()
        self._records = records
        self._color_scale = ByteSizeColorScale.from_records(records)
        self.dataset_changed.emit(self.records)

        try:
            # emits cursor_changed, which performs the first sync
            self.scheduler.load(records)
        except EmptyDataset:
            self.synchronizer.clear()
            self._last_sync = None
            raise

        if autoplay:
            self.scheduler.play()

    # --- SLOTS ---

    def _on_cursor_changed(self, cursor_time: int) -> None:
        visible = visible_at(self._records, cursor_time)
        self._last_sync = self.synchronizer.sync(visible, self._color_scale)
        self.scene_synced.emit(self._last_sync)

    def _on_viewport_changed(self, projector: GeoProjector) -> None:
        self._update_scene_rect()
        self.boundaries.update_geometry(projector)
        self.synchronizer.repaint()

    def _update_scene_rect(self) -> None:
        width, height = self.viewport.size
        self.scene.setSceneRect(QRectF(0, 0, width, height))
