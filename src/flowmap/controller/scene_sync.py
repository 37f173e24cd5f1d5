"""
Scene Synchronizer
==================
Keeps the rendered route groups in step with the currently visible records.

Why is this file needed?
------------------------
1. Keyed diff: Each call to `sync` partitions the rendered groups against the
   new snapshot by record id: new ids enter, kept ids update, missing ids
   exit. Groups are never rebuilt just because the snapshot was recomputed.
2. Atomicity: Records are validated before the scene is touched, so an
   invalid snapshot leaves the previous frame intact.
3. Re-projection: `repaint` refreshes the geometry of every group after a
   viewport change without creating or removing any.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Hashable, Iterable, Optional

from PySide6.QtWidgets import QGraphicsScene

from flowmap import config
from flowmap.controller.color_scale import ByteSizeColorScale
from flowmap.controller.overlay import InteractionOverlay
from flowmap.controller.viewport import ViewportController
from flowmap.model.flows import FlowRecord, validate_records
from flowmap.view.widgets.route_items import RouteGroup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    entered: frozenset = frozenset()
    updated: frozenset = frozenset()
    exited: frozenset = frozenset()


class SceneSynchronizer:
    """
    Args:
        scene: Scene the route groups are added to.
        viewport: Source of the current projector.
        overlay: Receives hover details; hidden when the hovered group exits.
        arrow_size: Arrowhead size in screen pixels.
    """
    def __init__(
        self,
        scene: QGraphicsScene,
        viewport: ViewportController,
        overlay: Optional[InteractionOverlay] = None,
        arrow_size: float = config.ARROW_SIZE
    ) -> None:
        self.scene = scene
        self.viewport = viewport
        self.overlay = overlay
        self.arrow_size = arrow_size

        self._groups: dict[Hashable, RouteGroup] = {}
        self._color_scale: Optional[ByteSizeColorScale] = None
        self._hovered_id: Optional[Hashable] = None

    @property
    def groups(self) -> dict[Hashable, RouteGroup]:
        return dict(self._groups)

    @property
    def rendered_ids(self) -> set[Hashable]:
        return set(self._groups)

    @property
    def color_scale(self) -> Optional[ByteSizeColorScale]:
        return self._color_scale

    def sync(self, records: Iterable[FlowRecord], color_scale: Optional[ByteSizeColorScale] = None) -> SyncResult:
        """
        Reconcile the rendered groups with a snapshot of records.

        Args:
            records: Records to show; ids must be unique.
            color_scale: Byte size -> color. Defaults to a scale over the snapshot.

        Returns:
            Ids that entered, were updated and exited.

        Raises:
            InvalidRecord: If any record is invalid. The scene is left untouched.
        """
        snapshot = validate_records(records)
        if color_scale is None:
            color_scale = ByteSizeColorScale.from_records(snapshot.values())

        restyle = color_scale != self._color_scale
        self._color_scale = color_scale
        projector = self.viewport.projector

        current = set(self._groups)
        incoming = set(snapshot)
        exited = current - incoming
        updated = current & incoming
        entered = incoming - current

        for rid in exited:
            self._remove(rid)

        for rid in updated:
            group = self._groups[rid]
            record = snapshot[rid]
            resized = record.byte_size != group.record.byte_size
            if group.set_record(record):
                group.update_geometry(projector, self.arrow_size)
            if restyle or resized:
                group.set_color(color_scale(record.byte_size))

        # insertion order follows the snapshot so later records draw on top
        for rid, record in snapshot.items():
            if rid in entered:
                self._add(record, color_scale, projector)

        if entered or exited:
            logger.debug(f"Sync: +{len(entered)} ~{len(updated)} -{len(exited)}")
        return SyncResult(frozenset(entered), frozenset(updated), frozenset(exited))

    def repaint(self) -> None:
        """Re-project every group with the viewport's current projector."""
        projector = self.viewport.projector
        for group in self._groups.values():
            group.update_geometry(projector, self.arrow_size)

    def clear(self) -> None:
        for rid in list(self._groups):
            self._remove(rid)

    # ---- internals ----

    def _add(self, record: FlowRecord, color_scale: ByteSizeColorScale, projector) -> None:
        group = RouteGroup(record, color_scale(record.byte_size))
        rid = record.id
        group.route.bind_hover(lambda pos, rid=rid: self._hover_transfer(rid, pos), self._hover_leave)
        group.marker.bind_hover(lambda pos, rid=rid: self._hover_location(rid, pos, source=True), self._hover_leave)
        group.arrow.bind_hover(lambda pos, rid=rid: self._hover_location(rid, pos, source=False), self._hover_leave)
        group.update_geometry(projector, self.arrow_size)
        self.scene.addItem(group)
        self._groups[rid] = group

    def _remove(self, rid: Hashable) -> None:
        group = self._groups.pop(rid)
        self.scene.removeItem(group)
        if rid == self._hovered_id:
            self._hover_leave()

    def _hover_transfer(self, rid: Hashable, position) -> None:
        group = self._groups.get(rid)
        if group is None or self.overlay is None:
            return
        self._hovered_id = rid
        self.overlay.show_transfer_info(group.record, position)

    def _hover_location(self, rid: Hashable, position, source: bool) -> None:
        group = self._groups.get(rid)
        if group is None or self.overlay is None:
            return
        self._hovered_id = rid
        geo = group.record.src_geo if source else group.record.dst_geo
        self.overlay.show_location_info(geo, position)

    def _hover_leave(self) -> None:
        self._hovered_id = None
        if self.overlay is not None:
            self.overlay.hide()
