"""
Route Scene Items
=================
Graphics items drawn for one flow record.

Why is this file needed?
------------------------
A rendered flow is a *group*: the route line, a dot on the source and an
arrowhead on the destination end. Grouping them under one parent item lets
the scene remove a flow atomically (removing the parent removes its
children) and re-project all three parts together.

Hovering a part calls back into the owner (the SceneSynchronizer), which
forwards the matching details to the tooltip overlay.
"""
from __future__ import annotations

from typing import Callable, Optional

import numpy as np
from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPainterPath, QPen, QPolygonF
from PySide6.QtWidgets import (
    QGraphicsEllipseItem, QGraphicsItem, QGraphicsPathItem, QGraphicsPolygonItem
)

from flowmap import config
from flowmap.controller.projection import GeoProjector, ProjectedPath
from flowmap.model.flows import FlowRecord
from flowmap.model.geometry_utils import arrow_points

HoverCallback = Callable[[Optional[tuple[float, float]]], None]


def painter_path(path: ProjectedPath) -> QPainterPath:
    """Convert projected polylines to a QPainterPath (one subpath per segment)."""
    qpath = QPainterPath()
    for segment in path.segments:
        pts = segment.points
        qpath.moveTo(float(pts[0, 0]), float(pts[0, 1]))
        for x, y in pts[1:]:
            qpath.lineTo(float(x), float(y))
        if segment.closed:
            qpath.closeSubpath()
    return qpath


class _Hoverable:
    """Mixin forwarding Qt hover events to plain callbacks."""
    _on_enter: Optional[HoverCallback] = None
    _on_leave: Optional[Callable[[], None]] = None

    def bind_hover(self, on_enter: HoverCallback, on_leave: Callable[[], None]) -> None:
        self._on_enter = on_enter
        self._on_leave = on_leave
        self.setAcceptHoverEvents(True)

    def hover_enter(self, position: Optional[tuple[float, float]] = None) -> None:
        if self._on_enter:
            self._on_enter(position)

    def hover_leave(self) -> None:
        if self._on_leave:
            self._on_leave()

    def hoverEnterEvent(self, event) -> None:
        pos = event.scenePos()
        self.hover_enter((pos.x(), pos.y()))
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event) -> None:
        self.hover_leave()
        super().hoverLeaveEvent(event)


class RouteLineItem(_Hoverable, QGraphicsPathItem):
    pass


class SourceMarkerItem(_Hoverable, QGraphicsEllipseItem):
    pass


class ArrowHeadItem(_Hoverable, QGraphicsPolygonItem):
    pass


class RouteGroup(QGraphicsItem):
    """
    Parent item of the three parts of a rendered flow.

    Base coordinates (before zoom/pan) are cached per projector `base_key`,
    so a zoom or pan only re-applies the affine.

    Args:
        record: The flow record drawn by this group.
        color: Stroke color of the route and fill of the arrowhead.
    """
    def __init__(self, record: FlowRecord, color: QColor) -> None:
        super().__init__()
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemHasNoContents, True)
        self.setZValue(1)

        self.record = record
        self.color = QColor(color)

        self.route = RouteLineItem(self)
        self.route.setBrush(Qt.BrushStyle.NoBrush)

        self.marker = SourceMarkerItem(self)
        self.marker.setPen(QPen(Qt.PenStyle.NoPen))
        self.marker.setBrush(QBrush(QColor(config.MARKER_COLOR)))

        self.arrow = ArrowHeadItem(self)

        self._base_key = None
        self._base_route = ProjectedPath()
        self._base_marker: Optional[np.ndarray] = None

        self.screen_path = ProjectedPath()
        self.marker_position: Optional[tuple[float, float]] = None
        self.arrow_points: list[tuple[float, float]] = []

        self.set_color(color)

    @property
    def record_id(self):
        return self.record.id

    def boundingRect(self) -> QRectF:
        return QRectF()

    def paint(self, painter, option, widget=None) -> None:
        pass

    # ---- record / style ----

    def set_record(self, record: FlowRecord) -> bool:
        """Swap the bound record. Returns True if its endpoints moved."""
        moved = (record.src_geo.lonlat != self.record.src_geo.lonlat
                 or record.dst_geo.lonlat != self.record.dst_geo.lonlat)
        self.record = record
        if moved:
            self._base_key = None
        return moved

    def set_color(self, color: QColor) -> None:
        self.color = QColor(color)
        pen = QPen(self.color, config.ROUTE_WIDTH)
        pen.setCosmetic(True)
        self.route.setPen(pen)
        self.arrow.setPen(QPen(self.color, 1.0))
        self.arrow.setBrush(QBrush(self.color))

    # ---- geometry ----

    def update_geometry(self, projector: GeoProjector, arrow_size: float = config.ARROW_SIZE) -> None:
        """Re-project route, marker and arrowhead with the given projector."""
        key = projector.base_key
        if key != self._base_key:
            self._base_route = projector.base_path_for(self.record.route_geometry())
            self._base_marker = projector.base_point(self.record.src_geo)
            self._base_key = key

        self.screen_path = projector.transform_path(self._base_route)
        self.route.setPath(painter_path(self.screen_path))
        self.route.setVisible(not self.screen_path.is_empty)

        self.marker_position = projector.transform_point(self._base_marker)
        if self.marker_position is None:
            self.marker.setVisible(False)
        else:
            x, y = self.marker_position
            r = config.MARKER_RADIUS
            self.marker.setRect(QRectF(x - r, y - r, 2 * r, 2 * r))
            self.marker.setVisible(True)

        if self.screen_path.is_empty:
            self.arrow_points = []
            self.arrow.setPolygon(QPolygonF())
            self.arrow.setVisible(False)
        else:
            self.arrow_points = arrow_points(self.screen_path.last_segment, arrow_size)
            self.arrow.setPolygon(QPolygonF([QPointF(x, y) for x, y in self.arrow_points]))
            self.arrow.setVisible(True)
