from __future__ import annotations

import logging
from typing import Optional, Sequence

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QPen
from PySide6.QtWidgets import QGraphicsItem, QGraphicsPathItem

from flowmap import config
from flowmap.controller.projection import GeoProjector, ProjectedPath
from flowmap.model.geometry import MapFeature
from flowmap.view.widgets.route_items import painter_path

logger = logging.getLogger(__name__)


class BoundaryLayer(QGraphicsItem):
    """
    Country outlines drawn underneath the routes.

    Each feature gets its own path item; base coordinates are cached the same
    way as for route groups.
    """
    def __init__(self, features: Sequence[MapFeature] = ()) -> None:
        super().__init__()
        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemHasNoContents, True)
        self.setZValue(0)

        self._pen = QPen(QColor(config.LAND_EDGE_COLOR), 0.5)
        self._pen.setCosmetic(True)
        self._brush = QBrush(QColor(config.LAND_FILL_COLOR))

        self._items: list[QGraphicsPathItem] = []
        self._features: list[MapFeature] = []
        self._base_paths: list[ProjectedPath] = []
        self._base_key = None
        self.set_features(features)

    def boundingRect(self) -> QRectF:
        return QRectF()

    def paint(self, painter, option, widget=None) -> None:
        pass

    @property
    def features(self) -> list[MapFeature]:
        return list(self._features)

    def set_features(self, features: Sequence[MapFeature]) -> None:
        for item in self._items:
            item.setParentItem(None)
            if item.scene() is not None:
                item.scene().removeItem(item)
        self._features = list(features)
        self._items = []
        for feature in self._features:
            item = QGraphicsPathItem(self)
            item.setPen(self._pen)
            item.setBrush(self._brush)
            item.setToolTip(feature.name)
            self._items.append(item)
        self._base_paths = []
        self._base_key = None

    def update_geometry(self, projector: Optional[GeoProjector]) -> None:
        if projector is None or not self._features:
            return
        if projector.base_key != self._base_key:
            self._base_paths = [projector.base_path_for(f) for f in self._features]
            self._base_key = projector.base_key
            logger.debug(f"Re-projected {len(self._features)} boundary features.")

        for item, base in zip(self._items, self._base_paths):
            path = projector.transform_path(base)
            item.setPath(painter_path(path))
            # Qt would close open runs with a chord when filling
            filled = all(segment.closed for segment in path.segments)
            item.setBrush(self._brush if filled else QBrush(Qt.NoBrush))
