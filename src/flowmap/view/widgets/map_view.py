"""
Map View (QGraphicsView)
========================
Displays the map scene and turns mouse input into viewport gestures.

Why is this file needed?
------------------------
Zoom and pan are applied by the projector (not by a view transform), so the
view itself always shows the scene 1:1 and only forwards gestures:
- wheel: zoom around the pointer,
- left drag: pan the flat map,
- Ctrl + drag or right drag: rotate the globe.
"""
import logging
from typing import Optional

from PySide6.QtCore import QPointF, Qt
from PySide6.QtGui import QBrush, QColor, QPainter
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QWidget

from flowmap import config
from flowmap.controller.viewport import ViewportController

logger = logging.getLogger(__name__)


class MapView(QGraphicsView):
    def __init__(
        self,
        scene: QGraphicsScene,
        controller: ViewportController,
        parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(scene, parent)
        self.controller = controller

        self.setRenderHint(QPainter.Antialiasing)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignLeft | Qt.AlignTop)
        self.setFrameShape(QGraphicsView.NoFrame)
        self.setBackgroundBrush(QBrush(QColor(config.BACKGROUND_COLOR)))
        self.setMouseTracking(True)
        self.setMinimumSize(320, 200)

        self._last_pos: Optional[QPointF] = None
        self._rotating = False

    # --- GESTURES ---

    def wheelEvent(self, event) -> None:
        steps = event.angleDelta().y() / 120.0
        if steps == 0:
            event.ignore()
            return
        pos = event.position()
        self.controller.zoom(config.WHEEL_ZOOM_STEP ** steps, (pos.x(), pos.y()))
        event.accept()

    def mousePressEvent(self, event) -> None:
        if event.button() in (Qt.LeftButton, Qt.RightButton):
            self._last_pos = event.position()
            self._rotating = event.button() == Qt.RightButton
            self.viewport().setCursor(Qt.ClosedHandCursor)
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:
        if self._last_pos is None:
            # hover handling for the scene items
            super().mouseMoveEvent(event)
            return

        pos = event.position()
        delta = pos - self._last_pos
        self._last_pos = pos
        modifier = self._rotating or bool(event.modifiers() & Qt.ControlModifier)
        self.controller.drag(delta.x(), delta.y(), modifier)
        event.accept()

    def mouseReleaseEvent(self, event) -> None:
        if self._last_pos is not None:
            self._last_pos = None
            self._rotating = False
            self.viewport().unsetCursor()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        size = self.viewport().size()
        self.controller.resize(size.width(), size.height())
