from html import escape
from typing import Optional

from PySide6.QtCore import QPoint, Qt
from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout, QWidget

from flowmap.controller.overlay import TooltipContent

TOOLTIP_OFFSET = QPoint(12, 12)


def tooltip_html(content: TooltipContent) -> str:
    rows = "".join(
        f"<tr><td style='color:#666; padding-right:8px'>{escape(label)}</td>"
        f"<td>{escape(value)}</td></tr>"
        for label, value in content.rows
    )
    return f"<b>{escape(content.header)}</b><table>{rows}</table>"


class TooltipWidget(QFrame):
    """Floating frame over the map view that renders the overlay's current content."""
    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setFrameShape(QFrame.StyledPanel)
        self.setAttribute(Qt.WA_TransparentForMouseEvents, True)
        self.setStyleSheet(
            "TooltipWidget { background-color: rgba(255, 255, 255, 230);"
            " border: 1px solid #999; border-radius: 3px; }"
        )

        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 4, 6, 4)
        self.label = QLabel()
        self.label.setTextFormat(Qt.RichText)
        layout.addWidget(self.label)
        self.hide()

    def on_content_changed(self, content: Optional[TooltipContent], position) -> None:
        if content is None:
            self.hide()
            return

        self.label.setText(tooltip_html(content))
        self.adjustSize()
        if position is not None:
            self._move_near(QPoint(int(position[0]), int(position[1])))
        self.show()
        self.raise_()

    def _move_near(self, point: QPoint) -> None:
        target = point + TOOLTIP_OFFSET
        parent = self.parentWidget()
        if parent is not None:
            # keep the frame inside the parent
            x = min(target.x(), parent.width() - self.width())
            y = min(target.y(), parent.height() - self.height())
            target = QPoint(max(0, x), max(0, y))
        self.move(target)
