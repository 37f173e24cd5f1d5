"""
Interaction Overlay
===================
Tooltip state for the hovered route or marker.

Scene items report hovers here; the overlay builds a display-agnostic
descriptor and announces it with `content_changed`. The TooltipWidget (or a
test) decides how to render it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from PySide6.QtCore import QObject, Signal

from flowmap.model.flows import FlowRecord, GeoLocation
from flowmap.utils import date_format, elapsed, human_file_size, speed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TooltipContent:
    header: str
    rows: tuple[tuple[str, str], ...] = ()

    def value(self, label: str) -> Optional[str]:
        for row_label, row_value in self.rows:
            if row_label == label:
                return row_value
        return None


def transfer_content(record: FlowRecord) -> TooltipContent:
    start, end = record.start_timestamp, record.end_timestamp
    return TooltipContent(
        header="Transfer",
        rows=(
            ("DateTime Start", date_format(start)),
            ("DateTime End", date_format(end)),
            ("Duration", elapsed(start, end)),
            ("Size", human_file_size(record.byte_size)),
            ("Avg. Speed", speed(record.byte_size, end - start)),
        ),
    )


def location_content(geo: GeoLocation) -> TooltipContent:
    return TooltipContent(
        header=geo.ip_address,
        rows=(
            ("Hostname", geo.hostname),
            ("Organization", geo.organization),
            ("Region", geo.region),
        ),
    )


class InteractionOverlay(QObject):
    # Signal: (TooltipContent | None, screen position | None)
    content_changed = Signal(object, object)

    def __init__(self) -> None:
        super().__init__()
        self._current: Optional[TooltipContent] = None
        self._position: Optional[tuple[float, float]] = None

    @property
    def current(self) -> Optional[TooltipContent]:
        return self._current

    @property
    def position(self) -> Optional[tuple[float, float]]:
        return self._position

    def _show(self, content: TooltipContent, position: Optional[tuple[float, float]]) -> None:
        self._current = content
        self._position = position
        self.content_changed.emit(content, position)

    def show_transfer_info(self, record: FlowRecord, position: Optional[tuple[float, float]] = None) -> None:
        self._show(transfer_content(record), position)

    def show_location_info(self, geo: GeoLocation, position: Optional[tuple[float, float]] = None) -> None:
        self._show(location_content(geo), position)

    def hide(self) -> None:
        if self._current is None:
            return
        self._current = None
        self._position = None
        self.content_changed.emit(None, None)
