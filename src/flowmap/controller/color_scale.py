"""
Route color scale: transfer size -> stroke color.

Linear from `ROUTE_COLOR_LOW` at 0 bytes to `ROUTE_COLOR_HIGH` at the largest
transfer of the dataset. Two scales compare equal when their domain and
range do, which is how the scene decides whether routes need restyling.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Iterable

import numpy as np
import pyqtgraph as pg
from PySide6.QtGui import QColor

from flowmap import config
from flowmap.model.flows import FlowRecord, max_byte_size


@dataclass(frozen=True)
class ByteSizeColorScale:
    max_bytes: int = 0
    low: str = config.ROUTE_COLOR_LOW
    high: str = config.ROUTE_COLOR_HIGH

    @classmethod
    def from_records(cls, records: Iterable[FlowRecord]) -> ByteSizeColorScale:
        return cls(max_bytes=max_byte_size(records))

    @property
    def domain(self) -> tuple[int, int]:
        return 0, self.max_bytes

    @cached_property
    def colormap(self) -> pg.ColorMap:
        return pg.ColorMap(pos=[0.0, 1.0], color=[QColor(self.low), QColor(self.high)])

    def fraction(self, byte_size: float) -> float:
        if self.max_bytes <= 0:
            return 0.0
        return float(min(1.0, max(0.0, byte_size / self.max_bytes)))

    def __call__(self, byte_size: float) -> QColor:
        return self.colormap.map(np.array([self.fraction(byte_size)]), mode="qcolor")[0]
