"""Shared fixtures for the flowmap test-suite."""

import os

# Scene items, signals and timers need a QApplication; run it headless.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from typing import Callable

import pytest
from PySide6.QtWidgets import QApplication, QGraphicsScene

from flowmap.controller.overlay import InteractionOverlay
from flowmap.controller.viewport import ViewportController
from flowmap.model.flows import FlowRecord, GeoLocation

# 2017-01-03T14:00:00Z
T0 = 1_483_452_000_000


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    """Create (or reuse) the QApplication for the whole session."""
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def t0() -> int:
    return T0


@pytest.fixture
def make_record() -> Callable[..., FlowRecord]:
    """Factory for flow records with sensible defaults."""
    def _make(
        pid,
        start: int = T0,
        end: int = T0 + 1000,
        src: tuple[float, float] = (4.89, 52.37),
        dst: tuple[float, float] = (13.40, 52.52),
        size: int = 1024,
    ) -> FlowRecord:
        return FlowRecord(
            id=pid,
            src_geo=GeoLocation(
                longitude=src[0], latitude=src[1], ip_address="10.0.0.1",
                hostname="src.example.org", organization="Source Org", region="Source Region",
            ),
            dst_geo=GeoLocation(
                longitude=dst[0], latitude=dst[1], ip_address="192.168.1.20",
                hostname="dst.example.org", organization="Destination Org", region="Destination Region",
            ),
            start_timestamp=start,
            end_timestamp=end,
            byte_size=size,
        )
    return _make


@pytest.fixture
def record_a(make_record) -> FlowRecord:
    """Amsterdam -> Berlin, [t0, t0 + 1000]."""
    return make_record("A", T0, T0 + 1000, size=1000)


@pytest.fixture
def record_b(make_record) -> FlowRecord:
    """Paris -> Madrid, [t0 + 500, t0 + 1500]."""
    return make_record("B", T0 + 500, T0 + 1500, src=(2.35, 48.86), dst=(-3.70, 40.42), size=4000)


@pytest.fixture
def record_c(make_record) -> FlowRecord:
    """Rome -> Cairo, [t0 + 100, t0 + 900]."""
    return make_record("C", T0 + 100, T0 + 900, src=(12.50, 41.90), dst=(31.24, 30.04), size=2500)


@pytest.fixture
def transfer_payload() -> list[dict]:
    """Two transfers in the collector's wire format."""
    return [
        {
            "PID": 1,
            "geoSrc": {"longitude": 4.89, "latitude": 52.37, "ip_address": "145.100.104.12",
                       "hostname": "gridftp01.surfsara.nl", "organization": "SURFnet", "region": "North Holland"},
            "geoDst": {"longitude": -88.24, "latitude": 40.12, "ip_address": "141.142.2.5",
                       "hostname": "dtn01.ncsa.illinois.edu", "organization": "UIUC", "region": "Illinois"},
            "start_timestamp": "2017-01-03T14:00:00Z",
            "end_timestamp": "2017-01-03T14:00:10Z",
            "nbytes_size": 1048576,
        },
        {
            "PID": 2,
            "geoSrc": {"longitude": 6.14, "latitude": 46.20, "ip_address": "188.184.9.234"},
            "geoDst": {"longitude": 139.69, "latitude": 35.69, "ip_address": "133.11.0.10"},
            "start_timestamp": T0 + 5000,
            "end_timestamp": T0 + 8000,
            "nbytes_size": "2048",
        },
    ]


@pytest.fixture
def scene(qapp) -> QGraphicsScene:
    return QGraphicsScene()


@pytest.fixture
def viewport(qapp) -> ViewportController:
    return ViewportController()


@pytest.fixture
def overlay(qapp) -> InteractionOverlay:
    return InteractionOverlay()
