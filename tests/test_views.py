"""Smoke tests for the Qt widgets (offscreen)."""

import pytest

from flowmap import config
from flowmap.controller.flow_map import FlowMapController
from flowmap.controller.overlay import TooltipContent
from flowmap.model.state import PlaybackMode, ProjectionKind
from flowmap.view.main_window import MainWindow
from flowmap.view.widgets.tooltip import TooltipWidget, tooltip_html


@pytest.fixture
def window(qapp, scene) -> MainWindow:
    w = MainWindow(FlowMapController(scene=scene))
    yield w
    w.flow_map.scheduler.pause()
    w.close()


class TestMainWindow:

    def test_load_sample(self, window):
        assert window.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=False)
        assert "sample_transfers.json" in window.windowTitle()
        assert len(window.flow_map.records) == 8
        assert window.controls.slider.isEnabled()
        assert window.controls.slider.value() == 0

    def test_projection_actions(self, window):
        window.act_globe.trigger()
        assert window.flow_map.viewport.projection_kind == ProjectionKind.GLOBE
        assert window.act_globe.isChecked() and not window.act_flat.isChecked()
        window.act_flat.trigger()
        assert window.flow_map.viewport.projection_kind == ProjectionKind.FLAT


class TestPlaybackControls:

    def test_slider_scrubs(self, window):
        window.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=False)
        scheduler = window.flow_map.scheduler
        window.controls.slider.setValue(50)
        assert scheduler.cursor_time == scheduler.state.min_time + 50 * scheduler.step_ms
        assert window.controls.lbl_time.text().endswith("UTC")

    def test_ticks_move_slider(self, window):
        window.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=False)
        window.flow_map.scheduler.tick()
        window.flow_map.scheduler.tick()
        assert window.controls.slider.value() == 2

    def test_loop_checkbox(self, window):
        window.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=False)
        window.controls.chk_loop.setChecked(True)
        assert window.flow_map.scheduler.mode == PlaybackMode.LOOP_AT_END

    def test_play_button(self, window):
        window.load_transfers(config.DEFAULT_TRANSFERS_PATH, autoplay=False)
        window.controls.btn_play.click()
        assert window.flow_map.scheduler.is_playing
        window.controls.btn_play.click()
        assert not window.flow_map.scheduler.is_playing


class TestTooltipWidget:

    def test_html_escapes(self):
        html = tooltip_html(TooltipContent("a<b", (("Host", "x&y"),)))
        assert "a&lt;b" in html and "x&amp;y" in html

    def test_follows_overlay(self, qapp):
        tooltip = TooltipWidget()
        tooltip.on_content_changed(TooltipContent("Transfer", (("Size", "1 KiB"),)), (10.0, 10.0))
        assert not tooltip.isHidden()
        assert "Transfer" in tooltip.label.text()
        tooltip.on_content_changed(None, None)
        assert tooltip.isHidden()
