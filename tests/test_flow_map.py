"""Integration tests: dataset -> playback -> scene, and viewport -> repaint."""

import pytest
from PySide6.QtCore import Qt

from flowmap.controller.flow_map import FlowMapController
from flowmap.model.errors import EmptyDataset, InvalidRecord
from flowmap.model.geometry import MapFeature
from flowmap.model.state import ProjectionKind


@pytest.fixture
def flow_map(scene) -> FlowMapController:
    controller = FlowMapController(scene=scene)
    yield controller
    controller.scheduler.pause()


class TestDataset:

    def test_assignment_shows_first_instant(self, flow_map, record_a, record_b, t0):
        flow_map.set_dataset([record_a, record_b])
        assert flow_map.scheduler.cursor_time == t0
        assert flow_map.synchronizer.rendered_ids == {"A"}
        assert flow_map.color_scale.max_bytes == 4000
        assert not flow_map.scheduler.is_playing

    def test_autoplay(self, flow_map, record_a):
        flow_map.set_dataset([record_a], autoplay=True)
        assert flow_map.scheduler.is_playing

    def test_cursor_scenario(self, flow_map, record_a, record_b, t0):
        """A=[t0, t0+1000], B=[t0+500, t0+1500]."""
        flow_map.set_dataset([record_a, record_b])

        flow_map.scheduler.scrub(t0 + 700)
        assert flow_map.synchronizer.rendered_ids == {"A", "B"}

        flow_map.scheduler.scrub(t0 + 200)
        assert flow_map.synchronizer.rendered_ids == {"A"}
        assert flow_map.last_sync.exited == {"B"}

        # the window ends at t0 + 1500, where only B is still active
        flow_map.scheduler.scrub(t0 + 1600)
        assert flow_map.synchronizer.rendered_ids == {"B"}

    def test_ticks_drive_the_scene(self, flow_map, record_a, record_b):
        flow_map.set_dataset([record_a, record_b])
        for _ in range(6):
            flow_map.scheduler.tick()
        assert flow_map.synchronizer.rendered_ids == {"A", "B"}

    def test_invalid_dataset_keeps_current(self, flow_map, record_a, make_record, t0):
        flow_map.set_dataset([record_a])
        with pytest.raises(InvalidRecord):
            flow_map.set_dataset([make_record("X", start=t0 + 5, end=t0)])
        assert flow_map.records == [record_a]
        assert flow_map.synchronizer.rendered_ids == {"A"}

    def test_empty_dataset_clears_scene(self, flow_map, record_a):
        flow_map.set_dataset([record_a])
        with pytest.raises(EmptyDataset):
            flow_map.set_dataset([])
        assert flow_map.synchronizer.rendered_ids == set()
        assert not flow_map.scheduler.is_loaded


class TestViewport:

    def test_zoom_scales_screen_coordinates(self, flow_map, record_a):
        """Zoom 1 -> 2 on the flat map with translate (0, 0)."""
        flow_map.set_dataset([record_a])
        group = flow_map.synchronizer.groups["A"]
        x, y = group.marker_position
        end_x, end_y = group.screen_path.end_point

        flow_map.viewport.zoom(2.0)

        assert group.marker_position == pytest.approx((2 * x, 2 * y))
        assert group.screen_path.end_point == pytest.approx((2 * end_x, 2 * end_y))

    def test_projection_switch_repaints(self, flow_map, record_a, record_b, record_c, t0):
        flow_map.set_dataset([record_a, record_b, record_c])
        flow_map.scheduler.scrub(t0 + 700)
        groups = flow_map.synchronizer.groups
        assert set(groups) == {"A", "B", "C"}
        flat_ends = {rid: g.screen_path.end_point for rid, g in groups.items()}

        flow_map.viewport.set_projection(ProjectionKind.GLOBE)

        assert flow_map.synchronizer.groups == groups
        for rid, group in groups.items():
            assert group.screen_path.end_point != flat_ends[rid]

    def test_resize_updates_scene_rect(self, flow_map):
        flow_map.viewport.resize(640, 480)
        rect = flow_map.scene.sceneRect()
        assert (rect.width(), rect.height()) == (640, 480)


class TestBoundaries:

    def test_set_map(self, flow_map):
        square = MapFeature(
            geometry={"type": "Polygon", "coordinates": [[[0, 0], [20, 0], [20, 20], [0, 20], [0, 0]]]},
            id="SQ",
            properties={"name": "Square"},
        )
        flow_map.set_map([square])
        items = flow_map.boundaries.childItems()
        assert len(items) == 1
        assert not items[0].path().isEmpty()
        assert items[0].toolTip() == "Square"

    def test_boundaries_follow_viewport(self, flow_map):
        square = MapFeature(geometry={"type": "Polygon", "coordinates": [[[0, 0], [20, 0], [20, 20], [0, 0]]]})
        flow_map.set_map([square])
        item = flow_map.boundaries.childItems()[0]
        width = item.path().boundingRect().width()
        flow_map.viewport.zoom(2.0)
        assert item.path().boundingRect().width() == pytest.approx(2 * width)

    def test_limb_countries_are_not_filled(self, flow_map):
        """On the globe a country cut by the horizon is outlined only."""
        front = MapFeature(geometry={"type": "Polygon", "coordinates": [[[0, 0], [20, 0], [20, 20], [0, 0]]]})
        limb = MapFeature(geometry={"type": "Polygon", "coordinates": [
            [[60, -10], [120, -10], [120, 10], [60, 10], [60, -10]]
        ]})
        flow_map.set_map([front, limb])
        front_item, limb_item = flow_map.boundaries.childItems()
        assert limb_item.brush().style() == Qt.SolidPattern

        flow_map.viewport.set_projection(ProjectionKind.GLOBE)
        assert front_item.brush().style() == Qt.SolidPattern
        assert limb_item.brush().style() == Qt.NoBrush
        assert not limb_item.path().isEmpty()
