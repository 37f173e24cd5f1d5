"""Tests for the keyed enter/update/exit reconciliation of route groups."""

import dataclasses

import pytest

from flowmap import config
from flowmap.controller.color_scale import ByteSizeColorScale
from flowmap.controller.scene_sync import SceneSynchronizer
from flowmap.model.errors import InvalidRecord
from flowmap.model.geometry_utils import centroid
from flowmap.model.state import ProjectionKind


@pytest.fixture
def sync(scene, viewport, overlay) -> SceneSynchronizer:
    return SceneSynchronizer(scene, viewport, overlay)


def assert_arrow_at_end(group):
    """The arrowhead centroid sits within one arrow size of the route end."""
    end = group.screen_path.end_point
    assert end is not None
    cx, cy = centroid(group.arrow_points)
    assert abs(cx - end[0]) <= config.ARROW_SIZE
    assert abs(cy - end[1]) <= config.ARROW_SIZE


class TestSync:

    def test_enter(self, sync, scene, record_a, record_b):
        result = sync.sync([record_a, record_b])
        assert result.entered == {"A", "B"}
        assert result.updated == set() and result.exited == set()
        assert sync.rendered_ids == {"A", "B"}
        # group + route + marker + arrowhead per record
        assert len(scene.items()) == 8

    def test_idempotent(self, sync, record_a, record_b):
        sync.sync([record_a, record_b])
        groups = sync.groups
        result = sync.sync([record_a, record_b])
        assert result.entered == set() and result.exited == set()
        assert result.updated == {"A", "B"}
        assert all(sync.groups[rid] is groups[rid] for rid in groups)

    def test_exit_removes_whole_group(self, sync, scene, record_a, record_b):
        sync.sync([record_a, record_b])
        group_b = sync.groups["B"]
        result = sync.sync([record_a])
        assert result.exited == {"B"}
        assert sync.rendered_ids == {"A"}
        assert group_b.scene() is None
        assert group_b.route.scene() is None
        assert len(scene.items()) == 4

    def test_invalid_snapshot_leaves_scene_untouched(self, sync, scene, record_a, record_b, make_record, t0):
        sync.sync([record_a])
        items_before = len(scene.items())
        broken = make_record("Z", start=t0 + 10, end=t0)
        with pytest.raises(InvalidRecord):
            sync.sync([record_b, broken])
        assert sync.rendered_ids == {"A"}
        assert len(scene.items()) == items_before

    def test_duplicate_ids_rejected(self, sync, record_a):
        with pytest.raises(InvalidRecord):
            sync.sync([record_a, record_a])
        assert sync.rendered_ids == set()

    def test_update_moves_geometry_when_endpoints_change(self, sync, record_a):
        sync.sync([record_a])
        group = sync.groups["A"]
        end_before = group.screen_path.end_point
        moved = dataclasses.replace(record_a, dst_geo=dataclasses.replace(record_a.dst_geo, longitude=20.0))
        sync.sync([moved])
        assert sync.groups["A"] is group
        assert group.record is moved
        assert group.screen_path.end_point != end_before
        assert_arrow_at_end(group)

    def test_restyle_when_scale_changes(self, sync, record_a):
        sync.sync([record_a], ByteSizeColorScale(max_bytes=1000))
        red = sync.groups["A"].color.red()
        sync.sync([record_a], ByteSizeColorScale(max_bytes=100_000))
        assert sync.groups["A"].color.red() < red

    def test_clear(self, sync, scene, record_a):
        sync.sync([record_a])
        sync.clear()
        assert sync.rendered_ids == set()
        assert scene.items() == []


class TestRepaint:

    def test_repaint_keeps_group_count(self, sync, viewport, record_a, record_b, record_c):
        sync.sync([record_a, record_b, record_c])
        viewport.zoom(2.0, (300.0, 200.0))
        viewport.pan(15.0, -7.0)
        sync.repaint()
        assert len(sync.groups) == 3

    def test_arrowheads_follow_every_viewport(self, sync, viewport, record_a, record_b, record_c):
        sync.sync([record_a, record_b, record_c])
        states = [
            lambda: viewport.zoom(3.0, (480.0, 250.0)),
            lambda: viewport.pan(-40.0, 25.0),
            lambda: viewport.set_projection(ProjectionKind.GLOBE),
            lambda: viewport.rotate(-30.0, 12.0),
            lambda: viewport.zoom(0.5),
        ]
        for change in states:
            change()
            sync.repaint()
            for group in sync.groups.values():
                assert_arrow_at_end(group)

    def test_projection_switch_keeps_ids(self, sync, viewport, record_a, record_b, record_c):
        """Switching flat -> globe re-projects the same three groups."""
        sync.sync([record_a, record_b, record_c])
        groups = sync.groups
        flat_ends = {rid: g.screen_path.end_point for rid, g in groups.items()}

        viewport.set_projection(ProjectionKind.GLOBE)
        sync.repaint()

        assert sync.rendered_ids == {"A", "B", "C"}
        for rid, group in sync.groups.items():
            assert group is groups[rid]
            assert not group.screen_path.is_empty
            assert group.screen_path.end_point != flat_ends[rid]

    def test_zoom_scales_marker(self, sync, viewport, record_a):
        sync.sync([record_a])
        x, y = sync.groups["A"].marker_position
        viewport.zoom(2.0)
        sync.repaint()
        assert sync.groups["A"].marker_position == pytest.approx((2 * x, 2 * y))

    def test_hidden_source_hides_marker(self, sync, viewport, make_record):
        """On the globe, a source on the far side has no marker."""
        record = make_record("F", src=(-170.0, 0.0), dst=(10.0, 20.0))
        sync.sync([record])
        viewport.set_projection(ProjectionKind.GLOBE)
        sync.repaint()
        group = sync.groups["F"]
        assert group.marker_position is None
        assert not group.marker.isVisible()
        assert not group.screen_path.is_empty


class TestHover:

    def test_route_marker_arrow_tooltips(self, sync, overlay, record_a):
        sync.sync([record_a])
        group = sync.groups["A"]

        group.route.hover_enter((5.0, 5.0))
        assert overlay.current.header == "Transfer"
        assert overlay.position == (5.0, 5.0)

        group.marker.hover_enter()
        assert overlay.current.header == record_a.src_geo.ip_address

        group.arrow.hover_enter()
        assert overlay.current.header == record_a.dst_geo.ip_address

        group.arrow.hover_leave()
        assert overlay.current is None

    def test_exit_of_hovered_group_hides_tooltip(self, sync, overlay, record_a, record_b):
        sync.sync([record_a, record_b])
        sync.groups["B"].route.hover_enter()
        sync.sync([record_a])
        assert overlay.current is None

    def test_exit_of_other_group_keeps_tooltip(self, sync, overlay, record_a, record_b):
        sync.sync([record_a, record_b])
        sync.groups["A"].route.hover_enter()
        sync.sync([record_a])
        assert overlay.current is not None
