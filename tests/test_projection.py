"""Tests for the projection strategies and the GeoProjector."""

import math

import numpy as np
import pytest

from flowmap import config
from flowmap.controller.projection import (
    GeoProjector, MercatorProjection, OrthographicProjection, create_projection, list_kinds
)
from flowmap.model.errors import InvalidProjection
from flowmap.model.flows import GeoPoint
from flowmap.model.geometry import MapFeature
from flowmap.model.state import ProjectionKind, ViewportState

SIZE = (config.VIEWPORT_WIDTH, config.VIEWPORT_HEIGHT)
CENTER = (SIZE[0] / 2, SIZE[1] / 2)


def projector(kind=ProjectionKind.FLAT, **state) -> GeoProjector:
    return GeoProjector(ViewportState(projection_kind=kind, **state), SIZE)


class TestRegistry:

    def test_create(self):
        assert isinstance(create_projection("mercator", SIZE), MercatorProjection)
        assert isinstance(create_projection("globe", SIZE), OrthographicProjection)
        assert set(list_kinds()) == {ProjectionKind.FLAT, ProjectionKind.GLOBE}

    def test_unknown_kind(self):
        with pytest.raises(InvalidProjection) as exc:
            create_projection("albers", SIZE)
        assert exc.value.kind == "albers"
        assert isinstance(exc.value, ValueError)


class TestMercator:

    def test_center_maps_to_viewport_center(self):
        x, y = projector().project((0.0, 25.0))
        assert x == pytest.approx(CENTER[0])
        assert y == pytest.approx(CENTER[1])

    def test_longitude_is_linear(self):
        x, y = projector().project(GeoPoint(90.0, 25.0))
        assert x == pytest.approx(CENTER[0] + config.MERCATOR_SCALE * math.pi / 2)
        assert y == pytest.approx(CENTER[1])

    def test_north_is_up(self):
        _, y_north = projector().project((0.0, 60.0))
        _, y_south = projector().project((0.0, -30.0))
        assert y_north < CENTER[1] < y_south

    def test_poles_are_clamped(self):
        _, y = projector().project((0.0, 90.0))
        assert math.isfinite(y)

    def test_antimeridian_splits_lines(self):
        path = projector().path_for({"type": "LineString", "coordinates": [[170.0, 0.0], [-170.0, 0.0]]})
        assert len(path.segments) == 2
        assert all(not s.closed for s in path.segments)

    def test_polygon_is_closed(self):
        feature = MapFeature(geometry={
            "type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]]]
        })
        path = projector().path_for(feature)
        assert len(path.segments) == 1
        assert path.segments[0].closed


class TestOrthographic:

    def test_center_maps_to_viewport_center(self):
        x, y = projector(ProjectionKind.GLOBE).project((5.0, 8.0))
        assert x == pytest.approx(CENTER[0])
        assert y == pytest.approx(CENTER[1])

    def test_back_hemisphere_is_clipped(self):
        assert projector(ProjectionKind.GLOBE).project((-175.0, 0.0)) is None

    def test_rotation_brings_far_side_to_front(self):
        p = projector(ProjectionKind.GLOBE, rotation=(180.0, 0.0))
        assert p.project((-175.0, 0.0)) is not None
        assert p.project((5.0, 8.0)) is None

    def test_tilt_moves_pole_into_view(self):
        """Rotating by -90 degrees of latitude puts the north pole in the middle."""
        p = projector(ProjectionKind.GLOBE, rotation=(0.0, -90.0))
        x, y = p.project((0.0, 90.0))
        assert abs(x - CENTER[0]) < config.ORTHOGRAPHIC_SCALE * 0.1
        assert abs(y - CENTER[1]) < config.ORTHOGRAPHIC_SCALE * 0.2

    def test_line_clipped_at_horizon(self):
        """A route from the visible side to the far side keeps only the visible run."""
        path = projector(ProjectionKind.GLOBE).path_for(
            {"type": "LineString", "coordinates": [[0.0, 0.0], [150.0, 0.0]]}
        )
        assert len(path.segments) == 1
        assert path.end_point is not None

    def test_hidden_polygon_is_empty(self):
        path = projector(ProjectionKind.GLOBE).path_for({
            "type": "Polygon", "coordinates": [[[170, -5], [179, -5], [179, 5], [170, 5], [170, -5]]]
        })
        assert path.is_empty
        assert path.end_point is None


class TestAffine:

    def test_zoom_scales_proportionally(self):
        base = np.asarray(projector().project((30.0, 10.0)))
        zoomed = np.asarray(projector(scale=2.0).project((30.0, 10.0)))
        np.testing.assert_allclose(zoomed, 2.0 * base)

    def test_translate_in_map_units(self):
        p = projector(scale=2.0, translate=(10.0, -5.0))
        x, y = p.project((0.0, 25.0))
        assert x == pytest.approx(2.0 * (CENTER[0] + 10.0))
        assert y == pytest.approx(2.0 * (CENTER[1] - 5.0))

    def test_base_key_ignores_zoom_and_pan(self):
        """Cached base coordinates survive zoom and pan but not rotation."""
        assert projector().base_key == projector(scale=3.0, translate=(1.0, 2.0)).base_key
        globe = projector(ProjectionKind.GLOBE)
        assert globe.base_key != projector(ProjectionKind.GLOBE, rotation=(10.0, 0.0)).base_key

    def test_feature_collection(self):
        collection = {
            "type": "FeatureCollection",
            "features": [
                {"type": "Feature", "geometry": {"type": "LineString", "coordinates": [[0, 0], [10, 10]]}},
                {"type": "Feature", "geometry": {"type": "MultiLineString",
                                                 "coordinates": [[[0, 0], [5, 5]], [[20, 20], [30, 30]]]}},
            ],
        }
        assert len(projector().path_for(collection).segments) == 3

    def test_unsupported_geometry(self):
        with pytest.raises(TypeError):
            projector().path_for({"type": "Sphere"})
