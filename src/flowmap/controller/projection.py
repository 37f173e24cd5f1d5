"""
Geographic Projection
=====================
Maps lon/lat coordinates to screen space.

Why is this file needed?
------------------------
1. Strategies: The flat (Mercator) and globe (orthographic) projections are
   interchangeable classes registered by `ProjectionKind`; asking for any
   other kind fails with `InvalidProjection`.
2. Two stages: A projection produces *base* coordinates. `GeoProjector` adds
   the zoom/pan affine on top (``screen = scale * (base + translate)``), so
   callers may cache base coordinates and only re-apply the cheap affine
   while the user zooms or pans.
3. Paths: Lines are resampled along great circles before projection, then
   split wherever they leave the visible hemisphere or cross the
   antimeridian.

Classes:
    Projection: Abstract base of the raw projection strategies.
    MercatorProjection / OrthographicProjection: The two strategies.
    ProjectedPath: Screen-space polylines produced for one geometry.
    GeoProjector: Projection + viewport affine for one ViewportState.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Hashable, Mapping, Optional, Sequence, Union

import numpy as np

from flowmap import config
from flowmap.model.errors import InvalidProjection
from flowmap.model.flows import GeoPoint
from flowmap.model.geometry import MapFeature
from flowmap.model.geometry_utils import great_circle_points, split_runs
from flowmap.model.state import ProjectionKind, ViewportState

logger = logging.getLogger(__name__)

PointLike = Union[GeoPoint, Sequence[float]]


# -------------------------------------------------------------------------------
# Projected geometry
# -------------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class PathSegment:
    points: np.ndarray  # (N, 2)
    closed: bool = False


@dataclass(frozen=True, eq=False)
class ProjectedPath:
    """Polylines of one geometry. Empty when the geometry is entirely clipped."""
    segments: tuple[PathSegment, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def last_segment(self) -> Optional[np.ndarray]:
        return self.segments[-1].points if self.segments else None

    @property
    def end_point(self) -> Optional[tuple[float, float]]:
        last = self.last_segment
        if last is None:
            return None
        return float(last[-1, 0]), float(last[-1, 1])

    def mapped(self, fn) -> ProjectedPath:
        return ProjectedPath(tuple(PathSegment(fn(s.points), s.closed) for s in self.segments))


# -------------------------------------------------------------------------------
# Strategy registry
# -------------------------------------------------------------------------------

_REGISTRY: dict[ProjectionKind, type[Projection]] = {}


def register_projection(cls: type[Projection]) -> type[Projection]:
    """Class decorator to register a projection by its KIND."""
    kind = getattr(cls, "KIND", None)
    if kind is None:
        raise ValueError(f"{cls.__name__} must define KIND")
    _REGISTRY[kind] = cls
    return cls


def create_projection(
    kind: ProjectionKind | str,
    size: tuple[int, int],
    rotation: tuple[float, float] = (0.0, 0.0)
) -> Projection:
    """
    Construct the projection strategy for a kind.

    Raises:
        InvalidProjection: If the kind is unknown or has no registered strategy.
    """
    resolved = ProjectionKind.parse(kind)
    cls = _REGISTRY.get(resolved)
    if cls is None:
        raise InvalidProjection(kind)
    return cls(size=size, rotation=rotation)


def list_kinds() -> list[ProjectionKind]:
    return list(_REGISTRY.keys())


class Projection(ABC):
    """
    Raw projection strategy: lon/lat degrees -> base screen coordinates.

    Base coordinates already contain the projection's own scale and the
    translation to the viewport center.
    """
    KIND: ProjectionKind

    def __init__(self, size: tuple[int, int], rotation: tuple[float, float] = (0.0, 0.0)) -> None:
        self.size = (int(size[0]), int(size[1]))
        self.rotation = (float(rotation[0]), float(rotation[1]))

    @property
    def signature(self) -> Hashable:
        """Changes whenever base coordinates would change."""
        return self.KIND, self.size, self.rotation

    @abstractmethod
    def project_lonlat(self, lonlat: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        """
        Args:
            lonlat: (N, 2) longitude/latitude pairs in degrees.

        Returns:
            (N, 2) base coordinates and an (N,) visibility mask.
        """

    def breaks(self, lonlat: np.ndarray) -> Optional[np.ndarray]:
        """(N-1,) mask of edges that must not be drawn as a straight line."""
        return None


@register_projection
class MercatorProjection(Projection):
    """Flat map, centered at 0E 25N. Rotation is not supported and ignored."""
    KIND = ProjectionKind.FLAT

    def __init__(
        self,
        size: tuple[int, int],
        rotation: tuple[float, float] = (0.0, 0.0),
        scale: float = config.MERCATOR_SCALE,
        center: tuple[float, float] = config.MERCATOR_CENTER
    ) -> None:
        super().__init__(size, (0.0, 0.0))
        self.k = float(scale)
        cx, cy = self._raw(np.asarray([center], dtype=np.float64))
        self._dx = self.size[0] / 2.0 - self.k * float(cx[0])
        self._dy = self.size[1] / 2.0 + self.k * float(cy[0])

    @staticmethod
    def _raw(lonlat: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        lat = np.clip(lonlat[:, 1], -config.MERCATOR_MAX_LATITUDE, config.MERCATOR_MAX_LATITUDE)
        lam = np.radians(lonlat[:, 0])
        phi = np.radians(lat)
        return lam, np.log(np.tan(np.pi / 4.0 + phi / 2.0))

    def project_lonlat(self, lonlat: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        lonlat = np.asarray(lonlat, dtype=np.float64).reshape(-1, 2)
        x, y = self._raw(lonlat)
        xy = np.c_[self._dx + self.k * x, self._dy - self.k * y]
        return xy, np.ones(lonlat.shape[0], dtype=bool)

    def breaks(self, lonlat: np.ndarray) -> Optional[np.ndarray]:
        lon = np.asarray(lonlat, dtype=np.float64).reshape(-1, 2)[:, 0]
        return np.abs(np.diff(lon)) > 180.0


@register_projection
class OrthographicProjection(Projection):
    """Globe seen from space; the far hemisphere is clipped."""
    KIND = ProjectionKind.GLOBE

    def __init__(
        self,
        size: tuple[int, int],
        rotation: tuple[float, float] = (0.0, 0.0),
        scale: float = config.ORTHOGRAPHIC_SCALE,
        center: tuple[float, float] = config.ORTHOGRAPHIC_CENTER,
        clip_angle: float = config.ORTHOGRAPHIC_CLIP_ANGLE
    ) -> None:
        super().__init__(size, rotation)
        self.k = float(scale)
        self._cos_clip = math.cos(math.radians(clip_angle))
        self._d_lambda = math.radians(self.rotation[0])
        self._d_phi = math.radians(self.rotation[1])

        # the center is projected without rotation
        lam0, phi0 = math.radians(center[0]), math.radians(center[1])
        cx = math.cos(phi0) * math.sin(lam0)
        cy = math.sin(phi0)
        self._dx = self.size[0] / 2.0 - self.k * cx
        self._dy = self.size[1] / 2.0 + self.k * cy

    def _rotate(self, lam: np.ndarray, phi: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        lam = lam + self._d_lambda
        lam = (lam + np.pi) % (2.0 * np.pi) - np.pi
        if self._d_phi == 0.0:
            return lam, phi

        cos_dphi, sin_dphi = math.cos(self._d_phi), math.sin(self._d_phi)
        cos_phi = np.cos(phi)
        x = np.cos(lam) * cos_phi
        y = np.sin(lam) * cos_phi
        z = np.sin(phi)
        k = z * cos_dphi + x * sin_dphi
        return np.arctan2(y, x * cos_dphi - z * sin_dphi), np.arcsin(np.clip(k, -1.0, 1.0))

    def project_lonlat(self, lonlat: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        lonlat = np.asarray(lonlat, dtype=np.float64).reshape(-1, 2)
        lam, phi = self._rotate(np.radians(lonlat[:, 0]), np.radians(lonlat[:, 1]))
        cos_phi = np.cos(phi)
        x = cos_phi * np.sin(lam)
        y = np.sin(phi)
        visible = cos_phi * np.cos(lam) > self._cos_clip
        xy = np.c_[self._dx + self.k * x, self._dy - self.k * y]
        return xy, visible


# -------------------------------------------------------------------------------
# Projector
# -------------------------------------------------------------------------------

class GeoProjector:
    """
    Projection strategy plus the viewport affine of one ViewportState.

    A projector is never mutated: the ViewportController builds a new one for
    every state change.

    Args:
        state: Viewport state to derive from.
        size: Viewport size in pixels (width, height).
        samples: Great-circle samples per line segment.

    Raises:
        InvalidProjection: If the state names an unknown projection.
    """
    def __init__(
        self,
        state: ViewportState,
        size: tuple[int, int] = (config.VIEWPORT_WIDTH, config.VIEWPORT_HEIGHT),
        samples: int = config.GREAT_CIRCLE_SAMPLES
    ) -> None:
        self.state = state
        self.size = (int(size[0]), int(size[1]))
        self.samples = samples
        self.projection = create_projection(state.projection_kind, self.size, state.rotation)
        self._scale = float(state.scale)
        self._translate = np.asarray(state.translate, dtype=np.float64)

    @property
    def kind(self) -> ProjectionKind:
        return self.projection.KIND

    @property
    def base_key(self) -> Hashable:
        """Cached base coordinates stay valid while this key is unchanged."""
        return self.projection.signature, self.samples

    # ---- affine ----

    def to_screen(self, xy: np.ndarray) -> np.ndarray:
        return self._scale * (np.asarray(xy, dtype=np.float64) + self._translate)

    def transform_point(self, base: Optional[np.ndarray]) -> Optional[tuple[float, float]]:
        if base is None:
            return None
        x, y = self.to_screen(base)
        return float(x), float(y)

    def transform_path(self, base: ProjectedPath) -> ProjectedPath:
        return base.mapped(self.to_screen)

    # ---- base ----

    @staticmethod
    def _lonlat(point: PointLike) -> tuple[float, float]:
        if isinstance(point, GeoPoint):
            return point.longitude, point.latitude
        return float(point[0]), float(point[1])

    def base_point(self, point: PointLike) -> Optional[np.ndarray]:
        xy, visible = self.projection.project_lonlat(np.asarray([self._lonlat(point)]))
        if not visible[0]:
            return None
        return xy[0]

    def base_path_for(self, geometry: Any) -> ProjectedPath:
        """
        Project a GeoJSON geometry, Feature, FeatureCollection or MapFeature
        into base coordinates.
        """
        if isinstance(geometry, MapFeature):
            return self.base_path_for(geometry.geometry)
        if not isinstance(geometry, Mapping):
            raise TypeError(f"Expected a GeoJSON object, got {type(geometry).__name__}")

        kind = geometry.get("type")
        coords = geometry.get("coordinates")

        if kind == "Feature":
            g = geometry.get("geometry")
            return self.base_path_for(g) if g else ProjectedPath()
        if kind == "FeatureCollection":
            return self._combine(self.base_path_for(f) for f in geometry.get("features", []))
        if kind == "GeometryCollection":
            return self._combine(self.base_path_for(g) for g in geometry.get("geometries", []))
        if kind == "LineString":
            return self._line(coords)
        if kind == "MultiLineString":
            return self._combine(self._line(c) for c in coords)
        if kind == "Polygon":
            return self._combine(self._ring(r) for r in coords)
        if kind == "MultiPolygon":
            return self._combine(self._ring(r) for polygon in coords for r in polygon)
        if kind in ("Point", "MultiPoint"):
            return ProjectedPath()
        raise TypeError(f"Unsupported geometry type {kind!r}")

    @staticmethod
    def _combine(paths) -> ProjectedPath:
        segments: list[PathSegment] = []
        for p in paths:
            segments.extend(p.segments)
        return ProjectedPath(tuple(segments))

    def _line(self, coords: Sequence[Sequence[float]]) -> ProjectedPath:
        pts = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
        if pts.shape[0] < 2:
            return ProjectedPath()

        pieces = [pts[:1]]
        for a, b in zip(pts[:-1], pts[1:]):
            pieces.append(great_circle_points(tuple(a), tuple(b), self.samples)[1:])
        lonlat = np.vstack(pieces)

        xy, visible = self.projection.project_lonlat(lonlat)
        runs = split_runs(xy, visible, self.projection.breaks(lonlat))
        return ProjectedPath(tuple(PathSegment(r, closed=False) for r in runs))

    def _ring(self, coords: Sequence[Sequence[float]]) -> ProjectedPath:
        lonlat = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
        if lonlat.shape[0] < 3:
            return ProjectedPath()

        xy, visible = self.projection.project_lonlat(lonlat)
        breaks = self.projection.breaks(lonlat)
        if visible.all() and (breaks is None or not breaks.any()):
            return ProjectedPath((PathSegment(xy, closed=True),))

        runs = split_runs(xy, visible, breaks)
        return ProjectedPath(tuple(PathSegment(r, closed=False) for r in runs))

    # ---- full ----

    def project(self, point: PointLike) -> Optional[tuple[float, float]]:
        """Screen position of a point, None if it is clipped."""
        return self.transform_point(self.base_point(point))

    def path_for(self, geometry: Any) -> ProjectedPath:
        return self.transform_path(self.base_path_for(geometry))
