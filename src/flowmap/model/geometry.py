"""
Map Geometry
============
Country boundaries and other static map features.

Features are loaded once at startup (see `flowmap.model.io`) and never
mutated afterwards. Geometries are kept as GeoJSON-shaped dicts so the
projector can treat routes and boundaries alike.

TopoJSON topologies are decoded here: quantized, delta-encoded arcs are
expanded into absolute lon/lat coordinates and stitched back into the
GeoJSON geometry types.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np

from flowmap.model.errors import MalformedData

logger = logging.getLogger(__name__)

GEOMETRY_TYPES = {
    "Point", "MultiPoint", "LineString", "MultiLineString",
    "Polygon", "MultiPolygon", "GeometryCollection",
}


@dataclass(frozen=True)
class MapFeature:
    """A single boundary feature (e.g. one country)."""
    geometry: dict
    id: Optional[str] = None
    properties: dict = field(default_factory=dict, compare=False)

    @property
    def name(self) -> str:
        return str(self.properties.get("name") or self.id or "")


# -------------------------------------------------------------------------------
# GeoJSON
# -------------------------------------------------------------------------------

def features_from_geojson(data: Mapping[str, Any]) -> list[MapFeature]:
    """Read a FeatureCollection, a single Feature or a bare geometry."""
    kind = data.get("type")
    if kind == "FeatureCollection":
        features = data.get("features", [])
        if not isinstance(features, list):
            raise MalformedData("FeatureCollection 'features' must be an array")
        return [_feature(f) for f in features if isinstance(f, Mapping) and f.get("geometry")]
    if kind == "Feature":
        return [_feature(data)] if data.get("geometry") else []
    if kind in GEOMETRY_TYPES:
        return [MapFeature(geometry=dict(data))]
    raise MalformedData(f"Unsupported GeoJSON type {kind!r}")


def _feature(data: Mapping[str, Any]) -> MapFeature:
    fid = data.get("id")
    try:
        return MapFeature(
            geometry=dict(data["geometry"]),
            id=None if fid is None else str(fid),
            properties=dict(data.get("properties") or {}),
        )
    except (TypeError, ValueError) as e:
        raise MalformedData(f"Invalid feature {fid!r}: {e}") from e


# -------------------------------------------------------------------------------
# TopoJSON
# -------------------------------------------------------------------------------

class TopologyDecoder:
    """
    Expand the geometries of a TopoJSON topology into GeoJSON geometries.

    Args:
        topology: Parsed TopoJSON document ("type": "Topology").
    """
    def __init__(self, topology: Mapping[str, Any]) -> None:
        if topology.get("type") != "Topology":
            raise MalformedData("Not a TopoJSON topology")

        try:
            transform = topology.get("transform")
            if transform:
                self._scale = np.asarray(transform["scale"], dtype=np.float64)
                self._translate = np.asarray(transform["translate"], dtype=np.float64)
            else:
                self._scale = None
                self._translate = None

            self._arcs = [self._decode_arc(arc) for arc in topology.get("arcs", [])]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedData(f"Invalid topology arcs or transform: {e!r}") from e
        self.objects: Mapping[str, Any] = topology.get("objects") or {}
        if not isinstance(self.objects, Mapping):
            raise MalformedData("Topology objects must be an object")

    def _decode_arc(self, arc: list) -> np.ndarray:
        pts = np.asarray(arc, dtype=np.float64).reshape(-1, 2) if arc else np.empty((0, 2))
        if self._scale is not None and pts.size:
            # quantized arcs store deltas between consecutive positions
            pts = np.cumsum(pts, axis=0) * self._scale + self._translate
        return pts

    def _position(self, position: list) -> list[float]:
        p = np.asarray(position[:2], dtype=np.float64)
        if self._scale is not None:
            p = p * self._scale + self._translate
        return [float(p[0]), float(p[1])]

    def _arc(self, index: int) -> np.ndarray:
        # negative indices reference the reversed arc (~index)
        position = ~index if index < 0 else index
        if position >= len(self._arcs):
            raise MalformedData(f"Arc index {index} out of range ({len(self._arcs)} arcs)")
        arc = self._arcs[position]
        return arc[::-1] if index < 0 else arc

    def _line(self, arc_indices: list[int]) -> list[list[float]]:
        coords: list[np.ndarray] = []
        for k, index in enumerate(arc_indices):
            arc = self._arc(index)
            # consecutive arcs share their joint point
            coords.append(arc if k == 0 else arc[1:])
        if not coords:
            return []
        return np.vstack(coords).tolist()

    def _ring(self, arc_indices: list[int]) -> list[list[float]]:
        ring = self._line(arc_indices)
        if ring and ring[0] != ring[-1]:
            ring.append(list(ring[0]))
        return ring

    def geometry(self, obj: Mapping[str, Any]) -> Optional[dict]:
        """
        Expand one topology geometry object.

        Raises:
            MalformedData: If the object is missing its arcs or coordinates, or
                references arcs the topology does not have.
        """
        try:
            return self._geometry(obj)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            raise MalformedData(f"Invalid topology geometry: {e!r}") from e

    def _geometry(self, obj: Mapping[str, Any]) -> Optional[dict]:
        kind = obj.get("type")
        if kind is None:
            return None
        if kind == "GeometryCollection":
            return {
                "type": "GeometryCollection",
                "geometries": [g for g in (self._geometry(o) for o in obj.get("geometries", [])) if g],
            }
        if kind == "Point":
            coords: Any = self._position(obj["coordinates"])
        elif kind == "MultiPoint":
            coords = [self._position(p) for p in obj["coordinates"]]
        elif kind == "LineString":
            coords = self._line(obj["arcs"])
        elif kind == "MultiLineString":
            coords = [self._line(a) for a in obj["arcs"]]
        elif kind == "Polygon":
            coords = [self._ring(a) for a in obj["arcs"]]
        elif kind == "MultiPolygon":
            coords = [[self._ring(a) for a in polygon] for polygon in obj["arcs"]]
        else:
            raise MalformedData(f"Unsupported TopoJSON geometry type {kind!r}")
        return {"type": kind, "coordinates": coords}

    def features(self, object_name: str) -> list[MapFeature]:
        """
        Equivalent of topojson.feature(topology, topology.objects[name]).

        A GeometryCollection object yields one feature per member geometry.
        """
        if object_name not in self.objects:
            raise MalformedData(f"Topology has no object {object_name!r}")
        obj = self.objects[object_name]
        if not isinstance(obj, Mapping):
            raise MalformedData(f"Topology object {object_name!r} is not an object")
        members = obj.get("geometries", []) if obj.get("type") == "GeometryCollection" else [obj]
        if not isinstance(members, list):
            raise MalformedData(f"Geometries of {object_name!r} must be an array")

        features: list[MapFeature] = []
        for member in members:
            if not isinstance(member, Mapping):
                raise MalformedData(f"Geometry of {object_name!r} is not an object")
            geometry = self.geometry(member)
            if geometry is None:
                continue
            features.append(_feature(dict(member, geometry=geometry)))
        logger.debug(f"Decoded {len(features)} features from topology object '{object_name}'.")
        return features


def features_from_topojson(topology: Mapping[str, Any], object_name: str = "countries") -> list[MapFeature]:
    return TopologyDecoder(topology).features(object_name)
