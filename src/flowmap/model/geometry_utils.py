from __future__ import annotations

import math

import numpy as np
from numpy import typing as npt


def lonlat_to_unit_vectors(lonlat: npt.ArrayLike) -> np.ndarray:
    """
    Convert (N, 2) longitude/latitude pairs in degrees to (N, 3) unit vectors.
    """
    arr = np.radians(np.asarray(lonlat, dtype=np.float64).reshape(-1, 2))
    lam, phi = arr[:, 0], arr[:, 1]
    cos_phi = np.cos(phi)
    return np.c_[cos_phi * np.cos(lam), cos_phi * np.sin(lam), np.sin(phi)]


def unit_vectors_to_lonlat(v: np.ndarray) -> np.ndarray:
    """Inverse of `lonlat_to_unit_vectors`; longitudes land in [-180, 180]."""
    v = np.asarray(v, dtype=np.float64).reshape(-1, 3)
    lon = np.degrees(np.arctan2(v[:, 1], v[:, 0]))
    lat = np.degrees(np.arcsin(np.clip(v[:, 2], -1.0, 1.0)))
    return np.c_[lon, lat]


def great_circle_points(
    start: tuple[float, float],
    end: tuple[float, float],
    n_samples: int
) -> np.ndarray:
    """
    Sample the shorter great-circle arc between two lon/lat points.

    Args:
        start: (lon, lat) in degrees.
        end: (lon, lat) in degrees.
        n_samples: Number of points including both ends (at least 2).

    Returns:
        (n_samples, 2) array of lon/lat points. Coincident or antipodal ends
        fall back to straight interpolation in lon/lat.
    """
    n_samples = max(2, int(n_samples))
    a, b = lonlat_to_unit_vectors([start, end])
    omega = math.acos(float(np.clip(np.dot(a, b), -1.0, 1.0)))
    t = np.linspace(0.0, 1.0, n_samples)

    if omega < 1e-12 or math.pi - omega < 1e-9:
        s = np.asarray(start, dtype=np.float64)
        e = np.asarray(end, dtype=np.float64)
        return s + t[:, None] * (e - s)

    sin_omega = math.sin(omega)
    w0 = np.sin((1.0 - t) * omega) / sin_omega
    w1 = np.sin(t * omega) / sin_omega
    pts = unit_vectors_to_lonlat(w0[:, None] * a + w1[:, None] * b)
    # keep the exact end points (atan2 may flip +180 to -180)
    pts[0] = start
    pts[-1] = end
    return pts


def split_runs(
    points: np.ndarray,
    visible: np.ndarray,
    breaks: np.ndarray | None = None,
    min_length: int = 2
) -> list[np.ndarray]:
    """
    Split a polyline into runs of consecutive visible points.

    Args:
        points: (N, 2) projected points.
        visible: (N,) boolean mask; invisible points are dropped.
        breaks: Optional (N-1,) boolean mask; True cuts the polyline between
                point i and i+1 even if both are visible.
        min_length: Runs shorter than this are discarded.

    Returns:
        List of (M, 2) arrays.
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    n = points.shape[0]
    if n == 0:
        return []

    keep = np.asarray(visible, dtype=bool)
    cut = np.zeros(n, dtype=bool)  # cut[i]: a new run starts at i
    cut[0] = True
    cut[1:] |= ~keep[:-1]
    if breaks is not None and n > 1:
        cut[1:] |= np.asarray(breaks, dtype=bool)

    runs: list[np.ndarray] = []
    current: list[int] = []
    for i in range(n):
        if cut[i] and current:
            if len(current) >= min_length:
                runs.append(points[current])
            current = []
        if keep[i]:
            current.append(i)
    if len(current) >= min_length:
        runs.append(points[current])
    return runs


def polyline_length(points: np.ndarray) -> float:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(pts, axis=0), axis=1)))


def point_at_length(points: np.ndarray, length: float) -> np.ndarray:
    """
    Point at the given arc length along a polyline (clamped to its ends).
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if pts.shape[0] == 1 or length <= 0.0:
        return pts[0].copy()

    seg = np.linalg.norm(np.diff(pts, axis=0), axis=1)
    cum = np.concatenate([[0.0], np.cumsum(seg)])
    if length >= cum[-1]:
        return pts[-1].copy()

    i = int(np.searchsorted(cum, length, side="right")) - 1
    t = (length - cum[i]) / seg[i] if seg[i] > 0 else 0.0
    return pts[i] + t * (pts[i + 1] - pts[i])


def angle_between_points(start: np.ndarray, end: np.ndarray) -> float:
    """Direction from start to end in degrees."""
    return math.degrees(math.atan2(end[1] - start[1], end[0] - start[0]))


def point_on_circle(center: np.ndarray, angle: float, offset: float, radius: float) -> tuple[float, float]:
    a = math.radians(angle + offset)
    return float(center[0] + math.cos(a) * radius), float(center[1] + math.sin(a) * radius)


def arrow_points(polyline: np.ndarray, size: float) -> list[tuple[float, float]]:
    """
    Triangle at the end of a polyline pointing along its terminal tangent.

    The tangent is taken between the point `size` before the end and the end
    itself. The tip sits `size` beyond the end, the two barbs at +-135 degrees.

    Args:
        polyline: (N, 2) screen-space points; N >= 1.
        size: Arrow size in screen units.

    Returns:
        Three (x, y) points: tip, left barb, right barb.
    """
    pts = np.asarray(polyline, dtype=np.float64).reshape(-1, 2)
    total = polyline_length(pts)
    start = point_at_length(pts, total - size)
    end = pts[-1]
    angle = angle_between_points(start, end)
    return [
        point_on_circle(end, angle, 0.0, size),
        point_on_circle(end, angle, 135.0, size),
        point_on_circle(end, angle, -135.0, size),
    ]


def centroid(points: list[tuple[float, float]]) -> tuple[float, float]:
    arr = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    c = arr.mean(axis=0)
    return float(c[0]), float(c[1])
