"""
Planar geometry helpers for the structure diagram generator.

Points and vectors are float numpy arrays of shape ``(2,)``; batches of
them are ``(n, 2)`` arrays. The segment routines work on two batches of
segments at once and return ``(m, k)`` matrices, one entry per pair.
"""

from __future__ import annotations

import math
from typing import Final

import numpy as np

# Lengths at or below this are treated as zero
EPSILON: Final[float] = 1e-4


def point(x: float, y: float) -> np.ndarray:
    return np.array((x, y), dtype=float)


def unit_vector(angle: float) -> np.ndarray:
    return np.array((math.cos(angle), math.sin(angle)))


def angle_of(v: np.ndarray) -> float:
    return math.atan2(float(v[1]), float(v[0]))


def norm(v: np.ndarray) -> float:
    return float(math.hypot(float(v[0]), float(v[1])))


def normalize(v: np.ndarray) -> np.ndarray | None:
    """Unit vector along v, or None when v is (nearly) zero."""
    length = norm(v)
    if length <= EPSILON:
        return None
    return v / length


def rotate(v: np.ndarray, angle: float) -> np.ndarray:
    """Rotate a vector, or each row of an ``(n, 2)`` array, counterclockwise."""
    c = math.cos(angle)
    s = math.sin(angle)
    return v @ np.array(((c, s), (-s, c)))


def fan_directions(count: int, base_angle: float, total_spread: float) -> list[np.ndarray]:
    """Unit vectors spread evenly over an arc centred on base_angle.

    A spread of a full turn or more places the directions around the whole
    circle without repeating the first one.

    Example:
        >>> [round(float(v[0]), 3) for v in fan_directions(2, 0.0, math.pi)]
        [0.0, 0.0]
    """
    if count <= 0:
        return []
    if count == 1:
        return [unit_vector(base_angle)]
    if total_spread >= 2 * math.pi - EPSILON:
        angles = base_angle + np.arange(count) * (2 * math.pi / count)
    else:
        angles = np.linspace(base_angle - total_spread / 2, base_angle + total_spread / 2, count)
    return [unit_vector(float(a)) for a in angles]


def regular_polygon(n: int, edge_length: float, base_angle: float = 0.0) -> np.ndarray:
    """Vertices of a regular n-gon centred on the origin.

    The circumradius is ``edge_length / (2 sin(pi / n))``; vertex i sits at
    ``base_angle + i * 2 pi / n``.

    Returns:
        ``(n, 2)`` array, empty for n < 3.
    """
    if n < 3:
        return np.empty((0, 2))
    radius = edge_length / (2 * math.sin(math.pi / n))
    angles = base_angle + np.arange(n) * (2 * math.pi / n)
    return np.column_stack((np.cos(angles), np.sin(angles))) * radius


def reflect_points(points: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Mirror points across the line through a and b."""
    v = b - a
    len2 = float(v @ v)
    if len2 <= EPSILON:
        return points.copy()
    t = ((points - a) @ v) / len2
    projected = a + np.outer(t, v) if points.ndim == 2 else a + t * v
    return 2 * projected - points


def pairwise_distances(points: np.ndarray) -> np.ndarray:
    """Symmetric ``(n, n)`` Euclidean distance matrix."""
    return cross_distances(points, points)


def cross_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """``(m, k)`` distances between every row of a and every row of b."""
    diff = a[:, None, :] - b[None, :, :]
    return np.hypot(diff[..., 0], diff[..., 1])


def _orientation(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (a[..., 0] - o[..., 0]) * (b[..., 1] - o[..., 1]) - (a[..., 1] - o[..., 1]) * (b[..., 0] - o[..., 0])


def segment_crossings(
    a_start: np.ndarray,
    a_end: np.ndarray,
    b_start: np.ndarray,
    b_end: np.ndarray,
) -> np.ndarray:
    """Boolean ``(m, k)`` matrix of proper intersections.

    Touching endpoints and collinear overlaps do not count.
    """
    p1 = a_start[:, None, :]
    p2 = a_end[:, None, :]
    q1 = b_start[None, :, :]
    q2 = b_end[None, :, :]
    o1 = _orientation(p1, p2, q1)
    o2 = _orientation(p1, p2, q2)
    o3 = _orientation(q1, q2, p1)
    o4 = _orientation(q1, q2, p2)
    return (o1 * o2 < 0) & (o3 * o4 < 0)


def point_segment_distances(points: np.ndarray, starts: np.ndarray, ends: np.ndarray) -> np.ndarray:
    """``(n, m)`` distances from each point to each segment."""
    v = ends - starts
    len2 = np.einsum("ij,ij->i", v, v)
    degenerate = len2 <= EPSILON
    w = points[:, None, :] - starts[None, :, :]
    t = np.einsum("nmk,mk->nm", w, v) / np.where(degenerate, 1.0, len2)
    t = np.where(degenerate, 0.0, np.clip(t, 0.0, 1.0))
    projected = starts[None, :, :] + t[..., None] * v[None, :, :]
    diff = points[:, None, :] - projected
    return np.hypot(diff[..., 0], diff[..., 1])


def segment_distances(
    a_start: np.ndarray,
    a_end: np.ndarray,
    b_start: np.ndarray,
    b_end: np.ndarray,
) -> np.ndarray:
    """``(m, k)`` minimum distances between segments; 0 where they cross."""
    d = np.minimum.reduce([
        point_segment_distances(a_start, b_start, b_end),
        point_segment_distances(a_end, b_start, b_end),
        point_segment_distances(b_start, a_start, a_end).T,
        point_segment_distances(b_end, a_start, a_end).T,
    ])
    return np.where(segment_crossings(a_start, a_end, b_start, b_end), 0.0, d)


def overlap_penalty(
    distances: np.ndarray,
    hard: float,
    hard_weight: float,
    soft: float | None = None,
    soft_weight: float = 0.0,
) -> float:
    """Quadratic penalty for distances under a hard and an optional soft limit.

    Distances below ``hard`` cost ``(hard - d)**2 * hard_weight``; distances
    in ``[hard, soft)`` cost ``(soft - d)**2 * soft_weight``.
    """
    d = np.asarray(distances, dtype=float)
    total = float(np.sum(np.where(d < hard, (hard - d) ** 2 * hard_weight, 0.0)))
    if soft is not None and soft_weight:
        band = (d >= hard) & (d < soft)
        total += float(np.sum(np.where(band, (soft - d) ** 2 * soft_weight, 0.0)))
    return total
