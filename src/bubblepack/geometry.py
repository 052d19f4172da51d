"""
Geometry utilities for bubble packing.

Contains:
- overlaps / overlapping_pairs: collision tests with a tangency tolerance
- place_bubble: exact tangent placement of a bubble around a pivot
- push_clear: moves a colliding bubble outward until it is clear
- bounding_box: axis-aligned extent of a set of bubbles
"""

import numpy as np
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .config import BoundingBox, Circle

# Default tolerance for touching circles
OVERLAP_EPSILON = 1e-3


def distance(c1: Circle, c2: Circle) -> float:
    """Distance between two circle centers."""
    return float(np.hypot(c1.x - c2.x, c1.y - c2.y))


def overlaps(c1: Circle, c2: Circle, epsilon: float = OVERLAP_EPSILON) -> bool:
    """
    Check if two circles overlap.

    Circles that only touch are not overlapping: the gap has to be smaller
    than -epsilon before a pair counts as colliding.
    """
    gap = distance(c1, c2) - abs(c1.radius + c2.radius)
    return gap < -epsilon


def as_arrays(circles: Sequence[Circle]) -> Tuple[np.ndarray, np.ndarray]:
    """Centers (n, 2) and radii (n,) of a list of circles."""
    if len(circles) == 0:
        return np.empty((0, 2)), np.empty(0)
    centers = np.array([(c.x, c.y) for c in circles], dtype=float)
    radii = np.array([c.radius for c in circles], dtype=float)
    return centers, radii


def collides(
    circle: Circle, centers: np.ndarray, radii: np.ndarray, epsilon: float = OVERLAP_EPSILON
) -> bool:
    """Vectorized overlap test of one circle against many."""
    if len(centers) == 0:
        return False
    gaps = np.linalg.norm(centers - (circle.x, circle.y), axis=1) - np.abs(radii + circle.radius)
    return bool(np.any(gaps < -epsilon))


def overlapping_pairs(circles: Sequence[Circle], epsilon: float = OVERLAP_EPSILON) -> np.ndarray:
    """Index pairs (i < j) of all overlapping circles, shape (k, 2)."""
    centers, radii = as_arrays(circles)
    if len(centers) < 2:
        return np.empty((0, 2), dtype=int)

    dists = np.linalg.norm(centers[:, np.newaxis, :] - centers[np.newaxis, :, :], axis=2)
    gaps = dists - np.abs(radii[:, np.newaxis] + radii[np.newaxis, :])
    i, j = np.nonzero(np.triu(gaps < -epsilon, k=1))
    return np.column_stack([i, j])


def place_bubble(last: Circle, origin: Circle, bubble: Circle) -> Circle:
    """
    Place `bubble` tangent to `origin`, continuing the ring from `last`.

    The three centers form a triangle with sides |last - origin|,
    origin.r + bubble.r and last.r + bubble.r. The law of cosines gives the
    angle at `origin` between `last` and the new bubble, the law of sines the
    direction of `last` as seen from `origin`. Angles are measured clockwise
    from straight up (negative y), so the ring grows clockwise on screen.

    Returns a copy of `bubble` with its center filled in.
    """
    dx = last.x - origin.x
    dy = last.y - origin.y
    span = float(np.hypot(dx, dy))
    reach = origin.radius + bubble.radius
    side = last.radius + bubble.radius

    cos_alpha = (span ** 2 + reach ** 2 - side ** 2) / (2 * reach * span)
    alpha = np.arccos(np.clip(cos_alpha, -1.0, 1.0))
    beta = np.arcsin(np.clip(abs(dx) / span, 0.0, 1.0))

    # Quadrant correction for the direction of `last`
    if dy < 0:
        gamma, delta = 0.0, (1.0 if dx > 0 else -1.0)
    else:
        gamma, delta = np.pi, (1.0 if dx < 0 else -1.0)

    angle = gamma + alpha + beta * delta
    x = origin.x + reach * np.sin(angle)
    y = origin.y - reach * np.cos(angle)

    return replace(bubble, x=float(x), y=float(y))


def push_clear(
    circle: Circle,
    centers: np.ndarray,
    radii: np.ndarray,
    anchor: Tuple[float, float] = (0.0, 0.0),
) -> Circle:
    """
    Move a circle outward along the ray from `anchor` through its center to
    the nearest distance where it no longer intersects any given circle.

    Each placed circle blocks an open interval of ray distances; the sweep
    hops to the end of every interval containing the current distance.
    """
    offset = np.array([circle.x - anchor[0], circle.y - anchor[1]])
    t = float(np.linalg.norm(offset))
    direction = offset / t if t > 0 else np.array([0.0, -1.0])

    if len(centers) == 0:
        return circle

    rel = centers - np.asarray(anchor, dtype=float)
    proj = rel @ direction
    reach = np.abs(radii + circle.radius)
    disc = proj ** 2 - np.sum(rel ** 2, axis=1) + reach ** 2

    hit = disc > 0
    root = np.sqrt(disc[hit])
    starts = proj[hit] - root
    ends = proj[hit] + root

    while True:
        inside = (starts < t) & (t < ends)
        if not np.any(inside):
            break
        t = float(np.max(ends[inside]))

    x, y = anchor[0] + t * direction[0], anchor[1] + t * direction[1]
    return replace(circle, x=float(x), y=float(y))


def bounding_box(circles: Sequence[Circle]) -> Optional[BoundingBox]:
    """Smallest axis-aligned box around all circles, None when empty."""
    centers, radii = as_arrays(circles)
    if len(centers) == 0:
        return None

    lows = centers - radii[:, np.newaxis]
    highs = centers + radii[:, np.newaxis]
    min_x, min_y = np.min(lows, axis=0)
    max_x, max_y = np.max(highs, axis=0)
    return (float(min_x), float(max_x), float(min_y), float(max_y))


def flatten(rings: Sequence[Sequence[Circle]]) -> List[Circle]:
    return [circle for ring in rings for circle in ring]
