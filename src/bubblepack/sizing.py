"""
Radius calculation for bubbles.

Values are mapped into [min_radius, max_radius], either linearly or so that
the bubble area (not the radius) follows the value.
"""

import re
import numpy as np
from typing import List, Optional, Sequence

from .config import Item, SizeSpec, TargetRect

_SIZE_PATTERN = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))\s*(%?)\s*$")


def resolve_size(spec: SizeSpec, smallest_side: float) -> float:
    """
    Turn a size spec into a length.

    Numbers are absolute lengths, "<n>%" strings are a percentage of
    `smallest_side`, other numeric strings are absolute lengths.
    """
    if isinstance(spec, (int, float)) and not isinstance(spec, bool):
        return float(spec)

    match = _SIZE_PATTERN.match(str(spec))
    if match is None:
        raise ValueError(f"Invalid size spec: {spec!r}")

    length = float(match.group(1))
    if match.group(2):
        return smallest_side * length / 100
    return length


def compute_radii(
    items: Sequence[Item],
    min_size: SizeSpec,
    max_size: SizeSpec,
    target: TargetRect,
    size_by_area: bool = True,
) -> List[Optional[float]]:
    """
    Radius for every item, None for null and zero values.

    Values below the minimum get `min_radius - 1` so they stay visibly
    smaller than values sitting exactly at the minimum. An inverted or
    empty range puts every value at the midpoint.
    """
    min_radius = resolve_size(min_size, target.smallest_side)
    max_radius = resolve_size(max_size, target.smallest_side)
    radius_range = max_radius - min_radius

    if len(items) == 0:
        return []

    values = np.array([np.nan if it.value is None else it.value for it in items], dtype=float)
    excluded = np.isnan(values) | (values == 0)
    values = np.where(excluded, min_radius, values)
    below = ~excluded & (values < min_radius)

    if radius_range > 0:
        pos = (values - min_radius) / radius_range
    else:
        pos = np.full_like(values, 0.5)

    if size_by_area:
        pos = np.where(pos >= 0, np.sqrt(np.clip(pos, 0, None)), pos)

    radii = np.ceil(min_radius + pos * radius_range) / 2
    radii = np.where(below, min_radius - 1, radii)

    return [None if skip else float(r) for skip, r in zip(excluded, radii)]
