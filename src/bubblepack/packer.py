"""
Packed bubble layout.

The largest bubble sits at the origin, the second one right above it. Every
further bubble is placed tangent to a pivot of the previous ring, continuing
the current ring clockwise. When a bubble would run into the first bubble of
its ring the ring is closed and a new one starts around it. The finished
cluster is rescaled and repacked until it fits the target rectangle.
"""

import numpy as np
from dataclasses import dataclass, field, replace
from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .config import (
    BoundingBox,
    Circle,
    Item,
    PackingConfig,
    PackingProgress,
    Placement,
    PlacementKey,
    Series,
    TargetRect,
)
from .geometry import bounding_box, collides, flatten, overlaps, place_bubble, push_clear
from .sizing import compute_radii


@dataclass
class Layout:
    """Result of a layout request: the rings plus what is needed to center them."""
    rings: List[List[Circle]] = field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None
    center_offset: Tuple[float, float] = (0.0, 0.0)
    converged: bool = True
    repacks: int = 0
    scale: float = 1.0

    @property
    def circles(self) -> List[Circle]:
        return flatten(self.rings)

    def __len__(self) -> int:
        return sum(len(ring) for ring in self.rings)

    def placements(self, target: TargetRect) -> Dict[PlacementKey, Placement]:
        """Bubbles in host coordinates, keyed by (owner_id, index_in_owner)."""
        dx = self.center_offset[0] + target.left
        dy = self.center_offset[1] + target.top
        return {
            c.key: Placement(c.x + dx, c.y + dy, c.radius, c.owner_id, c.index_in_owner)
            for c in self.circles
        }

    def for_owner(self, owner_id: Hashable, target: TargetRect) -> List[Placement]:
        """Placements of a single series, ordered by point index."""
        found = [p for p in self.placements(target).values() if p.owner_id == owner_id]
        return sorted(found, key=lambda p: p.index_in_owner)


@dataclass
class FitResult:
    """How a packed layout compares to the target rectangle."""
    scale: float
    bounding_box: Optional[BoundingBox]
    center_offset: Tuple[float, float]
    tolerance: float = 1e-10

    @property
    def needs_repack(self) -> bool:
        return not abs(self.scale - 1) <= self.tolerance

    @property
    def can_rescale(self) -> bool:
        return bool(np.isfinite(self.scale)) and self.scale > 0


# =========================================================================
# Population
# =========================================================================

def accumulate_items(series: Iterable[Series]) -> List[Item]:
    """Merge the values of all visible series into one population."""
    items = []
    for s in series:
        if not s.visible:
            continue
        for index, value in enumerate(s.values):
            items.append(Item(value=value, owner_id=s.owner_id, index_in_owner=index))
    return items


def make_circles(items: Sequence[Item], radii: Sequence[Optional[float]]) -> List[Circle]:
    """Unplaced circles for all items with a radius. Null radii are dropped."""
    if len(items) != len(radii):
        raise ValueError(f"Got {len(items)} items but {len(radii)} radii")
    return [
        Circle(0.0, 0.0, radius, item.owner_id, item.index_in_owner)
        for item, radius in zip(items, radii)
        if radius is not None
    ]


# =========================================================================
# Packing
# =========================================================================

def place_bubbles(circles: Sequence[Circle], config: Optional[PackingConfig] = None) -> List[List[Circle]]:
    """
    Pack circles ring by ring, largest first.

    Returns the rings: ring 0 holds the seed, ring 1 starts with the bubble
    stacked on top of it. Input circles are never modified.
    """
    config = config or PackingConfig()
    eps = config.overlap_epsilon

    ordered = sorted(circles, key=lambda c: -c.radius)
    ordered = [
        c if c.radius > 0 else replace(c, radius=config.fallback_radius)
        for c in ordered
    ]

    if not ordered:
        return []

    seed = replace(ordered[0], x=0.0, y=0.0)
    if len(ordered) == 1:
        return [[seed]]

    centers = np.empty((len(ordered), 2))
    radii = np.empty(len(ordered))
    count = 0

    def settle(candidate: Circle) -> Circle:
        nonlocal count
        placed_centers, placed_radii = centers[:count], radii[:count]
        if config.collision_guard and collides(candidate, placed_centers, placed_radii, eps):
            candidate = push_clear(candidate, placed_centers, placed_radii, anchor=(seed.x, seed.y))
            if config.verbose:
                print(f"  Pushed bubble {candidate.key} clear of its neighbours")
        centers[count] = (candidate.x, candidate.y)
        radii[count] = candidate.radius
        count += 1
        return candidate

    top = replace(ordered[1], x=0.0, y=-(ordered[1].radius + seed.radius))
    rings = [[settle(seed)], [settle(top)]]

    stage = 1  # current ring
    j = 0      # last bubble in the current ring
    k = 0      # pivot in the previous ring

    for bubble in ordered[2:]:
        ring, previous = rings[stage], rings[stage - 1]
        candidate = place_bubble(ring[j], previous[k], bubble)

        if overlaps(candidate, ring[0], eps):
            # Ring is closed, start the next one around it
            candidate = place_bubble(ring[j], ring[0], bubble)
            rings.append([])
            stage += 1
            j = 0
            k = 0
        elif stage > 1 and k + 1 < len(previous) and overlaps(candidate, previous[k + 1], eps):
            k += 1
            candidate = place_bubble(ring[j], previous[k], bubble)
            j += 1
        else:
            j += 1

        rings[stage].append(settle(candidate))

    return rings


def pack_circles(circles: Sequence[Circle], config: Optional[PackingConfig] = None) -> Layout:
    """Raw packing: rings and bounding box, no scaling or centering."""
    rings = place_bubbles(circles, config)
    return Layout(rings=rings, bounding_box=bounding_box(flatten(rings)))


def pack(
    items: Sequence[Item],
    radii: Sequence[Optional[float]],
    config: Optional[PackingConfig] = None,
) -> Layout:
    """Pack items with precomputed radii."""
    return pack_circles(make_circles(items, radii), config)


# =========================================================================
# Fitting
# =========================================================================

def fit_layout(layout: Layout, target: TargetRect, tolerance: float = 1e-10) -> FitResult:
    """
    Compare the layout's bounding box with the target rectangle.

    The scale is the smaller of the two space ratios. The center offset moves
    the middle of the bounding box onto the middle of the rectangle.
    """
    box = layout.bounding_box or bounding_box(layout.circles)
    if box is None:
        return FitResult(scale=1.0, bounding_box=None, center_offset=(0.0, 0.0), tolerance=tolerance)

    min_x, max_x, min_y, max_y = box
    with np.errstate(divide="ignore", invalid="ignore"):
        ratios = np.divide(
            [target.usable_width, target.usable_height],
            [max_x - min_x, max_y - min_y],
        )
    scale = float(np.min(ratios))

    offset = (
        target.usable_width / 2 - (min_x + max_x) / 2,
        target.usable_height / 2 - (min_y + max_y) / 2,
    )
    return FitResult(scale=scale, bounding_box=box, center_offset=offset, tolerance=tolerance)


def rescale(circles: Sequence[Circle], scale: float) -> List[Circle]:
    """Fresh unplaced copies of the circles with scaled radii."""
    return [replace(c, x=0.0, y=0.0, radius=c.radius * scale) for c in circles]


def layout_bubbles(
    items: Sequence[Item],
    target: TargetRect,
    config: Optional[PackingConfig] = None,
) -> Layout:
    """
    Full layout request: size, pack, then rescale and repack until the
    cluster fits `target`.

    Stops after `config.max_repacks` cycles. A layout that did not settle is
    still returned, with `converged` set to False.
    """
    config = config or PackingConfig()
    config.validate()

    radii = compute_radii(items, config.min_size, config.max_size, target, config.size_by_area)
    layout = pack(items, radii, config)
    progress = PackingProgress(max_repacks=config.max_repacks)

    while True:
        fit = fit_layout(layout, target, config.scale_tolerance)
        progress.scale = fit.scale
        progress.scales.append(fit.scale)

        if not fit.needs_repack:
            progress.converged = True
            break
        if progress.exhausted or not fit.can_rescale:
            break

        layout = pack_circles(rescale(layout.circles, fit.scale), config)
        progress.repacks += 1

        if config.verbose:
            print(progress)

    layout.center_offset = fit.center_offset
    layout.converged = progress.converged
    layout.repacks = progress.repacks
    layout.scale = progress.scale

    if config.verbose:
        if progress.converged:
            print(f"Done! {len(layout)} bubbles | {progress}")
        else:
            print(f"Layout did not converge, keeping last packing | {progress}")

    return layout


# =========================================================================
# Main Entry Points
# =========================================================================

class BubblePacker:
    """Lays out the bubbles of all series of a chart inside a target rectangle."""

    def __init__(self, target: TargetRect, config: Optional[PackingConfig] = None):
        self.config = config or PackingConfig()
        self.config.validate()
        self.target = target
        self.layout: Optional[Layout] = None

    def compute(self, items: Sequence[Item]) -> Layout:
        """Run a fresh layout request, replacing the previous layout."""
        self.layout = layout_bubbles(items, self.target, self.config)
        return self.layout

    def generate(self, items: Sequence[Item]) -> Iterator[Placement]:
        """
        Lay out `items` and yield their placements in packing order.

        Yields:
            Placement in host coordinates for every item with a radius.
        """
        layout = self.compute(items)
        yield from layout.placements(self.target).values()

    def pack(self, items: Sequence[Item]) -> Dict[PlacementKey, Placement]:
        """Lay out `items` and return placements keyed by (owner_id, index_in_owner)."""
        return self.compute(items).placements(self.target)

    def pack_series(self, series: Iterable[Series]) -> Dict[PlacementKey, Placement]:
        """Lay out all visible series together."""
        return self.pack(accumulate_items(series))
