"""
bubblepack - Packed bubble layouts for charts.

Usage:
    from bubblepack import BubblePacker, PackingConfig, Series, TargetRect

    # Basic usage
    packer = BubblePacker(TargetRect(400, 300))
    placements = packer.pack_series([Series("a", [5, 1, 20]), Series("b", [7, 3])])

    # With configuration
    config = PackingConfig(min_size=8, max_size="60%", size_by=SizeBy.WIDTH, verbose=True)
    packer = BubblePacker(TargetRect(400, 300, left=40, top=20), config)
    placements = packer.pack(items)

Pipeline:
    - Sizing: values -> radii in [min_size, max_size], by area or by width
    - Packing: largest bubble in the middle, rings of tangent bubbles around it
    - Fitting: rescale and repack until the cluster fills the target rectangle
"""

from .config import (
    Circle,
    Item,
    PackingConfig,
    PackingProgress,
    Placement,
    Series,
    SizeBy,
    TargetRect,
)
from .geometry import bounding_box, overlapping_pairs, overlaps, place_bubble
from .packer import (
    BubblePacker,
    FitResult,
    Layout,
    accumulate_items,
    fit_layout,
    layout_bubbles,
    pack,
    place_bubbles,
)
from .sizing import compute_radii, resolve_size

__all__ = [
    "BubblePacker",
    "PackingConfig",
    "PackingProgress",
    "SizeBy",
    "Item",
    "Circle",
    "Series",
    "TargetRect",
    "Placement",
    "Layout",
    "FitResult",
    "accumulate_items",
    "compute_radii",
    "resolve_size",
    "overlaps",
    "overlapping_pairs",
    "place_bubble",
    "bounding_box",
    "place_bubbles",
    "pack",
    "fit_layout",
    "layout_bubbles",
]

__version__ = "0.1.0"
