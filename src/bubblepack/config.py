"""
Configuration and type definitions for packed bubble layouts.
"""

from dataclasses import dataclass, field
from typing import Hashable, List, Optional, Sequence, Tuple, Union
from enum import Enum

# Type aliases
SizeSpec = Union[float, int, str]
BoundingBox = Tuple[float, float, float, float]  # (min_x, max_x, min_y, max_y)
PlacementKey = Tuple[Hashable, int]  # (owner_id, index_in_owner)


class SizeBy(Enum):
    """How a value maps onto a bubble."""
    AREA = "area"    # sqrt scaling, area grows linearly with value
    WIDTH = "width"  # linear scaling of the radius


@dataclass(frozen=True)
class Item:
    """One data point of one series, as handed over by the host."""
    value: Optional[float]
    owner_id: Hashable
    index_in_owner: int


@dataclass
class Circle:
    """A bubble in the internal packing space."""
    x: float
    y: float
    radius: Optional[float]
    owner_id: Hashable = None
    index_in_owner: int = 0

    @property
    def key(self) -> PlacementKey:
        return (self.owner_id, self.index_in_owner)


@dataclass
class Series:
    """Values of one series. Hidden series are left out of the layout."""
    owner_id: Hashable
    values: Sequence[Optional[float]]
    visible: bool = True


@dataclass(frozen=True)
class TargetRect:
    """The drawing surface the cluster has to fit in."""
    usable_width: float
    usable_height: float
    left: float = 0.0
    top: float = 0.0

    @property
    def smallest_side(self) -> float:
        return min(self.usable_width, self.usable_height)


@dataclass(frozen=True)
class Placement:
    """Final position of a bubble in host coordinates."""
    x: float
    y: float
    radius: float
    owner_id: Hashable
    index_in_owner: int

    @property
    def width(self) -> float:
        return 2 * self.radius

    @property
    def height(self) -> float:
        return 2 * self.radius

    @property
    def label_box(self) -> Tuple[float, float, float, float]:
        """Alignment box for a data label: (x, y, width, height)."""
        return (self.x - self.radius, self.y - self.radius, self.width, self.height)


@dataclass
class PackingConfig:
    """
    Configuration parameters for the packed bubble layout.

    Sizing:
        min_size: Smallest bubble size, absolute or "<n>%" of the smaller
            side of the target rectangle
        max_size: Largest bubble size, same format as min_size
        size_by: AREA scales the bubble area with the value, WIDTH its radius

    Packing:
        overlap_epsilon: Tolerance below which touching circles are not
            reported as overlapping
        fallback_radius: Radius used in place of a zero or negative one
        collision_guard: Check every placement against all placed circles
            and push colliding ones outward

    Fitting:
        scale_tolerance: How close to 1.0 the fit scale must get
        max_repacks: Rescale-and-repack cycles before giving up
    """
    # Sizing
    min_size: SizeSpec = "10%"
    max_size: SizeSpec = "100%"
    size_by: SizeBy = SizeBy.AREA

    # Packing
    overlap_epsilon: float = 1e-3
    fallback_radius: float = 1.0
    collision_guard: bool = True

    # Fitting
    scale_tolerance: float = 1e-10
    max_repacks: int = 20

    # Output
    verbose: bool = False

    @property
    def size_by_area(self) -> bool:
        return self.size_by is not SizeBy.WIDTH

    def validate(self) -> None:
        if self.max_repacks < 1:
            raise ValueError(f"max_repacks must be at least 1, got {self.max_repacks}")
        if self.overlap_epsilon < 0 or self.scale_tolerance < 0:
            raise ValueError("tolerances must not be negative")
        if self.fallback_radius <= 0:
            raise ValueError(f"fallback_radius must be positive, got {self.fallback_radius}")


@dataclass
class PackingProgress:
    """Tracks the rescale-and-repack loop."""
    repacks: int = 0
    max_repacks: int = 20
    scale: float = 1.0
    converged: bool = False
    scales: List[float] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        return self.repacks >= self.max_repacks

    def __str__(self) -> str:
        state = "converged" if self.converged else "not converged"
        return f"Repacks: {self.repacks}/{self.max_repacks} | Scale: {self.scale:.12g} ({state})"
