"""
Layout types for ringplot
Data structures produced by the sector allocator and the track stack

All types are immutable (frozen) for safety and testability.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from ..utils import normalize_degree


@dataclass(frozen=True)
class SectorSpec:
    """
    Request for one sector, before angles are allocated

    Attributes:
        name: Unique sector identity
        xlim: Data-x range (xmin, xmax) mapped onto the sector span
        manual_width: Optional width as a fraction of the angle available
            to the sector's group; overrides the x-range proportion
        gap_after: Optional gap (degrees) after this sector; overrides config
        group: Optional zoom group tag; widths are normalised per group
    """
    name: str
    xlim: Tuple[float, float]
    manual_width: Optional[float] = None
    gap_after: Optional[float] = None
    group: Optional[str] = None

    @property
    def xrange(self) -> float:
        """Size of the data-x range"""
        return self.xlim[1] - self.xlim[0]


@dataclass(frozen=True)
class Sector:
    """
    Allocated angular partition of the circle

    Angles are in degrees, counter-clockwise from 3 o'clock, and are not
    wrapped into [0, 360): start_angle is where xmin lands, end_angle where
    xmax lands. For clockwise layouts end_angle < start_angle.

    Attributes:
        name: Unique sector identity
        index: Position in the sector order (0-based)
        xlim: Data-x range (xmin, xmax)
        start_angle: Angle of xmin
        end_angle: Angle of xmax
        gap_after: Gap (degrees) reserved after this sector
        group: Zoom group tag, None for ungrouped layouts
    """
    name: str
    index: int
    xlim: Tuple[float, float]
    start_angle: float
    end_angle: float
    gap_after: float
    group: Optional[str] = None

    @property
    def width(self) -> float:
        """Angular width of sector in degrees"""
        return abs(self.end_angle - self.start_angle)

    @property
    def xrange(self) -> float:
        """Size of the data-x range"""
        return self.xlim[1] - self.xlim[0]

    @property
    def mid_angle(self) -> float:
        """Angle halfway through the sector"""
        return (self.start_angle + self.end_angle) / 2

    def contains_angle(self, degree: float) -> bool:
        """Whether a canvas angle falls inside this sector's span"""
        offset = float(normalize_degree((degree - self.start_angle) * np.sign(self.end_angle - self.start_angle)))
        return offset <= self.width


@dataclass(frozen=True)
class TrackBand:
    """
    Radial band reserved for one track

    The slot [inner_radius, outer_radius] is what the stack hands out:
    consecutive slots touch. Plotting happens inside the slot minus the
    margins.

    Attributes:
        index: Track ordinal (1 = first added)
        outer_radius: Outer edge of the slot
        inner_radius: Inner edge of the slot
        margin: (bottom, top) empty space inside the slot
    """
    index: int
    outer_radius: float
    inner_radius: float
    margin: Tuple[float, float] = (0.0, 0.0)

    @property
    def slot_height(self) -> float:
        """Radial size of the whole slot, margins included"""
        return self.outer_radius - self.inner_radius

    @property
    def height(self) -> float:
        """Radial size of the plotting band"""
        return self.plot_outer - self.plot_inner

    @property
    def plot_outer(self) -> float:
        """Outer radius of the plotting band"""
        return self.outer_radius - self.margin[1]

    @property
    def plot_inner(self) -> float:
        """Inner radius of the plotting band"""
        return self.inner_radius + self.margin[0]


@dataclass(frozen=True)
class CanvasExtent:
    """
    Logical coordinate bounds of one layout's canvas

    Every layer shares the same physical surface; the unit frame [0, 1]²
    is the common denominator used to move points between layers with
    different extents.
    """
    xlim: Tuple[float, float] = (-1.0, 1.0)
    ylim: Tuple[float, float] = (-1.0, 1.0)

    @property
    def width(self) -> float:
        return self.xlim[1] - self.xlim[0]

    @property
    def height(self) -> float:
        return self.ylim[1] - self.ylim[0]

    def to_unit(self, x, y):
        """Canvas coordinates -> shared unit frame"""
        ux = (np.asarray(x, dtype=float) - self.xlim[0]) / self.width
        uy = (np.asarray(y, dtype=float) - self.ylim[0]) / self.height
        return ux, uy

    def from_unit(self, ux, uy):
        """Shared unit frame -> canvas coordinates"""
        x = self.xlim[0] + np.asarray(ux, dtype=float) * self.width
        y = self.ylim[0] + np.asarray(uy, dtype=float) * self.height
        return x, y

    def convert(self, x, y, target: 'CanvasExtent'):
        """Re-express canvas coordinates of this extent in another extent"""
        if target == self:
            return np.asarray(x, dtype=float), np.asarray(y, dtype=float)
        return target.from_unit(*self.to_unit(x, y))

    def apparent_scale(self, reference: 'CanvasExtent') -> float:
        """How large one canvas unit of this extent looks relative to reference"""
        return reference.width / self.width
