"""
Polar projection for ringplot

Maps data coordinates inside a cell to polar coordinates (angle, radius)
and on to Cartesian canvas coordinates, and back.

Mapping chain:
    data-x -> fraction of the padded sector span -> angle
    data-y -> fraction of the padded track band  -> radius
    (angle, radius) -> (r cos a, r sin a)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
import logging
import warnings

import numpy as np

from .exceptions import ConfigurationError, PointsOverflowWarning
from .layout.types import CanvasExtent, Sector, TrackBand
from .types import CellInfo, DrawStyle, Facing
from .utils import (
    FULL_CIRCLE,
    cartesian_to_polar,
    normalize_degree,
    polar_to_cartesian,
    to_scalar_or_array,
    unwrap_near,
)

logger = logging.getLogger(__name__)

# Relative slack before a coordinate counts as outside its cell
_OVERFLOW_SLACK: float = 1e-9


def arc_points(start_degree: float, end_degree: float, radius: float, n: int = 50) -> np.ndarray:
    """Generate n Cartesian points along an arc, as an (n, 2) array"""
    angles = np.linspace(start_degree, end_degree, n)
    x, y = polar_to_cartesian(angles, radius)
    return np.column_stack([x, y])


def readable_rotation(rotation: float) -> Tuple[float, bool]:
    """
    Turn a text rotation so it never renders upside down

    Args:
        rotation: Raw rotation in degrees

    Returns:
        (rotation in [0, 360), whether it was flipped by 180 degrees)
    """
    raw = float(normalize_degree(rotation))
    # Flip text on bottom half to keep readable
    if 90 < raw < 270:
        return float(normalize_degree(raw + 180)), True
    return raw, False


def facing_rotation(degree: float, facing: Facing) -> float:
    """
    Raw text rotation for a label placed at a canvas angle

    - inside: along the circle, top of the text toward the centre
    - outside: along the circle, top of the text away from the centre
    - reverse_clockwise: radial, reading from the centre outward
    - clockwise: radial, reading from the rim inward
    - downward: horizontal regardless of position
    """
    if facing == 'inside':
        return degree + 90
    if facing == 'outside':
        return degree - 90
    if facing == 'reverse_clockwise':
        return degree
    if facing == 'clockwise':
        return degree + 180
    if facing == 'downward':
        return 0.0
    raise ConfigurationError(f"Invalid facing: {facing}")


@dataclass(frozen=True)
class TextPlacement:
    """
    Resolved position and orientation of a text label

    Attributes:
        x, y: Canvas coordinates of the anchor
        rotation: Rotation in degrees, [0, 360)
        facing: Facing the rotation was derived from
        flipped: Whether the rotation was turned 180 degrees for readability
        ha: Horizontal alignment relative to the anchor
        va: Vertical alignment relative to the anchor
    """
    x: float
    y: float
    rotation: float
    facing: Facing
    flipped: bool = False
    ha: str = 'center'
    va: str = 'center'


def place_text(degree: float, radius: float, facing: Facing = 'inside', nice_facing: bool = True) -> TextPlacement:
    """
    Anchor, rotation and alignment of a label at a canvas angle and radius

    Args:
        degree: Canvas angle of the anchor
        radius: Canvas radius of the anchor
        facing: Orientation relative to the circle
        nice_facing: Flip labels that would read upside down
    """
    cx, cy = polar_to_cartesian(degree, radius)
    rotation = facing_rotation(degree, facing)
    if nice_facing:
        rotation, flipped = readable_rotation(rotation)
    else:
        rotation, flipped = float(normalize_degree(rotation)), False

    # Radial labels start at the anchor and run away from it
    ha = 'center'
    if facing == 'reverse_clockwise':
        ha = 'right' if flipped else 'left'
    elif facing == 'clockwise':
        ha = 'left' if flipped else 'right'
    return TextPlacement(x=float(cx), y=float(cy), rotation=rotation % FULL_CIRCLE,
                         facing=facing, flipped=flipped, ha=ha)


class PolarProjector:
    """
    Bidirectional mapping between cell data coordinates and the canvas

    Args:
        sector: Allocated sector the cell belongs to
        band: Track band the cell belongs to
        ylim: Data-y range of the cell
        padding: (bottom, left, top, right) padding fractions
    """

    def __init__(
        self,
        sector: Sector,
        band: TrackBand,
        ylim: Tuple[float, float],
        padding: Tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    ):
        self.sector = sector
        self.band = band
        self.ylim = (float(ylim[0]), float(ylim[1]))
        self.padding = tuple(padding)
        if self.ylim[1] <= self.ylim[0]:
            raise ConfigurationError(f"Cell y range must be increasing, got {self.ylim}")

        bottom, left, top, right = self.padding
        span = sector.end_angle - sector.start_angle
        self.angle_start = sector.start_angle + left * span
        self.angle_end = sector.end_angle - right * span

        height = band.height
        self.radius_bottom = band.plot_inner + bottom * height
        self.radius_top = band.plot_outer - top * height

    @property
    def mid_angle(self) -> float:
        return (self.angle_start + self.angle_end) / 2

    # ------------------------------------------------------------------
    # Axis mappings
    # ------------------------------------------------------------------

    def x_to_angle(self, x):
        xmin, xmax = self.sector.xlim
        if xmax == xmin:
            # Manual-width sectors may carry a degenerate x range
            return to_scalar_or_array(np.full_like(np.asarray(x, dtype=float), self.mid_angle))
        fraction = (np.asarray(x, dtype=float) - xmin) / (xmax - xmin)
        return to_scalar_or_array(self.angle_start + fraction * (self.angle_end - self.angle_start))

    def angle_to_x(self, degree):
        xmin, xmax = self.sector.xlim
        degree = unwrap_near(degree, self.mid_angle)
        if xmax == xmin or self.angle_end == self.angle_start:
            return to_scalar_or_array(np.full_like(degree, xmin))
        fraction = (degree - self.angle_start) / (self.angle_end - self.angle_start)
        return to_scalar_or_array(xmin + fraction * (xmax - xmin))

    def y_to_radius(self, y):
        ymin, ymax = self.ylim
        fraction = (np.asarray(y, dtype=float) - ymin) / (ymax - ymin)
        return to_scalar_or_array(self.radius_bottom + fraction * (self.radius_top - self.radius_bottom))

    def radius_to_y(self, radius):
        ymin, ymax = self.ylim
        fraction = (np.asarray(radius, dtype=float) - self.radius_bottom) / (self.radius_top - self.radius_bottom)
        return to_scalar_or_array(ymin + fraction * (ymax - ymin))

    # ------------------------------------------------------------------
    # Composite mappings
    # ------------------------------------------------------------------

    def to_polar(self, x, y):
        """Data (x, y) -> (angle in degrees, radius)"""
        return self.x_to_angle(x), self.y_to_radius(y)

    def from_polar(self, degree, radius):
        """(angle, radius) -> data (x, y)"""
        return self.angle_to_x(degree), self.radius_to_y(radius)

    def to_canvas(self, x, y):
        """Data (x, y) -> canvas (cx, cy)"""
        degree, radius = self.to_polar(x, y)
        cx, cy = polar_to_cartesian(degree, radius)
        return to_scalar_or_array(cx), to_scalar_or_array(cy)

    def from_canvas(self, cx, cy):
        """Canvas (cx, cy) -> data (x, y)"""
        degree, radius = cartesian_to_polar(np.asarray(cx, dtype=float), np.asarray(cy, dtype=float))
        return self.from_polar(degree, radius)


@dataclass(frozen=True)
class CellHandle:
    """
    Read-only view of one (sector, track) cell

    Attributes:
        sector: Allocated sector
        band: Track band
        ylim: Data-y range of this cell
        padding: (bottom, left, top, right) padding fractions
        layer: Id of the layout session that owns the cell
        extent: Canvas extent of that session
        visible: Whether the cell has been activated for drawing
        background: Optional background style for the cell
        overflow_warning: Emit PointsOverflowWarning for out-of-cell data
    """
    sector: Sector
    band: TrackBand
    ylim: Tuple[float, float]
    padding: Tuple[float, float, float, float]
    layer: int
    extent: CanvasExtent = field(default_factory=CanvasExtent)
    visible: bool = True
    background: Optional[DrawStyle] = field(default=None, compare=False)
    overflow_warning: bool = True

    def __post_init__(self):
        object.__setattr__(self, '_projector', PolarProjector(self.sector, self.band, self.ylim, self.padding))

    @property
    def projector(self) -> PolarProjector:
        return self._projector

    @property
    def sector_name(self) -> str:
        return self.sector.name

    @property
    def track(self) -> int:
        return self.band.index

    @property
    def xlim(self) -> Tuple[float, float]:
        return self.sector.xlim

    @property
    def key(self) -> Tuple[int, str, int]:
        """(layer, sector, track) identity of the cell"""
        return (self.layer, self.sector.name, self.band.index)

    def _check_overflow(self, x, y) -> None:
        if not self.overflow_warning:
            return
        xs = np.asarray(x, dtype=float)
        ys = np.asarray(y, dtype=float)
        xmin, xmax = self.sector.xlim
        ymin, ymax = self.ylim
        xslack = _OVERFLOW_SLACK * max(abs(xmax - xmin), 1.0)
        yslack = _OVERFLOW_SLACK * max(abs(ymax - ymin), 1.0)
        outside = ((xs < xmin - xslack) | (xs > xmax + xslack) |
                   (ys < ymin - yslack) | (ys > ymax + yslack))
        n_outside = int(np.count_nonzero(outside))
        if n_outside:
            message = (f"{n_outside} point(s) outside cell ({self.sector.name}, track {self.band.index}) "
                       f"bounds x={self.sector.xlim}, y={self.ylim}")
            logger.debug(message)
            warnings.warn(message, PointsOverflowWarning, stacklevel=3)

    def to_canvas(self, x, y):
        """
        Project data coordinates onto the canvas

        Out-of-cell coordinates are projected as they are (never clamped)
        and trigger a PointsOverflowWarning when enabled.

        Args:
            x: Data-x value(s) within the sector's xlim
            y: Data-y value(s) within the cell's ylim

        Returns:
            (cx, cy) canvas coordinates, floats or arrays matching the input
        """
        self._check_overflow(x, y)
        return self._projector.to_canvas(x, y)

    def from_canvas(self, cx, cy):
        """Inverse of to_canvas"""
        return self._projector.from_canvas(cx, cy)

    def to_polar(self, x, y):
        self._check_overflow(x, y)
        return self._projector.to_polar(x, y)

    def from_polar(self, degree, radius):
        return self._projector.from_polar(degree, radius)

    def x_to_angle(self, x):
        return self._projector.x_to_angle(x)

    def y_to_radius(self, y):
        return self._projector.y_to_radius(y)

    def to_unit(self, x, y):
        """Data coordinates -> shared unit frame of the compositor"""
        return self.extent.to_unit(*self._projector.to_canvas(x, y))

    @property
    def top_radius(self) -> float:
        """Radius of ylim[1]"""
        return self._projector.radius_top

    @property
    def bottom_radius(self) -> float:
        """Radius of ylim[0]"""
        return self._projector.radius_bottom

    def meta(self) -> CellInfo:
        """Meta data of the cell (ranges, angles, radii, padding)"""
        return CellInfo(
            sector=self.sector.name,
            track=self.band.index,
            layer=self.layer,
            xlim=self.sector.xlim,
            ylim=self.ylim,
            xrange=self.sector.xrange,
            yrange=self.ylim[1] - self.ylim[0],
            sector_start_angle=self.sector.start_angle,
            sector_end_angle=self.sector.end_angle,
            cell_start_angle=self._projector.angle_start,
            cell_end_angle=self._projector.angle_end,
            cell_top_radius=self.band.plot_outer,
            cell_bottom_radius=self.band.plot_inner,
            track_margin=self.band.margin,
            cell_padding=self.padding,
            group=self.sector.group,
        )

    def outline(self, n: int = 50) -> np.ndarray:
        """
        Closed polygon around the whole cell (padding included)

        Returns:
            (2n, 2) array: outer arc from start to end, inner arc back
        """
        outer = arc_points(self.sector.start_angle, self.sector.end_angle, self.band.plot_outer, n)
        inner = arc_points(self.sector.end_angle, self.sector.start_angle, self.band.plot_inner, n)
        return np.vstack([outer, inner])

    def text_placement(
        self,
        x: float,
        y: float,
        facing: Facing = 'inside',
        nice_facing: bool = True
    ) -> TextPlacement:
        """
        Position and rotation for a label at data (x, y)

        Args:
            x, y: Data coordinates of the anchor
            facing: Orientation relative to the circle
            nice_facing: Flip labels that would read upside down

        Returns:
            TextPlacement with canvas anchor, rotation and alignment
        """
        degree, radius = self.to_polar(x, y)
        return place_text(degree, radius, facing, nice_facing)
