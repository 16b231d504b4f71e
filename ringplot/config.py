"""
ringplot Configuration
Layout parameters for circular sessions, with presets
"""
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .exceptions import ConfigurationError
from .types import Direction, TrackOrder


@dataclass
class CellPadding:
    """
    Padding inside every cell, as fractions of the cell's own extent

    left/right shrink the angular span of the sector, bottom/top shrink the
    radial plotting band of the track.
    """

    bottom: float = 0.02
    """Fraction of the track band kept empty at the inner edge"""

    left: float = 0.0
    """Fraction of the sector span kept empty at the xmin side"""

    top: float = 0.02
    """Fraction of the track band kept empty at the outer edge"""

    right: float = 0.0
    """Fraction of the sector span kept empty at the xmax side"""

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """(bottom, left, top, right), the order used in cell meta data"""
        return (self.bottom, self.left, self.top, self.right)

    def validate(self) -> None:
        for name in ('bottom', 'left', 'top', 'right'):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"cell padding '{name}' must be >= 0, got {value}")
        if self.left + self.right >= 1.0:
            raise ConfigurationError("cell padding left + right must be < 1")
        if self.bottom + self.top >= 1.0:
            raise ConfigurationError("cell padding bottom + top must be < 1")


@dataclass
class TrackConfig:
    """
    Default sizing for tracks that don't specify their own
    """

    height: float = 0.2
    """Plotting height of a track, as a fraction of the drawing radius"""

    margin: Tuple[float, float] = (0.01, 0.01)
    """Empty space (bottom, top) around the plotting band, as radius fractions"""

    def validate(self) -> None:
        if self.height <= 0:
            raise ConfigurationError(f"track height must be > 0, got {self.height}")
        if min(self.margin) < 0:
            raise ConfigurationError(f"track margin must be >= 0, got {self.margin}")


@dataclass
class CircularConfig:
    """
    Complete configuration of one layout session
    """

    # ============================================================
    # ANGULAR LAYOUT
    # ============================================================
    start_degree: float = 0.0
    """Angle (degrees, counter-clockwise from 3 o'clock) where the first sector begins"""

    direction: Direction = 'counterclockwise'
    """Order in which sectors follow each other around the circle"""

    gap_degree: float = 1.0
    """Uniform gap (degrees) reserved after every sector"""

    gap_after: Dict[str, float] = field(default_factory=dict)
    """Per-sector gap overrides (degrees), keyed by sector name"""

    # ============================================================
    # CANVAS
    # ============================================================
    canvas_xlim: Tuple[float, float] = (-1.0, 1.0)
    """Logical x extent of the canvas this session maps into"""

    canvas_ylim: Tuple[float, float] = (-1.0, 1.0)
    """Logical y extent of the canvas this session maps into"""

    # ============================================================
    # TRACKS AND CELLS
    # ============================================================
    outer_radius: float = 1.0
    """Outer edge of the drawing area (canvas units)"""

    inner_radius: float = 0.0
    """Inner limit of the drawing area (canvas units)"""

    track_order: TrackOrder = 'inward'
    """Stack tracks from outer_radius inward, or from inner_radius outward"""

    track: TrackConfig = field(default_factory=TrackConfig)
    """Default track sizing"""

    cell_padding: CellPadding = field(default_factory=CellPadding)
    """Default padding inside cells"""

    # ============================================================
    # BEHAVIOUR
    # ============================================================
    points_overflow_warning: bool = True
    """Warn (PointsOverflowWarning) when data coordinates fall outside their cell"""

    arc_resolution: int = 100
    """Number of points used when sampling arcs for outlines and links"""

    @property
    def sign(self) -> int:
        """+1 for counter-clockwise layouts, -1 for clockwise"""
        return -1 if self.direction == 'clockwise' else 1

    @property
    def drawing_radius(self) -> float:
        """Radial budget available to tracks"""
        return self.outer_radius - self.inner_radius

    def validate(self) -> None:
        """
        Check the configuration for impossible values

        Raises:
            ConfigurationError: On the first invalid parameter found
        """
        if self.direction not in ('clockwise', 'counterclockwise'):
            raise ConfigurationError(f"Invalid direction: {self.direction}. Use 'clockwise' or 'counterclockwise'")
        if self.track_order not in ('inward', 'outward'):
            raise ConfigurationError(f"Invalid track order: {self.track_order}. Use 'inward' or 'outward'")
        if self.gap_degree < 0:
            raise ConfigurationError(f"gap_degree must be >= 0, got {self.gap_degree}")
        for name, gap in self.gap_after.items():
            if gap < 0:
                raise ConfigurationError(f"gap after sector '{name}' must be >= 0, got {gap}")
        for label, lim in (('canvas_xlim', self.canvas_xlim), ('canvas_ylim', self.canvas_ylim)):
            if len(lim) != 2 or lim[1] <= lim[0]:
                raise ConfigurationError(f"{label} must be an increasing pair, got {lim}")
        if not 0 <= self.inner_radius < self.outer_radius:
            raise ConfigurationError(
                f"Radii must satisfy 0 <= inner < outer, got inner={self.inner_radius}, outer={self.outer_radius}")
        if self.arc_resolution < 2:
            raise ConfigurationError(f"arc_resolution must be >= 2, got {self.arc_resolution}")
        self.track.validate()
        self.cell_padding.validate()

    # ============================================================
    # PRESET CONFIGURATIONS
    # ============================================================

    @classmethod
    def compact(cls) -> 'CircularConfig':
        """
        Tight settings for many sectors and tracks

        - Half-degree gaps
        - Thinner default tracks with minimal margins

        Example:
            >>> config = CircularConfig.compact()
            >>> session = controller.begin_layout(config)
        """
        config = cls()
        config.gap_degree = 0.5
        config.track.height = 0.1
        config.track.margin = (0.005, 0.005)
        config.cell_padding = CellPadding(bottom=0.01, left=0.0, top=0.01, right=0.0)
        return config

    @classmethod
    def nested(cls, scale: float = 2.0) -> 'CircularConfig':
        """
        Settings for a circle drawn inside another one

        Widens the canvas extent by `scale`, so the unit drawing radius
        renders at 1/scale of the apparent size of a default session.

        Example:
            >>> outer = controller.begin_layout()
            >>> inner = controller.begin_layout(CircularConfig.nested(2.0), composite=True)
        """
        if scale <= 0:
            raise ConfigurationError(f"nested scale must be > 0, got {scale}")
        config = cls()
        config.canvas_xlim = (-scale, scale)
        config.canvas_ylim = (-scale, scale)
        return config

    @classmethod
    def clockwise(cls, start_degree: float = 90.0) -> 'CircularConfig':
        """
        Clock-face layout: first sector at 12 o'clock, sectors running clockwise

        Example:
            >>> config = CircularConfig.clockwise()
        """
        config = cls()
        config.start_degree = start_degree
        config.direction = 'clockwise'
        return config
