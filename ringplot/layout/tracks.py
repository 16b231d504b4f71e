"""
Track stacking for ringplot

Hands out contiguous radial slots, one per track. With the default inward
order the first track sits against the outer radius and every following
track starts where the previous one ended.
"""
from __future__ import annotations
from typing import List, Optional, Sequence, Tuple
import logging

from ..config import CircularConfig
from ..exceptions import CapacityError, CellLookupError, ConfigurationError
from ..utils import RADIUS_TOLERANCE, as_range
from .types import TrackBand

logger = logging.getLogger(__name__)


class TrackStack:
    """
    Ordered set of concentric tracks of one layout session

    Algorithm:
    1. A track's slot = plotting height + bottom margin + top margin
    2. The slot starts at the edge left by the previous track (or at the
       outer/inner radius for the first one)
    3. A slot crossing the opposite radius limit is refused with CapacityError
    """

    def __init__(self, config: Optional[CircularConfig] = None):
        self.config = config or CircularConfig()
        self._bands: List[TrackBand] = []

    def __len__(self) -> int:
        return len(self._bands)

    def __iter__(self):
        return iter(self._bands)

    @property
    def bands(self) -> Tuple[TrackBand, ...]:
        """All allocated bands, first added first"""
        return tuple(self._bands)

    @property
    def used(self) -> float:
        """Radius consumed by allocated slots"""
        return sum(b.slot_height for b in self._bands)

    @property
    def remaining(self) -> float:
        """Radius still available for new tracks"""
        return max(self.config.drawing_radius - self.used, 0.0)

    def get(self, index: int) -> TrackBand:
        """
        Look up a track by its 1-based index

        Raises:
            CellLookupError: If no such track exists
        """
        if not isinstance(index, int) or not 1 <= index <= len(self._bands):
            raise CellLookupError(f"Unknown track {index!r}; session has {len(self._bands)} track(s)")
        return self._bands[index - 1]

    def add(self, height: Optional[float] = None, margin: Optional[Sequence[float]] = None) -> TrackBand:
        """
        Allocate the next track

        Args:
            height: Plotting height (radius units); config default if None
            margin: (bottom, top) margins; config default if None

        Returns:
            The allocated band

        Raises:
            ConfigurationError: Non-positive height or negative margin
            CapacityError: Not enough radius left
        """
        band = self._next_band(self._bands[-1] if self._bands else None, height, margin)
        self._bands.append(band)
        logger.info(f"Track {band.index}: slot {band.inner_radius:.4f}-{band.outer_radius:.4f}, "
                    f"plot band {band.plot_inner:.4f}-{band.plot_outer:.4f}")
        return band

    def plan(
        self,
        heights: Sequence[Optional[float]],
        margin: Optional[Sequence[float]] = None
    ) -> List[TrackBand]:
        """
        Allocate several tracks at once

        Tracks with a height keep it; tracks with None share whatever radius
        remains equally. Either every band is committed or none is.

        Args:
            heights: One entry per track, a height or None
            margin: (bottom, top) margins applied to every planned track

        Returns:
            The allocated bands, in order
        """
        if not heights:
            return []
        bottom, top = self._resolve_margin(margin)
        sized = [h for h in heights if h is not None]
        n_auto = len(heights) - len(sized)
        for h in sized:
            if h <= 0:
                raise ConfigurationError(f"Track height must be > 0, got {h}")

        auto_height = None
        if n_auto:
            left = self.remaining - sum(sized) - len(heights) * (bottom + top)
            auto_height = left / n_auto
            if auto_height <= RADIUS_TOLERANCE:
                raise CapacityError(
                    f"No radius left for {n_auto} auto-sized track(s) "
                    f"(remaining {self.remaining:.4f}, requested {sum(sized):.4f} + margins)")
            logger.debug(f"Auto-sized tracks get height {auto_height:.4f} each")

        planned: List[TrackBand] = []
        previous = self._bands[-1] if self._bands else None
        for h in heights:
            band = self._next_band(previous, h if h is not None else auto_height, (bottom, top),
                                   index=len(self._bands) + len(planned) + 1)
            planned.append(band)
            previous = band

        self._bands.extend(planned)
        logger.info(f"Planned {len(planned)} tracks, {self.remaining:.4f} radius left")
        return planned

    def _resolve_margin(self, margin: Optional[Sequence[float]]) -> Tuple[float, float]:
        if margin is None:
            margin = self.config.track.margin
        try:
            bottom, top = as_range(margin, 'track margin')
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if bottom < 0 or top < 0:
            raise ConfigurationError(f"Track margin must be >= 0, got {(bottom, top)}")
        return bottom, top

    def _next_band(
        self,
        previous: Optional[TrackBand],
        height: Optional[float],
        margin: Optional[Sequence[float]],
        index: Optional[int] = None
    ) -> TrackBand:
        """Build (without committing) the band that follows `previous`"""
        if height is None:
            height = self.config.track.height
        if height <= 0:
            raise ConfigurationError(f"Track height must be > 0, got {height}")
        bottom, top = self._resolve_margin(margin)
        slot = height + bottom + top
        if index is None:
            index = len(self._bands) + 1

        if self.config.track_order == 'outward':
            inner = previous.outer_radius if previous else self.config.inner_radius
            outer = inner + slot
            exhausted = outer > self.config.outer_radius + RADIUS_TOLERANCE
        else:
            outer = previous.inner_radius if previous else self.config.outer_radius
            inner = outer - slot
            exhausted = inner < self.config.inner_radius - RADIUS_TOLERANCE

        if exhausted:
            raise CapacityError(
                f"Track {index} needs {slot:.4f} of radius but only "
                f"{self.remaining:.4f} is left (drawing radius exhausted)")

        return TrackBand(index=index, outer_radius=outer, inner_radius=inner, margin=(bottom, top))
