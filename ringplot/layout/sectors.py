"""
Sector allocation for ringplot

Turns an ordered list of sector requests into angular spans that, together
with their gaps, partition the circle exactly once.

Algorithm:
1. Resolve the gap after every sector (request override, per-name config, uniform)
2. Available angle = 360 - sum(gaps)
3. Split the available angle between zoom groups (explicit or equal shares)
4. Inside each group, manual widths keep their fraction and the remaining
   sectors share the rest proportionally to their data-x ranges
5. Walk around the circle from start_degree in the configured direction
   and check that the walk closes after exactly one turn
"""
from __future__ import annotations
from typing import Dict, List, Optional, Sequence
import logging
import math

from ..config import CircularConfig
from ..exceptions import ConfigurationError
from ..utils import ANGLE_TOLERANCE, FULL_CIRCLE
from .types import Sector, SectorSpec

logger = logging.getLogger(__name__)

# Fractions are dimensionless, so the angular tolerance is rescaled to them
FRACTION_TOLERANCE: float = ANGLE_TOLERANCE / FULL_CIRCLE


class SectorAllocator:
    """
    Computes start/end angles of sectors from data ranges, gaps and overrides
    """

    def __init__(self, config: Optional[CircularConfig] = None):
        """
        Initialize allocator

        Args:
            config: Session configuration (start degree, direction, gaps)
        """
        self.config = config or CircularConfig()

    def allocate(
        self,
        specs: Sequence[SectorSpec],
        group_shares: Optional[Dict[Optional[str], float]] = None
    ) -> List[Sector]:
        """
        Allocate angular spans for all sectors

        Args:
            specs: Ordered sector requests
            group_shares: Optional fraction of the available angle reserved
                for each zoom group (e.g. {'original': 0.5, 'zoom': 0.5}).
                Groups not listed split what is left equally.

        Returns:
            Sectors in request order with start/end angles assigned

        Raises:
            ConfigurationError: Empty or inconsistent requests, or a budget
                that cannot fit into 360 degrees
        """
        if not specs:
            raise ConfigurationError("At least one sector is required")

        names = [spec.name for spec in specs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate sector names: {duplicates}")

        gaps = [self._gap_for(spec) for spec in specs]
        total_gap = sum(gaps)
        available = FULL_CIRCLE - total_gap
        if available <= ANGLE_TOLERANCE:
            raise ConfigurationError(
                f"Gaps sum to {total_gap:.4f} degrees, leaving no room for {len(specs)} sector(s)")

        # Group order follows first appearance so allocation stays deterministic
        groups: List[Optional[str]] = []
        for spec in specs:
            if spec.group not in groups:
                groups.append(spec.group)
        shares = self._group_shares(groups, group_shares)

        fractions: Dict[str, float] = {}
        for group in groups:
            members = [spec for spec in specs if spec.group == group]
            fractions.update(self._normalize_group(members, shares[group]))

        widths = [fractions[spec.name] * available for spec in specs]

        sign = self.config.sign
        cursor = self.config.start_degree
        sectors: List[Sector] = []
        for index, (spec, width, gap) in enumerate(zip(specs, widths, gaps)):
            start = cursor
            end = start + sign * width
            sectors.append(Sector(
                name=spec.name,
                index=index,
                xlim=(float(spec.xlim[0]), float(spec.xlim[1])),
                start_angle=start,
                end_angle=end,
                gap_after=gap,
                group=spec.group
            ))
            cursor = end + sign * gap
            logger.debug(f"Sector {spec.name}: {start:.3f} -> {end:.3f} deg (gap {gap:.3f})")

        self.check_partition(sectors)
        logger.info(f"Allocated {len(sectors)} sectors over {available:.2f} degrees "
                    f"({total_gap:.2f} degrees of gaps, {len(groups)} group(s))")
        return sectors

    def check_partition(self, sectors: Sequence[Sector]) -> None:
        """
        Verify that sectors and gaps cover the circle exactly once

        Walking from start_degree in the configured direction, every sector
        must start one gap after the previous one ends, and the last gap
        must close the turn at start_degree + 360.

        Raises:
            ConfigurationError: Sectors and gaps do not tile the circle
        """
        sign = self.config.sign
        cursor = self.config.start_degree
        for sector in sectors:
            if abs(sector.start_angle - cursor) > ANGLE_TOLERANCE:
                raise ConfigurationError(
                    f"Sector '{sector.name}' starts at {sector.start_angle:.6f} degrees, expected {cursor:.6f}")
            if (sector.end_angle - sector.start_angle) * sign < 0:
                raise ConfigurationError(f"Sector '{sector.name}' runs against the layout direction")
            cursor = sector.end_angle + sign * sector.gap_after
        closing = self.config.start_degree + sign * FULL_CIRCLE
        if abs(cursor - closing) > ANGLE_TOLERANCE:
            raise ConfigurationError(
                f"Sectors and gaps end at {cursor:.6f} degrees, expected {closing:.6f}")

    def _gap_for(self, spec: SectorSpec) -> float:
        """Resolve the gap after a sector: request override, then per-name config, then uniform default"""
        if spec.gap_after is not None:
            gap = spec.gap_after
        else:
            gap = self.config.gap_after.get(spec.name, self.config.gap_degree)
        if gap < 0 or not math.isfinite(gap):
            raise ConfigurationError(f"Gap after sector '{spec.name}' must be a finite value >= 0, got {gap}")
        return float(gap)

    def _group_shares(
        self,
        groups: List[Optional[str]],
        explicit: Optional[Dict[Optional[str], float]]
    ) -> Dict[Optional[str], float]:
        """
        Fraction of the available angle reserved for each group

        Explicit shares are kept as given; unlisted groups split the rest
        equally. If every group is listed the shares are normalised to 1.
        """
        explicit = dict(explicit or {})
        unknown = [g for g in explicit if g not in groups]
        if unknown:
            raise ConfigurationError(f"Shares given for unknown zoom groups: {unknown}")
        for group, share in explicit.items():
            if share <= 0 or not math.isfinite(share):
                raise ConfigurationError(f"Share of group '{group}' must be > 0, got {share}")

        fixed = sum(explicit.values())
        unlisted = [g for g in groups if g not in explicit]
        if not unlisted:
            if abs(fixed - 1.0) > FRACTION_TOLERANCE:
                logger.info(f"Group shares sum to {fixed:.4f}; normalizing to 1")
            return {g: explicit[g] / fixed for g in groups}

        if fixed > 1.0 + FRACTION_TOLERANCE:
            raise ConfigurationError(f"Group shares sum to {fixed:.6f}, more than the whole circle")
        remainder = 1.0 - fixed
        if remainder <= FRACTION_TOLERANCE:
            raise ConfigurationError(
                f"Explicit group shares leave no room for groups {unlisted}")
        shares = dict(explicit)
        for group in unlisted:
            shares[group] = remainder / len(unlisted)
        return shares

    def _normalize_group(self, members: List[SectorSpec], share: float) -> Dict[str, float]:
        """
        Width of each member as a fraction of the whole available angle

        Args:
            members: Sectors of one group
            share: Fraction of the available angle reserved for the group

        Returns:
            Mapping sector name -> fraction
        """
        manual = [m for m in members if m.manual_width is not None]
        auto = [m for m in members if m.manual_width is None]

        for spec in manual:
            if spec.manual_width <= 0 or not math.isfinite(spec.manual_width):
                raise ConfigurationError(
                    f"Manual width of sector '{spec.name}' must be > 0, got {spec.manual_width}")
        for spec in auto:
            if not (spec.xrange > 0 and math.isfinite(spec.xrange)):
                raise ConfigurationError(
                    f"Sector '{spec.name}' has an empty x range {spec.xlim} and no manual width")

        if not auto:
            total_manual = sum(m.manual_width for m in manual)
            return {m.name: share * m.manual_width / total_manual for m in manual}

        manual_total = sum(m.manual_width for m in manual)
        if manual_total > 1.0 + FRACTION_TOLERANCE:
            raise ConfigurationError(f"Manual sector widths sum to {manual_total:.6f}, more than 1")
        remainder = 1.0 - manual_total
        if remainder <= FRACTION_TOLERANCE:
            raise ConfigurationError(
                f"Manual sector widths leave no room for sectors {[m.name for m in auto]}")

        total_range = sum(m.xrange for m in auto)
        fractions = {m.name: share * m.manual_width for m in manual}
        for spec in auto:
            fractions[spec.name] = share * remainder * spec.xrange / total_range
        return fractions
