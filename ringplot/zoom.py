"""
Zoomed sectors for ringplot

A zoom is not a separate rendering path. The records of the regions to
magnify are duplicated under new sector identities tagged with the zoom
group; the allocator then normalises original and zoomed sectors
independently, and every track drawn over "all sectors" renders the zoomed
copy with the same logic.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple
import logging

import pandas as pd

from .exceptions import CellLookupError, ConfigurationError
from .layout.types import SectorSpec
from .session import LayoutSession
from .types import Range
from .utils import as_range

logger = logging.getLogger(__name__)

Selections = Mapping[str, Optional[Range]]
"""Sector name -> data-x range to magnify (None magnifies the whole sector)"""


@dataclass(frozen=True)
class ZoomCorrespondence:
    """
    Link between a source region and its zoomed copy

    Attributes:
        source: Original sector name
        source_range: Data-x range of the region in the original sector
        zoom: Sector name of the zoomed copy (its xlim equals source_range)
    """
    source: str
    source_range: Range
    zoom: str


class ZoomProjector:
    """
    Builds the sector set for a layout with magnified regions

    Example:
        >>> zoom = ZoomProjector(sector_col='chrom', x_col='pos')
        >>> pairs = zoom.apply(session, records, {'chr1': (1e6, 2e6)},
        ...                    group_shares={'original': 0.5, 'zoom': 0.5})
    """

    def __init__(
        self,
        sector_col: str = 'sector',
        x_col: str = 'x',
        group_col: str = 'group',
        suffix: str = '_zoom',
        original_group: str = 'original',
        zoom_group: str = 'zoom'
    ):
        if not suffix:
            raise ConfigurationError("Zoom suffix must be non-empty to keep sector names unique")
        if original_group == zoom_group:
            raise ConfigurationError("Original and zoom groups must differ")
        self.sector_col = sector_col
        self.x_col = x_col
        self.group_col = group_col
        self.suffix = suffix
        self.original_group = original_group
        self.zoom_group = zoom_group

    def zoom_name(self, name: str) -> str:
        """Sector identity of the zoomed copy of `name`"""
        return f"{name}{self.suffix}"

    def _sector_ranges(self, records: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in (self.sector_col, self.x_col) if c not in records.columns]
        if missing:
            raise ConfigurationError(f"Records lack required column(s): {missing}")
        if records.empty:
            raise ConfigurationError("No records to zoom into")
        return records.groupby(self.sector_col, sort=False)[self.x_col].agg(['min', 'max'])

    def selection_ranges(self, records: pd.DataFrame, selections: Selections) -> Dict[str, Range]:
        """
        Resolve and validate the data-x range of every selection

        Raises:
            CellLookupError: Selection names an unknown sector
            ConfigurationError: Empty selection, or range outside the sector
        """
        if not selections:
            raise ConfigurationError("At least one zoom selection is required")
        full = self._sector_ranges(records)
        ranges: Dict[str, Range] = {}
        for name, selection in selections.items():
            if name not in full.index:
                raise CellLookupError(f"Cannot zoom unknown sector {name!r}")
            xmin, xmax = float(full.loc[name, 'min']), float(full.loc[name, 'max'])
            if selection is None:
                ranges[name] = (xmin, xmax)
                continue
            try:
                x0, x1 = as_range(selection, f"zoom range of {name}")
            except ValueError as e:
                raise ConfigurationError(str(e)) from e
            if x1 <= x0:
                raise ConfigurationError(f"Zoom range of {name} must be increasing, got {(x0, x1)}")
            if x0 < xmin or x1 > xmax:
                raise ConfigurationError(
                    f"Zoom range {(x0, x1)} of {name} lies outside its data range {(xmin, xmax)}")
            ranges[name] = (x0, x1)

        collisions = [self.zoom_name(n) for n in ranges if self.zoom_name(n) in full.index]
        if collisions:
            raise ConfigurationError(f"Zoomed sector names collide with existing sectors: {collisions}")
        return ranges

    def zoom_records(self, records: pd.DataFrame, selections: Selections) -> pd.DataFrame:
        """
        Duplicate the selected records under zoomed sector identities

        Args:
            records: One row per data point, with sector and x columns
            selections: Regions to magnify

        Returns:
            Copy of the selected rows, sector renamed, group column set to
            the zoom group
        """
        ranges = self.selection_ranges(records, selections)
        parts = []
        for name, (x0, x1) in ranges.items():
            mask = (records[self.sector_col] == name) & records[self.x_col].between(x0, x1)
            subset = records.loc[mask].copy()
            subset[self.sector_col] = self.zoom_name(name)
            parts.append(subset)
            logger.debug(f"Zoom {name} [{x0}, {x1}]: {len(subset)} record(s)")
        zoomed = pd.concat(parts, ignore_index=True)
        zoomed[self.group_col] = self.zoom_group
        return zoomed

    def combined_records(self, records: pd.DataFrame, selections: Selections) -> pd.DataFrame:
        """
        Original records (tagged original) followed by their zoomed copies

        Pass zoom_xlims() along when initializing a session from the
        result, otherwise zoomed sectors span only the records inside the
        selection:

            >>> session.initialize(zoom.combined_records(records, sel),
            ...                    xlims=zoom.zoom_xlims(records, sel))
        """
        original = records.copy()
        original[self.group_col] = self.original_group
        return pd.concat([original, self.zoom_records(records, selections)], ignore_index=True)

    def zoom_xlims(self, records: pd.DataFrame, selections: Selections) -> Dict[str, Range]:
        """Zoomed sector name -> exact selection range"""
        return {self.zoom_name(name): xlim for name, xlim in self.selection_ranges(records, selections).items()}

    def sector_specs(self, records: pd.DataFrame, selections: Selections) -> List[SectorSpec]:
        """
        Sector requests for the originals followed by the zoomed copies

        A zoomed sector's xlim is exactly its selection range, not the
        range of the records that happen to fall inside it.
        """
        ranges = self.selection_ranges(records, selections)
        full = self._sector_ranges(records)
        specs = [
            SectorSpec(name=str(name), xlim=(float(row['min']), float(row['max'])), group=self.original_group)
            for name, row in full.iterrows()
        ]
        specs.extend(
            SectorSpec(name=self.zoom_name(name), xlim=xlim, group=self.zoom_group)
            for name, xlim in ranges.items()
        )
        return specs

    def correspondences(self, records: pd.DataFrame, selections: Selections) -> List[ZoomCorrespondence]:
        return [
            ZoomCorrespondence(source=name, source_range=xlim, zoom=self.zoom_name(name))
            for name, xlim in self.selection_ranges(records, selections).items()
        ]

    def apply(
        self,
        session: LayoutSession,
        records: pd.DataFrame,
        selections: Selections,
        group_shares: Optional[Dict[Optional[str], float]] = None
    ) -> List[ZoomCorrespondence]:
        """
        Add original and zoomed sectors to a session

        Args:
            session: Open session without sectors of the same names
            records: One row per data point
            selections: Regions to magnify
            group_shares: Share of the circle per group; equal split if None

        Returns:
            One correspondence per zoomed region, for linking source and copy
        """
        specs = self.sector_specs(records, selections)
        taken = [s.name for s in specs if s.name in session.sector_names]
        if taken:
            raise ConfigurationError(f"Session already has sectors named {taken}")
        session.add_sectors(specs, group_shares=group_shares)
        pairs = self.correspondences(records, selections)
        logger.info(f"Zoomed {len(pairs)} region(s): {[p.zoom for p in pairs]}")
        return pairs

    @staticmethod
    def relative_position(x: float, xlim: Tuple[float, float]) -> float:
        """Position of x within a data range, 0 at xmin and 1 at xmax"""
        return (x - xlim[0]) / (xlim[1] - xlim[0])
