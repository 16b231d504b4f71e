"""
Layout sessions for ringplot

A LayoutSession owns the sectors, tracks and cells of one circular layout
while it is being built. Closing it freezes everything into a Layer that
keeps answering coordinate queries for links and overlays.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple, Union
import copy
import logging

import pandas as pd

from .config import CircularConfig
from .exceptions import CellLookupError, ConfigurationError, StateError
from .layout import SectorAllocator, TrackStack
from .layout.types import CanvasExtent, Sector, SectorSpec, TrackBand
from .projection import CellHandle
from .types import DrawStyle, Range, SessionInfo
from .utils import as_range

logger = logging.getLogger(__name__)

YLimArg = Union[Range, Mapping[str, Range]]


class CellVisitor(Protocol):
    """Drawing strategy invoked once per visible cell"""

    def visit_cell(self, cell: CellHandle) -> None:
        ...


@dataclass(frozen=True)
class CellState:
    """
    Per-cell attributes that can differ between sectors of one track

    Attributes:
        ylim: Data-y range of the cell
        padding: (bottom, left, top, right) padding fractions
        visible: Whether the cell is active for drawing
        background: Optional background style
    """
    ylim: Range
    padding: Tuple[float, float, float, float]
    visible: bool = True
    background: Optional[DrawStyle] = None


def _checked_ylim(value, label: str) -> Range:
    try:
        ylim = as_range(value, label)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    if ylim[1] <= ylim[0]:
        raise ConfigurationError(f"{label} must be increasing, got {ylim}")
    return ylim


def _checked_padding(value) -> Tuple[float, float, float, float]:
    try:
        bottom, left, top, right = (float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"cell padding must be (bottom, left, top, right), got {value!r}") from e
    if min(bottom, left, top, right) < 0 or left + right >= 1 or bottom + top >= 1:
        raise ConfigurationError(f"Invalid cell padding {value!r}")
    return (bottom, left, top, right)


class _CellSpace:
    """Query side shared by open sessions and closed layers"""

    layer_id: int
    config: CircularConfig
    closed: bool = False
    extent: CanvasExtent
    _sectors: Dict[str, Sector]
    _bands: Sequence[TrackBand]
    _cells: Dict[Tuple[str, int], CellState]

    @property
    def sectors(self) -> Tuple[Sector, ...]:
        """Allocated sectors in layout order"""
        return tuple(self._sectors.values())

    @property
    def sector_names(self) -> List[str]:
        return list(self._sectors)

    @property
    def tracks(self) -> Tuple[TrackBand, ...]:
        return tuple(self._bands)

    @property
    def track_indices(self) -> List[int]:
        return [band.index for band in self._bands]

    def sector(self, name: str) -> Sector:
        """
        Look up an allocated sector

        Raises:
            CellLookupError: If the sector does not exist
        """
        try:
            return self._sectors[name]
        except KeyError:
            raise CellLookupError(f"Unknown sector {name!r}; known sectors: {list(self._sectors)}") from None

    def track(self, index: int) -> TrackBand:
        if not isinstance(index, int) or not 1 <= index <= len(self._bands):
            raise CellLookupError(f"Unknown track {index!r}; layer {self.layer_id} has {len(self._bands)} track(s)")
        return self._bands[index - 1]

    def query_cell(self, sector: str, track: int) -> CellHandle:
        """
        Address the cell at (sector, track)

        Args:
            sector: Sector name
            track: 1-based track index

        Returns:
            CellHandle exposing to_canvas/from_canvas for the cell

        Raises:
            CellLookupError: Unknown sector or track
        """
        sec = self.sector(sector)
        band = self.track(track)
        state = self._cells[(sec.name, band.index)]
        return CellHandle(
            sector=sec,
            band=band,
            ylim=state.ylim,
            padding=state.padding,
            layer=self.layer_id,
            extent=self.extent,
            visible=state.visible,
            background=state.background,
            overflow_warning=self.config.points_overflow_warning,
        )

    def cells(self, track: Optional[int] = None, visible_only: bool = True) -> List[CellHandle]:
        """
        All cells of one track (or of every track), in sector order

        Args:
            track: Track index, or None for every track
            visible_only: Skip cells that were never activated
        """
        indices = [track] if track is not None else self.track_indices
        handles = []
        for index in indices:
            for name in self._sectors:
                cell = self.query_cell(name, index)
                if cell.visible or not visible_only:
                    handles.append(cell)
        return handles

    def visit(self, visitor: CellVisitor, track: Optional[int] = None) -> int:
        """
        Invoke a CellVisitor on every visible cell

        Args:
            visitor: Object with a visit_cell(cell) method
            track: Restrict to one track; None visits all tracks

        Returns:
            Number of cells visited
        """
        cells = self.cells(track)
        for cell in cells:
            visitor.visit_cell(cell)
        logger.debug(f"Visited {len(cells)} cells of layer {self.layer_id}")
        return len(cells)

    def sector_at(self, degree: float) -> Optional[Sector]:
        """Sector whose span contains a canvas angle, None for gaps"""
        for sec in self._sectors.values():
            if sec.contains_angle(degree):
                return sec
        return None

    def info(self) -> SessionInfo:
        """Summary of sectors and tracks, for logging and debugging"""
        return SessionInfo(
            layer=self.layer_id,
            closed=self.closed,
            start_degree=self.config.start_degree,
            direction=self.config.direction,
            canvas_xlim=self.extent.xlim,
            canvas_ylim=self.extent.ylim,
            sectors=[
                {'name': s.name, 'xlim': s.xlim, 'start_angle': s.start_angle,
                 'end_angle': s.end_angle, 'gap_after': s.gap_after, 'group': s.group}
                for s in self._sectors.values()
            ],
            tracks=[
                {'index': b.index, 'outer_radius': b.outer_radius,
                 'inner_radius': b.inner_radius, 'margin': b.margin}
                for b in self._bands
            ],
        )


class LayoutSession(_CellSpace):
    """
    Mutable circular layout under construction

    Typical use:
        >>> session = controller.begin_layout()
        >>> session.initialize({'a': (0, 10), 'b': (0, 5)})
        >>> track = session.add_track(ylim=(0, 1), height=0.2)
        >>> cell = session.query_cell('a', track.index)
        >>> cell.to_canvas(5, 0.5)
    """

    def __init__(self, config: Optional[CircularConfig] = None, layer_id: int = 0):
        """
        Initialize session

        Args:
            config: Session configuration, validated here
            layer_id: Position of this session in the compositor's layer list
        """
        self.config = config or CircularConfig()
        self.config.validate()
        self.layer_id = layer_id
        self.extent = CanvasExtent(tuple(self.config.canvas_xlim), tuple(self.config.canvas_ylim))
        self.closed = False

        self._allocator = SectorAllocator(self.config)
        self._stack = TrackStack(self.config)
        self._specs: List[SectorSpec] = []
        self._group_shares: Optional[Dict[Optional[str], float]] = None
        self._sectors: Dict[str, Sector] = {}
        self._cells: Dict[Tuple[str, int], CellState] = {}

        logger.info(f"Layout session {layer_id} opened (start {self.config.start_degree} deg, "
                    f"{self.config.direction}, extent {self.extent.xlim} x {self.extent.ylim})")

    @property
    def _bands(self) -> Tuple[TrackBand, ...]:
        return self._stack.bands

    def _require_open(self) -> None:
        if self.closed:
            raise StateError(f"Layout session {self.layer_id} is closed; its layer is read-only")

    # ------------------------------------------------------------------
    # Sectors
    # ------------------------------------------------------------------

    def add_sector(
        self,
        name: str,
        xlim: Range,
        manual_width: Optional[float] = None,
        gap_after: Optional[float] = None,
        group: Optional[str] = None
    ) -> Sector:
        """
        Append a sector and re-allocate all sector angles

        Args:
            name: Unique sector identity
            xlim: Data-x range of the sector
            manual_width: Optional width fraction overriding the x-range proportion
            gap_after: Optional gap (degrees) after this sector
            group: Optional zoom group tag

        Returns:
            The allocated sector

        Raises:
            StateError: Session closed, or tracks already added
            ConfigurationError: The new sector set cannot be allocated
        """
        try:
            spec = SectorSpec(name=name, xlim=as_range(xlim, 'xlim'), manual_width=manual_width,
                              gap_after=gap_after, group=group)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        self.add_sectors([spec])
        return self._sectors[name]

    def add_sectors(
        self,
        specs: Iterable[SectorSpec],
        group_shares: Optional[Dict[Optional[str], float]] = None
    ) -> List[Sector]:
        """
        Append several sectors in one allocation

        Args:
            specs: Sector requests, in layout order
            group_shares: Optional per-group share of the available angle;
                replaces any previously given shares

        Returns:
            All allocated sectors of the session
        """
        self._require_open()
        if len(self._stack):
            raise StateError("Sectors are fixed once the first track has been added")

        specs = list(specs)
        shares = group_shares if group_shares is not None else self._group_shares
        candidate = self._specs + specs
        sectors = self._allocator.allocate(candidate, shares)

        # Commit only after allocation succeeded
        self._specs = candidate
        self._group_shares = shares
        self._sectors = {s.name: s for s in sectors}
        return list(sectors)

    def initialize(
        self,
        records: Union[pd.DataFrame, Mapping[str, Range]],
        sector_col: str = 'sector',
        x_col: str = 'x',
        group_col: Optional[str] = 'group',
        sector_widths: Optional[Mapping[str, float]] = None,
        group_shares: Optional[Dict[Optional[str], float]] = None,
        xlims: Optional[Mapping[str, Range]] = None
    ) -> List[Sector]:
        """
        Create all sectors at once from data

        Args:
            records: Either a DataFrame with one row per data point (the
                x range of each sector is min/max of x_col), or a mapping
                sector name -> (xmin, xmax)
            sector_col: Column holding the sector identity
            x_col: Column holding data-x values
            group_col: Optional column holding the zoom group tag
            sector_widths: Optional manual width per sector name
            group_shares: Optional per-group share of the available angle
            xlims: Optional data-x range per sector name, replacing the one
                derived from the records (zoomed sectors keep their exact
                selection this way)

        Returns:
            All allocated sectors

        Raises:
            CellLookupError: Manual widths or xlims name unknown sectors
        """
        sector_widths = dict(sector_widths or {})
        try:
            xlims = {str(n): as_range(v, f"xlim of {n}") for n, v in (xlims or {}).items()}
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        specs: List[SectorSpec] = []

        if isinstance(records, pd.DataFrame):
            missing = [c for c in (sector_col, x_col) if c not in records.columns]
            if missing:
                raise ConfigurationError(f"Records lack required column(s): {missing}")
            if records.empty:
                raise ConfigurationError("At least one sector is required")
            ranges = records.groupby(sector_col, sort=False)[x_col].agg(['min', 'max'])
            groups = None
            if group_col and group_col in records.columns:
                groups = records.groupby(sector_col, sort=False)[group_col].first()
            for name, row in ranges.iterrows():
                group = groups[name] if groups is not None else None
                specs.append(SectorSpec(
                    name=str(name),
                    xlim=xlims.get(str(name), (float(row['min']), float(row['max']))),
                    manual_width=sector_widths.get(str(name)),
                    group=None if group is None or pd.isna(group) else str(group)
                ))
        else:
            for name, xlim in records.items():
                try:
                    xlim = xlims.get(str(name)) or as_range(xlim, f"xlim of {name}")
                except ValueError as e:
                    raise ConfigurationError(str(e)) from e
                specs.append(SectorSpec(name=str(name), xlim=xlim, manual_width=sector_widths.get(str(name))))

        names = {s.name for s in specs}
        unknown = [n for n in sector_widths if n not in names]
        if unknown:
            raise CellLookupError(f"Manual widths given for unknown sectors: {unknown}")
        unknown = [n for n in xlims if n not in names]
        if unknown:
            raise CellLookupError(f"x ranges given for unknown sectors: {unknown}")

        logger.info(f"Initializing {len(specs)} sectors")
        return self.add_sectors(specs, group_shares)

    # ------------------------------------------------------------------
    # Tracks and cells
    # ------------------------------------------------------------------

    def _resolve_track_cells(
        self,
        ylim: YLimArg,
        sectors: Optional[Sequence[str]],
        padding: Optional[Sequence[float]],
        background: Optional[DrawStyle]
    ) -> Dict[str, CellState]:
        """Validate cell parameters of a new track before any allocation"""
        if not self._sectors:
            raise StateError("Add sectors before adding tracks")
        active = list(self._sectors) if sectors is None else list(sectors)
        for name in active:
            self.sector(name)

        pad = _checked_padding(padding if padding is not None else self.config.cell_padding.as_tuple())
        if isinstance(ylim, Mapping):
            unknown = [n for n in ylim if n not in self._sectors]
            if unknown:
                raise CellLookupError(f"y ranges given for unknown sectors: {unknown}")
            default = (0.0, 1.0)
            per_sector = {n: _checked_ylim(ylim.get(n, default), f"ylim of {n}") for n in self._sectors}
        else:
            shared = _checked_ylim(ylim, 'ylim')
            per_sector = {n: shared for n in self._sectors}

        return {
            name: CellState(ylim=per_sector[name], padding=pad,
                            visible=name in active, background=background)
            for name in self._sectors
        }

    def add_track(
        self,
        ylim: YLimArg = (0.0, 1.0),
        height: Optional[float] = None,
        sectors: Optional[Sequence[str]] = None,
        margin: Optional[Sequence[float]] = None,
        padding: Optional[Sequence[float]] = None,
        background: Optional[DrawStyle] = None
    ) -> TrackBand:
        """
        Push a new track and create its cells

        Args:
            ylim: Data-y range shared by all cells, or a mapping sector -> ylim
            height: Plotting height; config default if None
            sectors: Sectors to activate; None activates all, [] creates an
                empty shell to be filled with activate_sector
            margin: (bottom, top) track margin; config default if None
            padding: (bottom, left, top, right) cell padding; config default if None
            background: Optional background style for the cells

        Returns:
            The track band (its index addresses the track)

        Raises:
            StateError: Session closed or no sectors yet
            CapacityError: Drawing radius exhausted
        """
        self._require_open()
        states = self._resolve_track_cells(ylim, sectors, padding, background)
        band = self._stack.add(height=height, margin=margin)
        for name, state in states.items():
            self._cells[(name, band.index)] = state
        n_active = sum(1 for s in states.values() if s.visible)
        logger.info(f"Track {band.index} added with {n_active}/{len(states)} active sectors")
        return band

    def add_tracks(
        self,
        heights: Sequence[Optional[float]],
        ylim: YLimArg = (0.0, 1.0),
        margin: Optional[Sequence[float]] = None,
        padding: Optional[Sequence[float]] = None,
        background: Optional[DrawStyle] = None
    ) -> List[TrackBand]:
        """
        Push several tracks; None heights share the remaining radius equally
        """
        self._require_open()
        states = self._resolve_track_cells(ylim, None, padding, background)
        bands = self._stack.plan(heights, margin=margin)
        for band in bands:
            for name, state in states.items():
                self._cells[(name, band.index)] = state
        return bands

    def activate_sector(
        self,
        track: int,
        sector: str,
        ylim: Optional[Range] = None,
        background: Optional[DrawStyle] = None
    ) -> CellHandle:
        """
        Fill in one cell of an existing track

        The track's radial band is already reserved, so nothing else moves.

        Args:
            track: Track index
            sector: Sector name
            ylim: New data-y range; keeps the current one if None
            background: Optional background style

        Returns:
            The activated cell
        """
        self._require_open()
        sec = self.sector(sector)
        band = self.track(track)
        key = (sec.name, band.index)
        state = self._cells[key]
        new_ylim = _checked_ylim(ylim, f"ylim of {sector}") if ylim is not None else state.ylim
        self._cells[key] = replace(
            state, ylim=new_ylim, visible=True,
            background=background if background is not None else state.background)
        logger.debug(f"Activated cell ({sector}, track {track}) with ylim {new_ylim}")
        return self.query_cell(sector, track)

    def close(self) -> 'Layer':
        """
        Freeze the session into a read-only Layer

        Raises:
            StateError: If already closed
        """
        self._require_open()
        self.closed = True
        layer = Layer(self)
        logger.info(f"Layout session {self.layer_id} closed: {len(self._sectors)} sectors, "
                    f"{len(self._stack)} tracks")
        return layer


class Layer(_CellSpace):
    """
    Closed, read-only layout session

    Keeps its sector table, track stack and canvas extent so cells can still
    be queried for links and overlays after newer sessions were opened.
    """

    closed = True

    def __init__(self, session: LayoutSession):
        self.layer_id = session.layer_id
        self.config = copy.deepcopy(session.config)
        self.extent = session.extent
        self._sectors = dict(session._sectors)
        self._bands = tuple(session.tracks)
        self._cells = dict(session._cells)

    def __repr__(self) -> str:
        return (f"Layer(id={self.layer_id}, sectors={len(self._sectors)}, "
                f"tracks={len(self._bands)}, extent={self.extent.xlim}x{self.extent.ylim})")
