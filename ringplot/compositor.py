"""
Canvas compositor for ringplot

The LayoutController owns the one "current" session and the list of closed
layers. Sessions may be closed and new ones begun any number of times; all
of them paint onto the same surface, later layers on top, and every layer
stays queryable for links.
"""

from __future__ import annotations
from typing import List, Optional, Sequence, Union
import logging

import pandas as pd

from .backend import DrawingBackend
from .config import CircularConfig
from .drawing import CellPainter, draw_connector
from .exceptions import CellLookupError, StateError
from .layout.types import CanvasExtent, Sector, TrackBand
from .links import ConnectorPath, link
from .projection import CellHandle
from .session import Layer, LayoutSession
from .types import DrawStyle, LinkRange, Range

logger = logging.getLogger(__name__)


class LayoutController:
    """
    Holds the current layout session and the history of closed layers

    Algorithm:
    1. begin_layout() opens a session (refused while one is open, unless
       compositing was asked for, which closes the open one first)
    2. Mutations go to the current session
    3. close_layout() freezes it into a Layer
    4. reset() forgets everything between unrelated renders

    Example:
        >>> controller = LayoutController()
        >>> controller.begin_layout()
        >>> controller.initialize({'a': (0, 1), 'b': (0, 3)})
        >>> controller.add_track(height=0.2)
        >>> inner = controller.begin_layout(CircularConfig.nested(2.0), composite=True)
    """

    def __init__(self, backend: Optional[DrawingBackend] = None):
        """
        Initialize controller

        Args:
            backend: Optional drawing backend; layers are announced to it
                as sessions begin
        """
        self.backend = backend
        self._current: Optional[LayoutSession] = None
        self._layers: List[Layer] = []
        self._next_id = 0

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> LayoutSession:
        """
        The open session

        Raises:
            StateError: If no session is open
        """
        if self._current is None:
            raise StateError("No layout session is open; call begin_layout() first")
        return self._current

    def begin_layout(self, config: Optional[CircularConfig] = None, composite: bool = False) -> LayoutSession:
        """
        Open a new layout session

        Args:
            config: Session configuration (start angle, direction, extent, ...)
            composite: Close an open session into a layer and draw on top of it

        Returns:
            The new current session

        Raises:
            StateError: A session is open and composite is False
            ConfigurationError: Invalid config
        """
        config = config or CircularConfig()
        config.validate()
        if self._current is not None:
            if not composite:
                raise StateError(
                    f"Layout session {self._current.layer_id} is still open; close it first "
                    f"or pass composite=True to layer on top of it")
            logger.info(f"Compositing: closing session {self._current.layer_id} before opening a new one")
            self.close_layout()

        session = LayoutSession(config, layer_id=self._next_id)
        self._next_id += 1
        self._current = session
        if self.backend is not None:
            self.backend.begin_layer(session.layer_id, session.extent)
        return session

    def close_layout(self) -> Layer:
        """
        Close the current session into a read-only layer

        Raises:
            StateError: If no session is open
        """
        layer = self.current.close()
        self._layers.append(layer)
        self._current = None
        return layer

    def reset(self) -> None:
        """Forget the open session and all layers, and clear the backend"""
        logger.info(f"Resetting controller ({len(self._layers)} layer(s), "
                    f"{'1 open session' if self._current else 'no open session'})")
        self._current = None
        self._layers = []
        self._next_id = 0
        if self.backend is not None:
            self.backend.clear()

    @property
    def layers(self) -> List[Layer]:
        """Closed layers, oldest first"""
        return list(self._layers)

    def layer(self, layer_id: int) -> Union[Layer, LayoutSession]:
        """
        Look up a layer (closed or current) by id

        Raises:
            CellLookupError: Unknown layer id
        """
        if self._current is not None and self._current.layer_id == layer_id:
            return self._current
        for layer in self._layers:
            if layer.layer_id == layer_id:
                return layer
        raise CellLookupError(f"Unknown layer {layer_id!r}")

    # ------------------------------------------------------------------
    # Pass-through mutators on the current session
    # ------------------------------------------------------------------

    def add_sector(self, name: str, xlim: Range, manual_width: Optional[float] = None,
                   gap_after: Optional[float] = None, group: Optional[str] = None) -> Sector:
        return self.current.add_sector(name, xlim, manual_width=manual_width, gap_after=gap_after, group=group)

    def initialize(self, records: Union[pd.DataFrame, dict], **kwargs) -> List[Sector]:
        return self.current.initialize(records, **kwargs)

    def add_track(self, **kwargs) -> TrackBand:
        return self.current.add_track(**kwargs)

    def activate_sector(self, track: int, sector: str, ylim: Optional[Range] = None,
                        background: Optional[DrawStyle] = None) -> CellHandle:
        return self.current.activate_sector(track, sector, ylim=ylim, background=background)

    def query_cell(self, sector: str, track: int, layer: Optional[int] = None) -> CellHandle:
        """
        Address a cell of the current session, or of any layer by id
        """
        if layer is None:
            return self.current.query_cell(sector, track)
        return self.layer(layer).query_cell(sector, track)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _require_backend(self) -> DrawingBackend:
        if self.backend is None:
            raise StateError("No drawing backend attached to this controller")
        return self.backend

    def painter(self, cell: CellHandle) -> CellPainter:
        """Painter bound to a cell; works for cells of closed layers too"""
        owner = self.layer(cell.layer)
        return CellPainter(cell, self._require_backend(), owner.config.arc_resolution)

    def link(
        self,
        cell_a: CellHandle,
        range_a: LinkRange,
        cell_b: CellHandle,
        range_b: LinkRange,
        radius_a: Optional[float] = None,
        radius_b: Optional[float] = None,
        h_ratio: float = 1.0,
        layer: Optional[int] = None,
        style: Optional[DrawStyle] = None,
        draw: bool = True
    ) -> ConnectorPath:
        """
        Connect two cells, possibly from different layers

        Args:
            cell_a, range_a: First endpoint (data position or span)
            cell_b, range_b: Second endpoint
            radius_a, radius_b: Optional radius overrides
            h_ratio: Curve bend (0 straight, 1 through the centre)
            layer: Layer to draw on; defaults to the current session, or
                cell_a's layer when nothing is open
            style: Backend style for the connector
            draw: Hand the path to the backend (when one is attached)

        Returns:
            The resolved connector path in the drawing layer's extent
        """
        if layer is None:
            layer = self._current.layer_id if self._current is not None else cell_a.layer
        extent: CanvasExtent = self.layer(layer).extent
        path = link(cell_a, range_a, cell_b, range_b, radius_a=radius_a, radius_b=radius_b,
                    h_ratio=h_ratio, target=extent)
        if draw and self.backend is not None:
            draw_connector(self.backend, path, layer, style)
        return path

    def cells(self, track: Optional[int] = None, layers: Optional[Sequence[int]] = None) -> List[CellHandle]:
        """Visible cells across layers (all layers plus the current session by default)"""
        owners: List[Union[Layer, LayoutSession]] = list(self._layers)
        if self._current is not None:
            owners.append(self._current)
        if layers is not None:
            owners = [self.layer(i) for i in layers]
        handles: List[CellHandle] = []
        for owner in owners:
            if track is not None and track not in owner.track_indices:
                continue
            handles.extend(owner.cells(track))
        return handles
