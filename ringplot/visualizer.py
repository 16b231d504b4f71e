"""
Circular layout plotter

Renders the skeleton of every layer held by a LayoutController (cell
outlines and sector labels) onto a matplotlib figure and saves it. Data
tracks are drawn by callers through CellPainter; this module only adds the
frame around them.
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional, Union
import logging

from matplotlib.figure import Figure

from .backend import MatplotlibBackend
from .compositor import LayoutController
from .drawing import CellPainter
from .exceptions import StateError
from .projection import CellHandle, TextPlacement, place_text
from .session import Layer, LayoutSession
from .types import DrawStyle, Facing, PathLike

logger = logging.getLogger(__name__)

DEFAULT_OUTLINE: DrawStyle = {'facecolor': 'none', 'edgecolor': '#444444', 'linewidth': 0.6}
DEFAULT_LABEL: DrawStyle = {'fontsize': 9, 'color': 'black'}


class OutlineVisitor:
    """CellVisitor that fills each cell with its background, or outlines it"""

    def __init__(self, backend: MatplotlibBackend, style: Optional[DrawStyle] = None, arc_resolution: int = 100):
        self.backend = backend
        self.style = style or DEFAULT_OUTLINE
        self.arc_resolution = arc_resolution
        self.visited = 0

    def visit_cell(self, cell: CellHandle) -> None:
        painter = CellPainter(cell, self.backend, self.arc_resolution)
        painter.background(cell.background if cell.background is not None else self.style)
        self.visited += 1


class CircularPlotter:
    """
    Draws layer frames and saves the composited figure

    Example:
        >>> controller = LayoutController(MatplotlibBackend())
        >>> controller.begin_layout()
        >>> controller.initialize({'a': (0, 10), 'b': (0, 5)})
        >>> controller.add_track(height=0.2)
        >>> CircularPlotter(controller).plot('layout.png', title='Two sectors')
    """

    def __init__(self, controller: LayoutController, dpi: int = 300) -> None:
        """
        Initialize CircularPlotter

        Args:
            controller: Controller whose backend is a MatplotlibBackend
            dpi: Resolution used when saving raster output

        Raises:
            StateError: The controller has no matplotlib backend
        """
        if not isinstance(controller.backend, MatplotlibBackend):
            raise StateError("CircularPlotter needs a controller with a MatplotlibBackend")
        self.controller = controller
        self.backend: MatplotlibBackend = controller.backend
        self.dpi = dpi

    def _owners(self) -> List[Union[Layer, LayoutSession]]:
        owners: List[Union[Layer, LayoutSession]] = list(self.controller.layers)
        if self.controller.is_open:
            owners.append(self.controller.current)
        return owners

    def draw_outlines(self, style: Optional[DrawStyle] = None) -> int:
        """
        Outline every visible cell of every layer

        Returns:
            Number of cells drawn
        """
        total = 0
        for owner in self._owners():
            visitor = OutlineVisitor(self.backend, style, owner.config.arc_resolution)
            total += owner.visit(visitor)
        logger.info(f"Outlined {total} cells across {len(self._owners())} layer(s)")
        return total

    def label_sectors(
        self,
        owner: Union[Layer, LayoutSession],
        facing: Facing = 'inside',
        offset: float = 0.05,
        style: Optional[DrawStyle] = None
    ) -> List[TextPlacement]:
        """
        Write each sector's name just outside the outermost track of a layer

        Args:
            owner: Layer or open session to label
            facing: Text orientation relative to the circle
            offset: Radial distance from the outermost track
            style: Text style

        Returns:
            Placements of the labels, in sector order
        """
        if owner.tracks:
            radius = max(band.outer_radius for band in owner.tracks) + offset
        else:
            radius = owner.config.outer_radius + offset

        self.backend.select_layer(owner.layer_id)
        placements = []
        for sector in owner.sectors:
            placement = place_text(sector.mid_angle, radius, facing)
            self.backend.draw_text(placement.x, placement.y, sector.name, placement.rotation,
                                   placement.facing, style or DEFAULT_LABEL,
                                   ha=placement.ha, va=placement.va)
            placements.append(placement)
        logger.debug(f"Labelled {len(placements)} sectors of layer {owner.layer_id} at radius {radius:.3f}")
        return placements

    def plot(
        self,
        output_file: PathLike = 'ringplot.png',
        title: Optional[str] = None,
        outlines: bool = True,
        labels: bool = True,
        facing: Facing = 'inside',
        show: bool = False
    ) -> Figure:
        """
        Draw the frame of all layers and save the figure

        Args:
            output_file: Path to save figure
            title: Optional figure title
            outlines: Outline visible cells
            labels: Label sectors of every layer
            facing: Orientation of sector labels
            show: Whether to display the plot

        Returns:
            matplotlib Figure object
        """
        if outlines:
            self.draw_outlines()
        if labels:
            for owner in self._owners():
                self.label_sectors(owner, facing=facing)
        if title:
            self.backend.figure.suptitle(title, fontsize=12, fontweight='bold')

        self.backend.save(Path(output_file), dpi=self.dpi)
        if show:
            self.backend.figure.show()
        return self.backend.figure
