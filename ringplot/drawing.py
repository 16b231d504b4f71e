"""
Cell painter for ringplot

Resolves data coordinates through a cell's projection and forwards the
resulting canvas coordinates to a drawing backend. Straight lines in data
space become arcs on the canvas, so segments are densified before they
are projected.
"""

from __future__ import annotations
from typing import Optional
import logging

import numpy as np

from .backend import DrawingBackend
from .links import ConnectorPath
from .projection import CellHandle
from .types import DrawStyle, Facing

logger = logging.getLogger(__name__)


def densify(x, y, n: int):
    """
    Insert n-1 evenly spaced points between consecutive vertices

    Args:
        x, y: Vertex coordinates (data space)
        n: Sub-segments per original segment

    Returns:
        (x, y) arrays including the original vertices
    """
    x = np.atleast_1d(np.asarray(x, dtype=float))
    y = np.atleast_1d(np.asarray(y, dtype=float))
    if len(x) != len(y):
        raise ValueError(f"x and y must have the same length, got {len(x)} and {len(y)}")
    if len(x) < 2 or n <= 1:
        return x, y
    t = np.linspace(0.0, 1.0, n, endpoint=False)
    xs = [x[i] + t * (x[i + 1] - x[i]) for i in range(len(x) - 1)]
    ys = [y[i] + t * (y[i + 1] - y[i]) for i in range(len(y) - 1)]
    return np.concatenate(xs + [x[-1:]]), np.concatenate(ys + [y[-1:]])


class CellPainter:
    """
    Draws primitives inside one cell

    Every call first routes the backend to the cell's layer, so painting
    into a closed layer lands on that layer and not on the newest one.
    """

    def __init__(self, cell: CellHandle, backend: DrawingBackend, arc_resolution: int = 100):
        """
        Initialize painter

        Args:
            cell: Target cell
            backend: Drawing backend with the cell's layer already started
            arc_resolution: Points per densified segment
        """
        self.cell = cell
        self.backend = backend
        self.arc_resolution = arc_resolution

    def _select(self) -> None:
        self.backend.select_layer(self.cell.layer)

    def points(self, x, y, style: Optional[DrawStyle] = None) -> int:
        """Draw one point per (x, y) pair; returns the number drawn"""
        self._select()
        cx, cy = self.cell.to_canvas(np.atleast_1d(x), np.atleast_1d(y))
        for px, py in zip(cx, cy):
            self.backend.draw_point(float(px), float(py), style)
        return len(cx)

    def lines(self, x, y, style: Optional[DrawStyle] = None, straight: bool = False) -> np.ndarray:
        """
        Draw a polyline through data vertices

        Args:
            x, y: Data vertices
            style: Line style
            straight: Join projected vertices with straight canvas segments
                instead of following the circle

        Returns:
            Canvas points handed to the backend
        """
        self._select()
        if not straight:
            x, y = densify(x, y, self.arc_resolution)
        cx, cy = self.cell.to_canvas(np.atleast_1d(x), np.atleast_1d(y))
        points = np.column_stack([cx, cy])
        self.backend.draw_line(points, style)
        return points

    def rect(self, x0: float, y0: float, x1: float, y1: float, style: Optional[DrawStyle] = None) -> np.ndarray:
        """Draw the annular patch spanning data [x0, x1] x [y0, y1]"""
        self._select()
        xs, ys = densify([x0, x1], [y1, y1], self.arc_resolution)
        xb, yb = densify([x1, x0], [y0, y0], self.arc_resolution)
        cx, cy = self.cell.to_canvas(np.concatenate([xs, xb]), np.concatenate([ys, yb]))
        points = np.column_stack([cx, cy])
        self.backend.draw_polygon(points, style)
        return points

    def text(
        self,
        x: float,
        y: float,
        label: str,
        facing: Facing = 'inside',
        nice_facing: bool = True,
        style: Optional[DrawStyle] = None
    ) -> None:
        """Draw a label at data (x, y), oriented by facing"""
        self._select()
        placement = self.cell.text_placement(x, y, facing=facing, nice_facing=nice_facing)
        self.backend.draw_text(placement.x, placement.y, label, placement.rotation,
                               placement.facing, style, ha=placement.ha, va=placement.va)

    def background(self, style: Optional[DrawStyle] = None) -> Optional[np.ndarray]:
        """
        Fill the whole cell (padding included)

        Uses style, else the cell's own background; draws nothing if neither is set.
        """
        style = style if style is not None else self.cell.background
        if style is None:
            return None
        self._select()
        points = self.cell.outline(self.arc_resolution)
        self.backend.draw_polygon(points, style)
        return points


def draw_connector(backend: DrawingBackend, path: ConnectorPath, layer: int, style: Optional[DrawStyle] = None) -> None:
    """Draw a resolved link on the layer whose extent the path was computed in"""
    backend.select_layer(layer)
    backend.draw_path(path.vertices, closed=path.closed, style=style)
    logger.debug(f"Drew {path.kind} link {path.source} -> {path.target} on layer {layer}")
