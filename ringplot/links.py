"""
Link geometry for ringplot

Connector curves between two cells, possibly living in different layers.
Each endpoint is resolved against its own cell; the result is expressed in
one target canvas extent. Pure functions, nothing is retained.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Optional, Tuple
import logging

import numpy as np

from .exceptions import ConfigurationError
from .layout.types import CanvasExtent
from .projection import CellHandle, arc_points
from .types import LinkRange, Point

logger = logging.getLogger(__name__)


def bezier_curve(p0, p1, p2, n: int = 50) -> np.ndarray:
    """Generate quadratic Bezier curve points."""
    t = np.linspace(0, 1, n)[:, None]
    return (1 - t) ** 2 * np.asarray(p0) + 2 * (1 - t) * t * np.asarray(p1) + t ** 2 * np.asarray(p2)


@dataclass(frozen=True)
class ConnectorPath:
    """
    Resolved connector between two cells

    Attributes:
        vertices: (n, 2) canvas coordinates in the target extent
        kind: 'line' for point-to-point links, 'ribbon' for span links
        extent: Canvas extent the vertices are expressed in
        anchors: Midpoints of the two endpoints, in the target extent
        source: (layer, sector, track) of the first endpoint
        target: (layer, sector, track) of the second endpoint
    """
    vertices: np.ndarray = field(compare=False)
    kind: Literal['line', 'ribbon']
    extent: CanvasExtent
    anchors: Tuple[Point, Point]
    source: Tuple[int, str, int]
    target: Tuple[int, str, int]

    @property
    def closed(self) -> bool:
        """Ribbons are closed polygons, lines are open curves"""
        return self.kind == 'ribbon'

    def __len__(self) -> int:
        return len(self.vertices)


def _endpoint_angles(cell: CellHandle, link_range: LinkRange) -> Tuple[float, float, bool]:
    """(start angle, end angle, is_span) of one link endpoint"""
    if np.ndim(link_range) == 0:
        angle = float(cell.x_to_angle(float(link_range)))
        return angle, angle, False
    try:
        x0, x1 = (float(v) for v in link_range)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Link range must be a number or a pair, got {link_range!r}") from e
    return float(cell.x_to_angle(x0)), float(cell.x_to_angle(x1)), True


def _endpoint_radius(cell: CellHandle, radius: Optional[float]) -> float:
    if radius is None:
        # Bottom of the cell's plotting band
        return cell.band.plot_inner
    if radius <= 0:
        raise ConfigurationError(f"Link radius must be > 0, got {radius}")
    return float(radius)


def _control_point(p_start, p_end, center, h_ratio: float) -> np.ndarray:
    """Control point between the chord midpoint (h_ratio=0) and the centre (h_ratio=1)"""
    mid = (np.asarray(p_start) + np.asarray(p_end)) / 2
    return center + (mid - center) * (1.0 - h_ratio)


def link(
    cell_a: CellHandle,
    range_a: LinkRange,
    cell_b: CellHandle,
    range_b: LinkRange,
    radius_a: Optional[float] = None,
    radius_b: Optional[float] = None,
    h_ratio: float = 1.0,
    target: Optional[CanvasExtent] = None,
    arc_n: int = 20,
    curve_n: int = 50
) -> ConnectorPath:
    """
    Compute the connector between two cells

    Args:
        cell_a: Cell of the first endpoint
        range_a: Data-x position (line) or (x0, x1) span (ribbon) in cell_a
        cell_b: Cell of the second endpoint, may belong to another layer
        range_b: Data-x position or span in cell_b
        radius_a: Radius override for the first endpoint (its cell's canvas units)
        radius_b: Radius override for the second endpoint
        h_ratio: Bend of the curve; 1 pulls the control point to the centre,
            0 gives a straight chord
        target: Extent to express the result in; cell_a's extent by default
        arc_n: Points per endpoint arc (ribbons)
        curve_n: Points per Bezier curve

    Returns:
        ConnectorPath in the target extent

    Raises:
        ConfigurationError: Invalid range, radius or h_ratio
    """
    if not 0.0 <= h_ratio <= 1.0:
        raise ConfigurationError(f"h_ratio must be within [0, 1], got {h_ratio}")
    target = target or cell_a.extent

    a0, a1, span_a = _endpoint_angles(cell_a, range_a)
    b0, b1, span_b = _endpoint_angles(cell_b, range_b)
    r_a = _endpoint_radius(cell_a, radius_a)
    r_b = _endpoint_radius(cell_b, radius_b)

    def to_target(points: np.ndarray, extent: CanvasExtent) -> np.ndarray:
        x, y = extent.convert(points[:, 0], points[:, 1], target)
        return np.column_stack([x, y])

    # Both layer centres are the origin of their own canvas
    origin = np.zeros((1, 2))
    center = (to_target(origin, cell_a.extent)[0] + to_target(origin, cell_b.extent)[0]) / 2

    if not (span_a or span_b):
        p0 = to_target(arc_points(a0, a0, r_a, 1), cell_a.extent)[0]
        p2 = to_target(arc_points(b0, b0, r_b, 1), cell_b.extent)[0]
        vertices = bezier_curve(p0, _control_point(p0, p2, center, h_ratio), p2, n=curve_n)
        kind = 'line'
        anchors = (tuple(p0), tuple(p2))
    else:
        arc_a = to_target(arc_points(a0, a1, r_a, arc_n), cell_a.extent)
        arc_b = to_target(arc_points(b0, b1, r_b, arc_n), cell_b.extent)
        curve_ab = bezier_curve(arc_a[-1], _control_point(arc_a[-1], arc_b[0], center, h_ratio),
                                arc_b[0], n=curve_n)
        curve_ba = bezier_curve(arc_b[-1], _control_point(arc_b[-1], arc_a[0], center, h_ratio),
                                arc_a[0], n=curve_n)
        vertices = np.vstack([arc_a, curve_ab, arc_b, curve_ba])
        kind = 'ribbon'
        anchors = (tuple(arc_a[len(arc_a) // 2]), tuple(arc_b[len(arc_b) // 2]))

    logger.debug(f"Link {cell_a.key} -> {cell_b.key}: {kind} with {len(vertices)} vertices")
    return ConnectorPath(
        vertices=vertices,
        kind=kind,
        extent=target,
        anchors=(tuple(float(v) for v in anchors[0]), tuple(float(v) for v in anchors[1])),
        source=cell_a.key,
        target=cell_b.key,
    )
