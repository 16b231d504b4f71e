"""
Type definitions for ringplot

Common types used throughout the package for type checking and documentation.
"""

from __future__ import annotations
from typing import TypedDict, Literal, Tuple, Union, Optional
from pathlib import Path

# Type aliases
PathLike = Union[str, Path]
"""File path as string or Path object"""

Direction = Literal['clockwise', 'counterclockwise']
"""Direction in which sectors follow each other around the circle"""

TrackOrder = Literal['inward', 'outward']
"""Whether tracks are stacked from the outer radius inward or from the inner radius outward"""

Facing = Literal['inside', 'outside', 'clockwise', 'reverse_clockwise', 'downward']
"""How a text label is oriented relative to the circle at its position"""

Range = Tuple[float, float]
"""Closed numeric interval (low, high)"""

Point = Tuple[float, float]
"""Canvas coordinate (x, y)"""

LinkRange = Union[float, Range]
"""A single data position (line endpoint) or a data span (ribbon endpoint)"""


# Structured data types

class DrawStyle(TypedDict, total=False):
    """Style keys understood by the bundled backends; all optional"""
    color: str
    facecolor: Optional[str]
    edgecolor: Optional[str]
    linewidth: float
    linestyle: str
    alpha: float
    markersize: float
    fontsize: float
    fontweight: str
    zorder: float


class CellInfo(TypedDict):
    """Meta data describing one cell, as returned by CellHandle.meta()"""
    sector: str
    track: int
    layer: int
    xlim: Range
    ylim: Range
    xrange: float
    yrange: float
    sector_start_angle: float
    sector_end_angle: float
    cell_start_angle: float
    cell_end_angle: float
    cell_top_radius: float
    cell_bottom_radius: float
    track_margin: Range
    cell_padding: Tuple[float, float, float, float]
    group: Optional[str]


class SessionInfo(TypedDict):
    """Summary of a layout session, as returned by LayoutSession.info()"""
    layer: int
    closed: bool
    start_degree: float
    direction: Direction
    canvas_xlim: Range
    canvas_ylim: Range
    sectors: list
    tracks: list
