"""
Layout Module for ringplot
Angular and radial allocation for circular layouts

Public API:
    - SectorAllocator: Sector start/end angles from data ranges and gaps
    - TrackStack: Concentric radial bands for tracks
    - Sector: Allocated sector
    - SectorSpec: Sector request
    - TrackBand: Allocated track band
    - CanvasExtent: Logical canvas bounds of a layout
"""

from .types import (
    CanvasExtent,
    Sector,
    SectorSpec,
    TrackBand,
)
from .sectors import SectorAllocator
from .tracks import TrackStack

__all__ = [
    'SectorAllocator',
    'TrackStack',
    'Sector',
    'SectorSpec',
    'TrackBand',
    'CanvasExtent',
]
