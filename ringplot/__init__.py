"""ringplot: Circular layout and coordinate engine for sector/track plots"""

from .config import CellPadding, CircularConfig, TrackConfig
from .exceptions import (
    CapacityError,
    CellLookupError,
    ConfigurationError,
    PointsOverflowWarning,
    RingplotError,
    StateError,
)
from .layout import CanvasExtent, Sector, SectorAllocator, SectorSpec, TrackBand, TrackStack
from .projection import CellHandle, PolarProjector, TextPlacement, readable_rotation
from .session import CellVisitor, Layer, LayoutSession
from .compositor import LayoutController
from .links import ConnectorPath, link
from .zoom import ZoomCorrespondence, ZoomProjector
from .backend import MatplotlibBackend, RecordingBackend
from .drawing import CellPainter
from . import utils
from .visualizer import CircularPlotter

__version__ = "0.1.0"
__all__ = [
    "CircularConfig", "CellPadding", "TrackConfig",
    "RingplotError", "ConfigurationError", "CapacityError", "StateError", "CellLookupError",
    "PointsOverflowWarning",
    "SectorAllocator", "TrackStack", "Sector", "SectorSpec", "TrackBand", "CanvasExtent",
    "CellHandle", "PolarProjector", "TextPlacement", "readable_rotation",
    "LayoutSession", "Layer", "CellVisitor", "LayoutController",
    "link", "ConnectorPath", "ZoomProjector", "ZoomCorrespondence",
    "RecordingBackend", "MatplotlibBackend", "CellPainter", "utils", "CircularPlotter",
]
