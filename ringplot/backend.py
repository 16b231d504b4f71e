"""
Drawing backends for ringplot

The engine only ever hands resolved canvas coordinates to a backend. Every
call is scoped to a layer: begin_layer() announces a new layer with its
canvas extent, select_layer() routes the following calls to an existing
one, so overlay order is an explicit sequence rather than canvas state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple
import logging

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import PathPatch, Polygon
from matplotlib.path import Path as MplPath

from .exceptions import CellLookupError, StateError
from .layout.types import CanvasExtent
from .types import DrawStyle, Facing, PathLike

logger = logging.getLogger(__name__)


class DrawingBackend(Protocol):
    """Primitive operations the engine needs from a graphics host"""

    def begin_layer(self, layer_id: int, extent: CanvasExtent) -> None:
        ...

    def select_layer(self, layer_id: int) -> None:
        ...

    def clear(self) -> None:
        ...

    def draw_point(self, x: float, y: float, style: Optional[DrawStyle] = None) -> None:
        ...

    def draw_line(self, points: np.ndarray, style: Optional[DrawStyle] = None) -> None:
        ...

    def draw_text(self, x: float, y: float, text: str, rotation: float = 0.0,
                  facing: Facing = 'inside', style: Optional[DrawStyle] = None,
                  ha: str = 'center', va: str = 'center') -> None:
        ...

    def draw_polygon(self, points: np.ndarray, style: Optional[DrawStyle] = None) -> None:
        ...

    def draw_path(self, points: np.ndarray, closed: bool = False, style: Optional[DrawStyle] = None) -> None:
        ...


@dataclass
class DrawCall:
    """
    One recorded backend call

    Attributes:
        layer: Layer the call was routed to
        op: Primitive name ('point', 'line', 'text', 'polygon', 'path')
        args: Call arguments, coordinates as numpy arrays
    """
    layer: int
    op: str
    args: Dict[str, Any] = field(default_factory=dict)


class RecordingBackend:
    """
    Backend that records every call in order

    Useful to assert overlay order and resolved coordinates without a
    graphics host.
    """

    def __init__(self):
        self.layers: Dict[int, CanvasExtent] = {}
        self.layer_order: List[int] = []
        self.calls: List[DrawCall] = []
        self._active: Optional[int] = None

    def begin_layer(self, layer_id: int, extent: CanvasExtent) -> None:
        self.layers[layer_id] = extent
        self.layer_order.append(layer_id)
        self._active = layer_id

    def select_layer(self, layer_id: int) -> None:
        if layer_id not in self.layers:
            raise CellLookupError(f"Layer {layer_id} was never started on this backend")
        self._active = layer_id

    def clear(self) -> None:
        """Forget all layers and recorded calls"""
        self.layers = {}
        self.layer_order = []
        self.calls = []
        self._active = None

    def _record(self, op: str, **args) -> None:
        if self._active is None:
            raise StateError("No layer started on this backend")
        self.calls.append(DrawCall(layer=self._active, op=op, args=args))

    def draw_point(self, x, y, style=None) -> None:
        self._record('point', x=float(x), y=float(y), style=style or {})

    def draw_line(self, points, style=None) -> None:
        self._record('line', points=np.asarray(points, dtype=float), style=style or {})

    def draw_text(self, x, y, text, rotation=0.0, facing='inside', style=None, ha='center', va='center') -> None:
        self._record('text', x=float(x), y=float(y), text=text, rotation=float(rotation),
                     facing=facing, ha=ha, va=va, style=style or {})

    def draw_polygon(self, points, style=None) -> None:
        self._record('polygon', points=np.asarray(points, dtype=float), style=style or {})

    def draw_path(self, points, closed=False, style=None) -> None:
        self._record('path', points=np.asarray(points, dtype=float), closed=closed, style=style or {})

    def calls_for(self, layer_id: int) -> List[DrawCall]:
        """Recorded calls routed to one layer"""
        return [c for c in self.calls if c.layer == layer_id]


class MatplotlibBackend:
    """
    Backend drawing onto a matplotlib figure

    Each layer gets its own transparent axes covering the same figure area,
    with limits set to the layer's canvas extent. Layers added later sit on
    top. Axes are only removed by clear().
    """

    def __init__(self, figsize: Tuple[float, float] = (8.0, 8.0), figure: Optional[Figure] = None):
        """
        Initialize backend

        Args:
            figsize: Figure size in inches (ignored when figure is given)
            figure: Existing figure to draw into
        """
        self.figure: Figure = figure if figure is not None else plt.figure(figsize=figsize)
        self.axes: Dict[int, Axes] = {}
        self._active: Optional[Axes] = None

    def begin_layer(self, layer_id: int, extent: CanvasExtent) -> None:
        ax = self.figure.add_axes([0.0, 0.0, 1.0, 1.0], label=f"ringplot-layer-{layer_id}",
                                  zorder=len(self.axes))
        ax.set_xlim(*extent.xlim)
        ax.set_ylim(*extent.ylim)
        ax.set_aspect('equal', adjustable='box')
        ax.set_axis_off()
        ax.patch.set_alpha(0.0)
        self.axes[layer_id] = ax
        self._active = ax
        logger.debug(f"Matplotlib layer {layer_id} started with extent {extent.xlim} x {extent.ylim}")

    def select_layer(self, layer_id: int) -> None:
        try:
            self._active = self.axes[layer_id]
        except KeyError:
            raise CellLookupError(f"Layer {layer_id} was never started on this backend") from None

    def clear(self) -> None:
        """Remove every layer axes (and the figure title) from the figure"""
        for ax in self.axes.values():
            ax.remove()
        self.figure.suptitle('')
        logger.debug(f"Cleared {len(self.axes)} layer(s) from the figure")
        self.axes = {}
        self._active = None

    @property
    def ax(self) -> Axes:
        if self._active is None:
            raise StateError("No layer started on this backend")
        return self._active

    @staticmethod
    def _line_kwargs(style: Optional[DrawStyle]) -> Dict[str, Any]:
        style = dict(style or {})
        kwargs = {
            'color': style.get('color', 'black'),
            'linewidth': style.get('linewidth', 1.0),
            'linestyle': style.get('linestyle', '-'),
            'alpha': style.get('alpha', 1.0),
        }
        if 'zorder' in style:
            kwargs['zorder'] = style['zorder']
        return kwargs

    @staticmethod
    def _patch_kwargs(style: Optional[DrawStyle]) -> Dict[str, Any]:
        style = dict(style or {})
        kwargs = {
            'facecolor': style.get('facecolor', style.get('color', 'none')),
            'edgecolor': style.get('edgecolor', 'black'),
            'linewidth': style.get('linewidth', 0.8),
            'alpha': style.get('alpha', 1.0),
        }
        if 'zorder' in style:
            kwargs['zorder'] = style['zorder']
        return kwargs

    def draw_point(self, x, y, style=None) -> None:
        style = dict(style or {})
        self.ax.plot([x], [y], marker='o', linestyle='none',
                     markersize=style.get('markersize', 2.0),
                     color=style.get('color', 'black'),
                     alpha=style.get('alpha', 1.0))

    def draw_line(self, points, style=None) -> None:
        points = np.asarray(points, dtype=float)
        self.ax.plot(points[:, 0], points[:, 1], solid_capstyle='round', **self._line_kwargs(style))

    def draw_text(self, x, y, text, rotation=0.0, facing='inside', style=None, ha='center', va='center') -> None:
        style = dict(style or {})
        self.ax.text(x, y, text, rotation=rotation, rotation_mode='anchor', ha=ha, va=va,
                     fontsize=style.get('fontsize', 8),
                     fontweight=style.get('fontweight', 'normal'),
                     color=style.get('color', 'black'))

    def draw_polygon(self, points, style=None) -> None:
        self.ax.add_patch(Polygon(np.asarray(points, dtype=float), closed=True, **self._patch_kwargs(style)))

    def draw_path(self, points, closed=False, style=None) -> None:
        points = np.asarray(points, dtype=float)
        if not closed:
            self.draw_line(points, style)
            return
        codes = [MplPath.MOVETO] + [MplPath.LINETO] * (len(points) - 1)
        path = MplPath(points, codes)
        self.ax.add_patch(PathPatch(path, **self._patch_kwargs(style)))

    def save(self, output_file: PathLike, dpi: int = 300) -> Path:
        """
        Write the composited figure to disk

        Args:
            output_file: Target path; parent directories are created
            dpi: Resolution of raster output

        Returns:
            Path written
        """
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.figure.savefig(output_path, dpi=dpi, transparent=False)
        logger.info(f"Figure saved: {output_path} ({len(self.axes)} layer(s))")
        return output_path

    def close(self) -> None:
        plt.close(self.figure)

