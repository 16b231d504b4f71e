"""
Unit tests for LayoutController and canvas extents
"""
import numpy as np
import pytest

from ringplot.backend import MatplotlibBackend
from ringplot.compositor import LayoutController
from ringplot.config import CircularConfig
from ringplot.exceptions import CellLookupError, ConfigurationError, StateError
from ringplot.layout import CanvasExtent
from ringplot.session import Layer, LayoutSession


def build_ring(controller, sectors, config=None, composite=False):
    controller.begin_layout(config, composite=composite)
    controller.initialize(sectors)
    return controller.add_track(height=0.2, margin=(0, 0), padding=(0, 0, 0, 0))


@pytest.mark.unit
class TestLifecycle:

    def test_no_session(self):
        controller = LayoutController()
        assert not controller.is_open
        with pytest.raises(StateError, match="begin_layout"):
            controller.current
        with pytest.raises(StateError):
            controller.close_layout()
        with pytest.raises(StateError):
            controller.add_track()

    @pytest.mark.parametrize("call", [
        lambda c: c.add_sector('a', (0, 1)),
        lambda c: c.initialize({'a': (0, 1)}),
        lambda c: c.activate_sector(1, 'a'),
        lambda c: c.query_cell('a', 1),
    ])
    def test_mutators_need_open_session(self, call):
        controller = LayoutController()
        with pytest.raises(StateError, match="No layout session is open"):
            call(controller)

    def test_mutators_refused_after_close(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)})
        controller.close_layout()
        with pytest.raises(StateError):
            controller.activate_sector(1, 'a')
        with pytest.raises(StateError):
            controller.add_sector('b', (0, 1))

    def test_begin_while_open_refused(self):
        controller = LayoutController()
        first = controller.begin_layout()
        with pytest.raises(StateError, match="still open"):
            controller.begin_layout()
        assert controller.current is first
        assert controller.layers == []

    def test_composite_closes_previous(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)})
        second = controller.begin_layout(CircularConfig.nested(2.0), composite=True)
        assert second.layer_id == 1
        assert [layer.layer_id for layer in controller.layers] == [0]
        assert isinstance(controller.layer(0), Layer)
        assert controller.layer(1) is second

    def test_both_layers_queryable(self):
        """Opening B on top of A keeps A's cells available for links"""
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)})
        build_ring(controller, {'b': (0, 1)}, CircularConfig.nested(2.0), composite=True)

        cell_a = controller.query_cell('a', 1, layer=0)
        cell_b = controller.query_cell('b', 1)
        assert cell_a.layer == 0 and cell_b.layer == 1
        path = controller.link(cell_a, 0.5, cell_b, 0.5, draw=False)
        assert path.source == (0, 'a', 1)
        assert path.target == (1, 'b', 1)

    def test_invalid_config_keeps_open_session(self):
        controller = LayoutController()
        first = controller.begin_layout()
        with pytest.raises(ConfigurationError):
            controller.begin_layout(CircularConfig(outer_radius=-1.0), composite=True)
        assert controller.current is first

    def test_close_and_reset(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)})
        layer = controller.close_layout()
        assert layer.closed
        assert not controller.is_open
        controller.reset()
        assert controller.layers == []
        assert controller.begin_layout().layer_id == 0

    def test_unknown_layer(self):
        controller = LayoutController()
        controller.begin_layout()
        with pytest.raises(CellLookupError):
            controller.layer(7)

    def test_pass_through_mutators(self):
        controller = LayoutController()
        session = controller.begin_layout(CircularConfig(gap_degree=0.0))
        controller.add_sector('a', (0, 1))
        controller.add_sector('b', (0, 3))
        band = controller.add_track(sectors=[])
        cell = controller.activate_sector(band.index, 'b', ylim=(0, 2))
        assert isinstance(session, LayoutSession)
        assert session.sector('b').width == pytest.approx(270.0)
        assert cell.ylim == (0.0, 2.0)
        assert controller.query_cell('b', 1) == cell

    def test_cells_across_layers(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1), 'b': (0, 1)})
        build_ring(controller, {'c': (0, 1)}, composite=True)
        assert [c.key for c in controller.cells()] == [(0, 'a', 1), (0, 'b', 1), (1, 'c', 1)]
        assert [c.key for c in controller.cells(layers=[1])] == [(1, 'c', 1)]


@pytest.mark.unit
class TestBackendScoping:

    def test_layers_announced_in_order(self, recording_backend):
        controller = LayoutController(recording_backend)
        build_ring(controller, {'a': (0, 1)})
        build_ring(controller, {'b': (0, 1)}, CircularConfig.nested(2.0), composite=True)
        assert recording_backend.layer_order == [0, 1]
        assert recording_backend.layers[1] == CanvasExtent((-2.0, 2.0), (-2.0, 2.0))

    def test_painter_targets_cell_layer(self, recording_backend):
        controller = LayoutController(recording_backend)
        build_ring(controller, {'a': (0, 1)})
        cell_a = controller.query_cell('a', 1)
        build_ring(controller, {'b': (0, 1)}, composite=True)

        controller.painter(cell_a).points([0.5], [0.5])
        controller.painter(controller.query_cell('b', 1)).points([0.5], [0.5])
        assert [c.layer for c in recording_backend.calls] == [0, 1]

    def test_reset_clears_recorded_layers(self, recording_backend):
        """A new render after reset starts from an empty backend"""
        controller = LayoutController(recording_backend)
        build_ring(controller, {'a': (0, 1)})
        controller.painter(controller.query_cell('a', 1)).points([0.5], [0.5])
        controller.reset()

        build_ring(controller, {'b': (0, 1)})
        controller.painter(controller.query_cell('b', 1)).points([0.5], [0.5])
        assert recording_backend.layer_order == [0]
        assert len(recording_backend.calls_for(0)) == 1

    def test_reset_clears_matplotlib_figure(self):
        backend = MatplotlibBackend(figsize=(3, 3))
        try:
            controller = LayoutController(backend)
            build_ring(controller, {'a': (0, 1)})
            build_ring(controller, {'b': (0, 1)}, composite=True)
            assert len(backend.figure.axes) == 2
            controller.reset()
            assert backend.figure.axes == []
            controller.begin_layout()
            assert len(backend.figure.axes) == 1
            assert backend.figure.axes[0].get_zorder() == 0
        finally:
            backend.close()

    def test_clear_then_draw_needs_new_layer(self, recording_backend):
        recording_backend.begin_layer(0, CanvasExtent())
        recording_backend.clear()
        with pytest.raises(StateError):
            recording_backend.draw_point(0.0, 0.0)
        with pytest.raises(CellLookupError):
            recording_backend.select_layer(0)

    def test_painter_needs_backend(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)})
        with pytest.raises(StateError, match="backend"):
            controller.painter(controller.query_cell('a', 1))


@pytest.mark.unit
@pytest.mark.coordinates
class TestCanvasExtent:

    def test_unit_frame(self):
        extent = CanvasExtent((-2.0, 2.0), (-2.0, 2.0))
        ux, uy = extent.to_unit(1.0, 0.0)
        assert (float(ux), float(uy)) == pytest.approx((0.75, 0.5))
        x, y = extent.from_unit(ux, uy)
        assert (float(x), float(y)) == pytest.approx((1.0, 0.0))

    def test_nested_extent_renders_at_half_size(self):
        outer = CanvasExtent()
        inner = CanvasExtent((-2.0, 2.0), (-2.0, 2.0))
        assert inner.apparent_scale(outer) == pytest.approx(0.5)
        x, y = inner.convert(np.array([1.0, 0.0]), np.array([0.0, -1.0]), outer)
        assert x == pytest.approx([0.5, 0.0])
        assert y == pytest.approx([0.0, -0.5])

    def test_convert_to_same_extent_is_identity(self):
        extent = CanvasExtent((0.0, 10.0), (0.0, 5.0))
        x, y = extent.convert(3.0, 4.0, CanvasExtent((0.0, 10.0), (0.0, 5.0)))
        assert (float(x), float(y)) == (3.0, 4.0)

    def test_to_unit_of_cell(self):
        controller = LayoutController()
        build_ring(controller, {'a': (0, 1)}, CircularConfig.nested(2.0))
        ux, uy = controller.query_cell('a', 1).to_unit(0.0, 1.0)
        # x=0 sits at 0 degrees, y=1 at radius 1.0
        assert (float(ux), float(uy)) == pytest.approx((0.75, 0.5))
