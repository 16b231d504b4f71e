"""
Unit tests for link geometry
"""
import numpy as np
import pytest

from ringplot.compositor import LayoutController
from ringplot.config import CircularConfig
from ringplot.exceptions import ConfigurationError
from ringplot.links import bezier_curve, link


@pytest.fixture
def nested_cells():
    """Cell of an outer [-1, 1] layer and of an inner [-2, 2] layer, both on track 0.8-1.0"""
    controller = LayoutController()
    for sectors, config, composite in (({'outer': (0, 1)}, None, False),
                                       ({'inner': (0, 1)}, CircularConfig.nested(2.0), True)):
        controller.begin_layout(config, composite=composite)
        controller.initialize(sectors)
        controller.add_track(height=0.2, margin=(0, 0), padding=(0, 0, 0, 0))
    return controller.query_cell('outer', 1, layer=0), controller.query_cell('inner', 1, layer=1)


@pytest.mark.unit
class TestBezier:

    def test_endpoints(self):
        curve = bezier_curve((0, 0), (1, 1), (2, 0), n=11)
        assert curve.shape == (11, 2)
        assert curve[0] == pytest.approx([0, 0])
        assert curve[-1] == pytest.approx([2, 0])
        assert curve[5] == pytest.approx([1, 0.5])


@pytest.mark.unit
@pytest.mark.coordinates
class TestLineLinks:

    def test_endpoints_on_cell_bottom(self, two_sector_session):
        cell = two_sector_session.query_cell('a', 1)
        path = link(cell, 0.0, cell, 2.0, curve_n=51)
        assert path.kind == 'line'
        assert not path.closed
        assert len(path) == 51
        assert path.vertices[0] == pytest.approx([0.8, 0.0], abs=1e-12)
        assert path.vertices[-1] == pytest.approx([-0.8, 0.0], abs=1e-12)
        assert path.anchors[0] == pytest.approx((0.8, 0.0), abs=1e-12)

    def test_full_bend_passes_through_centre(self, two_sector_session):
        cell = two_sector_session.query_cell('a', 1)
        path = link(cell, 0.0, cell, 2.0, h_ratio=1.0, curve_n=51)
        assert path.vertices[25] == pytest.approx([0.0, 0.0], abs=1e-12)

    def test_zero_bend_is_straight(self, two_sector_session):
        a = two_sector_session.query_cell('a', 1)
        b = two_sector_session.query_cell('b', 1)
        path = link(a, 1.5, b, 0.5, h_ratio=0.0)
        p0, p2 = path.vertices[0], path.vertices[-1]
        direction = (p2 - p0) / np.linalg.norm(p2 - p0)
        offsets = path.vertices - p0
        cross = offsets[:, 0] * direction[1] - offsets[:, 1] * direction[0]
        assert cross == pytest.approx(np.zeros(len(cross)), abs=1e-12)

    def test_radius_override(self, two_sector_session):
        cell = two_sector_session.query_cell('a', 1)
        path = link(cell, 0.0, cell, 1.0, radius_a=0.5, radius_b=0.25)
        assert np.hypot(*path.vertices[0]) == pytest.approx(0.5)
        assert np.hypot(*path.vertices[-1]) == pytest.approx(0.25)


@pytest.mark.unit
class TestRibbons:

    def test_span_gives_closed_ribbon(self, two_sector_session):
        a = two_sector_session.query_cell('a', 1)
        b = two_sector_session.query_cell('b', 1)
        path = link(a, (0.5, 1.0), b, (0.2, 0.4), arc_n=10, curve_n=20)
        assert path.kind == 'ribbon'
        assert path.closed
        assert len(path) == 2 * 10 + 2 * 20
        radii = np.hypot(path.vertices[:10, 0], path.vertices[:10, 1])
        assert radii == pytest.approx(np.full(10, 0.8))

    def test_span_to_point(self, two_sector_session):
        a = two_sector_session.query_cell('a', 1)
        path = link(a, (0.5, 1.0), a, 2.5)
        assert path.kind == 'ribbon'


@pytest.mark.unit
@pytest.mark.coordinates
class TestCrossLayerLinks:

    def test_default_target_is_first_cell_extent(self, nested_cells):
        outer, inner = nested_cells
        path = link(outer, 0.0, inner, 0.0)
        assert path.extent == outer.extent
        # Inner endpoint: radius 0.8 in a [-2, 2] canvas looks like 0.4 here
        assert path.anchors[0] == pytest.approx((0.8, 0.0), abs=1e-12)
        assert path.anchors[1] == pytest.approx((0.4, 0.0), abs=1e-12)

    def test_explicit_target(self, nested_cells):
        outer, inner = nested_cells
        path = link(outer, 0.0, inner, 0.0, target=inner.extent)
        assert path.anchors[0] == pytest.approx((1.6, 0.0), abs=1e-12)
        assert path.anchors[1] == pytest.approx((0.8, 0.0), abs=1e-12)


@pytest.mark.unit
class TestInvalidLinks:

    @pytest.mark.parametrize("h_ratio", [-0.1, 1.5])
    def test_h_ratio_range(self, two_sector_session, h_ratio):
        cell = two_sector_session.query_cell('a', 1)
        with pytest.raises(ConfigurationError, match="h_ratio"):
            link(cell, 0.0, cell, 1.0, h_ratio=h_ratio)

    def test_non_positive_radius(self, two_sector_session):
        cell = two_sector_session.query_cell('a', 1)
        with pytest.raises(ConfigurationError, match="radius"):
            link(cell, 0.0, cell, 1.0, radius_a=0.0)

    def test_malformed_range(self, two_sector_session):
        cell = two_sector_session.query_cell('a', 1)
        with pytest.raises(ConfigurationError, match="number or a pair"):
            link(cell, (0.0, 1.0, 2.0), cell, 1.0)
