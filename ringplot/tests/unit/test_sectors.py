"""
Unit tests for SectorAllocator

Covers proportional allocation, gaps, manual widths, zoom groups and
direction handling.
"""
import numpy as np
import pytest

from ringplot.config import CircularConfig
from ringplot.exceptions import ConfigurationError
from ringplot.layout import Sector, SectorAllocator, SectorSpec


def specs_from(ranges, **kwargs):
    return [SectorSpec(name=name, xlim=xlim, **kwargs) for name, xlim in ranges.items()]


@pytest.mark.unit
@pytest.mark.coordinates
class TestProportionalAllocation:
    """Widths proportional to data-x ranges"""

    def test_two_sectors_no_gaps(self, flat_config):
        """Ranges 3 and 1 without gaps give 270 and 90 degrees"""
        a, b = SectorAllocator(flat_config).allocate(specs_from({'a': (0, 3), 'b': (0, 1)}))
        assert a.width == pytest.approx(270.0)
        assert b.width == pytest.approx(90.0)
        assert (a.start_angle, a.end_angle) == pytest.approx((0.0, 270.0))
        assert (b.start_angle, b.end_angle) == pytest.approx((270.0, 360.0))

    def test_single_sector_large_gap(self):
        """One sector with a 270 degree gap starting at 90 spans 90 -> 180"""
        config = CircularConfig(start_degree=90.0, gap_degree=270.0)
        (sector,) = SectorAllocator(config).allocate(specs_from({'only': (0, 1)}))
        assert sector.start_angle == pytest.approx(90.0)
        assert sector.end_angle == pytest.approx(180.0)

    @pytest.mark.parametrize("n_sectors", [1, 2, 7, 24])
    @pytest.mark.parametrize("gap", [0.0, 1.0, 3.5])
    def test_widths_fill_circle_minus_gaps(self, n_sectors, gap):
        """Sum of widths equals 360 minus the sum of gaps"""
        rng = np.random.default_rng(n_sectors)
        ranges = {f"s{i}": (0.0, float(rng.uniform(1, 1000))) for i in range(n_sectors)}
        sectors = SectorAllocator(CircularConfig(gap_degree=gap)).allocate(specs_from(ranges))

        total_gap = sum(s.gap_after for s in sectors)
        assert total_gap == pytest.approx(gap * n_sectors)
        assert sum(s.width for s in sectors) == pytest.approx(360.0 - total_gap, abs=360 * 1e-6)

    def test_sectors_are_contiguous_with_gaps(self):
        """Each sector starts one gap after the previous one ends"""
        config = CircularConfig(gap_degree=2.0)
        sectors = SectorAllocator(config).allocate(specs_from({'a': (0, 10), 'b': (5, 25), 'c': (0, 1)}))
        for prev, cur in zip(sectors, sectors[1:]):
            assert cur.start_angle == pytest.approx(prev.end_angle + prev.gap_after)
        assert sectors[-1].end_angle + sectors[-1].gap_after == pytest.approx(360.0)

    def test_order_and_metadata_preserved(self, flat_config):
        sectors = SectorAllocator(flat_config).allocate(specs_from({'x': (2, 4), 'y': (0, 1)}))
        assert [s.name for s in sectors] == ['x', 'y']
        assert [s.index for s in sectors] == [0, 1]
        assert sectors[0].xlim == (2.0, 4.0)

    def test_clockwise_direction(self):
        """Clockwise layouts walk towards decreasing angles"""
        config = CircularConfig.clockwise(start_degree=90.0)
        config.gap_degree = 0.0
        a, b = SectorAllocator(config).allocate(specs_from({'a': (0, 1), 'b': (0, 1)}))
        assert (a.start_angle, a.end_angle) == pytest.approx((90.0, -90.0))
        assert (b.start_angle, b.end_angle) == pytest.approx((-90.0, -270.0))
        assert a.width == pytest.approx(180.0)


@pytest.mark.unit
class TestGaps:
    """Gap resolution order: request override, per-name config, uniform"""

    def test_per_name_config_gap(self):
        config = CircularConfig(gap_degree=0.0, gap_after={'a': 60.0})
        a, b = SectorAllocator(config).allocate(specs_from({'a': (0, 1), 'b': (0, 1)}))
        assert a.gap_after == 60.0
        assert b.gap_after == 0.0
        assert a.width == pytest.approx(150.0)
        assert b.start_angle == pytest.approx(210.0)

    def test_spec_gap_wins_over_config(self):
        config = CircularConfig(gap_degree=5.0, gap_after={'a': 60.0})
        specs = [SectorSpec('a', (0, 1), gap_after=0.0), SectorSpec('b', (0, 1))]
        a, b = SectorAllocator(config).allocate(specs)
        assert a.gap_after == 0.0
        assert b.gap_after == 5.0

    def test_gaps_leaving_no_room(self):
        config = CircularConfig(gap_degree=180.0)
        with pytest.raises(ConfigurationError, match="leaving no room"):
            SectorAllocator(config).allocate(specs_from({'a': (0, 1), 'b': (0, 1)}))

    def test_negative_gap(self):
        with pytest.raises(ConfigurationError):
            SectorAllocator(CircularConfig()).allocate([SectorSpec('a', (0, 1), gap_after=-1.0)])


@pytest.mark.unit
class TestManualWidths:
    """Manual widths are fractions of the angle available to the group"""

    def test_all_manual_are_normalized(self, flat_config):
        specs = [SectorSpec('a', (0, 100), manual_width=1.0), SectorSpec('b', (0, 1), manual_width=3.0)]
        a, b = SectorAllocator(flat_config).allocate(specs)
        assert a.width == pytest.approx(90.0)
        assert b.width == pytest.approx(270.0)

    def test_subset_manual_keeps_fraction(self, flat_config):
        """Remaining sectors share the rest proportionally to their ranges"""
        specs = [
            SectorSpec('a', (0, 1), manual_width=0.5),
            SectorSpec('b', (0, 1)),
            SectorSpec('c', (0, 3)),
        ]
        a, b, c = SectorAllocator(flat_config).allocate(specs)
        assert a.width == pytest.approx(180.0)
        assert b.width == pytest.approx(45.0)
        assert c.width == pytest.approx(135.0)

    def test_manual_width_allows_empty_range(self, flat_config):
        specs = [SectorSpec('point', (5, 5), manual_width=0.25), SectorSpec('b', (0, 1))]
        point, b = SectorAllocator(flat_config).allocate(specs)
        assert point.width == pytest.approx(90.0)
        assert b.width == pytest.approx(270.0)

    def test_manual_widths_over_one(self, flat_config):
        specs = [SectorSpec('a', (0, 1), manual_width=0.7), SectorSpec('b', (0, 1), manual_width=0.6),
                 SectorSpec('c', (0, 1))]
        with pytest.raises(ConfigurationError, match="more than 1"):
            SectorAllocator(flat_config).allocate(specs)

    def test_non_positive_manual_width(self, flat_config):
        with pytest.raises(ConfigurationError, match="must be > 0"):
            SectorAllocator(flat_config).allocate([SectorSpec('a', (0, 1), manual_width=0.0)])


@pytest.mark.unit
class TestGroups:
    """Zoom groups are normalised independently"""

    def test_explicit_shares(self, flat_config):
        specs = [
            SectorSpec('a', (0, 1), group='original'),
            SectorSpec('b', (0, 3), group='original'),
            SectorSpec('a_zoom', (0, 1), group='zoom'),
        ]
        a, b, zoom = SectorAllocator(flat_config).allocate(specs, {'original': 0.5, 'zoom': 0.5})
        assert a.width == pytest.approx(45.0)
        assert b.width == pytest.approx(135.0)
        assert zoom.width == pytest.approx(180.0)
        assert zoom.group == 'zoom'

    def test_equal_split_by_default(self, flat_config):
        specs = [SectorSpec('a', (0, 100), group='g1'), SectorSpec('b', (0, 1), group='g2')]
        a, b = SectorAllocator(flat_config).allocate(specs)
        assert a.width == pytest.approx(180.0)
        assert b.width == pytest.approx(180.0)

    def test_partial_shares(self, flat_config):
        """Unlisted groups split what the listed ones leave"""
        specs = [SectorSpec('a', (0, 1), group='original'), SectorSpec('z', (0, 1), group='zoom')]
        a, z = SectorAllocator(flat_config).allocate(specs, {'zoom': 0.25})
        assert a.width == pytest.approx(270.0)
        assert z.width == pytest.approx(90.0)

    def test_shares_normalized_when_complete(self, flat_config):
        specs = [SectorSpec('a', (0, 1), group='g1'), SectorSpec('b', (0, 1), group='g2')]
        a, b = SectorAllocator(flat_config).allocate(specs, {'g1': 1.0, 'g2': 3.0})
        assert a.width == pytest.approx(90.0)
        assert b.width == pytest.approx(270.0)

    def test_partial_shares_over_one(self, flat_config):
        specs = [SectorSpec('a', (0, 1), group='g1'), SectorSpec('b', (0, 1), group='g2')]
        with pytest.raises(ConfigurationError, match="more than the whole circle"):
            SectorAllocator(flat_config).allocate(specs, {'g1': 1.5})

    def test_unknown_group_share(self, flat_config):
        with pytest.raises(ConfigurationError, match="unknown zoom groups"):
            SectorAllocator(flat_config).allocate(specs_from({'a': (0, 1)}), {'zoom': 0.5})


@pytest.mark.unit
class TestInvalidRequests:

    def test_empty(self):
        with pytest.raises(ConfigurationError, match="At least one sector"):
            SectorAllocator().allocate([])

    def test_duplicate_names(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            SectorAllocator().allocate([SectorSpec('a', (0, 1)), SectorSpec('a', (0, 2))])

    def test_empty_range_without_manual_width(self):
        with pytest.raises(ConfigurationError, match="empty x range"):
            SectorAllocator().allocate([SectorSpec('a', (3, 3)), SectorSpec('b', (0, 1))])

    def test_reversed_range(self):
        with pytest.raises(ConfigurationError):
            SectorAllocator().allocate([SectorSpec('a', (5, 1))])


@pytest.mark.unit
@pytest.mark.coordinates
class TestPartitionCheck:
    """Sectors plus gaps tile exactly one turn starting at start_degree"""

    @pytest.mark.parametrize("config", [
        CircularConfig(gap_degree=2.0),
        CircularConfig(start_degree=90.0, direction='clockwise', gap_degree=5.0),
        CircularConfig(start_degree=-45.0, gap_after={'b': 40.0}),
    ])
    def test_allocation_closes_the_turn(self, config):
        allocator = SectorAllocator(config)
        sectors = allocator.allocate(specs_from({'a': (0, 10), 'b': (5, 25), 'c': (0, 1)}))
        allocator.check_partition(sectors)
        last = sectors[-1]
        assert last.end_angle + config.sign * last.gap_after == pytest.approx(
            config.start_degree + config.sign * 360.0)

    def test_unclosed_turn(self, flat_config):
        short = [Sector('a', 0, (0.0, 1.0), 0.0, 180.0, 0.0),
                 Sector('b', 1, (0.0, 1.0), 180.0, 350.0, 0.0)]
        with pytest.raises(ConfigurationError, match="expected 360"):
            SectorAllocator(flat_config).check_partition(short)

    def test_overlapping_sectors(self, flat_config):
        overlap = [Sector('a', 0, (0.0, 1.0), 0.0, 200.0, 0.0),
                   Sector('b', 1, (0.0, 1.0), 180.0, 360.0, 0.0)]
        with pytest.raises(ConfigurationError, match="starts at 180"):
            SectorAllocator(flat_config).check_partition(overlap)

    def test_sector_against_direction(self, flat_config):
        backwards = [Sector('a', 0, (0.0, 1.0), 0.0, -360.0, 0.0)]
        with pytest.raises(ConfigurationError, match="against the layout direction"):
            SectorAllocator(flat_config).check_partition(backwards)
