import math
import pytest
from dvhop_simulator.protocols.errors import DegenerateGeometry, EstimationError
from dvhop_simulator.protocols.trilateration import trilaterate


def ranges_to(point, *anchors):
    return [math.hypot(point[0] - a[0], point[1] - a[1]) for a in anchors]


class TestTrilaterate:
    """Closed-form trilateration"""

    def test_exact_ranges(self):
        anchors = [(0.0, 0.0), (100.0, 0.0), (0.0, 100.0)]
        r1, r2, r3 = ranges_to((30.0, 40.0), *anchors)

        x, y = trilaterate(*anchors, r1, r2, r3)

        assert x == pytest.approx(30.0, abs=1e-6)
        assert y == pytest.approx(40.0, abs=1e-6)

    def test_rounded_ranges(self):
        x, y = trilaterate((0.0, 0.0), (100.0, 0.0), (0.0, 100.0), 50.0, 80.62, 67.08)
        assert x == pytest.approx(30.0, abs=0.05)
        assert y == pytest.approx(40.0, abs=0.05)

    def test_rotated_and_translated_frame(self):
        anchors = [(200.0, 150.0), (260.0, 230.0), (120.0, 210.0)]
        target = (190.0, 205.0)
        r1, r2, r3 = ranges_to(target, *anchors)

        x, y = trilaterate(*anchors, r1, r2, r3)

        assert x == pytest.approx(target[0], abs=1e-6)
        assert y == pytest.approx(target[1], abs=1e-6)

    def test_point_below_the_anchor_baseline(self):
        # The third anchor fixes which side of p1->p2 the solution lies on
        anchors = [(0.0, 0.0), (100.0, 0.0), (50.0, -80.0)]
        r1, r2, r3 = ranges_to((40.0, -30.0), *anchors)

        x, y = trilaterate(*anchors, r1, r2, r3)

        assert (x, y) == pytest.approx((40.0, -30.0), abs=1e-6)

    def test_inconsistent_ranges_still_return_a_point(self):
        x, y = trilaterate((0.0, 0.0), (100.0, 0.0), (0.0, 100.0), 100.0, 100.0, 100.0)
        assert math.isfinite(x) and math.isfinite(y)
        assert x == pytest.approx(50.0)
        assert y == pytest.approx(50.0)

    def test_coincident_anchors(self):
        with pytest.raises(DegenerateGeometry):
            trilaterate((10.0, 10.0), (10.0, 10.0), (0.0, 50.0), 5.0, 5.0, 5.0)

    def test_collinear_anchors(self):
        with pytest.raises(DegenerateGeometry):
            trilaterate((0.0, 0.0), (50.0, 0.0), (100.0, 0.0), 10.0, 40.0, 90.0)

    @pytest.mark.parametrize("p2, p3, ranges", [
        ((100.0, 0.0), (50.0, 1e-6), (50.0, 50.0, 50.0)),
        ((1000.0, 0.0), (500.0, 1e-5), (600.0, 500.0, 500.0)),
        ((0.0, 1e-7), (0.0, 2e-7), (1.0, 1.0, 1.0)),
    ])
    def test_nearly_collinear_anchors(self, p2, p3, ranges):
        """Tiny offsets from the baseline must not blow up into huge fixes"""
        with pytest.raises(DegenerateGeometry):
            trilaterate((0.0, 0.0), p2, p3, *ranges)

    def test_small_but_well_spread_anchors(self):
        anchors = [(0.0, 0.0), (0.01, 0.0), (0.0, 0.01)]
        r1, r2, r3 = ranges_to((0.003, 0.004), *anchors)

        x, y = trilaterate(*anchors, r1, r2, r3)

        assert (x, y) == pytest.approx((0.003, 0.004), abs=1e-9)

    def test_degenerate_geometry_is_an_estimation_error(self):
        assert issubclass(DegenerateGeometry, EstimationError)
