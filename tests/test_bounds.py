"""
Tests for the injection region bounds
"""

import pytest
import numpy as np
from refinepic.injection.bounds import RegionBounds


@pytest.fixture
def unit_box():
    return RegionBounds(0.0, 1.0, 0.0, 1.0, 0.0, 1.0)


class TestMembership:
    """Test half-open and inclusive membership"""

    def test_upper_face_excluded(self, unit_box):
        """(1.0, 0.5, 0.5) is outside the half-open box"""
        assert not unit_box.inside_bounds(1.0, 0.5, 0.5)

    def test_upper_face_included(self, unit_box):
        """(1.0, 0.5, 0.5) is inside the closed box"""
        assert unit_box.inside_bounds_inclusive(1.0, 0.5, 0.5)

    def test_lower_face_included(self, unit_box):
        """The lower face belongs to both tests"""
        assert unit_box.inside_bounds(0.0, 0.0, 0.0)
        assert unit_box.inside_bounds_inclusive(0.0, 0.0, 0.0)

    def test_outside(self, unit_box):
        """Points beyond any face are outside"""
        for point in [(-1e-12, 0.5, 0.5), (0.5, 1.5, 0.5), (0.5, 0.5, -3.0)]:
            assert not unit_box.inside_bounds(*point)
            assert not unit_box.inside_bounds_inclusive(*point)

    def test_half_open_implies_inclusive(self, unit_box):
        """inside_bounds implies inside_bounds_inclusive"""
        rng = np.random.default_rng(0)
        points = rng.choice([-0.5, 0.0, 0.5, 1.0, 1.5], size=(500, 3))
        for x, y, z in points:
            if unit_box.inside_bounds(x, y, z):
                assert unit_box.inside_bounds_inclusive(x, y, z)

    def test_vectorized_matches_scalar(self, unit_box):
        """contains() agrees with the scalar tests"""
        rng = np.random.default_rng(1)
        x, y, z = rng.choice([-0.5, 0.0, 0.25, 1.0, 1.5], size=(3, 400))

        half_open = unit_box.contains(x, y, z)
        closed = unit_box.contains(x, y, z, inclusive=True)

        for i in range(400):
            assert half_open[i] == unit_box.inside_bounds(x[i], y[i], z[i])
            assert closed[i] == unit_box.inside_bounds_inclusive(x[i], y[i], z[i])

    def test_default_is_unbounded(self):
        """Default limits are infinite"""
        bounds = RegionBounds()
        assert bounds.inside_bounds(1e30, -1e30, 0.0)


class TestOverlap:
    """Test box-box overlap"""

    def test_overlapping(self, unit_box):
        assert unit_box.overlaps_with((0.5, 0.5, 0.5), (2.0, 2.0, 2.0))

    def test_touching_faces_overlap(self, unit_box):
        """Boxes sharing a face are not separated"""
        assert unit_box.overlaps_with((1.0, 0.0, 0.0), (2.0, 1.0, 1.0))

    def test_separated_on_one_axis(self, unit_box):
        """Separation along a single axis is enough"""
        assert not unit_box.overlaps_with((0.0, 0.0, 1.5), (1.0, 1.0, 2.0))
        assert not unit_box.overlaps_with((0.0, -2.0, 0.0), (1.0, -1.0, 1.0))

    def test_contained(self, unit_box):
        assert unit_box.overlaps_with((0.2, 0.2, 0.2), (0.3, 0.3, 0.3))


class TestConstruction:
    """Test construction checks"""

    def test_inverted_axis(self):
        """min > max fails fast"""
        with pytest.raises(ValueError, match="ymin"):
            RegionBounds(0.0, 1.0, 2.0, 1.0, 0.0, 1.0)

    def test_nan(self):
        with pytest.raises(ValueError, match="NaN"):
            RegionBounds(0.0, np.nan)

    def test_degenerate_allowed(self):
        """min == max is a valid, flat region"""
        bounds = RegionBounds(0.0, 0.0, 0.0, 1.0, 0.0, 1.0)
        assert not bounds.inside_bounds(0.0, 0.5, 0.5)
        assert bounds.inside_bounds_inclusive(0.0, 0.5, 0.5)

    def test_immutable(self, unit_box):
        with pytest.raises(AttributeError):
            unit_box.xmin = -1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
