"""
Tests for unit-cell position sampling strategies
"""

import itertools

import pytest
import numpy as np
from refinepic.injection.position import InjectorPosition


class TestRegular:
    """Test the regular lattice strategy"""

    def test_2x2x2_lattice(self):
        """ppc (2,2,2) in 3D covers the 8 corners of {0.25, 0.75}^3 once each"""
        injector = InjectorPosition.regular((2, 2, 2))
        n = injector.particles_per_cell((1, 1, 1), '3d')

        pos = injector.sample_many(np.arange(n), (1, 1, 1), None, '3d')

        assert n == 8
        points = {tuple(p) for p in pos}
        assert points == set(itertools.product([0.25, 0.75], repeat=3))

    def test_index_decomposition(self):
        """ix = i // (ny*nz), iz = (i - ix*ny*nz) // ny, iy = remainder"""
        injector = InjectorPosition.regular((2, 3, 1))

        u, v, w = injector.sample(4, (1, 1, 1), None, '3d')

        # ny = 3, nz = 1: ix = 1, iz = 0, iy = 1
        assert (u, v, w) == (0.75, 0.5, 0.5)

    def test_refinement_scales_counts(self):
        """Refinement factor multiplies the lattice counts"""
        injector = InjectorPosition.regular((1, 1, 1))
        n = injector.particles_per_cell((2, 2, 2), '3d')

        pos = injector.sample_many(np.arange(n), (2, 2, 2), None, '3d')

        assert n == 8
        assert {tuple(p) for p in pos} == set(itertools.product([0.25, 0.75], repeat=3))

    def test_rz_azimuth_not_refined(self):
        """In RZ the third count is never multiplied by the refinement factor"""
        injector = InjectorPosition.regular((1, 1, 4))

        assert injector.particles_per_cell((2, 2, 2), 'rz') == 16
        assert injector.sample(0, (2, 2, 2), None, 'rz') == (0.25, 0.25, 0.125)

    def test_xz_collapses_third_axis(self):
        """In XZ the third count is 1"""
        injector = InjectorPosition.regular((2, 2, 5))
        n = injector.particles_per_cell((1, 1, 1), 'xz')

        pos = injector.sample_many(np.arange(n), (1, 1, 1), None, 'xz')

        assert n == 4
        np.testing.assert_array_equal(pos[:, 2], 0.5)

    def test_1d_single_axis(self):
        """In 1D only the first count is used"""
        injector = InjectorPosition.regular((4, 3, 3))
        n = injector.particles_per_cell((1, 1, 1), '1d')

        pos = injector.sample_many(np.arange(n), (1, 1, 1), None, '1d')

        assert n == 4
        np.testing.assert_array_equal(pos[:, 0], [0.125, 0.375, 0.625, 0.875])
        np.testing.assert_array_equal(pos[:, 1:], 0.5)

    def test_invalid_ppc(self):
        """Counts must be positive"""
        with pytest.raises(ValueError, match="ppc"):
            InjectorPosition.regular((2, 0, 2))


class TestRandom:
    """Test the uniform random strategy"""

    def test_draws_in_unit_cell(self):
        """10,000 draws lie in [0, 1) on every axis"""
        rng = np.random.default_rng(42)
        pos = InjectorPosition.random().sample_many(np.arange(10_000), (1, 1, 1), rng, '3d')

        assert pos.shape == (10_000, 3)
        assert np.all(pos >= 0.0)
        assert np.all(pos < 1.0)
        # Three independent axes
        assert np.all(np.std(pos, axis=0) > 0.25)

    def test_inactive_axes_zero(self):
        """Collapsed axes are 0 in XZ and 1D"""
        rng = np.random.default_rng(0)
        injector = InjectorPosition.random()

        xz = injector.sample_many(np.arange(100), (1, 1, 1), rng, 'xz')
        oned = injector.sample_many(np.arange(100), (1, 1, 1), rng, '1d')

        assert np.all(xz[:, 2] == 0.0)
        assert np.all(oned[:, 1:] == 0.0)
        assert np.all((oned[:, 0] >= 0.0) & (oned[:, 0] < 1.0))

    def test_reproducible_with_seed(self):
        """Same seed gives the same positions"""
        injector = InjectorPosition.random()
        a = injector.sample_many(np.arange(50), (1, 1, 1), np.random.default_rng(5))
        b = injector.sample_many(np.arange(50), (1, 1, 1), np.random.default_rng(5))
        np.testing.assert_array_equal(a, b)

    def test_particles_per_cell_undefined(self):
        """Random strategies leave the count to the caller"""
        assert InjectorPosition.random().particles_per_cell() is None
        assert InjectorPosition.random_plane(1).particles_per_cell() is None


class TestRandomPlane:
    """Test the random-on-a-plane strategy"""

    @pytest.mark.parametrize("dim", ['3d', 'rz'])
    @pytest.mark.parametrize("direction", [0, 1, 2])
    def test_3d_and_rz(self, dim, direction):
        """The fixed axis is 0, the other two are random"""
        rng = np.random.default_rng(direction)
        pos = InjectorPosition.random_plane(direction).sample_many(
            np.arange(1000), (1, 1, 1), rng, dim)

        for axis in range(3):
            if axis == direction:
                assert np.all(pos[:, axis] == 0.0)
            else:
                assert np.all((pos[:, axis] >= 0.0) & (pos[:, axis] < 1.0))
                assert np.std(pos[:, axis]) > 0.2

    @pytest.mark.parametrize("direction, random_axes", [(0, [1]), (1, [0, 1]), (2, [0])])
    def test_xz(self, direction, random_axes):
        """In XZ the first two components are x and z"""
        rng = np.random.default_rng(11)
        pos = InjectorPosition.random_plane(direction).sample_many(
            np.arange(1000), (1, 1, 1), rng, 'xz')

        for axis in range(3):
            if axis in random_axes:
                assert np.std(pos[:, axis]) > 0.2
            else:
                assert np.all(pos[:, axis] == 0.0)

    def test_1d(self):
        """In 1D a plane normal to z has no free coordinate"""
        rng = np.random.default_rng(12)
        along_x = InjectorPosition.random_plane(0).sample_many(
            np.arange(100), (1, 1, 1), rng, '1d')
        along_z = InjectorPosition.random_plane(2).sample_many(
            np.arange(100), (1, 1, 1), rng, '1d')

        assert np.std(along_x[:, 0]) > 0.2
        assert np.all(along_x[:, 1:] == 0.0)
        assert np.all(along_z == 0.0)


class TestInjectorPosition:
    """Test the strategy value type"""

    def test_immutable(self):
        """Instances are frozen"""
        injector = InjectorPosition.regular((1, 2, 3))
        with pytest.raises(AttributeError):
            injector.kind = 0

    def test_equality(self):
        """Equal strategies compare equal"""
        assert InjectorPosition.regular([2, 2, 2]) == InjectorPosition.regular((2, 2, 2))
        assert InjectorPosition.random_plane(1) != InjectorPosition.random_plane(2)

    def test_sample_single(self):
        """sample() returns one (u, v, w) triple"""
        rng = np.random.default_rng(0)
        point = InjectorPosition.random().sample(0, (1, 1, 1), rng)
        assert len(point) == 3

    def test_unknown_dimensionality(self):
        """Unknown modes are rejected"""
        with pytest.raises(ValueError, match="dimensionality"):
            InjectorPosition.random().sample(0, (1, 1, 1), np.random.default_rng(0), '4d')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
