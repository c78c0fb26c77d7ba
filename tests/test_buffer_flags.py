"""
Tests for buffer classification from cell masks
"""

import pytest
import numpy as np
from refinepic.geometry import DIM_3D, Geometry
from refinepic.particles import ParticleTile
from refinepic.sorting.buffer_flags import (
    BufferMask,
    classify_buffer,
    fill_buffer_flag_remaining,
)


class TestBufferMask:
    """Test mask construction"""

    def test_padding(self):
        """Masks are stored with three axes"""
        mask = BufferMask(np.ones((4, 5)), lo=(2, 3))
        assert mask.data.shape == (4, 5, 1)
        np.testing.assert_array_equal(mask.lo, [2, 3, 0])
        assert mask.ndim == 2

    def test_from_fine_patch(self):
        """Cells within ``width`` of the patch edge are buffer cells"""
        mask = BufferMask.from_fine_patch(10, 2, 8, 2)
        np.testing.assert_array_equal(mask.data[:, 0, 0], [0, 0, 0, 0, 1, 1, 0, 0, 0, 0])

    def test_wrong_lo(self):
        with pytest.raises(ValueError, match="lo"):
            BufferMask(np.ones((4, 4)), lo=(1, 2, 3))


class TestClassifyBuffer:
    """Test classify_buffer()"""

    def test_3d_lookup(self):
        """Flags follow the mask at each particle's cell"""
        geometry = Geometry(prob_lo=[-1.0, -1.0, -1.0], dx=[0.5, 0.5, 0.5])
        data = np.ones((4, 4, 4), dtype=np.int32)
        data[1, 2, 3] = 0
        mask = BufferMask(data)

        tile = ParticleTile()
        # cell (1,2,3) -> buffer; cell (0,0,0) -> fine; outside -> buffer
        tile.add_particles([-0.25, -0.9, 1.5], [0.1, -0.9, 0.0], [0.6, -0.9, 0.0])

        flags = classify_buffer(tile, mask, geometry, 0, width=2)

        np.testing.assert_array_equal(flags, [True, False, True])

    def test_mask_offset(self):
        """The mask's lower index shifts the lookup"""
        geometry = Geometry(prob_lo=[0.0], dx=[1.0], dim='1d')
        mask = BufferMask([1, 0, 1], lo=[5])
        tile = ParticleTile()
        tile.add_particles(np.zeros(5), np.zeros(5), [4.5, 5.5, 6.5, 7.5, 8.5])

        flags = classify_buffer(tile, mask, geometry, 0, width=1)

        np.testing.assert_array_equal(flags, [True, False, True, False, True])

    def test_refined_level(self):
        """Cell index uses the cell size of the tile level"""
        geometry = Geometry(prob_lo=[0.0], dx=[1.0], dim='1d', n_levels=2, ref_ratio=4)
        mask = BufferMask([1, 1, 0, 0])
        tile = ParticleTile()
        tile.add_particles([0.0, 0.0], [0.0, 0.0], [0.3, 0.6])

        flags = classify_buffer(tile, mask, geometry, 1, width=1)

        np.testing.assert_array_equal(flags, [False, True])

    def test_rz_uses_radius(self):
        """In RZ the first index comes from the cylindrical radius"""
        geometry = Geometry(prob_lo=[0.0, 0.0], dx=[1.0, 1.0], dim='rz')
        data = np.zeros((3, 1), dtype=np.int32)
        data[1, 0] = 1
        mask = BufferMask(data)
        tile = ParticleTile()
        # r = 1.5 -> cell 1 (fine); r = 0.5 -> cell 0 (buffer)
        tile.add_particles([0.9, 0.3], [1.2, 0.4], [0.5, 0.5])

        flags = classify_buffer(tile, mask, geometry, 0, width=1)

        np.testing.assert_array_equal(flags, [False, True])

    def test_zero_width(self):
        """A disabled buffer never flags particles and needs no mask"""
        geometry = Geometry(prob_lo=[0.0], dx=[1.0], dim='1d')
        tile = ParticleTile()
        tile.add_particles(np.zeros(4), np.zeros(4), [-10.0, 0.5, 1.5, 100.0])

        flags = classify_buffer(tile, None, geometry, 0, width=0)

        assert flags.shape == (4,)
        assert not np.any(flags)

    def test_missing_mask(self):
        geometry = Geometry(prob_lo=[0.0], dx=[1.0], dim='1d')
        tile = ParticleTile()
        tile.add_particles(0.0, 0.0, 0.5)
        with pytest.raises(ValueError, match="mask is required"):
            classify_buffer(tile, None, geometry, 0, width=3)

    def test_mask_dimension_mismatch(self):
        geometry = Geometry(prob_lo=[0.0, 0.0, 0.0], dx=[1.0, 1.0, 1.0])
        tile = ParticleTile()
        tile.add_particles(0.5, 0.5, 0.5)
        with pytest.raises(ValueError, match="axes"):
            classify_buffer(tile, BufferMask([1, 1]), geometry, 0, width=1)


class TestRemainingParticles:
    """Test classification of a partition segment"""

    def test_remaining(self):
        """flags[k] refers to pid[start + k]"""
        geometry = Geometry(prob_lo=[0.0, 0.0, 0.0], dx=[1.0, 1.0, 1.0])
        data = np.array([1, 0, 1, 0]).reshape(4, 1, 1)
        z = np.zeros(4)
        x = np.array([0.5, 1.5, 2.5, 3.5])
        pid = np.array([2, 0, 3, 1], dtype=np.int64)
        flags = np.zeros(4, dtype=np.bool_)

        fill_buffer_flag_remaining(x, z, z, pid, 1, 4, data.astype(np.int32),
                                   np.zeros(3, dtype=np.int64), geometry.prob_lo,
                                   geometry.dx_inv(0), DIM_3D, flags)

        # pid[1:] = [0, 3, 1] -> cells 0 (fine), 3 (buffer), 1 (buffer)
        np.testing.assert_array_equal(flags[:3], [False, True, True])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
