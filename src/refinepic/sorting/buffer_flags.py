"""
Buffer Classification

For each particle, look up the buffer mask of its cell and flag whether
the particle lies in the buffer region around a refined patch. A mask
entry of 0 marks a buffer cell and any nonzero entry marks a cell in the
interior of the fine patch. Cells outside the mask box count as buffer.

The classification is a pure per-particle map, run with prange.
"""

import numpy as np
from numba import njit, prange

from ..geometry import INDEX_NDIM, cell_index


class BufferMask:
    """
    Per-cell integer mask for one refinement level and one buffer kind.

    Owned by the mesh subsystem and read-only here. Stored as a 3D array;
    unused trailing index axes have extent 1.

    Attributes:
        data: Mask values, shape (n0, n1, n2)
        lo: Index of the first cell along each axis, shape (3,)
    """

    def __init__(self, data, lo=None):
        """
        Args:
            data: Integer mask array with one axis per index dimension
            lo: Index of the mask's first cell (defaults to 0 on every axis)
        """
        data = np.asarray(data)
        if data.ndim < 1 or data.ndim > 3:
            raise ValueError(f"Mask must have 1 to 3 axes, got {data.ndim}")
        ndim = data.ndim

        self.ndim = ndim
        self.data = np.ascontiguousarray(
            data.reshape(data.shape + (1,) * (3 - ndim)), dtype=np.int32)
        self.lo = np.zeros(3, dtype=np.int64)
        if lo is not None:
            lo = np.atleast_1d(np.asarray(lo, dtype=np.int64))
            if lo.shape != (ndim,):
                raise ValueError(f"Expected {ndim} values for lo, got {lo.shape}")
            self.lo[:ndim] = lo

    @classmethod
    def from_fine_patch(cls, n_cells, patch_lo, patch_hi, width, lo=None):
        """
        Mask of a box in which cells closer than ``width`` to the boundary of
        a fine patch are buffer cells.

        Args:
            n_cells: Shape of the mask box, one value per index axis
            patch_lo: First cell of the fine patch (relative to the mask box)
            patch_hi: One past the last cell of the fine patch
            width: Buffer width [cells]
            lo: Index of the mask's first cell

        Returns:
            mask: BufferMask with 1 in the patch interior and 0 elsewhere
        """
        n_cells = tuple(int(n) for n in np.atleast_1d(n_cells))
        patch_lo = np.atleast_1d(patch_lo)
        patch_hi = np.atleast_1d(patch_hi)
        data = np.zeros(n_cells, dtype=np.int32)
        interior = tuple(
            slice(max(int(a) + width, 0), max(int(b) - width, 0))
            for a, b in zip(patch_lo, patch_hi)
        )
        data[interior] = 1
        return cls(data, lo)

    def __repr__(self):
        shape = self.data.shape[:self.ndim]
        return f"BufferMask(shape={shape}, lo={self.lo[:self.ndim].tolist()})"


# ==================== KERNELS ====================

@njit(inline='always')
def _in_buffer(x, y, z, mask, mask_lo, prob_lo, dx_inv, dim):
    i, j, k = cell_index(x, y, z, prob_lo, dx_inv, dim)
    i -= mask_lo[0]
    j -= mask_lo[1]
    k -= mask_lo[2]
    if (i < 0 or i >= mask.shape[0] or
            j < 0 or j >= mask.shape[1] or
            k < 0 or k >= mask.shape[2]):
        return True
    return mask[i, j, k] == 0


@njit(parallel=True)
def fill_buffer_flag(x, y, z, n_particles, mask, mask_lo, prob_lo, dx_inv, dim, flags):
    """
    Flag the particles that are in the buffer.

    Args:
        x, y, z: Particle positions [m]
        n_particles: Number of particles to classify
        mask: Buffer mask data, shape (n0, n1, n2)
        mask_lo: Index of the mask's first cell, shape (3,)
        prob_lo: Domain lower corner, shape (3,) [m]
        dx_inv: Inverse cell size at the tile level, shape (3,) [1/m]
        dim: Dimensionality code
        flags: Output, True for buffer particles (modified in-place)
    """
    for i in prange(n_particles):
        flags[i] = _in_buffer(x[i], y[i], z[i], mask, mask_lo, prob_lo, dx_inv, dim)


@njit(parallel=True)
def fill_buffer_flag_remaining(x, y, z, pid, start, n_particles, mask, mask_lo,
                               prob_lo, dx_inv, dim, flags):
    """
    Flag the particles ``pid[start:n_particles]`` that are in the buffer.

    ``flags[k]`` refers to particle ``pid[start + k]``.

    Args:
        x, y, z: Particle positions [m]
        pid: Particle indices in their current partition order
        start: First position of ``pid`` to classify
        n_particles: Total number of particles
        mask, mask_lo, prob_lo, dx_inv, dim: See fill_buffer_flag()
        flags: Output, at least n_particles - start long (modified in-place)
    """
    for k in prange(n_particles - start):
        p = pid[start + k]
        flags[k] = _in_buffer(x[p], y[p], z[p], mask, mask_lo, prob_lo, dx_inv, dim)


# ==================== PYTHON INTERFACE ====================

def _check_mask(mask, geometry):
    if mask is None:
        raise ValueError("A buffer mask is required when the buffer width is nonzero")
    if mask.ndim != INDEX_NDIM[geometry.dim]:
        raise ValueError(
            f"Mask has {mask.ndim} axes but the geometry has {INDEX_NDIM[geometry.dim]}"
        )


def classify_buffer(tile, mask, geometry, level, width):
    """
    Buffer flag of every particle of a tile.

    Args:
        tile: ParticleTile instance
        mask: BufferMask for this level (may be None when width is 0)
        geometry: Geometry instance
        level: Refinement level of the tile
        width: Buffer width [cells]; 0 disables the buffer

    Returns:
        flags: Boolean array of shape (n_particles,), True in the buffer
    """
    n = tile.n_particles
    flags = np.zeros(n, dtype=np.bool_)
    if width == 0 or n == 0:
        return flags
    _check_mask(mask, geometry)
    fill_buffer_flag(tile.x, tile.y, tile.z, n, mask.data, mask.lo,
                     geometry.prob_lo, geometry.dx_inv(level), geometry.dim, flags)
    return flags
