"""
Spatial Dimensionality and Mesh Geometry

The dimensionality mode is a single integer code, read once from the
configuration and passed explicitly to every kernel that updates or
samples coordinates. Kernels never branch on anything else to decide
which axes are active.

Index space per mode:
    3D:   (x, y, z)
    RZ:   (r, z)      particles are stored and pushed in Cartesian x, y, z
    XZ:   (x, z)
    1D_Z: (z,)

Masks and lower corners are always carried as 3-component objects;
unused trailing index axes have lower corner 0, inverse cell size 1
and mask extent 1.
"""

import math

import numpy as np
from numba import njit

# ==================== DIMENSIONALITY CODES ====================

DIM_3D = 0
DIM_RZ = 1
DIM_XZ = 2
DIM_1D_Z = 3

DIM_CODES = {
    '3d': DIM_3D,
    'rz': DIM_RZ,
    'xz': DIM_XZ,
    '1d': DIM_1D_Z,
}

DIM_NAMES = {code: name for name, code in DIM_CODES.items()}

# Number of index-space axes per mode
INDEX_NDIM = {
    DIM_3D: 3,
    DIM_RZ: 2,
    DIM_XZ: 2,
    DIM_1D_Z: 1,
}


def dim_code(name):
    """
    Convert a dimensionality name ('3d', 'rz', 'xz', '1d') to its code.

    Integer codes are passed through after validation.
    """
    if isinstance(name, (int, np.integer)):
        if int(name) not in INDEX_NDIM:
            raise ValueError(f"Unknown dimensionality code {name}")
        return int(name)
    try:
        return DIM_CODES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown dimensionality '{name}', expected one of {sorted(DIM_CODES)}"
        ) from None


# ==================== CELL INDEXING ====================

@njit(inline='always')
def index_coordinates(x, y, z, dim):
    """
    Map a Cartesian particle position to index-space coordinates.

    Returns:
        (p0, p1, p2): Coordinates along the index axes; unused axes are 0
    """
    if dim == DIM_3D:
        return float(x), float(y), float(z)
    if dim == DIM_RZ:
        r = math.sqrt(float(x) * float(x) + float(y) * float(y))
        return r, float(z), 0.0
    if dim == DIM_XZ:
        return float(x), float(z), 0.0
    return float(z), 0.0, 0.0


@njit
def cell_index(x, y, z, prob_lo, dx_inv, dim):
    """
    Cell containing a particle.

    Args:
        x, y, z: Particle position [m]
        prob_lo: Lower corner of the problem domain, shape (3,) [m]
        dx_inv: Inverse cell size at the particle level, shape (3,) [1/m]
        dim: Dimensionality code

    Returns:
        (i, j, k): Integer cell index (unused axes give 0)
    """
    p0, p1, p2 = index_coordinates(x, y, z, dim)
    i = int(math.floor((p0 - prob_lo[0]) * dx_inv[0]))
    j = int(math.floor((p1 - prob_lo[1]) * dx_inv[1]))
    k = int(math.floor((p2 - prob_lo[2]) * dx_inv[2]))
    return i, j, k


# ==================== GEOMETRY ====================

class Geometry:
    """
    Physical-position to cell-index mapping for every refinement level.

    Attributes:
        dim: Dimensionality code
        prob_lo: Lower corner of the domain in index space, shape (3,) [m]
        dx: Level-0 cell size in index space, shape (3,) [m]
        ref_ratio: Refinement ratio between consecutive levels, shape (3,)
        n_levels: Number of refinement levels
    """

    def __init__(self, prob_lo, dx, dim=DIM_3D, ref_ratio=2, n_levels=1):
        """
        Initialize geometry.

        Args:
            prob_lo: Domain lower corner, one value per index axis [m]
            dx: Level-0 cell size, one value per index axis [m]
            dim: Dimensionality name or code
            ref_ratio: Refinement ratio (scalar or one value per index axis)
            n_levels: Number of refinement levels
        """
        self.dim = dim_code(dim)
        ndim = INDEX_NDIM[self.dim]

        prob_lo = np.atleast_1d(np.asarray(prob_lo, dtype=np.float64))
        dx = np.atleast_1d(np.asarray(dx, dtype=np.float64))
        if prob_lo.shape != (ndim,) or dx.shape != (ndim,):
            raise ValueError(
                f"Expected {ndim} values for prob_lo and dx in "
                f"'{DIM_NAMES[self.dim]}' mode, got {prob_lo.shape} and {dx.shape}"
            )
        if np.any(dx <= 0):
            raise ValueError(f"Cell sizes must be positive, got {dx}")

        ref_ratio = np.broadcast_to(np.asarray(ref_ratio, dtype=np.int64), (ndim,))
        if np.any(ref_ratio < 1):
            raise ValueError(f"Refinement ratio must be >= 1, got {ref_ratio}")
        if n_levels < 1:
            raise ValueError(f"n_levels must be >= 1, got {n_levels}")

        self.ndim = ndim
        self.n_levels = n_levels
        self.prob_lo = np.zeros(3, dtype=np.float64)
        self.prob_lo[:ndim] = prob_lo
        self.dx = np.ones(3, dtype=np.float64)
        self.dx[:ndim] = dx
        self.ref_ratio = np.ones(3, dtype=np.int64)
        self.ref_ratio[:ndim] = ref_ratio

    def cell_size(self, level):
        """Cell size at a refinement level, shape (3,) [m]."""
        self._check_level(level)
        size = self.dx / self.ref_ratio.astype(np.float64) ** level
        size[self.ndim:] = 1.0
        return size

    def dx_inv(self, level):
        """Inverse cell size at a refinement level, shape (3,) [1/m]."""
        return 1.0 / self.cell_size(level)

    def refinement_factor(self, level):
        """Cumulative refinement factor of a level relative to level 0."""
        self._check_level(level)
        return self.ref_ratio ** level

    def get_cell_index(self, x, y, z, level=0):
        """
        Cell index of a single position (Python interface).

        Returns:
            (i, j, k): Cell index; unused axes give 0
        """
        return cell_index(x, y, z, self.prob_lo, self.dx_inv(level), self.dim)

    def _check_level(self, level):
        if not 0 <= level < self.n_levels:
            raise ValueError(f"Level {level} outside [0, {self.n_levels})")

    def __repr__(self):
        return (f"Geometry(dim='{DIM_NAMES[self.dim]}', "
                f"prob_lo={self.prob_lo[:self.ndim].tolist()}, "
                f"dx={self.dx[:self.ndim].tolist()}, n_levels={self.n_levels})")
