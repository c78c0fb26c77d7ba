"""
Particle Position Sampling Inside a Unit Cell

Three strategies, held as one value type and dispatched by a single
branch on the strategy tag inside a Numba kernel:
- Random:       independent uniform draws on every active axis
- RandomPlane:  uniform draws on a plane normal to one axis
- Regular:      deterministic lattice of ppc points per cell

Random numbers are drawn by the caller's numpy Generator as one (n, 3)
block before the kernel runs, so the kernel itself is pure.
"""

from dataclasses import dataclass

import numpy as np
from numba import njit, prange

from ..geometry import DIM_3D, DIM_RZ, DIM_XZ, dim_code

# Strategy tags
RANDOM = 0
RANDOM_PLANE = 1
REGULAR = 2

KIND_NAMES = {RANDOM: 'random', RANDOM_PLANE: 'random_plane', REGULAR: 'regular'}


# ==================== KERNELS ====================

@njit(inline='always')
def _random_plane(direction, u0, u1, u2, dim):
    if dim == DIM_3D or dim == DIM_RZ:
        # In RZ the components are r, z, theta
        if direction == 0:
            return 0.0, u1, u2
        if direction == 1:
            return u0, 0.0, u2
        return u0, u1, 0.0
    if dim == DIM_XZ:
        # The first two components are x and z
        if direction == 0:
            return 0.0, u1, 0.0
        if direction == 1:
            return u0, u1, 0.0
        return u0, 0.0, 0.0
    # 1D: the first component is z
    if direction == 0 or direction == 1:
        return u0, 0.0, 0.0
    return 0.0, 0.0, 0.0


@njit(inline='always')
def _regular(ppc, i_part, ref_fac, dim):
    nx = ref_fac[0] * ppc[0]
    if dim == DIM_3D:
        ny = ref_fac[1] * ppc[1]
        nz = ref_fac[2] * ppc[2]
    elif dim == DIM_RZ:
        ny = ref_fac[1] * ppc[1]
        nz = ppc[2]  # azimuthal count is never refined
    elif dim == DIM_XZ:
        ny = ref_fac[1] * ppc[1]
        nz = 1
    else:
        ny = 1
        nz = 1

    ix_part = i_part // (ny * nz)
    iz_part = (i_part - ix_part * (ny * nz)) // ny
    iy_part = (i_part - ix_part * (ny * nz)) - ny * iz_part
    return ((0.5 + ix_part) / nx,
            (0.5 + iy_part) / ny,
            (0.5 + iz_part) / nz)


@njit
def get_position_unit_box(kind, direction, ppc, i_part, ref_fac, u0, u1, u2, dim):
    """
    Position of one particle inside the unit cell.

    Args:
        kind: Strategy tag (RANDOM, RANDOM_PLANE, REGULAR)
        direction: Fixed axis for RANDOM_PLANE
        ppc: Particles per cell along each axis for REGULAR, shape (3,)
        i_part: Index of the particle within its cell
        ref_fac: Refinement factor of the level, shape (3,)
        u0, u1, u2: Uniform draws in [0, 1)
        dim: Dimensionality code

    Returns:
        (u, v, w): Unit-cell coordinates in [0, 1)
    """
    if kind == REGULAR:
        return _regular(ppc, i_part, ref_fac, dim)
    if kind == RANDOM_PLANE:
        return _random_plane(direction, u0, u1, u2, dim)
    if dim == DIM_XZ:
        return u0, u1, 0.0
    if dim == DIM_3D or dim == DIM_RZ:
        return u0, u1, u2
    return u0, 0.0, 0.0


@njit(parallel=True)
def fill_unit_positions(kind, direction, ppc, i_parts, ref_fac, uniforms, dim, out):
    """
    Unit-cell positions for a batch of particles.

    Args:
        kind, direction, ppc: Strategy description
        i_parts: Index of each particle within its cell, shape (n,)
        ref_fac: Refinement factor, shape (3,)
        uniforms: Uniform draws, shape (n, 3)
        dim: Dimensionality code
        out: Output array, shape (n, 3) (modified in-place)
    """
    for i in prange(i_parts.shape[0]):
        u, v, w = get_position_unit_box(kind, direction, ppc, i_parts[i], ref_fac,
                                        uniforms[i, 0], uniforms[i, 1], uniforms[i, 2],
                                        dim)
        out[i, 0] = u
        out[i, 1] = v
        out[i, 2] = w


# ==================== STRATEGY VALUE TYPE ====================

@dataclass(frozen=True)
class InjectorPosition:
    """
    Position sampling strategy.

    Build with ``InjectorPosition.random()``, ``.random_plane(axis)`` or
    ``.regular(ppc)``. Instances are immutable and safe to share between
    workers.

    Attributes:
        kind: Strategy tag
        direction: Fixed axis (RANDOM_PLANE only)
        ppc: Particles per cell along each axis (REGULAR only)
    """

    kind: int = RANDOM
    direction: int = 0
    ppc: tuple = (1, 1, 1)

    def __post_init__(self):
        if self.kind not in KIND_NAMES:
            raise ValueError(f"Unknown position strategy {self.kind}")
        if len(self.ppc) != 3 or any(int(p) < 1 for p in self.ppc):
            raise ValueError(f"ppc must be three positive counts, got {self.ppc}")
        object.__setattr__(self, 'ppc', tuple(int(p) for p in self.ppc))

    @classmethod
    def random(cls):
        return cls(kind=RANDOM)

    @classmethod
    def random_plane(cls, direction):
        return cls(kind=RANDOM_PLANE, direction=int(direction))

    @classmethod
    def regular(cls, ppc):
        return cls(kind=REGULAR, ppc=tuple(ppc))

    @property
    def is_random(self):
        """Whether the strategy consumes random numbers."""
        return self.kind != REGULAR

    def particles_per_cell(self, ref_fac=(1, 1, 1), dim=DIM_3D):
        """
        Number of lattice points per cell for the REGULAR strategy.

        Returns:
            n: nx*ny*nz, or None for random strategies (the count is then
               chosen by the caller)
        """
        if self.kind != REGULAR:
            return None
        dim = dim_code(dim)
        rx, ry, rz = (int(r) for r in ref_fac)
        px, py, pz = self.ppc
        if dim == DIM_3D:
            return rx * px * ry * py * rz * pz
        if dim == DIM_RZ:
            return rx * px * ry * py * pz
        if dim == DIM_XZ:
            return rx * px * ry * py
        return rx * px

    def sample(self, i_part, ref_fac, rng, dim=DIM_3D):
        """
        Position of one particle in the unit cell.

        Args:
            i_part: Index of the particle within its cell
            ref_fac: Refinement factor of the level, length 3
            rng: numpy Generator (unused by REGULAR)
            dim: Dimensionality name or code

        Returns:
            (u, v, w): Unit-cell coordinates
        """
        return tuple(self.sample_many(np.array([i_part]), ref_fac, rng, dim)[0])

    def sample_many(self, i_parts, ref_fac, rng, dim=DIM_3D):
        """
        Unit-cell positions for a batch of particles.

        Args:
            i_parts: Index of each particle within its cell, shape (n,)
            ref_fac: Refinement factor of the level, length 3
            rng: numpy Generator (unused by REGULAR, may be None)
            dim: Dimensionality name or code

        Returns:
            positions: Array of shape (n, 3)
        """
        i_parts = np.ascontiguousarray(i_parts, dtype=np.int64)
        n = i_parts.shape[0]
        if self.is_random:
            uniforms = rng.random((n, 3))
        else:
            uniforms = np.zeros((n, 3), dtype=np.float64)

        out = np.empty((n, 3), dtype=np.float64)
        fill_unit_positions(
            self.kind, self.direction,
            np.array(self.ppc, dtype=np.int64),
            i_parts,
            np.asarray(ref_fac, dtype=np.int64),
            uniforms,
            dim_code(dim),
            out,
        )
        return out

    def __repr__(self):
        if self.kind == REGULAR:
            return f"InjectorPosition.regular({self.ppc})"
        if self.kind == RANDOM_PLANE:
            return f"InjectorPosition.random_plane({self.direction})"
        return "InjectorPosition.random()"
