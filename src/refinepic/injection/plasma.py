"""
Plasma Injection Into a Grid Box

Fills the cells of one grid box with macro-particles: unit-cell positions
from an InjectorPosition are mapped to physical space and only the points
inside the injection region are kept.
"""

import logging

import numpy as np

from ..geometry import DIM_3D, DIM_RZ, DIM_XZ, INDEX_NDIM

logger = logging.getLogger(__name__)


def _physical_box(geometry, level, box_lo, box_hi):
    """Cartesian lower/upper corners enclosing a box of cells."""
    ndim = geometry.ndim
    size = geometry.cell_size(level)[:ndim]
    lo = geometry.prob_lo[:ndim] + np.asarray(box_lo) * size
    hi = geometry.prob_lo[:ndim] + np.asarray(box_hi) * size

    if geometry.dim == DIM_3D:
        return lo, hi
    if geometry.dim == DIM_RZ:
        rmax = max(abs(lo[0]), abs(hi[0]))
        return np.array([-rmax, -rmax, lo[1]]), np.array([rmax, rmax, hi[1]])
    if geometry.dim == DIM_XZ:
        return np.array([lo[0], 0.0, lo[1]]), np.array([hi[0], 0.0, hi[1]])
    return np.array([0.0, 0.0, lo[0]]), np.array([0.0, 0.0, hi[0]])


def generate_plasma_positions(injector, bounds, geometry, level, box_lo, box_hi,
                              rng, n_per_cell=1):
    """
    Particle positions for every cell of a box, clipped to a region.

    Args:
        injector: InjectorPosition strategy
        bounds: RegionBounds of the plasma (half-open test)
        geometry: Geometry instance
        level: Refinement level of the box
        box_lo: First cell index of the box, one value per index axis
        box_hi: One past the last cell index, one value per index axis
        rng: numpy Generator
        n_per_cell: Particles per level-0 cell for random strategies;
                    multiplied by the refinement factor of the level

    Returns:
        (x, y, z): Cartesian positions of the kept particles [m]

    Raises:
        ValueError: If the box has the wrong number of axes or is inverted
    """
    ndim = INDEX_NDIM[geometry.dim]
    box_lo = np.asarray(box_lo, dtype=np.int64).reshape(-1)
    box_hi = np.asarray(box_hi, dtype=np.int64).reshape(-1)
    if box_lo.shape != (ndim,) or box_hi.shape != (ndim,):
        raise ValueError(f"Box corners need {ndim} indices")
    if np.any(box_hi < box_lo):
        raise ValueError(f"Inverted box: lo={box_lo}, hi={box_hi}")

    empty = np.zeros(0, dtype=np.float64)

    phys_lo, phys_hi = _physical_box(geometry, level, box_lo, box_hi)
    if not bounds.overlaps_with(phys_lo, phys_hi):
        return empty, empty.copy(), empty.copy()

    ref_fac = np.ones(3, dtype=np.int64)
    ref_fac[:ndim] = geometry.refinement_factor(level)[:ndim]

    ppc = injector.particles_per_cell(ref_fac, geometry.dim)
    if ppc is None:
        ppc = int(n_per_cell) * int(np.prod(ref_fac[:ndim]))

    # Every cell of the box, repeated once per particle
    axes = [np.arange(lo, hi) for lo, hi in zip(box_lo, box_hi)]
    cells = np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1).reshape(-1, ndim)
    n_cells = cells.shape[0]
    if n_cells == 0 or ppc == 0:
        return empty, empty.copy(), empty.copy()

    cells = np.repeat(cells, ppc, axis=0)
    i_parts = np.tile(np.arange(ppc, dtype=np.int64), n_cells)
    unit = injector.sample_many(i_parts, ref_fac, rng, geometry.dim)

    size = geometry.cell_size(level)
    lo = geometry.prob_lo

    if geometry.dim == DIM_3D:
        x = lo[0] + (cells[:, 0] + unit[:, 0]) * size[0]
        y = lo[1] + (cells[:, 1] + unit[:, 1]) * size[1]
        z = lo[2] + (cells[:, 2] + unit[:, 2]) * size[2]
    elif geometry.dim == DIM_RZ:
        r = lo[0] + (cells[:, 0] + unit[:, 0]) * size[0]
        # Unit components are r, z, theta
        z = lo[1] + (cells[:, 1] + unit[:, 1]) * size[1]
        theta = 2.0 * np.pi * unit[:, 2]
        x = r * np.cos(theta)
        y = r * np.sin(theta)
    elif geometry.dim == DIM_XZ:
        x = lo[0] + (cells[:, 0] + unit[:, 0]) * size[0]
        y = np.zeros(cells.shape[0])
        z = lo[1] + (cells[:, 1] + unit[:, 1]) * size[1]
    else:
        x = np.zeros(cells.shape[0])
        y = np.zeros(cells.shape[0])
        z = lo[0] + (cells[:, 0] + unit[:, 0]) * size[0]

    keep = bounds.contains(x, y, z)
    return x[keep], y[keep], z[keep]


def inject_plasma(tile, injector, bounds, geometry, level, box_lo, box_hi, rng,
                  n_per_cell=1, weight=1.0):
    """
    Append plasma particles at rest to a tile.

    Args:
        tile: ParticleTile to fill (modified in-place)
        injector, bounds, geometry, level, box_lo, box_hi, rng, n_per_cell:
            See generate_plasma_positions()
        weight: Macro-particle weight

    Returns:
        n_added: Number of particles appended
    """
    x, y, z = generate_plasma_positions(injector, bounds, geometry, level,
                                        box_lo, box_hi, rng, n_per_cell)
    tile.add_particles(x, y, z, w=weight)
    logger.info("Injected %d particles (%r) into box %s-%s at level %d",
                x.shape[0], injector, list(box_lo), list(box_hi), level)
    return x.shape[0]
