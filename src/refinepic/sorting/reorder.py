"""
Tile Reordering by Permutation

Gathers every attribute array of a tile into a scratch tile, then swaps
the scratch tile in. The original tile is untouched until all columns
have been gathered.
"""

import numpy as np
from numba import njit, prange


@njit(parallel=True)
def gather_column(src, perm, dst):
    """
    dst[k] = src[perm[k]] for k in [0, len(perm)).

    Args:
        src: Source attribute array
        perm: Permutation indices
        dst: Destination array (modified in-place)
    """
    for k in prange(perm.shape[0]):
        dst[k] = src[perm[k]]


def reorder_tile(tile, permutation):
    """
    Reorder a tile so that slot k holds the particle previously in slot
    ``permutation[k]``, for every real and int attribute.

    Args:
        tile: ParticleTile (modified in-place)
        permutation: Integer array of length tile.n_particles

    Raises:
        ValueError: If the permutation has the wrong length or an index is
                    out of range
    """
    n = tile.n_particles
    perm = np.ascontiguousarray(permutation, dtype=np.int64)
    if perm.shape != (n,):
        raise ValueError(f"Permutation has shape {perm.shape}, expected ({n},)")
    if n == 0:
        return
    if perm.min() < 0 or perm.max() >= n:
        raise ValueError(f"Permutation indices must lie in [0, {n})")

    scratch = tile.empty_like(capacity=tile.capacity)
    for (_, src), (_, dst) in zip(tile.real_columns(), scratch.real_columns()):
        gather_column(src, perm, dst)
    for (_, src), (_, dst) in zip(tile.int_columns(), scratch.int_columns()):
        gather_column(src, perm, dst)
    scratch.n_particles = n
    scratch.next_id = tile.next_id

    tile.swap(scratch)
