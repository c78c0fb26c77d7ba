"""
Partition of Particles Into Fine-Patch and Buffer Groups

On a refined level, particles close to the edge of the fine patch deposit
current into (and gather fields from) a wider buffer region rather than
the fine patch itself. The two buffers, deposition and gather, may have
different widths. This module reorders a tile so that

    particles [0, nfine_current)  deposit on the fine patch
    particles [nfine_current, np) deposit in the buffer
    particles [0, nfine_gather)   gather from the fine patch
    particles [nfine_gather, np)  gather from the buffer

with a single permutation. The particles are first split on the wider
buffer; the buffer part of that split is then split again on the narrower
buffer, leaving the fine part untouched. Both splits are stable.
"""

import logging
from collections import namedtuple

import numba
import numpy as np
from numba import njit, prange

from .buffer_flags import _check_mask, classify_buffer, fill_buffer_flag_remaining
from .reorder import reorder_tile

logger = logging.getLogger(__name__)

# Chunks per thread in the parallel stable partition
CHUNKS_PER_THREAD = 4

PartitionResult = namedtuple(
    'PartitionResult', ['nfine_current', 'nfine_gather', 'permutation', 'reordered'])


# ==================== STABLE PARTITION ====================

@njit(parallel=True)
def _stable_partition_chunked(pid, start, end, flags, n_chunks, scratch):
    n = end - start
    chunk = (n + n_chunks - 1) // n_chunks

    # Pass 1: number of unflagged entries per chunk
    counts = np.zeros(n_chunks, dtype=np.int64)
    for c in prange(n_chunks):
        lo = c * chunk
        hi = min(lo + chunk, n)
        count = 0
        for k in range(lo, hi):
            if not flags[k]:
                count += 1
        counts[c] = count

    # Exclusive scan: unflagged entries go first, flagged entries after
    fine_offset = np.empty(n_chunks, dtype=np.int64)
    buffer_offset = np.empty(n_chunks, dtype=np.int64)
    n_fine = 0
    for c in range(n_chunks):
        fine_offset[c] = n_fine
        n_fine += counts[c]
    n_buffer = n_fine
    for c in range(n_chunks):
        buffer_offset[c] = n_buffer
        size = min(c * chunk + chunk, n) - c * chunk
        if size > 0:
            n_buffer += size - counts[c]

    # Pass 2: scatter each chunk in order
    for c in prange(n_chunks):
        lo = c * chunk
        hi = min(lo + chunk, n)
        f = fine_offset[c]
        b = buffer_offset[c]
        for k in range(lo, hi):
            if flags[k]:
                scratch[b] = pid[start + k]
                b += 1
            else:
                scratch[f] = pid[start + k]
                f += 1

    for k in prange(n):
        pid[start + k] = scratch[k]

    return start + n_fine


def stable_partition(pid, start, end, flags):
    """
    Stable partition of ``pid[start:end]`` in place.

    Entries whose flag is False move to the front and entries whose flag
    is True to the back; each group keeps its relative order. The result
    does not depend on the number of threads.

    Args:
        pid: Index array (modified in-place)
        start: First position of the segment
        end: One past the last position of the segment
        flags: Boolean flags, ``flags[k]`` refers to ``pid[start + k]``

    Returns:
        sep: Position in ``pid`` of the first flagged entry (``end`` if none)
    """
    n = end - start
    if n < 0:
        raise ValueError(f"Invalid segment [{start}, {end})")
    if flags.shape[0] < n:
        raise ValueError(f"Need {n} flags, got {flags.shape[0]}")
    if n == 0:
        return start

    n_chunks = max(1, min(n, numba.get_num_threads() * CHUNKS_PER_THREAD))
    scratch = np.empty(n, dtype=pid.dtype)
    return int(_stable_partition_chunked(pid, start, end, flags, n_chunks, scratch))


# ==================== PARTITION ENGINE ====================

def partition_particles_in_buffers(tile, level, geometry, current_mask, gather_mask, config):
    """
    Split a tile into fine-patch and buffer particles for deposition and
    gather, and reorder it accordingly.

    Sequence:
        1. Classify every particle against the wider buffer (gather on ties)
        2. Stable-partition: fine particles first, buffer particles last
        3. Equal widths: both counts are the split point
        4. No buffer particles: both counts are np
        5. Otherwise classify only the buffer particles against the narrower
           buffer and stable-partition that segment; its split point is the
           count of the narrower buffer
        6. deposit_on_main_grid / gather_from_main_grid force the
           corresponding count to 0 on refined levels
        7. Reorder the tile once if either count differs from np

    Args:
        tile: ParticleTile (reordered in-place when needed)
        level: Refinement level of the tile
        geometry: Geometry instance
        current_mask: BufferMask of the deposition buffer (None if disabled)
        gather_mask: BufferMask of the gather buffer (None if disabled)
        config: SimulationConfig or PartitionConfig

    Returns:
        PartitionResult(nfine_current, nfine_gather, permutation, reordered)

    Raises:
        ValueError: If a mask is missing for a nonzero buffer width
    """
    part = getattr(config, 'partition', config)
    n_current = part.n_current_deposition_buffer
    n_gather = part.n_field_gather_buffer
    np_tile = tile.n_particles

    if n_current < 0 or n_gather < 0:
        raise ValueError(f"Buffer widths must be non-negative, got {n_current}, {n_gather}")
    if n_current > 0:
        _check_mask(current_mask, geometry)
    if n_gather > 0:
        _check_mask(gather_mask, geometry)

    # Wider buffer first
    primary_is_gather = part.primary_is_gather
    if primary_is_gather:
        flags = classify_buffer(tile, gather_mask, geometry, level, n_gather)
    else:
        flags = classify_buffer(tile, current_mask, geometry, level, n_current)

    pid = np.arange(np_tile, dtype=np.int64)
    sep = stable_partition(pid, 0, np_tile, flags)
    n_fine = sep

    if n_current == n_gather:
        nfine_current = nfine_gather = n_fine
    elif sep == np_tile:
        nfine_current = nfine_gather = np_tile
    else:
        if primary_is_gather:
            nfine_gather = n_fine
            other_mask, other_width = current_mask, n_current
        else:
            nfine_current = n_fine
            other_mask, other_width = gather_mask, n_gather

        nfine_other = np_tile
        if other_width > 0:
            fill_buffer_flag_remaining(
                tile.x, tile.y, tile.z, pid, n_fine, np_tile,
                other_mask.data, other_mask.lo, geometry.prob_lo,
                geometry.dx_inv(level), geometry.dim, flags)
            nfine_other = stable_partition(pid, n_fine, np_tile, flags)

        if primary_is_gather:
            nfine_current = nfine_other
        else:
            nfine_gather = nfine_other

    if part.deposit_on_main_grid and level > 0:
        nfine_current = 0
    if part.gather_from_main_grid and level > 0:
        nfine_gather = 0

    reordered = nfine_current != np_tile or nfine_gather != np_tile
    if reordered:
        reorder_tile(tile, pid)

    logger.debug(
        "Level %d tile: np=%d nfine_current=%d nfine_gather=%d reordered=%s",
        level, np_tile, nfine_current, nfine_gather, reordered)

    return PartitionResult(nfine_current, nfine_gather, pid, reordered)


def partition_level(tiles, level, geometry, current_mask, gather_mask, config):
    """
    Run partition_particles_in_buffers() on every tile of one level.

    Tiles are independent; each is reordered on its own.

    Returns:
        results: List of PartitionResult, one per tile
    """
    return [
        partition_particles_in_buffers(tile, level, geometry, current_mask,
                                       gather_mask, config)
        for tile in tiles
    ]


# ==================== TESTING ====================

if __name__ == "__main__":
    import time

    from ..config import PartitionConfig
    from ..geometry import Geometry
    from ..particles import ParticleTile
    from .buffer_flags import BufferMask

    print("Testing buffer partition...")

    n_particles = 1_000_000
    rng = np.random.default_rng(1)
    geometry = Geometry(prob_lo=[0.0, 0.0, 0.0], dx=[1.0, 1.0, 1.0], n_levels=2, ref_ratio=1)
    tile = ParticleTile()
    tile.add_particles(rng.random(n_particles) * 32, rng.random(n_particles) * 32,
                       rng.random(n_particles) * 32)

    config = PartitionConfig(n_current_deposition_buffer=2, n_field_gather_buffer=4)
    current_mask = BufferMask.from_fine_patch((32, 32, 32), (0, 0, 0), (32, 32, 32), 2)
    gather_mask = BufferMask.from_fine_patch((32, 32, 32), (0, 0, 0), (32, 32, 32), 4)

    print("\nWarming up Numba JIT...")
    partition_particles_in_buffers(tile.copy(), 1, geometry, current_mask, gather_mask, config)

    start = time.time()
    result = partition_particles_in_buffers(tile, 1, geometry, current_mask, gather_mask, config)
    elapsed = time.time() - start

    print(f"\nResults:")
    print(f"  Particles:       {n_particles:,}")
    print(f"  nfine_current:   {result.nfine_current:,}")
    print(f"  nfine_gather:    {result.nfine_gather:,}")
    print(f"  Elapsed time:    {elapsed * 1000:.1f} ms")

    print("\n✅ Partition tests passed!")
