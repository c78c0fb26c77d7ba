"""
Mesh-Refinement Buffer Sorting

Components:
- buffer_flags: per-particle buffer classification from cell masks
- partition: stable two-level partition into fine-patch and buffer groups
- reorder: gather of every tile attribute by a permutation
"""

from .buffer_flags import (
    BufferMask,
    classify_buffer,
    fill_buffer_flag,
    fill_buffer_flag_remaining,
)
from .partition import (
    PartitionResult,
    partition_level,
    partition_particles_in_buffers,
    stable_partition,
)
from .reorder import gather_column, reorder_tile

__all__ = [
    # Classification
    "BufferMask",
    "classify_buffer",
    "fill_buffer_flag",
    "fill_buffer_flag_remaining",
    # Partition
    "PartitionResult",
    "partition_level",
    "partition_particles_in_buffers",
    "stable_partition",
    # Reorder
    "gather_column",
    "reorder_tile",
]
