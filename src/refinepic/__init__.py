"""
RefinePIC: Particle Core for Mesh-Refined Particle-in-Cell Simulation

Relativistic position push, particle position sampling, and the stable
partition of particle tiles into fine-patch and buffer groups near
mesh-refinement boundaries.
"""

__version__ = "0.1.0"

# Import key classes for convenient access
from .config import PartitionConfig, SimulationConfig
from .geometry import Geometry
from .particles import ParticleTile
from .injection import InjectorPosition, RegionBounds
from .pusher import push_tile, push_tile_implicit
from .sorting import BufferMask, partition_particles_in_buffers, reorder_tile

__all__ = [
    "PartitionConfig",
    "SimulationConfig",
    "Geometry",
    "ParticleTile",
    "InjectorPosition",
    "RegionBounds",
    "push_tile",
    "push_tile_implicit",
    "BufferMask",
    "partition_particles_in_buffers",
    "reorder_tile",
]
