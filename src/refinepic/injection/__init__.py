"""
Particle Injection

Implements position sampling inside a unit cell, the injection region
and the filling of grid boxes with plasma particles.
"""

from .bounds import RegionBounds, inside_bounds_array
from .position import (
    InjectorPosition,
    RANDOM,
    RANDOM_PLANE,
    REGULAR,
    get_position_unit_box,
)
from .plasma import generate_plasma_positions, inject_plasma

__all__ = [
    "RegionBounds",
    "inside_bounds_array",
    "InjectorPosition",
    "RANDOM",
    "RANDOM_PLANE",
    "REGULAR",
    "get_position_unit_box",
    "generate_plasma_positions",
    "inject_plasma",
]
