"""
Axis-Aligned Injection Region

Membership tests use exact floating-point comparisons. A point lying
exactly on a face shared by two regions belongs to the upper region
under the half-open test and to both under the inclusive test.
"""

from collections import namedtuple

import numpy as np
from numba import njit, prange


_Bounds = namedtuple('_Bounds', ['xmin', 'xmax', 'ymin', 'ymax', 'zmin', 'zmax'])


class RegionBounds(_Bounds):
    """
    Box [xmin, xmax] x [ymin, ymax] x [zmin, zmax] in physical space.

    Immutable. Infinite limits are allowed, e.g. a slab unbounded in y.

    Raises:
        ValueError: If a lower limit exceeds the upper one, or a limit is NaN
    """

    __slots__ = ()

    def __new__(cls, xmin=-np.inf, xmax=np.inf, ymin=-np.inf, ymax=np.inf,
                zmin=-np.inf, zmax=np.inf):
        self = super().__new__(cls, float(xmin), float(xmax), float(ymin),
                               float(ymax), float(zmin), float(zmax))
        for axis, lo, hi in (('x', self.xmin, self.xmax),
                             ('y', self.ymin, self.ymax),
                             ('z', self.zmin, self.zmax)):
            if np.isnan(lo) or np.isnan(hi):
                raise ValueError(f"NaN bound on {axis}")
            if lo > hi:
                raise ValueError(f"{axis}min={lo} is greater than {axis}max={hi}")
        return self

    def inside_bounds(self, x, y, z):
        """True iff min <= coord < max on all three axes."""
        return (self.xmin <= x < self.xmax and
                self.ymin <= y < self.ymax and
                self.zmin <= z < self.zmax)

    def inside_bounds_inclusive(self, x, y, z):
        """True iff min <= coord <= max on all three axes."""
        return (self.xmin <= x <= self.xmax and
                self.ymin <= y <= self.ymax and
                self.zmin <= z <= self.zmax)

    def overlaps_with(self, lo, hi):
        """
        Whether the box [lo, hi] intersects this region.

        Args:
            lo: Lower corner (x, y, z)
            hi: Upper corner (x, y, z)

        Returns:
            overlap: False iff the boxes are separated along some axis
        """
        return not (self.xmin > hi[0] or self.xmax < lo[0] or
                    self.ymin > hi[1] or self.ymax < lo[1] or
                    self.zmin > hi[2] or self.zmax < lo[2])

    def contains(self, x, y, z, inclusive=False):
        """
        Vectorized membership test.

        Args:
            x, y, z: Position arrays of equal length [m]
            inclusive: Use the closed test instead of the half-open one

        Returns:
            inside: Boolean array
        """
        x = np.ascontiguousarray(x)
        y = np.ascontiguousarray(y)
        z = np.ascontiguousarray(z)
        out = np.empty(x.shape[0], dtype=np.bool_)
        inside_bounds_array(self.xmin, self.xmax, self.ymin, self.ymax,
                            self.zmin, self.zmax, x, y, z, inclusive, out)
        return out


@njit(parallel=True)
def inside_bounds_array(xmin, xmax, ymin, ymax, zmin, zmax, x, y, z, inclusive, out):
    """
    Membership flags for a batch of positions.

    Args:
        xmin, xmax, ymin, ymax, zmin, zmax: Region limits [m]
        x, y, z: Positions, shape (n,) [m]
        inclusive: Closed test if True, half-open otherwise
        out: Output flags, shape (n,) (modified in-place)
    """
    for i in prange(x.shape[0]):
        if inclusive:
            out[i] = (xmin <= x[i] <= xmax and
                      ymin <= y[i] <= ymax and
                      zmin <= z[i] <= zmax)
        else:
            out[i] = (xmin <= x[i] < xmax and
                      ymin <= y[i] < ymax and
                      zmin <= z[i] < zmax)
