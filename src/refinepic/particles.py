"""
Particle Tile Data Structure

Uses Structure-of-Arrays (SoA) layout: one contiguous array per attribute,
so kernels touching positions never load momenta, and every attribute can
be gathered with the same permutation.
"""

import numpy as np

from .constants import ID_DTYPE, INT_DTYPE, dtype_for_precision

# Compile-time real attributes, in storage order
REAL_COMPS = ('x', 'y', 'z', 'ux', 'uy', 'uz', 'w')

# Compile-time int attributes
INT_COMPS = ('id',)


class ParticleTile:
    """
    Particle storage for one grid box at one refinement level.

    The tile exclusively owns its attribute arrays. Arrays are allocated
    with spare capacity; only the first ``n_particles`` entries are valid.

    Attributes:
        x, y, z: Positions [m]
        ux, uy, uz: Momenta as proper velocity gamma*v [m/s]
        w: Macro-particle weight
        id: Particle identifier
        runtime_real: Named runtime real attributes
        runtime_int: Named runtime int attributes
        n_particles: Number of valid particles
        capacity: Allocated length of every array
        dtype: Real attribute dtype (float32 or float64)
    """

    def __init__(self, capacity=0, precision='double',
                 runtime_real=(), runtime_int=()):
        """
        Initialize an empty tile.

        Args:
            capacity: Initial allocation
            precision: 'single' or 'double'
            runtime_real: Names of runtime real attributes
            runtime_int: Names of runtime int attributes
        """
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")

        self.precision = precision
        self.dtype = dtype_for_precision(precision)
        self.capacity = capacity
        self.n_particles = 0
        self.next_id = 1

        for name in REAL_COMPS:
            setattr(self, name, np.zeros(capacity, dtype=self.dtype))
        self.id = np.zeros(capacity, dtype=ID_DTYPE)

        self.runtime_real = {}
        self.runtime_int = {}
        for name in runtime_real:
            self.add_runtime_real(name)
        for name in runtime_int:
            self.add_runtime_int(name)

    # ==================== LAYOUT ====================

    def add_runtime_real(self, name, value=0.0):
        """Add a runtime real attribute, initialized to ``value``."""
        self._check_new_name(name)
        self.runtime_real[name] = np.full(self.capacity, value, dtype=self.dtype)

    def add_runtime_int(self, name, value=0):
        """Add a runtime int attribute, initialized to ``value``."""
        self._check_new_name(name)
        self.runtime_int[name] = np.full(self.capacity, value, dtype=INT_DTYPE)

    def _check_new_name(self, name):
        if name in REAL_COMPS or name in INT_COMPS:
            raise ValueError(f"'{name}' is a built-in particle attribute")
        if name in self.runtime_real or name in self.runtime_int:
            raise ValueError(f"Runtime attribute '{name}' already exists")

    def real_columns(self):
        """List of (name, array) for every real attribute, built-ins first."""
        columns = [(name, getattr(self, name)) for name in REAL_COMPS]
        columns.extend(self.runtime_real.items())
        return columns

    def int_columns(self):
        """List of (name, array) for every int attribute, built-ins first."""
        columns = [('id', self.id)]
        columns.extend(self.runtime_int.items())
        return columns

    def empty_like(self, capacity=None):
        """New empty tile with the same precision and runtime attributes."""
        return ParticleTile(
            capacity=self.capacity if capacity is None else capacity,
            precision=self.precision,
            runtime_real=tuple(self.runtime_real),
            runtime_int=tuple(self.runtime_int),
        )

    # ==================== BULK MUTATION ====================

    def reserve(self, capacity):
        """Grow every array to at least ``capacity`` entries, keeping contents."""
        if capacity <= self.capacity:
            return

        def grow(arr):
            new = np.zeros(capacity, dtype=arr.dtype)
            new[:self.n_particles] = arr[:self.n_particles]
            return new

        for name in REAL_COMPS:
            setattr(self, name, grow(getattr(self, name)))
        self.id = grow(self.id)
        for name in self.runtime_real:
            self.runtime_real[name] = grow(self.runtime_real[name])
        for name in self.runtime_int:
            self.runtime_int[name] = grow(self.runtime_int[name])

        self.capacity = capacity

    def resize(self, n):
        """
        Set the number of valid particles.

        Growing exposes zero-initialized slots; shrinking drops the tail.
        """
        if n < 0:
            raise ValueError(f"Particle count must be non-negative, got {n}")
        self.reserve(n)
        self.n_particles = n

    def add_particles(self, x, y, z, ux=0.0, uy=0.0, uz=0.0, w=1.0,
                      attr_real=None, attr_int=None, ids=None):
        """
        Append particles to the tile.

        Args:
            x, y, z: Positions, scalars or arrays of length n [m]
            ux, uy, uz: Momenta (proper velocity) [m/s]
            w: Weight(s)
            attr_real: Mapping name -> values for runtime real attributes;
                       missing attributes are zero-filled
            attr_int: Mapping name -> values for runtime int attributes
            ids: Explicit identifiers; sequential ids are assigned if None

        Returns:
            indices: Slots of the added particles

        Raises:
            ValueError: On unknown runtime attributes or mismatched lengths
        """
        x = np.atleast_1d(np.asarray(x, dtype=self.dtype))
        n_add = x.shape[0]

        values = {'x': x}
        for name, val in (('y', y), ('z', z), ('ux', ux), ('uy', uy),
                          ('uz', uz), ('w', w)):
            values[name] = self._broadcast(name, val, n_add, self.dtype)

        attr_real = dict(attr_real or {})
        attr_int = dict(attr_int or {})
        unknown = (set(attr_real) - set(self.runtime_real)) | \
                  (set(attr_int) - set(self.runtime_int))
        if unknown:
            raise ValueError(f"Unknown runtime attributes: {sorted(unknown)}")

        if ids is None:
            new_ids = np.arange(self.next_id, self.next_id + n_add, dtype=ID_DTYPE)
        else:
            new_ids = self._broadcast('ids', ids, n_add, ID_DTYPE)

        start_idx = self.n_particles
        end_idx = start_idx + n_add
        if end_idx > self.capacity:
            self.reserve(max(end_idx, 2 * self.capacity))

        for name, val in values.items():
            getattr(self, name)[start_idx:end_idx] = val
        self.id[start_idx:end_idx] = new_ids
        for name, arr in self.runtime_real.items():
            arr[start_idx:end_idx] = self._broadcast(
                name, attr_real.get(name, 0.0), n_add, self.dtype)
        for name, arr in self.runtime_int.items():
            arr[start_idx:end_idx] = self._broadcast(
                name, attr_int.get(name, 0), n_add, INT_DTYPE)

        if n_add > 0:
            self.next_id = max(self.next_id, int(new_ids.max()) + 1)
        self.n_particles = end_idx

        return np.arange(start_idx, end_idx)

    @staticmethod
    def _broadcast(name, val, n, dtype):
        arr = np.asarray(val, dtype=dtype)
        if arr.ndim == 0:
            return np.full(n, arr, dtype=dtype)
        if arr.shape != (n,):
            raise ValueError(f"'{name}' has shape {arr.shape}, expected ({n},)")
        return arr

    def swap(self, other):
        """
        Exchange all contents with another tile of the same layout.

        Raises:
            ValueError: If precision or runtime attributes differ
        """
        if (other.dtype != self.dtype
                or set(other.runtime_real) != set(self.runtime_real)
                or set(other.runtime_int) != set(self.runtime_int)):
            raise ValueError("Cannot swap tiles with different layouts")

        for name in REAL_COMPS + INT_COMPS + ('runtime_real', 'runtime_int',
                                               'n_particles', 'capacity', 'next_id'):
            mine = getattr(self, name)
            setattr(self, name, getattr(other, name))
            setattr(other, name, mine)

    def copy(self):
        """Deep copy of the tile."""
        tile = self.empty_like(capacity=self.capacity)
        for (_, src), (_, dst) in zip(self.real_columns(), tile.real_columns()):
            dst[:] = src
        for (_, src), (_, dst) in zip(self.int_columns(), tile.int_columns()):
            dst[:] = src
        tile.n_particles = self.n_particles
        tile.next_id = self.next_id
        return tile

    # ==================== DIAGNOSTICS ====================

    def gamma(self, c):
        """
        Lorentz factor of every valid particle.

        Args:
            c: Speed of light [m/s]

        Returns:
            gamma: Array of shape (n_particles,)
        """
        n = self.n_particles
        u2 = (self.ux[:n].astype(np.float64) ** 2
              + self.uy[:n].astype(np.float64) ** 2
              + self.uz[:n].astype(np.float64) ** 2)
        return np.sqrt(1.0 + u2 / (c * c))

    def __repr__(self):
        """String representation."""
        return (f"ParticleTile(n_particles={self.n_particles}, "
                f"capacity={self.capacity}, precision='{self.precision}')")

    def __len__(self):
        """Return number of valid particles."""
        return self.n_particles

    def summary(self):
        """Print summary statistics."""
        n = self.n_particles
        print(f"\nParticle Tile Summary:")
        print(f"  Particles:     {n}")
        print(f"  Capacity:      {self.capacity}")
        print(f"  Precision:     {self.precision}")
        if self.runtime_real:
            print(f"  Runtime real:  {', '.join(self.runtime_real)}")
        if self.runtime_int:
            print(f"  Runtime int:   {', '.join(self.runtime_int)}")
        if n > 0:
            print(f"  Total weight:  {np.sum(self.w[:n], dtype=np.float64):.3e}")
            print(f"  x range:       [{self.x[:n].min():.3e}, {self.x[:n].max():.3e}] m")
            print(f"  z range:       [{self.z[:n].min():.3e}, {self.z[:n].max():.3e}] m")


# ==================== TESTING ====================

if __name__ == "__main__":
    print("Testing ParticleTile...")

    tile = ParticleTile(capacity=16, runtime_real=('opticalDepth',))
    rng = np.random.default_rng(42)

    print("\nAdding 100 particles...")
    tile.add_particles(rng.random(100), rng.random(100), rng.random(100),
                       ux=rng.normal(0.0, 1e6, 100), w=2.0)
    tile.summary()

    print("\nShrinking to 40 particles...")
    tile.resize(40)
    print(f"  {tile}")

    print("\n✅ ParticleTile tests passed!")
