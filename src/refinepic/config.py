"""Pydantic v2 configuration for the particle push and buffer partition.

Values are read once at startup and passed explicitly to the kernels
(dimensionality code, dtype, inverse c^2) rather than being looked up
inside them.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from .constants import PRECISION_DTYPES, c as SPEED_OF_LIGHT
from .geometry import DIM_CODES


class PartitionConfig(BaseModel):
    """Mesh-refinement buffer parameters."""

    n_current_deposition_buffer: int = Field(
        0, ge=0, description="Width of the current deposition buffer [cells] (0 = disabled)"
    )
    n_field_gather_buffer: int = Field(
        0, ge=0, description="Width of the field gather buffer [cells] (0 = disabled)"
    )
    deposit_on_main_grid: bool = Field(
        False, description="Deposit current on the coarsest level only"
    )
    gather_from_main_grid: bool = Field(
        False, description="Gather fields from the coarsest level only"
    )

    @property
    def primary_is_gather(self) -> bool:
        """Whether the gather buffer is the wider one (ties go to gather)."""
        return self.n_field_gather_buffer >= self.n_current_deposition_buffer


class SimulationConfig(BaseModel):
    """Top-level configuration consumed by the pusher and partition engine."""

    dimensionality: str = Field("3d", description="Spatial mode: '3d', 'rz', 'xz' or '1d'")
    precision: str = Field("double", description="Particle real precision: 'single' or 'double'")
    c: float = Field(SPEED_OF_LIGHT, gt=0, description="Speed of light [m/s]")
    partition: PartitionConfig = Field(default_factory=PartitionConfig)

    @model_validator(mode="after")
    def validate_modes(self) -> SimulationConfig:
        self.dimensionality = self.dimensionality.lower()
        if self.dimensionality not in DIM_CODES:
            raise ValueError(
                f"dimensionality must be one of {sorted(DIM_CODES)}, got '{self.dimensionality}'"
            )
        if self.precision not in PRECISION_DTYPES:
            raise ValueError(
                f"precision must be one of {sorted(PRECISION_DTYPES)}, got '{self.precision}'"
            )
        return self

    @property
    def dim(self) -> int:
        """Integer dimensionality code passed to kernels."""
        return DIM_CODES[self.dimensionality]

    @property
    def dtype(self):
        """Numpy dtype of particle real attributes."""
        return PRECISION_DTYPES[self.precision]

    @property
    def inv_c2(self):
        """1/c^2 in the configured precision."""
        return self.dtype(1.0 / (self.c * self.c))

    @classmethod
    def from_file(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a JSON file."""
        path = Path(path)
        with path.open() as f:
            data = json.load(f)
        return cls(**data)

    def to_json(self, path: str | Path | None = None) -> str:
        """Serialize to JSON string, optionally writing to file."""
        out = self.model_dump_json(indent=2)
        if path is not None:
            Path(path).write_text(out)
        return out


__all__ = ["PartitionConfig", "SimulationConfig"]
