"""
config.py - Simulation Parameters
=================================
Everything a run needs that is not state: grid size, timestep,
diffusion rate and viscosity. Constant for the lifetime of a simulation.

  - N          : cells per axis (rows/cols 0 and N-1 are boundary-only)
  - dt         : default timestep used when step() is called without one
  - diffusion  : how fast density spreads (0 = no spreading)
  - viscosity  : how fast velocity smooths out (0 = inviscid)
"""

from dataclasses import dataclass, asdict, fields


MIN_GRID_SIZE = 3


def validate_grid_size(N) -> int:
    """Reject grids with no interior. Returns N as an int."""
    if isinstance(N, bool) or int(N) != N:
        raise ValueError(f"Grid size must be an integer, got {N!r}")
    N = int(N)
    if N < MIN_GRID_SIZE:
        raise ValueError(f"Grid size must be >= {MIN_GRID_SIZE}, got {N}")
    return N


@dataclass(frozen=True)
class FluidParams:
    N: int = 64
    dt: float = 0.1
    diffusion: float = 0.0
    viscosity: float = 0.0000001

    def __post_init__(self):
        object.__setattr__(self, "N", validate_grid_size(self.N))
        if self.dt <= 0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if self.diffusion < 0:
            raise ValueError(f"diffusion must be >= 0, got {self.diffusion}")
        if self.viscosity < 0:
            raise ValueError(f"viscosity must be >= 0, got {self.viscosity}")

    @classmethod
    def from_dict(cls, data: dict) -> "FluidParams":
        """Build params from a mapping, ignoring keys that are not parameters."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict:
        return asdict(self)
