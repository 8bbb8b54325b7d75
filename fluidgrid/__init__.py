"""
fluidgrid/ - 2D Stable Fluids Package
=====================================
Exports the main interfaces drivers and renderers use.

Renderers import: FluidSimulation → density / density_grid()
Input sources import: FluidSimulation → add_density(), queue_velocity(), Emitter
Drivers import: FluidSimulation, FluidParams → step()
"""

from .config import FluidParams
from .grid import FluidGrid, FieldKind, ix, set_boundary
from .forces import Emitter, ForcingBuffer
from .simulation import FluidSimulation

__all__ = [
    "FluidParams", "FluidGrid", "FieldKind", "ix", "set_boundary",
    "Emitter", "ForcingBuffer", "FluidSimulation",
]
