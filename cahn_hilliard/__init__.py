"""
Cahn-Hilliard package for simulating phase separation on a periodic 2D lattice.

The order parameter is evolved with an explicit Euler scheme on a double-buffered
lattice, with free energy and snapshot output for plotting.

Main components:
- lattice: CHLattice field, periodic indexing and the per-site physics
- stepper: the sweep that updates one lattice from another
- simulator: the driver running a fixed number of steps
- output: output directory and data files
"""

from .lattice import CHLattice
from .parameters import InputParameters
from .stepper import update, evolve
from .simulator import CahnHilliardSimulator
from .output import SimulationOutput

__all__ = [
    'CHLattice',
    'InputParameters',
    'update',
    'evolve',
    'CahnHilliardSimulator',
    'SimulationOutput',
]

__version__ = '1.0.0'
