"""
File output for Cahn-Hilliard runs.

A run writes into one output directory:
- input.txt: the parameter table
- lattice.dat: order parameter frames (appended, or overwritten in animate mode)
- freeEnergy.dat: "<step> <free energy>" lines
- freeEnergyDensity.dat: free energy density grid of the final state
"""
import os
import logging
from contextlib import ExitStack
from datetime import datetime
from typing import List, Tuple

import numpy as np

from cahn_hilliard.lattice import CHLattice

logger = logging.getLogger(__name__)

PARAMETER_FILE = 'input.txt'
LATTICE_FILE = 'lattice.dat'
FREE_ENERGY_FILE = 'freeEnergy.dat'
FREE_ENERGY_DENSITY_FILE = 'freeEnergyDensity.dat'


def get_time_stamp() -> str:
    """Local time stamp used as the default output directory name."""
    return datetime.now().strftime('%Y-%m-%d_%H-%M-%S')


class SimulationOutput:
    """
    Owns the output directory and files of a single run.
    """

    def __init__(self, directory: str):
        """
        Create the output directory (if needed) and open the data files.

        Args:
            directory: Path of the output directory
        """
        self.directory = directory
        os.makedirs(directory, exist_ok=True)
        logger.info(f"Writing output to {os.path.abspath(directory)}")

        with ExitStack() as stack:
            self.lattice_file = stack.enter_context(open(self.path(LATTICE_FILE), 'w'))
            self.free_energy_file = stack.enter_context(open(self.path(FREE_ENERGY_FILE), 'w'))
            # Both files opened, keep them
            stack.pop_all()
        self.frames_written = 0

    def path(self, name: str) -> str:
        """Path of a file inside the output directory."""
        return os.path.join(self.directory, name)

    def write_parameters(self, parameters) -> None:
        """Write the parameter table to input.txt."""
        with open(self.path(PARAMETER_FILE), 'w') as f:
            f.write(str(parameters) + '\n')

    def write_frame(self, lattice: CHLattice, rewind: bool = False) -> None:
        """
        Write an order parameter frame to lattice.dat.

        Args:
            lattice: Lattice to write
            rewind: Move to the start of the file and overwrite it, so only this
                frame remains; otherwise the frame is appended
        """
        if rewind:
            self.lattice_file.seek(0)
        lattice.write(self.lattice_file)
        if rewind:
            # A shorter frame must not leave the tail of the previous one behind
            self.lattice_file.truncate()
        self.lattice_file.flush()
        self.frames_written += 1

    def write_energy(self, step: int, energy: float) -> None:
        """Append a "<step> <free energy>" line to freeEnergy.dat."""
        self.free_energy_file.write(f"{step} {energy:.12g}\n")
        self.free_energy_file.flush()

    def write_free_energy_density(self, lattice: CHLattice) -> None:
        """Write the free energy density grid of a lattice to freeEnergyDensity.dat."""
        with open(self.path(FREE_ENERGY_DENSITY_FILE), 'w') as f:
            f.write(lattice.free_energy_density_text())

    def close(self) -> None:
        """Close the data files."""
        for handle in (self.lattice_file, self.free_energy_file):
            if not handle.closed:
                handle.close()

    def __enter__(self) -> 'SimulationOutput':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def read_energy_series(path: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Read a free energy file.

    Returns:
        Tuple of (steps, energies) arrays
    """
    data = np.loadtxt(path, ndmin=2)
    if data.size == 0:
        return np.array([], dtype=int), np.array([], dtype=float)
    return data[:, 0].astype(int), data[:, 1]


def read_frames(path: str, width: int, height: int, M: float = 0.0, a: float = 0.0,
                k: float = 0.0, dx: float = 1.0) -> List[CHLattice]:
    """
    Read every frame in a lattice file.

    Frames are consecutive blocks of `height` rows of `width` values; a trailing
    partial frame is ignored.
    """
    if os.path.getsize(path) == 0:
        return []
    # np.loadtxt raises ValueError for ragged rows
    rows = np.loadtxt(path, ndmin=2)
    if rows.size and rows.shape[1] != width:
        raise ValueError(f"Frames in {path} are {rows.shape[1]} values wide, expected {width}")

    frame_count = len(rows) // height
    blocks = rows[:frame_count * height].reshape(frame_count, height, width)
    frames = [CHLattice.from_rows(block, M, a, k, dx) for block in blocks]

    if len(rows) % height:
        logger.warning(f"Ignoring {len(rows) % height} trailing rows in {path}")
    return frames

