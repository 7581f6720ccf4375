"""
Time evolution of Cahn-Hilliard lattices.

A sweep reads one lattice and writes the next state into a second lattice, so
every neighbour read sees the state from before the sweep. The caller swaps the
two lattices afterwards.
"""
import logging

import numba
import numpy as np
from numba import njit, prange

from cahn_hilliard.lattice import CHLattice

logger = logging.getLogger(__name__)


def _check_buffers(current: CHLattice, updated: CHLattice) -> None:
    if current.shape != updated.shape:
        raise ValueError(
            f"Lattices must have the same shape, got {current.shape} and {updated.shape}")
    if current is updated or np.shares_memory(current.field, updated.field):
        raise ValueError("Current and updated lattices must not share storage")


@njit(parallel=True)
def _chemical_potential_kernel(phi, a, k, dx):
    height, width = phi.shape
    mu = np.empty_like(phi)
    coupling = k / (dx * dx)
    for y in prange(height):
        up = (y + 1) % height
        down = (y - 1 + height) % height
        for x in range(width):
            right = (x + 1) % width
            left = (x - 1 + width) % width
            centre = phi[y, x]
            # Same operation order as CHLattice.chemical_potential
            neighbours = phi[y, right] + phi[y, left] + phi[up, x] + phi[down, x] - 4 * centre
            mu[y, x] = -a * centre + a * centre * centre * centre - coupling * neighbours
    return mu


@njit(parallel=True)
def _euler_kernel(phi, mu, coefficient, out):
    height, width = phi.shape
    for y in prange(height):
        up = (y + 1) % height
        down = (y - 1 + height) % height
        for x in range(width):
            right = (x + 1) % width
            left = (x - 1 + width) % width
            laplacian = mu[y, right] + mu[y, left] + mu[up, x] + mu[down, x] - 4 * mu[y, x]
            out[y, x] = phi[y, x] + coefficient * laplacian


def update(current: CHLattice, updated: CHLattice, dt: float, workers: int = 1) -> None:
    """
    Update one lattice based on the state of another.

    Every site of `updated` is set to `current.next_value(x, y, dt)`. Only `current`
    is read and only `updated` is written.

    Args:
        current: Lattice holding the state at the current time
        updated: Lattice that receives the state at the next time step
        dt: Temporal discretisation step size
        workers: Number of numba threads for the sweep; 1 runs the numpy sweep

    Raises:
        ValueError: If the lattices differ in shape or share storage
    """
    _check_buffers(current, updated)

    if workers <= 1:
        updated.field[...] = current.next_field(dt)
        return

    numba.set_num_threads(min(workers, numba.config.NUMBA_NUM_THREADS))
    coefficient = current.M * dt / (current.dx * current.dx)
    # The chemical potential of every site is complete before any site is written
    mu = _chemical_potential_kernel(current.field, current.a, current.k, current.dx)
    _euler_kernel(current.field, mu, coefficient, updated.field)


def evolve(lattice: CHLattice, steps: int, dt: float) -> CHLattice:
    """
    Advance a copy of a lattice by a number of steps, allocating a new lattice every step.

    This is the straightforward reference for the double-buffered loop; the
    input lattice is left untouched.
    """
    state = lattice.copy()
    for _ in range(steps):
        following = CHLattice(state.width, state.height, state.M, state.a, state.k, state.dx)
        update(state, following, dt)
        state = following
    logger.debug(f"Evolved {lattice!r} by {steps} steps")
    return state
