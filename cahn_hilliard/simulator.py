"""
Driver for Cahn-Hilliard runs: owns the two lattice buffers and the time-stepping loop.
"""
import math
import time
import logging
from typing import List, Optional, Tuple

import numpy as np

from cahn_hilliard.lattice import CHLattice
from cahn_hilliard.output import SimulationOutput
from cahn_hilliard.parameters import InputParameters
from cahn_hilliard.stepper import update

logger = logging.getLogger(__name__)


class CahnHilliardSimulator:
    """
    Evolves an order parameter lattice for a fixed number of explicit Euler steps.

    The run goes INITIALIZED -> (STEP)* -> DONE. One step is one sweep from the
    current lattice into the updated lattice, one energy or snapshot emission and a
    swap of the two lattices.
    """
    # Number of steps between overwritten snapshots in animate mode
    SNAPSHOT_INTERVAL = 1000

    INITIALIZED = 'initialized'
    DONE = 'done'

    def __init__(self,
                 parameters: InputParameters,
                 generator: Optional[np.random.Generator] = None,
                 output: Optional[SimulationOutput] = None,
                 animate: bool = False,
                 snapshot_interval: Optional[int] = None,
                 workers: int = 1):
        """
        Set up a run.

        Args:
            parameters: Constants of the run
            generator: Random source for the initial noise (unseeded if omitted)
            output: Where to write frames and energies; nothing is written if omitted
            animate: Overwrite a single snapshot periodically instead of logging
                the free energy on every step
            snapshot_interval: Steps between snapshots in animate mode
            workers: Numba threads used for each sweep
        """
        parameters.validate()
        self.parameters = parameters
        self.generator = generator if generator is not None else np.random.default_rng()
        self.output = output
        self.animate = animate
        self.snapshot_interval = (self.SNAPSHOT_INTERVAL if snapshot_interval is None
                                  else snapshot_interval)
        self.workers = workers

        if self.snapshot_interval <= 0:
            raise ValueError(f"Snapshot interval must be positive, got {self.snapshot_interval}")

        self.current_lattice: Optional[CHLattice] = None
        self.updated_lattice: Optional[CHLattice] = None
        self.state = None
        self.steps_taken = 0
        self.energy_history: List[Tuple[int, float]] = []
        self.execution_time = 0.0
        self._warned_non_finite = False

    def initialise(self) -> CHLattice:
        """Create both lattices, add the initial noise and emit the t = 0 state."""
        params = self.parameters
        self.current_lattice = params.make_lattice()
        self.current_lattice.initialise(params.initial_value, params.noise, self.generator)
        self.updated_lattice = self.current_lattice.copy()
        self.steps_taken = 0
        self.energy_history = []
        self.state = self.INITIALIZED

        logger.info(f"Initialised {params.col_count}x{params.row_count} lattice "
                    f"around {params.initial_value} with noise {params.noise}")

        if self.output is not None:
            self.output.write_frame(self.current_lattice)
        self._record_energy(0, self.current_lattice.total_free_energy())
        return self.current_lattice

    def step(self) -> None:
        """Advance the run by one time step."""
        if self.state != self.INITIALIZED:
            raise RuntimeError(f"Cannot step a run in state {self.state!r}")
        if self.steps_taken >= self.parameters.total_steps:
            raise RuntimeError("All steps of this run have already been taken")

        t = self.steps_taken
        update(self.current_lattice, self.updated_lattice, self.parameters.time_step,
               workers=self.workers)

        if self.animate and t % self.snapshot_interval == 0:
            if self.output is not None:
                self.output.write_frame(self.updated_lattice, rewind=True)
            logger.debug(f"Snapshot at step {t + 1}")
        else:
            self._record_energy(t + 1, self.updated_lattice.total_free_energy())

        # Swap roles, not contents
        self.current_lattice, self.updated_lattice = self.updated_lattice, self.current_lattice
        self.steps_taken += 1

    def run(self) -> CHLattice:
        """
        Run every remaining step and write the final state.

        Returns:
            The lattice holding the final state
        """
        start_time = time.time()
        if self.state is None:
            self.initialise()
        elif self.state == self.DONE:
            raise RuntimeError("This run has already finished")

        total_steps = self.parameters.total_steps
        report_every = max(total_steps // 10, 1)
        while self.steps_taken < total_steps:
            self.step()
            if self.steps_taken % report_every == 0:
                logger.info(f"Step {self.steps_taken}/{total_steps}")

        if self.output is not None:
            self.output.write_frame(self.current_lattice, rewind=self.animate)
            self.output.write_free_energy_density(self.current_lattice)

        self.state = self.DONE
        self.execution_time = time.time() - start_time
        logger.info(f"Finished {total_steps} steps in {self.execution_time:.3f} seconds")
        return self.current_lattice

    def energy_series(self) -> Tuple[np.ndarray, np.ndarray]:
        """Recorded (steps, free energies) as arrays."""
        if not self.energy_history:
            return np.array([], dtype=int), np.array([], dtype=float)
        steps, energies = zip(*self.energy_history)
        return np.array(steps, dtype=int), np.array(energies, dtype=float)

    def _record_energy(self, step: int, energy: float) -> None:
        self.energy_history.append((step, energy))
        if self.output is not None:
            self.output.write_energy(step, energy)

        if not math.isfinite(energy) and not self._warned_non_finite:
            # No stability check is made; the run carries on regardless
            logger.warning(f"Free energy became non-finite at step {step}; "
                           f"dt={self.parameters.time_step} may be too large for this lattice")
            self._warned_non_finite = True
