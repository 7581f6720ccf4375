"""
Command line front end for the Cahn-Hilliard solver.
"""
import argparse
import logging
import time

import numpy as np

from cahn_hilliard.output import SimulationOutput, get_time_stamp
from cahn_hilliard.parameters import InputParameters, OUTPUT_COLUMN_WIDTH
from cahn_hilliard.simulator import CahnHilliardSimulator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Options for Cahn-Hilliard simulation')
    parser.add_argument('-x', '--spatial-discretisation', type=float, default=1.0,
                        help='Spatial discretisation step size.')
    parser.add_argument('-t', '--temporal-discretisation', type=float, default=1.0,
                        help='Temporal discretisation step size.')
    parser.add_argument('-M', '--M-constant', dest='m_constant', type=float, default=0.1,
                        help='M parameter from Cahn-Hilliard equation.')
    parser.add_argument('-a', '--a-constant', type=float, default=0.1,
                        help='a parameter from chemical potential.')
    parser.add_argument('-k', '--k-constant', type=float, default=0.1,
                        help='Kappa parameter from chemical potential.')
    parser.add_argument('-v', '--initial-value', type=float, default=0.0,
                        help='Initial value of order parameter.')
    parser.add_argument('-p', '--noise', type=float, default=0.1,
                        help='Maximum magnitude of initial noise.')
    parser.add_argument('-n', '--steps', type=int, default=100000,
                        help='Total number of steps to evolve differential equation for.')
    parser.add_argument('-r', '--rows', type=int, default=100,
                        help='Number of rows (y points) in the simulation domain.')
    parser.add_argument('-c', '--cols', type=int, default=100,
                        help='Number of columns (x points) in the simulation domain.')
    parser.add_argument('-o', '--output', type=str, default=None,
                        help='Name of output directory to save output files into '
                             '(default: current time stamp).')
    parser.add_argument('--animate', action='store_true',
                        help='Periodically overwrite the lattice file for animation.')
    parser.add_argument('--snapshot-interval', type=int,
                        default=CahnHilliardSimulator.SNAPSHOT_INTERVAL,
                        help='Steps between lattice snapshots in animate mode.')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducibility')
    parser.add_argument('--workers', type=int, default=1,
                        help='Numba threads for each lattice sweep (1 runs the numpy sweep)')
    parser.add_argument('--plot', action='store_true',
                        help='Save plots of the final lattice and free energy')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable verbose output (default: quiet)')
    return parser


def parameters_from_args(args: argparse.Namespace) -> InputParameters:
    """Build the parameter bundle from parsed arguments."""
    return InputParameters(
        space_step=args.spatial_discretisation,
        time_step=args.temporal_discretisation,
        m_constant=args.m_constant,
        a_constant=args.a_constant,
        k_constant=args.k_constant,
        initial_value=args.initial_value,
        noise=args.noise,
        total_steps=args.steps,
        row_count=args.rows,
        col_count=args.cols,
        output_name=args.output if args.output is not None else get_time_stamp(),
    )


def save_plots(simulator: CahnHilliardSimulator, output: SimulationOutput) -> None:
    # Imported here so runs without --plot never load matplotlib
    from cahn_hilliard.visualizer import LatticeVisualizer

    visualizer = LatticeVisualizer(simulator)
    visualizer.save_figure(visualizer.plot_free_energy(), output.path('freeEnergy.png'))
    visualizer.save_figure(
        visualizer.plot_field(simulator.current_lattice,
                              title=f"Order Parameter after {simulator.steps_taken} steps"),
        output.path('lattice.png'))


def main(argv=None) -> int:
    timer_start = time.time()

    parser = build_parser()
    args = parser.parse_args(argv)

    # Set up logging
    logging.basicConfig(level=logging.INFO, format='%(message)s')
    if not args.verbose:
        logging.getLogger().setLevel(logging.WARNING)

    parameters = parameters_from_args(args)
    try:
        parameters.validate()
    except ValueError as e:
        parser.error(str(e))
    if args.snapshot_interval <= 0:
        parser.error(f"Snapshot interval must be positive, got {args.snapshot_interval}")

    # Print input parameters to command line
    print(parameters)

    with SimulationOutput(parameters.output_name) as output:
        output.write_parameters(parameters)

        simulator = CahnHilliardSimulator(
            parameters,
            generator=np.random.default_rng(args.seed),
            output=output,
            animate=args.animate,
            snapshot_interval=args.snapshot_interval,
            workers=args.workers,
        )
        simulator.run()

        if args.plot:
            save_plots(simulator, output)

    # Report how long the program took to execute
    elapsed = time.time() - timer_start
    print(f"{'Time taken to execute(s): ':<{OUTPUT_COLUMN_WIDTH}}{elapsed:.3f}\n")
    return 0
