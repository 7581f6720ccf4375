"""
Example of spinodal decomposition: a noisy mixture at phi = 0 separating into two phases.
"""
import tempfile
import numpy as np
import matplotlib.pyplot as plt
from cahn_hilliard import CahnHilliardSimulator, InputParameters, SimulationOutput
from cahn_hilliard.output import read_frames, LATTICE_FILE
from cahn_hilliard.visualizer import LatticeVisualizer


def main():
    params = InputParameters(space_step=1.0, time_step=0.5, m_constant=0.1,
                             a_constant=0.1, k_constant=0.1, initial_value=0.0,
                             noise=0.1, total_steps=20000, row_count=64, col_count=64)
    print(params)

    with tempfile.TemporaryDirectory() as tmp:
        with SimulationOutput(tmp) as output:
            simulator = CahnHilliardSimulator(params, generator=np.random.default_rng(1),
                                              output=output, workers=4)
            final = simulator.run()

        # Initial and final frames of the run
        frames = read_frames(output.path(LATTICE_FILE), params.col_count, params.row_count)

    print(f"Free energy: {simulator.energy_history[0][1]:.4f} -> {simulator.energy_history[-1][1]:.4f}")
    print(f"Mean order parameter: {np.mean(frames[0].field):+.6f} -> {np.mean(final.field):+.6f}")
    print(f"Execution time: {simulator.execution_time:.3f} seconds")

    visualizer = LatticeVisualizer(simulator)
    fig, axes = plt.subplots(1, 3, figsize=(20, 6))
    visualizer.plot_field(frames[0], title="Initial Order Parameter", ax=axes[0])
    visualizer.plot_field(final, title=f"After {params.total_steps} steps", ax=axes[1])
    visualizer.plot_free_energy(ax=axes[2])
    plt.tight_layout()

    visualizer.animate_frames(frames)
    plt.show()


if __name__ == '__main__':
    main()
