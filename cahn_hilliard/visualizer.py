"""
Visualization module for Cahn-Hilliard lattices and free energy series.
"""
import numpy as np
import matplotlib.pyplot as plt
import matplotlib.animation as animation
from typing import List, Optional

from cahn_hilliard.lattice import CHLattice


class LatticeVisualizer:
    """
    Plots order parameter fields, free energy curves and snapshot animations.
    """

    def __init__(self, simulator=None):
        """
        Initialize the visualizer.

        Args:
            simulator: Optional CahnHilliardSimulator whose results are plotted by default
        """
        self.simulator = simulator

        # Default visualization settings
        self.cmap = 'RdBu_r'        # Diverging map, the two phases in red and blue
        self.energy_color = '#3366CC'

        # Animation settings
        self.interval = 200  # ms between frames
        self.fig = None
        self.ani = None

    def plot_field(self, lattice: CHLattice, title: str = 'Order Parameter',
                   ax=None, vmin: Optional[float] = None, vmax: Optional[float] = None):
        """
        Plot the order parameter of a lattice.

        The highest y row is drawn at the top, matching the text layout of lattice.dat.

        Args:
            lattice: Lattice to plot
            title: Plot title
            ax: Optional matplotlib axis to plot on
            vmin, vmax: Colour limits; symmetric around zero by default
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=(8, 8))
            standalone = True
        else:
            standalone = False

        if vmin is None or vmax is None:
            bound = float(np.max(np.abs(lattice.field))) or 1.0
            vmin, vmax = -bound, bound

        image = ax.imshow(lattice.field, origin='lower', cmap=self.cmap,
                          vmin=vmin, vmax=vmax, interpolation='nearest')
        ax.set_xlabel('x')
        ax.set_ylabel('y')
        ax.set_title(title)
        ax.figure.colorbar(image, ax=ax, label=r'$\phi$')

        if standalone:
            plt.tight_layout()
            return fig
        return ax

    def plot_free_energy(self, steps=None, energies=None, ax=None):
        """
        Plot the extensive free energy against the step index.

        Args:
            steps: Step indices; taken from the simulator if omitted
            energies: Free energies; taken from the simulator if omitted
            ax: Optional matplotlib axis to plot on
        """
        if steps is None or energies is None:
            if self.simulator is None:
                raise ValueError("No free energy series given and no simulator attached")
            steps, energies = self.simulator.energy_series()

        if ax is None:
            fig, ax = plt.subplots(figsize=(10, 6))
            standalone = True
        else:
            standalone = False

        ax.plot(steps, energies, color=self.energy_color, linewidth=1.5)
        ax.set_xlabel('Step')
        ax.set_ylabel('Free energy')
        ax.set_title('Extensive Free Energy')
        ax.grid(True, alpha=0.3)

        if standalone:
            plt.tight_layout()
            return fig
        return ax

    def animate_frames(self, frames: List[CHLattice]):
        """
        Create an animation from a list of snapshot lattices.

        Returns:
            Animation object, or None if there are no frames
        """
        if not frames:
            print("No frames to animate.")
            return None

        bound = max(float(np.max(np.abs(frame.field))) for frame in frames) or 1.0
        fig, ax = plt.subplots(figsize=(8, 8))
        image = ax.imshow(frames[0].field, origin='lower', cmap=self.cmap,
                          vmin=-bound, vmax=bound, interpolation='nearest')
        fig.colorbar(image, ax=ax, label=r'$\phi$')

        def update(frame):
            image.set_data(frames[frame].field)
            ax.set_title(f"Order Parameter - Frame {frame}/{len(frames) - 1}")
            return (image,)

        self.ani = animation.FuncAnimation(
            fig, update, frames=len(frames), interval=self.interval,
            blit=False, repeat=True)

        # Store reference to avoid garbage collection
        self.fig = fig
        return self.ani

    def show_final_analysis(self):
        """
        Two-panel figure of the simulator's final field and its free energy curve.
        """
        if self.simulator is None or self.simulator.current_lattice is None:
            print("No simulation results to analyze.")
            return None

        fig, axes = plt.subplots(1, 2, figsize=(16, 7))
        self.plot_field(self.simulator.current_lattice,
                        title=f"Order Parameter after {self.simulator.steps_taken} steps",
                        ax=axes[0])
        self.plot_free_energy(ax=axes[1])
        plt.tight_layout()
        return fig

    def save_figure(self, fig, filename: str, dpi: int = 150) -> None:
        """Save a figure and close it."""
        fig.savefig(filename, dpi=dpi, bbox_inches='tight')
        plt.close(fig)

    def save_animation(self, filename: str, fps: int = 10) -> bool:
        """
        Save the current animation to file.

        Args:
            filename: Output filename (e.g., 'animation.mp4', 'animation.gif')
            fps: Frames per second

        Returns:
            True if the animation was written
        """
        if self.ani is None:
            print("No animation to save.")
            return False

        # Determine writer based on file extension
        extension = filename.split('.')[-1].lower()

        if extension == 'mp4':
            writer = animation.FFMpegWriter(fps=fps)
        elif extension == 'gif':
            writer = animation.PillowWriter(fps=fps)
        else:
            print(f"Unsupported file format: {extension}")
            return False

        print(f"Saving animation to {filename}...")
        self.ani.save(filename, writer=writer)
        print("Animation saved successfully!")
        return True
