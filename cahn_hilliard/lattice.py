"""
Lattice for an order parameter evolved in time by the Cahn-Hilliard equation.

The lattice is a 2D array of floating point values representing the order
parameter phi at some time t, with periodic boundary conditions in both
directions. Each site can be advanced one step with the explicit Euler scheme.
"""
import io
import numbers

import numpy as np
from typing import Iterable, Optional, TextIO, Tuple


class CHLattice:
    """
    2D periodic lattice of order parameter values with the Cahn-Hilliard physics.

    Sites are addressed as (x, y) with 0 <= x < width and 0 <= y < height, but any
    integer pair is accepted and wrapped onto the torus. Values are stored row-major
    in a numpy array of shape (height, width), so site (x, y) lives at field[y, x].
    """

    def __init__(self, width: int, height: int, M: float, a: float, k: float, dx: float):
        """
        Create a zero-initialised lattice.

        Args:
            width: Number of x values in the domain
            height: Number of y values in the domain
            M: Mobility constant from the Cahn-Hilliard equation
            a: Depth of the double-well term in the chemical potential
            k: Kappa (gradient energy) constant in the chemical potential
            dx: Spatial discretisation step size

        Raises:
            ValueError: If either dimension is not a positive integer or the spatial
                step is not positive
        """
        if not isinstance(width, numbers.Integral) or not isinstance(height, numbers.Integral):
            raise ValueError(f"Lattice dimensions must be integers, got {width!r}x{height!r}")
        if width <= 0 or height <= 0:
            raise ValueError(f"Lattice dimensions must be positive, got {width}x{height}")
        if dx <= 0:
            raise ValueError(f"Spatial discretisation step must be positive, got {dx}")

        self.width = int(width)
        self.height = int(height)
        self.M = float(M)
        self.a = float(a)
        self.k = float(k)
        self.dx = float(dx)
        self.field = np.zeros((self.height, self.width), dtype=np.float64)

    @property
    def shape(self) -> Tuple[int, int]:
        """Shape of the backing array, (height, width)."""
        return self.field.shape

    def copy(self) -> 'CHLattice':
        """Return an independent lattice with the same constants and values."""
        other = CHLattice(self.width, self.height, self.M, self.a, self.k, self.dx)
        other.field[...] = self.field
        return other

    def initialise(self, initial_value: float, noise: float,
                   generator: Optional[np.random.Generator] = None) -> None:
        """
        Set every site to the initial value plus uniformly distributed noise.

        Args:
            initial_value: Value of the order parameter before noise is added
            noise: Maximum magnitude of the noise, drawn from [-noise, noise] per site
            generator: Random source; a fresh unseeded generator is used if omitted
        """
        if noise < 0:
            raise ValueError(f"Noise magnitude cannot be negative, got {noise}")
        if generator is None:
            generator = np.random.default_rng()

        self.field[...] = initial_value + generator.uniform(-noise, noise, size=self.field.shape)

    # ------------------------------------------------------------------
    # Site access
    # ------------------------------------------------------------------

    def wrap(self, x: int, y: int) -> Tuple[int, int]:
        """Map any integer coordinates onto the periodic domain."""
        return x % self.width, y % self.height

    def site_value(self, x: int, y: int) -> float:
        """Value of the order parameter at (x, y), with periodic wraparound."""
        return self.field[y % self.height, x % self.width]

    def set_site_value(self, x: int, y: int, value: float) -> None:
        """Set the order parameter at (x, y), with periodic wraparound."""
        self.field[y % self.height, x % self.width] = value

    # ------------------------------------------------------------------
    # Per-site physics
    # ------------------------------------------------------------------

    def chemical_potential(self, x: int, y: int) -> float:
        """
        Chemical potential at a site for the current state.

        mu = -a*phi + a*phi^3 - k/dx^2 * (discrete Laplacian of phi)
        """
        phi = self.site_value(x, y)
        neighbours = (self.site_value(x + 1, y) + self.site_value(x - 1, y)
                      + self.site_value(x, y + 1) + self.site_value(x, y - 1) - 4 * phi)

        return -self.a * phi + self.a * phi * phi * phi - self.k / (self.dx * self.dx) * neighbours

    def free_energy_density(self, x: int, y: int) -> float:
        """
        Local free energy density, using central differences for the gradient.

        f = -a/2*phi^2 + a/4*phi^4 + k/2*|grad phi|^2
        """
        phi = self.site_value(x, y)
        grad_x = (self.site_value(x + 1, y) - self.site_value(x - 1, y)) / (2 * self.dx)
        grad_y = (self.site_value(x, y + 1) - self.site_value(x, y - 1)) / (2 * self.dx)
        grad_squared = grad_x * grad_x + grad_y * grad_y

        return (-self.a / 2 * phi * phi + self.a / 4 * phi * phi * phi * phi
                + self.k / 2 * grad_squared)

    def next_value(self, x: int, y: int, dt: float) -> float:
        """
        Value of the order parameter at (x, y) after one explicit Euler step.

        phi' = phi + M*dt/dx^2 * (discrete Laplacian of mu)

        Args:
            x: x coordinate of the site
            y: y coordinate of the site
            dt: Temporal discretisation step size

        Returns:
            The updated value; the lattice itself is not modified.
        """
        coefficient = self.M * dt / (self.dx * self.dx)
        mu = self.chemical_potential(x, y)
        laplacian = (self.chemical_potential(x + 1, y) + self.chemical_potential(x - 1, y)
                     + self.chemical_potential(x, y + 1) + self.chemical_potential(x, y - 1)
                     - 4 * mu)

        return self.site_value(x, y) + coefficient * laplacian

    # ------------------------------------------------------------------
    # Whole-grid physics
    #
    # These evaluate the same expressions as the per-site methods, in the same
    # operation order, so both paths give identical values.
    # ------------------------------------------------------------------

    @staticmethod
    def _neighbour_sum(values: np.ndarray) -> np.ndarray:
        # right + left + up + down, matching the per-site order
        return (np.roll(values, -1, axis=1) + np.roll(values, 1, axis=1)
                + np.roll(values, -1, axis=0) + np.roll(values, 1, axis=0))

    def chemical_potential_field(self) -> np.ndarray:
        """Chemical potential at every site, shape (height, width)."""
        phi = self.field
        neighbours = self._neighbour_sum(phi) - 4 * phi

        return -self.a * phi + self.a * phi * phi * phi - self.k / (self.dx * self.dx) * neighbours

    def free_energy_density_field(self) -> np.ndarray:
        """Free energy density at every site, shape (height, width)."""
        phi = self.field
        grad_x = (np.roll(phi, -1, axis=1) - np.roll(phi, 1, axis=1)) / (2 * self.dx)
        grad_y = (np.roll(phi, -1, axis=0) - np.roll(phi, 1, axis=0)) / (2 * self.dx)
        grad_squared = grad_x * grad_x + grad_y * grad_y

        return (-self.a / 2 * phi * phi + self.a / 4 * phi * phi * phi * phi
                + self.k / 2 * grad_squared)

    def next_field(self, dt: float) -> np.ndarray:
        """Order parameter at every site after one explicit Euler step."""
        coefficient = self.M * dt / (self.dx * self.dx)
        mu = self.chemical_potential_field()
        laplacian = self._neighbour_sum(mu) - 4 * mu

        return self.field + coefficient * laplacian

    def total_free_energy(self) -> float:
        """Extensive free energy: the free energy density summed over all sites."""
        return float(np.sum(self.free_energy_density_field()))

    # ------------------------------------------------------------------
    # Text output
    # ------------------------------------------------------------------

    @staticmethod
    def _grid_text(values: np.ndarray) -> str:
        # Top row is the highest y index, columns run left to right
        lines = []
        for row in values[::-1]:
            lines.append(''.join(f"{value:+.6f} " for value in row))
        return '\n'.join(lines) + '\n'

    def to_text(self) -> str:
        """Order parameter formatted as a text grid, highest y row first."""
        return self._grid_text(self.field)

    def free_energy_density_text(self) -> str:
        """Free energy density formatted in the same layout as to_text()."""
        return self._grid_text(self.free_energy_density_field())

    def write(self, stream: TextIO) -> None:
        """Stream the lattice as a text grid."""
        stream.write(self.to_text())

    @classmethod
    def from_rows(cls, rows: Iterable[Iterable[float]], M: float, a: float, k: float,
                  dx: float) -> 'CHLattice':
        """
        Build a lattice from rows of values listed in text-grid order.

        Args:
            rows: Rows of values, the first row being y = height - 1
            M, a, k, dx: Lattice constants

        Returns:
            A new lattice holding the values
        """
        values = np.array([list(row) for row in rows], dtype=np.float64)
        if values.ndim != 2 or values.size == 0:
            raise ValueError("Lattice rows must form a non-empty rectangular grid")

        lattice = cls(values.shape[1], values.shape[0], M, a, k, dx)
        lattice.field[...] = values[::-1]
        return lattice

    @classmethod
    def from_text(cls, text: str, M: float, a: float, k: float, dx: float) -> 'CHLattice':
        """Parse a text grid produced by to_text() back into a lattice."""
        if not text.strip():
            raise ValueError("Lattice text is empty")
        # np.loadtxt raises ValueError for ragged rows
        values = np.loadtxt(io.StringIO(text), ndmin=2)
        return cls.from_rows(values, M, a, k, dx)

    def __repr__(self) -> str:
        return (f"CHLattice(width={self.width}, height={self.height}, M={self.M}, "
                f"a={self.a}, k={self.k}, dx={self.dx})")
