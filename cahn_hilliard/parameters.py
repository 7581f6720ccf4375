"""
Input parameters for the Cahn-Hilliard solver.

The parameter bundle just holds the physical and numerical constants of a run
and knows how to print itself as a table for the command line or a file.
"""
from dataclasses import dataclass

from cahn_hilliard.lattice import CHLattice

# Width of the label column in the parameter table
OUTPUT_COLUMN_WIDTH = 30


@dataclass(frozen=True)
class InputParameters:
    """
    Immutable record of the constants consumed by the lattice and the time-stepping loop.
    """
    space_step: float = 1.0      # Spatial discretisation step
    time_step: float = 1.0       # Temporal discretisation step
    m_constant: float = 0.1      # M positive constant from the Cahn-Hilliard equation
    a_constant: float = 0.1      # a constant from the chemical potential
    k_constant: float = 0.1      # kappa constant from the chemical potential
    initial_value: float = 0.0   # phi_0 initial value of the order parameter
    noise: float = 0.1           # Maximum magnitude of initial noise
    total_steps: int = 100000    # Number of steps to evolve the equation for
    row_count: int = 100         # Number of rows (y values) in the domain
    col_count: int = 100         # Number of columns (x values) in the domain
    output_name: str = ''        # Name of the output directory

    def validate(self) -> None:
        """
        Check the bundle describes a runnable simulation.

        Raises:
            ValueError: If a dimension or step size is not positive, or the noise or
                step count is negative.
        """
        if self.row_count <= 0 or self.col_count <= 0:
            raise ValueError(
                f"Domain must have positive dimensions, got {self.row_count}x{self.col_count}")
        if self.space_step <= 0:
            raise ValueError(f"Spatial discretisation step must be positive, got {self.space_step}")
        if self.time_step <= 0:
            raise ValueError(f"Temporal discretisation step must be positive, got {self.time_step}")
        if self.noise < 0:
            raise ValueError(f"Initial noise magnitude cannot be negative, got {self.noise}")
        if self.total_steps < 0:
            raise ValueError(f"Total steps cannot be negative, got {self.total_steps}")

    def make_lattice(self) -> CHLattice:
        """Create a zeroed lattice with the dimensions and constants of this run."""
        return CHLattice(self.col_count, self.row_count,
                         self.m_constant, self.a_constant, self.k_constant,
                         self.space_step)

    def rows(self):
        """Label/value pairs in the order they appear in the table."""
        return [
            ('Spatial-discretisation: ', self.space_step),
            ('Temporal-discretisation: ', self.time_step),
            ('M: ', self.m_constant),
            ('a: ', self.a_constant),
            ('k: ', self.k_constant),
            ('Initial-value: ', self.initial_value),
            ('Initial-noise: ', self.noise),
            ('Total-steps: ', self.total_steps),
            ('Domain-rows: ', self.row_count),
            ('Domain-cols: ', self.col_count),
            ('Output-directory: ', self.output_name),
        ]

    def __str__(self) -> str:
        lines = ['Input-Parameters...']
        for label, value in self.rows():
            lines.append(f"{label:<{OUTPUT_COLUMN_WIDTH}}{_format_value(value)}")
        return '\n'.join(lines) + '\n'


def _format_value(value) -> str:
    # Floats get the shortest general form (1 -> "1", 0.1 -> "0.1")
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)
