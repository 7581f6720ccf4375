"""
Runner script for the Cahn-Hilliard solver.
This script evolves a noisy order parameter lattice and writes the free energy and lattice snapshots.
"""
import sys

from cahn_hilliard.cli import main

if __name__ == "__main__":
    sys.exit(main())
