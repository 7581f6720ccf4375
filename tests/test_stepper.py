import unittest
import numpy as np
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cahn_hilliard.lattice import CHLattice
from cahn_hilliard.stepper import update, evolve


class TestUpdate(unittest.TestCase):
    def setUp(self):
        """Noisy lattice with a fixed seed, plus a second buffer for the sweep."""
        self.current = CHLattice(8, 6, 0.1, 0.1, 0.1, 1.0)
        self.current.initialise(0.0, 0.1, np.random.default_rng(42))
        self.updated = self.current.copy()

    def test_update_isolation(self):
        """The source is untouched and every destination site comes from the pre-sweep state."""
        before = self.current.field.copy()
        update(self.current, self.updated, 0.5)

        np.testing.assert_array_equal(self.current.field, before)
        for y in range(self.current.height):
            for x in range(self.current.width):
                self.assertEqual(self.updated.site_value(x, y),
                                 self.current.next_value(x, y, 0.5))

    def test_in_place_update_differs(self):
        """An in-place site-by-site sweep reads already written values and gives a different state."""
        in_place = self.current.copy()
        for x in range(in_place.width):
            for y in range(in_place.height):
                in_place.set_site_value(x, y, in_place.next_value(x, y, 0.5))

        update(self.current, self.updated, 0.5)
        self.assertFalse(np.array_equal(in_place.field, self.updated.field))

    def test_parallel_sweep_matches_serial(self):
        serial = self.current.copy()
        update(self.current, serial, 0.5)
        for workers in (2, 3, 16):
            parallel = self.current.copy()
            update(self.current, parallel, 0.5, workers=workers)
            np.testing.assert_allclose(parallel.field, serial.field, rtol=1e-13, atol=1e-15)

    def test_parallel_sweep_wraps_edges(self):
        """A single bump on the corner site spreads across both periodic boundaries."""
        current = CHLattice(5, 4, 0.1, 0.1, 0.1, 1.0)
        current.set_site_value(0, 0, 0.5)
        parallel = current.copy()
        update(current, parallel, 0.5, workers=2)

        for y in range(current.height):
            for x in range(current.width):
                self.assertAlmostEqual(parallel.site_value(x, y),
                                       current.next_value(x, y, 0.5), places=14)
        self.assertNotEqual(parallel.site_value(4, 0), 0.0)
        self.assertNotEqual(parallel.site_value(0, 3), 0.0)

    def test_parallel_sweep_isolation(self):
        before = self.current.field.copy()
        update(self.current, self.updated, 0.5, workers=4)
        np.testing.assert_array_equal(self.current.field, before)

    def test_shape_mismatch(self):
        other = CHLattice(6, 8, 0.1, 0.1, 0.1, 1.0)
        with self.assertRaises(ValueError):
            update(self.current, other, 0.5)

    def test_aliased_buffers(self):
        with self.assertRaises(ValueError):
            update(self.current, self.current, 0.5)

        view = CHLattice(8, 6, 0.1, 0.1, 0.1, 1.0)
        view.field = self.current.field
        with self.assertRaises(ValueError):
            update(self.current, view, 0.5)

    def test_trivial_solution_stationary(self):
        """4x4 lattice at phi = 0 with no noise stays at zero with zero free energy."""
        current = CHLattice(4, 4, 0.1, 0.1, 0.1, 1.0)
        current.initialise(0.0, 0.0)
        updated = current.copy()
        self.assertEqual(current.total_free_energy(), 0.0)

        update(current, updated, 1.0)
        self.assertTrue(np.all(updated.field == 0.0))
        self.assertEqual(updated.total_free_energy(), 0.0)

    def test_mass_conserved(self):
        """The update is a discrete divergence, so the mean order parameter is unchanged."""
        update(self.current, self.updated, 0.1)
        self.assertAlmostEqual(np.sum(self.updated.field), np.sum(self.current.field), places=12)


class TestBufferSwap(unittest.TestCase):
    def test_swap_matches_fresh_allocation(self):
        start = CHLattice(10, 7, 0.1, 0.1, 0.1, 1.0)
        start.initialise(0.0, 0.1, np.random.default_rng(2024))

        current, updated = start.copy(), start.copy()
        for _ in range(25):
            update(current, updated, 0.5)
            current, updated = updated, current

        reference = evolve(start, 25, 0.5)
        np.testing.assert_array_equal(current.field, reference.field)
        # evolve works on a copy
        self.assertFalse(np.array_equal(start.field, reference.field))

    def test_free_energy_decreases(self):
        """For a stable time step the free energy falls over a run."""
        current = CHLattice(16, 16, 0.1, 0.1, 0.1, 1.0)
        current.initialise(0.0, 0.1, np.random.default_rng(5))
        updated = current.copy()

        energies = [current.total_free_energy()]
        for _ in range(50):
            update(current, updated, 0.5)
            current, updated = updated, current
            energies.append(current.total_free_energy())

        self.assertLess(energies[-1], energies[0])


if __name__ == '__main__':
    unittest.main()
