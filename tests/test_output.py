import builtins
import unittest
import tempfile
from unittest.mock import patch
import numpy as np
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cahn_hilliard.lattice import CHLattice
from cahn_hilliard.output import (SimulationOutput, get_time_stamp, read_energy_series,
                                  read_frames, LATTICE_FILE, FREE_ENERGY_FILE,
                                  FREE_ENERGY_DENSITY_FILE, PARAMETER_FILE)
from cahn_hilliard.parameters import InputParameters


class TestSimulationOutput(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.directory = os.path.join(self.tmp.name, 'nested', 'run')
        self.output = SimulationOutput(self.directory)

    def tearDown(self):
        self.output.close()
        self.tmp.cleanup()

    def read(self, name):
        with open(os.path.join(self.directory, name)) as f:
            return f.read()

    def test_creates_directory(self):
        self.assertTrue(os.path.isdir(self.directory))
        self.assertTrue(os.path.exists(os.path.join(self.directory, LATTICE_FILE)))
        self.assertTrue(os.path.exists(os.path.join(self.directory, FREE_ENERGY_FILE)))

    def test_parameters(self):
        params = InputParameters(output_name='run')
        self.output.write_parameters(params)
        self.assertTrue(self.read(PARAMETER_FILE).startswith('Input-Parameters...\n'))

    def test_appended_frames(self):
        lattice = CHLattice(3, 2, 0.1, 0.1, 0.1, 1.0)
        self.output.write_frame(lattice)
        lattice.set_site_value(0, 0, 0.5)
        self.output.write_frame(lattice)

        text = self.read(LATTICE_FILE)
        self.assertEqual(len(text.splitlines()), 4)
        frames = read_frames(os.path.join(self.directory, LATTICE_FILE), 3, 2)
        self.assertEqual(len(frames), 2)
        self.assertEqual(frames[0].site_value(0, 0), 0.0)
        self.assertEqual(frames[1].site_value(0, 0), 0.5)

    def test_rewound_frame_leaves_no_residue(self):
        """Overwriting with a shorter frame truncates what was left of the longer one."""
        lattice = CHLattice(3, 2, 0.1, 0.1, 0.1, 1.0)
        lattice.initialise(-10.0, 0.0)
        self.output.write_frame(lattice)
        self.output.write_frame(lattice)

        lattice.initialise(0.0, 0.0)
        self.output.write_frame(lattice, rewind=True)

        self.assertEqual(self.read(LATTICE_FILE), lattice.to_text())
        self.assertEqual(self.output.frames_written, 3)

    def test_energy_lines(self):
        self.output.write_energy(0, 1.25)
        self.output.write_energy(1, -0.5)
        self.assertEqual(self.read(FREE_ENERGY_FILE), "0 1.25\n1 -0.5\n")

        steps, energies = read_energy_series(os.path.join(self.directory, FREE_ENERGY_FILE))
        np.testing.assert_array_equal(steps, [0, 1])
        np.testing.assert_allclose(energies, [1.25, -0.5])

    def test_free_energy_density(self):
        lattice = CHLattice(2, 2, 0.1, 0.1, 0.1, 1.0)
        self.output.write_free_energy_density(lattice)
        self.assertEqual(self.read(FREE_ENERGY_DENSITY_FILE), lattice.free_energy_density_text())

    def test_close_is_idempotent(self):
        self.output.close()
        self.output.close()
        self.assertTrue(self.output.lattice_file.closed)

    def test_failed_open_closes_lattice_file(self):
        """If freeEnergy.dat cannot be opened, lattice.dat is not left open."""
        handles = []

        def open_or_fail(path, mode='r', *args, **kwargs):
            if path.endswith(FREE_ENERGY_FILE):
                raise OSError("No space left on device")
            handle = builtins.open(path, mode, *args, **kwargs)
            handles.append(handle)
            return handle

        directory = os.path.join(self.tmp.name, 'failing')
        with patch('cahn_hilliard.output.open', side_effect=open_or_fail, create=True):
            with self.assertRaises(OSError):
                SimulationOutput(directory)

        self.assertEqual(len(handles), 1)
        self.assertTrue(handles[0].closed)


class TestReaders(unittest.TestCase):
    def test_ragged_frame(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'frames.dat')
            with open(path, 'w') as f:
                f.write("+0.1 +0.2\n+0.3\n")
            with self.assertRaises(ValueError):
                read_frames(path, 2, 2)

    def test_wrong_width_frame(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'frames.dat')
            with open(path, 'w') as f:
                f.write("+0.1 +0.2 +0.3\n+0.4 +0.5 +0.6\n")
            with self.assertRaises(ValueError):
                read_frames(path, 2, 2)

    def test_trailing_rows_ignored(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'frames.dat')
            with open(path, 'w') as f:
                f.write("+0.1 +0.2\n+0.3 +0.4\n+0.5 +0.6\n")
            with self.assertLogs('cahn_hilliard.output', level='WARNING'):
                frames = read_frames(path, 2, 2)

        self.assertEqual(len(frames), 1)
        self.assertEqual(frames[0].site_value(0, 1), 0.1)
        self.assertEqual(frames[0].site_value(1, 0), 0.4)

    def test_empty_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'frames.dat')
            open(path, 'w').close()
            self.assertEqual(read_frames(path, 2, 2), [])

    def test_time_stamp(self):
        stamp = get_time_stamp()
        self.assertRegex(stamp, r'^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}$')


if __name__ == '__main__':
    unittest.main()
