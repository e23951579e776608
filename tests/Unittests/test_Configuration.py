"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import sys
import unittest
from unittest import mock

from SpikeGen import setup, get_global_config, SpikeGenException
from SpikeGen.intern.ConfigManagement import ConfigManager, _check_paradigm, _check_precision
from SpikeGen.generator.CmdLineArgParser import CmdLineArgParser

class test_GlobalConfiguration(unittest.TestCase):
    """
    Global flags set with setup().
    """
    def setUp(self):
        ConfigManager().reset()

    def tearDown(self):
        ConfigManager().reset()

    def test_defaults(self):
        self.assertEqual(get_global_config('dt'), 0.1)
        self.assertEqual(get_global_config('paradigm'), 'cpu')
        self.assertEqual(get_global_config('precision'), 'float')
        self.assertEqual(get_global_config('seed'), -1)

    def test_singleton(self):
        self.assertIs(ConfigManager(), ConfigManager())

    def test_setup(self):
        setup(dt=0.5, precision="double", paradigm="mpi")
        self.assertEqual(get_global_config('dt'), 0.5)
        self.assertTrue(_check_precision("double"))
        self.assertTrue(_check_paradigm("mpi"))

    def test_reset(self):
        setup(dt=0.5)
        ConfigManager().reset()
        self.assertEqual(get_global_config('dt'), 0.1)

    def test_invalid_value(self):
        with self.assertRaises(SpikeGenException):
            setup(paradigm="gpu")
        with self.assertRaises(SpikeGenException):
            setup(precision="half")

    def test_unknown_key(self):
        setup(suppress_warnings=True)
        setup(num_threads=4)
        self.assertNotIn('num_threads', ConfigManager().keys())

    def test_unknown_key_access(self):
        with self.assertRaises(SpikeGenException):
            get_global_config('num_threads')

    def test_copy_of_configuration(self):
        config = ConfigManager().get_config()
        config['dt'] = 1.0
        self.assertEqual(get_global_config('dt'), 0.1)


class test_CommandLine(unittest.TestCase):
    """
    Command line arguments overriding the configuration.
    """
    def setUp(self):
        ConfigManager().reset()
        self.parser = CmdLineArgParser()

    def tearDown(self):
        ConfigManager().reset()

    def test_known_arguments(self):
        options, unknown = self.parser.parser.parse_known_args(['--prec', 'double', '-c', '--iterations', '10'])
        self.assertEqual(options.precision, 'double')
        self.assertTrue(options.clean)
        self.assertFalse(options.debug)
        self.assertEqual(unknown, ['--iterations', '10'])

    def test_setup_from_command_line(self):
        with mock.patch.object(sys, 'argv', ['model.py', '--prec', 'double', '--paradigm', 'mpi', '-d']):
            self.parser.parse_arguments_for_setup()

        self.assertEqual(get_global_config('precision'), 'double')
        self.assertEqual(get_global_config('paradigm'), 'mpi')
        self.assertTrue(get_global_config('debug'))

    def test_verbose(self):
        with mock.patch.object(sys, 'argv', ['model.py', '-v']):
            self.parser.parse_arguments_for_setup()
        self.assertTrue(get_global_config('verbose'))

    def test_no_argument(self):
        with mock.patch.object(sys, 'argv', ['model.py']):
            self.parser.parse_arguments_for_setup()
        self.assertFalse(get_global_config('verbose'))
        self.assertEqual(get_global_config('precision'), 'float')

    def test_invalid_precision(self):
        with mock.patch.object(sys, 'argv', ['model.py', '--prec', 'half']):
            with self.assertRaises(SpikeGenException):
                self.parser.parse_arguments_for_setup()

    def test_invalid_paradigm(self):
        with mock.patch.object(sys, 'argv', ['model.py', '--paradigm', 'cuda']):
            with self.assertRaises(SpikeGenException):
                self.parser.parse_arguments_for_setup()
