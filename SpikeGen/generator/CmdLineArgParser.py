"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import argparse
from SpikeGen.intern import Messages
from SpikeGen.intern import ConfigManagement

class CmdLineArgParser(object):
    """
    Scripts generating SpikeGen models can be run with several command line
    arguments overriding the configuration. These are checked with the
    ArgumentParser provided by Python.

    Unknown arguments are ignored, as the script may have its own.
    """
    def __init__(self):
        # Create parser instance
        self.setup_parser()

    def setup_parser(self):
        """
        We setup the list of possible command line arguments.
        """
        self.parser = argparse.ArgumentParser(description='SpikeGen: code generation for spiking neural networks.', add_help=False, allow_abbrev=False)

        group = self.parser.add_argument_group('General')
        group.add_argument("-c", "--clean", help="Forces the generated files to be written again.", action="store_true", default=False, dest="clean")
        group.add_argument("--prec", help="Set the floating precision used (float or double).", action="store", type=str, default=None, dest="precision")
        group.add_argument("--paradigm", help="Target of the code generation (cpu or mpi).", action="store", type=str, default=None, dest="paradigm")

        group = self.parser.add_argument_group('Debugging')
        group.add_argument("-d", "--debug", help="Compilation with debug symbols.", action="store_true", default=False, dest="debug")
        group.add_argument("-v", "--verbose", help="Shows all messages.", action="store_true", default=None, dest="verbose")

    def parse_arguments_for_setup(self):
        """
        We already parse the arguments which should be known before **any** other SpikeGen call has happened.
        """
        options, _ = self.parser.parse_known_args()

        # Verbose
        if options.verbose is not None:
            ConfigManagement.setup(verbose = options.verbose)

        if options.debug:
            ConfigManagement._update_global_config('debug', True)

        # Precision
        if options.precision is not None:
            if options.precision not in ["float", "double"]:
                Messages._error("--prec accepts only one of the following values: float, double")
            ConfigManagement._update_global_config('precision', options.precision)

        # Target
        if options.paradigm is not None:
            if options.paradigm not in ["cpu", "mpi"]:
                Messages._error("--paradigm accepts only one of the following values: cpu, mpi")
            ConfigManagement._update_global_config('paradigm', options.paradigm)

        return options
