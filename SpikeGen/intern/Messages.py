"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.intern import ConfigManagement

class SpikeGenException(Exception):
    """
    Custom exception that can be catched in some cases (IO) instead of quitting.
    """
    def __init__(self, message):
        super(SpikeGenException, self).__init__(message)

class ModelAuthoringError(SpikeGenException):
    """
    Raised when a model definition references something that does not exist,
    e.g. a placeholder which is left unexpanded after all substitution passes.

    The offending symbol is stored in *identifier* (None if not applicable).
    """
    def __init__(self, message, identifier=None):
        super(ModelAuthoringError, self).__init__(message)
        self.identifier = identifier

class InvalidConfiguration(SpikeGenException):
    """
    The requested combination of features is not implemented.
    """
    def __init__(self, msg):
        super(InvalidConfiguration, self).__init__("The configuration you requested is not implemented in SpikeGen: " + msg)

class DataCorruptionError(SpikeGenException):
    """
    Raised if a persisted connectivity file contains fewer elements than requested.
    """
    pass

def _join(var_text):
    "Message made of the str() of all arguments, separated by spaces."
    return ' '.join([str(var) for var in var_text])

def _print(*var_text, end="\n", flush=False):
    """
    Prints a message to standard out.
    """
    print(_join(var_text), end=end, flush=flush)

def _debug(*var_text):
    """
    Prints a message to standard out, only in verbose mode.
    """
    if ConfigManagement.get_global_config('verbose'):
        print(_join(var_text))

def _warning(*var_text):
    """
    Prints a warning, unless warnings are suppressed with setup(suppress_warnings=True).
    """
    if not ConfigManagement.get_global_config('suppress_warnings'):
        print('WARNING:', _join(var_text))

def _info(*var_text):
    if not ConfigManagement.get_global_config('suppress_warnings'):
        print('INFO:', _join(var_text))

def _error(*var_text, **args):
    """
    Raises a SpikeGenException with the message.

    With exit=False, the message is only printed.
    """
    if args.get('exit', True):
        raise SpikeGenException(_join(var_text))

    print('ERROR:', _join(var_text))
