"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from typing import Union
import copy

from SpikeGen.intern import Messages

default_config = dict(
    # Simulation Control
    dt = 0.1,
    # Code generation
    paradigm = 'cpu',
    precision = "float",
    block_size = 32,
    seed = -1,
    # Logging
    verbose = False,
    suppress_warnings = False,
    # Other
    debug = False,
)

# Accepted values for the restricted keys
_accepted_values = {
    'paradigm': ['cpu', 'mpi'],
    'precision': ['float', 'double'],
}

class ConfigManager:
    """
    Manages the global configuration flags used in the SpikeGen framework. Users can manipulate
    these flags via the globally available function *setup()*.

    Implementation Note:

        The class is implemented as singleton to ensure unique existance in the user space.
        One should not access the _config member directly but using the get/set methods.
    """
    _instance = None

    def __new__(self, *args, **kwds):
        """
        Only the first call will create a new instance of this class.
        """
        if self._instance is None:
            self._instance = super().__new__(self, *args, **kwds)
            self._config = copy.deepcopy(default_config)

        return self._instance

    def get_config(self) -> dict:
        """
        Returns a copy of the current configuration.
        """
        return copy.deepcopy(self._config)

    def get(self, key: str) -> Union[str, float, bool]:
        """
        Returns the configuration for entry `key`.

        If the key does not exist, a terminating exception is raised.
        """
        if key in self.keys():
            return self._config[key]
        else:
            raise Messages.SpikeGenException(key + " does not belong to global configuration keys.")

    def set(self, key: str, value: Union[str, float, bool]):
        """
        Updates the configuration for entry *key* with a new *value*.
        If the key does not exist a terminating exception is raised.
        """
        if key in self.keys():
            self._config[key] = value
        else:
            raise KeyError(key)

    def keys(self) -> list:
        "Returns the list of keys that can be set with setup."
        return list(self._config.keys())

    def reset(self):
        "Restores the default configuration."
        self._config = copy.deepcopy(default_config)


#############################################
# Globally available functions
#############################################
def setup(**keyValueArgs):
    """
    The setup function is used to configure the code generation.

    It takes various optional arguments:

    * `dt`: integration step size in milliseconds (default: 0.1). It is written into the generated code as `DT` and used to compute derived parameters.
    * `paradigm`: target of the code generation. Accepted values: "cpu" (single-threaded simulation loop) or "mpi" (additionally generates the spike exchange between cluster hosts). Default: "cpu".
    * `precision`: floating precision of the generated code (`scalar` type). Accepted values: "float" or "double" (default: "float").
    * `block_size`: alignment used when the neuron ids of the populations are padded (default: 32).
    * `seed`: seed of the random number generator of the generated code, -1 seeds it from std::random_device (default: -1).

    The following parameters are mainly for debugging:

    * `verbose`: shows details about the code generation process on console (by default False).
    * `suppress_warnings`: if True, warnings (e. g. missing threshold conditions) are suppressed.
    * `debug`: the generated Makefile builds with debug symbols.

    ```python
    import SpikeGen as sg
    sg.setup(dt=0.5, precision="double", paradigm="mpi")
    ```
    """
    for key in keyValueArgs:
        if key in ConfigManager().keys():
            if key in _accepted_values and keyValueArgs[key] not in _accepted_values[key]:
                Messages._error("The value", keyValueArgs[key], "provided to", key, "is not valid.")
            ConfigManager().set(key, keyValueArgs[key])
        else:
            Messages._warning('setup(): unknown key:', key)

def get_global_config(key: str) -> Union[str, float, bool]:
    """
    Returns a global configuration.
    """
    return ConfigManager().get(key)

def _update_global_config(key: str, value: Union[str, float, bool]) -> None:
    """
    Updates a global configuration flag.

    Note: this function is intended for internal use.
          As user, please refer to *setup()* method.
    """
    return ConfigManager().set(key, value)

def _check_paradigm(paradigm):
    """
    Returns True when the provided paradigm is currently used.

    Possible values:

    1. "cpu"
    2. "mpi"
    """
    return paradigm == ConfigManager().get('paradigm')

def _check_precision(precision):
    """
    Returns True when the provided precision is currently used.

    Possible values:

    1. "float"
    2. "double"
    """
    return precision == ConfigManager().get('precision')
