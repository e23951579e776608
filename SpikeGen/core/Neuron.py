"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.intern import Messages
from SpikeGen.parser.Substitution import CodeFragment

class NeuronModel :
    """
    Base class to define a neuron model.

    All code fragments refer to the variables, parameters, derived parameters
    and extra global parameters of the model with the ``$(name)`` notation.
    The synaptic input of the current step is available as ``$(Isyn)``, the
    current time as ``$(t)`` and the rank of the neuron as ``$(id)``.

    :param variables: ordered list of (name, type) tuples of the state variables.
    :param parameters: ordered list of the parameter names.
    :param derived_parameters: ordered list of (name, definition). The definition is either an expression string (e.g. "exp(-DT/tau)") or a callable receiving (parameters, dt).
    :param sim_code: code updating the variables during one integration step.
    :param threshold_condition_code: condition to emit a true spike. Without it, the population never emits true spikes.
    :param reset_code: code executed after a true spike.
    :param extra_global_parameters: ordered list of (name, type) of additional kernel parameters shared by all neurons.
    :param support_code: C++ code (functions) placed before the update functions.
    :param name: name of the neuron model (used for reporting only).
    :param description: short description of the neuron model.
    """
    def __init__(self, variables=None, parameters=None, derived_parameters=None,
                 sim_code="", threshold_condition_code=None, reset_code=None,
                 extra_global_parameters=None, support_code=None,
                 name:str="", description:str=""):

        self.variables = [tuple(var) for var in (variables or [])]
        self.parameters = list(parameters or [])
        self.derived_parameters = [tuple(dp) for dp in (derived_parameters or [])]
        self.sim_code = sim_code if sim_code is not None else ""
        self.threshold_condition_code = threshold_condition_code
        self.reset_code = reset_code
        self.extra_global_parameters = [tuple(egp) for egp in (extra_global_parameters or [])]
        self.support_code = support_code

        self.name = name if name else "Spiking neuron"
        self.short_description = description if description else "User-defined model of a spiking neuron."

        self._check_names()

        # Tokenize the code fragments once
        self.fragments = {
            'sim': CodeFragment(self.sim_code, "simulation code of " + self.name),
            'threshold': CodeFragment(self.threshold_condition_code, "threshold condition of " + self.name) if self.has_threshold() else None,
            'reset': CodeFragment(self.reset_code, "reset code of " + self.name) if self.reset_code else None,
        }

    def _check_names(self):
        names = self.variable_names + self.parameters + [dp[0] for dp in self.derived_parameters] + [egp[0] for egp in self.extra_global_parameters]
        for name in names:
            if names.count(name) > 1:
                Messages._error("The attribute", name, "is declared more than once in the neuron model", self.name)

    @property
    def variable_names(self):
        return [var[0] for var in self.variables]

    @property
    def variable_types(self):
        return [var[1] for var in self.variables]

    @property
    def derived_parameter_names(self):
        return [dp[0] for dp in self.derived_parameters]

    @property
    def extra_global_parameter_names(self):
        return [egp[0] for egp in self.extra_global_parameters]

    def has_threshold(self):
        "True if a threshold condition is declared."
        return self.threshold_condition_code is not None and self.threshold_condition_code.strip() != ""

    def __repr__(self):
        text = """Spiking neuron.

Parameters:
""" + str(self.parameters) + """
Variables:
""" + str(self.variables) + """
Simulation code:
""" + str(self.sim_code) + """
Threshold condition:
""" + str(self.threshold_condition_code) + """
Reset after a spike:
""" + str(self.reset_code)

        return text
