"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
import numpy as np

from SpikeGen.intern import Messages
from SpikeGen.core.Neuron import NeuronModel
from SpikeGen.parser.DerivedParameters import evaluate_derived_parameters
from SpikeGen.parser.Substitution import placeholder_regex

def resolve_values(names, values, what, owner, default=None):
    """
    Orders the user-provided *values* (dict or sequence) along *names*.

    Missing entries take the *default* value, or raise an error if no default is given.
    """
    if values is None:
        values = {}

    if isinstance(values, dict):
        for key in values.keys():
            if key not in names:
                Messages._error(owner + ": the", what, key, "is not declared in the model.")
        result = []
        for name in names:
            if name in values:
                result.append(values[name])
            elif default is not None:
                result.append(default)
            else:
                Messages._error(owner + ": no value provided for the", what, name)
        return result

    values = list(values)
    if len(values) != len(names):
        Messages._error(owner + ": expected", len(names), what + "s", "but", len(values), "were provided.")
    return values


class NeuronGroup(object):
    """
    Descriptor of a population of neurons sharing the same model.

    :param name: unique name of the group, used to build the C++ identifiers.
    :param num_neurons: number of neurons.
    :param model: NeuronModel instance.
    :param params: values of the model parameters (dict or ordered list).
    :param init_values: initial values of the variables (dict name -> scalar or array of num_neurons). Defaults to 0.
    """
    def __init__(self, name, num_neurons, model, params=None, init_values=None):

        if not isinstance(model, NeuronModel):
            Messages._error("NeuronGroup", name, ": the model must be a NeuronModel instance.")

        if int(num_neurons) <= 0:
            Messages._error("NeuronGroup", name, ": the number of neurons must be positive.")

        self.name = name
        self.num_neurons = int(num_neurons)
        self.model = model
        self.handle = None

        # Parameters
        self.params = [float(p) for p in resolve_values(model.parameters, params, 'parameter', 'NeuronGroup ' + name)]
        self.derived_params = None

        # Initial values
        self.init_values = OrderedDict()
        for var, value in zip(model.variable_names, resolve_values(model.variable_names, init_values, 'initial value', 'NeuronGroup ' + name, default=0.0)):
            if isinstance(value, (list, tuple, np.ndarray)):
                value = np.array(value, dtype=float)
                if value.shape != (self.num_neurons,):
                    Messages._error("NeuronGroup", name, ": the initial value of", var, "must have", self.num_neurons, "elements.")
            self.init_values[var] = value

        # Queue requirements
        self.var_need_queue = [False for _ in model.variables]
        self.need_spike_time = False
        # True spikes are only detected with a threshold condition
        self.need_true_spike = model.has_threshold()
        self.need_spike_events = False
        self.need_queue = False
        self.num_delay_slots = 1

        # Spike-like events (code, namespace)
        self.spike_event_conditions = []

        # Connected synapse groups
        self.in_syn = []
        self.out_syn = []

        # Memory placement
        self.spike_zero_copy = False
        self.spike_event_zero_copy = False
        self.spike_time_zero_copy = False
        self.var_zero_copy = [False for _ in model.variables]

        # External input current: None, a constant or "array"
        self.input_current = None

        # Cluster placement
        self.cluster_host_id = 0
        self.cluster_device_id = 0

        # Filled by calc_sizes()
        self.id_range = None
        self.padded_id_range = None

    def __repr__(self):
        return "NeuronGroup(" + self.name + ", " + str(self.num_neurons) + ", " + self.model.name + ")"

    #############################################
    # Planning
    #############################################
    def check_num_delay_slots(self, required_delay):
        """
        Raises the number of delay slots to *required_delay* + 1 if it is larger
        than the current value. The number of slots never decreases.
        """
        required_delay = int(required_delay)
        if required_delay < 0:
            Messages._error("NeuronGroup", self.name, ": a delay can not be negative.")

        if required_delay + 1 > self.num_delay_slots:
            self.num_delay_slots = required_delay + 1

        if self.num_delay_slots > 1:
            self.need_queue = True

    def update_var_queues(self, code):
        """
        Flags the variables referenced as ``$(<var>_pre)`` in *code* as requiring
        a delay queue. Flags are only ever set, never cleared.
        """
        references = set(match.group(1) for match in placeholder_regex.finditer(code))
        for idx, var in enumerate(self.model.variable_names):
            if var + "_pre" in references:
                self.var_need_queue[idx] = True

    def add_spike_event_condition(self, code, namespace=None):
        """
        Registers a condition triggering spike-like events. A (code, namespace)
        pair already registered is ignored.

        Returns the position of the condition.
        """
        condition = (code, namespace)
        if condition not in self.spike_event_conditions:
            self.spike_event_conditions.append(condition)
        self.need_spike_events = True
        return self.spike_event_conditions.index(condition)

    def add_in_syn(self, handle):
        "Adds an incoming synapse group and returns its position."
        self.in_syn.append(handle)
        return len(self.in_syn) - 1

    def add_out_syn(self, handle):
        "Adds an outgoing synapse group and returns its position."
        self.out_syn.append(handle)
        return len(self.out_syn) - 1

    def calc_sizes(self, block_size, cum_sum, padded_cum_sum):
        """
        Stores the id range of the group and returns the advanced counters.

        *padded_cum_sum* advances by the number of neurons rounded up to the
        next multiple of *block_size*.
        """
        if self.id_range is not None:
            Messages._error("NeuronGroup", self.name, ": the sizes have already been computed.")

        padded_size = ((self.num_neurons + block_size - 1) // block_size) * block_size

        self.id_range = (cum_sum, cum_sum + self.num_neurons)
        self.padded_id_range = (padded_cum_sum, padded_cum_sum + padded_size)

        return cum_sum + self.num_neurons, padded_cum_sum + padded_size

    def init_derived_params(self, dt):
        "Computes the derived parameters once."
        if self.derived_params is not None:
            Messages._error("NeuronGroup", self.name, ": the derived parameters have already been computed.")

        self.derived_params = evaluate_derived_parameters(
            self.model.derived_parameters,
            self.model.parameters,
            self.params,
            dt,
            context="of the neuron group " + self.name
        )

    #############################################
    # Setters
    #############################################
    def set_spike_zero_copy(self, enabled=True):
        self.spike_zero_copy = bool(enabled)

    def set_spike_event_zero_copy(self, enabled=True):
        self.spike_event_zero_copy = bool(enabled)

    def set_spike_time_zero_copy(self, enabled=True):
        self.spike_time_zero_copy = bool(enabled)

    def set_var_zero_copy(self, name, enabled=True):
        "Requests zero-copy placement for the variable *name*."
        try:
            idx = self.model.variable_names.index(name)
        except ValueError:
            Messages._error("NeuronGroup", self.name, ": the variable", name, "does not exist.")
        self.var_zero_copy[idx] = bool(enabled)

    def var_zero_copy_enabled(self, name):
        return self.var_zero_copy[self.model.variable_names.index(name)]

    def set_cluster_index(self, host_id, device_id=0):
        "Places the group on a cluster host (MPI rank) and device."
        self.cluster_host_id = int(host_id)
        self.cluster_device_id = int(device_id)

    def set_input_current(self, value):
        """
        External input current added to Isyn at every step: a constant value,
        or the string "array" to pass a per-neuron array to calcNeuronsCPU.
        """
        if value is None or value == "array":
            self.input_current = value
        else:
            self.input_current = float(value)

    #############################################
    # Queries
    #############################################
    def uses_zero_copy(self):
        return self.spike_zero_copy or self.spike_event_zero_copy or self.spike_time_zero_copy or any(self.var_zero_copy)

    def any_var_need_queue(self):
        return any(self.var_need_queue)

    def delay_required(self):
        return self.num_delay_slots > 1

    def var_need_queue_by_name(self, name):
        return self.var_need_queue[self.model.variable_names.index(name)]

    def receives_array_input(self):
        return isinstance(self.input_current, str) and self.input_current == "array"

    def parameter_values(self):
        "Ordered dictionary of the raw and derived parameters."
        values = OrderedDict(zip(self.model.parameters, self.params))
        if self.derived_params is not None:
            values.update(self.derived_params)
        return values
