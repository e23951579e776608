"""
Runtime state of the generated simulation.

The C++ code holds one struct per neuron group and per synapse group inside
a ``SimulationContext`` passed to every step function. The fields of these
structs are defined here once (*population_fields()*, *synapse_fields()*) and
used both by the code generator and by the numpy mirror of the state, which
can be used to prepare initial values or to check the ring buffer logic.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
import numpy as np

from SpikeGen.intern import Messages
from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.core.Connectivity import SPARSE, BITMASK, INDIVIDUAL, bitmask_words, bitmask_from_projection
from SpikeGen.generator.DelayPlanner import read_slot, previous_slot

# Size placeholder of the arrays allocated with the number of connections
CONN_N = "connN"

_numpy_types = {
    'unsigned int': np.uint32,
    'uint32_t': np.uint32,
    'int': np.int32,
    'bool': np.bool_,
    'double': np.float64,
    'float': np.float32,
}

def numpy_type(ctype):
    "numpy dtype of a C++ type, ``scalar`` follows the configured precision."
    if ctype == "scalar":
        ctype = get_global_config('precision')
    try:
        return _numpy_types[ctype]
    except KeyError:
        Messages._error("No numpy equivalent for the C++ type", ctype)

def population_fields(pop):
    """
    Fields of the struct NeuronGroup<name>: ordered dict name -> (ctype, size).
    A size of None denotes a scalar member.
    """
    slots = pop.num_delay_slots
    fields = OrderedDict()

    if pop.delay_required():
        fields['spkQuePtr'] = ('unsigned int', None)

    fields['spkCnt'] = ('unsigned int', slots)
    fields['spk'] = ('unsigned int', pop.num_neurons * slots)

    if pop.need_spike_events:
        fields['spkCntEvnt'] = ('unsigned int', slots)
        fields['spkEvnt'] = ('unsigned int', pop.num_neurons * slots)

    if pop.need_spike_time:
        fields['sT'] = ('scalar', pop.num_neurons)

    for idx, (name, ctype) in enumerate(pop.model.variables):
        queued = pop.var_need_queue[idx] and pop.delay_required()
        fields[name] = (ctype, pop.num_neurons * slots if queued else pop.num_neurons)

    for name, ctype in pop.model.extra_global_parameters:
        fields[name] = (ctype, None)

    return fields

def synapse_fields(syn):
    """
    Fields of the struct SynapseGroup<name>: ordered dict name -> (ctype, size).
    Arrays sized with the number of connections of a sparse group use the size CONN_N.
    """
    num_pre = syn.source.num_neurons
    num_post = syn.target.num_neurons
    fields = OrderedDict()

    fields['inSyn'] = ('scalar', num_post)

    for name, ctype in syn.ps_model.variables:
        fields[name] = (ctype, num_post)

    if syn.weight_storage == INDIVIDUAL:
        size = CONN_N if syn.connectivity == SPARSE else num_pre * num_post
        for name, ctype in syn.wu_model.variables:
            fields[name] = (ctype, size)

    if syn.connectivity == SPARSE:
        fields['connN'] = ('unsigned int', None)
        fields['indInG'] = ('unsigned int', num_pre + 1)
        fields['ind'] = ('int', CONN_N)

    elif syn.connectivity == BITMASK:
        fields['gp'] = ('uint32_t', bitmask_words(num_pre, num_post))

    for name, ctype in syn.wu_model.extra_global_parameters:
        fields[name] = (ctype, None)

    return fields


class PopulationState(object):
    """
    numpy mirror of the struct of a neuron group, with the ring buffer logic
    of the generated neuron update.
    """
    def __init__(self, pop):
        self.name = pop.name
        self.num_neurons = pop.num_neurons
        self.num_delay_slots = pop.num_delay_slots
        self.fields = population_fields(pop)

        for name, (ctype, size) in self.fields.items():
            if size is None:
                setattr(self, name, numpy_type(ctype)(0))
            else:
                setattr(self, name, np.zeros(size, dtype=numpy_type(ctype)))

        # Queued variables
        self.queued = [name for idx, name in enumerate(pop.model.variable_names) if pop.var_need_queue[idx] and pop.delay_required()]

        # Initial values
        for name, value in pop.init_values.items():
            array = getattr(self, name)
            if name in self.queued:
                for slot in range(self.num_delay_slots):
                    array[slot*self.num_neurons:(slot+1)*self.num_neurons] = value
            else:
                array[:] = value

        if 'sT' in self.fields:
            self.sT[:] = -np.finfo(self.sT.dtype).max

    @property
    def pointer(self):
        "Current slot (0 without delay)."
        return int(self.spkQuePtr) if 'spkQuePtr' in self.fields else 0

    def advance(self):
        """
        Start of a step: the slot pointer advances and the counters of the new
        slot are cleared.
        """
        if 'spkQuePtr' in self.fields:
            self.spkQuePtr = np.uint32((self.pointer + 1) % self.num_delay_slots)
        self.spkCnt[self.pointer] = 0
        if 'spkCntEvnt' in self.fields:
            self.spkCntEvnt[self.pointer] = 0

    def register_spike(self, n, t=None):
        "Appends the neuron n to the true spikes of the current slot."
        slot = self.pointer
        self.spk[slot * self.num_neurons + self.spkCnt[slot]] = n
        self.spkCnt[slot] += 1
        if t is not None and 'sT' in self.fields:
            self.sT[n] = t

    def register_spike_event(self, n):
        "Appends the neuron n to the spike-like events of the current slot."
        slot = self.pointer
        self.spkEvnt[slot * self.num_neurons + self.spkCntEvnt[slot]] = n
        self.spkCntEvnt[slot] += 1

    def read_slot(self, delay):
        return read_slot(self.pointer, self.num_delay_slots, delay)

    def spikes(self, delay=0):
        "True spikes seen by a synapse group with the given delay."
        slot = self.read_slot(delay)
        start = slot * self.num_neurons
        return self.spk[start:start + self.spkCnt[slot]].copy()

    def spike_events(self, delay=0):
        "Spike-like events seen by a synapse group with the given delay."
        slot = self.read_slot(delay)
        start = slot * self.num_neurons
        return self.spkEvnt[start:start + self.spkCntEvnt[slot]].copy()

    def read_variable(self, name, n):
        "Value of a variable at the start of the step (previous slot for queued variables)."
        array = getattr(self, name)
        if name in self.queued:
            return array[previous_slot(self.pointer, self.num_delay_slots) * self.num_neurons + n]
        return array[n]

    def write_variable(self, name, n, value):
        "Stores the value of a variable at the end of the step (current slot)."
        array = getattr(self, name)
        if name in self.queued:
            array[self.pointer * self.num_neurons + n] = value
        else:
            array[n] = value

    def delayed_variable(self, name, n, delay):
        "Value of a queued variable seen by a synapse group with the given delay."
        array = getattr(self, name)
        if name in self.queued:
            return array[self.read_slot(delay) * self.num_neurons + n]
        return array[n]


class SynapseState(object):
    "numpy mirror of the struct of a synapse group."
    def __init__(self, syn):
        self.name = syn.name
        self.fields = synapse_fields(syn)
        conn_n = syn.conn_n()

        for name, (ctype, size) in self.fields.items():
            if size is None:
                setattr(self, name, numpy_type(ctype)(0))
            else:
                setattr(self, name, np.zeros(conn_n if size == CONN_N else size, dtype=numpy_type(ctype)))

        for name, value in syn.ps_init.items():
            getattr(self, name)[:] = value

        if syn.weight_storage == INDIVIDUAL:
            size = conn_n if syn.connectivity == SPARSE else syn.source.num_neurons * syn.target.num_neurons
            for name in syn.wu_model.variable_names:
                getattr(self, name)[:] = syn.wu_init_array(name, size)

        if syn.connectivity == SPARSE:
            self.connN = np.uint32(conn_n)
            if syn.sparse_projection is not None:
                self.indInG[:] = syn.sparse_projection.ind_in_g
                self.ind[:] = syn.sparse_projection.ind

        elif syn.connectivity == BITMASK and syn.sparse_projection is not None:
            self.gp[:] = bitmask_from_projection(syn.sparse_projection, syn.target.num_neurons)

        self.connectivity = syn.connectivity
        self.num_post = syn.target.num_neurons

    def targets(self, ipre):
        "Postsynaptic ranks reached from the presynaptic neuron ipre (dense: all)."
        if self.connectivity == SPARSE:
            return self.ind[self.indInG[ipre]:self.indInG[ipre+1]]
        return np.arange(self.num_post)


class SimulationContext(object):
    """
    Container of the states of all groups of a finalized model, accessible
    as attributes named after the groups.
    """
    def __init__(self, model):
        if not model.finalized:
            Messages._error("SimulationContext: the model", model.name, "must be finalized first.")

        self.populations = OrderedDict()
        self.synapses = OrderedDict()
        for pop in model.neuron_groups:
            self.populations[pop.name] = PopulationState(pop)
        for syn in model.synapse_groups:
            self.synapses[syn.name] = SynapseState(syn)

    def __getattr__(self, name):
        for container in ['populations', 'synapses']:
            groups = self.__dict__.get(container, {})
            if name in groups:
                return groups[name]
        raise AttributeError(name)


class SpikeDetector(object):
    """
    Rising edge detection of the threshold condition: a true spike is emitted
    when the condition holds after the update but did not hold before it.
    """
    def __init__(self, initial=False):
        self.old_spike = bool(initial)

    def update(self, condition):
        "Condition after the update of this step, returns True for a true spike."
        spike = bool(condition) and not self.old_spike
        self.old_spike = bool(condition)
        return spike

    def detect(self, history):
        "Steps of *history* (conditions after each step) emitting a true spike."
        return [step for step, condition in enumerate(history) if self.update(condition)]
