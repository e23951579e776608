"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import re
import numpy as np

from SpikeGen.core.Connectivity import DENSE, SPARSE, BITMASK, GLOBAL, INDIVIDUAL, PROCEDURAL
from SpikeGen.intern.ConfigManagement import _check_paradigm
from SpikeGen.intern import Messages

# No variable or parameter can have these names
reserved_variables = [
    't',
    'DT',
    'dt',
    'dg',
    'n',
    'id',
    'id_pre',
    'id_post',
    'ipre',
    'ipost',
    'synAddress',
    'delaySlot',
    'Isyn',
    'inSyn',
    'addtoinSyn',
    'updatelinsyn',
    'sT',
    'sT_pre',
    'sT_post',
    'oldSpike',
    'spikeLikeEvent',
    'ctx',
    'scalar',
]

# Names of the groups become C++ identifiers
identifier_regex = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')

def check_structure(model):
    """
    Checks the structure of a finalized model before the code generation to
    display more useful error messages.
    """
    if not model.finalized:
        Messages._error("check_structure(): the model", model.name, "must be finalized before the code generation.")

    # Check group and variable names
    _check_names(model)

    # Check the combinations of connectivity and weight storage
    _check_storage(model)

    # Check the connectivity of sparse and bitmask groups
    _check_sparse_sizes(model)

    # Check the delays
    _check_delays(model)

    # Check the spike detection of the populations
    _check_thresholds(model)

    # Check the placement on the cluster hosts
    _check_hosts(model)

def _check_names(model):
    for group in model.neuron_groups + model.synapse_groups:
        if not identifier_regex.match(group.name):
            Messages._error("The name", group.name, "can not be used as a C++ identifier.")

    for pop in model.neuron_groups:
        names = pop.model.variable_names + pop.model.parameters + pop.model.derived_parameter_names + pop.model.extra_global_parameter_names
        for name in names:
            if name in reserved_variables:
                Messages._error("The attribute", name, "of the neuron model", pop.model.name, "(used by", pop.name + ") is a reserved name.")

    for syn in model.synapse_groups:
        for wu_model in [syn.wu_model, syn.ps_model]:
            names = wu_model.variable_names + wu_model.parameters + wu_model.derived_parameter_names
            for name in names:
                if name in reserved_variables:
                    Messages._error("The attribute", name, "of the model", wu_model.name, "(used by", syn.name + ") is a reserved name.")

def _check_storage(model):
    for syn in model.synapse_groups:
        if syn.connectivity == BITMASK and syn.weight_storage == INDIVIDUAL:
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " uses bitmask connectivity, which only supports global or procedural weights.")

        if syn.wu_model.is_learning() and syn.weight_storage != INDIVIDUAL:
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " learns, which requires individual weights (got " + syn.weight_storage + ").")

        if syn.weight_storage == PROCEDURAL and syn.weight_variable() is None:
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " uses procedural weights but its model has no variable to hold them.")

        if syn.weight_storage in [GLOBAL, PROCEDURAL]:
            for name, value in syn.wu_init.items():
                if isinstance(value, (list, tuple, np.ndarray)):
                    raise Messages.InvalidConfiguration("the synapse group " + syn.name + " stores " + name + " as a " + syn.weight_storage + " value, the initial value must be a scalar.")

        if syn.weight_storage == INDIVIDUAL and syn.connectivity == DENSE:
            size = syn.source.num_neurons * syn.target.num_neurons
            for name in syn.wu_model.variable_names:
                syn.wu_init_array(name, size)

def _check_sparse_sizes(model):
    for syn in model.synapse_groups:
        projection = syn.sparse_projection

        if syn.connectivity == SPARSE and projection is None:
            if syn.max_connections is None or syn.max_connections <= 0:
                raise Messages.InvalidConfiguration("the sparse synapse group " + syn.name + " needs a SparseProjection or a maximal number of connections.")

        if syn.connectivity == BITMASK and projection is None:
            Messages._warning("The bitmask synapse group", syn.name, "has no connectivity: all synapses are disabled until the bitmask is filled.")

        if projection is None:
            continue

        if projection.num_pre != syn.source.num_neurons:
            raise Messages.InvalidConfiguration("the connectivity of " + syn.name + " has " + str(projection.num_pre) + " rows but " + syn.source.name + " has " + str(syn.source.num_neurons) + " neurons.")

        if projection.num_post > syn.target.num_neurons:
            raise Messages.InvalidConfiguration("the connectivity of " + syn.name + " addresses " + str(projection.num_post) + " neurons but " + syn.target.name + " has " + str(syn.target.num_neurons) + " neurons.")

        if syn.max_connections is not None and syn.max_connections < projection.conn_n:
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " allows " + str(syn.max_connections) + " connections but its connectivity has " + str(projection.conn_n) + ".")

        if syn.connectivity == SPARSE and syn.weight_storage == INDIVIDUAL and projection.weights is None:
            for name in syn.wu_model.variable_names:
                syn.wu_init_array(name, projection.conn_n)

def _check_delays(model):
    for syn in model.synapse_groups:
        if syn.delay >= syn.source.num_delay_slots:
            Messages._error("The delay", syn.delay, "of", syn.name, "exceeds the", syn.source.num_delay_slots, "delay slots of", syn.source.name)

def _check_thresholds(model):
    for pop in model.neuron_groups:
        if pop.need_true_spike:
            continue

        Messages._warning("No threshold condition was provided for the neuron model", pop.model.name, "used by", pop.name + ": no true spikes will be detected in this population.")

        consumers = [syn.name for syn in model.synapse_groups
                     if (syn.source is pop and syn.wu_model.uses_true_spikes()) or (syn.target is pop and syn.wu_model.is_learning())]
        if len(consumers) > 0:
            Messages._warning("The synapse groups", ", ".join(consumers), "depend on the true spikes of", pop.name, "and will never be triggered by them.")

def _presynaptic_references(syn):
    "Identifiers of the source population read by the weight update model."
    references = [var + '_pre' for var in syn.source.model.variable_names] + ['sT_pre']
    return [name for name in references if syn.wu_model.references(name)]

def _check_hosts(model):
    if _check_paradigm("cpu"):
        if len(model.hosts()) > 1:
            Messages._warning("The model", model.name, "places groups on", len(model.hosts()), "cluster hosts, the placement is ignored by the cpu paradigm.")
        return

    for syn in model.synapse_groups:
        if syn.cluster_host_id != syn.target.cluster_host_id:
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " must be placed on the host of its target population " + syn.target.name + " (" + str(syn.target.cluster_host_id) + ").")

        if syn.is_cross_host():
            references = _presynaptic_references(syn)
            if len(references) > 0:
                raise Messages.InvalidConfiguration("the synapse group " + syn.name + " receives the spikes of " + syn.source.name + " from another host and can not read " + ", ".join(references) + ".")
