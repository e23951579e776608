"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict, namedtuple

from SpikeGen.intern import Messages
from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.core.NeuronGroup import NeuronGroup
from SpikeGen.core.SynapseGroup import SynapseGroup
from SpikeGen.generator.DelayPlanner import plan_delay_slots
from SpikeGen.parser.Substitution import CodeFragment, SubstitutionPass

# One blocking transfer of the spikes of a population between two hosts
SpikeTransfer = namedtuple('SpikeTransfer', ['population', 'sender', 'receiver', 'tag'])

class NNModel(object):
    """
    Container of the neuron and synapse groups of a network.

    Groups are stored in declaration order and referenced by integer handles
    (their position). Synapse groups name their source and target populations;
    the names are resolved into handles by *finalize()*, which also runs all
    planning passes. A finalized model can neither be extended nor finalized
    again.

    :param name: name of the model, used for the generated directory <name>_CODE.
    """
    def __init__(self, name):
        self.name = name
        self.dt = None
        self.finalized = False

        self._neuron_groups = []
        self._synapse_groups = []
        self._neuron_handles = OrderedDict()
        self._synapse_handles = OrderedDict()

        # Set by finalize()
        self._tags = OrderedDict()
        self._transfers = []

    def __repr__(self):
        return "NNModel(" + self.name + ", " + str(len(self._neuron_groups)) + " neuron groups, " + str(len(self._synapse_groups)) + " synapse groups)"

    #############################################
    # Construction
    #############################################
    def _check_not_finalized(self):
        if self.finalized:
            Messages._error("The model", self.name, "has already been finalized, it can not be modified.")

    def _check_name(self, name):
        if name in self._neuron_handles or name in self._synapse_handles:
            Messages._error("The name", name, "is already used in the model", self.name)

    def add_neuron_population(self, name, num_neurons, model, params=None, init_values=None):
        """
        Adds a population of *num_neurons* neurons of the given NeuronModel and
        returns its descriptor.
        """
        self._check_not_finalized()
        self._check_name(name)

        group = NeuronGroup(name, num_neurons, model, params, init_values)
        group.handle = len(self._neuron_groups)
        self._neuron_groups.append(group)
        self._neuron_handles[name] = group.handle

        Messages._debug("Added the neuron group", name, "with", num_neurons, "neurons.")
        return group

    def add_synapse_population(self, name, connectivity, weight_storage, delay, source, target,
                               wu_model, wu_params=None, wu_init=None,
                               ps_model=None, ps_params=None, ps_init=None,
                               procedural_weight=None):
        """
        Adds a synapse group between the populations named *source* and *target*
        and returns its descriptor. See SynapseGroup for the arguments.
        """
        self._check_not_finalized()
        self._check_name(name)

        group = SynapseGroup(name, connectivity, weight_storage, source, target,
                             wu_model, wu_params, wu_init, ps_model, ps_params, ps_init,
                             delay=delay, procedural_weight=procedural_weight)
        group.handle = len(self._synapse_groups)
        self._synapse_groups.append(group)
        self._synapse_handles[name] = group.handle

        Messages._debug("Added the synapse group", name, ":", source, "->", target)
        return group

    #############################################
    # Access
    #############################################
    @property
    def neuron_groups(self):
        return list(self._neuron_groups)

    @property
    def synapse_groups(self):
        return list(self._synapse_groups)

    def neuron_group(self, key):
        "Neuron group by handle or name."
        if isinstance(key, str):
            try:
                key = self._neuron_handles[key]
            except KeyError:
                raise Messages.InvalidConfiguration("the model " + self.name + " has no neuron group called " + key)
        return self._neuron_groups[key]

    def synapse_group(self, key):
        "Synapse group by handle or name."
        if isinstance(key, str):
            try:
                key = self._synapse_handles[key]
            except KeyError:
                raise Messages.InvalidConfiguration("the model " + self.name + " has no synapse group called " + key)
        return self._synapse_groups[key]

    def in_synapse_groups(self, pop):
        "Incoming synapse groups of *pop* in order."
        return [self._synapse_groups[h] for h in pop.in_syn]

    def out_synapse_groups(self, pop):
        "Outgoing synapse groups of *pop* in order."
        return [self._synapse_groups[h] for h in pop.out_syn]

    def learning_groups(self):
        "Synapse groups with a postsynaptic learning pass."
        return [syn for syn in self._synapse_groups if syn.wu_model.is_learning()]

    def needs_learn_post(self):
        return len(self.learning_groups()) > 0

    def needs_synapse_delay(self):
        return any(pop.delay_required() for pop in self._neuron_groups)

    def hosts(self):
        "Sorted list of the cluster hosts used by the model."
        hosts = set([pop.cluster_host_id for pop in self._neuron_groups] + [syn.cluster_host_id for syn in self._synapse_groups])
        return sorted(hosts)

    #############################################
    # Finalize
    #############################################
    def finalize(self, dt=None):
        """
        Runs the planning passes in this order:

        1. resolution of the source and target names into handles,
        2. computation of the derived parameters,
        3. sizing of the delay slots,
        4. spike, spike time and variable queue requirements,
        5. registration of the spike-like event conditions,
        6. assignment of the spike exchange tags,
        7. computation of the id ranges.
        """
        self._check_not_finalized()

        self.dt = float(dt) if dt is not None else float(get_global_config('dt'))

        self._resolve_names()

        for pop in self._neuron_groups:
            pop.init_derived_params(self.dt)
        for syn in self._synapse_groups:
            syn.init_derived_params(self.dt)

        plan_delay_slots(self._synapse_groups)

        self._spike_requirements()

        self._spike_event_conditions()

        self._assign_tags()

        cum_sum = 0
        padded_cum_sum = 0
        for pop in self._neuron_groups:
            cum_sum, padded_cum_sum = pop.calc_sizes(get_global_config('block_size'), cum_sum, padded_cum_sum)

        self.finalized = True
        Messages._debug("Model", self.name, "finalized:", cum_sum, "neurons.")

    def _resolve_names(self):
        for syn in self._synapse_groups:
            for attr, name in [('source', syn.source_name), ('target', syn.target_name)]:
                if name not in self._neuron_handles:
                    raise Messages.InvalidConfiguration("the synapse group " + syn.name + " refers to the undeclared neuron group " + str(name))
                setattr(syn, attr, self._neuron_groups[self._neuron_handles[name]])

            syn.source.add_out_syn(syn.handle)
            syn.in_syn_index = syn.target.add_in_syn(syn.handle)

    def _spike_requirements(self):
        for syn in self._synapse_groups:
            wu = syn.wu_model

            if wu.references('sT_pre'):
                syn.source.need_spike_time = True
            if wu.references('sT_post'):
                syn.target.need_spike_time = True

            for fragment in ['sim', 'event', 'event_threshold']:
                syn.source.update_var_queues(wu.fragments[fragment].code)

    def _spike_event_conditions(self):
        for syn in self._synapse_groups:
            if not syn.wu_model.uses_spike_events():
                continue

            # The synapse parameters are known to the presynaptic population
            # only as literals, the variables of the source are resolved later.
            passes = [
                SubstitutionPass('parameters', syn.wu_parameter_values()),
                SubstitutionPass('extra_global_parameters', OrderedDict(
                    (egp, "ctx." + syn.name + "." + egp) for egp in syn.wu_model.extra_global_parameter_names)),
            ]
            code = syn.wu_model.fragments['event_threshold'].expand(passes, allow_unresolved=True)
            syn.source.add_spike_event_condition(code, syn.event_namespace())

    def _assign_tags(self):
        self._tags = OrderedDict()
        self._transfers = []

        for pop in self._neuron_groups:
            receivers = []
            for syn in self.out_synapse_groups(pop):
                if syn.cluster_host_id != pop.cluster_host_id and syn.cluster_host_id not in receivers:
                    receivers.append(syn.cluster_host_id)

            if len(receivers) == 0:
                continue

            tag = len(self._tags)
            self._tags[pop.name] = tag
            for receiver in receivers:
                self._transfers.append(SpikeTransfer(pop, pop.cluster_host_id, receiver, tag))

    def spike_exchange_tags(self):
        """
        Tag of each population whose spikes are consumed on another host:
        its position among these populations in model order.
        """
        return OrderedDict(self._tags)

    def spike_transfers(self):
        "Ordered list of the SpikeTransfer required at each step."
        return list(self._transfers)
