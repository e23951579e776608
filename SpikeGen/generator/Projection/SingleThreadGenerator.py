"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from copy import deepcopy

from SpikeGen.core.Connectivity import SPARSE
from SpikeGen.generator.Projection.ProjectionGenerator import ProjectionGenerator
from SpikeGen.generator.Projection.SingleThreadTemplates import single_thread_templates
from SpikeGen.generator.DelayPlanner import count_code, pointer_code, slot_offset_code
from SpikeGen.generator.Utils import generate_equation_code
from SpikeGen.intern import Messages

class SingleThreadGenerator(ProjectionGenerator):
    """
    Generate the code for the sequential propagation of spikes and the
    postsynaptic learning pass on the CPU.
    """
    def __init__(self, model):
        super(SingleThreadGenerator, self).__init__(model, deepcopy(single_thread_templates))

    def namespace(self, syn):
        return syn.name + "_weightupdate_simCode"

    def support_code(self, syn):
        "Support code of the weight update model, wrapped in the namespace <name>_weightupdate_simCode."
        if not syn.wu_model.support_code:
            return ""
        return self._templates['support_code_namespace'] % {'namespace': self.namespace(syn), 'code': syn.wu_model.support_code}

    def _guard(self, syn, distributed):
        if not distributed:
            return "", ""
        return self._templates['host_guard']['open'] % {'host': syn.cluster_host_id}, self._templates['host_guard']['close']

    def _using(self, syn):
        if not syn.wu_model.support_code:
            return ""
        return self._templates['using_namespace'] % {'namespace': self.namespace(syn)}

    def _delay_slot(self, syn):
        slot = self.delay_slot(syn)
        if slot is None:
            return "", None
        return self._templates['delay_slot'] % {'slot': slot}, "delaySlot"

    def _connectivity_loop(self, syn, body):
        return self._templates['connectivity_loop'][syn.connectivity] % {
            'name': syn.name,
            'num_post': syn.target.num_neurons,
            'body': body,
        }

    def _spike_loop(self, syn, slot, events, body):
        source = syn.source
        return self._templates['spike_loop'] % {
            'comment': "spike-like events of " + source.name if events else "true spikes of " + source.name,
            'count': count_code(source, slot, 'spkCntEvnt' if events else 'spkCnt'),
            'source': source.name,
            'field': 'spkEvnt' if events else 'spk',
            'offset': slot_offset_code(source, slot),
            'connectivity_loop': self._connectivity_loop(syn, body),
        }

    def _event_propagation(self, syn, table, slot):
        "Spike-like events, gated by the event threshold condition of the model."
        if not syn.wu_model.uses_spike_events():
            return ""

        condition = syn.wu_model.fragments['event_threshold'].expand(table)
        code = generate_equation_code(syn.wu_model.fragments['event'].expand(table), 5) + "\n"
        body = self._templates['event_gate'] % {'condition': condition, 'code': code}
        return self._spike_loop(syn, slot, True, body)

    def _true_spike_propagation(self, syn, table, slot):
        if not syn.wu_model.uses_true_spikes():
            return ""

        body = generate_equation_code(syn.wu_model.fragments['sim'].expand(table), 4) + "\n"
        return self._spike_loop(syn, slot, False, body)

    def synapse_group(self, syn, distributed=False):
        """
        Propagation of one synapse group: spike-like events first, then true
        spikes, both read in the delay slot of the group.
        """
        Messages._debug("Generate the propagation of", syn.name)

        table = self.synapse_table(syn)
        delay_slot, slot = self._delay_slot(syn)
        guard_open, guard_close = self._guard(syn, distributed)

        return self._templates['synapse_group_block'] % {
            'name': syn.name,
            'source': syn.source.name,
            'target': syn.target.name,
            'connectivity': syn.connectivity,
            'guard_open': guard_open,
            'guard_close': guard_close,
            'using': self._using(syn),
            'delay_slot': delay_slot,
            'body': self._event_propagation(syn, table, slot) + self._true_spike_propagation(syn, table, slot),
        }

    def propagation(self, distributed=False):
        """
        Generates calcSynapsesCPU(): for each target population in model order,
        the incoming synapse groups in the order of their declaration.
        """
        code = ""
        for pop in self._model.neuron_groups:
            for syn in self._model.in_synapse_groups(pop):
                code += self.synapse_group(syn, distributed)

        return self._templates['propagation_function'] % {'synapse_groups': code.rstrip('\n')}

    def learning_group(self, syn, distributed=False):
        """
        Postsynaptic learning pass of one synapse group: executed for every
        synapse reaching a neuron which emitted a true spike in this step.
        """
        Messages._debug("Generate the postsynaptic learning of", syn.name)

        table = self.synapse_table(syn, post_pass=True)
        delay_slot, _ = self._delay_slot(syn)
        guard_open, guard_close = self._guard(syn, distributed)

        padding = 5 if syn.connectivity == SPARSE else 4
        body = generate_equation_code(syn.wu_model.fragments['learn_post'].expand(table), padding) + "\n"

        target = syn.target
        loop = self._templates['learn_connectivity_loop'][syn.connectivity] % {
            'name': syn.name,
            'num_pre': syn.source.num_neurons,
            'num_post': target.num_neurons,
            'body': body,
        }
        spikes = self._templates['learn_spike_loop'] % {
            'target': target.name,
            'count': count_code(target, pointer_code(target)),
            'offset': slot_offset_code(target, pointer_code(target)),
            'connectivity_loop': loop,
        }

        return self._templates['synapse_group_block'] % {
            'name': syn.name,
            'source': syn.source.name,
            'target': target.name,
            'connectivity': syn.connectivity,
            'guard_open': guard_open,
            'guard_close': guard_close,
            'using': self._using(syn),
            'delay_slot': delay_slot,
            'body': spikes,
        }

    def learning(self, distributed=False):
        "Generates learnSynapsesPostHost(), empty if no group learns."
        if not self._model.needs_learn_post():
            return ""

        code = ""
        for syn in self._model.learning_groups():
            code += self.learning_group(syn, distributed)

        return self._templates['learning_function'] % {'synapse_groups': code.rstrip('\n')}
