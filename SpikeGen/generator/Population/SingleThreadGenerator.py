"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from copy import deepcopy

from SpikeGen.generator.Population.PopulationGenerator import PopulationGenerator
from SpikeGen.generator.Population.SingleThreadTemplates import single_thread_templates
from SpikeGen.generator.DelayPlanner import advance_code, pointer_code, previous_slot_code, slot_offset_code
from SpikeGen.generator.Utils import generate_equation_code, tabify
from SpikeGen.parser.Substitution import CodeFragment, c_literal
from SpikeGen.intern import Messages

class SingleThreadGenerator(PopulationGenerator):
    """
    Generate the code for the sequential update of neuron groups on the CPU.
    """
    def __init__(self, model):
        super(SingleThreadGenerator, self).__init__(model, deepcopy(single_thread_templates))

    def support_code(self, pop):
        "Support code of the neuron model, wrapped in the namespace <name>_neuron."
        if not pop.model.support_code:
            return ""
        return self._templates['support_code_namespace'] % {'namespace': self.namespace(pop), 'code': pop.model.support_code}

    def namespace(self, pop):
        return pop.name + "_neuron"

    def _using(self, pop, padding):
        if not pop.model.support_code:
            return ""
        return tabify(self._templates['using_namespace'] % {'namespace': self.namespace(pop)}, padding).rstrip(' ')

    def _advance(self, pop):
        "Advance of the slot pointer (before the spikes are written) and reset of the counters."
        code = ""
        if pop.delay_required():
            code += self._templates['advance_pointer'] % {'advance': advance_code(pop)}

        slot = pointer_code(pop) if pop.delay_required() else "0"
        code += self._templates['reset_counter'] % {'name': pop.name, 'field': 'spkCnt', 'slot': slot}
        if pop.need_spike_events:
            code += self._templates['reset_counter'] % {'name': pop.name, 'field': 'spkCntEvnt', 'slot': slot}
        return code

    def _read_write_variables(self, pop):
        """
        Queued variables are read from the slot of the previous step and
        written to the current slot.
        """
        read_code = ""
        write_code = ""
        for idx, (var, ctype) in enumerate(pop.model.variables):
            queued = pop.var_need_queue[idx] and pop.delay_required()
            read_offset = slot_offset_code(pop, previous_slot_code(pop)) if queued else ""
            write_offset = slot_offset_code(pop, pointer_code(pop)) if queued else ""
            read_code += self._templates['read_variable'] % {'type': ctype, 'var': var, 'name': pop.name, 'offset': read_offset}
            write_code += self._templates['write_variable'] % {'var': var, 'name': pop.name, 'offset': write_offset}
        return read_code, write_code

    def _synaptic_input(self, pop):
        "Local copies of the inputs, their contribution to Isyn and their decay."
        read_code = ""
        apply_code = ""
        decay_code = ""
        write_code = ""
        for idx, syn in enumerate(self._model.in_synapse_groups(pop)):
            read_code += self._templates['read_input'] % {'idx': idx, 'syn': syn.name}
            for var, ctype in syn.ps_model.variables:
                read_code += self._templates['read_ps_variable'] % {'type': ctype, 'var': var, 'idx': idx, 'syn': syn.name}

            table = self.input_table(pop, syn, idx)
            apply_input = syn.ps_model.fragments['apply_input'].expand(table)
            if apply_input.strip() != "":
                apply_code += "            // input of " + syn.name + "\n" + generate_equation_code(apply_input, 3) + "\n"

            decay = syn.ps_model.fragments['decay'].expand(table)
            if decay.strip() != "":
                decay_code += "            // decay of the input of " + syn.name + "\n" + generate_equation_code(decay, 3) + "\n"

            write_code += self._templates['write_input'] % {'idx': idx, 'syn': syn.name}
            for var, ctype in syn.ps_model.variables:
                write_code += self._templates['write_ps_variable'] % {'var': var, 'idx': idx, 'syn': syn.name}

        return read_code, apply_code, decay_code + write_code

    def _external_input(self, pop):
        if pop.input_current is None:
            return ""
        if pop.receives_array_input():
            return "            Isyn += (scalar) inputI%(name)s[n];\n" % {'name': pop.name}
        return "            Isyn += %(value)s;\n" % {'value': c_literal(pop.input_current)}

    def _spike_events(self, pop):
        if not pop.need_spike_events:
            return ""

        table = self.event_table(pop)
        conditions = ""
        for code, namespace in pop.spike_event_conditions:
            condition = CodeFragment(code, "spike-like event condition of " + pop.name).expand(table)
            using = "                using namespace " + namespace + ";\n" if namespace else ""
            conditions += self._templates['spike_event_condition'] % {'using': using, 'condition': condition}

        slot = pointer_code(pop) if pop.delay_required() else "0"
        return self._templates['spike_events'] % {
            'name': pop.name,
            'conditions': conditions.rstrip('\n'),
            'offset': slot_offset_code(pop, pointer_code(pop)),
            'slot': slot,
        }

    def _threshold(self, pop, table):
        if not pop.need_true_spike:
            return None
        return pop.model.fragments['threshold'].expand(table)

    def _true_spike(self, pop, condition, table):
        if condition is None:
            return ""

        reset = ""
        if pop.model.fragments['reset'] is not None:
            reset = "                // spike reset code\n" + generate_equation_code(pop.model.fragments['reset'].expand(table), 4)

        slot = pointer_code(pop) if pop.delay_required() else "0"
        return self._templates['true_spike'] % {
            'name': pop.name,
            'condition': condition,
            'offset': slot_offset_code(pop, pointer_code(pop)),
            'slot': slot,
            'spike_time': self._templates['spike_time'] % {'name': pop.name} if pop.need_spike_time else "",
            'reset': reset,
        }

    def update(self, pop, host=None):
        """
        Update of one neuron group:

        1. the slot pointer advances and the counters of the new slot are reset,
        2. the state and the synaptic inputs are copied into local variables,
        3. the threshold condition is evaluated before the update (oldSpike),
        4. the simulation code is executed,
        5. spike-like events and true spikes (rising edge only) are registered,
        6. the state is written back and the inputs decay.
        """
        Messages._debug("Generate the update of", pop.name)

        table = self.neuron_table(pop)

        sim_code = generate_equation_code(pop.model.fragments['sim'].expand(table), 3)
        if pop.model.support_code:
            sim_code = self._using(pop, 3) + sim_code

        condition = self._threshold(pop, table)
        old_spike = self._templates['old_spike'] % {'condition': condition} if condition is not None else ""

        read_variables, write_variables = self._read_write_variables(pop)
        read_input, apply_input, decay = self._synaptic_input(pop)

        if host is not None:
            guard_open = self._templates['host_guard']['open'] % {'host': host}
            guard_close = self._templates['host_guard']['close']
        else:
            guard_open = ""
            guard_close = ""

        code = self._templates['update_neuron'] % {
            'name': pop.name,
            'size': pop.num_neurons,
            'advance': self._advance(pop),
            'guard_open': guard_open,
            'guard_close': guard_close,
            'read_variables': read_variables,
            'read_input': read_input,
            'apply_input': apply_input,
            'external_input': self._external_input(pop),
            'old_spike': old_spike,
            'sim_code': sim_code,
            'spike_events': self._spike_events(pop),
            'true_spike': self._true_spike(pop, condition, table),
            'write_variables': write_variables,
            'decay': decay,
        }

        return code
