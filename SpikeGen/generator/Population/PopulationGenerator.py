"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
import numpy as np

from SpikeGen.core.RuntimeState import population_fields
from SpikeGen.parser.Substitution import SubstitutionPass, SymbolTable, c_literal

# Random number generators available in all code fragments
random_distributions = OrderedDict([
    ('gennrand_uniform', "std::uniform_real_distribution<scalar>(0.0, 1.0)(ctx.rng)"),
    ('gennrand_normal', "std::normal_distribution<scalar>(0.0, 1.0)(ctx.rng)"),
    ('gennrand_exponential', "std::exponential_distribution<scalar>(1.0)(ctx.rng)"),
])

def init_value_code(templates, obj, name, ctype, size, value):
    """
    Initialization of one member of a runtime struct: a scalar, an array
    filled with one value, or an array filled (repeatedly) with per-neuron values.
    """
    if size is None:
        return templates['attribute_init']['scalar'] % {'obj': obj, 'name': name, 'value': c_literal(value)}

    if isinstance(value, np.ndarray):
        return templates['attribute_init']['values'] % {
            'obj': obj, 'name': name, 'type': ctype, 'size': size,
            'num': value.size,
            'values': ", ".join([c_literal(float(v)) for v in value])
        }

    return templates['attribute_init']['array'] % {'obj': obj, 'name': name, 'size': size, 'value': c_literal(value)}


class PopulationGenerator(object):
    """
    Base class for neuron group generators in SpikeGen. Inherited by

    * SingleThreadGenerator: sequential update of the neurons on the CPU.
    """
    def __init__(self, model, templates):
        """
        Initialize PopulationGenerator.
        """
        self._model = model
        self._templates = templates

    def header_struct(self, pop):
        """
        Generate the c-style struct definition of a neuron group. The members
        are given by SpikeGen.core.RuntimeState.population_fields().
        """
        declaration = ""
        for name, (ctype, size) in population_fields(pop).items():
            if size is None:
                declaration += self._templates['attribute_decl']['scalar'] % {'type': ctype, 'name': name}
            else:
                declaration += self._templates['attribute_decl']['array'] % {'type': ctype, 'name': name, 'size': size}

        return self._templates['population_struct'] % {
            'name': pop.name,
            'size': pop.num_neurons,
            'slots': pop.num_delay_slots,
            'declare_fields': declaration.rstrip('\n'),
        }

    def _zero_copy(self, pop, name):
        if name in ['spkCnt', 'spk']:
            return pop.spike_zero_copy
        if name in ['spkCntEvnt', 'spkEvnt']:
            return pop.spike_event_zero_copy
        if name == 'sT':
            return pop.spike_time_zero_copy
        if name in pop.model.variable_names:
            return pop.var_zero_copy_enabled(name)
        return False

    def allocate(self, pop):
        "Allocation of the arrays of the group, called by allocateMem()."
        code = "    // Neuron group " + pop.name + "\n"
        for name, (ctype, size) in population_fields(pop).items():
            if size is None:
                continue
            code += self._templates['attribute_alloc'] % {
                'obj': pop.name, 'name': name, 'size': size,
                'zero_copy': 'true' if self._zero_copy(pop, name) else 'false'
            }
        return code

    def free(self, pop):
        "Release of the arrays of the group, called by freeMem()."
        code = ""
        for name, (ctype, size) in population_fields(pop).items():
            if size is not None:
                code += self._templates['attribute_free'] % {'obj': pop.name, 'name': name}
        return code

    def initialize(self, pop):
        "Initial values of all members, called by initialize()."
        code = "    // Neuron group " + pop.name + "\n"
        for name, (ctype, size) in population_fields(pop).items():
            if name in pop.model.variable_names:
                value = pop.init_values[name]
            elif name == 'sT':
                code += self._templates['attribute_init']['array'] % {'obj': pop.name, 'name': name, 'size': size, 'value': "-SCALAR_MAX"}
                continue
            else:
                value = 0
            code += init_value_code(self._templates, pop.name, name, ctype, size, value)
        return code

    #############################################
    # Symbol tables
    #############################################
    def _state_pass(self, pop):
        "Per-neuron state: local copies of the variables, time, rank and input."
        state = SubstitutionPass('variables')
        for var in pop.model.variable_names:
            state.add(var, 'l' + var)
        state.add('t', 't')
        state.add('id', 'n')
        state.add('Isyn', 'Isyn')
        state.add('DT', 'DT')
        for name, code in random_distributions.items():
            state.add(name, code)
        return state

    def _presynaptic_pass(self, pop):
        "References $(<var>_pre) of spike-like event conditions evaluated inside the neuron update."
        presynaptic = SubstitutionPass('presynaptic')
        for var in pop.model.variable_names:
            presynaptic.add(var + '_pre', 'l' + var)
        presynaptic.add('id_pre', 'n')
        return presynaptic

    def _parameter_passes(self, pop):
        parameters = SubstitutionPass('parameters', OrderedDict(zip(pop.model.parameters, pop.params)))
        derived = SubstitutionPass('derived_parameters', pop.derived_params)
        return parameters, derived

    def _egp_pass(self, pop):
        egps = SubstitutionPass('extra_global_parameters')
        for egp in pop.model.extra_global_parameter_names:
            egps.add(egp, "ctx." + pop.name + "." + egp)
        return egps

    def neuron_table(self, pop):
        "Symbol table of the simulation, threshold and reset code."
        parameters, derived = self._parameter_passes(pop)
        return SymbolTable([self._state_pass(pop), parameters, derived, self._egp_pass(pop)])

    def input_table(self, pop, syn, idx):
        "Symbol table of the code of the postsynaptic model of the idx-th incoming synapse group."
        parameters, derived = self._parameter_passes(pop)

        synaptic_input = SubstitutionPass('input', {'inSyn': 'linSyn' + str(idx)})

        postsynaptic = SubstitutionPass('postsynaptic', OrderedDict(zip(syn.ps_model.parameters, syn.ps_params)))
        for name, value in syn.ps_derived_params.items():
            postsynaptic.add(name, value)
        for var in syn.ps_model.variable_names:
            postsynaptic.add(var, 'lps' + var + str(idx))

        return SymbolTable([self._state_pass(pop), synaptic_input, parameters, derived, postsynaptic, self._egp_pass(pop)])

    def event_table(self, pop):
        "Symbol table of the spike-like event conditions registered by outgoing synapse groups."
        parameters, derived = self._parameter_passes(pop)
        return SymbolTable([self._state_pass(pop), self._presynaptic_pass(pop), parameters, derived, self._egp_pass(pop)])

    def update(self, pop, host=None):
        """
        Generates the update of the neuron group. If *host* is given, the
        neurons are only updated on this cluster host.

        Implemented by child classes.
        """
        raise NotImplementedError
