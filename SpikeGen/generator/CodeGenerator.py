"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
from copy import deepcopy

from SpikeGen.intern import Messages
from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.generator.Backends import get_backend
from SpikeGen.generator.Template.BaseTemplate import base_templates
from SpikeGen.generator.Utils import remove_trailing_spaces
from SpikeGen.parser.Substitution import c_literal

class CodeGenerator(object):
    """
    Generates the content of the simulation files of a finalized model.

    The files are produced in a fixed order (definitions.h, runner.cc,
    neuronFnct.cc, synapseFnct.cc, then the files of the backend). The
    content is collected section by section: if a code fragment can not be
    expanded, *files* holds everything generated up to the failing section.
    """
    def __init__(self, model, directory):
        """
        :param model: finalized NNModel.
        :param directory: folder <directory>/<model>_CODE receiving the files, used for the paths of the connectivity files.
        """
        self._model = model
        self._directory = directory
        self._backend = get_backend(model)
        self._templates = deepcopy(base_templates)

        self.files = OrderedDict()
        self.binary_files = OrderedDict()

    @property
    def backend(self):
        return self._backend

    def generate(self):
        """
        Returns an ordered dictionary filename -> content. The binary
        connectivity files are stored in *binary_files*.
        """
        self.files = OrderedDict()
        self.binary_files = OrderedDict()

        self._emit('definitions.h', "Definitions", self._definitions())
        self._emit('runner.cc', "Memory management and simulation step", self._runner())
        self._emit('neuronFnct.cc', "Neuron update", self._neuron_functions())
        self._emit('synapseFnct.cc', "Synapse update", self._synapse_functions())

        for filename, content in self._backend.emit_cross_host_sync().items():
            self._emit(filename, "Spike exchange", [content])

        for syn in self._model.synapse_groups:
            self.binary_files.update(self._backend.synapse_generator.connectivity_files(syn))

        for filename in self.files.keys():
            self.files[filename] = remove_trailing_spaces(self.files[filename])

        return self.files

    def _emit(self, filename, description, sections):
        """
        Appends the *sections* (any iterable of strings, usually a generator)
        to the file, one by one.
        """
        self.files[filename] = self._templates['file_banner'] % {'file': filename, 'model': self._model.name, 'description': description}
        for section in sections:
            self.files[filename] += section

    #############################################
    # Common
    #############################################
    def _array_inputs(self):
        return [pop for pop in self._model.neuron_groups if pop.receives_array_input()]

    def _input_args(self):
        return "".join([", scalar *inputI" + pop.name for pop in self._array_inputs()])

    def _input_names(self):
        return "".join([", inputI" + pop.name for pop in self._array_inputs()])

    #############################################
    # definitions.h
    #############################################
    def _definitions(self):
        populations = self._backend.neuron_generator
        synapses = self._backend.synapse_generator

        precision = get_global_config('precision')
        members = ""
        for pop in self._model.neuron_groups:
            members += self._templates['context_member'] % {'name': pop.name}
        for syn in self._model.synapse_groups:
            members += self._templates['context_synapse_member'] % {'name': syn.name}

        prototypes = ""
        for syn in self._model.synapse_groups:
            prototypes += synapses.prototypes(syn)

        yield self._templates['definitions_header'] % {
            'precision': precision,
            'dt': c_literal(self._model.dt),
            'scalar_max': "FLT_MAX" if precision == "float" else "DBL_MAX",
            'population_structs': "".join([populations.header_struct(pop) for pop in self._model.neuron_groups]),
            'synapse_structs': "".join([synapses.header_struct(syn) for syn in self._model.synapse_groups]),
            'context_members': members.rstrip('\n'),
            'input_args': self._input_args(),
            'synapse_prototypes': prototypes,
            'learn_prototype': self._templates['learn_prototype'] if self._model.needs_learn_post() else "",
        }

    #############################################
    # runner.cc
    #############################################
    def _seed(self):
        seed = get_global_config('seed')
        if seed is None or int(seed) < 0:
            return self._templates['seed_random']
        return self._templates['seed_fixed'] % {'seed': int(seed)}

    def _runner(self):
        populations = self._backend.neuron_generator
        synapses = self._backend.synapse_generator

        group_functions = ""
        allocate = ""
        initialize = ""
        free = ""
        for pop in self._model.neuron_groups:
            allocate += populations.allocate(pop)
            initialize += populations.initialize(pop)
            free += populations.free(pop)

        for syn in self._model.synapse_groups:
            group_functions += synapses.allocate_function(syn)
            group_functions += synapses.initialize_from_file(syn, self._directory)
            allocate += synapses.allocate(syn)
            initialize += synapses.initialize(syn)
            free += synapses.free(syn)

        yield self._templates['runner_body'] % {
            'includes': self._backend.includes(),
            'group_functions': group_functions,
            'allocate': allocate,
            'initialize': initialize,
            'free': free,
            'seed': self._seed(),
            'input_args': self._input_args(),
            'input_names': self._input_names(),
            'communicate': self._backend.communicate_call(),
            'learn': self._templates['learn_call'] if self._model.needs_learn_post() else "",
        }

    #############################################
    # neuronFnct.cc
    #############################################
    def _neuron_functions(self):
        populations = self._backend.neuron_generator

        support_code = ""
        for pop in self._model.neuron_groups:
            support_code += populations.support_code(pop)

        # event threshold conditions are evaluated in the neuron update
        for syn in self._model.synapse_groups:
            if syn.wu_model.uses_spike_events() and syn.event_namespace() is not None:
                support_code += self._backend.synapse_generator.support_code(syn)

        yield self._templates['neuron_head'] % {
            'includes': self._backend.includes(),
            'support_code': support_code,
            'input_args': self._input_args(),
        }

        for pop in self._model.neuron_groups:
            yield self._backend.emit_neuron_update(pop)

        yield self._templates['neuron_tail']

    #############################################
    # synapseFnct.cc
    #############################################
    def _synapse_functions(self):
        synapses = self._backend.synapse_generator

        support_code = ""
        for syn in self._model.synapse_groups:
            support_code += synapses.support_code(syn)

        yield self._templates['synapse_head'] % {
            'includes': self._backend.includes(),
            'support_code': support_code,
        }

        yield self._backend.emit_synapse_update()

        yield self._backend.emit_learning()

        Messages._debug("Generated the synapse functions of", len(self._model.synapse_groups), "synapse groups.")
