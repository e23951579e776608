"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
import io
import os
import numpy as np

from SpikeGen.core.Connectivity import SparseProjection, SPARSE, BITMASK, INDIVIDUAL, PROCEDURAL, bitmask_from_projection, bitmask_words
from SpikeGen.core.IO import save_connectivity
from SpikeGen.core.RuntimeState import synapse_fields, CONN_N
from SpikeGen.generator.DelayPlanner import pointer_code, read_slot_code, slot_offset_code
from SpikeGen.generator.Population.PopulationGenerator import init_value_code, random_distributions
from SpikeGen.parser.Substitution import SubstitutionPass, SymbolTable, c_literal
from SpikeGen.intern import Messages

class ProjectionGenerator(object):
    """
    Abstract definition of a ProjectionGenerator. Inherited by

    * SingleThreadGenerator: sequential propagation and learning on the CPU.
    """
    def __init__(self, model, templates):
        """
        Initialization of the class object and store the finalized model.
        """
        super(ProjectionGenerator, self).__init__()

        self._model = model
        self._templates = templates

    #############################################
    # Memory management
    #############################################
    def header_struct(self, syn):
        """
        Generate the c-style struct definition of a synapse group. The members
        are given by SpikeGen.core.RuntimeState.synapse_fields().
        """
        declaration = ""
        for name, (ctype, size) in synapse_fields(syn).items():
            if size is None:
                declaration += self._templates['attribute_decl']['scalar'] % {'type': ctype, 'name': name}
            else:
                declaration += self._templates['attribute_decl']['array'] % {'type': ctype, 'name': name, 'size': size}

        return self._templates['synapse_struct'] % {
            'name': syn.name,
            'source': syn.source.name,
            'target': syn.target.name,
            'connectivity': syn.connectivity,
            'weight_storage': syn.weight_storage,
            'declare_fields': declaration.rstrip('\n'),
        }

    def prototypes(self, syn):
        "Declarations of the group-specific functions of runner.cc."
        code = ""
        if syn.connectivity == SPARSE:
            code += self._templates['allocate_sparse_prototype'] % {'name': syn.name}
        if self.connectivity_from_file(syn):
            code += self._templates['initialize_from_file_prototype'] % {'name': syn.name}
        return code

    def _zero_copy(self, syn, name):
        if name in syn.wu_model.variable_names:
            return syn.wu_var_zero_copy[syn.wu_model.variable_names.index(name)]
        if name in syn.ps_model.variable_names:
            return syn.ps_var_zero_copy[syn.ps_model.variable_names.index(name)]
        return False

    def _alloc(self, syn, name, size):
        return self._templates['attribute_alloc'] % {
            'obj': syn.name, 'name': name, 'size': size,
            'zero_copy': 'true' if self._zero_copy(syn, name) else 'false'
        }

    def allocate(self, syn):
        """
        Allocation of the arrays of fixed size in allocateMem(). The arrays of a
        sparse group sized by the number of connections are allocated by
        allocate<name>(), called here with the known number of connections.
        """
        code = "    // Synapse group " + syn.name + "\n"
        for name, (ctype, size) in synapse_fields(syn).items():
            if size is None or size == CONN_N:
                continue
            code += self._alloc(syn, name, size)

        if syn.connectivity == SPARSE:
            code += "    allocate%(name)s(ctx, %(conn_n)s);\n" % {'name': syn.name, 'conn_n': syn.conn_n()}
        return code

    def allocate_function(self, syn):
        "Definition of allocate<name>() for sparse groups, empty otherwise."
        if syn.connectivity != SPARSE:
            return ""

        code = ""
        for name, (ctype, size) in synapse_fields(syn).items():
            if size == CONN_N:
                code += self._alloc(syn, name, "connN")
        return self._templates['allocate_sparse'] % {'name': syn.name, 'allocate_fields': code}

    def free(self, syn):
        "Release of the arrays of the group, called by freeMem()."
        code = ""
        for name, (ctype, size) in synapse_fields(syn).items():
            if size is not None:
                code += self._templates['attribute_free'] % {'obj': syn.name, 'name': name}
        return code

    def initialize(self, syn):
        "Initial values of all members, called by initialize()."
        code = "    // Synapse group " + syn.name + "\n"
        for name, (ctype, size) in synapse_fields(syn).items():
            if name == 'connN':
                continue

            if size == CONN_N:
                size = "ctx.%(name)s.connN" % {'name': syn.name}

            if name in syn.ps_init:
                value = syn.ps_init[name]
            elif name in syn.wu_model.variable_names:
                value = syn.wu_init[name]
            else:
                value = 0

            if isinstance(value, (list, tuple)):
                value = np.array(value, dtype=float)

            code += init_value_code(self._templates, syn.name, name, ctype, size, value)

        if self.connectivity_from_file(syn):
            code += "    initialize%(name)sFromFile(ctx);\n" % {'name': syn.name}
        return code

    #############################################
    # Connectivity files
    #############################################
    def connectivity_from_file(self, syn):
        "True if the connectivity of the group is known at generation time."
        return syn.connectivity in [SPARSE, BITMASK] and syn.sparse_projection is not None

    def connectivity_filename(self, syn):
        if syn.connectivity == BITMASK:
            return syn.name + "_gp.bin"
        return syn.name + "_conn.bin"

    def _file_weights(self, syn):
        """
        Weights stored in the connectivity file: those of the projection,
        otherwise the initial value of the weight variable.
        """
        projection = syn.sparse_projection
        if projection.weights is not None:
            return projection.weights

        weight = syn.weight_variable()
        if weight is None or syn.weight_storage != INDIVIDUAL:
            return np.zeros(projection.conn_n)
        return syn.wu_init_array(weight, projection.conn_n)

    def connectivity_files(self, syn):
        """
        Returns an ordered dictionary filename -> bytes of the binary files read
        by initialize<name>FromFile().
        """
        files = OrderedDict()
        if not self.connectivity_from_file(syn):
            return files

        projection = syn.sparse_projection
        if syn.connectivity == BITMASK:
            files[self.connectivity_filename(syn)] = bitmask_from_projection(projection, syn.target.num_neurons).astype(np.uint32).tobytes()
            return files

        stream = io.BytesIO()
        with_weights = SparseProjection(projection.ind_in_g, projection.ind, num_post=projection.num_post, weights=self._file_weights(syn))
        save_connectivity(with_weights, stream)
        files[self.connectivity_filename(syn)] = stream.getvalue()
        return files

    def initialize_from_file(self, syn, directory):
        "Definition of initialize<name>FromFile(), reading the files of connectivity_files()."
        if not self.connectivity_from_file(syn):
            return ""

        path = os.path.abspath(os.path.join(directory, self.connectivity_filename(syn)))
        projection = syn.sparse_projection
        reads = []
        if syn.connectivity == BITMASK:
            reads.append(("ctx." + syn.name + ".gp", "uint32_t", bitmask_words(syn.source.num_neurons, syn.target.num_neurons)))
        else:
            weight = syn.weight_variable()
            if syn.weight_storage == INDIVIDUAL and weight is not None:
                target = "ctx." + syn.name + "." + weight
            else:
                target = "NULL"
            reads.append((target, "scalar", projection.conn_n))
            reads.append(("ctx." + syn.name + ".indInG", "unsigned int", projection.num_pre + 1))
            reads.append(("ctx." + syn.name + ".ind", "int", projection.conn_n))

        code = ""
        for target, ctype, count in reads:
            code += self._templates['read_stream'] % {'target': target, 'type': ctype, 'count': count, 'path': path}

        return self._templates['initialize_from_file'] % {
            'name': syn.name,
            'read_arrays': self._templates['read_arrays_from_stream'] % {'path': path, 'reads': code}
        }

    #############################################
    # Symbol tables
    #############################################
    def delay_slot(self, syn):
        "Slot of the presynaptic buffers read by the group, None without delay."
        return read_slot_code(syn.source, syn.delay)

    def procedural_weight(self, syn):
        """
        Expression of a procedural weight: the fragment is expanded with the
        ranks and the parameters of the group.
        """
        ranks = SubstitutionPass('variables', OrderedDict([('id_pre', 'ipre'), ('id_post', 'ipost')]))
        parameters = SubstitutionPass('parameters', syn.wu_parameter_values())
        return "(" + syn.procedural_weight.expand([ranks, parameters]) + ")"

    def _weight_access(self, syn, var):
        if syn.weight_storage == INDIVIDUAL:
            return "ctx.%(name)s.%(var)s[synAddress]" % {'name': syn.name, 'var': var}

        if syn.weight_storage == PROCEDURAL and var == syn.weight_variable():
            return self.procedural_weight(syn)

        value = syn.wu_init[var]
        if isinstance(value, (list, tuple, np.ndarray)):
            raise Messages.InvalidConfiguration("the synapse group " + syn.name + " stores " + var + " as a " + syn.weight_storage + " value, the initial value must be a scalar.")
        return c_literal(float(value))

    def _state_pass(self, syn):
        "Variables of the synapse, ranks, time and input buffer."
        state = SubstitutionPass('variables')
        for var in syn.wu_model.variable_names:
            state.add(var, self._weight_access(syn, var))

        state.add('id_pre', 'ipre')
        state.add('id_post', 'ipost')
        state.add('t', 't')
        state.add('DT', 'DT')
        for name, code in random_distributions.items():
            state.add(name, code)
        return state

    def _input_pass(self, syn):
        synaptic_input = SubstitutionPass('input')
        synaptic_input.add('addtoinSyn', 'addtoinSyn')
        synaptic_input.add('updatelinsyn', "ctx.%(name)s.inSyn[ipost] += addtoinSyn" % {'name': syn.name})
        synaptic_input.add('inSyn', "ctx.%(name)s.inSyn[ipost]" % {'name': syn.name})
        return synaptic_input

    def _neuron_pass(self, syn, post_pass=False):
        """
        Variables and spike times of the pre- and postsynaptic neurons.

        The presynaptic variables which are queued are read in the delay slot
        of the group. In the postsynaptic pass, the spike time of a delayed
        source is corrected by the propagation delay.
        """
        neurons = SubstitutionPass('neurons')

        source = syn.source
        queued_offset = slot_offset_code(source, "delaySlot" if self.delay_slot(syn) is not None else None)
        for idx, var in enumerate(source.model.variable_names):
            offset = queued_offset if source.var_need_queue[idx] else ""
            neurons.add(var + '_pre', "ctx.%(name)s.%(var)s[%(offset)sipre]" % {'name': source.name, 'var': var, 'offset': offset})

        spike_time = "ctx.%(name)s.sT[ipre]" % {'name': source.name}
        if post_pass and source.delay_required() and syn.delay > 0:
            spike_time = "(%(sT)s - DT * %(delay)s)" % {'sT': spike_time, 'delay': syn.delay}
        neurons.add('sT_pre', spike_time)

        target = syn.target
        for idx, var in enumerate(target.model.variable_names):
            queued = target.var_need_queue[idx] and target.delay_required()
            offset = slot_offset_code(target, pointer_code(target)) if queued else ""
            neurons.add(var + '_post', "ctx.%(name)s.%(var)s[%(offset)sipost]" % {'name': target.name, 'var': var, 'offset': offset})
        neurons.add('sT_post', "ctx.%(name)s.sT[ipost]" % {'name': target.name})

        return neurons

    def _parameter_passes(self, syn):
        parameters = SubstitutionPass('parameters', OrderedDict(zip(syn.wu_model.parameters, syn.wu_params)))
        derived = SubstitutionPass('derived_parameters', syn.wu_derived_params)
        return parameters, derived

    def _egp_pass(self, syn):
        egps = SubstitutionPass('extra_global_parameters')
        for egp in syn.wu_model.extra_global_parameter_names:
            egps.add(egp, "ctx." + syn.name + "." + egp)
        return egps

    def synapse_table(self, syn, post_pass=False):
        "Symbol table of the code fragments of the weight update model."
        parameters, derived = self._parameter_passes(syn)
        return SymbolTable([
            self._state_pass(syn),
            self._input_pass(syn),
            self._neuron_pass(syn, post_pass),
            parameters,
            derived,
            self._egp_pass(syn),
        ])

    def propagation(self, distributed=False):
        """
        Generates calcSynapsesCPU(). If *distributed* is True, the update of
        every group is restricted to its cluster host.

        Implemented by child classes.
        """
        raise NotImplementedError

    def learning(self, distributed=False):
        "Implemented by child classes."
        raise NotImplementedError
