"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict
import numpy as np

from SpikeGen.intern import Messages
from SpikeGen.core.Synapse import WeightUpdateModel, PostsynapticModel
from SpikeGen.core.NeuronGroup import resolve_values
from SpikeGen.core.Connectivity import connectivity_types, weight_types, SparseProjection, SPARSE, BITMASK, PROCEDURAL
from SpikeGen.parser.DerivedParameters import evaluate_derived_parameters
from SpikeGen.parser.Substitution import CodeFragment

class SynapseGroup(object):
    """
    Descriptor of the synapses between two neuron groups.

    :param name: unique name of the group.
    :param connectivity: "dense", "sparse" or "bitmask".
    :param weight_storage: "global" (one value per variable), "individual" (one value per synapse) or "procedural" (computed from the ranks).
    :param source: name of the presynaptic NeuronGroup.
    :param target: name of the postsynaptic NeuronGroup.
    :param wu_model: WeightUpdateModel instance.
    :param wu_params: parameter values of the weight update model.
    :param wu_init: initial values of the weight update variables (dict or list).
    :param ps_model: PostsynapticModel instance.
    :param ps_params: parameter values of the postsynaptic model.
    :param ps_init: initial values of the postsynaptic variables.
    :param delay: propagation delay in integration steps.
    :param procedural_weight: code of the weight as a function of $(id_pre), $(id_post) and the parameters ("procedural" storage only).
    """
    def __init__(self, name, connectivity, weight_storage, source, target,
                 wu_model, wu_params=None, wu_init=None,
                 ps_model=None, ps_params=None, ps_init=None,
                 delay=0, procedural_weight=None):

        if connectivity not in connectivity_types:
            raise Messages.InvalidConfiguration("unknown connectivity type '" + str(connectivity) + "' for the synapse group " + name)

        if weight_storage not in weight_types:
            raise Messages.InvalidConfiguration("unknown weight storage '" + str(weight_storage) + "' for the synapse group " + name)

        if not isinstance(wu_model, WeightUpdateModel):
            Messages._error("SynapseGroup", name, ": the weight update model must be a WeightUpdateModel instance.")

        if ps_model is None or not isinstance(ps_model, PostsynapticModel):
            Messages._error("SynapseGroup", name, ": the postsynaptic model must be a PostsynapticModel instance.")

        if int(delay) < 0:
            Messages._error("SynapseGroup", name, ": the delay can not be negative.")

        self.name = name
        self.connectivity = connectivity
        self.weight_storage = weight_storage
        self.wu_model = wu_model
        self.ps_model = ps_model
        self.delay = int(delay)
        self.handle = None

        # Names at declaration, handles after finalize()
        self.source_name = source
        self.target_name = target
        self.source = None
        self.target = None

        # Parameters
        self.wu_params = [float(p) for p in resolve_values(wu_model.parameters, wu_params, 'parameter', 'SynapseGroup ' + name)]
        self.ps_params = [float(p) for p in resolve_values(ps_model.parameters, ps_params, 'parameter', 'SynapseGroup ' + name)]
        self.wu_derived_params = None
        self.ps_derived_params = None

        self.wu_init = OrderedDict(zip(wu_model.variable_names, resolve_values(wu_model.variable_names, wu_init, 'initial value', 'SynapseGroup ' + name, default=0.0)))
        self.ps_init = OrderedDict(zip(ps_model.variable_names, resolve_values(ps_model.variable_names, ps_init, 'initial value', 'SynapseGroup ' + name, default=0.0)))

        # Procedural weights
        if weight_storage == PROCEDURAL and not procedural_weight:
            raise Messages.InvalidConfiguration("the synapse group " + name + " uses procedural weights but no weight code was provided.")
        self.procedural_weight = CodeFragment(procedural_weight, "procedural weight of " + name) if procedural_weight else None

        # Sparse connectivity
        self.sparse_projection = None
        self.max_connections = None

        # Memory placement
        self.wu_var_zero_copy = [False for _ in wu_model.variables]
        self.ps_var_zero_copy = [False for _ in ps_model.variables]

        # Cluster placement
        self.cluster_host_id = 0
        self.cluster_device_id = 0

        # Position in the incoming list of the target, set by finalize()
        self.in_syn_index = None

    def __repr__(self):
        return "SynapseGroup(" + self.name + ": " + str(self.source_name) + " -> " + str(self.target_name) + ", " + self.connectivity + ", " + self.weight_storage + ")"

    def set_sparse_projection(self, projection):
        """
        Attaches the connectivity (SparseProjection) of a sparse group, or the
        enabled synapses of a bitmask group.
        """
        if self.connectivity not in [SPARSE, BITMASK]:
            raise Messages.InvalidConfiguration("a SparseProjection can only be attached to sparse or bitmask synapse groups, " + self.name + " is " + self.connectivity)
        if not isinstance(projection, SparseProjection):
            Messages._error("SynapseGroup", self.name, ": expected a SparseProjection.")
        self.sparse_projection = projection

    def set_max_connections(self, max_connections):
        "Number of connections to allocate if the connectivity is only known at run time."
        self.max_connections = int(max_connections)

    def set_cluster_index(self, host_id, device_id=0):
        self.cluster_host_id = int(host_id)
        self.cluster_device_id = int(device_id)

    def set_wu_var_zero_copy(self, name, enabled=True):
        try:
            idx = self.wu_model.variable_names.index(name)
        except ValueError:
            Messages._error("SynapseGroup", self.name, ": the variable", name, "does not exist.")
        self.wu_var_zero_copy[idx] = bool(enabled)

    def set_ps_var_zero_copy(self, name, enabled=True):
        try:
            idx = self.ps_model.variable_names.index(name)
        except ValueError:
            Messages._error("SynapseGroup", self.name, ": the variable", name, "does not exist.")
        self.ps_var_zero_copy[idx] = bool(enabled)

    def init_derived_params(self, dt):
        "Computes the derived parameters of both models once."
        if self.wu_derived_params is not None:
            Messages._error("SynapseGroup", self.name, ": the derived parameters have already been computed.")

        self.wu_derived_params = evaluate_derived_parameters(
            self.wu_model.derived_parameters, self.wu_model.parameters, self.wu_params, dt,
            context="of the synapse group " + self.name)
        self.ps_derived_params = evaluate_derived_parameters(
            self.ps_model.derived_parameters, self.ps_model.parameters, self.ps_params, dt,
            context="of the synapse group " + self.name)

    #############################################
    # Queries
    #############################################
    def conn_n(self):
        "Number of synapses to allocate for sparse connectivity (0 if unknown)."
        if self.sparse_projection is not None:
            return self.sparse_projection.conn_n
        if self.max_connections is not None:
            return self.max_connections
        return 0

    def is_cross_host(self):
        "True if the source population lives on another host than the synapse group."
        return self.source.cluster_host_id != self.cluster_host_id

    def uses_zero_copy(self):
        return any(self.wu_var_zero_copy) or any(self.ps_var_zero_copy)

    def wu_parameter_values(self):
        values = OrderedDict(zip(self.wu_model.parameters, self.wu_params))
        if self.wu_derived_params is not None:
            values.update(self.wu_derived_params)
        return values

    def ps_parameter_values(self):
        values = OrderedDict(zip(self.ps_model.parameters, self.ps_params))
        if self.ps_derived_params is not None:
            values.update(self.ps_derived_params)
        return values

    def wu_init_array(self, name, size):
        "Initial values of the weight update variable *name* for *size* synapses."
        value = self.wu_init[name]
        if isinstance(value, (list, tuple, np.ndarray)):
            value = np.array(value, dtype=float)
            if value.size != size:
                Messages._error("SynapseGroup", self.name, ": the initial value of", name, "must have", size, "elements.")
            return value
        return np.full(size, float(value))

    def event_namespace(self):
        "Namespace of the support code used by the event threshold condition."
        return self.name + "_weightupdate_simCode" if self.wu_model.support_code else None

    def weight_variable(self):
        "Variable holding the weight: g if it exists, otherwise the first variable (None without variables)."
        names = self.wu_model.variable_names
        if 'g' in names:
            return 'g'
        return names[0] if len(names) > 0 else None
