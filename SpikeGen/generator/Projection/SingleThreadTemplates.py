"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.generator.Population.SingleThreadTemplates import attribute_decl, attribute_alloc, attribute_free, attribute_init

# Definition of a synapse group as a c-like struct
#
# Parameters:
#
#    name: name of the synapse group
#    source, target: names of the neuron groups
#    connectivity: dense, sparse or bitmask
#    weight_storage: global, individual or procedural
#    declare_fields: input buffer, variables, connectivity and extra global parameters
synapse_struct = """
///////////////////////////////////////////////////////////////
// Synapse group %(name)s (%(source)s -> %(target)s, %(connectivity)s, %(weight_storage)s weights)
///////////////////////////////////////////////////////////////
struct SynapseGroup%(name)s {
%(declare_fields)s
};
"""

# Allocation of the arrays sized by the number of connections
#
# Parameters:
#
#    name: name of the synapse group
#    allocate_fields: calls to allocateArray()
allocate_sparse = """
void allocate%(name)s(SimulationContext &ctx, unsigned int connN) {
    ctx.%(name)s.connN = connN;
%(allocate_fields)s}
"""

allocate_sparse_prototype = """void allocate%(name)s(SimulationContext &ctx, unsigned int connN);
"""

# Connectivity known at generation time, read from the binary files written
# by the compiler.
#
# Parameters:
#
#    name: name of the synapse group
#    read_arrays: one block reading the arrays of a binary file
initialize_from_file = """
void initialize%(name)sFromFile(SimulationContext &ctx) {
%(read_arrays)s}
"""

initialize_from_file_prototype = """void initialize%(name)sFromFile(SimulationContext &ctx);
"""

read_arrays_from_stream = """    {
        FILE *f = openConnectivityFile("%(path)s");
%(reads)s        fclose(f);
    }
"""

read_stream = """        readStream(%(target)s, sizeof(%(type)s), %(count)s, f, "%(path)s");
"""

# Propagation of the spikes of all synapse groups
#
# Parameters:
#
#    synapse_groups: one block per synapse group, ordered by target and incoming position
propagation_function = """
void calcSynapsesCPU(SimulationContext &ctx, scalar t) {
    unsigned int ipost;
    unsigned int synAddress;
    scalar addtoinSyn;

%(synapse_groups)s
}
"""

# Postsynaptic learning pass of all learning synapse groups
learning_function = """
void learnSynapsesPostHost(SimulationContext &ctx, scalar t) {
    unsigned int ipre;
    unsigned int synAddress;

%(synapse_groups)s
}
"""

# One synapse group
#
# Parameters:
#
#    name, source, target, connectivity: description of the group
#    guard_open / guard_close: restriction to the host of the group (MPI)
#    using: support code namespace
#    delay_slot: slot read by the delayed group
#    body: spike loops
synapse_group_block = """    // Synapse group %(name)s (%(source)s -> %(target)s, %(connectivity)s)
    {
%(guard_open)s%(using)s%(delay_slot)s%(body)s%(guard_close)s    }
"""

delay_slot = """        const unsigned int delaySlot = %(slot)s;
"""

host_guard = {
    'open': """        if (localID == %(host)s) {
""",
    'close': """        }
"""
}

using_namespace = """        using namespace %(namespace)s;
"""

# Loop over the spikes (or spike-like events) of the presynaptic group
#
# Parameters:
#
#    comment: kind of spike
#    count: number of spikes in the slot
#    source: name of the presynaptic group
#    field: spk or spkEvnt
#    offset: first element of the slot
#    connectivity_loop: loop over the synapses of ipre
spike_loop = """        // %(comment)s
        for (unsigned int i = 0; i < %(count)s; i++) {
            const unsigned int ipre = ctx.%(source)s.%(field)s[%(offset)si];
%(connectivity_loop)s        }
"""

connectivity_loop = {
    'dense': """            for (ipost = 0; ipost < %(num_post)s; ipost++) {
                synAddress = ipre * %(num_post)s + ipost;
%(body)s            }
""",
    'bitmask': """            for (ipost = 0; ipost < %(num_post)s; ipost++) {
                synAddress = ipre * %(num_post)s + ipost;
                if (!B(ctx.%(name)s.gp[synAddress >> 5], synAddress & 31)) continue;
%(body)s            }
""",
    'sparse': """            for (synAddress = ctx.%(name)s.indInG[ipre]; synAddress < ctx.%(name)s.indInG[ipre + 1]; synAddress++) {
                ipost = ctx.%(name)s.ind[synAddress];
%(body)s            }
""",
}

event_gate = """                if (%(condition)s) {
%(code)s                }
"""

# Loop over the true spikes of the postsynaptic group (learning pass)
#
# Parameters:
#
#    count: number of spikes in the current slot
#    target: name of the postsynaptic group
#    offset: first element of the current slot
#    connectivity_loop: loop over the synapses reaching ipost
learn_spike_loop = """        // true spikes of %(target)s
        for (unsigned int i = 0; i < %(count)s; i++) {
            const unsigned int ipost = ctx.%(target)s.spk[%(offset)si];
%(connectivity_loop)s        }
"""

learn_connectivity_loop = {
    'dense': """            for (ipre = 0; ipre < %(num_pre)s; ipre++) {
                synAddress = ipre * %(num_post)s + ipost;
%(body)s            }
""",
    'sparse': """            for (ipre = 0; ipre < %(num_pre)s; ipre++) {
                for (synAddress = ctx.%(name)s.indInG[ipre]; synAddress < ctx.%(name)s.indInG[ipre + 1]; synAddress++) {
                    if ((unsigned int) ctx.%(name)s.ind[synAddress] != ipost) continue;
%(body)s                }
            }
""",
}

support_code_namespace = """namespace %(namespace)s {
namespace {
%(code)s
}
}
"""

#
# Final dictionary
single_thread_templates = {
    'attribute_decl': attribute_decl,
    'attribute_alloc': attribute_alloc,
    'attribute_free': attribute_free,
    'attribute_init': attribute_init,
    'synapse_struct': synapse_struct,
    'allocate_sparse': allocate_sparse,
    'allocate_sparse_prototype': allocate_sparse_prototype,
    'initialize_from_file': initialize_from_file,
    'initialize_from_file_prototype': initialize_from_file_prototype,
    'read_arrays_from_stream': read_arrays_from_stream,
    'read_stream': read_stream,

    'propagation_function': propagation_function,
    'learning_function': learning_function,
    'synapse_group_block': synapse_group_block,
    'delay_slot': delay_slot,
    'host_guard': host_guard,
    'using_namespace': using_namespace,
    'spike_loop': spike_loop,
    'connectivity_loop': connectivity_loop,
    'event_gate': event_gate,
    'learn_spike_loop': learn_spike_loop,
    'learn_connectivity_loop': learn_connectivity_loop,
    'support_code_namespace': support_code_namespace,
}
