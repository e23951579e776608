"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

# Definition of a neuron group as a c-like struct
#
# Parameters:
#
#    name: name of the neuron group
#    size: number of neurons
#    slots: number of delay slots
#    declare_fields: spike buffers, variables and extra global parameters
population_struct = """
///////////////////////////////////////////////////////////////
// Neuron group %(name)s (%(size)s neurons, %(slots)s delay slot(s))
///////////////////////////////////////////////////////////////
struct NeuronGroup%(name)s {
%(declare_fields)s
};
"""

attribute_decl = {
    'scalar': """    %(type)s %(name)s;
""",
    'array': """    %(type)s *%(name)s; // %(size)s elements
"""
}

attribute_alloc = """    allocateArray(ctx.%(obj)s.%(name)s, %(size)s, %(zero_copy)s);
"""

attribute_free = """    freeArray(ctx.%(obj)s.%(name)s);
"""

attribute_init = {
    'scalar': """    ctx.%(obj)s.%(name)s = %(value)s;
""",
    'array': """    for (unsigned int i = 0; i < %(size)s; i++) {
        ctx.%(obj)s.%(name)s[i] = %(value)s;
    }
""",
    'values': """    {
        static const %(type)s values[%(num)s] = {%(values)s};
        for (unsigned int i = 0; i < %(size)s; i++) {
            ctx.%(obj)s.%(name)s[i] = values[i %% %(num)s];
        }
    }
""",
}

# Update of one neuron group
#
# Parameters:
#
#    name: name of the neuron group
#    size: number of neurons
#    advance: move the slot pointer and reset the counters of the new slot
#    read_variables: copy the state into local variables
#    read_input: copy the synaptic inputs into local variables
#    apply_input: postsynaptic models adding their contribution to Isyn
#    external_input: constant or array input current
#    old_spike: threshold condition evaluated before the update
#    sim_code: neuron update
#    spike_events: detection of spike-like events
#    true_spike: detection of true spikes and reset
#    write_variables: copy the local variables back
#    decay: postsynaptic decay and write back of the input
update_neuron = """
    // Neuron group %(name)s
    {
%(advance)s
%(guard_open)s
        for (unsigned int n = 0; n < %(size)s; n++) {
%(read_variables)s
%(read_input)s
            scalar Isyn = 0;
%(apply_input)s
%(external_input)s
%(old_spike)s
            // calculate the new state
%(sim_code)s
%(spike_events)s
%(true_spike)s
%(write_variables)s
%(decay)s
        }
%(guard_close)s
    }
"""

advance_pointer = """        %(advance)s
"""

reset_counter = """        ctx.%(name)s.%(field)s[%(slot)s] = 0;
"""

read_variable = """            %(type)s l%(var)s = ctx.%(name)s.%(var)s[%(offset)sn];
"""

write_variable = """            ctx.%(name)s.%(var)s[%(offset)sn] = l%(var)s;
"""

read_input = """            scalar linSyn%(idx)s = ctx.%(syn)s.inSyn[n];
"""

read_ps_variable = """            %(type)s lps%(var)s%(idx)s = ctx.%(syn)s.%(var)s[n];
"""

write_input = """            ctx.%(syn)s.inSyn[n] = linSyn%(idx)s;
"""

write_ps_variable = """            ctx.%(syn)s.%(var)s[n] = lps%(var)s%(idx)s;
"""

old_spike = """            bool oldSpike = (%(condition)s);
"""

spike_event_condition = """            {
%(using)s                spikeLikeEvent |= (%(condition)s);
            }
"""

spike_events = """            // test for spike-like events
            bool spikeLikeEvent = false;
%(conditions)s
            if (spikeLikeEvent) {
                // register a spike-like event
                ctx.%(name)s.spkEvnt[%(offset)sctx.%(name)s.spkCntEvnt[%(slot)s]++] = n;
            }
"""

true_spike = """            // test for a true spike
            if ((%(condition)s) && !(oldSpike)) {
                // register a true spike
                ctx.%(name)s.spk[%(offset)sctx.%(name)s.spkCnt[%(slot)s]++] = n;
%(spike_time)s
%(reset)s
            }
"""

spike_time = """                ctx.%(name)s.sT[n] = t;
"""

host_guard = {
    'open': """        if (localID == %(host)s) {
""",
    'close': """        }
"""
}

using_namespace = """using namespace %(namespace)s;
"""

support_code_namespace = """namespace %(namespace)s {
namespace {
%(code)s
}
}
"""

#
# Final dictionary
single_thread_templates = {
    'population_struct': population_struct,
    'attribute_decl': attribute_decl,
    'attribute_alloc': attribute_alloc,
    'attribute_free': attribute_free,
    'attribute_init': attribute_init,

    'update_neuron': update_neuron,
    'advance_pointer': advance_pointer,
    'reset_counter': reset_counter,
    'read_variable': read_variable,
    'write_variable': write_variable,
    'read_input': read_input,
    'read_ps_variable': read_ps_variable,
    'write_input': write_input,
    'write_ps_variable': write_ps_variable,
    'old_spike': old_spike,
    'spike_event_condition': spike_event_condition,
    'spike_events': spike_events,
    'true_spike': true_spike,
    'spike_time': spike_time,
    'host_guard': host_guard,
    'using_namespace': using_namespace,
    'support_code_namespace': support_code_namespace,
}
