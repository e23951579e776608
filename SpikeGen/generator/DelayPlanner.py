"""
Sizing of the delay-slot ring buffers and the slot arithmetic used by the
generated code.

A population with S > 1 delay slots keeps one snapshot per slot of its
spikes, spike-like events and queued variables. The current slot pointer p
advances to (p + 1) % S at the start of the population update, before the
spikes of the step are written. A synapse group with the delay d reads the
slot (p + S - d + 1) % S. For S == 1 no slot arithmetic is generated at all.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.intern import Messages

def plan_delay_slots(synapse_groups):
    """
    Sizes the ring buffers of every population: the source of each synapse
    group (in model order) must provide delay + 1 slots.
    """
    for syn in synapse_groups:
        syn.source.check_num_delay_slots(syn.delay)
        Messages._debug("Delay slots of", syn.source.name, ":", syn.source.num_delay_slots)

#####################################################################
#   Reference arithmetic
#####################################################################
def advance(pointer, num_slots):
    "Slot pointer after one step."
    return (pointer + 1) % num_slots

def read_slot(pointer, num_slots, delay):
    "Slot read by a consumer with the given delay."
    if num_slots == 1:
        return 0
    return (pointer + num_slots - delay + 1) % num_slots

def previous_slot(pointer, num_slots):
    "Slot holding the values of the previous step."
    return (pointer + num_slots - 1) % num_slots

#####################################################################
#   Generated expressions
#####################################################################
def pointer_code(pop):
    "Current slot pointer of *pop*, None without delay."
    if pop.num_delay_slots == 1:
        return None
    return "ctx.%(name)s.spkQuePtr" % {'name': pop.name}

def advance_code(pop):
    "Statement advancing the slot pointer, empty without delay."
    if pop.num_delay_slots == 1:
        return ""
    return "%(ptr)s = (%(ptr)s + 1) %% %(slots)s;" % {'ptr': pointer_code(pop), 'slots': pop.num_delay_slots}

def read_slot_code(pop, delay):
    "Expression of the slot read with the given delay, None without delay."
    if pop.num_delay_slots == 1:
        return None

    if delay < 0 or delay >= pop.num_delay_slots:
        Messages._error("The delay", delay, "exceeds the", pop.num_delay_slots, "delay slots of", pop.name)

    # (p + S - d + 1) % S
    offset = (pop.num_delay_slots - delay + 1) % pop.num_delay_slots
    if offset == 0:
        return pointer_code(pop)
    return "((%(ptr)s + %(offset)s) %% %(slots)s)" % {'ptr': pointer_code(pop), 'offset': offset, 'slots': pop.num_delay_slots}

def previous_slot_code(pop):
    "Expression of the slot written during the previous step, None without delay."
    if pop.num_delay_slots == 1:
        return None
    return "((%(ptr)s + %(offset)s) %% %(slots)s)" % {'ptr': pointer_code(pop), 'offset': pop.num_delay_slots - 1, 'slots': pop.num_delay_slots}

def slot_offset_code(pop, slot):
    "Offset of the first neuron of *slot* in a queued array, empty for a flat buffer."
    if slot is None:
        return ""
    return "(%(slot)s * %(size)s) + " % {'slot': slot, 'size': pop.num_neurons}

def count_code(pop, slot, field="spkCnt"):
    "Spike (or event) counter of *slot*."
    if slot is None:
        return "ctx.%(name)s.%(field)s[0]" % {'name': pop.name, 'field': field}
    return "ctx.%(name)s.%(field)s[%(slot)s]" % {'name': pop.name, 'field': field, 'slot': slot}
