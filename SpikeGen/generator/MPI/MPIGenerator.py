"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from copy import deepcopy

from SpikeGen.generator.MPI.MPITemplates import mpi_templates
from SpikeGen.intern import Messages

class MPIGenerator(object):
    """
    Generates infraMPI.h and infraMPI.cc: the exchange of the spikes of every
    population consumed by a synapse group placed on another cluster host.

    All ranks walk the same ordered list of transfers (NNModel.spike_transfers())
    and each rank takes part in the transfers naming it as sender or receiver.
    As the blocking sends and receives are issued in the same global order on
    both sides of every transfer, they always pair up.
    """
    def __init__(self, model):
        self._model = model
        self._templates = deepcopy(mpi_templates)

    def exchanged_populations(self):
        "Populations with a spike exchange tag, in model order."
        return [self._model.neuron_group(name) for name in self._model.spike_exchange_tags().keys()]

    @staticmethod
    def buffer_sizes(pop):
        """
        Sizes of the count and index buffers of a population: one counter and
        num_neurons entries per delay slot.
        """
        return pop.num_delay_slots, pop.num_neurons * pop.num_delay_slots

    def _buffers(self, pop, template):
        count_size, spike_size = self.buffer_sizes(pop)
        fields = [('spkCnt', count_size), ('spk', spike_size)]
        if pop.need_spike_events:
            fields += [('spkCntEvnt', count_size), ('spkEvnt', spike_size)]

        code = ""
        for field, size in fields:
            code += template % {'name': pop.name, 'field': field, 'size': size}
        return code

    def push(self, pop):
        "Sends the spike buffers of *pop* to a remote host."
        count_size, spike_size = self.buffer_sizes(pop)
        return self._templates['push_function'] % {
            'name': pop.name,
            'count_size': count_size,
            'spike_size': spike_size,
            'buffers': self._buffers(pop, self._templates['send_buffer']),
        }

    def pull(self, pop):
        "Receives the spike buffers of *pop* from a remote host."
        count_size, spike_size = self.buffer_sizes(pop)
        return self._templates['pull_function'] % {
            'name': pop.name,
            'count_size': count_size,
            'spike_size': spike_size,
            'buffers': self._buffers(pop, self._templates['recv_buffer']),
        }

    def communicate(self):
        "Body of communicateSpikes()."
        code = ""
        for transfer in self._model.spike_transfers():
            Messages._debug("Spike transfer of", transfer.population.name, ":", transfer.sender, "->", transfer.receiver, "tag", transfer.tag)
            code += self._templates['transfer'] % {
                'name': transfer.population.name,
                'sender': transfer.sender,
                'receiver': transfer.receiver,
                'tag': transfer.tag,
            }
        return code

    def header(self):
        "Content of infraMPI.h."
        prototypes = ""
        for pop in self.exchanged_populations():
            prototypes += self._templates['push_prototype'] % {'name': pop.name}
            prototypes += self._templates['pull_prototype'] % {'name': pop.name}

        return self._templates['infra_header'] % {'model': self._model.name, 'prototypes': prototypes}

    def body(self):
        "Content of infraMPI.cc."
        push_pull = ""
        for pop in self.exchanged_populations():
            push_pull += self.push(pop) + self.pull(pop)

        return self._templates['infra_body'] % {
            'model': self._model.name,
            'push_pull': push_pull,
            'transfers': self.communicate(),
        }
