"""
Backends of the code generation.

A backend emits the parts of the simulation loop which depend on the
execution target. The generated files share the same layout for all
backends; the MPI backend restricts every group to its cluster host and
adds the spike exchange.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict

from SpikeGen.intern import Messages
from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.generator.Population.SingleThreadGenerator import SingleThreadGenerator as PopulationSingleThreadGenerator
from SpikeGen.generator.Projection.SingleThreadGenerator import SingleThreadGenerator as ProjectionSingleThreadGenerator
from SpikeGen.generator.MPI.MPIGenerator import MPIGenerator

class Backend(object):
    """
    Interface of a backend.

    * emit_neuron_update(pop): update of one neuron group in calcNeuronsCPU().
    * emit_synapse_update(): calcSynapsesCPU().
    * emit_learning(): learnSynapsesPostHost(), empty if no group learns.
    * emit_cross_host_sync(): additional files of the spike exchange.
    """
    name = None

    def __init__(self, model):
        self._model = model
        self.neuron_generator = PopulationSingleThreadGenerator(model)
        self.synapse_generator = ProjectionSingleThreadGenerator(model)

    @property
    def distributed(self):
        return False

    def default_compiler(self):
        return "g++"

    def includes(self):
        "Additional headers of the generated sources."
        return ""

    def emit_neuron_update(self, pop):
        raise NotImplementedError

    def emit_synapse_update(self):
        return self.synapse_generator.propagation(self.distributed)

    def emit_learning(self):
        return self.synapse_generator.learning(self.distributed)

    def emit_cross_host_sync(self):
        raise NotImplementedError

    def communicate_call(self):
        "Statement exchanging the spikes in stepTimeCPU(), empty without exchange."
        return ""


class CPUBackend(Backend):
    "Single-threaded simulation on one host."
    name = "cpu"

    def emit_neuron_update(self, pop):
        return self.neuron_generator.update(pop)

    def emit_cross_host_sync(self):
        return OrderedDict()


class MPIBackend(Backend):
    """
    Simulation distributed over several cluster hosts (MPI ranks).

    Every rank advances the slot pointers of all populations, but only updates
    the neurons and synapses placed on it. After the neuron update, the spikes
    of the populations consumed on another host are exchanged.
    """
    name = "mpi"

    def __init__(self, model):
        super(MPIBackend, self).__init__(model)
        self.mpi_generator = MPIGenerator(model)

    @property
    def distributed(self):
        return True

    def default_compiler(self):
        return "mpicxx"

    def includes(self):
        return "#include \"infraMPI.h\"\n"

    def emit_neuron_update(self, pop):
        return self.neuron_generator.update(pop, host=pop.cluster_host_id)

    def emit_cross_host_sync(self):
        files = OrderedDict()
        files['infraMPI.h'] = self.mpi_generator.header()
        files['infraMPI.cc'] = self.mpi_generator.body()
        return files

    def communicate_call(self):
        return "    communicateSpikes(ctx);\n"


_backends = {
    'cpu': CPUBackend,
    'mpi': MPIBackend,
}

def get_backend(model, paradigm=None):
    "Backend for *paradigm* (default: the configured paradigm)."
    if paradigm is None:
        paradigm = get_global_config('paradigm')

    try:
        backend = _backends[paradigm]
    except KeyError:
        raise Messages.InvalidConfiguration("unknown paradigm " + str(paradigm))

    Messages._debug("Code generation for the", paradigm, "backend.")
    return backend(model)
