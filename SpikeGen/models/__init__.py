from .Neurons import list_standard_neurons
from .Neurons import Izhikevich, LIF, PoissonSource, SpikeSource
from .Synapses import list_standard_synapses, list_standard_postsynaptic_models
from .Synapses import StaticPulse, StaticGraded, PiecewiseSTDP, DeltaCurr, ExpCond
