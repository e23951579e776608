# SpikeGen core
from .core.Neuron import NeuronModel
from .core.Synapse import WeightUpdateModel, PostsynapticModel, PiecewiseLearningRule
from .core.NeuronGroup import NeuronGroup
from .core.SynapseGroup import SynapseGroup
from .core.Model import NNModel
from .core.Connectivity import SparseProjection, DENSE, SPARSE, BITMASK, GLOBAL, INDIVIDUAL, PROCEDURAL
from .core.IO import save_connectivity, load_connectivity
from .core.RuntimeState import PopulationState, SynapseState, SimulationContext, SpikeDetector
from .parser.Regimes import Regime, TimeDerivative, StateAssignment, OnCondition, RegimeAdapter
from .models.Neurons import *
from .models.Synapses import *
from .intern.ConfigManagement import setup, get_global_config
from .intern.Messages import SpikeGenException, ModelAuthoringError, InvalidConfiguration, DataCorruptionError
from .intern import Messages

# Code generation
from .generator.Compiler import compile

# several setup() arguments can be set on command-line
from SpikeGen.generator.CmdLineArgParser import CmdLineArgParser
_arg_parser = CmdLineArgParser()
_arg_parser.parse_arguments_for_setup()

# Version
__version__ = '1.0'
__release__ = '1.0.0'
