"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import io
import numpy
import unittest

from SpikeGen import NNModel, NeuronModel, SparseProjection, SimulationContext, ModelAuthoringError, setup, save_connectivity
from SpikeGen import Izhikevich, LIF, StaticPulse, StaticGraded, PiecewiseSTDP, DeltaCurr, ExpCond
from SpikeGen.intern.ConfigManagement import ConfigManager
from SpikeGen.core.Connectivity import bitmask_from_projection, bitmask_words, is_connected
from SpikeGen.generator.CodeGenerator import CodeGenerator

izhikevich_params = {'a': 0.02, 'b': 0.2, 'c': -65.0, 'd': 8.0}

stdp_params = {
    'tLrn': 50.0, 'tChng': 50.0, 'tPunish10': 100.0, 'tPunish01': 200.0,
    'gMax': 1.0, 'gMid': 0.5, 'gSlope': 10.0, 'tauShift': 0.0
}

lif_params = {
    'C': 0.25, 'TauM': 10.0, 'Vrest': -65.0, 'Vreset': -65.0,
    'Vthresh': -50.0, 'Ioffset': 0.0, 'TauRefrac': 2.0
}

def pulse_model(connectivity, weight_storage, num_pre=3, num_post=4, delay=0, procedural_weight=None):
    "Two Izhikevich populations connected by a StaticPulse synapse group called Syn."
    model = NNModel("net")
    model.add_neuron_population("Pre", num_pre, Izhikevich(), izhikevich_params, {'V': -65.0, 'U': -13.0})
    model.add_neuron_population("Post", num_post, Izhikevich(), izhikevich_params, {'V': -65.0, 'U': -13.0})
    syn = model.add_synapse_population("Syn", connectivity, weight_storage, delay, "Pre", "Post",
        StaticPulse(), {}, {'g': 0.5}, DeltaCurr(), procedural_weight=procedural_weight)
    return model, syn

def generate(model):
    if not model.finalized:
        model.finalize()
    generator = CodeGenerator(model, "/tmp/net_CODE")
    return generator, generator.generate()


class test_GeneratedFiles(unittest.TestCase):
    """
    Layout of the generated files.
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)

    def tearDown(self):
        ConfigManager().reset()

    def test_file_order(self):
        model, _ = pulse_model("dense", "global")
        generator, files = generate(model)
        self.assertEqual(list(files.keys()), ['definitions.h', 'runner.cc', 'neuronFnct.cc', 'synapseFnct.cc'])
        self.assertEqual(len(generator.binary_files), 0)

    def test_no_placeholder_left(self):
        model, _ = pulse_model("dense", "individual")
        _, files = generate(model)
        for filename, content in files.items():
            self.assertNotIn("$(", content, filename)

    def test_reproducible(self):
        _, first = generate(self._sparse_model())
        _, second = generate(self._sparse_model())
        self.assertEqual(first, second)

    def _sparse_model(self):
        model, syn = pulse_model("sparse", "individual", delay=2)
        syn.set_sparse_projection(SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4))
        return model

    def test_definitions(self):
        model, _ = pulse_model("dense", "individual")
        _, files = generate(model)
        definitions = files['definitions.h']

        self.assertIn("typedef float scalar;", definitions)
        self.assertIn("#define DT 0.1f", definitions)
        self.assertIn("struct NeuronGroupPre {", definitions)
        self.assertIn("struct SynapseGroupSyn {", definitions)
        self.assertIn("    scalar *g; // 12 elements", definitions)
        self.assertIn("    NeuronGroupPre Pre;", definitions)
        self.assertIn("    SynapseGroupSyn Syn;", definitions)
        self.assertNotIn("learnSynapsesPostHost", definitions)

    def test_double_precision(self):
        setup(precision="double")
        model, _ = pulse_model("dense", "global")
        _, files = generate(model)
        self.assertIn("typedef double scalar;", files['definitions.h'])
        self.assertIn("addtoinSyn = 0.5;", files['synapseFnct.cc'])

    def test_fixed_seed(self):
        setup(seed=42)
        model, _ = pulse_model("dense", "global")
        _, files = generate(model)
        self.assertIn("ctx.rng.seed(42);", files['runner.cc'])
        self.assertNotIn("std::random_device", files['runner.cc'])

    def test_zero_copy(self):
        model, _ = pulse_model("dense", "global")
        model.neuron_group("Pre").set_spike_zero_copy()
        model.neuron_group("Pre").set_var_zero_copy("V")
        _, files = generate(model)

        runner = files['runner.cc']
        self.assertIn("allocateArray(ctx.Pre.spk, 3, true);", runner)
        self.assertIn("allocateArray(ctx.Pre.V, 3, true);", runner)
        self.assertIn("allocateArray(ctx.Pre.U, 3, false);", runner)
        self.assertIn("allocateArray(ctx.Post.spk, 4, false);", runner)

    def test_partial_files_on_authoring_error(self):
        broken = NeuronModel(
            variables=[("V", "scalar")],
            sim_code="$(V) += $(Iext) * DT;",
            threshold_condition_code="$(V) > 1.0",
            name="Broken"
        )
        model = NNModel("broken")
        model.add_neuron_population("Pop", 2, broken)
        model.finalize()

        generator = CodeGenerator(model, "/tmp/broken_CODE")
        with self.assertRaises(ModelAuthoringError) as cm:
            generator.generate()

        self.assertEqual(cm.exception.identifier, "Iext")
        self.assertEqual(list(generator.files.keys()), ['definitions.h', 'runner.cc', 'neuronFnct.cc'])
        self.assertIn("void calcNeuronsCPU(SimulationContext &ctx, scalar t) {", generator.files['neuronFnct.cc'])


class test_NeuronUpdate(unittest.TestCase):
    """
    Update of the neuron groups in calcNeuronsCPU().
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)

    def tearDown(self):
        ConfigManager().reset()

    def test_izhikevich(self):
        model, _ = pulse_model("dense", "global")
        _, files = generate(model)
        code = files['neuronFnct.cc']

        self.assertIn("scalar lV = ctx.Pre.V[n];", code)
        self.assertIn("bool oldSpike = (lV >= 29.99);", code)
        self.assertIn("lV = (-65.0f);", code)
        self.assertIn("lU += 8.0f;", code)
        self.assertIn("if ((lV >= 29.99) && !(oldSpike)) {", code)
        self.assertIn("ctx.Pre.spk[ctx.Pre.spkCnt[0]++] = n;", code)
        self.assertIn("ctx.Pre.V[n] = lV;", code)
        self.assertIn("ctx.Pre.spkCnt[0] = 0;", code)

    def test_synaptic_input(self):
        model, _ = pulse_model("dense", "global")
        _, files = generate(model)
        code = files['neuronFnct.cc']

        self.assertIn("scalar linSyn0 = ctx.Syn.inSyn[n];", code)
        self.assertIn("Isyn += linSyn0;", code)
        self.assertIn("linSyn0 = 0.0;", code)
        self.assertIn("ctx.Syn.inSyn[n] = linSyn0;", code)

    def test_conductance_input(self):
        model = NNModel("cond")
        model.add_neuron_population("Pre", 2, Izhikevich(), izhikevich_params)
        model.add_neuron_population("Post", 2, LIF(), lif_params)
        model.add_synapse_population("Exc", "dense", "global", 0, "Pre", "Post",
            StaticPulse(), {}, {'g': 0.1}, ExpCond(), {'tau': 5.0, 'E': 0.0})
        _, files = generate(model)
        code = files['neuronFnct.cc']

        self.assertIn("Isyn += linSyn0 * (0.0f - lV);", code)
        self.assertIn("linSyn0 *= ", code)
        self.assertIn("lRefracTime = 2.0f;", code)

    def test_constant_input(self):
        model, _ = pulse_model("dense", "global")
        model.neuron_group("Post").set_input_current(2.0)
        _, files = generate(model)
        self.assertIn("Isyn += 2.0f;", files['neuronFnct.cc'])

    def test_array_input(self):
        model, _ = pulse_model("dense", "global")
        model.neuron_group("Post").set_input_current("array")
        _, files = generate(model)

        self.assertIn("void calcNeuronsCPU(SimulationContext &ctx, scalar *inputIPost, scalar t) {", files['neuronFnct.cc'])
        self.assertIn("Isyn += (scalar) inputIPost[n];", files['neuronFnct.cc'])
        self.assertIn("calcNeuronsCPU(ctx, inputIPost, t);", files['runner.cc'])
        self.assertIn("void stepTimeCPU(SimulationContext &ctx, scalar *inputIPost, scalar t);", files['definitions.h'])

    def test_delayed_population(self):
        model, _ = pulse_model("dense", "global", num_pre=10, delay=3)
        _, files = generate(model)
        code = files['neuronFnct.cc']

        advance = code.index("ctx.Pre.spkQuePtr = (ctx.Pre.spkQuePtr + 1) % 4;")
        loop = code.index("for (unsigned int n = 0; n < 10; n++) {")
        self.assertLess(advance, loop)
        self.assertIn("ctx.Pre.spkCnt[ctx.Pre.spkQuePtr] = 0;", code)
        self.assertIn("ctx.Pre.spk[(ctx.Pre.spkQuePtr * 10) + ctx.Pre.spkCnt[ctx.Pre.spkQuePtr]++] = n;", code)
        self.assertNotIn("ctx.Post.spkQuePtr", code)

        definitions = files['definitions.h']
        self.assertIn("    unsigned int spkQuePtr;", definitions)
        self.assertIn("    unsigned int *spk; // 40 elements", definitions)

    def test_queued_variables(self):
        model = NNModel("graded")
        model.add_neuron_population("Pre", 4, Izhikevich(), izhikevich_params)
        model.add_neuron_population("Post", 3, Izhikevich(), izhikevich_params)
        model.add_synapse_population("Graded", "dense", "global", 2, "Pre", "Post",
            StaticGraded(), {'Epre': -50.0, 'Vslope': 10.0}, {'g': 0.1}, DeltaCurr())
        _, files = generate(model)
        code = files['neuronFnct.cc']

        self.assertIn("scalar lV = ctx.Pre.V[(((ctx.Pre.spkQuePtr + 2) % 3) * 4) + n];", code)
        self.assertIn("ctx.Pre.V[(ctx.Pre.spkQuePtr * 4) + n] = lV;", code)
        self.assertIn("scalar lU = ctx.Pre.U[n];", code)


class test_SynapsePropagation(unittest.TestCase):
    """
    Propagation of the spikes in calcSynapsesCPU() for every connectivity.
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)
        self.projection = SparseProjection.from_lists([[1, 3], [], [0, 2]], num_post=4, weights=[[0.5, 1.5], [], [2.0, 0.25]])

    def tearDown(self):
        ConfigManager().reset()

    def test_dense_individual(self):
        model, _ = pulse_model("dense", "individual")
        _, files = generate(model)
        code = files['synapseFnct.cc']

        self.assertIn("for (unsigned int i = 0; i < ctx.Pre.spkCnt[0]; i++) {", code)
        self.assertIn("const unsigned int ipre = ctx.Pre.spk[i];", code)
        self.assertIn("synAddress = ipre * 4 + ipost;", code)
        self.assertIn("addtoinSyn = ctx.Syn.g[synAddress];", code)
        self.assertIn("ctx.Syn.inSyn[ipost] += addtoinSyn;", code)

        runner = files['runner.cc']
        self.assertIn("allocateArray(ctx.Syn.g, 12, false);", runner)
        self.assertIn("ctx.Syn.g[i] = 0.5f;", runner)

    def test_dense_global(self):
        model, _ = pulse_model("dense", "global")
        _, files = generate(model)

        self.assertIn("addtoinSyn = 0.5f;", files['synapseFnct.cc'])
        self.assertNotIn("scalar *g;", files['definitions.h'])

    def test_procedural(self):
        model, _ = pulse_model("dense", "procedural", procedural_weight="0.5 * $(id_pre) + $(id_post)")
        _, files = generate(model)

        self.assertIn("addtoinSyn = (0.5 * ipre + ipost);", files['synapseFnct.cc'])
        self.assertNotIn("scalar *g;", files['definitions.h'])

    def test_sparse(self):
        model, syn = pulse_model("sparse", "individual")
        syn.set_sparse_projection(self.projection)
        generator, files = generate(model)
        code = files['synapseFnct.cc']

        self.assertIn("for (synAddress = ctx.Syn.indInG[ipre]; synAddress < ctx.Syn.indInG[ipre + 1]; synAddress++) {", code)
        self.assertIn("ipost = ctx.Syn.ind[synAddress];", code)
        self.assertIn("addtoinSyn = ctx.Syn.g[synAddress];", code)

        runner = files['runner.cc']
        self.assertIn("void allocateSyn(SimulationContext &ctx, unsigned int connN) {", runner)
        self.assertIn("allocateArray(ctx.Syn.g, connN, false);", runner)
        self.assertIn("allocateSyn(ctx, 4);", runner)
        self.assertIn("initializeSynFromFile(ctx);", runner)
        self.assertIn("readStream(ctx.Syn.indInG, sizeof(unsigned int), 4, f, ", runner)
        self.assertIn("Syn_conn.bin", runner)

        expected = io.BytesIO()
        save_connectivity(self.projection, expected, precision="float")
        self.assertEqual(list(generator.binary_files.keys()), ['Syn_conn.bin'])
        self.assertEqual(generator.binary_files['Syn_conn.bin'], expected.getvalue())

    def test_sparse_max_connections(self):
        model, syn = pulse_model("sparse", "individual")
        syn.set_max_connections(10)
        generator, files = generate(model)

        self.assertIn("allocateSyn(ctx, 10);", files['runner.cc'])
        self.assertNotIn("initializeSynFromFile", files['runner.cc'])
        self.assertEqual(len(generator.binary_files), 0)

    def test_bitmask(self):
        model, syn = pulse_model("bitmask", "global")
        syn.set_sparse_projection(self.projection)
        generator, files = generate(model)

        self.assertIn("if (!B(ctx.Syn.gp[synAddress >> 5], synAddress & 31)) continue;", files['synapseFnct.cc'])
        self.assertIn("    uint32_t *gp; // 1 elements", files['definitions.h'])
        self.assertIn("readStream(ctx.Syn.gp, sizeof(uint32_t), 1, f, ", files['runner.cc'])
        self.assertEqual(generator.binary_files['Syn_gp.bin'], bitmask_from_projection(self.projection).tobytes())

    def test_bitmask_stride_of_target(self):
        # the connectivity only addresses the first 4 of the 10 target neurons
        model, syn = pulse_model("bitmask", "global", num_pre=2, num_post=10)
        projection = SparseProjection([0, 1, 2], [3, 0])
        syn.set_sparse_projection(projection)
        generator, files = generate(model)

        words = numpy.frombuffer(generator.binary_files['Syn_gp.bin'], dtype=numpy.uint32)
        self.assertEqual(len(words), bitmask_words(2, 10))
        for ipre in range(2):
            for ipost in range(10):
                self.assertEqual(is_connected(words, ipre * 10 + ipost), ipost in projection.row(ipre))
        self.assertEqual(int(words[0]), 0x10000000 | 0x00200000)

        # the runtime mirror holds the same words
        self.assertEqual(SimulationContext(model).Syn.gp.tolist(), words.tolist())

    def test_delay(self):
        model, _ = pulse_model("dense", "global", num_pre=10, delay=3)
        _, files = generate(model)
        code = files['synapseFnct.cc']

        self.assertIn("const unsigned int delaySlot = ((ctx.Pre.spkQuePtr + 2) % 4);", code)
        self.assertIn("for (unsigned int i = 0; i < ctx.Pre.spkCnt[delaySlot]; i++) {", code)
        self.assertIn("const unsigned int ipre = ctx.Pre.spk[(delaySlot * 10) + i];", code)

    def test_spike_events(self):
        model = NNModel("graded")
        model.add_neuron_population("Pre", 4, Izhikevich(), izhikevich_params)
        model.add_neuron_population("Post", 3, Izhikevich(), izhikevich_params)
        model.add_synapse_population("Graded", "dense", "global", 0, "Pre", "Post",
            StaticGraded(), {'Epre': -50.0, 'Vslope': 10.0}, {'g': 0.1}, DeltaCurr())
        _, files = generate(model)

        neurons = files['neuronFnct.cc']
        self.assertIn("spikeLikeEvent |= (lV > (-50.0f));", neurons)
        self.assertIn("ctx.Pre.spkEvnt[ctx.Pre.spkCntEvnt[0]++] = n;", neurons)

        synapses = files['synapseFnct.cc']
        self.assertIn("// spike-like events of Pre", synapses)
        self.assertIn("for (unsigned int i = 0; i < ctx.Pre.spkCntEvnt[0]; i++) {", synapses)
        self.assertIn("if (ctx.Pre.V[ipre] > (-50.0f)) {", synapses)
        self.assertIn("tanh((ctx.Pre.V[ipre] - (-50.0f)) / 10.0f)", synapses)
        self.assertNotIn("// true spikes of Pre", synapses)

    def test_delayed_spike_events(self):
        model = NNModel("graded")
        model.add_neuron_population("Pre", 4, Izhikevich(), izhikevich_params)
        model.add_neuron_population("Post", 3, Izhikevich(), izhikevich_params)
        model.add_synapse_population("Graded", "dense", "global", 2, "Pre", "Post",
            StaticGraded(), {'Epre': -50.0, 'Vslope': 10.0}, {'g': 0.1}, DeltaCurr())
        _, files = generate(model)
        code = files['synapseFnct.cc']

        self.assertIn("const unsigned int ipre = ctx.Pre.spkEvnt[(delaySlot * 4) + i];", code)
        self.assertIn("if (ctx.Pre.V[(delaySlot * 4) + ipre] > (-50.0f)) {", code)

    def test_order_of_groups(self):
        model = NNModel("order")
        model.add_neuron_population("A", 2, Izhikevich(), izhikevich_params)
        model.add_neuron_population("B", 2, Izhikevich(), izhikevich_params)
        model.add_synapse_population("AtoB", "dense", "global", 0, "A", "B", StaticPulse(), {}, {'g': 1.0}, DeltaCurr())
        model.add_synapse_population("BtoA", "dense", "global", 0, "B", "A", StaticPulse(), {}, {'g': 1.0}, DeltaCurr())
        _, files = generate(model)
        code = files['synapseFnct.cc']

        # grouped by target population in model order
        self.assertLess(code.index("// Synapse group BtoA"), code.index("// Synapse group AtoB"))


class test_Learning(unittest.TestCase):
    """
    Postsynaptic learning pass of the piecewise STDP synapse.
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)

    def tearDown(self):
        ConfigManager().reset()

    def _model(self, delay):
        model = NNModel("stdp")
        model.add_neuron_population("Pre", 10, Izhikevich(), izhikevich_params)
        model.add_neuron_population("Post", 5, Izhikevich(), izhikevich_params)
        model.add_synapse_population("STDP", "dense", "individual", delay, "Pre", "Post",
            PiecewiseSTDP(), stdp_params, {'g': 0.5, 'gRaw': 0.0}, DeltaCurr())
        return model

    def test_learning_pass(self):
        _, files = generate(self._model(0))

        self.assertIn("learnSynapsesPostHost(ctx, t);", files['runner.cc'])
        self.assertIn("void learnSynapsesPostHost(SimulationContext &ctx, scalar t);", files['definitions.h'])

        code = files['synapseFnct.cc']
        self.assertIn("void learnSynapsesPostHost(SimulationContext &ctx, scalar t) {", code)
        self.assertIn("const unsigned int ipost = ctx.Post.spk[i];", code)
        self.assertIn("scalar dt = t - ctx.Pre.sT[ipre] - (0.0f);", code)
        self.assertIn("scalar dt = ctx.Post.sT[ipost] - t - (0.0f);", code)
        self.assertIn("else if (dt > (0.0)) {", code)
        self.assertIn("ctx.STDP.gRaw[synAddress] += dg;", code)
        self.assertIn("ctx.STDP.g[synAddress] = gFunc(ctx.STDP.gRaw[synAddress], 1.0f, 0.5f, 10.0f);", code)

    def test_support_code(self):
        _, files = generate(self._model(0))
        code = files['synapseFnct.cc']

        self.assertIn("namespace STDP_weightupdate_simCode {", code)
        self.assertIn("using namespace STDP_weightupdate_simCode;", code)
        self.assertIn("inline scalar gFunc", code)

    def test_spike_times(self):
        _, files = generate(self._model(0))
        definitions = files['definitions.h']

        self.assertEqual(definitions.count("    scalar *sT; //"), 2)
        self.assertIn("ctx.Pre.sT[n] = t;", files['neuronFnct.cc'])

    def test_delayed_spike_time(self):
        _, files = generate(self._model(3))
        self.assertIn("scalar dt = t - (ctx.Pre.sT[ipre] - DT * 3) - (0.0f);", files['synapseFnct.cc'])
