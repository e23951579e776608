"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.core.Neuron import NeuronModel

def list_standard_neurons():
    "Returns a list of standard neuron models available."
    return [Izhikevich, LIF, PoissonSource, SpikeSource]


##################
### Izhikevich
##################
class Izhikevich(NeuronModel):
    r"""
    Izhikevich quadratic integrate-and-fire neuron.

    The membrane potential is integrated with two half steps of length DT/2:

    $$\frac{dV}{dt} = 0.04 V^2 + 5 V + 140 - U + I$$

    $$\frac{dU}{dt} = a (b V - U)$$

    A spike is emitted when V reaches 30 mV. In the following step, V is reset
    to c and U incremented by d.

    Parameters:

    * a : time scale of the recovery variable U.
    * b : sensitivity of U to the subthreshold fluctuations of V.
    * c : after-spike reset value of V.
    * d : after-spike increment of U.

    Variables:

    * V : membrane potential (mV).
    * U : recovery variable.
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        NeuronModel.__init__(self,
            parameters = ["a", "b", "c", "d"],
            variables = [("V", "scalar"), ("U", "scalar")],
            sim_code = """
if ($(V) >= 30.0) {
    $(V) = $(c);
    $(U) += $(d);
}
$(V) += 0.5 * (0.04 * $(V) * $(V) + 5.0 * $(V) + 140.0 - $(U) + $(Isyn)) * DT;
$(V) += 0.5 * (0.04 * $(V) * $(V) + 5.0 * $(V) + 140.0 - $(U) + $(Isyn)) * DT;
$(U) += $(a) * ($(b) * $(V) - $(U)) * DT;
""",
            threshold_condition_code = "$(V) >= 29.99",
            name = "Izhikevich",
            description = "Quadratic integrate-and-fire neuron with a recovery variable."
        )

        # For reporting
        self._instantiated.append(True)


##################
### LIF
##################
class LIF(NeuronModel):
    r"""
    Leaky integrate-and-fire neuron with an absolute refractory period.

    The membrane potential is integrated exactly for a constant input during one step:

    $$V(t+DT) = \alpha - e^{-DT/\tau_m} (\alpha - V(t))$$

    with $\alpha = R_m (I + I_{offset}) + V_{rest}$ and $R_m = \tau_m / C$.

    Parameters:

    * C : membrane capacitance (nF).
    * TauM : membrane time constant (ms).
    * Vrest : resting potential (mV).
    * Vreset : reset potential (mV).
    * Vthresh : spiking threshold (mV).
    * Ioffset : offset current (nA).
    * TauRefrac : refractory period (ms).

    Derived parameters:

    * ExpTC = exp(-DT/TauM)
    * Rmembrane = TauM/C

    Variables:

    * V : membrane potential (mV).
    * RefracTime : remaining refractory time (ms).
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        NeuronModel.__init__(self,
            parameters = ["C", "TauM", "Vrest", "Vreset", "Vthresh", "Ioffset", "TauRefrac"],
            derived_parameters = [
                ("ExpTC", "exp(-DT/TauM)"),
                ("Rmembrane", "TauM/C"),
            ],
            variables = [("V", "scalar"), ("RefracTime", "scalar")],
            sim_code = """
if ($(RefracTime) <= 0.0) {
    scalar alpha = (($(Isyn) + $(Ioffset)) * $(Rmembrane)) + $(Vrest);
    $(V) = alpha - ($(ExpTC) * (alpha - $(V)));
}
else {
    $(RefracTime) -= DT;
}
""",
            threshold_condition_code = "$(RefracTime) <= 0.0 && $(V) >= $(Vthresh)",
            reset_code = """
$(V) = $(Vreset);
$(RefracTime) = $(TauRefrac);
""",
            name = "LIF",
            description = "Leaky integrate-and-fire neuron with exact integration and refractory period."
        )

        # For reporting
        self._instantiated.append(True)


##################
### Poisson
##################
class PoissonSource(NeuronModel):
    """
    Poisson spike source. In each step outside of the refractory period, a
    neuron emits a spike with the probability rate * DT / 1000.

    Parameters:

    * rate : firing rate (Hz).
    * TauRefrac : refractory period (ms).
    * Vspike : value of V during a spike.
    * Vrest : value of V between spikes.

    Variables:

    * V : output variable, Vspike during the step of a spike and Vrest otherwise.
    * spikeTime : time of the last spike (ms).
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        NeuronModel.__init__(self,
            parameters = ["rate", "TauRefrac", "Vspike", "Vrest"],
            derived_parameters = [
                ("probability", "rate * DT / 1000.0"),
            ],
            variables = [("V", "scalar"), ("spikeTime", "scalar")],
            sim_code = """
if ($(V) > $(Vrest)) {
    $(V) = $(Vrest);
}
else if ($(t) - $(spikeTime) > $(TauRefrac)) {
    if ($(gennrand_uniform) < $(probability)) {
        $(V) = $(Vspike);
        $(spikeTime) = $(t);
    }
}
""",
            threshold_condition_code = "$(V) >= $(Vspike)",
            name = "Poisson",
            description = "Poisson spike source with a refractory period."
        )

        # For reporting
        self._instantiated.append(True)


##################
### Spike source
##################
class SpikeSource(NeuronModel):
    """
    Empty neuron: spikes are only injected from the outside of the
    simulation step, the population never emits spikes by itself.
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        NeuronModel.__init__(self,
            sim_code = "",
            threshold_condition_code = "false",
            name = "Spike source",
            description = "Population whose spikes are set externally."
        )

        # For reporting
        self._instantiated.append(True)
