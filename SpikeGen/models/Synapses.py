"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from SpikeGen.core.Synapse import WeightUpdateModel, PostsynapticModel, PiecewiseLearningRule


def list_standard_synapses():
    "Returns a list of standard synapse models available."
    return [StaticPulse, StaticGraded, PiecewiseSTDP]

def list_standard_postsynaptic_models():
    "Returns a list of standard postsynaptic models available."
    return [DeltaCurr, ExpCond]


###############################
### Static pulse
###############################
class StaticPulse(WeightUpdateModel):
    """
    Each presynaptic spike adds the weight g to the input of the postsynaptic neuron.

    Variables:

    * g : weight.
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        WeightUpdateModel.__init__(self,
            variables = [("g", "scalar")],
            sim_code = """
$(addtoinSyn) = $(g);
$(updatelinsyn);
""",
            name = "Static pulse",
            description = "Adds the weight to the postsynaptic input after each presynaptic spike."
        )
        # For reporting
        self._instantiated.append(True)


###############################
### Graded synapse
###############################
class StaticGraded(WeightUpdateModel):
    r"""
    Graded synapse: while the presynaptic membrane potential is above Epre,
    the postsynaptic input receives in every step

    $$g \cdot \tanh((V_{pre} - E_{pre}) / V_{slope}) \cdot DT$$

    clipped to positive values. The presynaptic neuron model must have a variable V.

    Parameters:

    * Epre : presynaptic threshold potential.
    * Vslope : slope of the transfer function.

    Variables:

    * g : weight.
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        WeightUpdateModel.__init__(self,
            parameters = ["Epre", "Vslope"],
            variables = [("g", "scalar")],
            event_code = """
$(addtoinSyn) = fmax(0.0, $(g) * tanh(($(V_pre) - $(Epre)) / $(Vslope)) * DT);
$(updatelinsyn);
""",
            event_threshold_condition_code = "$(V_pre) > $(Epre)",
            name = "Static graded",
            description = "Continuous transmission gated by the presynaptic membrane potential."
        )
        # For reporting
        self._instantiated.append(True)


###############################
### Piecewise STDP
###############################
_gfunc = """
// Effective weight of a raw weight
inline scalar gFunc(scalar x, scalar gMax, scalar gMid, scalar gSlope)
{
    return gMax / 2.0 * (tanh(gSlope * (x - gMid)) + 1.0);
}
"""

class PiecewiseSTDP(WeightUpdateModel):
    r"""
    Spike-timing dependent plasticity with a piecewise linear learning window.

    The raw weight gRaw is modified after each pre- and postsynaptic spike by
    dg, a function of the timing difference dt between the postsynaptic and
    the presynaptic spikes (shifted by tauShift):

    * dt > lim0: dg = -off0
    * dt > 0: dg = slope0 * dt + off1
    * dt > lim1: dg = slope1 * dt + off1
    * otherwise: dg = -off2

    The effective weight g is a sigmoid of the raw weight:

    $$g = \frac{g_{max}}{2} (\tanh(g_{slope} (g_{raw} - g_{mid})) + 1)$$

    Parameters:

    * tLrn : width of the learning window.
    * tChng : time scale of the weight change.
    * tPunish10 : time scale of the depression for late presynaptic spikes.
    * tPunish01 : time scale of the depression for early presynaptic spikes.
    * gMax : maximal effective weight.
    * gMid : raw weight at which the effective weight is gMax / 2.
    * gSlope : slope of the sigmoid.
    * tauShift : shift of the learning window.

    Variables:

    * g : effective weight.
    * gRaw : raw weight.
    """
    # For reporting
    _instantiated = []

    def __init__(self):
        rule = PiecewiseLearningRule(
            knots = ["$(lim0)", "0.0", "$(lim1)"],
            branches = [
                "-$(off0)",
                "$(slope0) * $(dt) + $(off1)",
                "$(slope1) * $(dt) + $(off1)",
                "-$(off2)",
            ],
            apply_code = """
$(gRaw) += $(dg);
$(g) = gFunc($(gRaw), $(gMax), $(gMid), $(gSlope));
""",
            shift = "$(tauShift)"
        )

        WeightUpdateModel.__init__(self,
            parameters = ["tLrn", "tChng", "tPunish10", "tPunish01", "gMax", "gMid", "gSlope", "tauShift"],
            derived_parameters = [
                ("lim0", "(1.0/tPunish01 + 1.0/tChng) * tLrn / (2.0/tChng)"),
                ("lim1", "-(1.0/tPunish10 + 1.0/tChng) * tLrn / (2.0/tChng)"),
                ("slope0", "-2.0 * gMax / (tChng * tLrn)"),
                ("slope1", "2.0 * gMax / (tChng * tLrn)"),
                ("off0", "gMax / tPunish01"),
                ("off1", "gMax / tChng"),
                ("off2", "gMax / tPunish10"),
            ],
            variables = [("g", "scalar"), ("gRaw", "scalar")],
            sim_code = """
$(addtoinSyn) = $(g);
$(updatelinsyn);
""",
            learning_rule = rule,
            support_code = _gfunc,
            name = "Piecewise STDP",
            description = "Spike-timing dependent plasticity with a four-branch learning window and sigmoidal weights."
        )
        # For reporting
        self._instantiated.append(True)


###############################
### Postsynaptic models
###############################
class DeltaCurr(PostsynapticModel):
    """
    The accumulated input is added to the current of the postsynaptic neuron
    during one step, then cleared.
    """
    def __init__(self):
        PostsynapticModel.__init__(self,
            apply_input_code = "$(Isyn) += $(inSyn);",
            decay_code = "$(inSyn) = 0.0;",
            name = "Delta current"
        )


class ExpCond(PostsynapticModel):
    r"""
    Exponentially decaying conductance with reversal potential E:

    $$I_{syn} = g_{syn} (E - V)$$

    The postsynaptic neuron model must have a variable V.

    Parameters:

    * tau : decay time constant (ms).
    * E : reversal potential (mV).
    """
    def __init__(self):
        PostsynapticModel.__init__(self,
            parameters = ["tau", "E"],
            derived_parameters = [
                ("expDecay", "exp(-DT/tau)"),
            ],
            apply_input_code = "$(Isyn) += $(inSyn) * ($(E) - $(V));",
            decay_code = "$(inSyn) *= $(expDecay);",
            name = "Exponential conductance"
        )
