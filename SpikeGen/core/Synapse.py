"""
:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from sympy import Piecewise, Symbol, sympify

from SpikeGen.intern import Messages
from SpikeGen.parser.Substitution import CodeFragment, SubstitutionPass
from SpikeGen.parser.DerivedParameters import parse_expression
from SpikeGen.generator.Utils import tabify

class WeightUpdateModel :
    """
    Base class to define the propagation (and optionally the learning) of a synapse type.

    Besides the own variables and parameters, the code fragments can use:

    * ``$(addtoinSyn)``: the amount added to the postsynaptic input, set by the code.
    * ``$(updatelinsyn)``: adds ``addtoinSyn`` to the input of the postsynaptic neuron.
    * ``$(<var>_pre)`` / ``$(<var>_post)``: variables of the pre- and postsynaptic neurons.
    * ``$(sT_pre)`` / ``$(sT_post)``: last spike times of the pre- and postsynaptic neurons.
    * ``$(id_pre)`` / ``$(id_post)``: ranks of the pre- and postsynaptic neurons.
    * ``$(t)``: current time.

    :param variables: ordered list of (name, type) of the per-synapse variables (e.g. the weight g).
    :param parameters: ordered list of parameter names.
    :param derived_parameters: ordered list of (name, definition), see NeuronModel.
    :param sim_code: code executed for every true spike of the presynaptic neuron.
    :param event_code: code executed for every spike-like event of the presynaptic neuron.
    :param event_threshold_condition_code: condition defining the spike-like events, mandatory with *event_code*.
    :param learn_post_code: code executed for every synapse of a postsynaptic neuron emitting a true spike.
    :param learning_rule: a PiecewiseLearningRule. Its presynaptic pass is appended to *sim_code*, its postsynaptic pass forms *learn_post_code*.
    :param extra_global_parameters: ordered list of (name, type).
    :param support_code: C++ code placed before the synapse functions.
    :param name: name of the synapse model (used for reporting only).
    :param description: short description.
    """
    def __init__(self, variables=None, parameters=None, derived_parameters=None,
                 sim_code="", event_code="", event_threshold_condition_code=None,
                 learn_post_code="", learning_rule=None,
                 extra_global_parameters=None, support_code=None,
                 name:str="", description:str=""):

        self.variables = [tuple(var) for var in (variables or [])]
        self.parameters = list(parameters or [])
        self.derived_parameters = [tuple(dp) for dp in (derived_parameters or [])]
        self.sim_code = sim_code if sim_code is not None else ""
        self.event_code = event_code if event_code is not None else ""
        self.event_threshold_condition_code = event_threshold_condition_code
        self.learn_post_code = learn_post_code if learn_post_code is not None else ""
        self.learning_rule = learning_rule
        self.extra_global_parameters = [tuple(egp) for egp in (extra_global_parameters or [])]
        self.support_code = support_code

        self.name = name if name else "Spiking synapse"
        self.short_description = description if description else "User-defined model of a spiking synapse."

        if self.learning_rule is not None:
            self.sim_code += "\n" + self.learning_rule.pre_code()
            if self.learn_post_code.strip() == "":
                self.learn_post_code = self.learning_rule.post_code()

        if self.event_code.strip() != "" and not self.event_threshold_condition_code:
            Messages._error("The synapse model", self.name, "defines event code but no event threshold condition.")

        self.fragments = {
            'sim': CodeFragment(self.sim_code, "simulation code of " + self.name),
            'event': CodeFragment(self.event_code, "event code of " + self.name),
            'event_threshold': CodeFragment(self.event_threshold_condition_code, "event threshold condition of " + self.name),
            'learn_post': CodeFragment(self.learn_post_code, "postsynaptic learning code of " + self.name),
        }

    @property
    def variable_names(self):
        return [var[0] for var in self.variables]

    @property
    def variable_types(self):
        return [var[1] for var in self.variables]

    @property
    def derived_parameter_names(self):
        return [dp[0] for dp in self.derived_parameters]

    @property
    def extra_global_parameter_names(self):
        return [egp[0] for egp in self.extra_global_parameters]

    def uses_true_spikes(self):
        return not self.fragments['sim'].is_empty()

    def uses_spike_events(self):
        return not self.fragments['event'].is_empty()

    def is_learning(self):
        return not self.fragments['learn_post'].is_empty()

    def references(self, identifier):
        "True if any of the code fragments uses $(identifier)."
        for fragment in self.fragments.values():
            if fragment.references(identifier):
                return True
        return False

    def __repr__(self):
        return "WeightUpdateModel(" + self.name + ")\nParameters: " + str(self.parameters) + "\nVariables: " + str(self.variables) + "\nSimulation code:\n" + self.sim_code


class PostsynapticModel :
    """
    Base class to define how the accumulated synaptic input of a synapse group
    is converted into a current and how it decays.

    The fragments use ``$(inSyn)`` for the accumulated input, ``$(Isyn)`` for
    the total current of the postsynaptic neuron, and the variables and
    parameters of the postsynaptic neuron model.

    :param variables: ordered list of (name, type) of the per-neuron variables of the model.
    :param parameters: ordered list of parameter names.
    :param derived_parameters: ordered list of (name, definition).
    :param apply_input_code: code adding the input to ``$(Isyn)``.
    :param decay_code: code updating ``$(inSyn)`` at the end of the step.
    """
    def __init__(self, variables=None, parameters=None, derived_parameters=None,
                 apply_input_code="", decay_code="", support_code=None, name:str=""):
        self.variables = [tuple(var) for var in (variables or [])]
        self.parameters = list(parameters or [])
        self.derived_parameters = [tuple(dp) for dp in (derived_parameters or [])]
        self.apply_input_code = apply_input_code if apply_input_code is not None else ""
        self.decay_code = decay_code if decay_code is not None else ""
        self.support_code = support_code
        self.name = name if name else "Postsynaptic model"

        self.fragments = {
            'apply_input': CodeFragment(self.apply_input_code, "input code of " + self.name),
            'decay': CodeFragment(self.decay_code, "decay code of " + self.name),
        }

    @property
    def variable_names(self):
        return [var[0] for var in self.variables]

    @property
    def variable_types(self):
        return [var[1] for var in self.variables]

    @property
    def derived_parameter_names(self):
        return [dp[0] for dp in self.derived_parameters]


class PiecewiseLearningRule :
    """
    Weight change as a four-branch piecewise function of the spike timing
    difference ``dt``.

    The three knots must satisfy k1 > k2 > k3. The branches are selected in
    this order with strict comparisons, a value equal to a knot therefore
    falls into the following branch:

    * ``dt > k1``: branch 1
    * ``dt > k2``: branch 2
    * ``dt > k3``: branch 3
    * otherwise: branch 4

    Knots, branches and the shift are code fragments of the synapse parameters,
    the branches use ``$(dt)``. The *apply_code* uses ``$(dg)`` to modify the
    synaptic variables.

    In the presynaptic pass, ``dt = sT_post - t - shift``; in the postsynaptic
    pass, ``dt = t - sT_pre - shift``.
    """
    def __init__(self, knots, branches, apply_code, shift=None):
        if len(knots) != 3:
            Messages._error("A piecewise learning rule needs exactly three knots, got", len(knots))
        if len(branches) != 4:
            Messages._error("A piecewise learning rule needs exactly four branches, got", len(branches))

        self.knots = [str(k) for k in knots]
        self.branches = [str(b) for b in branches]
        self.apply_code = apply_code
        self.shift = shift

        self._locals = SubstitutionPass('learning', {'dt': 'dt', 'dg': 'dg'})

    def _local(self, code):
        return CodeFragment(code).expand([self._locals], allow_unresolved=True)

    def update_code(self, dt_code):
        """
        Code fragment computing dg for the timing difference *dt_code* and
        applying it. Placeholders of the synapse are left unexpanded.
        """
        shift = " - (" + self.shift + ")" if self.shift is not None else ""

        code = "scalar dt = %(dt)s%(shift)s;\nscalar dg;\n" % {'dt': dt_code, 'shift': shift}
        for idx, branch in enumerate(self.branches):
            if idx == 0:
                code += "if (dt > (%(knot)s)) {\n" % {'knot': self.knots[idx]}
            elif idx < 3:
                code += "else if (dt > (%(knot)s)) {\n" % {'knot': self.knots[idx]}
            else:
                code += "else {\n"
            code += tabify("dg = " + self._local(branch) + ";", 1) + "\n}\n"
        code += self._local(self.apply_code)

        return code

    def pre_code(self):
        "Presynaptic pass, executed for every true spike of the presynaptic neuron."
        return self.update_code("$(sT_post) - $(t)")

    def post_code(self):
        "Postsynaptic pass, executed for every true spike of the postsynaptic neuron."
        return self.update_code("$(t) - $(sT_pre)")

    def _evaluate(self, code, values, dt=None):
        names = list(values.keys()) + (['dt'] if dt is not None else [])
        expr = parse_expression(code, names, context="in the piecewise learning rule")
        substitutions = {Symbol(k): v for k, v in values.items()}
        if dt is not None:
            substitutions[Symbol('dt')] = dt
        return expr.subs(substitutions)

    def knot_values(self, values):
        "Numerical values of the knots for the parameter *values* (dict)."
        return [float(self._evaluate(k, values)) for k in self.knots]

    def branch(self, dt, values):
        "Index (1 to 4) of the branch selected for the timing difference *dt*."
        k1, k2, k3 = self.knot_values(values)
        if not (k1 > k2 > k3):
            Messages._error("The knots of a piecewise learning rule must be decreasing, got", (k1, k2, k3))
        if dt > k1:
            return 1
        elif dt > k2:
            return 2
        elif dt > k3:
            return 3
        return 4

    def delta(self, dt, values):
        "Weight change dg for the timing difference *dt* and the parameter *values* (dict)."
        x = Symbol('dt')
        names = list(values.keys()) + ['dt']
        substitutions = {Symbol(k): v for k, v in values.items()}
        pieces = []
        for idx, branch in enumerate(self.branches):
            expr = parse_expression(branch, names, context="in the piecewise learning rule").subs(substitutions)
            if idx < 3:
                pieces.append((expr, x > self._evaluate(self.knots[idx], values)))
            else:
                pieces.append((expr, True))
        return float(sympify(Piecewise(*pieces).subs(x, dt)).evalf())
