"""
Conversion of regime-based component descriptions (time derivatives,
on-condition transitions and aliases) into the simulation code of a
neuron model.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import re
from collections import OrderedDict

from SpikeGen.intern.Messages import ModelAuthoringError
from SpikeGen.core.Neuron import NeuronModel
from SpikeGen.generator.Utils import tabify

# Name of the state variable tracking the active regime
REGIME_VARIABLE = "_regimeID"

class TimeDerivative(object):
    "d(variable)/dt = code, integrated with the explicit Euler method."
    def __init__(self, variable, code):
        self.variable = variable
        self.code = code

class StateAssignment(object):
    "variable = code, applied when a transition is taken."
    def __init__(self, variable, code):
        self.variable = variable
        self.code = code

class OnCondition(object):
    """
    Transition guarded by a *trigger* condition.

    :param trigger: condition code, mandatory.
    :param assignments: list of StateAssignment executed when the trigger holds.
    :param target_regime: name of the regime entered, None to stay in the current one.
    """
    def __init__(self, trigger=None, assignments=None, target_regime=None):
        self.trigger = trigger
        self.assignments = assignments if assignments is not None else []
        self.target_regime = target_regime

class Regime(object):
    "Named set of time derivatives and outgoing transitions."
    def __init__(self, name, time_derivatives=None, on_conditions=None):
        self.name = name
        self.time_derivatives = time_derivatives if time_derivatives is not None else []
        self.on_conditions = on_conditions if on_conditions is not None else []

def expand_aliases(code, aliases):
    """
    Replaces every alias name used as a whole word in *code* by its
    parenthesized definition. Aliases may reference other aliases.
    """
    if not aliases:
        return code

    for _ in range(len(aliases) + 1):
        expanded = code
        for name, definition in aliases.items():
            expanded = re.sub(r'(?<!\$\()(?<!\w)' + re.escape(name) + r'(?!\w)', '(' + definition + ')', expanded)
        if expanded == code:
            return expanded
        code = expanded

    raise ModelAuthoringError("the aliases " + ", ".join(aliases.keys()) + " are defined recursively.")

class RegimeAdapter(object):
    """
    Translates a list of regimes into a simulation code fragment.

    The first regime is the initial one. If more than one regime is declared,
    the state variable ``_regimeID`` selects the active regime and is added to
    the variables returned by *variables()*.

    :param regimes: list of Regime objects.
    :param aliases: ordered mapping alias name -> code.
    """
    def __init__(self, regimes, aliases=None):
        if len(regimes) == 0:
            raise ModelAuthoringError("at least one regime is required.")
        self.regimes = regimes
        self.aliases = OrderedDict(aliases) if aliases is not None else OrderedDict()

        self._ids = OrderedDict()
        for idx, regime in enumerate(regimes):
            if regime.name in self._ids:
                raise ModelAuthoringError("the regime " + regime.name + " is declared twice.", regime.name)
            self._ids[regime.name] = idx

    def regime_id(self, name):
        try:
            return self._ids[name]
        except KeyError:
            raise ModelAuthoringError("transition to the undeclared regime " + str(name), name)

    def variables(self):
        "Additional state variables required by the generated code."
        if len(self.regimes) > 1:
            return [(REGIME_VARIABLE, "unsigned int")]
        return []

    def _on_condition(self, condition, current_id):
        if condition.trigger is None or condition.trigger.strip() == "":
            raise ModelAuthoringError("No trigger condition for transition between regimes")

        body = ""
        for assignment in condition.assignments:
            body += "$(" + assignment.variable + ") = " + expand_aliases(assignment.code, self.aliases) + ";\n"

        if condition.target_regime is not None:
            target_id = self.regime_id(condition.target_regime)
            if target_id != current_id:
                body += "$(" + REGIME_VARIABLE + ") = " + str(target_id) + ";\n"

        return """if(%(trigger)s) {
%(body)s}
""" % {'trigger': expand_aliases(condition.trigger, self.aliases), 'body': tabify(body.rstrip('\n'), 1) + '\n'}

    def _regime_body(self, regime, regime_id):
        code = ""
        for derivative in regime.time_derivatives:
            code += "$(" + derivative.variable + ") += DT * (" + expand_aliases(derivative.code, self.aliases) + ");\n"
        for condition in regime.on_conditions:
            code += self._on_condition(condition, regime_id)
        return code

    def sim_code(self):
        "Returns the simulation code fragment."
        if len(self.regimes) == 1:
            return self._regime_body(self.regimes[0], 0)

        code = ""
        for regime_id, regime in enumerate(self.regimes):
            code += """%(keyword)s($(%(var)s) == %(id)s) {
%(body)s
}
""" % {
    'keyword': 'if' if regime_id == 0 else 'else if',
    'var': REGIME_VARIABLE,
    'id': regime_id,
    'body': tabify(self._regime_body(regime, regime_id).rstrip('\n'), 1)
}
        return code

    def neuron_model(self, variables, parameters=None, derived_parameters=None,
                     threshold_condition_code=None, reset_code=None, name="", description=""):
        """
        Returns a NeuronModel whose simulation code is generated from the regimes.

        The regime selector is appended to *variables* when required, it starts in
        the first regime (initial value 0).
        """
        return NeuronModel(
            variables = list(variables) + self.variables(),
            parameters = parameters,
            derived_parameters = derived_parameters,
            sim_code = self.sim_code(),
            threshold_condition_code = threshold_condition_code,
            reset_code = reset_code,
            name = name,
            description = description
        )
