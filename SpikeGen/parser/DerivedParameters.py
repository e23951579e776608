"""
Evaluation of derived parameters.

A derived parameter is computed exactly once from the raw parameters of a
group and the integration step ``DT``. It is either declared as a string
expression, which is parsed with sympy, or as a Python callable receiving a
dictionary of the raw parameter values and the integration step.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

from collections import OrderedDict

from sympy import Symbol, sympify
from sympy.parsing.sympy_parser import parse_expr, standard_transformations, convert_xor

from SpikeGen.intern.Messages import ModelAuthoringError
from SpikeGen.parser.Substitution import strip_placeholders

# Functions which may be used inside of a derived parameter expression
from sympy import exp, log, sqrt, tanh, sinh, cosh, sin, cos, tan, Abs, Min, Max, pi

_functions = {
    'exp': exp, 'log': log, 'sqrt': sqrt,
    'tanh': tanh, 'sinh': sinh, 'cosh': cosh,
    'sin': sin, 'cos': cos, 'tan': tan,
    'fabs': Abs, 'abs': Abs, 'fmin': Min, 'fmax': Max,
    'pi': pi,
}

_transformations = standard_transformations + (convert_xor,)

def local_dictionary(names):
    """
    Builds the namespace used to parse an expression: one Symbol per name,
    so that a parameter called e.g. ``E`` or ``S`` is not confused with the
    corresponding sympy constant.
    """
    local_dict = dict(_functions)
    for name in names:
        local_dict[name] = Symbol(name)
    return local_dict

def parse_expression(expression, names, context=""):
    """
    Parses *expression* into a sympy expression over the symbols *names*.

    Placeholders ``$(name)`` are accepted and treated like the plain name.
    Any symbol which is not part of *names* is reported as a ModelAuthoringError.
    """
    local_dict = local_dictionary(names)
    code = strip_placeholders(expression)
    try:
        expr = parse_expr(code, local_dict=local_dict, transformations=_transformations)
    except (SyntaxError, TypeError) as e:
        raise ModelAuthoringError("unable to parse the expression '" + expression + "' " + context + ": " + str(e))

    for free in sorted(expr.free_symbols, key=lambda s: s.name):
        if free.name not in names:
            raise ModelAuthoringError("undeclared symbol " + free.name + " in the expression '" + expression + "' " + context, free.name)

    return expr

def evaluate_derived_parameters(derived_parameters, parameter_names, parameter_values, dt, context=""):
    """
    Computes the values of all derived parameters.

    :param derived_parameters: ordered list of (name, definition) where the definition is a string or a callable.
    :param parameter_names: ordered list of the raw parameter names.
    :param parameter_values: values of the raw parameters (same order).
    :param dt: integration step.
    :return: OrderedDict name -> float, in declaration order.

    A derived parameter can use the previously declared derived parameters.
    """
    values = OrderedDict(zip(parameter_names, [float(v) for v in parameter_values]))
    values['DT'] = float(dt)

    derived = OrderedDict()
    for name, definition in derived_parameters:
        if callable(definition):
            result = definition(dict(values), float(dt))
        else:
            expr = parse_expression(str(definition), list(values.keys()), context="for the derived parameter " + name + " " + context)
            result = expr.subs({Symbol(k): v for k, v in values.items()})
            try:
                result = float(sympify(result).evalf())
            except TypeError:
                raise ModelAuthoringError("the derived parameter " + name + " " + context + " does not evaluate to a number: " + str(result), name)

        derived[name] = float(result)
        values[name] = float(result)

    return derived
