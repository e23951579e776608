"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import math
import unittest

from SpikeGen import LIF, ModelAuthoringError
from SpikeGen.parser.DerivedParameters import evaluate_derived_parameters, parse_expression

lif_params = {
    'C': 0.25, 'TauM': 10.0, 'Vrest': -65.0, 'Vreset': -65.0,
    'Vthresh': -50.0, 'Ioffset': 0.0, 'TauRefrac': 2.0
}

class test_DerivedParameters(unittest.TestCase):
    """
    Derived parameters are computed once from the raw parameters and DT.
    """
    def test_lif(self):
        model = LIF()
        derived = evaluate_derived_parameters(model.derived_parameters, list(lif_params.keys()), list(lif_params.values()), 0.1)

        self.assertEqual(list(derived.keys()), ['ExpTC', 'Rmembrane'])
        self.assertAlmostEqual(derived['ExpTC'], math.exp(-0.01))
        self.assertAlmostEqual(derived['Rmembrane'], 40.0)

    def test_chained(self):
        derived = evaluate_derived_parameters([('a', 'tau * 2.0'), ('b', 'a + DT')], ['tau'], [5.0], 0.5)
        self.assertAlmostEqual(derived['a'], 10.0)
        self.assertAlmostEqual(derived['b'], 10.5)

    def test_callable(self):
        derived = evaluate_derived_parameters([('ratio', lambda pars, dt: pars['tau'] / dt)], ['tau'], [5.0], 0.5)
        self.assertAlmostEqual(derived['ratio'], 10.0)

    def test_sympy_constants_are_symbols(self):
        derived = evaluate_derived_parameters([('drive', 'E * S')], ['E', 'S'], [2.0, 3.0], 0.1)
        self.assertAlmostEqual(derived['drive'], 6.0)

    def test_undeclared_symbol(self):
        with self.assertRaises(ModelAuthoringError) as cm:
            evaluate_derived_parameters([('ExpTC', 'exp(-DT/tauM)')], ['TauM'], [10.0], 0.1)
        self.assertEqual(cm.exception.identifier, 'tauM')

    def test_placeholders_accepted(self):
        expr = parse_expression("$(gMax) / $(tChng)", ['gMax', 'tChng'])
        self.assertEqual(sorted(s.name for s in expr.free_symbols), ['gMax', 'tChng'])
