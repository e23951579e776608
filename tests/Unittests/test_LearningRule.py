"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import unittest

from SpikeGen import PiecewiseLearningRule, PiecewiseSTDP, SpikeGenException, setup
from SpikeGen.intern.ConfigManagement import ConfigManager
from SpikeGen.parser.DerivedParameters import evaluate_derived_parameters

stdp_params = {
    'tLrn': 50.0, 'tChng': 50.0, 'tPunish10': 100.0, 'tPunish01': 200.0,
    'gMax': 1.0, 'gMid': 0.5, 'gSlope': 10.0, 'tauShift': 0.0
}

class test_BranchSelection(unittest.TestCase):
    """
    Branches are selected with strict comparisons against the decreasing knots.
    """
    def setUp(self):
        self.rule = PiecewiseLearningRule(
            knots = ["$(k1)", "$(k2)", "$(k3)"],
            branches = ["1.0", "2.0", "3.0", "4.0"],
            apply_code = "$(g) += $(dg);"
        )
        self.values = {'k1': 10.0, 'k2': -5.0, 'k3': -20.0}

    def test_branches(self):
        self.assertEqual(self.rule.branch(15.0, self.values), 1)
        self.assertEqual(self.rule.branch(0.0, self.values), 2)
        self.assertEqual(self.rule.branch(-10.0, self.values), 3)
        self.assertEqual(self.rule.branch(-30.0, self.values), 4)

    def test_knot_falls_into_next_branch(self):
        self.assertEqual(self.rule.branch(10.0, self.values), 2)
        self.assertEqual(self.rule.branch(-5.0, self.values), 3)
        self.assertEqual(self.rule.branch(-20.0, self.values), 4)

    def test_timings_between_knots(self):
        for dt, branch in [(15.0, 1), (3.0, 2), (-12.0, 3), (-30.0, 4)]:
            self.assertEqual(self.rule.branch(dt, self.values), branch, dt)
            self.assertEqual(self.rule.delta(dt, self.values), float(branch), dt)

    def test_delta_at_knots(self):
        # dg of a knot value is the one of the following branch
        self.assertEqual(self.rule.delta(10.0, self.values), 2.0)
        self.assertEqual(self.rule.delta(-5.0, self.values), 3.0)
        self.assertEqual(self.rule.delta(-20.0, self.values), 4.0)
        self.assertEqual(self.rule.delta(10.001, self.values), 1.0)

    def test_knot_values(self):
        self.assertEqual(self.rule.knot_values(self.values), [10.0, -5.0, -20.0])

    def test_unordered_knots(self):
        with self.assertRaises(SpikeGenException):
            self.rule.branch(0.0, {'k1': -5.0, 'k2': 10.0, 'k3': -20.0})

    def test_wrong_number_of_knots(self):
        with self.assertRaises(SpikeGenException):
            PiecewiseLearningRule(knots=["1.0", "0.0"], branches=["1.0", "2.0", "3.0", "4.0"], apply_code="")

    def test_generated_code(self):
        code = self.rule.post_code()
        self.assertIn("scalar dt = $(t) - $(sT_pre);", code)
        self.assertIn("if (dt > ($(k1))) {", code)
        self.assertIn("else if (dt > ($(k3))) {", code)
        self.assertIn("else {", code)
        self.assertIn("$(g) += dg;", code)

    def test_shift(self):
        rule = PiecewiseLearningRule(["1.0", "0.0", "-1.0"], ["1.0", "2.0", "3.0", "4.0"], "", shift="$(tauShift)")
        self.assertIn("scalar dt = $(sT_post) - $(t) - ($(tauShift));", rule.pre_code())


class test_PiecewiseSTDP(unittest.TestCase):
    """
    Learning window of the standard piecewise STDP synapse.
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)

        model = PiecewiseSTDP()
        self.rule = model.learning_rule
        self.values = dict(stdp_params)
        self.values.update(evaluate_derived_parameters(model.derived_parameters, list(stdp_params.keys()), list(stdp_params.values()), 0.1))

    def tearDown(self):
        ConfigManager().reset()

    def test_knots(self):
        k1, k2, k3 = self.rule.knot_values(self.values)
        self.assertAlmostEqual(k1, 31.25)
        self.assertAlmostEqual(k2, 0.0)
        self.assertAlmostEqual(k3, -37.5)

    def test_depression_after_late_postsynaptic_spike(self):
        self.assertEqual(self.rule.branch(40.0, self.values), 1)
        self.assertAlmostEqual(self.rule.delta(40.0, self.values), -0.005)

    def test_potentiation(self):
        self.assertEqual(self.rule.branch(10.0, self.values), 2)
        self.assertAlmostEqual(self.rule.delta(10.0, self.values), 0.012)
        self.assertEqual(self.rule.branch(-10.0, self.values), 3)
        self.assertAlmostEqual(self.rule.delta(-10.0, self.values), 0.012)

    def test_depression_after_early_postsynaptic_spike(self):
        self.assertEqual(self.rule.branch(-50.0, self.values), 4)
        self.assertAlmostEqual(self.rule.delta(-50.0, self.values), -0.01)

    def test_learning_code(self):
        model = PiecewiseSTDP()
        self.assertTrue(model.is_learning())
        self.assertTrue(model.references('sT_pre'))
        self.assertTrue(model.references('sT_post'))
