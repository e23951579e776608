"""
This file is part of SpikeGen.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""
import unittest

from SpikeGen import ModelAuthoringError, SpikeGenException, setup
from SpikeGen.intern.ConfigManagement import ConfigManager
from SpikeGen.parser.Substitution import CodeFragment, SubstitutionPass, SymbolTable, Placeholder, \
    tokenize, substitute, c_literal, strip_placeholders

class test_Tokenizer(unittest.TestCase):
    """
    Splitting of a fragment into text and placeholders.
    """
    def test_tokens(self):
        tokens = tokenize("$(V) += $(a) * DT;")
        self.assertEqual(tokens, [Placeholder("V"), " += ", Placeholder("a"), " * DT;"])

    def test_placeholders(self):
        fragment = CodeFragment("$(V) += 0.04 * $(V) * $(V) - $(U);")
        self.assertEqual(fragment.placeholders, ["V", "U"])
        self.assertTrue(fragment.references("U"))
        self.assertFalse(fragment.references("Isyn"))

    def test_empty_fragment(self):
        self.assertTrue(CodeFragment(None).is_empty())
        self.assertEqual(CodeFragment("").expand([]), "")

    def test_malformed_identifier(self):
        with self.assertRaises(ModelAuthoringError):
            tokenize("$(1V) = 0.0;")

    def test_unclosed_placeholder(self):
        with self.assertRaises(ModelAuthoringError):
            CodeFragment("$(V = 0.0;")

    def test_strip_placeholders(self):
        self.assertEqual(strip_placeholders("exp(-$(DT)/$(tau))"), "exp(-DT/tau)")


class test_Expansion(unittest.TestCase):
    """
    Resolution of the placeholders against ordered substitution passes.
    """
    def setUp(self):
        ConfigManager().reset()
        setup(suppress_warnings=True)

    def tearDown(self):
        ConfigManager().reset()

    def test_expand(self):
        variables = SubstitutionPass('variables', {'V': 'lV', 'U': 'lU'})
        parameters = SubstitutionPass('parameters', {'a': 0.02})
        code = CodeFragment("$(U) += $(a) * $(V);").expand([variables, parameters])
        self.assertEqual(code, "lU += 0.02f * lV;")

    def test_first_pass_wins(self):
        first = SubstitutionPass('variables', {'x': 'lx'})
        second = SubstitutionPass('parameters', {'x': 'ctx.x'})
        self.assertEqual(substitute("$(x)", [first, second]), "lx")
        self.assertEqual(substitute("$(x)", [second, first]), "ctx.x")

    def test_replacement_is_not_rescanned(self):
        names = SubstitutionPass('variables', {'a': 'b', 'b': 'c'})
        self.assertEqual(substitute("$(a) + $(b)", [names]), "b + c")

    def test_replacement_with_placeholder(self):
        names = SubstitutionPass('variables')
        with self.assertRaises(SpikeGenException):
            names.add('a', '$(b)')

    def test_update_mismatch(self):
        names = SubstitutionPass('parameters')
        with self.assertRaises(SpikeGenException):
            names.update(['a', 'b'], [1.0])

    def test_unresolved(self):
        fragment = CodeFragment("$(V) += $(Iext);", "simulation code of Pop")
        with self.assertRaises(ModelAuthoringError) as cm:
            fragment.expand([SubstitutionPass('variables', {'V': 'lV'})])
        self.assertEqual(cm.exception.identifier, "Iext")
        self.assertIn("simulation code of Pop", str(cm.exception))

    def test_allow_unresolved(self):
        fragment = CodeFragment("$(V) += $(Iext);")
        code = fragment.expand([SubstitutionPass('variables', {'V': 'lV'})], allow_unresolved=True)
        self.assertEqual(code, "lV += $(Iext);")

    def test_symbol_table(self):
        table = SymbolTable()
        table.get_pass('variables').add('V', 'lV')
        table.get_pass('parameters').add('c', -65.0)
        self.assertEqual(len(table.passes), 2)
        self.assertEqual(table.resolve('c'), "(-65.0f)")
        self.assertIsNone(table.resolve('d'))

        extended = table.extended(SubstitutionPass('extra', {'d': '8'}))
        self.assertEqual(substitute("$(V) = $(c) + $(d);", extended), "lV = (-65.0f) + 8;")
        self.assertEqual(len(table.passes), 2)


class test_Literals(unittest.TestCase):
    """
    Rendering of numeric values in the generated code.
    """
    def test_float(self):
        self.assertEqual(c_literal(0.5, "float"), "0.5f")
        self.assertEqual(c_literal(0.5, "double"), "0.5")

    def test_negative(self):
        self.assertEqual(c_literal(-1.0, "double"), "(-1.0)")
        self.assertEqual(c_literal(-2, "float"), "(-2)")

    def test_integer_and_boolean(self):
        self.assertEqual(c_literal(3, "float"), "3")
        self.assertEqual(c_literal(True, "float"), "true")

    def test_infinity(self):
        self.assertEqual(c_literal(float('inf'), "float"), "INFINITY")
        self.assertEqual(c_literal(float('-inf'), "float"), "(-INFINITY)")
