"""
Expansion of the ``$(name)`` placeholders used in the code fragments of
neuron, weight-update and postsynaptic models.

A fragment is tokenized once into text and placeholder nodes. The
placeholders are then resolved against a layered symbol table: each layer
(a *SubstitutionPass*) maps a fixed set of identifiers to replacement
expressions and the layers are consulted in their documented order. The
replacement text is never scanned again, so a replacement can not be
substituted a second time.

:copyright: Copyright 2013 - now, see AUTHORS.
:license: GPLv2, see LICENSE for details.
"""

import re
import math
from collections import OrderedDict

from SpikeGen.intern.ConfigManagement import get_global_config
from SpikeGen.intern.Messages import ModelAuthoringError, SpikeGenException

# A well-formed placeholder
placeholder_regex = re.compile(r'\$\(([A-Za-z_][A-Za-z0-9_]*)\)')

# Anything which starts like a placeholder
opening_regex = re.compile(r'\$\(')

# Documented order of the substitution passes
PASS_ORDER = [
    'variables',
    'input',
    'parameters',
    'derived_parameters',
    'postsynaptic',
    'extra_global_parameters',
]

class Placeholder(object):
    "Identifier node of a tokenized code fragment."
    __slots__ = ['name']

    def __init__(self, name):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Placeholder) and other.name == self.name

    def __hash__(self):
        return hash(('placeholder', self.name))

    def __repr__(self):
        return "$(" + self.name + ")"

def tokenize(code):
    """
    Splits *code* into a list of str (plain text) and Placeholder objects.

    A "$(" which does not open a valid identifier placeholder is reported as
    a ModelAuthoringError.
    """
    tokens = []
    position = 0
    for match in placeholder_regex.finditer(code):
        text = code[position:match.start()]
        _check_malformed(text, code)
        if text:
            tokens.append(text)
        tokens.append(Placeholder(match.group(1)))
        position = match.end()

    text = code[position:]
    _check_malformed(text, code)
    if text:
        tokens.append(text)

    return tokens

def _check_malformed(text, code):
    match = opening_regex.search(text)
    if match is not None:
        end = text.find(')', match.start())
        snippet = text[match.start():end+1] if end >= 0 else text[match.start():]
        raise ModelAuthoringError("malformed placeholder " + snippet.strip() + " in code: " + code.strip(), snippet)

def contains_placeholder(text):
    "Returns True if *text* contains anything starting like a placeholder."
    return opening_regex.search(text) is not None

def c_literal(value, precision=None):
    """
    Renders a numeric value as a C++ literal of the given precision
    ("float" or "double", default the global configuration).

    Negative values are parenthesized so that the literal can be placed
    behind any operator.
    """
    if precision is None:
        precision = get_global_config('precision')

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, int):
        code = str(value)
        return "(" + code + ")" if value < 0 else code

    value = float(value)
    if math.isnan(value):
        return "NAN"
    if math.isinf(value):
        return "INFINITY" if value > 0 else "(-INFINITY)"

    code = repr(value)
    if precision == "float":
        code += "f"

    return "(" + code + ")" if value < 0 else code


class SubstitutionPass(object):
    """
    One layer of the symbol table: a fixed mapping of identifiers to
    replacement expressions.
    """
    def __init__(self, name, mapping=None):
        self.name = name
        self._mapping = OrderedDict()
        if mapping is not None:
            for identifier, replacement in mapping.items():
                self.add(identifier, replacement)

    def add(self, identifier, replacement):
        """
        Adds an identifier to this pass. Numeric replacements are rendered as
        C literals, strings must be free of placeholders.
        """
        if not isinstance(replacement, str):
            replacement = c_literal(replacement)

        if contains_placeholder(replacement):
            raise SpikeGenException("The replacement '" + replacement + "' for $(" + identifier + ") in the pass '" + self.name + "' contains a placeholder.")

        self._mapping[identifier] = replacement

    def update(self, names, values):
        "Adds the identifiers *names* with the corresponding *values*."
        if len(names) != len(values):
            raise SpikeGenException("The pass '" + self.name + "' received " + str(len(names)) + " names but " + str(len(values)) + " values.")

        for identifier, replacement in zip(names, values):
            self.add(identifier, replacement)

    def __contains__(self, identifier):
        return identifier in self._mapping

    def __getitem__(self, identifier):
        return self._mapping[identifier]

    def __len__(self):
        return len(self._mapping)

    def keys(self):
        return list(self._mapping.keys())

    def __repr__(self):
        return "SubstitutionPass(" + self.name + ", " + str(dict(self._mapping)) + ")"


class SymbolTable(object):
    """
    Ordered stack of substitution passes. An identifier is resolved by the
    first pass which defines it.
    """
    def __init__(self, passes=None):
        self._passes = []
        for p in (passes or []):
            self.append(p)

    def append(self, substitution_pass):
        self._passes.append(substitution_pass)
        return substitution_pass

    def get_pass(self, name):
        "Returns the pass called *name*, creates it if it does not exist."
        for p in self._passes:
            if p.name == name:
                return p
        return self.append(SubstitutionPass(name))

    @property
    def passes(self):
        return list(self._passes)

    def resolve(self, identifier):
        "Returns the replacement for *identifier* or None if it is not declared."
        for p in self._passes:
            if identifier in p:
                return p[identifier]
        return None

    def extended(self, *passes):
        "Returns a new table consisting of these passes followed by *passes*."
        return SymbolTable(self._passes + list(passes))


class CodeFragment(object):
    """
    A model-supplied piece of code, tokenized once.

    :param code: the code containing ``$(name)`` placeholders.
    :param context: description used in error messages, e.g. "simulation code of PN".
    """
    def __init__(self, code, context=""):
        self.code = code if code is not None else ""
        self.context = context
        self.tokens = tokenize(self.code)

    @property
    def placeholders(self):
        "Ordered list of the distinct identifiers referenced in this fragment."
        names = []
        for token in self.tokens:
            if isinstance(token, Placeholder) and token.name not in names:
                names.append(token.name)
        return names

    def references(self, identifier):
        "True if the placeholder $(identifier) is used in the fragment."
        return identifier in self.placeholders

    def is_empty(self):
        return self.code.strip() == ""

    def expand(self, table, allow_unresolved=False):
        """
        Returns the fragment with all placeholders replaced according to
        *table* (a SymbolTable or a list of SubstitutionPass).

        If *allow_unresolved* is False (default), a placeholder which can not be
        resolved raises a ModelAuthoringError naming the identifier.
        Otherwise it is left untouched, which allows early substitutions.
        """
        if not isinstance(table, SymbolTable):
            table = SymbolTable(table)

        code = ""
        for token in self.tokens:
            if isinstance(token, Placeholder):
                replacement = table.resolve(token.name)
                if replacement is None:
                    if allow_unresolved:
                        code += repr(token)
                        continue
                    msg = "undeclared symbol $(" + token.name + ")"
                    if self.context:
                        msg += " in the " + self.context
                    msg += ": " + self.code.strip()
                    raise ModelAuthoringError(msg, token.name)
                code += replacement
            else:
                code += token

        return code

    def __repr__(self):
        return "CodeFragment(" + repr(self.code) + ")"

def substitute(code, passes, context="", allow_unresolved=False):
    "Shortcut to tokenize *code* and expand it against *passes*."
    return CodeFragment(code, context).expand(passes, allow_unresolved=allow_unresolved)

def strip_placeholders(code):
    "Replaces every $(name) by name, e.g. to hand a fragment to sympy."
    return placeholder_regex.sub(lambda m: m.group(1), code)
