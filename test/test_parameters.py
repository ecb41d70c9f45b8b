"""
Parameter model behavioral tests.

Scope
- Validate Parameter metadata sanitization and default normalization.
- Validate flag allocation and ParameterSet invariants.
- Validate Param declarations and their materialization.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from commandeer import (
    Cardinality,
    DefaultValue,
    Parameter,
    ParameterSet,
    ParameterTypes,
    Param,
    Sender,
    ConsoleSender,
    generate_flags,
)


class TestDefaultValue(TestCase):
    """DefaultValue value/representation pairing."""

    def testRepresentationMirrorsValue(self):
        default = DefaultValue("1")
        self.assertEqual(default.value, "1")
        self.assertEqual(default.representation, "1")

    def testIndependentRepresentation(self):
        self.assertEqual(DefaultValue("1", "one").representation, "one")
        self.assertIsNone(DefaultValue("1", None).representation)

    def testNullMarker(self):
        default = DefaultValue()
        self.assertIsNone(default.value)
        self.assertIsNone(default.representation)

    def testEquality(self):
        self.assertEqual(DefaultValue("a"), DefaultValue("a", "a"))
        self.assertNotEqual(DefaultValue("a"), DefaultValue("a", "b"))

    def testNonStringRejected(self):
        with self.assertRaises(TypeError):
            DefaultValue(1)  # type: ignore[arg-type]


class TestParameter(TestCase):
    """Parameter construction and derived properties."""

    def testRequiredByDefault(self):
        parameter = Parameter("name")
        self.assertIsNone(parameter.default)
        self.assertFalse(parameter.optional)
        self.assertIs(parameter.kind, str)
        self.assertIs(parameter.cardinality, Cardinality.SCALAR)
        self.assertEqual(parameter.name, "name")

    def testStringDefault(self):
        parameter = Parameter("count", int, default="1")
        self.assertTrue(parameter.optional)
        self.assertEqual(parameter.default, DefaultValue("1"))

    def testNullableWithoutDefaultGetsNullMarker(self):
        parameter = Parameter("label", nullable=True)
        self.assertTrue(parameter.optional)
        self.assertEqual(parameter.default, DefaultValue(None, None))

    def testNullDefaultRequiresNullable(self):
        with self.assertRaises(ValueError):
            Parameter("label", default=None)
        with self.assertRaises(ValueError):
            Parameter("label", default=DefaultValue(None))

    def testIdMustBeKebabCase(self):
        with self.assertRaises(ValueError):
            Parameter("max count")
        with self.assertRaises(ValueError):
            Parameter("max_count")
        with self.assertRaises(TypeError):
            Parameter(3)  # type: ignore[arg-type]
        self.assertEqual(Parameter("max-count").id, "max-count")

    def testCardinalityFromString(self):
        self.assertIs(Parameter("files", cardinality="list").cardinality, Cardinality.LIST)
        with self.assertRaises(ValueError):
            Parameter("files", cardinality="bag")

    def testFlagsValidation(self):
        with self.assertRaises(TypeError):
            Parameter("name", flags="n")
        with self.assertRaises(TypeError):
            Parameter("name", flags=["nm"])
        with self.assertRaises(ValueError):
            Parameter("name", flags=["n", "n"])
        with self.assertRaises(ValueError):
            Parameter("name", flags=["-"])

    def testAliases(self):
        parameter = Parameter("name", flags=["n", "N"])
        self.assertEqual(parameter.aliases(), {"--name", "-n", "-N"})

    def testImmutable(self):
        parameter = Parameter("name")
        with self.assertRaises(AttributeError):
            parameter.id = "other"
        with self.assertRaises(AttributeError):
            parameter.extra = True

    def testEmptyDescriptionRejected(self):
        with self.assertRaises(ValueError):
            Parameter("name", descr="  ")
        self.assertIsNone(Parameter("name").descr)

    def testDeclaredSuggestions(self):
        parameter = Parameter("colour", suggestions=lambda: ["red", "blue"])
        self.assertEqual(parameter.suggest(), {"red", "blue"})

    def testSuggestionsFallBackToKind(self):
        self.assertEqual(Parameter("verbose", bool).suggest(), {"true", "false"})
        self.assertEqual(Parameter("name").suggest(), set())

    def testSuggestionsFromGivenRegistry(self):
        types = ParameterTypes()
        types.register(complex, complex, ["1j"])
        self.assertEqual(Parameter("z", complex).suggest(types), {"1j"})
        self.assertEqual(Parameter("z", complex).suggest(ParameterTypes()), set())

    def testRepr(self):
        self.assertTrue(repr(Parameter("count", int)).startswith("parameter(id='count'"))


class TestFlagAllocation(TestCase):
    """generate_flags() and ParameterSet.build()."""

    def testLowercaseFirst(self):
        self.assertEqual(generate_flags("Name"), frozenset("n"))

    def testUppercaseWhenTaken(self):
        self.assertEqual(generate_flags("name", {"n"}), frozenset("N"))

    def testNothingWhenBothTaken(self):
        self.assertEqual(generate_flags("name", {"n", "N"}), frozenset())

    def testDeclarationOrderDecides(self):
        parameters = ParameterSet.build([Param("name"), Param("number"), Param("nothing")])
        self.assertEqual([parameter.flags for parameter in parameters], [
            frozenset("n"),
            frozenset("N"),
            frozenset(),
        ])

    def testExplicitFlagsAreReservedFirst(self):
        parameters = ParameterSet.build([Param("count"), Param("other", flags=["c"])])
        self.assertEqual(parameters.get("count").flags, frozenset("C"))
        self.assertEqual(parameters.get("other").flags, frozenset("c"))

    def testExplicitEmptyFlags(self):
        parameters = ParameterSet.build([Param("name", flags=())])
        self.assertEqual(parameters.get("name").flags, frozenset())


class TestParameterSet(TestCase):
    """ParameterSet invariants and lookups."""

    def testDuplicateIdsRejected(self):
        with self.assertRaises(ValueError):
            ParameterSet([Parameter("a"), Parameter("a")])

    def testDuplicateFlagsRejected(self):
        with self.assertRaises(ValueError):
            ParameterSet([Parameter("a", flags=["x"]), Parameter("b", flags=["x"])])

    def testLookups(self):
        a = Parameter("alpha", flags=["a"])
        b = Parameter("beta")
        parameters = ParameterSet([a, b])
        self.assertIs(parameters.get("alpha"), a)
        self.assertIs(parameters.by_flag("a"), a)
        self.assertIsNone(parameters.get("gamma"))
        self.assertEqual(parameters.ids, ("alpha", "beta"))
        self.assertEqual(list(parameters), [a, b])
        self.assertEqual(len(parameters), 2)
        self.assertIs(parameters[1], b)

    def testNonParameterRejected(self):
        with self.assertRaises(TypeError):
            ParameterSet(["alpha"])


class TestDeclarations(TestCase):
    """Param and Sender markers."""

    def testFillOnlyReplacesUnset(self):
        declaration = Param(kind=int).fill(id="count", kind=str)
        self.assertEqual(declaration.id, "count")
        self.assertIs(declaration.kind, int)

    def testMaterializeDefaults(self):
        parameter = Param("name").materialize()
        self.assertIs(parameter.kind, str)
        self.assertEqual(parameter.flags, frozenset())
        self.assertFalse(parameter.nullable)

    def testMaterializeWithoutIdRejected(self):
        with self.assertRaises(TypeError):
            Param().materialize()

    def testUnknownFillField(self):
        with self.assertRaises(TypeError):
            Param("name").fill(colour="red")

    def testSenderMarker(self):
        marker = Sender(ConsoleSender, optional=True)
        self.assertEqual(tuple(marker), (ConsoleSender, True))
        with self.assertRaises(TypeError):
            Sender("console")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
