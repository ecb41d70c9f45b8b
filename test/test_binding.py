"""
Argument binder behavioral tests.

Scope
- Positional assignment, named and flag occurrences, defaults and coercion.
- Faults: missing, invalid, unknown and duplicated arguments.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from commandeer import (
    Cardinality,
    DefaultValue,
    Param,
    Parameter,
    ParameterSet,
    ParameterTypes,
    UnsupportedTypeError,
    InvalidArgumentError,
    MissingArgumentError,
    InvalidParameterError,
    DuplicatedArgumentError,
    FaultCode,
    bind,
    split,
    verify,
)


def _parameters(*items):
    return ParameterSet.build(items)


class TestPositional(TestCase):
    """Positional tokens fill parameters in declared order."""

    def setUp(self):
        self.parameters = _parameters(Param("name"), Param("count", int, default="1"))

    def testDefaultsFillTheRest(self):
        arguments = bind(self.parameters, ["bob"])
        self.assertEqual(arguments["name"], "bob")
        self.assertEqual(arguments["count"], 1)

    def testCoercion(self):
        arguments = bind(self.parameters, ["bob", "7"])
        self.assertEqual(arguments[self.parameters.get("count")], 7)

    def testEveryParameterBoundOnce(self):
        arguments = bind(self.parameters, ["bob"])
        self.assertEqual(set(arguments), set(self.parameters))
        self.assertEqual(len(arguments), 2)

    def testMissingRequiredRaises(self):
        with self.assertRaises(MissingArgumentError) as context:
            bind(self.parameters, [])
        self.assertEqual(context.exception.parameter, "name")
        self.assertEqual(context.exception.code, FaultCode.MISSING_ARGUMENT)

    def testInvalidValueRaises(self):
        with self.assertRaises(InvalidArgumentError) as context:
            bind(self.parameters, ["bob", "x"])
        self.assertEqual(context.exception.parameter, "count")
        self.assertEqual(context.exception.value, "x")
        self.assertEqual(context.exception.options["index"], 2)
        self.assertIn("second position", str(context.exception))

    def testSurplusTokensAreKept(self):
        arguments = bind(self.parameters, ["bob", "2", "extra"])
        self.assertEqual(arguments.tokens, ("bob", "2", "extra"))

    def testNegativeNumberIsPositional(self):
        arguments = bind(_parameters(Param("offset", int)), ["-5"])
        self.assertEqual(arguments["offset"], -5)

    def testEmptyTokenIsPositional(self):
        arguments = bind(_parameters(Param("name")), [""])
        self.assertEqual(arguments["name"], "")


class TestNamed(TestCase):
    """'--id value', '--id=value' and flags."""

    def setUp(self):
        self.parameters = _parameters(
            Param("name"),
            Param("count", int, default="1"),
            Param("verbose", bool, default="false"),
            Param("all", bool, default="false"),
        )

    def testSpacedValue(self):
        arguments = bind(self.parameters, ["--count", "3", "bob"])
        self.assertEqual(arguments["count"], 3)
        self.assertEqual(arguments["name"], "bob")

    def testInlineValue(self):
        self.assertEqual(bind(self.parameters, ["bob", "--count=3"])["count"], 3)

    def testFlagValue(self):
        self.assertEqual(bind(self.parameters, ["-c", "3", "bob"])["count"], 3)
        self.assertEqual(bind(self.parameters, ["-c3", "bob"])["count"], 3)

    def testNamedClaimsBeforePositional(self):
        arguments = bind(self.parameters, ["--name", "bob", "4"])
        self.assertEqual(arguments["name"], "bob")
        self.assertEqual(arguments["count"], 4)

    def testBareBooleanName(self):
        self.assertIs(bind(self.parameters, ["bob", "--verbose"])["verbose"], True)
        self.assertIs(bind(self.parameters, ["bob"])["verbose"], False)
        self.assertIs(bind(self.parameters, ["bob", "--verbose=no"])["verbose"], False)

    def testClusteredBooleanFlags(self):
        arguments = bind(self.parameters, ["-va", "bob"])
        self.assertIs(arguments["verbose"], True)
        self.assertIs(arguments["all"], True)

    def testDoubleDashEndsOptions(self):
        arguments = bind(self.parameters, ["--", "--count"])
        self.assertEqual(arguments["name"], "--count")
        self.assertEqual(arguments["count"], 1)

    def testUnknownNameRaises(self):
        with self.assertRaises(InvalidParameterError) as context:
            bind(self.parameters, ["bob", "--nope"])
        self.assertEqual(context.exception.token, "--nope")

    def testUnknownFlagRaises(self):
        with self.assertRaises(InvalidParameterError):
            bind(self.parameters, ["bob", "-z"])

    def testMissingOptionValueRaises(self):
        with self.assertRaises(MissingArgumentError) as context:
            bind(self.parameters, ["bob", "--count"])
        self.assertEqual(context.exception.parameter, "count")

    def testScalarGivenTwiceRaises(self):
        with self.assertRaises(DuplicatedArgumentError) as context:
            bind(self.parameters, ["bob", "--count", "1", "-c", "2"])
        self.assertEqual(context.exception.parameter, "count")


class TestCollections(TestCase):
    """LIST and SET parameters."""

    def testListIsGreedy(self):
        parameters = _parameters(Param("mode"), Param("files", cardinality=Cardinality.LIST))
        arguments = bind(parameters, ["copy", "a", "b"])
        self.assertEqual(arguments["mode"], "copy")
        self.assertEqual(arguments["files"], ["a", "b"])

    def testSetDeduplicates(self):
        parameters = _parameters(Param("tags", cardinality=Cardinality.SET))
        self.assertEqual(bind(parameters, ["a", "a", "b"])["tags"], {"a", "b"})

    def testRepeatedNamesAccumulate(self):
        parameters = _parameters(Param("tag", cardinality=Cardinality.LIST, default=""))
        self.assertEqual(bind(parameters, ["--tag", "a", "--tag", "b"])["tag"], ["a", "b"])

    def testCollectionDefaultIsTokenized(self):
        parameters = _parameters(Param("numbers", int, Cardinality.LIST, default="1 2 3"))
        self.assertEqual(bind(parameters, [])["numbers"], [1, 2, 3])

    def testEmptyCollectionDefault(self):
        parameters = _parameters(Param("numbers", int, Cardinality.LIST, default=""))
        self.assertEqual(bind(parameters, [])["numbers"], [])

    def testElementCoercionFailure(self):
        parameters = _parameters(Param("numbers", int, Cardinality.LIST))
        with self.assertRaises(InvalidArgumentError) as context:
            bind(parameters, ["1", "two"])
        self.assertEqual(context.exception.value, "two")


class TestDefaults(TestCase):
    """Null-marker and representation-only defaults."""

    def testNullableBindsNone(self):
        parameters = _parameters(Param("label", nullable=True))
        self.assertIsNone(bind(parameters, [])["label"])

    def testExplicitNullMarker(self):
        parameters = ParameterSet([Parameter("label", default=DefaultValue(None, "none"), nullable=True)])
        self.assertIsNone(bind(parameters, [])["label"])

    def testRepresentationDoesNotAffectValue(self):
        parameters = ParameterSet([Parameter("size", int, default=DefaultValue("10", "ten"))])
        self.assertEqual(bind(parameters, [])["size"], 10)


class TestTypes(TestCase):
    """Coercion goes through the given registry."""

    def testCustomRegistry(self):
        types = ParameterTypes()
        types.register(complex, complex)
        parameters = _parameters(Param("z", complex))
        self.assertEqual(bind(parameters, ["2j"], types=types)["z"], 2j)


class TestVerify(TestCase):
    """verify() catches declaration mistakes before any input is bound."""

    def testUnsupportedKind(self):
        with self.assertRaises(UnsupportedTypeError) as context:
            verify(_parameters(Param("z", complex)))
        self.assertIs(context.exception.kind, complex)

    def testKindFromGivenRegistry(self):
        types = ParameterTypes()
        types.register(complex, complex)
        verify(_parameters(Param("z", complex, default="1j")), types=types)

    def testInvalidDefault(self):
        with self.assertRaises(ValueError) as context:
            verify(ParameterSet([Parameter("size", int, default="ten")]))
        self.assertNotIsInstance(context.exception, InvalidArgumentError)
        self.assertIn("'ten'", str(context.exception))

    def testInvalidCollectionDefaultToken(self):
        parameters = _parameters(Param("sizes", int, Cardinality.LIST, default="1 x 3"))
        with self.assertRaisesRegex(ValueError, "'x'"):
            verify(parameters)

    def testRepresentationIsNotChecked(self):
        verify(ParameterSet([Parameter("size", int, default=DefaultValue("10", "ten"))]))

    def testNullAndAbsentDefaultsPass(self):
        verify(_parameters(Param("count", int), Param("label", int, nullable=True), Param("tags", int, "set", default="")))


class TestSplit(TestCase):
    """split() classification used by binding and completion."""

    def testClassification(self):
        parameters = _parameters(Param("name"), Param("count", int, default="1"))
        result = split(parameters, ["bob", "--count", "2", "x"])
        self.assertEqual(result.positional, ["bob", "x"])
        self.assertEqual(result.named, {"count"})
        self.assertEqual(result.flags, set())
        self.assertEqual(result.claimed, {parameters.get("count"): [("2", None)]})

    def testFlagsAreRecorded(self):
        parameters = _parameters(Param("name"))
        self.assertEqual(split(parameters, ["-n", "bob"]).flags, {"n"})


if __name__ == "__main__":
    unittest.main()
