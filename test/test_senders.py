"""
Sender compatibility behavioral tests.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase
from unittest.mock import Mock

from rich.console import Console

from commandeer import (
    Adapters,
    CommandSender,
    ConsoleSender,
    SenderRequirement,
    SenderView,
    IncompatibleSenderError,
    MultipleRequiredSendersError,
)
from commandeer.senders import resolve


class Player(CommandSender):
    def __init__(self, name="steve"):
        self._name = name
        self.messages = []

    @property
    def name(self):
        return self._name

    def send_message(self, message, /):
        self.messages.append(message)


class Account:
    def __init__(self, owner):
        self.owner = owner


class TestCommandSender(TestCase):
    """The sender base class is abstract."""

    def testBaseCannotBeInstantiated(self):
        with self.assertRaises(TypeError):
            CommandSender()

    def testSubclassMustProvideSendMessage(self):
        class Mute(CommandSender):
            @property
            def name(self):
                return "mute"

        with self.assertRaises(TypeError):
            Mute()

    def testCompleteSubclass(self):
        self.assertEqual(Player().name, "steve")


class TestRequirement(TestCase):
    """SenderRequirement construction."""

    def testAtMostOneRequired(self):
        with self.assertRaises(MultipleRequiredSendersError) as context:
            SenderRequirement.of([(Player, False), (Account, False)])
        self.assertEqual(context.exception.capabilities, (Player, Account))
        self.assertIsInstance(context.exception, TypeError)

    def testRequiredAndOptional(self):
        requirement = SenderRequirement.of([(Account, True), (Player, False)])
        self.assertIs(requirement.required, Player)
        self.assertEqual(requirement.optional, (Account,))
        self.assertEqual(requirement.capabilities, (Account, Player))

    def testNoneMeansNoSlots(self):
        requirement = SenderRequirement.of(None)
        self.assertFalse(requirement)
        self.assertIsNone(requirement.required)

    def testRepeatedCapabilityIsMerged(self):
        requirement = SenderRequirement.of([(Player, True), (Player, False)])
        self.assertEqual(requirement.slots, ((Player, False),))


class TestResolve(TestCase):
    """resolve() admissibility and slot filling."""

    def testNativeMatchSkipsAdapter(self):
        adapt = Mock(return_value=None)
        player = Player()
        view = resolve([(Player, False)], player, adapt)
        self.assertIs(view[Player], player)
        self.assertIs(view.required, player)
        adapt.assert_not_called()

    def testAdaptedRequiredCapability(self):
        account = Account("steve")
        adapt = Mock(return_value=account)
        player = Player()
        view = resolve([(Account, False)], player, adapt)
        self.assertIs(view[Account], account)
        self.assertIs(view.source, player)
        adapt.assert_called_once_with(player, Account)

    def testIncompatibleRequiredRaises(self):
        with self.assertRaises(IncompatibleSenderError) as context:
            resolve([(Account, False)], Player(), lambda sender, capability: None)
        self.assertIs(context.exception.options["capability"], Account)

    def testOptionalSlotsNeverBlock(self):
        view = resolve([(Account, True)], Player(), lambda sender, capability: None)
        self.assertIsNone(view[Account])
        self.assertIsNone(view.required)

    def testOptionalSlotsFilledIndependently(self):
        player = Player()
        view = resolve([(Player, True), (Account, True)], player, lambda sender, capability: None)
        self.assertIs(view[Player], player)
        self.assertIsNone(view[Account])

    def testNoRequirement(self):
        player = Player()
        view = resolve(None, player, lambda sender, capability: None)
        self.assertEqual(len(view), 0)
        self.assertIs(view.source, player)
        self.assertIsInstance(view, SenderView)


class TestAdapters(TestCase):
    """Adapters registry."""

    def testAdaptBySource(self):
        adapters = Adapters()
        adapters.register(Account, lambda player: Account(player.name), source=Player)
        account = adapters.adapt(Player("alex"), Account)
        self.assertEqual(account.owner, "alex")
        self.assertIsNone(adapters.adapt(object(), Account))
        self.assertIn(Account, adapters)

    def testFirstNonNoneWins(self):
        adapters = Adapters()
        adapters.register(Account, lambda sender: None)
        adapters.register(Account, lambda sender: Account("second"))
        self.assertEqual(adapters.adapt(Player(), Account).owner, "second")

    def testWrongResultTypeRaises(self):
        adapters = Adapters()
        adapters.register(Account, lambda sender: "not an account")
        with self.assertRaises(TypeError):
            adapters.adapt(Player(), Account)

    def testUnknownCapability(self):
        self.assertIsNone(Adapters().adapt(Player(), Account))


class TestConsoleSender(TestCase):
    """ConsoleSender prints verbatim."""

    def testMarkupIsNotInterpreted(self):
        buffer = io.StringIO()
        sender = ConsoleSender("admin", console=Console(file=buffer, width=120, color_system=None))
        sender.send_message("roll [count=1] [sides=6]")
        self.assertEqual(buffer.getvalue().strip(), "roll [count=1] [sides=6]")
        self.assertEqual(sender.name, "admin")


if __name__ == "__main__":
    unittest.main()
