"""
Commandeer channels: where command input comes from and responses go.

Overview
- CommandChannel: a set of command managers, each with a response wrapper that
  converts its responses to the channel's response type. Input is routed across
  all managers: the longest matching command path wins; equal lengths go to the
  manager registered first.
- TextCommandChannel: string responses. Input must start with the optional
  prefix, faults are answered with their message, and non-empty responses are
  sent back to the sender. Ships a built-in "help" command.
- ConsoleChannel: a text channel that renders faults through rich instead of
  answering with plain text.

Lifecycle
- enable()/disable() call the on_enable()/on_disable() hooks once per
  transition. I/O listeners receive every input line and every response.
"""
import logging
from typing import NamedTuple

from . import routing
from .commands import Command
from .faults import *
from .manager import CommandManager
from .tokens import tokenize
from .utils import *

log = logging.getLogger(__name__)


class CommandHelp(NamedTuple):
    """Help entry of one command."""
    name: str
    usage: str


class CommandChannel:
    """
    Channel over one main command manager plus any number of extra managers.
    """

    def __init__(self, manager=None, /):
        self._manager = manager if manager is not None else CommandManager()
        self._managers = []
        self._listeners = []
        self._enabled = False
        self.register_manager(self._manager)

    @property
    def manager(self):
        """The main command manager."""
        return self._manager

    @property
    def managers(self):
        """Registered managers in registration order."""
        return [manager for manager, _ in self._managers]

    @property
    def enabled(self):
        return self._enabled

    def register_manager(self, manager, wrapper=None, /):
        """
        Make the commands of manager executable through this channel.

        wrapper converts the manager's responses (identity by default).
        """
        if not isinstance(manager, CommandManager):
            raise TypeError("register_manager() first argument must be a command manager")
        if wrapper is not None and not callable(wrapper):
            raise TypeError("register_manager() second argument must be callable")
        if any(manager is registered for registered, _ in self._managers):
            raise ValueError("command manager is already registered")
        self._managers.append((manager, wrapper))
        log.debug("registered command manager with %d command(s)", len(manager))

    def add_io_listener(self, receiver, /):
        """
        Forward every input line and response to receiver.send_message().
        """
        if not callable(getattr(receiver, "send_message", None)):
            raise TypeError("add_io_listener() argument must have a send_message method")
        self._listeners.append(receiver)

    def enable(self):
        if self._enabled:
            return
        self.on_enable()
        self._enabled = True
        log.debug("%s enabled", type(self).__name__)

    def disable(self):
        if not self._enabled:
            return
        self.on_disable()
        self._enabled = False
        log.debug("%s disabled", type(self).__name__)

    def on_enable(self):
        pass

    def on_disable(self):
        pass

    def help(self):
        """CommandHelp for every command of every manager, in registration order."""
        return [
            CommandHelp(command.name, command.usage)
            for manager in self.managers
            for command in manager.commands
        ]

    def execute(self, sender, line, /):
        """
        Route line across the managers, run the command and wrap its response.
        """
        tokens = tokenize(line)
        if (match := routing.resolve(self.managers, tokens)) is None:
            raise NotACommandError(
                "%r is not a command" % " ".join(tokens[:1]),
                code=FaultCode.NOT_A_COMMAND,
                title="not a command",
                token=tokens[0] if tokens else None,
                hint="use help to list the available commands",
            )
        manager, length, command = match
        log.debug("dispatching %r with %d argument token(s)", command.name, len(tokens) - length)
        response = manager.execute(sender, command, tokens[length:])
        wrapper = next(wrapper for registered, wrapper in self._managers if registered is manager)
        return wrapper(response) if wrapper is not None else response

    def complete(self, line, /):
        """Completion candidates for the last word of line across all managers."""
        candidates = set()
        for manager in self.managers:
            candidates.update(manager.complete(line))
        return sorted(candidates)

    def parse_input(self, sender, line, /):
        for listener in self._listeners:
            listener.send_message(line)

    def respond(self, sender, response, /):
        for listener in self._listeners:
            listener.send_message(response)


def _render_help(entries):
    return "\n".join(["Commands:", *("|  " + entry.usage for entry in entries)])


class TextCommandChannel(CommandChannel):
    """
    Channel whose responses are strings.

    - prefix: required at the start of every input line (e.g. "!"); input
      without it is ignored. None or "" accepts every line.
    - include_help: register the built-in "help" command on the main manager.
    """

    def __init__(self, manager=None, /, prefix=None, include_help=True):
        if not isinstance(prefix, str | None):
            raise TypeError("text command channel 'prefix' must be a string")
        self._prefix = prefix
        super().__init__(manager)
        if include_help:
            self._manager.register(
                Command("help", lambda senders, arguments: self.help(), summary="List the available commands."),
                response=_render_help,
            )

    @property
    def prefix(self):
        return self._prefix

    def register_manager(self, manager, wrapper=None, /):
        super().register_manager(manager, wrapper if wrapper is not None else _stringify)

    def validate_prefix(self, line, /):
        """
        Return line without the prefix, or None when it does not start with it.
        """
        if not self._prefix:
            return line
        if not line.startswith(self._prefix):
            return None
        return line.removeprefix(self._prefix)

    def parse_input(self, sender, line, /):
        """
        Execute line for sender and send the response back. Returns the text
        response (None when the line was ignored or nothing was answered).
        I/O listeners receive line as typed, prefix included.
        """
        if (command := self.validate_prefix(line)) is None:
            return None

        super().parse_input(sender, line)

        try:
            message = self.execute(sender, command)
        except CommandException as fault:
            log.debug("command fault %s: %s", fault.code.normalize(), fault)
            message = self.render(sender, fault)

        self.respond(sender, message)
        return message

    def render(self, sender, fault, /):
        """Text answer for a fault (its message)."""
        return str(fault)

    def respond(self, sender, response, /):
        if not response:
            return
        super().respond(sender, response)
        sender.send_message(response)


def _stringify(response):
    return None if response is None else str(response)


class ConsoleChannel(TextCommandChannel):
    """
    Text channel for terminals; faults are printed through rich (stderr).

    Options
    - fancy: render faults in a panel.
    - colorful: use the fault palette (see faults.CommandException.__rich__).
    """

    def __init__(self, manager=None, /, prefix=None, include_help=True, *, fancy=False, colorful=True):
        super().__init__(manager, prefix, include_help)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

    @property
    def fancy(self):
        return self._fancy

    @property
    def colorful(self):
        return self._colorful

    def render(self, sender, fault, /):
        trigger(fault, shell=True, fancy=self._fancy, colorful=self._colorful)
        return None


__all__ = (
    "CommandHelp",
    "CommandChannel",
    "TextCommandChannel",
    "ConsoleChannel",
)
