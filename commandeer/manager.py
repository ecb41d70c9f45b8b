"""
Commandeer manager: the command registry plus the execution pipeline.

Pipeline (Execution.run)
    RESOLVING     tokens -> (command, argument tokens), NotACommandError if none
    SENDER_CHECK  sender -> SenderView, IncompatibleSenderError if unusable
    BINDING       argument tokens -> BoundArguments (binding faults)
    INVOKING      handler(senders, arguments), then the response converter
    DONE          response returned
    ERROR         any failure; the exception propagates unchanged

There are no retries. Command faults raised by a handler reach the caller as
they were raised, and so does any other exception.

Usage
    manager = CommandManager()

    @manager.command("greet")
    def greet(name=Param()):
        return "hello " + name

    manager.dispatch(ConsoleSender(), 'greet "big world"')  # -> 'hello big world'
"""
import enum
import importlib
import inspect

from . import binding
from . import completion
from . import routing
from . import senders
from .commands import Command, command
from .faults import *
from .tokens import tokenize
from .utils import *


class Stage(enum.Enum):
    RESOLVING = "resolving"
    SENDER_CHECK = "sender-check"
    BINDING = "binding"
    INVOKING = "invoking"
    DONE = "done"
    ERROR = "error"


class Execution:
    """
    One run of the pipeline.

    With command given, tokens are the argument tokens and resolution is
    skipped; otherwise tokens start with the command path. run() may be called
    once; stage tells how far it got.
    """

    def __init__(self, manager, sender, tokens, /, command=None):
        self._manager = manager
        self._sender = sender
        self._tokens = tuple(tokens)
        self._command = command
        self._senders = None
        self._arguments = None
        self._stage = Stage.RESOLVING

    @property
    def stage(self):
        return self._stage

    @property
    def command(self):
        return self._command

    @property
    def senders(self):
        return self._senders

    @property
    def arguments(self):
        return self._arguments

    def run(self):
        if self._stage is not Stage.RESOLVING:
            raise RuntimeError("execution already ran (stage %s)" % self._stage.value)
        try:
            tokens = self._tokens
            if self._command is None:
                if (match := self._manager.resolve(tokens)) is None:
                    raise NotACommandError(
                        "%r is not a command" % " ".join(tokens[:1]),
                        code=FaultCode.NOT_A_COMMAND,
                        title="not a command",
                        token=tokens[0] if tokens else None,
                        hint="use help to list the available commands",
                    )
                length, self._command = match
                tokens = tokens[length:]

            self._stage = Stage.SENDER_CHECK
            self._senders = senders.resolve(self._command.senders, self._sender, self._manager.adapters.adapt)

            self._stage = Stage.BINDING
            self._arguments = binding.bind(self._command.parameters, tokens, types=self._manager.types)

            self._stage = Stage.INVOKING
            response = self._manager.convert(self._command, self._command.execute(self._senders, self._arguments))
        except Exception:
            self._stage = Stage.ERROR
            raise

        self._stage = Stage.DONE
        return response

    def __repr__(self):
        return "execution(stage=%s, command=%r)" % (self._stage.value, getattr(self._command, "name", None))


class CommandManager:
    """
    Registry of commands and entry point of the pipeline.

    Parameters
    - types: ParameterTypes used for binding and suggestions (the process-wide
      registry by default).
    - adapters: sender Adapters (a fresh, empty registry by default).
    - response: default converter applied to every handler response.

    Registration listeners are called with each newly registered command.
    """

    def __init__(self, types=None, adapters=None, response=None):
        if types is None:
            from .kinds import types
        if response is not None and not callable(response):
            raise TypeError("command manager 'response' must be callable")
        self._map = routing.CommandMap()
        self._types = types
        self._adapters = adapters if adapters is not None else senders.Adapters()
        self._response = response
        self._responses = {}
        self._listeners = []

    @property
    def types(self):
        return self._types

    @property
    def adapters(self):
        return self._adapters

    @property
    def commands(self):
        """Registered commands in registration order."""
        return self._map.commands

    def register(self, command, /, response=None):
        """
        Register command (under all of its paths) and return it.

        response, when given, converts this command's responses instead of the
        manager default. Raises DuplicateCommandError on a path collision,
        UnsupportedTypeError for a parameter kind missing from the manager's
        types and ValueError for a default that kind rejects.
        """
        if not isinstance(command, Command):
            raise TypeError("register() argument must be a command")
        if response is not None and not callable(response):
            raise TypeError("register() 'response' must be callable")

        binding.verify(command.parameters, types=self._types)

        known = command in self._map
        self._map.register(command)
        if response is not None:
            self._responses[command] = response
        if not known:
            for listener in tuple(self._listeners):
                listener(command)
        return command

    def command(self, source=Unset, /, response=None, **options):
        """
        Decorator form of command() that also registers the result.
        """
        if isinstance(source, str):
            return self.command(response=response, **options, name=source)

        def wrapper(callback, /):
            return self.register(command(callback, **options), response=response)

        return wrapper(source) if source is not Unset else wrapper

    def include(self, source, /):
        """
        Import the modules matched by a module glob and register every Command
        found at their top level. Returns the newly registered commands.
        """
        if not isinstance(source, str):
            raise TypeError("include() argument must be a string")

        registered = []
        for name in mglob(source):
            try:
                module = importlib.import_module(name)
            except ImportError:
                raise TypeError(f"unable to import module {name!r}") from None
            for _, object in inspect.getmembers(module, lambda x: isinstance(x, Command)):
                if object not in self._map:
                    registered.append(self.register(object))
        return registered

    def add_listener(self, listener, /):
        if not callable(listener):
            raise TypeError("add_listener() argument must be callable")
        self._listeners.append(listener)
        return listener

    def remove_listener(self, listener, /):
        self._listeners.remove(listener)

    def lookup(self, path, /):
        return self._map.lookup(path)

    def resolve(self, tokens, /):
        return self._map.resolve(tokens)

    def branches(self, path=(), /):
        return self._map.branches(path)

    def convert(self, command, response, /):
        converter = self._responses.get(command, self._response)
        return converter(response) if converter is not None else response

    def execute(self, sender, command, tokens=(), /):
        """
        Run command with argument tokens (no routing).
        """
        return Execution(self, sender, tokens, command=command).run()

    def dispatch(self, sender, line, /):
        """
        Tokenize line, route it and run the resolved command.
        """
        return Execution(self, sender, tokenize(line)).run()

    def complete(self, line, /):
        return completion.complete(self, line)

    def __contains__(self, command):
        return command in self._map

    def __iter__(self):
        return iter(self._map)

    def __len__(self):
        return len(self._map)


__all__ = (
    "Stage",
    "Execution",
    "CommandManager",
)
