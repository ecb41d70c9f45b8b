"""
Commandeer senders: who issues a command, and what the command may require of them.

Overview
- CommandSender: the issuer of a command. It has a name and can receive messages.
- ConsoleSender: a sender writing to a rich console.
- Adapters: capability adapters. They turn a sender into another type (a player
  object, an account...) when it is not an instance of it already.
- SenderRequirement: the sender slots a command declares, at most one required.
- resolve(): check a concrete sender against a requirement and produce the
  SenderView handed to the handler.

Resolution rules
- A native match (isinstance) always wins and the adapter is not consulted.
- A required capability must be matched natively or through an adapter, else
  IncompatibleSenderError.
- Optional capabilities never block execution; each is filled with the sender,
  an adapted instance or None, independently of the others.
"""
from abc import ABC, abstractmethod
from collections.abc import Mapping

from rich.console import Console

from .faults import *
from .utils import *


class CommandSender(ABC):
    """
    Base class of command senders.

    Subclasses provide name and send_message(message); the base class cannot be
    instantiated.
    """

    @property
    @abstractmethod
    def name(self): ...

    @abstractmethod
    def send_message(self, message, /): ...


class ConsoleSender(CommandSender):
    """
    A sender bound to a rich console (stdout by default).

    Messages are printed verbatim: rich markup is not interpreted, so usage
    strings like "[count=1]" reach the terminal unchanged.
    """

    def __init__(self, name="console", /, console=Unset):
        if not isinstance(name, str) or not name:
            raise TypeError("console sender name must be a non-empty string")
        self._name = name
        self._console = console if console is not Unset else Console()

    @property
    def name(self):
        return self._name

    @property
    def console(self):
        return self._console

    def send_message(self, message, /):
        self._console.print(message, markup=False, highlight=False)

    def __repr__(self):
        return "console-sender(%r)" % self._name


class Adapters:
    """
    Registry of capability adapters.

    register(capability, converter, source=object)
        converter(sender) -> instance of capability | None, tried for senders
        that are instances of source. Converters of a capability are tried in
        registration order; the first non-None result wins.
    """

    def __init__(self):
        self._converters = {}

    def register(self, capability, converter, /, source=object):
        if not isinstance(capability, type):
            raise TypeError("adapter capability must be a class")
        if not callable(converter):
            raise TypeError("adapter converter must be callable")
        if not isinstance(source, type):
            raise TypeError("adapter source must be a class")
        self._converters.setdefault(capability, []).append((source, converter))
        return converter

    def adapt(self, sender, capability, /):
        """
        Adapt sender to capability, or return None when no converter applies.
        """
        for source, converter in self._converters.get(capability, ()):
            if not isinstance(sender, source):
                continue
            if (instance := converter(sender)) is None:
                continue
            if not isinstance(instance, capability):
                raise TypeError(
                    "adapter for %s returned %s" % (capability.__qualname__, type(instance).__qualname__)
                )
            return instance
        return None

    def __contains__(self, capability):
        return capability in self._converters


class SenderRequirement:
    """
    Sender slots of a command: ordered (capability, optional) pairs.

    A capability declared several times is kept once; it is required when any
    of its declarations is.
    """

    __slots__ = ("_slots",)

    def __init__(self, slots=(), /):
        merged = {}
        for capability, optional in slots:
            if not isinstance(capability, type):
                raise TypeError("sender capability must be a class")
            merged[capability] = merged.get(capability, True) and bool(optional)
        if len(required := [capability for capability, optional in merged.items() if not optional]) > 1:
            raise MultipleRequiredSendersError(required)
        self._slots = tuple(merged.items())

    @classmethod
    def of(cls, slots, /):
        if isinstance(slots, SenderRequirement):
            return slots
        return cls(() if slots is None else slots)

    @property
    def slots(self):
        return self._slots

    @property
    def required(self):
        """The required capability, or None."""
        for capability, optional in self._slots:
            if not optional:
                return capability
        return None

    @property
    def optional(self):
        return tuple(capability for capability, optional in self._slots if optional)

    @property
    def capabilities(self):
        return tuple(capability for capability, _ in self._slots)

    def __bool__(self):
        return bool(self._slots)

    def __repr__(self):
        return "sender-requirement(%s)" % ", ".join(
            capability.__qualname__ + ("?" if optional else "") for capability, optional in self._slots
        )


class SenderView(Mapping):
    """
    Read-only mapping capability -> instance (or None) for one execution.

    - source: the sender that issued the command.
    - required: the instance bound to the required capability (None when the
      command requires none).
    """

    __slots__ = ("_source", "_instances", "_required")

    def __init__(self, source, instances=None, required=None, /):
        self._source = source
        self._instances = dict(instances or {})
        self._required = required

    @property
    def source(self):
        return self._source

    @property
    def required(self):
        return self._instances.get(self._required) if self._required is not None else None

    def __getitem__(self, capability):
        return self._instances[capability]

    def __iter__(self):
        return iter(self._instances)

    def __len__(self):
        return len(self._instances)

    def __repr__(self):
        return "sender-view(source=%r)" % (self._source,)


def resolve(requirement, sender, adapt, /):
    """
    Match sender against requirement and return the SenderView.

    adapt(sender, capability) is consulted only for capabilities the sender is
    not an instance of.
    """
    requirement = SenderRequirement.of(requirement)
    instances = {}
    for capability, optional in requirement.slots:
        if isinstance(sender, capability):
            instance = sender
        else:
            instance = adapt(sender, capability)
        if instance is None and not optional:
            raise IncompatibleSenderError(
                f"{getattr(sender, 'name', sender)!r} cannot run this command as {capability.__qualname__}",
                code=FaultCode.INCOMPATIBLE_SENDER,
                title="incompatible sender",
                capability=capability,
            )
        instances[capability] = instance
    return SenderView(sender, instances, requirement.required)


__all__ = (
    "CommandSender",
    "ConsoleSender",
    "Adapters",
    "SenderRequirement",
    "SenderView",
    "resolve",
)
