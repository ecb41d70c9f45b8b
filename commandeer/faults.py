"""
Commandeer faults (command errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing failure
  of the dispatch pipeline, grouped by the stage that raises them.
- CommandException: base type of execution-time faults. It carries a message and
  a read-only bag of structured options (offending parameter id, raw value,
  token, position...) and knows how to render itself through rich.
- Construction-time errors (DuplicateCommandError, UnsupportedTypeError,
  MultipleRequiredSendersError) are plain TypeError/ValueError subclasses: they
  fail registration or descriptor building immediately and are never rendered
  to a command sender.
- trigger(): central entry point to surface a fault (raise, or print in shell mode).
- getdoc(): optional description lookup for a code from the host application.

UX goals
- Position-first messages (“invalid value 'x' at second position”).
- Short titles, one-sentence bodies, a single clear hint.
- Lowercased tone with readable styling (configurable via __styles__ in __main__).

Integration
- The pipeline raises faults; channels decide whether to render them as plain
  text (fault.message) or through rich (trigger(fault, shell=True)).
- Handlers raise CommandException (or a subclass) to report a command-level
  failure; it reaches the caller unchanged.
"""
import copy
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the dispatcher (stable identifiers).

    grouping (by pipeline stage)
    - routing (111xx)
      • NOT_A_COMMAND, DUPLICATE_COMMAND
    - binding (112xx)
      • UNSUPPORTED_TYPE, INVALID_ARGUMENT, MISSING_ARGUMENT, INVALID_PARAMETER,
        DUPLICATED_ARGUMENT
    - senders (113xx)
      • INCOMPATIBLE_SENDER, MULTIPLE_REQUIRED_SENDERS
    - delegated (114xx)
      • DELEGATED_ERROR (raised by a command handler)

    normalize() allows the host to remap codes to custom labels while keeping the
    numeric identifiers stable.
    """
    # --- routing (111xx) ---
    NOT_A_COMMAND               = 11101
    DUPLICATE_COMMAND           = 11102

    # --- binding (112xx) ---
    UNSUPPORTED_TYPE            = 11201
    INVALID_ARGUMENT            = 11202
    MISSING_ARGUMENT            = 11203
    INVALID_PARAMETER           = 11204
    DUPLICATED_ARGUMENT         = 11205

    # --- senders (113xx) ---
    INCOMPATIBLE_SENDER         = 11301
    MULTIPLE_REQUIRED_SENDERS   = 11302

    # --- delegated (114xx) ---
    DELEGATED_ERROR             = 11401

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    Base class of execution-time command faults.

    Options
    - code: FaultCode (defaults to DELEGATED_ERROR for handler-raised faults).
    - title: short title used by the rich renderer.
    - hint: one actionable sentence.
    - any structured detail (parameter, value, token, index, capability, ...).

    Options are stored in a read-only mapping; copy.replace(fault, **options)
    returns a new fault with merged options.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code", FaultCode.DELEGATED_ERROR)

    @property
    def parameter(self):
        """Id of the offending parameter, if any."""
        return self.options.get("parameter")

    @property
    def value(self):
        """Offending raw value, if any."""
        return self.options.get("value")

    @property
    def token(self):
        """Offending raw token, if any."""
        return self.options.get("token")

    def __str__(self):
        return self.message if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        prog = text(getattr(main, "__prog__", self.options.get("prog", "commandeer")), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.code.normalize(), styler("code")),
            " | ",
            text(str(self.options.get("title", type(self).__name__)).title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        renderables = [message]
        if hint := self.options.get("hint"):
            renderables.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renderables), title=header, title_align="left")

        return Group(header, *renderables)

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class NotACommandError(CommandException): ...
class InvalidArgumentError(CommandException): ...
class MissingArgumentError(CommandException): ...
class InvalidParameterError(CommandException): ...
class DuplicatedArgumentError(CommandException): ...
class IncompatibleSenderError(CommandException): ...


class DuplicateCommandError(ValueError):
    """
    Raised when registering a command at a path another command already occupies.
    """

    def __init__(self, path, /):
        self.path = tuple(path)
        self.code = FaultCode.DUPLICATE_COMMAND
        super().__init__("a command is already registered at %r" % " ".join(self.path))


class UnsupportedTypeError(TypeError):
    """
    Raised when a value kind has no registered parameter type.
    """

    def __init__(self, kind, /):
        self.kind = kind
        self.code = FaultCode.UNSUPPORTED_TYPE
        super().__init__(
            "unsupported parameter type %r; custom types can be registered with "
            "ParameterTypes.register()" % getattr(kind, "__qualname__", kind)
        )


class MultipleRequiredSendersError(TypeError):
    """
    Raised when a command declares more than one required sender capability.
    """

    def __init__(self, capabilities, /):
        self.capabilities = tuple(capabilities)
        self.code = FaultCode.MULTIPLE_REQUIRED_SENDERS
        super().__init__(
            "only one sender capability can be required, got %s"
            % ", ".join(getattr(x, "__qualname__", repr(x)) for x in self.capabilities)
        )


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace() before triggering.
    - in shell mode the fault is printed through rich; otherwise it is raised.

    typical options
    - shell, fancy, colorful, prog, and any context the reporter may want to show.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys are
    FaultCode instances and values are short documentation strings. returns None
    when nothing is found.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "CommandException",
    "NotACommandError",
    "InvalidArgumentError",
    "MissingArgumentError",
    "InvalidParameterError",
    "DuplicatedArgumentError",
    "IncompatibleSenderError",
    "DuplicateCommandError",
    "UnsupportedTypeError",
    "MultipleRequiredSendersError",
    "trigger",
    "getdoc",
)
