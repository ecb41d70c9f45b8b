"""
Commandeer command layer: descriptors and the @command decorator.

What this module provides
- Command: an immutable descriptor binding a handler to
  • a name (possibly several words, e.g. "user add") and alias paths;
  • an ordered ParameterSet;
  • a SenderRequirement;
  • a summary and a description for help output.
- command(...): build a Command from a plain function, reading Param(...) and
  Sender(...) defaults from its signature.

Handler contract
- Command(name, handler) expects handler(senders, arguments), where senders is
  a SenderView and arguments a BoundArguments. The return value is the raw
  response; channels convert it.
- Functions decorated with @command take their declared parameters as keyword
  arguments instead; the generated handler maps them back.

Quick start
    from commandeer import command, Param, Sender, ConsoleSender

    @command("roll", aliases=["dice"])
    def roll(
            count: int = Param(default="1"),
            sides: int = Param(default="6"),
            console=Sender(ConsoleSender, optional=True),
    ):
        \"\"\"Roll some dice.\"\"\"
        return "rolled %dd%d" % (count, sides)

    roll.usage      # 'roll [count=1] [sides=6]'
    roll.paths      # (('roll',), ('dice',))

Inference (decorator only)
- id: kebab-case of the Python parameter name ("max_count" -> "max-count").
- kind and cardinality from annotations: int, list[int], set[str], frozenset[str].
- nullability from "X | None" or Optional[X]; unannotated parameters are str.
- explicit Param fields always take precedence.
"""
import builtins
import functools
import inspect
import operator
import re
import types
import typing

from .parameters import Cardinality, Param, ParameterSet, Sender
from .senders import SenderRequirement
from .utils import *


class CommandType(type):
    """
    Metaclass mirroring __introspectable__ fields as read-only properties and
    providing stable __repr__/__rich_repr__ for diagnostics.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _segments(cls, path, field):
    """
    Split a path given as a string (on whitespace) or a sequence of segments.
    """
    if isinstance(path, str):
        segments = tuple(path.split())
    else:
        try:
            segments = tuple(path)
        except TypeError:
            raise TypeError(f"{cls.__typename__} {field!r} must be a string or a sequence of strings") from None

    if not segments:
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    for segment in segments:
        if not isinstance(segment, str):
            raise TypeError(f"{cls.__typename__} {field!r} segments must be strings")
        elif not segment or any(char.isspace() or char == '"' for char in segment):
            raise ValueError(f"{cls.__typename__} {field!r} segment {segment!r} is not a valid word")
    return segments


def _process_paths(cls, metadata):
    """
    Normalize 'name' and 'aliases' into 'paths' (name first, duplicates dropped).
    """
    if not isinstance(metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")

    name = _segments(cls, metadata["name"], "name")
    metadata["name"] = " ".join(name)

    aliases = metadata.pop("aliases")
    if isinstance(aliases, str):
        aliases = (aliases,)
    paths = {name: None}
    for alias in aliases:
        paths.setdefault(_segments(cls, alias, "aliases"), None)
    metadata["paths"] = tuple(paths)


def _process_strings(cls, metadata):
    """
    Validate 'summary' and 'descr'; the summary defaults to the first line of
    the description.
    """
    for field in ("summary", "descr"):
        if not isinstance(object := metadata[field], str | Unset | None):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        metadata[field] = coalesce(object) and object.strip() or None

    if metadata["summary"] is None and metadata["descr"]:
        metadata["summary"] = metadata["descr"].splitlines()[0].strip()


def _process_components(cls, metadata):
    """
    Build the parameter set and the sender requirement.
    """
    if not callable(metadata["handler"]):
        raise TypeError(f"{cls.__typename__} 'handler' must be callable")

    if isinstance(parameters := metadata["parameters"], str):
        raise TypeError(f"{cls.__typename__} 'parameters' must be an iterable of parameters")
    if not isinstance(parameters, ParameterSet):
        parameters = ParameterSet.build(parameters)
    metadata["parameters"] = parameters

    metadata["senders"] = SenderRequirement.of(metadata["senders"])


class Command(metaclass=CommandType):
    """
    Executable command descriptor.

    Properties
    - name: the full command name ("user add").
    - paths: every path the command is reachable from; (name,) always first.
    - parameters: ParameterSet.
    - senders: SenderRequirement.
    - summary, descr: help strings (None when absent).
    - usage: "name <required> [optional=representation] [nullable]".

    Commands hash and compare by identity.
    """

    __introspectable__ = (
        "name",
        "paths",
        "parameters",
        "senders",
        "summary",
        "descr",
    )

    __displayable__ = (
        "name",
        "paths",
        "parameters",
        "summary",
    )

    def __init__(
            self,
            name,
            handler,
            /,
            parameters=(),
            senders=None,
            aliases=(),
            summary=Unset,
            descr=Unset,
            *,
            callback=None,
    ):
        metadata = {
            "name": name,
            "handler": handler,
            "parameters": parameters,
            "senders": senders,
            "aliases": aliases,
            "summary": summary,
            "descr": descr,
        }
        _process_paths(type(self), metadata)
        _process_strings(type(self), metadata)
        _process_components(type(self), metadata)

        self._callback = callback
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def usage(self):
        usage = [self._name]
        for parameter in self._parameters:
            if not parameter.optional:
                usage.append(f"<{parameter.id}>")
            elif (representation := parameter.default.representation) is not None:
                usage.append(f"[{parameter.id}={representation}]")
            else:
                usage.append(f"[{parameter.id}]")
        return " ".join(usage)

    def suggestions(self, named=(), flags=(), positional=0, include_flags=False, /, types=Unset):
        """
        Candidates for the next input word given what was already typed.

        See completion.suggest().
        """
        from .completion import suggest
        return suggest(self._parameters, named, flags, positional, include_flags, types=types)

    def execute(self, senders, arguments, /):
        """
        Call the handler with a SenderView and BoundArguments; return its response.
        """
        return self._handler(senders, arguments)

    def __call__(self, *args, **kwargs):
        """
        Call the decorated function directly, bypassing parsing.
        """
        if self._callback is None:
            raise TypeError(f"{type(self).__typename__} {self._name!r} was not built from a function")
        return self._callback(*args, **kwargs)


def _infer(annotation):
    """
    Internal: (kind, cardinality, nullable) from a parameter annotation.
    """
    if annotation is inspect.Parameter.empty:
        return Unset, Unset, Unset

    nullable = Unset
    if isinstance(annotation, types.UnionType) or typing.get_origin(annotation) is typing.Union:
        arguments = [argument for argument in typing.get_args(annotation) if argument is not types.NoneType]
        if len(arguments) != 1:
            raise TypeError(f"unsupported parameter annotation {annotation!r}")
        nullable = len(arguments) != len(typing.get_args(annotation))
        annotation, = arguments

    origin = typing.get_origin(annotation) or annotation
    if origin in (list, tuple):
        cardinality = Cardinality.LIST
    elif origin in (set, frozenset):
        cardinality = Cardinality.SET
    else:
        return annotation, Cardinality.SCALAR, nullable

    match typing.get_args(annotation):
        case ():
            return str, cardinality, nullable
        case (kind,) | (kind, builtins.Ellipsis):
            return kind, cardinality, nullable
    raise TypeError(f"unsupported parameter annotation {annotation!r}")


def _process_source(callback):
    """
    Internal: read Param/Sender defaults from the callback signature.

    Returns (declarations, slots, names) where names maps every Python
    parameter name to ("param", id, kind) or ("sender", capability, kind),
    kind being the inspect parameter kind.
    """
    try:
        signature = inspect.signature(callback, eval_str=True)
    except (TypeError, ValueError, NameError):
        raise TypeError("@command() must be applied to an inspectable callable") from None

    declarations = []
    slots = []
    names = {}
    for parameter in signature.parameters.values():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise TypeError(f"@command() callback cannot take *{parameter.name}")

        match default := parameter.default:
            case Param():
                kind, cardinality, nullable = _infer(parameter.annotation)
                declarations.append(declaration := default.fill(
                    id=kebab(parameter.name),
                    kind=kind,
                    cardinality=cardinality,
                    nullable=nullable,
                ))
                names[parameter.name] = "param", declaration.id, parameter.kind
            case Sender():
                slots.append(tuple(default))
                names[parameter.name] = "sender", default.capability, parameter.kind
            case _:
                raise TypeError(
                    f"@command() callback parameter {parameter.name!r} default must be Param(...) or Sender(...)"
                )
    return declarations, slots, names


def _handler(callback, names):
    """
    Internal: adapt callback(**parameters) to the handler(senders, arguments) contract.
    """

    @rename(callback.__name__)
    def handler(senders, arguments):
        args = []
        kwargs = {}
        for name, (source, key, kind) in names.items():
            value = arguments[key] if source == "param" else senders[key]
            if kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(value)
            else:
                kwargs[name] = value
        return callback(*args, **kwargs)

    return handler


def command(source=Unset, /, **options):
    """
    Create a Command from a function, or return a decorator that will.

    Invocation modes
    - @command: the name is the kebab-case function name.
    - @command("name words", aliases=..., summary=..., descr=...)
    - command(function, name="x", ...)

    The description defaults to the function docstring.
    """
    if isinstance(source, str):
        if "name" in options:
            raise TypeError("command() got multiple values for 'name'")
        return command(**options, name=source)

    @rename("command")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@command() must be applied to a callable")
        declarations, slots, names = _process_source(callback)
        return Command(
            options.get("name", Unset) or kebab(callback.__name__),
            _handler(callback, names),
            declarations,
            slots,
            options.get("aliases", ()),
            options.get("summary", Unset),
            options.get("descr", inspect.getdoc(callback) or Unset),
            callback=callback,
        )

    if unknown := set(options) - {"name", "aliases", "summary", "descr"}:
        raise TypeError("command() got unexpected keyword arguments: %s" % ", ".join(sorted(unknown)))

    return wrapper(source) if source is not Unset else wrapper


__all__ = (
    "Command",
    "command",
)

# Remove the internal metaclass from the module namespace. Not part of the public API.
del CommandType
