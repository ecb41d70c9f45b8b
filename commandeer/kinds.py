"""
Parameter types: coercions from raw tokens to typed values.

A value kind is any hashable key, usually a Python type (str, int, an Enum
subclass). Each registered kind maps to a ParameterType holding the parser and,
optionally, a suggestion source used for completion.

Registration is last-wins: registering a kind twice silently replaces the
previous parser. The command registry, by contrast, rejects collisions.

Built-ins
- str, int, float, bool
- any enum.Enum subclass (resolved on first use and cached)
"""
import enum
from collections.abc import Iterable

from .faults import UnsupportedTypeError

_BOOLEANS = {
    "true": True,
    "yes": True,
    "on": True,
    "1": True,
    "false": False,
    "no": False,
    "off": False,
    "0": False,
}


def _parse_bool(string, /):
    try:
        return _BOOLEANS[string.strip().lower()]
    except KeyError:
        raise ValueError("invalid boolean %r" % string) from None


def _enum_type(kind, /):
    members = {member.name.lower(): member for member in kind}

    def parse(string, /):
        try:
            return members[string.strip().lower()]
        except KeyError:
            pass
        for member in kind:
            if str(member.value) == string:
                return member
        raise ValueError("%r is not one of %s" % (string, ", ".join(member.name for member in kind)))

    return ParameterType(kind, parse, lambda: {member.name for member in kind})


class ParameterType:
    """
    A coercion for one value kind.

    - parse(string) returns the typed value or raises ValueError/TypeError.
    - values() returns the current suggestion set (empty when there is no source).
    """

    __slots__ = ("_kind", "_parse", "_values")

    def __init__(self, kind, parse, values=None, /):
        if not callable(parse):
            raise TypeError("parameter type 'parse' must be callable")
        if values is not None and not callable(values):
            raise TypeError("parameter type 'values' must be callable")
        self._kind = kind
        self._parse = parse
        self._values = values

    @property
    def kind(self):
        return self._kind

    @property
    def suggestive(self):
        """Whether this type has its own suggestion source."""
        return self._values is not None

    def parse(self, string, /):
        return self._parse(string)

    def values(self):
        if self._values is None:
            return set()
        return set(self._values())

    def __repr__(self):
        return "parameter-type(kind=%s)" % getattr(self._kind, "__qualname__", repr(self._kind))


class ParameterTypes:
    """
    Registry of parameter types keyed by value kind.

    Usage
        types = ParameterTypes()
        types.register(Path, Path)
        types.get(int).parse("3")  # -> 3
    """

    def __init__(self, *, builtins=True):
        self._types = {}
        if builtins:
            self.register(str, str)
            self.register(int, int)
            self.register(float, float)
            self.register(bool, _parse_bool, lambda: {"true", "false"})

    def register(self, kind, parse, values=None, /):
        """
        Register (or silently replace) the parser for a kind.

        values, when given, is a zero-argument callable returning an iterable
        of suggestion strings; it is evaluated lazily on every call.
        """
        if isinstance(values, Iterable) and not callable(values):
            values = (lambda snapshot: lambda: snapshot)(frozenset(values))
        self._types[kind] = parameter = ParameterType(kind, parse, values)
        return parameter

    def get(self, kind, /):
        """
        Return the parameter type registered for kind.

        Enum subclasses are built on first use. Raises UnsupportedTypeError for
        anything else that was never registered.
        """
        try:
            return self._types[kind]
        except KeyError:
            pass
        except TypeError:
            raise UnsupportedTypeError(kind) from None
        if isinstance(kind, type) and issubclass(kind, enum.Enum):
            self._types[kind] = parameter = _enum_type(kind)
            return parameter
        raise UnsupportedTypeError(kind)

    def __contains__(self, kind):
        try:
            self.get(kind)
        except UnsupportedTypeError:
            return False
        return True

    def __iter__(self):
        return iter(tuple(self._types))

    def __len__(self):
        return len(self._types)


types = ParameterTypes()
"""Process-wide default registry, used when a manager is not given its own."""


__all__ = (
    "ParameterType",
    "ParameterTypes",
    "types",
)
