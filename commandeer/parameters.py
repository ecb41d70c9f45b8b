r"""
Commandeer parameter model.

Overview
- Cardinality: SCALAR (one value), LIST (ordered values), SET (unique values).
- DefaultValue: raw default string (or None, the null-marker) plus an independent
  display representation used by usage strings and completion.
- Parameter: one typed, named slot of a command (id, display name, value kind,
  cardinality, default, single-character flags, suggestion source, description,
  nullability). Immutable after construction.
- ParameterSet: ordered, immutable collection of parameters with unique ids and
  unique flags. Order drives positional assignment and usage rendering.
- Param: an unmaterialized parameter declaration. Used as a function default by
  the @command decorator, or passed to ParameterSet.build() directly; flags are
  allocated there when the declaration does not name any.

Metadata (sanitized on construction)
- id: kebab-case, matches r"[^\W\d_][^\W_]*(-[^\W_]+)*".
- name: display name, defaults to the id.
- kind: hashable value kind resolved through a ParameterTypes registry at bind time.
- default: Unset | None | str | DefaultValue.
  • None (or DefaultValue(None)) is only allowed for nullable parameters.
  • nullable parameters without a default get DefaultValue(None, None).
- flags: iterable of single characters (no whitespace, no '-'); duplicates rejected.
- suggestions: Unset | callable returning an iterable of strings.
- descr: Unset | non-empty string.

Flag allocation
- generate_flags(id, unavailable): first letter in lowercase, or its uppercase when
  the lowercase is taken, or nothing when both are.
- ParameterSet.build() reserves explicitly declared flags first, then allocates in
  declaration order; which parameter wins a letter depends on that order.

Quick example:
    >>> parameters = ParameterSet.build([
    ...     Param("name"),
    ...     Param("count", int, default="1"),
    ...     Param("colour", default="red"),
    ... ])
    >>> [sorted(p.flags) for p in parameters]
    [['n'], ['c'], ['C']]
"""
import enum
import functools
import operator
import re
from collections.abc import Iterable, Sequence

from .utils import *


class Cardinality(enum.Enum):
    """How many values a parameter binds."""
    SCALAR = "scalar"
    LIST = "list"
    SET = "set"

    @property
    def collection(self):
        return self is not Cardinality.SCALAR


class DefaultValue:
    """
    Default of an optional parameter.

    - value: raw string coerced like user input, or None (the null-marker).
    - representation: what usage strings and completion display; defaults to
      value, may be set independently (None displays nothing).
    """

    __slots__ = ("_value", "_representation")

    def __init__(self, value=None, representation=Unset, /):
        if not isinstance(value, str | None):
            raise TypeError("default value must be a string or None")
        if not isinstance(representation := coalesce(representation, value), str | None):
            raise TypeError("default representation must be a string or None")
        self._value = value
        self._representation = representation

    @property
    def value(self):
        return self._value

    @property
    def representation(self):
        return self._representation

    def __eq__(self, other):
        if not isinstance(other, DefaultValue):
            return NotImplemented
        return (self._value, self._representation) == (other._value, other._representation)

    def __hash__(self):
        return hash((DefaultValue, self._value, self._representation))

    def __repr__(self):
        return "default-value(value=%r, representation=%r)" % (self._value, self._representation)


class ParameterMeta(type):
    """
    Metaclass exposing declared fields as read-only properties.

    - Every name in __introspectable__ becomes a property mirroring "_{name}".
    - __typename__ is the hyphenated lowercase class name, used in messages.
    - __repr__/__rich_repr__ list the __displayable__ (or __introspectable__) fields.
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


def _sanitize_identity(cls, metadata, /):
    """
    Internal: validate 'id', 'name' and 'descr'.

    - id must be a kebab-case string; surrounding whitespace is trimmed.
    - name defaults to the id; must be non-empty when provided.
    - descr becomes None when Unset; must be non-empty when provided.
    """
    if not isinstance(id := metadata["id"], str):
        raise TypeError(f"{cls.__typename__} 'id' must be a string")
    elif not re.fullmatch(r"[^\W\d_][^\W_]*(-[^\W_]+)*", id := id.strip()):
        raise ValueError(f"{cls.__typename__} 'id' must be kebab-case (got {id!r})")
    metadata["id"] = id

    for field in ("name", "descr"):
        if not isinstance(object := metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {field!r} must be a string")
        elif isinstance(object, str) and not (object := object.strip()):
            raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
        metadata[field] = object

    metadata["name"] = coalesce(metadata["name"], id)
    metadata["descr"] = coalesce(metadata["descr"])


def _sanitize_value(cls, metadata, /):
    """
    Internal: validate 'kind', 'cardinality', 'default' and 'suggestions'.

    Default normalization
    - Unset: no default, unless nullable (then DefaultValue(None, None)).
    - None: DefaultValue(None, None).
    - str: DefaultValue(value) (representation mirrors the value).
    - DefaultValue: kept as-is.
    A None-valued default on a non-nullable parameter is rejected.
    """
    try:
        hash(metadata["kind"])
    except TypeError:
        raise TypeError(f"{cls.__typename__} 'kind' must be hashable") from None

    if not isinstance(cardinality := metadata["cardinality"], Cardinality):
        try:
            cardinality = Cardinality(cardinality)
        except ValueError:
            raise ValueError(f"{cls.__typename__} 'cardinality' must be one of scalar, list or set") from None
    metadata["cardinality"] = cardinality

    match default := metadata["default"]:
        case UnsetType():
            default = DefaultValue(None, None) if metadata["nullable"] else None
        case None:
            default = DefaultValue(None, None)
        case str():
            default = DefaultValue(default)
        case DefaultValue():
            pass
        case _:
            raise TypeError(f"{cls.__typename__} 'default' must be a string, None or a default-value")

    if default is not None and default.value is None and not metadata["nullable"]:
        raise ValueError(f"{cls.__typename__} {metadata['id']!r} has a null default but is not nullable")
    metadata["default"] = default

    if (suggestions := metadata["suggestions"]) is not Unset and not callable(suggestions):
        raise TypeError(f"{cls.__typename__} 'suggestions' must be callable")


def _sanitize_flags(cls, metadata, /):
    """
    Internal: validate 'flags' into a frozenset of single characters.
    """
    if isinstance(flags := metadata["flags"], str) or not isinstance(flags, Iterable):
        raise TypeError(f"{cls.__typename__} 'flags' must be an iterable of characters")

    sanitized = set()
    for flag in flags:
        if not isinstance(flag, str) or len(flag) != 1:
            raise TypeError(f"{cls.__typename__} flags must be single characters")
        elif flag.isspace() or flag in "-=\"":
            raise ValueError(f"{cls.__typename__} flag {flag!r} is not allowed")
        elif flag in sanitized:
            raise ValueError(f"{cls.__typename__} flags cannot contain duplicates")
        sanitized.add(flag)
    metadata["flags"] = frozenset(sanitized)


class Parameter(metaclass=ParameterMeta):
    """
    One typed, named slot of a command.

    Properties
    - The names in __introspectable__ are exposed as read-only attributes.
    - optional: True when the parameter has a default (including the null-marker).

    Identity
    - Parameters hash and compare by identity; they key BoundArguments.
    """

    __introspectable__ = (
        "id",
        "name",
        "kind",
        "cardinality",
        "default",
        "flags",
        "descr",
        "nullable",
    )

    __displayable__ = (
        "id",
        "kind",
        "cardinality",
        "default",
        "flags",
    )

    def __init__(
            self,
            id,
            /,
            kind=str,
            cardinality=Cardinality.SCALAR,
            default=Unset,
            flags=(),
            suggestions=Unset,
            *,
            name=Unset,
            descr=Unset,
            nullable=False,
    ):
        metadata = {
            "id": id,
            "name": name,
            "kind": kind,
            "cardinality": cardinality,
            "default": default,
            "flags": flags,
            "suggestions": suggestions,
            "descr": descr,
            "nullable": bool(nullable),
        }
        _sanitize_identity(type(self), metadata)
        _sanitize_value(type(self), metadata)
        _sanitize_flags(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    @property
    def optional(self):
        return self._default is not None

    def aliases(self):
        """The canonical '--id' token plus one '-f' token per flag."""
        return {"--" + self._id} | {"-" + flag for flag in self._flags}

    def suggest(self, types=Unset):
        """
        Evaluate the suggestion source.

        Falls back to the suggestion source of the parameter's kind in the given
        registry (the process-wide one by default) when none was declared.
        """
        if self._suggestions is not Unset:
            return set(self._suggestions())
        if types is Unset:
            from .kinds import types
        if self._kind in types:
            return types.get(self._kind).values()
        return set()

    def __setattr__(self, name, value):
        if hasattr(self, "_nullable"):
            raise AttributeError(f"{type(self).__typename__} is immutable")
        super().__setattr__(name, value)


def generate_flags(id, unavailable=frozenset(), /):
    """
    Allocate flags for id without clashing with unavailable.

    The first letter is tried in lowercase, then in uppercase; when both are
    taken no flag is allocated.
    """
    if not id:
        raise ValueError("generate_flags() id cannot be empty")
    lower = id[0].lower()
    upper = lower.upper()
    if lower not in unavailable:
        return frozenset(lower)
    if upper not in unavailable:
        return frozenset(upper)
    return frozenset()


class ParameterSet(Sequence):
    """
    Ordered, immutable parameters of one command.

    Invariants
    - ids are unique;
    - flags are unique across all parameters.
    Violations raise ValueError at construction.
    """

    __slots__ = ("_parameters", "_ids", "_flags")

    def __init__(self, parameters=(), /):
        self._parameters = tuple(parameters)
        self._ids = {}
        self._flags = {}
        for parameter in self._parameters:
            if not isinstance(parameter, Parameter):
                raise TypeError("parameter-set items must be parameters")
            if self._ids.setdefault(parameter.id, parameter) is not parameter:
                raise ValueError(f"a parameter with the id {parameter.id!r} already exists")
            for flag in parameter.flags:
                if self._flags.setdefault(flag, parameter) is not parameter:
                    raise ValueError(f"flag {flag!r} of {parameter.id!r} is already used by {self._flags[flag].id!r}")

    @classmethod
    def build(cls, items, /):
        """
        Materialize Param declarations (and pass through Parameters) in order.

        Explicit flags are reserved first; declarations without flags then get
        generated ones in declaration order.
        """
        items = tuple(items)
        used = set()
        for item in items:
            if isinstance(item, Parameter):
                used |= item.flags
            elif isinstance(item, Param) and item.flags is not Unset:
                used |= set(item.flags)

        parameters = []
        for item in items:
            if isinstance(item, Param):
                if item.flags is Unset:
                    flags = generate_flags(item.require_id(), used)
                    used |= flags
                    item = item.fill(flags=flags)
                item = item.materialize()
            elif not isinstance(item, Parameter):
                raise TypeError("parameter-set items must be parameters or param declarations")
            parameters.append(item)
        return cls(parameters)

    def get(self, id, default=None, /):
        return self._ids.get(id, default)

    def by_flag(self, flag, default=None, /):
        return self._flags.get(flag, default)

    @property
    def ids(self):
        return tuple(self._ids)

    def __getitem__(self, index):
        return self._parameters[index]

    def __len__(self):
        return len(self._parameters)

    def __repr__(self):
        return "parameter-set(%s)" % ", ".join(parameter.id for parameter in self._parameters)


class Param:
    """
    Declaration of a parameter, materialized later.

    Every field may be left Unset; the @command decorator fills id, kind,
    cardinality and nullability from the function signature, and
    ParameterSet.build() allocates flags.

    Example
        @command("roll")
        def roll(dice: int = Param(default="1"), sides: int = Param(default="6")): ...
    """

    __slots__ = ("id", "kind", "cardinality", "default", "flags", "suggestions", "name", "descr", "nullable")

    def __init__(
            self,
            id=Unset,
            kind=Unset,
            cardinality=Unset,
            default=Unset,
            flags=Unset,
            suggestions=Unset,
            *,
            name=Unset,
            descr=Unset,
            nullable=Unset,
    ):
        self.id = id
        self.kind = kind
        self.cardinality = cardinality
        self.default = default
        self.flags = flags
        self.suggestions = suggestions
        self.name = name
        self.descr = descr
        self.nullable = nullable

    def require_id(self):
        if self.id is Unset:
            raise TypeError("param declaration has no id")
        return self.id

    def fill(self, **defaults):
        """
        Return a copy whose Unset fields take the given defaults.
        """
        fields = {name: getattr(self, name) for name in self.__slots__}
        for name, value in defaults.items():
            if name not in fields:
                raise TypeError(f"param declaration has no field {name!r}")
            if fields[name] is Unset:
                fields[name] = value
        return Param(
            fields.pop("id"),
            fields.pop("kind"),
            fields.pop("cardinality"),
            fields.pop("default"),
            fields.pop("flags"),
            fields.pop("suggestions"),
            **fields,
        )

    def materialize(self):
        """
        Build the Parameter; remaining Unset fields take the parameter defaults.
        """
        return Parameter(
            self.require_id(),
            coalesce(self.kind, str),
            coalesce(self.cardinality, Cardinality.SCALAR),
            self.default,
            coalesce(self.flags, ()),
            self.suggestions,
            name=self.name,
            descr=self.descr,
            nullable=coalesce(self.nullable, False),
        )

    def __repr__(self):
        return "param(%s)" % ", ".join(
            "%s=%r" % (name, getattr(self, name)) for name in self.__slots__ if getattr(self, name) is not Unset
        )


class Sender:
    """
    Declaration of a sender slot: the handler wants the sender as capability.

    A required slot makes the command unusable by senders that are neither
    instances of capability nor adaptable to it; an optional slot receives None
    instead.
    """

    __slots__ = ("capability", "optional")

    def __init__(self, capability, /, optional=False):
        if not isinstance(capability, type):
            raise TypeError("sender capability must be a class")
        self.capability = capability
        self.optional = bool(optional)

    def __iter__(self):
        return iter((self.capability, self.optional))

    def __repr__(self):
        return "sender(%s, optional=%r)" % (self.capability.__qualname__, self.optional)


__all__ = (
    "Cardinality",
    "DefaultValue",
    "Parameter",
    "ParameterSet",
    "Param",
    "Sender",
    "generate_flags",
)

# Remove the internal metaclass from the module namespace. Not part of the public API.
del ParameterMeta
