r"""
Commandeer argument binding: raw tokens -> typed values per parameter.

Token classes
- "--id value", "--id=value": named occurrence of the parameter with that id.
- "--id": bare named occurrence, only for bool kinds (binds "true").
- "-f value", "-fvalue", "-abc": flag occurrences. In a cluster, bool flags take
  no value; the first non-bool flag takes the rest of the cluster, or the next
  token when the cluster ends with it.
- "--": every following token is positional.
- anything else is positional, including "", "-" and negative numbers: only
  tokens matching r"--?[^\W\d_]" are treated as names or flags.

Binding (bind)
1. parameters claimed by name or flag are set aside;
2. positional tokens fill the remaining parameters in declared order; a LIST or
   SET parameter takes every further positional token;
3. raw values are coerced through the type registry;
4. unsatisfied parameters fall back to their default (collection defaults are
   tokenized first), to None for the null-marker, or fail.

Surplus positional tokens are allowed; BoundArguments.tokens always holds the
complete positional sequence.

verify() runs the registry lookups and default coercions ahead of time, so a
manager can reject a badly declared command when it is registered.

Faults
- InvalidParameterError: unknown name or flag.
- MissingArgumentError: no value for a non-bool option, or a required parameter
  left unsatisfied.
- DuplicatedArgumentError: a scalar parameter supplied more than once.
- InvalidArgumentError: a value the parameter type rejected.
"""
import re
from collections.abc import Mapping
from typing import NamedTuple

from .faults import *
from .parameters import Cardinality
from .tokens import tokenize
from .utils import *

_OPTION = re.compile(r"--?[^\W\d_]")


class Split(NamedTuple):
    """
    Tokens classified against a parameter set.

    - positional: positional tokens, in order.
    - claimed: parameter -> list of (raw value, None) from named/flag occurrences.
    - named: ids given as "--id".
    - flags: flag characters used.
    """
    positional: list
    claimed: dict
    named: set
    flags: set


def _claim(split, parameter, value, token):
    if parameter in split.claimed and not parameter.cardinality.collection:
        raise DuplicatedArgumentError(
            f"{parameter.id!r} was given more than once",
            code=FaultCode.DUPLICATED_ARGUMENT,
            title="duplicated argument",
            parameter=parameter.id,
            token=token,
            hint="give each single-valued parameter only once",
        )
    split.claimed.setdefault(parameter, []).append((value, None))


def _missing_value(parameter, token):
    return MissingArgumentError(
        f"{token!r} expects a value",
        code=FaultCode.MISSING_ARGUMENT,
        title="missing argument",
        parameter=parameter.id,
        token=token,
        hint=f"write {token} <{parameter.id}>",
    )


def _unknown(token):
    return InvalidParameterError(
        f"unknown parameter {token!r}",
        code=FaultCode.INVALID_PARAMETER,
        title="invalid parameter",
        token=token,
    )


def split(parameters, tokens, /):
    """
    Classify tokens into positional tokens and named/flag occurrences.
    """
    tokens = list(tokens)
    result = Split([], {}, set(), set())
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1

        if token == "--":
            result.positional.extend(tokens[index:])
            break

        if not _OPTION.match(token):
            result.positional.append(token)
            continue

        if token.startswith("--"):
            name, separator, value = token[2:].partition("=")
            if (parameter := parameters.get(name)) is None:
                raise _unknown(token)
            if not separator:
                if parameter.kind is bool:
                    value = "true"
                elif index < len(tokens):
                    value = tokens[index]
                    index += 1
                else:
                    raise _missing_value(parameter, token)
            result.named.add(parameter.id)
            _claim(result, parameter, value, token)
            continue

        cluster = token[1:]
        for position, flag in enumerate(cluster):
            if (parameter := parameters.by_flag(flag)) is None:
                raise _unknown("-" + flag if len(cluster) > 1 else token)
            result.flags.add(flag)
            if parameter.kind is bool:
                _claim(result, parameter, "true", token)
                continue
            if rest := cluster[position + 1:]:
                value = rest.removeprefix("=")
            elif index < len(tokens):
                value = tokens[index]
                index += 1
            else:
                raise _missing_value(parameter, "-" + flag)
            _claim(result, parameter, value, token)
            break

    return result


def _coerce(parameter, parse, raw, position):
    try:
        return parse(raw)
    except (ValueError, TypeError):
        where = f" at {ordinal(position)} position" if position is not None else ""
        raise InvalidArgumentError(
            f"invalid value {raw!r} for {parameter.id!r}{where}",
            code=FaultCode.INVALID_ARGUMENT,
            title="invalid argument",
            parameter=parameter.id,
            value=raw,
            index=position,
            hint="expected %s" % getattr(parameter.kind, "__name__", parameter.kind),
        ) from None


def _collect(parameter, values):
    match parameter.cardinality:
        case Cardinality.LIST:
            return list(values)
        case Cardinality.SET:
            return set(values)
    value, = values
    return value


def bind(parameters, tokens, /, types=Unset):
    """
    Bind tokens to parameters and return BoundArguments.

    types is the ParameterTypes registry used for coercion (the process-wide
    one by default).
    """
    if types is Unset:
        from .kinds import types

    result = split(parameters, tokens)
    raw = dict(result.claimed)

    # positional tokens are numbered from 1 for messages
    index = 0
    positional = result.positional
    for parameter in parameters:
        if parameter in raw:
            continue
        if index >= len(positional):
            break
        if parameter.cardinality.collection:
            raw[parameter] = [(token, index + offset + 1) for offset, token in enumerate(positional[index:])]
            index = len(positional)
        else:
            raw[parameter] = [(positional[index], index + 1)]
            index += 1

    values = {}
    for parameter in parameters:
        parse = types.get(parameter.kind).parse
        if parameter in raw:
            values[parameter] = _collect(parameter, [
                _coerce(parameter, parse, token, position) for token, position in raw[parameter]
            ])
        elif parameter.default is None:
            raise MissingArgumentError(
                f"missing value for {parameter.id!r}",
                code=FaultCode.MISSING_ARGUMENT,
                title="missing argument",
                parameter=parameter.id,
                hint=f"give <{parameter.id}> or --{parameter.id} <value>",
            )
        elif parameter.default.value is None:
            values[parameter] = None
        elif parameter.cardinality.collection:
            values[parameter] = _collect(parameter, [
                _coerce(parameter, parse, token, None) for token in tokenize(parameter.default.value) if token
            ])
        else:
            values[parameter] = _coerce(parameter, parse, parameter.default.value, None)

    return BoundArguments(values, positional)


def verify(parameters, /, types=Unset):
    """
    Check that parameters can be bound through types, before any input arrives.

    Every kind must be registered (UnsupportedTypeError otherwise) and every
    default value must be accepted by its parser (ValueError otherwise);
    collection defaults are checked token by token.
    """
    if types is Unset:
        from .kinds import types

    for parameter in parameters:
        parse = types.get(parameter.kind).parse
        if parameter.default is None or (raw := parameter.default.value) is None:
            continue
        for token in [token for token in tokenize(raw) if token] if parameter.cardinality.collection else [raw]:
            try:
                parse(token)
            except (ValueError, TypeError):
                raise ValueError(
                    "default %r of %r is not a valid %s"
                    % (token, parameter.id, getattr(parameter.kind, "__name__", parameter.kind))
                ) from None


class BoundArguments(Mapping):
    """
    Read-only mapping of parameter -> bound value.

    Keys are Parameter objects; a parameter id is accepted as well:
        arguments["count"] is arguments[parameters.get("count")]
    tokens holds every positional token in input order, bound or not.
    """

    __slots__ = ("_values", "_ids", "_tokens")

    def __init__(self, values=None, tokens=(), /):
        self._values = dict(values or {})
        self._ids = {parameter.id: parameter for parameter in self._values}
        self._tokens = tuple(tokens)

    @property
    def tokens(self):
        return self._tokens

    def __getitem__(self, key):
        if isinstance(key, str):
            try:
                key = self._ids[key]
            except KeyError:
                raise KeyError(key) from None
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return "bound-arguments(%s)" % ", ".join(
            "%s=%r" % (parameter.id, value) for parameter, value in self._values.items()
        )


__all__ = (
    "Split",
    "BoundArguments",
    "split",
    "bind",
    "verify",
)
