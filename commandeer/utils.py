"""
Commandeer utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the parameter model, the routing trie and the
  command layer so that semantics (sentinels, naming, read-only exposure) stay
  consistent across modules.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None (None is the
    null-marker of a nullable parameter and must stay expressible).
- coalesce(value, default=None)
  • Replace Unset with a concrete default, preserving None/0/""/[].
- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated handlers.
- mirror("attr")
  • Read-only property over a private backing field, returning fresh copies of
    containers so callers cannot mutate descriptor state.
- kebab(name)
  • Python identifiers and camelCase names to kebab-case parameter ids.
- ordinal(number)
  • Position-first wording for messages (“second position”).
- mglob(pattern)
  • Module globbing (“pkg.**.commands”) used by CommandManager.include().

Stability and contract
- Names not in __all__ are internal and may change without notice.
"""
import builtins
import functools
import importlib
import pkgutil
import re
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Falsey values like None, 0, "" or [] are preserved as-is; only Unset is
    replaced.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name) -> decorator
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy container values.

    - list: new list.
    - tuple: new tuple (paths keep their shape).
    - dict: new dict with processed values.
    - set: new set; frozenset is returned as-is.
    - Anything else (including immutable sequences like ParameterSet): as-is.
    """
    if isinstance(object, tuple):
        return tuple(map(_immortalize, object))
    elif isinstance(object, list):
        return list(map(_immortalize, object))
    elif isinstance(object, dict):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, set):
        return set(map(_immortalize, object))
    else:
        return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the private attribute "_{name}".

    Containers are copied on every read (see _immortalize) so the public API
    never hands out the backing object.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def kebab(name, /):
    """
    Convert a Python identifier or camelCase name into a kebab-case id.

    Examples
    - kebab("max_count") -> "max-count"
    - kebab("maxCount")  -> "max-count"
    - kebab("_private")  -> "private"
    """
    if not isinstance(name, str):
        raise TypeError("kebab() argument must be a string")
    name = re.sub(r"(?<=[^\W_])(?=[A-Z])", "-", name.strip("_"))
    return re.sub(r"[_\s]+", "-", name).lower()


@functools.cache
def ordinal(number, /):
    """
    Return a human-friendly ordinal label for a 1-based position.

    1..10 are rendered as words, others use numeric suffixes (11th, 22nd, ...).
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    # 11th, 12th, 13th (and 111th, 112th, ...)
    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


@functools.cache
def _resolve_segment(segment):
    """
    translate a single pattern segment into a regex snippet (dots are not matched).
    supported in-segment metacharacters:
      *       → zero or more non-dot chars
      ?       → exactly one non-dot char
      [...]   → character class (one non-dot char)
      [!...]  → negated character class
      \\x      → escape x literally
    """
    length = len(segment)
    index = 0
    parts = []
    while index < length:
        char = segment[index]
        next = index + 1
        if char == '\\' and next < length:
            parts.append(re.escape(segment[next]))
            index += 2
            continue
        if char == '*':
            parts.append(r'[^.]*')
        elif char == '?':
            parts.append(r'[^.]')
        elif char == '[':
            start = index + 1
            negated = ''
            if start < length and segment[start] in ('!', '^'):
                negated = '^'
                start += 1

            pivot = start
            while pivot < length and segment[pivot] != ']':
                if segment[pivot] == '\\' and pivot + 1 < length:
                    pivot += 2
                else:
                    pivot += 1

            if pivot >= length:
                parts.append(r'\[')
            else:
                parts.append(f'[{negated}{segment[start:pivot]}]')
                index = pivot
        else:
            parts.append(re.escape(char))
        index += 1
    return ''.join(parts)


@functools.cache
def _compile_regex(pattern):
    """
    compile a full module-glob pattern into a regex ('**' spans whole segments).
    """
    parts = []
    for segment in pattern.split('.'):
        if segment == '**':
            parts.append(r'(?:\.[A-Za-z_]\w*)*')
        else:
            parts.append(r'\.' + _resolve_segment(segment))
    if parts and parts[0].startswith(r'\.'):
        body = parts[0][2:] + ''.join(parts[1:])
    else:
        body = ''.join(parts)
    return re.compile(body)


def mglob(source, /):
    """
    expand a dot-separated module glob into fully-qualified module names.

    rules
    - must start with at least one concrete segment (no wildcard-only prefix).
    - matches are case-sensitive and returned in sorted order.
    - without wildcards, returns [source] unchanged.

    examples
    - "plugins.*"          → direct children of plugins
    - "plugins.**.commands" → any commands module under plugins
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    if re.fullmatch(r"(?!\d)\w+(\.(?!\d)\w+)*", source):
        return [source]

    prefixes = []
    for segment in source.split('.'):
        if set(segment) & set('*?[]!\\') or not re.fullmatch(r"(?!\d)\w+", segment):
            break
        prefixes.append(segment)

    if not prefixes:
        raise ValueError("mglob() pattern must start with a concrete package segment")

    try:
        package = importlib.import_module(prefix := ".".join(prefixes))
    except ImportError:
        return []

    matches = set()

    if (pattern := _compile_regex(source)).fullmatch(prefix):
        matches.add(prefix)

    if hasattr(package, "__path__"):
        for metadata in pkgutil.walk_packages(package.__path__, prefix + '.'):
            if pattern.fullmatch(name := metadata.name):
                matches.add(name)

    return sorted(matches)


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid value (a nullable default, an absent
representation) and the API must still tell “no input” apart from None.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "kebab",
    "ordinal",
    "mglob",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)
