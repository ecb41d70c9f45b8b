"""
Commandeer completion: candidates for the next input word.

Two levels
- suggest(): parameter level. Given what a command invocation already holds
  (ids given by name, flags used, number of positional arguments), return the
  candidates for the next argument.
- complete(): line level. Tokenize a partial input line; while the command path
  is not complete, offer the next path segments, then offer parameter
  suggestions. Results are filtered by the word being typed, sorted and quoted
  so they can be inserted back into the line.
"""
from .tokens import quote, tokenize
from .utils import *


def suggest(parameters, named=(), flags=(), positional=0, include_flags=False, /, types=Unset):
    """
    Candidates for the next argument of a command.

    - Parameters claimed by id (named) or by one of their flags are skipped.
    - The first positional of the rest are taken to be filled already.
    - The next parameter contributes its default representation (when shown)
      and its suggestion source.
    - include_flags adds the "--id" and "-f" aliases of every parameter left.
    """
    named = set(named)
    flags = set(flags)
    unused = [
        parameter for parameter in parameters
        if parameter.id not in named and not parameter.flags & flags
    ][positional:]

    suggestions = set()
    if unused:
        following = unused[0]
        if following.default is not None and following.default.representation is not None:
            suggestions.add(following.default.representation)
        suggestions |= following.suggest(types)

    if include_flags:
        for parameter in unused:
            suggestions |= parameter.aliases()

    return suggestions


def _typed(parameters, tokens):
    """
    Internal: lenient scan of complete argument tokens.

    Returns (named, flags, positional, pending) where pending is the parameter
    whose value is expected next ("--count " or "-c "), or None. Unknown names
    and flags are ignored.
    """
    named = set()
    flags = set()
    positional = 0
    pending = None
    options = True
    for token in tokens:
        if pending is not None:
            pending = None
            continue
        if options and token == "--":
            options = False
        elif options and token.startswith("--") and token[2:3].isalpha():
            name, separator, _ = token[2:].partition("=")
            if (parameter := parameters.get(name)) is not None:
                named.add(parameter.id)
                if not separator and parameter.kind is not bool:
                    pending = parameter
        elif options and token.startswith("-") and token[1:2].isalpha():
            cluster = token[1:]
            for position, flag in enumerate(cluster, start=1):
                if (parameter := parameters.by_flag(flag)) is None:
                    break
                flags.add(flag)
                if parameter.kind is not bool:
                    if position == len(cluster):
                        pending = parameter
                    break
        else:
            positional += 1
    return named, flags, positional, pending


def complete(manager, line, /):
    """
    Complete the last word of line against the commands of manager.

    manager provides resolve(tokens), branches(path) and types. The empty line
    completes to the top-level command words.
    """
    tokens = tokenize(line) or [""]
    words, current = tokens[:-1], tokens[-1]

    candidates = set(manager.branches(words))

    if (match := manager.resolve(words)) is not None:
        length, command = match
        parameters = command.parameters
        named, flags, positional, pending = _typed(parameters, words[length:])
        if pending is not None:
            candidates |= pending.suggest(manager.types)
        else:
            candidates |= suggest(
                parameters, named, flags, positional, current.startswith("-"), types=manager.types
            )

    return [
        quote(candidate) for candidate in sorted(candidates)
        if candidate.startswith(current) and '"' not in candidate
    ]


__all__ = (
    "suggest",
    "complete",
)
