"""
Commandeer routing: a trie of command paths.

Overview
- A path is a tuple of non-empty segments, e.g. ("user", "add").
- Every node may carry at most one command; nodes in between are branches.
- A command is reachable from each of its paths (its name plus aliases).

Resolution
- resolve(tokens) walks the trie while segments and children exist and returns
  the command at the deepest node reached that carries one, together with the
  number of tokens it consumed:
    paths "a" and "a b c", tokens ["a", "b", "x"] -> (1, <a>)
- the module-level resolve(maps, tokens) routes across several maps: the longest
  match wins, equal lengths go to the earliest map.

Writes
- register() checks every path of the command first and then swaps in a new
  root built by path-copying. Readers always see either the previous or the
  next complete trie. Writers are not synchronized.
"""
from .faults import DuplicateCommandError


class _Node:
    __slots__ = ("command", "children")

    def __init__(self, command=None, children=None):
        self.command = command
        self.children = children if children is not None else {}

    def copy(self):
        return _Node(self.command, dict(self.children))


def _insert(node, path, command):
    node = node.copy() if node is not None else _Node()
    if not path:
        node.command = command
        return node
    head, *tail = path
    node.children[head] = _insert(node.children.get(head), tail, command)
    return node


def _walk(root, path):
    node = root
    for segment in path:
        if (node := node.children.get(segment)) is None:
            return None
    return node


class CommandMap:
    """
    Registry of commands keyed by path.

    - register(command): insert every path of command.paths.
    - lookup(path): exact match or None.
    - resolve(tokens): longest registered prefix as (length, command) or None.
    - branches(path): names of the child segments below path.
    """

    def __init__(self):
        self._root = _Node()
        self._commands = ()

    def register(self, command, /):
        """
        Register command under all of its paths.

        Raises DuplicateCommandError when another command already terminates at
        one of them; nothing is inserted in that case. Registering the same
        command twice is a no-op.
        """
        paths = tuple(map(tuple, command.paths))
        if not paths:
            raise ValueError("a command needs at least one path")

        root = self._root
        for path in paths:
            if not path or not all(isinstance(segment, str) and segment for segment in path):
                raise ValueError("command paths must be non-empty sequences of non-empty strings")
            node = _walk(root, path)
            if node is not None and node.command is not None and node.command is not command:
                raise DuplicateCommandError(path)

        for path in paths:
            root = _insert(root, path, command)

        if command not in self._commands:
            self._root, self._commands = root, self._commands + (command,)

    def lookup(self, path, /):
        node = _walk(self._root, tuple(path))
        return node.command if node is not None else None

    def resolve(self, tokens, /):
        """
        Return (length, command) for the longest registered prefix of tokens.
        """
        node = self._root
        match = None
        for length, token in enumerate(tokens, start=1):
            if (node := node.children.get(token)) is None:
                break
            if node.command is not None:
                match = length, node.command
        return match

    def branches(self, path=(), /):
        node = _walk(self._root, tuple(path))
        return set(node.children) if node is not None else set()

    @property
    def commands(self):
        """Registered commands in registration order."""
        return list(self._commands)

    def __contains__(self, command):
        return command in self._commands

    def __iter__(self):
        return iter(self._commands)

    def __len__(self):
        return len(self._commands)

    def __repr__(self):
        return "command-map(%s)" % ", ".join(command.name for command in self._commands)


def resolve(maps, tokens, /):
    """
    Route tokens across several maps.

    Returns (map, length, command) for the longest match; ties are won by the
    earliest map. Returns None when no map matches.
    """
    tokens = tuple(tokens)
    best = None
    for map in maps:
        if (match := map.resolve(tokens)) is None:
            continue
        if best is None or match[0] > best[1]:
            best = map, *match
    return best


__all__ = (
    "CommandMap",
    "resolve",
)
