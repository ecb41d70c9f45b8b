"""
Quote-aware splitting of a raw input line into tokens.

Rules
- every whitespace character outside quotes separates two tokens, so a run of
  n whitespace characters yields n - 1 empty tokens between its neighbours:
    tokenize("c   one")     -> ["c", "", "", "one"]
    tokenize("c ")          -> ["c", ""]
- whitespace between two '"' characters belongs to the token; the quotes are
  dropped:
    tokenize('a "b c" d')   -> ["a", "b c", "d"]
- an unbalanced quote is closed at the end of the line:
    tokenize('a "b c')      -> ["a", "b c"]
- the empty line has no tokens.

Unlike shlex.split, separators are never collapsed: channels rely on the empty
tokens to tell "c" apart from "c " when completing or passing raw arguments.
"""

QUOTE = '"'


def tokenize(line, /):
    """
    Split line into tokens (see module docstring for the exact rules).
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")
    if not line:
        return []

    tokens = []
    buffer = []
    quoted = False
    for char in line:
        if char == QUOTE:
            quoted = not quoted
        elif char.isspace() and not quoted:
            tokens.append("".join(buffer))
            buffer.clear()
        else:
            buffer.append(char)
    tokens.append("".join(buffer))
    return tokens


def quote(token, /):
    """
    Return token in a form tokenize() reads back as the same single token.

    Tokens containing whitespace (or nothing at all) are wrapped in quotes.
    Embedded quote characters cannot be represented and are rejected.
    """
    if QUOTE in token:
        raise ValueError("quote() argument cannot contain %r" % QUOTE)
    if not token or any(char.isspace() for char in token):
        return QUOTE + token + QUOTE
    return token


__all__ = (
    "tokenize",
    "quote",
)
