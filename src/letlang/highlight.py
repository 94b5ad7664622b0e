"""Pygments lexer for letlang."""

from pygments.lexer import RegexLexer, bygroups, words
from pygments.token import (
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    Text,
)


class LetLangLexer(RegexLexer):
    """Pygments lexer for letlang."""

    name = "letlang"
    aliases = ["letlang"]
    filenames = ["*.let"]
    mimetypes = ["text/x-letlang"]

    tokens = {
        "root": [
            # Whitespace
            (r"\s+", Text),
            # Numbers
            (r"[0-9]+", Number.Integer),
            # Keywords
            (words(("let", "in"), prefix=r"\b", suffix=r"\b"), Keyword),
            # Binding names (word followed by =)
            (r"([^\W\d]\w*)(\s*)(=)", bygroups(Name.Variable, Text, Operator)),
            # Lambda arguments (word followed by colon)
            (r"([^\W\d]\w*)(\s*)(:)", bygroups(Name.Function, Text, Punctuation)),
            # Identifiers
            (r"[^\W\d]\w*", Name),
            # Operators
            (r"[+\-*/=]", Operator),
            # Punctuation
            (r"[();:]", Punctuation),
            (r".", Error),
        ],
    }
