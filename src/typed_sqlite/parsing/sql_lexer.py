"""Lexer for locating parameter placeholders in SQL text."""

from __future__ import annotations

from dataclasses import dataclass

import ply.lex as lex

# SQLITE_MAX_VARIABLE_NUMBER default
MAX_PARAMETER_INDEX = 32766


class SQLLexer:
    """Lexer splitting SQL into placeholders and opaque text.

    Only what matters for parameter handling is recognized: string
    literals, quoted identifiers and comments (so placeholders inside them
    are left alone) and the four placeholder forms. Every other character
    comes back as TEXT, so concatenating token values reproduces the input.
    """

    tokens = [
        "STRING",
        "QUOTED_IDENTIFIER",
        "LINE_COMMENT",
        "BLOCK_COMMENT",
        "NUMBERED_PARAMETER",
        "PARAMETER",
        "NAMED_PARAMETER",
        "TEXT",
    ]

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_STRING(self, t: lex.LexToken) -> lex.LexToken:
        r"'(?:[^']|'')*'"
        return t

    def t_QUOTED_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r'"(?:[^"]|"")*"|`(?:[^`]|``)*`|\[[^\]]*\]'
        return t

    def t_LINE_COMMENT(self, t: lex.LexToken) -> lex.LexToken:
        r"--[^\n]*"
        return t

    def t_BLOCK_COMMENT(self, t: lex.LexToken) -> lex.LexToken:
        r"/\*[\s\S]*?(?:\*/|$)"
        return t

    def t_NUMBERED_PARAMETER(self, t: lex.LexToken) -> lex.LexToken:
        r"\?[0-9]+"
        return t

    def t_PARAMETER(self, t: lex.LexToken) -> lex.LexToken:
        r"\?"
        return t

    def t_NAMED_PARAMETER(self, t: lex.LexToken) -> lex.LexToken:
        r"[:@][0-9A-Za-z_$\x80-\U0010ffff]+|\$(?:[0-9A-Za-z_$\x80-\U0010ffff]|::)+(?:\([^)\s]*\))?"
        # Any identifier character may start a name, so :1 is named, not numbered
        return t

    def t_TEXT(self, t: lex.LexToken) -> lex.LexToken:
        r"""[0-9A-Za-z_\x80-\U0010ffff][0-9A-Za-z_$\x80-\U0010ffff]*|[^'"`\[?:@$/0-9A-Za-z_\x80-\U0010ffff-]+|[\s\S]"""
        t.lexer.lineno += t.value.count("\n")
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Illegal character '{t.value[0]}' at line {t.lineno}")

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)

    def token(self) -> lex.LexToken | None:
        """Return the next token."""
        return self.lexer.token()

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        self.input(data)
        tokens = []
        while True:
            tok = self.token()
            if tok is None:
                break
            tokens.append(tok)
        return tokens


@dataclass
class SQLParameter:
    """A placeholder occurrence and the 1-based slot the store assigns it."""

    index: int
    text: str
    position: int
    name: str | None = None  # includes the prefix character

    @property
    def is_named(self) -> bool:
        return self.name is not None


PARAMETER_TOKENS = ("PARAMETER", "NUMBERED_PARAMETER", "NAMED_PARAMETER")


def number_parameters(tokens: list[lex.LexToken]) -> list[SQLParameter]:
    """Assign slot indexes to placeholder tokens using the store's rules.

    ``?`` takes one past the highest index seen so far, ``?NNN`` takes NNN,
    and a named placeholder takes the next index the first time its name
    appears and reuses it afterwards.
    """
    params: list[SQLParameter] = []
    names: dict[str, int] = {}
    highest = 0
    for tok in tokens:
        if tok.type == "PARAMETER":
            highest += 1
            params.append(SQLParameter(index=highest, text=tok.value, position=tok.lexpos))
        elif tok.type == "NUMBERED_PARAMETER":
            index = int(tok.value[1:])
            if not 1 <= index <= MAX_PARAMETER_INDEX:
                raise ValueError(
                    f"Parameter {tok.value} out of range [1, {MAX_PARAMETER_INDEX}]"
                )
            highest = max(highest, index)
            params.append(SQLParameter(index=index, text=tok.value, position=tok.lexpos))
        elif tok.type == "NAMED_PARAMETER":
            if tok.value not in names:
                highest += 1
                names[tok.value] = highest
            params.append(
                SQLParameter(
                    index=names[tok.value],
                    text=tok.value,
                    position=tok.lexpos,
                    name=tok.value,
                )
            )
    return params
