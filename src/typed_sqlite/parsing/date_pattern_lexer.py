"""Lexer for Unicode-style date format patterns (``yyyy-MM-dd HH:mm:ss``)."""

import ply.lex as lex


class DatePatternLexer:
    """Lexer for tokenizing date format patterns.

    Pattern letters are matched longest form first; single-quoted runs are
    literal text with ``''`` standing for one quote; any run of non-letters
    is literal as is.
    """

    tokens = [
        "YEAR",
        "MONTH",
        "DAY",
        "HOUR24",
        "HOUR12",
        "MINUTE",
        "SECOND",
        "FRACTION",
        "AMPM",
        "ZONE",
        "QUOTED",
        "QUOTE",
        "LITERAL",
    ]

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_YEAR(self, t: lex.LexToken) -> lex.LexToken:
        r"yyyy|yy"
        return t

    def t_MONTH(self, t: lex.LexToken) -> lex.LexToken:
        r"MMM|MM|M"
        return t

    def t_DAY(self, t: lex.LexToken) -> lex.LexToken:
        r"dd|d"
        return t

    def t_HOUR24(self, t: lex.LexToken) -> lex.LexToken:
        r"HH|H"
        return t

    def t_HOUR12(self, t: lex.LexToken) -> lex.LexToken:
        r"hh|h"
        return t

    def t_MINUTE(self, t: lex.LexToken) -> lex.LexToken:
        r"mm|m"
        return t

    def t_SECOND(self, t: lex.LexToken) -> lex.LexToken:
        r"ss|s"
        return t

    def t_FRACTION(self, t: lex.LexToken) -> lex.LexToken:
        r"S+"
        return t

    def t_AMPM(self, t: lex.LexToken) -> lex.LexToken:
        r"a"
        return t

    def t_ZONE(self, t: lex.LexToken) -> lex.LexToken:
        r"XXX|Z"
        return t

    def t_QUOTED(self, t: lex.LexToken) -> lex.LexToken:
        r"'(?:[^']|'')+'"
        t.value = t.value[1:-1].replace("''", "'")
        return t

    def t_QUOTE(self, t: lex.LexToken) -> lex.LexToken:
        r"''"
        t.value = "'"
        return t

    def t_LITERAL(self, t: lex.LexToken) -> lex.LexToken:
        r"[^A-Za-z']+"
        return t

    def t_error(self, t: lex.LexToken) -> None:
        raise SyntaxError(f"Unsupported date pattern letter '{t.value[0]}' at position {t.lexpos}")

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
