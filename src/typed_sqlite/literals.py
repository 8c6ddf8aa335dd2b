"""SQL literal rendering for values inlined into statement text."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

from typed_sqlite.parsing.sql_lexer import SQLLexer, SQLParameter, number_parameters

if TYPE_CHECKING:
    from typed_sqlite.registry import TypeRegistry

NULL_LITERAL = "NULL"


def quote_text(text: str) -> str:
    """Quote ``text`` as a SQL string literal, doubling embedded quotes."""
    return "'" + text.replace("'", "''") + "'"


def render_literal(value: Any, registry: TypeRegistry) -> str:
    """Render a Python value as SQL literal text using its registered type."""
    if value is None:
        return NULL_LITERAL
    return registry.for_value(value).sql_literal(value)


def inline_parameters(
    sql: str,
    parameters: Sequence[Any] | Mapping[str, Any],
    registry: TypeRegistry,
) -> str:
    """Substitute literal values for the placeholders in ``sql``.

    Placeholders inside string literals, quoted identifiers and comments
    are left untouched.

    Args:
        sql: SQL text with ``?``, ``?NNN``, ``:name``, ``@name`` or ``$name``
            placeholders.
        parameters: A sequence for positional placeholders, or a mapping for
            named ones (keys with or without the prefix character).
        registry: Registry used to pick each value's type.

    Returns:
        The SQL text with every placeholder replaced by a literal.

    Raises:
        ValueError: If placeholders and parameters do not line up.
        UnsupportedLiteralError: If a value has no literal form (blobs).
    """
    lexer = SQLLexer()
    lexer.build()
    tokens = lexer.tokenize(sql)
    params = number_parameters(tokens)
    by_position = {p.position: p for p in params}

    named = [p for p in params if p.is_named]
    if named and len(named) != len(params):
        raise ValueError("Cannot inline SQL that mixes positional and named parameters")

    if named:
        if not isinstance(parameters, Mapping):
            raise ValueError("Named parameters require a mapping of values")
        values = {p.index: _named_value(parameters, p) for p in named}
    else:
        if isinstance(parameters, Mapping):
            raise ValueError("Positional parameters require a sequence of values")
        supplied = list(parameters)
        count = max((p.index for p in params), default=0)
        if len(supplied) != count:
            raise ValueError(
                f"SQL has {count} parameters but {len(supplied)} values were supplied"
            )
        values = {index: supplied[index - 1] for index in range(1, count + 1)}

    parts = []
    for tok in tokens:
        param = by_position.get(tok.lexpos)
        if param is None:
            parts.append(tok.value)
        else:
            parts.append(render_literal(values[param.index], registry))
    return "".join(parts)


def _named_value(parameters: Mapping[str, Any], param: SQLParameter) -> Any:
    name = param.name or ""
    if name in parameters:
        return parameters[name]
    if name[1:] in parameters:
        return parameters[name[1:]]
    raise ValueError(f"No value supplied for parameter {name}")
