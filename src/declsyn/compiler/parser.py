"""
Declaration parser for declsyn.

Recursive descent over a ``Cursor`` built from combinators. The routines here
cover the declaration grammar proper:

    variant        := attrs IDENT fields ("=" expr)?
    fields         := "{" field_named,* "}" | "(" field_unnamed,* ")" | <unit>
    field_named    := attrs visibility IDENT ":" type
    field_unnamed  := attrs visibility type
    visibility     := "pub" "(" "crate" ")"
                    | "pub" "(" "self" ")"
                    | "pub" "(" "super" ")"
                    | "pub" "(" "in" path ")"
                    | "pub"
                    | <inherited>
    item_struct    := attrs visibility "struct" IDENT (fields_named | fields_unnamed ";" | ";")
    item_enum      := attrs visibility "enum" IDENT "{" variant,* "}"
    file           := item*

The ``Parser`` class wraps these routines for callers that start from a token
list: it enforces complete input, applies the nesting limit and turns
failures into rich diagnostics.

Example:
    >>> from declsyn.compiler import tokenize, Parser
    >>> variant = Parser(tokenize("Some(T)")).parse_variant()
    >>> variant.ident.name
    'Some'
"""

import logging
import sys
from typing import Any, Callable, Optional, Sequence

from declsyn.compiler.ast_nodes import (
    ASTNode,
    DeclFile,
    Field,
    Fields,
    FieldsNamed,
    FieldsUnit,
    FieldsUnnamed,
    Ident,
    Item,
    ItemEnum,
    ItemStruct,
    OuterAttribute,
    Path,
    Variant,
    VisCrate,
    VisInherited,
    VisPublic,
    VisRestricted,
    Visibility,
)
from declsyn.compiler.combinators import (
    alt,
    braces,
    complete,
    described,
    keyword,
    parens,
    punct,
    punctuated,
    sequence,
    token,
)
from declsyn.compiler.cursor import DEFAULT_MAX_DEPTH, Cursor, TokenStream
from declsyn.compiler.lexer import tokenize
from declsyn.compiler.syntax import expr, ident, mod_style_path, outer_attributes, type_
from declsyn.compiler.tokens import KEYWORDS, Token, TokenType
from declsyn.utils.diagnostics import (
    Diagnostic,
    DiagnosticEmitter,
    ErrorCode,
    SourceSpan,
    create_unclosed_delimiter_diagnostic,
    suggest_similar,
)
from declsyn.utils.errors import ParserError, SourceLocation

logger = logging.getLogger("declsyn")


# -----------------------------------------------------------------------------
# Visibility
# -----------------------------------------------------------------------------


def _vis_crate(cursor: Cursor) -> tuple[VisCrate, Cursor]:
    (pub_token, (delim, crate_token)), cursor = sequence(
        keyword("pub"), parens(keyword("crate"))
    )(cursor)
    return VisCrate(pub_token, delim, crate_token), cursor


def _vis_restricted_to(token_type: TokenType):
    """`pub(self)` / `pub(super)`: restricted without an `in` token."""

    def parse(cursor: Cursor) -> tuple[VisRestricted, Cursor]:
        (pub_token, (delim, target)), cursor = sequence(
            keyword("pub"), parens(token(token_type))
        )(cursor)
        return VisRestricted(pub_token, delim, Path.from_ident(Ident(target))), cursor

    return parse


def _vis_restricted_in(cursor: Cursor) -> tuple[VisRestricted, Cursor]:
    (pub_token, (delim, (in_token, path))), cursor = sequence(
        keyword("pub"), parens(sequence(keyword("in"), mod_style_path))
    )(cursor)
    return VisRestricted(pub_token, delim, path, in_token), cursor


def _vis_public(cursor: Cursor) -> tuple[VisPublic, Cursor]:
    pub_token, cursor = keyword("pub")(cursor)
    return VisPublic(pub_token), cursor


def _vis_inherited(cursor: Cursor) -> tuple[VisInherited, Cursor]:
    return VisInherited(), cursor


# Most specific first: every `pub(...)` form must be tried before bare `pub`
parse_visibility = alt(
    _vis_crate,
    _vis_restricted_to(TokenType.SELF_VALUE),
    _vis_restricted_to(TokenType.SUPER),
    _vis_restricted_in,
    _vis_public,
    _vis_inherited,
    description=Visibility.description(),
)


# -----------------------------------------------------------------------------
# Fields
# -----------------------------------------------------------------------------


def _field_named(cursor: Cursor) -> tuple[Field, Cursor]:
    attrs, cursor = outer_attributes(cursor)
    vis, cursor = parse_visibility(cursor)
    name, cursor = ident(cursor)
    colon_token, cursor = punct(":")(cursor)
    ty, cursor = type_(cursor)
    return Field(ty=ty, ident=name, colon_token=colon_token, vis=vis, attrs=attrs), cursor


def _field_unnamed(cursor: Cursor) -> tuple[Field, Cursor]:
    attrs, cursor = outer_attributes(cursor)
    vis, cursor = parse_visibility(cursor)
    ty, cursor = type_(cursor)
    return Field(ty=ty, vis=vis, attrs=attrs), cursor


parse_field_named = described(_field_named, Field.description())
parse_field_unnamed = described(_field_unnamed, Field.description())


def _fields_named(cursor: Cursor) -> tuple[FieldsNamed, Cursor]:
    (delim, fields), cursor = braces(punctuated(parse_field_named))(cursor)
    return FieldsNamed(delim, fields), cursor


def _fields_unnamed(cursor: Cursor) -> tuple[FieldsUnnamed, Cursor]:
    (delim, fields), cursor = parens(punctuated(parse_field_unnamed))(cursor)
    return FieldsUnnamed(delim, fields), cursor


def _fields_unit(cursor: Cursor) -> tuple[FieldsUnit, Cursor]:
    # A group here belongs to one of the other two forms; leave its error standing
    if cursor.check(TokenType.LBRACE, TokenType.LPAREN):
        raise cursor.expected("`,`")
    return FieldsUnit(), cursor


parse_fields_named = described(_fields_named, FieldsNamed.description())
parse_fields_unnamed = described(_fields_unnamed, FieldsUnnamed.description())
parse_fields = alt(parse_fields_named, parse_fields_unnamed, _fields_unit)


# -----------------------------------------------------------------------------
# Variants
# -----------------------------------------------------------------------------


def _variant(cursor: Cursor) -> tuple[Variant, Cursor]:
    attrs, cursor = outer_attributes(cursor)
    name, cursor = ident(cursor)
    fields, cursor = parse_fields(cursor)

    discriminant = None
    if cursor.check(TokenType.ASSIGN):
        eq_token, cursor = cursor.advance()
        value, cursor = expr(cursor)
        discriminant = (eq_token, value)

    return Variant(ident=name, fields=fields, discriminant=discriminant, attrs=attrs), cursor


parse_variant = described(_variant, Variant.description())


# -----------------------------------------------------------------------------
# Items
# -----------------------------------------------------------------------------


def _item_head(cursor: Cursor) -> tuple[tuple[tuple[OuterAttribute, ...], Visibility], Cursor]:
    attrs, cursor = outer_attributes(cursor)
    vis, cursor = parse_visibility(cursor)
    return (attrs, vis), cursor


def _struct_rest(attrs, vis: Visibility, cursor: Cursor) -> tuple[ItemStruct, Cursor]:
    struct_token, cursor = keyword("struct")(cursor)
    name, cursor = ident(cursor)

    fields: Fields
    semi_token: Optional[Token] = None
    if cursor.check(TokenType.LBRACE):
        fields, cursor = parse_fields_named(cursor)
    elif cursor.check(TokenType.LPAREN):
        fields, cursor = parse_fields_unnamed(cursor)
        semi_token, cursor = punct(";")(cursor)
    elif cursor.check(TokenType.SEMICOLON):
        fields = FieldsUnit()
        semi_token, cursor = cursor.advance()
    else:
        raise cursor.expected("`{`, `(` or `;`")

    item = ItemStruct(
        struct_token=struct_token,
        ident=name,
        fields=fields,
        semi_token=semi_token,
        vis=vis,
        attrs=attrs,
    )
    return item, cursor


def _enum_rest(attrs, vis: Visibility, cursor: Cursor) -> tuple[ItemEnum, Cursor]:
    enum_token, cursor = keyword("enum")(cursor)
    name, cursor = ident(cursor)
    (delim, variants), cursor = braces(punctuated(parse_variant))(cursor)
    item = ItemEnum(
        enum_token=enum_token,
        ident=name,
        brace_token=delim,
        variants=variants,
        vis=vis,
        attrs=attrs,
    )
    return item, cursor


def _item_struct(cursor: Cursor) -> tuple[ItemStruct, Cursor]:
    (attrs, vis), cursor = _item_head(cursor)
    return _struct_rest(attrs, vis, cursor)


def _item_enum(cursor: Cursor) -> tuple[ItemEnum, Cursor]:
    (attrs, vis), cursor = _item_head(cursor)
    return _enum_rest(attrs, vis, cursor)


parse_item_struct = described(_item_struct, ItemStruct.description())
parse_item_enum = described(_item_enum, ItemEnum.description())


def parse_item(cursor: Cursor) -> tuple[Item, Cursor]:
    """Parse a struct or enum declaration."""
    _, head_end = _item_head(cursor)
    if head_end.check(TokenType.STRUCT):
        return parse_item_struct(cursor)
    if head_end.check(TokenType.ENUM):
        return parse_item_enum(cursor)
    raise head_end.expected("`struct` or `enum`").with_description(Item.description())


def parse_file(cursor: Cursor) -> tuple[DeclFile, Cursor]:
    """Parse declarations until the end of input."""
    items = []
    while not cursor.at_end:
        item, cursor = parse_item(cursor)
        items.append(item)
    return DeclFile(tuple(items)), cursor


# Entry points selectable by name (CLI ``--rule``)
RULES: dict[str, Callable[[Cursor], tuple[Any, Cursor]]] = {
    "file": parse_file,
    "item": parse_item,
    "variant": parse_variant,
    "field": parse_field_named,
    "field-unnamed": parse_field_unnamed,
    "visibility": parse_visibility,
}


# -----------------------------------------------------------------------------
# Parser facade
# -----------------------------------------------------------------------------


class Parser:
    """
    Parses a token list into declaration nodes.

    Each ``parse_*`` method requires the rule to consume the whole input.
    When constructed with the source text, failures are also recorded as
    rich diagnostics in ``self.emitter`` before the ``ParserError`` is
    re-raised.

    Usage:
        parser = Parser(tokens, source, "shapes.rs")
        try:
            file = parser.parse_file()
        except ParserError:
            print(parser.emitter.render_all())
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        source: Optional[str] = None,
        filename: Optional[str] = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.tokens = list(tokens)
        self.source = source
        self.filename = filename or "<input>"
        self.max_depth = max_depth
        self.emitter = DiagnosticEmitter(source or "", self.filename)
        self._stream: Optional[TokenStream] = None

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.emitter.diagnostics

    def parse(self, rule: str = "file") -> ASTNode:
        """Parse the input with the rule registered under ``rule``."""
        if rule not in RULES:
            raise ValueError(f"unknown rule {rule!r}; expected one of {', '.join(RULES)}")
        return self._run(RULES[rule], rule)

    def parse_file(self) -> DeclFile:
        return self._run(parse_file, "file")

    def parse_item(self) -> Item:
        return self._run(parse_item, "item")

    def parse_variant(self) -> Variant:
        return self._run(parse_variant, "variant")

    def parse_fields_named(self) -> FieldsNamed:
        return self._run(parse_fields_named, "named fields")

    def parse_fields_unnamed(self) -> FieldsUnnamed:
        return self._run(parse_fields_unnamed, "tuple fields")

    def parse_field_named(self) -> Field:
        return self._run(parse_field_named, "field")

    def parse_field_unnamed(self) -> Field:
        return self._run(parse_field_unnamed, "field")

    def parse_visibility(self) -> Visibility:
        return self._run(parse_visibility, "visibility")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _run(self, rule: Callable[[Cursor], tuple[Any, Cursor]], what: str) -> Any:
        try:
            if self._stream is None:
                self._stream = TokenStream(
                    self.tokens, max_depth=self.max_depth, source=self.source
                )
            try:
                node, _ = complete(rule, what)(self._stream.begin())
            except RecursionError:
                # max_depth was set above what the interpreter stack can hold
                raise self._stream.begin().error(
                    f"nesting limit of {self.max_depth} exceeds the interpreter "
                    f"recursion limit of {sys.getrecursionlimit()}",
                    code="E0209",
                ) from None
        except ParserError as err:
            logger.debug("parse of %s failed at token %d: %s", what, err.position, err.message)
            self._report(err)
            raise
        logger.debug("parsed %s as %s", what, type(node).__name__)
        return node

    def _span(self, location: Optional[SourceLocation], length: int = 1) -> SourceSpan:
        if location is None:
            return SourceSpan.from_location(1, 1, length, self.filename)
        return SourceSpan.from_location(location.line, location.column, length, self.filename)

    def _report(self, err: ParserError) -> Diagnostic:
        found = self._token_at(err.position)
        length = max(1, len(found.lexeme)) if found is not None else 1
        span = self._span(err.location, length)

        if err.code == ErrorCode.E0202 and err.opened_at is not None:
            opener = self._token_at_location(err.opened_at)
            delimiter = opener.lexeme if opener is not None else "("
            return create_unclosed_delimiter_diagnostic(
                self.emitter, delimiter, self._span(err.opened_at), span
            )

        builder = self.emitter.error(err.code, err.message, span)
        if err.opened_at is not None:
            builder.secondary_label(self._span(err.opened_at), "group opened here")
        if err.description:
            builder.note(f"while parsing {err.description}")
        if found is not None and found.type == TokenType.IDENTIFIER:
            suggestion = suggest_similar(str(found.value), list(KEYWORDS))
            if suggestion:
                builder.help(f"did you mean `{suggestion}`?")
        return builder.emit()

    def _token_at(self, position: int) -> Optional[Token]:
        tokens = self._stream.tokens if self._stream is not None else self.tokens
        if 0 <= position < len(tokens):
            return tokens[position]
        return None

    def _token_at_location(self, location: SourceLocation) -> Optional[Token]:
        for tok in self.tokens:
            if tok.location == location:
                return tok
        return None


def parse(tokens: Sequence[Token], rule: str = "file", **kwargs: Any) -> ASTNode:
    """Parse a token list with the named rule."""
    return Parser(tokens, **kwargs).parse(rule)


def parse_str(
    source: str,
    rule: str = "file",
    *,
    filename: Optional[str] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ASTNode:
    """Tokenize and parse ``source`` with the named rule."""
    tokens = tokenize(source, filename)
    return Parser(tokens, source, filename, max_depth=max_depth).parse(rule)
