"""
Collaborator grammars used by the declaration parser.

These routines recognize the constructs that declarations are built from:
identifiers, paths, types, constant expressions (enum discriminants and
array lengths) and outer attributes. Each is a parser in the sense of
``declsyn.compiler.combinators``: ``cursor -> (node, cursor)``.
"""

from typing import Optional

from declsyn.compiler.ast_nodes import (
    AngleBracketedArgs,
    Attribute,
    DocComment,
    ExprBinary,
    ExprCast,
    ExprLit,
    ExprParen,
    ExprPath,
    ExprUnary,
    Expression,
    Ident,
    Lifetime,
    OuterAttribute,
    Pair,
    Path,
    PathSegment,
    Punctuated,
    Type,
    TypeArray,
    TypeNever,
    TypePath,
    TypePtr,
    TypeReference,
    TypeSlice,
    TypeTuple,
)
from declsyn.compiler.combinators import (
    alt,
    brackets,
    described,
    many0,
    parens,
    punctuated,
    recursive,
    token,
)
from declsyn.compiler.cursor import Cursor
from declsyn.compiler.tokens import Token, TokenType

# Tokens that may start a path segment
PATH_SEGMENT_TOKENS = (
    TokenType.IDENTIFIER,
    TokenType.SELF_VALUE,
    TokenType.SELF_TYPE,
    TokenType.SUPER,
    TokenType.CRATE,
)

LITERAL_TOKENS = (
    TokenType.INTEGER,
    TokenType.FLOAT,
    TokenType.STRING,
    TokenType.CHAR,
    TokenType.TRUE,
    TokenType.FALSE,
)


# -----------------------------------------------------------------------------
# Identifiers and Paths
# -----------------------------------------------------------------------------


def ident(cursor: Cursor) -> tuple[Ident, Cursor]:
    """Parse a plain identifier (keywords are rejected)."""
    tok, cursor = token(TokenType.IDENTIFIER, "identifier")(cursor)
    return Ident(tok), cursor


def lifetime(cursor: Cursor) -> tuple[Lifetime, Cursor]:
    tok, cursor = token(TokenType.LIFETIME, "lifetime")(cursor)
    return Lifetime(tok), cursor


def _segment_ident(cursor: Cursor) -> tuple[Ident, Cursor]:
    if not cursor.check(*PATH_SEGMENT_TOKENS):
        raise cursor.expected("identifier")
    tok, cursor = cursor.advance()
    return Ident(tok), cursor


def _generic_args(cursor: Cursor) -> tuple[AngleBracketedArgs, Cursor]:
    """
    Parse `<...>` generic arguments.

    Angle brackets are ordinary punctuation, so the list is scanned by hand
    rather than as a delimited group.
    """
    lt_token, cursor = token(TokenType.LT)(cursor)
    argument = alt(lifetime, type_, description="generic argument")
    pairs = []

    while not cursor.check(TokenType.GT):
        value, cursor = argument(cursor)
        if cursor.check(TokenType.COMMA):
            comma, cursor = cursor.advance()
            pairs.append(Pair(value, comma))
        else:
            pairs.append(Pair(value))
            if not cursor.check(TokenType.GT):
                raise cursor.expected("`,` or `>`")

    gt_token, cursor = cursor.advance()
    return AngleBracketedArgs(lt_token, Punctuated(tuple(pairs)), gt_token), cursor


def _path(cursor: Cursor, *, generics: bool) -> tuple[Path, Cursor]:
    leading_colon: Optional[Token] = None
    if cursor.check(TokenType.DOUBLE_COLON):
        leading_colon, cursor = cursor.advance()

    pairs = []
    while True:
        name, cursor = _segment_ident(cursor)
        arguments = None
        if generics and cursor.check(TokenType.LT):
            arguments, cursor = _generic_args(cursor)
        segment = PathSegment(name, arguments)

        if not cursor.check(TokenType.DOUBLE_COLON):
            pairs.append(Pair(segment))
            break
        sep, cursor = cursor.advance()
        pairs.append(Pair(segment, sep))

    return Path(Punctuated(tuple(pairs)), leading_colon), cursor


def path(cursor: Cursor) -> tuple[Path, Cursor]:
    """Parse a type path, whose segments may carry generic arguments."""
    return _path(cursor, generics=True)


def mod_style_path(cursor: Cursor) -> tuple[Path, Cursor]:
    """Parse a path made only of names, e.g. `crate::a::b` in `pub(in crate::a::b)`."""
    return _path(cursor, generics=False)


# -----------------------------------------------------------------------------
# Types
# -----------------------------------------------------------------------------


def _type(cursor: Cursor) -> tuple[Type, Cursor]:
    if cursor.check(TokenType.AMPERSAND):
        and_token, cursor = cursor.advance()
        life = None
        if cursor.check(TokenType.LIFETIME):
            life, cursor = lifetime(cursor)
        mutability = None
        if cursor.check(TokenType.MUT):
            mutability, cursor = cursor.advance()
        elem, cursor = type_(cursor)
        return TypeReference(and_token, elem, life, mutability), cursor

    if cursor.check(TokenType.STAR):
        star_token, cursor = cursor.advance()
        if not cursor.check(TokenType.CONST, TokenType.MUT):
            raise cursor.expected("`const` or `mut`")
        qualifier, cursor = cursor.advance()
        elem, cursor = type_(cursor)
        return TypePtr(star_token, qualifier, elem), cursor

    if cursor.check(TokenType.BANG):
        bang_token, cursor = cursor.advance()
        return TypeNever(bang_token), cursor

    if cursor.check(TokenType.LPAREN):
        (delim, elems), cursor = parens(punctuated(type_))(cursor)
        return TypeTuple(delim, elems), cursor

    if cursor.check(TokenType.LBRACKET):
        (delim, inner), cursor = brackets(_slice_or_array)(cursor)
        elem, length = inner
        if length is None:
            return TypeSlice(delim, elem), cursor
        semi_token, len_expr = length
        return TypeArray(delim, elem, semi_token, len_expr), cursor

    if cursor.check(TokenType.DOUBLE_COLON, *PATH_SEGMENT_TOKENS):
        type_path, cursor = path(cursor)
        return TypePath(type_path), cursor

    raise cursor.expected("type")


def _slice_or_array(cursor: Cursor):
    elem, cursor = type_(cursor)
    if not cursor.check(TokenType.SEMICOLON):
        return (elem, None), cursor
    semi_token, cursor = cursor.advance()
    length, cursor = expr(cursor)
    return (elem, (semi_token, length)), cursor


type_ = described(recursive(_type), Type.description())


# -----------------------------------------------------------------------------
# Constant Expressions
# -----------------------------------------------------------------------------


class Precedence:
    """Operator precedence levels for constant expressions."""

    NONE = 0
    BITWISE_OR = 1      # |
    BITWISE_XOR = 2     # ^
    BITWISE_AND = 3     # &
    SHIFT = 4           # << >>
    ADDITIVE = 5        # + -
    MULTIPLICATIVE = 6  # * / %
    CAST = 7            # as
    UNARY = 8           # - !


PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.PIPE: Precedence.BITWISE_OR,
    TokenType.CARET: Precedence.BITWISE_XOR,
    TokenType.AMPERSAND: Precedence.BITWISE_AND,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
    TokenType.AS: Precedence.CAST,
}


def _binary_operator(cursor: Cursor) -> tuple[int, int]:
    """Precedence and token count of the operator at the cursor (0, 0 if none)."""
    if cursor.at_end:
        return Precedence.NONE, 0
    current = cursor.current
    if current.type in (TokenType.LT, TokenType.GT):
        following = cursor.peek()
        if current.joint and following is not None and following.type == current.type:
            return Precedence.SHIFT, 2
        return Precedence.NONE, 0
    precedence = PRECEDENCE_MAP.get(current.type, Precedence.NONE)
    return precedence, 1 if precedence else 0


def _parse_expression(cursor: Cursor, min_precedence: int = Precedence.NONE) -> tuple[Expression, Cursor]:
    """Parse an expression using precedence climbing."""
    depth = cursor.depth
    cursor = cursor.nested()
    left, cursor = _parse_prefix(cursor)

    while True:
        precedence, width = _binary_operator(cursor)
        if precedence <= min_precedence:
            break

        op_tokens = []
        for _ in range(width):
            tok, cursor = cursor.advance()
            op_tokens.append(tok)

        if precedence == Precedence.CAST:
            ty, cursor = type_(cursor)
            left = ExprCast(left, op_tokens[0], ty)
        else:
            right, cursor = _parse_expression(cursor, precedence)
            left = ExprBinary(left, tuple(op_tokens), right)

    return left, cursor.at_depth(depth)


def _parse_prefix(cursor: Cursor) -> tuple[Expression, Cursor]:
    if cursor.check(*LITERAL_TOKENS):
        tok, cursor = cursor.advance()
        return ExprLit(tok), cursor

    if cursor.check(TokenType.MINUS, TokenType.BANG):
        op, cursor = cursor.advance()
        operand, cursor = _parse_expression(cursor, Precedence.UNARY)
        return ExprUnary(op, operand), cursor

    if cursor.check(TokenType.LPAREN):
        (delim, inner), cursor = parens(expr)(cursor)
        return ExprParen(delim, inner), cursor

    if cursor.check(TokenType.DOUBLE_COLON, *PATH_SEGMENT_TOKENS):
        value_path, cursor = mod_style_path(cursor)
        return ExprPath(value_path), cursor

    raise cursor.expected("expression")


def _expr(cursor: Cursor) -> tuple[Expression, Cursor]:
    return _parse_expression(cursor)


expr = described(_expr, Expression.description())


# -----------------------------------------------------------------------------
# Attributes
# -----------------------------------------------------------------------------


def doc_comment(cursor: Cursor) -> tuple[DocComment, Cursor]:
    tok, cursor = token(TokenType.DOC_COMMENT, "doc comment")(cursor)
    return DocComment(tok), cursor


def _attribute_body(cursor: Cursor):
    attr_path, cursor = mod_style_path(cursor)
    rest = cursor.remaining()
    return (attr_path, rest), cursor.skip_rest()


def attribute(cursor: Cursor) -> tuple[Attribute, Cursor]:
    """Parse `#[path tokens...]`; the tokens after the path are kept as-is."""
    pound_token, cursor = token(TokenType.POUND)(cursor)
    (delim, (attr_path, tokens)), cursor = brackets(_attribute_body)(cursor)
    return Attribute(pound_token, delim, attr_path, tokens), cursor


outer_attribute = alt(doc_comment, described(attribute, Attribute.description()))


def outer_attributes(cursor: Cursor) -> tuple[tuple[OuterAttribute, ...], Cursor]:
    """Zero or more outer attributes and doc comments."""
    return many0(outer_attribute)(cursor)
